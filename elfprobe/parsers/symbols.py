"""
Symbol Table Loader and Symbol Resolver
========================================

Locates the ``SHT_SYMTAB`` section, loads its records through the Table
Loader, and answers name lookups against it.

Cross-table indices (``sh_link`` of the symbol table, ``st_shndx`` of a
symbol) are range-checked at the single point where they are followed.
The symbol table's string-table section is resolved once, at load time,
and kept alongside the raw ``link`` value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

from elfprobe.core.errors import (
    AddressOutOfRange,
    IoError,
    MalformedTable,
    NoSymbolTable,
    NotAnObject,
    OutOfBounds,
    SymbolNotFound,
    UndefinedSection,
)
from elfprobe.core.models import (
    NamedSymbol,
    ObjectData,
    SectionHeaderEntry,
    SymbolEntry,
)
from elfprobe.parsers.constants import (
    SHN_LORESERVE,
    SHN_UNDEF,
    SHT_NOBITS,
    SHT_SYMTAB,
    STT_OBJECT,
)
from elfprobe.parsers.reader import RawReader
from elfprobe.parsers.strings import DEFAULT_CHUNK_SIZE, resolve_name
from elfprobe.parsers.tables import SYMBOL, load_table

if TYPE_CHECKING:
    from elfprobe.core.context import ParsedObject


@dataclass(frozen=True)
class SymbolTable:
    """Loaded symbols plus the sections they were read from.

    Attributes:
        symbols:       Every record of the table, in file order.
        section_index: Index of the ``SHT_SYMTAB`` section, ``None`` if absent.
        strtab:        The linked string-table section header.
        strtab_index:  Raw ``sh_link`` value the string table was found through.
    """

    symbols: tuple[SymbolEntry, ...] = ()
    section_index: Optional[int] = None
    strtab: Optional[SectionHeaderEntry] = None
    strtab_index: Optional[int] = None

    @property
    def present(self) -> bool:
        return self.section_index is not None

    def __len__(self) -> int:
        return len(self.symbols)


EMPTY_SYMBOL_TABLE = SymbolTable()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_symbols(
    reader: RawReader,
    sections: Sequence[SectionHeaderEntry],
) -> SymbolTable:
    """Load the first ``SHT_SYMTAB`` section found in *sections*.

    Only the first symbol-table section is honoured, even if more exist.

    Returns:
        The loaded :class:`SymbolTable`, or :data:`EMPTY_SYMBOL_TABLE` when
        the object has no symbol table.

    Raises:
        MalformedTable: If the table runs past the end of the file or its
            ``sh_link`` does not name an existing section.
        IoError: On a short read.
    """
    for index, section in enumerate(sections):
        if section.type == SHT_SYMTAB:
            break
    else:
        return EMPTY_SYMBOL_TABLE

    if section.link >= len(sections):
        raise MalformedTable(
            f"symbol table section {index} links to string table "
            f"{section.link}, but only {len(sections)} sections exist"
        )

    count = section.size // SYMBOL.size
    symbols = load_table(reader, section.offset, count, SYMBOL)
    return SymbolTable(
        symbols=symbols,
        section_index=index,
        strtab=sections[section.link],
        strtab_index=section.link,
    )


def symbol_name(
    reader: RawReader,
    table: SymbolTable,
    symbol: SymbolEntry,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """Resolve *symbol*'s name through the table's linked string table."""
    if table.strtab is None:
        raise NoSymbolTable("object has no symbol table")
    if symbol.name_offset == 0:
        return ""
    return resolve_name(reader, table.strtab, symbol.name_offset, chunk_size=chunk_size)


def iter_named_symbols(
    reader: RawReader,
    table: SymbolTable,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[NamedSymbol]:
    """Yield every symbol with its resolved name, in table order."""
    for index, symbol in enumerate(table.symbols):
        yield NamedSymbol(
            index=index,
            name=symbol_name(reader, table, symbol, chunk_size=chunk_size),
            symbol=symbol,
        )


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def find_symbol(ctx: ParsedObject, name: str) -> NamedSymbol:
    """Return the first symbol in table order whose name equals *name*.

    Symbols with empty names are skipped, and so are records whose name
    offset lies outside the string table; those are logged.

    Raises:
        NoSymbolTable: If the object has no ``SHT_SYMTAB`` section.
        SymbolNotFound: If no symbol carries *name*.
    """
    table = ctx.symbol_table
    if not table.present:
        raise NoSymbolTable("object has no symbol table")

    for index, symbol in enumerate(table.symbols):
        try:
            candidate = symbol_name(ctx.reader, table, symbol, chunk_size=ctx.chunk_size)
        except OutOfBounds as exc:
            ctx.logger.warning("Skipping symbol %d: %s", index, exc, symbol=index)
            continue
        if candidate and candidate == name:
            return NamedSymbol(index=index, name=candidate, symbol=symbol)

    raise SymbolNotFound(f"symbol not found: {name}")


def containing_section(
    sections: Sequence[SectionHeaderEntry], symbol: SymbolEntry
) -> SectionHeaderEntry:
    """Return the section a defined symbol lives in.

    Raises:
        UndefinedSection: For ``SHN_UNDEF``, any reserved index
            (``SHN_ABS``, ``SHN_COMMON``, ...) or an index past the table.
    """
    shndx = symbol.shndx
    if shndx == SHN_UNDEF or shndx >= SHN_LORESERVE or shndx >= len(sections):
        raise UndefinedSection(
            f"symbol section index {shndx:#x} does not name a section "
            f"({len(sections)} sections loaded)"
        )
    return sections[shndx]


def read_object_data(ctx: ParsedObject, name: str) -> ObjectData:
    """Read the raw bytes of the data object called *name*.

    The file offset is ``section.offset + (symbol.value - section.addr)``
    where *section* is the one named by the symbol's ``st_shndx``.
    Objects in an ``SHT_NOBITS`` section read back as zero bytes.

    Raises:
        NoSymbolTable, SymbolNotFound: From the lookup.
        NotAnObject: If the symbol type is not ``STT_OBJECT``.
        UndefinedSection: If ``st_shndx`` does not index a real section.
        AddressOutOfRange: If the symbol does not lie wholly inside its
            section.
        IoError: If the bytes cannot be read in full, or a ``NOBITS``
            object is too large to hold in memory.
    """
    named = find_symbol(ctx, name)
    symbol = named.symbol

    if symbol.type != STT_OBJECT:
        raise NotAnObject(
            f"symbol {name} is of type {symbol.type_name}, not OBJECT"
        )

    sections = ctx.section_headers()
    section = containing_section(sections, symbol)
    if symbol.value < section.addr:
        raise AddressOutOfRange(
            f"symbol {name} at {symbol.value:#x} lies below its section "
            f"start {section.addr:#x}"
        )

    delta = symbol.value - section.addr
    if delta + symbol.size > section.size:
        raise AddressOutOfRange(
            f"symbol {name} ({symbol.size} bytes at {symbol.value:#x}) runs "
            f"past the end of its section ({section.size} bytes at "
            f"{section.addr:#x})"
        )

    file_offset = section.offset + delta
    if section.type == SHT_NOBITS:
        # .bss and friends occupy no file space
        try:
            data = bytes(symbol.size)
        except (MemoryError, OverflowError) as exc:
            raise IoError(
                f"cannot materialise {symbol.size} zero bytes for {name}"
            ) from exc
    else:
        data = ctx.reader.read_at(file_offset, symbol.size)
    return ObjectData(
        name=name,
        index=named.index,
        section_index=symbol.shndx,
        file_offset=file_offset,
        data=data,
    )
