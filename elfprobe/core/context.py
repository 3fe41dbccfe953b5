"""
Parsed Object Context
======================

:class:`ParsedObject` owns an open ELF64 file and every table loaded from
it.  It is populated by a single :meth:`ParsedObject.parse` call which runs

    1. Header Parser
    2. Table Loader (program headers)
    3. Table Loader (section headers)
    4. Symbol Table Loader

in that fixed order.  The first failure aborts the sequence, discards
whatever was loaded so far and leaves the object in the terminal
``PARSE_FAILED`` state.  Query failures afterwards are local: the object
stays usable.

Usage::

    with ParsedObject.open("sample") as obj:
        obj.parse()
        blob = obj.read_object_data("global_data")
        print(blob.data.hex())
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Optional, Union

from shared.config import ElfProbeConfig
from shared.logger import ProbeLogger

from elfprobe.core.errors import (
    ElfProbeError,
    IoError,
    ParseStateError,
    SectionNotFound,
    UndefinedSection,
)
from elfprobe.core.models import (
    ExecutableHeader,
    NamedSection,
    NamedSymbol,
    ObjectData,
    ParseState,
    ProgramHeaderEntry,
    SectionHeaderEntry,
)
from elfprobe.parsers import symbols as symbol_resolver
from elfprobe.parsers.constants import SHN_UNDEF, SHT_NOBITS
from elfprobe.parsers.header import parse_header
from elfprobe.parsers.reader import RawReader
from elfprobe.parsers.strings import resolve_name
from elfprobe.parsers.symbols import EMPTY_SYMBOL_TABLE, SymbolTable, load_symbols
from elfprobe.parsers.tables import load_program_headers, load_section_headers


def section_key(text: str) -> Union[int, str]:
    """Read *text* as a section table index if it is all decimal digits,
    otherwise as a section name."""
    return int(text) if text.isdecimal() else text


class ParsedObject:
    """In-memory view of one ELF64 object file.

    Args:
        handle:      A seekable binary file handle.
        config:      Engine settings; defaults are used if not provided.
        logger:      Logger instance.  A new one is created if not provided.
        owns_handle: Close *handle* when this object is closed.
    """

    def __init__(
        self,
        handle: BinaryIO,
        *,
        config: ElfProbeConfig | None = None,
        logger: ProbeLogger | None = None,
        owns_handle: bool = False,
    ) -> None:
        self._config: ElfProbeConfig = config or ElfProbeConfig()
        self._logger: ProbeLogger = logger or ProbeLogger("parser")
        self._handle: Optional[BinaryIO] = handle
        self._owns_handle = owns_handle
        self._reader = RawReader(handle)
        self._state = ParseState.UNPARSED
        self._failure: Optional[ElfProbeError] = None
        self._reset_tables()

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        *,
        config: ElfProbeConfig | None = None,
        logger: ProbeLogger | None = None,
    ) -> ParsedObject:
        """Open *path* for reading and wrap it; the handle is owned."""
        try:
            handle = open(path, "rb")
        except OSError as exc:
            raise IoError(f"cannot open {path}: {exc.strerror or exc}") from exc
        return cls(handle, config=config, logger=logger, owns_handle=True)

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        *,
        config: ElfProbeConfig | None = None,
        logger: ProbeLogger | None = None,
    ) -> ParsedObject:
        """Open and parse *path* in one step, closing the file on failure."""
        obj = cls.open(path, config=config, logger=logger)
        try:
            obj.parse()
        except ElfProbeError:
            obj.close()
            raise
        return obj

    # ------------------------------------------------------------------ #
    #  Lifecycle
    # ------------------------------------------------------------------ #

    def _reset_tables(self) -> None:
        self._header: Optional[ExecutableHeader] = None
        self._program_headers: tuple[ProgramHeaderEntry, ...] = ()
        self._section_headers: tuple[SectionHeaderEntry, ...] = ()
        self._symbol_table: SymbolTable = EMPTY_SYMBOL_TABLE

    def parse(self) -> ParsedObject:
        """Run the full parse sequence once.

        Returns:
            ``self``, for chaining.

        Raises:
            ParseStateError: If the object was already parsed (or failed to).
            ElfProbeError:   The first failure of any stage.
        """
        if self._state is not ParseState.UNPARSED:
            raise ParseStateError(f"object is already {self._state.value}")
        if self._handle is None:
            raise ParseStateError("object is closed")

        log = self._logger
        with log.operation("parse"), log.timed("ELF64 parse"):
            try:
                log.debug("Reading ELF header")
                header = parse_header(
                    self._reader, validate=self._config.strict_header
                )
                log.debug("Reading %d program headers", header.phnum)
                program_headers = load_program_headers(self._reader, header)
                log.debug("Reading %d section headers", header.shnum)
                section_headers = load_section_headers(self._reader, header)
                log.debug("Reading symbol table")
                symbol_table = load_symbols(self._reader, section_headers)
            except ElfProbeError as exc:
                self._reset_tables()
                self._state = ParseState.PARSE_FAILED
                self._failure = exc
                log.warning("Parse failed (%s): %s", exc.kind, exc)
                raise

        self._header = header
        self._program_headers = program_headers
        self._section_headers = section_headers
        self._symbol_table = symbol_table
        self._state = ParseState.PARSED

        log.info(
            "Parsed %s: %d program headers, %d sections, %d symbols",
            header.type_name,
            len(program_headers),
            len(section_headers),
            len(symbol_table),
        )
        if not symbol_table.present:
            log.info("No symbol table present")
        return self

    def close(self) -> None:
        """Release every loaded table and, if owned, the file handle."""
        self._reset_tables()
        if self._handle is not None and self._owns_handle:
            self._handle.close()
        self._handle = None

    def __enter__(self) -> ParsedObject:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    #  Properties
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> ParseState:
        return self._state

    @property
    def failure(self) -> Optional[ElfProbeError]:
        """The error that moved the object into ``PARSE_FAILED``, if any."""
        return self._failure

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def reader(self) -> RawReader:
        return self._reader

    @property
    def chunk_size(self) -> int:
        return self._config.string_chunk_size

    @property
    def logger(self) -> ProbeLogger:
        return self._logger

    @property
    def header(self) -> ExecutableHeader:
        self._require_parsed()
        if self._header is None:
            raise ParseStateError("object has no header loaded")
        return self._header

    @property
    def symbol_table(self) -> SymbolTable:
        self._require_parsed()
        return self._symbol_table

    def _require_parsed(self) -> None:
        if self._handle is None:
            raise ParseStateError("object is closed")
        if self._state is not ParseState.PARSED:
            raise ParseStateError(
                f"object is not parsed (state: {self._state.value})"
            )

    # ------------------------------------------------------------------ #
    #  Query surface
    # ------------------------------------------------------------------ #

    def program_headers(self) -> tuple[ProgramHeaderEntry, ...]:
        """The loaded program header table (possibly empty)."""
        self._require_parsed()
        return self._program_headers

    def section_headers(self) -> tuple[SectionHeaderEntry, ...]:
        """The loaded section header table (possibly empty)."""
        self._require_parsed()
        return self._section_headers

    def section_name(self, section: SectionHeaderEntry) -> str:
        """Resolve *section*'s name through the ``e_shstrndx`` string table.

        Returns ``""`` when the object has no section-name table.
        """
        self._require_parsed()
        shstrndx = self._header.shstrndx if self._header else SHN_UNDEF
        if shstrndx == SHN_UNDEF or shstrndx >= len(self._section_headers):
            return ""
        if section.name_offset == 0:
            return ""
        return resolve_name(
            self._reader,
            self._section_headers[shstrndx],
            section.name_offset,
            chunk_size=self.chunk_size,
        )

    def named_sections(self) -> list[NamedSection]:
        """Every section header with its resolved name."""
        return [
            NamedSection(index=index, name=self.section_name(section), section=section)
            for index, section in enumerate(self.section_headers())
        ]

    def find_section(self, name: str) -> NamedSection:
        """Return the first section called *name*.

        Raises:
            SectionNotFound: If no section carries *name*.
        """
        for named in self.named_sections():
            if named.name == name:
                return named
        raise SectionNotFound(f"section not found: {name}")

    def section(self, key: Union[int, str]) -> NamedSection:
        """Look a section up by table index or by name.

        Raises:
            UndefinedSection: For an index outside the section table.
            SectionNotFound:  For an unknown name.
        """
        if isinstance(key, str):
            return self.find_section(key)
        sections = self.section_headers()
        if not 0 <= key < len(sections):
            raise UndefinedSection(
                f"section index {key} out of range ({len(sections)} sections)"
            )
        return NamedSection(
            index=key, name=self.section_name(sections[key]), section=sections[key]
        )

    def section_data(self, key: Union[int, str]) -> bytes:
        """Raw bytes of a section, looked up by index or name.

        ``SHT_NOBITS`` sections occupy no file space and yield ``b""``.

        Raises:
            UndefinedSection, SectionNotFound: From :meth:`section`.
            IoError: If the section's bytes lie past end of file.
        """
        section = self.section(key).section
        if section.type == SHT_NOBITS:
            return b""
        return self._reader.read_at(section.offset, section.size)

    def symbols(self) -> list[NamedSymbol]:
        """Every symbol of the symbol table with its resolved name.

        Empty when the object has no symbol table.
        """
        table = self.symbol_table
        if not table.present:
            return []
        return list(
            symbol_resolver.iter_named_symbols(
                self._reader, table, chunk_size=self.chunk_size
            )
        )

    def find_symbol(self, name: str) -> NamedSymbol:
        """See :func:`elfprobe.parsers.symbols.find_symbol`."""
        self._require_parsed()
        return symbol_resolver.find_symbol(self, name)

    def read_object_data(self, name: str) -> ObjectData:
        """See :func:`elfprobe.parsers.symbols.read_object_data`."""
        self._require_parsed()
        return symbol_resolver.read_object_data(self, name)

    def __repr__(self) -> str:
        return f"<ParsedObject state={self._state.value}>"
