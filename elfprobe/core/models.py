"""
ElfProbe Data Models
=====================

Pydantic-based models for the on-disk ELF64 records and the values the
query surface hands back to callers.

Record models are frozen: once a table is loaded its entries are an
immutable snapshot of the file's layout.  Raw integer fields are kept
exactly as read; the human-oriented names (``type_name``, ``flags_str``,
...) are computed fields so they show up in JSON output.

References:
    - System V Application Binary Interface, Edition 4.1, chapter 4.
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer

from elfprobe.parsers.constants import (
    ELFCLASS32,
    ELFCLASS64,
    ELFDATA2LSB,
    ELFDATA2MSB,
    EI_CLASS,
    EI_DATA,
    EM_NAMES,
    PF_R,
    PF_W,
    PF_X,
    PT_NAMES,
    SHF_ALLOC,
    SHF_EXECINSTR,
    SHF_WRITE,
    SHT_NAMES,
    STB_NAMES,
    STT_NAMES,
    STV_NAMES,
)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ObjectType(int, enum.Enum):
    """``e_type`` values of the executable header."""
    NONE = 0
    REL = 1
    EXEC = 2
    DYN = 3
    CORE = 4


class ParseState(str, enum.Enum):
    """Lifecycle of a :class:`~elfprobe.core.context.ParsedObject`."""
    UNPARSED = "unparsed"
    PARSED = "parsed"
    PARSE_FAILED = "parse_failed"


_ET_NAMES: dict[ObjectType, str] = {
    ObjectType.NONE: "NONE (No file type)",
    ObjectType.REL: "REL (Relocatable file)",
    ObjectType.EXEC: "EXEC (Executable file)",
    ObjectType.DYN: "DYN (Shared object file)",
    ObjectType.CORE: "CORE (Core file)",
}


# ---------------------------------------------------------------------------
# On-disk records
# ---------------------------------------------------------------------------

class ExecutableHeader(BaseModel):
    """The fixed 64-byte ELF64 executable header (``Elf64_Ehdr``).

    Attributes:
        ident: The 16 identification bytes (magic, class, encoding, ...).
        type: Raw ``e_type``; see :attr:`object_type`.
        machine: Target architecture (``e_machine``).
        version: Object file version.
        entry: Entry point virtual address.
        phoff: File offset of the program header table.
        shoff: File offset of the section header table.
        flags: Processor-specific flags.
        ehsize: Size of this header in bytes.
        phentsize: Size of one program header entry.
        phnum: Number of program header entries.
        shentsize: Size of one section header entry.
        shnum: Number of section header entries.
        shstrndx: Index of the section-name string table.
    """
    model_config = ConfigDict(frozen=True)

    ident: bytes
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    @property
    def object_type(self) -> Optional[ObjectType]:
        """The enumerated object type, or ``None`` for OS/processor-specific values."""
        try:
            return ObjectType(self.type)
        except ValueError:
            return None

    @computed_field
    @property
    def type_name(self) -> str:
        kind = self.object_type
        if kind is None:
            return f"Unknown (0x{self.type:x})"
        return _ET_NAMES[kind]

    @computed_field
    @property
    def machine_name(self) -> str:
        return EM_NAMES.get(self.machine, f"unknown({self.machine})")

    @computed_field
    @property
    def elf_class(self) -> str:
        ei_class = self.ident[EI_CLASS] if len(self.ident) > EI_CLASS else 0
        return {ELFCLASS32: "ELF32", ELFCLASS64: "ELF64"}.get(ei_class, "none")

    @computed_field
    @property
    def data_encoding(self) -> str:
        ei_data = self.ident[EI_DATA] if len(self.ident) > EI_DATA else 0
        return {ELFDATA2LSB: "little", ELFDATA2MSB: "big"}.get(ei_data, "none")

    @field_serializer("ident", when_used="json")
    def _ident_hex(self, value: bytes) -> str:
        return value.hex()


class ProgramHeaderEntry(BaseModel):
    """One program header (``Elf64_Phdr``): a segment descriptor.

    This is a snapshot of the on-disk layout; nothing is loaded.
    """
    model_config = ConfigDict(frozen=True)

    type: int = 0
    flags: int = 0
    offset: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    align: int = 0

    @computed_field
    @property
    def type_name(self) -> str:
        return PT_NAMES.get(self.type, f"0x{self.type:x}")

    @computed_field
    @property
    def flags_str(self) -> str:
        """Permissions as ``"RWX"``, ``"-"`` when none are set."""
        parts: list[str] = []
        if self.flags & PF_R:
            parts.append("R")
        if self.flags & PF_W:
            parts.append("W")
        if self.flags & PF_X:
            parts.append("X")
        return "".join(parts) if parts else "-"


class SectionHeaderEntry(BaseModel):
    """One section header (``Elf64_Shdr``).

    ``name_offset`` is a byte offset into the section-name string table and
    is resolved on each request, never cached.  For symbol tables ``link``
    is the index of the associated string-table section.
    """
    model_config = ConfigDict(frozen=True)

    name_offset: int = 0
    type: int = 0
    flags: int = 0
    addr: int = 0
    offset: int = 0
    size: int = 0
    link: int = 0
    info: int = 0
    addralign: int = 0
    entsize: int = 0

    @computed_field
    @property
    def type_name(self) -> str:
        return SHT_NAMES.get(self.type, f"0x{self.type:x}")

    @computed_field
    @property
    def flags_str(self) -> str:
        """Attributes as ``"WAX"``, ``"-"`` when none are set."""
        parts: list[str] = []
        if self.flags & SHF_WRITE:
            parts.append("W")
        if self.flags & SHF_ALLOC:
            parts.append("A")
        if self.flags & SHF_EXECINSTR:
            parts.append("X")
        return "".join(parts) if parts else "-"


class SymbolEntry(BaseModel):
    """One symbol table record (``Elf64_Sym``).

    The low nibble of ``info`` is the symbol type, the high nibble its
    binding.  ``shndx`` indexes the section holding the symbol's data and
    ``value`` is a virtual address for defined symbols.
    """
    model_config = ConfigDict(frozen=True)

    name_offset: int = 0
    info: int = 0
    other: int = 0
    shndx: int = 0
    value: int = 0
    size: int = 0

    @property
    def type(self) -> int:
        return self.info & 0x0F

    @property
    def bind(self) -> int:
        return self.info >> 4

    @computed_field
    @property
    def type_name(self) -> str:
        return STT_NAMES.get(self.type, f"UNKNOWN({self.type})")

    @computed_field
    @property
    def bind_name(self) -> str:
        return STB_NAMES.get(self.bind, f"UNKNOWN({self.bind})")

    @computed_field
    @property
    def visibility(self) -> str:
        return STV_NAMES[self.other & 0x3]


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------

class NamedSection(BaseModel):
    """A section header paired with its resolved name and table index."""
    index: int
    name: str = ""
    section: SectionHeaderEntry


class NamedSymbol(BaseModel):
    """A symbol paired with its resolved name and table index."""
    index: int
    name: str = ""
    symbol: SymbolEntry


class ObjectData(BaseModel):
    """Raw bytes of a data object read out of the binary.

    Attributes:
        name: Symbol name that was looked up.
        index: Index of the symbol in the loaded symbol table.
        section_index: Index of the section containing the data.
        file_offset: File offset the bytes were read from.
        data: Exactly ``symbol.size`` bytes.
    """
    name: str
    index: int
    section_index: int
    file_offset: int
    data: bytes = Field(default=b"", repr=False)

    @field_serializer("data", when_used="json")
    def _data_hex(self, value: bytes) -> str:
        return value.hex()
