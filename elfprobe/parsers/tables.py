"""
Table Loader
=============

Generic loader for arrays of fixed-size on-disk records: program headers,
section headers and symbols all go through :func:`load_table`.

Declared extents are checked against the file length before anything is
read, so a lying header produces :class:`MalformedTable` rather than an
out-of-bounds logical read.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from elfprobe.core.errors import MalformedTable
from elfprobe.core.models import (
    ExecutableHeader,
    ProgramHeaderEntry,
    SectionHeaderEntry,
    SymbolEntry,
)
from elfprobe.parsers.constants import (
    PHDR_FORMAT,
    SHDR_FORMAT,
    SYM_FORMAT,
)
from elfprobe.parsers.reader import RawReader

T = TypeVar("T")


@dataclass(frozen=True)
class RecordCodec(Generic[T]):
    """Layout of one fixed-size record and how to build a model from it."""

    name: str
    layout: struct.Struct
    build: Callable[[tuple], T]

    @property
    def size(self) -> int:
        return self.layout.size

    def decode(self, raw: bytes, offset: int = 0) -> T:
        return self.build(self.layout.unpack_from(raw, offset))


def _program_header(fields: tuple) -> ProgramHeaderEntry:
    p_type, p_flags, p_offset, p_vaddr, p_paddr, p_filesz, p_memsz, p_align = fields
    return ProgramHeaderEntry(
        type=p_type,
        flags=p_flags,
        offset=p_offset,
        vaddr=p_vaddr,
        paddr=p_paddr,
        filesz=p_filesz,
        memsz=p_memsz,
        align=p_align,
    )


def _section_header(fields: tuple) -> SectionHeaderEntry:
    (
        sh_name, sh_type, sh_flags, sh_addr, sh_offset,
        sh_size, sh_link, sh_info, sh_addralign, sh_entsize,
    ) = fields
    return SectionHeaderEntry(
        name_offset=sh_name,
        type=sh_type,
        flags=sh_flags,
        addr=sh_addr,
        offset=sh_offset,
        size=sh_size,
        link=sh_link,
        info=sh_info,
        addralign=sh_addralign,
        entsize=sh_entsize,
    )


def _symbol(fields: tuple) -> SymbolEntry:
    st_name, st_info, st_other, st_shndx, st_value, st_size = fields
    return SymbolEntry(
        name_offset=st_name,
        info=st_info,
        other=st_other,
        shndx=st_shndx,
        value=st_value,
        size=st_size,
    )


PROGRAM_HEADER = RecordCodec("program header", struct.Struct(PHDR_FORMAT), _program_header)
SECTION_HEADER = RecordCodec("section header", struct.Struct(SHDR_FORMAT), _section_header)
SYMBOL = RecordCodec("symbol", struct.Struct(SYM_FORMAT), _symbol)


def load_table(
    reader: RawReader,
    offset: int,
    count: int,
    record: RecordCodec[T],
) -> tuple[T, ...]:
    """Load *count* contiguous *record* entries starting at *offset*.

    Args:
        reader: Raw reader over the object file.
        offset: File offset of the first record.
        count:  Number of records; ``0`` yields an empty tuple.
        record: Codec describing the record layout.

    Returns:
        A tuple of exactly *count* decoded records.

    Raises:
        MalformedTable: If the table would extend past the end of the file.
        IoError: If the read comes back short.
    """
    if count == 0:
        return ()
    if offset < 0 or count < 0:
        raise MalformedTable(
            f"{record.name} table has invalid geometry: offset={offset} count={count}"
        )

    length = count * record.size
    if offset + length > reader.size:
        raise MalformedTable(
            f"{record.name} table at 0x{offset:x} ({count} x {record.size} bytes) "
            f"extends past end of file ({reader.size} bytes)"
        )

    raw = reader.read_at(offset, length)
    return tuple(
        record.decode(raw, i * record.size) for i in range(count)
    )


def load_program_headers(
    reader: RawReader, header: ExecutableHeader
) -> tuple[ProgramHeaderEntry, ...]:
    """Load the program header table described by *header*."""
    _check_entry_size(PROGRAM_HEADER, header.phnum, header.phentsize)
    return load_table(reader, header.phoff, header.phnum, PROGRAM_HEADER)


def load_section_headers(
    reader: RawReader, header: ExecutableHeader
) -> tuple[SectionHeaderEntry, ...]:
    """Load the section header table described by *header*."""
    _check_entry_size(SECTION_HEADER, header.shnum, header.shentsize)
    return load_table(reader, header.shoff, header.shnum, SECTION_HEADER)


def _check_entry_size(record: RecordCodec, count: int, declared: int) -> None:
    if count and declared != record.size:
        raise MalformedTable(
            f"{record.name} entry size is {declared}, expected {record.size}"
        )
