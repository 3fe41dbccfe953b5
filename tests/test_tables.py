"""Table Loader: program and section header tables."""

from __future__ import annotations

import pytest

from elfprobe.core.errors import MalformedTable
from elfprobe.parsers.constants import PT_LOAD, SHT_NOBITS, SHT_NULL, SHT_SYMTAB
from elfprobe.parsers.header import parse_header
from elfprobe.parsers.reader import RawReader
from elfprobe.parsers.tables import (
    PROGRAM_HEADER,
    SECTION_HEADER,
    SYMBOL,
    load_program_headers,
    load_section_headers,
    load_table,
)

from tests.elf_builder import BSS_SIZE, DATA_ADDR, ElfBuilder, sample_builder


def _load(image_data: bytes):
    reader = RawReader.from_bytes(image_data)
    header = parse_header(reader)
    return reader, header


def test_record_sizes():
    assert PROGRAM_HEADER.size == 56
    assert SECTION_HEADER.size == 64
    assert SYMBOL.size == 24


def test_program_headers(sample_image):
    reader, header = _load(sample_image.data)
    segments = load_program_headers(reader, header)

    assert len(segments) == header.phnum == 2
    assert all(ph.type == PT_LOAD for ph in segments)
    assert segments[0].flags_str == "RX"
    assert segments[1].flags_str == "RW"
    assert segments[1].vaddr == DATA_ADDR
    assert segments[1].memsz == 0x500


def test_section_headers(sample_image):
    reader, header = _load(sample_image.data)
    sections = load_section_headers(reader, header)

    assert len(sections) == header.shnum
    assert sections[0].type == SHT_NULL
    assert sections[0].size == 0
    bss = sections[sample_image.section_index[".bss"]]
    assert bss.type == SHT_NOBITS
    assert bss.size == BSS_SIZE
    symtab = sections[sample_image.symtab_index]
    assert symtab.type == SHT_SYMTAB
    assert symtab.link == sample_image.strtab_index
    assert symtab.entsize == 24


def test_zero_count_yields_empty_table():
    image = ElfBuilder().build()
    reader, header = _load(image.data)
    assert header.phnum == 0
    assert load_program_headers(reader, header) == ()
    assert load_table(reader, 10**9, 0, SYMBOL) == ()


def test_table_past_end_of_file():
    image = sample_builder().build(shnum=500)
    reader, header = _load(image.data)
    with pytest.raises(MalformedTable, match="past end of file"):
        load_section_headers(reader, header)


def test_table_offset_past_end_of_file(sample_image):
    reader, header = _load(sample_image.data)
    with pytest.raises(MalformedTable):
        load_table(reader, len(sample_image.data), 1, PROGRAM_HEADER)


def test_truncated_section_table(sample_image):
    reader, header = _load(sample_image.data[:-10])
    with pytest.raises(MalformedTable):
        load_section_headers(reader, header)


def test_entry_size_mismatch():
    image = sample_builder().build(phentsize=32)
    reader, header = _load(image.data)
    with pytest.raises(MalformedTable, match="entry size"):
        load_program_headers(reader, header)


def test_entry_size_ignored_for_empty_table():
    image = ElfBuilder().build(phentsize=0)
    reader, header = _load(image.data)
    assert load_program_headers(reader, header) == ()


def test_decode_at_offset(sample_image):
    reader, header = _load(sample_image.data)
    raw = reader.read_at(header.shoff, 2 * SECTION_HEADER.size)
    second = SECTION_HEADER.decode(raw, SECTION_HEADER.size)
    assert second == load_section_headers(reader, header)[1]
