"""Header Parser: decoding and identification checks."""

from __future__ import annotations

import pytest

from elfprobe.core.errors import MalformedHeader
from elfprobe.core.models import ObjectType
from elfprobe.parsers.constants import ELFCLASS32, ELFDATA2LSB, ELFDATA2MSB, ET_DYN
from elfprobe.parsers.header import parse_header
from elfprobe.parsers.reader import RawReader

from tests.elf_builder import TEXT_ADDR, ElfBuilder, sample_builder


def test_decodes_sample_header(sample_image):
    header = parse_header(RawReader.from_bytes(sample_image.data))

    assert header.ident[:4] == b"\x7fELF"
    assert header.object_type is ObjectType.EXEC
    assert header.type_name == "EXEC (Executable file)"
    assert header.machine == 62
    assert header.machine_name == "x86_64"
    assert header.elf_class == "ELF64"
    assert header.data_encoding == "little"
    assert header.entry == TEXT_ADDR
    assert header.phoff == 64
    assert header.phnum == 2
    assert header.phentsize == 56
    assert header.shentsize == 64
    assert header.shstrndx == sample_image.shstrndx
    assert header.shnum == sample_image.shstrndx + 1


def test_shared_object_type():
    image = ElfBuilder(e_type=ET_DYN).build()
    header = parse_header(RawReader.from_bytes(image.data))
    assert header.type_name == "DYN (Shared object file)"


def test_unknown_type_is_reported_not_rejected():
    image = sample_builder().build(type=0xFE00)
    header = parse_header(RawReader.from_bytes(image.data))
    assert header.object_type is None
    assert header.type_name.startswith("Unknown")


@pytest.mark.parametrize("size", [0, 1, 16, 63])
def test_truncated_header(sample_image, size):
    with pytest.raises(MalformedHeader):
        parse_header(RawReader.from_bytes(sample_image.data[:size]))


def test_bad_magic():
    image = sample_builder().build(ident=b"MZ\x90\x00" + bytes(12))
    with pytest.raises(MalformedHeader, match="magic"):
        parse_header(RawReader.from_bytes(image.data))


def test_32_bit_class_rejected():
    ident = b"\x7fELF" + bytes([ELFCLASS32, ELFDATA2LSB, 1]) + bytes(9)
    image = sample_builder().build(ident=ident)
    with pytest.raises(MalformedHeader, match="class"):
        parse_header(RawReader.from_bytes(image.data))


def test_big_endian_rejected():
    ident = b"\x7fELF" + bytes([2, ELFDATA2MSB, 1]) + bytes(9)
    image = sample_builder().build(ident=ident)
    with pytest.raises(MalformedHeader, match="little-endian"):
        parse_header(RawReader.from_bytes(image.data))


def test_validation_can_be_disabled():
    image = sample_builder().build(ident=b"JUNK" + bytes(12))
    header = parse_header(RawReader.from_bytes(image.data), validate=False)
    assert header.ident[:4] == b"JUNK"
    assert header.elf_class == "none"


def test_ident_serialises_as_hex(sample_image):
    header = parse_header(RawReader.from_bytes(sample_image.data))
    dumped = header.model_dump(mode="json")
    assert dumped["ident"].startswith("7f454c46")
    assert dumped["type_name"] == "EXEC (Executable file)"
