"""ParsedObject: parse sequence, state machine and the query surface."""

from __future__ import annotations

import io

import pytest

from shared.config import ElfProbeConfig

from elfprobe.core.context import ParsedObject, section_key
from elfprobe.core.errors import (
    IoError,
    MalformedHeader,
    MalformedTable,
    ParseStateError,
    SectionNotFound,
    UndefinedSection,
)
from elfprobe.core.models import ParseState
from elfprobe.parsers.constants import SHT_NOBITS, SHT_PROGBITS

from tests.elf_builder import ElfBuilder, sample_builder


def _unparsed(data: bytes, logger, **kwargs) -> ParsedObject:
    return ParsedObject(io.BytesIO(data), logger=logger, **kwargs)


# ---------------------------------------------------------------------------
# Parse sequence
# ---------------------------------------------------------------------------

def test_parse_populates_every_table(parsed, sample_image):
    assert parsed.state is ParseState.PARSED
    assert parsed.failure is None
    assert len(parsed.program_headers()) == parsed.header.phnum
    assert len(parsed.section_headers()) == parsed.header.shnum
    assert parsed.symbol_table.section_index == sample_image.symtab_index


def test_parse_returns_self(sample_image, quiet_logger):
    obj = _unparsed(sample_image.data, quiet_logger)
    assert obj.parse() is obj


def test_zero_program_headers(parse_bytes):
    obj = parse_bytes(ElfBuilder().build().data)
    assert obj.header.phnum == 0
    assert obj.program_headers() == ()


def test_no_symbol_table_is_not_a_failure(parse_bytes):
    builder = sample_builder()
    builder.with_symtab = False
    obj = parse_bytes(builder.build().data)
    assert obj.state is ParseState.PARSED
    assert not obj.symbol_table.present


@pytest.mark.parametrize(
    "data, error",
    [
        (b"", MalformedHeader),
        (b"\x7fELF", MalformedHeader),
        (sample_builder().build(ident=b"\x00" * 16).data, MalformedHeader),
        (sample_builder().build(shnum=4000).data, MalformedTable),
        (sample_builder().build(phoff=1 << 40).data, MalformedTable),
        (sample_builder().build(shentsize=40).data, MalformedTable),
    ],
)
def test_parse_failure_is_terminal(data, error, quiet_logger):
    obj = _unparsed(data, quiet_logger)
    with pytest.raises(error):
        obj.parse()

    assert obj.state is ParseState.PARSE_FAILED
    assert isinstance(obj.failure, error)
    with pytest.raises(ParseStateError, match="not parsed"):
        obj.header
    with pytest.raises(ParseStateError):
        obj.section_headers()
    with pytest.raises(ParseStateError, match="already parse_failed"):
        obj.parse()


def test_truncated_file_fails(sample_image, quiet_logger):
    obj = _unparsed(sample_image.data[: len(sample_image.data) // 2], quiet_logger)
    with pytest.raises(MalformedTable):
        obj.parse()
    assert obj.state is ParseState.PARSE_FAILED


def test_lenient_header_mode(quiet_logger):
    data = sample_builder().build(ident=b"JUNK" + bytes(12)).data
    obj = _unparsed(data, quiet_logger, config=ElfProbeConfig(strict_header=False))
    obj.parse()
    assert obj.state is ParseState.PARSED


def test_double_parse_is_rejected(parsed):
    with pytest.raises(ParseStateError, match="already parsed"):
        parsed.parse()


def test_queries_before_parse(sample_image, quiet_logger):
    obj = _unparsed(sample_image.data, quiet_logger)
    assert obj.state is ParseState.UNPARSED
    with pytest.raises(ParseStateError, match="unparsed"):
        obj.symbols()
    with pytest.raises(ParseStateError):
        obj.find_symbol("main")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def test_open_missing_file(tmp_path, quiet_logger):
    with pytest.raises(IoError, match="cannot open"):
        ParsedObject.open(tmp_path / "missing", logger=quiet_logger)


def test_load_closes_file_on_failure(write_elf, quiet_logger, monkeypatch):
    closed = []
    original = ParsedObject.close

    def spy(self):
        closed.append(self)
        original(self)

    monkeypatch.setattr(ParsedObject, "close", spy)
    with pytest.raises(MalformedHeader):
        ParsedObject.load(write_elf(b"not an elf"), logger=quiet_logger)
    assert len(closed) == 1
    assert closed[0].closed


def test_close_releases_handle(sample_path, quiet_logger):
    obj = ParsedObject.load(sample_path, logger=quiet_logger)
    handle = obj.reader.handle
    obj.close()

    assert obj.closed
    assert handle.closed
    with pytest.raises(ParseStateError, match="closed"):
        obj.section_headers()


def test_borrowed_handle_is_left_open(sample_image, quiet_logger):
    handle = io.BytesIO(sample_image.data)
    with ParsedObject(handle, logger=quiet_logger) as obj:
        obj.parse()
    assert obj.closed
    assert not handle.closed


def test_parse_after_close(sample_image, quiet_logger):
    obj = _unparsed(sample_image.data, quiet_logger)
    obj.close()
    with pytest.raises(ParseStateError, match="closed"):
        obj.parse()


def test_handle_left_at_start_of_file(parsed):
    parsed.read_object_data("global_data")
    assert parsed.reader.handle.tell() == 0


def test_header_missing_after_parse_is_a_state_error(parsed):
    parsed._header = None
    with pytest.raises(ParseStateError, match="no header"):
        parsed.header


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def test_section_names(parsed, sample_image):
    names = [s.name for s in parsed.named_sections()]
    assert names[0] == ""
    for name, index in sample_image.section_index.items():
        assert names[index] == name


def test_section_by_name_and_index(parsed, sample_image):
    by_name = parsed.section(".data")
    assert by_name.index == sample_image.section_index[".data"]
    assert parsed.section(by_name.index) == by_name


def test_find_section_missing(parsed):
    with pytest.raises(SectionNotFound):
        parsed.find_section(".nope")


@pytest.mark.parametrize("index", [-1, 10_000])
def test_section_index_out_of_range(parsed, index):
    with pytest.raises(UndefinedSection):
        parsed.section(index)


def test_section_data(parsed):
    assert parsed.section_data(".rodata").startswith(bytes.fromhex("feeddeed"))
    assert parsed.section_data(".custom_data") == bytes.fromhex("febebefe")


def test_nobits_section_has_no_data(parsed):
    assert parsed.section(".bss").section.type == SHT_NOBITS
    assert parsed.section_data(".bss") == b""


def test_no_section_name_table(parse_bytes):
    obj = parse_bytes(sample_builder().build(shstrndx=0).data)
    assert {s.name for s in obj.named_sections()} == {""}
    with pytest.raises(SectionNotFound):
        obj.find_section(".text")


def test_symbols_listing(parsed):
    named = parsed.symbols()
    assert len(named) == len(parsed.symbol_table)
    assert named[0].name == ""
    assert [s.index for s in named] == list(range(len(named)))
    assert "global_data" in {s.name for s in named}


@pytest.mark.parametrize(
    "text, key",
    [("3", 3), ("007", 7), (".data", ".data"), ("²", "²"), ("-1", "-1"), ("", "")],
)
def test_section_key(text, key):
    assert section_key(text) == key


def test_section_extending_past_end_of_file(parse_bytes):
    builder = sample_builder()
    builder.add_section(".tail", type=SHT_PROGBITS, data=b"\x01" * 4, size=1 << 40)
    obj = parse_bytes(builder.build().data)
    with pytest.raises(IoError, match="short read"):
        obj.section_data(".tail")
