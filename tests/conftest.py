"""Shared fixtures: synthetic ELF64 images on disk and parsed objects."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from shared.console import ProbeConsole
from shared.logger import ProbeLogger

from elfprobe.core.context import ParsedObject
from elfprobe.output.console import ProbeConsoleOutput

from tests.elf_builder import ElfImage, sample_builder


@pytest.fixture
def quiet_logger() -> ProbeLogger:
    return ProbeLogger("test", log_level="CRITICAL", console_output=False)


@pytest.fixture
def sample_image() -> ElfImage:
    return sample_builder().build()


@pytest.fixture
def sample_path(tmp_path: Path, sample_image: ElfImage) -> Path:
    path = tmp_path / "sample"
    path.write_bytes(sample_image.data)
    return path


@pytest.fixture
def write_elf(tmp_path: Path):
    """Write raw bytes to a fresh file and return its path."""
    counter = iter(range(1000))

    def _write(data: bytes) -> Path:
        path = tmp_path / f"image{next(counter)}.elf"
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def parse_bytes(quiet_logger: ProbeLogger):
    """Parse an in-memory image and return the :class:`ParsedObject`."""

    def _parse(data: bytes) -> ParsedObject:
        return ParsedObject(io.BytesIO(data), logger=quiet_logger).parse()

    return _parse


@pytest.fixture
def parsed(sample_path: Path, quiet_logger: ProbeLogger):
    obj = ParsedObject.load(sample_path, logger=quiet_logger)
    yield obj
    obj.close()


@pytest.fixture
def recording_display() -> ProbeConsoleOutput:
    console = ProbeConsole(record=True, width=200, file=io.StringIO())
    return ProbeConsoleOutput(console)
