"""
Header Parser
==============

Reads the fixed-size ELF64 executable header at file offset 0.

The magic, the class (64-bit) and the data encoding (little-endian)
are checked before any offset in the header is trusted.  Callers that
need to inspect a damaged header pass ``validate=False``.
"""

from __future__ import annotations

import struct

from elfprobe.core.errors import IoError, MalformedHeader
from elfprobe.core.models import ExecutableHeader
from elfprobe.parsers.constants import (
    EHDR_FORMAT,
    EHDR_SIZE,
    EI_CLASS,
    EI_DATA,
    EI_NIDENT,
    ELF_MAGIC,
    ELFCLASS64,
    ELFDATA2LSB,
)
from elfprobe.parsers.reader import RawReader


def parse_header(reader: RawReader, *, validate: bool = True) -> ExecutableHeader:
    """Read and decode the executable header.

    Args:
        reader: Raw reader over the object file.
        validate: Reject anything that is not a little-endian ELF64 file.

    Returns:
        The decoded :class:`ExecutableHeader`.

    Raises:
        MalformedHeader: If fewer than 64 bytes are available or, with
            *validate*, the identification bytes are wrong.
    """
    try:
        raw = reader.read_at(0, EHDR_SIZE)
    except IoError as exc:
        raise MalformedHeader(
            f"file too short for an ELF64 header ({EHDR_SIZE} bytes): {exc}"
        ) from exc

    ident = raw[:EI_NIDENT]
    if validate:
        validate_ident(ident)

    (
        e_type, e_machine, e_version, e_entry,
        e_phoff, e_shoff, e_flags, e_ehsize,
        e_phentsize, e_phnum, e_shentsize, e_shnum,
        e_shstrndx,
    ) = struct.unpack_from(EHDR_FORMAT, raw, EI_NIDENT)

    return ExecutableHeader(
        ident=ident,
        type=e_type,
        machine=e_machine,
        version=e_version,
        entry=e_entry,
        phoff=e_phoff,
        shoff=e_shoff,
        flags=e_flags,
        ehsize=e_ehsize,
        phentsize=e_phentsize,
        phnum=e_phnum,
        shentsize=e_shentsize,
        shnum=e_shnum,
        shstrndx=e_shstrndx,
    )


def validate_ident(ident: bytes) -> None:
    """Check magic, class and data encoding of ``e_ident``.

    Raises:
        MalformedHeader: On the first mismatch.
    """
    if ident[:4] != ELF_MAGIC:
        raise MalformedHeader(f"bad ELF magic: {ident[:4]!r}")
    if ident[EI_CLASS] != ELFCLASS64:
        raise MalformedHeader(
            f"unsupported ELF class {ident[EI_CLASS]} (only ELF64 is supported)"
        )
    if ident[EI_DATA] != ELFDATA2LSB:
        raise MalformedHeader(
            f"unsupported data encoding {ident[EI_DATA]} "
            "(only little-endian is supported)"
        )
