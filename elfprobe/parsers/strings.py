"""
String Resolver
================

Resolves a null-terminated name from a string-table section given a byte
offset into it.  Reads are bounded by the section's declared size, so a
name is never read from past the end of its table and long names are
never truncated at a fixed width.
"""

from __future__ import annotations

from elfprobe.core.errors import OutOfBounds
from elfprobe.core.models import SectionHeaderEntry
from elfprobe.parsers.reader import RawReader

DEFAULT_CHUNK_SIZE: int = 64


def resolve_name(
    reader: RawReader,
    strtab: SectionHeaderEntry,
    byte_offset: int,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """Return the string starting at *byte_offset* inside *strtab*.

    The table is read in chunks of *chunk_size* bytes until a zero byte
    is found or the section ends.  An unterminated final string yields
    everything up to the section end.

    Args:
        reader:      Raw reader over the object file.
        strtab:      The string-table section header.
        byte_offset: Offset of the first character within the section.
        chunk_size:  Bytes fetched per read.

    Returns:
        The decoded name; ``""`` when *byte_offset* points at a terminator
        (in ELF string tables offset 0 always does).

    Raises:
        OutOfBounds: If *byte_offset* is negative or not below ``strtab.size``.
        IoError: If the section data cannot be read from the file.
    """
    if byte_offset < 0 or byte_offset >= strtab.size:
        raise OutOfBounds(
            f"string offset {byte_offset} outside string table of "
            f"{strtab.size} bytes"
        )

    chunk_size = max(1, chunk_size)
    start = strtab.offset + byte_offset
    remaining = strtab.size - byte_offset
    buf = bytearray()

    while remaining > 0:
        want = min(chunk_size, remaining)
        chunk = reader.read_at(start + len(buf), want)
        end = chunk.find(b"\x00")
        if end != -1:
            buf += chunk[:end]
            break
        buf += chunk
        remaining -= want

    return buf.decode("utf-8", errors="replace")

