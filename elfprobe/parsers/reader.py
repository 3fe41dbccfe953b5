"""
Raw Reader
===========

The single point of contact with the underlying file handle.  Every read
names an absolute file offset; no caller depends on the handle's current
position.  After each read the position is rewound to 0 so that code
holding the raw handle always finds it at the start of the file.
"""

from __future__ import annotations

import io
import os
import threading
from typing import BinaryIO

from elfprobe.core.errors import IoError


class RawReader:
    """Offset-addressed reads over a seekable binary file handle.

    Usage::

        with open("sample", "rb") as fh:
            reader = RawReader(fh)
            magic = reader.read_at(0, 4)

    The reader does not own *handle*; closing it is the caller's job.
    """

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle
        self._lock = threading.Lock()
        self._size: int | None = None

    @property
    def handle(self) -> BinaryIO:
        return self._handle

    @property
    def size(self) -> int:
        """Length of the file in bytes (measured once, then cached)."""
        if self._size is None:
            with self._lock:
                try:
                    self._size = self._handle.seek(0, os.SEEK_END)
                except (OSError, ValueError) as exc:
                    raise IoError(f"cannot determine file size: {exc}") from exc
                finally:
                    self._rewind()
        return self._size

    def read_at(self, offset: int, length: int) -> bytes:
        """Read exactly *length* bytes starting at absolute *offset*.

        The request is checked against the file size before any read.

        Raises:
            IoError: If the seek or read fails, or fewer than *length*
                bytes are available (truncated file).
        """
        if offset < 0 or length < 0:
            raise IoError(
                f"invalid read request: offset={offset} length={length}"
            )
        if length == 0:
            return b""
        available = max(0, self.size - offset)
        if length > available:
            raise IoError(
                f"short read at 0x{offset:x}: wanted {length} bytes, "
                f"only {available} available"
            )

        with self._lock:
            try:
                self._handle.seek(offset, os.SEEK_SET)
                data = self._read_exact(length)
            except (OSError, ValueError, OverflowError) as exc:
                raise IoError(
                    f"read of {length} bytes at 0x{offset:x} failed: {exc}"
                ) from exc
            finally:
                self._rewind()

        if len(data) != length:
            raise IoError(
                f"short read at 0x{offset:x}: wanted {length} bytes, "
                f"got {len(data)}"
            )
        return data

    def _read_exact(self, length: int) -> bytes:
        # Raw (unbuffered) handles may return fewer bytes than asked
        # before end of file.
        buf = bytearray()
        while len(buf) < length:
            chunk = self._handle.read(length - len(buf))
            if not chunk:
                break
            buf += chunk
        return bytes(buf)

    def _rewind(self) -> None:
        try:
            self._handle.seek(0, os.SEEK_SET)
        except (OSError, ValueError):
            # A closed handle cannot be rewound; the read error (if any)
            # is already propagating.
            pass

    @classmethod
    def from_bytes(cls, data: bytes) -> RawReader:
        """Wrap an in-memory image, mainly for tests and piped input."""
        return cls(io.BytesIO(data))
