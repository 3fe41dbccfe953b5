"""
ElfProbe Error Taxonomy
========================

Every failure the engine can report is a subclass of
:class:`ElfProbeError`.  Loaders raise; only the CLI and the interactive
shell turn an error into a message for the user.

Each class carries a short ``kind`` tag used in log records and JSON
output.
"""

from __future__ import annotations


class ElfProbeError(Exception):
    """Base class for all ElfProbe failures."""

    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class IoError(ElfProbeError):
    """Seek, read or open failure, including short reads at end of file."""

    kind = "io_error"


class MalformedHeader(ElfProbeError):
    """The executable header is truncated or not a little-endian ELF64 header."""

    kind = "malformed_header"


class MalformedTable(ElfProbeError):
    """A declared table extent or cross-reference lies outside the file."""

    kind = "malformed_table"


class OutOfBounds(ElfProbeError):
    """A byte offset lies beyond a section's declared extent."""

    kind = "out_of_bounds"


class NoSymbolTable(ElfProbeError):
    """The object carries no ``SHT_SYMTAB`` section."""

    kind = "no_symbol_table"


class SymbolNotFound(ElfProbeError):
    kind = "symbol_not_found"


class NotAnObject(ElfProbeError):
    """The symbol exists but is not of type ``STT_OBJECT``."""

    kind = "not_an_object"


class UndefinedSection(ElfProbeError):
    """A section index is a reserved sentinel or past the end of the table."""

    kind = "undefined_section"


class AddressOutOfRange(ElfProbeError):
    """A symbol value lies below its containing section's address."""

    kind = "address_out_of_range"


class SectionNotFound(ElfProbeError):
    kind = "section_not_found"


class ParseStateError(ElfProbeError):
    """An operation was attempted in the wrong :class:`ParseState`."""

    kind = "parse_state"


__all__ = [
    "ElfProbeError",
    "IoError",
    "MalformedHeader",
    "MalformedTable",
    "OutOfBounds",
    "NoSymbolTable",
    "SymbolNotFound",
    "NotAnObject",
    "UndefinedSection",
    "AddressOutOfRange",
    "SectionNotFound",
    "ParseStateError",
]
