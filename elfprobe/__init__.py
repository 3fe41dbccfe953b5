"""
ElfProbe -- ELF64 Object Introspection
=======================================

ElfProbe parses the executable header, program headers, section headers
and symbol table of a little-endian ELF64 object, resolves names through
the linked string tables, and extracts the raw bytes of named data
objects.  An interactive command shell and a click CLI sit on top of the
query surface of :class:`~elfprobe.core.context.ParsedObject`.

References:
    - System V Application Binary Interface, Edition 4.1.
    - Linux man page: elf(5).
"""

from elfprobe.core.context import ParsedObject
from elfprobe.core.errors import ElfProbeError
from elfprobe.core.models import ParseState

__version__ = "1.0.0"
__all__ = [
    "ParsedObject",
    "ParseState",
    "ElfProbeError",
]
