"""
ElfProbe Output Module
=======================

Rich console rendering of parsed ELF64 tables.
"""

from elfprobe.output.console import ProbeConsoleOutput, hexdump

__all__ = ["ProbeConsoleOutput", "hexdump"]
