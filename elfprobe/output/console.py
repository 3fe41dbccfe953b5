"""
ElfProbe Console Output
========================

Rich-powered terminal display for parsed ELF64 tables: executable header,
program headers, section headers, symbols and hex dumps of object data.

Uses the :class:`~shared.console.ProbeConsole` abstraction for consistent
styling between the CLI and the interactive shell.
"""

from __future__ import annotations

from typing import Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from shared.console import ProbeConsole

from elfprobe.core.models import (
    ExecutableHeader,
    NamedSection,
    NamedSymbol,
    ObjectData,
    ProgramHeaderEntry,
)
from elfprobe.parsers.constants import SHN_ABS, SHN_COMMON, SHN_UNDEF


def _hex(value: int, width: int = 16) -> str:
    return f"0x{value:0{width}x}"


def _shndx_label(shndx: int) -> str:
    if shndx == SHN_UNDEF:
        return "UND"
    if shndx == SHN_ABS:
        return "ABS"
    if shndx == SHN_COMMON:
        return "COM"
    return str(shndx)


def hexdump(data: bytes, *, base: int = 0, width: int = 16) -> list[str]:
    """Format *data* as classic ``offset  hex  |ascii|`` lines.

    Args:
        data:  Bytes to dump.
        base:  Address printed for the first byte.
        width: Bytes per line.
    """
    width = max(1, width)
    lines: list[str] = []
    for pos in range(0, len(data), width):
        chunk = data[pos:pos + width]
        hex_part = " ".join(f"{b:02x}" for b in chunk)
        ascii_part = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in chunk)
        lines.append(
            f"{base + pos:08x}  {hex_part:<{width * 3 - 1}}  |{ascii_part}|"
        )
    return lines


class ProbeConsoleOutput:
    """Render ElfProbe query results to a :class:`ProbeConsole`.

    Usage::

        display = ProbeConsoleOutput(ProbeConsole())
        display.program_headers(obj.program_headers())
    """

    def __init__(self, console: ProbeConsole | None = None, hexdump_width: int = 16) -> None:
        self._console = console or ProbeConsole()
        self._hexdump_width = hexdump_width

    @property
    def console(self) -> ProbeConsole:
        return self._console

    # ------------------------------------------------------------------ #
    #  Executable header
    # ------------------------------------------------------------------ #

    def header(self, header: ExecutableHeader) -> None:
        tbl = Table(show_header=False, border_style="bright_cyan", padding=(0, 1))
        tbl.add_column("Field", style="bold bright_white")
        tbl.add_column("Value")

        rows = [
            ("Magic", " ".join(f"{b:02x}" for b in header.ident)),
            ("Class", header.elf_class),
            ("Data", f"{header.data_encoding} endian"),
            ("Type", header.type_name),
            ("Machine", header.machine_name),
            ("Version", f"0x{header.version:x}"),
            ("Entry point", _hex(header.entry)),
            ("Program headers", f"{header.phnum} x {header.phentsize} bytes at {header.phoff}"),
            ("Section headers", f"{header.shnum} x {header.shentsize} bytes at {header.shoff}"),
            ("Flags", f"0x{header.flags:x}"),
            ("Header size", str(header.ehsize)),
            ("Section names index", str(header.shstrndx)),
        ]
        for field, value in rows:
            tbl.add_row(field, value)

        self._console.print(
            Panel(tbl, title="ELF Header", border_style="bright_cyan", expand=False)
        )

    # ------------------------------------------------------------------ #
    #  Tables
    # ------------------------------------------------------------------ #

    def program_headers(self, entries: Sequence[ProgramHeaderEntry]) -> None:
        if not entries:
            self._console.info("There are no program headers in this file.")
            return
        self._console.table(
            f"Program Headers ({len(entries)})",
            ["#", "Type", "Flags", "Offset", "VirtAddr", "PhysAddr",
             "FileSiz", "MemSiz", "Align"],
            [
                (
                    idx, ph.type_name, ph.flags_str, _hex(ph.offset, 8),
                    _hex(ph.vaddr), _hex(ph.paddr), ph.filesz, ph.memsz,
                    f"0x{ph.align:x}",
                )
                for idx, ph in enumerate(entries)
            ],
            styles=["dim", "bold bright_white"],
        )

    def section_headers(self, entries: Sequence[NamedSection]) -> None:
        if not entries:
            self._console.info("There are no sections in this file.")
            return
        self._console.table(
            f"Section Headers ({len(entries)})",
            ["#", "Name", "Type", "Flags", "Address", "Offset", "Size",
             "Link", "Info", "Align", "EntSize"],
            [
                (
                    named.index, named.name, sh.type_name, sh.flags_str,
                    _hex(sh.addr), _hex(sh.offset, 8), sh.size, sh.link,
                    sh.info, sh.addralign, sh.entsize,
                )
                for named in entries
                for sh in (named.section,)
            ],
            styles=["dim", "bold bright_white"],
        )

    def symbols(self, entries: Sequence[NamedSymbol]) -> None:
        if not entries:
            self._console.info("There are no symbols in this file.")
            return
        self._console.table(
            f"Symbol Table ({len(entries)} entries)",
            ["#", "Value", "Size", "Type", "Bind", "Vis", "Ndx", "Name"],
            [
                (
                    named.index, _hex(sym.value), sym.size, sym.type_name,
                    sym.bind_name, sym.visibility, _shndx_label(sym.shndx),
                    named.name,
                )
                for named in entries
                for sym in (named.symbol,)
            ],
            styles=["dim"],
        )

    def symbol(self, named: NamedSymbol) -> None:
        self.symbols([named])

    # ------------------------------------------------------------------ #
    #  Raw bytes
    # ------------------------------------------------------------------ #

    def object_data(self, blob: ObjectData) -> None:
        self._console.section(
            f"{blob.name} (symbol {blob.index}, {len(blob.data)} bytes "
            f"at file offset 0x{blob.file_offset:x})"
        )
        self.dump(blob.data, base=blob.file_offset)

    def dump(self, data: bytes, *, base: int = 0) -> None:
        if not data:
            self._console.info("(no data)")
            return
        for line in hexdump(data, base=base, width=self._hexdump_width):
            self._console.print(Text(line))
