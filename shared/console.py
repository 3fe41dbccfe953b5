"""
ElfProbe Console
=================

One Rich console shared by the CLI and the interactive shell so that
tables, hex dumps and error lines look the same in both.

User-supplied text (symbol names, paths, error messages) is escaped
before printing; an ELF string table can contain ``[`` and Rich would
otherwise read it as markup.

References:
    - Rich console API. https://rich.readthedocs.io/en/stable/console.html
"""

from __future__ import annotations

from typing import IO, Any, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "probe.rule": "bold magenta",
        "probe.warn": "bold yellow",
        "probe.fail": "bold red",
        "probe.note": "bright_blue",
        "probe.border": "cyan",
        "probe.heading": "bold magenta",
    }
)

_MARKERS = {
    "warn": "[probe.warn]WARNING:[/probe.warn]",
    "fail": "[probe.fail]ERROR:[/probe.fail]",
    "note": "[probe.note]::[/probe.note]",
}


class ProbeConsole:
    """Rich console with the severity lines and tables ElfProbe prints.

    Args:
        quiet:  Swallow all output; only the exit status is left.
        record: Keep a copy of everything printed for :meth:`export_text`.
        file:   Write somewhere other than stdout.
        width:  Fixed width; Rich detects it when ``None``.
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        file: IO[str] | None = None,
        width: int | None = None,
    ) -> None:
        self._console = Console(
            theme=_THEME,
            quiet=quiet,
            record=record,
            file=file,
            width=width,
            highlight=False,
        )

    def _marked(self, kind: str, message: str) -> None:
        self._console.print(f"{_MARKERS[kind]} {escape(message)}")

    def warning(self, message: str) -> None:
        self._marked("warn", message)

    def error(self, message: str) -> None:
        self._marked("fail", message)

    def info(self, message: str) -> None:
        self._marked("note", message)

    def section(self, title: str) -> None:
        """Horizontal rule with *title*, used above hex dumps."""
        self._console.rule(escape(title), style="probe.rule", align="left")

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Print *rows* under *columns*; cells are ``str()``-ed and escaped.

        *styles* apply to the leading columns in order; the rest are plain.
        """
        tbl = Table(
            title=escape(title),
            caption=caption,
            border_style="probe.border",
            header_style="probe.heading",
            padding=(0, 1),
        )
        col_styles = list(styles or ())
        for pos, name in enumerate(columns):
            tbl.add_column(name, style=col_styles[pos] if pos < len(col_styles) else "")
        for row in rows:
            tbl.add_row(*[escape(str(cell)) for cell in row])
        self._console.print(tbl)

    def print(self, *args: Any, **kwargs: Any) -> None:
        self._console.print(*args, **kwargs)

    def blank(self) -> None:
        self._console.print()

    def export_text(self) -> str:
        """Everything printed so far (needs ``record=True``); clears the record."""
        return self._console.export_text()
