"""
Shell Commands
===============

Handlers for the interactive shell.  Each handler receives the
:class:`ShellSession` and the argument tokens left after command
resolution, queries the parsed object and renders the result.

Handlers let :class:`~elfprobe.core.errors.ElfProbeError` propagate; the
shell loop turns it into a one-line message and keeps going.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.console import ProbeConsole

from elfprobe.core.context import ParsedObject, section_key
from elfprobe.output.console import ProbeConsoleOutput
from elfprobe.shell.tree import CommandNode


@dataclass
class ShellSession:
    """State shared by every command handler."""

    obj: ParsedObject
    display: ProbeConsoleOutput
    root: CommandNode | None = None

    @property
    def console(self) -> ProbeConsole:
        return self.display.console


def _usage(session: ShellSession, usage: str) -> bool:
    session.console.warning(f"usage: {usage}")
    return True


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def root_cmd(session: ShellSession, args: list[str]) -> bool:
    session.console.warning("No handler for this command.")
    return True


def header_cmd(session: ShellSession, args: list[str]) -> bool:
    session.display.header(session.obj.header)
    return True


def program_cmd(session: ShellSession, args: list[str]) -> bool:
    session.display.program_headers(session.obj.program_headers())
    return True


def sections_cmd(session: ShellSession, args: list[str]) -> bool:
    session.display.section_headers(session.obj.named_sections())
    return True


def symbols_cmd(session: ShellSession, args: list[str]) -> bool:
    symbols = session.obj.symbols()
    if args:
        symbols = [s for s in symbols if any(term in s.name for term in args)]
    session.display.symbols(symbols)
    return True


def symbol_cmd(session: ShellSession, args: list[str]) -> bool:
    if len(args) != 1:
        return _usage(session, "symbol NAME")
    session.display.symbol(session.obj.find_symbol(args[0]))
    return True


def object_cmd(session: ShellSession, args: list[str]) -> bool:
    if len(args) != 1:
        return _usage(session, "object NAME")
    session.display.object_data(session.obj.read_object_data(args[0]))
    return True


def section_cmd(session: ShellSession, args: list[str]) -> bool:
    if len(args) != 1:
        return _usage(session, "section NAME|INDEX")
    key = section_key(args[0])
    named = session.obj.section(key)
    data = session.obj.section_data(named.index)
    session.console.section(
        f"[{named.index}] {named.name or '<unnamed>'} ({len(data)} bytes)"
    )
    session.display.dump(data, base=named.section.offset)
    return True


def help_cmd(session: ShellSession, args: list[str]) -> bool:
    if session.root is None:
        return True
    rows = [
        (node.usage or path, node.help)
        for path, node in session.root.walk()
        if node.handler is not None
    ]
    session.console.table("Commands", ["Command", "Description"], rows)
    return True


def quit_cmd(session: ShellSession, args: list[str]) -> bool:
    return False


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------

def build_command_tree() -> CommandNode:
    """Register every shell command under a fresh root node."""
    root = CommandNode("root", handler=root_cmd)
    root.add_child(CommandNode("header", header_cmd, "Show the ELF executable header"))
    root.add_child(CommandNode("program", program_cmd, "List program headers"))
    root.add_child(CommandNode("sections", sections_cmd, "List section headers"))
    root.add_child(CommandNode(
        "symbols", symbols_cmd, "List symbols, optionally filtered by substring",
        usage="symbols [FILTER...]",
    ))
    root.add_child(CommandNode(
        "symbol", symbol_cmd, "Show one symbol by name", usage="symbol NAME",
    ))
    root.add_child(CommandNode(
        "object", object_cmd, "Hex dump a data object's bytes", usage="object NAME",
    ))
    root.add_child(CommandNode(
        "section", section_cmd, "Hex dump a section's bytes",
        usage="section NAME|INDEX",
    ))
    root.add_child(CommandNode("help", help_cmd, "List commands"))
    root.add_child(CommandNode("quit", quit_cmd, "Leave the shell"))
    root.add_child(CommandNode("exit", quit_cmd, "Leave the shell"))
    return root
