"""Interactive shell: command tree, dispatch and error reporting."""

from __future__ import annotations

import io

import pytest

from shared.config import ShellConfig

from elfprobe.shell.commands import ShellSession, build_command_tree
from elfprobe.shell.repl import ProbeShell
from elfprobe.shell.tree import CommandNode


@pytest.fixture
def shell(parsed, recording_display, quiet_logger) -> ProbeShell:
    session = ShellSession(obj=parsed, display=recording_display)
    return ProbeShell(session, logger=quiet_logger)


def _output(shell: ProbeShell) -> str:
    return shell._session.console.export_text()


# ---------------------------------------------------------------------------
# Command tree
# ---------------------------------------------------------------------------

def test_resolve_consumes_command_tokens():
    root = build_command_tree()
    node, args = root.resolve(["object", "global_data"])
    assert node.name == "object"
    assert args == ["global_data"]


def test_resolve_unknown_command_falls_back_to_root():
    root = build_command_tree()
    node, args = root.resolve(["frobnicate", "x"])
    assert node is root
    assert args == ["frobnicate", "x"]


def test_resolve_nested_commands():
    root = CommandNode("root")
    show = root.add_child(CommandNode("show", handler=lambda s, a: True))
    deep = show.add_child(CommandNode("symbols", handler=lambda s, a: True))
    show.add_child(CommandNode("bare"))

    assert root.resolve(["show", "symbols", "x"]) == (deep, ["x"])
    assert root.resolve(["show", "bare", "x"]) == (show, ["bare", "x"])


def test_walk_lists_full_paths():
    paths = [path for path, _ in build_command_tree().walk()]
    for name in ("header", "program", "sections", "symbols", "symbol",
                 "object", "section", "help", "quit", "exit"):
        assert name in paths


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def test_header_command(shell):
    assert shell.execute("header") is True
    out = _output(shell)
    assert "ELF Header" in out
    assert "EXEC (Executable file)" in out


def test_program_command(shell):
    shell.execute("program")
    assert "Program Headers (2)" in _output(shell)


def test_sections_command(shell):
    shell.execute("sections")
    out = _output(shell)
    assert ".custom_data" in out
    assert "NOBITS" in out


def test_symbols_filter(shell):
    shell.execute("symbols global")
    out = _output(shell)
    assert "global_data" in out
    assert "global_zero" in out
    assert "my_function" not in out


def test_symbol_command(shell):
    shell.execute("symbol my_function")
    out = _output(shell)
    assert "my_function" in out
    assert "FUNC" in out


def test_object_command_dumps_bytes(shell):
    shell.execute("object global_data")
    out = _output(shell)
    assert "de ad be ef" in out
    assert "global_data" in out


def test_section_command_by_index(shell, sample_image):
    shell.execute(f"section {sample_image.section_index['.custom_data']}")
    assert "fe be be fe" in _output(shell)


def test_section_command_by_name(shell):
    shell.execute("section .rodata")
    assert "fe ed de ed" in _output(shell)


def test_section_argument_with_non_decimal_digits(shell):
    assert shell.execute("section ²") is True
    assert "section not found: ²" in _output(shell)


def test_query_errors_are_reported_and_shell_continues(shell):
    assert shell.execute("object main") is True
    assert shell.execute("object nope") is True
    assert shell.execute("object abs_object") is True
    out = _output(shell)
    assert "not OBJECT" in out
    assert "symbol not found: nope" in out
    assert "does not name a section" in out


def test_usage_error(shell):
    assert shell.execute("object") is True
    assert "usage: object NAME" in _output(shell)


def test_unknown_command(shell):
    assert shell.execute("frobnicate") is True
    assert "No handler for this command." in _output(shell)


def test_bad_quoting(shell):
    assert shell.execute('symbol "unterminated') is True
    assert "cannot parse command" in _output(shell)


def test_overlong_line(parsed, recording_display, quiet_logger):
    session = ShellSession(obj=parsed, display=recording_display)
    shell = ProbeShell(
        session, config=ShellConfig(max_line_length=8), logger=quiet_logger
    )
    assert shell.execute("symbols global_data") is True
    assert "longer than 8" in _output(shell)


def test_blank_line_is_ignored(shell):
    assert shell.execute("   \n") is True
    assert _output(shell) == ""


def test_help_lists_commands(shell):
    shell.execute("help")
    out = _output(shell)
    assert "object NAME" in out
    assert "section NAME|INDEX" in out


@pytest.mark.parametrize("line", ["quit", "exit"])
def test_quit(shell, line):
    assert shell.execute(line) is False


# ---------------------------------------------------------------------------
# Loop
# ---------------------------------------------------------------------------

def test_run_until_quit(parsed, recording_display, quiet_logger):
    session = ShellSession(obj=parsed, display=recording_display)
    stdin = io.StringIO("header\nobject global_data\nquit\nheader\n")
    repl = ProbeShell(
        session, config=ShellConfig(require_tty=False), stdin=stdin,
        logger=quiet_logger,
    )
    assert repl.run() == 0
    out = recording_display.console.export_text()
    assert out.count("ELF Header") == 1
    assert out.count("ELF> ") == 3


def test_run_until_end_of_input(parsed, recording_display, quiet_logger):
    session = ShellSession(obj=parsed, display=recording_display)
    repl = ProbeShell(
        session, config=ShellConfig(require_tty=False, prompt="> "),
        stdin=io.StringIO("symbol nope\n"), logger=quiet_logger,
    )
    assert repl.run() == 0
    assert "symbol not found" in recording_display.console.export_text()


def test_refuses_non_tty_input(parsed, recording_display, quiet_logger):
    session = ShellSession(obj=parsed, display=recording_display)
    repl = ProbeShell(session, stdin=io.StringIO("header\n"), logger=quiet_logger)
    assert repl.run() == 1
    out = recording_display.console.export_text()
    assert "STDIN is not a tty" in out
    assert "ELF Header" not in out
