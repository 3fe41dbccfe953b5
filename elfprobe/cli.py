"""
ElfProbe CLI
=============

Click-based command-line interface over the ElfProbe query surface.

Commands:
    elfprobe header PATH         - Show the executable header
    elfprobe programs PATH       - List program headers
    elfprobe sections PATH       - List section headers
    elfprobe symbols PATH        - List symbols with resolved names
    elfprobe object PATH NAME    - Hex dump a named data object
    elfprobe section PATH NAME   - Hex dump a section by name or index
    elfprobe shell [PATH]        - Interactive ``ELF>`` shell

Global Options:
    --config, -c    Path to a TOML configuration file
    --json          Emit JSON instead of tables
    --verbose, -v   Enable debug logging
    --quiet, -q     Suppress console output (exit status only)

A file that fails to parse is fatal (exit status 1); a failed query
reports the error and exits with status 2.

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

import click

from shared.config import ProbeConfig
from shared.console import ProbeConsole
from shared.logger import ProbeLogger

from elfprobe.core.context import ParsedObject, section_key
from elfprobe.core.errors import ElfProbeError
from elfprobe.output.console import ProbeConsoleOutput
from elfprobe.shell.commands import ShellSession
from elfprobe.shell.repl import ProbeShell

EXIT_PARSE_FAILURE = 1
EXIT_QUERY_FAILURE = 2


# ===================================================================== #
#  CLI Group
# ===================================================================== #

@click.group()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to an ElfProbe configuration file (TOML).",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Print results as JSON instead of tables.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Log every parse stage at DEBUG level.",
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    default=False,
    help="Suppress console output.",
)
@click.version_option("1.0.0", prog_name="elfprobe")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[str],
    json_output: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """ElfProbe -- ELF64 object introspection.

    Parse the headers, section table and symbol table of an ELF64 file
    and extract the raw bytes of named data objects.
    """
    ctx.ensure_object(dict)

    probe_config = ProbeConfig.load(config)
    if verbose:
        probe_config.global_settings.debug = True

    console = ProbeConsole(quiet=quiet)
    ctx.obj["config"] = probe_config
    ctx.obj["json"] = json_output
    ctx.obj["console"] = console
    ctx.obj["logger"] = ProbeLogger.from_config("parser", probe_config)
    ctx.obj["display"] = ProbeConsoleOutput(
        console, hexdump_width=probe_config.elfprobe.hexdump_width
    )


# ===================================================================== #
#  Helpers
# ===================================================================== #

def _load(ctx: click.Context, path: str) -> ParsedObject:
    """Open and parse *path*; a failure here ends the process."""
    config: ProbeConfig = ctx.obj["config"]
    try:
        obj = ParsedObject.load(
            path, config=config.elfprobe, logger=ctx.obj["logger"]
        )
    except ElfProbeError as exc:
        ctx.obj["console"].error(f"cannot parse {path}: {exc}")
        ctx.exit(EXIT_PARSE_FAILURE)
    ctx.call_on_close(obj.close)
    return obj


def _emit_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _query(ctx: click.Context, func: Callable[[], None]) -> None:
    """Run one query, turning an ElfProbe error into exit status 2."""
    try:
        func()
    except ElfProbeError as exc:
        if ctx.obj["json"]:
            _emit_json({"error": exc.kind, "message": str(exc)})
        else:
            ctx.obj["console"].error(str(exc))
        ctx.exit(EXIT_QUERY_FAILURE)


# ===================================================================== #
#  Subcommands
# ===================================================================== #

_PATH = click.Path(exists=True, dir_okay=False)


@cli.command()
@click.argument("path", type=_PATH)
@click.pass_context
def header(ctx: click.Context, path: str) -> None:
    """Show the ELF executable header."""
    obj = _load(ctx, path)
    if ctx.obj["json"]:
        _emit_json(obj.header.model_dump(mode="json"))
    else:
        ctx.obj["display"].header(obj.header)


@cli.command()
@click.argument("path", type=_PATH)
@click.pass_context
def programs(ctx: click.Context, path: str) -> None:
    """List program headers (segments)."""
    obj = _load(ctx, path)
    entries = obj.program_headers()
    if ctx.obj["json"]:
        _emit_json([ph.model_dump(mode="json") for ph in entries])
    else:
        ctx.obj["display"].program_headers(entries)


@cli.command()
@click.argument("path", type=_PATH)
@click.pass_context
def sections(ctx: click.Context, path: str) -> None:
    """List section headers with resolved names."""
    obj = _load(ctx, path)

    def run() -> None:
        entries = obj.named_sections()
        if ctx.obj["json"]:
            _emit_json([s.model_dump(mode="json") for s in entries])
        else:
            ctx.obj["display"].section_headers(entries)

    _query(ctx, run)


@cli.command()
@click.argument("path", type=_PATH)
@click.pass_context
def symbols(ctx: click.Context, path: str) -> None:
    """List the symbol table with resolved names."""
    obj = _load(ctx, path)

    def run() -> None:
        entries = obj.symbols()
        if ctx.obj["json"]:
            _emit_json([s.model_dump(mode="json") for s in entries])
        else:
            ctx.obj["display"].symbols(entries)

    _query(ctx, run)


@cli.command("object")
@click.argument("path", type=_PATH)
@click.argument("name")
@click.pass_context
def object_(ctx: click.Context, path: str, name: str) -> None:
    """Hex dump the bytes of the data object NAME."""
    obj = _load(ctx, path)

    def run() -> None:
        blob = obj.read_object_data(name)
        if ctx.obj["json"]:
            _emit_json(blob.model_dump(mode="json"))
        else:
            ctx.obj["display"].object_data(blob)

    _query(ctx, run)


@cli.command()
@click.argument("path", type=_PATH)
@click.argument("name")
@click.pass_context
def section(ctx: click.Context, path: str, name: str) -> None:
    """Hex dump the bytes of section NAME (a name or a table index)."""
    obj = _load(ctx, path)
    key = section_key(name)

    def run() -> None:
        named = obj.section(key)
        data = obj.section_data(named.index)
        if ctx.obj["json"]:
            _emit_json({"index": named.index, "name": named.name, "data": data.hex()})
        else:
            ctx.obj["console"].section(f"[{named.index}] {named.name} ({len(data)} bytes)")
            ctx.obj["display"].dump(data, base=named.section.offset)

    _query(ctx, run)


@cli.command()
@click.argument("path", type=_PATH, required=False)
@click.pass_context
def shell(ctx: click.Context, path: Optional[str]) -> None:
    """Start the interactive ELF> shell on PATH.

    Without PATH the configured default binary is opened.
    """
    config: ProbeConfig = ctx.obj["config"]
    obj = _load(ctx, path or config.elfprobe.default_path)
    session = ShellSession(obj=obj, display=ctx.obj["display"])
    repl = ProbeShell(
        session,
        config=config.shell,
        logger=ProbeLogger.from_config("shell", config),
    )
    ctx.exit(repl.run())


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Entry point for the ``elfprobe`` script and ``python -m elfprobe``."""
    cli(obj={})


if __name__ == "__main__":
    main()
