"""
Interactive Shell
==================

Line-oriented command loop over a parsed object.  Each line is split into
tokens with :mod:`shlex`, resolved against the command tree and handed to
the matching handler.  Query failures are reported as one-line messages;
the loop only ends on ``quit``/``exit`` or end of input.
"""

from __future__ import annotations

import shlex
import sys
from typing import TextIO

from shared.config import ShellConfig
from shared.logger import ProbeLogger

from elfprobe.core.errors import ElfProbeError
from elfprobe.shell.commands import ShellSession, build_command_tree
from elfprobe.shell.tree import CommandNode


class ProbeShell:
    """The ``ELF>`` prompt.

    Usage::

        session = ShellSession(obj, ProbeConsoleOutput(ProbeConsole()))
        ProbeShell(session).run()

    Args:
        session: Parsed object plus display shared by all handlers.
        config:  Prompt and tty settings.
        stdin:   Input stream (defaults to :data:`sys.stdin`).
        logger:  Logger instance.  A new one is created if not provided.
        root:    Command tree; :func:`build_command_tree` if not provided.
    """

    def __init__(
        self,
        session: ShellSession,
        *,
        config: ShellConfig | None = None,
        stdin: TextIO | None = None,
        logger: ProbeLogger | None = None,
        root: CommandNode | None = None,
    ) -> None:
        self._session = session
        self._config = config or ShellConfig()
        self._stdin = stdin if stdin is not None else sys.stdin
        self._logger = logger or ProbeLogger("shell")
        self._root = root or build_command_tree()
        self._session.root = self._root

    @property
    def root(self) -> CommandNode:
        return self._root

    def run(self) -> int:
        """Read and execute commands until ``quit`` or end of input.

        Returns:
            Process exit status: ``0`` on a normal exit, ``1`` if the shell
            refused to start because input is not a terminal.
        """
        console = self._session.console
        if self._config.require_tty and not self._stdin.isatty():
            console.error("STDIN is not a tty, cannot start shell.")
            return 1

        console.info("Type 'help' for a list of commands.")
        while True:
            console.print(self._config.prompt, end="", markup=False)
            line = self._stdin.readline()
            if not line:
                console.blank()
                return 0
            if not self.execute(line):
                return 0

    def execute(self, line: str) -> bool:
        """Run one command line.

        Returns:
            ``False`` when the command asks the shell to exit.
        """
        console = self._session.console
        line = line.strip()
        if not line:
            return True
        if len(line) > self._config.max_line_length:
            console.error(
                f"command longer than {self._config.max_line_length} characters"
            )
            return True

        try:
            tokens = shlex.split(line)
        except ValueError as exc:
            console.error(f"cannot parse command: {exc}")
            return True
        if not tokens:
            return True

        node, args = self._root.resolve(tokens)

        with self._logger.operation(node.name):
            self._logger.debug("Dispatching %r with args %r", node.name, args)
            try:
                return node.handler(self._session, args) if node.handler else True
            except ElfProbeError as exc:
                self._logger.debug("Command failed (%s): %s", exc.kind, exc)
                console.error(str(exc))
                return True
