"""
ElfProbe Interactive Shell
===========================

Command tree, command handlers and the ``ELF>`` read-eval loop.
"""

from elfprobe.shell.commands import ShellSession, build_command_tree
from elfprobe.shell.repl import ProbeShell
from elfprobe.shell.tree import CommandNode

__all__ = ["CommandNode", "ProbeShell", "ShellSession", "build_command_tree"]
