"""
Command Tree
=============

Registry of named shell commands arranged as a tree.  A command line is
resolved by walking the tree one token at a time with exact-name matching
(first registered match wins); the deepest node reached handles the
command and every remaining token becomes an argument.

Usage::

    root = CommandNode("root", handler=no_handler)
    root.add_child(CommandNode("program", handler=show_program_headers))
    node, args = root.resolve(["program"])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional, Sequence

if TYPE_CHECKING:
    from elfprobe.shell.commands import ShellSession

# A handler returns False to end the shell loop.
Handler = Callable[["ShellSession", list[str]], bool]


@dataclass
class CommandNode:
    """A named command with optional sub-commands."""

    name: str
    handler: Optional[Handler] = None
    help: str = ""
    usage: str = ""
    children: list[CommandNode] = field(default_factory=list)

    def add_child(self, child: CommandNode) -> CommandNode:
        """Register *child* under this node and return it."""
        self.children.append(child)
        return child

    def child(self, name: str) -> Optional[CommandNode]:
        """First child called exactly *name*, or ``None``."""
        for node in self.children:
            if node.name == name:
                return node
        return None

    def resolve(self, tokens: Sequence[str]) -> tuple[CommandNode, list[str]]:
        """Walk *tokens* down the tree.

        Returns:
            The deepest matching node that has a handler, and the tokens
            left over as its arguments.  With no match at all, ``self`` is
            returned with every token as an argument.
        """
        node = self
        matched: tuple[CommandNode, int] = (self, 0)
        for depth, token in enumerate(tokens, start=1):
            nxt = node.child(token)
            if nxt is None:
                break
            node = nxt
            if node.handler is not None:
                matched = (node, depth)
        best, consumed = matched
        return best, list(tokens[consumed:])

    def walk(self, prefix: str = "") -> list[tuple[str, CommandNode]]:
        """Every descendant as ``(full command path, node)`` pairs."""
        out: list[tuple[str, CommandNode]] = []
        for node in self.children:
            path = f"{prefix}{node.name}"
            out.append((path, node))
            out.extend(node.walk(prefix=f"{path} "))
        return out
