"""Command tree and the inherited pre-run hook forcer.

This module provides three components:

* :class:`CommandInfo` -- the static descriptor of a command (name, usage,
  description, minimum positional argument count).
* :class:`CommandNode` -- a node in the command tree. Each node carries at
  most one :class:`PreRunHook`, picked by :func:`select_hook` when the tree
  is built.
* :func:`force_call_pre_run` -- runs the hook a command *inherits*. Paths
  that bypass the regular Typer dispatch (the plugin-run path) call it so the
  root's session setup still happens.

A command can declare up to four hook variants, checked in this priority
order::

    pre_run  >  pre_run_e  >  persistent_pre_run  >  persistent_pre_run_e

The ``*_e`` variants are *fallible*: their errors are discarded by default,
or raised as :class:`~tsuru_client.exceptions.HookError` when the caller
asks for it (``hooks.suppress_errors = false`` in ``config.json``).
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

from tsuru_client.exceptions import HookError, InvalidUsageError

logger = logging.getLogger(__name__)

HookFunc = Callable[["CommandNode", list[str]], Any]
"""Signature of a pre-run hook: ``(command, args) -> ignored``."""


@dataclass(frozen=True)
class CommandInfo:
    """Static description of a command.

    Attributes:
        name: Command name as typed on the command line.
        usage: One-line usage string, without the ``tsuru`` prefix.
        desc: Help text shown by ``--help``.
        min_args: Minimum number of positional arguments.
    """

    name: str
    usage: str
    desc: str
    min_args: int = 0

    def check_args(self, args: list[str]) -> None:
        """Raise :class:`InvalidUsageError` if *args* is shorter than :attr:`min_args`."""
        if len(args) < self.min_args:
            raise InvalidUsageError(
                f"wrong number of arguments.\n\nUsage: tsuru {self.usage}"
            )


class HookKind(str, enum.Enum):
    """The legacy pre-run hook variants, declared in lookup priority order."""

    PRE_RUN = "pre_run"
    PRE_RUN_E = "pre_run_e"
    PERSISTENT_PRE_RUN = "persistent_pre_run"
    PERSISTENT_PRE_RUN_E = "persistent_pre_run_e"

    @property
    def fallible(self) -> bool:
        return self in (HookKind.PRE_RUN_E, HookKind.PERSISTENT_PRE_RUN_E)


@dataclass(frozen=True)
class PreRunHook:
    """A pre-run hook bound to the variant it was declared as."""

    kind: HookKind
    func: HookFunc

    @property
    def fallible(self) -> bool:
        return self.kind.fallible

    def invoke(self, command: CommandNode, args: list[str]) -> None:
        self.func(command, args)


def select_hook(
    pre_run: Optional[HookFunc] = None,
    pre_run_e: Optional[HookFunc] = None,
    persistent_pre_run: Optional[HookFunc] = None,
    persistent_pre_run_e: Optional[HookFunc] = None,
) -> Optional[PreRunHook]:
    """Pick the hook a node will run, out of the four variants it may declare.

    Returns:
        The first declared variant in priority order, or ``None`` if the node
        declares none.
    """
    candidates = (
        (HookKind.PRE_RUN, pre_run),
        (HookKind.PRE_RUN_E, pre_run_e),
        (HookKind.PERSISTENT_PRE_RUN, persistent_pre_run),
        (HookKind.PERSISTENT_PRE_RUN_E, persistent_pre_run_e),
    )
    for kind, func in candidates:
        if func is not None:
            return PreRunHook(kind=kind, func=func)
    return None


@dataclass(eq=False)
class CommandNode:
    """A command in the tree, linked to its parent.

    Nodes compare and hash by identity so that :meth:`lineage` can detect
    cycles in the parent relation.
    """

    info: CommandInfo
    hook: Optional[PreRunHook] = None
    parent: Optional[CommandNode] = None
    children: dict[str, CommandNode] = field(default_factory=dict, repr=False)

    @property
    def name(self) -> str:
        return self.info.name

    def add_command(self, child: CommandNode) -> CommandNode:
        """Attach *child* under this node and return it."""
        child.parent = self
        self.children[child.name] = child
        return child

    def lineage(self) -> Iterator[CommandNode]:
        """Yield this node, then its parent, grandparent, and so on.

        Stops at a missing parent or at the first node already yielded, so a
        root that is its own parent (or any longer cycle) ends the walk.
        """
        seen: set[CommandNode] = set()
        node: Optional[CommandNode] = self
        while node is not None and node not in seen:
            seen.add(node)
            yield node
            node = node.parent


def force_call_pre_run(
    command: CommandNode,
    args: list[str],
    suppress_errors: bool = True,
) -> None:
    """Run the nearest pre-run hook of *command* or one of its ancestors.

    The hook of the first node in :meth:`CommandNode.lineage` that has one is
    invoked exactly once with the original *command* and *args*; nodes
    further up are not consulted. If no node has a hook, nothing happens.

    Args:
        command: The command about to run.
        args: Its positional arguments.
        suppress_errors: Discard errors raised by fallible hooks. Errors from
            non-fallible hooks always propagate.

    Raises:
        HookError: If a fallible hook fails and *suppress_errors* is false.
    """
    for node in command.lineage():
        hook = node.hook
        if hook is None:
            continue
        if not hook.fallible:
            hook.invoke(command, args)
            return
        try:
            hook.invoke(command, args)
        except Exception as exc:
            if not suppress_errors:
                raise HookError(f"pre-run hook of '{node.name}' failed: {exc}") from exc
            logger.debug("Ignoring error from pre-run hook of '%s': %s", node.name, exc)
        return
