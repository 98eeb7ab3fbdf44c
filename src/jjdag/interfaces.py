# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces keep the kernel independent of the terminal toolkit,
the jj subprocess layer and the log parser, so each can be replaced by
a hand-written fake in tests.
"""

from __future__ import annotations

from typing import Any, ContextManager, Protocol

from .jj import GlobalArgs, JjCommand
from .selection import TreePosition


class Terminal(Protocol):
    """Owner of the real terminal while the dashboard is on screen."""

    def relinquish(self) -> ContextManager[None]:
        """Hand the terminal to a child process for the block's duration.

        The dashboard must get the terminal back on every exit path.
        """
        ...


class Runner(Protocol):
    """Runs jj invocations."""

    def run(self, command: JjCommand) -> str:
        """Run the command and return the stream it surfaces.

        Raises:
            CommandFailed: jj exited non-zero.
        """
        ...


class InputService(Protocol):
    """Blocking free-text acquisition (an editor buffer)."""

    def get_input(
        self, starting_text: str | None = None, help_text: str | None = None
    ) -> str | None:
        """Return the trimmed, comment-stripped text, or None on cancel."""
        ...


class ViewModel(Protocol):
    """Fold-aware change graph shown in the log panel."""

    rows: list[list[str]]
    positions: list[TreePosition]
    selected: int

    def load(self, global_args: GlobalArgs, revset: str) -> None:
        ...

    def current_selection_position(self) -> TreePosition | None:
        ...

    def resolve(self, position: TreePosition | None) -> Any:
        """RevisionInfo, FileDiffInfo or None."""
        ...

    def parent_of(self, position: TreePosition) -> TreePosition | None:
        ...

    def children_of(self, position: TreePosition | None) -> list[TreePosition]:
        """Children of a node; the top-level revisions for None."""
        ...

    def flat_index(self, position: TreePosition) -> int | None:
        ...

    def toggle_fold(self, global_args: GlobalArgs, position: TreePosition) -> int:
        """Toggle a node, re-flatten and return the index to select."""
        ...

    def expand(self, global_args: GlobalArgs, position: TreePosition) -> int:
        ...

    def flatten(self) -> tuple[list[list[str]], list[TreePosition]]:
        ...

    def select(self, index: int) -> None:
        ...

    def working_copy_index(self) -> int | None:
        ...

    def find(self, change_id: str, file_path: str | None = None) -> int | None:
        ...


class ConfigModel(Protocol):
    """Protocol for configuration access."""

    def get_path(self, path: str, default: Any = None) -> Any:
        ...

    def get_int(self, path: str, default: int) -> int:
        ...

    def get_float(self, path: str, default: float) -> float:
        ...

    def get_str_list(self, path: str, default: list[str]) -> list[str]:
        ...
