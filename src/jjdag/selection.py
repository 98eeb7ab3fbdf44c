# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Saved-selection register for two-step commands.

The register is either empty (NoPendingSelection) or holds one
PendingSelection. The three captured fields live on one frozen object,
so they are always replaced together.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

TreePosition = tuple[int, ...]


@dataclass(frozen=True)
class NoPendingSelection:
    pass


@dataclass(frozen=True)
class PendingSelection:
    change_id: str
    file_path: str | None
    tree_position: TreePosition


SavedSelection = Union[NoPendingSelection, PendingSelection]

NO_PENDING_SELECTION = NoPendingSelection()


class SelectionRegister:
    def __init__(self) -> None:
        self._saved: SavedSelection = NO_PENDING_SELECTION

    @property
    def saved(self) -> SavedSelection:
        return self._saved

    def save(
        self,
        change_id: str,
        file_path: str | None,
        tree_position: TreePosition,
    ) -> PendingSelection:
        self._saved = PendingSelection(change_id, file_path, tuple(tree_position))
        return self._saved

    def clear(self) -> None:
        self._saved = NO_PENDING_SELECTION

    @property
    def is_pending(self) -> bool:
        return isinstance(self._saved, PendingSelection)

    @property
    def change_id(self) -> str | None:
        saved = self._saved
        return saved.change_id if isinstance(saved, PendingSelection) else None

    @property
    def file_path(self) -> str | None:
        saved = self._saved
        return saved.file_path if isinstance(saved, PendingSelection) else None

    @property
    def tree_position(self) -> TreePosition | None:
        saved = self._saved
        return saved.tree_position if isinstance(saved, PendingSelection) else None
