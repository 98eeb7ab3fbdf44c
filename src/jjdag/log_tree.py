# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Log tree: the fold-aware change graph shown in the log panel.

Three levels, addressed by tree positions (tuples of sibling indices):
- (i,)      revision, parsed from `jj log`
- (i, j)    file diff, parsed from `jj diff --summary` on first unfold
- (i, j, k) diff line, parsed from `jj diff PATH` on first unfold

Fold state is keyed by change id and (change id, path) so it carries
over a reload. Flat indices are recomputed by flatten() and stored on
each visible node; hidden nodes get -1.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from . import jj
from .interfaces import Runner
from .jj import FIELD_SEP, RECORD_END, RECORD_START, GlobalArgs, JjSettings
from .selection import TreePosition
from .utils import strip_ansi, text_to_lines

logger = logging.getLogger(__name__)

FILE_INDENT = "    "
LINE_INDENT = "      "

_RENAME_RE = re.compile(r"^(.*)\{(.*) => (.*)\}(.*)$")


@dataclass(frozen=True)
class RevisionInfo:
    change_id: str
    current_working_copy: bool
    described: bool


@dataclass(frozen=True)
class FileDiffInfo:
    revision: RevisionInfo
    path: str


@dataclass
class DiffLineNode:
    line: str
    flat_index: int = -1


@dataclass
class FileDiffNode:
    status: str
    path: str
    line: str
    folded: bool = True
    lines: list[DiffLineNode] | None = None
    flat_index: int = -1


@dataclass
class RevisionNode:
    info: RevisionInfo
    lines: list[str] = field(default_factory=list)
    folded: bool = True
    file_diffs: list[FileDiffNode] | None = None
    flat_index: int = -1

    @property
    def change_id(self) -> str:
        return self.info.change_id


# -----------------------
# Output parsing
# -----------------------


def parse_log(output: str) -> list[RevisionNode]:
    """Split `jj log` output into revisions.

    A line carrying a record starts a revision; every following line
    without one (description line, elided rows, graph edges) belongs to
    it. The record itself is cut out of the displayed line.
    """
    revisions: list[RevisionNode] = []
    for line in text_to_lines(output):
        start = line.find(RECORD_START)
        end = line.find(RECORD_END, start + 1) if start >= 0 else -1
        if start < 0 or end < 0:
            if revisions:
                revisions[-1].lines.append(line)
            continue

        fields = strip_ansi(line[start + 1 : end]).split(FIELD_SEP)
        if len(fields) != 3:
            logger.debug("skipping malformed log record %r", fields)
            continue
        change_id, wc, described = fields
        info = RevisionInfo(change_id, wc == "1", described == "1")
        revisions.append(RevisionNode(info, [line[:start] + line[end + 1 :]]))
    return revisions


def resolve_rename(path: str) -> str:
    """'src/{a.py => b.py}' -> 'src/b.py'"""
    match = _RENAME_RE.match(path)
    if not match:
        return path
    prefix, _old, new, suffix = match.groups()
    return (prefix + new + suffix).replace("//", "/")


def parse_diff_summary(output: str) -> list[FileDiffNode]:
    file_diffs = []
    for line in text_to_lines(output):
        plain = strip_ansi(line)
        if len(plain) < 3 or plain[1] != " ":
            continue
        status = plain[0]
        file_diffs.append(FileDiffNode(status, resolve_rename(plain[2:]), line))
    return file_diffs


def parse_diff_lines(output: str) -> list[DiffLineNode]:
    return [DiffLineNode(line) for line in text_to_lines(output)]


# -----------------------
# View model
# -----------------------


class JjLog:
    """ViewModel implementation backed by jj."""

    def __init__(self, runner: Runner, settings: JjSettings | None = None):
        self.runner = runner
        self.settings = settings
        self.revisions: list[RevisionNode] = []
        self.rows: list[list[str]] = []
        self.positions: list[TreePosition] = []
        self.selected = 0
        self._unfolded_revisions: set[str] = set()
        self._unfolded_files: set[tuple[str, str]] = set()

    # -----------------------
    # Loading
    # -----------------------

    def load(self, global_args: GlobalArgs, revset: str) -> None:
        """Reload the graph. Raises CommandFailed, leaving state untouched."""
        output = self.runner.run(jj.log(revset, global_args, self.settings))
        revisions = parse_log(output)

        for revision in revisions:
            if revision.change_id not in self._unfolded_revisions:
                continue
            self._load_file_diffs(global_args, revision)
            revision.folded = False
            for file_diff in revision.file_diffs or []:
                if (revision.change_id, file_diff.path) in self._unfolded_files:
                    self._load_diff_lines(global_args, revision, file_diff)
                    file_diff.folded = False

        self.revisions = revisions
        self.flatten()
        self.select(self.selected)

    def _load_file_diffs(self, global_args: GlobalArgs, revision: RevisionNode) -> None:
        output = self.runner.run(jj.diff_summary(revision.change_id, global_args))
        revision.file_diffs = parse_diff_summary(output)

    def _load_diff_lines(
        self,
        global_args: GlobalArgs,
        revision: RevisionNode,
        file_diff: FileDiffNode,
    ) -> None:
        output = self.runner.run(
            jj.diff_file(revision.change_id, file_diff.path, global_args)
        )
        file_diff.lines = parse_diff_lines(output)

    # -----------------------
    # Flattening
    # -----------------------

    def flatten(self) -> tuple[list[list[str]], list[TreePosition]]:
        rows: list[list[str]] = []
        positions: list[TreePosition] = []

        for i, revision in enumerate(self.revisions):
            revision.flat_index = len(rows)
            rows.append(list(revision.lines))
            positions.append((i,))
            for j, file_diff in enumerate(revision.file_diffs or []):
                if revision.folded:
                    _hide(file_diff)
                    continue
                file_diff.flat_index = len(rows)
                rows.append([FILE_INDENT + file_diff.line])
                positions.append((i, j))
                for k, diff_line in enumerate(file_diff.lines or []):
                    if file_diff.folded:
                        diff_line.flat_index = -1
                        continue
                    diff_line.flat_index = len(rows)
                    rows.append([LINE_INDENT + diff_line.line])
                    positions.append((i, j, k))

        self.rows, self.positions = rows, positions
        return rows, positions

    # -----------------------
    # Addressing
    # -----------------------

    def node(
        self, position: TreePosition
    ) -> RevisionNode | FileDiffNode | DiffLineNode | None:
        if not position or position[0] >= len(self.revisions):
            return None
        revision = self.revisions[position[0]]
        if len(position) == 1:
            return revision
        file_diffs = revision.file_diffs or []
        if position[1] >= len(file_diffs):
            return None
        file_diff = file_diffs[position[1]]
        if len(position) == 2:
            return file_diff
        lines = file_diff.lines or []
        if len(position) != 3 or position[2] >= len(lines):
            return None
        return lines[position[2]]

    def resolve(
        self, position: TreePosition | None
    ) -> RevisionInfo | FileDiffInfo | None:
        if position is None or self.node(position) is None:
            return None
        revision = self.revisions[position[0]]
        if len(position) == 1:
            return revision.info
        file_diff = (revision.file_diffs or [])[position[1]]
        return FileDiffInfo(revision.info, file_diff.path)

    def parent_of(self, position: TreePosition) -> TreePosition | None:
        if len(position) <= 1:
            return None
        return position[:-1]

    def children_of(self, position: TreePosition | None) -> list[TreePosition]:
        """Visible children; the top-level revisions for None."""
        if position is None:
            return [(i,) for i in range(len(self.revisions))]
        node = self.node(position)
        if isinstance(node, RevisionNode) and not node.folded:
            return [(*position, j) for j in range(len(node.file_diffs or []))]
        if isinstance(node, FileDiffNode) and not node.folded:
            return [(*position, k) for k in range(len(node.lines or []))]
        return []

    def flat_index(self, position: TreePosition) -> int | None:
        node = self.node(position)
        if node is None or node.flat_index < 0:
            return None
        return node.flat_index

    def find(self, change_id: str, file_path: str | None = None) -> int | None:
        """Flat index for a change (and file), falling back to the revision row."""
        for revision in self.revisions:
            if revision.change_id != change_id:
                continue
            if file_path is not None and not revision.folded:
                for file_diff in revision.file_diffs or []:
                    if file_diff.path == file_path and file_diff.flat_index >= 0:
                        return file_diff.flat_index
            return revision.flat_index
        return None

    def working_copy_index(self) -> int | None:
        for revision in self.revisions:
            if revision.info.current_working_copy:
                return revision.flat_index
        return None

    # -----------------------
    # Selection
    # -----------------------

    def select(self, index: int) -> None:
        if not self.rows:
            self.selected = 0
            return
        self.selected = max(0, min(index, len(self.rows) - 1))

    def current_selection_position(self) -> TreePosition | None:
        if not self.positions:
            return None
        return self.positions[self.selected]

    # -----------------------
    # Folding
    # -----------------------

    def toggle_fold(self, global_args: GlobalArgs, position: TreePosition) -> int:
        node = self.node(position)
        target: RevisionNode | FileDiffNode | None = None

        if isinstance(node, RevisionNode):
            if node.folded:
                if node.file_diffs is None:
                    self._load_file_diffs(global_args, node)
                self._unfolded_revisions.add(node.change_id)
            else:
                self._unfolded_revisions.discard(node.change_id)
            node.folded = not node.folded
            target = node
        elif isinstance(node, FileDiffNode):
            revision = self.revisions[position[0]]
            key = (revision.change_id, node.path)
            if node.folded:
                if node.lines is None:
                    self._load_diff_lines(global_args, revision, node)
                self._unfolded_files.add(key)
            else:
                self._unfolded_files.discard(key)
            node.folded = not node.folded
            target = node
        elif isinstance(node, DiffLineNode):
            revision = self.revisions[position[0]]
            file_diff = (revision.file_diffs or [])[position[1]]
            file_diff.folded = True
            self._unfolded_files.discard((revision.change_id, file_diff.path))
            target = file_diff

        self.flatten()
        if target is not None:
            self.select(target.flat_index)
        return self.selected

    def expand(self, global_args: GlobalArgs, position: TreePosition) -> int:
        """Unfold a folded node; leave an unfolded one alone."""
        node = self.node(position)
        if isinstance(node, (RevisionNode, FileDiffNode)) and node.folded:
            return self.toggle_fold(global_args, position)
        return self.selected


def _hide(file_diff: FileDiffNode) -> None:
    file_diff.flat_index = -1
    for diff_line in file_diff.lines or []:
        diff_line.flat_index = -1
