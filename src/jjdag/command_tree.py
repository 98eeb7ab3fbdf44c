# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Chord trie: multi-key command resolution and its help listings.

- Keys are plain strings: single characters for printable keys and
  lower-case names ("enter", "tab", ...) for the rest.
- Every interior node carries grouped help entries (group label ->
  [(key label, description)]) in registration order.
- resolve() never raises; an unknown suffix is an Unresolved result.
- Chord owns the in-progress key sequence and its truncation rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence, Union

from .config import colorize
from .messages import Message
from .utils import fit_to_width

ENTER = "enter"

COLUMN_WIDTH = 26
MAX_ENTRIES_PER_COLUMN = 14

HelpEntries = dict[str, list[tuple[str, str]]]

_KEY_LABELS: dict[str, str] = {
    "enter": "Enter",
    "tab": "Tab",
    "escape": "Esc",
    "up": "Up",
    "down": "Down",
    "left": "Left",
    "right": "Right",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    " ": "Space",
}

NAVIGATION_HELP: list[tuple[str, str]] = [
    ("Tab", "Toggle folding"),
    ("PgDn", "Move down page"),
    ("PgUp", "Move up page"),
    ("j/↓", "Move down"),
    ("k/↑", "Move up"),
    ("l/→", "Next sibling"),
    ("h/←", "Prev sibling"),
    ("K", "Select parent"),
    ("@", "Select @ change"),
]

GENERAL_HELP: list[tuple[str, str]] = [
    ("Spc/Ctrl-r", "Refresh log tree"),
    ("Esc", "Clear app state"),
    ("L", "Set log revset"),
    ("I", "Toggle --ignore-immutable"),
    ("?", "Show help"),
    ("q", "Quit"),
]


def key_label(key: str) -> str:
    """Label shown for a key in help and notices."""
    return _KEY_LABELS.get(key, key)


# -----------------------
# Nodes
# -----------------------


@dataclass
class CommandTreeNode:
    children: dict[str, CommandTreeNode] | None = None
    help: HelpEntries | None = None
    action: Message | None = None

    @classmethod
    def menu(cls) -> CommandTreeNode:
        return cls(children={}, help={})

    @classmethod
    def leaf(cls, action: Message) -> CommandTreeNode:
        return cls(action=action)

    @classmethod
    def action_with_children(cls, action: Message) -> CommandTreeNode:
        return cls(children={}, help={}, action=action)

    @property
    def has_children(self) -> bool:
        return self.children is not None

    def add_child(
        self, group: str, description: str, key: str, node: CommandTreeNode
    ) -> None:
        if self.children is None or self.help is None:
            raise ValueError("cannot add a child to a leaf action node")
        self.children[key] = node
        self.help.setdefault(group, []).append((key_label(key), description))

    def help_entries(self) -> HelpEntries:
        """Groups in registration order, entries sorted by description."""
        return {
            group: sorted(entries, key=lambda e: e[1].lower())
            for group, entries in (self.help or {}).items()
        }


# -----------------------
# Resolution results
# -----------------------


@dataclass(frozen=True)
class Action:
    message: Message
    help: list[str] | None = None


@dataclass(frozen=True)
class Menu:
    help: list[str]


@dataclass(frozen=True)
class Unresolved:
    key: str


Resolution = Union[Action, Menu, Unresolved]


# -----------------------
# Trie
# -----------------------

Entry = tuple[str, str, Sequence[str], CommandTreeNode]


class CommandTree:
    def __init__(
        self,
        entries: Iterable[Entry] | None = None,
        column_width: int = COLUMN_WIDTH,
        max_entries_per_column: int = MAX_ENTRIES_PER_COLUMN,
    ):
        self.root = CommandTreeNode.menu()
        self.column_width = column_width
        self.max_entries_per_column = max_entries_per_column
        self.add_children(default_entries() if entries is None else entries)

    def add_children(self, entries: Iterable[Entry]) -> None:
        for group, description, keys, node in entries:
            *prefix, last = keys
            parent = self.get_node(prefix)
            if parent is None:
                raise KeyError(f"no node registered at {''.join(prefix)!r}")
            parent.add_child(group, description, last, node)

    def get_node(self, keys: Sequence[str]) -> CommandTreeNode | None:
        node = self.root
        for key in keys:
            if node.children is None:
                return None
            child = node.children.get(key)
            if child is None:
                return None
            node = child
        return node

    def resolve(self, keys: Sequence[str]) -> Resolution:
        node = self.get_node(keys)
        if node is None:
            return Unresolved(keys[-1] if keys else "")
        help_lines = self._node_help(node) if node.has_children else None
        if node.action is not None:
            return Action(node.action, help_lines)
        return Menu(help_lines or [])

    def _node_help(self, node: CommandTreeNode) -> list[str]:
        return render_help(
            node.help_entries(), self.column_width, self.max_entries_per_column
        )

    def help_lines(self) -> list[str]:
        """Root help plus the Navigation and General groups."""
        entries = self.root.help_entries()
        entries["Navigation"] = list(NAVIGATION_HELP)
        entries["General"] = list(GENERAL_HELP)
        return render_help(entries, self.column_width, self.max_entries_per_column)


@dataclass
class Chord:
    """Keys typed since the last resolution."""

    tree: CommandTree
    keys: list[str] = field(default_factory=list)

    def feed(self, key: str) -> Resolution:
        self.keys.append(key)
        result = self.tree.resolve(self.keys)
        if isinstance(result, Unresolved):
            self.keys.pop()
        elif isinstance(result, Action) and result.help is None:
            self.keys.clear()
        return result

    def clear(self) -> None:
        self.keys.clear()

    def __len__(self) -> int:
        return len(self.keys)


# -----------------------
# Rendering
# -----------------------


def render_help(
    entries: HelpEntries,
    column_width: int = COLUMN_WIDTH,
    max_entries_per_column: int = MAX_ENTRIES_PER_COLUMN,
) -> list[str]:
    """Lay grouped entries out in fixed-width columns.

    A group longer than max_entries_per_column continues in further
    columns under a blank header. Short columns are padded with blank
    cells so every row has the same visible width.
    """
    columns: list[list[str]] = []
    for group, group_entries in entries.items():
        chunks = [
            group_entries[i : i + max_entries_per_column]
            for i in range(0, len(group_entries), max_entries_per_column)
        ] or [[]]
        for n, chunk in enumerate(chunks):
            header = group if n == 0 else ""
            column = [colorize(fit_to_width(header, column_width), "blue")]
            for key, description in chunk:
                column.append(_help_cell(key, description, column_width))
            columns.append(column)

    if not columns:
        return []
    blank = " " * column_width
    num_rows = max(len(c) for c in columns)
    return [
        " " + "".join(c[i] if i < len(c) else blank for c in columns)
        for i in range(num_rows)
    ]


def _help_cell(key: str, description: str, width: int) -> str:
    cell = fit_to_width(f"{key} {description}", width)
    head = cell[: len(key)]
    return colorize(head, "green") + cell[len(key) :]


_UNBOUND_PREFIX = colorize(" Unbound suffix: ", "red")


def unbound_suffix_line(key: str) -> str:
    return _UNBOUND_PREFIX + "'" + colorize(key_label(key), "green") + "'"


def add_unbound_notice(info_lines: list[str] | None, key: str) -> list[str]:
    """Fold an unbound-suffix line into the current notice.

    At most one unbound line sits under the notice, separated by a blank
    line; a later unbound key replaces it.
    """
    lines = list(info_lines or [])
    if lines and lines[-1].startswith(_UNBOUND_PREFIX):
        del lines[-2:]
    if lines:
        lines.append("")
    lines.append(unbound_suffix_line(key))
    return lines


# -----------------------
# Default key map
# -----------------------


def _keys(chars: str, *named: str) -> list[str]:
    return [*chars, *named]


def default_entries() -> list[Entry]:
    menu = CommandTreeNode.menu
    leaf = CommandTreeNode.leaf

    def pick() -> CommandTreeNode:
        return CommandTreeNode.action_with_children(Message.SAVE_SELECTION)

    dest = "Select destination"
    M = Message

    return [
        ("Commands", "Abandon", _keys("a"), menu()),
        ("Abandon", "Selection", _keys("aa"), leaf(M.ABANDON)),
        ("Abandon", "Selection (retain bookmarks)", _keys("ab"), leaf(M.ABANDON_RETAIN_BOOKMARKS)),
        ("Abandon", "Selection (restore descendants)", _keys("ad"), leaf(M.ABANDON_RESTORE_DESCENDANTS)),
        ("Commands", "Absorb", _keys("A"), menu()),
        ("Absorb", "From selection", _keys("Aa"), leaf(M.ABSORB)),
        ("Absorb", "From selection into destination", _keys("Ai"), pick()),
        ("Absorb into", dest, _keys("Ai", ENTER), leaf(M.ABSORB_INTO)),
        ("Commands", "Bookmark", _keys("b"), menu()),
        ("Bookmark", "Create at selection", _keys("bc"), leaf(M.BOOKMARK_CREATE)),
        ("Bookmark", "Move", _keys("bm"), menu()),
        ("Bookmark move", "Selected bookmark to destination", _keys("bmm"), pick()),
        ("Move bookmark to", dest, _keys("bmm", ENTER), leaf(M.BOOKMARK_MOVE)),
        ("Bookmark move", "Selected bookmark to destination (allow backwards)", _keys("bmM"), pick()),
        ("Move bookmark to, allowing backwards", dest, _keys("bmM", ENTER), leaf(M.BOOKMARK_MOVE_ALLOW_BACKWARDS)),
        ("Bookmark move", "Tug to selection", _keys("bmt"), leaf(M.BOOKMARK_MOVE_TUG)),
        ("Bookmark", "Rename", _keys("br"), leaf(M.BOOKMARK_RENAME)),
        ("Bookmark", "Track", _keys("bt"), leaf(M.BOOKMARK_TRACK)),
        ("Bookmark", "Untrack", _keys("bu"), leaf(M.BOOKMARK_UNTRACK)),
        ("Bookmark", "Delete", _keys("bd"), leaf(M.BOOKMARK_DELETE)),
        ("Bookmark", "Forget", _keys("bf"), leaf(M.BOOKMARK_FORGET)),
        ("Bookmark", "Forget, including remotes", _keys("bF"), leaf(M.BOOKMARK_FORGET_INCLUDE_REMOTES)),
        ("Bookmark", "Set to selection", _keys("bs"), leaf(M.BOOKMARK_SET)),
        ("Commands", "Commit", _keys("c"), menu()),
        ("Commit", "Selection", _keys("cc"), leaf(M.COMMIT)),
        ("Commands", "Describe", _keys("d"), menu()),
        ("Describe", "Selection", _keys("dd"), leaf(M.DESCRIBE)),
        ("Commands", "Duplicate", _keys("D"), menu()),
        ("Duplicate", "Selection", _keys("Dd"), leaf(M.DUPLICATE)),
        ("Duplicate", "Selection onto destination", _keys("Do"), pick()),
        ("Duplicate onto", dest, _keys("Do", ENTER), leaf(M.DUPLICATE_ONTO)),
        ("Duplicate", "Selection insert after destination", _keys("Da"), pick()),
        ("Duplicate insert after", dest, _keys("Da", ENTER), leaf(M.DUPLICATE_INSERT_AFTER)),
        ("Duplicate", "Selection insert before destination", _keys("Db"), pick()),
        ("Duplicate insert before", dest, _keys("Db", ENTER), leaf(M.DUPLICATE_INSERT_BEFORE)),
        ("Commands", "Edit", _keys("e"), menu()),
        ("Edit", "Selection", _keys("ee"), leaf(M.EDIT)),
        ("Commands", "Evolog", _keys("E"), menu()),
        ("Evolog", "Selection", _keys("Ee"), leaf(M.EVOLOG)),
        ("Evolog", "Selection (patch)", _keys("EE"), leaf(M.EVOLOG_PATCH)),
        ("Commands", "File", _keys("f"), menu()),
        ("File", "Track (enter filepath)", _keys("ft"), leaf(M.FILE_TRACK)),
        ("File", "Untrack selection (must be ignored)", _keys("fu"), leaf(M.FILE_UNTRACK)),
        ("Commands", "Git", _keys("g"), menu()),
        ("Git", "Fetch", _keys("gf"), menu()),
        ("Git fetch", "Default", _keys("gff"), leaf(M.GIT_FETCH)),
        ("Git fetch", "All remotes", _keys("gfa"), leaf(M.GIT_FETCH_ALL_REMOTES)),
        ("Git fetch", "Tracked bookmarks", _keys("gft"), leaf(M.GIT_FETCH_TRACKED)),
        ("Git fetch", "Branch by name", _keys("gfb"), leaf(M.GIT_FETCH_BRANCH)),
        ("Git fetch", "Remote by name", _keys("gfr"), leaf(M.GIT_FETCH_REMOTE)),
        ("Git", "Push", _keys("gp"), menu()),
        ("Git push", "Default", _keys("gpp"), leaf(M.GIT_PUSH)),
        ("Git push", "All bookmarks", _keys("gpa"), leaf(M.GIT_PUSH_ALL)),
        ("Git push", "Bookmarks at selection", _keys("gpr"), leaf(M.GIT_PUSH_REVISION)),
        ("Git push", "Tracked bookmarks", _keys("gpt"), leaf(M.GIT_PUSH_TRACKED)),
        ("Git push", "Deleted bookmarks", _keys("gpd"), leaf(M.GIT_PUSH_DELETED)),
        ("Git push", "New bookmark for selection", _keys("gpc"), leaf(M.GIT_PUSH_CHANGE)),
        ("Git push", "New named bookmark for selection", _keys("gpn"), leaf(M.GIT_PUSH_NAMED)),
        ("Git push", "Bookmark by name", _keys("gpb"), leaf(M.GIT_PUSH_BOOKMARK)),
        ("Commands", "Interdiff", _keys("i"), menu()),
        ("Interdiff", "From @ to selection", _keys("it"), leaf(M.INTERDIFF_TO_SELECTION)),
        ("Interdiff", "From selection to @", _keys("if"), leaf(M.INTERDIFF_FROM_SELECTION)),
        ("Interdiff", "From selection to destination", _keys("ii"), pick()),
        ("Interdiff to destination", dest, _keys("ii", ENTER), leaf(M.INTERDIFF_FROM_SELECTION_TO_DESTINATION)),
        ("Commands", "Metaedit", _keys("m"), menu()),
        ("Metaedit", "Update change-id", _keys("mc"), leaf(M.METAEDIT_UPDATE_CHANGE_ID)),
        ("Metaedit", "Update author timestamp to now", _keys("mt"), leaf(M.METAEDIT_UPDATE_AUTHOR_TIMESTAMP)),
        ("Metaedit", "Update author to configured user", _keys("ma"), leaf(M.METAEDIT_UPDATE_AUTHOR)),
        ("Metaedit", "Set author", _keys("mA"), leaf(M.METAEDIT_SET_AUTHOR)),
        ("Metaedit", "Set author timestamp", _keys("mT"), leaf(M.METAEDIT_SET_AUTHOR_TIMESTAMP)),
        ("Metaedit", "Force rewrite", _keys("mr"), leaf(M.METAEDIT_FORCE_REWRITE)),
        ("Commands", "New", _keys("n"), menu()),
        ("New", "After selection", _keys("nn"), leaf(M.NEW)),
        ("New", "After selection (rebase children)", _keys("na"), leaf(M.NEW_INSERT_AFTER)),
        ("New", "Before selection (rebase children)", _keys("nb"), leaf(M.NEW_BEFORE)),
        ("New", "After trunk", _keys("nm"), leaf(M.NEW_AFTER_TRUNK)),
        ("New", "After trunk (sync)", _keys("nM"), leaf(M.NEW_AFTER_TRUNK_SYNC)),
        ("Commands", "Next", _keys("N"), menu()),
        ("Next", "Next", _keys("Nn"), leaf(M.NEXT)),
        ("Next", "Nth next", _keys("NN"), leaf(M.NEXT_OFFSET)),
        ("Next", "Next (edit)", _keys("Ne"), leaf(M.NEXT_EDIT)),
        ("Next", "Nth next (edit)", _keys("NE"), leaf(M.NEXT_EDIT_OFFSET)),
        ("Next", "Next (no-edit)", _keys("Nx"), leaf(M.NEXT_NO_EDIT)),
        ("Next", "Nth next (no-edit)", _keys("NX"), leaf(M.NEXT_NO_EDIT_OFFSET)),
        ("Next", "Next conflict", _keys("Nc"), leaf(M.NEXT_CONFLICT)),
        ("Commands", "Previous", _keys("P"), menu()),
        ("Previous", "Previous", _keys("Pp"), leaf(M.PREV)),
        ("Previous", "Nth previous", _keys("PP"), leaf(M.PREV_OFFSET)),
        ("Previous", "Previous (edit)", _keys("Pe"), leaf(M.PREV_EDIT)),
        ("Previous", "Nth previous (edit)", _keys("PE"), leaf(M.PREV_EDIT_OFFSET)),
        ("Previous", "Previous (no-edit)", _keys("Px"), leaf(M.PREV_NO_EDIT)),
        ("Previous", "Nth previous (no-edit)", _keys("PX"), leaf(M.PREV_NO_EDIT_OFFSET)),
        ("Previous", "Previous conflict", _keys("Pc"), leaf(M.PREV_CONFLICT)),
        ("Commands", "Parallelize", _keys("p"), menu()),
        ("Parallelize", "Selection with parent", _keys("pp"), leaf(M.PARALLELIZE)),
        ("Parallelize", "From selection to destination", _keys("pP"), pick()),
        ("Parallelize range", dest, _keys("pP", ENTER), leaf(M.PARALLELIZE_RANGE)),
        ("Parallelize", "Revset", _keys("pr"), leaf(M.PARALLELIZE_REVSET)),
        ("Commands", "Rebase", _keys("r"), menu()),
        ("Rebase", "Selection onto trunk", _keys("rm"), leaf(M.REBASE_ONTO_TRUNK)),
        ("Rebase", "Selected branch onto trunk", _keys("rM"), leaf(M.REBASE_BRANCH_ONTO_TRUNK)),
        ("Rebase", "Selection onto destination", _keys("ro"), pick()),
        ("Rebase onto", dest, _keys("ro", ENTER), leaf(M.REBASE_ONTO_DESTINATION)),
        ("Rebase", "Selected branch onto destination", _keys("rO"), pick()),
        ("Rebase branch onto", dest, _keys("rO", ENTER), leaf(M.REBASE_BRANCH_ONTO_DESTINATION)),
        ("Rebase", "Selection onto destination (no descendants)", _keys("rr"), pick()),
        ("Rebase revision onto", dest, _keys("rr", ENTER), leaf(M.REBASE_ONTO_DESTINATION_NO_DESCENDANTS)),
        ("Rebase", "Selection after destination", _keys("ra"), pick()),
        ("Rebase after", dest, _keys("ra", ENTER), leaf(M.REBASE_AFTER_DESTINATION)),
        ("Rebase", "Selection after destination (no descendants)", _keys("rA"), pick()),
        ("Rebase after", dest, _keys("rA", ENTER), leaf(M.REBASE_AFTER_DESTINATION_NO_DESCENDANTS)),
        ("Rebase", "Selection before destination", _keys("rb"), pick()),
        ("Rebase before", dest, _keys("rb", ENTER), leaf(M.REBASE_BEFORE_DESTINATION)),
        ("Rebase", "Selection before destination (no descendants)", _keys("rB"), pick()),
        ("Rebase before", dest, _keys("rB", ENTER), leaf(M.REBASE_BEFORE_DESTINATION_NO_DESCENDANTS)),
        ("Commands", "Restore", _keys("R"), menu()),
        ("Restore", "Changes in selection", _keys("Rr"), leaf(M.RESTORE)),
        ("Restore", "Changes in selection (restore descendants)", _keys("Rd"), leaf(M.RESTORE_RESTORE_DESCENDANTS)),
        ("Restore", "From selection into @", _keys("Rf"), leaf(M.RESTORE_FROM)),
        ("Restore", "From @ into selection", _keys("Ri"), leaf(M.RESTORE_INTO)),
        ("Restore", "From selection into destination", _keys("RR"), pick()),
        ("Restore into", dest, _keys("RR", ENTER), leaf(M.RESTORE_FROM_INTO)),
        ("Commands", "Squash", _keys("s"), menu()),
        ("Squash", "Selection into parent", _keys("ss"), leaf(M.SQUASH)),
        ("Squash", "Selection into destination", _keys("si"), pick()),
        ("Squash into", dest, _keys("si", ENTER), leaf(M.SQUASH_INTO)),
        ("Commands", "Sign", _keys("S"), menu()),
        ("Sign", "Selection", _keys("Ss"), leaf(M.SIGN)),
        ("Sign", "From selection to destination", _keys("SS"), pick()),
        ("Sign range", dest, _keys("SS", ENTER), leaf(M.SIGN_RANGE)),
        ("Sign", "Unsign selection", _keys("Su"), leaf(M.UNSIGN)),
        ("Sign", "Unsign from selection to destination", _keys("SU"), pick()),
        ("Unsign range", dest, _keys("SU", ENTER), leaf(M.UNSIGN_RANGE)),
        ("Commands", "Status", _keys("t"), leaf(M.STATUS)),
        ("Commands", "Simplify parents", _keys("y"), menu()),
        ("Simplify parents of", "Selection", _keys("yy"), leaf(M.SIMPLIFY_PARENTS)),
        ("Simplify parents of", "Selection with descendants", _keys("yY"), leaf(M.SIMPLIFY_PARENTS_SOURCE)),
        ("Commands", "Undo", _keys("u"), menu()),
        ("Undo", "Undo last operation", _keys("uu"), leaf(M.UNDO)),
        ("Undo", "Redo last operation", _keys("ur"), leaf(M.REDO)),
        ("Commands", "View", _keys("v"), menu()),
        ("View", "Selection", _keys("vv"), leaf(M.VIEW)),
        ("View", "From selection to @", _keys("vf"), leaf(M.VIEW_FROM_SELECTION)),
        ("View", "From @ to selection", _keys("vt"), leaf(M.VIEW_TO_SELECTION)),
        ("View", "From selection to destination", _keys("vV"), pick()),
        ("View to destination", dest, _keys("vV", ENTER), leaf(M.VIEW_FROM_SELECTION_TO_DESTINATION)),
        ("Commands", "Revert", _keys("V"), menu()),
        ("Revert", "Selection onto @", _keys("Vv"), leaf(M.REVERT)),
        ("Revert", "Selection onto destination", _keys("Vo"), pick()),
        ("Revert onto", dest, _keys("Vo", ENTER), leaf(M.REVERT_ONTO_DESTINATION)),
        ("Revert", "Selection after destination", _keys("Va"), pick()),
        ("Revert after", dest, _keys("Va", ENTER), leaf(M.REVERT_INSERT_AFTER)),
        ("Revert", "Selection before destination", _keys("Vb"), pick()),
        ("Revert before", dest, _keys("Vb", ENTER), leaf(M.REVERT_INSERT_BEFORE)),
    ]
