# tests/test_command_tree.py
"""
Chord trie tests: resolution, chord truncation, help layout, notices.
"""
from __future__ import annotations

import pytest

from jjdag.command_tree import (
    ENTER,
    Action,
    Chord,
    CommandTree,
    CommandTreeNode,
    Menu,
    Unresolved,
    add_unbound_notice,
    render_help,
    unbound_suffix_line,
)
from jjdag.messages import Message, is_external_action
from jjdag.utils import display_width, strip_ansi


def _walk(node: CommandTreeNode, prefix: tuple[str, ...] = ()):
    for key, child in (node.children or {}).items():
        path = (*prefix, key)
        yield path, child
        yield from _walk(child, path)


@pytest.fixture
def tree() -> CommandTree:
    return CommandTree()


# ----------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------


def test_resolve_menu_returns_help(tree: CommandTree) -> None:
    result = tree.resolve(["a"])

    assert isinstance(result, Menu)
    text = "\n".join(strip_ansi(line) for line in result.help)
    assert "Abandon" in text
    assert "a Selection" in text


def test_resolve_leaf_action_has_no_help(tree: CommandTree) -> None:
    assert tree.resolve(["a", "a"]) == Action(Message.ABANDON)


def test_resolve_direct_root_action(tree: CommandTree) -> None:
    assert tree.resolve(["t"]) == Action(Message.STATUS)


def test_resolve_action_with_children_carries_help(tree: CommandTree) -> None:
    result = tree.resolve(["s", "i"])

    assert isinstance(result, Action)
    assert result.message is Message.SAVE_SELECTION
    assert result.help is not None
    assert "Enter Select destination" in strip_ansi(result.help[1])


def test_resolve_unknown_suffix(tree: CommandTree) -> None:
    assert tree.resolve(["a", "z"]) == Unresolved("z")
    assert tree.resolve(["Z"]) == Unresolved("Z")


def test_resolve_past_a_leaf_is_unresolved(tree: CommandTree) -> None:
    assert tree.resolve(["a", "a", "a"]) == Unresolved("a")


def test_every_external_action_is_bound_exactly_once(tree: CommandTree) -> None:
    bound = [
        node.action
        for _path, node in _walk(tree.root)
        if node.action is not None and node.action is not Message.SAVE_SELECTION
    ]

    externals = [m for m in Message if is_external_action(m)]
    assert sorted(bound, key=lambda m: m.name) == sorted(externals, key=lambda m: m.name)


def test_every_save_selection_node_has_single_enter_child(tree: CommandTree) -> None:
    pickers = [
        node for _path, node in _walk(tree.root)
        if node.action is Message.SAVE_SELECTION
    ]

    assert pickers
    for node in pickers:
        assert list(node.children or {}) == [ENTER]
        destination = node.children[ENTER]
        assert destination.action is not None
        assert is_external_action(destination.action)


def test_add_child_to_leaf_is_rejected() -> None:
    leaf = CommandTreeNode.leaf(Message.UNDO)

    with pytest.raises(ValueError):
        leaf.add_child("G", "desc", "x", CommandTreeNode.leaf(Message.REDO))


def test_add_children_requires_registered_prefix() -> None:
    tree = CommandTree(entries=[])

    with pytest.raises(KeyError):
        tree.add_children([("G", "x", ["q", "w"], CommandTreeNode.leaf(Message.UNDO))])


# ----------------------------------------------------------------
# Chord
# ----------------------------------------------------------------


def test_chord_unresolved_key_is_dropped(tree: CommandTree) -> None:
    chord = Chord(tree)
    chord.feed("b")

    result = chord.feed("z")

    assert isinstance(result, Unresolved)
    assert chord.keys == ["b"]


def test_chord_menu_keeps_keys(tree: CommandTree) -> None:
    chord = Chord(tree)

    assert isinstance(chord.feed("g"), Menu)
    assert isinstance(chord.feed("p"), Menu)
    assert chord.keys == ["g", "p"]
    assert len(chord) == 2


def test_chord_leaf_action_clears(tree: CommandTree) -> None:
    chord = Chord(tree)
    chord.feed("u")

    assert chord.feed("r") == Action(Message.REDO)
    assert chord.keys == []


def test_chord_two_step_action(tree: CommandTree) -> None:
    chord = Chord(tree)
    chord.feed("r")

    picked = chord.feed("o")
    assert isinstance(picked, Action)
    assert picked.message is Message.SAVE_SELECTION
    assert chord.keys == ["r", "o"]

    assert chord.feed(ENTER) == Action(Message.REBASE_ONTO_DESTINATION)
    assert chord.keys == []


def test_chord_clear(tree: CommandTree) -> None:
    chord = Chord(tree)
    chord.feed("b")
    chord.feed("m")

    chord.clear()

    assert chord.keys == []


@pytest.fixture
def small_tree() -> CommandTree:
    return CommandTree(
        entries=[
            ("Commands", "Group", ["a"], CommandTreeNode.menu()),
            ("Commands", "Other", ["x"], CommandTreeNode.leaf(Message.UNDO)),
            ("Group", "Inner", ["a", "a"], CommandTreeNode.leaf(Message.REDO)),
        ]
    )


def test_custom_tree_interior_prefix_is_menu(small_tree: CommandTree) -> None:
    resolved = small_tree.resolve(["a"])

    assert isinstance(resolved, Menu)
    assert "Inner" in "\n".join(strip_ansi(line) for line in resolved.help)
    assert small_tree.resolve(["x"]) == Action(Message.UNDO)


def test_custom_tree_nested_action_clears_chord(small_tree: CommandTree) -> None:
    chord = Chord(small_tree)

    assert isinstance(chord.feed("a"), Menu)
    assert chord.feed("a") == Action(Message.REDO)
    assert chord.keys == []


def test_custom_tree_unbound_suffix_truncates_to_prefix(small_tree: CommandTree) -> None:
    chord = Chord(small_tree)
    chord.feed("a")

    assert chord.feed("z") == Unresolved("z")
    assert chord.keys == ["a"]


# ----------------------------------------------------------------
# Help rendering
# ----------------------------------------------------------------


def test_render_help_single_group() -> None:
    lines = render_help({"Group": [("a", "Alpha"), ("b", "Beta")]}, column_width=10)

    assert [strip_ansi(line) for line in lines] == [
        " Group     ",
        " a Alpha   ",
        " b Beta    ",
    ]


def test_render_help_pads_short_columns() -> None:
    lines = render_help(
        {"One": [("a", "A")], "Two": [("b", "B"), ("c", "C")]},
        column_width=8,
    )

    plain = [strip_ansi(line) for line in lines]
    assert plain == [
        " One     Two     ",
        " a A     b B     ",
        "         c C     ",
    ]


def test_render_help_splits_long_groups() -> None:
    entries = [(str(i), f"E{i}") for i in range(5)]

    lines = render_help({"G": entries}, column_width=6, max_entries_per_column=2)

    plain = [strip_ansi(line) for line in lines]
    assert plain[0] == " G                 "
    assert plain[1] == " 0 E0  2 E2  4 E4  "
    assert plain[2] == " 1 E1  3 E3        "


def test_render_help_truncates_long_descriptions() -> None:
    lines = render_help({"G": [("x", "A very long description")]}, column_width=8)

    assert strip_ansi(lines[1]) == " x A very"


def test_render_help_empty() -> None:
    assert render_help({}) == []


def test_help_rows_share_visible_width(tree: CommandTree) -> None:
    lines = tree.help_lines()

    widths = {display_width(line) for line in lines}
    assert len(widths) == 1


def test_menu_help_sorted_by_description(tree: CommandTree) -> None:
    result = tree.resolve(["a"])

    assert isinstance(result, Menu)
    rows = [strip_ansi(line).strip() for line in result.help[1:]]
    assert rows == [
        "a Selection",
        "d Selection (restore descendants)",
        "b Selection (retain bookmarks)",
    ]


def test_full_help_includes_navigation_and_general(tree: CommandTree) -> None:
    text = "\n".join(strip_ansi(line) for line in tree.help_lines())

    assert "Commands" in text
    assert "Navigation" in text
    assert "General" in text
    assert "Set log revset" in text


# ----------------------------------------------------------------
# Unbound-suffix notice
# ----------------------------------------------------------------


def test_unbound_notice_on_empty_info() -> None:
    assert add_unbound_notice(None, "z") == [unbound_suffix_line("z")]


def test_unbound_notice_repeated_key_not_duplicated() -> None:
    once = add_unbound_notice(["help"], "z")

    assert add_unbound_notice(once, "z") == once


def test_unbound_notice_new_key_replaces_previous_line() -> None:
    lines = add_unbound_notice(["help"], "z")

    assert add_unbound_notice(lines, "x") == ["help", "", unbound_suffix_line("x")]


def test_unbound_notice_alternating_keys_stay_bounded() -> None:
    lines = ["help"]
    for key in ("z", "x") * 10:
        lines = add_unbound_notice(lines, key)

    assert lines == ["help", "", unbound_suffix_line("x")]


def test_unbound_notice_replaces_lone_line() -> None:
    lines = add_unbound_notice(None, "z")

    assert add_unbound_notice(lines, "x") == [unbound_suffix_line("x")]


def test_unbound_notice_labels_named_keys() -> None:
    assert strip_ansi(unbound_suffix_line(ENTER)) == " Unbound suffix: 'Enter'"
