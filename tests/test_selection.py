# tests/test_selection.py
from __future__ import annotations

from jjdag.selection import NO_PENDING_SELECTION, PendingSelection, SelectionRegister


def test_register_starts_empty() -> None:
    register = SelectionRegister()

    assert register.saved is NO_PENDING_SELECTION
    assert not register.is_pending
    assert register.change_id is None
    assert register.file_path is None
    assert register.tree_position is None


def test_register_save_and_clear() -> None:
    register = SelectionRegister()

    saved = register.save("kxqv", "src/a.py", [2, 1])

    assert saved == PendingSelection("kxqv", "src/a.py", (2, 1))
    assert register.is_pending
    assert register.change_id == "kxqv"
    assert register.file_path == "src/a.py"
    assert register.tree_position == (2, 1)

    register.clear()

    assert register.saved is NO_PENDING_SELECTION


def test_register_save_overwrites() -> None:
    register = SelectionRegister()
    register.save("aaaa", None, (0,))

    register.save("bbbb", None, (3,))

    assert register.change_id == "bbbb"
    assert register.tree_position == (3,)
