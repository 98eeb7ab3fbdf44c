# tests/test_editor.py
from __future__ import annotations

import os
import subprocess
from contextlib import contextmanager
from pathlib import Path

import pytest

from jjdag import editor as editor_mod
from jjdag.editor import EditorInput


class FakeTerminal:
    def __init__(self):
        self.events: list[str] = []

    @contextmanager
    def relinquish(self):
        self.events.append("release")
        try:
            yield
        finally:
            self.events.append("reacquire")


def fake_editor(monkeypatch: pytest.MonkeyPatch, write: str | None, returncode: int = 0):
    """Replace subprocess.run with an 'editor' that rewrites the buffer."""
    seen: dict = {}

    def run(argv, *args, **kwargs):
        path = argv[-1]
        seen["argv"] = argv
        seen["initial"] = Path(path).read_text(encoding="utf-8")
        seen["path"] = path
        if write is not None:
            Path(path).write_text(write, encoding="utf-8")
        return subprocess.CompletedProcess(argv, returncode)

    monkeypatch.setattr(editor_mod.subprocess, "run", run)
    return seen


def test_initial_text_with_help() -> None:
    service = EditorInput()

    text = service.initial_text("main", "Enter the new revset")

    assert text == (
        "main\n"
        "\n\nJJ: Enter the new revset\n"
        'JJ: Lines starting with "JJ:" (like this one) will be removed.\n'
    )


def test_initial_text_empty() -> None:
    assert EditorInput().initial_text(None, None) == ""


def test_clean_strips_comments_and_whitespace() -> None:
    service = EditorInput()

    assert service.clean("  feat \nJJ: help\n\n") == "feat"
    assert service.clean("JJ: only comments\n   \n") is None


def test_editor_argv_prefers_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EDITOR", "code --wait")

    assert EditorInput(command="vim").editor_argv("/tmp/x") == ["code", "--wait", "/tmp/x"]


def test_editor_argv_falls_back_to_command(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EDITOR", raising=False)

    assert EditorInput(command="nano").editor_argv("/tmp/x") == ["nano", "/tmp/x"]


def test_get_input_returns_cleaned_text(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EDITOR", raising=False)
    seen = fake_editor(monkeypatch, "trunk()..@\nJJ: Enter the new revset\n")
    terminal = FakeTerminal()
    service = EditorInput(terminal=terminal)

    result = service.get_input("::@", "Enter the new revset")

    assert result == "trunk()..@"
    assert seen["initial"].startswith("::@\n")
    assert seen["path"].endswith(".jjdescription")
    assert terminal.events == ["release", "reacquire"]
    assert not os.path.exists(seen["path"])


def test_get_input_nonzero_exit_is_cancel(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = fake_editor(monkeypatch, "ignored", returncode=1)
    terminal = FakeTerminal()

    assert EditorInput(terminal=terminal).get_input(None, "x") is None
    assert terminal.events == ["release", "reacquire"]
    assert not os.path.exists(seen["path"])


def test_get_input_empty_buffer_is_cancel(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_editor(monkeypatch, "\n\n")

    assert EditorInput().get_input() is None


def test_terminal_reacquired_when_editor_fails_to_start(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def run(argv, *args, **kwargs):
        raise FileNotFoundError(argv[0])

    monkeypatch.setattr(editor_mod.subprocess, "run", run)
    terminal = FakeTerminal()

    with pytest.raises(FileNotFoundError):
        EditorInput(terminal=terminal).get_input()

    assert terminal.events == ["release", "reacquire"]


def test_from_config() -> None:
    class Cfg:
        def get_path(self, path, default=None):
            return {"editor.command": "hx", "editor.comment_prefix": "#"}.get(path, default)

    service = EditorInput.from_config(Cfg())

    assert service.command == "hx"
    assert service.comment_prefix == "#"
    assert service.suffix == ".jjdescription"
