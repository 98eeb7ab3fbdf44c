# tests/test_command_queue.py
"""
Command queue tests: one step at a time, transcript accumulation,
first failure discards the rest of the batch.
"""
from __future__ import annotations

import pytest

from jjdag import jj
from jjdag.command_queue import RUNNING_MARKER, CommandQueue, StepOutcome
from jjdag.executor import CommandFailed
from jjdag.jj import GlobalArgs
from jjdag.utils import strip_ansi

GA = GlobalArgs("/repo")


class FakeRunner:
    def __init__(self, results: dict[tuple[str, ...], str | Exception] | None = None):
        self.results = results or {}
        self.calls: list[tuple[str, ...]] = []

    def run(self, command):
        self.calls.append(command.args)
        result = self.results.get(command.args, "")
        if isinstance(result, Exception):
            raise result
        return result


def plain(lines: list[str]) -> list[str]:
    return [strip_ansi(line) for line in lines]


def test_idle_step() -> None:
    queue = CommandQueue(FakeRunner())

    result = queue.step()

    assert result.outcome is StepOutcome.IDLE
    assert not queue.is_pending


def test_enqueue_returns_running_notice() -> None:
    queue = CommandQueue(FakeRunner())

    lines = queue.enqueue([jj.undo(GA)])

    assert plain(lines) == ["❯ jj undo", "", RUNNING_MARKER]
    assert queue.is_pending


def test_single_command_success() -> None:
    runner = FakeRunner({("undo",): "Undid operation abc\n"})
    queue = CommandQueue(runner)
    queue.enqueue([jj.undo(GA)])

    result = queue.step()

    assert result.outcome is StepOutcome.SUCCEEDED
    assert plain(result.lines) == ["❯ jj undo", "", "Undid operation abc"]
    assert result.sync
    assert not queue.is_pending
    assert runner.calls == [("undo",)]


def test_view_success_does_not_sync() -> None:
    queue = CommandQueue(FakeRunner())
    queue.enqueue([jj.status(GA)])

    result = queue.step()

    assert result.outcome is StepOutcome.SUCCEEDED
    assert not result.sync


def test_batch_runs_one_step_at_a_time() -> None:
    runner = FakeRunner({("git", "fetch"): "Nothing changed.\n"})
    queue = CommandQueue(runner)
    queue.enqueue([jj.git_fetch(None, None, GA), jj.new("trunk()", [], GA)])

    first = queue.step()

    assert first.outcome is StepOutcome.RUNNING
    assert runner.calls == [("git", "fetch")]
    assert plain(first.lines) == [
        "❯ jj git fetch",
        "",
        "Nothing changed.",
        "",
        "❯ jj new 'trunk()'",
        "",
        RUNNING_MARKER,
    ]

    second = queue.step()

    assert second.outcome is StepOutcome.SUCCEEDED
    assert plain(second.lines) == [
        "❯ jj git fetch",
        "",
        "Nothing changed.",
        "",
        "❯ jj new 'trunk()'",
        "",
    ]


def test_failure_discards_rest_of_batch() -> None:
    runner = FakeRunner({("git", "fetch"): CommandFailed("Error: no remote\n", 1)})
    queue = CommandQueue(runner)
    queue.enqueue([jj.git_fetch(None, None, GA), jj.new("trunk()", [], GA)])

    result = queue.step()

    assert result.outcome is StepOutcome.FAILED
    assert plain(result.lines) == ["❯ jj git fetch", "", "Error: no remote"]
    assert not result.sync
    assert not queue.is_pending
    assert queue.step().outcome is StepOutcome.IDLE
    assert runner.calls == [("git", "fetch")]


def test_enqueue_replaces_previous_batch() -> None:
    queue = CommandQueue(FakeRunner())
    queue.enqueue([jj.undo(GA), jj.redo(GA)])

    queue.enqueue([jj.redo(GA)])

    assert [c.args for c in queue.pending] == [("redo",)]


def test_infrastructure_errors_propagate() -> None:
    queue = CommandQueue(FakeRunner({("undo",): FileNotFoundError("jj")}))
    queue.enqueue([jj.undo(GA)])

    with pytest.raises(FileNotFoundError):
        queue.step()
