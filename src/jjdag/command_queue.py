# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Sequential jj command queue.

One batch is in flight at a time. step() runs the front command and
appends its invocation line and output to the transcript; the first
failure discards the rest of the batch. The kernel decides what to do
with the transcript (show it, clear state, reload the log).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .executor import CommandFailed
from .interfaces import Runner
from .jj import JjCommand
from .utils import text_to_lines

RUNNING_MARKER = "Running..."


class StepOutcome(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    outcome: StepOutcome
    lines: list[str] = field(default_factory=list)
    sync: bool = False


class CommandQueue:
    def __init__(self, runner: Runner):
        self.runner = runner
        self.pending: list[JjCommand] = []
        self.output: list[str] = []

    @property
    def is_pending(self) -> bool:
        return bool(self.pending)

    def enqueue(self, commands: list[JjCommand]) -> list[str]:
        """Replace any batch with `commands`; return the notice to show."""
        self.output = []
        self.pending = list(commands)
        return self.notice_lines()

    def notice_lines(self) -> list[str]:
        """Transcript so far plus the command about to run."""
        lines = list(self.output)
        if self.pending:
            if lines:
                lines.append("")
            lines.extend(self.pending[0].to_lines())
            lines.append(RUNNING_MARKER)
        return lines

    def clear(self) -> None:
        self.pending = []
        self.output = []

    def step(self) -> StepResult:
        if not self.pending:
            return StepResult(StepOutcome.IDLE)

        command = self.pending.pop(0)
        if self.output:
            self.output.append("")
        self.output.extend(command.to_lines())

        try:
            result = self.runner.run(command)
        except CommandFailed as e:
            self.output.extend(text_to_lines(e.stderr))
            transcript = self.output
            self.clear()
            return StepResult(StepOutcome.FAILED, transcript)

        self.output.extend(text_to_lines(result))
        if self.pending:
            return StepResult(StepOutcome.RUNNING, self.notice_lines())

        transcript = self.output
        self.clear()
        return StepResult(StepOutcome.SUCCEEDED, transcript, sync=command.sync)
