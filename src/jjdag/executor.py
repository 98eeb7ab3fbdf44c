# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Subprocess-backed execution of jj.

This module provides:
- SubprocessExecutor.run(): buffered execution, stdout and stderr captured
- SubprocessExecutor.run_tty(): the child inherits stdin/stdout and keeps
  the real terminal; only stderr is captured
- JjRunner: turns JjCommand descriptors into argv, picks the mode, hands
  the terminal over for interactive commands and raises CommandFailed
- ensure_repository(): startup validation via `jj workspace root`

Spawn failures (OSError) and undecodable output (UnicodeDecodeError)
propagate; the CLI turns them into a crash log and exit status 1.
"""

from __future__ import annotations

import logging
import subprocess
import time
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .interfaces import Terminal
from .jj import GlobalArgs, JjCommand, JjSettings, Stream, workspace_root
from .utils import strip_non_style_ansi

logger = logging.getLogger(__name__)


class CommandFailed(Exception):
    """jj exited non-zero; the message is its stderr."""

    def __init__(self, stderr: str, exit_code: int = 1):
        super().__init__(stderr)
        self.stderr = stderr
        self.exit_code = exit_code


@dataclass(frozen=True)
class RunResult:
    exit_code: int
    stdout: str
    stderr: str
    started_at: str
    duration_ms: int


class SubprocessExecutor:
    """Runs argv lists without a shell."""

    def run(self, argv: list[str], cwd: str | None = None) -> RunResult:
        """Run to completion with stdout and stderr captured.

        stdout must be UTF-8; stderr is decoded leniently since it is
        only ever displayed.
        """
        started_at = datetime.now().isoformat()
        start_ts = time.time()

        result = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            cwd=cwd,
        )
        duration_ms = int((time.time() - start_ts) * 1000)
        return RunResult(
            exit_code=result.returncode,
            stdout=result.stdout.decode("utf-8"),
            stderr=result.stderr.decode("utf-8", errors="replace"),
            started_at=started_at,
            duration_ms=duration_ms,
        )

    def run_tty(self, argv: list[str], cwd: str | None = None) -> RunResult:
        """Run with stdin/stdout on the real terminal, stderr piped.

        The caller is responsible for releasing the terminal first.
        """
        started_at = datetime.now().isoformat()
        start_ts = time.time()

        result = subprocess.run(
            argv,
            stdin=None,
            stdout=None,
            stderr=subprocess.PIPE,
            cwd=cwd,
        )
        duration_ms = int((time.time() - start_ts) * 1000)
        return RunResult(
            exit_code=result.returncode,
            stdout="",
            stderr=result.stderr.decode("utf-8", errors="replace"),
            started_at=started_at,
            duration_ms=duration_ms,
        )


class JjRunner:
    """Runner protocol implementation over SubprocessExecutor."""

    def __init__(
        self,
        settings: JjSettings,
        terminal: Terminal | None = None,
        executor: SubprocessExecutor | None = None,
    ):
        self.settings = settings
        self.terminal = terminal
        self.executor = executor or SubprocessExecutor()

    def _handoff(self) -> Any:
        if self.terminal is None:
            return nullcontext()
        return self.terminal.relinquish()

    def run(self, command: JjCommand) -> str:
        argv = command.argv(self.settings)
        if command.interactive:
            with self._handoff():
                result = self.executor.run_tty(argv)
            stderr = strip_non_style_ansi(result.stderr)
        else:
            result = self.executor.run(argv)
            stderr = result.stderr

        logger.debug(
            "ran %s exit=%d duration_ms=%d",
            argv,
            result.exit_code,
            result.duration_ms,
        )
        if result.exit_code != 0:
            logger.info(
                "jj %s failed (exit %d)", " ".join(command.args), result.exit_code
            )
            raise CommandFailed(stderr, result.exit_code)

        if command.stream is Stream.STDOUT:
            return result.stdout
        return stderr


def ensure_repository(runner: JjRunner, repository: str) -> str:
    """Return the workspace root for `repository`.

    Raises:
        CommandFailed: the path is not inside a jj workspace.
    """
    output = runner.run(workspace_root(GlobalArgs(repository)))
    return output.strip()
