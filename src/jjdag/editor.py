# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Free-text input through the user's editor.

A temp file is seeded with optional starting text and a commented help
hint, the editor runs with the terminal handed over, and the result is
returned with comment lines removed. A non-zero editor exit or an empty
buffer means the user cancelled.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shlex
import subprocess
import tempfile
from contextlib import nullcontext
from typing import Any

from .interfaces import ConfigModel, Terminal

logger = logging.getLogger(__name__)


class EditorInput:
    """InputService implementation over $EDITOR."""

    def __init__(
        self,
        terminal: Terminal | None = None,
        command: str = "vim",
        comment_prefix: str = "JJ:",
        suffix: str = ".jjdescription",
    ):
        self.terminal = terminal
        self.command = command
        self.comment_prefix = comment_prefix
        self.suffix = suffix

    @classmethod
    def from_config(
        cls, config: ConfigModel, terminal: Terminal | None = None
    ) -> EditorInput:
        return cls(
            terminal=terminal,
            command=str(config.get_path("editor.command", "vim")),
            comment_prefix=str(config.get_path("editor.comment_prefix", "JJ:")),
            suffix=str(config.get_path("editor.suffix", ".jjdescription")),
        )

    def editor_argv(self, path: str) -> list[str]:
        editor = os.environ.get("EDITOR") or self.command
        return [*shlex.split(editor), path]

    def initial_text(
        self, starting_text: str | None, help_text: str | None
    ) -> str:
        parts = []
        if starting_text is not None:
            parts.append(f"{starting_text}\n")
        if help_text is not None:
            p = self.comment_prefix
            parts.append(f"\n\n{p} {help_text}\n")
            parts.append(
                f'{p} Lines starting with "{p}" (like this one) will be removed.\n'
            )
        return "".join(parts)

    def clean(self, text: str) -> str | None:
        kept = [
            line
            for line in text.splitlines()
            if not line.startswith(self.comment_prefix)
        ]
        result = "\n".join(kept).strip()
        return result or None

    def _handoff(self) -> Any:
        if self.terminal is None:
            return nullcontext()
        return self.terminal.relinquish()

    def get_input(
        self, starting_text: str | None = None, help_text: str | None = None
    ) -> str | None:
        fd, path = tempfile.mkstemp(prefix="jjdag-", suffix=self.suffix)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self.initial_text(starting_text, help_text))

            with self._handoff():
                result = subprocess.run(self.editor_argv(path))

            if result.returncode != 0:
                logger.debug("editor exited %d; input cancelled", result.returncode)
                return None

            with open(path, encoding="utf-8") as f:
                text = f.read()
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(path)

        return self.clean(text)
