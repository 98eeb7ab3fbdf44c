# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Utility functions for jjdag.
"""

from __future__ import annotations

import os
import re
import shlex

from prompt_toolkit.utils import get_cwidth

# SGR (style) sequences survive; every other escape sequence is dropped.
_SGR_RE = re.compile(r"\x1b\[[0-9;:]*m")
_CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_OSC_RE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
_OTHER_ESC_RE = re.compile(r"\x1b[@-Z\\-_]")


def strip_ansi(text: str) -> str:
    """Remove every ANSI escape sequence, leaving plain text."""
    text = _OSC_RE.sub("", text)
    text = _CSI_RE.sub("", text)
    return _OTHER_ESC_RE.sub("", text)


def strip_non_style_ansi(text: str) -> str:
    """Keep colour/style sequences but drop cursor movement, OSC links, etc.

    Output captured from an interactive child can contain screen control
    sequences that would corrupt the info panel when replayed.
    """
    text = _OSC_RE.sub("", text)

    def _keep_sgr(match: re.Match[str]) -> str:
        seq = match.group(0)
        return seq if _SGR_RE.fullmatch(seq) else ""

    text = _CSI_RE.sub(_keep_sgr, text)
    text = _OTHER_ESC_RE.sub("", text)
    return text.replace("\r", "")


def display_width(text: str) -> int:
    """Terminal column width of text, ignoring ANSI sequences."""
    return get_cwidth(strip_ansi(text))


def fit_to_width(text: str, width: int) -> str:
    """Pad with spaces or trim so the visible width is exactly `width`.

    Only plain text may be trimmed; callers style the result afterwards.
    """
    out: list[str] = []
    used = 0
    for ch in text:
        w = get_cwidth(ch)
        if used + w > width:
            break
        out.append(ch)
        used += w
    return "".join(out) + " " * (width - used)


def text_to_lines(text: str) -> list[str]:
    """Split command output into display lines (no trailing empty line)."""
    text = strip_non_style_ansi(text)
    if not text:
        return []
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def shell_quote(s: str) -> str:
    """Shell-escape string for display of an invocation line.

    Args:
        s: String to escape

    Returns:
        Shell-safe quoted string
    """
    return shlex.quote(s)


def split_names(text: str) -> list[str]:
    """Split free text holding one or more names into separate operands."""
    return text.split()


def format_repository_for_display(repository: str) -> str:
    """Collapse the user's home directory to '~'."""
    home_dir = os.environ.get("HOME")
    if not home_dir:
        return repository

    if repository == home_dir:
        return "~"

    home_prefix = home_dir.rstrip("/") + "/"
    if repository.startswith(home_prefix):
        return "~/" + repository[len(home_prefix):]
    return repository
