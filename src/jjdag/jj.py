# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
jj invocation descriptors.

A JjCommand is inert: it records the action-specific arguments, how the
command must be run (captured or with the terminal handed over), which
stream to surface and whether the log should be reloaded afterwards.
Turning it into a real argv is done with JjSettings, which carries the
executable name and the global flags from config.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .config import colorize
from .utils import shell_quote

# Revision and revset operands used by several actions.
WORKING_COPY = "@"
TRUNK = "trunk()"
TUG_SOURCE = "heads(::@- & bookmarks())"

# Record delimiters emitted in front of each revision's first log line.
RECORD_START = "\x1e"
FIELD_SEP = "\x1f"
RECORD_END = "\x1d"

LOG_TEMPLATE = (
    f'"{RECORD_START}" ++ change_id ++ "{FIELD_SEP}"'
    f' ++ if(current_working_copy, "1", "0") ++ "{FIELD_SEP}"'
    f' ++ if(description, "1", "0") ++ "{RECORD_END}"'
    " ++ builtin_log_compact"
)


class RunMode(Enum):
    CAPTURED = "captured"
    INTERACTIVE = "interactive"


class Stream(Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True)
class GlobalArgs:
    repository: str
    ignore_immutable: bool = False

    def toggled(self) -> GlobalArgs:
        return GlobalArgs(self.repository, not self.ignore_immutable)


@dataclass(frozen=True)
class JjSettings:
    """Executable name and flag lists shared by every invocation."""

    executable: str = "jj"
    global_args: tuple[str, ...] = ("--color", "always")
    interactive_args: tuple[str, ...] = (
        "--config",
        "ui.pager=:builtin",
        "--config",
        "ui.streampager.interface=full-screen-clear-output",
    )
    log_node_template: str = ""

    @classmethod
    def from_config(cls, config: Any) -> JjSettings:
        defaults = cls()
        return cls(
            executable=str(
                config.get_path("jj.executable", defaults.executable)
            ),
            global_args=tuple(
                config.get_str_list(
                    "jj.global_args", list(defaults.global_args)
                )
            ),
            interactive_args=tuple(
                config.get_str_list(
                    "jj.interactive_args", list(defaults.interactive_args)
                )
            ),
            log_node_template=str(
                config.get_path("jj.log_node_template", "") or ""
            ).strip(),
        )


@dataclass(frozen=True)
class JjCommand:
    """One invocation of jj."""

    args: tuple[str, ...]
    global_args: GlobalArgs
    mode: RunMode = RunMode.CAPTURED
    stream: Stream = Stream.STDERR
    sync: bool = True
    config_overrides: tuple[str, ...] = field(default=())

    @property
    def interactive(self) -> bool:
        return self.mode is RunMode.INTERACTIVE

    def argv(self, settings: JjSettings) -> list[str]:
        """Full argv: executable, global flags, then the action arguments."""
        argv = [settings.executable, *settings.global_args]
        if self.interactive:
            argv.extend(settings.interactive_args)
        for override in self.config_overrides:
            argv.extend(["--config", override])
        argv.extend(["--repository", self.global_args.repository])
        if self.global_args.ignore_immutable:
            argv.append("--ignore-immutable")
        argv.extend(self.args)
        return argv

    def display_line(self) -> str:
        """Invocation line shown in the info panel."""
        quoted = " ".join(shell_quote(a) for a in self.args)
        return f"{colorize('❯', 'yellow')} jj {quoted}"

    def to_lines(self) -> list[str]:
        return [self.display_line(), ""]


def _captured(args: list[str], global_args: GlobalArgs) -> JjCommand:
    return JjCommand(tuple(args), global_args)


def _interactive(
    args: list[str], global_args: GlobalArgs, sync: bool = True
) -> JjCommand:
    return JjCommand(
        tuple(args), global_args, mode=RunMode.INTERACTIVE, sync=sync
    )


def _with_path(args: list[str], file_path: str | None) -> list[str]:
    if file_path is not None:
        args.append(file_path)
    return args


# -----------------------
# View model loading
# -----------------------


def log(
    revset: str, global_args: GlobalArgs, settings: JjSettings | None = None
) -> JjCommand:
    overrides: tuple[str, ...] = ()
    if settings is not None and settings.log_node_template:
        overrides = (f"templates.log_node={settings.log_node_template}",)
    return JjCommand(
        ("log", "--revisions", revset, "--template", LOG_TEMPLATE),
        global_args,
        stream=Stream.STDOUT,
        sync=False,
        config_overrides=overrides,
    )


def diff_summary(change_id: str, global_args: GlobalArgs) -> JjCommand:
    return JjCommand(
        ("diff", "--revisions", change_id, "--summary"),
        global_args,
        stream=Stream.STDOUT,
        sync=False,
    )


def diff_file(change_id: str, file_path: str, global_args: GlobalArgs) -> JjCommand:
    return JjCommand(
        ("diff", "--revisions", change_id, file_path),
        global_args,
        stream=Stream.STDOUT,
        sync=False,
    )


def workspace_root(global_args: GlobalArgs) -> JjCommand:
    return JjCommand(
        ("workspace", "root"), global_args, stream=Stream.STDOUT, sync=False
    )


# -----------------------
# Views (interactive, no reload)
# -----------------------


def show(change_id: str, global_args: GlobalArgs) -> JjCommand:
    return _interactive(["show", change_id], global_args, sync=False)


def diff_file_interactive(
    change_id: str, file_path: str, global_args: GlobalArgs
) -> JjCommand:
    return _interactive(
        ["diff", "--revisions", change_id, file_path], global_args, sync=False
    )


def diff_from_to(from_rev: str, to_rev: str, global_args: GlobalArgs) -> JjCommand:
    return _interactive(
        ["diff", "--from", from_rev, "--to", to_rev], global_args, sync=False
    )


def interdiff(
    from_rev: str,
    to_rev: str,
    file_path: str | None,
    global_args: GlobalArgs,
) -> JjCommand:
    args = _with_path(["interdiff", "--from", from_rev, "--to", to_rev], file_path)
    return _interactive(args, global_args, sync=False)


def evolog(change_id: str, patch: bool, global_args: GlobalArgs) -> JjCommand:
    args = ["evolog", "-r", change_id]
    if patch:
        args.append("--patch")
    return _interactive(args, global_args, sync=False)


def status(global_args: GlobalArgs) -> JjCommand:
    return _interactive(["status"], global_args, sync=False)


# -----------------------
# Editing commands
# -----------------------


def describe(change_id: str, global_args: GlobalArgs) -> JjCommand:
    return _interactive(["describe", change_id], global_args)


def commit(file_path: str | None, global_args: GlobalArgs) -> JjCommand:
    return _interactive(_with_path(["commit"], file_path), global_args)


def squash(
    change_id: str,
    file_path: str | None,
    interactive: bool,
    global_args: GlobalArgs,
) -> JjCommand:
    args = _with_path(["squash", "--revision", change_id], file_path)
    if interactive:
        return _interactive(args, global_args)
    return _captured(args, global_args)


def squash_into(
    from_rev: str,
    into_rev: str,
    file_path: str | None,
    global_args: GlobalArgs,
) -> JjCommand:
    args = _with_path(
        ["squash", "--from", from_rev, "--into", into_rev], file_path
    )
    return _interactive(args, global_args)


def abandon(
    change_id: str, flag: str | None, global_args: GlobalArgs
) -> JjCommand:
    args = ["abandon"]
    if flag:
        args.append(flag)
    args.append(change_id)
    return _captured(args, global_args)


def absorb(
    from_rev: str,
    into_rev: str | None,
    file_path: str | None,
    global_args: GlobalArgs,
) -> JjCommand:
    args = ["absorb", "--from", from_rev]
    if into_rev is not None:
        args.extend(["--into", into_rev])
    return _captured(_with_path(args, file_path), global_args)


def duplicate(
    change_id: str,
    destination_flag: str | None,
    destination: str | None,
    global_args: GlobalArgs,
) -> JjCommand:
    args = ["duplicate", change_id]
    if destination_flag and destination is not None:
        args.extend([destination_flag, destination])
    return _captured(args, global_args)


def edit(change_id: str, global_args: GlobalArgs) -> JjCommand:
    return _captured(["edit", change_id], global_args)


def new(
    revision: str, flags: list[str], global_args: GlobalArgs
) -> JjCommand:
    return _captured(["new", *flags, revision], global_args)


def next_prev(
    direction: str,
    flag: str | None,
    offset: str | None,
    global_args: GlobalArgs,
) -> JjCommand:
    args = [direction]
    if flag:
        args.append(flag)
    if offset is not None:
        args.append(offset)
    return _captured(args, global_args)


def parallelize(revset: str, global_args: GlobalArgs) -> JjCommand:
    return _captured(["parallelize", revset], global_args)


def rebase(
    source_flag: str,
    source: str,
    destination_flag: str,
    destination: str,
    global_args: GlobalArgs,
) -> JjCommand:
    return _captured(
        ["rebase", source_flag, source, destination_flag, destination],
        global_args,
    )


def restore(
    flags: list[str], file_path: str | None, global_args: GlobalArgs
) -> JjCommand:
    return _captured(_with_path(["restore", *flags], file_path), global_args)


def revert(
    revision: str,
    destination_flag: str,
    destination: str,
    global_args: GlobalArgs,
) -> JjCommand:
    return _captured(
        ["revert", "-r", revision, destination_flag, destination], global_args
    )


def sign(action: str, revset: str, global_args: GlobalArgs) -> JjCommand:
    return _captured([action, "-r", revset], global_args)


def simplify_parents(
    flag: str, change_id: str, global_args: GlobalArgs
) -> JjCommand:
    return _captured(["simplify-parents", flag, change_id], global_args)


def metaedit(
    change_id: str, flag: str, value: str | None, global_args: GlobalArgs
) -> JjCommand:
    args = ["metaedit", flag]
    if value is not None:
        args.append(value)
    args.append(change_id)
    return _captured(args, global_args)


def undo(global_args: GlobalArgs) -> JjCommand:
    return _captured(["undo"], global_args)


def redo(global_args: GlobalArgs) -> JjCommand:
    return _captured(["redo"], global_args)


def file_track(file_paths: list[str], global_args: GlobalArgs) -> JjCommand:
    return _captured(["file", "track", *file_paths], global_args)


def file_untrack(file_path: str, global_args: GlobalArgs) -> JjCommand:
    return _captured(["file", "untrack", file_path], global_args)


# -----------------------
# Git
# -----------------------


def git_fetch(
    flag: str | None, value: str | None, global_args: GlobalArgs
) -> JjCommand:
    args = ["git", "fetch"]
    if flag:
        args.append(flag)
    if value is not None:
        args.append(value)
    return _captured(args, global_args)


def git_push(
    flag: str | None, value: str | None, global_args: GlobalArgs
) -> JjCommand:
    args = ["git", "push"]
    if flag:
        args.append(flag)
    if value is not None:
        args.append(value)
    return _captured(args, global_args)


# -----------------------
# Bookmarks
# -----------------------


def bookmark_create(
    names: list[str], change_id: str, global_args: GlobalArgs
) -> JjCommand:
    return _captured(
        ["bookmark", "create", "--revision", change_id, *names], global_args
    )


def bookmark_set(
    names: list[str], change_id: str, global_args: GlobalArgs
) -> JjCommand:
    return _captured(
        ["bookmark", "set", *names, "--revision", change_id], global_args
    )


def bookmark_delete(names: list[str], global_args: GlobalArgs) -> JjCommand:
    return _captured(["bookmark", "delete", *names], global_args)


def bookmark_forget(
    names: list[str], include_remotes: bool, global_args: GlobalArgs
) -> JjCommand:
    args = ["bookmark", "forget"]
    if include_remotes:
        args.append("--include-remotes")
    return _captured([*args, *names], global_args)


def bookmark_move(
    from_rev: str,
    to_rev: str,
    allow_backwards: bool,
    global_args: GlobalArgs,
) -> JjCommand:
    args = ["bookmark", "move", "--from", from_rev, "--to", to_rev]
    if allow_backwards:
        args.append("--allow-backwards")
    return _captured(args, global_args)


def bookmark_rename(old: str, new_name: str, global_args: GlobalArgs) -> JjCommand:
    return _captured(["bookmark", "rename", old, new_name], global_args)


def bookmark_track(names: list[str], global_args: GlobalArgs) -> JjCommand:
    return _captured(["bookmark", "track", *names], global_args)


def bookmark_untrack(names: list[str], global_args: GlobalArgs) -> JjCommand:
    return _captured(["bookmark", "untrack", *names], global_args)
