# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Command builder: external-action messages -> jj invocation descriptors.

Every external-action Message has exactly one builder in BUILDERS. A
builder reads its operands from a BuildContext:

- the current selection (revision or file diff under the cursor)
- the saved selection (first half of a two-step command)
- free text from the input service, for names, revsets and offsets

A missing operand raises InvalidSelection; declining to enter text
raises Cancelled. Neither is an error of the program; the kernel turns
both into a notice.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from . import jj
from .interfaces import InputService
from .jj import TRUNK, TUG_SOURCE, WORKING_COPY, GlobalArgs, JjCommand
from .log_tree import FileDiffInfo, RevisionInfo
from .messages import Message, is_external_action
from .selection import NO_PENDING_SELECTION, PendingSelection, SavedSelection
from .utils import split_names

Selection = Union[RevisionInfo, FileDiffInfo, None]


class InvalidSelection(Exception):
    """A required current or saved selection is missing."""


class Cancelled(Exception):
    """The user declined to provide required free text."""


@dataclass
class BuildContext:
    global_args: GlobalArgs
    selection: Selection = None
    saved: SavedSelection = NO_PENDING_SELECTION
    input_service: InputService | None = None

    # -----------------------
    # Current selection
    # -----------------------

    def revision(self) -> RevisionInfo:
        if isinstance(self.selection, FileDiffInfo):
            return self.selection.revision
        if isinstance(self.selection, RevisionInfo):
            return self.selection
        raise InvalidSelection()

    def change_id(self) -> str:
        return self.revision().change_id

    def file_path(self) -> str | None:
        if isinstance(self.selection, FileDiffInfo):
            return self.selection.path
        return None

    # -----------------------
    # Saved selection
    # -----------------------

    def saved_change_id(self) -> str:
        if not isinstance(self.saved, PendingSelection):
            raise InvalidSelection()
        return self.saved.change_id

    def saved_file_path(self) -> str | None:
        if not isinstance(self.saved, PendingSelection):
            return None
        return self.saved.file_path

    # -----------------------
    # Free text
    # -----------------------

    def ask(self, help_text: str, starting_text: str | None = None) -> str:
        if self.input_service is None:
            raise Cancelled()
        text = self.input_service.get_input(starting_text, help_text)
        if text is None:
            raise Cancelled()
        return text

    def ask_names(self, help_text: str) -> list[str]:
        names = split_names(self.ask(help_text))
        if not names:
            raise Cancelled()
        return names


Builder = Callable[[BuildContext, Message], list[JjCommand]]

BUILDERS: dict[Message, Builder] = {}


def builds(*messages: Message) -> Callable[[Builder], Builder]:
    def register(fn: Builder) -> Builder:
        for message in messages:
            if message in BUILDERS:
                raise ValueError(f"duplicate builder for {message}")
            BUILDERS[message] = fn
        return fn

    return register


def build(message: Message, ctx: BuildContext) -> list[JjCommand]:
    """Descriptors for an external-action message, in run order."""
    if not is_external_action(message):
        raise ValueError(f"{message} is not an external action")
    return BUILDERS[message](ctx, message)


# -----------------------
# Abandon / absorb
# -----------------------

_ABANDON_FLAGS = {
    Message.ABANDON: None,
    Message.ABANDON_RETAIN_BOOKMARKS: "--retain-bookmarks",
    Message.ABANDON_RESTORE_DESCENDANTS: "--restore-descendants",
}


@builds(*_ABANDON_FLAGS)
def _abandon(ctx: BuildContext, message: Message) -> list[JjCommand]:
    return [jj.abandon(ctx.change_id(), _ABANDON_FLAGS[message], ctx.global_args)]


@builds(Message.ABSORB)
def _absorb(ctx: BuildContext, message: Message) -> list[JjCommand]:
    return [jj.absorb(ctx.change_id(), None, ctx.file_path(), ctx.global_args)]


@builds(Message.ABSORB_INTO)
def _absorb_into(ctx: BuildContext, message: Message) -> list[JjCommand]:
    from_rev = ctx.saved_change_id()
    into_rev = ctx.change_id()
    return [jj.absorb(from_rev, into_rev, ctx.saved_file_path(), ctx.global_args)]


# -----------------------
# Bookmarks
# -----------------------


@builds(Message.BOOKMARK_CREATE)
def _bookmark_create(ctx: BuildContext, message: Message) -> list[JjCommand]:
    change_id = ctx.change_id()
    names = ctx.ask_names("Enter the new bookmark(s)")
    return [jj.bookmark_create(names, change_id, ctx.global_args)]


@builds(Message.BOOKMARK_SET)
def _bookmark_set(ctx: BuildContext, message: Message) -> list[JjCommand]:
    change_id = ctx.change_id()
    names = ctx.ask_names("Enter the bookmark(s) to set")
    return [jj.bookmark_set(names, change_id, ctx.global_args)]


@builds(Message.BOOKMARK_DELETE)
def _bookmark_delete(ctx: BuildContext, message: Message) -> list[JjCommand]:
    names = ctx.ask_names("Enter the bookmark(s) to delete")
    return [jj.bookmark_delete(names, ctx.global_args)]


@builds(Message.BOOKMARK_FORGET, Message.BOOKMARK_FORGET_INCLUDE_REMOTES)
def _bookmark_forget(ctx: BuildContext, message: Message) -> list[JjCommand]:
    include_remotes = message is Message.BOOKMARK_FORGET_INCLUDE_REMOTES
    prompt = "Enter the bookmark(s) to forget"
    if include_remotes:
        prompt += ", including remotes"
    names = ctx.ask_names(prompt)
    return [jj.bookmark_forget(names, include_remotes, ctx.global_args)]


@builds(Message.BOOKMARK_MOVE, Message.BOOKMARK_MOVE_ALLOW_BACKWARDS)
def _bookmark_move(ctx: BuildContext, message: Message) -> list[JjCommand]:
    from_rev = ctx.saved_change_id()
    to_rev = ctx.change_id()
    allow_backwards = message is Message.BOOKMARK_MOVE_ALLOW_BACKWARDS
    return [jj.bookmark_move(from_rev, to_rev, allow_backwards, ctx.global_args)]


@builds(Message.BOOKMARK_MOVE_TUG)
def _bookmark_tug(ctx: BuildContext, message: Message) -> list[JjCommand]:
    return [jj.bookmark_move(TUG_SOURCE, ctx.change_id(), False, ctx.global_args)]


@builds(Message.BOOKMARK_RENAME)
def _bookmark_rename(ctx: BuildContext, message: Message) -> list[JjCommand]:
    old = ctx.ask("Enter the bookmark to rename")
    new_name = ctx.ask("Enter the bookmark to rename to")
    return [jj.bookmark_rename(old, new_name, ctx.global_args)]


@builds(Message.BOOKMARK_TRACK, Message.BOOKMARK_UNTRACK)
def _bookmark_track(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message is Message.BOOKMARK_TRACK:
        names = ctx.ask_names("Enter the bookmark@remote to track")
        return [jj.bookmark_track(names, ctx.global_args)]
    names = ctx.ask_names("Enter the bookmark@remote to untrack")
    return [jj.bookmark_untrack(names, ctx.global_args)]


# -----------------------
# Describe / commit / edit / duplicate
# -----------------------


@builds(Message.COMMIT)
def _commit(ctx: BuildContext, message: Message) -> list[JjCommand]:
    return [jj.commit(ctx.file_path(), ctx.global_args)]


@builds(Message.DESCRIBE)
def _describe(ctx: BuildContext, message: Message) -> list[JjCommand]:
    return [jj.describe(ctx.change_id(), ctx.global_args)]


@builds(Message.EDIT)
def _edit(ctx: BuildContext, message: Message) -> list[JjCommand]:
    return [jj.edit(ctx.change_id(), ctx.global_args)]


_DUPLICATE_FLAGS = {
    Message.DUPLICATE_ONTO: "--onto",
    Message.DUPLICATE_INSERT_AFTER: "--insert-after",
    Message.DUPLICATE_INSERT_BEFORE: "--insert-before",
}


@builds(Message.DUPLICATE, *_DUPLICATE_FLAGS)
def _duplicate(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message is Message.DUPLICATE:
        return [jj.duplicate(ctx.change_id(), None, None, ctx.global_args)]
    source = ctx.saved_change_id()
    destination = ctx.change_id()
    flag = _DUPLICATE_FLAGS[message]
    return [jj.duplicate(source, flag, destination, ctx.global_args)]


# -----------------------
# Views
# -----------------------


@builds(Message.EVOLOG, Message.EVOLOG_PATCH)
def _evolog(ctx: BuildContext, message: Message) -> list[JjCommand]:
    patch = message is Message.EVOLOG_PATCH
    return [jj.evolog(ctx.change_id(), patch, ctx.global_args)]


@builds(Message.STATUS)
def _status(ctx: BuildContext, message: Message) -> list[JjCommand]:
    return [jj.status(ctx.global_args)]


@builds(
    Message.INTERDIFF_TO_SELECTION,
    Message.INTERDIFF_FROM_SELECTION,
    Message.INTERDIFF_FROM_SELECTION_TO_DESTINATION,
)
def _interdiff(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message is Message.INTERDIFF_TO_SELECTION:
        from_rev, to_rev, path = WORKING_COPY, ctx.change_id(), ctx.file_path()
    elif message is Message.INTERDIFF_FROM_SELECTION:
        from_rev, to_rev, path = ctx.change_id(), WORKING_COPY, ctx.file_path()
    else:
        from_rev = ctx.saved_change_id()
        to_rev = ctx.change_id()
        path = ctx.saved_file_path()
    return [jj.interdiff(from_rev, to_rev, path, ctx.global_args)]


@builds(
    Message.VIEW,
    Message.VIEW_FROM_SELECTION,
    Message.VIEW_TO_SELECTION,
    Message.VIEW_FROM_SELECTION_TO_DESTINATION,
)
def _view(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message is Message.VIEW:
        change_id = ctx.change_id()
        path = ctx.file_path()
        if path is None:
            return [jj.show(change_id, ctx.global_args)]
        return [jj.diff_file_interactive(change_id, path, ctx.global_args)]
    if message is Message.VIEW_FROM_SELECTION:
        return [jj.diff_from_to(ctx.change_id(), WORKING_COPY, ctx.global_args)]
    if message is Message.VIEW_TO_SELECTION:
        return [jj.diff_from_to(WORKING_COPY, ctx.change_id(), ctx.global_args)]
    from_rev = ctx.saved_change_id()
    return [jj.diff_from_to(from_rev, ctx.change_id(), ctx.global_args)]


# -----------------------
# Files
# -----------------------


@builds(Message.FILE_TRACK)
def _file_track(ctx: BuildContext, message: Message) -> list[JjCommand]:
    paths = ctx.ask_names("Enter the file path(s) to track")
    return [jj.file_track(paths, ctx.global_args)]


@builds(Message.FILE_UNTRACK)
def _file_untrack(ctx: BuildContext, message: Message) -> list[JjCommand]:
    path = ctx.file_path()
    if path is None or not ctx.revision().current_working_copy:
        raise InvalidSelection()
    return [jj.file_untrack(path, ctx.global_args)]


# -----------------------
# Git
# -----------------------


@builds(
    Message.GIT_FETCH,
    Message.GIT_FETCH_ALL_REMOTES,
    Message.GIT_FETCH_TRACKED,
    Message.GIT_FETCH_BRANCH,
    Message.GIT_FETCH_REMOTE,
)
def _git_fetch(ctx: BuildContext, message: Message) -> list[JjCommand]:
    flag: str | None = None
    value: str | None = None
    if message is Message.GIT_FETCH_ALL_REMOTES:
        flag = "--all-remotes"
    elif message is Message.GIT_FETCH_TRACKED:
        flag = "--tracked"
    elif message is Message.GIT_FETCH_BRANCH:
        flag, value = "-b", ctx.ask("Enter the branch to fetch")
    elif message is Message.GIT_FETCH_REMOTE:
        flag, value = "--remote", ctx.ask("Enter the remote to fetch from")
    return [jj.git_fetch(flag, value, ctx.global_args)]


_PUSH_FLAGS = {
    Message.GIT_PUSH: None,
    Message.GIT_PUSH_ALL: "--all",
    Message.GIT_PUSH_TRACKED: "--tracked",
    Message.GIT_PUSH_DELETED: "--deleted",
}


@builds(
    *_PUSH_FLAGS,
    Message.GIT_PUSH_REVISION,
    Message.GIT_PUSH_CHANGE,
    Message.GIT_PUSH_NAMED,
    Message.GIT_PUSH_BOOKMARK,
)
def _git_push(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message in _PUSH_FLAGS:
        return [jj.git_push(_PUSH_FLAGS[message], None, ctx.global_args)]
    if message is Message.GIT_PUSH_REVISION:
        return [jj.git_push("-r", ctx.change_id(), ctx.global_args)]
    if message is Message.GIT_PUSH_CHANGE:
        return [jj.git_push("-c", ctx.change_id(), ctx.global_args)]
    if message is Message.GIT_PUSH_NAMED:
        change_id = ctx.change_id()
        name = ctx.ask("Enter the bookmark name for this revision")
        return [jj.git_push("--named", f"{name}={change_id}", ctx.global_args)]
    name = ctx.ask("Enter the bookmark to push")
    return [jj.git_push("-b", name, ctx.global_args)]


# -----------------------
# Metaedit
# -----------------------

_METAEDIT_FLAGS = {
    Message.METAEDIT_UPDATE_CHANGE_ID: "--update-change-id",
    Message.METAEDIT_UPDATE_AUTHOR_TIMESTAMP: "--update-author-timestamp",
    Message.METAEDIT_UPDATE_AUTHOR: "--update-author",
    Message.METAEDIT_FORCE_REWRITE: "--force-rewrite",
}

_METAEDIT_PROMPTS = {
    Message.METAEDIT_SET_AUTHOR: (
        "--author",
        "Enter the author (e.g. 'Name <email@example.com>')",
    ),
    Message.METAEDIT_SET_AUTHOR_TIMESTAMP: (
        "--author-timestamp",
        "Enter the author timestamp (e.g. '2000-01-23T01:23:45-08:00')",
    ),
}


@builds(*_METAEDIT_FLAGS, *_METAEDIT_PROMPTS)
def _metaedit(ctx: BuildContext, message: Message) -> list[JjCommand]:
    change_id = ctx.change_id()
    if message in _METAEDIT_FLAGS:
        return [jj.metaedit(change_id, _METAEDIT_FLAGS[message], None, ctx.global_args)]
    flag, prompt = _METAEDIT_PROMPTS[message]
    value = ctx.ask(prompt)
    return [jj.metaedit(change_id, flag, value, ctx.global_args)]


# -----------------------
# New / next / prev
# -----------------------


@builds(
    Message.NEW,
    Message.NEW_INSERT_AFTER,
    Message.NEW_BEFORE,
    Message.NEW_AFTER_TRUNK,
    Message.NEW_AFTER_TRUNK_SYNC,
)
def _new(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message is Message.NEW_AFTER_TRUNK:
        return [jj.new(TRUNK, [], ctx.global_args)]
    if message is Message.NEW_AFTER_TRUNK_SYNC:
        return [
            jj.git_fetch(None, None, ctx.global_args),
            jj.new(TRUNK, [], ctx.global_args),
        ]
    change_id = ctx.change_id()
    if message is Message.NEW_INSERT_AFTER:
        return [jj.new(change_id, ["--insert-after"], ctx.global_args)]
    if message is Message.NEW_BEFORE:
        return [jj.new(change_id, ["--no-edit", "--insert-before"], ctx.global_args)]
    return [jj.new(change_id, [], ctx.global_args)]


# message -> (direction, flag, asks for an offset)
_NEXT_PREV: dict[Message, tuple[str, str | None, bool]] = {
    Message.NEXT: ("next", None, False),
    Message.NEXT_OFFSET: ("next", None, True),
    Message.NEXT_EDIT: ("next", "--edit", False),
    Message.NEXT_EDIT_OFFSET: ("next", "--edit", True),
    Message.NEXT_NO_EDIT: ("next", "--no-edit", False),
    Message.NEXT_NO_EDIT_OFFSET: ("next", "--no-edit", True),
    Message.NEXT_CONFLICT: ("next", "--conflict", False),
    Message.PREV: ("prev", None, False),
    Message.PREV_OFFSET: ("prev", None, True),
    Message.PREV_EDIT: ("prev", "--edit", False),
    Message.PREV_EDIT_OFFSET: ("prev", "--edit", True),
    Message.PREV_NO_EDIT: ("prev", "--no-edit", False),
    Message.PREV_NO_EDIT_OFFSET: ("prev", "--no-edit", True),
    Message.PREV_CONFLICT: ("prev", "--conflict", False),
}


@builds(*_NEXT_PREV)
def _next_prev(ctx: BuildContext, message: Message) -> list[JjCommand]:
    direction, flag, wants_offset = _NEXT_PREV[message]
    offset = ctx.ask("Enter the offset") if wants_offset else None
    return [jj.next_prev(direction, flag, offset, ctx.global_args)]


# -----------------------
# Parallelize / sign / simplify-parents
# -----------------------


@builds(Message.PARALLELIZE, Message.PARALLELIZE_RANGE, Message.PARALLELIZE_REVSET)
def _parallelize(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message is Message.PARALLELIZE:
        change_id = ctx.change_id()
        revset = f"{change_id}-::{change_id}"
    elif message is Message.PARALLELIZE_RANGE:
        from_rev = ctx.saved_change_id()
        revset = f"{from_rev}::{ctx.change_id()}"
    else:
        revset = ctx.ask("Enter the revset to parallelize")
    return [jj.parallelize(revset, ctx.global_args)]


@builds(Message.SIGN, Message.SIGN_RANGE, Message.UNSIGN, Message.UNSIGN_RANGE)
def _sign(ctx: BuildContext, message: Message) -> list[JjCommand]:
    action = "sign" if message in (Message.SIGN, Message.SIGN_RANGE) else "unsign"
    if message in (Message.SIGN_RANGE, Message.UNSIGN_RANGE):
        from_rev = ctx.saved_change_id()
        revset = f"{from_rev}::{ctx.change_id()}"
    else:
        revset = ctx.change_id()
    return [jj.sign(action, revset, ctx.global_args)]


@builds(Message.SIMPLIFY_PARENTS, Message.SIMPLIFY_PARENTS_SOURCE)
def _simplify_parents(ctx: BuildContext, message: Message) -> list[JjCommand]:
    flag = "-s" if message is Message.SIMPLIFY_PARENTS_SOURCE else "-r"
    return [jj.simplify_parents(flag, ctx.change_id(), ctx.global_args)]


# -----------------------
# Rebase
# -----------------------

# message -> (source flag, destination flag) for saved source, selected destination
_REBASE_TWO_STEP = {
    Message.REBASE_ONTO_DESTINATION: ("--source", "--onto"),
    Message.REBASE_BRANCH_ONTO_DESTINATION: ("--branch", "--onto"),
    Message.REBASE_ONTO_DESTINATION_NO_DESCENDANTS: ("--revisions", "--onto"),
    Message.REBASE_AFTER_DESTINATION: ("--source", "--insert-after"),
    Message.REBASE_AFTER_DESTINATION_NO_DESCENDANTS: ("--revisions", "--insert-after"),
    Message.REBASE_BEFORE_DESTINATION: ("--source", "--insert-before"),
    Message.REBASE_BEFORE_DESTINATION_NO_DESCENDANTS: ("--revisions", "--insert-before"),
}


@builds(Message.REBASE_ONTO_TRUNK, Message.REBASE_BRANCH_ONTO_TRUNK)
def _rebase_onto_trunk(ctx: BuildContext, message: Message) -> list[JjCommand]:
    flag = "--branch" if message is Message.REBASE_BRANCH_ONTO_TRUNK else "--source"
    return [jj.rebase(flag, ctx.change_id(), "--onto", TRUNK, ctx.global_args)]


@builds(*_REBASE_TWO_STEP)
def _rebase_two_step(ctx: BuildContext, message: Message) -> list[JjCommand]:
    source_flag, destination_flag = _REBASE_TWO_STEP[message]
    source = ctx.saved_change_id()
    destination = ctx.change_id()
    return [
        jj.rebase(source_flag, source, destination_flag, destination, ctx.global_args)
    ]


# -----------------------
# Restore / revert / squash
# -----------------------


@builds(
    Message.RESTORE,
    Message.RESTORE_RESTORE_DESCENDANTS,
    Message.RESTORE_FROM,
    Message.RESTORE_INTO,
    Message.RESTORE_FROM_INTO,
)
def _restore(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message is Message.RESTORE_FROM_INTO:
        from_rev = ctx.saved_change_id()
        flags = ["--from", from_rev, "--into", ctx.change_id()]
        return [jj.restore(flags, ctx.saved_file_path(), ctx.global_args)]

    change_id = ctx.change_id()
    if message is Message.RESTORE:
        flags = ["--changes-in", change_id]
    elif message is Message.RESTORE_RESTORE_DESCENDANTS:
        flags = ["--changes-in", change_id, "--restore-descendants"]
    elif message is Message.RESTORE_FROM:
        flags = ["--from", change_id]
    else:
        flags = ["--into", change_id]
    return [jj.restore(flags, ctx.file_path(), ctx.global_args)]


_REVERT_FLAGS = {
    Message.REVERT_ONTO_DESTINATION: "--onto",
    Message.REVERT_INSERT_AFTER: "--insert-after",
    Message.REVERT_INSERT_BEFORE: "--insert-before",
}


@builds(Message.REVERT, *_REVERT_FLAGS)
def _revert(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message is Message.REVERT:
        return [jj.revert(ctx.change_id(), "--onto", WORKING_COPY, ctx.global_args)]
    revision = ctx.saved_change_id()
    destination = ctx.change_id()
    return [
        jj.revert(revision, _REVERT_FLAGS[message], destination, ctx.global_args)
    ]


@builds(Message.SQUASH)
def _squash(ctx: BuildContext, message: Message) -> list[JjCommand]:
    revision = ctx.revision()
    # A described revision needs the editor to combine the two messages.
    return [
        jj.squash(
            revision.change_id,
            ctx.file_path(),
            revision.described,
            ctx.global_args,
        )
    ]


@builds(Message.SQUASH_INTO)
def _squash_into(ctx: BuildContext, message: Message) -> list[JjCommand]:
    from_rev = ctx.saved_change_id()
    path = ctx.saved_file_path()
    into_rev = ctx.change_id()
    return [jj.squash_into(from_rev, into_rev, path, ctx.global_args)]


# -----------------------
# Undo / redo
# -----------------------


@builds(Message.UNDO, Message.REDO)
def _undo(ctx: BuildContext, message: Message) -> list[JjCommand]:
    if message is Message.REDO:
        return [jj.redo(ctx.global_args)]
    return [jj.undo(ctx.global_args)]
