# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Closed set of intents the kernel dispatches.

Messages carry no payload. Operands for external actions are resolved at
dispatch time from the current selection and the saved selection.
"""

from __future__ import annotations

from enum import Enum, auto


class State(Enum):
    RUNNING = auto()
    QUIT = auto()


class Message(Enum):
    # Navigation
    SELECT_NEXT_NODE = auto()
    SELECT_PREV_NODE = auto()
    SELECT_NEXT_SIBLING_NODE = auto()
    SELECT_PREV_SIBLING_NODE = auto()
    SELECT_PARENT_NODE = auto()
    SELECT_CURRENT_WORKING_COPY = auto()
    SCROLL_DOWN_PAGE = auto()
    SCROLL_UP_PAGE = auto()
    TOGGLE_LOG_LIST_FOLD = auto()

    # Mouse
    SCROLL_DOWN = auto()
    SCROLL_UP = auto()
    LEFT_MOUSE_CLICK = auto()
    RIGHT_MOUSE_CLICK = auto()

    # Meta
    REFRESH = auto()
    CLEAR = auto()
    TOGGLE_IGNORE_IMMUTABLE = auto()
    SET_REVSET = auto()
    SHOW_HELP = auto()
    QUIT = auto()
    SAVE_SELECTION = auto()

    # External actions
    ABANDON = auto()
    ABANDON_RETAIN_BOOKMARKS = auto()
    ABANDON_RESTORE_DESCENDANTS = auto()
    ABSORB = auto()
    ABSORB_INTO = auto()
    BOOKMARK_CREATE = auto()
    BOOKMARK_DELETE = auto()
    BOOKMARK_FORGET = auto()
    BOOKMARK_FORGET_INCLUDE_REMOTES = auto()
    BOOKMARK_MOVE = auto()
    BOOKMARK_MOVE_ALLOW_BACKWARDS = auto()
    BOOKMARK_MOVE_TUG = auto()
    BOOKMARK_RENAME = auto()
    BOOKMARK_SET = auto()
    BOOKMARK_TRACK = auto()
    BOOKMARK_UNTRACK = auto()
    COMMIT = auto()
    DESCRIBE = auto()
    DUPLICATE = auto()
    DUPLICATE_ONTO = auto()
    DUPLICATE_INSERT_AFTER = auto()
    DUPLICATE_INSERT_BEFORE = auto()
    EDIT = auto()
    EVOLOG = auto()
    EVOLOG_PATCH = auto()
    FILE_TRACK = auto()
    FILE_UNTRACK = auto()
    GIT_FETCH = auto()
    GIT_FETCH_ALL_REMOTES = auto()
    GIT_FETCH_TRACKED = auto()
    GIT_FETCH_BRANCH = auto()
    GIT_FETCH_REMOTE = auto()
    GIT_PUSH = auto()
    GIT_PUSH_ALL = auto()
    GIT_PUSH_REVISION = auto()
    GIT_PUSH_TRACKED = auto()
    GIT_PUSH_DELETED = auto()
    GIT_PUSH_CHANGE = auto()
    GIT_PUSH_NAMED = auto()
    GIT_PUSH_BOOKMARK = auto()
    INTERDIFF_TO_SELECTION = auto()
    INTERDIFF_FROM_SELECTION = auto()
    INTERDIFF_FROM_SELECTION_TO_DESTINATION = auto()
    METAEDIT_UPDATE_CHANGE_ID = auto()
    METAEDIT_UPDATE_AUTHOR_TIMESTAMP = auto()
    METAEDIT_UPDATE_AUTHOR = auto()
    METAEDIT_SET_AUTHOR = auto()
    METAEDIT_SET_AUTHOR_TIMESTAMP = auto()
    METAEDIT_FORCE_REWRITE = auto()
    NEW = auto()
    NEW_INSERT_AFTER = auto()
    NEW_BEFORE = auto()
    NEW_AFTER_TRUNK = auto()
    NEW_AFTER_TRUNK_SYNC = auto()
    NEXT = auto()
    NEXT_OFFSET = auto()
    NEXT_EDIT = auto()
    NEXT_EDIT_OFFSET = auto()
    NEXT_NO_EDIT = auto()
    NEXT_NO_EDIT_OFFSET = auto()
    NEXT_CONFLICT = auto()
    PREV = auto()
    PREV_OFFSET = auto()
    PREV_EDIT = auto()
    PREV_EDIT_OFFSET = auto()
    PREV_NO_EDIT = auto()
    PREV_NO_EDIT_OFFSET = auto()
    PREV_CONFLICT = auto()
    PARALLELIZE = auto()
    PARALLELIZE_RANGE = auto()
    PARALLELIZE_REVSET = auto()
    REBASE_ONTO_TRUNK = auto()
    REBASE_BRANCH_ONTO_TRUNK = auto()
    REBASE_ONTO_DESTINATION = auto()
    REBASE_BRANCH_ONTO_DESTINATION = auto()
    REBASE_ONTO_DESTINATION_NO_DESCENDANTS = auto()
    REBASE_AFTER_DESTINATION = auto()
    REBASE_AFTER_DESTINATION_NO_DESCENDANTS = auto()
    REBASE_BEFORE_DESTINATION = auto()
    REBASE_BEFORE_DESTINATION_NO_DESCENDANTS = auto()
    REDO = auto()
    UNDO = auto()
    RESTORE = auto()
    RESTORE_RESTORE_DESCENDANTS = auto()
    RESTORE_FROM = auto()
    RESTORE_INTO = auto()
    RESTORE_FROM_INTO = auto()
    REVERT = auto()
    REVERT_ONTO_DESTINATION = auto()
    REVERT_INSERT_AFTER = auto()
    REVERT_INSERT_BEFORE = auto()
    SIGN = auto()
    SIGN_RANGE = auto()
    UNSIGN = auto()
    UNSIGN_RANGE = auto()
    SIMPLIFY_PARENTS = auto()
    SIMPLIFY_PARENTS_SOURCE = auto()
    SQUASH = auto()
    SQUASH_INTO = auto()
    STATUS = auto()
    VIEW = auto()
    VIEW_FROM_SELECTION = auto()
    VIEW_TO_SELECTION = auto()
    VIEW_FROM_SELECTION_TO_DESTINATION = auto()


NAVIGATION_MESSAGES: frozenset[Message] = frozenset(
    {
        Message.SELECT_NEXT_NODE,
        Message.SELECT_PREV_NODE,
        Message.SELECT_NEXT_SIBLING_NODE,
        Message.SELECT_PREV_SIBLING_NODE,
        Message.SELECT_PARENT_NODE,
        Message.SELECT_CURRENT_WORKING_COPY,
        Message.SCROLL_DOWN_PAGE,
        Message.SCROLL_UP_PAGE,
        Message.TOGGLE_LOG_LIST_FOLD,
        Message.SCROLL_DOWN,
        Message.SCROLL_UP,
        Message.LEFT_MOUSE_CLICK,
        Message.RIGHT_MOUSE_CLICK,
    }
)

META_MESSAGES: frozenset[Message] = frozenset(
    {
        Message.REFRESH,
        Message.CLEAR,
        Message.TOGGLE_IGNORE_IMMUTABLE,
        Message.SET_REVSET,
        Message.SHOW_HELP,
        Message.QUIT,
        Message.SAVE_SELECTION,
    }
)


def is_external_action(message: Message) -> bool:
    """True for messages that turn into jj invocations."""
    return message not in NAVIGATION_MESSAGES and message not in META_MESSAGES
