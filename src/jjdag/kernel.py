# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
jjdag kernel.

Core state machine of the dashboard:
- key handling (global keys first, then the chord trie)
- message dispatch with bounded chaining
- log navigation, folding and resync
- the saved-selection register for two-step commands
- the jj command queue, drained one step per UI tick

Important boundary:
- Kernel does not load YAML or touch the terminal.
- Kernel consumes the injected ViewModel, Runner, InputService and
  ConfigModel, so tests drive it with fakes.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from . import config as cfg_module
from .command_queue import CommandQueue, StepOutcome
from .command_tree import (
    Action,
    Chord,
    CommandTree,
    Menu,
    Unresolved,
    add_unbound_notice,
)
from .commands import BuildContext, Cancelled, InvalidSelection, build
from .executor import CommandFailed
from .interfaces import ConfigModel, InputService, Runner, ViewModel
from .jj import GlobalArgs
from .log_tree import FileDiffInfo, RevisionInfo
from .messages import Message, State, is_external_action
from .selection import PendingSelection, SelectionRegister, TreePosition
from .utils import format_repository_for_display, strip_ansi, text_to_lines

logger = logging.getLogger(__name__)

MAX_MESSAGE_CHAIN = 16

INVALID_SELECTION = "Invalid selection"
CANCELLED = "Cancelled"
REFRESHED = "Refreshed"

GLOBAL_KEYS: dict[str, Message] = {
    "q": Message.QUIT,
    "c-c": Message.QUIT,
    "j": Message.SELECT_NEXT_NODE,
    "down": Message.SELECT_NEXT_NODE,
    "k": Message.SELECT_PREV_NODE,
    "up": Message.SELECT_PREV_NODE,
    "pagedown": Message.SCROLL_DOWN_PAGE,
    "pageup": Message.SCROLL_UP_PAGE,
    "h": Message.SELECT_PREV_SIBLING_NODE,
    "left": Message.SELECT_PREV_SIBLING_NODE,
    "l": Message.SELECT_NEXT_SIBLING_NODE,
    "right": Message.SELECT_NEXT_SIBLING_NODE,
    "K": Message.SELECT_PARENT_NODE,
    " ": Message.REFRESH,
    "c-r": Message.REFRESH,
    "tab": Message.TOGGLE_LOG_LIST_FOLD,
    "escape": Message.CLEAR,
    "@": Message.SELECT_CURRENT_WORKING_COPY,
    "L": Message.SET_REVSET,
    "I": Message.TOGGLE_IGNORE_IMMUTABLE,
    "?": Message.SHOW_HELP,
}


def write_crash_log(
    error: BaseException,
    repository: str = "",
    revset: str = "",
    chord: str = "",
) -> None:
    """Write an entry to the crash log.

    Appends to <data_root>/jjdag/logs/crash.log (never overwrites) and
    only creates the directory when there is something to write.
    """
    try:
        data_root = cfg_module.get_data_root()
        logs_dir = cfg_module.logs_dir(data_root)
        logs_dir.mkdir(parents=True, exist_ok=True)

        crash_log_path = logs_dir / "crash.log"

        timestamp = datetime.now().isoformat()
        lines = [
            f"{timestamp}",
            f"repository={repository}",
            f"revset={revset}",
        ]
        if chord:
            lines.append(f"chord={chord}")

        lines.append(f"error={type(error).__name__}: {error}")
        lines.append("traceback:")
        lines.append(
            "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
        )
        lines.append("----")

        with crash_log_path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    except Exception:
        # Already failing; a crash log we cannot write is not worth a second error.
        pass


def _change_and_path(selected: RevisionInfo | FileDiffInfo) -> tuple[str, str | None]:
    if isinstance(selected, FileDiffInfo):
        return selected.revision.change_id, selected.path
    return selected.change_id, None


@dataclass
class Kernel:
    """Dashboard session engine."""

    view_model: ViewModel
    runner: Runner
    config: ConfigModel
    repository: str
    revset: str
    input_service: InputService | None = None

    state: State = State.RUNNING
    info_lines: list[str] | None = None
    page_lines: int = 20

    command_tree: CommandTree = field(init=False)
    chord: Chord = field(init=False)
    queue: CommandQueue = field(init=False)
    register: SelectionRegister = field(default_factory=SelectionRegister)
    global_args: GlobalArgs = field(init=False)
    display_repository: str = field(init=False)

    # Content line of the last mouse event, read by the mouse handlers.
    mouse_line: int | None = field(init=False, default=None)

    _handlers: dict[Message, Callable[[], Message | None]] = field(
        init=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        self.command_tree = CommandTree(
            column_width=self.config.get_int("ui.help.column_width", 26),
            max_entries_per_column=self.config.get_int(
                "ui.help.max_entries_per_column", 14
            ),
        )
        self.chord = Chord(self.command_tree)
        self.queue = CommandQueue(self.runner)
        self.global_args = GlobalArgs(self.repository)
        self.display_repository = format_repository_for_display(self.repository)
        self.page_lines = self.config.get_int("ui.page_lines_fallback", self.page_lines)

        self._handlers = {
            Message.SELECT_NEXT_NODE: self.select_next_node,
            Message.SELECT_PREV_NODE: self.select_prev_node,
            Message.SELECT_NEXT_SIBLING_NODE: self.select_next_sibling_node,
            Message.SELECT_PREV_SIBLING_NODE: self.select_prev_sibling_node,
            Message.SELECT_PARENT_NODE: self.select_parent_node,
            Message.SELECT_CURRENT_WORKING_COPY: self.select_current_working_copy,
            Message.SCROLL_DOWN_PAGE: self.scroll_down_page,
            Message.SCROLL_UP_PAGE: self.scroll_up_page,
            Message.TOGGLE_LOG_LIST_FOLD: self.toggle_current_fold,
            Message.SCROLL_DOWN: self.select_next_node,
            Message.SCROLL_UP: self.select_prev_node,
            Message.LEFT_MOUSE_CLICK: self.select_clicked_row,
            Message.RIGHT_MOUSE_CLICK: self.toggle_clicked_row,
            Message.REFRESH: self.refresh,
            Message.CLEAR: self.clear,
            Message.TOGGLE_IGNORE_IMMUTABLE: self.toggle_ignore_immutable,
            Message.SET_REVSET: self.set_revset,
            Message.SHOW_HELP: self.show_help,
            Message.QUIT: self.quit,
            Message.SAVE_SELECTION: self.save_selection,
        }

    # -----------------------
    # Lifecycle
    # -----------------------

    def start(self) -> None:
        """Initial load. CommandFailed propagates to the CLI."""
        self.state = State.RUNNING
        self.sync()

    @property
    def running(self) -> bool:
        return self.state is State.RUNNING

    def quit(self) -> None:
        self.state = State.QUIT

    # -----------------------
    # Input
    # -----------------------

    def handle_key(self, key: str) -> None:
        message = GLOBAL_KEYS.get(key)
        if message is None:
            message = self._handle_command_key(key)
        if message is not None:
            self.dispatch(message)

    def _handle_command_key(self, key: str) -> Message | None:
        result = self.chord.feed(key)
        if isinstance(result, Unresolved):
            self.info_lines = add_unbound_notice(self.info_lines, key)
            return None
        if isinstance(result, Menu):
            self.info_lines = result.help
            return None
        if isinstance(result, Action):
            if result.help is not None:
                self.info_lines = result.help
            return result.message
        return None

    def handle_mouse(self, message: Message, line: int | None = None) -> None:
        """Dispatch a mouse message; line is the log content line under the pointer."""
        self.mouse_line = line
        try:
            self.dispatch(message)
        finally:
            self.mouse_line = None

    def dispatch(self, message: Message) -> None:
        """Run a message and any follow-ups it returns."""
        current: Message | None = message
        for _ in range(MAX_MESSAGE_CHAIN):
            if current is None:
                return
            current = self._handle(current)
        if current is not None:
            logger.warning("message chain cut off at %s", current)

    def _handle(self, message: Message) -> Message | None:
        if is_external_action(message):
            self._queue_action(message)
            return None
        try:
            return self._handlers[message]()
        except CommandFailed as e:
            # Reload or fold expansion failed; the old graph stays on screen.
            self.info_lines = text_to_lines(e.stderr)
            return None

    # -----------------------
    # Notices
    # -----------------------

    def invalid_selection(self) -> None:
        logger.debug("invalid selection")
        self.chord.clear()
        self.register.clear()
        self.info_lines = [INVALID_SELECTION]

    def cancelled(self) -> None:
        logger.debug("input cancelled")
        self.info_lines = [CANCELLED]

    def show_help(self) -> None:
        self.info_lines = self.command_tree.help_lines()

    def clear(self) -> None:
        self.info_lines = None
        self.register.clear()
        self.chord.clear()
        self.queue.clear()

    # -----------------------
    # Meta
    # -----------------------

    def toggle_ignore_immutable(self) -> None:
        self.global_args = self.global_args.toggled()

    def refresh(self) -> None:
        periods = 0
        if self.info_lines:
            first = strip_ansi(self.info_lines[0])
            if first.startswith(REFRESHED):
                periods = first.count(".") + 3
        self.clear()
        self.sync()
        self.info_lines = [REFRESHED + "." * periods]

    def set_revset(self) -> Message | None:
        if self.input_service is None:
            self.cancelled()
            return None
        new_revset = self.input_service.get_input(self.revset, "Enter the new revset")
        if new_revset is None:
            self.cancelled()
            return None

        old_revset = self.revset
        self.revset = new_revset
        try:
            self.sync()
        except CommandFailed as e:
            self.revset = old_revset
            self.info_lines = text_to_lines(e.stderr)
            return None

        self.info_lines = [f"Revset set to '{self.revset}'"]
        return Message.SELECT_CURRENT_WORKING_COPY

    def save_selection(self) -> None:
        position = self.view_model.current_selection_position()
        selected = self.view_model.resolve(position)
        if position is None or selected is None:
            self.clear()
            self.invalid_selection()
            return
        change_id, path = _change_and_path(selected)
        self.register.save(change_id, path, position)

    # -----------------------
    # View model sync
    # -----------------------

    def sync(self) -> None:
        """Reload the log, keeping the selection on the same change/file."""
        previous = self.view_model.resolve(
            self.view_model.current_selection_position()
        )
        self.view_model.load(self.global_args, self.revset)

        index = None
        if previous is not None:
            index = self.view_model.find(*_change_and_path(previous))
        if index is not None:
            self.view_model.select(index)
            return

        wc_index = self.view_model.working_copy_index()
        self.view_model.select(wc_index if wc_index is not None else 0)
        position = self.view_model.current_selection_position()
        if wc_index is not None and position is not None:
            self.view_model.expand(self.global_args, position)

    # -----------------------
    # Navigation
    # -----------------------

    def _select_position(self, position: TreePosition | None) -> None:
        if position is None:
            return
        index = self.view_model.flat_index(position)
        if index is not None:
            self.view_model.select(index)

    def select_next_node(self) -> None:
        self.view_model.select(self.view_model.selected + 1)

    def select_prev_node(self) -> None:
        self.view_model.select(self.view_model.selected - 1)

    def select_current_working_copy(self) -> None:
        index = self.view_model.working_copy_index()
        if index is not None:
            self.view_model.select(index)

    def select_parent_node(self) -> None:
        position = self.view_model.current_selection_position()
        if position is None:
            return
        self._select_position(self.view_model.parent_of(position))

    def select_next_sibling_node(self) -> None:
        position = self.view_model.current_selection_position()
        if position is not None:
            self._select_next_sibling(position)

    def _select_next_sibling(self, position: TreePosition) -> None:
        # Diff lines step by file.
        if len(position) == 3:
            position = position[:-1]
        parent = self.view_model.parent_of(position)
        siblings = self.view_model.children_of(parent)
        if not siblings:
            return
        idx = position[-1]
        if parent is not None and idx >= len(siblings) - 1:
            self._select_next_sibling(parent)
            return
        self._select_position(siblings[min(idx + 1, len(siblings) - 1)])

    def select_prev_sibling_node(self) -> None:
        position = self.view_model.current_selection_position()
        if position is None:
            return
        parent = self.view_model.parent_of(position)
        idx = position[-1]
        if len(position) == 3 or (parent is not None and idx == 0):
            self._select_position(parent)
            return
        siblings = self.view_model.children_of(parent)
        if siblings:
            self._select_position(siblings[max(idx - 1, 0)])

    def scroll_down_page(self) -> None:
        self._scroll_lines(self.page_lines, 1)

    def scroll_up_page(self) -> None:
        self._scroll_lines(self.page_lines, -1)

    def _scroll_lines(self, num_lines: int, step: int) -> None:
        """Move the selection until at least num_lines lines have passed."""
        rows = self.view_model.rows
        index = self.view_model.selected
        traversed = 0
        while 0 <= index + step < len(rows) and traversed < num_lines:
            traversed += len(rows[index])
            index += step
        self.view_model.select(index)

    def toggle_current_fold(self) -> None:
        position = self.view_model.current_selection_position()
        if position is not None:
            self.view_model.toggle_fold(self.global_args, position)

    def row_at_line(self, line: int | None) -> int | None:
        """Flat row index drawn on a log content line; None past the end."""
        if line is None or line < 0:
            return None
        start = 0
        for index, row in enumerate(self.view_model.rows):
            start += len(row)
            if line < start:
                return index
        return None

    def _select_mouse_row(self) -> bool:
        index = self.row_at_line(self.mouse_line)
        if index is None:
            return False
        self.view_model.select(index)
        return True

    def select_clicked_row(self) -> None:
        self._select_mouse_row()

    def toggle_clicked_row(self) -> None:
        if self._select_mouse_row():
            self.toggle_current_fold()

    # -----------------------
    # External actions
    # -----------------------

    def _queue_action(self, message: Message) -> None:
        ctx = BuildContext(
            global_args=self.global_args,
            selection=self.view_model.resolve(
                self.view_model.current_selection_position()
            ),
            saved=self.register.saved,
            input_service=self.input_service,
        )
        try:
            commands = build(message, ctx)
        except InvalidSelection:
            self.invalid_selection()
            return
        except Cancelled:
            self.cancelled()
            return
        self.info_lines = self.queue.enqueue(commands)

    def step_queue(self) -> bool:
        """Run one queued command. Returns True while more are pending."""
        result = self.queue.step()
        if result.outcome is StepOutcome.IDLE:
            return False
        if result.outcome is StepOutcome.RUNNING:
            self.info_lines = result.lines
            return True

        self.clear()
        self.info_lines = result.lines
        if result.outcome is StepOutcome.SUCCEEDED and result.sync:
            try:
                self.sync()
            except CommandFailed as e:
                self.info_lines = [*result.lines, "", *text_to_lines(e.stderr)]
        return False

    # -----------------------
    # UI helpers
    # -----------------------

    def saved_row_indices(self) -> set[int]:
        """Rows to highlight for the saved selection."""
        saved = self.register.saved
        if not isinstance(saved, PendingSelection):
            return set()
        rows = {self.view_model.find(saved.change_id)}
        if saved.file_path is not None:
            rows.add(self.view_model.find(saved.change_id, saved.file_path))
        return {i for i in rows if i is not None}

    def chord_text(self) -> str:
        return " ".join(self.chord.keys)
