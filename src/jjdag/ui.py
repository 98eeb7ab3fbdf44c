# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
jjdag full-screen UI.

Layout:
- header: repository, revset and the --ignore-immutable flag
- log panel: ANSI rows from the view model, selected row highlighted
- info panel: help, notices and command transcripts (hidden when empty)

Keys and mouse events are translated here and handed to the kernel;
the jj command queue is drained one step per event-loop tick.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from prompt_toolkit.application import Application
from prompt_toolkit.data_structures import Point
from prompt_toolkit.filters import Condition
from prompt_toolkit.formatted_text import ANSI, StyleAndTextTuples, to_formatted_text
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import (
    ConditionalContainer,
    FormattedTextControl,
    HSplit,
    Layout,
    Window,
)
from prompt_toolkit.mouse_events import MouseButton, MouseEvent, MouseEventType
from prompt_toolkit.styles import Style

from .messages import Message

if TYPE_CHECKING:
    from .kernel import Kernel  # pragma: no cover

logger = logging.getLogger(__name__)


# ----------------------------
# Config helpers (MUST come from config.py facade via kernel.config.get_path)
# ----------------------------


def _cfg_get_path(kernel: Kernel | None, path: str, default):
    if kernel is None:
        return default
    cfg = getattr(kernel, "config", None)
    if cfg is None or not hasattr(cfg, "get_path"):
        return default
    try:
        return cfg.get_path(path, default)
    except Exception:
        return default


def _cfg_dict(kernel: Kernel | None, path: str, default: dict) -> dict:
    val = _cfg_get_path(kernel, path, default)
    return val if isinstance(val, dict) else default


def _cfg_float(kernel: Kernel | None, path: str, default: float) -> float:
    val = _cfg_get_path(kernel, path, default)
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


# ----------------------------
# Theme / Style
# ----------------------------


def _default_style_dict() -> dict[str, str]:
    return {
        "header.label": "#5f87ff",
        "header.value": "#5fd75f",
        "header.flag": "#ff5f5f",
        "log.selected": "bg:#282a36 bold",
        "log.saved": "bg:#21232d",
        "info.border": "#5f87ff",
    }


def _build_style(kernel: Kernel | None) -> Style:
    base = _default_style_dict()
    overrides = _cfg_dict(kernel, "ui.theme.style", {})
    # only keep string->string
    for k, v in list(overrides.items()):
        if isinstance(k, str) and isinstance(v, str):
            base[k] = v
    return Style.from_dict(base)


# ----------------------------
# Keys
# ----------------------------

_NAMED_KEYS = {
    "c-m": "enter",
    "c-j": "enter",
    "c-i": "tab",
    "escape": "escape",
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
    "pageup": "pageup",
    "pagedown": "pagedown",
    "c-c": "c-c",
    "c-r": "c-r",
}


def translate_key(key: Any) -> str | None:
    """prompt_toolkit key -> kernel key name; None for keys we ignore."""
    if isinstance(key, Keys):
        return _NAMED_KEYS.get(key.value)
    if isinstance(key, str) and len(key) == 1 and key.isprintable():
        return key
    return None


def mouse_message(event_type: MouseEventType, button: MouseButton) -> Message | None:
    """Wheel and button presses -> kernel mouse messages; None for the rest."""
    if event_type == MouseEventType.SCROLL_DOWN:
        return Message.SCROLL_DOWN
    if event_type == MouseEventType.SCROLL_UP:
        return Message.SCROLL_UP
    if event_type == MouseEventType.MOUSE_DOWN:
        if button == MouseButton.LEFT:
            return Message.LEFT_MOUSE_CLICK
        if button == MouseButton.RIGHT:
            return Message.RIGHT_MOUSE_CLICK
    return None


class LogControl(FormattedTextControl):
    """Log panel control; mouse events go to on_mouse before the defaults."""

    def __init__(self, *args: Any, on_mouse=None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.on_mouse = on_mouse

    def mouse_handler(self, mouse_event: MouseEvent):
        if self.on_mouse is not None:
            result = self.on_mouse(mouse_event)
            if result is not NotImplemented:
                return result
        return super().mouse_handler(mouse_event)


# ----------------------------
# Fragments
# ----------------------------


def _with_class(fragments: StyleAndTextTuples, cls: str) -> StyleAndTextTuples:
    return [(f"{frag[0]} class:{cls}", frag[1]) for frag in fragments]


def log_fragments(
    rows: list[list[str]],
    selected: int,
    saved: set[int] | frozenset[int] = frozenset(),
) -> StyleAndTextTuples:
    """ANSI rows to fragments, tagging the selected and saved rows."""
    out: StyleAndTextTuples = []
    for i, row in enumerate(rows):
        for line in row:
            fragments = to_formatted_text(ANSI(line))
            if i == selected:
                fragments = _with_class(fragments, "log.selected")
            elif i in saved:
                fragments = _with_class(fragments, "log.saved")
            out.extend(fragments)
            out.append(("", "\n"))
    return out


def selected_line_offset(rows: list[list[str]], selected: int) -> int:
    return sum(len(row) for row in rows[:selected])


def header_fragments(
    repository: str, revset: str, ignore_immutable: bool
) -> StyleAndTextTuples:
    out: StyleAndTextTuples = [
        ("class:header.label", "repository: "),
        ("class:header.value", repository),
        ("", "  "),
        ("class:header.label", "revset: "),
        ("class:header.value", revset),
    ]
    if ignore_immutable:
        out.append(("class:header.flag", "  --ignore-immutable"))
    return out


def info_fragments(lines: list[str] | None) -> StyleAndTextTuples:
    if not lines:
        return []
    return to_formatted_text(ANSI("\n".join(lines)))


# ----------------------------
# Terminal handoff
# ----------------------------


class PromptToolkitTerminal:
    """Terminal owner; hands the screen to child processes on request."""

    def __init__(self) -> None:
        self.app: Application | None = None

    def attach(self, app: Application) -> None:
        self.app = app

    @contextmanager
    def relinquish(self) -> Iterator[None]:
        app = self.app
        if app is None or not app.is_running:
            yield
            return

        # Leaves the alternate screen and restores the cursor.
        app.renderer.erase()
        try:
            with app.input.detach(), app.input.cooked_mode():
                yield
        finally:
            app.renderer.reset()
            app.invalidate()


# ----------------------------
# Application
# ----------------------------


class DashboardUI:
    """Full-screen dashboard: header, log panel, info panel."""

    def __init__(self, kernel: Kernel, terminal: PromptToolkitTerminal | None = None):
        self.kernel = kernel
        self.terminal = terminal
        self._style = _build_style(kernel)
        self._queue_delay = _cfg_float(kernel, "ui.queue_step_delay", 0.05)
        self._tick_scheduled = False

        self.log_window = Window(
            content=LogControl(
                self._log_fragments,
                focusable=True,
                show_cursor=False,
                get_cursor_position=self._cursor_position,
                on_mouse=self.handle_mouse,
            ),
            wrap_lines=False,
            always_hide_cursor=True,
        )
        self.app: Application = self._build_application()
        if terminal is not None:
            terminal.attach(self.app)

    # ---------- layout ----------

    def _build_application(self) -> Application:
        header = Window(
            content=FormattedTextControl(self._header_fragments),
            height=1,
        )
        info = ConditionalContainer(
            HSplit(
                [
                    Window(height=1, char="─", style="class:info.border"),
                    Window(
                        content=FormattedTextControl(self._info_fragments),
                        dont_extend_height=True,
                        wrap_lines=False,
                    ),
                ]
            ),
            filter=Condition(lambda: self.kernel.info_lines is not None),
        )
        layout = Layout(HSplit([header, self.log_window, info]), focused_element=self.log_window)
        return Application(
            layout=layout,
            key_bindings=self.build_key_bindings(),
            style=self._style,
            full_screen=True,
            mouse_support=True,
        )

    def _header_fragments(self) -> StyleAndTextTuples:
        k = self.kernel
        return header_fragments(
            k.display_repository, k.revset, k.global_args.ignore_immutable
        )

    def _log_fragments(self) -> StyleAndTextTuples:
        vm = self.kernel.view_model
        return log_fragments(vm.rows, vm.selected, self.kernel.saved_row_indices())

    def _cursor_position(self) -> Point:
        vm = self.kernel.view_model
        return Point(x=0, y=selected_line_offset(vm.rows, vm.selected))

    def _info_fragments(self) -> StyleAndTextTuples:
        return info_fragments(self.kernel.info_lines)

    # ---------- input ----------

    def _page_lines(self) -> int:
        info = self.log_window.render_info
        if info is None:
            return self.kernel.page_lines
        return max(1, info.window_height)

    def handle_key(self, key: str) -> None:
        self.kernel.page_lines = self._page_lines()
        self.kernel.handle_key(key)
        if not self.kernel.running:
            self.app.exit()
            return
        self._schedule_tick()

    def handle_mouse(self, mouse_event: MouseEvent):
        """Log-panel mouse handler. NotImplemented lets the window scroll itself."""
        message = mouse_message(mouse_event.event_type, mouse_event.button)
        if message is None:
            return NotImplemented
        try:
            # position.y is a content line; the log window never wraps.
            self.kernel.handle_mouse(message, mouse_event.position.y)
        except Exception as e:
            self.app.exit(exception=e)
            return None
        self.app.invalidate()
        return None

    def _schedule_tick(self) -> None:
        if self._tick_scheduled or not self.kernel.queue.is_pending:
            return
        self._tick_scheduled = True
        asyncio.get_running_loop().call_later(self._queue_delay, self._tick)

    def _tick(self) -> None:
        self._tick_scheduled = False
        try:
            self.kernel.step_queue()
        except Exception as e:
            logger.debug("queue step raised %s", type(e).__name__)
            self.app.exit(exception=e)
            return
        self.app.invalidate()
        self._schedule_tick()

    def build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        def _on_key(event) -> None:
            key = translate_key(event.key_sequence[0].key)
            if key is None:
                return
            try:
                self.handle_key(key)
            except Exception as e:
                event.app.exit(exception=e)

        # Named keys are bound explicitly so they outrank prompt_toolkit's
        # built-in bindings for the same keys.
        for name in ("enter", "c-j", "tab", "escape", "up", "down", "left",
                     "right", "pageup", "pagedown", "c-c", "c-r"):
            kb.add(name, eager=True)(_on_key)
        kb.add(Keys.Any)(_on_key)

        return kb

    # ---------- public API ----------

    def run(self) -> None:
        self.app.run()
