# tests/test_ui.py
from __future__ import annotations

import pytest

prompt_toolkit = pytest.importorskip("prompt_toolkit")

from prompt_toolkit.application import create_app_session  # noqa: E402
from prompt_toolkit.data_structures import Point  # noqa: E402
from prompt_toolkit.input import create_pipe_input  # noqa: E402
from prompt_toolkit.keys import Keys  # noqa: E402
from prompt_toolkit.mouse_events import (  # noqa: E402
    MouseButton,
    MouseEvent,
    MouseEventType,
)
from prompt_toolkit.output import DummyOutput  # noqa: E402

import jjdag.ui as ui  # noqa: E402
from jjdag.config import YAMLConfig  # noqa: E402
from jjdag.kernel import Kernel  # noqa: E402
from jjdag.log_tree import JjLog  # noqa: E402
from jjdag.messages import Message  # noqa: E402


def record(change_id: str, wc: bool = False) -> str:
    return f"\x1e{change_id}\x1f{int(wc)}\x1f1\x1d"


LOG = (
    f"@  {record('wwww', wc=True)}wwww dev\n"
    "│  wip\n"
    f"○  {record('kkkk')}kkkk dev\n"
    "│  add parser\n"
)


class FakeRunner:
    def __init__(self):
        self.calls = []

    def run(self, command):
        self.calls.append(command.args)
        if command.args[0] == "log":
            return LOG
        return ""


def make_kernel(config: dict | None = None) -> Kernel:
    runner = FakeRunner()
    kernel = Kernel(
        view_model=JjLog(runner),
        runner=runner,
        config=YAMLConfig(config or {}),
        repository="/srv/repo",
        revset="::",
    )
    kernel.start()
    return kernel


def text_of(fragments) -> str:
    return "".join(f[1] for f in fragments)


@pytest.fixture
def app_session():
    with create_pipe_input() as inp:
        with create_app_session(input=inp, output=DummyOutput()):
            yield inp


# ----------------------------------------------------------------
# Key translation
# ----------------------------------------------------------------


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        (Keys.ControlM, "enter"),
        (Keys.Tab, "tab"),
        (Keys.Escape, "escape"),
        (Keys.Up, "up"),
        (Keys.PageDown, "pagedown"),
        (Keys.ControlC, "c-c"),
        (Keys.ControlR, "c-r"),
        (Keys.ControlX, None),
        ("a", "a"),
        ("K", "K"),
        (" ", " "),
        ("\x1b", None),
        ("ab", None),
    ],
)
def test_translate_key(key, expected):
    assert ui.translate_key(key) == expected


@pytest.mark.parametrize(
    ("event_type", "button", "expected"),
    [
        (MouseEventType.SCROLL_DOWN, MouseButton.NONE, Message.SCROLL_DOWN),
        (MouseEventType.SCROLL_UP, MouseButton.NONE, Message.SCROLL_UP),
        (MouseEventType.MOUSE_DOWN, MouseButton.LEFT, Message.LEFT_MOUSE_CLICK),
        (MouseEventType.MOUSE_DOWN, MouseButton.RIGHT, Message.RIGHT_MOUSE_CLICK),
        (MouseEventType.MOUSE_DOWN, MouseButton.MIDDLE, None),
        (MouseEventType.MOUSE_UP, MouseButton.LEFT, None),
        (MouseEventType.MOUSE_MOVE, MouseButton.NONE, None),
    ],
)
def test_mouse_message(event_type, button, expected):
    assert ui.mouse_message(event_type, button) == expected


# ----------------------------------------------------------------
# Fragments
# ----------------------------------------------------------------


def test_log_fragments_mark_selected_and_saved_rows():
    fragments = ui.log_fragments([["a", "b"], ["c"], ["d"]], selected=1, saved={0})

    assert text_of(fragments) == "a\nb\nc\nd\n"
    styles = {text: style for style, text in fragments if text != "\n"}
    assert "class:log.saved" in styles["a"]
    assert "class:log.saved" in styles["b"]
    assert "class:log.selected" in styles["c"]
    assert "class:log" not in styles["d"]


def test_log_fragments_keep_ansi_colours():
    fragments = ui.log_fragments([["\x1b[31mx\x1b[0m"]], selected=0)

    (style,) = [s for s, t in fragments if t == "x"]
    assert "ansired" in style
    assert "class:log.selected" in style


def test_selected_line_offset():
    rows = [["a", "b"], ["c"], ["d", "e", "f"]]

    assert ui.selected_line_offset(rows, 0) == 0
    assert ui.selected_line_offset(rows, 2) == 3


def test_header_fragments():
    assert text_of(ui.header_fragments("~/proj", "::", False)) == (
        "repository: ~/proj  revset: ::"
    )

    flagged = ui.header_fragments("~/proj", "::", True)
    assert flagged[-1] == ("class:header.flag", "  --ignore-immutable")


def test_info_fragments():
    assert ui.info_fragments(None) == []
    assert ui.info_fragments([]) == []
    assert text_of(ui.info_fragments(["one", "\x1b[32mtwo\x1b[0m"])) == "one\ntwo"


# ----------------------------------------------------------------
# Style and config helpers
# ----------------------------------------------------------------


def test_build_style_defaults_without_kernel():
    style = ui._build_style(None)

    assert ("log.selected", "bg:#282a36 bold") in style.style_rules


def test_build_style_applies_string_overrides():
    kernel = make_kernel(
        {"ui": {"theme": {"style": {"log.selected": "reverse", "bad": 3}}}}
    )

    rules = dict(ui._build_style(kernel).style_rules)

    assert rules["log.selected"] == "reverse"
    assert "bad" not in rules


def test_cfg_float_falls_back_on_bad_values():
    kernel = make_kernel({"ui": {"queue_step_delay": "soon"}})

    assert ui._cfg_float(kernel, "ui.queue_step_delay", 0.05) == 0.05
    assert ui._cfg_float(None, "ui.queue_step_delay", 0.1) == 0.1


# ----------------------------------------------------------------
# Terminal handoff
# ----------------------------------------------------------------


def test_relinquish_without_app_is_a_no_op():
    terminal = ui.PromptToolkitTerminal()
    ran = []

    with terminal.relinquish():
        ran.append(True)

    assert ran == [True]


def test_relinquish_with_stopped_app_is_a_no_op():
    class StoppedApp:
        is_running = False

    terminal = ui.PromptToolkitTerminal()
    terminal.attach(StoppedApp())

    with terminal.relinquish():
        pass


# ----------------------------------------------------------------
# DashboardUI
# ----------------------------------------------------------------


def test_dashboard_attaches_terminal(app_session):
    terminal = ui.PromptToolkitTerminal()

    dashboard = ui.DashboardUI(make_kernel(), terminal)

    assert terminal.app is dashboard.app


def test_dashboard_renders_kernel_state(app_session):
    kernel = make_kernel()
    dashboard = ui.DashboardUI(kernel)

    assert text_of(dashboard._header_fragments()) == "repository: /srv/repo  revset: ::"
    assert text_of(dashboard._log_fragments()).startswith("@  wwww dev\n")
    assert dashboard._cursor_position().y == 0

    dashboard.handle_key("j")

    assert dashboard._cursor_position().y == 2


def test_dashboard_handle_key_uses_fallback_page_before_render(app_session):
    kernel = make_kernel({"ui": {"page_lines_fallback": 5}})
    dashboard = ui.DashboardUI(kernel)

    dashboard.handle_key("?")

    assert kernel.page_lines == 5
    assert kernel.info_lines == kernel.command_tree.help_lines()
    assert not dashboard._tick_scheduled


def test_dashboard_quits_on_q(app_session):
    kernel = make_kernel()
    dashboard = ui.DashboardUI(kernel)

    app_session.send_text("jq")
    dashboard.run()

    assert not kernel.running
    assert kernel.view_model.selected == 1


def mouse_event(event_type, button=MouseButton.NONE, y: int = 0) -> MouseEvent:
    return MouseEvent(
        position=Point(x=0, y=y),
        event_type=event_type,
        button=button,
        modifiers=frozenset(),
    )


def test_dashboard_enables_mouse(app_session):
    dashboard = ui.DashboardUI(make_kernel())

    assert dashboard.app.mouse_support()


def test_log_control_click_selects_row(app_session):
    kernel = make_kernel()
    dashboard = ui.DashboardUI(kernel)
    control = dashboard.log_window.content

    result = control.mouse_handler(
        mouse_event(MouseEventType.MOUSE_DOWN, MouseButton.LEFT, y=2)
    )

    assert result is None
    assert kernel.view_model.selected == 1
    assert dashboard._cursor_position().y == 2


def test_log_control_wheel_moves_selection(app_session):
    kernel = make_kernel()
    dashboard = ui.DashboardUI(kernel)
    control = dashboard.log_window.content

    control.mouse_handler(mouse_event(MouseEventType.SCROLL_DOWN))
    assert kernel.view_model.selected == 1

    control.mouse_handler(mouse_event(MouseEventType.SCROLL_UP))
    assert kernel.view_model.selected == 0


def test_unhandled_mouse_event_falls_through(app_session):
    kernel = make_kernel()
    dashboard = ui.DashboardUI(kernel)

    result = dashboard.handle_mouse(mouse_event(MouseEventType.MOUSE_MOVE))

    assert result is NotImplemented
    assert kernel.view_model.selected == 0
