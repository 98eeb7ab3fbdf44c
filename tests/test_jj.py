# tests/test_jj.py
"""
Invocation descriptor tests: argv layout, modes, surfaced streams.
"""
from __future__ import annotations

from jjdag import jj
from jjdag.jj import GlobalArgs, JjSettings, RunMode, Stream
from jjdag.utils import strip_ansi

GA = GlobalArgs("/repo")
SETTINGS = JjSettings()


class FakeConfig:
    def __init__(self, data: dict):
        self.data = data

    def get_path(self, path, default=None):
        return self.data.get(path, default)

    def get_str_list(self, path, default):
        return list(self.data.get(path, default))


def test_argv_prepends_global_flags() -> None:
    argv = jj.edit("kxqv", GA).argv(SETTINGS)

    assert argv == ["jj", "--color", "always", "--repository", "/repo", "edit", "kxqv"]


def test_argv_ignore_immutable() -> None:
    argv = jj.abandon("kxqv", None, GA.toggled()).argv(SETTINGS)

    assert argv[-3:] == ["--ignore-immutable", "abandon", "kxqv"]


def test_global_args_toggle_round_trip() -> None:
    assert GA.toggled().ignore_immutable
    assert GA.toggled().toggled() == GA


def test_interactive_argv_adds_pager_config() -> None:
    argv = jj.show("kxqv", GA).argv(SETTINGS)

    assert argv[:7] == [
        "jj",
        "--color",
        "always",
        "--config",
        "ui.pager=:builtin",
        "--config",
        "ui.streampager.interface=full-screen-clear-output",
    ]
    assert argv[-2:] == ["show", "kxqv"]


def test_log_command_surfaces_stdout_and_never_syncs() -> None:
    settings = JjSettings(log_node_template='"o"')

    command = jj.log("::@", GA, settings)

    assert command.stream is Stream.STDOUT
    assert not command.sync
    assert command.mode is RunMode.CAPTURED
    argv = command.argv(settings)
    assert "templates.log_node=\"o\"" in argv
    assert argv[argv.index("--revisions") + 1] == "::@"


def test_log_command_without_node_template() -> None:
    argv = jj.log("@", GA, JjSettings()).argv(JjSettings())

    assert not any(a.startswith("templates.log_node") for a in argv)


def test_views_are_interactive_without_sync() -> None:
    for command in (
        jj.show("x", GA),
        jj.diff_file_interactive("x", "a.py", GA),
        jj.diff_from_to("x", "@", GA),
        jj.interdiff("x", "@", None, GA),
        jj.evolog("x", True, GA),
        jj.status(GA),
    ):
        assert command.interactive
        assert not command.sync
        assert command.stream is Stream.STDERR


def test_editor_commands_are_interactive_with_sync() -> None:
    for command in (
        jj.describe("x", GA),
        jj.commit(None, GA),
        jj.squash_into("x", "y", None, GA),
        jj.squash("x", None, True, GA),
    ):
        assert command.interactive
        assert command.sync


def test_captured_actions_sync() -> None:
    command = jj.squash("x", "a.py", False, GA)

    assert not command.interactive
    assert command.sync
    assert command.args == ("squash", "--revision", "x", "a.py")


def test_action_argument_shapes() -> None:
    assert jj.abandon("x", "--retain-bookmarks", GA).args == (
        "abandon", "--retain-bookmarks", "x",
    )
    assert jj.absorb("x", "y", "f", GA).args == ("absorb", "--from", "x", "--into", "y", "f")
    assert jj.duplicate("x", "--onto", "y", GA).args == ("duplicate", "x", "--onto", "y")
    assert jj.new("x", ["--no-edit", "--insert-before"], GA).args == (
        "new", "--no-edit", "--insert-before", "x",
    )
    assert jj.next_prev("prev", "--edit", "3", GA).args == ("prev", "--edit", "3")
    assert jj.rebase("--branch", "x", "--onto", "trunk()", GA).args == (
        "rebase", "--branch", "x", "--onto", "trunk()",
    )
    assert jj.revert("x", "--onto", "@", GA).args == ("revert", "-r", "x", "--onto", "@")
    assert jj.metaedit("x", "--author", "A <a@b>", GA).args == (
        "metaedit", "--author", "A <a@b>", "x",
    )
    assert jj.bookmark_set(["a", "b"], "x", GA).args == (
        "bookmark", "set", "a", "b", "--revision", "x",
    )
    assert jj.bookmark_forget(["a"], True, GA).args == (
        "bookmark", "forget", "--include-remotes", "a",
    )
    assert jj.git_push("--named", "feat=x", GA).args == ("git", "push", "--named", "feat=x")


def test_display_line_quotes_arguments() -> None:
    line = strip_ansi(jj.parallelize("trunk()..@", GA).display_line())

    assert line == "❯ jj parallelize 'trunk()..@'"


def test_to_lines_adds_blank_line() -> None:
    lines = jj.undo(GA).to_lines()

    assert strip_ansi(lines[0]) == "❯ jj undo"
    assert lines[1] == ""


def test_settings_from_config() -> None:
    cfg = FakeConfig(
        {
            "jj.executable": "/opt/jj",
            "jj.global_args": ["--no-pager"],
            "jj.interactive_args": [],
            "jj.log_node_template": "  'x'  ",
        }
    )

    settings = JjSettings.from_config(cfg)

    assert settings.executable == "/opt/jj"
    assert settings.global_args == ("--no-pager",)
    assert settings.interactive_args == ()
    assert settings.log_node_template == "'x'"


def test_settings_from_config_defaults() -> None:
    settings = JjSettings.from_config(FakeConfig({}))

    assert settings == JjSettings()
