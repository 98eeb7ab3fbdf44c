"""
Tests that verify Protocol definitions are valid and implementations comply.
These tests don't test behavior - just that contracts exist.
"""

from __future__ import annotations

import pytest

from jjdag import interfaces
from jjdag.config import YAMLConfig
from jjdag.editor import EditorInput
from jjdag.executor import JjRunner
from jjdag.log_tree import JjLog

VIEW_MODEL_METHODS = [
    "load",
    "current_selection_position",
    "resolve",
    "parent_of",
    "children_of",
    "flat_index",
    "toggle_fold",
    "expand",
    "flatten",
    "select",
    "working_copy_index",
    "find",
]

CONFIG_METHODS = ["get_path", "get_int", "get_float", "get_str_list"]


def test_view_model_protocol_exists():
    """ViewModel Protocol must define the navigation and loading methods."""
    protocol = interfaces.ViewModel

    for method in VIEW_MODEL_METHODS:
        assert hasattr(protocol, method), f"ViewModel missing {method}"


def test_runner_and_terminal_protocols_exist():
    assert hasattr(interfaces.Runner, "run")
    assert hasattr(interfaces.Terminal, "relinquish")
    assert hasattr(interfaces.InputService, "get_input")


def test_config_model_protocol_exists():
    for method in CONFIG_METHODS:
        assert hasattr(interfaces.ConfigModel, method), f"ConfigModel missing {method}"


@pytest.mark.parametrize(
    ("implementation", "methods"),
    [
        (JjLog, VIEW_MODEL_METHODS),
        (JjRunner, ["run"]),
        (EditorInput, ["get_input"]),
        (YAMLConfig, CONFIG_METHODS),
    ],
)
def test_implementations_comply(implementation, methods):
    """Concrete classes must provide every Protocol method."""
    for method in methods:
        assert callable(getattr(implementation, method, None)), (
            f"{implementation.__name__} missing {method}"
        )


def test_view_model_state_attributes():
    view = JjLog(runner=None)

    assert view.rows == []
    assert view.positions == []
    assert view.selected == 0
