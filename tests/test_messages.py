from __future__ import annotations

from jjdag.command_tree import CommandTree
from jjdag.commands import BUILDERS
from jjdag.config import YAMLConfig
from jjdag.kernel import GLOBAL_KEYS, Kernel
from jjdag.log_tree import JjLog
from jjdag.messages import META_MESSAGES, NAVIGATION_MESSAGES, Message, is_external_action


def test_navigation_and_meta_are_not_external():
    for message in NAVIGATION_MESSAGES | META_MESSAGES:
        assert not is_external_action(message)

    assert is_external_action(Message.ABANDON)
    assert is_external_action(Message.STATUS)


def test_every_external_action_has_a_builder():
    external = {m for m in Message if is_external_action(m)}

    assert external == set(BUILDERS)


def test_every_external_action_is_reachable_from_a_chord():
    tree = CommandTree()
    bound = set()

    def walk(node):
        if node.action is not None:
            bound.add(node.action)
        for child in (node.children or {}).values():
            walk(child)

    walk(tree.root)

    external = {m for m in Message if is_external_action(m)}
    assert external <= bound


def test_every_internal_message_has_a_handler():
    kernel = Kernel(
        view_model=JjLog(runner=None),
        runner=None,
        config=YAMLConfig({}),
        repository="/repo",
        revset="::",
    )
    internal = NAVIGATION_MESSAGES | META_MESSAGES

    assert set(kernel._handlers) == internal
    assert set(GLOBAL_KEYS.values()) <= internal
