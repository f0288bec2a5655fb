# tests/unit/core/test_transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

import pytest

from stateguard.core.commands import CallableCommand, Composite, NullCommand
from stateguard.core.errors import CommandExecutionError, RuleConstructionError, RuleEvaluationError
from stateguard.core.rules import AndRule, TrueRule
from stateguard.core.states import State
from stateguard.core.transitions import STATE_CONCATENATOR, Transition, transition_name
from stateguard.runtime.registry import default_commands, default_rules


@pytest.fixture
def states():
    return State("a"), State("b")


def test_transition_name():
    assert STATE_CONCATENATOR == "_to_"
    assert transition_name("new", "a") == "new_to_a"


def test_transition_init(states):
    a, b = states
    t = Transition(a, b, description="first")
    assert t.name == "a_to_b"
    assert t.state_from is a
    assert t.state_to is b
    assert t.event == "a_to_b"
    assert t.description == "first"
    assert a.has_transition("a_to_b")


def test_transition_event(states):
    t = Transition(*states, event="go")
    assert t.event == "go"
    assert t.is_triggered_by("go")
    assert t.is_triggered_by("a_to_b")
    assert not t.is_triggered_by("stop")
    assert not t.is_triggered_by(None)


def test_transition_is_immutable(states):
    t = Transition(*states)
    with pytest.raises(AttributeError):
        t.name = "other"
    t.description = "changed"
    assert t.description == "changed"


def test_get_rule_empty_is_true_rule(context, states):
    rule = Transition(*states).get_rule(context, default_rules())
    assert isinstance(rule, TrueRule)


def test_get_rule_chains_with_and(context, states):
    rule = Transition(*states, rule="true, false").get_rule(context, default_rules())
    assert isinstance(rule, AndRule)
    assert str(rule) == "((TrueRule and TrueRule) and FalseRule)"
    assert rule.applies() is False


def test_get_rule_accepts_sequence(context, states):
    rule = Transition(*states, rule=["true"]).get_rule(context, default_rules())
    assert str(rule) == "(TrueRule and TrueRule)"


def test_get_rule_unknown_identifier(context, states):
    with pytest.raises(RuleConstructionError):
        Transition(*states, rule="missing").get_rule(context, default_rules())


def test_get_command(context, states):
    commands = default_commands()
    assert isinstance(Transition(*states).get_command(context, commands), NullCommand)
    command = Transition(*states, command="null,null").get_command(context, commands)
    assert isinstance(command, Composite)
    assert len(command) == 2


def test_can_checks_guard_callback_before_rule(context, states):
    guard = MagicMock(return_value=False)
    t = Transition(*states, rule="exception", guard_callback=guard)
    assert t.can(context, default_rules(), "go") is False
    guard.assert_called_once_with(context.get_entity(), "go")


def test_can_evaluates_rule(context, states):
    rules = default_rules()
    assert Transition(*states, rule="true").can(context, rules) is True
    assert Transition(State("x"), State("y"), rule="false").can(context, rules) is False
    with pytest.raises(RuleEvaluationError):
        Transition(State("p"), State("q"), rule="exception").can(context, rules)


def test_can_wraps_guard_callback_errors(context, states):
    def fail(entity, event):
        raise KeyError("nope")

    with pytest.raises(RuleEvaluationError) as exc_info:
        Transition(*states, guard_callback=fail).can(context, default_rules())
    assert isinstance(exc_info.value.__cause__, KeyError)


def test_process_runs_callback_then_command(context, states):
    log = []
    commands = default_commands()
    commands.register("record", lambda entity: CallableCommand(log.append, "command"))
    t = Transition(
        *states,
        command="record",
        transition_callback=lambda entity, event: log.append(f"callback:{event}"),
    )
    t.process(context, commands, "go")
    assert log == ["callback:go", "command"]


def test_process_wraps_callback_errors(context, states):
    def fail(entity, event):
        raise ValueError("bad")

    with pytest.raises(CommandExecutionError):
        Transition(*states, transition_callback=fail).process(context, default_commands())
    with pytest.raises(CommandExecutionError):
        Transition(State("x"), State("y"), command="exception").process(context, default_commands())


def test_copy_to():
    guard = MagicMock(return_value=True)
    template = Transition(State("regex:.*"), State("b"), event="go", rule="true", command="null", guard_callback=guard)
    x = State("x")
    copy = template.copy_to(x, State("b"))
    assert copy.name == "x_to_b"
    assert copy.event == "go"
    assert copy.rule == "true"
    assert copy.command == "null"
    assert copy.guard_callback is guard
    assert x.has_transition("x_to_b")


def test_copy_to_does_not_carry_name_as_event():
    template = Transition(State("regex:.*"), State("b"))
    copy = template.copy_to(State("x"), State("b"))
    assert copy.event == "x_to_b"


def test_regex_destination_template_is_not_registered_on_origin():
    a = State("a")
    template = Transition(a, State("regex:.*"))
    assert a.transition_names == []
    copy = template.copy_to(a, State("x"))
    assert a.transition_names == [copy.name]
