# stateguard/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from stateguard.core.errors import CommandExecutionError, FSMError, RuleEvaluationError
from stateguard.core.rules import Rule
from stateguard.core.states import State
from stateguard.interfaces.protocols import CommandProtocol
from stateguard.interfaces.types import (
    ActionCallback,
    ChainedIdentifiers,
    EventName,
    GuardCallback,
    StateName,
    TransitionName,
)

if TYPE_CHECKING:
    from stateguard.runtime.context import Context
    from stateguard.runtime.registry import CommandRegistry, RuleRegistry

STATE_CONCATENATOR = "_to_"


def transition_name(from_name: StateName, to_name: StateName) -> TransitionName:
    """Canonical name of the transition between two states, e.g. ``new_to_a``."""
    return f"{from_name}{STATE_CONCATENATOR}{to_name}"


class Transition:
    """
    A directed edge between two states, guarded by rules and acting through
    commands. Its name is derived from the endpoint names and is unique per pair.

    Constructing a transition registers it on ``state_from`` unless ``state_to`` is
    a regex selector; such a template is only a source for expansion. After
    construction only ``description`` may change.
    """

    def __init__(
        self,
        state_from: State,
        state_to: State,
        event: Optional[EventName] = None,
        rule: ChainedIdentifiers = "",
        command: ChainedIdentifiers = "",
        guard_callback: Optional[GuardCallback] = None,
        transition_callback: Optional[ActionCallback] = None,
        description: str = "",
    ) -> None:
        """
        :param state_from: Origin state.
        :param state_to: Destination state.
        :param event: Event name triggering this transition. Defaults to the name.
        :param rule: Rule identifiers, AND-composed when evaluated.
        :param command: Command identifiers, run in order when the transition fires.
        :param guard_callback: Called with ``(entity, event)``, must return truthy.
        :param transition_callback: Called with ``(entity, event)`` before the command.
        :param description: Free text.
        """
        self._state_from = state_from
        self._state_to = state_to
        self._name = transition_name(state_from.name, state_to.name)
        self._event = event or self._name
        self._rule = rule
        self._command = command
        self._guard_callback = guard_callback
        self._transition_callback = transition_callback
        self.description = description
        if not state_to.is_regex():
            state_from.add_transition(self)

    @property
    def name(self) -> TransitionName:
        return self._name

    @property
    def state_from(self) -> State:
        return self._state_from

    @property
    def state_to(self) -> State:
        return self._state_to

    @property
    def event(self) -> EventName:
        return self._event

    @property
    def rule(self) -> ChainedIdentifiers:
        return self._rule

    @property
    def command(self) -> ChainedIdentifiers:
        return self._command

    @property
    def guard_callback(self) -> Optional[GuardCallback]:
        return self._guard_callback

    @property
    def transition_callback(self) -> Optional[ActionCallback]:
        return self._transition_callback

    def is_triggered_by(self, event: Optional[EventName]) -> bool:
        """Matches the configured event, or the transition name as a fallback."""
        return event is not None and (event == self._event or event == self._name)

    def get_rule(self, context: "Context", rules: "RuleRegistry") -> Rule:
        return rules.build(self._rule, context.get_entity())

    def get_command(
        self, context: "Context", commands: "CommandRegistry", event: Optional[EventName] = None
    ) -> CommandProtocol:
        return commands.build(self._command, context.get_entity(), event)

    def can(self, context: "Context", rules: "RuleRegistry", event: Optional[EventName] = None) -> bool:
        """
        Check the guard callback and then the rule.

        :return: True if both pass.
        :raises RuleEvaluationError: If either fails with a foreign exception.
        """
        if self._guard_callback is not None:
            try:
                allowed = self._guard_callback(context.get_entity(), event)
            except FSMError:
                raise
            except Exception as e:
                raise RuleEvaluationError(
                    f"guard callback of '{self._name}' failed: {e}", RuleEvaluationError.GENERAL
                ) from e
            if not allowed:
                return False
        return self.get_rule(context, rules).applies()

    def process(self, context: "Context", commands: "CommandRegistry", event: Optional[EventName] = None) -> None:
        """
        Run the transition callback and then the command.

        :raises CommandExecutionError: If either fails with a foreign exception.
        """
        if self._transition_callback is not None:
            try:
                self._transition_callback(context.get_entity(), event)
            except FSMError:
                raise
            except Exception as e:
                raise CommandExecutionError(f"transition callback of '{self._name}' failed: {e}") from e
        self.get_command(context, commands, event).execute()

    def copy_to(self, state_from: State, state_to: State) -> "Transition":
        """
        Build a transition between other endpoints with the same event, guards and
        actions. An event equal to this transition's name is not carried over.
        """
        event = None if self._event == self._name else self._event
        return Transition(
            state_from,
            state_to,
            event=event,
            rule=self._rule,
            command=self._command,
            guard_callback=self._guard_callback,
            transition_callback=self._transition_callback,
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"Transition({self._name!r}, event={self._event!r})"

    def __str__(self) -> str:
        return self._name
