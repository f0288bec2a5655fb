# stateguard/core/states.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from stateguard.core.errors import CallbackError, FSMError
from stateguard.interfaces.types import ActionCallback, ChainedIdentifiers, EventName, StateName, TransitionName

if TYPE_CHECKING:
    from stateguard.core.transitions import Transition
    from stateguard.runtime.context import Context
    from stateguard.runtime.registry import CommandRegistry

STATE_UNKNOWN = "unknown"
STATE_NEW = "new"
STATE_DONE = "done"

REGEX_PREFIX = "regex:"
NEGATED_REGEX_PREFIX = "not-regex:"


class StateType(Enum):
    INITIAL = "initial"
    NORMAL = "normal"
    FINAL = "final"
    REGEX = "regex"


def is_regex_name(name: str) -> bool:
    return name.startswith(REGEX_PREFIX) or name.startswith(NEGATED_REGEX_PREFIX)


class State:
    """
    A named node in the machine's graph.

    A state does not own its outgoing transitions. It keeps their names, in
    declaration order, and the owning graph resolves them. Final and regex states
    never have outgoing transitions of their own.

    A regex state is a selector, written ``regex:<pattern>`` or
    ``not-regex:<pattern>``, that matches concrete state names when a transition
    is added to the graph. It is never registered as a real state.
    """

    def __init__(
        self,
        name: StateName,
        state_type: StateType = StateType.NORMAL,
        entry_command: ChainedIdentifiers = "",
        exit_command: ChainedIdentifiers = "",
        entry_callback: Optional[ActionCallback] = None,
        exit_callback: Optional[ActionCallback] = None,
        description: str = "",
    ) -> None:
        """
        :param name: Unique name of the state within its graph.
        :param state_type: Initial, normal, final or regex. Regex names force REGEX.
        :param entry_command: Command identifiers run when the state is entered.
        :param exit_command: Command identifiers run when the state is exited.
        :param entry_callback: Called with ``(entity, event)`` before the entry command.
        :param exit_callback: Called with ``(entity, event)`` before the exit command.
        :param description: Free text.
        """
        if is_regex_name(name):
            state_type = StateType.REGEX
        self._name = name
        self._type = StateType(state_type)
        self.entry_command = entry_command
        self.exit_command = exit_command
        self.entry_callback = entry_callback
        self.exit_callback = exit_callback
        self.description = description
        self._transitions: List[TransitionName] = []

    @property
    def name(self) -> StateName:
        return self._name

    @property
    def type(self) -> StateType:
        return self._type

    def is_initial(self) -> bool:
        return self._type is StateType.INITIAL

    def is_normal(self) -> bool:
        return self._type is StateType.NORMAL

    def is_final(self) -> bool:
        return self._type is StateType.FINAL

    def is_regex(self) -> bool:
        return self._type is StateType.REGEX

    def is_negated_regex(self) -> bool:
        return self.is_regex() and self._name.startswith(NEGATED_REGEX_PREFIX)

    @property
    def regex_pattern(self) -> Optional[str]:
        if not self.is_regex():
            return None
        prefix = NEGATED_REGEX_PREFIX if self.is_negated_regex() else REGEX_PREFIX
        return self._name[len(prefix) :]

    def matches(self, name: StateName) -> bool:
        """
        Whether a concrete state name is selected by this regex state.

        :return: False for non-regex states.
        """
        pattern = self.regex_pattern
        if pattern is None:
            return False
        found = re.search(pattern, name) is not None
        return not found if self.is_negated_regex() else found

    def add_transition(self, transition: "Transition") -> bool:
        """
        Record an outgoing transition by name.

        :return: False if the state is final or regex, or the name is already listed.
        """
        if self.is_final() or self.is_regex():
            return False
        if transition.name in self._transitions:
            return False
        self._transitions.append(transition.name)
        return True

    def has_transition(self, name: TransitionName) -> bool:
        return name in self._transitions

    @property
    def transition_names(self) -> List[TransitionName]:
        return list(self._transitions)

    def entry_action(self, context: "Context", commands: "CommandRegistry", event: Optional[EventName] = None) -> None:
        self._action(self.entry_callback, self.entry_command, context, commands, event)

    def exit_action(self, context: "Context", commands: "CommandRegistry", event: Optional[EventName] = None) -> None:
        self._action(self.exit_callback, self.exit_command, context, commands, event)

    def _action(
        self,
        callback: Optional[ActionCallback],
        command: ChainedIdentifiers,
        context: "Context",
        commands: "CommandRegistry",
        event: Optional[EventName],
    ) -> None:
        entity = context.get_entity()
        if callback is not None:
            try:
                callback(entity, event)
            except FSMError:
                raise
            except Exception as e:
                raise CallbackError(f"callback of state '{self._name}' failed: {e}") from e
        commands.build(command, entity, event).execute()

    def __repr__(self) -> str:
        return f"State({self._name!r}, {self._type.value})"

    def __str__(self) -> str:
        return self._name
