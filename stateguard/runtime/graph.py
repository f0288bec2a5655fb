# stateguard/runtime/graph.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""Graph-based storage of states and transitions, with regex expansion."""

import logging
from typing import Dict, List, Optional

from stateguard.core.errors import NoInitialStateError
from stateguard.core.states import State
from stateguard.core.transitions import Transition, transition_name
from stateguard.interfaces.types import StateName, TransitionName

logger = logging.getLogger(__name__)


class StateGraph:
    """
    Owns every state and transition of a machine, keyed by name.

    States refer to their outgoing transitions by name only, so the graph is the
    single place where transitions live. Regex states are selectors and never
    appear in ``states``.
    """

    def __init__(self) -> None:
        self._states: Dict[StateName, State] = {}
        self._transitions: Dict[TransitionName, Transition] = {}

    @property
    def states(self) -> Dict[StateName, State]:
        return dict(self._states)

    @property
    def transitions(self) -> Dict[TransitionName, Transition]:
        return dict(self._transitions)

    def get_state(self, name: StateName) -> Optional[State]:
        return self._states.get(name)

    def get_transition(self, name: TransitionName) -> Optional[Transition]:
        return self._transitions.get(name)

    def has_state(self, name: StateName) -> bool:
        return name in self._states

    def has_transition(self, name: TransitionName) -> bool:
        return name in self._transitions

    def add_state(self, state: State) -> bool:
        """
        :return: False if a state with that name is known or the state is a regex selector.
        """
        if state.is_regex() or state.name in self._states:
            return False
        self._states[state.name] = state
        return True

    def add_transition(self, transition: Transition) -> int:
        """
        Add a transition, expanding it first when an endpoint is a regex state.

        :return: Number of transitions newly added to the graph.
        """
        if transition.state_from.is_regex() or transition.state_to.is_regex():
            return self._add_regex_transition(transition)

        is_new = transition.name not in self._transitions
        self._transitions[transition.name] = transition
        self.add_state(transition.state_from)
        self._states[transition.state_from.name].add_transition(transition)
        self.add_state(transition.state_to)
        return 1 if is_new else 0

    def _add_regex_transition(self, template: Transition) -> int:
        # concrete endpoints first, so they can take part in the expansion
        self.add_state(template.state_from)
        self.add_state(template.state_to)

        origins = self._select(template.state_from)
        destinations = self._select(template.state_to)

        added = 0
        for origin in origins:
            if origin.is_final():
                continue
            for destination in destinations:
                if origin.name == destination.name:
                    continue
                if transition_name(origin.name, destination.name) in self._transitions:
                    continue
                concrete = template.copy_to(origin, destination)
                self._transitions[concrete.name] = concrete
                added += 1
        logger.debug("Expanded %s into %d transition(s)", template.name, added)
        return added

    def _select(self, state: State) -> List[State]:
        if not state.is_regex():
            return [self._states[state.name]]
        return [known for name, known in self._states.items() if state.matches(name)]

    def outgoing(self, state: State) -> List[Transition]:
        """Outgoing transitions of ``state`` in declaration order."""
        known = self._states.get(state.name, state)
        return [self._transitions[name] for name in known.transition_names if name in self._transitions]

    @property
    def initial_state(self) -> State:
        """
        :raises NoInitialStateError: If no state of type initial is known.
        """
        for state in self._states.values():
            if state.is_initial():
                return state
        raise NoInitialStateError("no initial state found in the state graph")

    def validate(self) -> List[str]:
        """
        Report structural problems without raising.

        :return: Human readable descriptions, empty when the graph is consistent.
        """
        problems: List[str] = []
        initials = [s.name for s in self._states.values() if s.is_initial()]
        if len(initials) > 1:
            problems.append(f"more than one initial state: {', '.join(initials)}")
        for name, transition in self._transitions.items():
            for endpoint in (transition.state_from, transition.state_to):
                if endpoint.name not in self._states:
                    problems.append(f"transition '{name}' references unknown state '{endpoint.name}'")
        for state in self._states.values():
            for name in state.transition_names:
                if name not in self._transitions:
                    problems.append(f"state '{state.name}' lists unknown transition '{name}'")
        return problems

    def __len__(self) -> int:
        return len(self._transitions)
