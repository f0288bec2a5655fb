# stateguard/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
The state machine drives one domain entity through a graph of named states.

The machine is stateless with respect to the entity: its current state is read
from, and written to, the persistence adapter of its context. A transition goes
through a fixed pipeline once its guards pass:

    pre-process -> exit state -> transition -> persist -> enter state -> post-process

Each step offers a hook for subclasses and an optional callback on the entity.
Persistence happens before the entry actions, and nothing is rolled back when a
later step fails.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, List, Optional

from stateguard.core.errors import (
    CallbackError,
    ConfigurationError,
    ContextMismatchError,
    FSMError,
    NoCurrentStateError,
    NoInitialStateError,
    TransitionError,
    TransitionNotAllowedError,
    TransitionNotFoundError,
)
from stateguard.core.states import STATE_UNKNOWN, State
from stateguard.core.transitions import Transition
from stateguard.interfaces.protocols import (
    CanTransitionCallback,
    EnterStateCallback,
    ExitStateCallback,
    TransitionCallback,
)
from stateguard.interfaces.types import EventName, StateName, TransitionName
from stateguard.runtime.context import Context
from stateguard.runtime.graph import StateGraph
from stateguard.runtime.registry import CommandRegistry, RuleRegistry, default_commands, default_rules

logger = logging.getLogger(__name__)

_ENTITY_CALLBACKS = frozenset({"on_check_can_transition", "on_exit_state", "on_transition", "on_enter_state"})


class MachineStatus(Enum):
    UNCONFIGURED = auto()  # no context
    BOUND = auto()  # context, no transitions
    READY = auto()


class TransitionStatus(Enum):
    TRANSITIONED = auto()
    NOT_ALLOWED = auto()
    NO_TRANSITION = auto()


@dataclass(frozen=True)
class TransitionResult:
    """
    Outcome of a transition attempt. Truthy only when a transition fired.
    """

    status: TransitionStatus
    transition_name: Optional[TransitionName] = None
    state_from: Optional[StateName] = None
    state_to: Optional[StateName] = None

    @property
    def fired(self) -> bool:
        return self.status is TransitionStatus.TRANSITIONED

    def __bool__(self) -> bool:
        return self.fired


def event_callback_name(event: EventName) -> str:
    """Entity method called when ``event`` fires a transition, e.g. ``on_pay``."""
    return "on_" + re.sub(r"\W", "_", event)


class StateMachine:
    """
    A finite state machine bound to a context.

    Rules and commands referenced by transitions and states are built from the
    given registries. Each machine gets fresh default registries when none are
    passed in.
    """

    def __init__(
        self,
        context: Optional[Context] = None,
        rules: Optional[RuleRegistry] = None,
        commands: Optional[CommandRegistry] = None,
    ) -> None:
        """
        :param context: Context to bind; can be set later with ``change_context``.
        :param rules: Registry resolving rule identifiers.
        :param commands: Registry resolving command identifiers.
        """
        self._graph = StateGraph()
        self._rules = rules if rules is not None else default_rules()
        self._commands = commands if commands is not None else default_commands()
        self._context: Optional[Context] = None
        self._current_state: Optional[State] = None
        if context is not None:
            self.change_context(context)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def status(self) -> MachineStatus:
        if self._context is None:
            return MachineStatus.UNCONFIGURED
        if len(self._graph) == 0:
            return MachineStatus.BOUND
        return MachineStatus.READY

    @property
    def context(self) -> Context:
        """
        :raises ConfigurationError: If no context is bound.
        """
        if self._context is None:
            raise ConfigurationError("no context bound to the state machine")
        return self._context

    def change_context(self, context: Context) -> None:
        """
        Bind a context. The cached current state is discarded.

        :raises ContextMismatchError: If a context for another machine name is bound.
        """
        if self._context is not None and self._context.machine_name != context.machine_name:
            raise ContextMismatchError(
                f"cannot bind context for '{context.machine_name}' to machine '{self._context.machine_name}'"
            )
        self._context = context
        context.state_machine = self
        self._current_state = None

    @property
    def rules(self) -> RuleRegistry:
        return self._rules

    @property
    def commands(self) -> CommandRegistry:
        return self._commands

    @property
    def graph(self) -> StateGraph:
        return self._graph

    def add_state(self, state: State) -> bool:
        return self._graph.add_state(state)

    def add_transition(self, transition: Transition) -> int:
        """
        :return: Number of transitions newly added, more than one for regex transitions.
        """
        return self._graph.add_transition(transition)

    def get_state(self, name: StateName) -> Optional[State]:
        return self._graph.get_state(name)

    def get_states(self) -> List[State]:
        return list(self._graph.states.values())

    def get_transition(self, name: TransitionName) -> Transition:
        """
        :raises TransitionNotFoundError: If the machine has no transition with that name.
        """
        transition = self._graph.get_transition(name)
        if transition is None:
            raise TransitionNotFoundError(f"transition '{name}' not found")
        return transition

    def get_transitions(self) -> List[Transition]:
        return list(self._graph.transitions.values())

    def has_transition(self, name: TransitionName) -> bool:
        return self._graph.has_transition(name)

    @property
    def initial_state(self) -> State:
        return self._graph.initial_state

    @property
    def current_state(self) -> State:
        """
        The state of the entity, read lazily from the context.

        An entity without a persisted state is placed, and persisted, in the
        initial state.

        :raises NoCurrentStateError: If no transitions are loaded, the persisted
            state is not part of the graph, or a fresh entity has no initial state.
        """
        if self._current_state is None:
            context = self.context
            if len(self._graph) == 0:
                raise NoCurrentStateError(f"no transitions loaded for {context.identifier.readable_id}")
            name = context.get_state()
            if name == STATE_UNKNOWN:
                try:
                    initial = self._graph.initial_state
                except NoInitialStateError as e:
                    raise NoCurrentStateError(f"no initial state for {context.identifier.readable_id}") from e
                context.add(initial.name)
                name = initial.name
            state = self._graph.get_state(name)
            if state is None:
                raise NoCurrentStateError(f"state '{name}' of {context.identifier.readable_id} is not in the graph")
            self._current_state = state
        return self._current_state

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def can_transition(self, name: TransitionName, event: Optional[EventName] = None) -> bool:
        """
        Check whether a transition is allowed from the current state.

        The checks run in order and stop at the first failure: the current state
        lists the transition, the ``_on_check_can_transition`` hook, the entity's
        ``on_check_can_transition`` callback and finally the transition's guards.

        :raises RuleEvaluationError: If a guard fails with an error.
        :raises TransitionError: If an unexpected error occurs.
        """
        if not self.current_state.has_transition(name):
            return False
        transition = self.get_transition(name)
        try:
            if not self._on_check_can_transition(transition, event):
                return False
            entity = self.context.get_entity()
            if isinstance(entity, CanTransitionCallback):
                if self._call_entity(entity.on_check_can_transition, transition, event) is False:
                    return False
            return transition.can(self.context, self._rules, event)
        except FSMError:
            raise
        except Exception as e:
            raise TransitionError(f"checking transition '{name}' failed: {e}") from e

    def transition(self, name: TransitionName) -> TransitionResult:
        """
        Perform a transition by name if it is allowed.

        :raises TransitionNotFoundError: If the name is unknown.
        """
        transition = self.get_transition(name)
        try:
            if not self.can_transition(name):
                return self._result(TransitionStatus.NOT_ALLOWED, transition)
            return self._perform(transition, None)
        except FSMError as e:
            self._handle_transition_error(e, name)
            raise

    def apply(self, name: TransitionName) -> TransitionResult:
        """
        Perform a transition by name.

        :raises TransitionNotAllowedError: If the transition is not allowed.
        """
        result = self.transition(name)
        if not result:
            error = TransitionNotAllowedError(f"transition '{name}' not allowed from '{self.current_state.name}'")
            self._handle_transition_error(error, name)
            raise error
        return result

    def handle(self, event: EventName) -> TransitionResult:
        """
        Fire the first allowed outgoing transition triggered by ``event``.

        Candidates are tried in the order they were added to the current state.
        """
        candidates = [t for t in self._graph.outgoing(self._dispatch_state()) if t.is_triggered_by(event)]
        if not candidates:
            return TransitionResult(TransitionStatus.NO_TRANSITION)
        return self._first_allowed(candidates, event)

    def run(self) -> TransitionResult:
        """Fire the first allowed outgoing transition of the current state."""
        candidates = self._graph.outgoing(self._dispatch_state())
        if not candidates:
            return TransitionResult(TransitionStatus.NO_TRANSITION)
        return self._first_allowed(candidates, None)

    def run_to_completion(self) -> int:
        """
        Keep running until no transition fires or a final state is reached.
        A cycle of always-allowed transitions never completes.

        :return: Number of transitions performed.
        """
        count = 0
        while not self._dispatch_state().is_final() and self.run():
            count += 1
        return count

    def _dispatch_state(self) -> State:
        try:
            return self.current_state
        except FSMError as e:
            self._handle_transition_error(e, None)
            raise

    def _first_allowed(self, candidates: List[Transition], event: Optional[EventName]) -> TransitionResult:
        for transition in candidates:
            try:
                if self.can_transition(transition.name, event):
                    return self._perform(transition, event)
            except FSMError as e:
                self._handle_transition_error(e, transition.name)
                raise
        return TransitionResult(TransitionStatus.NOT_ALLOWED)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _perform(self, transition: Transition, event: Optional[EventName]) -> TransitionResult:
        context = self.context
        state_from = self._graph.get_state(transition.state_from.name) or transition.state_from
        state_to = self._graph.get_state(transition.state_to.name) or transition.state_to
        try:
            entity = context.get_entity()
            self._pre_process(transition, event)

            self._on_exit_state(transition, event)
            if isinstance(entity, ExitStateCallback):
                self._call_entity(entity.on_exit_state, transition, event)
            state_from.exit_action(context, self._commands, event)

            self._on_transition(transition, event)
            if isinstance(entity, TransitionCallback):
                self._call_entity(entity.on_transition, transition, event)
            if event is not None:
                self._call_event_callback(entity, transition, event)
            transition.process(context, self._commands, event)

            context.set_state(state_to.name)
            self._current_state = state_to

            self._on_enter_state(transition, event)
            if isinstance(entity, EnterStateCallback):
                self._call_entity(entity.on_enter_state, transition, event)
            state_to.entry_action(context, self._commands, event)

            self._post_process(transition, event)
        except FSMError:
            raise
        except Exception as e:
            raise TransitionError(f"transition '{transition.name}' failed: {e}") from e
        logger.debug("Transitioned %s via %s (event: %s)", context.identifier.id, transition.name, event)
        return self._result(TransitionStatus.TRANSITIONED, transition)

    def _call_event_callback(self, entity: Any, transition: Transition, event: EventName) -> None:
        method_name = event_callback_name(event)
        if method_name in _ENTITY_CALLBACKS:
            return
        method = getattr(entity, method_name, None)
        if callable(method):
            self._call_entity(method, transition, event)

    def _call_entity(self, method: Callable[..., Any], transition: Transition, event: Optional[EventName]) -> Any:
        try:
            return method(transition, event)
        except FSMError:
            raise
        except Exception as e:
            name = getattr(method, "__name__", method)
            raise CallbackError(f"entity callback {name} failed on '{transition.name}': {e}") from e

    @staticmethod
    def _result(status: TransitionStatus, transition: Transition) -> TransitionResult:
        return TransitionResult(status, transition.name, transition.state_from.name, transition.state_to.name)

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------

    def _on_check_can_transition(self, transition: Transition, event: Optional[EventName]) -> bool:
        return True

    def _pre_process(self, transition: Transition, event: Optional[EventName]) -> None:
        pass

    def _on_exit_state(self, transition: Transition, event: Optional[EventName]) -> None:
        pass

    def _on_transition(self, transition: Transition, event: Optional[EventName]) -> None:
        pass

    def _on_enter_state(self, transition: Transition, event: Optional[EventName]) -> None:
        pass

    def _post_process(self, transition: Transition, event: Optional[EventName]) -> None:
        pass

    def _handle_transition_error(self, error: FSMError, transition_name: Optional[TransitionName]) -> None:
        """Record a failure through the context before it propagates."""
        if self._context is not None:
            self._context.set_failed_transition(error, transition_name)

    def __str__(self) -> str:
        name = self._context.machine_name if self._context is not None else "unbound"
        return f"StateMachine({name}, {self.status.name})"
