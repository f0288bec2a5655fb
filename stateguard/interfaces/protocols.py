# stateguard/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from stateguard.interfaces.types import EventName

if TYPE_CHECKING:
    from stateguard.core.state_machine import StateMachine
    from stateguard.core.transitions import Transition


@runtime_checkable
class CommandProtocol(Protocol):
    """
    Command protocol for type checking.

    Methods:
        execute(): Perform the side effect.

    Error Handling:
    - Failures raise CommandExecutionError. Foreign exceptions are wrapped by the
      caller that drives the command.
    """

    def execute(self) -> None: ...


@runtime_checkable
class EventAware(Protocol):
    """Implemented by commands that want the name of the triggering event."""

    def set_event(self, event: Optional[EventName]) -> None: ...


@runtime_checkable
class Loader(Protocol):
    """
    Loader protocol for type checking.

    Methods:
        load(machine): Add transitions to the machine and return how many were new.
    """

    def load(self, machine: "StateMachine") -> int: ...


# Entity callbacks. A domain entity opts into a pipeline step by implementing
# the matching method; each receives the transition and the triggering event.


@runtime_checkable
class CanTransitionCallback(Protocol):
    def on_check_can_transition(self, transition: "Transition", event: Optional[EventName]) -> Any: ...


@runtime_checkable
class ExitStateCallback(Protocol):
    def on_exit_state(self, transition: "Transition", event: Optional[EventName]) -> Any: ...


@runtime_checkable
class TransitionCallback(Protocol):
    def on_transition(self, transition: "Transition", event: Optional[EventName]) -> Any: ...


@runtime_checkable
class EnterStateCallback(Protocol):
    def on_enter_state(self, transition: "Transition", event: Optional[EventName]) -> Any: ...
