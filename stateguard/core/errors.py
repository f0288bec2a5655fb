# stateguard/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Optional


class FSMError(Exception):
    """
    Base exception class for errors raised by the state machine library.

    Every foreign exception encountered while checking guards, executing commands
    or building rules/commands is wrapped into a subclass of this type, with the
    original exception preserved as ``__cause__``.
    """

    def __init__(self, message: str = "", code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class ConfigurationError(FSMError):
    """
    Raised when the machine is used before it is correctly configured,
    for example when no context has been bound.
    """


class RuleEvaluationError(FSMError):
    """
    Raised when a rule returns a non-boolean result or its predicate raises.
    """

    GENERAL = 999
    NON_BOOLEAN = 1


class RuleConstructionError(FSMError):
    """
    Raised when a rule identifier cannot be resolved or its factory fails.
    """


class CommandConstructionError(FSMError):
    """
    Raised when a command identifier cannot be resolved or its factory fails.
    """


class CommandExecutionError(FSMError):
    """
    Raised when a command fails during execution.
    """


class CallbackError(FSMError):
    """
    Raised when an entity, state or transition callback fails.
    """


class TransitionError(FSMError):
    """
    Raised when an unexpected error occurs while checking or performing a transition.
    """


class TransitionNotFoundError(FSMError):
    """
    Raised when a transition name is not known to the machine.
    """


class TransitionNotAllowedError(FSMError):
    """
    Raised when a transition is forced while its guard checks do not pass.
    """


class NoCurrentStateError(FSMError):
    """
    Raised when the persisted state cannot be resolved against the loaded graph.
    """


class NoInitialStateError(FSMError):
    """
    Raised when the graph has no state of type initial.
    """


class ContextMismatchError(FSMError):
    """
    Raised when a machine is rebound to a context for a different machine name.
    """


class PersistenceError(FSMError):
    """
    Raised when a persistence adapter fails to read or write a state.
    """

    READ_FAILURE = 8
    WRITE_FAILURE = 9


class EntityBuildError(FSMError):
    """
    Raised when an entity builder fails to build the domain entity.
    """


class LoaderError(FSMError):
    """
    Raised when a loader is handed data it cannot load.
    """
