"""stateguard: finite state machines driving domain entities through guarded transitions

A machine is configured with named states and the transitions between them. Each
transition is guarded by boolean business rules and acts through commands, both
referenced by string identifiers and built from registries at evaluation time. The
current state of an entity lives in a persistence adapter, not in the machine.

Responsibilities:
    - Rule algebra (and, or, xor, not) with optional result caching
    - Regex transitions expanded into concrete transitions
    - Dispatch by transition name, by event, or by running to completion
    - A fixed transition pipeline with hooks and entity callbacks

Cross-cutting Concerns:
    Error Handling:
        - Every error raised is an FSMError subclass
        - Foreign exceptions are wrapped with the original as cause

    Logging:
        - Module loggers under the ``stateguard`` namespace
        - No handlers installed by the library

    Thread Safety:
        - Machines are synchronous and not thread-safe
"""

from stateguard.core.commands import CallableCommand, Command, Composite, ExceptionCommand, NullCommand
from stateguard.core.errors import (
    CallbackError,
    CommandConstructionError,
    CommandExecutionError,
    ConfigurationError,
    ContextMismatchError,
    EntityBuildError,
    FSMError,
    LoaderError,
    NoCurrentStateError,
    NoInitialStateError,
    PersistenceError,
    RuleConstructionError,
    RuleEvaluationError,
    TransitionError,
    TransitionNotAllowedError,
    TransitionNotFoundError,
)
from stateguard.core.rules import (
    AndRule,
    BooleanRule,
    CallableRule,
    Enforcer,
    ExceptionRule,
    ExceptionSuppressor,
    FalseRule,
    NotRule,
    OrRule,
    Rule,
    RuleResult,
    TrueRule,
    XorRule,
)
from stateguard.core.state_machine import MachineStatus, StateMachine, TransitionResult, TransitionStatus
from stateguard.core.states import STATE_DONE, STATE_NEW, STATE_UNKNOWN, State, StateType
from stateguard.core.transitions import STATE_CONCATENATOR, Transition, transition_name
from stateguard.loader.loader import LoaderArray
from stateguard.persistence.adapter import Adapter, StorageData
from stateguard.persistence.memory import MemoryAdapter, MemoryStore
from stateguard.runtime.context import (
    NULL_ENTITY_ID,
    NULL_STATEMACHINE,
    Context,
    EntityBuilder,
    Identifier,
    ModelBuilder,
)
from stateguard.runtime.factory import AbstractFactory
from stateguard.runtime.graph import StateGraph
from stateguard.runtime.registry import CommandRegistry, RuleRegistry, default_commands, default_rules

__version__ = "0.1.0"

__all__ = [
    "AbstractFactory",
    "Adapter",
    "AndRule",
    "BooleanRule",
    "CallableCommand",
    "CallableRule",
    "CallbackError",
    "Command",
    "CommandConstructionError",
    "CommandExecutionError",
    "CommandRegistry",
    "Composite",
    "ConfigurationError",
    "Context",
    "ContextMismatchError",
    "Enforcer",
    "EntityBuildError",
    "EntityBuilder",
    "ExceptionCommand",
    "ExceptionRule",
    "ExceptionSuppressor",
    "FSMError",
    "FalseRule",
    "Identifier",
    "LoaderArray",
    "LoaderError",
    "MachineStatus",
    "MemoryAdapter",
    "MemoryStore",
    "ModelBuilder",
    "NULL_ENTITY_ID",
    "NULL_STATEMACHINE",
    "NoCurrentStateError",
    "NoInitialStateError",
    "NotRule",
    "NullCommand",
    "OrRule",
    "PersistenceError",
    "Rule",
    "RuleConstructionError",
    "RuleEvaluationError",
    "RuleRegistry",
    "RuleResult",
    "STATE_CONCATENATOR",
    "STATE_DONE",
    "STATE_NEW",
    "STATE_UNKNOWN",
    "State",
    "StateGraph",
    "StateMachine",
    "StateType",
    "StorageData",
    "Transition",
    "TransitionError",
    "TransitionNotAllowedError",
    "TransitionNotFoundError",
    "TransitionResult",
    "TransitionStatus",
    "TrueRule",
    "XorRule",
    "default_commands",
    "default_rules",
    "transition_name",
]
