# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, List, Optional

import pytest


def pytest_configure(config):
    """Register custom marks."""
    config.addinivalue_line("markers", "property: mark test as a property-based test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


# -----------------------------------------------------------------------------
# MOCK IMPLEMENTATIONS
# -----------------------------------------------------------------------------


class RecordingEntity:
    """
    A domain entity implementing every entity callback. Each call is appended to
    ``calls`` so tests can assert pipeline order.
    """

    def __init__(self, calls: Optional[List[str]] = None, allow: bool = True) -> None:
        self.calls: List[str] = calls if calls is not None else []
        self.allow = allow

    def on_check_can_transition(self, transition, event):
        self.calls.append(f"entity_check:{transition.name}")
        return self.allow

    def on_exit_state(self, transition, event):
        self.calls.append(f"entity_exit:{transition.state_from.name}")

    def on_transition(self, transition, event):
        self.calls.append(f"entity_transition:{transition.name}")

    def on_enter_state(self, transition, event):
        self.calls.append(f"entity_enter:{transition.state_to.name}")

    def on_go(self, transition, event):
        self.calls.append(f"entity_event:{event}")


# -----------------------------------------------------------------------------
# FIXTURES
# -----------------------------------------------------------------------------


@pytest.fixture
def identifier():
    from stateguard.runtime.context import Identifier

    return Identifier("123", "order-machine")


@pytest.fixture
def store():
    from stateguard.persistence.memory import MemoryStore

    return MemoryStore()


@pytest.fixture
def adapter(store):
    from stateguard.persistence.memory import MemoryAdapter

    return MemoryAdapter(store)


@pytest.fixture
def context(identifier, adapter):
    from stateguard.runtime.context import Context

    return Context(identifier, adapter=adapter)


@pytest.fixture
def recording_entity():
    return RecordingEntity()


@pytest.fixture
def entity_context(identifier, adapter, recording_entity):
    """A context whose entity records every callback."""
    from stateguard.runtime.context import Context, ModelBuilder

    return Context(identifier, entity_builder=ModelBuilder(recording_entity), adapter=adapter)


@pytest.fixture
def linear_states():
    """States new -> a -> b -> done."""
    from stateguard.core.states import State, StateType

    return {
        "new": State("new", StateType.INITIAL),
        "a": State("a"),
        "b": State("b"),
        "done": State("done", StateType.FINAL),
    }


@pytest.fixture
def linear_machine(context, linear_states):
    """A machine over new -> a -> b -> done, all transitions unguarded."""
    from stateguard.core.state_machine import StateMachine
    from stateguard.core.transitions import Transition

    machine = StateMachine(context)
    s = linear_states
    machine.add_transition(Transition(s["new"], s["a"]))
    machine.add_transition(Transition(s["a"], s["b"]))
    machine.add_transition(Transition(s["b"], s["done"]))
    return machine


@pytest.fixture
def make_machine(identifier, adapter):
    """Factory building a machine bound to a context for ``entity``."""
    from stateguard.core.state_machine import StateMachine
    from stateguard.runtime.context import Context, ModelBuilder

    def _factory(entity: Any = None, rules=None, commands=None, machine_class=StateMachine):
        builder = ModelBuilder(entity) if entity is not None else None
        ctx = Context(identifier, entity_builder=builder, adapter=adapter)
        return machine_class(ctx, rules=rules, commands=commands)

    return _factory
