# tests/unit/runtime/test_context.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import gc
from unittest.mock import MagicMock

import pytest

from stateguard.core.errors import EntityBuildError
from stateguard.core.state_machine import StateMachine
from stateguard.persistence.memory import MemoryAdapter
from stateguard.runtime.context import (
    NULL_ENTITY_ID,
    NULL_STATEMACHINE,
    Context,
    EntityBuilder,
    Identifier,
    ModelBuilder,
)


class CountingBuilder(EntityBuilder):
    def __init__(self):
        super().__init__()
        self.builds = 0

    def build(self, identifier):
        self.builds += 1
        return {"id": identifier.entity_id}


def test_identifier_normalizes_entity_id():
    identifier = Identifier(" 123 ", "order")
    assert identifier.entity_id == "123"
    assert Identifier(42, "order").entity_id == "42"
    assert identifier.id == "order_123"
    assert "order" in identifier.readable_id
    assert str(identifier) == "order_123"


def test_identifier_equality():
    assert Identifier("1", "m") == Identifier(1, "m")
    assert Identifier("1", "m") != Identifier("1", "n")
    assert len({Identifier("1", "m"), Identifier(" 1", "m")}) == 1


def test_null_constants():
    assert NULL_ENTITY_ID == "-1"
    assert NULL_STATEMACHINE == "null-machine"


def test_default_entity_is_identifier(identifier):
    assert EntityBuilder().get_entity(identifier) is identifier


def test_entity_builder_caches_per_identifier():
    builder = CountingBuilder()
    first = Identifier("1", "m")
    entity = builder.get_entity(first)
    assert builder.get_entity(first) is entity
    assert builder.builds == 1
    builder.get_entity(first, fresh=True)
    assert builder.builds == 2
    builder.get_entity(Identifier("2", "m"))
    assert builder.builds == 3


def test_entity_builder_wraps_errors(identifier):
    class Broken(EntityBuilder):
        def build(self, identifier):
            raise LookupError("no such entity")

    with pytest.raises(EntityBuildError) as exc_info:
        Broken().get_entity(identifier)
    assert isinstance(exc_info.value.__cause__, LookupError)


def test_model_builder(identifier):
    model = object()
    assert ModelBuilder(model).get_entity(identifier) is model


def test_context_defaults(identifier):
    context = Context(identifier)
    assert context.machine_name == "order-machine"
    assert context.entity_id == "123"
    assert isinstance(context.adapter, MemoryAdapter)
    assert context.get_entity() is identifier
    assert context.get_state() == "unknown"
    assert context.state_machine is None


def test_context_keeps_falsy_collaborators(identifier):
    class EmptyAdapter(MemoryAdapter):
        def __len__(self):
            return 0

    class EmptyBuilder(EntityBuilder):
        def __len__(self):
            return 0

    adapter, builder = EmptyAdapter(), EmptyBuilder()
    context = Context(identifier, entity_builder=builder, adapter=adapter)
    assert context.adapter is adapter
    assert context.entity_builder is builder


def test_default_contexts_do_not_share_storage(identifier):
    first, second = Context(identifier), Context(identifier)
    first.set_state("a")
    assert second.get_state() == "unknown"


def test_context_persistence(context):
    assert context.add() is True
    assert context.get_state() == "new"
    assert context.add("other") is False
    assert context.set_state("a") is False
    assert context.get_state() == "a"


def test_set_state_first_time(context):
    assert context.set_state("a") is True
    assert context.set_state("b") is False


def test_set_failed_transition_delegates(identifier):
    adapter = MagicMock()
    context = Context(identifier, adapter=adapter)
    error = ValueError("x")
    context.set_failed_transition(error, "a_to_b")
    adapter.set_failed_transition.assert_called_once_with(identifier, error, "a_to_b")


def test_weak_machine_reference(context):
    machine = StateMachine(context)
    assert context.state_machine is machine
    del machine
    gc.collect()
    assert context.state_machine is None
