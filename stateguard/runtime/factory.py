# stateguard/runtime/factory.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Factories assemble fully configured state machines for a single machine name.

A subclass supplies the loader, persistence adapter, entity builder and machine
name. ``get_state_machine`` then binds a fresh context for an entity, creates the
machine and loads its transitions.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from stateguard.core.state_machine import StateMachine
from stateguard.interfaces.protocols import Loader
from stateguard.interfaces.types import MachineName, StateName
from stateguard.persistence.adapter import Adapter
from stateguard.runtime.context import Context, EntityBuilder, Identifier

logger = logging.getLogger(__name__)


class AbstractFactory(ABC):
    """
    Base class for machine factories.

    Override ``create_machine`` to use a StateMachine subclass or custom
    registries.
    """

    @abstractmethod
    def get_loader(self) -> Loader:
        """Loader holding the transitions of every machine this factory builds."""

    @abstractmethod
    def get_persistence_adapter(self) -> Adapter: ...

    @abstractmethod
    def get_entity_builder(self) -> EntityBuilder: ...

    @abstractmethod
    def get_machine_name(self) -> MachineName: ...

    def get_state_machine(self, entity_id: str) -> StateMachine:
        """
        Build a loaded machine for ``entity_id``.

        :raises FSMError: If the loader or any factory hook fails.
        """
        machine = self.create_machine(self.get_context(entity_id))
        count = self.get_loader().load(machine)
        logger.debug("Factory built %s with %d transition(s)", machine, count)
        return machine

    def get_context(self, entity_id: str) -> Context:
        identifier = Identifier(entity_id, self.get_machine_name())
        return Context(identifier, self.get_entity_builder(), self.get_persistence_adapter())

    def create_machine(self, context: Context) -> StateMachine:
        return StateMachine(context)

    def add(self, entity_id: str, state: Optional[StateName] = None) -> bool:
        """
        Persist an entity without building its machine.

        :return: False if the entity was already persisted.
        """
        return self.get_context(entity_id).add(state)
