# stateguard/runtime/context.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Runtime context of a state machine: which entity it drives, how that entity is
built and where its current state is persisted.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from stateguard.core.errors import EntityBuildError, FSMError
from stateguard.interfaces.types import MachineName, StateName, TransitionName
from stateguard.persistence.adapter import Adapter
from stateguard.persistence.memory import MemoryAdapter

if TYPE_CHECKING:
    from stateguard.core.state_machine import StateMachine

logger = logging.getLogger(__name__)

NULL_ENTITY_ID = "-1"
NULL_STATEMACHINE = "null-machine"


@dataclass(frozen=True)
class Identifier:
    """
    Identifies one entity within one machine. The entity id is always a stripped
    string.
    """

    entity_id: str
    machine_name: MachineName

    def __post_init__(self) -> None:
        object.__setattr__(self, "entity_id", str(self.entity_id).strip())

    @property
    def id(self) -> str:
        return f"{self.machine_name}_{self.entity_id}"

    @property
    def readable_id(self) -> str:
        return f"machine '{self.machine_name}' for entity '{self.entity_id}'"

    def __str__(self) -> str:
        return self.id


class EntityBuilder:
    """
    Builds the domain entity that rules, commands and callbacks operate on.

    The entity is built lazily and cached for the last identifier it was built for.
    Subclasses override ``build``; the default entity is the identifier itself.
    """

    def __init__(self) -> None:
        self._identifier: Optional[Identifier] = None
        self._entity: Any = None

    def get_entity(self, identifier: Identifier, fresh: bool = False) -> Any:
        """
        :param fresh: Rebuild even if a cached entity exists.
        :raises EntityBuildError: If ``build`` fails.
        """
        if fresh or self._identifier != identifier:
            try:
                entity = self.build(identifier)
            except FSMError:
                raise
            except Exception as e:
                raise EntityBuildError(f"failed to build entity for {identifier.readable_id}: {e}") from e
            self._identifier = identifier
            self._entity = entity
        return self._entity

    def build(self, identifier: Identifier) -> Any:
        return identifier

    def __str__(self) -> str:
        return type(self).__name__


class ModelBuilder(EntityBuilder):
    """Returns a model that already exists, whatever the identifier."""

    def __init__(self, model: Any) -> None:
        super().__init__()
        self._model = model

    def build(self, identifier: Identifier) -> Any:
        return self._model


class Context:
    """
    Binds an identifier to its entity builder and persistence adapter.

    The context keeps a weak reference to the machine it is bound to.
    """

    def __init__(
        self,
        identifier: Identifier,
        entity_builder: Optional[EntityBuilder] = None,
        adapter: Optional[Adapter] = None,
    ) -> None:
        self._identifier = identifier
        self._entity_builder = entity_builder if entity_builder is not None else EntityBuilder()
        self._adapter = adapter if adapter is not None else MemoryAdapter()
        self._machine_ref: Optional["weakref.ReferenceType[StateMachine]"] = None

    @property
    def identifier(self) -> Identifier:
        return self._identifier

    @property
    def machine_name(self) -> MachineName:
        return self._identifier.machine_name

    @property
    def entity_id(self) -> str:
        return self._identifier.entity_id

    @property
    def entity_builder(self) -> EntityBuilder:
        return self._entity_builder

    @property
    def adapter(self) -> Adapter:
        return self._adapter

    @property
    def state_machine(self) -> Optional["StateMachine"]:
        return self._machine_ref() if self._machine_ref is not None else None

    @state_machine.setter
    def state_machine(self, machine: Optional["StateMachine"]) -> None:
        self._machine_ref = weakref.ref(machine) if machine is not None else None

    def get_entity(self, fresh: bool = False) -> Any:
        return self._entity_builder.get_entity(self._identifier, fresh)

    def get_state(self) -> StateName:
        return self._adapter.get_state(self._identifier)

    def set_state(self, state: StateName) -> bool:
        """
        :return: True if the entity was persisted for the first time.
        """
        return self._adapter.set_state(self._identifier, state)

    def add(self, state: Optional[StateName] = None) -> bool:
        """
        Persist the entity in ``state`` (the adapter's initial state by default)
        unless it is already persisted.
        """
        if state is None:
            state = self._adapter.get_initial_state(self._identifier)
        return self._adapter.add(self._identifier, state)

    def set_failed_transition(self, error: Exception, transition_name: Optional[TransitionName] = None) -> None:
        logger.warning("Transition %s failed for %s: %s", transition_name, self._identifier.id, error)
        self._adapter.set_failed_transition(self._identifier, error, transition_name)

    def __str__(self) -> str:
        return f"Context({self._identifier.id}, {self._entity_builder}, {self._adapter})"
