# stateguard/persistence/adapter.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from stateguard.core.errors import FSMError, PersistenceError
from stateguard.core.states import STATE_NEW
from stateguard.interfaces.types import MachineName, StateName, TransitionName

if TYPE_CHECKING:
    from stateguard.runtime.context import Identifier

logger = logging.getLogger(__name__)


@dataclass
class StorageData:
    """A persisted state record for one entity of one machine."""

    machine: MachineName
    entity_id: str
    state: StateName
    previous_state: Optional[StateName] = None
    timestamp: float = field(default_factory=time.time)


class Adapter(ABC):
    """
    Base class for persistence backends.

    ``get_state`` and ``set_state`` wrap backend failures into ``PersistenceError``;
    subclasses implement the ``_process_*`` hooks and the bookkeeping methods.
    """

    def get_initial_state(self, identifier: "Identifier") -> StateName:
        """Name of the state assumed for an entity that was never persisted."""
        return STATE_NEW

    def get_state(self, identifier: "Identifier") -> StateName:
        """
        :return: The persisted state name, or ``unknown`` when nothing is stored.
        :raises PersistenceError: If the backend fails.
        """
        try:
            return self._process_get_state(identifier)
        except FSMError:
            raise
        except Exception as e:
            raise PersistenceError(f"failed to read state for {identifier}: {e}", PersistenceError.READ_FAILURE) from e

    def set_state(self, identifier: "Identifier", state: StateName) -> bool:
        """
        :return: True if the entity was not persisted before this call.
        :raises PersistenceError: If the backend fails.
        """
        try:
            return self._process_set_state(identifier, state)
        except FSMError:
            raise
        except Exception as e:
            raise PersistenceError(
                f"failed to write state '{state}' for {identifier}: {e}", PersistenceError.WRITE_FAILURE
            ) from e

    def set_failed_transition(
        self, identifier: "Identifier", error: Exception, transition_name: Optional[TransitionName]
    ) -> None:
        """Hook for backends that record failed transitions. Does nothing by default."""

    @abstractmethod
    def _process_get_state(self, identifier: "Identifier") -> StateName: ...

    @abstractmethod
    def _process_set_state(self, identifier: "Identifier", state: StateName) -> bool: ...

    @abstractmethod
    def add(self, identifier: "Identifier", state: StateName) -> bool:
        """
        Persist ``state`` only when the entity is not persisted yet.

        :return: True if a record was created.
        """

    @abstractmethod
    def is_persisted(self, identifier: "Identifier") -> bool: ...

    @abstractmethod
    def get_entity_ids(self, machine: MachineName, state: Optional[StateName] = None) -> List[str]: ...

    def __str__(self) -> str:
        return type(self).__name__
