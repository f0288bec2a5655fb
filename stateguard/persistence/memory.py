# stateguard/persistence/memory.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from stateguard.core.states import STATE_UNKNOWN
from stateguard.interfaces.types import MachineName, StateName
from stateguard.persistence.adapter import Adapter, StorageData

if TYPE_CHECKING:
    from stateguard.runtime.context import Identifier

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    In-process storage for state records.

    The caller owns the store and its lifetime. Several adapters may share one
    store; writes are not serialized.
    """

    def __init__(self) -> None:
        self._records: Dict[Tuple[MachineName, str], StorageData] = {}

    def get(self, machine: MachineName, entity_id: str) -> Optional[StorageData]:
        return self._records.get((machine, entity_id))

    def put(self, data: StorageData) -> None:
        self._records[(data.machine, data.entity_id)] = data

    def records(self, machine: Optional[MachineName] = None) -> List[StorageData]:
        return [r for r in self._records.values() if machine is None or r.machine == machine]

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records


class MemoryAdapter(Adapter):
    """Adapter over a ``MemoryStore``. Creates its own store when none is given."""

    def __init__(self, store: Optional[MemoryStore] = None) -> None:
        self.store = store if store is not None else MemoryStore()

    def _process_get_state(self, identifier: "Identifier") -> StateName:
        data = self.store.get(identifier.machine_name, identifier.entity_id)
        return data.state if data is not None else STATE_UNKNOWN

    def _process_set_state(self, identifier: "Identifier", state: StateName) -> bool:
        existing = self.store.get(identifier.machine_name, identifier.entity_id)
        previous = existing.state if existing is not None else None
        self.store.put(StorageData(identifier.machine_name, identifier.entity_id, state, previous))
        logger.debug("Persisted %s for %s (previous: %s)", state, identifier.id, previous)
        return existing is None

    def add(self, identifier: "Identifier", state: StateName) -> bool:
        if self.is_persisted(identifier):
            return False
        self.store.put(StorageData(identifier.machine_name, identifier.entity_id, state))
        return True

    def is_persisted(self, identifier: "Identifier") -> bool:
        return (identifier.machine_name, identifier.entity_id) in self.store

    def get_entity_ids(self, machine: MachineName, state: Optional[StateName] = None) -> List[str]:
        return [r.entity_id for r in self.store.records(machine) if state is None or r.state == state]

    def get_storage_data(self, identifier: "Identifier") -> Optional[StorageData]:
        return self.store.get(identifier.machine_name, identifier.entity_id)
