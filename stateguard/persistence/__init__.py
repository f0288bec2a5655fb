# stateguard/persistence/__init__.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from stateguard.persistence.adapter import Adapter, StorageData
from stateguard.persistence.memory import MemoryAdapter, MemoryStore

__all__ = ["Adapter", "StorageData", "MemoryAdapter", "MemoryStore"]
