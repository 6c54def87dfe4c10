"""
Storage abstractions for compact-mode aliases.

This module provides:
- AliasStore: Abstract protocol for alias store backends
- InMemoryAliasStore: Thread-safe in-memory implementation for testing
- StoreDirection: Which engine direction a store is attached to
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional


class StoreDirection(Enum):
    """Direction an alias store serves."""

    FORWARD = "forward"  # Stores new aliases when rewriting
    REVERSE = "reverse"  # Resolves aliases when reversing

    def __str__(self) -> str:
        return self.value


class AliasStore(ABC):
    """
    Abstract alias store mapping short keys to full sender addresses.

    Uniqueness and durability of mappings are the backend's contract; the
    engine only derives keys and calls these two methods. Both are async
    and may take arbitrary time.
    """

    @abstractmethod
    async def store(self, key: str, address: str) -> bool:
        """Persist key -> address. Return False if the mapping was not stored."""
        ...

    @abstractmethod
    async def lookup(self, key: str) -> Optional[str]:
        """Get the address stored under key, or None."""
        ...


class InMemoryAliasStore(AliasStore):
    """
    Thread-safe in-memory alias store for testing.

    Uses asyncio.Lock for safe concurrent access.
    """

    def __init__(self) -> None:
        self._aliases: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def store(self, key: str, address: str) -> bool:
        """Persist key -> address."""
        async with self._lock:
            self._aliases[key] = address
            return True

    async def lookup(self, key: str) -> Optional[str]:
        """Get the address stored under key."""
        async with self._lock:
            return self._aliases.get(key)

    async def delete(self, key: str) -> None:
        """Forget a mapping."""
        async with self._lock:
            self._aliases.pop(key, None)

    def __len__(self) -> int:
        return len(self._aliases)
