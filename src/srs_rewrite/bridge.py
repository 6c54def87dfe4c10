"""
Bridge between the rewriting engine and its alias stores.

Compact addresses carry only a token; the bridge derives that token from the
original address and hands the mapping to an external AliasStore. Any
failure, timeout or cancellation of a store call surfaces as DBError.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from .codec import OriginalAddress
from .crypto import UNIQUE_ID_LENGTH, HashAuthenticator
from .errors import AddressTooLongError, DBError
from .secret_ring import SecretRing
from .storage import AliasStore, StoreDirection

_LOG = logging.getLogger(__name__)

T = TypeVar("T")


async def _call_store(
    awaitable: Awaitable[T], timeout: Optional[float], operation: str
) -> T:
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        _LOG.warning("alias store %s timed out after %ss", operation, timeout)
        raise DBError(f"Alias store {operation} timed out")
    except asyncio.CancelledError:
        task = asyncio.current_task()
        if task is not None and task.cancelling():
            raise
        _LOG.warning("alias store %s was cancelled", operation)
        raise DBError(f"Alias store {operation} was cancelled")
    except Exception as e:
        _LOG.warning("alias store %s failed: %s", operation, type(e).__name__)
        raise DBError(f"Alias store {operation} failed: {e}") from e


class AliasBridge:
    """
    Per-direction alias store handles plus token derivation.

    Either direction may be unset; operations in an unset direction fail
    with DBError.
    """

    def __init__(
        self,
        ring: SecretRing,
        forward: Optional[AliasStore] = None,
        reverse: Optional[AliasStore] = None,
    ) -> None:
        self._ring = ring
        self._stores = {
            StoreDirection.FORWARD: forward,
            StoreDirection.REVERSE: reverse,
        }

    def get(self, direction: StoreDirection) -> Optional[AliasStore]:
        """Get the store attached to a direction."""
        return self._stores[direction]

    def set(self, direction: StoreDirection, store: Optional[AliasStore]) -> None:
        """Attach or detach (None) the store for a direction."""
        self._stores[direction] = store

    def clear(self) -> None:
        """Detach every store."""
        for direction in self._stores:
            self._stores[direction] = None

    def token_for(self, original: OriginalAddress) -> str:
        """Derive the alias key for an address."""
        return HashAuthenticator.unique_id(
            self._ring.primary(), str(original), UNIQUE_ID_LENGTH
        )

    async def store_mapping(
        self, original: OriginalAddress, timeout: Optional[float] = None
    ) -> str:
        """
        Store an alias for original and return its token.

        Raises:
            DBError: If no forward store is set or the store fails
        """
        store = self._stores[StoreDirection.FORWARD]
        if store is None:
            raise DBError("No forward alias store configured")

        token = self.token_for(original)
        stored = await _call_store(store.store(token, str(original)), timeout, "store")
        if not stored:
            raise DBError("Alias store did not accept the mapping")
        return token

    async def lookup_mapping(
        self, token: str, max_length: int, timeout: Optional[float] = None
    ) -> OriginalAddress:
        """
        Resolve a token to its original address.

        Args:
            token: Alias key taken from a compact address
            max_length: Longest address accepted from the store
            timeout: Seconds to wait for the store (None waits indefinitely)

        Raises:
            DBError: If no reverse store is set, the store fails, or nothing is stored
            AddressTooLongError: If the stored address exceeds max_length
        """
        store = self._stores[StoreDirection.REVERSE]
        if store is None:
            raise DBError("No reverse alias store configured")

        result = await _call_store(store.lookup(token), timeout, "lookup")
        if not result:
            raise DBError("Alias not found")
        if len(result) > max_length:
            raise AddressTooLongError(
                f"Stored address too long: {len(result)} > {max_length}"
            )

        try:
            return OriginalAddress.parse(result)
        except ValueError:
            raise DBError("Alias store returned a malformed address")
