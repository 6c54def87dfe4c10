"""
PostgreSQL alias store for compact-mode rewriting.

This module provides:
- PostgresAliasStore: asyncpg-backed AliasStore
- StoredAlias: Alias row with bookkeeping timestamps

Schema (see schema.sql):
- srs_aliases(alias_key TEXT PRIMARY KEY, address TEXT, created_at, last_used_at)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import asyncpg

from .errors import DBError
from .storage import AliasStore

SCHEMA = """
    CREATE TABLE IF NOT EXISTS srs_aliases (
        alias_key    TEXT PRIMARY KEY,
        address      TEXT NOT NULL,
        created_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
        last_used_at TIMESTAMPTZ
    )
"""


@dataclass
class StoredAlias:
    """Alias row as stored in the database."""

    alias_key: str
    address: str
    created_at: datetime
    last_used_at: Optional[datetime] = None


class PostgresAliasStore(AliasStore):
    """
    PostgreSQL-backed alias store.

    Re-storing an existing key overwrites its address; keys are derived
    from the address, so this only happens for the same sender.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        """
        Initialize PostgreSQL alias store.

        Args:
            pool: asyncpg connection pool
        """
        self._pool = pool

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the connection pool."""
        return self._pool

    async def ensure_schema(self) -> None:
        """Create the alias table if it does not exist."""
        try:
            await self._pool.execute(SCHEMA)
        except Exception as e:
            raise DBError(f"Failed to create alias schema: {e}")

    async def store(self, key: str, address: str) -> bool:
        """
        Store an alias.

        Args:
            key: Alias key
            address: Original sender address

        Returns:
            True once the row is written
        """
        query = """
            INSERT INTO srs_aliases (alias_key, address)
            VALUES ($1, $2)
            ON CONFLICT (alias_key) DO UPDATE SET address = EXCLUDED.address
        """
        try:
            await self._pool.execute(query, key, address)
        except Exception as e:
            raise DBError(f"Failed to store alias: {e}")
        return True

    async def lookup(self, key: str) -> Optional[str]:
        """
        Resolve an alias and record its use.

        Args:
            key: Alias key

        Returns:
            Stored address if found, None otherwise
        """
        query = """
            UPDATE srs_aliases SET last_used_at = now()
            WHERE alias_key = $1
            RETURNING address
        """
        try:
            row = await self._pool.fetchrow(query, key)
        except Exception as e:
            raise DBError(f"Failed to look up alias: {e}")
        return row["address"] if row else None

    async def get_alias(self, key: str) -> Optional[StoredAlias]:
        """Get the full alias row without touching last_used_at."""
        query = """
            SELECT alias_key, address, created_at, last_used_at
            FROM srs_aliases WHERE alias_key = $1
        """
        try:
            row = await self._pool.fetchrow(query, key)
        except Exception as e:
            raise DBError(f"Failed to get alias: {e}")
        if row is None:
            return None
        return self._row_to_stored_alias(row)

    async def delete_alias(self, key: str) -> bool:
        """
        Delete an alias.

        Returns:
            True if deleted, False if not found
        """
        try:
            status = await self._pool.execute(
                "DELETE FROM srs_aliases WHERE alias_key = $1", key
            )
        except Exception as e:
            raise DBError(f"Failed to delete alias: {e}")
        return status.endswith(" 1")

    async def purge_unused(self, older_than_days: int) -> int:
        """
        Delete aliases not used within the given number of days.

        Returns:
            Count of deleted aliases
        """
        query = """
            WITH deleted AS (
                DELETE FROM srs_aliases
                WHERE COALESCE(last_used_at, created_at)
                      < now() - make_interval(days => $1)
                RETURNING 1
            )
            SELECT count(*) AS count FROM deleted
        """
        try:
            row = await self._pool.fetchrow(query, older_than_days)
        except Exception as e:
            raise DBError(f"Failed to purge aliases: {e}")
        return row["count"] if row else 0

    @staticmethod
    def _row_to_stored_alias(row: asyncpg.Record) -> StoredAlias:
        """Convert database row to StoredAlias."""
        return StoredAlias(
            alias_key=row["alias_key"],
            address=row["address"],
            created_at=row["created_at"],
            last_used_at=row["last_used_at"],
        )
