"""
Sender rewriting engine.

This module provides:
- RewriteEngine: Forward/reverse rewriting with authentication and aliases
- EngineState: Engine lifecycle state
- ReverseOutcome: Tagged result of a reverse attempt for the mail transport

Lifecycle: UNINITIALIZED -> READY -> CLOSED. Only READY accepts
forward/reverse/configure_store calls; anything else raises NotReadyError.

Once init() completes, the secret ring and config are immutable, so
forward() and reverse() may run concurrently. init(), close() and
configure_store() change engine-wide state and need external exclusion.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from .bridge import AliasBridge
from .codec import (
    AddressCodec,
    BadSRS,
    CompactAddress,
    GuardedAddress,
    NotSRS,
    OriginalAddress,
    RewrittenAddress,
)
from .config import EngineConfig
from .crypto import HashAuthenticator
from .errors import (
    BadHashError,
    BadSRSError,
    ConfigError,
    Disposition,
    NotReadyError,
    NotSRSError,
    SRSError,
    SRSResult,
    TimestampExpiredError,
)
from .secret_ring import SecretRing
from .storage import AliasStore, StoreDirection
from .timestamp import TimestampCodec, days_since_epoch

_LOG = logging.getLogger(__name__)


class EngineState(Enum):
    """Engine lifecycle state."""

    UNINITIALIZED = "UNINITIALIZED"
    READY = "READY"
    CLOSED = "CLOSED"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ReverseOutcome:
    """Result of try_reverse: exactly one of address or error is set."""

    result: SRSResult
    address: Optional[OriginalAddress] = None
    error: Optional[SRSError] = None

    @property
    def disposition(self) -> Disposition:
        return Disposition.for_result(self.result)

    @property
    def ok(self) -> bool:
        return self.result is SRSResult.OK


@dataclass(frozen=True)
class _Session:
    """Everything init() builds; present only while the engine is READY."""

    config: EngineConfig
    ring: SecretRing
    codec: AddressCodec
    bridge: AliasBridge


class RewriteEngine:
    """
    Rewrites envelope senders into signed addresses and back.

    Forward produces a guarded address, or a compact one when a forward
    alias store is attached. Reverse parses, authenticates and checks the
    freshness of an address and returns the original sender.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Create an uninitialized engine.

        Args:
            clock: Source of Unix time, used for timestamps
        """
        self._clock = clock
        self._state = EngineState.UNINITIALIZED
        self._session: Optional[_Session] = None

    @classmethod
    def open(
        cls, config: EngineConfig, clock: Callable[[], float] = time.time
    ) -> RewriteEngine:
        """Create and initialize an engine in one step."""
        engine = cls(clock=clock)
        engine.init(config)
        return engine

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def config(self) -> EngineConfig:
        return self._require_ready().config

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self, config: EngineConfig) -> None:
        """
        Validate config, build the secret ring and become READY.

        Raises:
            ConfigError: If the config is invalid; the engine stays UNINITIALIZED
            NotReadyError: If the engine was already initialized or closed
        """
        if self._state is not EngineState.UNINITIALIZED:
            raise NotReadyError(f"Cannot initialize engine in state {self._state}")

        try:
            config.validate()
            ring = SecretRing.build(config.secrets)
        except ConfigError as e:
            _LOG.error("SRS configuration error: %s", e)
            raise

        self._session = _Session(
            config=config,
            ring=ring,
            codec=AddressCodec(
                use_hash=config.use_hash,
                use_timestamp=config.use_timestamp,
                max_local_part_length=config.max_local_part_length,
            ),
            bridge=AliasBridge(ring),
        )
        self._state = EngineState.READY

        _LOG.debug(
            "SRS initialized: %d secrets, use_hash=%s, use_timestamp=%s",
            len(ring),
            config.use_hash,
            config.use_timestamp,
        )

    def close(self) -> None:
        """Wipe secrets, drop alias stores and become CLOSED."""
        if self._session is not None:
            self._session.ring.wipe()
            self._session.bridge.clear()
        self._session = None
        self._state = EngineState.CLOSED

    def __enter__(self) -> RewriteEngine:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def configure_store(
        self, direction: StoreDirection, store: Optional[AliasStore]
    ) -> None:
        """
        Attach (or detach with None) the alias store for one direction.

        Replaces any store previously attached to that direction.
        """
        self._require_ready().bridge.set(direction, store)

    # =========================================================================
    # Forward
    # =========================================================================

    async def forward(
        self,
        original: Union[OriginalAddress, str],
        forwarding_domain: str,
        timeout: Optional[float] = None,
    ) -> RewrittenAddress:
        """
        Rewrite a sender address under the forwarding domain.

        Args:
            original: Sender address, as OriginalAddress or "local@domain"
            forwarding_domain: Domain the rewritten address lives under
            timeout: Seconds to wait for the alias store (defaults to config)

        Returns:
            CompactAddress if a forward alias store is attached, else GuardedAddress

        Raises:
            ValueError: If a string original is not a usable mail address
            DBError: If the alias store fails
            AddressTooLongError: If the rewritten local part exceeds its budget
            ConfigError: If the clock is outside the encodable day range
        """
        session = self._require_ready()
        config = session.config

        if isinstance(original, str):
            original = OriginalAddress.parse(original)

        try:
            if session.bridge.get(StoreDirection.FORWARD) is not None:
                token = await session.bridge.store_mapping(
                    original, self._timeout(session, timeout)
                )
                return session.codec.encode_compact(token, forwarding_domain)

            timestamp = None
            hash_value = None
            if config.use_timestamp:
                timestamp = self._encode_now()
            if config.use_hash:
                hash_value = HashAuthenticator.sign(
                    session.ring.primary(),
                    original.domain,
                    timestamp or "",
                    original.local_part,
                    config.hash_length,
                )
            return session.codec.encode_guarded(
                original, forwarding_domain, hash_value=hash_value, timestamp=timestamp
            )
        except SRSError as e:
            _LOG.debug("srs forward failed: %s", e.result)
            raise

    # =========================================================================
    # Reverse
    # =========================================================================

    async def reverse(
        self, address: str, timeout: Optional[float] = None
    ) -> OriginalAddress:
        """
        Recover and authenticate the original sender of a rewritten address.

        Args:
            address: Rewritten address
            timeout: Seconds to wait for the alias store (defaults to config)

        Returns:
            OriginalAddress

        Raises:
            NotSRSError: Address was not produced by this scheme (decline)
            BadSRSError: Address is malformed (decline)
            BadTimestampError: Timestamp token is malformed (fail)
            BadHashError: Hash does not authenticate the address (fail)
            TimestampExpiredError: Timestamp is outside the validity window (fail)
            DBError: Alias store unavailable or failed (defer)
            AddressTooLongError: Stored address exceeds its budget (defer)
        """
        session = self._require_ready()

        try:
            decoded = session.codec.decode(address)
            if isinstance(decoded, NotSRS):
                raise NotSRSError("Address is not a rewritten address")
            if isinstance(decoded, BadSRS):
                raise BadSRSError(decoded.reason)
            if isinstance(decoded, CompactAddress):
                return await session.bridge.lookup_mapping(
                    decoded.token,
                    session.config.max_address_length,
                    self._timeout(session, timeout),
                )
            return self._authenticate(session, decoded)
        except SRSError as e:
            _LOG.debug("srs reverse failed: %s", e.result)
            raise

    async def try_reverse(
        self, address: str, timeout: Optional[float] = None
    ) -> ReverseOutcome:
        """
        Reverse an address without raising for classified failures.

        Raises:
            NotReadyError: Engine misuse is still raised
        """
        self._require_ready()
        try:
            original = await self.reverse(address, timeout)
        except NotReadyError:
            raise
        except SRSError as e:
            return ReverseOutcome(result=e.result, error=e)
        return ReverseOutcome(result=SRSResult.OK, address=original)

    def _authenticate(
        self, session: _Session, decoded: GuardedAddress
    ) -> OriginalAddress:
        config = session.config

        day = None
        if decoded.timestamp is not None:
            day = TimestampCodec.decode(decoded.timestamp)

        if decoded.hash is not None:
            if not HashAuthenticator.verify(
                decoded.hash,
                decoded.original_domain,
                decoded.timestamp or "",
                decoded.original_local_part,
                session.ring,
                config.effective_hash_min_length,
            ):
                raise BadHashError("Hash does not match")

        if day is not None and not TimestampCodec.is_fresh(
            day, self._now_days(), config.max_age_days
        ):
            raise TimestampExpiredError("Timestamp expired")

        return decoded.original

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_ready(self) -> _Session:
        if self._state is not EngineState.READY or self._session is None:
            raise NotReadyError(f"Engine is {self._state}, not READY")
        return self._session

    def _now_days(self) -> int:
        return days_since_epoch(self._clock())

    def _encode_now(self) -> str:
        now_days = self._now_days()
        try:
            return TimestampCodec.encode(now_days)
        except ValueError:
            raise ConfigError(f"Clock is outside the timestamp range: day {now_days}")

    @staticmethod
    def _timeout(session: _Session, timeout: Optional[float]) -> Optional[float]:
        if timeout is not None:
            return timeout
        return session.config.store_timeout
