"""
Exception classes for sender rewriting operations.

This module defines the exception hierarchy for the rewriting engine. Every
exception carries the result code it stands for and the disposition the
surrounding mail transport should take:

- DECLINE: the address is not ours or is malformed; pass it through
- FAIL: authentication failed; reject permanently
- DEFER: temporary or configuration problem; retry later
"""

from __future__ import annotations

from enum import Enum


class SRSResult(Enum):
    """Outcome of a rewriting operation."""

    OK = "OK"
    CONFIG_ERROR = "CONFIG_ERROR"
    NOT_READY = "NOT_READY"
    NOT_SRS = "NOT_SRS"
    BAD_SRS = "BAD_SRS"
    BAD_HASH = "BAD_HASH"
    BAD_TIMESTAMP = "BAD_TIMESTAMP"
    TIMESTAMP_EXPIRED = "TIMESTAMP_EXPIRED"
    DB_ERROR = "DB_ERROR"
    ADDRESS_TOO_LONG = "ADDRESS_TOO_LONG"

    def __str__(self) -> str:
        return self.value


class Disposition(Enum):
    """What the caller should do with an outcome."""

    ACCEPT = "ACCEPT"  # Proceed with the returned address
    DECLINE = "DECLINE"  # Not ours, pass through untouched
    FAIL = "FAIL"  # Permanent rejection, never retried
    DEFER = "DEFER"  # Retry later or abort startup

    def __str__(self) -> str:
        return self.value

    @classmethod
    def for_result(cls, result: SRSResult) -> Disposition:
        """Map a result code to the transport disposition."""
        if result is SRSResult.OK:
            return cls.ACCEPT
        if result in (SRSResult.NOT_SRS, SRSResult.BAD_SRS):
            return cls.DECLINE
        if result in (
            SRSResult.BAD_HASH,
            SRSResult.BAD_TIMESTAMP,
            SRSResult.TIMESTAMP_EXPIRED,
        ):
            return cls.FAIL
        return cls.DEFER


class SRSError(Exception):
    """Base exception for all rewriting operations."""

    result: SRSResult = SRSResult.DB_ERROR

    @property
    def disposition(self) -> Disposition:
        return Disposition.for_result(self.result)


class ConfigError(SRSError):
    """Bad initialization parameters."""

    result = SRSResult.CONFIG_ERROR


class NotReadyError(SRSError):
    """Engine used outside its Ready state."""

    result = SRSResult.NOT_READY


class NotSRSError(SRSError):
    """Address was not produced by this scheme."""

    result = SRSResult.NOT_SRS


class BadSRSError(SRSError):
    """Address carries a recognized tag but is malformed."""

    result = SRSResult.BAD_SRS


class BadHashError(SRSError):
    """Hash does not authenticate the address."""

    result = SRSResult.BAD_HASH


class BadTimestampError(SRSError):
    """Timestamp token is malformed."""

    result = SRSResult.BAD_TIMESTAMP


class TimestampExpiredError(SRSError):
    """Timestamp is well-formed but outside the validity window."""

    result = SRSResult.TIMESTAMP_EXPIRED


class DBError(SRSError):
    """Alias store is unavailable or failed."""

    result = SRSResult.DB_ERROR


class AddressTooLongError(SRSError):
    """Output exceeds its length budget."""

    result = SRSResult.ADDRESS_TOO_LONG
