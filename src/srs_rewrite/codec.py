"""
Wire format for rewritten addresses.

This module provides:
- OriginalAddress: Sender address before rewriting
- GuardedAddress: Self-contained rewritten address (hash, timestamp, original)
- CompactAddress: Token-only rewritten address resolved through an alias store
- NotSRS / BadSRS: Decode outcomes for foreign and malformed addresses
- AddressCodec: Serialization to and from address local parts

Local-part grammar, under the relay's own domain:

    guarded := "SRS0" "=" HASH "=" TIMESTAMP "=" ORIG_DOMAIN "=" ORIG_LOCALPART
    compact := "SRS1" "=" TOKEN

HASH and TIMESTAMP are omitted when disabled. ORIG_LOCALPART is whatever
remains after the fixed fields, so an already-rewritten sender is carried
intact and reversal peels exactly one layer per relay.

Case: the tag is matched case-insensitively, so "srs0=" is still
recognized as ours. Every other field is carried exactly as written. HASH
and TIMESTAMP are upper-case base32 and are compared exactly, so an
address whose local part was case-folded in transit is recognized but
fails authentication (BadTimestampError or BadHashError) rather than
being declined as foreign.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .errors import AddressTooLongError

TAG_GUARDED: str = "SRS0"
TAG_COMPACT: str = "SRS1"
SEPARATOR: str = "="

DEFAULT_MAX_LOCAL_PART_LENGTH: int = 64


@dataclass(frozen=True)
class OriginalAddress:
    """
    Sender address before rewriting.

    Both halves must be non-empty and the domain may not contain '=',
    otherwise the guarded encoding could not be split back apart.

    Raises:
        ValueError: On construction with an address that cannot round-trip
    """

    local_part: str
    domain: str

    def __post_init__(self) -> None:
        if not self.local_part or not self.domain:
            raise ValueError(
                f"Not a mail address: {self.local_part!r}@{self.domain!r}"
            )
        if SEPARATOR in self.domain:
            raise ValueError(
                f"Domain may not contain {SEPARATOR!r}: {self.domain!r}"
            )

    @classmethod
    def parse(cls, address: str) -> OriginalAddress:
        """
        Split an address at its last '@'.

        Raises:
            ValueError: If either half is empty or the domain contains '='
        """
        local_part, at, domain = address.strip().rpartition("@")
        if not at:
            raise ValueError(f"Not a mail address: {address!r}")
        return cls(local_part=local_part, domain=domain)

    def __str__(self) -> str:
        return f"{self.local_part}@{self.domain}"


@dataclass(frozen=True)
class GuardedAddress:
    """Rewritten address carrying hash, timestamp and original address inline."""

    hash: Optional[str]
    timestamp: Optional[str]
    original_domain: str
    original_local_part: str
    forwarding_domain: str

    @property
    def original(self) -> OriginalAddress:
        return OriginalAddress(self.original_local_part, self.original_domain)

    @property
    def local_part(self) -> str:
        fields = [TAG_GUARDED]
        if self.hash is not None:
            fields.append(self.hash)
        if self.timestamp is not None:
            fields.append(self.timestamp)
        fields.append(self.original_domain)
        fields.append(self.original_local_part)
        return SEPARATOR.join(fields)

    def __str__(self) -> str:
        return f"{self.local_part}@{self.forwarding_domain}"


@dataclass(frozen=True)
class CompactAddress:
    """Rewritten address carrying only an alias-store token."""

    token: str
    forwarding_domain: str

    @property
    def local_part(self) -> str:
        return f"{TAG_COMPACT}{SEPARATOR}{self.token}"

    def __str__(self) -> str:
        return f"{self.local_part}@{self.forwarding_domain}"


@dataclass(frozen=True)
class NotSRS:
    """Address does not start with a recognized tag."""

    address: str


@dataclass(frozen=True)
class BadSRS:
    """Address starts with a recognized tag but does not parse."""

    address: str
    reason: str


RewrittenAddress = Union[GuardedAddress, CompactAddress]
Decoded = Union[GuardedAddress, CompactAddress, NotSRS, BadSRS]


def split_address(address: str) -> Tuple[str, str]:
    """Split into (local part, domain); the domain is empty when absent."""
    local_part, at, domain = address.strip().rpartition("@")
    if not at:
        return domain, ""
    return local_part, domain


class AddressCodec:
    """
    Serialize and parse rewritten addresses.

    The hash/timestamp flags decide which fields are written and how many
    fields a guarded address is expected to have when parsed.
    """

    def __init__(
        self,
        use_hash: bool = True,
        use_timestamp: bool = True,
        max_local_part_length: int = DEFAULT_MAX_LOCAL_PART_LENGTH,
    ) -> None:
        self._use_hash = use_hash
        self._use_timestamp = use_timestamp
        self._max_local_part_length = max_local_part_length

    @property
    def use_hash(self) -> bool:
        return self._use_hash

    @property
    def use_timestamp(self) -> bool:
        return self._use_timestamp

    @property
    def max_local_part_length(self) -> int:
        return self._max_local_part_length

    def encode_guarded(
        self,
        original: OriginalAddress,
        forwarding_domain: str,
        hash_value: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> GuardedAddress:
        """
        Wrap an original address in a guarded local part.

        An original that is itself rewritten is wrapped as-is, never stripped.

        Raises:
            ValueError: If hash/timestamp presence does not match the codec flags
            AddressTooLongError: If the local part exceeds its budget
        """
        if (hash_value is not None) != self._use_hash:
            raise ValueError("Hash presence does not match codec configuration")
        if (timestamp is not None) != self._use_timestamp:
            raise ValueError("Timestamp presence does not match codec configuration")

        rewritten = GuardedAddress(
            hash=hash_value,
            timestamp=timestamp,
            original_domain=original.domain,
            original_local_part=original.local_part,
            forwarding_domain=forwarding_domain,
        )
        self._check_length(rewritten.local_part)
        return rewritten

    def encode_compact(self, token: str, forwarding_domain: str) -> CompactAddress:
        """
        Wrap an alias-store token in a compact local part.

        Raises:
            AddressTooLongError: If the local part exceeds its budget
        """
        rewritten = CompactAddress(token=token, forwarding_domain=forwarding_domain)
        self._check_length(rewritten.local_part)
        return rewritten

    def decode(self, address: str) -> Decoded:
        """
        Parse an address that may have been produced by this scheme.

        Never raises for untrusted input; foreign and malformed addresses
        come back as NotSRS and BadSRS values.
        """
        local_part, domain = split_address(address)
        tag, sep, rest = local_part.partition(SEPARATOR)
        tag = tag.upper()

        if tag not in (TAG_GUARDED, TAG_COMPACT):
            return NotSRS(address)
        if not sep:
            return BadSRS(address, "Missing fields after tag")

        if tag == TAG_COMPACT:
            if not rest or not rest.isalnum():
                return BadSRS(address, "Invalid compact token")
            return CompactAddress(token=rest, forwarding_domain=domain)

        return self._decode_guarded(address, rest, domain)

    def _decode_guarded(self, address: str, rest: str, domain: str) -> Decoded:
        n_fixed = int(self._use_hash) + int(self._use_timestamp) + 1
        fields = rest.split(SEPARATOR, n_fixed)
        if len(fields) != n_fixed + 1 or not all(fields):
            return BadSRS(address, f"Expected {n_fixed + 1} fields")

        hash_value = fields.pop(0) if self._use_hash else None
        timestamp = fields.pop(0) if self._use_timestamp else None
        original_domain, original_local_part = fields

        return GuardedAddress(
            hash=hash_value,
            timestamp=timestamp,
            original_domain=original_domain,
            original_local_part=original_local_part,
            forwarding_domain=domain,
        )

    def _check_length(self, local_part: str) -> None:
        size = len(local_part.encode("utf-8"))
        if size > self._max_local_part_length:
            raise AddressTooLongError(
                f"Local part too long: {size} > {self._max_local_part_length} octets"
            )
