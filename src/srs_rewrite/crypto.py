"""
Keyed hashes binding a rewritten address to its original sender.

This module provides:
- HashAuthenticator: HMAC-SHA256 signing and verification with secret rotation
- b32_digest: Base32 rendering of a MAC, safe for address local parts
"""

from __future__ import annotations

import base64

from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.constant_time import bytes_eq

from .secret_ring import Secret, SecretRing
from .timestamp import BASE32_ALPHABET

MIN_HASH_LENGTH: int = 1
MAX_HASH_LENGTH: int = 20
UNIQUE_ID_LENGTH: int = 16

_ALPHABET = frozenset(BASE32_ALPHABET)
_ALIAS_PREFIX = b"alias="


def b32_digest(secret: Secret, message: bytes) -> str:
    """Compute HMAC-SHA256 of message and encode it as unpadded base32."""
    mac = hmac.HMAC(secret.as_bytes(), hashes.SHA256())
    mac.update(message)
    return base64.b32encode(mac.finalize()).decode("ascii").rstrip("=")


def _hash_input(domain: str, timestamp: str, local_part: str) -> bytes:
    # Domains are case-insensitive; local parts are not
    return f"{domain.lower()}={timestamp}={local_part}".encode("utf-8")


class HashAuthenticator:
    """
    Truncated keyed hashes over (domain, timestamp, local part).

    Verification recomputes the hash at the candidate's own length, so
    addresses minted under an earlier hash-length setting still verify as
    long as they are at least hash_min_length characters long.
    """

    @staticmethod
    def sign(
        secret: Secret,
        domain: str,
        timestamp: str,
        local_part: str,
        hash_length: int,
    ) -> str:
        """
        Sign an original address.

        Args:
            secret: Signing secret
            domain: Original domain
            timestamp: Timestamp token ("" when timestamps are disabled)
            local_part: Original local part
            hash_length: Number of characters to keep

        Returns:
            Hash of exactly hash_length base32 characters
        """
        if not MIN_HASH_LENGTH <= hash_length <= MAX_HASH_LENGTH:
            raise ValueError(f"Invalid hash length: {hash_length}")
        digest = b32_digest(secret, _hash_input(domain, timestamp, local_part))
        return digest[:hash_length]

    @staticmethod
    def verify(
        candidate: str,
        domain: str,
        timestamp: str,
        local_part: str,
        ring: SecretRing,
        hash_min_length: int,
    ) -> bool:
        """
        Verify a hash against every secret in the ring.

        Args:
            candidate: Hash taken from the rewritten address
            domain: Original domain
            timestamp: Timestamp token ("" when timestamps are disabled)
            local_part: Original local part
            ring: Secrets to try, primary first
            hash_min_length: Shortest hash accepted

        Returns:
            True on the first matching secret
        """
        length = len(candidate)
        if length < hash_min_length or length > MAX_HASH_LENGTH:
            return False
        if not _ALPHABET.issuperset(candidate):
            return False

        message = _hash_input(domain, timestamp, local_part)
        expected = candidate.encode("ascii")
        for secret in ring.all():
            computed = b32_digest(secret, message)[:length].encode("ascii")
            if bytes_eq(computed, expected):
                return True
        return False

    @staticmethod
    def unique_id(secret: Secret, address: str, length: int = UNIQUE_ID_LENGTH) -> str:
        """Derive a fixed-width alias-store key for an address."""
        return b32_digest(secret, _ALIAS_PREFIX + address.encode("utf-8"))[:length]
