"""
Shared secrets used to sign and verify rewritten addresses.

This module provides:
- Secret: Secret wrapper with redacted repr and best-effort zeroization
- SecretRing: Ordered, immutable set of secrets (primary first)
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

from .errors import ConfigError

# Longer secrets are truncated when loaded
MAX_SECRET_LENGTH: int = 64

SecretInput = Union[bytes, bytearray, str]


class Secret:
    """
    Secret wrapper with memory cleanup on wipe or deletion.

    Uses bytearray internally so the material can be zeroed in place.
    Python's garbage collector doesn't guarantee immediate cleanup,
    so this is best-effort zeroization.
    """

    __slots__ = ("_bytes", "_primary")

    def __init__(self, secret: SecretInput, primary: bool = False) -> None:
        """
        Create a Secret from raw bytes or text.

        Args:
            secret: Secret material; text is UTF-8 encoded
            primary: True for the signing secret
        """
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        if not isinstance(secret, (bytes, bytearray)):
            raise ConfigError("Secret must be bytes or str")
        self._bytes = bytearray(secret[:MAX_SECRET_LENGTH])
        self._primary = primary

    @property
    def primary(self) -> bool:
        """Whether this secret signs new addresses."""
        return self._primary

    def as_bytes(self) -> bytes:
        """Return secret as immutable bytes."""
        return bytes(self._bytes)

    def wipe(self) -> None:
        """Zero the secret material."""
        for i in range(len(self._bytes)):
            self._bytes[i] = 0

    def __len__(self) -> int:
        return len(self._bytes)

    def __repr__(self) -> str:
        """Redacted representation to prevent accidental disclosure."""
        role = "primary" if self._primary else "rotated"
        return f"Secret({role}, [REDACTED])"

    def __del__(self) -> None:
        if hasattr(self, "_bytes"):
            self.wipe()


class SecretRing(Sequence[Secret]):
    """
    Ordered set of secrets.

    The first entry signs new addresses; every entry, primary first, is
    tried when verifying. The order never changes after construction.
    """

    __slots__ = ("_secrets",)

    def __init__(self, secrets: Tuple[Secret, ...]) -> None:
        if not secrets:
            raise ConfigError("No secret specified")
        self._secrets = secrets

    @classmethod
    def build(cls, secrets: Iterable[Optional[SecretInput]]) -> SecretRing:
        """
        Build a ring from an ordered sequence of secrets.

        Args:
            secrets: Primary secret first, then rotated secrets in priority order

        Returns:
            SecretRing instance

        Raises:
            ConfigError: If the sequence is empty or contains an empty secret
        """
        items = list(secrets)
        if not items or not items[0]:
            raise ConfigError("No secret specified")

        built = []
        for position, raw in enumerate(items):
            if not raw:
                raise ConfigError(f"Empty secret at position {position}")
            built.append(Secret(raw, primary=(position == 0)))
        return cls(tuple(built))

    def primary(self) -> Secret:
        """Get the signing secret."""
        return self._secrets[0]

    def all(self) -> Iterable[Secret]:
        """Get every verification candidate, primary first."""
        return self

    def wipe(self) -> None:
        """Zero every secret in the ring."""
        for secret in self._secrets:
            secret.wipe()

    def __iter__(self) -> Iterator[Secret]:
        return iter(self._secrets)

    def __getitem__(self, index):  # type: ignore[override]
        return self._secrets[index]

    def __len__(self) -> int:
        return len(self._secrets)

    def __repr__(self) -> str:
        return f"SecretRing({len(self._secrets)} secrets)"
