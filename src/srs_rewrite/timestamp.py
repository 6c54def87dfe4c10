"""
Coarse-grained timestamps for rewritten addresses.

Day counts are encoded as fixed-width base32 tokens that are safe inside an
address local part.
"""

from __future__ import annotations

from .errors import BadTimestampError

# RFC 4648 base32 alphabet, shared with hashes
BASE32_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
TIMESTAMP_WIDTH: int = 4
TIMESTAMP_BITS: int = 5 * TIMESTAMP_WIDTH
TIMESTAMP_RANGE: int = 1 << TIMESTAMP_BITS  # Days representable without wrapping

SECONDS_PER_DAY: int = 86400
MAX_AGE_DAYS: int = 365

_INDEX = {char: value for value, char in enumerate(BASE32_ALPHABET)}


def days_since_epoch(unix_seconds: float) -> int:
    """Convert a Unix time to a day count."""
    return int(unix_seconds // SECONDS_PER_DAY)


class TimestampCodec:
    """Encode, decode and check freshness of day-count timestamps."""

    @staticmethod
    def encode(now_days: int) -> str:
        """
        Encode a day count as a fixed-width token.

        Raises:
            ValueError: If the day count is negative or too large to encode
        """
        if not 0 <= now_days < TIMESTAMP_RANGE:
            raise ValueError(f"Day count out of range: {now_days}")

        chars = []
        value = now_days
        for _ in range(TIMESTAMP_WIDTH):
            chars.append(BASE32_ALPHABET[value & 0x1F])
            value >>= 5
        return "".join(reversed(chars))

    @staticmethod
    def decode(token: str) -> int:
        """
        Decode a timestamp token back to a day count.

        Raises:
            BadTimestampError: If the width or alphabet is wrong
        """
        if len(token) != TIMESTAMP_WIDTH:
            raise BadTimestampError(
                f"Invalid timestamp width: expected {TIMESTAMP_WIDTH}, got {len(token)}"
            )

        value = 0
        for char in token:
            digit = _INDEX.get(char)
            if digit is None:
                raise BadTimestampError("Invalid character in timestamp")
            value = (value << 5) | digit
        return value

    @staticmethod
    def is_fresh(day: int, now_days: int, max_age_days: int) -> bool:
        """
        Check a decoded day against the validity window.

        A max age of 0 disables expiry, so every timestamp is fresh.
        """
        if max_age_days == 0:
            return True
        return 0 <= now_days - day <= max_age_days
