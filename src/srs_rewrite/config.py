"""
Engine configuration.

This module provides:
- EngineConfig: Immutable settings consumed by RewriteEngine.init
- split_list: Colon-list parsing where '::' stands for a literal colon

Settings may be loaded from the environment (or a .env file):

    SRS_SECRETS         primary:rotated1:rotated2
    SRS_CONFIG          secret:maxage:hashlen:usetimestamp:usehash (legacy, overrides)
    SRS_MAX_AGE         days, 0 disables expiry
    SRS_HASH_LENGTH     characters in new hashes
    SRS_HASH_MIN        shortest hash accepted (defaults to SRS_HASH_LENGTH)
    SRS_USE_TIMESTAMP   0/1
    SRS_USE_HASH        0/1
    SRS_MAX_LOCAL_PART  octets
    SRS_STORE_TIMEOUT   seconds
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from dotenv import load_dotenv

from .codec import DEFAULT_MAX_LOCAL_PART_LENGTH
from .crypto import MAX_HASH_LENGTH, MIN_HASH_LENGTH
from .errors import ConfigError
from .secret_ring import SecretInput
from .timestamp import MAX_AGE_DAYS

_LOG = logging.getLogger(__name__)

DEFAULT_MAX_AGE_DAYS: int = 31
DEFAULT_HASH_LENGTH: int = 6
DEFAULT_MAX_ADDRESS_LENGTH: int = 512

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def split_list(value: str, separator: str = ":") -> List[str]:
    """
    Split a separator-delimited list.

    A doubled separator is a literal separator character inside an item.
    Surrounding whitespace is stripped from each item.
    """
    items: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(value):
        char = value[i]
        if char == separator:
            if value[i + 1 : i + 2] == separator:
                current.append(separator)
                i += 2
                continue
            items.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    items.append("".join(current).strip())
    return items


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer")


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    # Legacy lists use integers; any non-zero is true
    return _parse_int(name, lowered) != 0


@dataclass(frozen=True)
class EngineConfig:
    """
    Settings for a rewriting engine.

    Ranges are checked by validate(), which RewriteEngine.init calls; a
    config object itself may hold out-of-range values.
    """

    secrets: Tuple[SecretInput, ...] = ()
    max_age_days: int = DEFAULT_MAX_AGE_DAYS
    hash_length: int = DEFAULT_HASH_LENGTH
    hash_min_length: Optional[int] = None  # None: same as hash_length
    use_timestamp: bool = True
    use_hash: bool = True
    max_local_part_length: int = DEFAULT_MAX_LOCAL_PART_LENGTH
    max_address_length: int = DEFAULT_MAX_ADDRESS_LENGTH
    store_timeout: Optional[float] = None

    @property
    def effective_hash_min_length(self) -> int:
        """Shortest hash accepted on verification."""
        if self.hash_min_length is None:
            return self.hash_length
        return self.hash_min_length

    def validate(self) -> None:
        """
        Check every range.

        Raises:
            ConfigError: With a message naming the offending setting
        """
        if not self.secrets or not self.secrets[0]:
            raise ConfigError("No secret specified")
        if not 0 <= self.max_age_days <= MAX_AGE_DAYS:
            raise ConfigError("Invalid maximum timestamp age")
        hash_min = self.effective_hash_min_length
        if not (
            MIN_HASH_LENGTH <= self.hash_length <= MAX_HASH_LENGTH
            and MIN_HASH_LENGTH <= hash_min <= MAX_HASH_LENGTH
        ):
            raise ConfigError("Invalid hash length")
        if hash_min > self.hash_length:
            raise ConfigError("Minimum hash length exceeds hash length")
        if self.max_local_part_length < 1 or self.max_address_length < 1:
            raise ConfigError("Invalid address length limit")
        if self.store_timeout is not None and self.store_timeout <= 0:
            raise ConfigError("Invalid alias store timeout")

    def with_secrets(self, *secrets: SecretInput) -> EngineConfig:
        """Return a copy with a different secret list."""
        return replace(self, secrets=tuple(secrets))

    @classmethod
    def from_mapping(cls, env: Mapping[str, str]) -> EngineConfig:
        """
        Build a config from SRS_* keys.

        Raises:
            ConfigError: If a numeric or boolean value does not parse
        """
        secrets: List[str] = []
        if env.get("SRS_SECRETS"):
            secrets = [s for s in split_list(env["SRS_SECRETS"]) if s]

        values = {}
        if env.get("SRS_MAX_AGE"):
            values["max_age_days"] = _parse_int("SRS_MAX_AGE", env["SRS_MAX_AGE"])
        if env.get("SRS_HASH_LENGTH"):
            values["hash_length"] = _parse_int("SRS_HASH_LENGTH", env["SRS_HASH_LENGTH"])
        if env.get("SRS_HASH_MIN"):
            values["hash_min_length"] = _parse_int("SRS_HASH_MIN", env["SRS_HASH_MIN"])
        if env.get("SRS_USE_TIMESTAMP"):
            values["use_timestamp"] = _parse_bool(
                "SRS_USE_TIMESTAMP", env["SRS_USE_TIMESTAMP"]
            )
        if env.get("SRS_USE_HASH"):
            values["use_hash"] = _parse_bool("SRS_USE_HASH", env["SRS_USE_HASH"])
        if env.get("SRS_MAX_LOCAL_PART"):
            values["max_local_part_length"] = _parse_int(
                "SRS_MAX_LOCAL_PART", env["SRS_MAX_LOCAL_PART"]
            )
        if env.get("SRS_STORE_TIMEOUT"):
            try:
                values["store_timeout"] = float(env["SRS_STORE_TIMEOUT"])
            except ValueError:
                raise ConfigError("SRS_STORE_TIMEOUT must be a number")

        # Legacy list overrides the individual settings, item by item
        if env.get("SRS_CONFIG"):
            legacy = split_list(env["SRS_CONFIG"])
            if legacy[0]:
                secrets = [legacy[0]] + secrets
            fields = [
                ("max_age_days", _parse_int),
                ("hash_length", _parse_int),
                ("use_timestamp", _parse_bool),
                ("use_hash", _parse_bool),
            ]
            for (name, parse), raw in zip(fields, legacy[1:]):
                if raw:
                    values[name] = parse("SRS_CONFIG", raw)

        return cls(secrets=tuple(secrets), **values)

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> EngineConfig:
        """
        Build a config from the process environment.

        Args:
            env_file: Optional .env file loaded first (existing variables win)
        """
        load_dotenv(env_file)
        config = cls.from_mapping(os.environ)
        _LOG.debug(
            "loaded SRS config: %d secrets, max_age=%d, hash_length=%d",
            len(config.secrets),
            config.max_age_days,
            config.hash_length,
        )
        return config
