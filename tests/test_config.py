from __future__ import annotations

import os
from pathlib import Path

import pytest

from srs_rewrite import ConfigError, EngineConfig
from srs_rewrite.config import split_list


def test_defaults() -> None:
    config = EngineConfig(secrets=("s",))

    assert config.max_age_days == 31
    assert config.hash_length == 6
    assert config.effective_hash_min_length == 6
    assert config.use_timestamp and config.use_hash
    assert config.max_local_part_length == 64
    config.validate()


def test_split_list() -> None:
    assert split_list("a:b:c") == ["a", "b", "c"]
    assert split_list("a::b:c") == ["a:b", "c"]
    assert split_list(" a : b ") == ["a", "b"]
    assert split_list("a::") == ["a:"]
    assert split_list("") == [""]


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"secrets": ()}, "No secret specified"),
        ({"secrets": ("",)}, "No secret specified"),
        ({"max_age_days": -1}, "Invalid maximum timestamp age"),
        ({"max_age_days": 400}, "Invalid maximum timestamp age"),
        ({"hash_length": 0}, "Invalid hash length"),
        ({"hash_length": 21}, "Invalid hash length"),
        ({"hash_min_length": 0}, "Invalid hash length"),
        ({"hash_min_length": 21}, "Invalid hash length"),
        ({"hash_length": 4, "hash_min_length": 5}, "Minimum hash length"),
        ({"max_local_part_length": 0}, "Invalid address length"),
        ({"store_timeout": 0}, "Invalid alias store timeout"),
    ],
)
def test_validate_rejects(overrides: dict, message: str) -> None:
    values = {"secrets": ("s",)}
    values.update(overrides)
    with pytest.raises(ConfigError, match=message):
        EngineConfig(**values).validate()


def test_validate_accepts_bounds() -> None:
    EngineConfig(secrets=("s",), max_age_days=0, hash_length=1).validate()
    EngineConfig(secrets=("s",), max_age_days=365, hash_length=20, hash_min_length=1).validate()


def test_from_mapping_individual_settings() -> None:
    config = EngineConfig.from_mapping(
        {
            "SRS_SECRETS": "primary:old::colon:",
            "SRS_MAX_AGE": "10",
            "SRS_HASH_LENGTH": "8",
            "SRS_HASH_MIN": "5",
            "SRS_USE_TIMESTAMP": "false",
            "SRS_USE_HASH": "1",
            "SRS_MAX_LOCAL_PART": "128",
            "SRS_STORE_TIMEOUT": "2.5",
        }
    )

    assert config.secrets == ("primary", "old:colon")
    assert config.max_age_days == 10
    assert config.hash_length == 8
    assert config.hash_min_length == 5
    assert config.use_timestamp is False
    assert config.use_hash is True
    assert config.max_local_part_length == 128
    assert config.store_timeout == 2.5


def test_from_mapping_legacy_list_overrides() -> None:
    config = EngineConfig.from_mapping(
        {
            "SRS_SECRETS": "listed",
            "SRS_MAX_AGE": "10",
            "SRS_CONFIG": "legacy:21:4:0",
        }
    )

    assert config.secrets == ("legacy", "listed")
    assert config.max_age_days == 21
    assert config.hash_length == 4
    assert config.use_timestamp is False
    assert config.use_hash is True


def test_from_mapping_legacy_list_without_secret() -> None:
    config = EngineConfig.from_mapping({"SRS_SECRETS": "listed", "SRS_CONFIG": ":7"})

    assert config.secrets == ("listed",)
    assert config.max_age_days == 7


@pytest.mark.parametrize(
    "env",
    [
        {"SRS_MAX_AGE": "lots"},
        {"SRS_USE_HASH": "maybe"},
        {"SRS_STORE_TIMEOUT": "soon"},
        {"SRS_CONFIG": "s:x"},
    ],
)
def test_from_mapping_rejects_unparseable(env: dict) -> None:
    with pytest.raises(ConfigError):
        EngineConfig.from_mapping(env)


def test_from_env_reads_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SRS_SECRETS", "SRS_CONFIG", "SRS_HASH_LENGTH"):
        monkeypatch.delenv(name, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("SRS_SECRETS=from-file:older\nSRS_HASH_LENGTH=9\n")

    try:
        config = EngineConfig.from_env(env_file)
    finally:
        # load_dotenv writes into os.environ
        os.environ.pop("SRS_SECRETS", None)
        os.environ.pop("SRS_HASH_LENGTH", None)

    assert config.secrets == ("from-file", "older")
    assert config.hash_length == 9


def test_with_secrets() -> None:
    config = EngineConfig(secrets=("a",), hash_length=8)
    rotated = config.with_secrets("b", "a")

    assert rotated.secrets == ("b", "a")
    assert rotated.hash_length == 8
