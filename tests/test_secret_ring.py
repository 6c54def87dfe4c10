from __future__ import annotations

import pytest

from srs_rewrite import MAX_SECRET_LENGTH, ConfigError, Secret, SecretRing


def test_build_orders_primary_first() -> None:
    ring = SecretRing.build([b"first", "second", b"third"])

    assert len(ring) == 3
    assert ring.primary().as_bytes() == b"first"
    assert ring.primary().primary
    assert [s.as_bytes() for s in ring.all()] == [b"first", b"second", b"third"]
    assert [s.primary for s in ring] == [True, False, False]


def test_all_is_restartable() -> None:
    ring = SecretRing.build(["a", "b"])
    candidates = ring.all()

    assert [s.as_bytes() for s in candidates] == [b"a", b"b"]
    assert [s.as_bytes() for s in candidates] == [b"a", b"b"]


@pytest.mark.parametrize("secrets", [[], [b""], [None], ["", "rotated"]])
def test_build_rejects_missing_primary(secrets) -> None:
    with pytest.raises(ConfigError, match="No secret specified"):
        SecretRing.build(secrets)


def test_build_rejects_empty_rotated_secret() -> None:
    with pytest.raises(ConfigError, match="position 1"):
        SecretRing.build(["primary", ""])


def test_long_secret_truncated_on_ingestion() -> None:
    secret = Secret(b"x" * (MAX_SECRET_LENGTH + 40))
    assert len(secret) == MAX_SECRET_LENGTH


def test_repr_is_redacted() -> None:
    ring = SecretRing.build(["hunter2"])

    assert "hunter2" not in repr(ring.primary())
    assert "REDACTED" in repr(ring.primary())
    assert "hunter2" not in repr(ring)


def test_wipe_zeroes_material() -> None:
    ring = SecretRing.build(["abc", "de"])
    ring.wipe()

    assert ring[0].as_bytes() == b"\x00\x00\x00"
    assert ring[1].as_bytes() == b"\x00\x00"
