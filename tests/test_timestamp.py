from __future__ import annotations

import pytest

from srs_rewrite import TIMESTAMP_WIDTH, BadTimestampError, TimestampCodec, days_since_epoch
from srs_rewrite.timestamp import BASE32_ALPHABET


@pytest.mark.parametrize("day", [0, 1, 31, 32, 19875, (1 << 20) - 1])
def test_encode_decode_round_trip(day: int) -> None:
    token = TimestampCodec.encode(day)

    assert len(token) == TIMESTAMP_WIDTH
    assert set(token) <= set(BASE32_ALPHABET)
    assert TimestampCodec.decode(token) == day


def test_encode_known_values() -> None:
    assert TimestampCodec.encode(0) == "AAAA"
    assert TimestampCodec.encode(1) == "AAAB"
    assert TimestampCodec.encode(32) == "AABA"


@pytest.mark.parametrize("day", [-1, 1 << 20])
def test_encode_rejects_out_of_range(day: int) -> None:
    with pytest.raises(ValueError):
        TimestampCodec.encode(day)


@pytest.mark.parametrize("token", ["AAA", "AAAAA", "", "AA=A", "AA1A", "aaaa", "AA A"])
def test_decode_rejects_malformed(token: str) -> None:
    with pytest.raises(BadTimestampError):
        TimestampCodec.decode(token)


def test_is_fresh_window() -> None:
    assert TimestampCodec.is_fresh(100, 100, 21)
    assert TimestampCodec.is_fresh(79, 100, 21)
    assert not TimestampCodec.is_fresh(78, 100, 21)
    assert not TimestampCodec.is_fresh(101, 100, 21)


def test_zero_max_age_disables_expiry() -> None:
    assert TimestampCodec.is_fresh(0, 100000, 0)
    assert TimestampCodec.is_fresh(200000, 100000, 0)


def test_days_since_epoch() -> None:
    assert days_since_epoch(0) == 0
    assert days_since_epoch(86399.9) == 0
    assert days_since_epoch(86400) == 1
    assert days_since_epoch(1717243200.0) == 19875
