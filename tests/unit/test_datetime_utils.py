"""Tests for pm_common.datetime_utils."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.pm_common.datetime_utils import is_aware, to_utc, utc_now


def test_utc_now_is_aware() -> None:
    assert is_aware(utc_now())


def test_naive_is_not_aware() -> None:
    assert not is_aware(datetime(2026, 1, 1))


def test_to_utc_converts_offset() -> None:
    tokyo = datetime(2026, 1, 1, 9, 0, tzinfo=timezone(timedelta(hours=9)))
    assert to_utc(tokyo) == datetime(2026, 1, 1, 0, 0, tzinfo=UTC)
    assert to_utc(tokyo).tzinfo is UTC


def test_to_utc_rejects_naive() -> None:
    with pytest.raises(ValueError):
        to_utc(datetime(2026, 1, 1))
