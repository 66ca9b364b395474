from __future__ import annotations

from datetime import timedelta

import pytest

from echo_engine.services.echo_status import (
    EchoStatus,
    days_until_expiration,
    echo_progress,
    is_discoverable,
    status,
)

from conftest import NOW


@pytest.mark.parametrize(
    ("age", "expected"),
    [
        (timedelta(0), EchoStatus.ACTIVE),
        (timedelta(days=5, hours=23), EchoStatus.ACTIVE),
        (timedelta(days=6), EchoStatus.EXPIRING),
        (timedelta(days=6, hours=23, minutes=59), EchoStatus.EXPIRING),
        (timedelta(days=7), EchoStatus.SILENCE),
        (timedelta(days=30), EchoStatus.SILENCE),
    ],
)
def test_status_bands(age: timedelta, expected: EchoStatus) -> None:
    assert status(NOW - age, NOW) == expected


def test_days_until_expiration_rounds_up() -> None:
    assert days_until_expiration(NOW, NOW) == 7
    assert days_until_expiration(NOW - timedelta(days=6, hours=12), NOW) == 1
    assert days_until_expiration(NOW - timedelta(days=1, minutes=1), NOW) == 6


def test_days_until_expiration_never_negative() -> None:
    assert days_until_expiration(NOW - timedelta(days=7), NOW) == 0
    assert days_until_expiration(NOW - timedelta(days=40), NOW) == 0


def test_silence_profiles_are_not_discoverable() -> None:
    assert is_discoverable(NOW - timedelta(days=6, hours=1), NOW) is True
    assert is_discoverable(NOW - timedelta(days=7), NOW) is False


def test_future_refresh_is_clamped() -> None:
    future = NOW + timedelta(hours=3)
    assert status(future, NOW) == EchoStatus.ACTIVE
    assert echo_progress(future, NOW) == 1.0


def test_echo_progress_tracks_remaining_fraction() -> None:
    assert echo_progress(NOW, NOW) == 1.0
    assert echo_progress(NOW - timedelta(days=3, hours=12), NOW) == pytest.approx(0.5)
    assert echo_progress(NOW - timedelta(days=9), NOW) == 0.0
