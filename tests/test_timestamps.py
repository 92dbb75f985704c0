from datetime import date, datetime, timezone

import pytest

from jobtracker.core.timestamps import now_millis, to_epoch_millis

NOW = 1_700_000_000_000


@pytest.mark.parametrize(
    "value,expected",
    [
        (1704067200000, 1704067200000),
        ("1704067200000", 1704067200000),
        ("2024-01-01T00:00:00Z", 1704067200000),
        ("2024-01-01T00:00:00.000Z", 1704067200000),
        ("2024-01-01T01:00:00+01:00", 1704067200000),
        ("2024-01-01 00:00:00", 1704067200000),
        ("2024-01-01", 1704067200000),
        (datetime(2024, 1, 1, tzinfo=timezone.utc), 1704067200000),
        (date(2024, 1, 1), 1704067200000),
    ],
)
def test_to_epoch_millis_parses(value, expected):
    assert to_epoch_millis(value, now=NOW) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "not a date", True])
def test_to_epoch_millis_falls_back_to_now(value):
    assert to_epoch_millis(value, now=NOW) == NOW


def test_now_millis_tracks_wall_clock():
    expected = int(datetime.now(timezone.utc).timestamp() * 1000)
    assert abs(now_millis() - expected) < 5_000
