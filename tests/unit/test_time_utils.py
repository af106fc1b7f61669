import pytest
from datetime import datetime, timedelta, timezone

from mingle.utils.time_utils import dt_from_utc_iso, dt_to_utc_iso


@pytest.mark.unit
def test_dt_to_utc_iso_is_fixed_width_utc():
    assert dt_to_utc_iso(datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "2025-01-02T03:04:05.000000Z"
    # naive datetimes are taken as UTC
    assert dt_to_utc_iso(datetime(2025, 1, 2, 3, 4, 5, 7)) == "2025-01-02T03:04:05.000007Z"
    assert dt_to_utc_iso(None) is None


@pytest.mark.unit
def test_dt_to_utc_iso_converts_offsets():
    plus_two = timezone(timedelta(hours=2))
    assert dt_to_utc_iso(datetime(2025, 1, 2, 3, 0, tzinfo=plus_two)) == "2025-01-02T01:00:00.000000Z"


@pytest.mark.unit
def test_lexical_order_matches_time_order():
    earlier = datetime(2025, 1, 1, 23, 59, 59, 999999, tzinfo=timezone.utc)
    later = earlier + timedelta(microseconds=1)
    assert dt_to_utc_iso(earlier) < dt_to_utc_iso(later)


@pytest.mark.unit
def test_dt_from_utc_iso():
    parsed = dt_from_utc_iso("2025-01-02T03:04:05.000006Z")
    assert parsed == datetime(2025, 1, 2, 3, 4, 5, 6, tzinfo=timezone.utc)
    assert dt_from_utc_iso("") is None
