from datetime import datetime, timezone

import pytest

from ingest.pass_filter import AFTERNOON, NIGHT, parse_acquisition_utc

NOW = datetime(2024, 3, 15, 7, 0, tzinfo=timezone.utc)  # 14:00 Bangkok


@pytest.mark.parametrize(
    ("acq_date", "acq_time", "expected"),
    [
        ("2024-03-15", "0559", None),  # 12:59 local
        ("2024-03-15", "0600", AFTERNOON),  # 13:00 local
        ("2024-03-15", "0859", AFTERNOON),  # 15:59 local
        ("2024-03-15", "0900", None),  # 16:00 local
        ("2024-03-14", "1800", NIGHT),  # 01:00 local on the 15th
        ("2024-03-14", "1959", NIGHT),  # 02:59 local
        ("2024-03-14", "2000", None),  # 03:00 local
    ],
)
def test_window_boundaries_are_half_open(pass_filter, acq_date, acq_time, expected):
    decision = pass_filter.evaluate(acq_date, acq_time, NOW)
    assert decision.window == expected
    assert decision.is_today


def test_night_pass_on_previous_utc_day_counts_as_today(pass_filter):
    decision = pass_filter.evaluate("2024-03-14", "1830", NOW)

    assert decision.accepted
    assert decision.local_time.strftime("%Y-%m-%d %H:%M") == "2024-03-15 01:30"


def test_yesterdays_afternoon_pass_is_rejected(pass_filter):
    decision = pass_filter.evaluate("2024-03-14", "0630", NOW)

    assert decision.window == AFTERNOON
    assert not decision.is_today
    assert not decision.accepted


def test_short_acq_time_is_zero_padded(pass_filter):
    decision = pass_filter.evaluate("2024-03-14", "630", datetime(2024, 3, 14, 8, 0, tzinfo=timezone.utc))
    assert decision.local_time.hour == 13
    assert decision.accepted


@pytest.mark.parametrize(("acq_date", "acq_time"), [("", "0630"), ("2024-03-15", ""), ("2024-13-40", "0630"), ("2024-03-15", "2599")])
def test_unparseable_acquisition_is_rejected(pass_filter, acq_date, acq_time):
    assert parse_acquisition_utc(acq_date, acq_time) is None
    decision = pass_filter.evaluate(acq_date, acq_time, NOW)
    assert decision.local_time is None
    assert not decision.accepted


def test_local_date_requires_aware_now(pass_filter):
    with pytest.raises(ValueError):
        pass_filter.local_date(datetime(2024, 3, 15, 7, 0))


def test_is_pass_time_uses_local_wall_clock(pass_filter):
    assert pass_filter.is_pass_time(datetime(2024, 3, 15, 6, 30, tzinfo=timezone.utc))
    assert pass_filter.is_pass_time(datetime(2024, 3, 14, 19, 0, tzinfo=timezone.utc))
    assert not pass_filter.is_pass_time(datetime(2024, 3, 15, 3, 0, tzinfo=timezone.utc))
