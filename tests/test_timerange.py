from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from sla_reports.exceptions import InvalidInterval
from sla_reports.timerange import Period, Timerange, parse_interval, segment


def _assert_covers(timerange: Timerange, periods: list[Period]) -> None:
    assert periods[0].start == timerange.start
    assert periods[-1].end == timerange.end
    for previous, current in zip(periods, periods[1:]):
        assert previous.start <= previous.end
        assert current.start == previous.end + timedelta(seconds=1)


def test_daily_segmentation_ends_one_second_before_boundary() -> None:
    timerange = Timerange(datetime(2024, 1, 1), datetime(2024, 1, 3, 23, 59, 59))
    periods = segment(timerange, parse_interval("daily"))

    assert periods == [
        Period(datetime(2024, 1, 1), datetime(2024, 1, 1, 23, 59, 59)),
        Period(datetime(2024, 1, 2), datetime(2024, 1, 2, 23, 59, 59)),
        Period(datetime(2024, 1, 3), datetime(2024, 1, 3, 23, 59, 59)),
    ]


def test_last_period_ends_exactly_at_range_end() -> None:
    timerange = Timerange(datetime(2024, 1, 1), datetime(2024, 1, 2, 12, 0, 0))
    periods = segment(timerange, parse_interval("P1D"))

    assert len(periods) == 2
    assert periods[-1] == Period(datetime(2024, 1, 2), datetime(2024, 1, 2, 12, 0, 0))


def test_one_day_range_with_daily_interval_is_single_period() -> None:
    for end in (datetime(2024, 1, 1, 23, 59, 59), datetime(2024, 1, 2)):
        timerange = Timerange(datetime(2024, 1, 1), end)
        assert segment(timerange, parse_interval("daily")) == [Period(timerange.start, timerange.end)]


def test_zero_length_range_yields_input() -> None:
    moment = datetime(2024, 5, 5, 5, 5, 5)
    assert segment(Timerange(moment, moment), parse_interval("monthly")) == [Period(moment, moment)]


def test_monthly_boundaries_do_not_drift_from_month_end() -> None:
    timerange = Timerange(datetime(2024, 1, 31), datetime(2024, 4, 15))
    periods = segment(timerange, parse_interval("P1M"))

    assert [p.start for p in periods] == [
        datetime(2024, 1, 31), datetime(2024, 2, 29), datetime(2024, 3, 31)
    ]
    assert periods[0].end == datetime(2024, 2, 28, 23, 59, 59)
    assert periods[-1].end == datetime(2024, 4, 15)


@pytest.mark.parametrize("interval", ["hourly", "daily", "weekly", "monthly", "PT7H", "P3D", "P1Y"])
def test_segments_cover_range_without_gaps(interval: str) -> None:
    timerange = Timerange(datetime(2023, 11, 17, 8, 30), datetime(2024, 2, 3, 17, 45, 12))
    periods = segment(timerange, parse_interval(interval))

    _assert_covers(timerange, periods)
    assert periods == sorted(periods, key=lambda p: p.start)


def test_segment_is_restartable() -> None:
    timerange = Timerange(datetime(2024, 1, 1), datetime(2024, 3, 1))
    interval = parse_interval("weekly")

    assert segment(timerange, interval) == segment(timerange, interval)
    assert timerange == Timerange(datetime(2024, 1, 1), datetime(2024, 3, 1))


def test_period_label() -> None:
    period = Period(datetime(2024, 1, 1), datetime(2024, 1, 1, 23, 59, 59))
    assert period.label == "2024-01-01 00:00:00 - 2024-01-01 23:59:59"


def test_named_and_iso_intervals_advance_as_expected() -> None:
    base = datetime(2024, 1, 1)
    assert base + parse_interval("weekly") == datetime(2024, 1, 8)
    assert base + parse_interval("quarterly") == datetime(2024, 4, 1)
    assert base + parse_interval("P1DT6H") == datetime(2024, 1, 2, 6)
    assert base + parse_interval("p2w") == datetime(2024, 1, 15)


@pytest.mark.parametrize("text", ["", "   ", "fortnightly", "P", "PT", "P1DT", "P0D", "1D"])
def test_invalid_intervals_are_rejected(text: str) -> None:
    with pytest.raises(InvalidInterval):
        parse_interval(text)


def test_timerange_rejects_start_after_end() -> None:
    with pytest.raises(ValueError):
        Timerange(datetime(2024, 2, 1), datetime(2024, 1, 1))
