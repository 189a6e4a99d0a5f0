"""
SLA Report Timerange Segmentation
Author: CloudOps-SRE-Toolkit
Description: Split a report time range into contiguous calendar periods
"""

import re
import logging
from datetime import datetime, timedelta
from typing import List
from dataclasses import dataclass

import pandas as pd

from .exceptions import InvalidInterval

logger = logging.getLogger(__name__)

ONE_SECOND = timedelta(seconds=1)
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

NAMED_INTERVALS = {
    'hourly': {'hours': 1},
    'daily': {'days': 1},
    'weekly': {'weeks': 1},
    'monthly': {'months': 1},
    'quarterly': {'months': 3},
    'yearly': {'years': 1},
}

ISO_DURATION = re.compile(
    r'^P(?:(?P<years>\d+)Y)?(?:(?P<months>\d+)M)?(?:(?P<weeks>\d+)W)?(?:(?P<days>\d+)D)?'
    r'(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$',
    re.IGNORECASE
)


@dataclass(frozen=True)
class Timerange:
    """Report time range, both ends inclusive"""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Timerange start {self.start} is after end {self.end}")


@dataclass(frozen=True)
class Period:
    """One sub-division of a Timerange"""
    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return f"{self.start.strftime(TIMESTAMP_FORMAT)} - {self.end.strftime(TIMESTAMP_FORMAT)}"


def parse_interval(text: str) -> pd.DateOffset:
    """Parse a named interval (daily, monthly, ...) or an ISO-8601 duration like P1M"""
    if not text or not text.strip():
        raise InvalidInterval("Empty segmentation interval")

    value = text.strip()
    if value.lower() in NAMED_INTERVALS:
        return pd.DateOffset(**NAMED_INTERVALS[value.lower()])

    match = ISO_DURATION.match(value)
    if not match or value.upper().endswith('T'):
        raise InvalidInterval(f"Invalid segmentation interval: {text}")

    parts = {unit: int(amount) for unit, amount in match.groupdict().items() if amount}
    if not any(parts.values()):
        raise InvalidInterval(f"Segmentation interval must not be zero: {text}")

    return pd.DateOffset(**parts)


def _boundary(start: datetime, interval: pd.DateOffset, step: int) -> datetime:
    # Offsets are applied from the original start so month ends don't drift
    scaled = pd.DateOffset(**{unit: amount * step * interval.n for unit, amount in interval.kwds.items()})
    return (pd.Timestamp(start) + scaled).to_pydatetime()


def segment(timerange: Timerange, interval: pd.DateOffset) -> List[Period]:
    """Split a timerange into periods that end one second before each interval boundary.

    The last period always ends exactly at ``timerange.end``. A range that
    contains no interior boundary yields a single period equal to the range.
    """
    start = timerange.start
    end = timerange.end

    if not interval.kwds or _boundary(start, interval, 1) <= start:
        raise InvalidInterval(f"Segmentation interval does not advance time: {interval}")

    periods = []
    step = 1
    boundary = _boundary(start, interval, step)

    while boundary < end:
        periods.append(Period(start, boundary - ONE_SECOND))
        start = boundary
        step += 1
        boundary = _boundary(timerange.start, interval, step)

    periods.append(Period(start, end))

    logger.debug(f"Segmented {timerange.start} - {timerange.end} into {len(periods)} periods")
    return periods
