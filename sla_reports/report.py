"""
SLA Report Assembly
Author: CloudOps-SRE-Toolkit
Description: Fetch SLA values per object and period and assemble host / service reports
"""

import logging
import concurrent.futures
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass

import pandas as pd

from .classifier import DEFAULT_THRESHOLD
from .filters import HOST_COLUMNS, SERVICE_COLUMNS, ColumnRule, ValidatedFilter, validate
from .models import ObjectRef, ReportData, ReportRow, column_averages
from .providers import SlaMetricProvider, normalize_metric
from .renderer import NoDataNotice, Table, render
from .timerange import Period, Timerange, segment

logger = logging.getLogger(__name__)


class ReportKind:
    """A report variant: which objects it covers and how their SLA is fetched"""

    name: str = ''
    object_type: str = ''
    metric_label: str = 'SLA in %'
    dimension_labels: List[str] = []
    dimension_columns: List[List[str]] = []
    allowed_columns: List[ColumnRule] = []

    def build_objects(self, rows: List[Dict[str, Any]]) -> List[ObjectRef]:
        """Turn inventory rows into object references, keeping their order"""
        objects = []
        for row in rows:
            dimensions = []
            for candidates in self.dimension_columns:
                display = next((row[c] for c in candidates if row.get(c) not in (None, '')), '')
                dimensions.append(str(display))
            objects.append(ObjectRef(row['object_id'], tuple(dimensions), dict(row)))
        return objects

    def fetch_sla(self, provider: SlaMetricProvider, obj: ObjectRef,
                  period: Period) -> Optional[float]:
        """Fetch the SLA of one object over one period; NaN counts as no data"""
        return normalize_metric(provider.get_availability(obj.object_id, period.start, period.end))


class HostSlaReport(ReportKind):
    name = 'Host SLA'
    object_type = 'host'
    dimension_labels = ['Hostname']
    dimension_columns = [['host_display_name', 'host_name']]
    allowed_columns = HOST_COLUMNS


class ServiceSlaReport(ReportKind):
    name = 'Service SLA'
    object_type = 'service'
    dimension_labels = ['Hostname', 'Service Name']
    dimension_columns = [
        ['host_display_name', 'host_name'],
        ['service_display_name', 'service_description'],
    ]
    allowed_columns = SERVICE_COLUMNS


REPORT_KINDS = {
    'host': HostSlaReport,
    'service': ServiceSlaReport,
}


def get_report_kind(name: str) -> ReportKind:
    try:
        return REPORT_KINDS[name]()
    except KeyError:
        raise ValueError(f"Unknown report kind: {name}") from None


class ReportAssembler:
    """Build ReportData for a list of objects over a (possibly segmented) timerange"""

    def __init__(self, kind: ReportKind, provider: SlaMetricProvider, max_workers: int = 1):
        self.kind = kind
        self.provider = provider
        self.max_workers = max_workers

    def _fetch_sequential(self, objects: List[ObjectRef],
                          periods: List[Period]) -> List[List[Optional[float]]]:
        return [
            [self.kind.fetch_sla(self.provider, obj, period) for period in periods]
            for obj in objects
        ]

    def _fetch_concurrent(self, objects: List[ObjectRef],
                          periods: List[Period]) -> List[List[Optional[float]]]:
        grid = [[None] * len(periods) for _ in objects]

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_cell = {
                executor.submit(self.kind.fetch_sla, self.provider, obj, period): (row, column)
                for row, obj in enumerate(objects)
                for column, period in enumerate(periods)
            }

            try:
                for future in concurrent.futures.as_completed(future_to_cell):
                    row, column = future_to_cell[future]
                    grid[row][column] = future.result()
            except Exception:
                # Queued fetches never start once one has failed
                for pending in future_to_cell:
                    pending.cancel()
                raise

        return grid

    def assemble(self, timerange: Timerange, objects: List[ObjectRef],
                 segment_interval: Optional[pd.DateOffset] = None,
                 filter: Optional[ValidatedFilter] = None) -> ReportData:
        """Fetch one SLA value per object and period and compute column averages"""
        if filter is not None:
            objects = filter.apply(objects)

        if segment_interval is None:
            periods = [Period(timerange.start, timerange.end)]
            value_labels = [self.kind.metric_label]
        else:
            periods = segment(timerange, segment_interval)
            value_labels = [period.label for period in periods]

        logger.info(f"Fetching {self.kind.name} for {len(objects)} objects over {len(periods)} periods")

        if self.max_workers > 1 and objects:
            grid = self._fetch_concurrent(objects, periods)
        else:
            grid = self._fetch_sequential(objects, periods)

        rows = [ReportRow(list(obj.dimensions), values) for obj, values in zip(objects, grid)]

        return ReportData(
            dimension_labels=list(self.kind.dimension_labels),
            value_labels=value_labels,
            rows=rows,
            averages=column_averages(rows, len(value_labels))
        )


@dataclass
class ReportResult:
    kind: ReportKind
    timerange: Timerange
    threshold: float
    data: ReportData
    rendered: Union[Table, NoDataNotice]
    generated_at: datetime


def generate_report(kind: ReportKind, timerange: Timerange, inventory: Any,
                    provider: SlaMetricProvider, threshold: float = DEFAULT_THRESHOLD,
                    filter_expression: Optional[str] = '*',
                    interval: Optional[pd.DateOffset] = None,
                    max_workers: int = 1) -> ReportResult:
    """Validate the filter, select objects from the inventory, assemble and render the report.

    The filter is validated before the inventory or the metric backend is
    queried, so an invalid filter never triggers backend traffic.
    """
    validated = validate(filter_expression, kind.allowed_columns)

    objects = kind.build_objects(inventory.list_objects(kind.object_type))
    objects = validated.apply(objects)
    logger.info(f"{len(objects)} objects match filter {validated.expression}")

    data = ReportAssembler(kind, provider, max_workers).assemble(timerange, objects, interval)

    if not data.rows:
        logger.warning("No data found for report")

    return ReportResult(
        kind=kind,
        timerange=timerange,
        threshold=threshold,
        data=data,
        rendered=render(data, threshold),
        generated_at=datetime.now()
    )
