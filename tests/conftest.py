from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest

from sla_reports.exceptions import MetricProviderFailure
from sla_reports.models import ObjectRef
from sla_reports.providers import SlaMetricProvider
from sla_reports.timerange import Timerange


class FakeProvider(SlaMetricProvider):
    """Returns canned SLA values per object id and records every call"""

    def __init__(self, values: dict | None = None, fail_for: tuple = ()) -> None:
        self.values = values or {}
        self.fail_for = fail_for
        self.calls: list[tuple[Any, datetime, datetime]] = []

    def get_availability(self, object_id, period_start, period_end):
        self.calls.append((object_id, period_start, period_end))
        if object_id in self.fail_for:
            raise MetricProviderFailure("backend down", object_id, period_start, period_end)
        value = self.values.get(object_id)
        if callable(value):
            return value(period_start, period_end)
        return value


class FakeInventory:
    def __init__(self, rows: list[dict]) -> None:
        self.rows = rows
        self.requested: list[str] = []

    def list_objects(self, object_type: str) -> list[dict]:
        self.requested.append(object_type)
        return [row for row in self.rows if row.get("object_type", object_type) == object_type]


@pytest.fixture
def january() -> Timerange:
    return Timerange(datetime(2024, 1, 1), datetime(2024, 1, 31, 23, 59, 59))


@pytest.fixture
def hosts() -> list[ObjectRef]:
    return [
        ObjectRef("1", ("web01",), {"host_name": "web01", "hostgroup_name": ["linux"]}),
        ObjectRef("2", ("db01",), {"host_name": "db01", "hostgroup_name": ["linux", "db"]}),
    ]


@pytest.fixture
def inventory_rows() -> list[dict]:
    return [
        {"object_id": "1", "object_type": "host", "host_name": "web01",
         "host_display_name": "Web 01", "hostgroup_name": ["linux"], "instance_name": "default"},
        {"object_id": "2", "object_type": "host", "host_name": "db01",
         "host_display_name": "DB 01", "hostgroup_name": ["db"], "instance_name": "default"},
        {"object_id": "3", "object_type": "service", "host_name": "web01",
         "host_display_name": "Web 01", "service_description": "http",
         "service_display_name": "HTTP", "servicegroup_name": ["web"], "instance_name": "default"},
    ]
