"""
SLA Metric Providers
Author: CloudOps-SRE-Toolkit
Description: Backends returning the availability percentage of one object over one period
"""

import math
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import ConfigurationError, MetricProviderFailure
from .timerange import TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)


def normalize_metric(value: Any) -> Optional[float]:
    """Convert a backend value to a percentage, keeping "no data" as None"""
    if value is None:
        return None

    sla = float(value)
    if math.isnan(sla):
        return None

    if not 0 <= sla <= 100:
        logger.warning(f"SLA value {sla} outside of 0-100 range")

    return sla


class SlaMetricProvider(ABC):
    """Source of availability percentages keyed by object and period"""

    @abstractmethod
    def get_availability(self, object_id: Any, period_start: datetime,
                         period_end: datetime) -> Optional[float]:
        """Return the availability in percent, or None if there is no data"""


class IdoDatabaseProvider(SlaMetricProvider):
    """Icinga IDO database backend using the idoreports SLA function"""

    SLA_QUERY = text(
        "SELECT idoreports_get_sla_ok_percent(:object_id, :start, :end, NULL) AS sla"
    )

    HOST_QUERY = text("""
        SELECT ho.object_id, ho.object_id AS host_object_id,
               ho.name1 AS host_name, h.display_name AS host_display_name,
               i.instance_name
        FROM icinga_objects ho
        JOIN icinga_hosts h ON h.host_object_id = ho.object_id
        JOIN icinga_instances i ON i.instance_id = ho.instance_id
        WHERE ho.is_active = 1 AND ho.objecttype_id = 1
        ORDER BY h.display_name
    """)

    SERVICE_QUERY = text("""
        SELECT so.object_id, s.host_object_id,
               so.name1 AS host_name, h.display_name AS host_display_name,
               so.name2 AS service_description, s.display_name AS service_display_name,
               i.instance_name
        FROM icinga_objects so
        JOIN icinga_services s ON s.service_object_id = so.object_id
        JOIN icinga_hosts h ON h.host_object_id = s.host_object_id
        JOIN icinga_instances i ON i.instance_id = so.instance_id
        WHERE so.is_active = 1 AND so.objecttype_id = 2
        ORDER BY h.display_name, s.display_name
    """)

    HOSTGROUP_QUERY = text("""
        SELECT hgm.host_object_id AS object_id, hgo.name1 AS group_name
        FROM icinga_hostgroup_members hgm
        JOIN icinga_hostgroups hg ON hg.hostgroup_id = hgm.hostgroup_id
        JOIN icinga_objects hgo ON hgo.object_id = hg.hostgroup_object_id
    """)

    SERVICEGROUP_QUERY = text("""
        SELECT sgm.service_object_id AS object_id, sgo.name1 AS group_name
        FROM icinga_servicegroup_members sgm
        JOIN icinga_servicegroups sg ON sg.servicegroup_id = sgm.servicegroup_id
        JOIN icinga_objects sgo ON sgo.object_id = sg.servicegroup_object_id
    """)

    CUSTOMVAR_QUERY = text(
        "SELECT object_id, varname, varvalue FROM icinga_customvariablestatus"
    )

    def __init__(self, engine: Engine):
        self.engine = engine

    def get_availability(self, object_id: Any, period_start: datetime,
                         period_end: datetime) -> Optional[float]:
        params = {
            'object_id': object_id,
            'start': period_start.strftime(TIMESTAMP_FORMAT),
            'end': period_end.strftime(TIMESTAMP_FORMAT),
        }

        try:
            with self.engine.connect() as connection:
                value = connection.execute(self.SLA_QUERY, params).scalar()
        except SQLAlchemyError as e:
            raise MetricProviderFailure(
                f"Cannot fetch SLA for object {object_id}: {str(e)}",
                object_id, period_start, period_end
            ) from e

        return normalize_metric(value)

    def _fetch_groups(self, connection, query) -> Dict[Any, List[str]]:
        groups = defaultdict(list)
        for object_id, group_name in connection.execute(query):
            groups[object_id].append(group_name)
        return groups

    def list_objects(self, object_type: str) -> List[Dict[str, Any]]:
        """List active hosts or services with their filterable columns"""
        query = self.HOST_QUERY if object_type == 'host' else self.SERVICE_QUERY

        try:
            with self.engine.connect() as connection:
                rows = [dict(row._mapping) for row in connection.execute(query)]
                hostgroups = self._fetch_groups(connection, self.HOSTGROUP_QUERY)
                servicegroups = (self._fetch_groups(connection, self.SERVICEGROUP_QUERY)
                                 if object_type == 'service' else {})
                customvars = defaultdict(dict)
                for object_id, name, value in connection.execute(self.CUSTOMVAR_QUERY):
                    customvars[object_id][name.lower()] = value
        except SQLAlchemyError as e:
            raise MetricProviderFailure(f"Cannot list {object_type} objects: {str(e)}") from e

        for row in rows:
            host_object_id = row.pop('host_object_id')
            row['object_type'] = object_type
            row['hostgroup_name'] = hostgroups.get(host_object_id, [])
            for name, value in customvars.get(host_object_id, {}).items():
                row[f"_host_{name}"] = value

            if object_type == 'service':
                row['servicegroup_name'] = servicegroups.get(row['object_id'], [])
                for name, value in customvars.get(row['object_id'], {}).items():
                    row[f"_service_{name}"] = value

        logger.info(f"Loaded {len(rows)} {object_type} objects from IDO database")
        return rows


class HttpAvailabilityProvider(SlaMetricProvider):
    """Availability API backend returning JSON like {"sla": 99.9}"""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 timeout: int = 10):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_availability(self, object_id: Any, period_start: datetime,
                         period_end: datetime) -> Optional[float]:
        params = {
            'object_id': object_id,
            'start': period_start.strftime(TIMESTAMP_FORMAT),
            'end': period_end.strftime(TIMESTAMP_FORMAT),
        }

        try:
            response = self.session.get(f"{self.base_url}/availability",
                                        params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
            return normalize_metric(payload.get('sla'))
        except (requests.RequestException, ValueError, AttributeError) as e:
            raise MetricProviderFailure(
                f"Availability API request failed for object {object_id}: {str(e)}",
                object_id, period_start, period_end
            ) from e


class CsvMetricProvider(SlaMetricProvider):
    """Recorded availability values read from a CSV file"""

    REQUIRED_COLUMNS = ['object_id', 'start', 'end', 'sla']

    def __init__(self, path: str):
        self.path = path
        self.values = self._load(path)

    def _load(self, path: str) -> Dict[Tuple[str, datetime, datetime], Optional[float]]:
        try:
            df = pd.read_csv(path, dtype={'object_id': str})
        except (OSError, ValueError) as e:
            raise MetricProviderFailure(f"Cannot read availability data from {path}: {str(e)}") from e

        missing = [column for column in self.REQUIRED_COLUMNS if column not in df.columns]
        if missing:
            raise ConfigurationError(f"Availability file {path} lacks columns: {', '.join(missing)}")

        df['start'] = pd.to_datetime(df['start'])
        df['end'] = pd.to_datetime(df['end'])

        values = {}
        for row in df.itertuples(index=False):
            key = (row.object_id, row.start.to_pydatetime(), row.end.to_pydatetime())
            values[key] = normalize_metric(row.sla)

        logger.info(f"Loaded {len(values)} availability records from {path}")
        return values

    def get_availability(self, object_id: Any, period_start: datetime,
                         period_end: datetime) -> Optional[float]:
        return self.values.get((str(object_id), period_start, period_end))
