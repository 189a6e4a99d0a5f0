"""
SLA Reports
Author: CloudOps-SRE-Toolkit
Description: Host and service SLA compliance reports over arbitrary time ranges
"""

from .classifier import SlaClass, classify
from .exceptions import (
    ConfigurationError,
    InvalidFilterExpression,
    InvalidInterval,
    MetricProviderFailure,
    SlaReportError,
)
from .filters import HOST_COLUMNS, SERVICE_COLUMNS, validate
from .models import ObjectRef, ReportData, ReportRow
from .renderer import render
from .report import HostSlaReport, ReportAssembler, ServiceSlaReport, generate_report, get_report_kind
from .timerange import Period, Timerange, parse_interval, segment

__version__ = "1.0.0"
