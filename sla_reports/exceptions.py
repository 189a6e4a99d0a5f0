"""
SLA Report Errors
Author: CloudOps-SRE-Toolkit
Description: Exception hierarchy shared by the SLA report components
"""

from datetime import datetime
from typing import List, Optional


class SlaReportError(Exception):
    """Base class for all SLA report errors"""


class ConfigurationError(SlaReportError):
    """Raised for invalid report configuration values"""


class InvalidInterval(SlaReportError, ValueError):
    """Raised when a calendar interval cannot be parsed"""


class InvalidFilterExpression(SlaReportError):
    """Raised when a filter uses a disallowed column or cannot be parsed"""

    def __init__(self, expression: str, allowed_columns: List[str]):
        self.expression = expression
        self.allowed_columns = list(allowed_columns)
        super().__init__(
            f"Cannot apply the filter {expression}. "
            f"You can only use the following columns: {', '.join(self.allowed_columns)}"
        )


class MetricProviderFailure(SlaReportError):
    """Raised when a metric backend fails for one object and period"""

    def __init__(self, message: str, object_id: Optional[str] = None,
                 period_start: Optional[datetime] = None,
                 period_end: Optional[datetime] = None):
        self.object_id = object_id
        self.period_start = period_start
        self.period_end = period_end
        super().__init__(message)
