"""
SLA Report Data Model
Author: CloudOps-SRE-Toolkit
Description: Rows, dimensions and column averages of an SLA report
"""

import math
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field, asdict

import numpy as np


@dataclass(frozen=True)
class ObjectRef:
    """Monitored object: backend id, display dimensions and filterable columns"""
    object_id: Any
    dimensions: Tuple[str, ...]
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass
class ReportRow:
    dimensions: List[str]
    values: List[Optional[float]]


@dataclass
class ReportData:
    """Tabular SLA report: dimension columns, value columns and per-column averages"""
    dimension_labels: List[str]
    value_labels: List[str]
    rows: List[ReportRow] = field(default_factory=list)
    averages: List[Optional[float]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dimensions': list(self.dimension_labels),
            'values': list(self.value_labels),
            'rows': [asdict(row) for row in self.rows],
            'averages': list(self.averages),
        }


def column_averages(rows: List[ReportRow], width: int) -> List[Optional[float]]:
    """Mean of the present values of every column; None for columns without data"""
    averages = []
    for index in range(width):
        present = [
            row.values[index] for row in rows
            if row.values[index] is not None and not math.isnan(row.values[index])
        ]
        averages.append(float(np.mean(present)) if present else None)
    return averages
