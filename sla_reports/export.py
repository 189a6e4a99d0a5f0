"""
SLA Report Export
Author: CloudOps-SRE-Toolkit
Description: Save SLA reports as JSON, CSV, standalone HTML and dashboard images
"""

import json
import html
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns

from .classifier import SlaClass, classify
from .models import ReportData
from .renderer import render
from .timerange import TIMESTAMP_FORMAT, Timerange

logger = logging.getLogger(__name__)


def to_dataframe(data: ReportData) -> pd.DataFrame:
    """Dimension columns followed by value columns; missing values become NaN"""
    records = []
    for row in data.rows:
        record = dict(zip(data.dimension_labels, row.dimensions))
        record.update({
            label: np.nan if value is None else value
            for label, value in zip(data.value_labels, row.values)
        })
        records.append(record)

    return pd.DataFrame(records, columns=list(data.dimension_labels) + list(data.value_labels))


def build_summary(data: ReportData, threshold: float) -> Dict[str, Any]:
    """Headline figures for console output and JSON reports"""
    present = [value for row in data.rows for value in row.values if value is not None]
    below = [
        row for row in data.rows
        if any(classify(value, threshold) == SlaClass.NOK for value in row.values)
    ]

    return {
        "objects": len(data.rows),
        "columns": len(data.value_labels),
        "overall_average": float(np.mean(present)) if present else None,
        "rows_below_threshold": len(below),
        "threshold": threshold
    }


def save_csv(data: ReportData, filename: str) -> None:
    df = to_dataframe(data)
    df.to_csv(filename, index=False)
    logger.info(f"CSV report saved to: {filename}")


def save_json(data: ReportData, filename: str, threshold: float,
              timerange: Optional[Timerange] = None) -> None:
    report = {
        "generated_at": datetime.now().isoformat(),
        "threshold": threshold,
        "summary": build_summary(data, threshold),
        "report": data.to_dict()
    }
    if timerange is not None:
        report["timerange"] = {
            "start": timerange.start.strftime(TIMESTAMP_FORMAT),
            "end": timerange.end.strftime(TIMESTAMP_FORMAT)
        }

    with open(filename, 'w') as f:
        json.dump(report, f, indent=2, default=str)

    logger.info(f"JSON report saved to: {filename}")


def create_html_page(data: ReportData, threshold: float, title: str = "SLA Report") -> str:
    """Standalone HTML page embedding the rendered SLA table"""
    return f"""<!DOCTYPE html>
<html>
<head>
    <title>{html.escape(title)}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; }}
        table {{ border-collapse: collapse; margin-top: 20px; }}
        th, td {{ border: 1px solid #ddd; padding: 8px; text-align: left; }}
        th {{ background-color: #f2f2f2; }}
        .sla-column {{ text-align: right; font-weight: bold; }}
        .sla-column.ok {{ color: green; }}
        .sla-column.nok {{ color: red; }}
        .sla-column.unknown {{ color: gray; }}
    </style>
</head>
<body>
    <h1>{html.escape(title)}</h1>
    <p>Generated on: {datetime.now().strftime(TIMESTAMP_FORMAT)} | Threshold: {threshold}%</p>
    {render(data, threshold).to_html()}
</body>
</html>
"""


def save_html(data: ReportData, filename: str, threshold: float, title: str = "SLA Report") -> None:
    with open(filename, 'w') as f:
        f.write(create_html_page(data, threshold, title))
    logger.info(f"HTML report saved to: {filename}")


def save_dashboard(data: ReportData, filename: str, threshold: float) -> bool:
    """Heatmap of SLA values per object and column; returns False for empty reports"""
    if not data.rows:
        logger.warning("No data to plot, skipping dashboard")
        return False

    df = to_dataframe(data)
    df.index = [" / ".join(row.dimensions) for row in data.rows]
    values = df[list(data.value_labels)].astype(float)
    if values.isna().all().all():
        logger.warning("Report holds no SLA values, skipping dashboard")
        return False

    height = max(3, 0.4 * len(values) + 2)
    width = max(6, 1.6 * len(values.columns) + 4)
    fig, ax = plt.subplots(figsize=(width, height))

    sns.heatmap(values, annot=True, fmt='.2f', cmap='RdYlGn', center=threshold,
                vmax=100, linewidths=0.5, cbar_kws={'label': 'SLA %'}, ax=ax)
    ax.set_title(f'SLA Compliance (threshold {threshold}%)')
    ax.set_xticklabels(ax.get_xticklabels(), rotation=45, ha='right')

    plt.tight_layout()
    plt.savefig(filename, dpi=150, bbox_inches='tight')
    plt.close(fig)

    logger.info(f"Dashboard saved to: {filename}")
    return True
