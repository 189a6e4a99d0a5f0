"""
SLA Report Renderer
Author: CloudOps-SRE-Toolkit
Description: Project report data into a classified table and HTML markup
"""

import html
import logging
from typing import List, Optional, Union
from dataclasses import dataclass, field

from .classifier import SlaClass, classify
from .models import ReportData

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = 'No data found.'
MISSING_VALUE = '-'


@dataclass
class Cell:
    text: str
    sla_class: Optional[SlaClass] = None
    value: Optional[float] = None
    colspan: int = 1

    def to_html(self, tag: str = 'td') -> str:
        attributes = ''
        if self.colspan > 1:
            attributes += f' colspan="{self.colspan}"'
        if self.sla_class is not None:
            attributes += f' class="sla-column {self.sla_class.value}"'
        return f"<{tag}{attributes}>{html.escape(self.text)}</{tag}>"


@dataclass
class Table:
    """Rendered SLA table: header, classified body rows and the totals row"""
    header: List[Cell]
    rows: List[List[Cell]] = field(default_factory=list)
    totals: List[Cell] = field(default_factory=list)

    def to_html(self) -> str:
        header = ''.join(cell.to_html('th') for cell in self.header)
        body = ''.join(
            f"<tr>{''.join(cell.to_html() for cell in row)}</tr>"
            for row in self.rows + [self.totals]
        )
        return (
            '<table class="common-table sla-table">'
            f"<thead><tr>{header}</tr></thead>"
            f"<tbody>{body}</tbody>"
            '</table>'
        )


@dataclass
class NoDataNotice:
    message: str = NO_DATA_MESSAGE

    def to_html(self) -> str:
        return f"<p>{html.escape(self.message)}</p>"


def format_value(value: Optional[float]) -> str:
    if value is None:
        return MISSING_VALUE
    return str(round(value, 2))


def value_cell(value: Optional[float], threshold: float) -> Cell:
    return Cell(format_value(value), classify(value, threshold), value)


def render(data: ReportData, threshold: float) -> Union[Table, NoDataNotice]:
    """Render report data; an empty report becomes a "No data found." notice"""
    if not data.rows:
        logger.info("Report has no rows, rendering no data notice")
        return NoDataNotice()

    header = [Cell(label) for label in data.dimension_labels]
    header.extend(Cell(label) for label in data.value_labels)

    rows = []
    for row in data.rows:
        cells = [Cell(dimension) for dimension in row.dimensions]
        cells.extend(value_cell(value, threshold) for value in row.values)
        rows.append(cells)

    totals = [Cell('Total', colspan=len(data.dimension_labels))]
    totals.extend(value_cell(average, threshold) for average in data.averages)

    return Table(header=header, rows=rows, totals=totals)
