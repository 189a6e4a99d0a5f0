#!/usr/bin/env python3
"""
SLA Report Generator
Author: CloudOps-SRE-Toolkit
Description: Generate host and service SLA compliance reports from monitoring backends
"""

import os
import logging
import argparse
from datetime import datetime, timedelta
from typing import Any, List, Optional

from sqlalchemy import create_engine

from .config import BACKEND_TYPES, DEFAULT_CONFIG_FILE, OUTPUT_FORMATS, ReportConfig, load_report_config
from .exceptions import ConfigurationError
from .export import build_summary, save_csv, save_dashboard, save_html, save_json
from .inventory import FileInventory
from .providers import CsvMetricProvider, HttpAvailabilityProvider, IdoDatabaseProvider, SlaMetricProvider
from .report import ReportResult, generate_report, get_report_kind
from .timerange import Timerange

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: bool = True) -> None:
    """Configure logging"""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(f'sla_report_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def build_timerange(start: Optional[str], end: Optional[str], days: int) -> Timerange:
    """Timerange from ISO timestamps, or the last ``days`` days up to now"""
    end_time = datetime.fromisoformat(end) if end else datetime.now().replace(microsecond=0)
    start_time = datetime.fromisoformat(start) if start else end_time - timedelta(days=days)
    return Timerange(start_time, end_time)


def build_provider(config: ReportConfig) -> SlaMetricProvider:
    backend = config.backend
    backend_type = backend.get("type", "csv")

    if backend_type == "http":
        if not backend.get("url"):
            raise ConfigurationError("The http backend needs a url (or SLA_REPORT_BACKEND_URL)")
        return HttpAvailabilityProvider(backend["url"], timeout=int(backend.get("timeout", 10)))

    if backend_type == "ido":
        if not backend.get("database_url"):
            raise ConfigurationError("The ido backend needs a database_url (or SLA_REPORT_DATABASE_URL)")
        return IdoDatabaseProvider(create_engine(backend["database_url"]))

    return CsvMetricProvider(backend.get("path", "data/availability.csv"))


def build_inventory(config: ReportConfig, provider: SlaMetricProvider) -> Any:
    # The IDO database knows its own objects
    if isinstance(provider, IdoDatabaseProvider):
        return provider
    return FileInventory(config.inventory.get("path", "data/inventory.csv"))


def save_outputs(result: ReportResult, formats: List[str], directory: str) -> None:
    """Save report in specified formats"""
    timestamp = result.generated_at.strftime("%Y%m%d_%H%M%S")
    prefix = os.path.join(directory, f"{result.kind.object_type}_sla_report_{timestamp}")
    os.makedirs(directory, exist_ok=True)

    if 'json' in formats:
        save_json(result.data, f"{prefix}.json", result.threshold, result.timerange)

    if 'csv' in formats:
        save_csv(result.data, f"{prefix}.csv")

    if 'html' in formats:
        save_html(result.data, f"{prefix}.html", result.threshold, title=result.kind.name)

    if 'dashboard' in formats:
        save_dashboard(result.data, f"{prefix}.png", result.threshold)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Generate host and service SLA reports')
    parser.add_argument('--config', type=str, default=DEFAULT_CONFIG_FILE,
                        help='Configuration file path')
    parser.add_argument('--report', choices=['host', 'service'], help='Report type')
    parser.add_argument('--start', type=str, help='Start of the time range (ISO format)')
    parser.add_argument('--end', type=str, help='End of the time range (ISO format, default now)')
    parser.add_argument('--days', type=int, default=30,
                        help='Length of the time range in days when no start is given')
    parser.add_argument('--interval', type=str,
                        help='Split the range into periods (daily, weekly, monthly, P1D, ...)')
    parser.add_argument('--threshold', type=float, help='SLA threshold in percent')
    parser.add_argument('--filter', type=str, help='Object filter, e.g. hostgroup_name=linux')
    parser.add_argument('--backend', choices=BACKEND_TYPES, help='SLA metric backend')
    parser.add_argument('--backend-path', type=str, help='Availability CSV for the csv backend')
    parser.add_argument('--backend-url', type=str, help='Base URL for the http backend')
    parser.add_argument('--database-url', type=str, help='SQLAlchemy URL of the IDO database')
    parser.add_argument('--inventory', type=str, help='Inventory CSV or JSON file')
    parser.add_argument('--max-workers', type=int, help='Parallel SLA queries')
    parser.add_argument('--output-format', nargs='+', choices=OUTPUT_FORMATS, help='Output formats')
    parser.add_argument('--output-dir', type=str, help='Directory for report files')
    parser.add_argument('--log-level', type=str, default='INFO', help='Logging level')
    parser.add_argument('--no-log-file', action='store_true', help='Only log to the console')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main execution function"""
    args = parse_args(argv)
    setup_logging(args.log_level, not args.no_log_file)

    try:
        config = load_report_config(args.config, overrides={
            "report": args.report,
            "threshold": args.threshold,
            "filter": args.filter,
            "interval": args.interval,
            "max_workers": args.max_workers,
            "backend": {
                "type": args.backend,
                "path": args.backend_path,
                "url": args.backend_url,
                "database_url": args.database_url
            },
            "inventory": {"path": args.inventory},
            "output": {"format": args.output_format, "directory": args.output_dir}
        })

        timerange = build_timerange(args.start, args.end, args.days)
        provider = build_provider(config)

        result = generate_report(
            get_report_kind(config.report),
            timerange,
            build_inventory(config, provider),
            provider,
            threshold=config.threshold,
            filter_expression=config.filter,
            interval=config.segment_interval,
            max_workers=config.max_workers
        )

        save_outputs(result, config.output_formats, config.output.get("directory", "."))

        summary = build_summary(result.data, result.threshold)
        average = summary['overall_average']

        print(f"\n=== {result.kind.name} Summary ===")
        print(f"Time range: {timerange.start} - {timerange.end}")
        print(f"Objects: {summary['objects']}")
        print(f"Columns: {summary['columns']}")
        print(f"Overall average: {f'{average:.2f}%' if average is not None else 'no data'}")
        print(f"Objects below {result.threshold}%: {summary['rows_below_threshold']}")

        logger.info("SLA report generation completed successfully!")

    except Exception as e:
        logger.error(f"Error during SLA report generation: {str(e)}")
        raise


if __name__ == "__main__":
    main()
