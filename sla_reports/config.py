"""
SLA Report Configuration
Author: CloudOps-SRE-Toolkit
Description: Load report options from JSON with defaults and environment overrides
"""

import os
import json
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

import pandas as pd

from .classifier import DEFAULT_THRESHOLD
from .exceptions import ConfigurationError, InvalidInterval
from .report import REPORT_KINDS
from .timerange import parse_interval

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config/sla_report_config.json"
BACKEND_TYPES = ['csv', 'http', 'ido']
OUTPUT_FORMATS = ['json', 'csv', 'html', 'dashboard']


def _get_default_config() -> Dict[str, Any]:
    """Get default configuration"""
    return {
        "report": "host",
        "threshold": DEFAULT_THRESHOLD,
        "filter": "*",
        "interval": None,
        "max_workers": 1,
        "backend": {
            "type": "csv",
            "path": "data/availability.csv",
            "url": os.getenv("SLA_REPORT_BACKEND_URL", ""),
            "database_url": os.getenv("SLA_REPORT_DATABASE_URL", ""),
            "timeout": 10
        },
        "inventory": {
            "path": "data/inventory.csv"
        },
        "output": {
            "format": ["json", "html"],
            "directory": "."
        }
    }


def _load_config(config_file: str) -> Dict[str, Any]:
    """Load configuration from file, merged over the defaults"""
    config = _get_default_config()

    try:
        with open(config_file, 'r') as f:
            loaded = json.load(f)
    except FileNotFoundError:
        logger.warning(f"Config file {config_file} not found. Using defaults.")
        return config
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in config file {config_file}")
        raise

    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(config.get(key), dict):
            config[key].update(value)
        else:
            config[key] = value

    return config


@dataclass
class ReportConfig:
    """Validated options of one report run"""
    report: str = "host"
    threshold: float = DEFAULT_THRESHOLD
    filter: str = "*"
    interval: Optional[str] = None
    max_workers: int = 1
    backend: Dict[str, Any] = field(default_factory=dict)
    inventory: Dict[str, Any] = field(default_factory=dict)
    output: Dict[str, Any] = field(default_factory=dict)

    @property
    def segment_interval(self) -> Optional[pd.DateOffset]:
        return parse_interval(self.interval) if self.interval else None

    @property
    def output_formats(self) -> List[str]:
        return list(self.output.get("format", []))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReportConfig':
        try:
            threshold = float(data.get("threshold", DEFAULT_THRESHOLD))
        except (TypeError, ValueError):
            raise ConfigurationError(f"Threshold must be a number, got {data.get('threshold')!r}") from None

        if not 0 <= threshold <= 100:
            raise ConfigurationError(f"Threshold must be between 0 and 100, got {threshold}")

        report = data.get("report", "host")
        if report not in REPORT_KINDS:
            raise ConfigurationError(f"Unknown report '{report}', use one of: {', '.join(REPORT_KINDS)}")

        interval = data.get("interval") or None
        if interval is not None:
            try:
                parse_interval(interval)
            except InvalidInterval as e:
                raise ConfigurationError(str(e)) from e

        backend = dict(data.get("backend") or {})
        if backend.get("type", "csv") not in BACKEND_TYPES:
            raise ConfigurationError(f"Unknown backend type '{backend.get('type')}'")

        try:
            max_workers = int(data.get("max_workers", 1))
        except (TypeError, ValueError):
            raise ConfigurationError(f"max_workers must be an integer, got {data.get('max_workers')!r}") from None

        if max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")

        output = dict(data.get("output") or {})
        formats = output.get("format", [])
        if not isinstance(formats, list):
            raise ConfigurationError(f"Output format must be a list such as [\"json\", \"html\"], got {formats!r}")

        unknown = [fmt for fmt in formats if fmt not in OUTPUT_FORMATS]
        if unknown:
            raise ConfigurationError(f"Unknown output format(s): {', '.join(unknown)}")

        return cls(
            report=report,
            threshold=threshold,
            filter=data.get("filter") or "*",
            interval=interval,
            max_workers=max_workers,
            backend=backend,
            inventory=dict(data.get("inventory") or {}),
            output=output
        )


def load_report_config(config_file: str = DEFAULT_CONFIG_FILE,
                       overrides: Optional[Dict[str, Any]] = None) -> ReportConfig:
    """Load the config file and apply overrides (e.g. command line flags) on top"""
    config = _load_config(config_file)

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if isinstance(value, dict):
            config.setdefault(key, {}).update({k: v for k, v in value.items() if v is not None})
        else:
            config[key] = value

    report_config = ReportConfig.from_dict(config)
    logger.info(f"Loaded {report_config.report} report configuration "
                f"(threshold {report_config.threshold}, filter {report_config.filter})")
    return report_config
