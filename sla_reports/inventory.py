"""
Monitored Object Inventory
Author: CloudOps-SRE-Toolkit
Description: Load hosts and services with their filterable columns from CSV or JSON
"""

import logging
from typing import Any, Dict, List

import pandas as pd

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

GROUP_COLUMNS = ['hostgroup_name', 'servicegroup_name']
GROUP_SEPARATOR = ';'
SORT_COLUMNS = ['host_display_name', 'service_display_name']


class FileInventory:
    """Object inventory stored in a CSV or JSON file"""

    def __init__(self, path: str):
        self.path = path
        self.df = self._load(path)

    def _load(self, path: str) -> pd.DataFrame:
        try:
            if path.endswith('.json'):
                df = pd.read_json(path, orient='records', dtype={'object_id': str})
            else:
                df = pd.read_csv(path, dtype={'object_id': str})
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read inventory {path}: {str(e)}") from e

        if 'object_id' not in df.columns:
            raise ConfigurationError(f"Inventory {path} has no object_id column")

        df['object_id'] = df['object_id'].astype(str)
        logger.info(f"Loaded {len(df)} inventory entries from {path}")
        return df

    def list_objects(self, object_type: str) -> List[Dict[str, Any]]:
        """Return attribute mappings for all objects of the given type"""
        df = self.df
        if 'object_type' in df.columns:
            df = df[df['object_type'] == object_type]

        sort_by = [column for column in SORT_COLUMNS if column in df.columns]
        if sort_by:
            df = df.sort_values(sort_by, kind='mergesort')

        objects = []
        for record in df.to_dict(orient='records'):
            attributes = {}
            for column, value in record.items():
                if not isinstance(value, (list, dict)) and pd.isna(value):
                    continue
                if column.startswith('_'):
                    column = column.lower()
                if column in GROUP_COLUMNS and isinstance(value, str):
                    value = [group.strip() for group in value.split(GROUP_SEPARATOR) if group.strip()]
                attributes[column] = value
            objects.append(attributes)

        logger.info(f"Selected {len(objects)} {object_type} objects from inventory")
        return objects
