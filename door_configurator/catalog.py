"""
Catalog repository: loads catalog records from files and serves them by
category.
"""

import csv
import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import openpyxl

from .cache import TTLCache
from .config import AttributeKeys, CatalogSettings
from .errors import CatalogLoadError
from .models import CatalogRecord
from .properties import PropertyBag, to_decimal
from .resolver import AccessoryPools

logger = logging.getLogger(__name__)

# Columns that describe the record itself rather than its attributes
RESERVED_COLUMNS = ('id', 'sku', 'name', 'base_price', 'category', 'properties')


class CatalogRepository:
    """
    Loads catalog records from CSV, Excel or JSON and indexes them by category.

    Parsed categories go through an injected TTLCache; ``invalidate()`` drops
    them so the next request reloads from disk.
    """

    def __init__(self, path: Optional[str] = None,
                 cache: Optional[TTLCache] = None,
                 settings: Optional[CatalogSettings] = None,
                 attributes: Optional[AttributeKeys] = None):
        self.settings = settings or CatalogSettings()
        self.path = Path(path or self.settings.path) if (path or self.settings.path) else None
        self.cache = cache if cache is not None else TTLCache()
        self.attributes = attributes or AttributeKeys()

    def load_records(self) -> List[CatalogRecord]:
        """All records in the catalog file (uncached)."""
        return [record for _, record in self._read_file()]

    def get_category(self, category: str) -> List[CatalogRecord]:
        """Records of one category, served from the cache while fresh."""
        return self._categories().get(category, [])

    def get_doors(self) -> List[CatalogRecord]:
        return self.get_category(self.settings.door_category)

    def load_accessories(self) -> AccessoryPools:
        """Accessory pools for the categories named in the settings."""
        handles = []
        for category in self.settings.handle_categories:
            handles.extend(self.get_category(category))
        return AccessoryPools(
            hardware_kits=self.get_category(self.settings.hardware_kit_category),
            handles=handles,
            limiters=self.get_category(self.settings.limiter_category),
            options=self.get_category(self.settings.option_category),
        )

    def invalidate(self):
        self.cache.invalidate()

    def get_statistics(self) -> Dict[str, Any]:
        """Record counts per category and model counts for the door category."""
        categories = self._categories()
        models = defaultdict(int)
        for record in categories.get(self.settings.door_category, []):
            model = record.bag.get_string(self.attributes.model)
            if model:
                models[model] += 1

        return {
            'total_records': sum(len(records) for records in categories.values()),
            'categories': {name: len(records) for name, records in categories.items()},
            'door_models': dict(models),
        }

    def _categories(self) -> Dict[str, List[CatalogRecord]]:
        key = ('categories', str(self.path))
        return self.cache.get_or_load(key, self._load_categories)

    def _load_categories(self) -> Dict[str, List[CatalogRecord]]:
        grouped: Dict[str, List[CatalogRecord]] = defaultdict(list)
        for category, record in self._read_file():
            grouped[category].append(record)
        logger.info("Loaded %d records in %d categories from %s",
                    sum(len(r) for r in grouped.values()), len(grouped), self.path)
        return dict(grouped)

    def _read_file(self):
        if self.path is None:
            raise CatalogLoadError("No catalog path configured")
        if not self.path.exists():
            raise CatalogLoadError(f"Catalog file not found: {self.path}")

        suffix = self.path.suffix.lower()
        if suffix == '.csv':
            rows = self._read_csv()
        elif suffix in ('.xlsx', '.xlsm'):
            rows = self._read_excel()
        elif suffix == '.json':
            rows = self._read_json()
        else:
            raise CatalogLoadError(f"Unsupported catalog format: {suffix}")

        result = []
        for row_num, row in rows:
            record = self._parse_row(row_num, row)
            if record is not None:
                category = str(row.get('category') or self.settings.door_category).strip()
                result.append((category, record))
        return result

    def _read_csv(self):
        with open(self.path, 'r', encoding='utf-8-sig') as f:
            reader = csv.DictReader(f)
            return list(enumerate(reader, start=2))

    def _read_excel(self):
        try:
            wb = openpyxl.load_workbook(self.path, data_only=True, read_only=True)
        except Exception as e:
            raise CatalogLoadError(f"Cannot open workbook {self.path}: {e}") from e
        try:
            ws = wb.active
            rows = ws.iter_rows(values_only=True)
            header_row = next(rows, None)
            if header_row is None:
                return []
            headers = [str(cell).strip() if cell is not None else '' for cell in header_row]

            result = []
            for row_num, row in enumerate(rows, start=2):
                row_dict = {}
                for i, value in enumerate(row):
                    if i < len(headers) and headers[i]:
                        row_dict[headers[i]] = value
                result.append((row_num, row_dict))
            return result
        finally:
            wb.close()

    def _read_json(self):
        with open(self.path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except ValueError as e:
                raise CatalogLoadError(f"Invalid JSON catalog {self.path}: {e}") from e
        if isinstance(data, dict):
            data = data.get('records', [])
        if not isinstance(data, list):
            raise CatalogLoadError(f"JSON catalog must hold a list of records: {self.path}")
        return [(i, row) for i, row in enumerate(data, start=1) if isinstance(row, dict)]

    def _parse_row(self, row_num: int, row: Dict[str, Any]) -> Optional[CatalogRecord]:
        """Turn one row into a CatalogRecord; rows without an id are skipped."""
        record_id = _cell_text(row.get('id'))
        if not record_id:
            logger.warning("Skipping catalog row %d without an id", row_num)
            return None

        raw_properties = row.get('properties')
        bag = PropertyBag.from_raw(raw_properties)
        if (not len(bag) and isinstance(raw_properties, str)
                and raw_properties.strip() not in ('', '{}')):
            logger.warning("Catalog row %d (%s): unreadable properties column ignored",
                           row_num, record_id)
        properties = bag.as_dict()
        for column, value in row.items():
            if column in RESERVED_COLUMNS or value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            properties[column] = value

        return CatalogRecord(
            record_id=record_id,
            sku=_cell_text(row.get('sku')),
            name=_cell_text(row.get('name')),
            base_price=to_decimal(row.get('base_price')),
            properties=properties,
        )


def _cell_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None
