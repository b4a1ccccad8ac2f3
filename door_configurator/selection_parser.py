"""
Selection Parser.

Builds Selection objects from request payloads and from order files
(CSV, Excel or JSON), rejecting structurally invalid input up front.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import openpyxl

from .errors import InvalidSelection
from .models import Selection, MirrorState
from .properties import to_bool, to_decimal

logger = logging.getLogger(__name__)


class SelectionParser:
    """
    Parses caller input into a Selection.

    Accepts the payload itself or a payload nested under ``selection``.
    Accessories may be given as ``{"handle": {"id": ...}}`` or ``handle_id``.
    """

    STRING_FIELDS = ('model', 'style', 'finish', 'color', 'filling',
                     'supplier', 'edge_id', 'limiter_id')

    NUMERIC_FIELDS = ('width', 'height')

    FLAG_FIELDS = ('reversible', 'threshold', 'backplate')

    # Column aliases seen in order files
    ALIASES = {
        'model_code': 'model',
        'coating': 'finish',
        'colour': 'color',
        'handle': 'handle_id',
        'hardware_kit': 'hardware_kit_id',
        'kit': 'hardware_kit_id',
        'limiter': 'limiter_id',
        'options': 'option_ids',
        'edge': 'edge_id',
    }

    def parse(self, payload: Mapping[str, Any]) -> Selection:
        """Build a Selection, raising InvalidSelection for bad input."""
        if payload is None:
            raise InvalidSelection("Selection payload is empty")
        if not isinstance(payload, Mapping):
            raise InvalidSelection("Selection payload must be a mapping")

        nested = payload.get('selection')
        if isinstance(nested, Mapping):
            payload = nested

        data = self._normalize_keys(payload)

        values: Dict[str, Any] = {}
        for name in self.STRING_FIELDS:
            values[name] = self._string(data.get(name))

        for name in self.NUMERIC_FIELDS:
            values[name] = self._number(name, data.get(name))

        for name in self.FLAG_FIELDS:
            values[name] = to_bool(data.get(name))

        values['handle_id'] = self._reference(data.get('handle_id'))
        values['hardware_kit_id'] = self._reference(data.get('hardware_kit_id'))
        values['option_ids'] = self._option_ids(data.get('option_ids'))
        values['mirror'] = MirrorState.parse(data.get('mirror'))

        selection = Selection(**values)
        validate_selection(selection)
        return selection

    def parse_file(self, filepath: str) -> List[Tuple[int, Selection]]:
        """
        Parse an order file into (row number, Selection) pairs.
        Rows without a model are skipped with a warning.
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"Selection file not found: {filepath}")

        ext = filepath.suffix.lower()
        if ext == '.json':
            rows = self._read_json(filepath)
        elif ext in ['.xlsx', '.xlsm']:
            rows = self._read_excel(filepath)
        else:
            rows = self._read_csv(filepath)

        selections = []
        for row_num, row in rows:
            try:
                selections.append((row_num, self.parse(row)))
            except InvalidSelection as e:
                logger.warning("Skipping row %d: %s", row_num, e)
        return selections

    def _read_csv(self, filepath: Path) -> List[Tuple[int, Dict[str, Any]]]:
        with open(filepath, 'r', encoding='utf-8-sig', errors='replace') as f:
            sample = f.read(2048)
            f.seek(0)

            # Detect delimiter
            if '\t' in sample:
                delimiter = '\t'
            elif ';' in sample:
                delimiter = ';'
            else:
                delimiter = ','

            reader = csv.DictReader(f, delimiter=delimiter)
            return [(row_num, dict(row)) for row_num, row in enumerate(reader, start=2)]

    def _read_excel(self, filepath: Path) -> List[Tuple[int, Dict[str, Any]]]:
        wb = openpyxl.load_workbook(filepath, data_only=True, read_only=True)
        try:
            ws = wb.active
            rows = ws.iter_rows(values_only=True)
            header_row = next(rows, None)
            if header_row is None:
                return []
            headers = [str(cell or '').strip().lower() for cell in header_row]

            result = []
            for row_num, row in enumerate(rows, start=2):
                row_dict = {}
                for i, value in enumerate(row):
                    if i < len(headers) and headers[i] and value is not None:
                        row_dict[headers[i]] = value
                if row_dict:
                    result.append((row_num, row_dict))
            return result
        finally:
            wb.close()

    def _read_json(self, filepath: Path) -> List[Tuple[int, Dict[str, Any]]]:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if isinstance(data, Mapping):
            data = data.get('selections', [data])
        if not isinstance(data, list):
            raise InvalidSelection(f"{filepath} must hold a list of selections")
        return [(i, row) for i, row in enumerate(data, start=1) if isinstance(row, Mapping)]

    def _normalize_keys(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        data = {}
        for key, value in payload.items():
            name = str(key).strip().lower().replace(' ', '_')
            name = self.ALIASES.get(name, name)
            data[name] = value
        return data

    def _string(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        text = str(value).strip()
        return text or None

    def _number(self, name: str, value: Any):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        number = to_decimal(value)
        if number is None:
            raise InvalidSelection(f"{name} must be a number, got {value!r}", field=name)
        return number

    def _reference(self, value: Any) -> Optional[str]:
        """Accessory reference given as an id or as {"id": ...}."""
        if isinstance(value, Mapping):
            value = value.get('id')
        return self._string(value)

    def _option_ids(self, value: Any) -> Tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.replace(',', ';').split(';')
        if not isinstance(value, (list, tuple)):
            value = [value]
        ids = []
        for item in value:
            text = self._reference(item)
            if text:
                ids.append(text)
        return tuple(ids)


def validate_selection(selection: Selection):
    """
    Reject selections the pipeline must never see: no model code, or a
    dimension that is set but not numeric.
    """
    if selection is None:
        raise InvalidSelection("Selection is missing")
    if selection.model is None or not str(selection.model).strip():
        raise InvalidSelection("Model code is required", field='model')
    for name in SelectionParser.NUMERIC_FIELDS:
        value = getattr(selection, name)
        if value is not None and to_decimal(value) is None:
            raise InvalidSelection(f"{name} must be a number, got {value!r}", field=name)
