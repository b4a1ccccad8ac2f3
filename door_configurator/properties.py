"""
Typed access to the attribute bag attached to catalog records.

Storage hands the bag over either as a native mapping, as JSON text, or not at
all. All three are accepted here and every read degrades to "absent" instead
of raising, so the filter stages and pricing rules never deal with parsing.
"""

import json
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

# Tokens read as "yes" by boolean attribute reads
TRUTHY_TOKENS = frozenset({'yes', 'y', 'true', '1', 'on', 'да'})

# Spaces used as thousands separators: regular, no-break, narrow no-break, thin
_NUMBER_SPACES = re.compile(r'[\s\u00a0\u202f\u2009]+')
_THOUSANDS_COMMAS = re.compile(r'^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$')


class PropertyBag:
    """
    Read-only view over a record's attributes.
    """

    __slots__ = ('_data',)

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data) if data else {}

    @classmethod
    def from_raw(cls, raw: Any) -> 'PropertyBag':
        """Build a bag from a mapping, JSON text/bytes or None."""
        if raw is None:
            return cls()
        if isinstance(raw, PropertyBag):
            return raw
        if isinstance(raw, Mapping):
            return cls(raw)

        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode('utf-8')
            except UnicodeDecodeError:
                logger.debug("Undecodable attribute bytes, using empty bag")
                return cls()

        if isinstance(raw, str):
            if not raw.strip():
                return cls()
            try:
                parsed = json.loads(raw)
            except ValueError:
                logger.debug("Malformed attribute JSON, using empty bag: %.60s", raw)
                return cls()
            if isinstance(parsed, dict):
                return cls(parsed)
            return cls()

        return cls()

    def __len__(self) -> int:
        return len(self._data)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def get(self, name: str) -> Any:
        """Raw value, or None when the key is absent or null."""
        return self._data.get(name)

    def get_string(self, name: str) -> Optional[str]:
        """Trimmed string value; blank counts as absent."""
        value = self._data.get(name)
        if value is None:
            return None
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        text = str(value).strip()
        return text or None

    def get_number(self, name: str) -> Optional[Decimal]:
        """Numeric value as Decimal; unparsable values are absent (not zero)."""
        return to_decimal(self._data.get(name))

    def get_bool(self, name: str) -> bool:
        """True only for affirmative values; anything else is False."""
        return to_bool(self._data.get(name))

    def get_list(self, name: str) -> List[str]:
        """List of trimmed strings from a native list, JSON array or delimited text."""
        value = self._data.get(name)
        if value is None:
            return []
        if isinstance(value, str):
            text = value.strip()
            if text.startswith('['):
                try:
                    value = json.loads(text)
                except ValueError:
                    value = text.strip('[]')
            if isinstance(value, str):
                value = re.split(r'[;,]', value)
        if not isinstance(value, (list, tuple)):
            value = [value]
        items = []
        for item in value:
            if item is None:
                continue
            text = str(item).strip()
            if text:
                items.append(text)
        return items

    def first_positive_number(self, *names: str) -> Optional[Decimal]:
        """First of the given keys holding a number greater than zero."""
        for name in names:
            number = self.get_number(name)
            if number is not None and number > 0:
                return number
        return None


def to_decimal(value: Any) -> Optional[Decimal]:
    """Locale-agnostic numeric coercion. Returns None when not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if value != value or value in (float('inf'), float('-inf')):
            return None
        return Decimal(repr(value))

    text = _NUMBER_SPACES.sub('', str(value))
    if not text:
        return None
    # Comma groups of three digits are thousands ("1,500"), a lone comma is
    # a decimal separator ("1500,50")
    if _THOUSANDS_COMMAS.match(text):
        text = text.replace(',', '')
    elif ',' in text and '.' not in text and text.count(',') == 1:
        text = text.replace(',', '.')
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def to_bool(value: Any) -> bool:
    """Interpret a catalog flag value."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    return str(value).strip().lower() in TRUTHY_TOKENS
