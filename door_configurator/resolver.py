"""
Record resolution: tie-breaking among matching door records and
looking up the accessories referenced by a selection.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from .config import AttributeKeys
from .models import CatalogRecord, Selection
from .properties import to_decimal

logger = logging.getLogger(__name__)


def declared_price(record: CatalogRecord, price_keys: Sequence[str]) -> Decimal:
    """
    Price a record declares: first positive attribute among ``price_keys``,
    then the record's base price, then zero.
    """
    price = record.bag.first_positive_number(*price_keys)
    if price is not None:
        return price
    base = to_decimal(record.base_price)
    return base if base is not None else Decimal(0)


class TieBreakResolver:
    """
    Picks one record out of several pipeline survivors.

    Policy "max_price": the most expensive candidate wins so that an
    ambiguous attribute set is never under-quoted. Equal prices keep the
    first candidate in input order.
    """

    policy = "max_price"

    def __init__(self, attributes: Optional[AttributeKeys] = None):
        self.attributes = attributes or AttributeKeys()

    def price_of(self, record: CatalogRecord) -> Decimal:
        return declared_price(record, self.attributes.price)

    def resolve(self, candidates: Sequence[CatalogRecord]) -> Optional[CatalogRecord]:
        """Return the winning record, or None for an empty candidate list."""
        best = None
        best_price = None
        for record in candidates:
            price = self.price_of(record)
            # Strict comparison: the first of equal maxima stays
            if best is None or price > best_price:
                best, best_price = record, price
        return best


@dataclass
class AccessoryPools:
    """Candidate pools for each accessory slot."""
    hardware_kits: List[CatalogRecord] = field(default_factory=list)
    handles: List[CatalogRecord] = field(default_factory=list)
    limiters: List[CatalogRecord] = field(default_factory=list)
    options: List[CatalogRecord] = field(default_factory=list)


@dataclass
class ResolvedAccessories:
    """Accessories found for a selection; unresolved references become warnings."""
    hardware_kit: Optional[CatalogRecord] = None
    handle: Optional[CatalogRecord] = None
    limiter: Optional[CatalogRecord] = None
    options: List[CatalogRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class AccessoryResolver:
    """
    Resolves each accessory slot independently by identifier equality.

    A missing reference means "not selected". A reference that does not
    resolve only omits its slot; it never blocks the base record or the
    other slots.
    """

    def resolve(self, selection: Selection,
                pools: Optional[AccessoryPools] = None) -> ResolvedAccessories:
        pools = pools or AccessoryPools()
        resolved = ResolvedAccessories()

        resolved.hardware_kit = self._resolve_slot(
            'hardware kit', selection.hardware_kit_id, pools.hardware_kits, resolved.warnings)
        resolved.handle = self._resolve_slot(
            'handle', selection.handle_id, pools.handles, resolved.warnings)
        resolved.limiter = self._resolve_slot(
            'limiter', selection.limiter_id, pools.limiters, resolved.warnings)

        index = _index_by_id(pools.options)
        for option_id in selection.option_ids:
            key = str(option_id).strip()
            if not key:
                continue
            option = index.get(key)
            if option is None:
                resolved.warnings.append(f"option {key!r} is unavailable")
                logger.warning("Option %r not found among %d options", key, len(pools.options))
                continue
            resolved.options.append(option)

        return resolved

    def _resolve_slot(self, slot: str, reference: Optional[str],
                      pool: Sequence[CatalogRecord],
                      warnings: List[str]) -> Optional[CatalogRecord]:
        """Look up one referenced record; None when unset or unavailable."""
        if reference is None or not str(reference).strip():
            return None
        key = str(reference).strip()
        for record in pool:
            if record.record_id == key:
                return record
        warnings.append(f"{slot} {key!r} is unavailable")
        logger.warning("%s %r not found among %d candidates", slot.capitalize(), key, len(pool))
        return None


def _index_by_id(records: Sequence[CatalogRecord]) -> Dict[str, CatalogRecord]:
    index = {}
    for record in records:
        index.setdefault(record.record_id, record)
    return index
