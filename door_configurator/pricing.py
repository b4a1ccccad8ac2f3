"""
Price Breakdown Composer.

Turns the resolved door record, its resolved accessories and the selection's
modifiers into an itemized breakdown. Rules run in a fixed order and each one
adds at most one line (the handle rule may add a backplate line as well).
Nothing here rejects a selection: a missing accessory or an unavailable
modifier only leaves its line out.
"""

import logging
from decimal import Decimal
from typing import Optional

from .config import AttributeKeys, PricingRules
from .models import CatalogRecord, Selection, PriceBreakdown, MirrorState
from .properties import PropertyBag, to_decimal
from .resolver import ResolvedAccessories, declared_price

logger = logging.getLogger(__name__)


class PriceBreakdownComposer:
    """
    Builds a PriceBreakdown from a resolved base record.
    """

    def __init__(self, attributes: Optional[AttributeKeys] = None,
                 pricing: Optional[PricingRules] = None):
        self.attributes = attributes or AttributeKeys()
        self.pricing = pricing or PricingRules()

    def compose(self, record: CatalogRecord, selection: Selection,
                accessories: Optional[ResolvedAccessories] = None) -> PriceBreakdown:
        """
        Compose the breakdown for ``record``.

        The base amount is the record's declared price; the tie-break already
        picked the most expensive candidate, so no extra margin is added.
        """
        keys = self.attributes
        accessories = accessories or ResolvedAccessories()
        bag = record.bag

        breakdown = PriceBreakdown(base=declared_price(record, keys.price))

        # Accessories
        if accessories.hardware_kit is not None:
            kit = accessories.hardware_kit
            breakdown.add(f"hardware kit: {self._name(kit, 'hardware kit')}",
                          declared_price(kit, keys.kit_price))

        if accessories.handle is not None:
            handle = accessories.handle
            name = self._name(handle, 'handle')
            breakdown.add(f"handle: {name}", declared_price(handle, keys.handle_price))
            if selection.backplate:
                backplate = handle.bag.get_number(keys.backplate_price)
                if backplate is not None and backplate > 0:
                    breakdown.add(f"backplate: {name}", backplate)

        if accessories.limiter is not None:
            limiter = accessories.limiter
            breakdown.add(f"limiter: {self._name(limiter, 'limiter')}",
                          declared_price(limiter, keys.limiter_price))

        for option in accessories.options:
            breakdown.add(self._name(option, f"option {option.record_id}"),
                          declared_price(option, keys.option_price))

        # Modifiers declared by the door record
        if selection.reversible and bag.get_bool(keys.reversible_available):
            self._add_positive(breakdown, "reversible", bag.get_number(keys.reversible_surcharge))

        if selection.threshold and bag.get_bool(keys.threshold_available):
            self._add_positive(breakdown, "threshold", bag.get_number(keys.threshold_price))

        self._add_mirror(breakdown, bag, selection.mirror)
        self._add_edge(breakdown, bag, selection.edge_id)
        self._add_height_band(breakdown, bag, selection)

        logger.debug("Composed %d lines for %s: base=%s total=%s",
                     len(breakdown.lines), record.record_id, breakdown.base, breakdown.total)
        return breakdown

    def _add_mirror(self, breakdown: PriceBreakdown, bag: PropertyBag, mirror: MirrorState):
        """Mirror surcharge, silently ignored when the record has no mirror option."""
        if mirror == MirrorState.NONE:
            return
        if not bag.get_bool(self.attributes.mirror_available):
            return
        if mirror == MirrorState.ONE_SIDE:
            amount = bag.get_number(self.attributes.mirror_one_side_price)
        else:
            amount = bag.get_number(self.attributes.mirror_both_sides_price)
        self._add_positive(breakdown, "mirror", amount)

    def _add_edge(self, breakdown: PriceBreakdown, bag: PropertyBag, edge_id: Optional[str]):
        """
        Edge color surcharge. An edge included in the base price suppresses
        the line entirely, whatever edge was selected.
        """
        edge = (edge_id or '').strip()
        if not edge or edge.lower() == 'none':
            return
        if bag.get_bool(self.attributes.edge_in_base):
            return
        if edge == bag.get_string(self.attributes.edge_base_color):
            return

        for color_key, surcharge_key in self.attributes.edge_keys():
            if bag.get_string(color_key) == edge:
                self._add_positive(breakdown, f"edge: {edge}", bag.get_number(surcharge_key))
                return

    def _add_height_band(self, breakdown: PriceBreakdown, bag: PropertyBag,
                         selection: Selection):
        """Percent surcharge for heights sold as a band over the standard height."""
        band = self.pricing.band_for(to_decimal(selection.height))
        if band is None:
            return
        percent = bag.get_number(band.percent_key)
        if percent is None or percent <= 0:
            return
        self._add_positive(breakdown, band.label, breakdown.base * percent / Decimal(100))

    def _add_positive(self, breakdown: PriceBreakdown, label: str, amount: Optional[Decimal]):
        if amount is not None and amount > 0:
            breakdown.add(label, amount)

    def _name(self, record: CatalogRecord, fallback: str) -> str:
        name = None
        bag = record.bag
        for key in self.attributes.accessory_name:
            name = bag.get_string(key)
            if name:
                break
        return name or (record.name or '').strip() or fallback
