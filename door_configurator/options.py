"""
Cascading Option Aggregator.

Answers "what can still be chosen" for a partial selection: the option list
of a dimension is computed by filtering on every other fixed field and
collecting the distinct values of that dimension from the survivors.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from .config import AttributeKeys
from .filters import FilterPipeline
from .models import (
    CatalogRecord, Selection, CascadingOptions, OPTION_DIMENSIONS, NUMERIC_DIMENSIONS
)

logger = logging.getLogger(__name__)


class CascadingOptionAggregator:
    """
    Computes reachable values per dimension without touching the selection.
    """

    def __init__(self, pipeline: Optional[FilterPipeline] = None):
        self.pipeline = pipeline or FilterPipeline()

    @property
    def attributes(self) -> AttributeKeys:
        return self.pipeline.attributes

    def aggregate(self, records: Sequence[CatalogRecord],
                  selection: Selection) -> CascadingOptions:
        options = CascadingOptions()

        for dimension in OPTION_DIMENSIONS:
            relaxed = self.pipeline.run_excluding(records, selection, exclude=dimension)
            options.values[dimension] = self._distinct(relaxed, dimension)

        current = self.pipeline.run(records, selection)
        options.total_count = len(current)

        keys = self.attributes
        for record in current:
            bag = record.bag
            if bag.get_bool(keys.reversible_available):
                options.reversible_available = True
            if bag.get_bool(keys.mirror_available):
                options.mirror_available = True
            if bag.get_bool(keys.threshold_available):
                options.threshold_available = True

        options.colors_by_finish = self._colors_by_finish(records, selection)
        options.edges = self._edges(current)

        logger.debug("Cascading options for model %r: %d candidates",
                     selection.model, options.total_count)
        return options

    def _distinct(self, records: Sequence[CatalogRecord], dimension: str) -> List[Any]:
        """Sorted distinct values of ``dimension`` across ``records``."""
        attribute = self.attributes.for_dimension(dimension)
        if dimension in NUMERIC_DIMENSIONS:
            numbers = set()
            for record in records:
                value = record.bag.get_number(attribute)
                if value is not None:
                    numbers.add(_normalize_number(value))
            if dimension == 'height':
                numbers = self._reachable_heights(numbers)
            return sorted(numbers)

        values = set()
        for record in records:
            value = record.bag.get_string(attribute)
            if value:
                values.add(value)
        return sorted(values)

    def _reachable_heights(self, heights):
        """
        Heights a caller can actually select. A band height is always matched
        as its standard height, so it is offered when that standard height is
        catalogued and never on its own.
        """
        pricing = self.pipeline.pricing
        reachable = {h for h in heights if pricing.band_for(Decimal(h)) is None}
        if len(reachable) < len(heights):
            logger.debug("Catalogued band heights %s are matched as standard heights",
                         sorted(set(heights) - reachable))
        for band in pricing.height_bands:
            if _normalize_number(band.match_height) in reachable:
                reachable.add(_normalize_number(band.height))
        return reachable

    def _colors_by_finish(self, records: Sequence[CatalogRecord],
                          selection: Selection) -> Dict[str, List[str]]:
        """Colors grouped by finish, ignoring the finish and color currently fixed."""
        relaxed = self.pipeline.run(records, selection.replace(finish=None, color=None))
        grouped: Dict[str, set] = {}
        for record in relaxed:
            bag = record.bag
            finish = bag.get_string(self.attributes.finish)
            color = bag.get_string(self.attributes.color)
            if not finish:
                continue
            colors = grouped.setdefault(finish, set())
            if color:
                colors.add(color)
        return {finish: sorted(colors) for finish, colors in sorted(grouped.items())}

    def _edges(self, records: Sequence[CatalogRecord]) -> List[str]:
        """Edge ids offered by the current candidate set."""
        edges = []
        for record in records:
            bag = record.bag
            candidates = [bag.get_string(self.attributes.edge_base_color)]
            candidates.extend(bag.get_string(color_key)
                              for color_key, _ in self.attributes.edge_keys())
            for edge in candidates:
                if edge and edge not in edges:
                    edges.append(edge)
        return edges


def _normalize_number(value: Decimal):
    """800, 800.0 and '800' collapse to one option value."""
    if value == value.to_integral_value():
        return int(value)
    return value.normalize()
