"""
Candidate Filter Pipeline.

Narrows a list of catalog records to the ones compatible with a Selection,
one dimension at a time. Every stage is all-or-nothing: a record either
satisfies it or is dropped, there is no partial scoring. Stages whose
selection field is unset act as identity, which lets a partial selection
narrow progressively instead of failing.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .config import AttributeKeys, PricingRules
from .models import (
    CatalogRecord, Selection, FilterStep, FILTER_DIMENSIONS, NUMERIC_DIMENSIONS
)
from .properties import PropertyBag, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterStage:
    """One named predicate of the pipeline."""
    name: str
    attribute: str
    predicate: Callable[[PropertyBag, str, Any], bool]


def string_equals(bag: PropertyBag, attribute: str, wanted: str) -> bool:
    """Case-sensitive equality after trimming both sides."""
    return bag.get_string(attribute) == wanted.strip()


def number_equals(bag: PropertyBag, attribute: str, wanted: Decimal) -> bool:
    """Exact equality of the coerced numeric values."""
    value = bag.get_number(attribute)
    return value is not None and value == wanted


class FilterPipeline:
    """
    Fixed-order filter pipeline: model, style, finish, color, width, height,
    filling, supplier.

    Instances hold configuration only, so one pipeline can be driven by
    several callers at once.
    """

    def __init__(self, attributes: Optional[AttributeKeys] = None,
                 pricing: Optional[PricingRules] = None):
        self.attributes = attributes or AttributeKeys()
        self.pricing = pricing or PricingRules()
        self.stages: Tuple[FilterStage, ...] = tuple(
            FilterStage(
                name=dimension,
                attribute=self.attributes.for_dimension(dimension),
                predicate=number_equals if dimension in NUMERIC_DIMENSIONS else string_equals,
            )
            for dimension in FILTER_DIMENSIONS
        )

    def stage_value(self, selection: Selection, dimension: str) -> Any:
        """
        Value a stage compares against, or None when the stage is skipped.
        Band heights are compared as their standard height.
        """
        value = selection.get(dimension)
        if value is None:
            return None
        if dimension in NUMERIC_DIMENSIONS:
            number = to_decimal(value)
            if number is None:
                return None
            if dimension == 'height':
                number = self.pricing.matching_height(number)
            return number
        text = str(value).strip()
        return text or None

    def run(self, records: Sequence[CatalogRecord],
            selection: Selection) -> List[CatalogRecord]:
        """Records satisfying every applicable stage, in input order."""
        return self.run_excluding(records, selection, exclude=None)

    def run_excluding(self, records: Sequence[CatalogRecord], selection: Selection,
                      exclude: Optional[str] = None) -> List[CatalogRecord]:
        """Run all stages except ``exclude`` (used to compute cascading options)."""
        active = [
            (stage, self.stage_value(selection, stage.name))
            for stage in self.stages
            if stage.name != exclude
        ]
        active = [(stage, value) for stage, value in active if value is not None]

        survivors = []
        for record in records:
            bag = record.bag
            if all(stage.predicate(bag, stage.attribute, value) for stage, value in active):
                survivors.append(record)

        logger.debug("Pipeline kept %d of %d records (stages: %s)",
                     len(survivors), len(records),
                     ", ".join(stage.name for stage, _ in active) or "none")
        return survivors

    def diagnose(self, records: Sequence[CatalogRecord],
                 selection: Selection) -> List[FilterStep]:
        """
        Re-run the pipeline stage by stage, recording the surviving count.

        Every stage is reported, including stages that ran on an already
        empty set and stages skipped because the selection leaves them unset.
        """
        steps = []
        working = [(record, record.bag) for record in records]

        for stage in self.stages:
            value = self.stage_value(selection, stage.name)
            before = len(working)
            if value is None:
                steps.append(FilterStep(stage.name, before, before, applied=False))
                continue
            working = [
                (record, bag) for record, bag in working
                if stage.predicate(bag, stage.attribute, value)
            ]
            steps.append(FilterStep(stage.name, before, len(working)))

        return steps


def collapsing_stage(steps: Sequence[FilterStep]) -> Optional[FilterStep]:
    """The first stage that dropped the candidate pool to zero, if any."""
    for step in steps:
        if step.dropped_to_zero:
            return step
    return None
