"""
Core data models for the Door Configurator engine.
"""

from dataclasses import dataclass, field, replace as dc_replace
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple

from .errors import InvalidSelection
from .properties import PropertyBag, to_decimal


class MirrorState(Enum):
    """Mirror modifier requested for the door leaf."""
    NONE = "none"
    ONE_SIDE = "one_side"
    BOTH_SIDES = "both_sides"

    @classmethod
    def parse(cls, value: Any) -> 'MirrorState':
        """Parse mirror state tokens like 'one', 'mirror_both', 'none'."""
        if value is None:
            return cls.NONE
        if isinstance(value, MirrorState):
            return value

        token = str(value).strip().lower()
        if token in MIRROR_ALIASES:
            return MIRROR_ALIASES[token]
        raise InvalidSelection(f"Unknown mirror state: {value!r}")


@dataclass(frozen=True)
class CatalogRecord:
    """A single catalog item: a door variant or an accessory."""
    record_id: str
    sku: Optional[str] = None
    name: Optional[str] = None
    base_price: Optional[Decimal] = None

    # Attribute bag as delivered by storage: mapping, JSON text or None
    properties: Any = None

    @property
    def bag(self) -> PropertyBag:
        """Typed view of the attribute bag."""
        return PropertyBag.from_raw(self.properties)


@dataclass(frozen=True)
class Selection:
    """A (possibly partial) door configuration requested by the caller."""
    model: Optional[str] = None

    # Filter dimensions
    style: Optional[str] = None
    finish: Optional[str] = None
    color: Optional[str] = None
    width: Optional[Decimal] = None
    height: Optional[Decimal] = None
    filling: Optional[str] = None
    supplier: Optional[str] = None

    # Accessory references
    edge_id: Optional[str] = None
    limiter_id: Optional[str] = None
    option_ids: Tuple[str, ...] = ()
    handle_id: Optional[str] = None
    hardware_kit_id: Optional[str] = None

    # Modifiers
    reversible: bool = False
    mirror: MirrorState = MirrorState.NONE
    threshold: bool = False
    backplate: bool = False

    def __post_init__(self):
        # Frozen: coerce through object.__setattr__
        if not isinstance(self.mirror, MirrorState):
            object.__setattr__(self, 'mirror', MirrorState.parse(self.mirror))
        if not isinstance(self.option_ids, tuple):
            object.__setattr__(self, 'option_ids', tuple(self.option_ids or ()))

    def replace(self, **changes) -> 'Selection':
        """Return a copy with some fields changed."""
        return dc_replace(self, **changes)

    def get(self, dimension: str) -> Any:
        """Value of a filter dimension, None when unset."""
        if dimension not in FILTER_DIMENSIONS:
            raise KeyError(dimension)
        return getattr(self, dimension)

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation used in logs and reports."""
        return {
            'model': self.model,
            'style': self.style,
            'finish': self.finish,
            'color': self.color,
            'width': plain_number(self.width),
            'height': plain_number(self.height),
            'filling': self.filling,
            'supplier': self.supplier,
            'edge_id': self.edge_id,
            'limiter_id': self.limiter_id,
            'option_ids': list(self.option_ids),
            'handle_id': self.handle_id,
            'hardware_kit_id': self.hardware_kit_id,
            'reversible': self.reversible,
            'mirror': self.mirror.value,
            'threshold': self.threshold,
            'backplate': self.backplate,
        }


@dataclass
class MatchResult:
    """Outcome of running the filter pipeline and tie-break over candidates."""
    record: Optional[CatalogRecord]
    candidates: List[CatalogRecord] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class PriceLine:
    """One priced line of a breakdown."""
    label: str
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {'label': self.label, 'amount': plain_number(self.amount)}


@dataclass
class PriceBreakdown:
    """Base amount plus ordered surcharge lines. The total is always derived."""
    base: Decimal = Decimal(0)
    lines: List[PriceLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.base + sum((line.amount for line in self.lines), Decimal(0))

    def add(self, label: str, amount: Decimal):
        self.lines.append(PriceLine(label=label, amount=amount))


@dataclass(frozen=True)
class FilterStep:
    """Candidate counts around one pipeline stage."""
    stage: str
    before: int
    after: int
    applied: bool = True

    @property
    def dropped_to_zero(self) -> bool:
        return self.before > 0 and self.after == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'stage': self.stage,
            'before': self.before,
            'after': self.after,
            'applied': self.applied,
        }


@dataclass(frozen=True)
class RecordVariant:
    """Flattened view of a matching record for order and export lines."""
    record_id: str
    sku: Optional[str]
    model_name: Optional[str]
    supplier: Optional[str]
    price: Decimal
    finish: Optional[str]
    color: Optional[str]
    width: Optional[Decimal]
    height: Optional[Decimal]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'record_id': self.record_id,
            'sku': self.sku,
            'model_name': self.model_name,
            'supplier': self.supplier,
            'price': plain_number(self.price),
            'finish': self.finish,
            'color': self.color,
            'width': plain_number(self.width),
            'height': plain_number(self.height),
        }


@dataclass
class PriceQuote:
    """Result of resolve-and-price for one selection."""
    selection: Selection
    breakdown: PriceBreakdown
    match: MatchResult
    currency: str = "RUB"
    variants: List[RecordVariant] = field(default_factory=list)
    model_name: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    diagnostics: Optional[List[FilterStep]] = None
    selection_policy: str = "max_price"

    @property
    def not_found(self) -> bool:
        return not self.match.found

    @property
    def total(self) -> Decimal:
        return self.breakdown.total

    @property
    def matched_record_id(self) -> Optional[str]:
        return self.match.record.record_id if self.match.record else None

    @property
    def sku(self) -> Optional[str]:
        return self.match.record.sku if self.match.record else None

    def to_dict(self) -> Dict[str, Any]:
        output = {
            'currency': self.currency,
            'base': plain_number(self.breakdown.base),
            'breakdown': [line.to_dict() for line in self.breakdown.lines],
            'total': plain_number(self.total),
            'matched_record_id': self.matched_record_id,
            'matching_records': [r.record_id for r in self.match.candidates],
            'matching_variants': [v.to_dict() for v in self.variants],
            'sku': self.sku,
            'model_name': self.model_name,
            'not_found': self.not_found,
            'warnings': list(self.warnings),
            'selection_policy': self.selection_policy,
        }
        if self.diagnostics is not None:
            output['diagnostics'] = [step.to_dict() for step in self.diagnostics]
        return output


@dataclass
class CascadingOptions:
    """Values still reachable for each dimension under a partial selection."""
    values: Dict[str, List[Any]] = field(default_factory=dict)
    colors_by_finish: Dict[str, List[str]] = field(default_factory=dict)
    edges: List[str] = field(default_factory=list)
    reversible_available: bool = False
    mirror_available: bool = False
    threshold_available: bool = False
    total_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'values': {
                dim: [plain_number(v) if isinstance(v, Decimal) else v for v in vals]
                for dim, vals in self.values.items()
            },
            'colors_by_finish': {k: list(v) for k, v in self.colors_by_finish.items()},
            'edges': list(self.edges),
            'reversible_available': self.reversible_available,
            'mirror_available': self.mirror_available,
            'threshold_available': self.threshold_available,
            'total_count': self.total_count,
        }


def plain_number(value: Optional[Decimal]):
    """Render a Decimal as int when integral, float otherwise (JSON friendly)."""
    value = to_decimal(value)
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Filter dimensions in pipeline order. "model" anchors every resolution.
FILTER_DIMENSIONS = (
    'model', 'style', 'finish', 'color', 'width', 'height', 'filling', 'supplier'
)

NUMERIC_DIMENSIONS = ('width', 'height')

# Dimensions the cascading aggregator reports on
OPTION_DIMENSIONS = FILTER_DIMENSIONS[1:]

MIRROR_ALIASES = {
    '': MirrorState.NONE,
    'none': MirrorState.NONE,
    'no': MirrorState.NONE,
    'false': MirrorState.NONE,
    '0': MirrorState.NONE,
    'one': MirrorState.ONE_SIDE,
    'one_side': MirrorState.ONE_SIDE,
    'one-side': MirrorState.ONE_SIDE,
    'mirror_one': MirrorState.ONE_SIDE,
    'both': MirrorState.BOTH_SIDES,
    'both_sides': MirrorState.BOTH_SIDES,
    'both-sides': MirrorState.BOTH_SIDES,
    'mirror_both': MirrorState.BOTH_SIDES,
}
