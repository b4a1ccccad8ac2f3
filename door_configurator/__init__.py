"""
Door Configurator: selection resolution and pricing engine

Resolves a partial door configuration (model, finish, color, size, filling,
modifiers and accessories) against catalog records and prices the result:
- Candidate filter pipeline (one dimension per stage)
- Max-price tie-break among matching variants
- Per-slot accessory resolution
- Itemized price breakdown
- Diagnostics for selections that match nothing
- Cascading option lists for progressive filter UIs
"""

from .engine import ConfiguratorEngine, create_engine
from .models import (
    CatalogRecord, Selection, MirrorState, MatchResult, PriceLine,
    PriceBreakdown, PriceQuote, FilterStep, CascadingOptions
)
from .properties import PropertyBag
from .filters import FilterPipeline
from .resolver import TieBreakResolver, AccessoryResolver, AccessoryPools
from .pricing import PriceBreakdownComposer
from .options import CascadingOptionAggregator
from .selection_parser import SelectionParser
from .catalog import CatalogRepository
from .cache import TTLCache
from .config import EngineConfig, load_config
from .errors import ConfiguratorError, InvalidSelection, CatalogLoadError, ConfigError

__version__ = "1.0.0"
__all__ = [
    "ConfiguratorEngine",
    "create_engine",
    "CatalogRecord",
    "Selection",
    "MirrorState",
    "MatchResult",
    "PriceLine",
    "PriceBreakdown",
    "PriceQuote",
    "FilterStep",
    "CascadingOptions",
    "PropertyBag",
    "FilterPipeline",
    "TieBreakResolver",
    "AccessoryResolver",
    "AccessoryPools",
    "PriceBreakdownComposer",
    "CascadingOptionAggregator",
    "SelectionParser",
    "CatalogRepository",
    "TTLCache",
    "EngineConfig",
    "load_config",
    "ConfiguratorError",
    "InvalidSelection",
    "CatalogLoadError",
    "ConfigError",
]
