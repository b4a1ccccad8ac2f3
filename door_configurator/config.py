"""
Configuration for the Door Configurator.

Defaults live in ``config.yaml`` next to this module. A different file can be
passed explicitly or through the ``DOOR_CONFIGURATOR_CONFIG`` variable.
"""

import os
from dataclasses import dataclass, field, fields
from decimal import Decimal
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError
from .properties import to_decimal

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")
CONFIG_ENV_VAR = "DOOR_CONFIGURATOR_CONFIG"


@dataclass
class AttributeKeys:
    """Names of the catalog attributes read by the engine."""
    # Filter dimensions
    model: str = "model"
    style: str = "style"
    finish: str = "finish"
    color: str = "color"
    width: str = "width"
    height: str = "height"
    filling: str = "filling"
    supplier: str = "supplier"
    model_name: str = "model_name"

    # Declared prices, first positive wins, record base_price last
    price: Tuple[str, ...] = ("price", "price_retail")
    kit_price: Tuple[str, ...] = ("group_price", "price")
    handle_price: Tuple[str, ...] = ("group_price", "sale_price", "price")
    backplate_price: str = "backplate_price"
    limiter_price: Tuple[str, ...] = ("price",)
    option_price: Tuple[str, ...] = ("price",)
    accessory_name: Tuple[str, ...] = ("display_name",)

    # Base record modifiers
    reversible_available: str = "reversible_available"
    reversible_surcharge: str = "reversible_surcharge"
    threshold_available: str = "threshold_available"
    threshold_price: str = "threshold_price"
    mirror_available: str = "mirror_available"
    mirror_one_side_price: str = "mirror_one_side_price"
    mirror_both_sides_price: str = "mirror_both_sides_price"

    # Edge treatment
    edge_in_base: str = "edge_in_base"
    edge_base_color: str = "edge_base_color"
    edge_color_prefix: str = "edge_color_"
    edge_surcharge_prefix: str = "edge_surcharge_"
    edge_slots: Tuple[int, ...] = (2, 3, 4)

    def for_dimension(self, dimension: str) -> str:
        """Attribute key holding a filter dimension."""
        return getattr(self, dimension)

    def edge_keys(self):
        """(color key, surcharge key) pairs for the extra edge colors."""
        return [
            (f"{self.edge_color_prefix}{slot}", f"{self.edge_surcharge_prefix}{slot}")
            for slot in self.edge_slots
        ]

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "AttributeKeys":
        if not data:
            return cls()
        known = {f.name: f for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                raise ConfigError(f"Unknown attribute key setting: {key}")
            default = known[key].default
            if isinstance(default, tuple):
                if isinstance(value, (str, int)):
                    value = (value,)
                if not isinstance(value, (list, tuple)):
                    raise ConfigError(f"attributes.{key} must be a list")
                if key == "edge_slots":
                    value = tuple(int(v) for v in value)
                else:
                    value = tuple(str(v) for v in value)
            else:
                value = str(value)
            values[key] = value
        return cls(**values)


@dataclass(frozen=True)
class HeightBand:
    """A requested height matched as a standard height with a percent surcharge."""
    height: Decimal
    match_height: Decimal
    percent_key: str
    label: str


@dataclass
class PricingRules:
    """Pricing settings that are not attribute names."""
    height_bands: Tuple[HeightBand, ...] = (
        HeightBand(Decimal(2350), Decimal(2000),
                   "height_surcharge_2301_2500_pct", "height 2301-2500 mm"),
        HeightBand(Decimal(2750), Decimal(2000),
                   "height_surcharge_2501_3000_pct", "height 2501-3000 mm"),
    )

    def band_for(self, height: Optional[Decimal]) -> Optional[HeightBand]:
        if height is None:
            return None
        for band in self.height_bands:
            if band.height == height:
                return band
        return None

    def matching_height(self, height: Optional[Decimal]) -> Optional[Decimal]:
        """Height used when comparing against catalog records."""
        band = self.band_for(height)
        return band.match_height if band else height

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "PricingRules":
        if not data or "height_bands" not in data:
            return cls()
        raw_bands = data.get("height_bands") or []
        if not isinstance(raw_bands, list):
            raise ConfigError("pricing.height_bands must be a list")
        bands = []
        for raw in raw_bands:
            if not isinstance(raw, Mapping):
                raise ConfigError("Each height band must be a mapping")
            height = to_decimal(raw.get("height"))
            match_height = to_decimal(raw.get("match_height"))
            if height is None or match_height is None or not raw.get("percent_key"):
                raise ConfigError(f"Incomplete height band: {dict(raw)}")
            bands.append(HeightBand(
                height=height,
                match_height=match_height,
                percent_key=str(raw["percent_key"]),
                label=str(raw.get("label") or f"height {height} mm"),
            ))
        return cls(height_bands=tuple(bands))


@dataclass
class CatalogSettings:
    """Where the catalog repository finds records."""
    path: Optional[str] = None
    door_category: str = "doors"
    hardware_kit_category: str = "hardware_kits"
    handle_categories: Tuple[str, ...] = ("handles",)
    limiter_category: str = "limiters"
    option_category: str = "options"

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "CatalogSettings":
        if not data:
            return cls()
        handles = data.get("handle_categories", cls.handle_categories)
        if isinstance(handles, str):
            handles = (handles,)
        path = data.get("path")
        return cls(
            path=str(path) if path else None,
            door_category=str(data.get("door_category", cls.door_category)),
            hardware_kit_category=str(data.get("hardware_kit_category", cls.hardware_kit_category)),
            handle_categories=tuple(str(h) for h in handles),
            limiter_category=str(data.get("limiter_category", cls.limiter_category)),
            option_category=str(data.get("option_category", cls.option_category)),
        )


@dataclass
class EngineConfig:
    """Top-level configuration."""
    log_level: str = "INFO"
    currency: str = "RUB"
    include_diagnostics: bool = False
    cache_ttl_seconds: float = 600.0
    attributes: AttributeKeys = field(default_factory=AttributeKeys)
    pricing: PricingRules = field(default_factory=PricingRules)
    catalog: CatalogSettings = field(default_factory=CatalogSettings)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "EngineConfig":
        log_level = str(data.get("log_level", cls.log_level)).strip() or cls.log_level
        currency = str(data.get("currency", cls.currency)).strip() or cls.currency

        raw_ttl = data.get("cache_ttl_seconds", cls.cache_ttl_seconds)
        try:
            cache_ttl = max(0.0, float(raw_ttl))
        except (TypeError, ValueError):
            raise ConfigError(f"cache_ttl_seconds must be a number, got {raw_ttl!r}")

        return cls(
            log_level=log_level.upper(),
            currency=currency,
            include_diagnostics=bool(data.get("include_diagnostics", cls.include_diagnostics)),
            cache_ttl_seconds=cache_ttl,
            attributes=AttributeKeys.from_mapping(_get_mapping(data, "attributes")),
            pricing=PricingRules.from_mapping(_get_mapping(data, "pricing")),
            catalog=CatalogSettings.from_mapping(_get_mapping(data, "catalog")),
        )


def load_config(path: Optional[Path] = None) -> EngineConfig:
    """Load configuration from YAML, falling back to packaged defaults."""
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    config_path = Path(path)
    if not config_path.exists():
        return EngineConfig()

    text = config_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse {config_path}: {e}") from e
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration must be a mapping")
    return EngineConfig.from_mapping(data)


def _get_mapping(data: Mapping[str, object], key: str) -> Dict[str, object]:
    value = data.get(key)
    if isinstance(value, Mapping):
        return dict(value)
    return {}
