#!/usr/bin/env python3
"""
Tests for YAML configuration loading.
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from door_configurator import EngineConfig, load_config, ConfigError, ConfiguratorEngine, Selection
from door_configurator.config import AttributeKeys, PricingRules, CONFIG_ENV_VAR

from catalog_samples import door


def test_packaged_defaults():
    print("Testing packaged defaults...")

    config = load_config()

    assert config.currency == 'RUB'
    assert config.include_diagnostics is False
    assert config.catalog.door_category == 'doors'
    assert config.catalog.handle_categories == ('handles',)
    assert [band.height for band in config.pricing.height_bands] == [Decimal(2350), Decimal(2750)]

    print("  PASSED")


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / 'absent.yaml')
    assert config == EngineConfig()


def test_environment_variable(tmp_path, monkeypatch):
    path = tmp_path / 'env.yaml'
    path.write_text("currency: EUR\nlog_level: debug\n", encoding='utf-8')
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    config = load_config()
    assert config.currency == 'EUR'
    assert config.log_level == 'DEBUG'


def test_attribute_overrides(tmp_path):
    """Renamed catalog attributes are picked up by the whole engine."""
    print("Testing attribute key overrides...")

    path = tmp_path / 'config.yaml'
    path.write_text(
        "include_diagnostics: true\n"
        "attributes:\n"
        "  color: colour\n"
        "  price: [retail, price]\n",
        encoding='utf-8',
    )
    config = load_config(path)

    assert config.attributes.color == 'colour'
    assert config.attributes.price == ('retail', 'price')

    engine = ConfiguratorEngine(config)
    records = [door('a', 100, colour='white', retail=900), door('b', 500, colour='white')]
    quote = engine.quote(records, Selection(model='M1', color='white'))
    assert quote.matched_record_id == 'a'
    assert quote.total == Decimal(900)

    missing = engine.quote(records, Selection(model='M1', color='black'))
    assert missing.not_found
    assert missing.diagnostics is not None

    print("  PASSED")


def test_height_band_overrides():
    rules = PricingRules.from_mapping({'height_bands': [
        {'height': 2200, 'match_height': 2100, 'percent_key': 'tall_pct'},
    ]})

    assert rules.matching_height(Decimal(2200)) == Decimal(2100)
    assert rules.matching_height(Decimal(2350)) == Decimal(2350)
    assert rules.band_for(Decimal(2200)).label == 'height 2200 mm'


def test_invalid_configuration(tmp_path):
    print("Testing invalid configuration...")

    with pytest.raises(ConfigError):
        AttributeKeys.from_mapping({'colour_key': 'x'})
    with pytest.raises(ConfigError):
        PricingRules.from_mapping({'height_bands': [{'height': 2350}]})
    with pytest.raises(ConfigError):
        EngineConfig.from_mapping({'cache_ttl_seconds': 'soon'})

    broken = tmp_path / 'broken.yaml'
    broken.write_text("currency: [RUB\n", encoding='utf-8')
    with pytest.raises(ConfigError):
        load_config(broken)

    scalar = tmp_path / 'scalar.yaml'
    scalar.write_text("just a string\n", encoding='utf-8')
    with pytest.raises(ConfigError):
        load_config(scalar)

    print("  PASSED")
