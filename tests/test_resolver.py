#!/usr/bin/env python3
"""
Tests for the max-price tie-break and accessory resolution.
"""

import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from door_configurator import TieBreakResolver, AccessoryResolver, AccessoryPools, Selection, CatalogRecord
from door_configurator.resolver import declared_price

from catalog_samples import door, sample_pools


def test_max_price_wins():
    print("Testing max-price tie-break...")

    resolver = TieBreakResolver()
    winner = resolver.resolve([door('a', 5000), door('b', 5200), door('c', 5100)])

    assert winner.record_id == 'b'
    assert resolver.resolve([]) is None

    print("  PASSED")


def test_equal_prices_keep_first():
    """Ties on price resolve to the first candidate, on every call."""
    print("Testing tie-break determinism...")

    resolver = TieBreakResolver()
    candidates = [door('a', 5000), door('b', 5200), door('c', 5200)]

    for _ in range(5):
        assert resolver.resolve(candidates).record_id == 'b'

    print("  PASSED")


def test_declared_price_fallbacks():
    """First positive price attribute, then base_price, then zero."""
    print("Testing declared price...")

    keys = ('price', 'price_retail')
    assert declared_price(CatalogRecord('a', properties={'price': 0, 'price_retail': '4 500'}),
                          keys) == Decimal(4500)
    assert declared_price(CatalogRecord('b', base_price=Decimal(3000),
                                        properties={'price': 'call'}), keys) == Decimal(3000)
    assert declared_price(CatalogRecord('c'), keys) == Decimal(0)

    print("  PASSED")


def test_unpriced_candidate_loses():
    print("Testing unpriced candidate...")

    resolver = TieBreakResolver()
    unpriced = CatalogRecord('unpriced', properties={'model': 'M1'})
    assert resolver.resolve([unpriced, door('priced', 10)]).record_id == 'priced'
    assert resolver.resolve([unpriced]).record_id == 'unpriced'

    print("  PASSED")


def test_accessories_resolve_by_id():
    print("Testing accessory resolution...")

    selection = Selection(model='M1', hardware_kit_id='kit-1', handle_id='h-2',
                          limiter_id='lim-1', option_ids=('opt-2', 'opt-1'))
    resolved = AccessoryResolver().resolve(selection, sample_pools())

    assert resolved.hardware_kit.record_id == 'kit-1'
    assert resolved.handle.record_id == 'h-2'
    assert resolved.limiter.record_id == 'lim-1'
    assert [o.record_id for o in resolved.options] == ['opt-2', 'opt-1']
    assert resolved.warnings == []

    print("  PASSED")


def test_unset_references_resolve_to_nothing():
    print("Testing unset accessory references...")

    resolved = AccessoryResolver().resolve(Selection(model='M1'), sample_pools())

    assert resolved.hardware_kit is None
    assert resolved.handle is None
    assert resolved.limiter is None
    assert resolved.options == []
    assert resolved.warnings == []

    print("  PASSED")


def test_missing_accessory_is_soft():
    """An unknown handle is dropped with a warning; other slots still resolve."""
    print("Testing unavailable accessories...")

    selection = Selection(model='M1', hardware_kit_id='kit-1', handle_id='h-404',
                          option_ids=('opt-1', 'opt-404'))
    resolved = AccessoryResolver().resolve(selection, sample_pools())

    assert resolved.handle is None
    assert resolved.hardware_kit.record_id == 'kit-1'
    assert [o.record_id for o in resolved.options] == ['opt-1']
    assert resolved.warnings == ["handle 'h-404' is unavailable",
                                 "option 'opt-404' is unavailable"]

    print("  PASSED")


def test_empty_pools():
    print("Testing empty accessory pools...")

    resolved = AccessoryResolver().resolve(Selection(model='M1', limiter_id='lim-1'),
                                           AccessoryPools())
    assert resolved.limiter is None
    assert len(resolved.warnings) == 1

    print("  PASSED")
