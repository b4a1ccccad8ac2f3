#!/usr/bin/env python3
"""
Tests for the attribute bag accessor.
"""

import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from door_configurator.properties import PropertyBag, to_decimal, to_bool


def test_bag_from_mapping_and_json():
    """Native mappings and JSON text give the same view."""
    print("Testing PropertyBag sources...")

    native = PropertyBag.from_raw({'finish': 'paint', 'width': 800})
    encoded = PropertyBag.from_raw('{"finish": "paint", "width": 800}')
    from_bytes = PropertyBag.from_raw(b'{"finish": "paint", "width": 800}')

    for bag in (native, encoded, from_bytes):
        assert bag.get_string('finish') == 'paint'
        assert bag.get_number('width') == Decimal(800)

    print("  PASSED")


def test_malformed_bag_is_empty():
    """Malformed or non-object input degrades to an empty bag."""
    print("Testing malformed PropertyBag input...")

    for raw in (None, '', '   ', '{not json', '[1, 2]', '42', 17, b'\xff\xfe'):
        bag = PropertyBag.from_raw(raw)
        assert len(bag) == 0
        assert bag.get('finish') is None
        assert bag.get_number('price') is None
        assert bag.get_bool('mirror_available') is False

    print("  PASSED")


def test_string_reads():
    print("Testing string reads...")

    bag = PropertyBag({'color': '  white ', 'blank': '   ', 'code': 2000.0, 'flag': True})
    assert bag.get_string('color') == 'white'
    assert bag.get_string('blank') is None
    assert bag.get_string('code') == '2000'
    assert bag.get_string('flag') == 'true'
    assert bag.get_string('missing') is None
    assert bag.get('missing') is None

    print("  PASSED")


def test_number_reads():
    """Numbers tolerate thousands spaces and comma decimals; junk is absent."""
    print("Testing numeric coercion...")

    assert to_decimal(5200) == Decimal(5200)
    assert to_decimal('5200') == Decimal(5200)
    assert to_decimal('5 200') == Decimal(5200)
    assert to_decimal('5\u00a0200') == Decimal(5200)
    assert to_decimal('1500,50') == Decimal('1500.50')
    assert to_decimal(0.1) == Decimal('0.1')
    assert to_decimal(Decimal('12.5')) == Decimal('12.5')

    assert to_decimal(None) is None
    assert to_decimal(True) is None
    assert to_decimal('') is None
    assert to_decimal('abc') is None
    assert to_decimal('1,2,3') is None
    assert to_decimal('12,34,567') is None
    assert to_decimal(float('nan')) is None
    assert to_decimal('Infinity') is None

    print("  PASSED")


def test_bool_reads():
    print("Testing boolean flags...")

    for value in ('yes', 'Y', 'true', 'TRUE', '1', 'on', 'да', True, 1):
        assert to_bool(value), value
    for value in ('no', 'false', '0', '', 'maybe', None, False, 0):
        assert not to_bool(value), value

    print("  PASSED")


def test_list_reads():
    print("Testing list reads...")

    bag = PropertyBag({
        'native': ['a', ' b ', None, ''],
        'json': '["x", "y"]',
        'delimited': 'one; two,three',
        'single': 5,
    })
    assert bag.get_list('native') == ['a', 'b']
    assert bag.get_list('json') == ['x', 'y']
    assert bag.get_list('delimited') == ['one', 'two', 'three']
    assert bag.get_list('single') == ['5']
    assert bag.get_list('missing') == []

    print("  PASSED")


def test_first_positive_number():
    """Zero, negative and junk values are passed over."""
    print("Testing first positive number...")

    bag = PropertyBag({'group_price': 0, 'sale_price': 'n/a', 'price': '1 200'})
    assert bag.first_positive_number('group_price', 'sale_price', 'price') == Decimal(1200)
    assert bag.first_positive_number('group_price', 'sale_price') is None

    print("  PASSED")


def test_comma_thousands_grouping():
    """'1,500' is fifteen hundred; a comma before one or two digits is a decimal point."""
    print("Testing comma thousands separators...")

    assert to_decimal('1,500') == Decimal(1500)
    assert to_decimal('1,000,000') == Decimal(1000000)
    assert to_decimal('12,000.50') == Decimal('12000.50')
    assert to_decimal('-2,500') == Decimal(-2500)
    assert to_decimal('1,5') == Decimal('1.5')
    assert to_decimal('1500,5') == Decimal('1500.5')
    assert PropertyBag({'price': '7,400'}).get_number('price') == Decimal(7400)

    print("  PASSED")
