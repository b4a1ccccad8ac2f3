#!/usr/bin/env python3
"""
Tests for the catalog repository and its TTL cache.
"""

import json
import sys
from decimal import Decimal
from pathlib import Path

import openpyxl
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from door_configurator import CatalogRepository, TTLCache, CatalogLoadError


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


CSV_CATALOG = (
    "id,sku,name,category,model,finish,color,width,height,price,properties\n"
    "d-1,SKU1,,doors,M1,paint,white,800,2000,5000,\n"
    "d-2,SKU2,,doors,M1,paint,white,800,2000,5200,\"{\"\"mirror_available\"\": \"\"yes\"\"}\"\n"
    ",SKU3,,doors,M1,paint,white,800,2000,9999,\n"
    "h-1,,Pro handle,handles,,,,,,1200,\n"
    "kit-1,,Kit,hardware_kits,,,,,,5000,\n"
)


def write_csv(tmp_path):
    path = tmp_path / 'catalog.csv'
    path.write_text(CSV_CATALOG, encoding='utf-8')
    return path


def test_load_csv_catalog(tmp_path):
    print("Testing CSV catalog...")

    repository = CatalogRepository(str(write_csv(tmp_path)))
    doors = repository.get_doors()

    assert [r.record_id for r in doors] == ['d-1', 'd-2']
    assert doors[0].sku == 'SKU1'
    assert doors[0].bag.get_number('price') == Decimal(5000)
    assert doors[1].bag.get_bool('mirror_available') is True
    assert doors[0].bag.get('category') is None
    assert sorted(repository.get_statistics()['categories']) == ['doors', 'handles', 'hardware_kits']

    pools = repository.load_accessories()
    assert [h.record_id for h in pools.handles] == ['h-1']
    assert pools.handles[0].name == 'Pro handle'
    assert [k.record_id for k in pools.hardware_kits] == ['kit-1']
    assert pools.limiters == []

    print("  PASSED")


def test_load_json_catalog(tmp_path):
    print("Testing JSON catalog...")

    path = tmp_path / 'catalog.json'
    path.write_text(json.dumps({'records': [
        {'id': 'd-1', 'base_price': 4100, 'properties': {'model': 'M1', 'finish': 'paint'}},
        {'id': 'opt-1', 'category': 'options', 'price': 300},
    ]}), encoding='utf-8')

    repository = CatalogRepository(str(path))
    doors = repository.get_doors()

    assert len(doors) == 1
    assert doors[0].base_price == Decimal(4100)
    assert doors[0].bag.get_string('finish') == 'paint'
    assert [o.record_id for o in repository.load_accessories().options] == ['opt-1']

    print("  PASSED")


def test_load_excel_catalog(tmp_path):
    print("Testing Excel catalog...")

    path = tmp_path / 'catalog.xlsx'
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(['id', 'sku', 'model', 'finish', 'width', 'price'])
    ws.append(['d-1', 'SKU1', 'M1', 'paint', 800, 5000])
    ws.append([1001, None, 'M2', 'veneer', 900.0, 6000])
    wb.save(path)

    records = CatalogRepository(str(path)).load_records()

    assert [r.record_id for r in records] == ['d-1', '1001']
    assert records[1].sku is None
    assert records[1].bag.get_number('width') == Decimal(900)

    print("  PASSED")


def test_catalog_errors(tmp_path):
    print("Testing catalog load errors...")

    with pytest.raises(CatalogLoadError):
        CatalogRepository().get_doors()
    with pytest.raises(CatalogLoadError):
        CatalogRepository(str(tmp_path / 'missing.csv')).get_doors()

    unsupported = tmp_path / 'catalog.txt'
    unsupported.write_text('id\n', encoding='utf-8')
    with pytest.raises(CatalogLoadError):
        CatalogRepository(str(unsupported)).get_doors()

    broken = tmp_path / 'catalog.json'
    broken.write_text('{"records": [', encoding='utf-8')
    with pytest.raises(CatalogLoadError):
        CatalogRepository(str(broken)).get_doors()

    print("  PASSED")


def test_statistics(tmp_path):
    stats = CatalogRepository(str(write_csv(tmp_path))).get_statistics()

    assert stats['total_records'] == 4
    assert stats['categories'] == {'doors': 2, 'handles': 1, 'hardware_kits': 1}
    assert stats['door_models'] == {'M1': 2}


def test_repository_serves_from_cache_until_invalidated(tmp_path):
    """Edits on disk are invisible until the cache is invalidated."""
    print("Testing repository caching...")

    path = write_csv(tmp_path)
    repository = CatalogRepository(str(path), cache=TTLCache(600))
    assert len(repository.get_doors()) == 2

    path.write_text("id,model\nd-9,M9\n", encoding='utf-8')
    assert len(repository.get_doors()) == 2

    repository.invalidate()
    assert [r.record_id for r in repository.get_doors()] == ['d-9']

    print("  PASSED")


def test_cache_expiry():
    print("Testing TTL expiry...")

    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    calls = []

    def loader():
        calls.append(clock.now)
        return ['value']

    assert cache.get_or_load('k', loader) == ['value']
    clock.now = 9.9
    assert cache.get_or_load('k', loader) == ['value']
    assert len(calls) == 1

    clock.now = 10.0
    assert cache.get('k') is None
    assert len(cache) == 0
    cache.get_or_load('k', loader)
    assert len(calls) == 2

    print("  PASSED")


def test_cache_invalidate_and_disable():
    cache = TTLCache(ttl_seconds=60, clock=FakeClock())
    cache.set('a', 1)
    cache.set('b', 2)

    cache.invalidate('a')
    assert cache.get('a') is None
    assert cache.get('b') == 2

    cache.invalidate()
    assert len(cache) == 0

    disabled = TTLCache(ttl_seconds=0)
    disabled.set('a', 1)
    assert disabled.get('a') is None


def test_unreadable_properties_column(tmp_path, caplog):
    """A broken properties cell is logged and the plain columns still load."""
    path = tmp_path / 'catalog.csv'
    path.write_text(
        "id,model,price,properties\n"
        "d-1,M1,5000,{not json\n"
        "d-2,M1,5200,{}\n",
        encoding='utf-8',
    )

    with caplog.at_level('WARNING', logger='door_configurator.catalog'):
        doors = CatalogRepository(str(path)).get_doors()

    assert doors[0].bag.get_number('price') == Decimal(5000)
    assert doors[0].bag.get('model') == 'M1'
    warnings = [r.getMessage() for r in caplog.records if r.levelname == 'WARNING']
    assert len(warnings) == 1
    assert 'd-1' in warnings[0]
