#!/usr/bin/env python3
"""
Demonstration of the Door Configurator.

This script walks through:
1. Pricing a configuration with accessories and modifiers
2. The max-price choice among equivalent variants
3. Diagnosing a configuration that matches nothing
4. Cascading option lists for a partial configuration
"""

import sys
from pathlib import Path

# Add to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from door_configurator import (
    ConfiguratorEngine, CatalogRecord, AccessoryPools, SelectionParser
)


def print_header(text):
    """Print a formatted header."""
    print("\n" + "=" * 70)
    print(text)
    print("=" * 70)


def sample_doors():
    """A small door catalog: one model in two finishes and two sizes."""
    common = {
        'model': 'ALTO-1', 'style': 'Modern', 'filling': 'Honeycomb',
        'supplier': 'Doorworks', 'mirror_available': 'yes',
        'mirror_one_side_price': 1500, 'mirror_both_sides_price': 2700,
        'reversible_available': 'yes', 'reversible_surcharge': 900,
        'threshold_available': 'no', 'threshold_price': 400,
        'edge_base_color': 'Silver', 'edge_color_2': 'Gold', 'edge_surcharge_2': 600,
        'height_surcharge_2301_2500_pct': 20,
    }
    rows = [
        ('d-1', 'paint', 'White', 800, 2000, 21000, 'Alto paint smooth'),
        ('d-2', 'paint', 'White', 800, 2000, 23500, 'Alto paint flex'),
        ('d-3', 'paint', 'Graphite', 900, 2000, 24000, 'Alto paint smooth'),
        ('d-4', 'veneer', 'Oak', 800, 2000, 26000, 'Alto veneer'),
    ]
    doors = []
    for record_id, finish, color, width, height, price, model_name in rows:
        properties = dict(common, finish=finish, color=color, width=width,
                          height=height, price=price, model_name=model_name)
        doors.append(CatalogRecord(record_id=record_id, sku=f"SKU-{record_id}",
                                   properties=properties))
    return doors


def sample_accessories():
    return AccessoryPools(
        hardware_kits=[CatalogRecord('kit-std', name='Standard kit', properties={'group_price': 5000})],
        handles=[CatalogRecord('h-pro', name='Pro', properties={'group_price': 1200,
                                                                 'backplate_price': 450})],
        limiters=[CatalogRecord('lim-1', name='Floor stop', properties={'price': 300})],
        options=[CatalogRecord('arch-1', name='Architrave set', properties={'price': 2100})],
    )


def main():
    engine = ConfiguratorEngine()
    parser = SelectionParser()
    doors = sample_doors()
    accessories = sample_accessories()

    print_header("1. FULL CONFIGURATION")
    selection = parser.parse({
        'model': 'ALTO-1', 'finish': 'paint', 'color': 'White', 'width': 800, 'height': 2000,
        'mirror': 'one', 'reversible': True, 'edge_id': 'Gold',
        'hardware_kit': {'id': 'kit-std'}, 'handle': {'id': 'h-pro'}, 'backplate': True,
        'limiter_id': 'lim-1', 'option_ids': ['arch-1'],
    })
    quote = engine.quote(doors, selection, accessories)
    print(engine.reporter.format_quote(quote))

    print_header("2. EQUIVALENT VARIANTS: MOST EXPENSIVE WINS")
    print(f"  Matching records: {[r.record_id for r in quote.match.candidates]}")
    print(f"  Chosen: {quote.matched_record_id} at {quote.breakdown.base}")

    print_header("3. TALL DOOR SOLD AS A HEIGHT BAND")
    tall = parser.parse({'model': 'ALTO-1', 'finish': 'veneer', 'width': 800, 'height': 2350})
    print(engine.reporter.format_quote(engine.quote(doors, tall)))

    print_header("4. NOTHING MATCHES")
    missing = parser.parse({'model': 'ALTO-1', 'finish': 'paint', 'color': 'Black'})
    print(engine.reporter.format_quote(engine.quote(doors, missing)))
    print(engine.reporter.format_diagnostics(engine.diagnose(doors, missing), indent="  "))

    print_header("5. CASCADING OPTIONS")
    partial = parser.parse({'model': 'ALTO-1', 'finish': 'paint'})
    print(engine.reporter.format_options(engine.cascading_options(doors, partial)))


if __name__ == '__main__':
    main()
