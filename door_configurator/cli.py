#!/usr/bin/env python3
"""
Command-Line Interface for the Door Configurator.
"""

import argparse
import json
import logging
import sys

from .catalog import CatalogRepository
from .cache import TTLCache
from .config import load_config
from .engine import ConfiguratorEngine
from .errors import ConfiguratorError, InvalidSelection
from .selection_parser import SelectionParser

SELECTION_FLAGS = ('model', 'style', 'finish', 'color', 'width', 'height', 'filling',
                   'supplier', 'edge_id', 'limiter_id', 'handle_id', 'hardware_kit_id',
                   'mirror')


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Door configurator: selection resolution and pricing',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Price a configuration
  door-configurator quote -c catalog.xlsx --model M1 --finish paint --width 800 --height 2000

  # Explain why a configuration has no product
  door-configurator diagnose -c catalog.csv --model M1 --color black

  # Values still selectable for a partial configuration
  door-configurator options -c catalog.csv --model M1 --finish paint

  # Price every line of an order file
  door-configurator batch orders.xlsx -c catalog.xlsx -o quotes.json
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    quote_parser = subparsers.add_parser('quote', help='Price one configuration')
    _add_common(quote_parser)
    _add_selection(quote_parser)
    quote_parser.add_argument('--json', action='store_true', help='Print the quote as JSON')

    diagnose_parser = subparsers.add_parser('diagnose', help='Show per-stage candidate counts')
    _add_common(diagnose_parser)
    _add_selection(diagnose_parser)

    options_parser = subparsers.add_parser('options', help='Show values still selectable')
    _add_common(options_parser)
    _add_selection(options_parser)
    options_parser.add_argument('--json', action='store_true', help='Print options as JSON')

    batch_parser = subparsers.add_parser('batch', help='Price every line of an order file')
    _add_common(batch_parser)
    batch_parser.add_argument('orders_file', help='Order file (CSV, Excel or JSON)')
    batch_parser.add_argument('-o', '--output', help='Output file path (csv, json, or txt)')

    stats_parser = subparsers.add_parser('stats', help='Show catalog statistics')
    _add_common(stats_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        config = load_config(args.config)
        logging.basicConfig(
            level=getattr(logging, (args.log_level or config.log_level).upper(), logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        engine = ConfiguratorEngine(config)
        repository = CatalogRepository(
            path=args.catalog,
            cache=TTLCache(config.cache_ttl_seconds),
            settings=config.catalog,
            attributes=config.attributes,
        )

        if args.command == 'quote':
            run_quote(args, engine, repository)
        elif args.command == 'diagnose':
            run_diagnose(args, engine, repository)
        elif args.command == 'options':
            run_options(args, engine, repository)
        elif args.command == 'batch':
            run_batch(args, engine, repository)
        elif args.command == 'stats':
            run_stats(args, repository)
    except InvalidSelection as e:
        suffix = f" (field: {e.field})" if e.field else ""
        print(f"Error: invalid selection: {e}{suffix}", file=sys.stderr)
        sys.exit(1)
    except (ConfiguratorError, FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _add_common(subparser):
    subparser.add_argument('-c', '--catalog', help='Path to catalog file (CSV, Excel or JSON)')
    subparser.add_argument('--category', help='Door category to match against')
    subparser.add_argument('--config', help='Path to YAML configuration')
    subparser.add_argument('--log-level', help='Logging level (DEBUG, INFO, ...)')


def _add_selection(subparser):
    subparser.add_argument('--selection', help='Selection as a JSON object')
    for flag in SELECTION_FLAGS:
        subparser.add_argument(f"--{flag.replace('_', '-')}", dest=flag)
    subparser.add_argument('--option', dest='option_ids', action='append', default=[],
                           help='Option id (repeatable)')
    subparser.add_argument('--reversible', action='store_true')
    subparser.add_argument('--threshold', action='store_true')
    subparser.add_argument('--backplate', action='store_true')


def _selection_from_args(args):
    payload = json.loads(args.selection) if args.selection else {}
    for flag in SELECTION_FLAGS:
        value = getattr(args, flag)
        if value is not None:
            payload[flag] = value
    if args.option_ids:
        payload['option_ids'] = args.option_ids
    for flag in ('reversible', 'threshold', 'backplate'):
        if getattr(args, flag):
            payload[flag] = True
    return SelectionParser().parse(payload)


def _door_records(args, repository):
    if args.category:
        return repository.get_category(args.category)
    return repository.get_doors()


def run_quote(args, engine, repository):
    """Price one configuration."""
    selection = _selection_from_args(args)
    records = _door_records(args, repository)
    quote = engine.quote(records, selection, repository.load_accessories())

    if args.json:
        print(json.dumps(quote.to_dict(), indent=2, ensure_ascii=False))
        return

    print(engine.reporter.format_quote(quote))
    if quote.not_found and not quote.diagnostics:
        print(engine.reporter.format_diagnostics(engine.diagnose(records, selection), indent="  "))


def run_diagnose(args, engine, repository):
    """Show per-stage candidate counts."""
    selection = _selection_from_args(args)
    records = _door_records(args, repository)
    print(f"Records in category: {len(records)}")
    print(engine.reporter.format_diagnostics(engine.diagnose(records, selection)))


def run_options(args, engine, repository):
    """Show the values still selectable."""
    selection = _selection_from_args(args)
    options = engine.cascading_options(_door_records(args, repository), selection)

    if args.json:
        print(json.dumps(options.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(engine.reporter.format_options(options))


def run_batch(args, engine, repository):
    """Price an order file."""
    selections = SelectionParser().parse_file(args.orders_file)
    records = _door_records(args, repository)

    print(f"Loading catalog... {len(records)} door records loaded")
    print(f"Processing order file: {args.orders_file}")

    results = engine.quote_batch(records, selections, repository.load_accessories(),
                                 output_path=args.output)

    print("\n" + "=" * 60)
    print("PROCESSING COMPLETE")
    print("=" * 60)
    print(f"Total lines priced: {len(results)}")
    print(f"Not found: {sum(1 for _, q in results if q.not_found)}")
    print(f"With warnings: {sum(1 for _, q in results if q.warnings)}")

    if args.output:
        print(f"\nResults written to: {args.output}")
    else:
        print()
        print(engine.reporter.format_batch_report(results))


def run_stats(args, repository):
    """Show catalog statistics."""
    stats = repository.get_statistics()

    print("=" * 60)
    print("CATALOG STATISTICS")
    print("=" * 60)

    print(f"\nTotal Records: {stats['total_records']}")

    print("\nCategories:")
    for name, count in sorted(stats['categories'].items(), key=lambda x: x[1], reverse=True):
        print(f"  {name}: {count}")

    print("\nDoor Models:")
    for model, count in sorted(stats['door_models'].items(), key=lambda x: x[1], reverse=True):
        print(f"  {model}: {count}")


if __name__ == '__main__':
    main()
