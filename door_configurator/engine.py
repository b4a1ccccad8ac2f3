"""
Configurator Engine - resolves selections against catalog records and prices them.
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .config import EngineConfig, load_config
from .filters import FilterPipeline, collapsing_stage
from .models import (
    CatalogRecord, Selection, MatchResult, PriceBreakdown, PriceQuote,
    FilterStep, CascadingOptions, RecordVariant
)
from .options import CascadingOptionAggregator
from .pricing import PriceBreakdownComposer
from .report import ReportFormatter
from .resolver import AccessoryPools, AccessoryResolver, TieBreakResolver, declared_price
from .selection_parser import validate_selection

logger = logging.getLogger(__name__)


class ConfiguratorEngine:
    """
    Door selection resolution and pricing.

    The engine is stateless between calls: records and accessory pools are
    passed in on every call and never modified, so one instance can serve
    concurrent callers.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration; packaged defaults when omitted
        """
        self.config = config or EngineConfig()
        self.pipeline = FilterPipeline(self.config.attributes, self.config.pricing)
        self.tie_breaker = TieBreakResolver(self.config.attributes)
        self.accessory_resolver = AccessoryResolver()
        self.composer = PriceBreakdownComposer(self.config.attributes, self.config.pricing)
        self.aggregator = CascadingOptionAggregator(self.pipeline)
        self.reporter = ReportFormatter()

    def match(self, records: Sequence[CatalogRecord], selection: Selection) -> MatchResult:
        """
        Resolve the base record for a selection.

        Returns every record that passed the pipeline plus the tie-break
        winner (None when nothing matched).
        """
        validate_selection(selection)
        candidates = self.pipeline.run(records, selection)
        return MatchResult(record=self.tie_breaker.resolve(candidates), candidates=candidates)

    def quote(self, records: Sequence[CatalogRecord], selection: Selection,
              accessories: Optional[AccessoryPools] = None) -> PriceQuote:
        """
        Resolve and price a selection.

        A selection that matches nothing yields a zero quote flagged
        ``not_found`` instead of raising.
        """
        match = self.match(records, selection)

        if not match.found:
            diagnostics = self.pipeline.diagnose(records, selection)
            culprit = collapsing_stage(diagnostics)
            logger.warning(
                "No record for selection %s among %d records%s",
                selection.to_dict(), len(records),
                f" ({culprit.stage} stage dropped {culprit.before} -> 0)" if culprit else "",
            )
            return PriceQuote(
                selection=selection,
                breakdown=PriceBreakdown(),
                match=match,
                currency=self.config.currency,
                diagnostics=diagnostics if self.config.include_diagnostics else None,
            )

        resolved = self.accessory_resolver.resolve(selection, accessories)
        breakdown = self.composer.compose(match.record, selection, resolved)

        quote = PriceQuote(
            selection=selection,
            breakdown=breakdown,
            match=match,
            currency=self.config.currency,
            variants=[self._variant(record) for record in match.candidates],
            model_name=match.record.bag.get_string(self.config.attributes.model_name),
            warnings=list(resolved.warnings),
        )

        logger.debug("Quoted %s: base=%s total=%s (%d candidates)",
                     quote.matched_record_id, breakdown.base, breakdown.total,
                     len(match.candidates))
        return quote

    def diagnose(self, records: Sequence[CatalogRecord],
                 selection: Selection) -> List[FilterStep]:
        """Per-stage candidate counts, for operator troubleshooting."""
        validate_selection(selection)
        return self.pipeline.diagnose(records, selection)

    def cascading_options(self, records: Sequence[CatalogRecord],
                          selection: Selection) -> CascadingOptions:
        """Values still selectable for each dimension of a partial selection."""
        validate_selection(selection)
        return self.aggregator.aggregate(records, selection)

    def quote_batch(self, records: Sequence[CatalogRecord],
                    selections: Sequence[Tuple[int, Selection]],
                    accessories: Optional[AccessoryPools] = None,
                    output_path: Optional[str] = None) -> List[Tuple[int, PriceQuote]]:
        """
        Quote every (row number, selection) pair, e.g. the lines of an order.

        Args:
            records: Door records to match against
            selections: Parsed order lines
            accessories: Accessory pools shared by all lines
            output_path: Optional path to write results

        Returns:
            List of (row number, PriceQuote)
        """
        results = []
        for row_num, selection in selections:
            results.append((row_num, self.quote(records, selection, accessories)))

        if output_path:
            self.write_results(results, output_path)

        return results

    def write_results(self, results: List[Tuple[int, PriceQuote]], output_path: str):
        """Write results to file (CSV, JSON, or TXT)."""
        path = Path(output_path)
        suffix = path.suffix.lower()

        if suffix == '.csv':
            self._write_csv(results, path)
        elif suffix == '.json':
            self._write_json(results, path)
        else:
            self._write_text(results, path)

    def _write_csv(self, results: List[Tuple[int, PriceQuote]], path: Path):
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)

            writer.writerow([
                'Row', 'Model', 'Matched_Record', 'SKU', 'Model_Name', 'Base',
                'Surcharges', 'Total', 'Currency', 'Candidates', 'Not_Found', 'Warnings'
            ])

            for row_num, quote in results:
                data = quote.to_dict()
                writer.writerow([
                    row_num,
                    quote.selection.model,
                    data['matched_record_id'] or '',
                    data['sku'] or '',
                    data['model_name'] or '',
                    data['base'],
                    '; '.join(f"{line['label']}={line['amount']}" for line in data['breakdown']),
                    data['total'],
                    data['currency'],
                    len(data['matching_records']),
                    'YES' if quote.not_found else 'NO',
                    '; '.join(quote.warnings),
                ])

    def _write_json(self, results: List[Tuple[int, PriceQuote]], path: Path):
        output = {
            'generated_at': datetime.now().isoformat(),
            'total_items': len(results),
            'not_found_count': sum(1 for _, q in results if q.not_found),
            'results': [
                {'row': row_num, 'selection': quote.selection.to_dict(), 'quote': quote.to_dict()}
                for row_num, quote in results
            ],
        }
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False)

    def _write_text(self, results: List[Tuple[int, PriceQuote]], path: Path):
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.reporter.format_batch_report(results))

    def _variant(self, record: CatalogRecord) -> RecordVariant:
        keys = self.config.attributes
        bag = record.bag
        return RecordVariant(
            record_id=record.record_id,
            sku=record.sku,
            model_name=bag.get_string(keys.model_name),
            supplier=bag.get_string(keys.supplier),
            price=declared_price(record, keys.price),
            finish=bag.get_string(keys.finish),
            color=bag.get_string(keys.color),
            width=bag.get_number(keys.width),
            height=bag.get_number(keys.height),
        )


def create_engine(config_path: Optional[str] = None) -> ConfiguratorEngine:
    """
    Factory function to create a configured ConfiguratorEngine.

    Args:
        config_path: Path to a YAML config. If None, uses the environment
            variable or the packaged defaults.
    """
    config = load_config(Path(config_path) if config_path else None)
    return ConfiguratorEngine(config)
