"""
Human-readable reports for quotes, diagnostics and cascading options.
"""

from typing import List, Sequence, Tuple

from .models import PriceQuote, FilterStep, CascadingOptions, plain_number


class ReportFormatter:
    """
    Formats engine results for operators and sales staff.
    """

    def format_quote(self, quote: PriceQuote) -> str:
        """Format a single quote."""
        lines = []
        lines.append(f"Model: {quote.selection.model}")
        lines.append("-" * 70)

        if quote.not_found:
            lines.append("  No matching product for this configuration.")
            if quote.diagnostics:
                lines.append(self.format_diagnostics(quote.diagnostics, indent="  "))
            return "\n".join(lines)

        lines.append(f"  Matched record: {quote.matched_record_id}"
                     + (f" (SKU {quote.sku})" if quote.sku else ""))
        if quote.model_name:
            lines.append(f"  Model name: {quote.model_name}")
        lines.append(f"  Matching variants: {len(quote.match.candidates)} "
                     f"(policy: {quote.selection_policy})")
        lines.append(f"  Base: {self._money(quote.breakdown.base, quote.currency)}")
        for line in quote.breakdown.lines:
            lines.append(f"    + {line.label}: {self._money(line.amount, quote.currency)}")
        lines.append(f"  Total: {self._money(quote.total, quote.currency)}")

        if quote.warnings:
            lines.append("  WARNINGS:")
            for warning in quote.warnings:
                lines.append(f"    - {warning}")

        return "\n".join(lines)

    def format_diagnostics(self, steps: Sequence[FilterStep], indent: str = "") -> str:
        """Stage-by-stage candidate counts; the collapsing stage is marked."""
        lines = [f"{indent}Filter steps:"]
        for step in steps:
            if not step.applied:
                lines.append(f"{indent}  {step.stage:<10} {step.before:>5} -> {step.after:<5} (not set)")
                continue
            marker = "  <<< no candidates left" if step.dropped_to_zero else ""
            lines.append(f"{indent}  {step.stage:<10} {step.before:>5} -> {step.after:<5}{marker}")
        return "\n".join(lines)

    def format_options(self, options: CascadingOptions) -> str:
        """List the values still selectable per dimension."""
        lines = [f"Candidates under current selection: {options.total_count}"]
        for dimension, values in options.values.items():
            rendered = ", ".join(str(v) for v in values) if values else "-"
            lines.append(f"  {dimension}: {rendered}")
        if options.colors_by_finish:
            lines.append("  colors by finish:")
            for finish, colors in options.colors_by_finish.items():
                lines.append(f"    {finish}: {', '.join(colors) or '-'}")
        if options.edges:
            lines.append(f"  edges: {', '.join(options.edges)}")
        lines.append(f"  reversible available: {'yes' if options.reversible_available else 'no'}")
        lines.append(f"  mirror available: {'yes' if options.mirror_available else 'no'}")
        lines.append(f"  threshold available: {'yes' if options.threshold_available else 'no'}")
        return "\n".join(lines)

    def format_batch_report(self, results: List[Tuple[int, PriceQuote]]) -> str:
        """Format a report for a batch of quotes."""
        lines = []

        total = len(results)
        not_found = sum(1 for _, q in results if q.not_found)
        with_warnings = sum(1 for _, q in results if q.warnings)

        lines.append("=" * 70)
        lines.append("DOOR PRICING REPORT")
        lines.append("=" * 70)
        lines.append(f"Total Lines: {total}")
        lines.append(f"Not Found: {not_found}")
        lines.append(f"With Warnings: {with_warnings}")
        lines.append("=" * 70)
        lines.append("")

        for row_num, quote in results:
            lines.append(f"Row {row_num}")
            lines.append(self.format_quote(quote))
            lines.append("")

        return "\n".join(lines)

    def _money(self, amount, currency: str) -> str:
        return f"{plain_number(amount)} {currency}"
