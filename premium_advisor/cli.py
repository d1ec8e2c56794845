"""Command line interface for the premium advisor."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Sequence

import pandas as pd

from premium_advisor.config import get_settings
from premium_advisor.engine import AllSourcesExhausted, AnalysisEngine, InvalidRequest
from premium_advisor.models import (
    AnalysisResult,
    RiskTolerance,
    Strategy,
    serialize_analysis_result,
    serialize_quote_result,
)

LOGGER = logging.getLogger("premium_advisor.cli")

DISPLAY_COLUMNS = [
    "optionType",
    "strike",
    "expiration",
    "premium",
    "probability",
    "maxProfit",
    "maxLoss",
    "breakeven",
    "annualizedReturn",
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Recommend option contracts to sell")
    parser.add_argument("command", choices=["analyze", "quote", "symbols", "sources"], help="Command to execute")
    parser.add_argument("symbol", nargs="?", default="", help="Underlying ticker, e.g. AAPL")
    parser.add_argument(
        "--strategy",
        default=Strategy.CASH_SECURED_PUT.value,
        help=f"One of: {', '.join(item.value for item in Strategy)}",
    )
    parser.add_argument(
        "--risk",
        default=RiskTolerance.MODERATE.value,
        help=f"One of: {', '.join(item.value for item in RiskTolerance)}",
    )
    parser.add_argument("--env", default=None, help="Configuration environment (defaults to APP_ENV or dev)")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--log-level", default="WARNING", help="Logging level for the console")
    return parser


def _display(result: AnalysisResult) -> None:
    payload = serialize_analysis_result(result)
    print(f"{result.symbol} @ {result.current_price:.2f} ({result.strategy.value}, {result.risk_tolerance.value})")
    source = result.source_info
    print(f"price: {source.price_source}  options: {source.options_source}")
    if source.fallback_reason:
        print(f"fallback: {source.fallback_reason}")

    frame = pd.DataFrame(payload["recommendations"])
    if frame.empty:
        print("No qualifying contracts found.")
        return
    with pd.option_context("display.max_columns", None, "display.width", 160):
        print(frame[DISPLAY_COLUMNS].to_string(index=False))

    metrics = result.risk_metrics
    print(
        f"win rate {metrics.win_rate:.1%}  max drawdown {metrics.max_drawdown:.1%}  "
        f"sharpe {metrics.sharpe_ratio:.2f}"
    )


def run_from_args(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    engine = AnalysisEngine.from_settings(get_settings(args.env))
    if args.command == "sources":
        print(json.dumps(engine.describe(), indent=2))
        return 0

    if args.command == "symbols":
        for item in engine.supported_symbols().symbols:
            print(f"{item.symbol:<6} {item.reference_price:>9.2f}  {item.category}")
        return 0

    try:
        if args.command == "quote":
            quote_result = engine.lookup_quote_sync(args.symbol)
            print(json.dumps(serialize_quote_result(quote_result), indent=2))
            return 0
        result = engine.analyze_sync(args.symbol, args.strategy, args.risk)
    except InvalidRequest as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except AllSourcesExhausted as exc:
        LOGGER.error(f"All data sources failed: {exc}")
        return 1

    if args.json:
        print(json.dumps(serialize_analysis_result(result), indent=2))
    else:
        _display(result)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    return run_from_args(argv)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
