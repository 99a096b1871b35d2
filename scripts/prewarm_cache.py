#!/usr/bin/env python3
"""
Warm the reference cache for one or more funds.

Fetches each fund's composition, then the classification of every
constituent, in provider-friendly batches. Run it ahead of time so exposure
requests are served from cache instead of waiting on the rate limit.

Usage: from project root:
  python scripts/prewarm_cache.py QQQM VTI
  python scripts/prewarm_cache.py --kind fund_composition QQQ VOO SPY
"""

import argparse
import sys
from pathlib import Path

# Add src/ to path when running from a checkout
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from lookthrough.app_context import AppContext
from lookthrough.config.logging_config import setup_logging
from lookthrough.domain.models import RecordKind


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("symbols", nargs="+", help="Fund (or security) symbols")
    parser.add_argument(
        "--kind",
        choices=["constituents", *(k.value for k in RecordKind)],
        default="constituents",
        help="What to warm (default: classifications of every fund constituent)",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Stop starting new batches after this many seconds",
    )
    return parser.parse_args(argv)


def warm(context: AppContext, symbols: list[str], kind: str, deadline) -> int:
    reference = context.reference_data

    if kind == RecordKind.SECURITY_CLASSIFICATION.value:
        targets = symbols
    else:
        lookup = reference.compositions.get_many(symbols, deadline=deadline)
        for symbol, entry in lookup.entries.items():
            count = len(entry.record.holdings) if entry.is_available else 0
            print(f"  {symbol}: {entry.source_tag.value} ({count} holdings)")
        if kind == RecordKind.FUND_COMPOSITION.value:
            return 0 if not lookup.degraded_symbols else 1
        targets = [
            c.symbol
            for entry in lookup.entries.values()
            if entry.is_available
            for c in entry.record.holdings
        ]

    targets = list(dict.fromkeys(targets))
    print(f"Warming classifications for {len(targets)} symbols")
    lookup = reference.classifications.get_many(targets, deadline=deadline)

    by_tag: dict[str, int] = {}
    for entry in lookup.entries.values():
        by_tag[entry.source_tag.value] = by_tag.get(entry.source_tag.value, 0) + 1
    print("=" * 60)
    print(f"Provider calls: {lookup.provider_calls}")
    for tag, count in sorted(by_tag.items()):
        print(f"  {tag}: {count}")
    if lookup.retryable:
        print("Stopped early (rate limit or deadline); run again later to fill the rest.")
    return 0 if not lookup.degraded_symbols else 1


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()
    context = AppContext()
    try:
        return warm(context, [s.upper() for s in args.symbols], args.kind, args.deadline)
    finally:
        context.close()


if __name__ == "__main__":
    sys.exit(main())
