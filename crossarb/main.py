#!/usr/bin/env python3
"""
Prediction Market Arbitrage Scanner

Main execution script that:
1. Collects data from Polymarket and Kalshi
2. Matches equivalent markets (semantic embeddings, or lexical fallback)
3. Matches single-game sports markets by event and team
4. Outputs ranked arbitrage opportunities
"""

import argparse
import asyncio
import json
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from . import config
from .models import ArbitrageOpportunity
from .opportunities import SORT_KEYS
from .scanner import ArbitrageScanner
from .utils import setup_logging

logger = logging.getLogger(__name__)


def save_results(opportunities: List[ArbitrageOpportunity], filename: str = "arbitrage_results.json"):
    """Save arbitrage opportunities to JSON file."""
    results = {
        "timestamp": datetime.now().isoformat(),
        "count": len(opportunities),
        "opportunities": [opp.to_dict() for opp in opportunities],
    }

    with open(filename, 'w') as f:
        json.dump(results, f, indent=2)

    logger.info(f"Results saved to {filename}")


def print_summary(opportunities: List[ArbitrageOpportunity], top: int = 10):
    """Print summary of arbitrage opportunities."""
    print("\n" + "=" * 80)
    print("ARBITRAGE SCANNER RESULTS")
    print("=" * 80)

    if not opportunities:
        print("\nNo arbitrage opportunities found.")
        return

    print(f"\nFound {len(opportunities)} arbitrage opportunities!\n")

    for i, opp in enumerate(opportunities[:top], 1):
        print(f"\n--- Opportunity #{i} ({opp.source}) ---")
        print(f"Event: {opp.title[:70]}")
        print(f"Spread: {opp.max_spread:.2f}pp | ROI: {opp.roi:.2f}% | Confidence: {opp.confidence_tier}")
        if opp.similarity_score is not None:
            print(f"Similarity: {opp.similarity_score:.3f}")
        for label, leg in (("Buy ", opp.best_buy), ("Sell", opp.best_sell)):
            print(f"  {label}: {leg.platform.value} '{leg.outcome.name}' @ ${leg.price:.4f}")
            print(f"        {leg.market.title[:60]}")
            print(f"        {leg.market.link}")
        print(f"Volume: ${opp.total_volume:,.0f} | Avg liquidity: ${opp.avg_liquidity:,.0f}")

    if len(opportunities) > top:
        print(f"\n... and {len(opportunities) - top} more opportunities")

    print("\n" + "=" * 80)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scan prediction markets for cross-platform arbitrage")
    parser.add_argument("--limit", type=int, default=config.DEFAULT_SCAN_LIMIT,
                        help="Maximum markets fetched per platform")
    parser.add_argument("--min-spread", type=float, default=config.DEFAULT_MIN_SPREAD,
                        help="Minimum spread in percentage points")
    parser.add_argument("--min-roi", type=float, default=config.DEFAULT_MIN_ROI,
                        help="Minimum ROI (percent) for sports opportunities")
    parser.add_argument("--sort", choices=SORT_KEYS, default=config.DEFAULT_SORT,
                        help="Ranking strategy")
    parser.add_argument("--no-sports", action="store_true", help="Skip sport-aware matching")
    parser.add_argument("--no-semantic", action="store_true", help="Skip semantic/lexical matching")
    parser.add_argument("--output", metavar="FILE", help="Write opportunities to a JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


async def main(args: argparse.Namespace) -> List[ArbitrageOpportunity]:
    """Run one scan and report it."""
    try:
        scanner = ArbitrageScanner()
        opportunities = await scanner.scan(
            limit=args.limit,
            min_spread=args.min_spread,
            sort_by=args.sort,
            min_roi=args.min_roi,
            include_semantic=not args.no_semantic,
            include_sports=not args.no_sports,
        )

        print_summary(opportunities)

        if args.output:
            save_results(opportunities, args.output)

        logger.info("Arbitrage scan completed successfully")
        return opportunities

    except Exception as e:
        logger.error(f"Fatal error in main execution: {e}", exc_info=True)
        raise


def cli(argv: Optional[Sequence[str]] = None):
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    asyncio.run(main(args))


if __name__ == "__main__":
    cli()
