#!/usr/bin/env python3
"""
Lead Enrichment Script

Runs the paid-metrics enrichment pass (backlinks, traffic trend, page speed)
over leads that are still `basic`. Each lead is enriched at most once.

Usage:
    python enrich_leads.py --campaign-run-id <uuid>
    python enrich_leads.py --all-basic --limit 50
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence
from uuid import UUID

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.enrichment_service import EnrichmentSummary, enrich_campaign_run, enrich_pending_leads
from services.metrics_provider import DataForSEOClient


def print_summary(summary: EnrichmentSummary) -> None:
    print()
    print("=" * 60)
    print("ENRICHMENT SUMMARY")
    print("=" * 60)
    print(f"Leads considered:        {summary.total_leads}")
    print(f"  Enriched:              {summary.enriched_count}")
    print(f"  Skipped (no website):  {summary.skipped_no_website}")
    print(f"  Already complete:      {summary.lost_race}")
    print(f"  Failed (marked done):  {summary.failed}")
    print("=" * 60)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Enrich basic leads with DataForSEO metrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Enrich the leads found by one campaign run
  python enrich_leads.py --campaign-run-id 123e4567-e89b-12d3-a456-426614174000

  # Enrich up to 50 stored basic leads, neediest first
  python enrich_leads.py --all-basic --limit 50
        """
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--campaign-run-id",
        type=UUID,
        help="Enrich the basic leads linked to this campaign run"
    )
    target.add_argument(
        "--all-basic",
        action="store_true",
        help="Enrich every stored lead that is still basic"
    )

    parser.add_argument(
        "--limit",
        type=int,
        help="Maximum number of leads (only with --all-basic)"
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.limit is not None and not args.all_basic:
        parser.error("--limit can only be used with --all-basic")

    provider = DataForSEOClient()
    if not provider.configured:
        print("WARNING: DATAFORSEO_API_KEY is not set; leads will be marked complete without new metrics")

    try:
        if args.campaign_run_id:
            print(f"Enriching campaign run {args.campaign_run_id}...")
            summary = enrich_campaign_run(args.campaign_run_id, provider=provider)
        else:
            print(f"Enriching basic leads (limit: {args.limit or 'none'})...")
            summary = enrich_pending_leads(limit=args.limit, provider=provider)

        if summary.total_leads == 0:
            print("No basic leads to enrich")
            return 0

        print_summary(summary)
        return 0

    except KeyboardInterrupt:
        print("\n\nEnrichment interrupted by user")
        return 130

    except Exception as e:
        logging.getLogger(__name__).exception("Enrichment run failed")
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
