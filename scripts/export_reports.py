#!/usr/bin/env python3
"""
Report Export Script

Renders SEO sales reports for stored leads and writes them to a directory.

Usage:
    python export_reports.py --lead-id <uuid> --format html --output reports/
    python export_reports.py --format txt --output reports/ --city Austin
    python export_reports.py --bulk --geography "Austin, TX" --industry plumbers --output reports/
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence
from uuid import UUID

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.lead import AnalysisStatus, Lead
from repositories.lead_repository import get_lead_by_id, list_leads_by_filter, list_leads_by_ids
from services.report_service import (
    ReportFormat,
    bulk_report_filename,
    render_bulk_report,
    render_report,
    report_filename,
)


def write_report(output_dir: Path, filename: str, content: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / filename
    path.write_text(content, encoding="utf-8")
    return path


def export_individual_reports(leads: Sequence[Lead], fmt: ReportFormat, output_dir: Path) -> List[Path]:
    """
    Write one report per lead.

    Raises:
        ValueError: If leads list is empty
    """
    if not leads:
        raise ValueError("No leads to export")

    print(f"Rendering {len(leads)} {fmt.value.upper()} reports into {output_dir}")
    paths = []
    for lead in leads:
        path = write_report(output_dir, report_filename(lead, fmt), render_report(lead, fmt))
        print(f"  ✓ {lead.business_name} (score {lead.score}) -> {path.name}")
        paths.append(path)
    return paths


def export_bulk_report(
    leads: Sequence[Lead],
    geography: str,
    industry: str,
    fmt: ReportFormat,
    output_dir: Path,
) -> Path:
    if not leads:
        raise ValueError("No leads to export")

    content = render_bulk_report(leads, geography, industry, fmt)
    path = write_report(output_dir, bulk_report_filename(geography, industry, fmt), content)
    print(f"✓ Bulk report with {len(leads)} leads -> {path}")
    return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Export SEO lead reports from the Supabase database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One HTML report for a single lead
  python export_reports.py --lead-id 123e4567-e89b-12d3-a456-426614174000 --format html --output reports/

  # Text reports for every enriched lead in Austin
  python export_reports.py --city Austin --analysis-status complete --output reports/

  # One bulk HTML report with cover page and executive summary
  python export_reports.py --bulk --geography "Austin, TX" --industry plumbers --format html --output reports/
        """
    )

    parser.add_argument(
        "--output",
        "-o",
        required=True,
        help="Directory to write reports into"
    )

    parser.add_argument(
        "--format",
        "-f",
        choices=[fmt.value for fmt in ReportFormat],
        default=ReportFormat.TXT.value,
        help="Report format (default: txt)"
    )

    parser.add_argument(
        "--lead-id",
        action="append",
        type=UUID,
        help="Export only this lead (repeatable)"
    )

    parser.add_argument("--city", help="Filter by city")

    parser.add_argument(
        "--analysis-status",
        choices=[status.value for status in AnalysisStatus],
        help="Filter by analysis status"
    )

    parser.add_argument("--limit", type=int, help="Maximum number of leads")

    parser.add_argument(
        "--bulk",
        action="store_true",
        help="Write a single bulk report instead of one file per lead"
    )

    parser.add_argument("--geography", help="Geography label for the bulk report cover")
    parser.add_argument("--industry", help="Industry label for the bulk report cover")

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.bulk and not (args.geography and args.industry):
        parser.error("--bulk requires --geography and --industry")

    fmt = ReportFormat(args.format)
    output_dir = Path(args.output)

    try:
        print("Fetching leads from database...")
        if args.lead_id:
            if len(args.lead_id) == 1:
                lead = get_lead_by_id(args.lead_id[0])
                leads = [lead] if lead is not None else []
            else:
                leads = list_leads_by_ids(args.lead_id)
        else:
            print(f"  City filter: {args.city or 'None (all)'}")
            print(f"  Analysis status filter: {args.analysis_status or 'None (all)'}")
            leads = list_leads_by_filter(
                analysis_status=AnalysisStatus(args.analysis_status) if args.analysis_status else None,
                city=args.city,
                limit=args.limit,
            )
        print()

        if not leads:
            print("No leads found matching the specified filters")
            return 1

        if args.bulk:
            export_bulk_report(leads, args.geography, args.industry, fmt, output_dir)
        else:
            export_individual_reports(leads, fmt, output_dir)

        print()
        print("=" * 60)
        print("EXPORT SUMMARY")
        print("=" * 60)
        print(f"Total leads exported: {len(leads)}")
        high = sum(1 for lead in leads if lead.score < 60)
        medium = sum(1 for lead in leads if 60 <= lead.score < 75)
        print(f"  High priority:   {high}")
        print(f"  Medium priority: {medium}")
        print(f"  Low priority:    {len(leads) - high - medium}")
        print()
        print(f"Output directory: {output_dir}")
        print("=" * 60)

        return 0

    except KeyboardInterrupt:
        print("\n\nExport interrupted by user")
        return 130

    except Exception as e:
        logging.getLogger(__name__).exception("Report export failed")
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
