"""
Database validation tests.

This module checks a live Supabase project and verifies that:
1. Connection credentials work
2. The `leads` and `campaign_run_leads` tables exist
3. A lead can be inserted, read back and enriched exactly once

The whole module is skipped when SUPABASE_URL / SUPABASE_KEY are not set.
Run it against a fresh project before running the API.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from dotenv import load_dotenv

# Load .env file before anything else
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Add parent directory to path to import repositories
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

pytestmark = pytest.mark.skipif(
    not (os.getenv("SUPABASE_URL") and os.getenv("SUPABASE_KEY")),
    reason="SUPABASE_URL / SUPABASE_KEY not set; skipping live database checks",
)


def _delete_lead(lead_id: UUID) -> None:
    from repositories.client import get_supabase

    get_supabase().table("campaign_run_leads").delete().eq("lead_id", str(lead_id)).execute()
    get_supabase().table("leads").delete().eq("id", str(lead_id)).execute()


def test_supabase_url_is_https() -> None:
    assert os.getenv("SUPABASE_URL", "").startswith("https://"), "SUPABASE_URL should start with https://"


@pytest.mark.parametrize("table", ["leads", "campaign_run_leads"])
def test_table_exists(table: str) -> None:
    from repositories.client import get_supabase

    try:
        get_supabase().table(table).select("*").limit(0).execute()
        print(f"\n[OK] '{table}' table exists")
    except Exception as e:
        pytest.fail(
            f"'{table}' table does not exist or cannot be accessed: {e}\n"
            f"You need to create this table in Supabase."
        )


def test_lead_round_trip_and_single_enrichment() -> None:
    from domain.lead import AnalysisStatus, Lead
    from domain.signals import SignalSet
    from repositories import campaign_repository, lead_repository

    lead = Lead.scored(
        "Validation Plumbing",
        SignalSet(has_schema=True, issues=("No FAQ schema",)),
        website="https://validation.example",
        city="Austin",
    )
    saved = None

    try:
        saved = lead_repository.insert_lead(lead)
        print(f"\n[OK] Inserted test lead: {saved.id}")

        retrieved = lead_repository.get_lead_by_id(saved.id)
        assert retrieved is not None, "Failed to retrieve inserted lead"
        assert retrieved.signals == lead.signals
        assert retrieved.analysis_status is AnalysisStatus.BASIC

        run_id = uuid4()
        campaign_repository.link_lead_to_campaign_run(run_id, saved.id, "plumbers")
        assert campaign_repository.list_campaign_run_lead_ids(run_id) == [saved.id]

        assert lead_repository.complete_enrichment(saved.id, {"score": 70}) is True
        assert lead_repository.complete_enrichment(saved.id, {"score": 10}) is False
        assert lead_repository.get_lead_by_id(saved.id).score == 70
        print("[OK] Enrichment update applied exactly once")

    except Exception as e:
        pytest.fail(
            f"Failed to perform basic lead operations: {e}\n"
            f"This could indicate:\n"
            f"  1. Table schema doesn't match expected structure\n"
            f"  2. Missing required columns\n"
            f"  3. Column type mismatches"
        )
    finally:
        if saved is not None and saved.id is not None:
            _delete_lead(saved.id)
