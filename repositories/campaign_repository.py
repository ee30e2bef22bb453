"""
Campaign run repository (persistence).

Campaign runs group the leads discovered in one discovery pass; the
`campaign_run_leads` link table is what an enrichment run is keyed on.
"""

from __future__ import annotations

from typing import List
from uuid import UUID

from repositories.client import execute_query, get_supabase

_CAMPAIGN_RUN_LEADS_TABLE: str = "campaign_run_leads"


def list_campaign_run_lead_ids(campaign_run_id: UUID) -> List[UUID]:
    """Lead ids linked to a campaign run, in link order (possibly empty)."""

    query = (
        get_supabase().table(_CAMPAIGN_RUN_LEADS_TABLE)
        .select("lead_id")
        .eq("campaign_run_id", str(campaign_run_id))
    )
    rows = execute_query(query, "list campaign run leads")
    return [UUID(str(row["lead_id"])) for row in rows if row.get("lead_id")]


def link_lead_to_campaign_run(campaign_run_id: UUID, lead_id: UUID, industry: str) -> None:
    """Record that `lead_id` was found by `campaign_run_id` while searching `industry`."""

    payload = {
        "campaign_run_id": str(campaign_run_id),
        "lead_id": str(lead_id),
        "industry": industry,
    }
    execute_query(
        get_supabase().table(_CAMPAIGN_RUN_LEADS_TABLE).insert(payload),
        "link lead to campaign run",
    )


__all__ = [
    "link_lead_to_campaign_run",
    "list_campaign_run_lead_ids",
]
