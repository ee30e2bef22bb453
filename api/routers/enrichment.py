"""
Enrichment API Endpoints.

Trigger the paid-metrics enrichment pass for basic leads.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from api.models import EnrichmentSummaryResponse
from services.enrichment_service import EnrichmentSummary, enrich_campaign_run, enrich_pending_leads

router = APIRouter()


def _to_response(summary: EnrichmentSummary) -> EnrichmentSummaryResponse:
    return EnrichmentSummaryResponse(
        enriched_count=summary.enriched_count,
        skipped_no_website=summary.skipped_no_website,
        lost_race=summary.lost_race,
        failed=summary.failed,
        total_leads=summary.total_leads,
    )


@router.post(
    "/enrichment/campaign-runs/{campaign_run_id}",
    response_model=EnrichmentSummaryResponse,
    summary="Enrich Campaign Run",
    description="Enrich every still-basic lead found by a campaign run. Each lead is enriched at most once."
)
def enrich_run(campaign_run_id: UUID):
    """
    Run the enrichment pass for one campaign run.

    Leads without a website are marked complete without any provider call.
    A lead whose enrichment fails is still marked complete and counted as failed.
    """
    try:
        return _to_response(enrich_campaign_run(campaign_run_id))
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to enrich campaign run: {str(e)}"
        )


@router.post(
    "/enrichment/pending",
    response_model=EnrichmentSummaryResponse,
    summary="Enrich Pending Leads",
    description="Enrich stored leads that are still basic, neediest first."
)
def enrich_pending(limit: Optional[int] = Query(None, ge=1, le=1000)):
    try:
        return _to_response(enrich_pending_leads(limit=limit))
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to enrich pending leads: {str(e)}"
        )
