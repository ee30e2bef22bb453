"""
Leads API Endpoints.

Endpoints for discovering leads and reading stored leads and their reports.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from api.models import DiscoverLeadsRequest, DiscoverLeadsResponse, ErrorResponse, LeadResponse
from api.routers.reports import report_response
from domain.lead import AnalysisStatus, LeadPriority, LeadStatus
from repositories.lead_repository import get_lead_by_id, list_leads_by_filter
from services.lead_discovery_service import find_leads
from services.report_service import ReportFormat, render_report, report_filename

router = APIRouter()


@router.get(
    "/leads",
    response_model=DiscoverLeadsResponse,
    summary="List Stored Leads",
    description="List stored leads, neediest (lowest score) first, with optional filters."
)
def list_leads(
    status: Optional[str] = Query(None, description="Filter by sales status (e.g., 'new')"),
    priority: Optional[str] = Query(None, description="Filter by priority (e.g., 'high')"),
    analysis_status: Optional[str] = Query(None, description="'basic' or 'complete'"),
    city: Optional[str] = Query(None, description="Filter by city"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of results to return"),
):
    """
    **Example usage:**
    - Leads still waiting for enrichment: `GET /api/v1/leads?analysis_status=basic`
    - Combine filters: `GET /api/v1/leads?city=Austin&status=new&limit=20`
    """
    try:
        try:
            status_filter = LeadStatus(status) if status else None
            priority_filter = LeadPriority(priority) if priority else None
            analysis_filter = AnalysisStatus(analysis_status) if analysis_status else None
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid filter: {str(e)}")

        leads = list_leads_by_filter(
            status=status_filter,
            priority=priority_filter,
            analysis_status=analysis_filter,
            city=city,
            limit=limit,
        )
        return DiscoverLeadsResponse(
            leads=[LeadResponse.from_domain(lead) for lead in leads],
            total_count=len(leads),
        )

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list leads: {str(e)}"
        )


@router.get(
    "/leads/{lead_id}",
    response_model=LeadResponse,
    summary="Get Lead",
    responses={404: {"model": ErrorResponse}},
)
def get_lead(lead_id: UUID):
    try:
        lead = get_lead_by_id(lead_id)
        if lead is None:
            raise HTTPException(status_code=404, detail=f"Lead not found: {lead_id}")
        return LeadResponse.from_domain(lead)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch lead: {str(e)}"
        )


@router.get(
    "/leads/{lead_id}/report",
    summary="Download Stored Lead Report",
    description="Render the report for a stored lead as a file download.",
    responses={404: {"model": ErrorResponse}},
)
def download_lead_report(
    lead_id: UUID,
    fmt: ReportFormat = Query(ReportFormat.TXT, alias="format", description="'txt' or 'html'"),
):
    """
    **Example usage:**
    ```
    GET /api/v1/leads/123e4567-e89b-12d3-a456-426614174000/report?format=html
    ```
    """
    try:
        lead = get_lead_by_id(lead_id)
        if lead is None:
            raise HTTPException(status_code=404, detail=f"Lead not found: {lead_id}")

        content = render_report(lead, fmt)
        return report_response(content, report_filename(lead, fmt), fmt)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to generate report: {str(e)}"
        )


@router.post(
    "/leads/discover",
    response_model=DiscoverLeadsResponse,
    summary="Discover Leads",
    description="Find local businesses, analyse their websites, score and save them as basic leads."
)
def discover_leads(request: DiscoverLeadsRequest):
    """
    Discover leads for an industry in a geography.

    **How it works:**
    1. Searches Google Places for "<industry> in <geography>"
    2. Fetches each website once and extracts basic SEO signals
    3. Scores each business and saves it with analysis_status `basic`
    4. Returns the neediest `max_results` leads (lowest score first)

    Without a Places API key, demo leads are returned instead (not saved).
    """
    try:
        leads = find_leads(
            request.geography,
            request.industry,
            request.max_results,
            campaign_run_id=request.campaign_run_id,
        )
        return DiscoverLeadsResponse(
            leads=[LeadResponse.from_domain(lead) for lead in leads],
            total_count=len(leads),
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to discover leads: {str(e)}"
        )
