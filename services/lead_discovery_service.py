"""
Lead discovery service.

Finds local businesses for an industry/geography pair, runs the basic website
analysis on each, scores them, and persists them as `basic` leads ready for the
enrichment pass.

Handles:
- Candidate cap: at most min(max_results * 6, 60) places are analysed
- Per-place isolation: a failing place is logged and skipped
- Demo fallback when Places is not configured or finds nothing (never persisted)
- Ranking: neediest (lowest score) first, truncated to max_results
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

from domain.lead import AnalysisStatus, Lead, LeadSource
from domain.signals import ISSUE_NO_WEBSITE, SignalSet
from repositories import campaign_repository, lead_repository
from services.places_client import PlaceDetails, PlacesClient
from services.signal_extractor import analyze_website

logger = logging.getLogger(__name__)

CANDIDATES_PER_RESULT = 6
MAX_CANDIDATES = 60
MAX_DEMO_LEADS = 3

WebsiteAnalyzer = Callable[[str], SignalSet]


def candidate_limit(max_results: int) -> int:
    return min(max_results * CANDIDATES_PER_RESULT, MAX_CANDIDATES)


def _lead_from_place(place: PlaceDetails, analyzer: WebsiteAnalyzer) -> Lead:
    started = time.monotonic()
    if place.website:
        signals = analyzer(place.website)
    else:
        signals = SignalSet().with_issue(ISSUE_NO_WEBSITE)

    logger.info(
        "Analysed place",
        extra={
            "business_name": place.name,
            "website": place.website,
            "elapsed_seconds": round(time.monotonic() - started, 2),
        },
    )
    return Lead.scored(
        place.name,
        signals,
        website=place.website,
        phone=place.phone,
        address=place.address,
        city=place.city,
        source=LeadSource.GOOGLE_PLACES.value,
        analysis_status=AnalysisStatus.BASIC,
    )


def _persist(lead: Lead, industry: str, campaign_run_id: Optional[UUID]) -> Lead:
    """Insert the lead (and link it to the campaign run); keep the unsaved lead on failure."""

    try:
        saved = lead_repository.insert_lead(lead)
    except RuntimeError as e:
        logger.error("Failed to save discovered lead", extra={"business_name": lead.business_name, "error": str(e)})
        return lead

    if campaign_run_id is not None and saved.id is not None:
        try:
            campaign_repository.link_lead_to_campaign_run(campaign_run_id, saved.id, industry)
        except RuntimeError as e:
            logger.error(
                "Failed to link lead to campaign run",
                extra={"lead_id": str(saved.id), "campaign_run_id": str(campaign_run_id), "error": str(e)},
            )
    return saved


def _discover_places(
    places: PlacesClient,
    geography: str,
    industry: str,
    max_results: int,
    analyzer: WebsiteAnalyzer,
    campaign_run_id: Optional[UUID],
) -> List[Lead]:
    try:
        place_ids = places.text_search(f"{industry} in {geography}")
    except Exception as e:
        logger.error("Places search failed", extra={"geography": geography, "industry": industry, "error": str(e)})
        return []

    leads: List[Lead] = []
    for place_id in place_ids[:candidate_limit(max_results)]:
        try:
            place = places.place_details(place_id)
            if place is None:
                continue
            lead = _lead_from_place(place, analyzer)
        except Exception as e:
            logger.warning("Skipping place", extra={"place_id": place_id, "error": str(e)})
            continue
        leads.append(_persist(lead, industry, campaign_run_id))
    return leads


def demo_leads(geography: str, industry: str, max_results: int, analyzer: WebsiteAnalyzer) -> List[Lead]:
    """Placeholder leads so the workflow can be demonstrated without a Places key."""

    city = geography.split(",")[0].strip() or None
    leads: List[Lead] = []
    for i in range(min(max_results, MAX_DEMO_LEADS)):
        website = f"https://example-{i}.com"
        leads.append(Lead.scored(
            f"{industry} Business {i + 1}",
            analyzer(website),
            website=website,
            phone=f"(555) {i:03d}-{i:04d}",
            address=f"{i + 1} Main St, {geography}",
            city=city,
            source=LeadSource.DEMO.value,
            analysis_status=AnalysisStatus.BASIC,
        ))
    return leads


def find_leads(
    geography: str,
    industry: str,
    max_results: int = 3,
    *,
    places: Optional[PlacesClient] = None,
    analyzer: Optional[WebsiteAnalyzer] = None,
    campaign_run_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> List[Lead]:
    """
    Discover, analyse, score and persist leads for one search.

    Args:
        geography: Search area, e.g. "Austin, TX"
        industry: Business category, e.g. "plumbers"
        max_results: Number of leads to return (neediest first)
        places: Places client (defaults to one configured from the environment)
        analyzer: Website analyser (defaults to the basic signal extractor)
        campaign_run_id: When given, each saved lead is linked to this run
        now: Reference time for content freshness

    Raises:
        ValueError: If geography/industry are blank or max_results < 1
    """

    if not geography or not geography.strip():
        raise ValueError("geography is required")
    if not industry or not industry.strip():
        raise ValueError("industry is required")
    if max_results < 1:
        raise ValueError("max_results must be at least 1")

    places = places or PlacesClient()
    if analyzer is None:
        def analyzer(url: str) -> SignalSet:
            return analyze_website(url, now=now)

    leads: List[Lead] = []
    if places.configured:
        leads = _discover_places(places, geography, industry, max_results, analyzer, campaign_run_id)
    else:
        logger.warning("GOOGLE_PLACES_API_KEY not set; using demo leads")

    if not leads:
        leads = demo_leads(geography, industry, max_results, analyzer)

    leads.sort(key=lambda lead: lead.score)
    return leads[:max_results]


__all__ = [
    "candidate_limit",
    "demo_leads",
    "find_leads",
]
