"""
Enrichment service (second, asynchronous scoring pass).

Upgrades `basic` leads exactly once with authority, traffic and page-speed
metrics from the paid provider, re-derives the enrichment-pass issue (slow LCP),
re-scores, and persists with a compare-and-swap on analysis_status.

Handles:
- Per-lead fan-out of the three metric calls on a small thread pool
- At-most-once semantics: a lead is marked complete whether or not enrichment
  produced data, and is never retried
- Batch isolation: one lead failing never blocks the others
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional
from uuid import UUID

from domain import scoring_rules as rules
from domain.lead import AnalysisStatus, Lead
from domain.signals import ISSUE_SLOW_LCP
from repositories import campaign_repository, lead_repository
from services.metrics_provider import DataForSEOClient, WebsiteMetrics

logger = logging.getLogger(__name__)

_METRIC_CALLS = 3


class EnrichmentOutcome(str, Enum):
    ENRICHED = "enriched"
    SKIPPED_NO_WEBSITE = "skipped_no_website"
    ALREADY_COMPLETE = "already_complete"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class EnrichmentSummary:
    """
    Result of one enrichment batch.

    enriched_count: leads updated with merged metrics
    skipped_no_website: leads marked complete without any provider call
    lost_race: leads another run had already completed (no write)
    failed: leads whose enrichment raised; they are still marked complete
    total_leads: leads considered in the batch
    """
    enriched_count: int
    skipped_no_website: int
    lost_race: int
    failed: int
    total_leads: int


def fetch_website_metrics(provider: DataForSEOClient, website: str) -> WebsiteMetrics:
    """Issue the three metric calls concurrently and join them."""

    with ThreadPoolExecutor(max_workers=_METRIC_CALLS) as pool:
        domain_future = pool.submit(provider.fetch_domain_metrics, website)
        backlinks_future = pool.submit(provider.fetch_backlinks, website)
        page_speed_future = pool.submit(provider.fetch_page_speed, website)

        return WebsiteMetrics(
            domain=domain_future.result(),
            backlinks=backlinks_future.result(),
            page_speed=page_speed_future.result(),
        )


def merge_enrichment(lead: Lead, metrics: WebsiteMetrics) -> Lead:
    """
    Merge provider metrics into the lead's stored signals and re-score.

    Absent provider values keep the stored value; the traffic trend always
    comes from the provider (Unknown when it had no data). Only the slow-LCP
    issue is checked here; basic-pass issues are left untouched.
    """

    stored = lead.signals

    def pick(new: Any, old: Any) -> Any:
        return new if new is not None else old

    lcp = pick(metrics.page_speed.core_web_vitals_lcp, stored.core_web_vitals_lcp)
    signals = stored.merged(
        traffic_trend=metrics.domain.traffic_trend,
        domain_rank=pick(metrics.domain.domain_rank, stored.domain_rank),
        organic_traffic=pick(metrics.domain.organic_traffic, stored.organic_traffic),
        backlinks_count=pick(metrics.backlinks.backlinks_count, stored.backlinks_count),
        referring_domains=pick(metrics.backlinks.referring_domains, stored.referring_domains),
        core_web_vitals_lcp=lcp,
    )
    if lcp and lcp > rules.LCP_GOOD_MS:
        signals = signals.with_issue(ISSUE_SLOW_LCP)

    return lead.with_signals(signals)


def enrichment_updates(lead: Lead) -> dict[str, Any]:
    """Columns an enrichment pass writes back for an already-merged lead."""

    signals = lead.signals
    return {
        "traffic_trend": signals.traffic_trend.value,
        "domain_rank": signals.domain_rank,
        "organic_traffic": signals.organic_traffic,
        "backlinks_count": signals.backlinks_count,
        "referring_domains": signals.referring_domains,
        "core_web_vitals_lcp": signals.core_web_vitals_lcp,
        "issues": list(signals.issues),
        "score": lead.score,
        "notes": lead.notes,
    }


def _mark_complete_quietly(lead: Lead) -> None:
    try:
        lead_repository.mark_analysis_complete(lead.id)
    except Exception:
        logger.exception(
            "Failed to mark lead complete after enrichment failure",
            extra={"lead_id": str(lead.id)},
        )


def enrich_lead(lead: Lead, provider: DataForSEOClient) -> EnrichmentOutcome:
    """
    Enrich and persist one lead. Never raises.

    A stored lead is always left complete: enriched, skipped (no website) or
    failed. A lead without an id has no row to update and counts as failed.
    """

    if lead.id is None:
        logger.warning(
            "Cannot enrich a lead that has not been persisted",
            extra={"business_name": lead.business_name},
        )
        return EnrichmentOutcome.FAILED

    if not lead.needs_enrichment:
        return EnrichmentOutcome.ALREADY_COMPLETE

    if not lead.website:
        logger.info("Skipping enrichment, no website", extra={"lead_id": str(lead.id)})
        try:
            transitioned = lead_repository.mark_analysis_complete(lead.id)
        except Exception:
            logger.exception("Failed to mark lead complete", extra={"lead_id": str(lead.id)})
            return EnrichmentOutcome.FAILED
        return EnrichmentOutcome.SKIPPED_NO_WEBSITE if transitioned else EnrichmentOutcome.ALREADY_COMPLETE

    started = time.monotonic()
    try:
        metrics = fetch_website_metrics(provider, lead.website)
        enriched = merge_enrichment(lead, metrics)
        transitioned = lead_repository.complete_enrichment(lead.id, enrichment_updates(enriched))
    except Exception:
        logger.exception(
            "Enrichment failed; marking lead complete without new data",
            extra={"lead_id": str(lead.id), "website": lead.website},
        )
        _mark_complete_quietly(lead)
        return EnrichmentOutcome.FAILED

    if not transitioned:
        logger.warning(
            "Lead was completed by another enrichment run; update discarded",
            extra={"lead_id": str(lead.id)},
        )
        return EnrichmentOutcome.ALREADY_COMPLETE

    logger.info(
        "Enriched lead",
        extra={
            "lead_id": str(lead.id),
            "score": enriched.score,
            "elapsed_seconds": round(time.monotonic() - started, 2),
        },
    )
    return EnrichmentOutcome.ENRICHED


def enrich_leads(
    leads: Iterable[Lead],
    provider: Optional[DataForSEOClient] = None,
) -> EnrichmentSummary:
    """
    Enrich a batch of leads sequentially.

    Leads are independent; running them one at a time bounds outbound calls to
    the provider at three in flight.
    """

    provider = provider or DataForSEOClient()
    outcomes: List[EnrichmentOutcome] = []
    batch = list(leads)

    logger.info("Starting enrichment batch", extra={"total_leads": len(batch)})
    for lead in batch:
        outcomes.append(enrich_lead(lead, provider))

    summary = EnrichmentSummary(
        enriched_count=outcomes.count(EnrichmentOutcome.ENRICHED),
        skipped_no_website=outcomes.count(EnrichmentOutcome.SKIPPED_NO_WEBSITE),
        lost_race=outcomes.count(EnrichmentOutcome.ALREADY_COMPLETE),
        failed=outcomes.count(EnrichmentOutcome.FAILED),
        total_leads=len(batch),
    )
    logger.info(
        "Enrichment batch finished",
        extra={"enriched_count": summary.enriched_count, "total_leads": summary.total_leads},
    )
    return summary


def enrich_campaign_run(
    campaign_run_id: UUID,
    provider: Optional[DataForSEOClient] = None,
) -> EnrichmentSummary:
    """Enrich the still-basic leads discovered by one campaign run."""

    lead_ids = campaign_repository.list_campaign_run_lead_ids(campaign_run_id)
    leads = lead_repository.list_leads_by_ids(lead_ids, analysis_status=AnalysisStatus.BASIC)
    return enrich_leads(leads, provider=provider)


def enrich_pending_leads(
    limit: Optional[int] = None,
    provider: Optional[DataForSEOClient] = None,
) -> EnrichmentSummary:
    """Enrich every stored lead that is still basic (optionally capped)."""

    leads = lead_repository.list_leads_by_filter(analysis_status=AnalysisStatus.BASIC, limit=limit)
    return enrich_leads(leads, provider=provider)


__all__ = [
    "EnrichmentOutcome",
    "EnrichmentSummary",
    "enrich_campaign_run",
    "enrich_lead",
    "enrich_leads",
    "enrich_pending_leads",
    "enrichment_updates",
    "fetch_website_metrics",
    "merge_enrichment",
]
