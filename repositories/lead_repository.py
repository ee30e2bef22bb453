"""
Lead repository (persistence).

This module provides *only* persistence operations for the Lead domain entity.
No business rules (scoring, issue detection, enrichment merging) belong here.

Concurrency:
- Enrichment writes are compare-and-swap updates: they only apply while the row
  is still `analysis_status = 'basic'` and report whether a row transitioned.
  Two enrichment runs racing over the same lead therefore write at most once.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional
from uuid import UUID

from domain.lead import AnalysisStatus, Lead, LeadPriority, LeadStatus
from domain.signals import SignalSet, TrafficTrend
from repositories.client import execute_query, get_supabase

# Supabase table name for Lead records.
# Keep this aligned with your database schema.
_LEADS_TABLE: str = "leads"


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def signals_to_row(signals: SignalSet) -> dict[str, Any]:
    """Column payload for every Signal Set field."""

    return {
        "has_schema": signals.has_schema,
        "has_faq": signals.has_faq,
        "has_org": signals.has_org,
        "meta_title_ok": signals.meta_title_ok,
        "meta_desc_ok": signals.meta_desc_ok,
        "content_fresh_months": signals.content_fresh_months,
        "core_web_vitals_lcp": signals.core_web_vitals_lcp,
        "traffic_trend": signals.traffic_trend.value,
        "tech_stack": list(signals.tech_stack),
        "backlinks_count": signals.backlinks_count,
        "referring_domains": signals.referring_domains,
        "domain_rank": signals.domain_rank,
        "organic_traffic": signals.organic_traffic,
        "issues": list(signals.issues),
    }


def _lead_to_row(lead: Lead) -> dict[str, Any]:
    """Convert a domain Lead to a Supabase row payload (id is assigned by the database)."""

    row: dict[str, Any] = {
        "business_name": lead.business_name,
        "website": lead.website,
        "email": lead.email,
        "phone": lead.phone,
        "address": lead.address,
        "city": lead.city,
        "score": lead.score,
        "notes": lead.notes,
        "source": lead.source,
        "status": lead.status.value,
        "priority": lead.priority.value,
        "analysis_status": lead.analysis_status.value,
    }
    row.update(signals_to_row(lead.signals))
    return row


def _row_to_signals(row: Mapping[str, Any]) -> SignalSet:
    # Stored rows written before the duplicate guard existed may repeat tags.
    issues = tuple(dict.fromkeys(row.get("issues") or []))
    return SignalSet(
        has_schema=bool(row.get("has_schema")),
        has_faq=bool(row.get("has_faq")),
        has_org=bool(row.get("has_org")),
        meta_title_ok=bool(row.get("meta_title_ok")),
        meta_desc_ok=bool(row.get("meta_desc_ok")),
        content_fresh_months=row.get("content_fresh_months"),
        core_web_vitals_lcp=row.get("core_web_vitals_lcp"),
        traffic_trend=TrafficTrend.parse(row.get("traffic_trend")),
        tech_stack=tuple(row.get("tech_stack") or ()),
        backlinks_count=row.get("backlinks_count"),
        referring_domains=row.get("referring_domains"),
        domain_rank=row.get("domain_rank"),
        organic_traffic=row.get("organic_traffic"),
        issues=issues,
    )


def _row_to_lead(row: Mapping[str, Any]) -> Lead:
    """Convert a Supabase row into a domain Lead."""

    # Helper to convert empty strings to None
    def get_optional(key: str) -> Optional[str]:
        value = row.get(key)
        return value if value else None

    created_at = row.get("created_at")
    return Lead(
        id=UUID(str(row["id"])),
        business_name=str(row["business_name"]),
        signals=_row_to_signals(row),
        score=int(row.get("score") or 0),
        notes=get_optional("notes"),
        source=row.get("source") or "",
        website=get_optional("website"),
        email=get_optional("email"),
        phone=get_optional("phone"),
        address=get_optional("address"),
        city=get_optional("city"),
        status=LeadStatus(row.get("status") or LeadStatus.NEW.value),
        priority=LeadPriority(row.get("priority") or LeadPriority.MEDIUM.value),
        analysis_status=AnalysisStatus(row.get("analysis_status") or AnalysisStatus.BASIC.value),
        created_at=_parse_utc_datetime(created_at) if created_at else None,
    )


def insert_lead(lead: Lead) -> Lead:
    """
    Insert a Lead into Supabase and return it with its assigned id.

    Raises:
    - RuntimeError if Supabase returns an error response or no row.
    """

    payload = _lead_to_row(lead)
    rows = execute_query(get_supabase().table(_LEADS_TABLE).insert(payload), "insert lead")
    if not rows:
        raise RuntimeError("Failed to insert lead: no row returned")
    return _row_to_lead(rows[0])


def get_lead_by_id(lead_id: UUID) -> Lead | None:
    """
    Fetch a Lead by ID.

    Returns:
    - Lead if found
    - None if no record exists for the given ID
    """

    query = (
        get_supabase().table(_LEADS_TABLE)
        .select("*")
        .eq("id", str(lead_id))
        .limit(1)
    )
    rows = execute_query(query, "fetch lead")
    if not rows:
        return None
    return _row_to_lead(rows[0])


def list_leads_by_ids(
    lead_ids: Iterable[UUID],
    analysis_status: AnalysisStatus | None = None,
) -> List[Lead]:
    """
    Fetch the given leads, optionally restricted to one analysis status.

    An empty id list is a no-op and returns [].
    """

    ids = [str(lead_id) for lead_id in lead_ids]
    if not ids:
        return []

    query = get_supabase().table(_LEADS_TABLE).select("*").in_("id", ids)
    if analysis_status is not None:
        query = query.eq("analysis_status", analysis_status.value)

    return [_row_to_lead(row) for row in execute_query(query, "list leads")]


def list_leads_by_filter(
    status: LeadStatus | None = None,
    priority: LeadPriority | None = None,
    analysis_status: AnalysisStatus | None = None,
    city: str | None = None,
    limit: int | None = None,
) -> List[Lead]:
    """
    List Leads with optional filtering, lowest (neediest) score first.
    """

    query = get_supabase().table(_LEADS_TABLE).select("*")
    if status is not None:
        query = query.eq("status", status.value)
    if priority is not None:
        query = query.eq("priority", priority.value)
    if analysis_status is not None:
        query = query.eq("analysis_status", analysis_status.value)
    if city is not None:
        query = query.eq("city", city)
    query = query.order("score")
    if limit is not None:
        query = query.limit(limit)

    return [_row_to_lead(row) for row in execute_query(query, "list leads")]


def complete_enrichment(lead_id: UUID, updates: Mapping[str, Any]) -> bool:
    """
    Apply enrichment column updates and flip analysis_status to complete.

    Requirements:
    - Must only update while analysis_status is still 'basic'.

    Returns:
    - True if this call transitioned the row, False if the lead was missing or
      already complete (another run won).
    """

    payload = dict(updates)
    payload["analysis_status"] = AnalysisStatus.COMPLETE.value

    query = (
        get_supabase().table(_LEADS_TABLE)
        .update(payload)
        .eq("id", str(lead_id))
        .eq("analysis_status", AnalysisStatus.BASIC.value)
    )
    updated_rows = execute_query(query, "complete lead enrichment")
    return bool(updated_rows)


def mark_analysis_complete(lead_id: UUID) -> bool:
    """Flip analysis_status to complete without new data (same guard as above)."""

    return complete_enrichment(lead_id, {})


__all__ = [
    "complete_enrichment",
    "get_lead_by_id",
    "insert_lead",
    "list_leads_by_filter",
    "list_leads_by_ids",
    "mark_analysis_complete",
    "signals_to_row",
]
