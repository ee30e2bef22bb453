"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.lead import AnalysisStatus, Lead
from domain.scoring import calculate_score, opportunity_note
from domain.signals import SignalSet, TrafficTrend


# ============================================================================
# Lead Models
# ============================================================================

class LeadPayload(BaseModel):
    """
    Lead-shaped record accepted by the report endpoints.

    Signal fields are flat, matching the stored `leads` row. When `score` is
    omitted it is computed from the signals.
    """
    business_name: str = Field(..., min_length=1)
    website: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    tech_stack: List[str] = Field(default_factory=list)
    core_web_vitals_lcp: Optional[float] = Field(None, ge=0)
    has_schema: bool = False
    has_faq: bool = False
    has_org: bool = False
    meta_title_ok: bool = False
    meta_desc_ok: bool = False
    content_fresh_months: Optional[int] = Field(None, ge=0)
    traffic_trend: str = TrafficTrend.UNKNOWN.value
    domain_rank: Optional[float] = Field(None, ge=0)
    backlinks_count: Optional[int] = Field(None, ge=0)
    referring_domains: Optional[int] = Field(None, ge=0)
    organic_traffic: Optional[float] = Field(None, ge=0)
    issues: List[str] = Field(default_factory=list)
    score: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "business_name": "Joe's Plumbing",
                "website": "https://joesplumbing.example",
                "phone": "(512) 555-0100",
                "city": "Austin",
                "tech_stack": ["WordPress"],
                "core_web_vitals_lcp": 3200,
                "has_schema": False,
                "has_faq": False,
                "has_org": False,
                "meta_title_ok": True,
                "meta_desc_ok": False,
                "content_fresh_months": 14,
                "traffic_trend": "Declining",
                "backlinks_count": 45,
                "issues": ["Missing schema markup", "No FAQ schema"]
            }
        }

    def to_domain(self) -> Lead:
        """Build the domain Lead. Raises ValueError for records the domain rejects."""

        signals = SignalSet(
            has_schema=self.has_schema,
            has_faq=self.has_faq,
            has_org=self.has_org,
            meta_title_ok=self.meta_title_ok,
            meta_desc_ok=self.meta_desc_ok,
            content_fresh_months=self.content_fresh_months,
            core_web_vitals_lcp=self.core_web_vitals_lcp,
            traffic_trend=TrafficTrend.parse(self.traffic_trend),
            tech_stack=tuple(self.tech_stack),
            backlinks_count=self.backlinks_count,
            referring_domains=self.referring_domains,
            domain_rank=self.domain_rank,
            organic_traffic=self.organic_traffic,
            issues=tuple(dict.fromkeys(self.issues)),
        )
        score = self.score if self.score is not None else calculate_score(signals)
        return Lead(
            business_name=self.business_name,
            signals=signals,
            score=score,
            notes=self.notes or opportunity_note(score),
            website=self.website,
            email=self.email,
            phone=self.phone,
            address=self.address,
            city=self.city,
        )


class LeadResponse(BaseModel):
    """Stored or discovered lead in API response."""
    id: Optional[UUID] = None
    business_name: str
    website: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    tech_stack: List[str]
    core_web_vitals_lcp: Optional[float] = None
    has_schema: bool
    has_faq: bool
    has_org: bool
    meta_title_ok: bool
    meta_desc_ok: bool
    content_fresh_months: Optional[int] = None
    traffic_trend: str
    domain_rank: Optional[float] = None
    backlinks_count: Optional[int] = None
    referring_domains: Optional[int] = None
    organic_traffic: Optional[float] = None
    issues: List[str]
    score: int
    notes: Optional[str] = None
    source: str
    status: str
    priority: str
    analysis_status: AnalysisStatus
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, lead: Lead) -> "LeadResponse":
        signals = lead.signals
        return cls(
            id=lead.id,
            business_name=lead.business_name,
            website=lead.website,
            email=lead.email,
            phone=lead.phone,
            address=lead.address,
            city=lead.city,
            tech_stack=list(signals.tech_stack),
            core_web_vitals_lcp=signals.core_web_vitals_lcp,
            has_schema=signals.has_schema,
            has_faq=signals.has_faq,
            has_org=signals.has_org,
            meta_title_ok=signals.meta_title_ok,
            meta_desc_ok=signals.meta_desc_ok,
            content_fresh_months=signals.content_fresh_months,
            traffic_trend=signals.traffic_trend.value,
            domain_rank=signals.domain_rank,
            backlinks_count=signals.backlinks_count,
            referring_domains=signals.referring_domains,
            organic_traffic=signals.organic_traffic,
            issues=list(signals.issues),
            score=lead.score,
            notes=lead.notes,
            source=lead.source,
            status=lead.status.value,
            priority=lead.priority.value,
            analysis_status=lead.analysis_status,
            created_at=lead.created_at,
        )


# ============================================================================
# Report Models
# ============================================================================

class BulkReportRequest(BaseModel):
    """Request to render one document covering many leads."""
    geography: str = Field(..., min_length=1, description="Search area shown on the cover page")
    industry: str = Field(..., min_length=1, description="Industry shown on the cover page")
    leads: List[LeadPayload] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "geography": "Austin, TX",
                "industry": "plumbers",
                "leads": [{"business_name": "Joe's Plumbing", "score": 42}]
            }
        }


# ============================================================================
# Discovery Models
# ============================================================================

class DiscoverLeadsRequest(BaseModel):
    """Request to discover and score new leads."""
    geography: str = Field(..., min_length=1)
    industry: str = Field(..., min_length=1)
    max_results: int = Field(3, ge=1, le=10, description="Number of neediest leads to return")
    campaign_run_id: Optional[UUID] = Field(
        None,
        description="Link every saved lead to this campaign run for later enrichment"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "geography": "Austin, TX",
                "industry": "plumbers",
                "max_results": 3
            }
        }


class DiscoverLeadsResponse(BaseModel):
    """Discovered leads, neediest first."""
    leads: List[LeadResponse]
    total_count: int


# ============================================================================
# Enrichment Models
# ============================================================================

class EnrichmentSummaryResponse(BaseModel):
    """Outcome of one enrichment batch."""
    enriched_count: int
    skipped_no_website: int
    lost_race: int
    failed: int
    total_leads: int

    class Config:
        json_schema_extra = {
            "example": {
                "enriched_count": 8,
                "skipped_no_website": 1,
                "lost_race": 0,
                "failed": 1,
                "total_leads": 10
            }
        }


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Invalid request",
                "detail": "Lead not found",
                "status_code": 404
            }
        }
