"""
Domain: Lead entity.

Contract excerpts implemented here:
- A Lead is a prospective client business evaluated for SEO sales opportunity.
- `id` is assigned at first persistence; unsaved leads carry None.
- `score` is always in [0, 100] and is a pure function of the current SignalSet.
- `notes` is the tier label derived from `score`.
- `analysis_status` moves from basic to complete exactly once (enrichment).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from domain import scoring_rules as rules
from domain.scoring import calculate_score, opportunity_note
from domain.signals import SignalSet
from domain.time import require_utc_timestamp


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    LOST = "lost"


class LeadPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AnalysisStatus(str, Enum):
    BASIC = "basic"
    COMPLETE = "complete"


class LeadSource(str, Enum):
    GOOGLE_PLACES = "Google Places API"
    DEMO = "Demo Data"
    CSV_IMPORT = "CSV Import"
    MANUAL = "Manual Entry"


@dataclass(frozen=True, slots=True)
class Lead:
    """
    Pure domain entity for a Lead.

    Immutability:
    - Frozen; every change (enrichment, re-scoring) produces a new instance so the
      stored score can never drift from the signals it was computed from.
    """

    business_name: str
    signals: SignalSet = field(default_factory=SignalSet)
    score: int = rules.BASE_SCORE
    notes: Optional[str] = None
    source: str = LeadSource.MANUAL.value
    website: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    status: LeadStatus = LeadStatus.NEW
    priority: LeadPriority = LeadPriority.MEDIUM
    analysis_status: AnalysisStatus = AnalysisStatus.BASIC
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.business_name or not self.business_name.strip():
            raise ValueError("business_name is required")
        if not rules.SCORE_MIN <= self.score <= rules.SCORE_MAX:
            raise ValueError(
                f"score must be in [{rules.SCORE_MIN}, {rules.SCORE_MAX}], got {self.score}"
            )
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @classmethod
    def scored(cls, business_name: str, signals: SignalSet, **fields: object) -> "Lead":
        """Build a lead whose score and notes are derived from `signals`."""

        score = calculate_score(signals)
        return cls(
            business_name=business_name,
            signals=signals,
            score=score,
            notes=opportunity_note(score),
            **fields,  # type: ignore[arg-type]
        )

    def rescored(self) -> "Lead":
        """Recompute score and notes from the current signals."""

        score = calculate_score(self.signals)
        return replace(self, score=score, notes=opportunity_note(score))

    def with_signals(self, signals: SignalSet) -> "Lead":
        return replace(self, signals=signals).rescored()

    @property
    def needs_enrichment(self) -> bool:
        return self.analysis_status is AnalysisStatus.BASIC


__all__ = [
    "AnalysisStatus",
    "Lead",
    "LeadPriority",
    "LeadSource",
    "LeadStatus",
]
