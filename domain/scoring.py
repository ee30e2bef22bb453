"""
Domain: opportunity score and its labels.

The opportunity score is a deficiency score on [0, 100]: lower means more room
for SEO improvement, i.e. a better sales opportunity.

Rule set (integer additions from BASE_SCORE, one clamp at the end):
- +10 schema, +8 FAQ, +7 organization, +5 meta title, +5 meta description
- LCP present: +10 if <= 2500 ms, else +5 if <= 4000 ms
- traffic trend: +10 Growing, -10 Declining
- freshness present: +8 if <= 3 months, else +4 if <= 6, else -5 if > 12
- -2 per recorded issue

Two labelling schemes exist on purpose and must stay separate:
- `opportunity_note` (stored on the lead): < 70 / < 85 / else
- `priority_band` (reports and UI colouring): < 60 / < 75 / else
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Union

from domain import scoring_rules as rules
from domain.signals import Number, SignalSet, TrafficTrend

NOTE_STRONG = "Strong SEO improvement opportunity"
NOTE_MODERATE = "Moderate SEO opportunity"
NOTE_OPTIMIZED = "Well-optimized site"


def round_half_up(value: Union[Number, Decimal]) -> int:
    """Round to the nearest integer, halves away from zero (0.5 -> 1, 2500.5 -> 2501)."""

    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp_score(value: int) -> int:
    return max(rules.SCORE_MIN, min(rules.SCORE_MAX, value))


def calculate_score(signals: SignalSet) -> int:
    """Compute the opportunity score for a signal set. Pure and deterministic."""

    score = rules.BASE_SCORE

    if signals.has_schema:
        score += rules.SCHEMA_WEIGHT
    if signals.has_faq:
        score += rules.FAQ_WEIGHT
    if signals.has_org:
        score += rules.ORG_WEIGHT
    if signals.meta_title_ok:
        score += rules.META_TITLE_WEIGHT
    if signals.meta_desc_ok:
        score += rules.META_DESC_WEIGHT

    lcp = signals.core_web_vitals_lcp
    if lcp:
        if lcp <= rules.LCP_GOOD_MS:
            score += rules.LCP_GOOD_WEIGHT
        elif lcp <= rules.LCP_FAIR_MS:
            score += rules.LCP_FAIR_WEIGHT

    if signals.traffic_trend is TrafficTrend.GROWING:
        score += rules.TRAFFIC_GROWING_WEIGHT
    elif signals.traffic_trend is TrafficTrend.DECLINING:
        score += rules.TRAFFIC_DECLINING_WEIGHT

    months = signals.content_fresh_months
    if months is not None:
        if months <= rules.FRESH_RECENT_MONTHS:
            score += rules.FRESH_RECENT_WEIGHT
        elif months <= rules.FRESH_OK_MONTHS:
            score += rules.FRESH_OK_WEIGHT
        elif months > rules.STALE_MONTHS:
            score += rules.STALE_WEIGHT

    score -= rules.ISSUE_PENALTY * len(signals.issues)

    return clamp_score(score)


def opportunity_note(score: int) -> str:
    """Tier label stored in the lead's notes."""

    if score < rules.STRONG_OPPORTUNITY_BELOW:
        return NOTE_STRONG
    if score < rules.MODERATE_OPPORTUNITY_BELOW:
        return NOTE_MODERATE
    return NOTE_OPTIMIZED


class PriorityBand(str, Enum):
    HIGH = "HIGH PRIORITY"
    MEDIUM = "MEDIUM PRIORITY"
    LOW = "LOW PRIORITY"

    @property
    def color(self) -> str:
        return _BAND_COLORS[self]

    @property
    def marker(self) -> str:
        return _BAND_MARKERS[self]


_BAND_COLORS = {
    PriorityBand.HIGH: "#ef4444",
    PriorityBand.MEDIUM: "#f59e0b",
    PriorityBand.LOW: "#10b981",
}

_BAND_MARKERS = {
    PriorityBand.HIGH: "\U0001F534",
    PriorityBand.MEDIUM: "\U0001F7E1",
    PriorityBand.LOW: "\U0001F7E2",
}


def priority_band(score: int) -> PriorityBand:
    """Sales-priority bucket used for report badges and colour coding."""

    if score < rules.HIGH_PRIORITY_BELOW:
        return PriorityBand.HIGH
    if score < rules.MEDIUM_PRIORITY_BELOW:
        return PriorityBand.MEDIUM
    return PriorityBand.LOW


__all__ = [
    "NOTE_MODERATE",
    "NOTE_OPTIMIZED",
    "NOTE_STRONG",
    "PriorityBand",
    "calculate_score",
    "clamp_score",
    "opportunity_note",
    "priority_band",
    "round_half_up",
]
