"""
Domain: Signal Set for one business website.

A SignalSet is the unit of analysis: boolean/numeric SEO facts measured from a
website fetch (basic pass) or from the paid metrics provider (enrichment pass),
plus the ordered list of human-readable issue tags derived from them.

Contract excerpts implemented here:
- Authority/performance fields are empty until enrichment has run.
- `issues` is append-only and never holds the same tag twice.
- Numeric metrics, when present, are non-negative.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

Number = Union[int, float]

ISSUE_WEBSITE_UNREACHABLE = "Website unreachable"
ISSUE_ANALYSIS_FAILED = "Analysis failed"
ISSUE_NO_WEBSITE = "No website found"
ISSUE_MISSING_SCHEMA = "Missing schema markup"
ISSUE_NO_FAQ = "No FAQ schema"
ISSUE_META_TITLE = "Meta title needs optimization"
ISSUE_META_DESC = "Meta description needs optimization"
ISSUE_OUTDATED_CONTENT = "Outdated content"
ISSUE_SLOW_LCP = "Slow LCP (>2.5s)"


class TrafficTrend(str, Enum):
    GROWING = "Growing"
    STABLE = "Stable"
    DECLINING = "Declining"
    UNKNOWN = "Unknown"

    @staticmethod
    def parse(value: object) -> "TrafficTrend":
        """Lenient parse for stored/provider values; anything unrecognised is UNKNOWN."""

        if isinstance(value, TrafficTrend):
            return value
        try:
            return TrafficTrend(str(value))
        except ValueError:
            return TrafficTrend.UNKNOWN


_METRIC_FIELDS = (
    "content_fresh_months",
    "core_web_vitals_lcp",
    "backlinks_count",
    "referring_domains",
    "domain_rank",
    "organic_traffic",
)


@dataclass(frozen=True, slots=True)
class SignalSet:
    has_schema: bool = False
    has_faq: bool = False
    has_org: bool = False
    meta_title_ok: bool = False
    meta_desc_ok: bool = False
    content_fresh_months: Optional[int] = None
    core_web_vitals_lcp: Optional[Number] = None
    traffic_trend: TrafficTrend = TrafficTrend.UNKNOWN
    tech_stack: Tuple[str, ...] = ()
    backlinks_count: Optional[Number] = None
    referring_domains: Optional[Number] = None
    domain_rank: Optional[Number] = None
    organic_traffic: Optional[Number] = None
    issues: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in _METRIC_FIELDS:
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be >= 0")
        if len(set(self.issues)) != len(self.issues):
            raise ValueError("issues must not contain duplicate entries")

    @classmethod
    def failed(cls, issue: str) -> "SignalSet":
        """All-false signal set carrying a single diagnostic issue."""

        return cls(traffic_trend=TrafficTrend.UNKNOWN, issues=(issue,))

    def has_issue(self, issue: str) -> bool:
        return issue in self.issues

    def with_issue(self, issue: str) -> "SignalSet":
        """Append `issue` unless it is already recorded."""

        if issue in self.issues:
            return self
        return replace(self, issues=self.issues + (issue,))

    def with_issues(self, issues: Iterable[str]) -> "SignalSet":
        result = self
        for issue in issues:
            result = result.with_issue(issue)
        return result

    def merged(self, **changes: object) -> "SignalSet":
        """Return a copy with the given fields replaced (validation re-runs)."""

        return replace(self, **changes)


__all__ = [
    "ISSUE_ANALYSIS_FAILED",
    "ISSUE_META_DESC",
    "ISSUE_META_TITLE",
    "ISSUE_MISSING_SCHEMA",
    "ISSUE_NO_FAQ",
    "ISSUE_NO_WEBSITE",
    "ISSUE_OUTDATED_CONTENT",
    "ISSUE_SLOW_LCP",
    "ISSUE_WEBSITE_UNREACHABLE",
    "SignalSet",
    "TrafficTrend",
]
