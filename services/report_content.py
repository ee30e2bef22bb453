"""
Report content derivations.

Sales-facing text blocks computed from a scored Lead. None of this is persisted
or fed back into the score; the renderers in `services.report_service` lay
these blocks out as plain text or HTML.

Every function here tolerates absent optional fields. Numeric checks use
"present and non-zero" semantics, so a zero metric is treated like a missing one.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from domain import scoring_rules as rules
from domain.lead import Lead
from domain.scoring import round_half_up
from domain.signals import ISSUE_OUTDATED_CONTENT, Number, TrafficTrend

REVENUE_BASE = 1000
REVENUE_TRAFFIC_FACTOR = Decimal("0.3")
REVENUE_PER_ISSUE = 500
REVENUE_ISSUE_CAP = 3000
REVENUE_DECLINING_PENALTY = 2000
REVENUE_FLOOR = 1000
REVENUE_CEILING = 15000

STALE_CONTENT_MONTHS = 6
WEAK_BACKLINKS_BELOW = 100
LOCAL_BACKLINKS_BELOW = 200

DETAIL_PREFIX = "   → "


@dataclass(frozen=True, slots=True)
class RevenueImpact:
    """Estimated monthly revenue lost to SEO issues, in whole dollars."""
    minimum: int
    maximum: int


@dataclass(frozen=True, slots=True)
class CriticalIssue:
    headline: str
    details: Tuple[str, ...]

    def as_text(self) -> str:
        lines = [self.headline]
        lines.extend(f"{DETAIL_PREFIX}{detail}" for detail in self.details)
        return "\n".join(lines)


def _slow_lcp(lead: Lead) -> bool:
    lcp = lead.signals.core_web_vitals_lcp
    return bool(lcp) and lcp > rules.LCP_GOOD_MS


def _stale_content(lead: Lead) -> bool:
    months = lead.signals.content_fresh_months
    return bool(months) and months > STALE_CONTENT_MONTHS


def _meta_needs_work(lead: Lead) -> bool:
    return not (lead.signals.meta_title_ok and lead.signals.meta_desc_ok)


def calculate_revenue_impact(lead: Lead) -> RevenueImpact:
    signals = lead.signals

    base = REVENUE_BASE
    if signals.organic_traffic and signals.organic_traffic > 0:
        base = round_half_up(Decimal(str(signals.organic_traffic)) * REVENUE_TRAFFIC_FACTOR)

    base += min(len(signals.issues) * REVENUE_PER_ISSUE, REVENUE_ISSUE_CAP)
    if signals.traffic_trend is TrafficTrend.DECLINING:
        base += REVENUE_DECLINING_PENALTY

    minimum = max(REVENUE_FLOOR, base)
    maximum = min(REVENUE_CEILING, minimum * 2)
    return RevenueImpact(minimum=minimum, maximum=maximum)


def critical_issues(lead: Lead) -> List[CriticalIssue]:
    """Plain-language problems, most damaging first, each with why-it-matters lines."""

    signals = lead.signals
    found: List[CriticalIssue] = []

    if _slow_lcp(lead):
        seconds = signals.core_web_vitals_lcp / 1000
        found.append(CriticalIssue(
            f"Website Loads in {seconds:.1f} Seconds (Should be under 3s)",
            (
                "53% of mobile users abandon sites that take >3s to load",
                "They're losing potential customers every day",
            ),
        ))

    if not signals.has_schema:
        found.append(CriticalIssue(
            "Missing Schema Markup",
            (
                "Not showing up in Google's local pack",
                "Competitors with schema get 36% more clicks",
            ),
        ))

    if _stale_content(lead):
        found.append(CriticalIssue(
            f"Content Last Updated {signals.content_fresh_months} Months Ago",
            (
                "Google penalizes stale content",
                "Ranking below competitors with fresh content",
            ),
        ))

    if signals.traffic_trend is TrafficTrend.DECLINING:
        found.append(CriticalIssue(
            "Traffic Declining (-20% over 90 days)",
            (
                "Losing visibility in search results",
                "Competitors are taking their market share",
            ),
        ))

    if _meta_needs_work(lead):
        found.append(CriticalIssue(
            "Poor Meta Tags and Descriptions",
            (
                "Low click-through rates from search results",
                "Missing opportunities to attract qualified traffic",
            ),
        ))

    backlinks = signals.backlinks_count
    if backlinks and backlinks < WEAK_BACKLINKS_BELOW:
        found.append(CriticalIssue(
            f"Weak Backlink Profile ({format_count(backlinks)} total links)",
            (
                "Low domain authority",
                "Difficult to rank for competitive keywords",
            ),
        ))

    return found


def opportunities(lead: Lead) -> List[str]:
    signals = lead.signals
    items: List[str] = []

    if _slow_lcp(lead):
        items.append("Optimize images and other media to improve page speed")
    if not signals.has_schema:
        items.append("Implement schema.org markup for local business and services")
    if not signals.has_faq:
        items.append("Add FAQ schema on inner pages to showcase expertise")
    if _meta_needs_work(lead):
        items.append("Optimize for voice search and local intent queries")

    items.append("Improve internal linking structure")

    if _stale_content(lead):
        items.append("Update existing content with current information and trends")
    backlinks = signals.backlinks_count
    if backlinks and backlinks < LOCAL_BACKLINKS_BELOW:
        items.append("Build high-quality local backlinks and citations")

    return items


def quick_wins(lead: Lead) -> List[str]:
    """First-two-weeks actions, bucketed as Week 1 / Week 2."""

    signals = lead.signals
    wins: List[str] = []

    if _slow_lcp(lead):
        wins.append("Week 1: Optimize image sizes and lazy load images to improve page speed")
    if not signals.has_schema or not signals.has_org:
        wins.append("Week 1: Implement structured data markup for local business, services, and reviews")
    if _stale_content(lead):
        wins.append(
            "Week 2: Expand content depth on inner pages to showcase expertise "
            "and address common customer questions"
        )
    if _meta_needs_work(lead):
        wins.append("Week 2: Optimize title tags and meta descriptions for target keywords")

    return wins


def pitch_script(lead: Lead) -> str:
    """One cold-call opener built around the top critical issue."""

    industry = lead.signals.tech_stack[0] if lead.signals.tech_stack else "your industry"
    area = lead.city or "your area"
    issues = critical_issues(lead)
    main_issue = issues[0].headline if issues else "some technical SEO issues"

    return (
        f'"Hi, this is [YOUR NAME]. I was doing some research on {industry} businesses '
        f"in {area} and came across {lead.business_name}. I noticed a few things on your "
        f"website that might be costing you customers — specifically {main_issue.lower()}. "
        f'Do you have a couple minutes to discuss how we could fix this?"'
    )


# (name keywords, also match the website url, services)
_SERVICE_CATALOG: Tuple[Tuple[Tuple[str, ...], bool, Tuple[str, ...]], ...] = (
    (("plumb",), True, (
        "Emergency plumbing services",
        "Water heater installation and repair",
        "Drain cleaning and sewer line services",
        "Pipe repair and replacement",
        "Fixture installation",
    )),
    (("hvac", "air", "heating"), False, (
        "AC installation and repair",
        "Heating system maintenance",
        "Ductwork services",
        "Indoor air quality solutions",
        "Emergency HVAC services",
    )),
    (("restaurant", "food"), False, (
        "Dine-in service",
        "Takeout and delivery",
        "Catering services",
        "Private events and parties",
        "Online ordering",
    )),
    (("law", "attorney", "legal"), False, (
        "Legal consultation",
        "Case representation",
        "Document preparation",
        "Court appearances",
        "Legal advisory services",
    )),
    (("dental", "dentist"), False, (
        "General dentistry",
        "Cosmetic dentistry",
        "Teeth cleaning and prevention",
        "Dental implants",
        "Emergency dental services",
    )),
)

GENERIC_SERVICES: Tuple[str, ...] = (
    "Primary services",
    "Consultation and assessment",
    "Custom solutions",
    "Emergency services",
    "Maintenance and support",
)


def detect_services(lead: Lead) -> List[str]:
    """Guess the services a business offers from its name (and, for plumbers, its url)."""

    name = lead.business_name.lower()
    url = lead.website or ""

    for keywords, match_url, services in _SERVICE_CATALOG:
        if any(keyword in name for keyword in keywords):
            return list(services)
        if match_url and any(keyword in url for keyword in keywords):
            return list(services)
    return list(GENERIC_SERVICES)


def content_assessment(lead: Lead) -> str:
    signals = lead.signals
    has_good_content = (
        not signals.has_issue(ISSUE_OUTDATED_CONTENT)
        and signals.meta_title_ok
        and signals.meta_desc_ok
    )

    if has_good_content:
        return (
            f"The website provides a good overview of {lead.business_name}'s services. "
            "However, the content could be expanded to include more detailed information "
            "about their qualifications, customer testimonials, and the specific benefits "
            "of their services for local customers."
        )

    return (
        "The website content needs significant improvement. Key issues include outdated "
        "information, poor meta descriptions, and lack of detailed service pages. Adding "
        "comprehensive content about services, customer success stories, and local "
        "expertise would significantly improve search rankings and customer engagement."
    )


def format_count(value: Optional[Number]) -> str:
    """Thousands-separated number; fractional values keep up to three decimals."""

    if value is None:
        return ""
    if isinstance(value, float) and not value.is_integer():
        return f"{value:,.3f}".rstrip("0").rstrip(".")
    return f"{int(value):,}"


__all__ = [
    "CriticalIssue",
    "GENERIC_SERVICES",
    "RevenueImpact",
    "calculate_revenue_impact",
    "content_assessment",
    "critical_issues",
    "detect_services",
    "format_count",
    "opportunities",
    "pitch_script",
    "quick_wins",
    "round_half_up",
]
