"""
Signal extraction service (basic website pass).

Turns one fetched HTML document into a partial SignalSet: structured-data
presence, meta tag quality, detected platforms and content freshness, plus the
basic-pass issue tags. Authority and performance fields stay empty until the
enrichment pass.

Failure handling:
- A failed fetch (network error, timeout, non-2xx) never raises; it yields an
  all-false SignalSet tagged "Website unreachable" (or "Analysis failed" for an
  unexpected error while analysing).
- Malformed HTML is not an error: a missing pattern is simply False/empty.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

import httpx
from bs4 import BeautifulSoup

from domain import scoring_rules as rules
from domain.signals import (
    ISSUE_ANALYSIS_FAILED,
    ISSUE_META_DESC,
    ISSUE_META_TITLE,
    ISSUE_MISSING_SCHEMA,
    ISSUE_NO_FAQ,
    ISSUE_OUTDATED_CONTENT,
    ISSUE_WEBSITE_UNREACHABLE,
    SignalSet,
    TrafficTrend,
)
from domain.time import parse_timestamp, utc_now, whole_months_between

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS: float = 10.0
USER_AGENT: str = "Mozilla/5.0 (compatible; SEOBot/1.0)"

_JSON_LD_MARKER = "application/ld+json"
_SCHEMA_ORG_MARKER = "schema.org"
_FAQ_MARKERS = ("faqpage", "question")
_ORG_MARKER = "organization"

# Checked in this order; each platform is reported at most once.
TECH_SIGNATURES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("WordPress", ("wordpress", "wp-content")),
    ("Wix", ("wix.com", "wixsite")),
    ("Shopify", ("shopify", "cdn.shopify")),
    ("Squarespace", ("squarespace",)),
    ("React", ("react",)),
)

_DESCRIPTION_NAME = re.compile(r"^description$", re.IGNORECASE)


def _soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _title_text(soup: BeautifulSoup) -> str:
    tag = soup.find("title")
    if tag is None:
        return ""
    return tag.get_text()


def _meta_content(soup: BeautifulSoup, *, name=None, prop: Optional[str] = None) -> str:
    if name is not None:
        tag = soup.find("meta", attrs={"name": name})
    else:
        tag = soup.find("meta", attrs={"property": prop})
    if tag is None:
        return ""
    content = tag.get("content")
    return content if isinstance(content, str) else ""


def detect_tech_stack(lower_html: str) -> Tuple[str, ...]:
    detected: List[str] = []
    for platform, markers in TECH_SIGNATURES:
        if any(marker in lower_html for marker in markers):
            detected.append(platform)
    return tuple(detected)


def content_age_months(soup: BeautifulSoup, now: datetime) -> Optional[int]:
    """
    Months since `article:modified_time`, or None when the tag is absent or
    does not parse. Unknown freshness stays unknown; it is never guessed.
    """

    modified = parse_timestamp(_meta_content(soup, prop="article:modified_time"))
    if modified is None:
        return None
    return whole_months_between(modified, now)


def basic_issues(signals: SignalSet) -> List[str]:
    """Issue tags checked by the basic pass, in display order."""

    issues: List[str] = []
    if not signals.has_schema:
        issues.append(ISSUE_MISSING_SCHEMA)
    if not signals.has_faq:
        issues.append(ISSUE_NO_FAQ)
    if not signals.meta_title_ok:
        issues.append(ISSUE_META_TITLE)
    if not signals.meta_desc_ok:
        issues.append(ISSUE_META_DESC)
    months = signals.content_fresh_months
    if months is not None and months > rules.STALE_MONTHS:
        issues.append(ISSUE_OUTDATED_CONTENT)
    return issues


def extract_signals(html: str, now: Optional[datetime] = None) -> SignalSet:
    """
    Build the basic-pass SignalSet for an HTML document.

    Args:
        html: Raw HTML text as returned by the website
        now: Reference time for content freshness (defaults to current UTC time)
    """

    now = now or utc_now()
    lower_html = html.lower()
    soup = _soup_of(html)

    has_schema_org = _SCHEMA_ORG_MARKER in lower_html
    title = _title_text(soup)
    description = _meta_content(soup, name=_DESCRIPTION_NAME)

    signals = SignalSet(
        has_schema=_JSON_LD_MARKER in lower_html or has_schema_org,
        has_faq=any(marker in lower_html for marker in _FAQ_MARKERS),
        has_org=_ORG_MARKER in lower_html and has_schema_org,
        meta_title_ok=rules.META_TITLE_MIN_LEN <= len(title) <= rules.META_TITLE_MAX_LEN,
        meta_desc_ok=rules.META_DESC_MIN_LEN <= len(description) <= rules.META_DESC_MAX_LEN,
        content_fresh_months=content_age_months(soup, now),
        traffic_trend=TrafficTrend.UNKNOWN,
        tech_stack=detect_tech_stack(lower_html),
    )
    return signals.with_issues(basic_issues(signals))


def fetch_html(url: str, client: Optional[httpx.Client] = None) -> Optional[str]:
    """
    GET the page with the bot User-Agent and the fixed timeout.

    Returns the body text, or None for non-2xx responses. Transport errors and
    timeouts propagate as httpx exceptions.
    """

    headers = {"User-Agent": USER_AGENT}
    if client is not None:
        response = client.get(url, headers=headers, timeout=FETCH_TIMEOUT_SECONDS)
    else:
        with httpx.Client(follow_redirects=True) as own_client:
            response = own_client.get(url, headers=headers, timeout=FETCH_TIMEOUT_SECONDS)

    if not response.is_success:
        logger.warning(
            "Website returned non-success status",
            extra={"url": url, "status_code": response.status_code},
        )
        return None
    return response.text


def analyze_website(
    url: str,
    client: Optional[httpx.Client] = None,
    now: Optional[datetime] = None,
) -> SignalSet:
    """
    Fetch `url` once and extract its SignalSet. Never raises.

    Args:
        url: Website to analyse
        client: Optional shared httpx client (tests inject a MockTransport client)
        now: Reference time for content freshness
    """

    try:
        html = fetch_html(url, client=client)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("Website fetch failed", extra={"url": url, "error": str(e)})
        return SignalSet.failed(ISSUE_WEBSITE_UNREACHABLE)

    if html is None:
        return SignalSet.failed(ISSUE_WEBSITE_UNREACHABLE)

    try:
        return extract_signals(html, now=now)
    except Exception as e:
        logger.warning("Website analysis failed", extra={"url": url, "error": str(e)})
        return SignalSet.failed(ISSUE_ANALYSIS_FAILED)


__all__ = [
    "FETCH_TIMEOUT_SECONDS",
    "TECH_SIGNATURES",
    "USER_AGENT",
    "analyze_website",
    "basic_issues",
    "extract_signals",
    "fetch_html",
]
