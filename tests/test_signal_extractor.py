"""
Tests for `services/signal_extractor.py`.

Covers:
- Structured data, FAQ, organization and meta tag detection.
- Tech stack detection order and de-duplication.
- Content freshness from article:modified_time; absent means unknown (None).
- Basic-pass issue tags.
- Fetch failures (non-2xx, timeout, transport error) never raise.
"""

from __future__ import annotations

from datetime import datetime, timezone

import httpx

from domain.signals import (
    ISSUE_ANALYSIS_FAILED,
    ISSUE_META_DESC,
    ISSUE_META_TITLE,
    ISSUE_MISSING_SCHEMA,
    ISSUE_NO_FAQ,
    ISSUE_OUTDATED_CONTENT,
    ISSUE_WEBSITE_UNREACHABLE,
    TrafficTrend,
)
from services import signal_extractor
from services.signal_extractor import USER_AGENT, analyze_website, detect_tech_stack, extract_signals

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)

GOOD_TITLE = "Austin Emergency Plumbing | Acme Plumbing Co"  # 44 chars
GOOD_DESCRIPTION = (
    "Acme Plumbing offers 24/7 emergency plumbing, water heater repair and drain "
    "cleaning across Austin. Licensed, insured and locally owned."
)


def page(head: str = "", body: str = "") -> str:
    return f"<html><head>{head}</head><body>{body}</body></html>"


def optimized_page(modified: str = "2025-05-01T00:00:00Z") -> str:
    return page(
        head=(
            f"<title>{GOOD_TITLE}</title>"
            f'<meta name="description" content="{GOOD_DESCRIPTION}">'
            f'<meta property="article:modified_time" content="{modified}">'
            '<script type="application/ld+json">'
            '{"@context": "https://schema.org", "@type": "Organization"}'
            "</script>"
        ),
        body='<div itemtype="https://schema.org/FAQPage">FAQ</div>',
    )


def client_for(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_optimized_page_has_all_signals_and_no_issues() -> None:
    assert 120 <= len(GOOD_DESCRIPTION) <= 160

    signals = extract_signals(optimized_page(), now=NOW)

    assert signals.has_schema is True
    assert signals.has_faq is True
    assert signals.has_org is True
    assert signals.meta_title_ok is True
    assert signals.meta_desc_ok is True
    assert signals.content_fresh_months == 1
    assert signals.traffic_trend is TrafficTrend.UNKNOWN
    assert signals.core_web_vitals_lcp is None
    assert signals.issues == ()


def test_bare_page_gets_basic_issues_in_order() -> None:
    signals = extract_signals(page(body="<p>Hello</p>"), now=NOW)

    assert signals.issues == (ISSUE_MISSING_SCHEMA, ISSUE_NO_FAQ, ISSUE_META_TITLE, ISSUE_META_DESC)


def test_missing_modified_time_leaves_freshness_unknown() -> None:
    signals = extract_signals(page(head="<title>x</title>"), now=NOW)

    assert signals.content_fresh_months is None
    assert ISSUE_OUTDATED_CONTENT not in signals.issues


def test_stale_content_flags_outdated() -> None:
    signals = extract_signals(optimized_page(modified="2024-01-01T00:00:00Z"), now=NOW)

    assert signals.content_fresh_months == 17
    assert ISSUE_OUTDATED_CONTENT in signals.issues


def test_unparseable_modified_time_is_unknown() -> None:
    html = page(head='<meta property="article:modified_time" content="yesterday">')

    assert extract_signals(html, now=NOW).content_fresh_months is None


def test_word_question_counts_as_faq() -> None:
    assert extract_signals(page(body="<h2>Common Question</h2>"), now=NOW).has_faq is True


def test_organization_requires_schema_org() -> None:
    signals = extract_signals(page(body="<p>Our organization is great</p>"), now=NOW)

    assert signals.has_org is False
    assert signals.has_schema is False


def test_meta_title_length_window() -> None:
    short = extract_signals(page(head="<title>Too short</title>"), now=NOW)
    exact_min = extract_signals(page(head=f"<title>{'a' * 30}</title>"), now=NOW)
    exact_max = extract_signals(page(head=f"<title>{'a' * 60}</title>"), now=NOW)
    too_long = extract_signals(page(head=f"<title>{'a' * 61}</title>"), now=NOW)

    assert short.meta_title_ok is False
    assert exact_min.meta_title_ok is True
    assert exact_max.meta_title_ok is True
    assert too_long.meta_title_ok is False


def test_title_whitespace_counts_toward_length() -> None:
    padded_to_min = extract_signals(page(head=f"<title>  {'x' * 29}</title>"), now=NOW)
    padded_over_max = extract_signals(page(head=f"<title>{'x' * 59}  </title>"), now=NOW)

    assert padded_to_min.meta_title_ok is True
    assert padded_over_max.meta_title_ok is False


def test_description_whitespace_counts_toward_length() -> None:
    html = page(head=f'<meta name="description" content=" {"d" * 119}">')

    assert extract_signals(html, now=NOW).meta_desc_ok is True


def test_meta_description_name_is_case_insensitive() -> None:
    html = page(head=f'<meta name="Description" content="{GOOD_DESCRIPTION}">')

    assert extract_signals(html, now=NOW).meta_desc_ok is True


def test_detect_tech_stack_order_and_uniqueness() -> None:
    html = '<link href="/wp-content/x.css"><script src="https://cdn.shopify.com/a.js"></script> wordpress react'

    assert detect_tech_stack(html.lower()) == ("WordPress", "Shopify", "React")


def test_analyze_website_sends_bot_user_agent() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user_agent"] = request.headers.get("user-agent")
        return httpx.Response(200, text=optimized_page())

    signals = analyze_website("https://acme.example", client=client_for(handler), now=NOW)

    assert seen["user_agent"] == USER_AGENT
    assert signals.has_schema is True


def test_non_success_status_is_unreachable() -> None:
    signals = analyze_website(
        "https://acme.example",
        client=client_for(lambda request: httpx.Response(503)),
        now=NOW,
    )

    assert signals.issues == (ISSUE_WEBSITE_UNREACHABLE,)
    assert signals.has_schema is False


def test_timeout_is_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    signals = analyze_website("https://acme.example", client=client_for(handler), now=NOW)

    assert signals.issues == (ISSUE_WEBSITE_UNREACHABLE,)


def test_connection_error_is_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    signals = analyze_website("https://acme.example", client=client_for(handler), now=NOW)

    assert signals.issues == (ISSUE_WEBSITE_UNREACHABLE,)


def test_unexpected_analysis_error_is_analysis_failed(monkeypatch) -> None:
    def boom(html, now=None):
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(signal_extractor, "extract_signals", boom)

    signals = analyze_website(
        "https://acme.example",
        client=client_for(lambda request: httpx.Response(200, text="<html></html>")),
        now=NOW,
    )

    assert signals.issues == (ISSUE_ANALYSIS_FAILED,)
