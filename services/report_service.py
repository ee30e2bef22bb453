"""
Report rendering service.

Turns scored Leads into downloadable sales documents:
- a UTF-8 plain-text report per lead
- a self-contained HTML report per lead (inline styles, no external assets)
- bulk text/HTML reports for a list of leads from one discovery search

Rendering is pure: the only non-deterministic input is the "generated at"
timestamp, which callers may pin by passing `now`. Absent optional fields render
as "Not available" / "Unknown" placeholders; nothing here raises for missing data.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from html import escape
from typing import List, Optional, Sequence

from domain.lead import Lead
from domain.scoring import priority_band
from domain.scoring_rules import HIGH_PRIORITY_BELOW, LCP_GOOD_MS, MEDIUM_PRIORITY_BELOW
from domain.time import require_utc_timestamp, utc_now
from services.report_content import (
    calculate_revenue_impact,
    content_assessment,
    critical_issues,
    detect_services,
    format_count,
    opportunities,
    pitch_script,
    quick_wins,
    round_half_up,
)

NOT_AVAILABLE = "Not available"
UNKNOWN = "Unknown"

RULE = "═" * 63


class ReportFormat(str, Enum):
    TXT = "txt"
    HTML = "html"

    @property
    def media_type(self) -> str:
        return "text/plain; charset=utf-8" if self is ReportFormat.TXT else "text/html; charset=utf-8"


def format_timestamp(now: datetime) -> str:
    require_utc_timestamp("now", now)
    return now.strftime("%Y-%m-%d %H:%M:%S UTC")


def sanitize_filename_part(value: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""

    return re.sub(r"[^A-Za-z0-9]", "_", value)


def report_filename(lead: Lead, fmt: ReportFormat) -> str:
    return f"{sanitize_filename_part(lead.business_name)}_SEO_Report.{fmt.value}"


def bulk_report_filename(geography: str, industry: str, fmt: ReportFormat) -> str:
    geo = sanitize_filename_part(geography)
    ind = sanitize_filename_part(industry)
    return f"Bulk_SEO_Report_{geo}_{ind}.{fmt.value}"


# ---------------------------------------------------------------------------
# Display helpers shared by both formats
# ---------------------------------------------------------------------------


def _location(lead: Lead) -> str:
    return lead.city or lead.address or NOT_AVAILABLE


def _tech_stack(lead: Lead, fallback: str) -> str:
    return ", ".join(lead.signals.tech_stack) if lead.signals.tech_stack else fallback


def _lcp_display(lead: Lead) -> str:
    lcp = lead.signals.core_web_vitals_lcp
    return f"{lcp / 1000:.1f}s" if lcp else UNKNOWN


def _money_display(value) -> str:
    return f"${format_count(value)}" if value else UNKNOWN


def _count_display(value) -> str:
    return format_count(value) if value else UNKNOWN


def _freshness_display(lead: Lead, suffix: str) -> str:
    months = lead.signals.content_fresh_months
    return f"{months} {suffix}" if months is not None else UNKNOWN


def _check(flag: bool, good: str = "✓ Yes", bad: str = "✗ No") -> str:
    return good if flag else bad


def average_score(leads: Sequence[Lead]) -> int:
    """Mean score rounded half-up; 0 for an empty list."""

    if not leads:
        return 0
    total = sum(lead.score for lead in leads)
    return round_half_up(Decimal(total) / Decimal(len(leads)))


def count_high_priority(leads: Sequence[Lead]) -> int:
    return sum(1 for lead in leads if lead.score < HIGH_PRIORITY_BELOW)


def count_medium_priority(leads: Sequence[Lead]) -> int:
    return sum(1 for lead in leads if HIGH_PRIORITY_BELOW <= lead.score < MEDIUM_PRIORITY_BELOW)


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


def generate_txt_report(
    lead: Lead,
    now: Optional[datetime] = None,
    position: Optional[int] = None,
) -> str:
    """
    Render one lead as a plain-text report.

    `position` numbers the heading inside bulk reports; a standalone report uses "#".
    """

    now = now or utc_now()
    band = priority_band(lead.score)
    signals = lead.signals
    impact = calculate_revenue_impact(lead)
    issues = critical_issues(lead)
    opps = opportunities(lead)
    wins = quick_wins(lead)

    lines: List[str] = [
        RULE,
        f"{position if position is not None else '#'}. {lead.business_name.upper()}",
        f"Score: {lead.score}/100 ({band.marker} {band.value})",
        RULE,
        "",
        f"📞 Phone: {lead.phone or NOT_AVAILABLE}",
        f"🌐 Website: {lead.website or NOT_AVAILABLE}",
        f"📍 Location: {_location(lead)}",
        f"🏢 Industry: {_tech_stack(lead, 'General')}",
        f"⚙️  Tech Stack: {_tech_stack(lead, 'Custom')}",
        "",
    ]

    if issues:
        lines.extend(["🔴 CRITICAL ISSUES COSTING THEM CUSTOMERS:", ""])
        for idx, issue in enumerate(issues, start=1):
            lines.extend([f"{idx}. {issue.as_text()}", ""])

    lines.extend([
        "💰 ESTIMATED REVENUE IMPACT:",
        f"   Monthly loss from SEO issues: ${impact.minimum:,}-${impact.maximum:,} per month",
        "",
    ])

    if opps:
        lines.extend(["💡 OPPORTUNITIES:", ""])
        lines.extend(f"{idx}. {opp}" for idx, opp in enumerate(opps, start=1))
        lines.append("")

    if wins:
        lines.extend(["✅ QUICK WINS (First 2 Weeks):", ""])
        lines.extend(wins)
        lines.append("")

    lines.extend(["📞 PITCH ANGLE:", "", pitch_script(lead), ""])

    lines.append("📋 SERVICES THEY OFFER:")
    lines.extend(f"• {service}" for service in detect_services(lead))
    lines.append("")

    lines.extend(["📝 CONTENT ASSESSMENT:", content_assessment(lead), ""])

    lines.extend([
        RULE,
        "📊 TECHNICAL METRICS:",
        RULE,
        "",
        "Performance:",
        f"  • LCP (Page Load): {_lcp_display(lead)}",
        f"  • Traffic Trend: {signals.traffic_trend.value}",
        f"  • Organic Traffic Value: {_money_display(signals.organic_traffic)}",
        "",
        "SEO Health:",
        f"  • Schema Markup: {_check(signals.has_schema)}",
        f"  • FAQ Schema: {_check(signals.has_faq)}",
        f"  • Organization Schema: {_check(signals.has_org)}",
        f"  • Meta Title: {_check(signals.meta_title_ok, '✓ Optimized', '✗ Needs Work')}",
        f"  • Meta Description: {_check(signals.meta_desc_ok, '✓ Optimized', '✗ Needs Work')}",
        f"  • Content Freshness: {_freshness_display(lead, 'months old')}",
        "",
        "Authority:",
        f"  • Backlinks: {_count_display(signals.backlinks_count)}",
        f"  • Referring Domains: {_count_display(signals.referring_domains)}",
        f"  • Domain Rank: {_count_display(signals.domain_rank)}",
        "",
        RULE,
        f"Report Generated: {format_timestamp(now)}",
        RULE,
    ])

    return "\n".join(lines) + "\n"


def generate_bulk_txt_report(
    leads: Sequence[Lead],
    geography: str,
    industry: str,
    now: Optional[datetime] = None,
) -> str:
    now = now or utc_now()
    header = "\n".join([
        RULE,
        "BULK SEO LEAD REPORT",
        RULE,
        "",
        f"Geography: {geography}",
        f"Industry: {industry}",
        f"Total Leads: {len(leads)}",
        f"Average Score: {average_score(leads)}",
        f"High Priority: {count_high_priority(leads)}",
        f"Medium Priority: {count_medium_priority(leads)}",
        f"Report Generated: {format_timestamp(now)}",
        "",
        RULE,
    ])
    reports = [
        generate_txt_report(lead, now=now, position=idx)
        for idx, lead in enumerate(leads, start=1)
    ]
    return header + "\n\n\n" + "\n\n\n".join(reports)


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

_BASE_CSS = """
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
      font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
      line-height: 1.6; color: #1f2937; background: #f9fafb; padding: 2rem;
    }
    .container {
      max-width: 900px; margin: 0 auto 3rem; background: white; border-radius: 12px;
      box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1); overflow: hidden;
    }
    .header {
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
      color: white; padding: 3rem 2rem; text-align: center;
    }
    .header h1 { font-size: 2rem; margin-bottom: 0.5rem; font-weight: 700; }
    .score-badge {
      display: inline-block; padding: 0.5rem 1.5rem; background: rgba(255, 255, 255, 0.2);
      border-radius: 50px; font-size: 1.25rem; font-weight: 600; margin-top: 1rem;
    }
    .priority {
      display: inline-block; padding: 0.25rem 1rem; background-color: var(--priority-color, #667eea);
      color: white; border-radius: 20px; font-size: 0.875rem; font-weight: 600; margin-left: 0.5rem;
    }
    .content { padding: 2rem; }
    .section { margin-bottom: 2.5rem; }
    .section-title {
      font-size: 1.5rem; font-weight: 700; color: #667eea; margin-bottom: 1rem;
      padding-bottom: 0.5rem; border-bottom: 3px solid #667eea;
    }
    .info-grid {
      display: grid; grid-template-columns: repeat(auto-fit, minmax(250px, 1fr));
      gap: 1rem; margin-bottom: 2rem;
    }
    .info-item { padding: 1rem; background: #f3f4f6; border-radius: 8px; }
    .info-label { font-size: 0.875rem; color: #6b7280; font-weight: 600; margin-bottom: 0.25rem; }
    .info-value { font-size: 1rem; color: #1f2937; font-weight: 500; }
    .critical-issues { background: #fef2f2; border-left: 4px solid #ef4444; padding: 1.5rem; border-radius: 8px; }
    .issue-item { margin-bottom: 1.5rem; padding-bottom: 1.5rem; border-bottom: 1px solid #fee2e2; }
    .issue-item:last-child { margin-bottom: 0; padding-bottom: 0; border-bottom: none; }
    .issue-title { font-weight: 700; color: #dc2626; margin-bottom: 0.5rem; font-size: 1.1rem; }
    .issue-detail { color: #7f1d1d; margin-left: 1.5rem; line-height: 1.8; }
    .revenue-box {
      background: linear-gradient(135deg, #fbbf24 0%, #f59e0b 100%); color: white;
      padding: 1.5rem; border-radius: 8px; text-align: center; font-size: 1.25rem; font-weight: 700;
    }
    .opportunities-list, .quickwins-list, .services-list { list-style: none; padding: 0; }
    .opportunities-list li, .quickwins-list li, .services-list li {
      padding: 0.75rem 0; padding-left: 2rem; position: relative; border-bottom: 1px solid #e5e7eb;
    }
    .opportunities-list li:before { content: "💡"; position: absolute; left: 0; }
    .quickwins-list li:before { content: "✅"; position: absolute; left: 0; }
    .services-list li:before {
      content: "•"; position: absolute; left: 0.5rem; color: #667eea; font-size: 1.5rem;
    }
    .pitch-box {
      background: #eff6ff; border: 2px solid #3b82f6; border-radius: 8px; padding: 1.5rem;
      font-style: italic; color: #1e40af; line-height: 1.8;
    }
    .content-assessment {
      background: #f9fafb; padding: 1.5rem; border-radius: 8px;
      border-left: 4px solid #667eea; line-height: 1.8;
    }
    .metrics-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 1rem; }
    .metric-card { background: #f9fafb; padding: 1rem; border-radius: 8px; border-left: 3px solid #667eea; }
    .metric-label { font-size: 0.875rem; color: #6b7280; margin-bottom: 0.25rem; }
    .metric-value { font-size: 1.25rem; font-weight: 700; color: #1f2937; }
    .metric-good { color: #10b981; }
    .metric-bad { color: #ef4444; }
    .footer { background: #f3f4f6; padding: 1.5rem 2rem; text-align: center; color: #6b7280; font-size: 0.875rem; }
"""

_BULK_CSS = """
    .cover-page {
      max-width: 900px; margin: 0 auto 3rem;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white;
      padding: 4rem 2rem; border-radius: 12px; text-align: center; box-shadow: 0 10px 30px rgba(0, 0, 0, 0.2);
    }
    .cover-page h1 { font-size: 3rem; margin-bottom: 1rem; font-weight: 700; }
    .cover-page .subtitle { font-size: 1.5rem; opacity: 0.9; margin-bottom: 2rem; }
    .cover-page .meta { font-size: 1.125rem; opacity: 0.8; }
    .summary-section {
      max-width: 900px; margin: 0 auto 3rem; background: white; padding: 2rem;
      border-radius: 12px; box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1);
    }
    .summary-section h2 {
      font-size: 2rem; color: #667eea; margin-bottom: 1.5rem;
      border-bottom: 3px solid #667eea; padding-bottom: 0.5rem;
    }
    .summary-grid {
      display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 1.5rem; margin-top: 2rem;
    }
    .summary-card {
      background: #f9fafb; padding: 1.5rem; border-radius: 8px; border-left: 4px solid #667eea; text-align: center;
    }
    .summary-card .label {
      font-size: 0.875rem; color: #6b7280; margin-bottom: 0.5rem; text-transform: uppercase; letter-spacing: 0.05em;
    }
    .summary-card .value { font-size: 2rem; font-weight: 700; color: #1f2937; }
    .page-break { page-break-after: always; margin: 3rem 0; }
"""

_PRINT_CSS = """
    @media print {
      body { padding: 0; background: white; }
      .container { box-shadow: none; margin-bottom: 0; page-break-after: always; }
      .cover-page, .summary-section { box-shadow: none; }
    }
"""


def _html_document(title: str, css: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"  <title>{escape(title)}</title>\n"
        f"  <style>{css}  </style>\n"
        "</head>\n"
        "<body>\n"
        f"{body}"
        "</body>\n"
        "</html>\n"
    )


def _good_bad(good: bool) -> str:
    return "metric-good" if good else "metric-bad"


def _info_item(label: str, value: str) -> str:
    return (
        '        <div class="info-item">\n'
        f'          <div class="info-label">{escape(label)}</div>\n'
        f'          <div class="info-value">{escape(value)}</div>\n'
        "        </div>\n"
    )


def _metric_card(label: str, value: str, css_class: str = "") -> str:
    value_class = f"metric-value {css_class}".strip()
    return (
        '          <div class="metric-card">\n'
        f'            <div class="metric-label">{escape(label)}</div>\n'
        f'            <div class="{value_class}">{escape(value)}</div>\n'
        "          </div>\n"
    )


def _section(title: str, inner: str) -> str:
    return (
        '      <div class="section">\n'
        f'        <h2 class="section-title">{escape(title)}</h2>\n'
        f"{inner}"
        "      </div>\n"
    )


def _list(css_class: str, items: Sequence[str]) -> str:
    rendered = "".join(f"<li>{escape(item)}</li>" for item in items)
    return f'        <ul class="{css_class}">{rendered}</ul>\n'


def _lead_container_html(lead: Lead, now: datetime, priority_color: str) -> str:
    """The per-lead report block shared by single and bulk HTML documents."""

    band = priority_band(lead.score)
    signals = lead.signals
    impact = calculate_revenue_impact(lead)
    issues = critical_issues(lead)
    opps = opportunities(lead)
    wins = quick_wins(lead)
    lcp = signals.core_web_vitals_lcp
    months = signals.content_fresh_months
    meta_ok = signals.meta_title_ok and signals.meta_desc_ok

    parts: List[str] = [
        f'  <div class="container" style="--priority-color: {escape(priority_color)};">\n',
        '    <div class="header">\n',
        f"      <h1>{escape(lead.business_name)}</h1>\n",
        '      <div class="score-badge">\n',
        f"        Score: {lead.score}/100\n",
        f'        <span class="priority">{escape(band.value)}</span>\n',
        "      </div>\n",
        "    </div>\n",
        '    <div class="content">\n',
        '      <div class="info-grid">\n',
        _info_item("Phone", lead.phone or NOT_AVAILABLE),
        _info_item("Website", lead.website or NOT_AVAILABLE),
        _info_item("Location", _location(lead)),
        _info_item("Tech Stack", _tech_stack(lead, "Custom")),
        "      </div>\n",
    ]

    if issues:
        items = []
        for issue in issues:
            details = "".join(
                f'<div class="issue-detail">→ {escape(detail)}</div>' for detail in issue.details
            )
            items.append(
                '          <div class="issue-item">\n'
                f'            <div class="issue-title">{escape(issue.headline)}</div>\n'
                f"            {details}\n"
                "          </div>\n"
            )
        parts.append(_section(
            "🔴 Critical Issues Costing Them Customers",
            '        <div class="critical-issues">\n' + "".join(items) + "        </div>\n",
        ))

    parts.append(_section(
        "💰 Estimated Revenue Impact",
        '        <div class="revenue-box">\n'
        f"          Monthly Loss from SEO Issues: ${impact.minimum:,} - ${impact.maximum:,}\n"
        "        </div>\n",
    ))

    if opps:
        parts.append(_section("💡 Opportunities", _list("opportunities-list", opps)))
    if wins:
        parts.append(_section("✅ Quick Wins (First 2 Weeks)", _list("quickwins-list", wins)))

    parts.append(_section(
        "📞 Pitch Angle",
        f'        <div class="pitch-box">{escape(pitch_script(lead))}</div>\n',
    ))
    parts.append(_section("📋 Services They Offer", _list("services-list", detect_services(lead))))
    parts.append(_section(
        "📝 Content Assessment",
        f'        <div class="content-assessment">{escape(content_assessment(lead))}</div>\n',
    ))

    metrics = "".join([
        _metric_card("Page Load Speed (LCP)", _lcp_display(lead), _good_bad(bool(lcp) and lcp <= LCP_GOOD_MS)),
        _metric_card("Traffic Trend", signals.traffic_trend.value),
        _metric_card("Organic Traffic Value", _money_display(signals.organic_traffic)),
        _metric_card("Backlinks", _count_display(signals.backlinks_count)),
        _metric_card("Referring Domains", _count_display(signals.referring_domains)),
        _metric_card("Schema Markup", _check(signals.has_schema), _good_bad(signals.has_schema)),
        _metric_card("Meta Tags", _check(meta_ok, "✓ Optimized", "✗ Needs Work"), _good_bad(meta_ok)),
        _metric_card(
            "Content Freshness",
            _freshness_display(lead, "months"),
            _good_bad(months is not None and months <= 6),
        ),
    ])
    parts.append(_section(
        "📊 Technical Metrics",
        '        <div class="metrics-grid">\n' + metrics + "        </div>\n",
    ))

    parts.extend([
        "    </div>\n",
        f'    <div class="footer">Report Generated: {format_timestamp(now)}</div>\n',
        "  </div>\n",
    ])
    return "".join(parts)


def generate_html_report(
    lead: Lead,
    now: Optional[datetime] = None,
    priority_color_override: Optional[str] = None,
) -> str:
    """Render one lead as a self-contained HTML document."""

    now = now or utc_now()
    color = priority_color_override or priority_band(lead.score).color
    body = _lead_container_html(lead, now, color)
    return _html_document(f"SEO Report - {lead.business_name}", _BASE_CSS + _PRINT_CSS, body)


def _summary_card(label: str, value: int) -> str:
    return (
        '      <div class="summary-card">\n'
        f'        <div class="label">{escape(label)}</div>\n'
        f'        <div class="value">{value}</div>\n'
        "      </div>\n"
    )


def generate_bulk_html_report(
    leads: Sequence[Lead],
    geography: str,
    industry: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Render a cover page, an executive summary and one section per lead.

    Each lead section carries its own priority colour on the section container,
    so badges keep their band colour when many reports share one stylesheet.
    """

    now = now or utc_now()
    generated = format_timestamp(now)
    geo = escape(geography)
    ind = escape(industry)

    cover = (
        '  <div class="cover-page">\n'
        "    <h1>SEO Lead Report</h1>\n"
        f'    <div class="subtitle">{geo} - {ind}</div>\n'
        '    <div class="meta">\n'
        f"      <div>{len(leads)} Qualified Leads</div>\n"
        f'      <div style="margin-top: 0.5rem;">Generated: {generated}</div>\n'
        "    </div>\n"
        "  </div>\n"
    )

    summary = (
        '  <div class="summary-section">\n'
        "    <h2>Executive Summary</h2>\n"
        '    <p style="margin-bottom: 2rem; line-height: 1.8;">\n'
        f"      This report contains a comprehensive SEO analysis of {len(leads)} businesses in the {ind} industry\n"
        f"      located in {geo}. Each business has been evaluated based on technical SEO health, performance metrics,\n"
        "      and growth potential. Lower scores indicate higher opportunity for SEO improvement services.\n"
        "    </p>\n"
        '    <div class="summary-grid">\n'
        + _summary_card("Total Leads", len(leads))
        + _summary_card("Avg Score", average_score(leads))
        + _summary_card("High Priority", count_high_priority(leads))
        + _summary_card("Medium Priority", count_medium_priority(leads))
        + "    </div>\n"
        "  </div>\n"
    )

    page_break = '  <div class="page-break"></div>\n'
    sections = page_break.join(
        _lead_container_html(lead, now, priority_band(lead.score).color) for lead in leads
    )

    footer = (
        '  <div class="summary-section">\n'
        "    <h2>End of Report</h2>\n"
        f'    <p style="text-align: center; color: #6b7280; margin-top: 1rem;">Generated on {generated}</p>\n'
        "  </div>\n"
    )

    body = cover + summary + page_break + sections + footer
    return _html_document(
        f"Bulk SEO Lead Report - {geography} {industry}",
        _BASE_CSS + _BULK_CSS + _PRINT_CSS,
        body,
    )


def render_report(lead: Lead, fmt: ReportFormat, now: Optional[datetime] = None) -> str:
    if fmt is ReportFormat.TXT:
        return generate_txt_report(lead, now=now)
    return generate_html_report(lead, now=now)


def render_bulk_report(
    leads: Sequence[Lead],
    geography: str,
    industry: str,
    fmt: ReportFormat,
    now: Optional[datetime] = None,
) -> str:
    if fmt is ReportFormat.TXT:
        return generate_bulk_txt_report(leads, geography, industry, now=now)
    return generate_bulk_html_report(leads, geography, industry, now=now)


__all__ = [
    "NOT_AVAILABLE",
    "ReportFormat",
    "UNKNOWN",
    "average_score",
    "bulk_report_filename",
    "count_high_priority",
    "count_medium_priority",
    "format_timestamp",
    "generate_bulk_html_report",
    "generate_bulk_txt_report",
    "generate_html_report",
    "generate_txt_report",
    "render_bulk_report",
    "render_report",
    "report_filename",
    "sanitize_filename_part",
]
