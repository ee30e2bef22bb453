"""
Paid SEO metrics provider (DataForSEO).

Three independent request/response calls per website:
- backlinks summary   -> backlinks_count, referring_domains
- domain overview     -> traffic_trend, domain_rank, organic_traffic
- lighthouse (speed)  -> core_web_vitals_lcp

Every call is tolerant: any failure (missing key, transport error, timeout,
non-2xx, unexpected payload) returns an empty partial result instead of raising.
Nothing is retried.

Environment variables:
- DATAFORSEO_API_KEY: Base64 "login:password" credential (Basic auth)
- DATAFORSEO_TIMEOUT_SECONDS: per-call timeout (default 30)
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from domain.scoring import round_half_up
from domain.signals import Number, TrafficTrend

logger = logging.getLogger(__name__)

DATAFORSEO_BASE_URL: str = "https://api.dataforseo.com"
DEFAULT_TIMEOUT_SECONDS: float = 30.0

# Organic traffic value change (etv_difference) that counts as a trend.
TREND_THRESHOLD: float = 10.0

_BACKLINKS_PATH = "/v3/backlinks/summary/live"
_DOMAIN_OVERVIEW_PATH = "/v3/domain_analytics/google/overview/live"
_LIGHTHOUSE_PATH = "/v3/on_page/lighthouse/live/json"

_US_LOCATION_CODE = 2840


@dataclass(frozen=True, slots=True)
class BacklinkMetrics:
    backlinks_count: Optional[Number] = None
    referring_domains: Optional[Number] = None


@dataclass(frozen=True, slots=True)
class DomainMetrics:
    traffic_trend: TrafficTrend = TrafficTrend.UNKNOWN
    domain_rank: Optional[Number] = None
    organic_traffic: Optional[Number] = None


@dataclass(frozen=True, slots=True)
class PageSpeedMetrics:
    core_web_vitals_lcp: Optional[int] = None


@dataclass(frozen=True, slots=True)
class WebsiteMetrics:
    """The three metric groups for one website, joined after the fan-out."""

    domain: DomainMetrics
    backlinks: BacklinkMetrics
    page_speed: PageSpeedMetrics


def clean_domain(website: str) -> str:
    """Strip scheme, trailing slash and path: "https://a.com/x/" -> "a.com"."""

    text = re.sub(r"^https?://", "", website.strip(), flags=re.IGNORECASE)
    return text.rstrip("/").split("/")[0]


def classify_trend(etv_difference: float) -> TrafficTrend:
    if etv_difference > TREND_THRESHOLD:
        return TrafficTrend.GROWING
    if etv_difference < -TREND_THRESHOLD:
        return TrafficTrend.DECLINING
    return TrafficTrend.STABLE


def _positive_or_none(value: Any) -> Optional[Number]:
    # Provider zeros mean "no data", not "zero links".
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        return value
    return None


def _first_result(payload: Any) -> Optional[Mapping[str, Any]]:
    """Return tasks[0].result[0] from a DataForSEO response, if present."""

    if not isinstance(payload, Mapping):
        return None
    tasks = payload.get("tasks") or []
    if not tasks or not isinstance(tasks[0], Mapping):
        return None
    results = tasks[0].get("result") or []
    if not results or not isinstance(results[0], Mapping):
        return None
    return results[0]


class DataForSEOClient:
    """Thin DataForSEO client returning partial results on any failure."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DATAFORSEO_BASE_URL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.getenv("DATAFORSEO_API_KEY")
        self.base_url = base_url.rstrip("/")
        if timeout is None:
            timeout = float(os.getenv("DATAFORSEO_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))
        self.timeout = timeout
        self._transport = transport

        if not self.api_key:
            logger.warning("No DataForSEO API key configured; enrichment will add no metrics")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _post(self, path: str, body: list[dict[str, Any]]) -> Optional[Mapping[str, Any]]:
        """POST to the provider and return the first task result, or None."""

        headers = {
            "Authorization": f"Basic {self.api_key}",
            "Content-Type": "application/json",
        }
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(f"{self.base_url}{path}", headers=headers, json=body)

        if not response.is_success:
            logger.warning(
                "DataForSEO call returned an error status",
                extra={"path": path, "status_code": response.status_code},
            )
            return None
        return _first_result(response.json())

    def fetch_backlinks(self, website: str) -> BacklinkMetrics:
        if not self.configured:
            return BacklinkMetrics()
        try:
            result = self._post(_BACKLINKS_PATH, [{"target": clean_domain(website)}])
            if result is None:
                return BacklinkMetrics()
            return BacklinkMetrics(
                backlinks_count=_positive_or_none(result.get("backlinks")),
                referring_domains=_positive_or_none(result.get("referring_domains")),
            )
        except Exception as e:
            logger.warning("DataForSEO backlinks call failed", extra={"website": website, "error": str(e)})
            return BacklinkMetrics()

    def fetch_domain_metrics(self, website: str) -> DomainMetrics:
        if not self.configured:
            return DomainMetrics()
        body = [{
            "target": clean_domain(website),
            "location_code": _US_LOCATION_CODE,
            "language_code": "en",
        }]
        try:
            result = self._post(_DOMAIN_OVERVIEW_PATH, body)
            if result is None:
                return DomainMetrics()

            organic = (result.get("metrics") or {}).get("organic") or {}
            etv_difference = organic.get("etv_difference") or 0
            if not isinstance(etv_difference, (int, float)):
                etv_difference = 0
            return DomainMetrics(
                traffic_trend=classify_trend(etv_difference),
                domain_rank=_positive_or_none(organic.get("pos_1")),
                organic_traffic=_positive_or_none(organic.get("etv")),
            )
        except Exception as e:
            logger.warning("DataForSEO domain overview call failed", extra={"website": website, "error": str(e)})
            return DomainMetrics()

    def fetch_page_speed(self, website: str) -> PageSpeedMetrics:
        if not self.configured:
            return PageSpeedMetrics()
        body = [{"url": website, "categories": ["performance"]}]
        try:
            result = self._post(_LIGHTHOUSE_PATH, body)
            if result is None:
                return PageSpeedMetrics()

            audit = (result.get("audits") or {}).get("largest-contentful-paint") or {}
            lcp = _positive_or_none(audit.get("numericValue"))
            return PageSpeedMetrics(core_web_vitals_lcp=round_half_up(lcp) if lcp is not None else None)
        except Exception as e:
            logger.warning("DataForSEO lighthouse call failed", extra={"website": website, "error": str(e)})
            return PageSpeedMetrics()


__all__ = [
    "BacklinkMetrics",
    "DataForSEOClient",
    "DomainMetrics",
    "PageSpeedMetrics",
    "WebsiteMetrics",
    "classify_trend",
    "clean_domain",
]
