"""
Tests for `services/lead_discovery_service.py` and `services/places_client.py`.

Places HTTP calls go through httpx.MockTransport; the website analyser is a stub
and persistence uses the in-memory Supabase stand-in.
"""

from __future__ import annotations

from uuid import uuid4

import httpx
import pytest

from domain.lead import AnalysisStatus, LeadSource
from domain.signals import ISSUE_NO_WEBSITE, SignalSet, TrafficTrend
from services.lead_discovery_service import candidate_limit, find_leads
from services.places_client import PlaceDetails, PlacesClient

PLACES = {
    "p-good": {
        "name": "Polished Plumbing",
        "website": "https://polished.example",
        "formatted_phone_number": "(512) 555-0101",
        "formatted_address": "10 Oak St, Austin, TX 78701",
    },
    "p-none": {
        "name": "Offline Plumbing",
        "formatted_address": "20 Elm St, Austin, TX 78702",
    },
    "p-bad": {
        "name": "Neglected Plumbing",
        "website": "https://neglected.example",
        "formatted_address": "30 Pine St, Round Rock, TX 78664",
    },
}

SIGNALS = {
    "https://polished.example": SignalSet(
        has_schema=True, has_faq=True, meta_title_ok=True, meta_desc_ok=True, traffic_trend=TrafficTrend.UNKNOWN,
    ),
    "https://neglected.example": SignalSet(issues=("Missing schema markup", "No FAQ schema", "Outdated content")),
}


class PlacesApi:
    """Routes text search and details requests; records every request."""

    def __init__(self, place_ids=None, details=None, fail_ids=()):
        self.place_ids = list(PLACES) if place_ids is None else place_ids
        self.details = PLACES if details is None else details
        self.fail_ids = set(fail_ids)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/textsearch/json"):
            results = [{"place_id": place_id} for place_id in self.place_ids]
            return httpx.Response(200, json={"status": "OK", "results": results})

        place_id = request.url.params["place_id"]
        if place_id in self.fail_ids:
            return httpx.Response(500, json={"status": "UNKNOWN_ERROR"})
        result = self.details.get(place_id)
        if result is None:
            return httpx.Response(200, json={"status": "NOT_FOUND"})
        return httpx.Response(200, json={"status": "OK", "result": result})

    def detail_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/details/json")]


def places_client(api: PlacesApi) -> PlacesClient:
    return PlacesClient(api_key="test-key", transport=httpx.MockTransport(api))


def stub_analyzer(url: str) -> SignalSet:
    return SIGNALS.get(url, SignalSet())


@pytest.mark.parametrize("max_results, limit", [(1, 6), (3, 18), (10, 60), (25, 60)])
def test_candidate_limit(max_results: int, limit: int) -> None:
    assert candidate_limit(max_results) == limit


def test_place_details_city() -> None:
    assert PlaceDetails("x", "X", address="10 Oak St, Austin, TX").city == "10 Oak St"
    assert PlaceDetails("x", "X").city is None


def test_find_leads_scores_persists_and_ranks(fake_db) -> None:
    api = PlacesApi()
    run_id = uuid4()

    leads = find_leads(
        "Austin, TX",
        "plumbers",
        max_results=2,
        places=places_client(api),
        analyzer=stub_analyzer,
        campaign_run_id=run_id,
    )

    # Neglected: 50 - 6 = 44; Offline: 50 - 2 = 48; Polished: 50 + 28 = 78
    assert [lead.business_name for lead in leads] == ["Neglected Plumbing", "Offline Plumbing"]
    assert [lead.score for lead in leads] == [44, 48]
    assert all(lead.id is not None for lead in leads)
    assert all(lead.analysis_status is AnalysisStatus.BASIC for lead in leads)
    assert all(lead.source == LeadSource.GOOGLE_PLACES.value for lead in leads)

    offline = leads[1]
    assert offline.website is None
    assert offline.signals.issues == (ISSUE_NO_WEBSITE,)

    # Every analysed place is stored, not only the returned ones.
    assert len(fake_db.tables["leads"]) == 3
    links = fake_db.tables["campaign_run_leads"]
    assert {link["campaign_run_id"] for link in links} == {str(run_id)}
    assert {link["industry"] for link in links} == {"plumbers"}
    assert len(links) == 3


def test_search_query_and_api_key_are_sent(fake_db) -> None:
    api = PlacesApi()

    find_leads("Austin, TX", "plumbers", places=places_client(api), analyzer=stub_analyzer)

    search = api.requests[0]
    assert search.url.params["query"] == "plumbers in Austin, TX"
    assert search.url.params["key"] == "test-key"
    assert api.detail_requests()[0].url.params["fields"] == "name,website,formatted_phone_number,formatted_address"


def test_candidates_are_capped(fake_db) -> None:
    place_ids = [f"p-{i}" for i in range(100)]
    details = {place_id: {"name": f"Business {place_id}"} for place_id in place_ids}
    api = PlacesApi(place_ids=place_ids, details=details)

    leads = find_leads("Austin", "plumbers", max_results=1, places=places_client(api), analyzer=stub_analyzer)

    assert len(api.detail_requests()) == 6
    assert len(leads) == 1


def test_failing_place_is_skipped(fake_db) -> None:
    api = PlacesApi(fail_ids={"p-good"})

    leads = find_leads("Austin", "plumbers", max_results=5, places=places_client(api), analyzer=stub_analyzer)

    assert {lead.business_name for lead in leads} == {"Offline Plumbing", "Neglected Plumbing"}


def test_analyzer_failure_is_skipped(fake_db) -> None:
    def flaky(url: str) -> SignalSet:
        if "polished" in url:
            raise RuntimeError("analyzer crashed")
        return stub_analyzer(url)

    leads = find_leads("Austin", "plumbers", max_results=5, places=places_client(PlacesApi()), analyzer=flaky)

    assert "Polished Plumbing" not in {lead.business_name for lead in leads}
    assert len(leads) == 2


def test_missing_details_result_is_skipped(fake_db) -> None:
    api = PlacesApi(place_ids=["p-good", "p-missing"])

    leads = find_leads("Austin", "plumbers", max_results=5, places=places_client(api), analyzer=stub_analyzer)

    assert [lead.business_name for lead in leads] == ["Polished Plumbing"]


def test_save_failure_keeps_unsaved_lead(fake_db) -> None:
    fake_db.error = "insert rejected"

    leads = find_leads("Austin", "plumbers", max_results=3, places=places_client(PlacesApi()), analyzer=stub_analyzer)

    assert len(leads) == 3
    assert all(lead.id is None for lead in leads)


def test_unconfigured_places_returns_demo_leads_without_saving(fake_db, monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_PLACES_API_KEY", raising=False)

    leads = find_leads("Austin, TX", "Plumbers", max_results=5, places=PlacesClient(), analyzer=stub_analyzer)

    assert [lead.business_name for lead in leads] == [
        "Plumbers Business 1",
        "Plumbers Business 2",
        "Plumbers Business 3",
    ]
    first = leads[0]
    assert first.website == "https://example-0.com"
    assert first.phone == "(555) 000-0000"
    assert first.address == "1 Main St, Austin, TX"
    assert first.city == "Austin"
    assert first.source == LeadSource.DEMO.value
    assert first.id is None
    assert fake_db.calls == []


def test_failed_search_falls_back_to_demo_leads(fake_db) -> None:
    client = PlacesClient(api_key="k", transport=httpx.MockTransport(lambda request: httpx.Response(403)))

    leads = find_leads("Austin", "plumbers", max_results=2, places=client, analyzer=stub_analyzer)

    assert [lead.source for lead in leads] == [LeadSource.DEMO.value] * 2


@pytest.mark.parametrize(
    "geography, industry, max_results",
    [("", "plumbers", 3), ("Austin", "  ", 3), ("Austin", "plumbers", 0)],
)
def test_invalid_search_is_rejected(geography: str, industry: str, max_results: int) -> None:
    with pytest.raises(ValueError):
        find_leads(geography, industry, max_results, places=PlacesClient(api_key=""), analyzer=stub_analyzer)
