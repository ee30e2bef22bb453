"""
API tests for the reports, leads and enrichment routers.

Stored leads come from the in-memory Supabase stand-in; discovery and enrichment
services are replaced on the router modules.
"""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from conftest import lead_row

from api.main import app
from domain.lead import Lead
from domain.signals import SignalSet
from services.enrichment_service import EnrichmentSummary


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["service"] == "seo-lead-intelligence-api"


def test_health_reports_configured_integrations(client: TestClient, monkeypatch) -> None:
    monkeypatch.setenv("DATAFORSEO_API_KEY", "login:password")
    monkeypatch.delenv("GOOGLE_PLACES_API_KEY", raising=False)

    integrations = client.get("/health").json()["integrations"]

    assert integrations["dataforseo"] is True
    assert integrations["google_places"] is False


def test_root_lists_api_endpoints(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    endpoints = response.json()["endpoints"]
    assert "/api/v1/reports" in endpoints
    assert "/api/v1/leads/{lead_id}/report" in endpoints
    assert "/api/v1/enrichment/campaign-runs/{campaign_run_id}" in endpoints
    assert "/health" not in endpoints
    assert all(path.startswith("/api/v1") for path in endpoints)


def test_txt_report_download(client: TestClient) -> None:
    payload = {"business_name": "Joe's Plumbing & HVAC", "city": "Austin", "core_web_vitals_lcp": 3200}

    response = client.post("/api/v1/reports", json=payload)

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/plain; charset=utf-8"
    assert response.headers["content-disposition"] == 'attachment; filename="Joe_s_Plumbing___HVAC_SEO_Report.txt"'
    assert "JOE'S PLUMBING & HVAC" in response.text
    assert "Website Loads in 3.2 Seconds" in response.text


def test_html_report_download(client: TestClient) -> None:
    response = client.post("/api/v1/reports?format=html", json={"business_name": "Acme", "score": 42})

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/html; charset=utf-8"
    assert response.headers["content-disposition"].endswith('filename="Acme_SEO_Report.html"')
    assert "Score: 42/100" in response.text
    assert "--priority-color: #ef4444;" in response.text


def test_report_score_is_computed_when_omitted(client: TestClient) -> None:
    response = client.post("/api/v1/reports", json={"business_name": "Acme", "has_schema": True})

    assert "Score: 60/100" in response.text


def test_report_rejects_unknown_format(client: TestClient) -> None:
    response = client.post("/api/v1/reports?format=pdf", json={"business_name": "Acme"})

    assert response.status_code == 422


def test_report_rejects_out_of_range_score(client: TestClient) -> None:
    response = client.post("/api/v1/reports", json={"business_name": "Acme", "score": 101})

    assert response.status_code == 422


def test_report_rejects_negative_metric(client: TestClient) -> None:
    response = client.post("/api/v1/reports", json={"business_name": "Acme", "backlinks_count": -1})

    assert response.status_code == 422


def test_bulk_report(client: TestClient) -> None:
    body = {
        "geography": "Austin, TX",
        "industry": "plumbers",
        "leads": [
            {"business_name": "A", "score": 40},
            {"business_name": "B", "score": 65},
            {"business_name": "C", "score": 90},
        ],
    }

    response = client.post("/api/v1/reports/bulk", json=body)

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="Bulk_SEO_Report_Austin__TX_plumbers.txt"'
    assert "Total Leads: 3" in response.text
    assert "Average Score: 65" in response.text
    assert "High Priority: 1" in response.text
    assert "Medium Priority: 1" in response.text


def test_list_leads(client: TestClient, fake_db) -> None:
    fake_db.tables["leads"] = [lead_row(score=70), lead_row(score=30), lead_row(score=55, city="Dallas")]

    response = client.get("/api/v1/leads?city=Austin")

    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 2
    assert [lead["score"] for lead in body["leads"]] == [30, 70]
    assert body["leads"][0]["analysis_status"] == "basic"


def test_list_leads_invalid_filter(client: TestClient, fake_db) -> None:
    response = client.get("/api/v1/leads?analysis_status=pending")

    assert response.status_code == 400


def test_get_lead(client: TestClient, fake_db) -> None:
    row = lead_row()
    fake_db.tables["leads"] = [row]

    response = client.get(f"/api/v1/leads/{row['id']}")

    assert response.status_code == 200
    assert response.json()["id"] == row["id"]
    assert response.json()["issues"] == ["Missing schema markup", "No FAQ schema"]


def test_get_missing_lead_is_404(client: TestClient, fake_db) -> None:
    assert client.get(f"/api/v1/leads/{uuid4()}").status_code == 404


def test_stored_lead_report(client: TestClient, fake_db) -> None:
    row = lead_row(business_name="Acme Plumbing")
    fake_db.tables["leads"] = [row]

    response = client.get(f"/api/v1/leads/{row['id']}/report?format=html")

    assert response.status_code == 200
    assert response.headers["content-disposition"].endswith('filename="Acme_Plumbing_SEO_Report.html"')
    assert "<h1>Acme Plumbing</h1>" in response.text


def test_database_error_is_500(client: TestClient, fake_db) -> None:
    fake_db.error = "connection reset"

    response = client.get(f"/api/v1/leads/{uuid4()}")

    assert response.status_code == 500
    assert "connection reset" in response.json()["detail"]


def test_discover_leads(client: TestClient, monkeypatch) -> None:
    seen = {}
    run_id = uuid4()

    def fake_find_leads(geography, industry, max_results, campaign_run_id=None):
        seen.update(geography=geography, industry=industry, max_results=max_results, run=campaign_run_id)
        return [Lead.scored("Neglected Plumbing", SignalSet(issues=("No FAQ schema",)))]

    monkeypatch.setattr("api.routers.leads.find_leads", fake_find_leads)

    response = client.post(
        "/api/v1/leads/discover",
        json={"geography": "Austin, TX", "industry": "plumbers", "max_results": 5, "campaign_run_id": str(run_id)},
    )

    assert response.status_code == 200
    assert response.json()["total_count"] == 1
    assert response.json()["leads"][0]["score"] == 48
    assert response.json()["leads"][0]["id"] is None
    assert seen == {"geography": "Austin, TX", "industry": "plumbers", "max_results": 5, "run": run_id}


def test_discover_leads_validates_max_results(client: TestClient) -> None:
    response = client.post(
        "/api/v1/leads/discover",
        json={"geography": "Austin", "industry": "plumbers", "max_results": 0},
    )

    assert response.status_code == 422


def test_enrich_campaign_run(client: TestClient, monkeypatch) -> None:
    run_id = uuid4()
    calls = []

    def fake_enrich(campaign_run_id: UUID) -> EnrichmentSummary:
        calls.append(campaign_run_id)
        return EnrichmentSummary(enriched_count=2, skipped_no_website=1, lost_race=0, failed=1, total_leads=4)

    monkeypatch.setattr("api.routers.enrichment.enrich_campaign_run", fake_enrich)

    response = client.post(f"/api/v1/enrichment/campaign-runs/{run_id}")

    assert response.status_code == 200
    assert response.json() == {
        "enriched_count": 2,
        "skipped_no_website": 1,
        "lost_race": 0,
        "failed": 1,
        "total_leads": 4,
    }
    assert calls == [run_id]


def test_enrich_pending_passes_limit(client: TestClient, monkeypatch) -> None:
    seen = {}

    def fake_enrich_pending(limit=None) -> EnrichmentSummary:
        seen["limit"] = limit
        return EnrichmentSummary(enriched_count=0, skipped_no_website=0, lost_race=0, failed=0, total_leads=0)

    monkeypatch.setattr("api.routers.enrichment.enrich_pending_leads", fake_enrich_pending)

    response = client.post("/api/v1/enrichment/pending?limit=25")

    assert response.status_code == 200
    assert seen == {"limit": 25}
