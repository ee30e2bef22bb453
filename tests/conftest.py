"""
Pytest configuration and shared fixtures.

This file adds the project root to the Python path so that tests can import
the domain, repositories, services and api packages, and provides an in-memory
stand-in for the Supabase query builder used by the repository modules.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

import pytest
from postgrest.exceptions import APIError

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.signals import SignalSet, TrafficTrend  # noqa: E402


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]], error: Optional[str] = None) -> None:
        self.data = data
        self.error = error


class FakeQuery:
    """Chainable subset of the postgrest query builder: select/insert/update, eq/in_, order, limit."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Optional[Dict[str, Any]] = None
        self.filters: List[tuple] = []
        self._order: Optional[str] = None
        self._limit: Optional[int] = None

    def select(self, *_columns: str) -> "FakeQuery":
        return self

    def insert(self, payload: Dict[str, Any]) -> "FakeQuery":
        self.op = "insert"
        self.payload = dict(payload)
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self.op = "update"
        self.payload = dict(payload)
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("eq", column, value))
        return self

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        self.filters.append(("in", column, list(values)))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = column
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        for kind, column, value in self.filters:
            if kind == "eq" and str(row.get(column)) != str(value):
                return False
            if kind == "in" and str(row.get(column)) not in {str(v) for v in value}:
                return False
        return True

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.table, self.op, self.payload, tuple(self.filters)))
        if self.db.api_error:
            raise APIError(dict(self.db.api_error))
        if self.db.error:
            return FakeResponse([], error=self.db.error)

        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            row = dict(self.payload or {})
            row.setdefault("id", str(uuid4()))
            row.setdefault("created_at", "2025-01-01T00:00:00Z")
            rows.append(row)
            return FakeResponse([dict(row)])

        matched = [row for row in rows if self._matches(row)]
        if self.op == "update":
            for row in matched:
                row.update(self.payload or {})
            return FakeResponse([dict(row) for row in matched])

        if self._order:
            matched.sort(key=lambda row: row.get(self._order) or 0)
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse([dict(row) for row in matched])


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.error: Optional[str] = None
        self.api_error: Optional[Dict[str, Any]] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def updates(self, table: str = "leads") -> List[tuple]:
        return [call for call in self.calls if call[0] == table and call[1] == "update"]


@pytest.fixture
def fake_db(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    """Route every repository module to one in-memory database."""

    db = FakeSupabase()
    monkeypatch.setattr("repositories.lead_repository.get_supabase", lambda: db)
    monkeypatch.setattr("repositories.campaign_repository.get_supabase", lambda: db)
    return db


def lead_row(**overrides: Any) -> Dict[str, Any]:
    """A stored `leads` row with every column present."""

    row: Dict[str, Any] = {
        "id": str(uuid4()),
        "business_name": "Acme Plumbing",
        "website": "https://acme-plumbing.example",
        "email": None,
        "phone": "(512) 555-0100",
        "address": "1 Main St, Austin, TX",
        "city": "Austin",
        "has_schema": False,
        "has_faq": False,
        "has_org": False,
        "meta_title_ok": True,
        "meta_desc_ok": False,
        "content_fresh_months": None,
        "core_web_vitals_lcp": None,
        "traffic_trend": "Unknown",
        "tech_stack": ["WordPress"],
        "backlinks_count": None,
        "referring_domains": None,
        "domain_rank": None,
        "organic_traffic": None,
        "issues": ["Missing schema markup", "No FAQ schema"],
        "score": 51,
        "notes": "Strong SEO improvement opportunity",
        "source": "Google Places API",
        "status": "new",
        "priority": "medium",
        "analysis_status": "basic",
        "created_at": "2025-01-01T00:00:00Z",
    }
    row.update(overrides)
    return row


@pytest.fixture
def full_signals() -> SignalSet:
    return SignalSet(
        has_schema=True,
        has_faq=True,
        has_org=True,
        meta_title_ok=True,
        meta_desc_ok=True,
        content_fresh_months=2,
        core_web_vitals_lcp=2000,
        traffic_trend=TrafficTrend.GROWING,
    )
