"""Shared fakes for tests: a scripted requests session, a stub gateway and a
clause evaluator with SQL null semantics standing in for PostgREST."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from archi_catalog.config import CatalogSettings
from archi_catalog.errors import NotFoundError, TransportError
from archi_catalog.filters import AnyOf, Clause, compile_clauses
from archi_catalog.models import HealthStatus, SearchResult
from archi_catalog.normalizer import normalize_building

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


class FakeResponse:
    def __init__(
        self,
        *,
        status_code: int = 200,
        payload: Any = None,
        headers: dict | None = None,
        text: str = "",
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = text
        self.reason = "Error" if status_code >= 400 else "OK"

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSession:
    def __init__(self, responses) -> None:
        self._responses = list(responses)
        self.headers: dict[str, str] = {}
        self.calls: list[dict[str, Any]] = []

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "params": list(params or []),
                "json": json,
                "headers": headers or {},
                "timeout": timeout,
            }
        )
        if not self._responses:
            raise RuntimeError("No more fake responses")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_settings(**overrides: Any) -> CatalogSettings:
    values = {
        "supabase_url": "https://example.supabase.co",
        "supabase_anon_key": "anon-key",
        "use_supabase": True,
        "log_level": "INFO",
        "request_timeout": 5,
        "mock_data_path": None,
    }
    values.update(overrides)
    return CatalogSettings(**values)


def _ilike(query: str, value: str) -> bool:
    """``ilike "*query*"`` as PostgREST runs it: ``*`` is read as ``%``, ``%`` and ``_`` arrive escaped."""
    body = "".join(".*" if char == "*" else re.escape(char) for char in query.lower())
    regex = f".*{body}.*"
    return re.fullmatch(regex, value.lower(), re.DOTALL) is not None


def _matches(row: dict[str, Any], clause: Clause) -> bool:
    """Evaluate one clause with SQL null semantics (NULL never satisfies a comparison)."""
    value = row.get(clause.column)
    if value is None:
        return False
    if clause.op == "ilike":
        return _ilike(clause.value, str(value))
    if clause.op == "in_list":
        return value in clause.value
    if clause.op == "not_null":
        return True
    if clause.op == "neq":
        return value != clause.value
    if clause.op == "gte":
        return float(value) >= clause.value
    if clause.op == "lte":
        return float(value) <= clause.value
    raise AssertionError(f"unexpected operator {clause.op}")


def remote_ids(rows: list[dict[str, Any]], filters) -> set[int]:
    """Ids a PostgREST backend would return for the compiled clauses."""
    conditions = compile_clauses(filters)
    ids = set()
    for row in rows:
        ok = True
        for condition in conditions:
            if isinstance(condition, AnyOf):
                ok = any(_matches(row, clause) for clause in condition.clauses)
            else:
                ok = _matches(row, condition)
            if not ok:
                break
        if ok:
            ids.add(row["building_id"])
    return ids


def building_row(building_id: int, **fields: Any) -> dict[str, Any]:
    row = {
        "building_id": building_id,
        "uid": f"SK_{building_id:04d}",
        "title": f"建物{building_id}",
        "titleEn": None,
        "thumbnailUrl": None,
        "youtubeUrl": None,
        "completionYears": str(1950 + building_id),
        "prefectures": "東京都",
        "areas": "関東",
        "location": "東京都千代田区",
        "lat": 35.68,
        "lng": 139.76,
        "building_architects": [],
    }
    row.update(fields)
    return row


class StubGateway:
    """Gateway double for catalog tests; rows are served from memory."""

    def __init__(self, rows=None, healthy: bool = True) -> None:
        self.rows = rows or []
        self.healthy = healthy
        self.fail_reads = False
        self.calls: list[str] = []
        self.likes: dict[tuple[str, int], int] = {}

    def _buildings(self):
        return [normalize_building(row, fixed_clock) for row in self.rows]

    def _check_reads(self) -> None:
        if self.fail_reads:
            raise TransportError("connection reset")

    def health_check(self) -> HealthStatus:
        self.calls.append("health_check")
        if not self.healthy:
            raise TransportError("Database connection failed")
        return HealthStatus(status="ok", database="supabase")

    def list_buildings(self, page: int, limit: int) -> SearchResult:
        self.calls.append("list_buildings")
        self._check_reads()
        buildings = sorted(self._buildings(), key=lambda b: b.completion_years)
        start = (page - 1) * limit
        return SearchResult(items=buildings[start : start + limit], total=len(buildings))

    def search_buildings(self, filters, page=None, limit=None) -> SearchResult:
        self.calls.append("search_buildings")
        self._check_reads()
        ids = remote_ids(self.rows, filters)
        buildings = sorted(
            (b for b in self._buildings() if b.id in ids), key=lambda b: b.completion_years
        )
        total = len(buildings)
        if page is not None and limit is not None:
            buildings = buildings[(page - 1) * limit : page * limit]
        return SearchResult(items=buildings, total=total)

    def get_building(self, building_id: int):
        self.calls.append("get_building")
        self._check_reads()
        for building in self._buildings():
            if building.id == building_id:
                return building
        raise NotFoundError(f"Building {building_id} not found")

    def nearby_buildings(self, lat, lng, radius):
        self.calls.append("nearby_buildings")
        self._check_reads()
        return self._buildings()

    def increment_likes(self, kind: str, target_id: int) -> int:
        self.calls.append("increment_likes")
        key = (kind, target_id)
        self.likes[key] = self.likes.get(key, 0) + 1
        return self.likes[key]

    def search_suggestions(self, query: str):
        self.calls.append("search_suggestions")
        return ["remote suggestion"]

    def popular_searches(self):
        self.calls.append("popular_searches")
        return []

