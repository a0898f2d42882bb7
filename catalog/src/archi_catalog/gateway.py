from __future__ import annotations

import logging
import re
from typing import Any, Sequence

import requests

from .config import CatalogSettings
from .errors import NotFoundError, SupabaseApiError, TransportError
from .filters import compile_clauses, order_param, text_match, to_query_params
from .models import (
    Architect,
    ArchitectWebsite,
    Building,
    GeoPoint,
    HealthStatus,
    PopularSearch,
    SearchFilters,
    SearchResult,
)
from .normalizer import normalize_architect, normalize_building, normalize_website
from .suggestions import (
    SUGGESTION_LIMIT,
    collect_suggestions,
    fallback_popular_searches,
    parse_popular_rows,
)
from .utils import Clock, utc_now

logger = logging.getLogger(__name__)

BUILDINGS_TABLE = "buildings_table_2"
ARCHITECTS_TABLE = "architects_table"
WEBSITES_TABLE = "architect_websites_3"
SEARCH_LOGS_TABLE = "search_logs"
# Left joins: a building without architects or photos is still listed.
BUILDING_SELECT = "*,building_architects(architect_order,architects_table(*)),photos(*)"

LIKE_PROCEDURES = {
    "building": ("increment_building_likes", "building_id"),
    "photo": ("increment_photo_likes", "photo_id"),
}

CONTENT_RANGE_PATTERN = re.compile(r"/(\d+)\s*$")

Params = Sequence[tuple[str, str]]


def parse_content_range(value: str | None) -> int | None:
    """Read the total out of a ``Content-Range: 0-9/42`` header."""
    if not value:
        return None
    match = CONTENT_RANGE_PATTERN.search(value)
    if not match:
        return None
    return int(match.group(1))


def page_offset(page: int, limit: int) -> int:
    if page < 1:
        raise ValueError("page must be 1 or greater")
    if limit < 1:
        raise ValueError("limit must be 1 or greater")
    return (page - 1) * limit


class SupabaseGateway:
    """Reads and procedure calls against the PostgREST endpoint of the catalog.

    Every method makes exactly one attempt (two for ``nearby_buildings``);
    retrying is left to the caller.
    """

    def __init__(
        self,
        settings: CatalogSettings,
        session: requests.Session | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._rest_url = f"{settings.supabase_url}/rest/v1"
        self._timeout = settings.request_timeout
        self._clock = clock
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": settings.supabase_anon_key,
                "Authorization": f"Bearer {settings.supabase_anon_key}",
                "Accept": "application/json",
                "User-Agent": "archi-catalog/0.1",
            }
        )

    def _request(
        self,
        method: str,
        path: str,
        params: Params | None = None,
        payload: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        url = f"{self._rest_url}/{path}"
        try:
            response = self._session.request(
                method,
                url,
                params=list(params or []),
                json=payload,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Supabase request failed: {exc}") from exc
        if not response.ok:
            raise TransportError(
                f"Supabase API error {response.status_code}: {_error_message(response)}"
            )
        return response

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError("Supabase returned invalid JSON") from exc

    def select(
        self, table: str, params: Params, count: bool = False
    ) -> tuple[list[dict[str, Any]], int | None]:
        headers = {"Prefer": "count=exact"} if count else None
        response = self._request("GET", table, params=params, headers=headers)
        rows = self._json(response)
        if not isinstance(rows, list):
            raise TransportError(f"Unexpected payload from {table}")
        total = parse_content_range(response.headers.get("Content-Range")) if count else None
        return rows, total

    def rpc(self, name: str, arguments: dict[str, Any]) -> Any:
        response = self._request("POST", f"rpc/{name}", payload=arguments)
        return self._json(response)

    def _normalize_rows(self, rows: list[dict[str, Any]]) -> list[Building]:
        return [normalize_building(row, self._clock) for row in rows if isinstance(row, dict)]

    def list_buildings(self, page: int = 1, limit: int = 10) -> SearchResult:
        offset = page_offset(page, limit)
        params = [
            ("select", BUILDING_SELECT),
            order_param(),
            ("offset", str(offset)),
            ("limit", str(limit)),
        ]
        rows, total = self.select(BUILDINGS_TABLE, params, count=True)
        items = self._normalize_rows(rows)
        return SearchResult(items=items, total=total if total is not None else len(items))

    def get_building(self, building_id: int) -> Building:
        params = [
            ("select", BUILDING_SELECT),
            ("building_id", f"eq.{int(building_id)}"),
            ("limit", "1"),
        ]
        rows, _ = self.select(BUILDINGS_TABLE, params)
        if not rows:
            raise NotFoundError(f"Building {building_id} not found")
        return normalize_building(rows[0], self._clock)

    def search_buildings(
        self,
        filters: SearchFilters,
        page: int | None = None,
        limit: int | None = None,
    ) -> SearchResult:
        params = [("select", BUILDING_SELECT)]
        params.extend(to_query_params(compile_clauses(filters)))
        params.append(order_param())
        if page is not None and limit is not None:
            params.append(("offset", str(page_offset(page, limit))))
            params.append(("limit", str(limit)))
        rows, total = self.select(BUILDINGS_TABLE, params, count=True)
        items = self._normalize_rows(rows)
        return SearchResult(items=items, total=total if total is not None else len(items))

    def nearby_buildings(self, lat: float, lng: float, radius: float) -> list[Building]:
        try:
            rows = self.rpc("nearby_buildings", {"lat": lat, "lng": lng, "radius_km": radius})
        except SupabaseApiError as exc:
            logger.info("nearby_buildings procedure unavailable, using bounding box: %s", exc)
            filters = SearchFilters(radius=radius, current_location=GeoPoint(lat, lng))
            return self.search_buildings(filters).items
        if not isinstance(rows, list):
            return []
        return self._normalize_rows(rows)

    def increment_likes(self, kind: str, target_id: int) -> int:
        """Atomically bump a like counter and return the committed value."""
        if kind not in LIKE_PROCEDURES:
            raise ValueError(f"Unknown like target: {kind}")
        procedure, argument = LIKE_PROCEDURES[kind]
        data = self.rpc(procedure, {argument: int(target_id)})
        if isinstance(data, list) and data:
            data = data[0]
        if isinstance(data, dict):
            data = data.get("likes", data.get(procedure))
        if isinstance(data, bool) or not isinstance(data, int):
            raise TransportError(f"Unexpected {procedure} result: {data!r}")
        return data

    def health_check(self) -> HealthStatus:
        try:
            self.select(BUILDINGS_TABLE, [("select", "building_id"), ("limit", "1")])
        except SupabaseApiError as exc:
            raise TransportError("Database connection failed") from exc
        return HealthStatus(status="ok", database="supabase")

    def list_architects(self) -> list[Architect]:
        rows, _ = self.select(ARCHITECTS_TABLE, [("select", "*"), ("order", "architectJa.asc")])
        return [normalize_architect(row) for row in rows if isinstance(row, dict)]

    def architect_websites(self, architect_id: int) -> list[ArchitectWebsite]:
        params = [("select", "*"), ("architect_id", f"eq.{int(architect_id)}")]
        try:
            rows, _ = self.select(WEBSITES_TABLE, params)
        except SupabaseApiError as exc:
            logger.warning("Architect websites unavailable for %s: %s", architect_id, exc)
            return []
        return [normalize_website(row) for row in rows if isinstance(row, dict)]

    def search_suggestions(self, query: str) -> list[str]:
        if not query.strip():
            return []
        params = [("select", "title,titleEn")]
        params.extend(to_query_params([text_match(query, ("title", "titleEn"))]))
        params.append(("limit", str(SUGGESTION_LIMIT)))
        try:
            rows, _ = self.select(BUILDINGS_TABLE, params)
        except SupabaseApiError as exc:
            logger.warning("Search suggestions unavailable: %s", exc)
            return []
        return collect_suggestions(rows, query)

    def popular_searches(self) -> list[PopularSearch]:
        params = [("select", "query,count"), ("order", "count.desc"), ("limit", "10")]
        try:
            rows, _ = self.select(SEARCH_LOGS_TABLE, params)
        except SupabaseApiError as exc:
            logger.warning("Popular searches unavailable, using fallback: %s", exc)
            return fallback_popular_searches()
        return parse_popular_rows(rows)


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] if response.text else response.reason or ""
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)
