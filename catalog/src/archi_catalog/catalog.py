from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import Callable, TypeVar

from .config import CatalogSettings
from .errors import NotFoundError, SupabaseApiError, TransportError
from .filters import filter_buildings
from .gateway import LIKE_PROCEDURES, SupabaseGateway, page_offset
from .history import SearchHistory
from .mock_data import load_mock_buildings
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
from .suggestions import collect_suggestions, fallback_popular_searches
from .utils import Clock, utc_now

logger = logging.getLogger(__name__)

SOURCE_REMOTE = "supabase"
SOURCE_MOCK = "mock"

T = TypeVar("T")


class ApiStatus(str, Enum):
    CHECKING = "checking"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


def resolve_source(status: ApiStatus, error: Exception | None = None) -> str:
    """Decide where a read is served from.

    Only an available backend serves reads, and a transport failure sends the
    current call to the mock dataset even while the session stays available.
    """
    if status is not ApiStatus.AVAILABLE:
        return SOURCE_MOCK
    if isinstance(error, TransportError):
        return SOURCE_MOCK
    return SOURCE_REMOTE


class RequestSequencer:
    """Hands out increasing tokens; only the newest token may publish a result."""

    def __init__(self) -> None:
        self._latest = 0

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_latest(self, token: int) -> bool:
        return token == self._latest


class BuildingCatalog:
    """Session-scoped entry point: picks Supabase or the mock dataset per call."""

    def __init__(
        self,
        settings: CatalogSettings,
        gateway: SupabaseGateway | None = None,
        mock_buildings: list[Building] | None = None,
        clock: Clock = utc_now,
    ) -> None:
        if gateway is None and settings.remote_configured:
            gateway = SupabaseGateway(settings, clock=clock)
        self._settings = settings
        self._gateway = gateway
        self._mock = (
            mock_buildings
            if mock_buildings is not None
            else load_mock_buildings(settings.mock_data_path, clock)
        )
        self._mock_likes = _seed_likes(self._mock)
        self._sequencer = RequestSequencer()
        self.history = SearchHistory(clock=clock)
        self.current: SearchResult | None = None
        self.status = (
            ApiStatus.CHECKING if self._remote_allowed() else ApiStatus.UNAVAILABLE
        )

    def _remote_allowed(self) -> bool:
        return self._settings.use_supabase and self._gateway is not None

    @property
    def is_api_available(self) -> bool:
        return self.status is ApiStatus.AVAILABLE

    def check_availability(self) -> ApiStatus:
        """Probe the backend; a failure keeps the session on mock data until re-checked."""
        if not self._remote_allowed():
            self.status = ApiStatus.UNAVAILABLE
            return self.status
        self.status = ApiStatus.CHECKING
        try:
            self._gateway.health_check()
        except SupabaseApiError as exc:
            logger.warning("Supabase API not available, using mock data: %s", exc)
            self.status = ApiStatus.UNAVAILABLE
        else:
            self.status = ApiStatus.AVAILABLE
        return self.status

    def _ensure_checked(self) -> None:
        if self.status is ApiStatus.CHECKING:
            self.check_availability()

    def _read(
        self,
        remote: Callable[[SupabaseGateway], T],
        local: Callable[[SupabaseApiError | None], T],
    ) -> T:
        self._ensure_checked()
        error: SupabaseApiError | None = None
        if resolve_source(self.status) == SOURCE_REMOTE:
            try:
                return remote(self._gateway)
            except SupabaseApiError as exc:
                if resolve_source(self.status, exc) == SOURCE_REMOTE:
                    raise
                logger.warning("Supabase API error, falling back to mock data: %s", exc)
                error = exc
        return local(error)

    def _mock_search(
        self,
        filters: SearchFilters,
        page: int | None = None,
        limit: int | None = None,
        error: SupabaseApiError | None = None,
    ) -> SearchResult:
        matched = filter_buildings(self._mock, filters)
        total = len(matched)
        if page is not None and limit is not None:
            start = page_offset(page, limit)
            matched = matched[start : start + limit]
        return SearchResult(
            items=[copy.deepcopy(building) for building in matched],
            total=total,
            source=SOURCE_MOCK,
            error=str(error) if error else None,
        )

    def list_buildings(self, page: int = 1, limit: int = 10) -> SearchResult:
        # Bad paging is a caller error whichever source answers.
        page_offset(page, limit)
        return self._read(
            lambda gateway: gateway.list_buildings(page, limit),
            lambda error: self._mock_search(SearchFilters(), page, limit, error),
        )

    def search(
        self, filters: SearchFilters, page: int | None = None, limit: int | None = None
    ) -> SearchResult:
        if page is not None and limit is not None:
            page_offset(page, limit)
        return self._read(
            lambda gateway: gateway.search_buildings(filters, page, limit),
            lambda error: self._mock_search(filters, page, limit, error),
        )

    def get(self, building_id: int) -> Building:
        def from_mock(_error: SupabaseApiError | None) -> Building:
            for building in self._mock:
                if building.id == building_id:
                    return copy.deepcopy(building)
            raise NotFoundError(f"Building {building_id} not found")

        return self._read(lambda gateway: gateway.get_building(building_id), from_mock)

    def nearby(self, lat: float, lng: float, radius: float) -> list[Building]:
        filters = SearchFilters(radius=radius, current_location=GeoPoint(lat, lng))
        return self._read(
            lambda gateway: gateway.nearby_buildings(lat, lng, radius),
            lambda error: self._mock_search(filters, error=error).items,
        )

    def increment_likes(self, kind: str, target_id: int) -> int:
        if kind not in LIKE_PROCEDURES:
            raise ValueError(f"Unknown like target: {kind}")
        self._ensure_checked()
        if resolve_source(self.status) == SOURCE_REMOTE:
            return self._gateway.increment_likes(kind, target_id)
        key = (kind, int(target_id))
        if key not in self._mock_likes:
            raise NotFoundError(f"{kind.capitalize()} {target_id} not found")
        self._mock_likes[key] += 1
        return self._mock_likes[key]

    def suggestions(self, query: str) -> list[str]:
        self._ensure_checked()
        if resolve_source(self.status) == SOURCE_REMOTE:
            return self._gateway.search_suggestions(query)
        return collect_suggestions((building.to_dict() for building in self._mock), query)

    def popular(self) -> list[PopularSearch]:
        self._ensure_checked()
        if resolve_source(self.status) == SOURCE_REMOTE:
            return self._gateway.popular_searches()
        return fallback_popular_searches()

    def architects(self) -> list[Architect]:
        def from_mock(_error: SupabaseApiError | None) -> list[Architect]:
            unique: dict[int, Architect] = {}
            for building in self._mock:
                for architect in building.architects:
                    unique.setdefault(architect.id, copy.deepcopy(architect))
            return sorted(unique.values(), key=lambda architect: architect.name_ja)

        return self._read(lambda gateway: gateway.list_architects(), from_mock)

    def architect_websites(self, architect_id: int) -> list[ArchitectWebsite]:
        def from_mock(_error: SupabaseApiError | None) -> list[ArchitectWebsite]:
            for building in self._mock:
                for architect in building.architects:
                    if architect.id == architect_id:
                        return copy.deepcopy(architect.websites)
            return []

        return self._read(lambda gateway: gateway.architect_websites(architect_id), from_mock)

    def health_check(self) -> HealthStatus:
        if self._gateway is None:
            raise TransportError("Supabase is not configured")
        return self._gateway.health_check()

    def begin_request(self) -> int:
        return self._sequencer.issue()

    def apply(self, token: int, result: SearchResult) -> bool:
        """Publish ``result`` as ``current`` unless a newer request was issued."""
        if not self._sequencer.is_latest(token):
            logger.debug("Dropping stale response for request %s", token)
            return False
        self.current = result
        return True

    def fetch(self, filters: SearchFilters, page: int = 1, limit: int = 10) -> SearchResult:
        """Run the list or search a results page needs and publish it."""
        token = self.begin_request()
        self.history.record(filters.query)
        if filters.is_unfiltered():
            result = self.list_buildings(page, limit)
        else:
            result = self.search(filters, page, limit)
        self.apply(token, result)
        return result


def _seed_likes(buildings: list[Building]) -> dict[tuple[str, int], int]:
    likes: dict[tuple[str, int], int] = {}
    for building in buildings:
        likes[("building", building.id)] = building.likes
        for photo in building.photos:
            likes[("photo", photo.id)] = photo.likes
    return likes
