from __future__ import annotations

import pytest

from archi_catalog.catalog import (
    ApiStatus,
    BuildingCatalog,
    SOURCE_MOCK,
    SOURCE_REMOTE,
    resolve_source,
)
from archi_catalog.errors import NotFoundError, TransportError
from archi_catalog.models import SearchFilters, SearchResult
from archi_catalog.normalizer import normalize_building
from common import StubGateway, building_row, fixed_clock, make_settings

ROWS = [building_row(i, completionYears=str(2000 + (i * 7) % 25)) for i in range(1, 26)]
MOCK = [
    normalize_building(
        building_row(
            100 + i,
            title=title,
            completionYears=str(year),
            thumbnailUrl=thumb,
        ),
        fixed_clock,
    )
    for i, (title, year, thumb) in enumerate(
        [
            ("安藤忠雄記念館", 2015, ""),
            ("国立西洋美術館", 1959, "https://img.example/a.jpg"),
            ("光の教会", 1989, "https://img.example/b.jpg"),
        ]
    )
]


def _catalog(gateway=None, mock=None, **settings_overrides):
    return BuildingCatalog(
        make_settings(**settings_overrides),
        gateway=gateway,
        mock_buildings=list(MOCK if mock is None else mock),
        clock=fixed_clock,
    )


def test_flag_off_goes_straight_to_unavailable_without_probing():
    gateway = StubGateway(ROWS)
    catalog = _catalog(gateway, use_supabase=False)

    assert catalog.status is ApiStatus.UNAVAILABLE
    result = catalog.list_buildings()
    assert result.source == SOURCE_MOCK
    assert gateway.calls == []


def test_failed_health_check_latches_mock_data_for_the_session():
    gateway = StubGateway(ROWS, healthy=False)
    catalog = _catalog(gateway)

    assert catalog.check_availability() is ApiStatus.UNAVAILABLE
    listed = catalog.list_buildings()
    searched = catalog.search(SearchFilters(query="美術館"))

    assert listed.source == SOURCE_MOCK
    assert listed.total == len(MOCK)
    assert [b.title for b in searched.items] == ["国立西洋美術館"]
    assert gateway.calls == ["health_check"]


def test_first_read_probes_lazily_and_uses_remote_when_healthy():
    gateway = StubGateway(ROWS)
    catalog = _catalog(gateway)
    assert catalog.status is ApiStatus.CHECKING

    result = catalog.list_buildings()

    assert catalog.status is ApiStatus.AVAILABLE
    assert catalog.is_api_available
    assert result.source == SOURCE_REMOTE
    assert gateway.calls == ["health_check", "list_buildings"]


def test_transport_error_falls_back_for_that_call_only():
    gateway = StubGateway(ROWS)
    catalog = _catalog(gateway)
    catalog.check_availability()

    gateway.fail_reads = True
    degraded = catalog.search(SearchFilters(has_photos=True))
    gateway.fail_reads = False
    recovered = catalog.search(SearchFilters(has_photos=False, query="建物"))

    assert catalog.status is ApiStatus.AVAILABLE
    assert degraded.source == SOURCE_MOCK
    assert "connection reset" in degraded.error
    assert {b.title for b in degraded.items} == {"国立西洋美術館", "光の教会"}
    assert recovered.source == SOURCE_REMOTE


def test_not_found_is_not_masked_by_fallback():
    catalog = _catalog(StubGateway(ROWS))
    catalog.check_availability()

    with pytest.raises(NotFoundError):
        catalog.get(999)


def test_get_from_mock_returns_fresh_copies():
    catalog = _catalog(use_supabase=False)

    first = catalog.get(100)
    first.title = "changed"

    assert catalog.get(100).title == "安藤忠雄記念館"
    with pytest.raises(NotFoundError):
        catalog.get(1)


@pytest.mark.parametrize("use_supabase", [True, False])
def test_second_page_holds_items_ten_to_nineteen(use_supabase):
    dataset = [normalize_building(row, fixed_clock) for row in ROWS]
    catalog = _catalog(StubGateway(ROWS), mock=dataset, use_supabase=use_supabase)
    ordered = sorted(dataset, key=lambda b: b.completion_years)

    result = catalog.list_buildings(page=2, limit=10)

    assert result.total == 25
    assert [b.completion_years for b in result.items] == [
        b.completion_years for b in ordered[10:20]
    ]


@pytest.mark.parametrize("use_supabase", [True, False])
@pytest.mark.parametrize("page, limit", [(0, 2), (1, 0), (-1, 10)])
def test_bad_paging_is_rejected_by_either_source(use_supabase, page, limit):
    gateway = StubGateway(ROWS)
    catalog = _catalog(gateway, use_supabase=use_supabase)

    with pytest.raises(ValueError):
        catalog.list_buildings(page=page, limit=limit)
    with pytest.raises(ValueError):
        catalog.search(SearchFilters(query="建物"), page=page, limit=limit)
    assert gateway.calls == []


def test_nearby_never_raises():
    gateway = StubGateway(ROWS)
    catalog = _catalog(gateway)
    catalog.check_availability()
    gateway.fail_reads = True

    buildings = catalog.nearby(35.68, 139.76, 5)

    assert {b.id for b in buildings} == {100, 101, 102}


def test_likes_increase_on_each_call_in_both_modes():
    remote = _catalog(StubGateway(ROWS))
    local = _catalog(use_supabase=False)

    for catalog, building_id in ((remote, 42), (local, 101)):
        first = catalog.increment_likes("building", building_id)
        second = catalog.increment_likes("building", building_id)
        assert second > first

    with pytest.raises(ValueError):
        local.increment_likes("architect", 1)
    with pytest.raises(NotFoundError):
        local.increment_likes("photo", 12345)


def test_suggestions_and_popular_follow_the_source():
    remote = _catalog(StubGateway(ROWS))
    local = _catalog(use_supabase=False)

    assert remote.suggestions("館") == ["remote suggestion"]
    assert local.suggestions("美術") == ["国立西洋美術館"]
    assert [p.query for p in local.popular()][:2] == ["安藤忠雄", "美術館"]


def test_health_check_without_configuration_raises():
    catalog = _catalog(supabase_url="", supabase_anon_key="")

    assert catalog.status is ApiStatus.UNAVAILABLE
    with pytest.raises(TransportError):
        catalog.health_check()


def test_recheck_can_restore_availability():
    gateway = StubGateway(ROWS, healthy=False)
    catalog = _catalog(gateway)
    catalog.list_buildings()
    assert catalog.status is ApiStatus.UNAVAILABLE

    gateway.healthy = True

    assert catalog.check_availability() is ApiStatus.AVAILABLE
    assert catalog.list_buildings().source == SOURCE_REMOTE


def test_stale_responses_are_not_published():
    catalog = _catalog(use_supabase=False)
    older = catalog.begin_request()
    newer = catalog.begin_request()

    assert catalog.apply(newer, SearchResult(total=1)) is True
    assert catalog.apply(older, SearchResult(total=99)) is False
    assert catalog.current.total == 1


def test_fetch_routes_and_records_history():
    gateway = StubGateway(ROWS)
    catalog = _catalog(gateway)

    catalog.fetch(SearchFilters(), page=1, limit=5)
    catalog.fetch(SearchFilters(query="建物1"), page=1, limit=5)
    result = catalog.fetch(SearchFilters(query="建物1"), page=1, limit=5)

    assert gateway.calls == ["health_check", "list_buildings", "search_buildings", "search_buildings"]
    assert catalog.current is result
    assert [(e.query, e.count) for e in catalog.history.entries] == [("建物1", 2)]


def test_resolve_source_decision_table():
    assert resolve_source(ApiStatus.UNAVAILABLE) == SOURCE_MOCK
    assert resolve_source(ApiStatus.CHECKING) == SOURCE_MOCK
    assert resolve_source(ApiStatus.AVAILABLE) == SOURCE_REMOTE
    assert resolve_source(ApiStatus.AVAILABLE, TransportError("down")) == SOURCE_MOCK
    assert resolve_source(ApiStatus.AVAILABLE, NotFoundError("gone")) == SOURCE_REMOTE


def test_builtin_mock_photo_likes_can_be_incremented():
    catalog = BuildingCatalog(make_settings(use_supabase=False), clock=fixed_clock)

    assert catalog.increment_likes("photo", 401) == 13
    assert catalog.increment_likes("photo", 401) == 14
    assert catalog.get(4).photos[0].id == 401


def test_mock_suggestions_treat_star_as_wildcard():
    catalog = _catalog(use_supabase=False)

    assert catalog.suggestions("国立*美術") == ["国立西洋美術館"]
