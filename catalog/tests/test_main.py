from __future__ import annotations

import json

import pytest

from archi_catalog.catalog import BuildingCatalog
from archi_catalog.main import build_filters, parse_args, run
from archi_catalog.models import GeoPoint
from common import StubGateway, building_row, fixed_clock, make_settings


@pytest.fixture
def catalog():
    return BuildingCatalog(
        make_settings(use_supabase=False), gateway=StubGateway([]), clock=fixed_clock
    )


def test_search_arguments_become_filters():
    args = parse_args(
        ["search", "--query", "美術館", "--prefecture", "東京都", "--has-photos", "--lat", "35", "--lng", "139"]
    )

    filters = build_filters(args)

    assert filters.query == "美術館"
    assert filters.prefectures == ["東京都"]
    assert filters.has_photos is True
    assert filters.current_location == GeoPoint(35.0, 139.0)


def test_search_prints_result_page(catalog, capsys):
    assert run(parse_args(["search", "--query", "美術館", "--limit", "2"]), catalog) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["source"] == "mock"
    assert len(payload["items"]) == 2
    assert payload["total"] > 2


def test_unknown_building_exits_with_error(catalog):
    assert run(parse_args(["get", "999"]), catalog) == 1


def test_health_reports_remote_status(capsys):
    catalog = BuildingCatalog(
        make_settings(), gateway=StubGateway([building_row(1)]), clock=fixed_clock
    )

    assert run(parse_args(["health"]), catalog) == 0
    assert json.loads(capsys.readouterr().out)["status"] == "ok"


def test_zero_page_is_a_usage_error(catalog):
    assert run(parse_args(["search", "--page", "0"]), catalog) == 2
