from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from typing import Any, Iterable

from .catalog import BuildingCatalog
from .config import load_settings
from .errors import SupabaseApiError
from .models import GeoPoint, SearchFilters
from .utils import PREFECTURES


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Architecture catalog search")
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Filter and page through buildings")
    search.add_argument("--query", default="", help="Substring of title or location")
    search.add_argument(
        "--prefecture",
        action="append",
        default=[],
        choices=PREFECTURES,
        help="Restrict to a prefecture (repeatable)",
    )
    search.add_argument("--has-photos", action="store_true")
    search.add_argument("--has-videos", action="store_true")
    search.add_argument("--lat", type=float, help="Latitude of the search centre")
    search.add_argument("--lng", type=float, help="Longitude of the search centre")
    search.add_argument("--radius", type=float, default=5, help="Radius in km (default: 5)")
    search.add_argument("--page", type=int, default=1)
    search.add_argument("--limit", type=int, default=10)

    get = subparsers.add_parser("get", help="Show one building")
    get.add_argument("building_id", type=int)

    nearby = subparsers.add_parser("nearby", help="Buildings around a point")
    nearby.add_argument("lat", type=float)
    nearby.add_argument("lng", type=float)
    nearby.add_argument("--radius", type=float, default=5)

    like = subparsers.add_parser("like", help="Increment a like counter")
    like.add_argument("kind", choices=["building", "photo"])
    like.add_argument("target_id", type=int)

    suggest = subparsers.add_parser("suggest", help="Title suggestions")
    suggest.add_argument("query")

    subparsers.add_parser("popular", help="Popular searches")
    subparsers.add_parser("health", help="Check the Supabase connection")
    return parser.parse_args(None if argv is None else list(argv))


def _emit(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False))


def build_filters(args: argparse.Namespace) -> SearchFilters:
    location = None
    if args.lat is not None and args.lng is not None:
        location = GeoPoint(args.lat, args.lng)
    return SearchFilters(
        query=args.query,
        radius=args.radius,
        prefectures=list(args.prefecture),
        has_photos=args.has_photos,
        has_videos=args.has_videos,
        current_location=location,
    )


def run(args: argparse.Namespace, catalog: BuildingCatalog) -> int:
    logger = logging.getLogger(__name__)
    try:
        if args.command == "search":
            result = catalog.fetch(build_filters(args), args.page, args.limit)
            logger.info(
                "Search served from %s: %s of %s buildings",
                result.source,
                len(result.items),
                result.total,
            )
            _emit(result.to_dict())
        elif args.command == "get":
            _emit(catalog.get(args.building_id).to_dict())
        elif args.command == "nearby":
            for building in catalog.nearby(args.lat, args.lng, args.radius):
                _emit(building.to_dict())
        elif args.command == "like":
            _emit({"likes": catalog.increment_likes(args.kind, args.target_id)})
        elif args.command == "suggest":
            _emit(catalog.suggestions(args.query))
        elif args.command == "popular":
            _emit([asdict(item) for item in catalog.popular()])
        elif args.command == "health":
            _emit(asdict(catalog.health_check()))
    except SupabaseApiError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    except ValueError as exc:
        logger.error("%s rejected: %s", args.command, exc)
        return 2
    return 0


def main() -> int:
    args = parse_args()
    settings = load_settings()

    logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")
    logger = logging.getLogger(__name__)
    logger.info(
        "Starting catalog: command=%s supabase=%s mock_data=%s",
        args.command,
        "on" if settings.remote_enabled else "off",
        settings.mock_data_path or "built-in",
    )

    catalog = BuildingCatalog(settings)
    return run(args, catalog)


if __name__ == "__main__":
    raise SystemExit(main())
