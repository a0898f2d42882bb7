from __future__ import annotations

import argparse
import gzip
import json
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from .config import CatalogSettings, load_settings
from .errors import SupabaseApiError
from .gateway import SupabaseGateway
from .models import Building

SNAPSHOT_SCHEMA_VERSION = "1"
SNAPSHOT_SORTED_BY = "completion_years_asc"
DEFAULT_PAGE_SIZE = 200


def parse_args(argv: Iterable[str], settings: CatalogSettings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export Supabase buildings as a static snapshot usable as mock data."
    )
    parser.add_argument(
        "--url",
        default=settings.supabase_url,
        help="Supabase project URL (or set SUPABASE_URL).",
    )
    parser.add_argument(
        "--anon-key",
        default=settings.supabase_anon_key,
        help="Supabase anon key (or set SUPABASE_ANON_KEY).",
    )
    parser.add_argument(
        "--output",
        default="buildings_snapshot.json.gz",
        help="Output path; a .gz suffix writes gzip JSON (default: buildings_snapshot.json.gz).",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=DEFAULT_PAGE_SIZE,
        help="Rows fetched per request.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=0,
        help="Stop after this many buildings (0 = all).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only count buildings and skip file write.",
    )
    return parser.parse_args(list(argv))


def snapshot_item(building: Building) -> dict[str, Any]:
    item = building.to_dict()
    if building.defaulted_fields:
        item["defaultedFields"] = sorted(building.defaulted_fields)
    return item


def collect_buildings(
    gateway: SupabaseGateway, page_size: int, limit: int = 0
) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    page = 1
    while True:
        result = gateway.list_buildings(page, page_size)
        items.extend(snapshot_item(building) for building in result.items)
        if limit and len(items) >= limit:
            return items[:limit]
        if len(result.items) < page_size or len(items) >= result.total:
            return items
        if page % 5 == 0:
            print(f"Collected {len(items)} buildings...")
        page += 1


def write_snapshot(payload: dict[str, Any], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix == ".gz":
        with gzip.open(output_path, "wt", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, separators=(",", ":"))
        return
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8"
    )


def run_export(args: argparse.Namespace, settings: CatalogSettings) -> int:
    if not args.url or not args.anon_key:
        print("Missing --url/--anon-key or SUPABASE_URL/SUPABASE_ANON_KEY.", file=sys.stderr)
        return 2
    if args.page_size <= 0:
        print("page-size must be 1 or greater.", file=sys.stderr)
        return 2

    gateway = SupabaseGateway(
        replace(settings, supabase_url=args.url.rstrip("/"), supabase_anon_key=args.anon_key)
    )
    try:
        items = collect_buildings(gateway, args.page_size, args.limit)
    except SupabaseApiError as exc:
        print(f"Snapshot export failed: {exc}", file=sys.stderr)
        return 1

    generated_at = datetime.now(timezone.utc).isoformat()
    payload = {
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "sorted_by": SNAPSHOT_SORTED_BY,
        "generated_at": generated_at,
        "source": args.url,
        "count": len(items),
        "items": items,
    }

    if args.dry_run:
        print(
            "Snapshot dry-run: "
            f"schema={SNAPSHOT_SCHEMA_VERSION} sorted_by={SNAPSHOT_SORTED_BY} "
            f"count={payload['count']} generated_at={generated_at} output={args.output}"
        )
        return 0

    output_path = Path(args.output)
    write_snapshot(payload, output_path)
    print(f"Snapshot exported: {output_path} (count={payload['count']})")
    return 0


def main() -> None:
    settings = load_settings()
    args = parse_args(sys.argv[1:], settings)
    raise SystemExit(run_export(args, settings))


if __name__ == "__main__":
    main()
