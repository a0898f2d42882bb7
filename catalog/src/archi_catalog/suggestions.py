from __future__ import annotations

from typing import Any, Iterable

from .filters import text_matcher
from .models import PopularSearch
from .utils import parse_int

SUGGESTION_LIMIT = 10

# Served whenever the search_logs table cannot be read.
FALLBACK_POPULAR_SEARCHES = (
    ("安藤忠雄", 45),
    ("美術館", 38),
    ("東京", 32),
    ("現代建築", 28),
)


def collect_suggestions(
    rows: Iterable[dict[str, Any]], query: str, limit: int = SUGGESTION_LIMIT
) -> list[str]:
    if not query.strip():
        return []
    matches = text_matcher(query)
    seen: dict[str, None] = {}
    for row in rows:
        for key in ("title", "titleEn"):
            value = row.get(key)
            if value and matches(str(value)):
                seen.setdefault(str(value), None)
    return list(seen)[:limit]


def fallback_popular_searches() -> list[PopularSearch]:
    return [PopularSearch(query=query, count=count) for query, count in FALLBACK_POPULAR_SEARCHES]


def parse_popular_rows(rows: Iterable[dict[str, Any]]) -> list[PopularSearch]:
    results = []
    for row in rows:
        query = row.get("query")
        if not query:
            continue
        results.append(PopularSearch(query=str(query), count=parse_int(row.get("count"))))
    return results
