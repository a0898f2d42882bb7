from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Literal, Sequence, Union

from .models import Building, GeoPoint, SearchFilters

Op = Literal["ilike", "in_list", "not_null", "neq", "gte", "lte"]

TEXT_SEARCH_COLUMNS = ("title", "titleEn", "location")
ORDER_COLUMN = "completionYears"

# Rough degrees per kilometre at Japanese latitudes; a box, not a circle.
LAT_DEGREES_PER_KM = 0.009
LNG_DEGREES_PER_KM = 0.011


@dataclass(frozen=True)
class Clause:
    column: str
    op: Op
    value: Any = None


@dataclass(frozen=True)
class AnyOf:
    clauses: tuple[Clause, ...]


Condition = Union[Clause, AnyOf]
Predicate = Callable[[Building], bool]


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @classmethod
    def around(cls, center: GeoPoint, radius_km: float) -> "BoundingBox":
        lat_delta = radius_km * LAT_DEGREES_PER_KM
        lng_delta = radius_km * LNG_DEGREES_PER_KM
        return cls(
            min_lat=center.lat - lat_delta,
            max_lat=center.lat + lat_delta,
            min_lng=center.lng - lng_delta,
            max_lng=center.lng + lng_delta,
        )

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


def text_match(query: str, columns: Sequence[str] = TEXT_SEARCH_COLUMNS) -> AnyOf:
    return AnyOf(tuple(Clause(column, "ilike", query.strip()) for column in columns))


def text_matcher(query: str) -> Callable[[str], bool]:
    """Local twin of an ilike clause: case-insensitive substring, ``*`` matches any run.

    PostgREST reads ``*`` in a like pattern as ``%``, so the remote side already
    treats it as a wildcard.
    """
    parts = query.strip().lower().split("*")
    pattern = re.compile(".*".join(re.escape(part) for part in parts), re.DOTALL)
    return lambda value: pattern.search(value.lower()) is not None


def compile_clauses(filters: SearchFilters) -> list[Condition]:
    """Translate filters into conjunctive clauses for the remote query builder."""
    conditions: list[Condition] = []

    if filters.query.strip():
        conditions.append(text_match(filters.query))

    if filters.prefectures:
        conditions.append(Clause("prefectures", "in_list", tuple(filters.prefectures)))

    if filters.has_photos:
        conditions.append(Clause("thumbnailUrl", "not_null"))
        conditions.append(Clause("thumbnailUrl", "neq", ""))

    if filters.has_videos:
        conditions.append(Clause("youtubeUrl", "not_null"))
        conditions.append(Clause("youtubeUrl", "neq", ""))

    if filters.current_location:
        box = BoundingBox.around(filters.current_location, filters.radius)
        conditions.extend(
            [
                Clause("lat", "gte", box.min_lat),
                Clause("lat", "lte", box.max_lat),
                Clause("lng", "gte", box.min_lng),
                Clause("lng", "lte", box.max_lng),
            ]
        )

    return conditions


def build_predicate(filters: SearchFilters) -> Predicate:
    """In-memory twin of ``compile_clauses`` over normalized buildings."""
    matches = text_matcher(filters.query) if filters.query.strip() else None
    prefectures = set(filters.prefectures)
    box = (
        BoundingBox.around(filters.current_location, filters.radius)
        if filters.current_location
        else None
    )

    def predicate(building: Building) -> bool:
        if matches and not any(
            matches(value)
            for value in (building.title, building.title_en, building.location)
        ):
            return False
        if prefectures and building.prefectures not in prefectures:
            return False
        if filters.has_photos and not building.thumbnail_url:
            return False
        if filters.has_videos and not building.youtube_url:
            return False
        if box is not None:
            # A defaulted coordinate stands for a null column, which no range matches.
            if building.defaulted_fields & {"lat", "lng"}:
                return False
            if not box.contains(building.lat, building.lng):
                return False
        return True

    return predicate


def sort_by_completion(buildings: Iterable[Building]) -> list[Building]:
    return sorted(buildings, key=lambda building: building.completion_years)


def filter_buildings(
    buildings: Iterable[Building], filters: SearchFilters
) -> list[Building]:
    predicate = build_predicate(filters)
    return sort_by_completion(building for building in buildings if predicate(building))


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"*{escaped}*"


def _quote(value: Any) -> str:
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _format_number(value: float) -> str:
    return repr(float(value))


def _operand(clause: Clause, quoted: bool) -> str:
    if clause.op == "ilike":
        pattern = _like_pattern(str(clause.value))
        return f"ilike.{_quote(pattern) if quoted else pattern}"
    if clause.op == "in_list":
        return "in.(" + ",".join(_quote(item) for item in clause.value) + ")"
    if clause.op == "not_null":
        return "not.is.null"
    if clause.op == "neq":
        value = str(clause.value)
        return f"neq.{_quote(value) if quoted else value}"
    if clause.op in ("gte", "lte"):
        return f"{clause.op}.{_format_number(clause.value)}"
    raise ValueError(f"Unsupported operator: {clause.op}")


def to_query_params(conditions: Sequence[Condition]) -> list[tuple[str, str]]:
    """Encode clauses as PostgREST query parameters (repeated keys allowed)."""
    params: list[tuple[str, str]] = []
    for condition in conditions:
        if isinstance(condition, AnyOf):
            members = ",".join(
                f"{clause.column}.{_operand(clause, quoted=True)}"
                for clause in condition.clauses
            )
            params.append(("or", f"({members})"))
        else:
            params.append((condition.column, _operand(condition, quoted=False)))
    return params


def order_param(ascending: bool = True) -> tuple[str, str]:
    return ("order", f"{ORDER_COLUMN}.{'asc' if ascending else 'desc'}")
