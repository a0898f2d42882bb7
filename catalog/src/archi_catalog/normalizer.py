from __future__ import annotations

import logging
from typing import Any

from .models import Architect, ArchitectWebsite, Building, Photo
from .utils import (
    Clock,
    parse_coordinate,
    parse_int,
    parse_year,
    split_comma_separated,
    text_or_empty,
    utc_now,
)

logger = logging.getLogger(__name__)


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def normalize_website(raw: dict[str, Any]) -> ArchitectWebsite:
    architect_ja = text_or_empty(raw.get("architectJa"))
    return ArchitectWebsite(
        website_id=parse_int(raw.get("website_id")),
        url=text_or_empty(raw.get("url")),
        title=text_or_empty(raw.get("title")),
        invalid=bool(raw.get("invalid")),
        architect_ja=architect_ja,
        architect_en=text_or_empty(raw.get("architectEn")) or architect_ja,
    )


def normalize_architect(raw: dict[str, Any]) -> Architect:
    name_ja = text_or_empty(_first(raw, "architectJa", "nameJa"))
    name_en = text_or_empty(_first(raw, "architectEn", "nameEn"))
    websites = raw.get("websites")
    return Architect(
        id=parse_int(_first(raw, "architect_id", "id")),
        name_ja=name_ja,
        name_en=name_en or name_ja,
        websites=[
            normalize_website(site) for site in websites or [] if isinstance(site, dict)
        ],
    )


def normalize_photo(raw: dict[str, Any], building_id: int = 0) -> Photo:
    return Photo(
        id=parse_int(raw.get("id")),
        building_id=parse_int(raw.get("building_id"), building_id),
        url=text_or_empty(raw.get("url")),
        thumbnail_url=text_or_empty(raw.get("thumbnail_url")),
        likes=parse_int(raw.get("likes")),
        created_at=text_or_empty(raw.get("created_at")),
    )


def extract_architects(raw: dict[str, Any]) -> list[Architect]:
    links = raw.get("building_architects")
    if isinstance(links, list):
        ordered = sorted(
            (link for link in links if isinstance(link, dict)),
            key=lambda link: parse_int(link.get("architect_order"), 0),
        )
        architects = []
        for link in ordered:
            nested = link.get("architects_table")
            if isinstance(nested, list):
                nested = nested[0] if nested else None
            if isinstance(nested, dict):
                architects.append(normalize_architect(nested))
        return architects
    # Already-normalized rows carry a flat list.
    flat = raw.get("architects")
    if isinstance(flat, list):
        return [normalize_architect(item) for item in flat if isinstance(item, dict)]
    return []


def normalize_building(raw: dict[str, Any], clock: Clock = utc_now) -> Building:
    """Reshape a joined ``buildings_table_2`` row (or a canonical dict) into a Building.

    Never raises on bad field values: missing years fall back to the clock's
    year, unparsable coordinates to 0.0, and the substituted field names are
    kept on ``Building.defaulted_fields``.
    """
    now = clock()
    building_id = parse_int(_first(raw, "building_id", "id"))
    title = text_or_empty(raw.get("title"))
    completion_years, year_defaulted = parse_year(raw.get("completionYears"), now.year)
    lat, lat_defaulted = parse_coordinate(raw.get("lat"))
    lng, lng_defaulted = parse_coordinate(raw.get("lng"))

    defaulted = set()
    if year_defaulted:
        defaulted.add("completionYears")
    if lat_defaulted:
        defaulted.add("lat")
    if lng_defaulted:
        defaulted.add("lng")
    # Snapshot rows remember what was substituted when they were first read.
    carried = raw.get("defaultedFields")
    if isinstance(carried, list):
        defaulted.update(str(name) for name in carried)
    if defaulted:
        logger.debug(
            "Building %s: defaulted %s", building_id, ", ".join(sorted(defaulted))
        )

    photos = raw.get("photos")
    loaded_photos: list[Photo] = []
    if isinstance(photos, list):
        loaded_photos = [
            normalize_photo(photo, building_id)
            for photo in photos
            if isinstance(photo, dict)
        ]
    timestamp = now.isoformat()

    return Building(
        id=building_id,
        uid=text_or_empty(raw.get("uid")),
        title=title,
        title_en=text_or_empty(raw.get("titleEn")) or title,
        thumbnail_url=text_or_empty(raw.get("thumbnailUrl")),
        youtube_url=text_or_empty(raw.get("youtubeUrl")),
        completion_years=completion_years,
        parent_building_types=split_comma_separated(raw.get("parentBuildingTypes")),
        building_types=split_comma_separated(raw.get("buildingTypes")),
        parent_structures=split_comma_separated(raw.get("parentStructures")),
        structures=split_comma_separated(raw.get("structures")),
        prefectures=text_or_empty(raw.get("prefectures")),
        areas=text_or_empty(raw.get("areas")),
        location=text_or_empty(raw.get("location")),
        architect_details=text_or_empty(raw.get("architectDetails")),
        lat=lat,
        lng=lng,
        architects=extract_architects(raw),
        photos=loaded_photos,
        likes=parse_int(raw.get("likes")),
        created_at=text_or_empty(raw.get("created_at")) or timestamp,
        updated_at=text_or_empty(raw.get("updated_at")) or timestamp,
        defaulted_fields=frozenset(defaulted),
    )
