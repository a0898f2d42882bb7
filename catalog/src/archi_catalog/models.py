from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from .utils import building_slug


@dataclass
class ArchitectWebsite:
    website_id: int = 0
    url: str = ""
    title: str = ""
    invalid: bool = False
    architect_ja: str = ""
    architect_en: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "website_id": self.website_id,
            "url": self.url,
            "title": self.title,
            "invalid": self.invalid,
            "architectJa": self.architect_ja,
            "architectEn": self.architect_en,
        }


@dataclass
class Architect:
    id: int = 0
    name_ja: str = ""
    name_en: str = ""
    websites: list[ArchitectWebsite] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "nameJa": self.name_ja,
            "nameEn": self.name_en,
            "websites": [site.to_dict() for site in self.websites],
        }


@dataclass
class Photo:
    id: int = 0
    building_id: int = 0
    url: str = ""
    thumbnail_url: str = ""
    likes: int = 0
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Building:
    id: int = 0
    uid: str = ""
    title: str = ""
    title_en: str = ""
    thumbnail_url: str = ""
    youtube_url: str = ""
    completion_years: int = 0
    parent_building_types: list[str] = field(default_factory=list)
    building_types: list[str] = field(default_factory=list)
    parent_structures: list[str] = field(default_factory=list)
    structures: list[str] = field(default_factory=list)
    prefectures: str = ""
    areas: str = ""
    location: str = ""
    architect_details: str = ""
    lat: float = 0.0
    lng: float = 0.0
    architects: list[Architect] = field(default_factory=list)
    photos: list[Photo] = field(default_factory=list)
    likes: int = 0
    created_at: str = ""
    updated_at: str = ""
    # Fields whose value was substituted while parsing (e.g. "lat", "completionYears").
    defaulted_fields: frozenset[str] = field(
        default_factory=frozenset, compare=False, repr=False
    )

    @property
    def slug(self) -> str:
        return building_slug(self.id, self.title_en or self.title)

    def to_dict(self) -> dict[str, Any]:
        """Canonical camelCase shape shared by every data source."""
        return {
            "id": self.id,
            "uid": self.uid,
            "title": self.title,
            "titleEn": self.title_en,
            "thumbnailUrl": self.thumbnail_url,
            "youtubeUrl": self.youtube_url,
            "completionYears": self.completion_years,
            "parentBuildingTypes": list(self.parent_building_types),
            "buildingTypes": list(self.building_types),
            "parentStructures": list(self.parent_structures),
            "structures": list(self.structures),
            "prefectures": self.prefectures,
            "areas": self.areas,
            "location": self.location,
            "architectDetails": self.architect_details,
            "lat": self.lat,
            "lng": self.lng,
            "architects": [architect.to_dict() for architect in self.architects],
            "photos": [photo.to_dict() for photo in self.photos],
            "likes": self.likes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass
class SearchFilters:
    query: str = ""
    radius: float = 5
    architects: list[str] = field(default_factory=list)
    building_types: list[str] = field(default_factory=list)
    prefectures: list[str] = field(default_factory=list)
    areas: list[str] = field(default_factory=list)
    has_photos: bool = False
    has_videos: bool = False
    current_location: GeoPoint | None = None

    def is_unfiltered(self) -> bool:
        # architects/building_types/areas are reserved and never narrow a search.
        return not (
            self.query.strip()
            or self.prefectures
            or self.has_photos
            or self.has_videos
            or self.current_location
        )


@dataclass
class SearchResult:
    items: list[Building] = field(default_factory=list)
    total: int = 0
    source: str = "supabase"
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "source": self.source,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class PopularSearch:
    query: str
    count: int


@dataclass
class HealthStatus:
    status: str
    database: str
