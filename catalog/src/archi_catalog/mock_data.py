from __future__ import annotations

import gzip
import json
from pathlib import Path
from typing import Any

from .models import Building
from .normalizer import normalize_building
from .utils import Clock, utc_now

_TIMESTAMP = "2024-01-01T00:00:00+00:00"


def _architect(architect_id: int, name_ja: str, name_en: str) -> dict[str, Any]:
    return {"id": architect_id, "nameJa": name_ja, "nameEn": name_en, "websites": []}


LE_CORBUSIER = _architect(1, "ル・コルビュジエ", "Le Corbusier")
KENZO_TANGE = _architect(2, "丹下健三", "Kenzo Tange")
TADAO_ANDO = _architect(3, "安藤忠雄", "Tadao Ando")
TOYO_ITO = _architect(4, "伊東豊雄", "Toyo Ito")
KAZUYO_SEJIMA = _architect(5, "妹島和世", "Kazuyo Sejima")
RYUE_NISHIZAWA = _architect(6, "西沢立衛", "Ryue Nishizawa")
KENGO_KUMA = _architect(7, "隈研吾", "Kengo Kuma")


MOCK_BUILDING_ROWS: list[dict[str, Any]] = [
    {
        "id": 1,
        "uid": "SK_1959_001",
        "title": "国立西洋美術館",
        "titleEn": "National Museum of Western Art",
        "thumbnailUrl": "https://images.archi-catalog.example/1/thumb.jpg",
        "youtubeUrl": "",
        "completionYears": 1959,
        "parentBuildingTypes": ["文化施設"],
        "buildingTypes": ["美術館"],
        "parentStructures": ["鉄筋コンクリート造"],
        "structures": ["RC造"],
        "prefectures": "東京都",
        "areas": "関東",
        "location": "東京都台東区上野公園7-7",
        "lat": 35.7153,
        "lng": 139.7757,
        "architects": [LE_CORBUSIER],
        "likes": 12,
    },
    {
        "id": 2,
        "uid": "SK_1964_002",
        "title": "国立代々木競技場",
        "titleEn": "Yoyogi National Gymnasium",
        "thumbnailUrl": "https://images.archi-catalog.example/2/thumb.jpg",
        "youtubeUrl": "https://www.youtube.com/watch?v=yoyogi-gymnasium",
        "completionYears": 1964,
        "parentBuildingTypes": ["スポーツ施設"],
        "buildingTypes": ["体育館"],
        "parentStructures": ["鉄骨造", "鉄筋コンクリート造"],
        "structures": ["吊り屋根構造"],
        "prefectures": "東京都",
        "areas": "関東",
        "location": "東京都渋谷区神南2-1-1",
        "lat": 35.6676,
        "lng": 139.7005,
        "architects": [KENZO_TANGE],
        "likes": 20,
    },
    {
        "id": 3,
        "uid": "SK_1964_003",
        "title": "東京カテドラル聖マリア大聖堂",
        "titleEn": "St. Mary's Cathedral, Tokyo",
        "thumbnailUrl": "",
        "youtubeUrl": "",
        "completionYears": 1964,
        "parentBuildingTypes": ["宗教施設"],
        "buildingTypes": ["教会"],
        "parentStructures": ["鉄筋コンクリート造"],
        "structures": ["HPシェル構造"],
        "prefectures": "東京都",
        "areas": "関東",
        "location": "東京都文京区関口3-16-15",
        "lat": 35.714,
        "lng": 139.7273,
        "architects": [KENZO_TANGE],
        "likes": 7,
    },
    {
        "id": 4,
        "uid": "SK_1989_004",
        "title": "光の教会",
        "titleEn": "Church of the Light",
        "thumbnailUrl": "https://images.archi-catalog.example/4/thumb.jpg",
        "youtubeUrl": "https://www.youtube.com/watch?v=church-of-the-light",
        "completionYears": 1989,
        "parentBuildingTypes": ["宗教施設"],
        "buildingTypes": ["教会"],
        "parentStructures": ["鉄筋コンクリート造"],
        "structures": ["RC造"],
        "prefectures": "大阪府",
        "areas": "関西",
        "location": "大阪府茨木市北春日丘4-3-50",
        "lat": 34.8161,
        "lng": 135.5384,
        "architects": [TADAO_ANDO],
        "photos": [
            {
                "id": 401,
                "building_id": 4,
                "url": "https://images.archi-catalog.example/4/photos/401.jpg",
                "thumbnail_url": "https://images.archi-catalog.example/4/photos/401_thumb.jpg",
                "likes": 12,
                "created_at": _TIMESTAMP,
            }
        ],
        "likes": 31,
    },
    {
        "id": 5,
        "uid": "SK_2001_005",
        "title": "せんだいメディアテーク",
        "titleEn": "Sendai Mediatheque",
        "thumbnailUrl": "https://images.archi-catalog.example/5/thumb.jpg",
        "youtubeUrl": "",
        "completionYears": 2001,
        "parentBuildingTypes": ["文化施設"],
        "buildingTypes": ["図書館", "ギャラリー"],
        "parentStructures": ["鉄骨造"],
        "structures": ["チューブ構造"],
        "prefectures": "宮城県",
        "areas": "東北",
        "location": "宮城県仙台市青葉区春日町2-1",
        "lat": 38.2654,
        "lng": 140.8646,
        "architects": [TOYO_ITO],
        "likes": 15,
    },
    {
        "id": 6,
        "uid": "SK_2004_006",
        "title": "地中美術館",
        "titleEn": "Chichu Art Museum",
        "thumbnailUrl": "https://images.archi-catalog.example/6/thumb.jpg",
        "youtubeUrl": "",
        "completionYears": 2004,
        "parentBuildingTypes": ["文化施設"],
        "buildingTypes": ["美術館"],
        "parentStructures": ["鉄筋コンクリート造"],
        "structures": ["RC造"],
        "prefectures": "香川県",
        "areas": "四国",
        "location": "香川県香川郡直島町3449-1",
        "lat": 34.4483,
        "lng": 133.9879,
        "architects": [TADAO_ANDO],
        "likes": 26,
    },
    {
        "id": 7,
        "uid": "SK_2004_007",
        "title": "金沢21世紀美術館",
        "titleEn": "21st Century Museum of Contemporary Art, Kanazawa",
        "thumbnailUrl": "https://images.archi-catalog.example/7/thumb.jpg",
        "youtubeUrl": "",
        "completionYears": 2004,
        "parentBuildingTypes": ["文化施設"],
        "buildingTypes": ["美術館"],
        "parentStructures": ["鉄骨造"],
        "structures": ["S造"],
        "prefectures": "石川県",
        "areas": "中部",
        "location": "石川県金沢市広坂1-2-1",
        "lat": 36.5608,
        "lng": 136.6581,
        "architects": [KAZUYO_SEJIMA, RYUE_NISHIZAWA],
        "likes": 22,
    },
    {
        "id": 8,
        "uid": "SK_2006_008",
        "title": "表参道ヒルズ",
        "titleEn": "Omotesando Hills",
        "thumbnailUrl": "",
        "youtubeUrl": "",
        "completionYears": 2006,
        "parentBuildingTypes": ["商業施設", "住宅"],
        "buildingTypes": ["店舗", "集合住宅"],
        "parentStructures": ["鉄筋コンクリート造"],
        "structures": ["RC造", "S造"],
        "prefectures": "東京都",
        "areas": "関東",
        "location": "東京都渋谷区神宮前4-12-10",
        "lat": 35.6673,
        "lng": 139.709,
        "architects": [TADAO_ANDO],
        "likes": 9,
    },
    {
        "id": 9,
        "uid": "SK_2009_009",
        "title": "根津美術館",
        "titleEn": "Nezu Museum",
        "thumbnailUrl": "https://images.archi-catalog.example/9/thumb.jpg",
        "youtubeUrl": "",
        "completionYears": 2009,
        "parentBuildingTypes": ["文化施設"],
        "buildingTypes": ["美術館"],
        "parentStructures": ["鉄骨造", "鉄筋コンクリート造"],
        "structures": ["SRC造"],
        "prefectures": "東京都",
        "areas": "関東",
        "location": "東京都港区南青山6-5-1",
        "lat": 35.6623,
        "lng": 139.7175,
        "architects": [KENGO_KUMA],
        "likes": 18,
    },
    {
        "id": 10,
        "uid": "SK_2010_010",
        "title": "豊島美術館",
        "titleEn": "Teshima Art Museum",
        "thumbnailUrl": "https://images.archi-catalog.example/10/thumb.jpg",
        "youtubeUrl": "https://www.youtube.com/watch?v=teshima-art-museum",
        "completionYears": 2010,
        "parentBuildingTypes": ["文化施設"],
        "buildingTypes": ["美術館"],
        "parentStructures": ["鉄筋コンクリート造"],
        "structures": ["シェル構造"],
        "prefectures": "香川県",
        "areas": "四国",
        "location": "香川県小豆郡土庄町豊島唐櫃607",
        "lat": 34.4907,
        "lng": 134.0925,
        "architects": [RYUE_NISHIZAWA],
        "likes": 28,
    },
]

for _row in MOCK_BUILDING_ROWS:
    _row.setdefault("photos", [])
    _row.setdefault("created_at", _TIMESTAMP)
    _row.setdefault("updated_at", _TIMESTAMP)


def read_snapshot(path: Path) -> list[dict[str, Any]]:
    """Read building rows from a snapshot written by ``snapshot_export``."""
    if path.suffix == ".gz":
        with gzip.open(path, "rt", encoding="utf-8") as handle:
            payload = json.load(handle)
    else:
        payload = json.loads(path.read_text(encoding="utf-8"))
    items = payload.get("items") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise ValueError(f"Snapshot has no items list: {path}")
    return [item for item in items if isinstance(item, dict)]


def load_mock_buildings(path: str | None = None, clock: Clock = utc_now) -> list[Building]:
    rows = read_snapshot(Path(path)) if path else MOCK_BUILDING_ROWS
    return [normalize_building(row, clock) for row in rows]
