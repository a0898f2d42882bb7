from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Callable

PREFECTURES = [
    "北海道",
    "青森県",
    "岩手県",
    "宮城県",
    "秋田県",
    "山形県",
    "福島県",
    "茨城県",
    "栃木県",
    "群馬県",
    "埼玉県",
    "千葉県",
    "東京都",
    "神奈川県",
    "新潟県",
    "富山県",
    "石川県",
    "福井県",
    "山梨県",
    "長野県",
    "岐阜県",
    "静岡県",
    "愛知県",
    "三重県",
    "滋賀県",
    "京都府",
    "大阪府",
    "兵庫県",
    "奈良県",
    "和歌山県",
    "鳥取県",
    "島根県",
    "岡山県",
    "広島県",
    "山口県",
    "徳島県",
    "香川県",
    "愛媛県",
    "高知県",
    "福岡県",
    "佐賀県",
    "長崎県",
    "熊本県",
    "大分県",
    "宮崎県",
    "鹿児島県",
    "沖縄県",
]

Clock = Callable[[], datetime]

LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")
LEADING_FLOAT_PATTERN = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
SLUG_STRIP_PATTERN = re.compile(r"[^a-z0-9\s-]")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def text_or_empty(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def split_comma_separated(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        parts = [str(item) for item in value if item is not None]
    else:
        parts = str(value).split(",")
    return [part.strip() for part in parts if part.strip()]


def parse_year(value: Any, default: int) -> tuple[int, bool]:
    """Parse a completion year, falling back to ``default``.

    Leading digits win ("1989年" -> 1989). The second item tells whether the
    fallback was used.
    """
    if isinstance(value, bool):
        return default, True
    if isinstance(value, int):
        return value, False
    if isinstance(value, float) and math.isfinite(value):
        return int(value), False
    if isinstance(value, str):
        match = LEADING_INT_PATTERN.match(value)
        if match:
            return int(match.group(1)), False
    return default, True


def parse_coordinate(value: Any) -> tuple[float, bool]:
    if value is None or isinstance(value, bool):
        return 0.0, True
    if isinstance(value, (int, float)):
        numeric = float(value)
    else:
        match = LEADING_FLOAT_PATTERN.match(str(value))
        if not match:
            return 0.0, True
        numeric = float(match.group(1))
    if not math.isfinite(numeric):
        return 0.0, True
    return numeric, False


def parse_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def building_slug(building_id: int, title: str) -> str:
    text = SLUG_STRIP_PATTERN.sub("", (title or "").lower())
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text).strip()
    return f"{building_id}-{text[:50]}"


def id_from_slug(slug: str) -> int | None:
    head = (slug or "").split("-", 1)[0]
    match = LEADING_INT_PATTERN.match(head)
    if not match:
        return None
    return int(match.group(1))
