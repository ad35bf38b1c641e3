"""
Resource categorization for refuge.

Maps a resource's raw type string from any source onto the closed set
of client-facing categories plus a display label. Total: every input,
including None, maps to exactly one category.
"""

from typing import Optional, Tuple
from .models import ResourceCategory

DEFAULT_CATEGORY: ResourceCategory = "shelter"
DEFAULT_LABEL = "Emergency Shelter"

# rawType -> (category, 고정 라벨 또는 None이면 rawType 첫 글자 대문자)
CATEGORY_MAP = {
    "hospital": ("medical", None),
    "clinic": ("medical", None),
    "fire_station": ("emergency", "Fire Station"),
    "police": ("emergency", None),
    "ambulance": ("emergency", None),
    "supply": ("supplies", "Supplies"),
    "pharmacy": ("supplies", None),
    "supermarket": ("supplies", None),
}

def normalize_raw_type(raw_type: Optional[str]) -> str:
    if not raw_type:
        return ""
    return str(raw_type).strip().lower()

def categorize(raw_type: Optional[str]) -> Tuple[ResourceCategory, str]:
    """
    원시 자원 유형을 카테고리와 표시 라벨로 변환합니다.

    Args:
        raw_type: 소스가 제공한 유형 문자열 (대소문자 무관, None 허용)

    Returns:
        (카테고리, 라벨). 알 수 없는 유형은 ("shelter", "Emergency Shelter")
    """
    key = normalize_raw_type(raw_type)
    entry = CATEGORY_MAP.get(key)
    if entry is None:
        return DEFAULT_CATEGORY, DEFAULT_LABEL

    category, label = entry
    return category, label or key.capitalize()
