"""
Shelter file loader for refuge.

This module loads shelter / help-resource rows from CSV or Excel
files so they can be imported into the shelter table.
"""

import os
import csv
from typing import Any, Dict, List, Optional
import openpyxl
from refuge.common.geo import validate_coordinates
from refuge.observability.logging_setup import get_logger

log = get_logger("refuge.shelter_file")

Shelter = Dict[str, Any]

# 표준 필드 -> 허용 헤더 (소문자 비교)
COLUMN_ALIASES = {
    "name": ("name", "facility name", "facility"),
    "lat": ("lat", "latitude", "latitude (epsg4326)"),
    "lon": ("lon", "lng", "longitude", "longitude (epsg4326)"),
    "address": ("address", "lot-based full address", "full address"),
    "type": ("type", "category", "amenity"),
    "status": ("status",),
    "capacity": ("capacity", "beds"),
    "phone": ("phone", "telephone"),
}

REQUIRED = ("name", "lat", "lon")

def _map_headers(headers: List[Any]) -> Dict[str, int]:
    """헤더 목록에서 표준 필드별 컬럼 인덱스를 찾습니다."""
    lowered = {str(h).strip().lower(): i for i, h in enumerate(headers) if h is not None}
    idx = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lowered:
                idx[field] = lowered[alias]
                break

    missing = [f for f in REQUIRED if f not in idx]
    if missing:
        raise ValueError(f"필수 컬럼을 찾을 수 없습니다: {missing}. 사용 가능한 컬럼: {headers}")
    return idx

def _cell(row: List[Any], idx: Dict[str, int], field: str) -> Optional[Any]:
    i = idx.get(field)
    if i is None or i >= len(row):
        return None
    value = row[i]
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value.strip() if isinstance(value, str) else value

def _to_shelter(row: List[Any], idx: Dict[str, int], row_num: int) -> Optional[Shelter]:
    name = _cell(row, idx, "name")
    if not name:
        return None

    lat_val = _cell(row, idx, "lat")
    lon_val = _cell(row, idx, "lon")
    try:
        lat = float(lat_val)
        lon = float(lon_val)
    except (ValueError, TypeError):
        log.warning(f"행 {row_num} 위도/경도 변환 실패: lat={lat_val}, lon={lon_val}")
        return None

    if not validate_coordinates(lat, lon):
        log.warning(f"행 {row_num} 좌표 범위 벗어남: lat={lat}, lon={lon}")
        return None

    capacity = _cell(row, idx, "capacity")
    try:
        capacity = int(float(capacity)) if capacity is not None else None
    except (ValueError, TypeError):
        capacity = None

    return {
        "name": str(name),
        "lat": lat,
        "lon": lon,
        "address": str(_cell(row, idx, "address") or ""),
        "type": _cell(row, idx, "type"),
        "status": _cell(row, idx, "status"),
        "capacity": capacity,
        "phone": str(_cell(row, idx, "phone")) if _cell(row, idx, "phone") is not None else None,
    }

def load_shelters(path: str) -> List[Shelter]:
    """대피소 데이터를 파일에서 로드합니다 (.csv, .xlsx)."""
    ext = os.path.splitext(path)[1].lower()
    rows: List[Shelter] = []

    if ext == ".csv":
        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.reader(f)
            headers = next(reader, [])
            idx = _map_headers(headers)
            for row_num, row in enumerate(reader, start=2):
                shelter = _to_shelter(row, idx, row_num)
                if shelter:
                    rows.append(shelter)
    elif ext in (".xlsx", ".xlsm"):
        wb = openpyxl.load_workbook(path, data_only=True, read_only=True)
        try:
            ws = wb.active
            it = ws.iter_rows(values_only=True)
            headers = list(next(it, ()))
            idx = _map_headers(headers)
            log.info(f"엑셀 헤더 확인: {headers}")
            for row_num, row in enumerate(it, start=2):
                shelter = _to_shelter(list(row), idx, row_num)
                if shelter:
                    rows.append(shelter)
        finally:
            wb.close()
    else:
        raise ValueError(f"지원하지 않는 파일 형식: {ext}")

    log.info(f"대피소 데이터 로드됨 path:{path} count:{len(rows)}")
    return rows
