"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
import asyncio
import tempfile
import os
from unittest.mock import AsyncMock
from refuge.settings import Settings
from refuge.core.models import Location, RawRecord


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def sample_settings(temp_db_path):
    """테스트용 설정"""
    settings = Settings()
    settings.database.path = temp_db_path
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.observability.http_port = 8080
    return settings


@pytest.fixture
def observer():
    """테스트용 관찰자 위치 (샌프란시스코)"""
    return Location(lat=37.7749, lon=-122.4194)


@pytest.fixture
def make_source():
    """name 속성을 가진 AsyncMock 소스 생성기"""
    def _make(name, method, records=None, error=None):
        source = AsyncMock()
        source.name = name
        fetch = getattr(source, method)
        if error is not None:
            fetch.side_effect = error
        else:
            fetch.return_value = list(records or [])
        return source
    return _make


@pytest.fixture
def sample_hazards():
    """테스트용 원시 위험 레코드"""
    return [
        RawRecord(id="1", lat=37.78, lon=-122.42, source="usgs", type="earthquake",
                  attributes={"mag": 6.5, "place": "near SF"}),
        RawRecord(id="2", lat=37.90, lon=-122.30, source="usgs", type="earthquake",
                  attributes={"mag": 4.7}),
        RawRecord(id="3", lat=34.05, lon=-118.24, source="usgs", type="earthquake",
                  attributes={"mag": 3.1}),
    ]


@pytest.fixture
def sample_shelters():
    """테스트용 원시 자원 레코드"""
    return [
        RawRecord(id="10", lat=37.7760, lon=-122.4180, source="shelters", type="hospital",
                  attributes={"name": "General Hospital", "status": "open", "capacity": 200}),
        RawRecord(id="11", lat=37.7800, lon=-122.4100, source="shelters", type="fire_station",
                  attributes={"name": "Station 7"}),
        RawRecord(id="12", lat=37.8000, lon=-122.4000, source="shelters", type=None,
                  attributes={"status": "full"}),
    ]


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: 느린 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 비동기 테스트에 asyncio 마커 추가
        if asyncio.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)

        # 통합 테스트 마커 추가
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
