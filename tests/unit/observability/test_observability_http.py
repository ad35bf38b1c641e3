"""
Observability 모듈 단위 테스트

이 모듈은 헬스 체크, 메트릭, 로깅, 오류 응답 매핑을 테스트합니다.
"""

import pytest
from unittest.mock import Mock, patch
from fastapi.testclient import TestClient
from refuge.core.errors import (
    InvalidStateTransition, NotFoundError, RouteUnavailable, SelfReferenceError,
    SourceUnavailable, TagAssignmentExhausted, ValidationError
)
from refuge.observability.health import create_app, status_for
from refuge.observability.metrics import (
    overview_requests, source_failures, tag_collisions, overview_seconds, uptime_seconds
)
from refuge.observability.logging_setup import setup_logging_dev, get_logger, InterceptHandler


class TestHealthEndpoints:
    """헬스 체크 엔드포인트 테스트"""

    @pytest.fixture
    def client(self, sample_settings):
        """테스트용 클라이언트 (도메인 서비스 없이)"""
        return TestClient(create_app(sample_settings))

    def test_health_endpoint(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "test-service"
        assert "timestamp" in data

    def test_ready_endpoint(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_ready_endpoint_database_unavailable(self, sample_settings, tmp_path):
        sample_settings.database.path = str(tmp_path / "missing" / "refuge.db")
        client = TestClient(create_app(sample_settings))

        assert client.get("/ready").status_code == 503

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "overview_requests_total" in response.text
        assert "uptime_seconds" in response.text

    def test_metrics_disabled(self, sample_settings):
        sample_settings.observability.metrics_enabled = False
        client = TestClient(create_app(sample_settings))

        assert client.get("/metrics").status_code == 503

    def test_info_endpoint(self, client):
        data = client.get("/info").json()

        assert data["service"] == "test-service"
        assert data["version"] == "1.0.0"
        assert data["metrics_enabled"] is True
        assert data["uptime_seconds"] >= 0

    def test_root_endpoint_without_services(self, client):
        endpoints = client.get("/").json()["endpoints"]

        assert endpoints["health"] == "/health"
        assert "overview" not in endpoints
        assert client.get("/overview", params={"lat": 0, "lon": 0}).status_code == 404


class TestErrorStatus:
    """도메인 오류 -> HTTP 상태 코드 매핑 테스트"""

    @pytest.mark.parametrize("error,status", [
        (ValidationError("bad"), 400),
        (SelfReferenceError("1"), 400),
        (NotFoundError("missing"), 404),
        (InvalidStateTransition("1", "active", "completed"), 409),
        (TagAssignmentExhausted("1", 5), 409),
        (RouteUnavailable("down"), 502),
        (SourceUnavailable("usgs"), 503),
    ])
    def test_status_for(self, error, status):
        assert status_for(error) == status


class TestMetricsCollection:
    """메트릭 수집 테스트"""

    def test_counter(self):
        before = overview_requests._value.get()
        overview_requests.inc()
        assert overview_requests._value.get() == before + 1

    def test_labelled_counter(self):
        before = source_failures.labels(source="usgs")._value.get()
        source_failures.labels(source="usgs").inc(2)
        assert source_failures.labels(source="usgs")._value.get() == before + 2

    def test_tag_collisions(self):
        before = tag_collisions._value.get()
        tag_collisions.inc()
        assert tag_collisions._value.get() == before + 1

    def test_histogram_timer(self):
        before = overview_seconds._sum.get()
        with overview_seconds.time():
            pass
        assert overview_seconds._sum.get() >= before

    def test_uptime_gauge(self):
        uptime_seconds.set(12.5)
        assert uptime_seconds._value.get() == 12.5


class TestLoggingSetup:
    """로깅 설정 테스트"""

    def test_intercept_handler_emit(self):
        handler = InterceptHandler()

        record = Mock()
        record.levelname = "INFO"
        record.levelno = 20
        record.getMessage.return_value = "Test message"
        record.exc_info = None

        with patch('refuge.observability.logging_setup.logger') as mock_logger:
            mock_logger.level.return_value.name = "INFO"
            handler.emit(record)

            mock_logger.opt.assert_called_once()
            mock_logger.opt.return_value.log.assert_called_once_with("INFO", "Test message")

    def test_intercept_handler_emit_invalid_level(self):
        handler = InterceptHandler()

        record = Mock()
        record.levelname = "INVALID"
        record.levelno = 99
        record.getMessage.return_value = "Test message"
        record.exc_info = None

        with patch('refuge.observability.logging_setup.logger') as mock_logger:
            mock_logger.level.side_effect = ValueError("unknown level")
            handler.emit(record)

            mock_logger.opt.return_value.log.assert_called_once_with(99, "Test message")

    def test_setup_logging_dev(self):
        with patch('logging.basicConfig') as mock_basic_config:
            setup_logging_dev(log_level="DEBUG")

            mock_basic_config.assert_called_once()

    def test_get_logger_binds_name(self):
        with patch('refuge.observability.logging_setup.logger') as mock_logger:
            get_logger("refuge.test", request_id="r1")

            mock_logger.bind.assert_called_once_with(name="refuge.test", request_id="r1")
