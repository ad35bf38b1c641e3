"""
RouteSummaryAdapter 테스트

가짜 OSRM 응답으로 경로 정규화와 위험 회피 선택을 확인합니다.
"""

import json
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock
from refuge.core.errors import RouteUnavailable, ValidationError
from refuge.core.models import Location, RawRecord
from refuge.core.normalize import to_hazard
from refuge.core.route import (
    RouteSummaryAdapter, occurred_at, route_coordinates, score_route, step_instruction, summarize
)

ORIGIN = Location(lat=37.77, lon=-122.50)
DESTINATION = Location(lat=37.77, lon=-122.30)


def make_route(lat, distance, duration=600.0, points=21):
    """위도 lat을 따라 서->동으로 가는 직선 경로"""
    coords = [[-122.50 + 0.01 * i, lat] for i in range(points)]
    return {
        "distance": distance,
        "duration": duration,
        "geometry": {"type": "LineString", "coordinates": coords},
        "legs": [{"steps": [
            {"distance": 10.0, "name": "Market St", "maneuver": {"type": "depart"}},
            {"distance": distance - 10.0, "name": "Main St",
             "maneuver": {"type": "turn", "modifier": "left"}},
            {"distance": 0.0, "name": "", "maneuver": {"type": "arrive"}},
        ]}],
    }


def critical_quake(lat=37.77, lon=-122.40):
    return RawRecord(id="q1", lat=lat, lon=lon, source="usgs", type="earthquake",
                     attributes={"mag": 6.8})


class TestHelpers:

    def test_step_instruction(self):
        assert step_instruction({"name": "Main St", "maneuver": {"type": "turn", "modifier": "left"}}) \
            == "Turn left onto Main St"
        assert step_instruction({"maneuver": {"type": "depart"}}) == "Head out"
        assert step_instruction({"maneuver": {"type": "arrive"}, "name": "X"}) == "Arrive at destination"
        assert step_instruction({"maneuver": {"instruction": "Keep right"}}) == "Keep right"
        assert step_instruction({}) == "Continue"

    def test_route_coordinates_swaps_order(self):
        route = {"geometry": {"coordinates": [[-122.4, 37.7], [-122.3, 37.8]]}}
        assert route_coordinates(route) == [(37.7, -122.4), (37.8, -122.3)]

    def test_score_route(self):
        hazard = to_hazard(critical_quake(), ORIGIN)
        coords = route_coordinates(make_route(37.77, 10000))
        score, warnings = score_route(coords, [hazard])
        assert score == 10
        assert warnings[0].hazard_id == "q1"
        assert warnings[0].closest_distance_km < 8.0

    def test_score_route_clear(self):
        hazard = to_hazard(critical_quake(lat=38.5), ORIGIN)
        score, warnings = score_route(route_coordinates(make_route(37.77, 10000)), [hazard])
        assert (score, warnings) == (0, [])


class TestSummarize:

    def test_driving_uses_provider_duration(self):
        summary = summarize(make_route(37.77, 5000, duration=420.0))
        assert summary.distance_m == 5000
        assert summary.duration_s == 420.0
        assert summary.is_safe
        assert [s.instruction for s in summary.steps] == [
            "Head out onto Market St", "Turn left onto Main St", "Arrive at destination"
        ]
        geometry = json.loads(summary.geometry)
        assert geometry["type"] == "LineString"
        assert len(geometry["coordinates"]) == 21

    @pytest.mark.parametrize("mode,expected", [("walking", 3600.0), ("cycling", 1200.0)])
    def test_mode_speed(self, mode, expected):
        summary = summarize(make_route(37.77, 5000), mode)
        assert summary.duration_s == pytest.approx(expected)
        assert summary.travel_mode == mode

    def test_unknown_mode(self):
        with pytest.raises(ValidationError):
            summarize(make_route(37.77, 5000), "teleport")


class TestRouteSummaryAdapter:

    @pytest.fixture
    def provider(self):
        provider = AsyncMock()
        provider.fetch_routes.return_value = [
            make_route(37.77, 10000),   # 지진 진앙 통과
            make_route(38.00, 15000),   # 우회
        ]
        return provider

    @pytest.fixture
    def hazard_source(self):
        source = AsyncMock()
        source.name = "hazards"
        source.fetch_hazards.return_value = [critical_quake()]
        return source

    @pytest.mark.asyncio
    async def test_prefers_safer_alternative(self, provider, hazard_source):
        adapter = RouteSummaryAdapter(provider, hazard_source)
        summary = await adapter.get_route(ORIGIN, DESTINATION)

        assert summary.distance_m == 15000
        assert summary.is_safe
        assert summary.alternatives_considered == 2
        provider.fetch_routes.assert_awaited_once_with(ORIGIN, DESTINATION, 3)

    @pytest.mark.asyncio
    async def test_shortest_when_equally_safe(self, provider):
        summary = await RouteSummaryAdapter(provider).get_route(ORIGIN, DESTINATION)
        assert summary.distance_m == 10000

    @pytest.mark.asyncio
    async def test_warnings_when_no_safe_route(self, hazard_source):
        provider = AsyncMock()
        provider.fetch_routes.return_value = [make_route(37.77, 10000)]
        summary = await RouteSummaryAdapter(provider, hazard_source).get_route(ORIGIN, DESTINATION)
        assert not summary.is_safe
        assert summary.warnings[0].hazard_id == "q1"

    @pytest.mark.asyncio
    async def test_hazard_lookup_failure_still_routes(self, provider):
        source = AsyncMock()
        source.fetch_hazards.side_effect = ConnectionError("db gone")
        summary = await RouteSummaryAdapter(provider, source).get_route(ORIGIN, DESTINATION)
        assert summary.distance_m == 10000

    @pytest.mark.asyncio
    async def test_provider_error(self):
        provider = AsyncMock()
        provider.fetch_routes.side_effect = RouteUnavailable("NoRoute")
        with pytest.raises(RouteUnavailable):
            await RouteSummaryAdapter(provider).get_route(ORIGIN, DESTINATION)

    @pytest.mark.asyncio
    async def test_no_routes(self):
        provider = AsyncMock()
        provider.fetch_routes.return_value = []
        with pytest.raises(RouteUnavailable):
            await RouteSummaryAdapter(provider).get_route(ORIGIN, DESTINATION)

    @pytest.mark.asyncio
    async def test_invalid_mode_checked_first(self, provider):
        with pytest.raises(ValidationError):
            await RouteSummaryAdapter(provider).get_route(ORIGIN, DESTINATION, "boat")
        provider.fetch_routes.assert_not_called()


class TestHazardAge:

    NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

    def quake_at(self, when):
        raw = critical_quake()
        raw.attributes["time"] = when
        return raw

    async def route_with(self, raws, **kwargs):
        provider = AsyncMock()
        provider.fetch_routes.return_value = [make_route(37.77, 10000)]
        source = AsyncMock()
        source.fetch_hazards.return_value = raws
        adapter = RouteSummaryAdapter(provider, source, clock=lambda: self.NOW, **kwargs)
        return await adapter.get_route(ORIGIN, DESTINATION)

    @pytest.mark.asyncio
    async def test_old_hazard_ignored(self):
        summary = await self.route_with([self.quake_at("2026-03-01T00:00:00+00:00")])
        assert summary.is_safe
        assert summary.warnings == []

    @pytest.mark.asyncio
    async def test_recent_hazard_warns(self):
        summary = await self.route_with([self.quake_at("2026-03-09T00:00:00Z")])
        assert not summary.is_safe

    @pytest.mark.asyncio
    async def test_undated_hazard_kept(self):
        summary = await self.route_with([critical_quake()])
        assert not summary.is_safe

    @pytest.mark.asyncio
    async def test_age_filter_disabled(self):
        summary = await self.route_with([self.quake_at("2020-01-01T00:00:00")],
                                        max_hazard_age_hours=None)
        assert not summary.is_safe

    def test_occurred_at_parsing(self):
        h = to_hazard(self.quake_at("2026-03-09T00:00:00"), ORIGIN)
        assert occurred_at(h) == datetime(2026, 3, 9, tzinfo=timezone.utc)
        assert occurred_at(to_hazard(self.quake_at("yesterday"), ORIGIN)) is None
