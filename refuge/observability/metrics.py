"""
Metrics definitions for refuge.

This module defines Prometheus metrics for monitoring
overview aggregation, safety evaluation and community flows.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
overview_requests = Counter(
    "overview_requests_total",
    "Number of overview aggregations served"
)

source_failures = Counter(
    "source_failures_total",
    "Upstream source fetch failures",
    ["source"]
)

overview_items = Counter(
    "overview_items_total",
    "Records emitted in overview results",
    ["section"]
)

safety_levels = Counter(
    "safety_level_total",
    "Safety status evaluations by level",
    ["level"]
)

tag_collisions = Counter(
    "tag_collisions_total",
    "Public tag uniqueness collisions during assignment"
)

tag_assignments = Counter(
    "tag_assignments_total",
    "Public tag assignment outcomes",
    ["result"]
)

neighbor_edges_created = Counter(
    "neighbor_edges_created_total",
    "Neighbor edges inserted"
)

resource_transitions = Counter(
    "resource_transitions_total",
    "Community resource status transitions",
    ["status"]
)

route_requests = Counter(
    "route_requests_total",
    "Route summary requests",
    ["result"]
)

hazards_ingested = Counter(
    "hazards_ingested_total",
    "New hazards stored from upstream feeds"
)

alerts_created = Counter(
    "alerts_created_total",
    "Hazard alerts raised by feed ingestion"
)

# 히스토그램 메트릭
overview_seconds = Histogram(
    "overview_duration_seconds",
    "Time spent building an overview",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0]
)

# 게이지 메트릭
uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
