import asyncio
import time

import httpx
import pytest

from saferoute.hazards import GeminiHazardClient, HazardBackend
from saferoute.models import FloodRisk, RoutePoint, Severity
from saferoute.routing import DistanceOverride, RouteSafetyEngine


def find(engine, start, end):
    return asyncio.run(engine.find_safe_routes(start, end))


class StaticClient:
    """Hazard client returning a canned payload."""

    def __init__(self, payload):
        self.payload = payload
        self.calls = 0

    async def fetch_routes(self, start, end):
        self.calls += 1
        return self.payload


class FailingClient:
    async def fetch_routes(self, start, end):
        raise httpx.ConnectError("connection refused")


class SlowClient:
    async def fetch_routes(self, start, end):
        await asyncio.sleep(5)
        return {}


EXTERNAL_PAYLOAD = {
    "routes": [
        {
            "name": "Padma Bridge Route",
            "distance": 265000,
            "duration": 18000,
            "safetyScore": 88,
            "hazards": [],
        },
        {
            "name": "Via Faridpur",
            "distance": 250000,
            "duration": 17500,
            "safetyScore": 70,
            "hazards": [
                {
                    "type": "waterlogging",
                    "description": "Standing water near Faridpur bus stand",
                    "severity": "warning",
                    "location": {"lat": 23.6, "lon": 89.84},
                }
            ],
        },
        {
            "name": "Direct via Gopalganj",
            "distance": 240000,
            "duration": 19000,
            "safetyScore": 40,
            "hazards": [
                {"type": "flooding", "description": "River overflow", "severity": "danger"},
            ],
        },
    ]
}


def test_dhaka_khulna_scenario():
    routes = find(RouteSafetyEngine(), "Dhaka", "Khulna")
    safest, balanced, shortest = routes

    assert [r.name for r in routes] == ["Safest Route", "Balanced Route", "Shortest Route"]
    assert balanced.total_distance_m == 270000
    assert safest.safety_score == 92
    assert len(shortest.safety_issues) == 2
    assert "Dhaka-Khulna" in balanced.safety_issues[0].description


def test_override_is_order_and_case_independent():
    engine = RouteSafetyEngine()
    reverse = find(engine, "KHULNA", "  dhaka ")
    assert reverse[1].total_distance_m == 270000


def test_route_scaling():
    routes = find(RouteSafetyEngine(), "Dhaka", "Khulna")
    # 270 km at 50 km/h
    base_duration = 19440
    assert [r.total_distance_m for r in routes] == [310500, 270000, 243000]
    assert [r.total_duration_s for r in routes] == [
        round(base_duration * 1.3),
        base_duration,
        round(base_duration * 1.1),
    ]


def test_safety_ordering_and_issues():
    safest, balanced, shortest = find(RouteSafetyEngine(), "Gulshan", "Motijheel")

    assert safest.safety_score > balanced.safety_score > shortest.safety_score
    assert safest.safety_issues == []

    (warning,) = balanced.safety_issues
    assert warning.severity is Severity.WARNING
    assert warning.type == "flooding"
    assert warning.description == "Moderate flooding reported on part of the route"

    assert [i.type for i in shortest.safety_issues] == ["flooding", "closure"]
    assert all(i.severity is Severity.DANGER for i in shortest.safety_issues)


def test_issue_locations_along_line():
    start = RoutePoint(lat=20.0, lon=90.0)
    end = RoutePoint(lat=21.0, lon=91.0)
    _, balanced, shortest = find(RouteSafetyEngine(), start, end)

    loc = balanced.safety_issues[0].location
    assert (loc.lat, loc.lon) == pytest.approx((20.4, 90.4))
    flood, closure = shortest.safety_issues
    assert (flood.location.lat, flood.location.lon) == pytest.approx((20.3, 90.3))
    assert (closure.location.lat, closure.location.lon) == pytest.approx((20.7, 90.7))


def test_segments_contiguous_for_every_route():
    for route in find(RouteSafetyEngine(), "Dhaka", "Sylhet"):
        segs = route.segments
        assert segs[0].start_point == route.start_location
        assert segs[-1].end_point == route.end_location
        for a, b in zip(segs, segs[1:]):
            assert a.end_point == b.start_point


def test_segment_count_follows_route_length():
    # Gulshan -> Motijheel is a few km; Dhaka -> Khulna is 270 km
    assert all(len(r.segments) == 3 for r in find(RouteSafetyEngine(), "Gulshan", "Motijheel"))
    assert all(len(r.segments) == 5 for r in find(RouteSafetyEngine(), "Dhaka", "Khulna"))


def test_shortest_route_ends_in_extreme_risk():
    routes = find(RouteSafetyEngine(), "Dhaka", "Khulna")
    assert routes[2].segments[-1].flood_risk is FloodRisk.EXTREME
    assert all(s.flood_risk in (FloodRisk.NONE, FloodRisk.LOW) for s in routes[0].segments)


def test_identical_points():
    origin = RoutePoint(lat=0, lon=0)
    routes = find(RouteSafetyEngine(), origin, RoutePoint(lat=0, lon=0))

    assert len(routes) == 3
    assert all(r.total_distance_m == 0 and r.total_duration_s == 0 for r in routes)
    assert all(len(r.segments) == 3 for r in routes)


def test_points_pass_through_unchanged():
    start = RoutePoint(lat=23.7, lon=90.4, name="Home")
    routes = find(RouteSafetyEngine(), start, "Dhanmondi")
    assert routes[0].start_location == start
    assert routes[0].end_location.name == "Dhanmondi"


def test_custom_override_table():
    engine = RouteSafetyEngine(
        overrides=[
            DistanceOverride(
                names=frozenset({"dhaka", "sylhet"}),
                distance_km=240.0,
                moderate_flooding="Flooding near Bhairab",
                severe_flooding="Severe flooding near Brahmanbaria",
                closure="Closure at Shaistaganj",
            )
        ]
    )
    _, balanced, shortest = find(engine, "Sylhet", "Dhaka")
    assert balanced.total_distance_m == 240000
    assert balanced.safety_issues[0].description == "Flooding near Bhairab"
    assert shortest.safety_issues[1].description == "Closure at Shaistaganj"

    # the default pair is no longer known
    assert find(engine, "Dhaka", "Khulna")[1].total_distance_m != 270000


def test_external_routes_used_when_backend_enabled():
    client = StaticClient(EXTERNAL_PAYLOAD)
    engine = RouteSafetyEngine(
        hazard_backend=HazardBackend(enabled=True, client=client, intermediate_points=3)
    )
    routes = find(engine, "Dhaka", "Khulna")

    assert client.calls == 1
    assert [r.name for r in routes] == ["Padma Bridge Route", "Via Faridpur", "Direct via Gopalganj"]
    assert [r.id for r in routes] == ["route-1", "route-2", "route-3"]
    assert routes[0].total_distance_m == 265000
    assert routes[1].total_duration_s == 17500
    assert routes[2].safety_score == 40

    issue = routes[1].safety_issues[0]
    assert issue.type == "waterlogging"
    assert issue.severity is Severity.WARNING
    assert (issue.location.lat, issue.location.lon) == (23.6, 89.84)
    assert routes[2].safety_issues[0].location is None

    for r in routes:
        assert len(r.segments) == 4
        assert r.segments[-1].end_point == r.end_location
    assert routes[2].segments[-1].flood_risk is FloodRisk.EXTREME


def test_disabled_backend_is_not_called():
    client = StaticClient(EXTERNAL_PAYLOAD)
    engine = RouteSafetyEngine(hazard_backend=HazardBackend(enabled=False, client=client))
    routes = find(engine, "Dhaka", "Khulna")
    assert client.calls == 0
    assert routes[0].name == "Safest Route"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"routes": []},
        {"routes": "three routes"},
        # one bad entry rejects the whole payload
        {"routes": [EXTERNAL_PAYLOAD["routes"][0], {"name": "Broken", "distance": "far"}]},
        {"routes": [dict(EXTERNAL_PAYLOAD["routes"][0], safetyScore=140)]},
        None,
    ],
)
def test_malformed_payload_falls_back(payload):
    engine = RouteSafetyEngine(hazard_backend=HazardBackend(enabled=True, client=StaticClient(payload)))
    routes = find(engine, "Dhaka", "Khulna")
    assert [r.name for r in routes] == ["Safest Route", "Balanced Route", "Shortest Route"]


def test_network_error_falls_back():
    engine = RouteSafetyEngine(hazard_backend=HazardBackend(enabled=True, client=FailingClient()))
    routes = find(engine, "Dhaka", "Khulna")
    assert routes[1].total_distance_m == 270000


def test_timeout_falls_back():
    engine = RouteSafetyEngine(
        hazard_backend=HazardBackend(enabled=True, client=SlowClient(), timeout_s=0.01)
    )
    routes = find(engine, "Gulshan", "Uttara")
    assert routes[0].safety_score == 92


def test_http_500_falls_back():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="internal error"))
    client = GeminiHazardClient(api_key="real-looking-key", transport=transport)
    engine = RouteSafetyEngine(hazard_backend=HazardBackend(enabled=True, client=client))

    routes = find(engine, "Dhaka", "Khulna")
    assert [r.safety_score for r in routes] == [92, 75, 45]


def test_antipodal_endpoints_still_route():
    a = RoutePoint(lat=51.0579, lon=-32.3125)
    b = RoutePoint(lat=-51.0579, lon=147.6875)
    routes = find(RouteSafetyEngine(), a, b)
    assert len(routes) == 3
    assert all(len(r.segments) == 5 for r in routes)


def test_only_safest_route_crosses_long_route_threshold():
    # 0.81 degrees of latitude is about 90 km; x1.15 is about 103.6 km
    start = RoutePoint(lat=22.0, lon=90.0)
    end = RoutePoint(lat=22.81, lon=90.0)
    safest, balanced, shortest = find(RouteSafetyEngine(), start, end)

    assert 88_000 < balanced.total_distance_m < 92_000
    assert safest.total_distance_m > 100_000
    assert [len(r.segments) for r in (safest, balanced, shortest)] == [5, 3, 3]


def test_simulated_latency_is_applied():
    engine = RouteSafetyEngine(latency_s=0.05)
    started = time.monotonic()
    routes = find(engine, "Dhaka", "Khulna")
    assert time.monotonic() - started >= 0.04
    assert routes[1].total_distance_m == 270000
