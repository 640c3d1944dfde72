"""
Segment synthesis for candidate routes.

Routes are not snapped to a road network. A route is drawn as a straight line
between its endpoints, cut into equal pieces, and each piece gets:
  - a flood risk level from the route's risk profile (rule table below)
  - a road type cycling by index (highway / major / local)
  - a duration from the fixed average speed

Risk profiles:
  safe       low on every 3rd segment, none elsewhere
  medium     medium on every 2nd segment, low elsewhere
  dangerous  medium -> high -> extreme by thirds, worsening toward the
             destination (approaching a known flood zone)
"""

import math
from typing import List

from .models import FloodRisk, RiskProfile, RoadType, RoutePoint, RouteSegment

EARTH_RADIUS_KM = 6371.0

# Routes longer than this are cut into more segments
LONG_ROUTE_THRESHOLD_M = 100_000
SHORT_ROUTE_SEGMENTS = 3
LONG_ROUTE_SEGMENTS = 5


def haversine_km(a: RoutePoint, b: RoutePoint) -> float:
    """Great-circle distance in km between two points."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lon - a.lon)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # rounding can push h just past 1 for antipodal points
    h = min(1.0, h)
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def interpolate(start: RoutePoint, end: RoutePoint, fraction: float) -> RoutePoint:
    """Point `fraction` of the way from start to end, each axis independently."""
    return RoutePoint(
        lat=start.lat + (end.lat - start.lat) * fraction,
        lon=start.lon + (end.lon - start.lon) * fraction,
    )


def duration_for_distance(distance_m: float, speed_kmh: float) -> int:
    """Seconds to cover distance_m at speed_kmh."""
    return int(round(distance_m / speed_kmh * 3.6))


def segment_count_for(total_distance_m: float) -> int:
    if total_distance_m > LONG_ROUTE_THRESHOLD_M:
        return LONG_ROUTE_SEGMENTS
    return SHORT_ROUTE_SEGMENTS


def risk_for_segment(profile: RiskProfile, index: int, count: int) -> FloodRisk:
    if profile is RiskProfile.SAFE:
        return FloodRisk.LOW if index % 3 == 0 else FloodRisk.NONE
    if profile is RiskProfile.MEDIUM:
        return FloodRisk.MEDIUM if index % 2 == 0 else FloodRisk.LOW
    if profile is RiskProfile.DANGEROUS:
        # integer thirds: 3 segments -> M,H,E ; 5 segments -> M,M,H,H,E
        if 3 * index < count:
            return FloodRisk.MEDIUM
        if 3 * index < 2 * count:
            return FloodRisk.HIGH
        return FloodRisk.EXTREME
    raise ValueError(f"Unknown risk profile: {profile!r}")


def road_type_for_segment(index: int) -> RoadType:
    if index % 3 == 0:
        return RoadType.HIGHWAY
    if index % 2 == 0:
        return RoadType.MAJOR
    return RoadType.LOCAL


def profile_for_index(index: int) -> RiskProfile:
    """Risk banding by route position: 0 safe, 1 medium, 2+ dangerous."""
    if index <= 0:
        return RiskProfile.SAFE
    if index == 1:
        return RiskProfile.MEDIUM
    return RiskProfile.DANGEROUS


def synthesize_segments(
    start: RoutePoint,
    end: RoutePoint,
    total_distance_m: float,
    profile: RiskProfile,
    speed_kmh: float,
    count: int | None = None,
) -> List[RouteSegment]:
    """
    Cut the start->end line into `count` equal segments (default from
    segment_count_for). Consecutive segments share their boundary point, the
    first starts at `start` and the last ends exactly at `end`.
    Zero-length routes still produce segments.
    """
    n = count if count is not None else segment_count_for(total_distance_m)
    if n < 1:
        raise ValueError(f"Segment count must be positive, got {n}")

    seg_distance = int(round(total_distance_m / n))
    seg_duration = duration_for_distance(seg_distance, speed_kmh)

    boundaries = [start]
    for i in range(1, n):
        boundaries.append(interpolate(start, end, i / n))
    boundaries.append(end)

    return [
        RouteSegment(
            start_point=boundaries[i],
            end_point=boundaries[i + 1],
            distance_m=seg_distance,
            duration_s=seg_duration,
            flood_risk=risk_for_segment(profile, i, n),
            road_type=road_type_for_segment(i),
        )
        for i in range(n)
    ]
