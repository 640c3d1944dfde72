"""
RouteSafetyEngine: three candidate routes between two endpoints.

  1. Resolve names to points (GeocodeResolver)
  2. Baseline distance: haversine, or a known road distance for listed city pairs
  3. Baseline duration at a fixed average speed
  4. If a hazard backend is enabled, try it once; any failure is logged and ignored
  5. Otherwise scale the baseline into Safest / Balanced / Shortest routes

Route totals are the scaled (or external) values. Segments are illustrative
map data and do not necessarily sum to the totals.
"""

import asyncio
import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from . import config
from .flood_risk import (
    duration_for_distance,
    haversine_km,
    interpolate,
    profile_for_index,
    synthesize_segments,
)
from .geocoding import GeocodeResolver, normalize_name
from .hazards import HazardBackend, parse_routes_payload
from .models import (
    ExternalRoutesPayload,
    RiskProfile,
    Route,
    RoutePoint,
    SafetyIssue,
    Severity,
)

logger = logging.getLogger(__name__)

Endpoint = Union[str, RoutePoint]


class DistanceOverride(BaseModel):
    """Known road distance for a city pair, plus hazard text for that corridor."""
    model_config = ConfigDict(frozen=True)

    names: FrozenSet[str]
    distance_km: float
    moderate_flooding: str
    severe_flooding: str
    closure: str


DEFAULT_OVERRIDES = (
    DistanceOverride(
        names=frozenset({"dhaka", "khulna"}),
        distance_km=270.0,
        moderate_flooding="Moderate flooding reported near Mawa on the Dhaka-Khulna highway",
        severe_flooding="Severe flooding reported around Gopalganj on the direct road",
        closure="Road closed near Jessore bypass due to waterlogging",
    ),
)

GENERIC_MODERATE_FLOODING = "Moderate flooding reported on part of the route"
GENERIC_SEVERE_FLOODING = "Severe flooding reported on the direct road"
GENERIC_CLOSURE = "Road closure reported ahead due to flood damage"


class RouteVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    profile: RiskProfile
    distance_factor: float
    duration_factor: float
    safety_score: int


ROUTE_VARIANTS = (
    RouteVariant(
        id="route-1", name="Safest Route", profile=RiskProfile.SAFE,
        distance_factor=1.15, duration_factor=1.3, safety_score=92,
    ),
    RouteVariant(
        id="route-2", name="Balanced Route", profile=RiskProfile.MEDIUM,
        distance_factor=1.0, duration_factor=1.0, safety_score=75,
    ),
    RouteVariant(
        id="route-3", name="Shortest Route", profile=RiskProfile.DANGEROUS,
        distance_factor=0.9, duration_factor=1.1, safety_score=45,
    ),
)


def _pair_key(a: Optional[str], b: Optional[str]) -> Optional[FrozenSet[str]]:
    if not a or not b:
        return None
    return frozenset({normalize_name(a), normalize_name(b)})


class RouteSafetyEngine:
    def __init__(
        self,
        resolver: Optional[GeocodeResolver] = None,
        hazard_backend: Optional[HazardBackend] = None,
        overrides: Iterable[DistanceOverride] = DEFAULT_OVERRIDES,
        speed_kmh: float = config.AVERAGE_SPEED_KMH,
        latency_s: float = 0.0,
    ):
        self.resolver = resolver or GeocodeResolver()
        self.hazard_backend = hazard_backend or HazardBackend.disabled()
        self.overrides: Dict[FrozenSet[str], DistanceOverride] = {o.names: o for o in overrides}
        self.speed_kmh = speed_kmh
        self.latency_s = latency_s

    async def _to_point(self, endpoint: Endpoint) -> RoutePoint:
        if isinstance(endpoint, RoutePoint):
            return endpoint
        return await self.resolver.resolve(endpoint)

    def find_override(self, start: RoutePoint, end: RoutePoint) -> Optional[DistanceOverride]:
        key = _pair_key(start.name, end.name)
        if key is None:
            return None
        return self.overrides.get(key)

    def baseline_distance_m(self, start: RoutePoint, end: RoutePoint) -> float:
        override = self.find_override(start, end)
        if override is not None:
            return override.distance_km * 1000
        return haversine_km(start, end) * 1000

    async def find_safe_routes(self, start: Endpoint, end: Endpoint) -> List[Route]:
        start_point = await self._to_point(start)
        end_point = await self._to_point(end)

        override = self.find_override(start_point, end_point)
        distance_m = self.baseline_distance_m(start_point, end_point)
        duration_s = duration_for_distance(distance_m, self.speed_kmh)

        logger.info(
            "[ROUTING] %s -> %s: %.1f km, %d s%s",
            start_point.name or (start_point.lat, start_point.lon),
            end_point.name or (end_point.lat, end_point.lon),
            distance_m / 1000,
            duration_s,
            " (known road distance)" if override else "",
        )

        if self.hazard_backend.active:
            routes = await self._try_external(start_point, end_point)
            if routes is not None:
                return routes

        if self.latency_s > 0:
            await asyncio.sleep(self.latency_s)

        return self.generate_routes(start_point, end_point, distance_m, duration_s, override)

    async def _try_external(self, start: RoutePoint, end: RoutePoint) -> Optional[List[Route]]:
        """One attempt at the hazard backend. None means fall back."""
        backend = self.hazard_backend
        try:
            data = await asyncio.wait_for(
                backend.client.fetch_routes(start, end), timeout=backend.timeout_s
            )
            payload = parse_routes_payload(data)
            routes = self.routes_from_external(payload, start, end)
        except Exception as e:
            # best effort only; the deterministic routes are always available
            logger.warning("[HAZARDS] backend failed, using deterministic routes: %r", e)
            return None
        logger.info("[HAZARDS] using %d routes from hazard backend", len(routes))
        return routes

    def routes_from_external(
        self, payload: ExternalRoutesPayload, start: RoutePoint, end: RoutePoint
    ) -> List[Route]:
        count = self.hazard_backend.intermediate_points + 1
        routes = []
        for idx, ext in enumerate(payload.routes):
            routes.append(
                Route(
                    id=f"route-{idx + 1}",
                    name=ext.name,
                    start_location=start,
                    end_location=end,
                    segments=synthesize_segments(
                        start, end, ext.distance, profile_for_index(idx), self.speed_kmh, count=count
                    ),
                    total_distance_m=int(round(ext.distance)),
                    total_duration_s=int(round(ext.duration)),
                    safety_score=ext.safetyScore,
                    safety_issues=[
                        SafetyIssue(
                            type=h.type,
                            description=h.description,
                            severity=h.severity,
                            location=(
                                RoutePoint(lat=h.location.lat, lon=h.location.lon)
                                if h.location else None
                            ),
                        )
                        for h in ext.hazards
                    ],
                )
            )
        return routes

    def generate_routes(
        self,
        start: RoutePoint,
        end: RoutePoint,
        distance_m: float,
        duration_s: float,
        override: Optional[DistanceOverride] = None,
    ) -> List[Route]:
        """Deterministic Safest / Balanced / Shortest routes."""
        routes = []
        for variant in ROUTE_VARIANTS:
            total_distance = distance_m * variant.distance_factor
            routes.append(
                Route(
                    id=variant.id,
                    name=variant.name,
                    start_location=start,
                    end_location=end,
                    segments=synthesize_segments(
                        start, end, total_distance, variant.profile, self.speed_kmh
                    ),
                    total_distance_m=int(round(total_distance)),
                    total_duration_s=int(round(duration_s * variant.duration_factor)),
                    safety_score=variant.safety_score,
                    safety_issues=self._issues_for(variant.profile, start, end, override),
                )
            )
        return routes

    @staticmethod
    def _issues_for(
        profile: RiskProfile,
        start: RoutePoint,
        end: RoutePoint,
        override: Optional[DistanceOverride],
    ) -> List[SafetyIssue]:
        if profile is RiskProfile.SAFE:
            return []
        if profile is RiskProfile.MEDIUM:
            return [
                SafetyIssue(
                    type="flooding",
                    description=override.moderate_flooding if override else GENERIC_MODERATE_FLOODING,
                    severity=Severity.WARNING,
                    location=interpolate(start, end, 0.4),
                ),
            ]
        if profile is RiskProfile.DANGEROUS:
            return [
                SafetyIssue(
                    type="flooding",
                    description=override.severe_flooding if override else GENERIC_SEVERE_FLOODING,
                    severity=Severity.DANGER,
                    location=interpolate(start, end, 0.3),
                ),
                SafetyIssue(
                    type="closure",
                    description=override.closure if override else GENERIC_CLOSURE,
                    severity=Severity.DANGER,
                    location=interpolate(start, end, 0.7),
                ),
            ]
        raise ValueError(f"Unknown risk profile: {profile!r}")
