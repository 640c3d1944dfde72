from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FloodRisk(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


class RoadType(str, Enum):
    HIGHWAY = "highway"
    MAJOR = "major"
    LOCAL = "local"
    BRIDGE = "bridge"
    TUNNEL = "tunnel"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


class RiskProfile(str, Enum):
    SAFE = "safe"
    MEDIUM = "medium"
    DANGEROUS = "dangerous"


class RoutePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    name: Optional[str] = None


class RouteSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_point: RoutePoint
    end_point: RoutePoint
    distance_m: int = Field(ge=0)
    duration_s: int = Field(ge=0)
    flood_risk: FloodRisk
    road_type: RoadType


class SafetyIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    description: str
    severity: Severity
    location: Optional[RoutePoint] = None


class Route(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    start_location: RoutePoint
    end_location: RoutePoint
    segments: List[RouteSegment]
    total_distance_m: int = Field(ge=0)
    total_duration_s: int = Field(ge=0)
    safety_score: int = Field(ge=0, le=100)
    safety_issues: List[SafetyIssue] = Field(default_factory=list)


# Shape the hazard backend must return. camelCase matches the prompt.

class HazardLocation(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class ExternalHazard(BaseModel):
    type: str
    description: str
    severity: Severity
    location: Optional[HazardLocation] = None


class ExternalRoute(BaseModel):
    name: str
    distance: float = Field(ge=0, description="meters")
    duration: float = Field(ge=0, description="seconds")
    safetyScore: int = Field(ge=0, le=100)
    hazards: List[ExternalHazard] = Field(default_factory=list)


class ExternalRoutesPayload(BaseModel):
    routes: List[ExternalRoute] = Field(min_length=1)


# API request/response

class RouteRequest(BaseModel):
    start: Union[RoutePoint, str] = Field(
        description="Place name, e.g. 'Dhaka', or explicit coordinates",
    )
    end: Union[RoutePoint, str] = Field(
        description="Place name, e.g. 'Khulna', or explicit coordinates",
    )


class RouteSummary(BaseModel):
    id: str
    distance_text: str
    duration_text: str
    safety_level: str


class RoutesResponse(BaseModel):
    routes: List[Route]
    summaries: List[RouteSummary]
