"""
Optional generative hazard backend.

The engine asks a generative JSON service (Gemini) for three described routes
between two endpoints. The backend is injected as a HazardBackend; when it is
disabled or anything about the call goes wrong, the engine falls back to its
deterministic routes.
"""

import json
import logging
from typing import Any, Optional, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, ConfigDict

from . import config
from .models import ExternalRoutesPayload, RoutePoint

logger = logging.getLogger(__name__)


class HazardBackendError(Exception):
    """The hazard service answered, but not with usable JSON."""


@runtime_checkable
class HazardClient(Protocol):
    async def fetch_routes(self, start: RoutePoint, end: RoutePoint) -> Any:
        """Return the decoded JSON object describing candidate routes."""
        ...


def _describe(point: RoutePoint) -> str:
    coords = f"({point.lat:.4f}, {point.lon:.4f})"
    return f"{point.name} {coords}" if point.name else coords


def build_prompt(start: RoutePoint, end: RoutePoint) -> str:
    return f"""You are a flood-safety route assistant for Bangladesh.
Describe exactly 3 driving routes from {_describe(start)} to {_describe(end)}:
the first the safest, the second balanced, the third the shortest but most flood-exposed.

Return ONLY valid JSON in this form:
{{"routes": [{{"name": "string", "distance": meters, "duration": seconds, "safetyScore": 0-100,
  "hazards": [{{"type": "flooding|closure|waterlogging|landslide", "description": "string",
  "severity": "info|warning|danger", "location": {{"lat": number, "lon": number}}}}]}}]}}"""


def parse_routes_payload(data: Any) -> ExternalRoutesPayload:
    """Validate the whole payload. One malformed route rejects all of them."""
    return ExternalRoutesPayload.model_validate(data)


class GeminiHazardClient:
    """Calls the Gemini generateContent REST endpoint in JSON mode."""

    def __init__(
        self,
        api_key: str,
        model: str = config.GEMINI_MODEL,
        base_url: str = config.GEMINI_BASE_URL,
        timeout_s: float = config.HAZARD_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

    async def fetch_routes(self, start: RoutePoint, end: RoutePoint) -> Any:
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        body = {
            "contents": [{"parts": [{"text": build_prompt(start, end)}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }

        logger.info("[HAZARDS] requesting routes %s -> %s", _describe(start), _describe(end))

        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
            resp = await client.post(url, params={"key": self.api_key}, json=body)
            resp.raise_for_status()
            data = resp.json()

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise HazardBackendError(f"Unexpected response shape: {data!r:.200}") from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise HazardBackendError(f"Response is not JSON: {text[:200]!r}") from e


class HazardBackend(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    enabled: bool
    client: Optional[HazardClient] = None
    timeout_s: float = config.HAZARD_TIMEOUT_S
    intermediate_points: int = config.HAZARD_INTERMEDIATE_POINTS

    @property
    def active(self) -> bool:
        return self.enabled and self.client is not None

    @classmethod
    def disabled(cls) -> "HazardBackend":
        return cls(enabled=False)

    @classmethod
    def from_settings(cls) -> "HazardBackend":
        """Enabled only when a real (non-placeholder) Gemini key is configured."""
        if config.is_placeholder_key(config.GEMINI_API_KEY):
            logger.info("[HAZARDS] no Gemini key configured, using deterministic routes")
            return cls.disabled()
        return cls(enabled=True, client=GeminiHazardClient(api_key=config.GEMINI_API_KEY))
