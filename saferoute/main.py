import logging

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from saferoute.config import APP_HOST, APP_PORT, LOG_LEVEL, SIMULATED_LATENCY_S
from saferoute.geocoding import GeocodeResolver
from saferoute.hazards import HazardBackend
from saferoute.models import RoutePoint, RouteRequest, RoutesResponse, RouteSummary
from saferoute.routing import RouteSafetyEngine
from saferoute.utils import format_distance, format_duration, safety_level

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="SafeRoute Backend", version="0.1.0")

# CORS: allow frontend dev server on localhost:5173, adjust as needed
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_resolver = GeocodeResolver(latency_s=SIMULATED_LATENCY_S)
_engine = RouteSafetyEngine(
    resolver=_resolver,
    hazard_backend=HazardBackend.from_settings(),
    latency_s=SIMULATED_LATENCY_S,
)


def get_engine() -> RouteSafetyEngine:
    return _engine


@app.get("/health")
async def health(engine: RouteSafetyEngine = Depends(get_engine)):
    return {"status": "ok", "hazard_backend": engine.hazard_backend.active}


@app.get("/api/geocode", response_model=RoutePoint)
async def geocode(
    q: str = Query(..., description="Place name, e.g. 'Gulshan'"),
    engine: RouteSafetyEngine = Depends(get_engine),
) -> RoutePoint:
    return await engine.resolver.resolve(q)


@app.post("/routes/plan", response_model=RoutesResponse)
async def plan_routes(
    payload: RouteRequest,
    engine: RouteSafetyEngine = Depends(get_engine),
) -> RoutesResponse:
    """
    Three candidate routes, safest first:
    - Safest: longer, avoids flood-prone stretches
    - Balanced: baseline distance, moderate flooding on part of the way
    - Shortest: most direct, passes severe flooding and a closure

    The first route is the default selection.
    """
    logger.info("[API_REQUEST] start=%r end=%r", payload.start, payload.end)

    try:
        routes = await engine.find_safe_routes(payload.start, payload.end)
    except Exception:
        logger.exception("[API_REQUEST] route generation failed")
        raise HTTPException(
            status_code=500,
            detail="Unable to find routes. Please try different locations.",
        )

    summaries = [
        RouteSummary(
            id=r.id,
            distance_text=format_distance(r.total_distance_m),
            duration_text=format_duration(r.total_duration_s),
            safety_level=safety_level(r.safety_score),
        )
        for r in routes
    ]
    return RoutesResponse(routes=routes, summaries=summaries)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("saferoute.main:app", host=APP_HOST, port=APP_PORT)
