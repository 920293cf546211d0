"""
Battleplan AI Service - FastAPI Application
Exposes the decision engine to the rules-engine host over HTTP
"""

import logging
import os
import threading
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from .ai.difficulty import CANONICAL_DIFFICULTY_PROFILES, DIFFICULTY_DESCRIPTIONS
from .ai.router import DecisionEngine
from .config import EngineConfig
from .errors import BattleplanError, DecisionError
from .models import DecisionKind, DecisionRequest, DecisionResult, PlanStatus, Side, Snapshot

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Battleplan AI Service",
    description="Placement, planning, battle and objective decisions for Battleplan",
    version="1.0.0"
)

cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One engine per process; its RNG and cache are single-owner.
_engine_lock = threading.Lock()
engine = DecisionEngine(EngineConfig.from_env())


class DecisionResponse(BaseModel):
    """Response model for /ai/decide"""
    kind: DecisionKind
    side: Side
    difficulty: int
    seed: int
    seed_source: str
    thinking_time_ms: int
    result: DecisionResult


class PlanStatusRequest(BaseModel):
    """Request model for /ai/plan-status"""
    side: Side = Side.P2
    snapshot: Snapshot


class CacheStatsResponse(BaseModel):
    entries: int
    max_entries: int
    hits: int
    misses: int
    evictions: int
    hit_rate: float


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "service": "Battleplan AI Service",
        "status": "running",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    """Health check for container orchestration"""
    return {"status": "healthy"}


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


@app.post("/ai/decide", response_model=DecisionResponse, response_model_by_alias=True)
def decide(request: DecisionRequest):
    """
    Make one decision for the requesting seat.

    Args:
        request: DecisionRequest with kind, side, snapshot and optional
            difficulty, seed and host hints.

    Returns:
        DecisionResponse with the result in the caller's perspective.
    """
    try:
        with _engine_lock:
            outcome = engine.decide(request)
    except DecisionError as e:
        logger.error("Decision pipeline failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=e.to_dict())
    except BattleplanError as e:
        logger.warning("Rejected decision request: %s", e)
        raise HTTPException(status_code=400, detail=e.to_dict())
    except Exception as e:
        logger.error("Error making decision: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(
        "Decision: kind=%s, side=%s, difficulty=%d, time=%dms",
        outcome.kind.value,
        outcome.side.value,
        outcome.difficulty,
        outcome.elapsed_ms,
    )
    return DecisionResponse(
        kind=outcome.kind,
        side=outcome.side,
        difficulty=outcome.difficulty,
        seed=outcome.seed,
        seed_source=outcome.seed_source,
        thinking_time_ms=outcome.elapsed_ms,
        result=outcome.result,
    )


@app.post("/ai/plan-status", response_model=PlanStatus)
def plan_status(request: PlanStatusRequest):
    """Report what the requesting seat has already programmed this round."""
    return engine.plan_status(request.snapshot, request.side)


@app.delete("/ai/cache")
def clear_ai_cache():
    """Clear the engine's plan-search cache"""
    with _engine_lock:
        removed = engine.clear_cache()
    logger.info("AI cache cleared")
    return {"status": "cache cleared", "entries_removed": removed}


@app.get("/ai/cache/stats", response_model=CacheStatsResponse)
def ai_cache_stats():
    """Return basic stats about the engine's plan-search cache."""
    with _engine_lock:
        return engine.cache_stats()


@app.get("/ai/difficulties")
async def difficulties() -> Dict[str, List[Dict[str, Any]]]:
    """List the difficulty ladder with descriptions."""
    return {
        "difficulties": [
            {"level": level, "description": DIFFICULTY_DESCRIPTIONS.get(level, "")}
            for level in sorted(CANONICAL_DIFFICULTY_PROFILES)
        ]
    }


if __name__ == "__main__":
    import uvicorn

    port_str = os.getenv("BATTLEPLAN_PORT", "8001")
    try:
        port = int(port_str)
    except ValueError:
        port = 8001

    uvicorn.run(app, host="0.0.0.0", port=port)
