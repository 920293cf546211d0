"""
Request router for the Battleplan engine
Normalises the request to the canonical seat, builds the world, seeds the
RNG and dispatches to the decision pipeline for the requested kind
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from ..config import EngineConfig
from ..errors import InvalidRequestError
from ..metrics import record_decision
from ..models import (
    DecisionKind,
    DecisionRequest,
    ObjectiveResult,
    PlacementResult,
    PlanStatus,
    Side,
    Snapshot,
)
from .base import DecisionContext
from .battle import choose_action, to_action_result
from .difficulty import DifficultyProfile, clamp_difficulty, get_difficulty_profile
from .objective import choose_objective_holder
from .perspective import denormalize_result, map_piece, map_square, normalize_snapshot
from .placement import place
from .planner import build_plan, infer_plan_status
from .seeding import seed_for_request
from .world import World, build_world

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionOutcome:
    """A decision result plus the provenance the service reports."""

    kind: DecisionKind
    side: Side
    difficulty: int
    seed: int
    seed_source: str
    elapsed_ms: int
    result: object


class DecisionEngine:
    """
    Single entry point for every decision kind.

    The engine owns one :class:`DecisionContext` (RNG and plan-search
    cache). Calls must be serialised by the caller; build one engine per
    concurrent worker instead of sharing one.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        context: Optional[DecisionContext] = None,
    ):
        self.config = config or EngineConfig()
        self.context = context or DecisionContext(self.config)

    def effective_difficulty(self, request: DecisionRequest) -> int:
        """Request field first, then the snapshot's meta, then the default."""
        if request.difficulty is not None:
            return clamp_difficulty(request.difficulty)
        if request.snapshot.meta.difficulty is not None:
            return clamp_difficulty(request.snapshot.meta.difficulty)
        return self.config.default_difficulty

    def decide(self, request: DecisionRequest) -> DecisionOutcome:
        """
        Route one decision request

        Args:
            request: Decision request in the caller's own perspective

        Returns:
            DecisionOutcome whose ``result`` is in the caller's perspective
        """
        start = time.perf_counter()
        difficulty = self.effective_difficulty(request)
        kind, side = request.kind, request.side
        try:
            canonical = request.model_copy(
                update={"snapshot": normalize_snapshot(request.snapshot, side)}
            )
            world = build_world(canonical.snapshot)
            seed, seed_source = seed_for_request(canonical, world)
            self.context.reseed(seed)
            logger.debug(
                "Decision request: kind=%s side=%s difficulty=%d seed=%d (%s)",
                kind.value, side.value, difficulty, seed, seed_source,
            )

            profile = get_difficulty_profile(difficulty)
            result = self._dispatch(kind, canonical, world, profile)
            result = denormalize_result(result, side)
        except Exception:
            record_decision(kind.value, difficulty, "error", time.perf_counter() - start)
            raise

        duration = time.perf_counter() - start
        record_decision(kind.value, difficulty, "success", duration)
        logger.debug("Decision %s for %s: %s", kind.value, side.value, result)
        return DecisionOutcome(
            kind=kind,
            side=side,
            difficulty=difficulty,
            seed=seed,
            seed_source=seed_source,
            elapsed_ms=int(duration * 1000),
            result=result,
        )

    def _dispatch(
        self,
        kind: DecisionKind,
        request: DecisionRequest,
        world: World,
        profile: DifficultyProfile,
    ):
        ctx = self.context
        side = request.side
        if kind is DecisionKind.PLACEMENT:
            hint = request.context
            piece, square = place(
                world,
                profile,
                ctx,
                next_piece=map_piece(hint.next_piece, side),
                homes=[map_square(sq, side) for sq in hint.homes],
            )
            return PlacementResult(piece=piece, square=square)
        if kind is DecisionKind.PLAN:
            return build_plan(world, profile, ctx)
        if kind is DecisionKind.ACTION:
            return to_action_result(world, choose_action(world, profile, ctx))
        if kind is DecisionKind.OBJECTIVE:
            return ObjectiveResult(piece=choose_objective_holder(world, profile, ctx))
        raise InvalidRequestError(
            f"Unsupported decision kind: {kind}",
            context={"kind": str(kind)},
        )

    def plan_status(self, snapshot: Snapshot, side: Side = Side.P2) -> PlanStatus:
        """Plan-phase status of ``side``'s own pieces, in its own names."""
        status = infer_plan_status(build_world(normalize_snapshot(snapshot, side)))
        if side is Side.P2:
            return status
        return status.model_copy(update={
            "per_piece": {map_piece(p, side): s for p, s in status.per_piece.items()},
            "prepared": [map_piece(p, side) for p in status.prepared],
            "without_assignment": [map_piece(p, side) for p in status.without_assignment],
        })

    def clear_cache(self) -> int:
        return self.context.clear_cache()

    def cache_stats(self) -> dict:
        return self.context.cache.stats()
