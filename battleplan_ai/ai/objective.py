"""Objective pick-up: decide which engine piece (if any) grabs the token.

Only pieces standing on rank 1 can take it. Each is scored on how easily it
could get away with it (safe exits, an open lane ahead, queue readiness)
against how exposed it is; a safety gate may decline altogether.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..models import ENGINE_PIECES, ActionKind, Piece, PowerUpKind, Side
from .base import DecisionContext
from .difficulty import DifficultyProfile
from .fast_geometry import get_fast_geometry, key_to_coords, make_key
from .heuristics import blocking_value, threat_map
from .world import BoardView, World, next_real_slot

logger = logging.getLogger(__name__)

PICKUP_RANK = 1

LANE_STEPS = ((0, 1, False), (-1, 1, True), (1, 1, True))


def safe_exits(
    board: BoardView, square: str, danger: frozenset[str], allow_diagonal: bool
) -> tuple[int, int]:
    """(safe orthogonal exits, safe diagonal exits) from ``square``."""
    geo = get_fast_geometry()
    orth = sum(1 for sq in geo.orthogonal(square) if board.is_empty(sq) and sq not in danger)
    diag = 0
    if allow_diagonal:
        diag = sum(1 for sq in geo.diagonal(square) if board.is_empty(sq) and sq not in danger)
    return orth, diag


def adjacent_counts(board: BoardView, square: str) -> tuple[int, int]:
    """(allies, enemies) on the orthogonal neighbours of ``square``."""
    allies = enemies = 0
    for sq in get_fast_geometry().orthogonal(square):
        occupant = board.occupancy.get(sq)
        if occupant is None:
            continue
        if occupant.side is Side.P2:
            allies += 1
        else:
            enemies += 1
    return allies, enemies


def lane_ahead(world: World, board: BoardView, square: str, allow_diagonal: bool) -> float:
    """Open, safe squares up to three ranks ahead, weighted by 1/depth."""
    f, r = key_to_coords(square)
    danger = threat_map(board, 0)
    score = 0.0
    for depth in range(1, 4):
        for df, dr, diagonal in LANE_STEPS:
            to = make_key(f + df, r + dr * depth)
            if to is None or not board.is_empty(to):
                continue
            if diagonal and not allow_diagonal:
                continue
            score += (1.0 if to not in danger else 0.15) / depth
    for depth in (1, 2):
        if world.is_finish(Side.P2, make_key(f, r + depth)):
            score += 1.2
    return score


def queue_readiness(world: World, piece: Piece) -> float:
    pos, face = next_real_slot(world.queue(piece))
    if face is None:
        return -0.6
    if face in (ActionKind.MOVE, ActionKind.DEFEND):
        if pos >= 6:
            return 0.2
        if pos >= 4:
            return 0.45
        if pos >= 3:
            return 0.7
        return 1.0
    if pos >= 6:
        return -0.4
    if pos >= 4:
        return -0.25
    return -0.1


def choose_objective_holder(
    world: World, profile: DifficultyProfile, ctx: DecisionContext
) -> Optional[Piece]:
    """Return the piece that should take the objective, or None to decline."""
    board = world.board
    if any(board.carrying(p) for p in ENGINE_PIECES):
        return None
    candidates = [
        (p, sq) for p, sq in board.on_board(Side.P2) if key_to_coords(sq)[1] == PICKUP_RANK
    ]
    if not candidates:
        return None

    d = profile.level
    danger = threat_map(board, profile.opp_model)
    safety = 1.15 - min(1.0, max(0.0, profile.risk))
    w_safe_orth = 2.4 + 0.28 * d
    w_safe_diag = 1.1 + 0.18 * d
    w_dist = 3.1 + 0.30 * d
    w_block = 0.55
    w_lane = 1.2 + 0.22 * d
    w_allies = 0.6
    w_stack = 1.0 + 0.35 * d
    danger_base = 2.4 * safety
    enemy_adjacent = 16.0 * safety
    danger_one = 22.0 * safety

    best: Optional[Piece] = None
    best_square: Optional[str] = None
    best_score = float("-inf")
    best_exits = 0
    for piece, square in candidates:
        zone = world.zone(piece)
        allow_diagonal = zone.kind is PowerUpKind.DIAGONAL_MOVE
        orth, diag = safe_exits(board, square, danger, allow_diagonal)
        allies, enemies = adjacent_counts(board, square)

        nudge = 0.0
        if zone.is_open:
            nudge += {
                PowerUpKind.DIAGONAL_MOVE: 0.6,
                PowerUpKind.EXTRA_MOVE: 0.9,
                PowerUpKind.EXTRA_DEFEND: 0.7,
            }.get(zone.kind, 0.0)

        score = (
            orth * w_safe_orth
            + diag * w_safe_diag
            + blocking_value(square) * w_block
            + 1.0 / (1 + world.distance_to_finish(Side.P2, square)) * w_dist
            + lane_ahead(world, board, square, allow_diagonal) * w_lane
            + allies * w_allies
            + queue_readiness(world, piece) * w_stack
            + nudge
        )
        if square in danger:
            score -= danger_base
        score -= enemies * enemy_adjacent
        if enemies >= 1:
            score -= danger_one
        score += ctx.noise(profile.noise)
        ctx.trace("objective %s %s score=%.3f", piece.value, square, score)

        if score > best_score:
            best, best_square, best_score, best_exits = piece, square, score, orth + diag

    if best is None:
        return None

    _, enemies = adjacent_counts(board, best_square)
    zone = world.zone(best)
    defended = zone.holds(PowerUpKind.EXTRA_DEFEND) or board.shielded(best)
    if best_exits == 0 and best_square in danger:
        logger.debug("Declining objective: %s has no safe exit from %s", best.value, best_square)
        return None
    if enemies >= 2 and not defended:
        logger.debug("Declining objective: %s next to %d opponents", best.value, enemies)
        return None
    return best
