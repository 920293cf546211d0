"""Opening placement.

Pieces are placed in role order: Blue runs for the objective, Pink blocks
the centre, Purple supports. Candidates are the free home squares on
rank 8; each is scored from progress, token-lane shaping, centre control,
spacing from allies, immediate danger and power-up synergy, plus a little
noise.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..models import ENGINE_PIECES, Piece, PowerUpKind, Role, Side
from .base import DecisionContext
from .difficulty import DifficultyProfile
from .fast_geometry import full_rank, key_to_coords, manhattan
from .heuristics import blocking_value, progress, threat_map
from .world import DEFAULT_HOMES, World, home_rank_only

logger = logging.getLogger(__name__)

ROLES = {Piece.BLUE: Role.RUNNER, Piece.PINK: Role.BLOCKER}

# Token-lane boost by |file delta| to the token's file.
LANE_BOOST = {
    Role.RUNNER: (1.00, 0.65, 0.25),
    Role.BLOCKER: (0.80, 0.55, 0.20),
    Role.SUPPORT: (0.0, 0.25, 0.0),
}


def next_piece_to_place(world: World, requested: Optional[Piece] = None) -> Piece:
    if requested is not None:
        return requested
    for piece in ENGINE_PIECES:
        if world.board.square_of(piece) is None:
            return piece
    return Piece.BLUE


def role_for(piece: Piece) -> Role:
    return ROLES.get(piece, Role.SUPPORT)


def _lane_boost(role: Role, square: str, token: Optional[str]) -> float:
    if token is None:
        return 0.0
    sq, tk = key_to_coords(square), key_to_coords(token)
    if sq is None or tk is None:
        return 0.0
    delta = abs(sq[0] - tk[0])
    boosts = LANE_BOOST[role]
    return boosts[delta] if delta < len(boosts) else 0.0


def _fallback_square(world: World) -> str:
    for key in reversed(full_rank(8)):
        if world.board.is_empty(key):
            return key
    return "H8"


def place(
    world: World,
    profile: DifficultyProfile,
    ctx: DecisionContext,
    next_piece: Optional[Piece] = None,
    homes: Sequence[str] = (),
) -> tuple[Piece, str]:
    """Choose the opening square for the next engine piece.

    Args:
        world: Canonical world
        profile: Difficulty profile in force
        ctx: Decision context (noise source)
        next_piece: Host hint for which piece is being placed
        homes: Host-supplied home squares used when the snapshot has none

    Returns:
        (piece, square); the square is always a free rank-8 square, with
        the rightmost free one (or H8) as a last resort.
    """
    board = world.board
    piece = next_piece_to_place(world, next_piece)
    role = role_for(piece)
    level = profile.level

    if Side.P2 in world.homes:
        candidates_src = world.homes[Side.P2]
    elif homes:
        candidates_src = home_rank_only(homes)
    else:
        candidates_src = DEFAULT_HOMES

    danger = threat_map(board, profile.opp_model)
    candidates = [sq for sq in candidates_src if board.is_empty(sq)]
    safe = [sq for sq in candidates if sq not in danger]
    pool = safe if (level <= 2 and safe) else candidates
    if not pool:
        square = _fallback_square(world)
        logger.warning(
            "No free home square for %s; falling back to %s",
            piece.value, square,
            extra={"piece": piece.value, "square": square},
        )
        return piece, square

    placed_files = [
        key_to_coords(sq)[0]
        for p, sq in board.on_board(piece.side)
        if p is not piece
    ]

    w_prog = float(profile.progress_weight)
    w_tok = float(profile.token_weight)
    w_block = float(profile.block_weight)
    w_safety = 55 * (1.0 - profile.risk)
    if role is Role.RUNNER:
        w_prog *= 1.35
        w_tok *= 1.20
    elif role is Role.BLOCKER:
        w_prog *= 0.70
        w_block *= 1.60

    crowd = 0.8 + 0.15 * (level - 1)
    same_file_penalty = int(8 * crowd + 0.5)
    touching_penalty = int(20 * crowd + 0.5)

    zone = world.zone(piece)
    zone_open = zone.is_open
    token = board.token

    best_square: Optional[str] = None
    best_score = float("-inf")
    for square in pool:
        file = key_to_coords(square)[0]
        score = progress(world, board, piece, square) * w_prog

        if token is not None:
            d = manhattan(square, token)
            score += (1.0 / (1 + d) if d > 0 else 1.0) * (w_tok * 0.80)
            score += _lane_boost(role, square, token) * (w_tok * 0.25)

        score += blocking_value(square) * (w_block * (1.25 if role is Role.BLOCKER else 1.0))

        for ally_file in placed_files:
            if ally_file == file:
                score -= same_file_penalty
            if abs(ally_file - file) == 1:
                score -= touching_penalty

        if square in danger:
            mitigate = 0.75 if (zone.kind is PowerUpKind.EXTRA_DEFEND and zone_open) else 1.0
            score -= w_safety * mitigate

        if zone_open:
            if zone.kind is PowerUpKind.EXTRA_MOVE:
                score += 10 if role is Role.RUNNER else 6
            elif zone.kind is PowerUpKind.DIAGONAL_MOVE:
                score += 6 if role is not Role.BLOCKER else 4
            elif zone.kind is PowerUpKind.EXTRA_DEFEND:
                score += 8 if role is Role.BLOCKER else 5

        score += ctx.noise(profile.noise)
        ctx.trace("placement %s %s score=%.3f", piece.value, square, score)

        if score > best_score:
            best_square, best_score = square, score

    return piece, best_square or pool[-1]
