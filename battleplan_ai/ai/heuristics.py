"""Stateless scoring primitives shared by every decision pipeline.

All functions take the board explicitly so they work equally on the real
board and on simulation copies.
"""

from __future__ import annotations

from functools import lru_cache
from typing import NamedTuple, Optional

from ..models import Piece, Side
from .fast_geometry import get_fast_geometry, key_to_coords, make_key
from .world import BoardView, World


class StepCandidate(NamedTuple):
    to: str
    needs_diagonal: bool


def progress(world: World, board: BoardView, piece: Piece, square: Optional[str]) -> float:
    """Inverse distance to the line the piece is currently heading for.

    A carrier runs for its own side's finish line; everyone else heads back
    toward the opposing finish line to chase the objective.
    """
    if square is None:
        return 0.0
    side = piece.side
    target = side if board.carrying(piece) else side.other
    return 1.0 / (1 + world.distance_to_finish(target, square))


def blocking_value(square: Optional[str]) -> float:
    """Centre-file control; 1/(1 + |file - 4.5|)."""
    coords = key_to_coords(square) if square else None
    if coords is None:
        return 0.0
    return 1.0 / (1 + abs(coords[0] - 4.5))


@lru_cache(maxsize=4096)
def _threat_from(opponent_squares: frozenset[str], extended: bool) -> frozenset[str]:
    geo = get_fast_geometry()
    danger: set[str] = set()
    for square in opponent_squares:
        danger.update(geo.adjacent(square))
        if extended:
            for step in geo.orthogonal(square):
                danger.update(sq for sq in geo.orthogonal(step) if sq != square)
    return frozenset(danger)


def threat_map(board: BoardView, opp_model: int) -> frozenset[str]:
    """Squares within one step of any visible opposing piece.

    With ``opp_model >= 1`` the squares one further orthogonal step away
    from each opposing piece's orthogonal neighbours are added too.
    """
    squares = frozenset(sq for _, sq in board.on_board(Side.P1))
    return _threat_from(squares, opp_model >= 1)


def move_candidates(
    board: BoardView, square: Optional[str], carrying: bool
) -> list[StepCandidate]:
    """Empty forward/sideways squares for an engine piece.

    Carriers advance toward rank 8, everyone else toward rank 1. Order:
    straight ahead, the two forward diagonals, then the two sideways steps.
    """
    coords = key_to_coords(square) if square else None
    if coords is None:
        return []
    f, r = coords
    dr = 1 if carrying else -1
    steps = (
        (f, r + dr, False),
        (f - 1, r + dr, True),
        (f + 1, r + dr, True),
        (f - 1, r, False),
        (f + 1, r, False),
    )
    out = []
    for ff, rr, diagonal in steps:
        key = make_key(ff, rr)
        if key is not None and board.is_empty(key):
            out.append(StepCandidate(key, diagonal))
    return out


def orthogonal_move_count(board: BoardView, square: Optional[str], carrying: bool) -> int:
    return sum(
        1 for c in move_candidates(board, square, carrying) if not c.needs_diagonal
    )


def adjacent_opponents(board: BoardView, square: Optional[str]) -> list[tuple[Piece, str]]:
    """Opposing pieces in the 8-neighbourhood of ``square``."""
    if square is None:
        return []
    around = set(get_fast_geometry().adjacent(square))
    return [(p, sq) for p, sq in board.on_board(Side.P1) if sq in around]


def attack_pick(board: BoardView, square: Optional[str]) -> tuple[Optional[str], Optional[Piece]]:
    """Best adjacent target: carriers first, then unshielded pieces."""
    best_sq: Optional[str] = None
    best_piece: Optional[Piece] = None
    best_score = float("-inf")
    for target in get_fast_geometry().scan(square):
        victim = board.opponent_at(target)
        if victim is None:
            continue
        score = (120 if board.carrying(victim) else 0) + (-30 if board.shielded(victim) else 15)
        if score > best_score:
            best_score, best_sq, best_piece = score, target, victim
    return best_sq, best_piece


def first_adjacent_opponent(board: BoardView, square: Optional[str]) -> Optional[Piece]:
    """First opposing piece in file-major sweep order (simulation target)."""
    for target in get_fast_geometry().scan(square):
        victim = board.opponent_at(target)
        if victim is not None:
            return victim
    return None


def opponent_carrier_near_finish(world: World, board: BoardView, within: int = 2) -> bool:
    for piece, square in board.on_board(Side.P1):
        if board.carrying(piece) and world.distance_to_finish(Side.P1, square) <= within:
            return True
    return False
