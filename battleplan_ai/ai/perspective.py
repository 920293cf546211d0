"""Perspective normalisation.

The engine always reasons as P2 (pieces Blue/Pink/Purple, finish line on
rank 8). A request made for P1 is rewritten before the world is built and
the decision is mapped back afterwards. The rewrite is its own inverse:
every square is mirrored (rank' = 9 - rank), every piece is swapped with
its counterpart and every side-keyed map has its P1/P2 entries exchanged.
"""

from __future__ import annotations

from typing import Dict, List, Optional, TypeVar

from ..errors import DecisionError
from ..models import (
    ActionResult,
    ObjectiveResult,
    Piece,
    PieceState,
    PlacementResult,
    PlanResult,
    PowerUpState,
    Side,
    Snapshot,
    SnapshotMeta,
    TokenState,
)
from .fast_geometry import flip_key

V = TypeVar("V")


def map_piece(piece: Optional[Piece], side: Side) -> Optional[Piece]:
    """Map a piece between the caller's view and the canonical view."""
    if piece is None or side is Side.P2:
        return piece
    return piece.counterpart


def map_square(square: Optional[str], side: Side) -> Optional[str]:
    if square is None or side is Side.P2:
        return square
    return flip_key(square)


def _swap_pieces(mapping: Dict[Piece, V]) -> Dict[Piece, V]:
    return {piece.counterpart: value for piece, value in mapping.items()}


def _swap_sides(mapping: Dict[Side, V]) -> Dict[Side, V]:
    return {side.other: value for side, value in mapping.items()}


def _flip_lines(mapping: Dict[Side, List[str]]) -> Dict[Side, List[str]]:
    return {
        side.other: [flip_key(sq) for sq in squares]
        for side, squares in mapping.items()
    }


def _mirror_piece_state(state: PieceState) -> PieceState:
    if state.square is None:
        return state
    return state.model_copy(update={"square": flip_key(state.square)})


def normalize_snapshot(snapshot: Snapshot, side: Side) -> Snapshot:
    """Rewrite ``snapshot`` so that ``side`` becomes the canonical P2.

    Applying the function twice with the same side returns the original
    snapshot, so it doubles as the denormaliser for snapshots.
    """
    if side is Side.P2:
        return snapshot

    pieces = {
        piece.counterpart: _mirror_piece_state(state)
        for piece, state in snapshot.pieces.items()
    }
    stacks = {
        stack_side.other: _swap_pieces(queues)
        for stack_side, queues in snapshot.stacks.items()
    }
    power_ups: PowerUpState = snapshot.power_ups.model_copy(
        update={
            "zones": _swap_pieces(snapshot.power_ups.zones),
            "zone_status": _swap_pieces(snapshot.power_ups.zone_status),
            "hand": _swap_sides(snapshot.power_ups.hand),
            "hand_types": _swap_sides(snapshot.power_ups.hand_types),
            "hand_cards": _swap_sides(snapshot.power_ups.hand_cards),
        }
    )
    meta: SnapshotMeta = snapshot.meta.model_copy(
        update={
            "finish": _flip_lines(snapshot.meta.finish),
            "homes": _flip_lines(snapshot.meta.homes),
        }
    )
    token = TokenState(square=flip_key(snapshot.token.square))

    return snapshot.model_copy(
        update={
            "pieces": pieces,
            "stacks": stacks,
            "flags": _swap_pieces(snapshot.flags),
            "shields": _swap_pieces(snapshot.shields),
            "token": token,
            "power_ups": power_ups,
            "p1_buff_hand_count": snapshot.p2_buff_hand_count,
            "p2_buff_hand_count": snapshot.p1_buff_hand_count,
            "meta": meta,
        }
    )


def denormalize_result(result, side: Side):
    """Map a canonical decision result back into ``side``'s view."""
    if side is Side.P2:
        return result

    if isinstance(result, PlacementResult):
        return result.model_copy(update={
            "piece": map_piece(result.piece, side),
            "square": map_square(result.square, side),
        })
    if isinstance(result, PlanResult):
        return result.model_copy(update={"piece": map_piece(result.piece, side)})
    if isinstance(result, ActionResult):
        return result.model_copy(update={
            "piece": map_piece(result.piece, side),
            "from_square": map_square(result.from_square, side),
            "to_square": map_square(result.to_square, side),
            "power_up_target": map_square(result.power_up_target, side),
            "attack_target": map_piece(result.attack_target, side),
        })
    if isinstance(result, ObjectiveResult):
        return result.model_copy(update={"piece": map_piece(result.piece, side)})
    raise DecisionError(
        f"Unsupported result type: {type(result).__name__}",
        context={"side": side.value},
    )
