"""Power-up heuristics shared by planning and battle.

Two entry points:

* :func:`choose_power_up` (assignment) decides, while programming a piece's
  queue, whether to put a card from the engine's hand into that piece's
  zone this round.
* :func:`decide_spend` (spend) decides, when a queued card is about to be
  revealed, whether and how to use the card sitting in the zone.

Both read the same tactical detectors: finishing sequences, adjacency that
can be created this round, shield-popping kills and danger.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from ..models import (
    REAL_POWER_UPS,
    ActionKind,
    Piece,
    PowerUpKind,
    Sequencing,
    Side,
)
from .difficulty import DifficultyProfile
from .fast_geometry import get_fast_geometry, is_adjacent, is_orthogonal_step, key_to_coords, make_key
from .heuristics import (
    adjacent_opponents,
    attack_pick,
    move_candidates,
    opponent_carrier_near_finish,
    progress,
    blocking_value,
    threat_map,
)
from .world import BoardView, World, remaining_real_after

logger = logging.getLogger(__name__)

NEGATIVE_INFINITY = -1e9

# Assignment threshold by difficulty, before the appetite discount.
ASSIGNMENT_THRESHOLDS = {1: 260, 2: 240, 3: 220, 4: 200, 5: 180}
MIN_ASSIGNMENT_THRESHOLD = 100


@dataclass(frozen=True)
class ActionOption:
    """One concrete battle action, optionally combined with a power-up."""

    piece: Piece
    action_kind: ActionKind
    from_square: Optional[str]
    to_square: Optional[str]
    power_up_used: bool = False
    power_up_kind: PowerUpKind = PowerUpKind.NONE
    sequencing: Sequencing = Sequencing.ACTION_FIRST
    first_step: Optional[str] = None
    follow_up: Optional[str] = None
    attack_target: Optional[Piece] = None
    expect_kill: bool = False
    forced_pass: bool = False

    @property
    def stays(self) -> bool:
        return self.from_square is not None and self.from_square == self.to_square


def _step_kind(face: ActionKind) -> ActionKind:
    return ActionKind.DEFEND if face is ActionKind.DEFEND else ActionKind.MOVE


def _is_step_face(face: ActionKind) -> bool:
    return face in (ActionKind.MOVE, ActionKind.DEFEND)


def _forward(square: str, carrying: bool) -> Optional[str]:
    """The square one rank further in the piece's current direction."""
    f, r = key_to_coords(square)
    return make_key(f, r + (1 if carrying else -1))


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


def _power_up_reach(board: BoardView, square: str, allow_diagonal: bool) -> list[str]:
    """Empty squares a single power-up step can reach."""
    geo = get_fast_geometry()
    out = [sq for sq in geo.orthogonal(square) if board.is_empty(sq)]
    if allow_diagonal:
        out += [sq for sq in geo.diagonal(square) if board.is_empty(sq)]
    return out


def _action_reach(board: BoardView, square: str, carrying: bool, early_step: bool) -> list[str]:
    """Empty squares the planned MOVE/DEFEND card itself can reach."""
    if not early_step:
        return []
    return [c.to for c in move_candidates(board, square, carrying)]


def _index_of(planned: Sequence[ActionKind], kind: ActionKind) -> int:
    for i, planned_kind in enumerate(planned[:6], start=1):
        if planned_kind is kind:
            return i
    return 99


@dataclass(frozen=True)
class _AssignmentView:
    """Per-call digest shared by the assignment detectors."""

    world: World
    piece: Piece
    here: str
    carrying: bool
    in_danger: bool
    early_step: bool
    early_attack: bool
    attack_index: int

    @property
    def board(self) -> BoardView:
        return self.world.board

    def is_finish(self, square: Optional[str]) -> bool:
        return self.world.is_finish(Side.P2, square)


def can_finish_with(view: _AssignmentView, kind: PowerUpKind) -> bool:
    """A mobility card completes a finish-line run this round."""
    if not (view.carrying and view.early_step):
        return False
    board = view.board
    if kind is PowerUpKind.DIAGONAL_MOVE:
        if any(view.is_finish(sq) for sq in _power_up_reach(board, view.here, True)):
            return True
    if kind is PowerUpKind.EXTRA_MOVE:
        first_steps = _action_reach(board, view.here, True, view.early_step)
        for step in first_steps:
            ahead = _forward(step, True)
            if (
                ahead and board.is_empty(ahead)
                and is_orthogonal_step(step, ahead) and view.is_finish(ahead)
            ):
                return True
        for step in _power_up_reach(board, view.here, False):
            if view.is_finish(step):
                return True
            ahead = _forward(step, True)
            if (
                ahead and board.is_empty(ahead)
                and is_orthogonal_step(step, ahead) and view.is_finish(ahead)
            ):
                return True
    return False


def guaranteed_shield_pop_kill(view: _AssignmentView) -> bool:
    """An early ATTACK next to a shielded target, with Extra Attack in hand."""
    if not view.early_attack:
        return False
    for piece, _ in adjacent_opponents(view.board, view.here):
        if view.board.shielded(piece):
            return view.world.power_ups.held(PowerUpKind.EXTRA_ATTACK) > 0
    return False


def adjacency_via_mobility(view: _AssignmentView, kind: PowerUpKind) -> tuple[bool, bool]:
    """(can reach adjacency to an opponent this round, target is a carrier)."""
    if not (view.early_step and view.attack_index <= 2):
        return False, False
    board = view.board
    allow_diagonal = kind is PowerUpKind.DIAGONAL_MOVE
    reachable: list[str] = []
    for step in _power_up_reach(board, view.here, allow_diagonal):
        reachable += _action_reach(board, step, view.carrying, view.early_step)
    for step in _action_reach(board, view.here, view.carrying, view.early_step):
        reachable += _power_up_reach(board, step, allow_diagonal)

    can = hits_carrier = False
    for square in reachable:
        for enemy, _ in adjacent_opponents(board, square):
            can = True
            if board.carrying(enemy):
                hits_carrier = True
    return can, hits_carrier


def _mobility_score(view: _AssignmentView, kind: PowerUpKind) -> float:
    board = view.board
    score = 0.0
    if can_finish_with(view, kind):
        score += 5000
    can_adj, hits_carrier = adjacency_via_mobility(view, kind)
    if can_adj:
        score += 900 if hits_carrier else 650
    if can_adj and hits_carrier and opponent_carrier_near_finish(view.world, board):
        score += 1200
    if view.carrying:
        if view.world.distance_to_finish(Side.P2, view.here) <= 3:
            score += 420
        if view.in_danger:
            score += 140
    else:
        base = progress(view.world, board, view.piece, view.here)
        best_delta = 0.0
        for step in _power_up_reach(board, view.here, kind is PowerUpKind.DIAGONAL_MOVE):
            best_delta = max(best_delta, progress(view.world, board, view.piece, step) - base)
        score += math.floor(best_delta * 600 + 0.5)
        if kind is PowerUpKind.DIAGONAL_MOVE:
            f, r = key_to_coords(view.here)
            lanes = (make_key(f, r - 1), make_key(f - 1, r), make_key(f + 1, r))
            blocked = sum(1 for sq in lanes if not board.is_empty(sq))
            if blocked >= 2:
                score += 140
    if view.early_step:
        score += 120
        if view.in_danger:
            score += 140
    return score


def _extra_attack_score(view: _AssignmentView, planned_attack_index: int) -> float:
    adjacent = adjacent_opponents(view.board, view.here)
    if view.early_attack and adjacent:
        score = 500 + len(adjacent) * 140
        if guaranteed_shield_pop_kill(view):
            score += 900
        score += 700 * sum(1 for enemy, _ in adjacent if view.board.carrying(enemy))
        return score
    return -(220 if planned_attack_index >= 3 else 100)


def _extra_defend_score(view: _AssignmentView) -> float:
    score = 0.0
    if view.in_danger:
        score += 520
    if view.early_step:
        score += 120
    if view.carrying:
        if view.world.distance_to_finish(Side.P2, view.here) <= 3:
            score += 260
        if view.in_danger:
            score += 160
    if view.early_attack and adjacent_opponents(view.board, view.here):
        score += 200
    return score


def appetite(profile: DifficultyProfile, total_held: int, carrying: bool) -> float:
    value = profile.power_up_spend + 0.07 * (profile.level - 3)
    if total_held >= 3:
        value += 0.10
    elif total_held <= 1:
        value -= 0.08
    if carrying:
        value += 0.10
    return max(0.10, min(0.98, value))


def assignment_threshold(profile: DifficultyProfile, appetite_value: float) -> int:
    base = ASSIGNMENT_THRESHOLDS.get(profile.level, 220)
    return max(MIN_ASSIGNMENT_THRESHOLD, base - math.floor(appetite_value * 120 + 0.5))


def choose_power_up(
    world: World,
    profile: DifficultyProfile,
    piece: Piece,
    planned_kinds: Sequence[ActionKind],
) -> PowerUpKind:
    """Pick a power-up to assign to ``piece`` this round, or NONE.

    Never targets an occupied zone and never returns a kind the engine's
    hand does not hold. Below the threshold the best kind is still taken
    whenever the piece shows any synergy signal (early action planned, in
    danger, or carrying).
    """
    if world.zone(piece).occupied:
        return PowerUpKind.NONE
    hand = world.power_ups
    if hand.total_held == 0:
        return PowerUpKind.NONE
    board = world.board
    here = board.square_of(piece)
    if here is None:
        return PowerUpKind.NONE

    first_two = tuple(planned_kinds[:2])
    view = _AssignmentView(
        world=world,
        piece=piece,
        here=here,
        carrying=board.carrying(piece),
        in_danger=here in threat_map(board, profile.opp_model),
        early_step=ActionKind.MOVE in first_two or ActionKind.DEFEND in first_two,
        early_attack=ActionKind.ATTACK in first_two,
        attack_index=_index_of(planned_kinds, ActionKind.ATTACK),
    )

    scores: dict[PowerUpKind, float] = {}
    for kind in REAL_POWER_UPS:
        if hand.held(kind) <= 0:
            continue
        if kind.is_mobility:
            score = _mobility_score(view, kind)
        elif kind is PowerUpKind.EXTRA_ATTACK:
            score = _extra_attack_score(view, view.attack_index)
        else:
            score = _extra_defend_score(view)
        # Slight reluctance to spend the last copy.
        scores[kind] = score * (1.0 if hand.held(kind) >= 2 else 0.90)

    best, best_score = PowerUpKind.NONE, NEGATIVE_INFINITY
    for kind, score in scores.items():
        if score > best_score:
            best, best_score = kind, score
    if best is PowerUpKind.NONE:
        return best

    if best.is_mobility:
        if can_finish_with(view, best):
            return best
        can_adj, hits_carrier = adjacency_via_mobility(view, best)
        if can_adj and hits_carrier and opponent_carrier_near_finish(world, board):
            return best
    if best is PowerUpKind.EXTRA_ATTACK and guaranteed_shield_pop_kill(view):
        return best
    if best is PowerUpKind.EXTRA_DEFEND and view.in_danger:
        return best

    threshold = assignment_threshold(profile, appetite(profile, hand.total_held, view.carrying))
    if best_score >= threshold:
        return best

    if view.early_step or view.early_attack or view.in_danger or view.carrying:
        logger.debug(
            "Assigning %s to %s below threshold (%.1f < %d)",
            best.value, piece.value, best_score, threshold,
        )
        return best
    return PowerUpKind.NONE


# ---------------------------------------------------------------------------
# Spend
# ---------------------------------------------------------------------------


def forced_win_option(world: World, piece: Piece, face: ActionKind) -> Optional[ActionOption]:
    """A carrier on a MOVE/DEFEND face that can step onto the finish line."""
    board = world.board
    if not _is_step_face(face) or not board.carrying(piece):
        return None
    here = board.square_of(piece)
    if here is None:
        return None
    zone = world.zone(piece)
    diagonal_ok = zone.holds(PowerUpKind.DIAGONAL_MOVE)
    extra_move = zone.holds(PowerUpKind.EXTRA_MOVE)

    for cand in move_candidates(board, here, True):
        legal = not cand.needs_diagonal or diagonal_ok
        if legal and world.is_finish(Side.P2, cand.to):
            if cand.needs_diagonal:
                return ActionOption(
                    piece, _step_kind(face), here, cand.to,
                    power_up_used=True,
                    power_up_kind=PowerUpKind.DIAGONAL_MOVE,
                    sequencing=Sequencing.POWER_UP_FIRST,
                )
            return ActionOption(piece, _step_kind(face), here, cand.to)
        if extra_move and not cand.needs_diagonal:
            ahead = _forward(cand.to, True)
            if ahead and board.is_empty(ahead) and world.is_finish(Side.P2, ahead):
                return ActionOption(
                    piece, ActionKind.MOVE, here, ahead,
                    power_up_used=True,
                    power_up_kind=PowerUpKind.EXTRA_MOVE,
                    sequencing=Sequencing.POWER_UP_FIRST,
                    first_step=cand.to,
                )
    return None


def must_spend_now(
    world: World, profile: DifficultyProfile, piece: Piece, face: ActionKind
) -> bool:
    """Whether holding the zone card any longer is likely to waste it."""
    zone = world.zone(piece)
    if not zone.is_open:
        return False
    board = world.board
    here = board.square_of(piece)
    if here is None:
        return False
    carrying = board.carrying(piece)
    in_danger = here in threat_map(board, profile.opp_model)

    if face is ActionKind.ATTACK and zone.kind is PowerUpKind.EXTRA_ATTACK:
        if attack_pick(board, here)[0] is not None:
            return True
    if _is_step_face(face) and zone.kind.is_mobility:
        for cand in move_candidates(board, here, carrying):
            if zone.kind is PowerUpKind.DIAGONAL_MOVE and cand.needs_diagonal:
                return True
            if zone.kind is PowerUpKind.EXTRA_MOVE and not cand.needs_diagonal:
                return True
    if zone.kind is PowerUpKind.EXTRA_DEFEND:
        if in_danger:
            return True
        if face is ActionKind.ATTACK and attack_pick(board, here)[0] is not None:
            return True

    near_finish = carrying and world.distance_to_finish(Side.P2, here) <= 3
    return remaining_real_after(world.queue(piece)) <= 1 or in_danger or near_finish


def _extra_move_two_step(
    board: BoardView, here: str, carrying: bool
) -> list[tuple[str, str]]:
    """(first step, second step) pairs of two legal orthogonal moves."""
    out = []
    for cand in move_candidates(board, here, carrying):
        if cand.needs_diagonal:
            continue
        ahead = _forward(cand.to, carrying)
        if ahead and board.is_empty(ahead) and is_orthogonal_step(cand.to, ahead):
            out.append((cand.to, ahead))
    return out


def _covered_first_step(board: BoardView, step: Optional[str], target: str) -> Optional[str]:
    """Defensive step taken before an attack, kept only if the target stays adjacent."""
    if step is not None and is_adjacent(step, target):
        return step
    return None


def manufacture_use_option(world: World, piece: Piece, face: ActionKind) -> Optional[ActionOption]:
    """Any minimal legal use of the zone card on this face."""
    zone = world.zone(piece)
    if not zone.is_open:
        return None
    board = world.board
    here = board.square_of(piece)
    if here is None:
        return None
    carrying = board.carrying(piece)
    candidates = move_candidates(board, here, carrying)
    orthogonal = [c.to for c in candidates if not c.needs_diagonal]

    if zone.kind is PowerUpKind.EXTRA_DEFEND:
        step = orthogonal[0] if orthogonal else None
        if face is ActionKind.ATTACK:
            target, victim = attack_pick(board, here)
            if target is None:
                return None
            return ActionOption(
                piece, ActionKind.ATTACK, here, target,
                power_up_used=True,
                power_up_kind=PowerUpKind.EXTRA_DEFEND,
                sequencing=Sequencing.POWER_UP_FIRST,
                first_step=_covered_first_step(board, step, target),
                attack_target=victim,
            )
        return ActionOption(
            piece, ActionKind.DEFEND, here, step or here,
            power_up_used=True,
            power_up_kind=PowerUpKind.EXTRA_DEFEND,
        )

    if _is_step_face(face):
        if zone.kind is PowerUpKind.DIAGONAL_MOVE:
            for cand in candidates:
                if cand.needs_diagonal:
                    return ActionOption(
                        piece, _step_kind(face), here, cand.to,
                        power_up_used=True,
                        power_up_kind=PowerUpKind.DIAGONAL_MOVE,
                        sequencing=Sequencing.POWER_UP_FIRST,
                    )
        if zone.kind is PowerUpKind.EXTRA_MOVE:
            pairs = _extra_move_two_step(board, here, carrying)
            if pairs:
                first, second = pairs[0]
                return ActionOption(
                    piece, ActionKind.MOVE, here, second,
                    power_up_used=True,
                    power_up_kind=PowerUpKind.EXTRA_MOVE,
                    sequencing=Sequencing.POWER_UP_FIRST,
                    first_step=first,
                )
            if orthogonal:
                return ActionOption(
                    piece, _step_kind(face), here, orthogonal[0],
                    power_up_used=True,
                    power_up_kind=PowerUpKind.EXTRA_MOVE,
                    sequencing=Sequencing.POWER_UP_FIRST,
                    first_step=orthogonal[0],
                )

    if zone.kind is PowerUpKind.EXTRA_ATTACK and face is ActionKind.ATTACK:
        target, victim = attack_pick(board, here)
        if target is not None:
            return ActionOption(
                piece, ActionKind.ATTACK, here, target,
                power_up_used=True,
                power_up_kind=PowerUpKind.EXTRA_ATTACK,
                attack_target=victim,
            )
    return None


def extra_attack_option(world: World, piece: Piece) -> Optional[ActionOption]:
    """Two hits: the best target, then the best target left after it."""
    zone = world.zone(piece)
    if not zone.holds(PowerUpKind.EXTRA_ATTACK):
        return None
    here = world.board.square_of(piece)
    if here is None:
        return None
    first, victim = attack_pick(world.board, here)
    if first is None:
        return None
    after = world.board.copy()
    after.hit(victim)
    second, _ = attack_pick(after, here)
    if second is None:
        return None
    return ActionOption(
        piece, ActionKind.ATTACK, here, first,
        power_up_used=True,
        power_up_kind=PowerUpKind.EXTRA_ATTACK,
        sequencing=Sequencing.POWER_UP_FIRST,
        follow_up=second,
        attack_target=victim,
    )


def extra_defend_attack_cover(
    world: World, profile: DifficultyProfile, piece: Piece
) -> Optional[ActionOption]:
    """Attack under Extra Defend cover when the reply looks dangerous."""
    board = world.board
    if not world.zone(piece).holds(PowerUpKind.EXTRA_DEFEND) or board.shielded(piece):
        return None
    here = board.square_of(piece)
    if here is None:
        return None
    target, victim = attack_pick(board, here)
    if target is None:
        return None
    danger = threat_map(board, profile.opp_model)
    if target not in danger and not adjacent_opponents(board, target):
        return None
    return ActionOption(
        piece, ActionKind.ATTACK, here, target,
        power_up_used=True,
        power_up_kind=PowerUpKind.EXTRA_DEFEND,
        sequencing=Sequencing.POWER_UP_FIRST,
        attack_target=victim,
    )


def extra_defend_escape(
    world: World, profile: DifficultyProfile, piece: Piece
) -> Optional[ActionOption]:
    """Shield first, then step to the safest legal square."""
    board = world.board
    if not world.zone(piece).holds(PowerUpKind.EXTRA_DEFEND) or board.shielded(piece):
        return None
    here = board.square_of(piece)
    if here is None:
        return None
    danger = threat_map(board, profile.opp_model)
    if here not in danger:
        return None

    best: Optional[str] = None
    best_score = NEGATIVE_INFINITY
    for cand in move_candidates(board, here, board.carrying(piece)):
        if cand.needs_diagonal:
            continue
        score = (
            (-1 if cand.to in danger else 0)
            + blocking_value(cand.to) * 3
            + progress(world, board, piece, cand.to) * 20
        )
        if best is None or score > best_score:
            best, best_score = cand.to, score
    if best is None:
        return None
    return ActionOption(
        piece, ActionKind.MOVE, here, best,
        power_up_used=True,
        power_up_kind=PowerUpKind.EXTRA_DEFEND,
        sequencing=Sequencing.POWER_UP_FIRST,
    )


def _extra_move_option(
    world: World, piece: Piece, here: str, carrying: bool
) -> Optional[ActionOption]:
    pairs = _extra_move_two_step(world.board, here, carrying)
    best: Optional[tuple[str, str]] = None
    best_progress = NEGATIVE_INFINITY
    for first, second in pairs:
        if world.is_finish(Side.P2, second):
            return ActionOption(
                piece, ActionKind.MOVE, here, second,
                power_up_used=True,
                power_up_kind=PowerUpKind.EXTRA_MOVE,
                sequencing=Sequencing.POWER_UP_FIRST,
                first_step=first,
            )
        p = progress(world, world.board, piece, second)
        # Later pairs win ties.
        if p >= best_progress:
            best, best_progress = (first, second), p
    if best is None:
        return None
    return ActionOption(
        piece, ActionKind.MOVE, here, best[1],
        power_up_used=True,
        power_up_kind=PowerUpKind.EXTRA_MOVE,
        sequencing=Sequencing.ACTION_FIRST,
        first_step=best[0],
    )


def decide_spend(
    world: World,
    profile: DifficultyProfile,
    piece: Piece,
    face: ActionKind,
    force: bool = False,
) -> Optional[ActionOption]:
    """Return a single power-up overlay option for this piece and face.

    Args:
        world: Canonical world
        profile: Difficulty profile in force
        piece: Engine piece whose card is being revealed
        face: Face of that card (MOVE, ATTACK or DEFEND)
        force: Spend at the first legal opportunity

    Returns:
        The overlay option, or None to skip spending this turn
    """
    zone = world.zone(piece)
    if not zone.is_open or not zone.kind.is_real:
        return None
    board = world.board
    here = board.square_of(piece)
    if here is None:
        return None
    carrying = board.carrying(piece)

    if force:
        forced = manufacture_use_option(world, piece, face)
        if forced is not None:
            return forced

    must = must_spend_now(world, profile, piece, face)

    win = forced_win_option(world, piece, face)
    if win is not None and win.power_up_used:
        return win

    if zone.kind is PowerUpKind.EXTRA_ATTACK and face is ActionKind.ATTACK:
        option = extra_attack_option(world, piece)
        if option is not None:
            return option
        if must:
            target, victim = attack_pick(board, here)
            if target is not None:
                return ActionOption(
                    piece, ActionKind.ATTACK, here, target,
                    power_up_used=True,
                    power_up_kind=PowerUpKind.EXTRA_ATTACK,
                    sequencing=Sequencing.POWER_UP_FIRST,
                    attack_target=victim,
                )
        return None

    if zone.kind is PowerUpKind.EXTRA_DEFEND:
        if face is ActionKind.ATTACK:
            option = extra_defend_attack_cover(world, profile, piece)
            if option is not None:
                return option
            if must:
                target, victim = attack_pick(board, here)
                if target is not None:
                    return ActionOption(
                        piece, ActionKind.ATTACK, here, target,
                        power_up_used=True,
                        power_up_kind=PowerUpKind.EXTRA_DEFEND,
                        sequencing=Sequencing.POWER_UP_FIRST,
                        attack_target=victim,
                    )
            return None
        option = extra_defend_escape(world, profile, piece)
        if option is not None:
            return option
        if must:
            return ActionOption(
                piece, _step_kind(face), here, here,
                power_up_used=True,
                power_up_kind=PowerUpKind.EXTRA_DEFEND,
                sequencing=Sequencing.POWER_UP_FIRST,
            )
        return None

    if zone.kind.is_mobility and _is_step_face(face):
        if zone.kind is PowerUpKind.DIAGONAL_MOVE:
            for cand in move_candidates(board, here, carrying):
                if cand.needs_diagonal:
                    return ActionOption(
                        piece, _step_kind(face), here, cand.to,
                        power_up_used=True,
                        power_up_kind=PowerUpKind.DIAGONAL_MOVE,
                        sequencing=Sequencing.POWER_UP_FIRST,
                    )
            if must:
                for square in get_fast_geometry().diagonal(here):
                    if board.is_empty(square):
                        return ActionOption(
                            piece, _step_kind(face), here, square,
                            power_up_used=True,
                            power_up_kind=PowerUpKind.DIAGONAL_MOVE,
                            sequencing=Sequencing.POWER_UP_FIRST,
                        )
            return None

        option = _extra_move_option(world, piece, here, carrying)
        if option is not None:
            return option
        if must:
            return manufacture_use_option(world, piece, face)
        return None

    if remaining_real_after(world.queue(piece)) == 0:
        return manufacture_use_option(world, piece, face)
    return None
