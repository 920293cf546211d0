"""Battle-phase action selection.

For every engine piece tied for the earliest pending real card, build the
baseline options for its face plus at most one power-up overlay, score them
on a scratch board with a one-ply reply estimate, and keep the best. The
final answer passes a must-move repair so a MOVE/DEFEND never stays put
while a legal step exists.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from ..metrics import record_repair
from ..models import (
    ENGINE_PIECES,
    OPPONENT_PIECES,
    ActionKind,
    ActionResult,
    Piece,
    PowerUpKind,
    Sequencing,
    Side,
)
from .base import DecisionContext
from .difficulty import DifficultyProfile
from .fast_geometry import is_adjacent, is_diagonal_step, is_orthogonal_step, key_to_coords, make_key
from .heuristics import (
    attack_pick,
    blocking_value,
    move_candidates,
    orthogonal_move_count,
    progress,
    threat_map,
)
from .power_ups import ActionOption, decide_spend, forced_win_option, manufacture_use_option
from .world import NO_SLOT, BoardView, World, next_real_slot, remaining_real_after

logger = logging.getLogger(__name__)

FINISH_BONUS = 1e6
FORCE_SPEND_BONUS = 1e6


def tied_pieces(world: World) -> list[Piece]:
    """Engine pieces whose next pending real card is the earliest one."""
    earliest, ties = NO_SLOT, []
    for piece in ENGINE_PIECES:
        pos, kind = next_real_slot(world.queue(piece))
        if kind is None:
            continue
        if pos < earliest:
            earliest, ties = pos, [piece]
        elif pos == earliest:
            ties.append(piece)
    return ties


def forced_pass(world: World, piece: Optional[Piece] = None) -> ActionOption:
    """Defend-in-place no-op used when nothing is left to reveal."""
    if piece is None:
        on_board = [p for p, _ in world.board.on_board(Side.P2)]
        piece = on_board[0] if on_board else Piece.BLUE
    square = world.board.square_of(piece)
    return ActionOption(piece, ActionKind.DEFEND, square, square, forced_pass=True)


def base_options(
    world: World, profile: DifficultyProfile, piece: Piece, face: ActionKind
) -> list[ActionOption]:
    """Options for ``face`` that spend no power-up."""
    board = world.board
    here = board.square_of(piece)
    if here is None:
        return []

    win = forced_win_option(world, piece, face)
    if win is not None and not win.power_up_used:
        return [win]

    if face is ActionKind.ATTACK:
        target, victim = attack_pick(board, here)
        if target is None:
            return []
        return [
            ActionOption(
                piece, ActionKind.ATTACK, here, target,
                attack_target=victim,
                expect_kill=not board.shielded(victim),
            )
        ]

    kind = ActionKind.DEFEND if face is ActionKind.DEFEND else ActionKind.MOVE
    options = [
        ActionOption(piece, kind, here, cand.to)
        for cand in move_candidates(board, here, board.carrying(piece))
        if not cand.needs_diagonal
    ]
    in_danger = here in threat_map(board, profile.opp_model)
    if face is ActionKind.DEFEND or (face is ActionKind.MOVE and in_danger) or not options:
        options.append(ActionOption(piece, ActionKind.DEFEND, here, here))
    return options


def _legal_step(board: BoardView, frm: Optional[str], to: Optional[str], allow_diagonal: bool) -> bool:
    if frm is None or not board.is_empty(to):
        return False
    return is_orthogonal_step(frm, to) or (allow_diagonal and is_diagonal_step(frm, to))


def _apply_option(board: BoardView, piece: Piece, option: ActionOption) -> None:
    kind = option.power_up_kind if option.power_up_used else PowerUpKind.NONE
    defends = option.action_kind is ActionKind.DEFEND or kind is PowerUpKind.EXTRA_DEFEND

    # A standing shield is spent by any non-defensive action.
    if not defends:
        board.shields[piece] = False

    if option.action_kind is ActionKind.ATTACK:
        if kind is PowerUpKind.EXTRA_DEFEND and option.sequencing is Sequencing.POWER_UP_FIRST:
            here = board.square_of(piece)
            if _legal_step(board, here, option.first_step, False):
                board.move(piece, option.first_step)
            board.shields[piece] = True
        victim = board.opponent_at(option.to_square)
        if victim is not None:
            board.hit(victim)
        if kind is PowerUpKind.EXTRA_ATTACK and option.follow_up is not None:
            second = board.opponent_at(option.follow_up)
            if second is not None:
                board.hit(second)
        return

    allow_diagonal = kind is PowerUpKind.DIAGONAL_MOVE
    here = board.square_of(piece)
    if (
        option.power_up_kind is PowerUpKind.EXTRA_MOVE
        and option.first_step is not None
        and _legal_step(board, here, option.first_step, allow_diagonal)
    ):
        board.move(piece, option.first_step)
        here = option.first_step

    to = option.to_square
    can_step = any(
        _legal_step(board, here, cand.to, allow_diagonal)
        for cand in move_candidates(board, here, board.carrying(piece))
    )
    if here is not None and to is not None:
        if _legal_step(board, here, to, allow_diagonal) or (to == here and not can_step):
            board.move(piece, to)
    if defends:
        board.shields[piece] = True


def _static_eval(world: World, board: BoardView) -> float:
    score = 0.0
    for piece, square in board.on_board(Side.P2):
        score += progress(world, board, piece, square) * 120 + blocking_value(square) * 8
        if board.token is not None and square == board.token:
            score += 25
        if board.carrying(piece) and world.is_finish(Side.P2, square):
            score += FINISH_BONUS
    for piece in OPPONENT_PIECES:
        square = board.square_of(piece)
        if square is None:
            score += 70
        elif board.carrying(piece) and world.is_finish(Side.P1, square):
            score -= FINISH_BONUS
    return score


def score_option(
    world: World,
    profile: DifficultyProfile,
    ctx: DecisionContext,
    piece: Piece,
    option: ActionOption,
) -> float:
    """Immediate evaluation of ``option`` with a one-ply reply estimate."""
    board = world.board.copy()
    _apply_option(board, piece, option)
    score = _static_eval(world, board)

    risk = profile.risk
    opp_model = profile.opp_model
    after = board.square_of(piece)
    if after is not None:
        shielded = board.shielded(piece)
        if after in threat_map(board, opp_model):
            amp = 1.15 if opp_model >= 2 else 1.0
            score -= 55 * (1.0 - risk) * amp * (0.35 if shielded else 1.0)

        adjacent = [(p, sq) for p, sq in board.on_board(Side.P1) if is_adjacent(after, sq)]
        carriers = [(p, sq) for p, sq in adjacent if board.carrying(p)]
        reply = len(adjacent) * 30 + len(carriers) * 40 + (25 if len(adjacent) >= 2 else 0)
        reply_scale = (0.6 + 0.2 * opp_model) * (0.5 + 0.5 * risk)
        if profile.reply_depth >= 3 and option.action_kind is ActionKind.ATTACK:
            reply *= 1.15
        if shielded:
            reply *= 0.6
        score -= reply * reply_scale

        if shielded:
            score += len(adjacent) * 14 + len(carriers) * 12
        if option.action_kind is ActionKind.DEFEND:
            before = world.board.square_of(piece)
            delta = 0.0
            if before is not None:
                delta = progress(world, board, piece, after) - progress(world, board, piece, before)
            score += 6 + max(0.0, delta) * 30
        if board.carrying(piece) and shielded:
            to_finish = world.distance_to_finish(Side.P2, after)
            if to_finish <= 2:
                score += 80
            elif to_finish <= 3:
                score += 40

        intercept = 0.0
        for _, square in carriers:
            d = world.distance_to_finish(Side.P1, square)
            intercept = max(intercept, 120 if d <= 2 else (85 if d <= 3 else 55))
        if intercept > 0:
            score += intercept * (1.15 if shielded else 1.0)

    if option.power_up_used:
        cost = float(profile.spend_cost)
        if option.power_up_kind is PowerUpKind.EXTRA_DEFEND:
            cost *= 0.65
        if option.power_up_kind is PowerUpKind.EXTRA_MOVE and world.is_finish(Side.P2, option.to_square):
            cost *= 0.25
        score -= cost * (1.0 - risk)

        if option.power_up_kind is PowerUpKind.DIAGONAL_MOVE and option.from_square and option.to_square:
            carrying = world.board.carrying(piece)
            if orthogonal_move_count(world.board, option.from_square, carrying) <= 1:
                score += 110

    remaining = remaining_real_after(world.queue(piece))
    if option.power_up_used:
        bonus = {0: 240, 1: 180, 2: 90}.get(remaining, 0)
        score += bonus * (0.85 + 0.4 * profile.power_up_spend)
        if ctx.config.force_power_up_spend:
            score += FORCE_SPEND_BONUS
    elif world.zone(piece).occupied and remaining <= 1:
        score -= 130 if remaining == 0 else 80

    return score + ctx.noise(profile.noise)


def _quiescent(world: World, profile: DifficultyProfile, option: ActionOption) -> bool:
    """Tactical options that skip the shortlist cut."""
    if profile.quiescence.keeps_captures and option.action_kind is ActionKind.ATTACK and option.expect_kill:
        return True
    if profile.quiescence.keeps_finishes and world.board.carrying(option.piece):
        return world.is_finish(Side.P2, option.to_square)
    return False


def best_option_for_piece(
    world: World,
    profile: DifficultyProfile,
    ctx: DecisionContext,
    piece: Piece,
    face: ActionKind,
) -> Optional[ActionOption]:
    """Best of the baseline options and the power-up overlay for one piece."""
    candidates = base_options(world, profile, piece, face)
    overlay = decide_spend(world, profile, piece, face)
    if overlay is not None:
        candidates.append(overlay)

    if ctx.config.force_power_up_spend:
        spending = [c for c in candidates if c.power_up_used]
        if spending:
            candidates = spending
        else:
            manufactured = manufacture_use_option(world, piece, face)
            if manufactured is not None:
                candidates = [manufactured]
    if not candidates:
        return None

    scored = []
    for option in candidates:
        score = score_option(world, profile, ctx, piece, option)
        ctx.trace(
            "battle %s %s %s->%s power_up=%s score=%.2f",
            piece.value, option.action_kind.value, option.from_square,
            option.to_square, option.power_up_kind.value, score,
        )
        scored.append((score, option))

    ranked = sorted(scored, key=lambda s: s[0], reverse=True)
    shortlist = [option for _, option in ranked[: profile.battle_shortlist]]
    shortlist += [
        option for _, option in ranked[profile.battle_shortlist:]
        if _quiescent(world, profile, option)
    ]

    best: Optional[ActionOption] = None
    best_score = float("-inf")
    for option in shortlist:
        score = score_option(world, profile, ctx, piece, option)
        if score > best_score:
            best, best_score = option, score
    return best


def _first_orthogonal_repair(board: BoardView, here: str, carrying: bool) -> Optional[str]:
    f, r = key_to_coords(here)
    dr = 1 if carrying else -1
    for ff, rr in ((f, r + dr), (f - 1, r), (f + 1, r)):
        step = make_key(ff, rr)
        if step is not None and board.is_empty(step) and is_orthogonal_step(here, step):
            return step
    return None


def repair_must_move(world: World, option: ActionOption) -> ActionOption:
    """Turn a stay-in-place MOVE/DEFEND into a real step when one exists.

    Applies to per-piece forced passes too (a card with no usable target);
    the repaired action is no longer flagged as a pass.
    """
    if option.action_kind not in (ActionKind.MOVE, ActionKind.DEFEND):
        return option
    board = world.board
    here = option.from_square or board.square_of(option.piece)
    if here is None or (option.to_square is not None and option.to_square != here):
        return option

    carrying = board.carrying(option.piece)
    step = _first_orthogonal_repair(board, here, carrying)
    changes: dict = {}
    reason = "orthogonal_step"
    if step is None and world.zone(option.piece).holds(PowerUpKind.DIAGONAL_MOVE):
        f, r = key_to_coords(here)
        dr = 1 if carrying else -1
        for df in (-1, 1):
            diagonal = make_key(f + df, r + dr)
            if diagonal is not None and board.is_empty(diagonal):
                step = diagonal
                reason = "diagonal_step"
                changes = {
                    "power_up_used": True,
                    "power_up_kind": PowerUpKind.DIAGONAL_MOVE,
                    "sequencing": Sequencing.POWER_UP_FIRST,
                }
                break
    if step is None:
        return option

    logger.warning(
        "Must-move repair for %s: %s stayed on %s, stepping to %s",
        option.piece.value, option.action_kind.value, here, step,
        extra={"piece": option.piece.value, "from": here, "to": step, "reason": reason},
    )
    record_repair("action", reason)
    return dataclasses.replace(option, from_square=here, to_square=step, forced_pass=False, **changes)


def choose_action(world: World, profile: DifficultyProfile, ctx: DecisionContext) -> ActionOption:
    """Pick the action for the next card to be revealed on the engine side.

    Returns a forced pass when no engine piece has a pending real card.
    """
    ties = tied_pieces(world)
    if not ties:
        return forced_pass(world)

    best: Optional[ActionOption] = None
    best_score = float("-inf")
    for piece in ties:
        _, face = next_real_slot(world.queue(piece))
        option = best_option_for_piece(world, profile, ctx, piece, face)
        if option is None:
            option = manufacture_use_option(world, piece, face) or forced_pass(world, piece)
        score = score_option(world, profile, ctx, piece, option)
        if score > best_score:
            best, best_score = option, score

    if best is None:
        best = forced_pass(world, ties[0])
    return repair_must_move(world, best)


def power_up_target(option: ActionOption) -> Optional[str]:
    if not (option.power_up_kind.is_mobility and option.sequencing is Sequencing.POWER_UP_FIRST):
        return None
    if option.power_up_kind is PowerUpKind.EXTRA_MOVE and option.first_step is not None:
        return option.first_step
    return option.to_square


def to_action_result(world: World, option: ActionOption) -> ActionResult:
    attack_target = option.attack_target
    if attack_target is None and option.action_kind is ActionKind.ATTACK:
        attack_target = world.board.opponent_at(option.to_square)
    return ActionResult(
        piece=option.piece,
        action_kind=option.action_kind,
        from_square=option.from_square,
        to_square=option.to_square,
        sequencing=option.sequencing,
        power_up_used=option.power_up_used,
        power_up_kind=option.power_up_kind if option.power_up_used else PowerUpKind.NONE,
        power_up_target=power_up_target(option),
        attack_target=attack_target,
        expect_kill=option.expect_kill or (
            attack_target is not None and not world.board.shielded(attack_target)
        ),
        forced_pass=option.forced_pass,
    )
