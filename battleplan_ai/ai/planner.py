"""Plan builder: program one engine piece's hidden queue for this round.

The builder picks a (piece, die, sequence) triple. A carrier close to its
finish line gets a direct sprint; otherwise a small beam search simulates
each candidate sequence on a scratch board and keeps the best-scoring one.
Whatever comes out goes through :func:`audit_plan`, so the result always
respects the dice pool, the remaining queue slots and the per-type caps.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..metrics import record_repair
from ..models import (
    ENGINE_PIECES,
    QUEUE_SLOTS,
    ActionKind,
    PiecePlanStatus,
    Piece,
    PlanResult,
    PlanStatus,
    PowerUpKind,
    Side,
)
from .base import DecisionContext
from .difficulty import DifficultyProfile
from .fast_geometry import key_to_coords, manhattan
from .heuristics import (
    adjacent_opponents,
    blocking_value,
    first_adjacent_opponent,
    move_candidates,
    progress,
    threat_map,
)
from .plan_cache import PlanSearchKey
from .power_ups import choose_power_up
from .world import (
    CAP_ATTACK,
    CAP_DEFEND,
    CAP_MOVE,
    ActionCounts,
    BoardView,
    World,
    assigned_count,
    count_unrevealed_real,
    slots_left,
    unrevealed_real_counts,
)

logger = logging.getLogger(__name__)

BLANK_PLAN = (ActionKind.BLANK,) * QUEUE_SLOTS

FINISH_BONUS = 1e6


@dataclass(frozen=True)
class ScoredPlan:
    actions: tuple[ActionKind, ...]
    score: float


@dataclass
class AuditReport:
    """Outcome of the plan legality audit."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)
    fixed: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors

    def error(self, reason: str, message: str) -> None:
        self.errors.append(message)
        self.reasons.append(reason)
        self.fixed = True

    def warn(self, reason: str, message: str) -> None:
        self.warnings.append(message)
        self.reasons.append(reason)
        self.fixed = True


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


def apply_sim_step(
    world: World,
    board: BoardView,
    piece: Piece,
    kind: ActionKind,
    profile: DifficultyProfile,
) -> None:
    """Apply one planned card to ``board`` in place (greedy approximation)."""
    here = board.square_of(piece)
    if here is None:
        return
    if kind is ActionKind.ATTACK:
        victim = first_adjacent_opponent(board, here)
        if victim is not None:
            board.hit(victim)
        return
    if kind not in (ActionKind.MOVE, ActionKind.DEFEND):
        return

    carrying = board.carrying(piece)
    candidates = move_candidates(board, here, carrying)
    if candidates:
        danger = threat_map(board, profile.opp_model)
        base = progress(world, board, piece, here)
        best, best_score = here, -1e9
        for cand in candidates:
            to = cand.to
            gain = progress(world, board, piece, to) - base
            safety = -1.0 if to in danger else 0.0
            token = 0.0
            if board.token is not None:
                token = (manhattan(here, board.token) - manhattan(to, board.token)) * 0.15
            score = gain * 40 + safety * 25 + token * 10 + blocking_value(to) * 3
            if carrying and world.is_finish(Side.P2, to):
                score += FINISH_BONUS
            if score > best_score:
                best, best_score = to, score
        board.move(piece, best)
    if kind is ActionKind.DEFEND:
        board.shields[piece] = True


def evaluate_board(world: World, board: BoardView, profile: DifficultyProfile) -> float:
    """Static evaluation used at the plan-search leaves."""
    score = 0.0
    danger = threat_map(board, profile.opp_model)
    for piece, square in board.on_board(Side.P2):
        score += progress(world, board, piece, square) * 120
        if square in danger:
            score -= 55 * (1.0 - profile.risk)
        if board.token is not None and square == board.token:
            score += 30
        if board.carrying(piece) and world.is_finish(Side.P2, square):
            score += FINISH_BONUS
    for piece, square in board.on_board(Side.P1):
        if board.carrying(piece) and world.is_finish(Side.P1, square):
            score -= FINISH_BONUS
    ours = sum(1 for _ in board.on_board(Side.P2))
    theirs = sum(1 for _ in board.on_board(Side.P1))
    return score + (ours - theirs) * 60


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def _step_options(
    board: BoardView, piece: Piece, used: ActionCounts, capacity: ActionCounts
) -> list[ActionKind]:
    here = board.square_of(piece)
    can_step = bool(move_candidates(board, here, board.carrying(piece)))
    options = []
    if used.move < capacity.move and can_step:
        options.append(ActionKind.MOVE)
    if used.attack < capacity.attack and adjacent_opponents(board, here):
        options.append(ActionKind.ATTACK)
    if used.defend < capacity.defend and can_step:
        options.append(ActionKind.DEFEND)
    return options


def _pad(
    actions: list[ActionKind], n: int, used: ActionCounts, capacity: ActionCounts
) -> list[ActionKind]:
    """Fill a dead-end sequence up to ``n`` with whatever capacity remains."""
    out = list(actions)
    for kind, spare in (
        (ActionKind.MOVE, capacity.move - used.move),
        (ActionKind.ATTACK, capacity.attack - used.attack),
        (ActionKind.DEFEND, capacity.defend - used.defend),
    ):
        out += [kind] * max(0, min(n - len(out), spare))
    return out


def _bump(used: ActionCounts, kind: ActionKind) -> ActionCounts:
    if kind is ActionKind.MOVE:
        return used._replace(move=used.move + 1)
    if kind is ActionKind.ATTACK:
        return used._replace(attack=used.attack + 1)
    return used._replace(defend=used.defend + 1)


def _search_leaves(
    world: World,
    profile: DifficultyProfile,
    piece: Piece,
    n: int,
    capacity: ActionCounts,
    board: BoardView,
    used: ActionCounts,
    seq: tuple[ActionKind, ...],
) -> list[ScoredPlan]:
    """Scored complete sequences reachable from ``seq`` within the beam."""
    if len(seq) >= n:
        return [ScoredPlan(seq, evaluate_board(world, board, profile))]
    options = _step_options(board, piece, used, capacity)
    if not options:
        padded = tuple(_pad(list(seq), n, used, capacity))
        return [ScoredPlan(padded, evaluate_board(world, board, profile))]

    branches = []
    for kind in options:
        scratch = board.copy()
        apply_sim_step(world, scratch, piece, kind, profile)
        branches.append((evaluate_board(world, scratch, profile), kind, scratch))
    branches.sort(key=lambda b: b[0], reverse=True)

    leaves: list[ScoredPlan] = []
    for _, kind, scratch in branches[: profile.plan_beam]:
        leaves.extend(_search_leaves(
            world, profile, piece, n, capacity, scratch, _bump(used, kind), seq + (kind,)
        ))
    return leaves


def generate_plans(
    world: World, profile: DifficultyProfile, piece: Piece, n: int
) -> list[ScoredPlan]:
    """Beam search over ``n``-card sequences for ``piece``.

    Returns the distinct sequences in descending score order, at most
    ``profile.plan_keep`` of them. Deterministic for a given world.
    """
    if n <= 0 or world.board.square_of(piece) is None:
        return []
    capacity = unrevealed_real_counts(world.queue(piece)).remaining_capacity()
    leaves = _search_leaves(
        world, profile, piece, n, capacity, world.board.copy(), ActionCounts(), ()
    )
    leaves.sort(key=lambda p: p.score, reverse=True)

    out: list[ScoredPlan] = []
    seen: set[tuple[ActionKind, ...]] = set()
    for plan in leaves:
        if plan.actions in seen:
            continue
        seen.add(plan.actions)
        out.append(plan)
        if len(out) >= profile.plan_keep:
            break
    return out


def shortest_finish_length(world: World, piece: Piece) -> Optional[int]:
    """Forward steps a carrier needs to reach its finish line (BFS)."""
    board = world.board
    start = board.square_of(piece)
    if start is None or not board.carrying(piece):
        return None
    dist = {start: 0}
    queue = deque([start])
    while queue:
        square = queue.popleft()
        if world.is_finish(Side.P2, square):
            return dist[square]
        for cand in move_candidates(board, square, True):
            if cand.to not in dist:
                dist[cand.to] = dist[square] + 1
                queue.append(cand.to)
    return None


def priority(
    world: World, profile: DifficultyProfile, ctx: DecisionContext, piece: Piece
) -> float:
    board = world.board
    square = board.square_of(piece)
    if square is None:
        return -1e9
    score = progress(world, board, piece, square) * 100
    if board.carrying(piece):
        score += (key_to_coords(square)[1] - 4) * 25
        if world.is_finish(Side.P2, square):
            score += FINISH_BONUS
    if piece is Piece.PINK:
        score += blocking_value(square) * 20
    if board.token is not None:
        d = manhattan(square, board.token)
        score += (1.0 / (1 + d) if d > 0 else 1.0) * 20
    return score + ctx.noise(profile.noise)


def eligible_pieces(world: World) -> list[Piece]:
    return [p for p in ENGINE_PIECES if count_unrevealed_real(world.queue(p)) == 0]


def _sprint(
    world: World,
    profile: DifficultyProfile,
    ctx: DecisionContext,
    piece: Piece,
    pool: Sequence[int],
) -> Optional[PlanResult]:
    needed = shortest_finish_length(world, piece)
    if not needed:
        return None
    queue = world.queue(piece)
    moves_left = unrevealed_real_counts(queue).remaining_capacity().move
    left = slots_left(queue)
    if needed > moves_left or needed > left:
        return None
    fitting = [d for d in pool if needed <= d <= left]
    if not fitting:
        return None
    kinds = [ActionKind.MOVE] * needed + [ActionKind.BLANK] * (QUEUE_SLOTS - needed)
    requested = choose_power_up(world, profile, piece, kinds)
    plan = _audit_and_log(world, piece, min(fitting), kinds, requested)
    if plan.count >= needed:
        ctx.trace("plan sprint %s steps=%d die=%d", piece.value, needed, plan.count)
        return plan
    return None


def build_plan(world: World, profile: DifficultyProfile, ctx: DecisionContext) -> PlanResult:
    """Choose the next piece to program and its queue for this round.

    Args:
        world: Canonical world
        profile: Difficulty profile in force
        ctx: Decision context (noise, plan cache and configuration)

    Returns:
        An audited plan; ``count == 0`` with six BLANK slots when no die
        or no eligible piece is left.
    """
    pool = world.dice_pool
    eligible = eligible_pieces(world)

    if not pool or not eligible:
        return _audit_and_log(world, eligible[0] if eligible else Piece.BLUE, 0, BLANK_PLAN)

    ranked = {piece: priority(world, profile, ctx, piece) for piece in eligible}
    eligible.sort(key=lambda p: ranked[p], reverse=True)

    for piece in eligible:
        if world.board.carrying(piece):
            sprint = _sprint(world, profile, ctx, piece, pool)
            if sprint is not None:
                return sprint

    best_piece: Optional[Piece] = None
    best_n = 0
    best_actions: tuple[ActionKind, ...] = ()
    best_score = -1e9
    for piece in eligible:
        queue = world.queue(piece)
        left = slots_left(queue)
        cap_space = unrevealed_real_counts(queue).remaining_capacity().total
        for n in sorted((d for d in pool if 0 < d <= left and d <= cap_space), reverse=True):
            plans = ctx.cached_plans(
                PlanSearchKey.for_search(world, profile, piece, n),
                lambda piece=piece, n=n: generate_plans(world, profile, piece, n),
            )
            if not plans:
                continue
            top = plans[0]
            ctx.trace("plan %s n=%d %s score=%.2f", piece.value, n, top.actions, top.score)
            if len(top.actions) == n and top.score > best_score:
                best_piece, best_n, best_actions, best_score = piece, n, top.actions, top.score

    if best_piece is None or best_n <= 0:
        return _audit_and_log(world, eligible[0], 0, BLANK_PLAN)

    kinds = list(best_actions[:best_n]) + [ActionKind.BLANK] * (QUEUE_SLOTS - best_n)
    requested = choose_power_up(world, profile, best_piece, kinds)
    if ctx.config.force_power_up_assignment and world.zone(best_piece).is_open:
        forced = world.power_ups.first_held()
        if forced is not None:
            requested = forced
    return _audit_and_log(world, best_piece, best_n, kinds, requested)


# ---------------------------------------------------------------------------
# Legality audit
# ---------------------------------------------------------------------------


def _counts(kinds: Sequence[ActionKind], n: int) -> ActionCounts:
    window = kinds[:n]
    return ActionCounts(
        window.count(ActionKind.MOVE),
        window.count(ActionKind.ATTACK),
        window.count(ActionKind.DEFEND),
    )


def _trim(kinds: list[ActionKind], n: int, kind: ActionKind, over: int) -> None:
    for i in range(n - 1, -1, -1):
        if over <= 0:
            return
        if kinds[i] is kind:
            kinds[i] = ActionKind.BLANK
            over -= 1


def audit_plan(
    world: World,
    piece: Optional[Piece],
    count: int,
    kinds: Sequence[ActionKind],
    requested: PowerUpKind = PowerUpKind.NONE,
) -> tuple[PlanResult, AuditReport]:
    """Clamp a proposed plan to what is legal right now.

    Returns the repaired plan and a report of what was changed.
    """
    report = AuditReport()
    pool = world.dice_pool

    if piece not in ENGINE_PIECES:
        report.error("piece", f"plan piece must be one of Blue/Pink/Purple, got {piece}")
        piece = Piece.BLUE

    plan = [k if isinstance(k, ActionKind) else ActionKind.parse(k) for k in list(kinds)[:QUEUE_SLOTS]]
    plan += [ActionKind.BLANK] * (QUEUE_SLOTS - len(plan))

    queue = world.queue(piece)
    left = slots_left(queue)
    n = count
    if n < 0 or n > QUEUE_SLOTS:
        report.error("count_range", f"n out of range: {n}")
        n = 0
    if n > left:
        report.error("slots", f"n={n} exceeds remaining slots={left}")
        n = left
    if n > 0 and n not in pool:
        report.error("die_unavailable", f"die {n} not available this round")
        n = max((d for d in pool if d <= left), default=0)
        if n == 0:
            report.warn("no_die", "no available die fits; switching to no-op (n=0)")

    for i in range(n):
        if not (plan[i].is_real or plan[i] is ActionKind.BLANK):
            report.error("face", f"illegal face at slot {i + 1}: {plan[i].value}")
            plan[i] = ActionKind.BLANK

    queued = unrevealed_real_counts(queue)
    new = _counts(plan, n)
    for kind, already, added, cap in (
        (ActionKind.MOVE, queued.move, new.move, CAP_MOVE),
        (ActionKind.ATTACK, queued.attack, new.attack, CAP_ATTACK),
        (ActionKind.DEFEND, queued.defend, new.defend, CAP_DEFEND),
    ):
        if already + added > cap:
            _trim(plan, n, kind, already + added - cap)
            report.error("cap", f"{kind.value} cap exceeded; trimmed")

    new = _counts(plan, n)
    moves, attacks, defends = queued.move + new.move, queued.attack + new.attack, queued.defend + new.defend
    for i in range(n):
        if plan[i] is not ActionKind.BLANK:
            continue
        if moves < CAP_MOVE:
            plan[i], moves = ActionKind.MOVE, moves + 1
        elif attacks < CAP_ATTACK:
            plan[i], attacks = ActionKind.ATTACK, attacks + 1
        elif defends < CAP_DEFEND:
            plan[i], defends = ActionKind.DEFEND, defends + 1

    real = [k for k in plan[:n] if k.is_real]
    if len(real) < n:
        report.warn("short", f"plan has {len(real)} real actions < n={n} after caps; reducing n")
        n = len(real)
    # Slots past the count are never executed.
    plan = real + [ActionKind.BLANK] * (QUEUE_SLOTS - n)

    if requested.is_real and world.power_ups.held(requested) == 0:
        report.warn("power_up_not_held", f"requested power-up {requested.value!r} not in hand; clearing")
        requested = PowerUpKind.NONE
    elif not requested.is_real:
        requested = PowerUpKind.NONE

    return (
        PlanResult(piece=piece, count=n, ordered_kinds=plan, requested_power_up=requested),
        report,
    )


def _audit_and_log(
    world: World,
    piece: Piece,
    count: int,
    kinds: Sequence[ActionKind],
    requested: PowerUpKind = PowerUpKind.NONE,
) -> PlanResult:
    plan, report = audit_plan(world, piece, count, kinds, requested)
    if report.fixed:
        logger.warning(
            "Plan for %s repaired: %s",
            plan.piece.value, "; ".join(report.errors + report.warnings),
            extra={"piece": plan.piece.value, "count": plan.count, "reasons": report.reasons},
        )
        for reason in dict.fromkeys(report.reasons):
            record_repair("plan", reason)
    return plan


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


def infer_plan_status(world: World) -> PlanStatus:
    """Summarise what the engine side has already programmed this round."""
    per_piece = {}
    prepared, without, used = [], [], []
    for piece in ENGINE_PIECES:
        queue = world.queue(piece)
        assigned = assigned_count(queue)
        zone = world.zone(piece)
        per_piece[piece] = PiecePlanStatus(
            assigned=assigned,
            action_queue=[slot.kind for slot in queue if slot.is_pending_real],
            zone=zone.kind,
            zone_status=zone.status,
            power_up_used=not zone.is_open,
        )
        if assigned > 0:
            prepared.append(piece)
            used.append(assigned)
        else:
            without.append(piece)

    available = sorted(world.dice, reverse=True)
    for value in used:
        if value in available:
            available.remove(value)
    return PlanStatus(
        per_piece=per_piece,
        prepared=prepared,
        without_assignment=without,
        used_dice=used,
        available_dice=available,
    )
