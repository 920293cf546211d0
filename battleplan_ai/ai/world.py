"""World model built fresh from a canonical snapshot for every request.

The builder never raises. Anything missing from the snapshot becomes empty
or zero, and conflicting piece locations are resolved in fixed piece order
so that occupancy stays injective.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, NamedTuple, Optional, Sequence

from ..models import (
    ALL_PIECES,
    ENGINE_PIECES,
    OPPONENT_PIECES,
    QUEUE_SLOTS,
    REAL_POWER_UPS,
    ActionKind,
    LocationState,
    Piece,
    PowerUpKind,
    QueueSlot,
    Side,
    Snapshot,
    ZoneStatus,
    pieces_of,
)
from .fast_geometry import Square, full_rank, manhattan

logger = logging.getLogger(__name__)

CAP_MOVE = 3
CAP_ATTACK = 2
CAP_DEFEND = 1

NO_SLOT = 99
DEFAULT_HOMES = full_rank(8)


class ActionCounts(NamedTuple):
    move: int = 0
    attack: int = 0
    defend: int = 0

    @property
    def total(self) -> int:
        return self.move + self.attack + self.defend

    def remaining_capacity(self) -> "ActionCounts":
        return ActionCounts(
            max(0, CAP_MOVE - self.move),
            max(0, CAP_ATTACK - self.attack),
            max(0, CAP_DEFEND - self.defend),
        )


# ---------------------------------------------------------------------------
# Board
# ---------------------------------------------------------------------------


@dataclass
class BoardView:
    """Mutable occupancy view; simulations always work on a copy."""

    occupancy: Dict[str, Piece] = field(default_factory=dict)
    squares: Dict[Piece, str] = field(default_factory=dict)
    flags: Dict[Piece, bool] = field(default_factory=dict)
    shields: Dict[Piece, bool] = field(default_factory=dict)
    token: Optional[str] = None

    def copy(self) -> "BoardView":
        return BoardView(
            occupancy=dict(self.occupancy),
            squares=dict(self.squares),
            flags=dict(self.flags),
            shields=dict(self.shields),
            token=self.token,
        )

    def square_of(self, piece: Piece) -> Optional[str]:
        return self.squares.get(piece)

    def is_empty(self, square: Optional[str]) -> bool:
        return square is not None and square not in self.occupancy

    def carrying(self, piece: Piece) -> bool:
        return self.flags.get(piece, False)

    def shielded(self, piece: Piece) -> bool:
        return self.shields.get(piece, False)

    def on_board(self, side: Side) -> Iterator[tuple[Piece, str]]:
        """(piece, square) for every on-board piece of ``side``, fixed order."""
        for piece in pieces_of(side):
            square = self.squares.get(piece)
            if square is not None:
                yield piece, square

    def opponent_at(self, square: Optional[str]) -> Optional[Piece]:
        if square is None:
            return None
        for piece in OPPONENT_PIECES:
            if self.squares.get(piece) == square:
                return piece
        return None

    def move(self, piece: Piece, to: str) -> None:
        here = self.squares.get(piece)
        if here is None or here == to:
            return
        self.occupancy.pop(here, None)
        self.occupancy[to] = piece
        self.squares[piece] = to

    def remove(self, piece: Piece) -> None:
        here = self.squares.pop(piece, None)
        if here is not None and self.occupancy.get(here) == piece:
            del self.occupancy[here]
        self.flags[piece] = False

    def hit(self, victim: Piece) -> bool:
        """Resolve one attack on ``victim``; a shield absorbs it.

        Returns True when the victim is removed.
        """
        if self.shields.get(victim, False):
            self.shields[victim] = False
            return False
        self.remove(victim)
        return True

    def hash_parts(self) -> list[str]:
        """Stable serialisation used by the seeder and cache keys."""
        parts = sorted(f"P2:{p.value}:{sq}" for p, sq in self.on_board(Side.P2))
        parts += sorted(f"P1:{p.value}:{sq}" for p, sq in self.on_board(Side.P1))
        parts += sorted(
            f"F:{p.value}:{str(self.flags.get(p, False)).lower()}" for p in ALL_PIECES
        )
        parts += sorted(
            f"S:{p.value}:{str(self.shields.get(p, False)).lower()}" for p in ALL_PIECES
        )
        parts.append(f"T:{self.token or 'None'}")
        return parts


# ---------------------------------------------------------------------------
# Power-up knowledge
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Zone:
    kind: PowerUpKind = PowerUpKind.NONE
    status: ZoneStatus = ZoneStatus.EMPTY

    @property
    def is_open(self) -> bool:
        """The card (if any) has not been revealed or spent yet."""
        return self.status is not ZoneStatus.REVEALED

    @property
    def occupied(self) -> bool:
        return self.kind is not PowerUpKind.NONE and self.is_open

    def holds(self, kind: PowerUpKind) -> bool:
        return self.is_open and self.kind is kind


@dataclass(frozen=True)
class PowerUpKnowledge:
    """Visibility-safe power-up view for the engine side."""

    engine_hand: Dict[PowerUpKind, int] = field(default_factory=dict)
    hand_counts: Dict[Side, int] = field(default_factory=dict)
    zones: Dict[Piece, Zone] = field(default_factory=dict)

    def zone(self, piece: Piece) -> Zone:
        return self.zones.get(piece, Zone())

    def held(self, kind: PowerUpKind) -> int:
        return self.engine_hand.get(kind, 0)

    @property
    def total_held(self) -> int:
        return sum(self.engine_hand.values())

    def first_held(self) -> Optional[PowerUpKind]:
        for kind in REAL_POWER_UPS:
            if self.held(kind) > 0:
                return kind
        return None


# ---------------------------------------------------------------------------
# Queues
# ---------------------------------------------------------------------------

Queue = tuple[QueueSlot, ...]


def first_unrevealed_index(queue: Sequence[QueueSlot]) -> int:
    """1-based index of the first unrevealed slot; 7 when none remain."""
    for i, slot in enumerate(queue[:QUEUE_SLOTS], start=1):
        if not slot.revealed:
            return i
    return QUEUE_SLOTS + 1


def slots_left(queue: Sequence[QueueSlot]) -> int:
    return max(0, QUEUE_SLOTS + 1 - first_unrevealed_index(queue))


def unrevealed_real_counts(queue: Sequence[QueueSlot]) -> ActionCounts:
    move = attack = defend = 0
    for slot in queue[:QUEUE_SLOTS]:
        if slot.revealed:
            continue
        if slot.kind is ActionKind.MOVE:
            move += 1
        elif slot.kind is ActionKind.ATTACK:
            attack += 1
        elif slot.kind is ActionKind.DEFEND:
            defend += 1
    return ActionCounts(move, attack, defend)


def count_unrevealed_real(queue: Sequence[QueueSlot]) -> int:
    return unrevealed_real_counts(queue).total


def assigned_count(queue: Sequence[QueueSlot]) -> int:
    return sum(
        1
        for slot in queue[:QUEUE_SLOTS]
        if not slot.revealed and slot.kind is not ActionKind.UNASSIGNED
    )


def next_real_slot(queue: Sequence[QueueSlot]) -> tuple[int, Optional[ActionKind]]:
    """Position and face of the next unrevealed real card, or (99, None)."""
    for i, slot in enumerate(queue, start=1):
        if slot.is_pending_real:
            return i, slot.kind
    return NO_SLOT, None


def remaining_real_after(queue: Sequence[QueueSlot]) -> int:
    """Unrevealed real cards behind the one about to be revealed."""
    pos, kind = next_real_slot(queue)
    if kind is None:
        return 0
    return sum(1 for slot in queue[pos:] if slot.is_pending_real)


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class World:
    """Canonical (engine is P2) view of one decision point."""

    board: BoardView
    dice: tuple[int, ...] = ()
    dice_pool: tuple[int, ...] = ()
    queues: Dict[Piece, Queue] = field(default_factory=dict)
    finish_lines: Dict[Side, tuple[str, ...]] = field(default_factory=dict)
    homes: Dict[Side, tuple[str, ...]] = field(default_factory=dict)
    power_ups: PowerUpKnowledge = field(default_factory=PowerUpKnowledge)

    def with_board(self, board: BoardView) -> "World":
        return replace(self, board=board)

    def queue(self, piece: Piece) -> Queue:
        return self.queues.get(piece, ())

    def zone(self, piece: Piece) -> Zone:
        return self.power_ups.zone(piece)

    def finish_line(self, side: Side) -> tuple[str, ...]:
        return self.finish_lines.get(side, ())

    def is_finish(self, side: Side, square: Optional[str]) -> bool:
        return square is not None and square in self.finish_line(side)

    def distance_to_finish(self, side: Side, square: Optional[str]) -> int:
        """Minimum Manhattan distance to ``side``'s finish line (99 if none)."""
        if square is None:
            return 99
        return min((manhattan(square, f) for f in self.finish_line(side)), default=99)


def _finish_lines(snapshot: Snapshot) -> Dict[Side, tuple[str, ...]]:
    lines = {Side.P2: full_rank(8), Side.P1: full_rank(1)}
    for side, squares in snapshot.meta.finish.items():
        if squares:
            lines[side] = tuple(squares)
    return lines


def home_rank_only(squares: Sequence[str]) -> tuple[str, ...]:
    """Keep only the engine's home-rank (rank 8) squares."""
    return tuple(sq for sq in squares if Square.from_code(sq).rank == 8)


def _placement_homes(snapshot: Snapshot) -> Dict[Side, tuple[str, ...]]:
    """Snapshot-supplied home overrides; sides without one are omitted."""
    homes: Dict[Side, tuple[str, ...]] = {}
    engine_homes = snapshot.meta.homes.get(Side.P2)
    if engine_homes:
        homes[Side.P2] = home_rank_only(engine_homes)
    if snapshot.meta.homes.get(Side.P1):
        homes[Side.P1] = tuple(snapshot.meta.homes[Side.P1])
    return homes


def _board(snapshot: Snapshot) -> BoardView:
    board = BoardView(token=snapshot.token.square)
    for piece in ALL_PIECES:
        state = snapshot.pieces.get(piece)
        flag = snapshot.flags.get(piece, state.flag if state else False)
        shield = snapshot.shields.get(piece, state.shield if state else False)
        board.flags[piece] = flag
        board.shields[piece] = shield
        if state is None or state.square is None or state.loc is LocationState.HOME:
            continue
        if state.square in board.occupancy:
            logger.debug(
                "Dropping %s: %s already occupied by %s",
                piece.value, state.square, board.occupancy[state.square].value,
            )
            continue
        board.occupancy[state.square] = piece
        board.squares[piece] = state.square
    return board


def _engine_hand(snapshot: Snapshot) -> Dict[PowerUpKind, int]:
    typed = snapshot.power_ups.hand_types.get(Side.P2) or {}
    hand = {kind: n for kind, n in typed.items() if kind.is_real and n > 0}
    if hand:
        return hand
    for card in snapshot.power_ups.hand_cards.get(Side.P2, []):
        if card.is_real:
            hand[card] = hand.get(card, 0) + 1
    return hand


def _hand_counts(snapshot: Snapshot) -> Dict[Side, int]:
    legacy = {
        Side.P1: snapshot.p1_buff_hand_count,
        Side.P2: snapshot.p2_buff_hand_count,
    }
    counts = {}
    for side in (Side.P1, Side.P2):
        value = snapshot.power_ups.hand.get(side)
        if value is None:
            value = legacy[side] or 0
        counts[side] = value
    return counts


def _zones(snapshot: Snapshot) -> Dict[Piece, Zone]:
    zones: Dict[Piece, Zone] = {}
    for piece in ALL_PIECES:
        kind = snapshot.power_ups.zones.get(piece, PowerUpKind.NONE)
        status = snapshot.power_ups.zone_status.get(piece)
        if status is None:
            # Never assume a card has been revealed.
            status = ZoneStatus.EMPTY if kind is PowerUpKind.NONE else ZoneStatus.HIDDEN
        if piece.side is Side.P1 and status is not ZoneStatus.REVEALED:
            kind = PowerUpKind.NONE if kind is PowerUpKind.NONE else PowerUpKind.HIDDEN
        zones[piece] = Zone(kind=kind, status=status)
    return zones


def _queues(snapshot: Snapshot) -> Dict[Piece, Queue]:
    queues: Dict[Piece, Queue] = {}
    for side in (Side.P2, Side.P1):
        group = snapshot.stacks.get(side, {})
        for piece in pieces_of(side):
            queues[piece] = tuple(group.get(piece, [])[:QUEUE_SLOTS])
    return queues


def compute_dice_pool(
    dice: Sequence[int], queues: Dict[Piece, Queue]
) -> tuple[int, ...]:
    """Dice still free for planning this round.

    In-range values sorted descending, minus one die of value ``k`` for
    every piece (either side) already holding ``k > 0`` unrevealed real
    cards.
    """
    pool = sorted((d for d in dice[:3] if 1 <= d <= 6), reverse=True)
    for piece in ENGINE_PIECES + OPPONENT_PIECES:
        used = count_unrevealed_real(queues.get(piece, ()))
        if used > 0 and used in pool:
            pool.remove(used)
    return tuple(pool)


def build_world(snapshot: Snapshot) -> World:
    """Build the queryable world for a canonical snapshot."""
    queues = _queues(snapshot)
    dice = tuple(snapshot.dice[:3])
    return World(
        board=_board(snapshot),
        dice=dice,
        dice_pool=compute_dice_pool(dice, queues),
        queues=queues,
        finish_lines=_finish_lines(snapshot),
        homes=_placement_homes(snapshot),
        power_ups=PowerUpKnowledge(
            engine_hand=_engine_hand(snapshot),
            hand_counts=_hand_counts(snapshot),
            zones=_zones(snapshot),
        ),
    )
