"""
Pydantic Models for Battleplan snapshots, decision requests and results

Snapshots arrive from the rules engine in whatever shape the host produces;
every model here ingests leniently (malformed values become empty, zero or
unknown) so that a decision request never fails on a bad field.
"""

import math
import re
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

QUEUE_SLOTS = 6
MAX_DICE = 3

SQUARE_CODE_RE = re.compile(r"^\s*([A-Ha-h])([1-8])\s*$")


def coerce_square_code(value: Any) -> Optional[str]:
    """Return the canonical "A1".."H8" code for ``value`` or None."""
    if not isinstance(value, str):
        return None
    match = SQUARE_CODE_RE.match(value)
    if match is None:
        return None
    return f"{match.group(1).upper()}{match.group(2)}"


def _finite_int(number: float, default: int) -> int:
    # inf and nan have no integer value.
    if not math.isfinite(number):
        return default
    return int(number)


def _coerce_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _finite_int(value, default)
    if isinstance(value, str):
        try:
            return _finite_int(float(value.strip()), default)
        except (ValueError, OverflowError):
            return default
    return default


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return False


def _as_mapping(data: Any) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump()
    if isinstance(data, dict):
        return data
    return {}


class Side(str, Enum):
    """Seat enumeration; P2 is the canonical engine seat"""
    P1 = "P1"
    P2 = "P2"

    @property
    def other(self) -> "Side":
        return Side.P1 if self is Side.P2 else Side.P2

    @classmethod
    def parse(cls, value: Any) -> Optional["Side"]:
        if isinstance(value, Side):
            return value
        text = str(value or "").strip().upper()
        if text in ("P1", "1"):
            return Side.P1
        if text in ("P2", "2"):
            return Side.P2
        return None


class Piece(str, Enum):
    """The six piece colours; Blue/Pink/Purple sit on the canonical seat"""
    BLUE = "Blue"
    PINK = "Pink"
    PURPLE = "Purple"
    GREEN = "Green"
    YELLOW = "Yellow"
    ORANGE = "Orange"

    @property
    def side(self) -> Side:
        return Side.P2 if self in ENGINE_PIECES else Side.P1

    @property
    def counterpart(self) -> "Piece":
        """Same-slot piece of the other seat (an involution)."""
        return _COUNTERPART[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["Piece"]:
        if isinstance(value, Piece):
            return value
        text = str(value or "").strip().lower()
        for piece in cls:
            if piece.value.lower() == text:
                return piece
        return None


ENGINE_PIECES = (Piece.BLUE, Piece.PINK, Piece.PURPLE)
OPPONENT_PIECES = (Piece.GREEN, Piece.YELLOW, Piece.ORANGE)
ALL_PIECES = ENGINE_PIECES + OPPONENT_PIECES

_COUNTERPART = {
    Piece.GREEN: Piece.BLUE,
    Piece.YELLOW: Piece.PINK,
    Piece.ORANGE: Piece.PURPLE,
    Piece.BLUE: Piece.GREEN,
    Piece.PINK: Piece.YELLOW,
    Piece.PURPLE: Piece.ORANGE,
}


def pieces_of(side: Side) -> tuple:
    return ENGINE_PIECES if side is Side.P2 else OPPONENT_PIECES


class ActionKind(str, Enum):
    """Queue face enumeration"""
    MOVE = "MOVE"
    ATTACK = "ATTACK"
    DEFEND = "DEFEND"
    BLANK = "BLANK"
    UNASSIGNED = "UNASSIGNED"

    @property
    def is_real(self) -> bool:
        return self in REAL_ACTIONS

    @classmethod
    def parse(cls, value: Any) -> "ActionKind":
        if isinstance(value, ActionKind):
            return value
        text = str(value or "").strip().upper()
        for kind in (cls.MOVE, cls.ATTACK, cls.DEFEND, cls.BLANK):
            if kind.value == text:
                return kind
        return cls.UNASSIGNED


REAL_ACTIONS = (ActionKind.MOVE, ActionKind.ATTACK, ActionKind.DEFEND)


class PowerUpKind(str, Enum):
    """Power-up card enumeration"""
    EXTRA_MOVE = "Extra Move"
    DIAGONAL_MOVE = "Diagonal Move"
    EXTRA_ATTACK = "Extra Attack"
    EXTRA_DEFEND = "Extra Defend"
    NONE = "None"
    HIDDEN = "Face down"

    @property
    def is_real(self) -> bool:
        return self in REAL_POWER_UPS

    @property
    def is_mobility(self) -> bool:
        return self in (PowerUpKind.EXTRA_MOVE, PowerUpKind.DIAGONAL_MOVE)


# Fixed iteration order; also the order used when a first held kind is needed.
REAL_POWER_UPS = (
    PowerUpKind.EXTRA_MOVE,
    PowerUpKind.DIAGONAL_MOVE,
    PowerUpKind.EXTRA_ATTACK,
    PowerUpKind.EXTRA_DEFEND,
)


def canonical_power_up(value: Any) -> PowerUpKind:
    """Map any card label the hosts use onto a :class:`PowerUpKind`."""
    if isinstance(value, PowerUpKind):
        return value
    key = str(value if value is not None else "None").replace("_", " ")
    key = re.sub(r"\s+", " ", key).strip().lower()
    if key in ("", "none"):
        return PowerUpKind.NONE
    if key in ("unknown", "face down", "facedown"):
        return PowerUpKind.HIDDEN
    if "diag" in key:
        return PowerUpKind.DIAGONAL_MOVE
    if "extra attack" in key or "attack+" in key or key in ("atk+", "a+"):
        return PowerUpKind.EXTRA_ATTACK
    if (
        "extra defend" in key
        or "extra defense" in key
        or "defend+" in key
        or key in ("def+", "d+")
        or "defense" in key
    ):
        return PowerUpKind.EXTRA_DEFEND
    if (
        "extra move" in key
        or key == "move"
        or "move+" in key
        or key in ("m+", "extramove")
    ):
        return PowerUpKind.EXTRA_MOVE
    return PowerUpKind.NONE


class ZoneStatus(str, Enum):
    """Reveal status of a piece's power-up zone"""
    EMPTY = "None"
    HIDDEN = "Unrevealed"
    REVEALED = "Revealed"

    @classmethod
    def parse(cls, value: Any) -> Optional["ZoneStatus"]:
        if isinstance(value, ZoneStatus):
            return value
        text = str(value or "").strip().lower()
        for status in cls:
            if status.value.lower() == text:
                return status
        return None


class LocationState(str, Enum):
    """Where a piece currently is"""
    HOME = "HOME"
    BOARD = "BOARD"
    UNKNOWN = "UNKNOWN"


class DecisionKind(str, Enum):
    """Decision request enumeration"""
    PLACEMENT = "placement"
    PLAN = "plan"
    ACTION = "action"
    OBJECTIVE = "objective"

    @classmethod
    def parse(cls, value: Any) -> Optional["DecisionKind"]:
        if isinstance(value, DecisionKind):
            return value
        text = str(value or "").strip().lower()
        return _DECISION_ALIASES.get(text)


_DECISION_ALIASES = {
    "placement": DecisionKind.PLACEMENT,
    "place": DecisionKind.PLACEMENT,
    "plan": DecisionKind.PLAN,
    "prep": DecisionKind.PLAN,
    "action": DecisionKind.ACTION,
    "battle": DecisionKind.ACTION,
    "objective": DecisionKind.OBJECTIVE,
    "flag": DecisionKind.OBJECTIVE,
}


class Sequencing(str, Enum):
    """Order of a power-up relative to the revealed action"""
    POWER_UP_FIRST = "power_up_first"
    ACTION_FIRST = "action_first"


class Role(str, Enum):
    """Opening role assigned by placement order"""
    RUNNER = "runner"
    BLOCKER = "blocker"
    SUPPORT = "support"


# ---------------------------------------------------------------------------
# Snapshot (inbound)
# ---------------------------------------------------------------------------


class PieceState(BaseModel):
    """Location and status markers of one piece"""
    loc: LocationState = LocationState.HOME
    square: Optional[str] = None
    flag: bool = False
    shield: bool = False

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, Any]:
        data = _as_mapping(data)
        square = coerce_square_code(data.get("square"))
        raw_loc = data.get("loc")
        if raw_loc is None:
            loc = LocationState.BOARD if square else LocationState.HOME
        else:
            text = str(raw_loc).strip().upper()
            loc = LocationState(text) if text in LocationState.__members__ else LocationState.UNKNOWN
        return {
            "loc": loc,
            "square": square,
            "flag": _coerce_bool(data.get("flag")) or _coerce_bool(data.get("hasFlag")),
            "shield": _coerce_bool(data.get("shield")) or _coerce_bool(data.get("hasShield")),
        }


class QueueSlot(BaseModel):
    """One slot of a piece's hidden action queue"""
    kind: ActionKind = ActionKind.UNASSIGNED
    revealed: bool = False

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, Any]:
        if isinstance(data, (str, ActionKind)):
            return {"kind": ActionKind.parse(data), "revealed": False}
        data = _as_mapping(data)
        raw = data.get("kind", data.get("face"))
        return {
            "kind": ActionKind.parse(raw),
            "revealed": _coerce_bool(data.get("revealed")),
        }

    @property
    def is_pending_real(self) -> bool:
        return not self.revealed and self.kind.is_real


class TokenState(BaseModel):
    """Contested objective token"""
    square: Optional[str] = None

    class Config:
        frozen = True

    @field_validator("square", mode="before")
    @classmethod
    def _coerce_square(cls, value: Any) -> Optional[str]:
        return coerce_square_code(value)


def _clean_piece_map(raw: Any) -> Dict[Piece, Any]:
    out: Dict[Piece, Any] = {}
    if not isinstance(raw, dict):
        return out
    for key, value in raw.items():
        piece = Piece.parse(key)
        if piece is not None:
            out[piece] = value
    return out


def _clean_side_map(raw: Any) -> Dict[Side, Any]:
    out: Dict[Side, Any] = {}
    if not isinstance(raw, dict):
        return out
    for key, value in raw.items():
        side = Side.parse(key)
        if side is not None:
            out[side] = value
    return out


def _clean_square_list(raw: Any) -> List[str]:
    if not isinstance(raw, (list, tuple)):
        return []
    codes = (coerce_square_code(v) for v in raw)
    return [c for c in codes if c is not None]


class PowerUpState(BaseModel):
    """Power-up zones and hands, as reported by the host"""
    zones: Dict[Piece, PowerUpKind] = Field(default_factory=dict)
    zone_status: Dict[Piece, ZoneStatus] = Field(default_factory=dict, alias="zoneStatus")
    hand: Dict[Side, int] = Field(default_factory=dict)
    hand_types: Dict[Side, Dict[PowerUpKind, int]] = Field(default_factory=dict, alias="handTypes")
    hand_cards: Dict[Side, List[PowerUpKind]] = Field(default_factory=dict, alias="handCards")

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, Any]:
        data = _as_mapping(data)

        zones = {
            piece: canonical_power_up(name)
            for piece, name in _clean_piece_map(data.get("zones")).items()
        }

        zone_status: Dict[Piece, ZoneStatus] = {}
        raw_status = data.get("zone_status", data.get("zoneStatus"))
        for piece, value in _clean_piece_map(raw_status).items():
            status = ZoneStatus.parse(value)
            if status is not None:
                zone_status[piece] = status

        hand_cards: Dict[Side, List[PowerUpKind]] = {}
        raw_cards = data.get("hand_cards", data.get("handCards"))
        for side, cards in _clean_side_map(raw_cards).items():
            if isinstance(cards, (list, tuple)):
                hand_cards[side] = [canonical_power_up(c) for c in cards]

        hand: Dict[Side, int] = {}
        for side, value in _clean_side_map(data.get("hand")).items():
            if isinstance(value, (list, tuple)):
                hand[side] = len(value)
                hand_cards.setdefault(side, [canonical_power_up(c) for c in value])
            else:
                hand[side] = max(0, _coerce_int(value))

        hand_types: Dict[Side, Dict[PowerUpKind, int]] = {}
        raw_types = data.get("hand_types", data.get("handTypes"))
        for side, counts in _clean_side_map(raw_types).items():
            if not isinstance(counts, dict):
                continue
            merged: Dict[PowerUpKind, int] = {}
            for name, count in counts.items():
                kind = canonical_power_up(name)
                n = _coerce_int(count)
                if kind.is_real and n > 0:
                    merged[kind] = merged.get(kind, 0) + n
            hand_types[side] = merged

        return {
            "zones": zones,
            "zone_status": zone_status,
            "hand": hand,
            "hand_types": hand_types,
            "hand_cards": hand_cards,
        }


class SnapshotMeta(BaseModel):
    """Per-request overrides and seed material"""
    difficulty: Optional[int] = None
    finish: Dict[Side, List[str]] = Field(default_factory=dict)
    homes: Dict[Side, List[str]] = Field(default_factory=dict)
    turn_tag: Optional[str] = Field(None, alias="turnTag")
    game_seed: Optional[str] = Field(None, alias="gameSeed")
    seed: Optional[Union[int, str]] = None
    turn_seed: Optional[Union[int, str]] = Field(None, alias="turnSeed")
    same_seed: Optional[bool] = None

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, Any]:
        data = _as_mapping(data)
        difficulty = data.get("difficulty")
        turn_tag = data.get("turn_tag", data.get("turnTag"))
        game_seed = data.get("game_seed", data.get("gameSeed"))
        same_seed = data.get("same_seed")
        return {
            "difficulty": None if difficulty is None else _coerce_int(difficulty, 3),
            "finish": {
                side: _clean_square_list(codes)
                for side, codes in _clean_side_map(data.get("finish")).items()
            },
            "homes": {
                side: _clean_square_list(codes)
                for side, codes in _clean_side_map(data.get("homes")).items()
            },
            "turn_tag": None if turn_tag is None else str(turn_tag),
            "game_seed": None if game_seed is None else str(game_seed),
            "seed": _seed_material(data.get("seed")),
            "turn_seed": _seed_material(data.get("turn_seed", data.get("turnSeed"))),
            "same_seed": None if same_seed is None else _coerce_bool(same_seed),
        }


def _seed_material(value: Any) -> Optional[Union[int, str]]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    return str(value)


class RngInput(BaseModel):
    """Caller-supplied seeding hints"""
    seed: Optional[Union[int, str]] = None
    turn_seed: Optional[Union[int, str]] = Field(None, alias="turnSeed")
    game_seed: Optional[str] = None
    turn: Optional[str] = None
    ai_salt: Optional[str] = None
    same_seed: Optional[bool] = None

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, Any]:
        data = _as_mapping(data)
        out: Dict[str, Any] = {
            "seed": _seed_material(data.get("seed")),
            "turn_seed": _seed_material(data.get("turn_seed", data.get("turnSeed"))),
        }
        for name in ("game_seed", "turn", "ai_salt"):
            value = data.get(name)
            out[name] = None if value is None else str(value)
        same_seed = data.get("same_seed")
        out["same_seed"] = None if same_seed is None else _coerce_bool(same_seed)
        return out


class Snapshot(BaseModel):
    """Game state as seen by one seat at decision time"""
    dice: List[int] = Field(default_factory=list, alias="diceValues")
    pieces: Dict[Piece, PieceState] = Field(default_factory=dict)
    stacks: Dict[Side, Dict[Piece, List[QueueSlot]]] = Field(default_factory=dict)
    flags: Dict[Piece, bool] = Field(default_factory=dict)
    shields: Dict[Piece, bool] = Field(default_factory=dict)
    token: TokenState = Field(default_factory=TokenState)
    power_ups: PowerUpState = Field(default_factory=PowerUpState, alias="buffs")
    p1_buff_hand_count: Optional[int] = None
    p2_buff_hand_count: Optional[int] = None
    meta: SnapshotMeta = Field(default_factory=SnapshotMeta)
    rng: RngInput = Field(default_factory=RngInput)

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, Any]:
        data = dict(_as_mapping(data))

        dice = data.pop("dice", None)
        dice_values = data.pop("diceValues", None)
        if not (isinstance(dice, (list, tuple)) and dice):
            dice = dice_values
        data["dice"] = (
            [_coerce_int(v) for v in list(dice)[:MAX_DICE]]
            if isinstance(dice, (list, tuple))
            else []
        )

        power_ups = data.pop("power_ups", None)
        buffs = data.pop("buffs", None)
        buff_cards = data.pop("buffCards", None)
        data["power_ups"] = buff_cards or buffs or power_ups or {}

        token = data.get("token")
        if isinstance(token, str):
            data["token"] = {"square": token}
        elif not isinstance(token, (dict, TokenState)):
            data["token"] = {}

        for name in ("meta", "rng"):
            if not isinstance(data.get(name), (dict, BaseModel)):
                data[name] = {}

        for name in ("p1_buff_hand_count", "p2_buff_hand_count"):
            if data.get(name) is not None:
                data[name] = max(0, _coerce_int(data[name]))
        return data

    @field_validator("pieces", mode="before")
    @classmethod
    def _coerce_pieces(cls, value: Any) -> Dict[Piece, Any]:
        return {
            piece: entry if isinstance(entry, (dict, PieceState)) else {}
            for piece, entry in _clean_piece_map(value).items()
        }

    @field_validator("stacks", mode="before")
    @classmethod
    def _coerce_stacks(cls, value: Any) -> Dict[Side, Dict[Piece, List[Any]]]:
        out: Dict[Side, Dict[Piece, List[Any]]] = {}
        for side, group in _clean_side_map(value).items():
            queues: Dict[Piece, List[Any]] = {}
            for piece, raw in _clean_piece_map(group).items():
                if isinstance(raw, dict):
                    raw = raw.get("stack")
                if not isinstance(raw, (list, tuple)):
                    raw = []
                queues[piece] = list(raw)[:QUEUE_SLOTS]
            out[side] = queues
        return out

    @field_validator("flags", "shields", mode="before")
    @classmethod
    def _coerce_markers(cls, value: Any) -> Dict[Piece, bool]:
        return {
            piece: _coerce_bool(flag)
            for piece, flag in _clean_piece_map(value).items()
        }


# ---------------------------------------------------------------------------
# Decision requests (inbound)
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Optional host hints that are not part of the game snapshot"""
    next_piece: Optional[Piece] = Field(None, alias="nextPlacementColor")
    homes: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Dict[str, Any]:
        data = _as_mapping(data)
        raw_piece = data.get("next_piece", data.get("nextPlacementColor"))
        return {
            "next_piece": Piece.parse(raw_piece),
            "homes": _clean_square_list(data.get("homes")),
        }


class DecisionRequest(BaseModel):
    """A decision request as sent by the rules engine"""
    kind: DecisionKind = DecisionKind.ACTION
    side: Side = Side.P2
    snapshot: Snapshot = Field(default_factory=Snapshot, alias="status")
    difficulty: Optional[int] = None
    seed: Optional[Union[int, str]] = Field(
        None,
        description="Optional explicit seed (int, numeric/hex string or any string)",
    )
    context: RequestContext = Field(default_factory=RequestContext)

    class Config:
        populate_by_name = True

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        raw_kind = data.pop("kind", None) or data.pop("decision", None) or data.pop("type", None)
        if raw_kind is not None:
            parsed = DecisionKind.parse(raw_kind)
            data["kind"] = parsed if parsed is not None else raw_kind
        raw_side = data.pop("side", None) or data.pop("player", None)
        if raw_side is not None:
            parsed_side = Side.parse(raw_side)
            data["side"] = parsed_side if parsed_side is not None else raw_side
        if "state" in data and "status" not in data and "snapshot" not in data:
            data["snapshot"] = data.pop("state")
        if data.get("difficulty") is not None:
            data["difficulty"] = _coerce_int(data["difficulty"], 3)
        data["seed"] = _seed_material(data.get("seed"))
        if data.get("context") is None:
            data.pop("context", None)
        return data


# ---------------------------------------------------------------------------
# Decision results (outbound)
# ---------------------------------------------------------------------------


class PlacementResult(BaseModel):
    """Opening square for the next piece"""
    kind: Literal["placement"] = "placement"
    piece: Piece
    square: str

    class Config:
        frozen = True


class PlanResult(BaseModel):
    """Queue program for one piece"""
    kind: Literal["plan"] = "plan"
    piece: Piece
    count: int
    ordered_kinds: List[ActionKind]
    requested_power_up: PowerUpKind = PowerUpKind.NONE

    class Config:
        frozen = True


class ActionResult(BaseModel):
    """Concrete action for the piece whose queued card is revealing"""
    kind: Literal["action"] = "action"
    piece: Piece
    action_kind: ActionKind
    from_square: Optional[str] = Field(None, alias="from")
    to_square: Optional[str] = Field(None, alias="to")
    sequencing: Sequencing = Sequencing.ACTION_FIRST
    power_up_used: bool = False
    power_up_kind: PowerUpKind = PowerUpKind.NONE
    power_up_target: Optional[str] = None
    attack_target: Optional[Piece] = None
    expect_kill: bool = False
    forced_pass: bool = False

    class Config:
        populate_by_name = True
        frozen = True


class ObjectiveResult(BaseModel):
    """Piece that should claim the objective (None to decline)"""
    kind: Literal["objective"] = "objective"
    piece: Optional[Piece] = None

    class Config:
        frozen = True


DecisionResult = Annotated[
    Union[PlacementResult, PlanResult, ActionResult, ObjectiveResult],
    Field(discriminator="kind"),
]


class PiecePlanStatus(BaseModel):
    """Plan-phase status of one engine piece"""
    assigned: int
    action_queue: List[ActionKind]
    zone: PowerUpKind
    zone_status: ZoneStatus
    power_up_used: bool

    class Config:
        frozen = True


class PlanStatus(BaseModel):
    """What has been programmed so far this round"""
    per_piece: Dict[Piece, PiecePlanStatus]
    prepared: List[Piece]
    without_assignment: List[Piece]
    used_dice: List[int]
    available_dice: List[int]

    class Config:
        frozen = True
