"""Deterministic per-request seeding.

A request either carries an explicit seed (integer, numeric string, hex
string or any other string) or gets one composed from the roll, a stable
board hash and optional match/turn/seat salts. The same inputs always
produce the same seed, independent of call order.
"""

from __future__ import annotations

import math
import re
from typing import Optional, Union

from ..models import DecisionRequest, Snapshot
from .world import World

SDBM_MODULUS = 2**31 - 1

SOURCE_EXPLICIT = "explicit"
SOURCE_SNAPSHOT = "snapshot"
SOURCE_DERIVED = "derived"

_HEX_RE = re.compile(r"^0x([0-9a-fA-F]+)$")
_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?\s*$")


def sdbm(text: str) -> int:
    """h = (h * 33 + byte) mod (2^31 - 1), starting from 5381."""
    h = 5381
    for byte in text.encode("utf-8"):
        h = (h * 33 + byte) % SDBM_MODULUS
    return h


def board_key(world: World) -> str:
    return "|".join(world.board.hash_parts())


def board_hash(world: World) -> int:
    return sdbm(board_key(world))


def parse_explicit_seed(value: Union[int, str]) -> int:
    """Numbers pass through; "0x.." parses as hex; other strings hash.

    Numeric strings too large for a float ("1e999") hash like any other text.
    """
    if isinstance(value, int):
        return value
    text = str(value)
    if _NUMBER_RE.match(text):
        number = float(text)
        if math.isfinite(number):
            return int(number)
    match = _HEX_RE.match(text)
    if match:
        return int(match.group(1), 16)
    return sdbm(text)


def _snapshot_seed(snapshot: Snapshot) -> Optional[Union[int, str]]:
    for value in (
        snapshot.rng.seed,
        snapshot.rng.turn_seed,
        snapshot.meta.turn_seed,
        snapshot.meta.seed,
    ):
        if value is not None:
            return value
    return None


def derived_seed_key(snapshot: Snapshot, world: World) -> str:
    dice = list(snapshot.dice[:3]) + [0] * (3 - len(snapshot.dice[:3]))
    dice_part = ",".join(str(d) for d in sorted(dice, reverse=True))

    game_seed = snapshot.rng.game_seed or snapshot.meta.game_seed or ""
    turn_tag = snapshot.rng.turn or snapshot.meta.turn_tag or ""
    same = snapshot.rng.same_seed
    if same is None:
        same = bool(snapshot.meta.same_seed)
    salt = "" if same else (snapshot.rng.ai_salt or "")

    return "|".join((game_seed, dice_part, str(board_hash(world)), turn_tag, salt))


def seed_for_request(request: DecisionRequest, world: World) -> tuple[int, str]:
    """Return ``(seed, source)`` for a canonical request.

    ``source`` is one of "explicit" (request.seed), "snapshot" (rng/meta seed
    material) or "derived" (composed from dice, board and salts).
    """
    if request.seed is not None:
        return parse_explicit_seed(request.seed), SOURCE_EXPLICIT

    provided = _snapshot_seed(request.snapshot)
    if provided is not None:
        return parse_explicit_seed(provided), SOURCE_SNAPSHOT

    return sdbm(derived_seed_key(request.snapshot, world)), SOURCE_DERIVED
