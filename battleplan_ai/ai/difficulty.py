"""Difficulty ladder for the Battleplan engine.

Five hand-tuned profiles, linear from beginner (1) to elite (5). Every
knob moves monotonically with the level: deeper replies, wider beams, more
risk tolerance, less noise, more appetite for spending power-ups and a
lower notional cost for doing so.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Quiescence(str, Enum):
    """Which tactical options bypass the immediate-beam cut."""
    NONE = "none"
    CAPTURES = "captures"
    CAPTURES_AND_FINISHES = "captures+finishes"

    @property
    def keeps_captures(self) -> bool:
        return self is not Quiescence.NONE

    @property
    def keeps_finishes(self) -> bool:
        return self is Quiescence.CAPTURES_AND_FINISHES


KILL_WEIGHT = 100
CARRIER_KILL_WEIGHT = 175
FLAG_GRAB_WEIGHT = 500
PROGRESS_WEIGHT = 10


@dataclass(frozen=True)
class DifficultyProfile:
    """Tuning record for a single ladder level."""

    level: int
    reply_depth: int
    beam_immediate: int
    beam_search: int
    quiescence: Quiescence
    opp_model: int
    risk: float
    noise: float
    power_up_spend: float
    spend_cost: float
    token_bias: float
    block_bias: float

    @property
    def kill_weight(self) -> int:
        return KILL_WEIGHT

    @property
    def carrier_kill_weight(self) -> int:
        return CARRIER_KILL_WEIGHT

    @property
    def flag_grab_weight(self) -> int:
        return FLAG_GRAB_WEIGHT

    @property
    def progress_weight(self) -> int:
        return PROGRESS_WEIGHT

    @property
    def token_weight(self) -> int:
        return int(40 * self.token_bias + 0.5)

    @property
    def block_weight(self) -> int:
        return int(25 * self.block_bias + 0.5)

    @property
    def plan_beam(self) -> int:
        """Branches kept per step by the plan search (3..6)."""
        return max(3, min(6, int(3 + 0.75 * (self.level - 1))))

    @property
    def plan_keep(self) -> int:
        """Distinct sequences kept per piece/die by the plan search (6..12)."""
        return max(6, min(12, 6 + (self.level - 1)))

    @property
    def battle_shortlist(self) -> int:
        return max(2, self.beam_immediate)


# -----------------------------------------------------------------------------
# Canonical difficulty profiles (1-5)
# -----------------------------------------------------------------------------

CANONICAL_DIFFICULTY_PROFILES: dict[int, DifficultyProfile] = {
    1: DifficultyProfile(
        level=1,
        reply_depth=0,
        beam_immediate=2,
        beam_search=0,
        quiescence=Quiescence.NONE,
        opp_model=0,
        risk=0.15,
        noise=0.25,
        power_up_spend=0.10,
        spend_cost=25,
        token_bias=0.80,
        block_bias=0.40,
    ),
    2: DifficultyProfile(
        level=2,
        reply_depth=0,
        beam_immediate=3,
        beam_search=0,
        quiescence=Quiescence.NONE,
        opp_model=0,
        risk=0.20,
        noise=0.18,
        power_up_spend=0.25,
        spend_cost=22,
        token_bias=0.90,
        block_bias=0.55,
    ),
    3: DifficultyProfile(
        level=3,
        reply_depth=1,
        beam_immediate=4,
        beam_search=3,
        quiescence=Quiescence.CAPTURES,
        opp_model=1,
        risk=0.35,
        noise=0.10,
        power_up_spend=0.50,
        spend_cost=16,
        token_bias=1.00,
        block_bias=0.70,
    ),
    4: DifficultyProfile(
        level=4,
        reply_depth=2,
        beam_immediate=5,
        beam_search=4,
        quiescence=Quiescence.CAPTURES,
        opp_model=2,
        risk=0.55,
        noise=0.05,
        power_up_spend=0.70,
        spend_cost=10,
        token_bias=1.10,
        block_bias=0.85,
    ),
    5: DifficultyProfile(
        level=5,
        reply_depth=3,
        beam_immediate=6,
        beam_search=5,
        quiescence=Quiescence.CAPTURES_AND_FINISHES,
        opp_model=2,
        risk=0.75,
        noise=0.02,
        power_up_spend=0.90,
        spend_cost=6,
        token_bias=1.25,
        block_bias=1.00,
    ),
}

DEFAULT_DIFFICULTY = 3

DIFFICULTY_DESCRIPTIONS: dict[int, str] = {
    1: "Beginner - safe openings, no reply search, noisy choices",
    2: "Casual - slightly wider beams, still avoids obvious danger",
    3: "Standard - one-ply replies, capture quiescence",
    4: "Strong - two-ply replies, full opponent mobility model",
    5: "Elite - three-ply replies, capture and finish quiescence",
}


def clamp_difficulty(difficulty: int | None, default: int = DEFAULT_DIFFICULTY) -> int:
    """Clamp into [1, 5]; None maps to ``default``."""
    if difficulty is None:
        difficulty = default
    max_profile = max(CANONICAL_DIFFICULTY_PROFILES)
    return max(1, min(max_profile, int(difficulty)))


def get_difficulty_profile(difficulty: int | None) -> DifficultyProfile:
    """Return the profile for ``difficulty``.

    Out-of-range values clamp into [1, 5] so that every caller maps a
    level to the same well-defined profile.
    """
    return CANONICAL_DIFFICULTY_PROFILES[clamp_difficulty(difficulty)]


def get_difficulty_description(difficulty: int | None) -> str:
    effective = clamp_difficulty(difficulty)
    return DIFFICULTY_DESCRIPTIONS.get(effective, f"Difficulty {effective}")
