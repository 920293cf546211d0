"""Decision engine for the computer-controlled side of Battleplan.

The recommended entry point is :class:`DecisionEngine`:

    from battleplan_ai.ai import DecisionEngine
    from battleplan_ai.models import DecisionRequest

    engine = DecisionEngine()
    outcome = engine.decide(DecisionRequest.model_validate(payload))

Architecture:
- perspective.py: mirror a P1 request onto the canonical P2 seat and back
- world.py: queryable world built fresh from each snapshot
- difficulty.py: the five difficulty profiles
- heuristics.py: progress, centre control, threat map, move candidates
- placement.py / planner.py / battle.py / objective.py: one pipeline per
  decision kind
- power_ups.py: power-up assignment and spend heuristics
- seeding.py / base.py / plan_cache.py: deterministic RNG and plan-search cache context
- router.py: DecisionEngine
"""

from battleplan_ai.ai.base import DecisionContext
from battleplan_ai.ai.difficulty import (
    CANONICAL_DIFFICULTY_PROFILES,
    DIFFICULTY_DESCRIPTIONS,
    DifficultyProfile,
    get_difficulty_profile,
)
from battleplan_ai.ai.router import DecisionEngine, DecisionOutcome

__all__ = [
    "CANONICAL_DIFFICULTY_PROFILES",
    "DIFFICULTY_DESCRIPTIONS",
    "DecisionContext",
    "DecisionEngine",
    "DecisionOutcome",
    "DifficultyProfile",
    "get_difficulty_profile",
]
