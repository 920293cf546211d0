"""Engine configuration.

``EngineConfig`` is an immutable settings object handed to
:class:`battleplan_ai.ai.router.DecisionEngine` at construction. It replaces
process-wide debug switches: two engines in the same process may run with
different settings without interfering.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

from .errors import ConfigurationError

ENV_DEFAULT_DIFFICULTY = "BATTLEPLAN_DEFAULT_DIFFICULTY"
ENV_CACHE_CAPACITY = "BATTLEPLAN_CACHE_CAPACITY"
ENV_TRACE_DECISIONS = "BATTLEPLAN_TRACE_DECISIONS"
ENV_FORCE_POWER_UP_ASSIGNMENT = "BATTLEPLAN_FORCE_POWER_UP_ASSIGNMENT"
ENV_FORCE_POWER_UP_SPEND = "BATTLEPLAN_FORCE_POWER_UP_SPEND"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _is_truthy_env(env: Mapping[str, str], name: str) -> bool | None:
    val = env.get(name, "").strip().lower()
    if not val:
        return None
    if val in _TRUTHY:
        return True
    if val in _FALSY:
        return False
    raise ConfigurationError(
        f"Expected a boolean flag, got {val!r}",
        variable=name,
    )


def _parse_positive_int(env: Mapping[str, str], name: str) -> int | None:
    raw = env.get(name, "").strip()
    if not raw:
        return None
    try:
        parsed = int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Expected an integer, got {raw!r}",
            variable=name,
        ) from e
    if parsed <= 0:
        raise ConfigurationError(
            f"Expected a positive integer, got {parsed}",
            variable=name,
        )
    return parsed


class EngineConfig(BaseModel):
    """Immutable decision-engine settings."""

    default_difficulty: int = Field(3, ge=1, le=5)
    cache_capacity: int = Field(512, ge=1)
    # Per-candidate score traces (placement squares, plan leaves, battle
    # options) at DEBUG level.
    trace_decisions: bool = False
    # Planner requests the first held power-up whenever the zone is open.
    force_power_up_assignment: bool = False
    # Battle considers only power-up options when any exist.
    force_power_up_spend: bool = False

    class Config:
        frozen = True

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "EngineConfig":
        """Build a config from ``BATTLEPLAN_*`` environment variables.

        Unset variables keep their defaults; malformed values raise
        :class:`ConfigurationError` rather than being silently ignored.
        """
        env = os.environ if env is None else env
        values: dict[str, object] = {}

        difficulty = _parse_positive_int(env, ENV_DEFAULT_DIFFICULTY)
        if difficulty is not None:
            if difficulty > 5:
                raise ConfigurationError(
                    f"Difficulty must be between 1 and 5, got {difficulty}",
                    variable=ENV_DEFAULT_DIFFICULTY,
                )
            values["default_difficulty"] = difficulty

        capacity = _parse_positive_int(env, ENV_CACHE_CAPACITY)
        if capacity is not None:
            values["cache_capacity"] = capacity

        for field_name, var in (
            ("trace_decisions", ENV_TRACE_DECISIONS),
            ("force_power_up_assignment", ENV_FORCE_POWER_UP_ASSIGNMENT),
            ("force_power_up_spend", ENV_FORCE_POWER_UP_SPEND),
        ):
            flag = _is_truthy_env(env, var)
            if flag is not None:
                values[field_name] = flag

        return cls(**values)
