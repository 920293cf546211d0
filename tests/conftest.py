"""
Shared pytest fixtures for battleplan-ai tests.

Snapshots are built as plain host-shaped dicts and validated through the
real pydantic models, so every test exercises the same ingestion path the
service uses. Fixtures are function-scoped to keep tests isolated.
"""

from typing import Callable, Dict, List, Optional

import pytest


# =============================================================================
# PROMETHEUS REGISTRY FIX
# =============================================================================
# battleplan_ai.metrics registers collectors at import time; re-imports under
# a different module path must not fail test collection.


def _patch_prometheus_registry():
    """Make re-registration of identical metrics a no-op instead of an error."""
    from prometheus_client.registry import CollectorRegistry

    _original_register = CollectorRegistry.register

    def _safe_register(self, collector):
        """Register collector, ignoring duplicates."""
        try:
            return _original_register(self, collector)
        except ValueError as e:
            if "Duplicated timeseries" not in str(e):
                raise

    # Only patch once
    if not getattr(CollectorRegistry, '_patched_for_tests', False):
        CollectorRegistry.register = _safe_register
        CollectorRegistry._patched_for_tests = True


_patch_prometheus_registry()

from battleplan_ai.ai.base import DecisionContext  # noqa: E402
from battleplan_ai.ai.difficulty import DifficultyProfile, get_difficulty_profile  # noqa: E402
from battleplan_ai.ai.world import World, build_world  # noqa: E402
from battleplan_ai.config import EngineConfig  # noqa: E402
from battleplan_ai.models import Piece, Side, Snapshot  # noqa: E402


# =============================================================================
# SNAPSHOT FIXTURES
# =============================================================================


def make_snapshot_dict(
    pieces: Optional[Dict[str, str]] = None,
    dice: Optional[List[int]] = None,
    stacks: Optional[Dict[str, List]] = None,
    flags: Optional[List[str]] = None,
    shields: Optional[List[str]] = None,
    token: Optional[str] = None,
    zones: Optional[Dict[str, str]] = None,
    zone_status: Optional[Dict[str, str]] = None,
    hand: Optional[Dict[str, int]] = None,
    meta: Optional[Dict] = None,
) -> Dict:
    """Build a host-shaped snapshot dict.

    Args:
        pieces: piece name -> square code for on-board pieces
        dice: rolled dice values
        stacks: piece name -> queue slots ("MOVE" or {"kind", "revealed"})
        flags: names of pieces carrying the objective
        shields: names of shielded pieces
        token: square of the objective token
        zones: piece name -> power-up name sitting in its zone
        zone_status: piece name -> "None" / "Unrevealed" / "Revealed"
        hand: power-up name -> count held by the P2 seat
        meta: raw meta block
    """
    p2_stacks: Dict[str, List] = {}
    p1_stacks: Dict[str, List] = {}
    for name, queue in (stacks or {}).items():
        target = p2_stacks if Piece.parse(name).side is Side.P2 else p1_stacks
        target[name] = list(queue)

    data: Dict = {
        "diceValues": list(dice or []),
        "pieces": {name: {"square": sq} for name, sq in (pieces or {}).items()},
        "stacks": {"P2": p2_stacks, "P1": p1_stacks},
        "flags": {name: True for name in (flags or [])},
        "shields": {name: True for name in (shields or [])},
        "buffs": {
            "zones": dict(zones or {}),
            "zoneStatus": dict(zone_status or {}),
            "handTypes": {"P2": dict(hand or {})},
        },
    }
    if token is not None:
        data["token"] = token
    if meta is not None:
        data["meta"] = meta
    return data


@pytest.fixture
def snapshot_dict_factory() -> Callable[..., Dict]:
    """Factory fixture for raw snapshot payloads."""
    return make_snapshot_dict


@pytest.fixture
def snapshot_factory() -> Callable[..., Snapshot]:
    """Factory fixture for validated snapshots."""

    def _create_snapshot(**kwargs) -> Snapshot:
        return Snapshot.model_validate(make_snapshot_dict(**kwargs))

    return _create_snapshot


@pytest.fixture
def world_factory() -> Callable[..., World]:
    """Factory fixture for canonical worlds (engine seat is P2)."""

    def _create_world(**kwargs) -> World:
        return build_world(Snapshot.model_validate(make_snapshot_dict(**kwargs)))

    return _create_world


# =============================================================================
# ENGINE FIXTURES
# =============================================================================


@pytest.fixture
def ctx() -> DecisionContext:
    """Seeded decision context with default configuration."""
    return DecisionContext(EngineConfig(), seed=1234)


@pytest.fixture
def profile() -> DifficultyProfile:
    """Standard difficulty profile (level 3)."""
    return get_difficulty_profile(3)


@pytest.fixture
def profile_factory() -> Callable[[int], DifficultyProfile]:
    """Factory fixture for difficulty profiles by level."""

    def _create_profile(level: int) -> DifficultyProfile:
        return get_difficulty_profile(level)

    return _create_profile
