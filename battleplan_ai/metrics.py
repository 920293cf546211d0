"""Prometheus metrics for the Battleplan decision engine.

Counters and histograms live here so that the router, the legality-repair
passes and the plan-search cache can record telemetry without each
managing its own metric instances. Labels are kept to decision kind,
difficulty and a small outcome/reason vocabulary.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Gauge, Histogram


DECISIONS_TOTAL: Final[Counter] = Counter(
    "battleplan_decisions_total",
    (
        "Total number of engine decisions, labeled by decision kind, "
        "difficulty and outcome."
    ),
    labelnames=("kind", "difficulty", "outcome"),
)

DECISION_LATENCY: Final[Histogram] = Histogram(
    "battleplan_decision_latency_seconds",
    "Latency of engine decisions in seconds, labeled by kind and difficulty.",
    labelnames=("kind", "difficulty"),
    # Decisions are bounded CPU work; most finish well under 100ms.
    buckets=(
        0.001,
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
    ),
)

REPAIRS_TOTAL: Final[Counter] = Counter(
    "battleplan_repairs_total",
    (
        "Total number of legality repairs applied to outgoing decisions, "
        "labeled by decision kind and repair reason."
    ),
    labelnames=("kind", "reason"),
)

CACHE_LOOKUPS: Final[Counter] = Counter(
    "battleplan_cache_lookups_total",
    "Total plan-search cache lookups, labeled by outcome (hit/miss).",
    labelnames=("outcome",),
)

CACHE_ENTRIES: Final[Gauge] = Gauge(
    "battleplan_cache_entries",
    "Current number of entries in the plan-search cache.",
)


def record_decision(
    kind: str,
    difficulty: int,
    outcome: str,
    duration_seconds: float,
) -> None:
    """Record the outcome and latency of one decision.

    Args:
        kind: Decision kind value (placement, plan, action, objective)
        difficulty: Effective difficulty level
        outcome: "success" or "error"
        duration_seconds: Wall-clock time spent deciding
    """
    level = str(difficulty)
    DECISIONS_TOTAL.labels(kind, level, outcome).inc()
    DECISION_LATENCY.labels(kind, level).observe(
        duration_seconds
    )


def record_repair(kind: str, reason: str) -> None:
    REPAIRS_TOTAL.labels(kind, reason).inc()
