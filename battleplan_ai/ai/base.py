"""
Decision context for the Battleplan engine
Owns the RNG and the plan-search cache that persist across requests
"""

import logging
import random
from typing import Any, Callable, Optional

from ..config import EngineConfig
from .plan_cache import PlanCache, PlanSearchKey

logger = logging.getLogger(__name__)


class DecisionContext:
    """Per-owner mutable state threaded through every decision pipeline.

    Each context owns its own ``random.Random`` and plan cache, so
    independent contexts (for example parallel simulations) never share
    mutable state. Discarding or resetting a context only affects
    reproducibility and speed, never correctness.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize a decision context

        Args:
            config: Immutable engine settings (defaults when omitted)
            seed: Initial RNG seed; every request re-seeds anyway
        """
        self.config = config or EngineConfig()
        self.rng: random.Random = random.Random(seed)
        self.cache = PlanCache(self.config.cache_capacity)

    def reseed(self, seed: int) -> None:
        self.rng.seed(seed)

    def noise(self, amplitude: float) -> float:
        """Uniform noise in [0, amplitude); no draw when amplitude is zero."""
        if amplitude <= 0:
            return 0.0
        return self.rng.random() * amplitude

    def cached_plans(self, key: PlanSearchKey, search: Callable[[], Any]) -> Any:
        """
        Return the plans stored under ``key`` or run ``search`` and store them

        Args:
            key: Inputs of one plan search
            search: Zero-argument callable running the search

        Returns:
            The cached or freshly searched plans
        """
        return self.cache.get_or_search(key, search)

    def clear_cache(self) -> int:
        return self.cache.clear()

    def trace(self, message: str, *args: Any) -> None:
        """Per-candidate trace, emitted only when tracing is configured."""
        if self.config.trace_decisions:
            logger.debug(message, *args)

    def __repr__(self) -> str:
        return f"DecisionContext(cache={len(self.cache)}/{self.cache.capacity})"
