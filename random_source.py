"""
Random Source Module - StickRPG

Abstracts where the engine's randomness comes from. The engine and the
minigame resolvers call these methods without knowing whether numbers
come from the process-global generator, a seeded private one, or a
scripted queue in a test.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List, Iterable
import logging
import random

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

RANDOM_CONFIG = {
    'default_source': 'process',
}


# =============================================================================
# EXCEPTIONS
# =============================================================================

class RandomSourceError(Exception):
    """Base exception for random source errors."""
    pass


class RandomSourceExhausted(RandomSourceError):
    """A scripted source ran out of queued values."""
    pass


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class RandomSource(ABC):
    """
    Abstract interface for random number generation.

    Only two primitives are needed by the game rules; everything else
    (card draws, dice, chance rolls) is built on top of them.
    """

    @abstractmethod
    def random(self) -> float:
        """
        Uniform float.

        Returns:
            A value in [0.0, 1.0)
        """
        pass

    @abstractmethod
    def randint(self, low: int, high: int) -> int:
        """
        Uniform integer.

        Args:
            low: Smallest possible result
            high: Largest possible result (inclusive)

        Returns:
            An integer in [low, high]
        """
        pass

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self.random() < probability


# =============================================================================
# IMPLEMENTATIONS
# =============================================================================

class ProcessRandomSource(RandomSource):
    """Draws from the process-global `random` module. Not reproducible."""

    def random(self) -> float:
        return random.random()

    def randint(self, low: int, high: int) -> int:
        return random.randint(low, high)


class SeededRandomSource(RandomSource):
    """
    Private generator with a fixed seed.

    Two sources built with the same seed produce the same sequence, which
    makes whole play sessions replayable.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed if seed is not None else random.randint(0, 2**32)
        self._rng = random.Random(self.seed)

    def random(self) -> float:
        return self._rng.random()

    def randint(self, low: int, high: int) -> int:
        return self._rng.randint(low, high)


class ScriptedRandomSource(RandomSource):
    """
    Source that replays queued values.

    Useful for:
    - Forcing a specific minigame outcome in tests
    - Reproducing a reported bug step by step

    Floats and integers are queued separately. Integer values are handed
    out as-is but must fall inside the requested range.
    """

    def __init__(self, floats: Optional[Iterable[float]] = None,
                 ints: Optional[Iterable[int]] = None):
        self._floats: List[float] = list(floats or [])
        self._ints: List[int] = list(ints or [])
        self.call_count = 0
        self.call_history: List[Dict[str, Any]] = []

    def _record_call(self, method: str, **kwargs):
        """Record method call for testing verification."""
        self.call_count += 1
        self.call_history.append({'method': method, 'args': kwargs})

    def queue_floats(self, *values: float):
        self._floats.extend(values)

    def queue_ints(self, *values: int):
        self._ints.extend(values)

    def random(self) -> float:
        self._record_call('random')
        if not self._floats:
            raise RandomSourceExhausted("No scripted floats left")
        value = self._floats.pop(0)
        if not 0.0 <= value < 1.0:
            raise ValueError(f"Scripted float out of range: {value}")
        return value

    def randint(self, low: int, high: int) -> int:
        self._record_call('randint', low=low, high=high)
        if not self._ints:
            raise RandomSourceExhausted("No scripted ints left")
        value = self._ints.pop(0)
        if not low <= value <= high:
            raise ValueError(f"Scripted int {value} outside [{low}, {high}]")
        return value


# =============================================================================
# FACTORY FUNCTION
# =============================================================================

def create_random_source(source_type: Optional[str] = None, **kwargs) -> RandomSource:
    """
    Factory function to create a random source.

    Args:
        source_type: 'process', 'seeded' or 'scripted'
            (defaults to RANDOM_CONFIG['default_source'])
        **kwargs: Source-specific configuration (seed=, floats=, ints=)

    Returns:
        Configured RandomSource instance
    """
    source_type = source_type or RANDOM_CONFIG['default_source']
    if source_type == 'process':
        return ProcessRandomSource()
    elif source_type == 'seeded':
        source = SeededRandomSource(**kwargs)
        logger.debug(f"Seeded random source created (seed={source.seed})")
        return source
    elif source_type == 'scripted':
        return ScriptedRandomSource(**kwargs)
    else:
        raise ValueError(f"Unknown random source type: {source_type}")
