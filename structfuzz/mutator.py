"""
Random source and mutation policy for StructFuzz.

A Mutator wraps the injected random.Random together with the FuzzConfig knobs
that the generation and mutation protocols consult (fixups, early bail,
invalid discriminants, interesting values). One Mutator per call tree.
"""

# Standard library imports
from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence

# Local imports
from .codec import Endianness
from .errors import ConstraintError
from .types import Weighted

logger = logging.getLogger(__name__)

# Constants
DEFAULT_EARLY_BAIL_PROBABILITY = 0.25
DEFAULT_INVALID_ENUM_PROBABILITY = 0.1
DEFAULT_INTERESTING_VALUE_PROBABILITY = 0.1
DEFAULT_MAX_COLLECTION_LEN = 32
DEFAULT_DICTIONARY_WEIGHT = 0.2


class FuzzMode(Enum):
    """How MutatorManager.fuzz() produces values"""
    GENERATE = "generate"
    MUTATE = "mutate"
    BOTH = "both"


@dataclass
class FuzzConfig:
    """Configuration for generation and mutation
    rng takes precedence over seed; with neither, a fresh unseeded Random is used.
    """
    mode: FuzzMode = FuzzMode.BOTH
    seed: Optional[int] = None
    rng: Optional[random.Random] = None
    run_fixups: bool = True
    early_bail_probability: float = DEFAULT_EARLY_BAIL_PROBABILITY
    invalid_enum_probability: float = DEFAULT_INVALID_ENUM_PROBABILITY
    interesting_value_probability: float = DEFAULT_INTERESTING_VALUE_PROBABILITY
    max_collection_len: int = DEFAULT_MAX_COLLECTION_LEN
    max_size: Optional[int] = None  # Default top-level byte budget
    endianness: Endianness = Endianness.BIG
    dictionary: List[bytes] = field(default_factory=list)
    dictionary_weight: float = DEFAULT_DICTIONARY_WEIGHT
    strict_io: bool = False

    def __post_init__(self):
        for name in ("early_bail_probability", "invalid_enum_probability",
                     "interesting_value_probability", "dictionary_weight"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConstraintError(f"{name} must be within [0, 1], got {value}", context={name: value})
        if self.max_collection_len < 1:
            raise ConstraintError(f"max_collection_len must be at least 1, got {self.max_collection_len}")
        if self.max_size is not None and self.max_size < 0:
            raise ConstraintError(f"max_size must not be negative, got {self.max_size}")
        self.dictionary = [d.encode("utf-8", errors="ignore") if isinstance(d, str) else bytes(d)
                           for d in self.dictionary]

    def __str__(self) -> str:
        return f"FuzzConfig(mode={self.mode.value}, seed={self.seed}, max_size={self.max_size})"

    def __repr__(self) -> str:
        return (f"FuzzConfig(mode={self.mode}, seed={self.seed}, run_fixups={self.run_fixups}, "
                f"early_bail_probability={self.early_bail_probability}, "
                f"invalid_enum_probability={self.invalid_enum_probability}, "
                f"max_size={self.max_size}, endianness={self.endianness})")


class Mutator:
    """
    Random source plus policy, handed down every new_fuzzed()/mutate() call.

    Subclass and override should_early_bail_mutation()/should_fixup() to drive
    the protocols deterministically.
    """

    def __init__(self, config: Optional[FuzzConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or FuzzConfig()
        if rng is not None:
            self.rng = rng
        elif self.config.rng is not None:
            self.rng = self.config.rng
        else:
            self.rng = random.Random(self.config.seed)

    def __repr__(self) -> str:
        return f"Mutator({self.config!s})"

    # =========================
    # Policy
    # =========================
    def should_fixup(self) -> bool:
        return self.config.run_fixups

    def should_early_bail_mutation(self) -> bool:
        return self.gen_chance(self.config.early_bail_probability)

    def should_generate_invalid(self) -> bool:
        return self.gen_chance(self.config.invalid_enum_probability)

    def should_use_interesting_value(self) -> bool:
        return self.gen_chance(self.config.interesting_value_probability)

    def should_use_dictionary(self) -> bool:
        return bool(self.config.dictionary) and self.gen_chance(self.config.dictionary_weight)

    # =========================
    # Random draws
    # =========================
    def gen_chance(self, probability: float) -> bool:
        if probability <= 0.0:
            return False
        if probability >= 1.0:
            return True
        return self.rng.random() < probability

    def gen_range(self, low: int, high: int) -> int:
        """Uniform integer in [low, high)."""
        if high <= low:
            return low
        return self.rng.randrange(low, high)

    def gen_weighted_range(self, low: int, high: int, weighted: Weighted = Weighted.NONE) -> int:
        """Integer in [low, high), biased toward one end when weighted."""
        if high - low <= 1:
            return low
        if weighted is Weighted.NONE:
            return self.rng.randrange(low, high)
        span = high - low
        offset = min(span - 1, int(span * self.rng.random() ** 2))
        if weighted is Weighted.MIN:
            return low + offset
        return high - 1 - offset

    def gen_float_range(self, low: float, high: float, weighted: Weighted = Weighted.NONE) -> float:
        """Float in [low, high), biased toward one end when weighted."""
        u = self.rng.random()
        if weighted is Weighted.MIN:
            u = u ** 2
        elif weighted is Weighted.MAX:
            u = 1.0 - u ** 2
        # finite even when high - low overflows
        value = low * (1.0 - u) + high * u
        if value >= high:
            return max(low, math.nextafter(high, -math.inf))
        return max(low, value)

    def field_order(self, count: int) -> List[int]:
        """Uniformly random permutation of range(count)."""
        return self.rng.sample(range(count), count)

    def choose(self, items: Sequence[Any]) -> Any:
        return self.rng.choice(items)

    def random_bytes(self, count: int) -> bytes:
        return bytes(self.rng.getrandbits(8) for _ in range(count))
