"""
Weighted index selection.

A selector is built once per variant set (weights validated up front) and
then drawn from cheaply: one randrange() and one bisect per draw.
"""

from __future__ import annotations
import logging
import random
from bisect import bisect_right
from itertools import accumulate
from typing import Any, Generic, Iterable, List, Sequence, Tuple, TypeVar

from .errors import WeightError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WeightedSelector(Generic[T]):
    """
    Select one outcome from (weight, outcome) pairs with P(i) = w_i / sum(w).

    Weights must be non-negative integers and must not all be zero.
    """

    def __init__(self, pairs: Iterable[Tuple[int, T]]):
        pairs = list(pairs)
        if not pairs:
            raise WeightError("WeightedSelector needs at least one (weight, outcome) pair")

        weights: List[int] = []
        for weight, _ in pairs:
            if isinstance(weight, bool) or not isinstance(weight, int):
                raise WeightError(f"Weights must be integers, got {weight!r}", context={"weight": weight})
            if weight < 0:
                raise WeightError(f"Weights must be non-negative, got {weight}", context={"weight": weight})
            weights.append(weight)

        self.outcomes: List[T] = [outcome for _, outcome in pairs]
        self.weights = weights
        self._cumulative = list(accumulate(weights))
        self.total = self._cumulative[-1]
        if self.total == 0:
            raise WeightError("Total weight of a WeightedSelector must be greater than zero",
                              context={"weights": weights})

    @classmethod
    def from_weights(cls, weights: Sequence[int]) -> "WeightedSelector[int]":
        """Selector whose outcomes are the indices of `weights`."""
        return cls((w, i) for i, w in enumerate(weights))

    def __len__(self) -> int:
        return len(self.outcomes)

    def __repr__(self) -> str:
        return f"WeightedSelector(weights={self.weights})"

    def sample(self, rng: random.Random) -> int:
        """Draw an index."""
        return bisect_right(self._cumulative, rng.randrange(self.total))

    def choose(self, rng: random.Random) -> T:
        """Draw an outcome."""
        return self.outcomes[self.sample(rng)]

    def probability(self, index: int) -> float:
        return self.weights[index] / self.total
