"""
Constraint model and the possibly-invalid value wrapper.

Constraints are threaded through every new_fuzzed/mutate call. The Valid and
Invalid wrappers let a discriminant outside an enum's declared set travel
through generation, mutation and serialization untouched.
"""

from __future__ import annotations
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

from .errors import ConstraintError

T = TypeVar("T")


class Weighted(Enum):
    """Which end of a range sampling should be biased toward"""
    NONE = "none"
    MIN = "min"
    MAX = "max"


@dataclass
class Constraints:
    """
    Bounds and size budget that new_fuzzed()/mutate() should try to respect.

    min is inclusive and max is exclusive. For numeric types they bound the
    value; for text, bytes and sequences they bound the element count.
    max_size is the remaining byte budget.
    """
    min: Optional[Any] = None
    max: Optional[Any] = None
    weighted: Weighted = Weighted.NONE
    max_size: Optional[int] = None

    def __post_init__(self):
        if self.min is not None and self.max is not None and not self.min < self.max:
            raise ConstraintError(
                f"Constraint min ({self.min}) must be less than max ({self.max})",
                context={"min": self.min, "max": self.max},
            )
        if self.max_size is not None and self.max_size < 0:
            raise ConstraintError(
                f"Constraint max_size must not be negative (got {self.max_size})",
                context={"max_size": self.max_size},
            )
        if not isinstance(self.weighted, Weighted):
            raise ConstraintError(f"weighted must be a Weighted member, got {self.weighted!r}")

    @classmethod
    def budget(cls, max_size: Optional[int]) -> Optional["Constraints"]:
        """Constraint carrying only a size budget (None when there is no budget)."""
        if max_size is None:
            return None
        return cls(max_size=max(0, max_size))

    @property
    def has_bounds(self) -> bool:
        return self.min is not None or self.max is not None

    def copy(self) -> "Constraints":
        return dataclasses.replace(self)

    def with_max_size(self, max_size: Optional[int]) -> "Constraints":
        """Copy with a new budget. Negative budgets are clamped to zero."""
        if max_size is not None:
            max_size = max(0, max_size)
        return dataclasses.replace(self, max_size=max_size)


@dataclass(frozen=True)
class Valid(Generic[T]):
    """A well-formed instance of the wrapped enum."""
    value: T

    is_valid = True

    def to_primitive(self) -> int:
        to_primitive = getattr(self.value, "to_primitive", None)
        if to_primitive is not None:
            return to_primitive()
        return int(self.value)


@dataclass(frozen=True)
class Invalid:
    """A raw backing value that matches none of the enum's declared discriminants."""
    value: int

    is_valid = False

    def to_primitive(self) -> int:
        return self.value


PossiblyInvalid = Union[Valid, Invalid]
