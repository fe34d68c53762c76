"""
Exception hierarchy for StructFuzz.

Configuration and shape errors are raised at construction time, never during
a draw. Budget exhaustion is not an error and has no exception here.
"""

from typing import Any, Dict, Optional


class StructFuzzError(Exception):
    """
    Base exception for StructFuzz.

    Attributes:
        message: Human-readable error description
        context: Additional context information
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ConstraintError(StructFuzzError, ValueError):
    """Raised for malformed bounds, negative budgets or invalid config values."""


class WeightError(StructFuzzError, ValueError):
    """Raised when a weighted selector cannot be built from its weights."""


class ShapeError(StructFuzzError, RuntimeError):
    """Raised when a struct/enum shape is malformed or its contract is violated."""


class SerializationError(StructFuzzError):
    """Raised when a strict sink fails to accept encoded bytes."""
