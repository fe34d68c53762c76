#!/usr/bin/env python3
"""
Fuzz generation for structs and enums

Builds brand-new values from registry shapes. The remaining byte budget from
the incoming constraint is threaded through every child: each child is handed
the budget minus the bytes reserved for fixed-size fields still to come, and
what it produced is subtracted afterwards. Variable-size structs visit their
fields in a random permutation so no field is systematically starved; the
value is always assembled in declaration order.
"""

# Standard library imports
from __future__ import annotations
import logging
from typing import Any, List, Optional, Sequence

# Local imports
from .fields import FuzzType
from .registry import EnumShape, StructShape
from .types import Constraints

logger = logging.getLogger(__name__)


def _reserved(types: Sequence[FuzzType]) -> int:
    return sum(t.static_size() for t in types if t.static_size() is not None)


def _consume(remaining: Optional[int], used: int, owner: str, what: str) -> Optional[int]:
    if remaining is None:
        return None
    remaining -= used
    if remaining < 0:
        logger.debug(f"{owner}: {what} overran the budget by {-remaining} byte(s), clamping to 0")
        remaining = 0
    return remaining


def new_fuzzed_struct(shape: StructShape, mutator, constraints: Optional[Constraints] = None) -> Any:
    """Generate a new instance of the struct described by shape."""
    remaining = constraints.max_size if constraints is not None else None
    fields = shape.fields
    if shape.is_variable_size:
        order = mutator.field_order(len(fields))
    else:
        order = list(range(len(fields)))

    pending = _reserved([f.fuzz_type for f in fields])
    values: List[Any] = [None] * len(fields)
    for index in order:
        field = fields[index]
        fuzz_type = field.fuzz_type
        own_static = fuzz_type.static_size()
        if own_static is not None:
            pending -= own_static

        if field.ignore or field.initializer is not None:
            value = field.default()
        else:
            child_budget = None
            if remaining is not None:
                child_budget = remaining - pending
                if child_budget < 0:
                    logger.debug(f"{shape.name}.{field.name}: no budget left after reservations")
            value = fuzz_type.new_fuzzed(mutator, field.constraints(child_budget))

        values[index] = value
        remaining = _consume(remaining, fuzz_type.serialized_size(value), shape.name, field.name)

    result = shape.cls._from_fields(values)
    if mutator.should_fixup():
        result.fixup(mutator)
    return result


def new_fuzzed_payload(types: Sequence[FuzzType], mutator, remaining: Optional[int], owner: str) -> List[Any]:
    """Generate the items of an enum payload in order under one budget."""
    pending = _reserved(types)
    items = []
    for i, fuzz_type in enumerate(types):
        own_static = fuzz_type.static_size()
        if own_static is not None:
            pending -= own_static
        child_budget = None if remaining is None else remaining - pending
        item = fuzz_type.new_fuzzed(mutator, Constraints.budget(child_budget))
        remaining = _consume(remaining, fuzz_type.serialized_size(item), owner, f"payload item {i}")
        items.append(item)
    return items


def new_fuzzed_enum(shape: EnumShape, mutator, constraints: Optional[Constraints] = None) -> Any:
    """
    Generate a new instance of the enum described by shape.

    The variant is drawn from the shape's selector over active variants, so
    ignored variants never appear. Only the chosen variant's payload is
    generated.
    """
    index = shape.selector.sample(mutator.rng)
    variant = shape.active_variant(index)
    if variant.is_unit:
        return shape.cls._from_variant(variant, [])

    remaining = constraints.max_size if constraints is not None else None
    payload = new_fuzzed_payload(variant.payload, mutator, remaining, f"{shape.name}.{variant.name}")
    result = shape.cls._from_variant(variant, payload)
    if mutator.should_fixup():
        result.fixup(mutator)
    return result
