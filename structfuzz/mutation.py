#!/usr/bin/env python3
"""
In-place mutation of structs and enums

Structs are walked in declaration order. After each field the mutator is asked
whether to bail early; on a bail only the field just mutated is fixed up and
the pass stops, leaving later fields untouched. A full pass ends with a fixup
of the whole value. mutate_value() is the entry point: it runs the pass and
then the on_success hooks of every field.
"""

# Standard library imports
from __future__ import annotations
import logging
from typing import Any, Optional

# Local imports
from .fields import as_fuzz_type
from .generator import new_fuzzed_enum
from .mutator import Mutator
from .registry import EnumShape, StructShape
from .types import Constraints

logger = logging.getLogger(__name__)


def mutate_struct(value: Any, shape: StructShape, mutator, constraints: Optional[Constraints] = None) -> Any:
    """Mutate a struct instance in place and return it."""
    budget = constraints.max_size if constraints is not None else None
    for field in shape.fields:
        if field.ignore:
            continue
        fuzz_type = field.fuzz_type
        current = getattr(value, field.name)
        child_budget = None
        if budget is not None:
            child_budget = budget - (value.serialized_size() - fuzz_type.serialized_size(current))
        setattr(value, field.name, fuzz_type.mutate(current, mutator, field.constraints(child_budget)))

        if mutator.should_early_bail_mutation():
            logger.debug(f"{shape.name}: early bail after {field.name}")
            if mutator.should_fixup():
                setattr(value, field.name, fuzz_type.fixup(getattr(value, field.name), mutator))
            return value

    if mutator.should_fixup():
        value.fixup(mutator)
    return value


def mutate_enum(value: Any, shape: EnumShape, mutator, constraints: Optional[Constraints] = None) -> Any:
    """
    Mutate an enum instance.

    Unit-only enums come back as a fresh generation. Otherwise the active
    variant's payload is mutated in place and the variant never changes.
    """
    if shape.unit_only:
        return new_fuzzed_enum(shape, mutator, constraints)

    budget = constraints.max_size if constraints is not None else None
    for i, fuzz_type in enumerate(value.variant.payload):
        child = None
        if budget is not None:
            child = Constraints.budget(budget - (value.serialized_size() - fuzz_type.serialized_size(value.payload[i])))
        value.payload[i] = fuzz_type.mutate(value.payload[i], mutator, child)

        if mutator.should_early_bail_mutation():
            logger.debug(f"{shape.name}.{value.variant.name}: early bail after payload item {i}")
            if mutator.should_fixup():
                value.payload[i] = fuzz_type.fixup(value.payload[i], mutator)
            return value

    if mutator.should_fixup():
        value.fixup(mutator)
    return value


def mutate_value(fuzz_type: Any, value: Any, mutator: Optional[Mutator] = None,
                 constraints: Optional[Constraints] = None) -> Any:
    """
    Mutate value as fuzz_type and run the on_success hooks.

    Returns the mutated value: the same object for structs, payload enums and
    lists, a replacement for scalars and unit-only enums.
    """
    fuzz_type = as_fuzz_type(fuzz_type)
    if mutator is None:
        mutator = Mutator()
    result = fuzz_type.mutate(value, mutator, constraints)
    fuzz_type.on_success(result)
    return result
