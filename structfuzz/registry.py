#!/usr/bin/env python3
"""
Shape Registry

Runtime descriptions of structured types. A StructShape lists a struct's
fields in declaration order; an EnumShape lists an enum's variants and owns the
weighted selector used to draw them. Shapes are registered by key in a
ShapeRegistry that the generator and mutation protocols consult.

Shapes are normally produced by subclassing FuzzStruct/FuzzEnum (see
objects.py); define_struct/define_enum build them from plain data.
"""

# Standard library imports
from __future__ import annotations
import dataclasses
import keyword
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

# Local imports
from .errors import ConstraintError, ShapeError, WeightError
from .fields import U8, FuzzType, IntType, as_fuzz_type
from .selector import WeightedSelector
from .types import Constraints, Weighted

logger = logging.getLogger(__name__)

# Names a field or variant may not take because instances already use them
RESERVED_NAMES = frozenset({
    "new_fuzzed", "mutate", "fixup", "on_success", "serialized_size", "binary_serialize",
    "to_bytes", "fields", "copy", "variant", "payload", "value", "to_primitive", "from_value",
    "fields_desc", "variants_desc", "backing",
})


def _check_name(kind: str, name: Any, owner: str, reserved: FrozenSet[str] = RESERVED_NAMES) -> None:
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise ShapeError(f"{owner}: {kind} name {name!r} is not a valid identifier", context={"owner": owner})
    if name.startswith("_") or name in reserved:
        raise ShapeError(f"{owner}: {kind} name {name!r} is reserved", context={"owner": owner})


@dataclass
class FuzzField:
    """
    One struct field.

    min/max/weighted become the field's Constraints. Ignored fields keep their
    default (or initializer result) and are skipped by mutation.
    """
    name: str
    fuzz_type: Any
    min: Optional[Any] = None
    max: Optional[Any] = None
    weighted: Weighted = Weighted.NONE
    ignore: bool = False
    initializer: Optional[Callable[[], Any]] = None

    def __post_init__(self):
        self.fuzz_type = as_fuzz_type(self.fuzz_type)
        # Raises ConstraintError for min >= max or a bad weighted value
        Constraints(min=self.min, max=self.max, weighted=self.weighted)
        if isinstance(self.fuzz_type, IntType):
            if self.min is not None and self.min > self.fuzz_type.max_value:
                raise ConstraintError(f"Field {self.name}: min {self.min} above {self.fuzz_type!r} range")
            if self.max is not None and self.max <= self.fuzz_type.min_value:
                raise ConstraintError(f"Field {self.name}: max {self.max} below {self.fuzz_type!r} range")
        if self.initializer is not None and not callable(self.initializer):
            raise ShapeError(f"Field {self.name}: initializer must be callable")

    @property
    def has_constraints(self) -> bool:
        return self.min is not None or self.max is not None or self.weighted is not Weighted.NONE

    def constraints(self, max_size: Optional[int] = None) -> Optional[Constraints]:
        """The field's declared bounds plus a budget, or None when there is neither."""
        if max_size is not None:
            max_size = max(0, max_size)
        if not self.has_constraints:
            return Constraints.budget(max_size)
        return Constraints(min=self.min, max=self.max, weighted=self.weighted, max_size=max_size)

    def default(self) -> Any:
        if self.initializer is not None:
            return self.initializer()
        return self.fuzz_type.default()


@dataclass
class Variant:
    """One enum variant. value None continues from the previous variant's value."""
    name: str
    value: Optional[int] = None
    weight: int = 1
    ignore: bool = False
    payload: Sequence[Any] = ()

    def __post_init__(self):
        self.payload = tuple(as_fuzz_type(t) for t in self.payload)
        if isinstance(self.weight, bool) or not isinstance(self.weight, int) or self.weight < 0:
            raise WeightError(f"Variant {self.name}: weight must be a non-negative int, got {self.weight!r}")

    @property
    def is_unit(self) -> bool:
        return not self.payload


def _packed_min_nonzero(types: Sequence[FuzzType]) -> int:
    """Smallest nonzero encoding of a record made of the given types."""
    fixed = sum(t.static_size() for t in types if t.static_size() is not None)
    if fixed:
        return fixed
    variable = [t.min_nonzero_elements_size() for t in types if t.static_size() is None]
    return min(variable) if variable else 0


def _packed_static_size(types: Sequence[FuzzType]) -> Optional[int]:
    sizes = [t.static_size() for t in types]
    if any(s is None for s in sizes):
        return None
    return sum(sizes)


class StructShape:
    """Field list of a struct, in declaration order."""

    def __init__(self, name: str, fields: Sequence[FuzzField], cls: Optional[type] = None,
                 key: Optional[str] = None):
        self.name = name
        self.key = key or name
        self.cls = cls
        self.fields: List[FuzzField] = list(fields)
        seen = set()
        for f in self.fields:
            if not isinstance(f, FuzzField):
                raise ShapeError(f"{name}: fields_desc entries must be FuzzField, got {f!r}", context={"struct": name})
            _check_name("field", f.name, name)
            if f.name in seen:
                raise ShapeError(f"{name}: duplicate field {f.name!r}", context={"struct": name, "field": f.name})
            seen.add(f.name)
        types = [f.fuzz_type for f in self.fields]
        self.static_size = _packed_static_size(types)
        self.min_nonzero_elements_size = _packed_min_nonzero(types)

    def __repr__(self) -> str:
        return f"StructShape({self.name}, fields={self.field_names})"

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def is_variable_size(self) -> bool:
        return self.static_size is None

    def field(self, name: str) -> FuzzField:
        for f in self.fields:
            if f.name == name:
                return f
        raise ShapeError(f"{self.name} has no field {name!r}", context={"struct": self.name})


class EnumShape:
    """
    Variant list of an enum plus its weighted selector.

    Unit-only enums encode their discriminant with the backing scalar. Enums
    with payload variants encode only the active payload.
    """

    def __init__(self, name: str, variants: Sequence[Variant], backing: Any = U8,
                 cls: Optional[type] = None, key: Optional[str] = None):
        self.name = name
        self.key = key or name
        self.cls = cls
        self.backing = as_fuzz_type(backing)
        if not isinstance(self.backing, IntType):
            raise ShapeError(f"{name}: backing must be an integer type, got {self.backing!r}")
        if not variants:
            raise ShapeError(f"{name}: enum declares no variants", context={"enum": name})

        self.variants: List[Variant] = []
        next_value = 0
        for v in variants:
            if not isinstance(v, Variant):
                raise ShapeError(f"{name}: variants_desc entries must be Variant, got {v!r}", context={"enum": name})
            if v.value is None:
                v = dataclasses.replace(v, value=next_value)
            next_value = v.value + 1
            self.variants.append(v)
        self._validate()

        self.active: List[Variant] = [v for v in self.variants if not v.ignore]
        if not self.active:
            raise ShapeError(f"{name}: every variant is ignored", context={"enum": name})
        self.discriminants: FrozenSet[int] = frozenset(v.value for v in self.variants)
        self.unit_only = all(v.is_unit for v in self.variants)
        self.selector = WeightedSelector([(v.weight, i) for i, v in enumerate(self.active)])

        if self.unit_only:
            self.static_size: Optional[int] = self.backing.size
            self.min_nonzero_elements_size = self.backing.size
        else:
            sizes = {_packed_static_size(v.payload) for v in self.variants}
            self.static_size = sizes.pop() if len(sizes) == 1 else None
            nonzero = [s for s in (_packed_min_nonzero(v.payload) for v in self.active) if s > 0]
            self.min_nonzero_elements_size = min(nonzero) if nonzero else 0

    def _validate(self) -> None:
        names = set()
        values = set()
        for v in self.variants:
            _check_name("variant", v.name, self.name, RESERVED_NAMES | {"name"})
            if v.name in names:
                raise ShapeError(f"{self.name}: duplicate variant {v.name!r}", context={"enum": self.name})
            if v.value in values:
                raise ShapeError(f"{self.name}: duplicate discriminant {v.value} ({v.name})",
                                 context={"enum": self.name, "value": v.value})
            if not self.backing.min_value <= v.value <= self.backing.max_value:
                raise ConstraintError(f"{self.name}: discriminant {v.value} of {v.name} does not fit {self.backing!r}",
                                      context={"enum": self.name, "value": v.value})
            names.add(v.name)
            values.add(v.value)

    def __repr__(self) -> str:
        return f"EnumShape({self.name}, variants={[v.name for v in self.variants]})"

    @property
    def is_variable_size(self) -> bool:
        return self.static_size is None

    def active_variant(self, index: int) -> Variant:
        if not 0 <= index < len(self.active):
            raise ShapeError(f"{self.name}: variant index {index} outside {len(self.active)} active variants",
                             context={"enum": self.name, "index": index})
        return self.active[index]

    def variant(self, key: Union[str, int, Variant]) -> Variant:
        """Look a variant up by name, discriminant or identity."""
        for v in self.variants:
            if v is key or v.name == key or (isinstance(key, int) and not isinstance(key, bool) and v.value == key):
                return v
        raise ShapeError(f"{self.name} has no variant {key!r}", context={"enum": self.name})


Shape = Union[StructShape, EnumShape]


class ShapeRegistry:
    """Maps shape keys to struct and enum shapes."""

    def __init__(self):
        self._shapes: Dict[str, Shape] = {}

    def __contains__(self, key: Any) -> bool:
        try:
            self.get(key)
        except ShapeError:
            return False
        return True

    def __len__(self) -> int:
        return len(self._shapes)

    def register(self, shape: Shape, replace: bool = False) -> Shape:
        if shape.key in self._shapes and not replace:
            raise ShapeError(f"Shape {shape.key!r} is already registered", context={"key": shape.key})
        if shape.key in self._shapes:
            logger.debug(f"Replacing registered shape {shape.key}")
        self._shapes[shape.key] = shape
        return shape

    def get(self, key: Any) -> Shape:
        """Look a shape up by key or by its FuzzStruct/FuzzEnum class."""
        if not isinstance(key, str):
            key = getattr(getattr(key, "__fuzz_shape__", None), "key", None)
        shape = self._shapes.get(key) if key is not None else None
        if shape is None:
            raise ShapeError(f"No shape registered for {key!r}", context={"key": key})
        return shape

    def unregister(self, key: Any) -> Shape:
        shape = self.get(key)
        del self._shapes[shape.key]
        return shape

    def names(self) -> List[str]:
        return sorted(self._shapes)

    def items(self) -> List[Tuple[str, Shape]]:
        return sorted(self._shapes.items())


shape_registry = ShapeRegistry()
