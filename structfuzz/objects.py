#!/usr/bin/env python3
"""
Fuzzable structs and enums

Declare a struct by subclassing FuzzStruct with a fields_desc list, the way a
Scapy Packet declares its fields:

    class Header(FuzzStruct):
        fields_desc = [
            FuzzField("version", U8, min=1, max=4),
            FuzzField("length", U16),
            FuzzField("body", Bytes(max_len=64)),
        ]

        def fixup(self, mutator):
            super().fixup(mutator)
            self.length = len(self.body)

and an enum by subclassing FuzzEnum with a variants_desc list. Subclassing
registers the shape in the default shape_registry.
"""

# Standard library imports
from __future__ import annotations
import copy
import logging
from typing import Any, Dict, List, Optional, Sequence

# Local imports
from .codec import ByteSink, Endianness, as_sink
from .errors import ShapeError
from .fields import U8, FuzzType
from .generator import new_fuzzed_enum, new_fuzzed_struct
from .mutation import mutate_enum, mutate_struct, mutate_value
from .mutator import Mutator
from .registry import EnumShape, FuzzField, StructShape, Variant, shape_registry
from .types import Constraints

logger = logging.getLogger(__name__)


def _shape_key(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


class StructType(FuzzType):
    """Fuzz type of a FuzzStruct subclass."""

    def __init__(self, shape: StructShape):
        self.shape = shape
        self.name = shape.name

    def default(self) -> Any:
        return self.shape.cls._from_fields([f.default() for f in self.shape.fields])

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> Any:
        return new_fuzzed_struct(self.shape, mutator, constraints)

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> Any:
        return mutate_struct(value, self.shape, mutator, constraints)

    def fixup(self, value: Any, mutator) -> Any:
        value.fixup(mutator)
        return value

    def on_success(self, value: Any) -> None:
        value.on_success()

    def serialized_size(self, value: Any) -> int:
        return value.serialized_size()

    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        value.binary_serialize(sink, endianness)

    def min_nonzero_elements_size(self) -> int:
        return self.shape.min_nonzero_elements_size

    def static_size(self) -> Optional[int]:
        return self.shape.static_size


class EnumType(FuzzType):
    """Fuzz type of a FuzzEnum subclass."""

    def __init__(self, shape: EnumShape):
        self.shape = shape
        self.name = shape.name

    def default(self) -> Any:
        variant = self.shape.active[0]
        return self.shape.cls._from_variant(variant, [t.default() for t in variant.payload])

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> Any:
        return new_fuzzed_enum(self.shape, mutator, constraints)

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> Any:
        return mutate_enum(value, self.shape, mutator, constraints)

    def fixup(self, value: Any, mutator) -> Any:
        value.fixup(mutator)
        return value

    def on_success(self, value: Any) -> None:
        value.on_success()

    def serialized_size(self, value: Any) -> int:
        return value.serialized_size()

    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        value.binary_serialize(sink, endianness)

    def min_nonzero_elements_size(self) -> int:
        return self.shape.min_nonzero_elements_size

    def static_size(self) -> Optional[int]:
        return self.shape.static_size


class FuzzObject:
    """Serialization and mutation entry points shared by structs and enums."""

    __fuzz_shape__: Any = None
    __fuzz_type__: Optional[FuzzType] = None

    @classmethod
    def new_fuzzed(cls, mutator: Optional[Mutator] = None, constraints: Optional[Constraints] = None) -> Any:
        if cls.__fuzz_type__ is None:
            raise ShapeError(f"{cls.__name__} has no registered shape")
        return cls.__fuzz_type__.new_fuzzed(mutator or Mutator(), constraints)

    def mutate(self, mutator: Optional[Mutator] = None, constraints: Optional[Constraints] = None) -> Any:
        """Mutate and run on_success hooks. Returns the mutated value."""
        return mutate_value(type(self).__fuzz_type__, self, mutator, constraints)

    def serialized_size(self) -> int:
        raise NotImplementedError()

    def binary_serialize(self, sink: Any = None, endianness: Endianness = Endianness.BIG) -> ByteSink:
        raise NotImplementedError()

    def to_bytes(self, endianness: Endianness = Endianness.BIG) -> bytes:
        return self.binary_serialize(ByteSink(), endianness).getvalue()

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def copy(self) -> Any:
        return copy.deepcopy(self)


class FuzzStruct(FuzzObject):
    """Base class for fuzzable structs."""

    fields_desc: List[FuzzField] = []

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        shape = StructShape(cls.__qualname__, cls.fields_desc, cls=cls, key=_shape_key(cls))
        cls.__fuzz_shape__ = shape
        cls.__fuzz_type__ = StructType(shape)
        shape_registry.register(shape, replace=True)

    def __init__(self, **kwargs):
        shape = self.__fuzz_shape__
        if shape is None:
            raise ShapeError("FuzzStruct must be subclassed with a fields_desc")
        unknown = set(kwargs) - set(shape.field_names)
        if unknown:
            raise TypeError(f"{shape.name} got unexpected field(s): {', '.join(sorted(unknown))}")
        for f in shape.fields:
            setattr(self, f.name, kwargs[f.name] if f.name in kwargs else f.default())

    @classmethod
    def _from_fields(cls, values: Sequence[Any]) -> "FuzzStruct":
        """Assemble an instance from values in declaration order, bypassing __init__."""
        obj = cls.__new__(cls)
        for f, value in zip(cls.__fuzz_shape__.fields, values):
            setattr(obj, f.name, value)
        return obj

    def fields(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in self.__fuzz_shape__.fields}

    def fixup(self, mutator) -> None:
        """Fix up every field. Override to repair cross-field invariants, calling super()."""
        for f in self.__fuzz_shape__.fields:
            setattr(self, f.name, f.fuzz_type.fixup(getattr(self, f.name), mutator))

    def on_success(self) -> None:
        """Called on every field after an accepted mutation pass."""
        for f in self.__fuzz_shape__.fields:
            f.fuzz_type.on_success(getattr(self, f.name))

    def serialized_size(self) -> int:
        return sum(f.fuzz_type.serialized_size(getattr(self, f.name)) for f in self.__fuzz_shape__.fields)

    def binary_serialize(self, sink: Any = None, endianness: Endianness = Endianness.BIG) -> ByteSink:
        sink = as_sink(sink)
        for f in self.__fuzz_shape__.fields:
            f.fuzz_type.binary_serialize(getattr(self, f.name), sink, endianness)
        return sink

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.fields() == other.fields()

    __hash__ = None

    def __repr__(self) -> str:
        body = ", ".join(f"{name}={value!r}" for name, value in self.fields().items())
        return f"{type(self).__name__}({body})"


class FuzzEnum(FuzzObject):
    """
    Base class for fuzzable enums.

    An instance holds one variant and that variant's payload list. Unit
    variants are also exposed as class attributes (Color.RED).
    """

    variants_desc: List[Variant] = []
    backing: Any = U8

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        shape = EnumShape(cls.__qualname__, cls.variants_desc, backing=cls.backing, cls=cls, key=_shape_key(cls))
        cls.__fuzz_shape__ = shape
        cls.__fuzz_type__ = EnumType(shape)
        for v in shape.variants:
            if v.is_unit:
                setattr(cls, v.name, cls._from_variant(v, []))
        shape_registry.register(shape, replace=True)

    def __init__(self, variant: Any, *payload: Any):
        shape = self.__fuzz_shape__
        if shape is None:
            raise ShapeError("FuzzEnum must be subclassed with a variants_desc")
        self.variant = shape.variant(variant)
        if not payload:
            payload = tuple(t.default() for t in self.variant.payload)
        elif len(payload) != len(self.variant.payload):
            raise TypeError(f"{shape.name}.{self.variant.name} takes {len(self.variant.payload)} "
                            f"payload item(s), got {len(payload)}")
        self.payload = list(payload)

    @classmethod
    def _from_variant(cls, variant: Variant, payload: List[Any]) -> "FuzzEnum":
        obj = cls.__new__(cls)
        obj.variant = variant
        obj.payload = payload
        return obj

    def __deepcopy__(self, memo: Dict[int, Any]) -> "FuzzEnum":
        # Variants belong to the shape and are shared, only the payload is copied
        return self._from_variant(self.variant, copy.deepcopy(self.payload, memo))

    @classmethod
    def from_value(cls, value: int) -> "FuzzEnum":
        """Instance of the variant declared with discriminant value."""
        return cls(cls.__fuzz_shape__.variant(value))

    @property
    def name(self) -> str:
        return self.variant.name

    @property
    def value(self) -> int:
        return self.variant.value

    def to_primitive(self) -> int:
        return self.variant.value

    def __int__(self) -> int:
        return self.variant.value

    def fixup(self, mutator) -> None:
        for i, fuzz_type in enumerate(self.variant.payload):
            self.payload[i] = fuzz_type.fixup(self.payload[i], mutator)

    def on_success(self) -> None:
        for fuzz_type, item in zip(self.variant.payload, self.payload):
            fuzz_type.on_success(item)

    def serialized_size(self) -> int:
        if self.__fuzz_shape__.unit_only:
            return self.__fuzz_shape__.backing.size
        return sum(t.serialized_size(item) for t, item in zip(self.variant.payload, self.payload))

    def binary_serialize(self, sink: Any = None, endianness: Endianness = Endianness.BIG) -> ByteSink:
        sink = as_sink(sink)
        shape = self.__fuzz_shape__
        if shape.unit_only:
            shape.backing.binary_serialize(self.variant.value, sink, endianness)
            return sink
        for fuzz_type, item in zip(self.variant.payload, self.payload):
            fuzz_type.binary_serialize(item, sink, endianness)
        return sink

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.variant.name == other.variant.name and self.payload == other.payload

    __hash__ = None

    def __repr__(self) -> str:
        name = f"{type(self).__name__}.{self.variant.name}"
        if self.variant.is_unit:
            return name
        return f"{name}({', '.join(repr(item) for item in self.payload)})"


def define_struct(name: str, fields: Sequence[FuzzField], bases: Sequence[type] = (FuzzStruct,),
                  namespace: Optional[Dict[str, Any]] = None) -> type:
    """Build and register a FuzzStruct subclass at runtime."""
    attrs = dict(namespace or {})
    attrs["fields_desc"] = list(fields)
    attrs.setdefault("__module__", __name__)
    return type(name, tuple(bases), attrs)


def define_enum(name: str, variants: Sequence[Variant], backing: Any = U8,
                namespace: Optional[Dict[str, Any]] = None) -> type:
    """Build and register a FuzzEnum subclass at runtime."""
    attrs = dict(namespace or {})
    attrs["variants_desc"] = list(variants)
    attrs["backing"] = backing
    attrs.setdefault("__module__", __name__)
    return type(name, (FuzzEnum,), attrs)
