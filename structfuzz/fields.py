#!/usr/bin/env python3
"""
Fuzz types for StructFuzz

A fuzz type describes how values of one kind are generated, mutated, sized and
encoded, the way a Scapy Field describes how one packet field is built.
Values themselves stay plain Python objects (int, float, bool, str, bytes,
list) so that the containing struct or list simply stores whatever a
new_fuzzed()/mutate() call returns.

Provided here:
- Fixed-width scalars: U8 I8 U16 I16 U32 I32 U64 I64 F32 F64 Bool
- Text: Utf8String, AsciiString
- Byte sequences: Bytes
- Collections: Vec (variable count), Array (fixed count)
- UnsafeEnum: possibly-invalid wrapper around a unit-only FuzzEnum
"""

# Standard library imports
from __future__ import annotations
import copy
import logging
import math
import random
from abc import ABC, abstractmethod
from functools import cached_property
from typing import Any, List, Optional, Set, Tuple

# Local imports
from .codec import (
    FLOAT32_MAX,
    INT_FORMATS,
    ByteSink,
    Endianness,
    decode_scalar,
    encode_bytes,
    encode_scalar,
    encode_text,
    scalar_size,
    text_size,
    wrap_int,
)
from .errors import ShapeError
from .mutators import DictionaryOnlyMutator, HavocMutator
from .types import Constraints, Invalid, Valid, Weighted

logger = logging.getLogger(__name__)

# Constants
MAX_INVALID_DRAW_ATTEMPTS = 16
SCANNABLE_BACKING_BITS = 16
NEARBY_DELTA = 16
UPWEIGHTED_ASCII = "\x00\t\n\r %&'\"<>/\\{}[]()=;:,.-_~|*$#@!?"

_havoc = HavocMutator()
_dictionary_only = DictionaryOnlyMutator()


class FuzzType(ABC):
    """
    Abstract base class for every fuzz type.

    mutate() returns the mutated value: containers are mutated in place and
    returned, immutable scalars come back as a replacement the parent stores.
    """

    name = "type"

    def __repr__(self) -> str:
        return self.name

    def default(self) -> Any:
        return None

    @abstractmethod
    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> Any:
        """Generate a brand-new value."""
        pass

    @abstractmethod
    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> Any:
        """Mutate value, returning the result."""
        pass

    def fixup(self, value: Any, mutator) -> Any:
        """Repair cross-field invariants. Leaves have none."""
        return value

    def on_success(self, value: Any) -> None:
        """Post-mutation bookkeeping hook. Leaves have none."""
        pass

    @abstractmethod
    def serialized_size(self, value: Any) -> int:
        pass

    @abstractmethod
    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        pass

    @abstractmethod
    def min_nonzero_elements_size(self) -> int:
        """Smallest nonzero encoding of one element of this type."""
        pass

    def static_size(self) -> Optional[int]:
        """Exact encoded width when every value has the same size, else None."""
        return None

    def is_variable_size(self) -> bool:
        return self.static_size() is None

    def to_bytes(self, value: Any, endianness: Endianness = Endianness.BIG) -> bytes:
        sink = ByteSink()
        self.binary_serialize(value, sink, endianness)
        return sink.getvalue()


def as_fuzz_type(obj: Any) -> FuzzType:
    """
    Resolve a fuzz type declaration.

    Accepts FuzzType instances, FuzzType subclasses with no required arguments,
    and FuzzStruct/FuzzEnum subclasses (through their __fuzz_type__).
    """
    if isinstance(obj, FuzzType):
        return obj
    if isinstance(obj, type) and issubclass(obj, FuzzType):
        return obj()
    fuzz_type = getattr(obj, "__fuzz_type__", None)
    if isinstance(fuzz_type, FuzzType):
        return fuzz_type
    raise ShapeError(f"{obj!r} is not a fuzz type or a registered struct/enum", context={"type": repr(obj)})


# =========================
# Scalars
# =========================
class NumericType(FuzzType):
    """Base for fixed-width numeric scalars encoded with a struct format."""

    def __init__(self, name: str, fmt: str):
        self.name = name
        self.fmt = fmt
        self.size = scalar_size(fmt)

    def static_size(self) -> Optional[int]:
        return self.size

    def min_nonzero_elements_size(self) -> int:
        return self.size

    def serialized_size(self, value: Any) -> int:
        return self.size

    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        encode_scalar(self.fmt, value, sink, endianness)

    def decode(self, data: bytes, endianness: Endianness = Endianness.BIG) -> Tuple[bytes, Any]:
        """Decode one value from the front of data, returning (remaining, value)."""
        return decode_scalar(self.fmt, data, endianness)


class IntType(NumericType):
    """Fixed-width integer. Unbounded mutations wrap at the type width."""

    def __init__(self, name: str, fmt: str):
        super().__init__(name, fmt)
        width, self.signed = INT_FORMATS[fmt]
        self.bits = width * 8
        if self.signed:
            self.min_value = -(1 << (self.bits - 1))
            self.max_value = (1 << (self.bits - 1)) - 1
        else:
            self.min_value = 0
            self.max_value = (1 << self.bits) - 1

    def default(self) -> int:
        return 0

    @cached_property
    def interesting_values(self) -> List[int]:
        values: Set[int] = {0, 1, 2, self.min_value, self.min_value + 1, self.max_value, self.max_value - 1}
        for shift in (7, 8, 15, 16, 31, 32, 63):
            for v in (1 << shift, (1 << shift) - 1):
                values.update((v, -v))
        if self.signed:
            values.add(-1)
        return sorted(v for v in values if self.min_value <= v <= self.max_value)

    def bounds(self, constraints: Optional[Constraints]) -> Tuple[int, int, Weighted]:
        """Half-open [low, high) range allowed by the type and the constraint."""
        low, high = self.min_value, self.max_value + 1
        weighted = Weighted.NONE
        if constraints is not None:
            weighted = constraints.weighted
            if constraints.min is not None:
                low = max(low, int(constraints.min))
            if constraints.max is not None:
                high = min(high, int(constraints.max))
        low = min(low, self.max_value)
        if high <= low:
            high = low + 1
        return low, high, weighted

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> int:
        low, high, weighted = self.bounds(constraints)
        if mutator.should_use_interesting_value():
            candidates = [v for v in self.interesting_values if low <= v < high]
            if candidates:
                return mutator.choose(candidates)
        return mutator.gen_weighted_range(low, high, weighted)

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> int:
        value = int(value)
        rng = mutator.rng
        r = rng.random()
        if r < 0.3:
            delta = rng.randint(1, NEARBY_DELTA)
            result = value + delta if rng.random() < 0.5 else value - delta
        elif r < 0.55:
            result = wrap_int(value ^ (1 << rng.randrange(self.bits)), self.bits, self.signed)
        elif r < 0.75:
            result = mutator.choose(self.interesting_values)
        else:
            result = self.new_fuzzed(mutator, constraints)

        if constraints is not None and constraints.has_bounds:
            low, high, _ = self.bounds(constraints)
            return min(max(result, low), high - 1)
        return wrap_int(result, self.bits, self.signed)


class FloatType(NumericType):
    """IEEE-754 float (F32/F64)."""

    SPECIALS = [0.0, -0.0, 1.0, -1.0, math.inf, -math.inf, math.nan]

    def __init__(self, name: str, fmt: str):
        super().__init__(name, fmt)
        self.max_finite = FLOAT32_MAX if fmt == "f" else 1.7976931348623157e308
        self.tiny = 1.401298464324817e-45 if fmt == "f" else 5e-324

    def default(self) -> float:
        return 0.0

    def _bounds(self, constraints: Optional[Constraints]) -> Optional[Tuple[float, float, Weighted]]:
        if constraints is None or not constraints.has_bounds:
            return None
        low = float(constraints.min) if constraints.min is not None else -self.max_finite
        high = float(constraints.max) if constraints.max is not None else self.max_finite
        return low, high, constraints.weighted

    def _clamp(self, value: float, bounds: Tuple[float, float, Weighted]) -> float:
        low, high, _ = bounds
        if math.isnan(value) or value < low:
            return low
        if value >= high:
            return math.nextafter(high, -math.inf)
        return value

    def _random_bits(self, mutator) -> float:
        raw = mutator.rng.getrandbits(self.size * 8).to_bytes(self.size, "big")
        return self.decode(raw, Endianness.BIG)[1]

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> float:
        bounds = self._bounds(constraints)
        if bounds is not None:
            low, high, weighted = bounds
            return self._clamp(mutator.gen_float_range(low, high, weighted), bounds)
        if mutator.should_use_interesting_value():
            return mutator.choose(self.SPECIALS + [self.max_finite, -self.max_finite, self.tiny])
        return self._random_bits(mutator)

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> float:
        value = float(value)
        rng = mutator.rng
        r = rng.random()
        if r < 0.2:
            result = -value
        elif r < 0.45:
            result = value * rng.choice([0.5, 2.0, 0.1, 10.0])
        elif r < 0.7:
            result = value + rng.uniform(-1.0, 1.0)
        elif r < 0.85:
            result = rng.choice(self.SPECIALS)
        else:
            result = self.new_fuzzed(mutator, constraints)
        bounds = self._bounds(constraints)
        if bounds is not None:
            return self._clamp(result, bounds)
        return result


class BoolType(NumericType):
    """
    One-byte boolean.

    Encoding writes the value's backing byte as-is, so a bool field holding a
    non-canonical value such as 7 serializes as 0x07.
    """

    def __init__(self):
        super().__init__("Bool", "B")

    def default(self) -> bool:
        return False

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> bool:
        return mutator.rng.random() < 0.5

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> bool:
        return not value

    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        encode_scalar(self.fmt, int(value) & 0xFF, sink, endianness)


U8 = IntType("U8", "B")
I8 = IntType("I8", "b")
U16 = IntType("U16", "H")
I16 = IntType("I16", "h")
U32 = IntType("U32", "I")
I32 = IntType("I32", "i")
U64 = IntType("U64", "Q")
I64 = IntType("I64", "q")
F32 = FloatType("F32", "f")
F64 = FloatType("F64", "d")
Bool = BoolType()

SCALAR_TYPES = {t.name: t for t in (U8, I8, U16, I16, U32, I32, U64, I64, F32, F64, Bool)}


# =========================
# Sized sequences
# =========================
class SizedType(FuzzType):
    """Shared length handling for text, bytes and collections."""

    def __init__(self, min_len: int = 0, max_len: Optional[int] = None):
        if min_len < 0 or (max_len is not None and max_len < min_len):
            raise ShapeError(f"{type(self).__name__}: invalid length bounds ({min_len}, {max_len})")
        self.min_len = min_len
        self.max_len = max_len

    def length_bounds(self, mutator, constraints: Optional[Constraints]) -> Tuple[int, int, Weighted]:
        """Half-open [low, high) element count, not yet capped by any budget."""
        low = self.min_len
        high = (self.max_len if self.max_len is not None else mutator.config.max_collection_len) + 1
        weighted = Weighted.NONE
        if constraints is not None:
            weighted = constraints.weighted
            if constraints.min is not None:
                low = max(low, int(constraints.min))
            if constraints.max is not None:
                high = min(high, int(constraints.max))
        if high <= low:
            high = low + 1
        return low, high, weighted

    def budgeted_length(self, mutator, constraints: Optional[Constraints]) -> Optional[int]:
        """
        Draw an element count that fits the remaining budget.

        Returns None when not even one element fits; the caller then degrades
        to an empty value.
        """
        low, high, weighted = self.length_bounds(mutator, constraints)
        budget = constraints.max_size if constraints is not None else None
        if budget is not None:
            elem_min = self.min_nonzero_elements_size()
            if elem_min > budget:
                logger.debug(f"{self.name}: budget {budget} below element size {elem_min}, generating empty")
                return None
            high = min(high, budget // max(1, elem_min) + 1)
            low = min(low, high - 1)
        return mutator.gen_weighted_range(low, high, weighted)


class _TextType(SizedType):
    """Text whose length bounds count characters and whose size counts UTF-8 bytes."""

    def default(self) -> str:
        return ""

    def min_nonzero_elements_size(self) -> int:
        return 1

    def serialized_size(self, value: Any) -> int:
        return text_size(value)

    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        encode_text(value, sink)

    @abstractmethod
    def _draw_char(self, rng: random.Random) -> str:
        pass

    @abstractmethod
    def _decode(self, data: bytes) -> str:
        pass

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> str:
        count = self.budgeted_length(mutator, constraints)
        if not count:
            return ""
        budget = constraints.max_size if constraints is not None else None
        chars: List[str] = []
        used = 0
        for _ in range(count):
            ch = self._draw_char(mutator.rng)
            size = text_size(ch)
            if budget is not None and used + size > budget:
                # Multi-byte draw no longer fits, fall back to one byte
                ch, size = chr(mutator.rng.randrange(0x20, 0x7F)), 1
                if used + size > budget:
                    break
            chars.append(ch)
            used += size
        return "".join(chars)

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> str:
        budget = constraints.max_size if constraints is not None else None
        data = value.encode("utf-8", errors="surrogatepass")
        byte_mutator = _dictionary_only if mutator.should_use_dictionary() else _havoc
        text = self._decode(byte_mutator.mutate_bytes(data, mutator.rng, max_size=budget,
                                                      dictionaries=mutator.config.dictionary))
        low, high, _ = self.length_bounds(mutator, constraints)
        if len(text) >= high:
            text = text[:high - 1]
        while len(text) < low and (budget is None or text_size(text) < budget):
            text += chr(mutator.rng.randrange(0x20, 0x7F))
        return text


class Utf8String(_TextType):
    """Unicode text, encoded as UTF-8."""

    name = "Utf8String"

    def _draw_char(self, rng: random.Random) -> str:
        r = rng.random()
        if r < 0.5:
            if rng.random() < 0.4:
                return rng.choice(UPWEIGHTED_ASCII)
            return chr(rng.randrange(0x80))
        if r < 0.8:
            return chr(rng.randrange(0x80, 0x800))
        # Skip the surrogate block, which has no UTF-8 encoding
        cp = rng.randrange(0x110000 - 0x800)
        return chr(cp + 0x800 if cp >= 0xD800 else cp)

    def _decode(self, data: bytes) -> str:
        return data.decode("utf-8", errors="ignore")


class AsciiString(_TextType):
    """7-bit text."""

    name = "AsciiString"

    def _draw_char(self, rng: random.Random) -> str:
        if rng.random() < 0.4:
            return rng.choice(UPWEIGHTED_ASCII)
        return chr(rng.randrange(0x80))

    def _decode(self, data: bytes) -> str:
        return "".join(chr(b & 0x7F) for b in data)


class Bytes(SizedType):
    """Raw byte sequence, written with one bulk write."""

    name = "Bytes"

    def default(self) -> bytes:
        return b""

    def min_nonzero_elements_size(self) -> int:
        return 1

    def serialized_size(self, value: Any) -> int:
        return len(value)

    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        encode_bytes(value, sink)

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> bytes:
        count = self.budgeted_length(mutator, constraints)
        if not count:
            return b""
        return mutator.random_bytes(count)

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> bytes:
        budget = constraints.max_size if constraints is not None else None
        byte_mutator = _dictionary_only if mutator.should_use_dictionary() else _havoc
        data = byte_mutator.mutate_bytes(bytes(value), mutator.rng, max_size=budget,
                                         dictionaries=mutator.config.dictionary)
        low, high, _ = self.length_bounds(mutator, constraints)
        if len(data) >= high:
            data = data[:high - 1]
        if len(data) < low:
            pad = low - len(data)
            if budget is not None:
                pad = min(pad, budget - len(data))
            data += mutator.random_bytes(max(0, pad))
        return data


class Vec(SizedType):
    """Variable-length list of one element type."""

    def __init__(self, element: Any, min_len: int = 0, max_len: Optional[int] = None):
        super().__init__(min_len, max_len)
        self.element = as_fuzz_type(element)
        self.name = f"Vec[{self.element!r}]"

    def default(self) -> list:
        return [self.element.default() for _ in range(self.min_len)]

    def min_nonzero_elements_size(self) -> int:
        return self.element.min_nonzero_elements_size()

    def serialized_size(self, value: Any) -> int:
        if not value:
            return 0
        return sum(self.element.serialized_size(item) for item in value)

    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        for item in value:
            self.element.binary_serialize(item, sink, endianness)

    def fixup(self, value: Any, mutator) -> Any:
        for i, item in enumerate(value):
            value[i] = self.element.fixup(item, mutator)
        return value

    def on_success(self, value: Any) -> None:
        for item in value:
            self.element.on_success(item)

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> list:
        count = self.budgeted_length(mutator, constraints)
        if not count:
            return []
        remaining = constraints.max_size if constraints is not None else None
        elem_min = self.element.min_nonzero_elements_size()
        items = []
        for _ in range(count):
            if remaining is not None and remaining < elem_min:
                break
            item = self.element.new_fuzzed(mutator, Constraints.budget(remaining))
            if remaining is not None:
                size = self.element.serialized_size(item)
                if size > remaining:
                    logger.debug(f"{self.name}: element of {size} bytes overran budget {remaining}, dropped")
                    break
                remaining -= size
            items.append(item)
        return items

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> list:
        budget = constraints.max_size if constraints is not None else None
        low, high, _ = self.length_bounds(mutator, constraints)
        total = self.serialized_size(value)
        room = None if budget is None else budget - total
        elem_min = self.element.min_nonzero_elements_size()

        ops = []
        if value:
            ops.append(self._mutate_element)
            if len(value) > low:
                ops.append(self._remove_element)
            if len(value) >= 2:
                ops.append(self._swap_elements)
        if len(value) + 1 < high and (room is None or room >= elem_min):
            ops.append(self._push_element)
            if value:
                ops.append(self._duplicate_element)
        if not ops:
            return value
        mutator.choose(ops)(value, mutator, budget, room)
        return value

    def _mutate_element(self, value: list, mutator, budget: Optional[int], room: Optional[int]) -> None:
        i = mutator.rng.randrange(len(value))
        child_budget = None
        if budget is not None:
            child_budget = room + self.element.serialized_size(value[i])
        value[i] = self.element.mutate(value[i], mutator, Constraints.budget(child_budget))

    def _remove_element(self, value: list, mutator, budget: Optional[int], room: Optional[int]) -> None:
        del value[mutator.rng.randrange(len(value))]

    def _swap_elements(self, value: list, mutator, budget: Optional[int], room: Optional[int]) -> None:
        i, j = mutator.rng.sample(range(len(value)), 2)
        value[i], value[j] = value[j], value[i]

    def _push_element(self, value: list, mutator, budget: Optional[int], room: Optional[int]) -> None:
        item = self.element.new_fuzzed(mutator, Constraints.budget(room))
        if room is not None and self.element.serialized_size(item) > room:
            return
        value.insert(mutator.rng.randint(0, len(value)), item)

    def _duplicate_element(self, value: list, mutator, budget: Optional[int], room: Optional[int]) -> None:
        item = copy.deepcopy(value[mutator.rng.randrange(len(value))])
        if room is not None and self.element.serialized_size(item) > room:
            return
        value.insert(mutator.rng.randint(0, len(value)), item)


class Array(FuzzType):
    """Fixed-count list of one element type."""

    def __init__(self, element: Any, length: int):
        if length < 0:
            raise ShapeError(f"Array length must not be negative, got {length}")
        self.element = as_fuzz_type(element)
        self.length = length
        self.name = f"Array[{self.element!r}; {length}]"

    def default(self) -> list:
        return [self.element.default() for _ in range(self.length)]

    def static_size(self) -> Optional[int]:
        size = self.element.static_size()
        return None if size is None else size * self.length

    def min_nonzero_elements_size(self) -> int:
        return self.element.min_nonzero_elements_size() * max(1, self.length)

    def serialized_size(self, value: Any) -> int:
        return sum(self.element.serialized_size(item) for item in value)

    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        for item in value:
            self.element.binary_serialize(item, sink, endianness)

    def fixup(self, value: Any, mutator) -> Any:
        for i, item in enumerate(value):
            value[i] = self.element.fixup(item, mutator)
        return value

    def on_success(self, value: Any) -> None:
        for item in value:
            self.element.on_success(item)

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> list:
        remaining = constraints.max_size if constraints is not None else None
        items = []
        for _ in range(self.length):
            item = self.element.new_fuzzed(mutator, Constraints.budget(remaining))
            if remaining is not None:
                remaining = max(0, remaining - self.element.serialized_size(item))
            items.append(item)
        return items

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> list:
        if not value:
            return value
        i = mutator.rng.randrange(len(value))
        child = None
        if constraints is not None and constraints.max_size is not None:
            others = self.serialized_size(value) - self.element.serialized_size(value[i])
            child = Constraints.budget(constraints.max_size - others)
        value[i] = self.element.mutate(value[i], mutator, child)
        return value


# =========================
# Possibly-invalid discriminants
# =========================
class UnsafeEnum(FuzzType):
    """
    Possibly-invalid wrapper around a unit-only FuzzEnum.

    Values are Valid(enum_value) or Invalid(raw) where raw is a backing
    integer matching none of the enum's declared discriminants. Both encode
    at exactly the backing scalar's width.
    """

    def __init__(self, enum_cls: Any):
        self.enum_type = as_fuzz_type(enum_cls)
        shape = getattr(self.enum_type, "shape", None)
        if shape is None or not hasattr(shape, "variants"):
            raise ShapeError(f"UnsafeEnum needs a FuzzEnum, got {enum_cls!r}")
        if not shape.unit_only:
            raise ShapeError(f"UnsafeEnum only wraps unit-only enums; {shape.name} has payload variants",
                             context={"enum": shape.name})
        self.shape = shape
        self.backing = shape.backing
        self.name = f"UnsafeEnum[{shape.name}]"

    def default(self) -> Valid:
        return Valid(self.enum_type.default())

    def static_size(self) -> Optional[int]:
        return self.backing.size

    def min_nonzero_elements_size(self) -> int:
        return self.backing.size

    def serialized_size(self, value: Any) -> int:
        return self.backing.size

    def binary_serialize(self, value: Any, sink: ByteSink, endianness: Endianness) -> None:
        if isinstance(value, Invalid):
            self.backing.binary_serialize(value.value, sink, endianness)
        else:
            self.enum_type.binary_serialize(value.value, sink, endianness)

    def fixup(self, value: Any, mutator) -> Any:
        if isinstance(value, Valid):
            return Valid(self.enum_type.fixup(value.value, mutator))
        return value

    def on_success(self, value: Any) -> None:
        if isinstance(value, Valid):
            self.enum_type.on_success(value.value)

    def draw_invalid(self, mutator) -> Optional[int]:
        """Random backing value outside the declared discriminants, or None if none exists."""
        declared = self.shape.discriminants
        for _ in range(MAX_INVALID_DRAW_ATTEMPTS):
            raw = self.backing.new_fuzzed(mutator)
            if raw not in declared:
                return raw
        if self.backing.bits > SCANNABLE_BACKING_BITS:
            return None
        span = self.backing.max_value - self.backing.min_value + 1
        start = mutator.rng.randrange(span)
        for offset in range(span):
            raw = self.backing.min_value + (start + offset) % span
            if raw not in declared:
                return raw
        return None

    def new_fuzzed(self, mutator, constraints: Optional[Constraints] = None) -> Any:
        if mutator.should_generate_invalid():
            raw = self.draw_invalid(mutator)
            if raw is not None:
                return Invalid(raw)
        return Valid(self.enum_type.new_fuzzed(mutator))

    def mutate(self, value: Any, mutator, constraints: Optional[Constraints] = None) -> Any:
        if isinstance(value, Invalid):
            if mutator.rng.random() < 0.5:
                return Valid(self.enum_type.new_fuzzed(mutator))
            raw = self.backing.mutate(value.value, mutator)
            if raw in self.shape.discriminants:
                return Valid(self.shape.cls.from_value(raw))
            return Invalid(raw)
        if mutator.should_generate_invalid():
            raw = self.draw_invalid(mutator)
            if raw is not None:
                return Invalid(raw)
        return Valid(self.enum_type.mutate(value.value, mutator))
