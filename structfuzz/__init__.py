"""
StructFuzz - structure-aware fuzz value generation and mutation.

This package provides:
- Struct and enum declarations (FuzzStruct, FuzzEnum) backed by a shape registry
- Constraint-respecting generation with a size budget
- In-place mutation with early bail, fixup and on_success hooks
- Possibly-invalid enum discriminants (UnsafeEnum, Valid, Invalid)
- Exact binary serialization with explicit endianness
"""

from .codec import ByteSink, Endianness
from .errors import ConstraintError, SerializationError, ShapeError, StructFuzzError, WeightError
from .fields import (
    Array, AsciiString, Bool, Bytes, F32, F64, FuzzType, I8, I16, I32, I64,
    U8, U16, U32, U64, UnsafeEnum, Utf8String, Vec, as_fuzz_type,
)
from .mutation import mutate_value
from .mutator import FuzzConfig, FuzzMode, Mutator
from .mutator_manager import MutatorManager
from .objects import FuzzEnum, FuzzStruct, define_enum, define_struct
from .registry import FuzzField, Variant, shape_registry
from .selector import WeightedSelector
from .types import Constraints, Invalid, PossiblyInvalid, Valid, Weighted

__version__ = "1.0.0"
__all__ = [
    "ByteSink", "Endianness",
    "StructFuzzError", "ConstraintError", "WeightError", "ShapeError", "SerializationError",
    "FuzzType", "U8", "I8", "U16", "I16", "U32", "I32", "U64", "I64", "F32", "F64", "Bool",
    "Utf8String", "AsciiString", "Bytes", "Vec", "Array", "UnsafeEnum", "as_fuzz_type",
    "mutate_value", "FuzzConfig", "FuzzMode", "Mutator", "MutatorManager",
    "FuzzStruct", "FuzzEnum", "define_struct", "define_enum",
    "FuzzField", "Variant", "shape_registry", "WeightedSelector",
    "Constraints", "Weighted", "Valid", "Invalid", "PossiblyInvalid",
]
