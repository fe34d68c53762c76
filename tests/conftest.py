#!/usr/bin/env python3
"""
Shared test fixtures and utilities for the StructFuzz test suite.

This module provides the struct and enum declarations, mutator helpers and
pytest fixtures that are used across multiple test modules.
"""

import sys
import os
import tempfile
from typing import Any
import pytest

# Add the parent directory to sys.path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from structfuzz import (
    Bytes, FuzzConfig, FuzzEnum, FuzzField, FuzzStruct, Mutator, U8, U16, U32,
    UnsafeEnum, Utf8String, Variant, Vec,
)


# Test Mutators
class NeverBailMutator(Mutator):
    """Mutator that always completes the full mutation pass"""
    def should_early_bail_mutation(self) -> bool:
        return False


class BailFirstMutator(Mutator):
    """Mutator that bails right after the first mutated field"""
    def should_early_bail_mutation(self) -> bool:
        return True


def make_mutator(seed: int = 1234, cls: type = Mutator, **config: Any) -> Mutator:
    """Create a seeded mutator of the given class"""
    return cls(FuzzConfig(seed=seed, **config))


# Test Enums
class Color(FuzzEnum):
    """Unit-only enum with a gap in its discriminants"""
    variants_desc = [
        Variant("RED"),
        Variant("GREEN"),
        Variant("BLUE", value=7),
    ]


class Opcode(FuzzEnum):
    """Weighted unit-only enum with an ignored variant"""
    backing = U16
    variants_desc = [
        Variant("READ", value=1, weight=1),
        Variant("WRITE", weight=3),
        Variant("ERASE", weight=0),
        Variant("LEGACY", value=0x10, ignore=True),
    ]


class Geometry(FuzzEnum):
    """Enum with payload variants"""
    variants_desc = [
        Variant("Point"),
        Variant("Circle", payload=[U16]),
        Variant("Rect", payload=[U16, U16]),
        Variant("Hidden", payload=[U8], ignore=True),
    ]


# Test Structs
class Header(FuzzStruct):
    """Fixed-size struct"""
    fields_desc = [
        FuzzField("magic", U16, min=0x100, max=0x200),
        FuzzField("version", U8),
        FuzzField("flags", U8),
    ]


class Message(FuzzStruct):
    """Two fixed-width integers followed by text"""
    fields_desc = [
        FuzzField("msg_id", U32),
        FuzzField("kind", U32),
        FuzzField("text", Utf8String()),
    ]


class Record(FuzzStruct):
    """Length-prefixed body; fixup keeps the prefix in sync"""
    fields_desc = [
        FuzzField("length", U16),
        FuzzField("body", Bytes(max_len=64)),
        FuzzField("reserved", U8, ignore=True),
    ]

    def fixup(self, mutator):
        super().fixup(mutator)
        self.length = len(self.body)


class Tracked(FuzzStruct):
    """Counts accepted mutation passes"""
    fields_desc = [
        FuzzField("a", U8),
        FuzzField("b", U8),
    ]

    def on_success(self):
        super().on_success()
        self.accepted = getattr(self, "accepted", 0) + 1


class Envelope(FuzzStruct):
    """Nested struct exercising every kind of field"""
    fields_desc = [
        FuzzField("header", Header),
        FuzzField("inner", Tracked),
        FuzzField("op", UnsafeEnum(Color)),
        FuzzField("items", Vec(U32, max_len=8)),
    ]


class WordList(FuzzStruct):
    """Only a list of 4-byte words"""
    fields_desc = [
        FuzzField("words", Vec(U32)),
    ]


# Test Fixtures
@pytest.fixture
def mutator():
    """Fixture providing a seeded mutator that never bails early"""
    return make_mutator(cls=NeverBailMutator)


@pytest.fixture
def temp_report_file():
    """Fixture providing a temporary report file path"""
    with tempfile.NamedTemporaryFile(suffix='.md', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # Cleanup
    try:
        os.unlink(temp_path)
    except OSError:
        pass
