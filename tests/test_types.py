#!/usr/bin/env python3
"""
Constraint model and possibly-invalid wrapper tests
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from structfuzz import (
    ConstraintError, Constraints, Endianness, FuzzConfig, Invalid, ShapeError, U16,
    UnsafeEnum, Valid, Weighted,
)
from conftest import Color, Geometry, Opcode, make_mutator


class TestConstraints(unittest.TestCase):
    """Constraints construction and copies"""

    def test_defaults(self):
        c = Constraints()
        self.assertIsNone(c.min)
        self.assertIsNone(c.max)
        self.assertIs(c.weighted, Weighted.NONE)
        self.assertIsNone(c.max_size)
        self.assertFalse(c.has_bounds)

    def test_min_must_be_below_max(self):
        with self.assertRaises(ConstraintError):
            Constraints(min=5, max=5)
        with self.assertRaises(ValueError):
            Constraints(min=6, max=5)

    def test_negative_budget_rejected(self):
        with self.assertRaises(ConstraintError):
            Constraints(max_size=-1)

    def test_weighted_must_be_member(self):
        with self.assertRaises(ConstraintError):
            Constraints(weighted="min")

    def test_budget_helper(self):
        self.assertIsNone(Constraints.budget(None))
        self.assertEqual(Constraints.budget(12).max_size, 12)
        self.assertEqual(Constraints.budget(-3).max_size, 0)

    def test_copies_are_independent(self):
        c = Constraints(min=1, max=10, weighted=Weighted.MAX, max_size=100)
        smaller = c.with_max_size(40)
        self.assertEqual(smaller.max_size, 40)
        self.assertEqual(c.max_size, 100)
        self.assertEqual(smaller.min, 1)
        self.assertIs(smaller.weighted, Weighted.MAX)
        clone = c.copy()
        clone.max_size = 0
        self.assertEqual(c.max_size, 100)

    def test_with_max_size_clamps(self):
        self.assertEqual(Constraints(max_size=4).with_max_size(-8).max_size, 0)


class TestFuzzConfig(unittest.TestCase):
    """FuzzConfig validation"""

    def test_probability_range(self):
        with self.assertRaises(ConstraintError):
            FuzzConfig(early_bail_probability=1.5)
        with self.assertRaises(ConstraintError):
            FuzzConfig(invalid_enum_probability=-0.1)

    def test_dictionary_normalized_to_bytes(self):
        config = FuzzConfig(dictionary=["GET", b"\x00\xff"])
        self.assertEqual(config.dictionary, [b"GET", b"\x00\xff"])

    def test_str(self):
        self.assertIn("seed=5", str(FuzzConfig(seed=5)))


class TestPossiblyInvalid(unittest.TestCase):
    """Valid/Invalid wrapper and UnsafeEnum"""

    def test_invalid_to_primitive(self):
        self.assertEqual(Invalid(7).to_primitive(), 7)
        self.assertFalse(Invalid(7).is_valid)

    def test_valid_to_primitive(self):
        value = Valid(Color.BLUE)
        self.assertTrue(value.is_valid)
        self.assertEqual(value.to_primitive(), 7)

    def test_default_is_valid_default(self):
        wrapped = UnsafeEnum(Color)
        self.assertEqual(wrapped.default(), Valid(Color.RED))

    def test_size_constant_for_both_variants(self):
        wrapped = UnsafeEnum(Opcode)
        self.assertEqual(wrapped.serialized_size(Valid(Opcode.WRITE)), U16.size)
        self.assertEqual(wrapped.serialized_size(Invalid(0xBEEF)), U16.size)
        self.assertEqual(wrapped.static_size(), 2)

    def test_encoding_uses_backing_width(self):
        wrapped = UnsafeEnum(Opcode)
        self.assertEqual(wrapped.to_bytes(Valid(Opcode.WRITE)), b"\x00\x02")
        self.assertEqual(wrapped.to_bytes(Invalid(0x1234), Endianness.LITTLE), b"\x34\x12")

    def test_payload_enum_cannot_be_wrapped(self):
        with self.assertRaises(ShapeError):
            UnsafeEnum(Geometry)

    def test_generated_invalid_is_undeclared(self):
        wrapped = UnsafeEnum(Color)
        mutator = make_mutator(seed=3, invalid_enum_probability=1.0)
        declared = Color.__fuzz_shape__.discriminants
        for _ in range(200):
            value = wrapped.new_fuzzed(mutator)
            self.assertIsInstance(value, Invalid)
            self.assertNotIn(value.value, declared)
            self.assertTrue(0 <= value.value <= 255)

    def test_never_invalid_when_probability_zero(self):
        wrapped = UnsafeEnum(Color)
        mutator = make_mutator(seed=3, invalid_enum_probability=0.0)
        for _ in range(100):
            self.assertIsInstance(wrapped.new_fuzzed(mutator), Valid)

    def test_mutated_invalid_stays_undeclared(self):
        wrapped = UnsafeEnum(Color)
        mutator = make_mutator(seed=11, invalid_enum_probability=0.5)
        declared = Color.__fuzz_shape__.discriminants
        value = Invalid(200)
        for _ in range(300):
            value = wrapped.mutate(value, mutator)
            if isinstance(value, Invalid):
                self.assertNotIn(value.value, declared)
            else:
                self.assertIsInstance(value.value, Color)


if __name__ == '__main__':
    unittest.main()
