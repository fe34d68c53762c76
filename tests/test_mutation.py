#!/usr/bin/env python3
"""
Mutation tests

Early bail, fixup and on_success ordering, payload enums, budgets and leaf
mutation strategies.
"""

import os
import sys
import unittest

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from structfuzz import (
    Array, Bool, Bytes, Constraints, F64, U8, U16, UnsafeEnum, Utf8String, Valid, Vec,
    mutate_value,
)
from conftest import (
    BailFirstMutator, Color, Envelope, Geometry, Header, Message, NeverBailMutator,
    Record, Tracked, WordList, make_mutator,
)


class TestEarlyBail(unittest.TestCase):
    """Early bail leaves later fields untouched"""

    def test_fields_after_first_unchanged(self):
        for seed in range(100):
            value = Message(msg_id=1, kind=2, text="hello")
            value.mutate(make_mutator(seed=seed, cls=BailFirstMutator))
            self.assertEqual(value.kind, 2)
            self.assertEqual(value.text, "hello")

    def test_nested_bail_stops_outer_pass(self):
        for seed in range(50):
            mutator = make_mutator(seed=seed, cls=BailFirstMutator)
            value = Envelope.new_fuzzed(mutator)
            before = value.copy()
            value.mutate(mutator)
            self.assertEqual(value.inner, before.inner)
            self.assertEqual(value.op, before.op)
            self.assertEqual(value.items, before.items)
            self.assertEqual(value.header.version, before.header.version)
            self.assertEqual(value.header.flags, before.header.flags)

    def test_bail_fixes_up_only_mutated_field(self):
        lengths = set()
        for seed in range(30):
            value = Record(length=0, body=b"abc")
            value.mutate(make_mutator(seed=seed, cls=BailFirstMutator))
            self.assertEqual(value.body, b"abc")
            lengths.add(value.length)
        self.assertNotEqual(lengths, {3})

    def test_payload_bail(self):
        for seed in range(30):
            value = Geometry("Rect", 10, 20)
            value.mutate(make_mutator(seed=seed, cls=BailFirstMutator))
            self.assertEqual(value.name, "Rect")
            self.assertEqual(value.payload[1], 20)


class TestFullPass(unittest.TestCase):
    """Full passes, fixups and hooks"""

    def test_fixup_after_full_pass(self):
        mutator = make_mutator(seed=3, cls=NeverBailMutator)
        value = Record(length=0, body=b"abc")
        for _ in range(100):
            value.mutate(mutator)
            self.assertEqual(value.length, len(value.body))

    def test_ignored_field_not_mutated(self):
        mutator = make_mutator(seed=3, cls=NeverBailMutator)
        value = Record(length=0, body=b"abc", reserved=5)
        for _ in range(100):
            value.mutate(mutator)
            self.assertEqual(value.reserved, 5)

    def test_on_success_after_full_pass(self):
        value = Envelope.new_fuzzed(make_mutator(seed=1))
        value.mutate(make_mutator(seed=1, cls=NeverBailMutator))
        self.assertEqual(value.inner.accepted, 1)
        value.mutate(make_mutator(seed=2, cls=NeverBailMutator))
        self.assertEqual(value.inner.accepted, 2)

    def test_on_success_after_early_bail(self):
        value = Tracked(a=1, b=2)
        value.mutate(make_mutator(seed=1, cls=BailFirstMutator))
        self.assertEqual(value.accepted, 1)
        self.assertEqual(value.b, 2)

    def test_mutation_changes_something(self):
        mutator = make_mutator(seed=5, cls=NeverBailMutator)
        value = Header(magic=0x150, version=1, flags=0)
        originals = {bytes(value)}
        for _ in range(20):
            value.mutate(mutator)
            originals.add(bytes(value))
        self.assertGreater(len(originals), 1)

    def test_deterministic_mutation(self):
        a = Message(msg_id=1, kind=2, text="hello")
        b = Message(msg_id=1, kind=2, text="hello")
        a.mutate(make_mutator(seed=42))
        b.mutate(make_mutator(seed=42))
        self.assertEqual(bytes(a), bytes(b))


class TestEnumMutation(unittest.TestCase):
    """Unit and payload enums"""

    def test_payload_variant_never_changes(self):
        mutator = make_mutator(seed=6, cls=NeverBailMutator)
        value = Geometry("Rect", 10, 20)
        for _ in range(200):
            result = value.mutate(mutator)
            self.assertIs(result, value)
            self.assertEqual(value.name, "Rect")
            self.assertEqual(len(value.payload), 2)

    def test_unit_enum_regenerated(self):
        mutator = make_mutator(seed=6)
        seen = set()
        value = Color.RED
        for _ in range(100):
            value = value.mutate(mutator)
            seen.add(value.name)
        self.assertEqual(seen, {"RED", "GREEN", "BLUE"})
        self.assertEqual(Color.RED.name, "RED")

    def test_unsafe_enum_field_stays_encodable(self):
        mutator = make_mutator(seed=7, invalid_enum_probability=0.5)
        wrapped = UnsafeEnum(Color)
        value = Valid(Color.GREEN)
        for _ in range(200):
            value = mutate_value(wrapped, value, mutator)
            self.assertEqual(len(wrapped.to_bytes(value)), 1)


class TestBudgetedMutation(unittest.TestCase):
    """Mutation honours max_size"""

    def test_message_stays_within_budget(self):
        mutator = make_mutator(seed=8, cls=NeverBailMutator)
        value = Message(msg_id=1, kind=2, text="hello")
        for _ in range(300):
            value.mutate(mutator, Constraints(max_size=20))
            self.assertLessEqual(len(bytes(value)), 20)

    def test_word_list_stays_within_budget(self):
        mutator = make_mutator(seed=9, cls=NeverBailMutator)
        value = WordList(words=[1, 2, 3])
        for _ in range(300):
            value.mutate(mutator, Constraints(max_size=16))
            self.assertLessEqual(value.serialized_size(), 16)


class TestLeafMutation(unittest.TestCase):
    """Scalar, text, bytes and sequence strategies"""

    def test_bounded_int_stays_in_bounds(self):
        mutator = make_mutator(seed=10, cls=NeverBailMutator)
        value = Header(magic=0x100)
        for _ in range(300):
            value.mutate(mutator)
            self.assertTrue(0x100 <= value.magic < 0x200)

    def test_unbounded_int_wraps(self):
        mutator = make_mutator(seed=11)
        value = 250
        for _ in range(300):
            value = mutate_value(U8, value, mutator)
            self.assertTrue(0 <= value <= 255)

    def test_bounded_float(self):
        mutator = make_mutator(seed=12)
        c = Constraints(min=0.0, max=10.0)
        value = 5.0
        for _ in range(300):
            value = F64.mutate(value, mutator, c)
            self.assertTrue(0.0 <= value < 10.0)

    def test_bool_flips(self):
        mutator = make_mutator()
        self.assertIs(Bool.mutate(True, mutator), False)
        self.assertIs(Bool.mutate(False, mutator), True)

    def test_bytes_dictionary_entry(self):
        mutator = make_mutator(seed=13, dictionary=[b"MAGIC"], dictionary_weight=1.0)
        for _ in range(50):
            self.assertIn(b"MAGIC", Bytes().mutate(b"abc", mutator))

    def test_text_stays_text(self):
        mutator = make_mutator(seed=14)
        value = "hello world"
        for _ in range(200):
            value = Utf8String().mutate(value, mutator)
            self.assertIsInstance(value, str)
            value.encode("utf-8")

    def test_vec_length_bounds(self):
        mutator = make_mutator(seed=15)
        words = Vec(U8, min_len=1, max_len=3)
        value = [1]
        for _ in range(300):
            value = words.mutate(value, mutator)
            self.assertTrue(1 <= len(value) <= 3)

    def test_array_length_fixed(self):
        mutator = make_mutator(seed=16)
        quad = Array(U16, 4)
        value = [0, 0, 0, 0]
        for _ in range(100):
            value = quad.mutate(value, mutator)
            self.assertEqual(len(value), 4)


@pytest.mark.parametrize("seed", range(5))
def test_record_mutation_round_trip(seed):
    mutator = make_mutator(seed=seed, cls=NeverBailMutator)
    value = Record.new_fuzzed(mutator)
    value.mutate(mutator)
    assert value.serialized_size() == len(value.to_bytes())
    assert value.length == len(value.body)


if __name__ == '__main__':
    unittest.main()
