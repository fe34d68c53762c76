#!/usr/bin/env python3
# type: ignore
"""
Byte mutator tests for StructFuzz

Tests the byte-level mutators that text and byte-sequence fields delegate to:
dictionary-only mutation and stacked havoc mutation.
"""

import os
import random
import sys
import unittest

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class TestMutatorAvailability(unittest.TestCase):
    """Test mutator availability and basic imports"""

    def test_mutator_imports(self):
        """Test that mutator modules can be imported"""
        from structfuzz.mutators import BaseMutator, DictionaryOnlyMutator, HavocMutator
        self.assertTrue(issubclass(DictionaryOnlyMutator, BaseMutator))
        self.assertTrue(issubclass(HavocMutator, BaseMutator))

    def test_base_is_abstract(self):
        from structfuzz.mutators import BaseMutator
        with self.assertRaises(TypeError):
            BaseMutator()


class TestDictionaryOnlyMutator(unittest.TestCase):
    """Test the dictionary-only mutator"""

    def setUp(self):
        from structfuzz.mutators import DictionaryOnlyMutator
        self.mutator = DictionaryOnlyMutator()
        self.rng = random.Random(1)

    def test_dictionary_only_mutator_creation(self):
        """Test that DictionaryOnlyMutator can be created"""
        self.assertEqual(self.mutator.name, "dictionary_only")

    def test_mutate_bytes_dictionary_only(self):
        """Test mutate_bytes always places a dictionary entry"""
        dictionary = [b'foo', b'bar', b'baz']
        for _ in range(100):
            result = self.mutator.mutate_bytes(b'original', self.rng, dictionaries=dictionary)
            self.assertIsInstance(result, bytes)
            self.assertTrue(any(entry in result for entry in dictionary))

    def test_empty_input_replaced(self):
        for _ in range(20):
            result = self.mutator.mutate_bytes(b'', self.rng, dictionaries=[b'foo', b'bar'])
            self.assertIn(result, [b'foo', b'bar'])

    def test_string_entries(self):
        result = self.mutator.mutate_bytes(b'', self.rng, dictionaries=["admin"])
        self.assertEqual(result, b'admin')

    def test_max_size_truncates(self):
        for _ in range(50):
            result = self.mutator.mutate_bytes(b'abcdef', self.rng, max_size=4, dictionaries=[b'LONGENTRY'])
            self.assertLessEqual(len(result), 4)

    def test_no_dictionaries_returns_input(self):
        with self.assertLogs("structfuzz.mutators.dictionary_only_mutator", level="WARNING"):
            result = self.mutator.mutate_bytes(b'original', self.rng)
        self.assertEqual(result, b'original')

    def test_bad_entry_type(self):
        with self.assertRaises(TypeError):
            self.mutator.mutate_bytes(b'', self.rng, dictionaries=[42])


class TestHavocMutator(unittest.TestCase):
    """Test stacked havoc mutation"""

    def setUp(self):
        from structfuzz.mutators import HavocMutator
        self.mutator = HavocMutator()

    def test_basic_mutation(self):
        result = self.mutator.mutate_bytes(b"hello world", random.Random(2))
        self.assertIsInstance(result, bytes)

    def test_mutation_diversity(self):
        """Test that mutations produce diverse results"""
        rng = random.Random(3)
        mutations = {self.mutator.mutate_bytes(b"test data for diversity", rng) for _ in range(20)}
        self.assertGreater(len(mutations), 1, "Should generate diverse mutations")

    def test_empty_input_handling(self):
        """Empty input can only grow"""
        rng = random.Random(4)
        for _ in range(20):
            self.assertGreater(len(self.mutator.mutate_bytes(b"", rng)), 0)

    def test_zero_budget(self):
        self.assertEqual(self.mutator.mutate_bytes(b"abc", random.Random(5), max_size=0), b"")

    def test_deterministic(self):
        a = [self.mutator.mutate_bytes(b"seeded", random.Random(6)) for _ in range(5)]
        b = [self.mutator.mutate_bytes(b"seeded", random.Random(6)) for _ in range(5)]
        self.assertEqual(a, b)


@pytest.mark.parametrize("max_size", [1, 3, 8, 16])
def test_havoc_respects_max_size(max_size):
    from structfuzz.mutators import HavocMutator
    mutator = HavocMutator()
    rng = random.Random(max_size)
    for _ in range(200):
        assert len(mutator.mutate_bytes(b"0123456789", rng, max_size=max_size)) <= max_size


if __name__ == '__main__':
    unittest.main()
