#!/usr/bin/env python3
"""
Basic Example 1: Quick Start - Minimal Effort Fuzzing

Declare a struct, generate a few values, mutate one and print the bytes.

To run this example:
    python examples/basic/01_quick_start.py
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from structfuzz import Bytes, FuzzConfig, FuzzField, FuzzStruct, MutatorManager, U8, U16
from structfuzz.codec import dump_hex_line
from structfuzz.utils import show_value


class Greeting(FuzzStruct):
    """Tiny length-prefixed message."""
    fields_desc = [
        FuzzField("version", U8, min=1, max=4),
        FuzzField("length", U16),
        FuzzField("body", Bytes(max_len=16)),
    ]

    def fixup(self, mutator):
        super().fixup(mutator)
        self.length = len(self.body)


def main():
    manager = MutatorManager(FuzzConfig(seed=1, max_size=32))

    print("Generated values:")
    for value in manager.generate(Greeting, 3):
        print(f"  {dump_hex_line(bytes(value))}")

    seed_value = Greeting(version=1, length=5, body=b"hello")
    print("\nMutated copies of:")
    print(show_value(seed_value))
    for value in manager.mutate(seed_value, 3):
        print(f"  {dump_hex_line(bytes(value))}")

    print(f"\nStats: {manager.get_stats()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
