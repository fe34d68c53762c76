#!/usr/bin/env python3
"""
Basic Example 2: FuzzField Basics - Different Value Types

Shows the leaf types a FuzzField can hold and the constraint options:
bounds, weighting toward one end of a range, ignored fields and initializers.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from structfuzz import (
    Array, AsciiString, Bool, Bytes, Constraints, F32, FuzzConfig, FuzzField, FuzzStruct,
    I16, Mutator, U8, U32, Utf8String, Vec, Weighted,
)
from structfuzz.utils import show_value


class Sample(FuzzStruct):
    """One field of every common kind."""
    fields_desc = [
        FuzzField("small", U8, min=0, max=10, weighted=Weighted.MIN),
        FuzzField("offset", I16, min=-100, max=100),
        FuzzField("ratio", F32, min=0.0, max=1.0),
        FuzzField("enabled", Bool),
        FuzzField("name", AsciiString(max_len=12)),
        FuzzField("comment", Utf8String(max_len=12)),
        FuzzField("blob", Bytes(max_len=8)),
        FuzzField("words", Vec(U32, max_len=4)),
        FuzzField("rgb", Array(U8, 3)),
        FuzzField("crc", U32, ignore=True),
        FuzzField("marker", U8, initializer=lambda: 0xAA),
    ]


def main():
    mutator = Mutator(FuzzConfig(seed=2))

    value = Sample.new_fuzzed(mutator)
    print(show_value(value))
    print(f"serialized_size = {value.serialized_size()}")

    print("\nSame struct under a 24 byte budget:")
    small = Sample.new_fuzzed(mutator, Constraints(max_size=24))
    print(f"  {len(bytes(small))} bytes, words={small.words}, blob={small.blob!r}")

    print("\nTen mutation passes:")
    for _ in range(10):
        value.mutate(mutator)
        print(f"  small={value.small:<3} offset={value.offset:<5} enabled={value.enabled!s:<5} "
              f"name={value.name!r}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
