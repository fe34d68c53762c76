#!/usr/bin/env python3
"""
Advanced Example: Custom Protocols - Custom Protocol Definition and Fuzzing

Demonstrates how to describe a small RPC protocol with nested structs,
weighted enums, payload-carrying enums and possibly-invalid opcodes, keep
length fields consistent with fixups, and drive a campaign with a custom
Mutator and the MutatorManager.
"""

import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from structfuzz import (
    Bytes, Endianness, FuzzConfig, FuzzEnum, FuzzField, FuzzMode, FuzzStruct, Invalid,
    Mutator, MutatorManager, U8, U16, U32, UnsafeEnum, Utf8String, Variant, Vec,
    define_struct,
)
from structfuzz.utils import write_value_report


# Custom Protocol Definition: Simple RPC
class Operation(FuzzEnum):
    """RPC operation code, biased toward reads."""
    variants_desc = [
        Variant("PING", value=0x01, weight=1),
        Variant("READ", value=0x10, weight=6),
        Variant("WRITE", value=0x11, weight=3),
        Variant("SHUTDOWN", value=0xFF, ignore=True),
    ]


class Argument(FuzzEnum):
    """Typed RPC argument; only the payload goes on the wire."""
    variants_desc = [
        Variant("Empty"),
        Variant("Number", payload=[U32]),
        Variant("Range", payload=[U32, U16]),
        Variant("Name", payload=[Utf8String(max_len=16)]),
    ]


class RPCHeader(FuzzStruct):
    fields_desc = [
        FuzzField("magic", U32, initializer=lambda: 0x52504301),
        FuzzField("version", U8, min=1, max=3),
        FuzzField("operation", UnsafeEnum(Operation)),
        FuzzField("request_id", U16),
        FuzzField("data_length", U16),
    ]


class RPCRequest(FuzzStruct):
    """Header plus argument list and opaque data."""
    fields_desc = [
        FuzzField("header", RPCHeader),
        FuzzField("arguments", Vec(Argument, max_len=4)),
        FuzzField("data", Bytes(max_len=48)),
    ]

    def fixup(self, mutator):
        super().fixup(mutator)
        self.header.data_length = len(self.data)


# Runtime declaration, for shapes that come from a schema file
Trailer = define_struct("Trailer", [
    FuzzField("checksum", U16),
    FuzzField("flags", U8, min=0, max=8),
])


class CarefulMutator(Mutator):
    """Always completes the pass so every field moves together."""
    def should_early_bail_mutation(self) -> bool:
        return False


def main():
    config = FuzzConfig(
        seed=7,
        mode=FuzzMode.BOTH,
        max_size=96,
        invalid_enum_probability=0.2,
        dictionary=[b"admin", b"../../etc/passwd", b"%s%s%s"],
        endianness=Endianness.LITTLE,
    )
    manager = MutatorManager(config)

    seed_request = RPCRequest(
        header=RPCHeader(version=1, request_id=1),
        arguments=[Argument("Number", 5), Argument("Name", "root")],
        data=b"hello",
    )
    seed_request.fixup(manager.mutator)

    results = manager.fuzz(seed_request, iterations=10)
    invalid = sum(isinstance(r.header.operation, Invalid) for r in results)
    consistent = sum(r.header.data_length == len(r.data) for r in results)
    print(f"Fuzzed {len(results)} requests, {invalid} with an undeclared operation, "
          f"{consistent} with a consistent data_length")

    manager.set_mutator(CarefulMutator(config))
    trailers = manager.mutate(Trailer(checksum=0xBEEF, flags=1), 5)
    print(f"Trailers: {[bytes(t).hex() for t in trailers]}")

    corpus = manager.generate_corpus(RPCRequest, 5)
    print(f"Corpus sizes: {[len(c) for c in corpus]}")

    with tempfile.TemporaryDirectory() as tmp:
        report_path = os.path.join(tmp, "rpc_report.md")
        write_value_report(results[:3], report_path, mode="w", metadata={"seed": config.seed})
        with open(report_path) as f:
            print(f"Report is {len(f.read())} characters long")

    print(f"Stats: {manager.get_stats()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
