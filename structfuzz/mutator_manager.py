"""
Mutator Manager for StructFuzz

Batch façade over the generation and mutation protocols. Holds one Mutator
(random source plus policy) built from a FuzzConfig, hands out generated
values, mutated copies and encoded corpora, and keeps simple counters.
"""

# Standard library imports
from __future__ import annotations
import copy
import logging
from typing import Any, Dict, List, Optional

# Local imports
from .codec import ByteSink, Endianness, as_sink, dump_hex_line
from .fields import FuzzType, as_fuzz_type
from .mutation import mutate_value
from .mutator import FuzzConfig, FuzzMode, Mutator
from .types import Constraints
from .utils.value_report import format_value_report

logger = logging.getLogger(__name__)


class MutatorManager:
    """Runs generation and mutation batches for one FuzzConfig."""

    # =========================
    # Initialization & Configuration
    # =========================
    def __init__(self, config: Optional[FuzzConfig] = None):
        self.config = config or FuzzConfig()
        self.mutator = Mutator(self.config)
        self.stats: Dict[str, int] = {}
        self.reset_stats()

    def __repr__(self) -> str:
        return f"MutatorManager({self.config!s})"

    def set_mutator(self, mutator: Mutator) -> None:
        """Set a custom Mutator (e.g. one with overridden policy hooks)"""
        self.mutator = mutator

    def reset_stats(self) -> None:
        self.stats = {
            "generated": 0,
            "mutated": 0,
            "serialized": 0,
            "serialized_bytes": 0,
            "failed_writes": 0,
        }

    def get_stats(self) -> Dict[str, int]:
        return dict(self.stats)

    def _constraints(self, constraints: Optional[Constraints]) -> Optional[Constraints]:
        if constraints is None:
            return Constraints.budget(self.config.max_size)
        return constraints

    @staticmethod
    def _resolve(value: Any, fuzz_type: Optional[Any]) -> FuzzType:
        return as_fuzz_type(fuzz_type if fuzz_type is not None else type(value))

    # =========================
    # Public API (Main Entry Points)
    # =========================
    def generate(self, target: Any, count: int = 1, constraints: Optional[Constraints] = None) -> List[Any]:
        """
        Generate brand-new values

        Args:
            target: FuzzStruct/FuzzEnum class or fuzz type
            count: Number of values to generate
            constraints: Constraint for each value; defaults to config.max_size as budget

        Returns:
            List of generated values
        """
        fuzz_type = as_fuzz_type(target)
        constraints = self._constraints(constraints)
        values = [fuzz_type.new_fuzzed(self.mutator, constraints) for _ in range(count)]
        self.stats["generated"] += len(values)
        logger.info(f"Generated {len(values)} {fuzz_type!r} value(s)")
        return values

    def mutate(self, value: Any, count: int = 1, constraints: Optional[Constraints] = None,
               fuzz_type: Optional[Any] = None) -> List[Any]:
        """
        Mutate deep copies of value; value itself is left untouched

        Args:
            value: Value to mutate
            count: Number of mutated copies
            constraints: Constraint for each mutation; defaults to config.max_size as budget
            fuzz_type: Fuzz type of value, needed for plain (non struct/enum) values

        Returns:
            List of mutated copies
        """
        fuzz_type = self._resolve(value, fuzz_type)
        constraints = self._constraints(constraints)
        results = [mutate_value(fuzz_type, copy.deepcopy(value), self.mutator, constraints) for _ in range(count)]
        self.stats["mutated"] += len(results)
        logger.info(f"Mutated {len(results)} copies of {fuzz_type!r}")
        return results

    def fuzz(self, value: Any, iterations: int = 1, fuzz_type: Optional[Any] = None) -> List[Any]:
        """
        Produce fuzzed variants of value according to config.mode

        GENERATE builds fresh values of value's type, MUTATE mutates copies of
        value, BOTH splits the iterations between the two.
        """
        if self.config.mode == FuzzMode.GENERATE:
            return self.generate(self._resolve(value, fuzz_type), iterations)
        elif self.config.mode == FuzzMode.MUTATE:
            return self.mutate(value, iterations, fuzz_type=fuzz_type)
        else:
            # Ensure at least 1 generation when iterations > 0
            generate_iterations = max(1, iterations // 2) if iterations > 0 else 0
            generated = self.generate(self._resolve(value, fuzz_type), generate_iterations)
            mutated = self.mutate(value, iterations - len(generated), fuzz_type=fuzz_type)
            return generated + mutated

    def write(self, value: Any, destination: Any, endianness: Optional[Endianness] = None,
              fuzz_type: Optional[Any] = None) -> ByteSink:
        """Encode value into a bytearray, stream or ByteSink"""
        fuzz_type = self._resolve(value, fuzz_type)
        sink = as_sink(destination, strict=self.config.strict_io)
        before_bytes, before_failures = sink.bytes_written, sink.failed_writes
        fuzz_type.binary_serialize(value, sink, endianness or self.config.endianness)
        self.stats["serialized"] += 1
        self.stats["serialized_bytes"] += sink.bytes_written - before_bytes
        self.stats["failed_writes"] += sink.failed_writes - before_failures
        return sink

    def serialize(self, value: Any, endianness: Optional[Endianness] = None,
                  fuzz_type: Optional[Any] = None) -> bytes:
        data = self.write(value, ByteSink(strict=self.config.strict_io), endianness, fuzz_type).getvalue()
        logger.debug(f"Serialized {len(data)} byte(s): {dump_hex_line(data[:64])}")
        return data

    def generate_corpus(self, target: Any, count: int, constraints: Optional[Constraints] = None,
                        endianness: Optional[Endianness] = None) -> List[bytes]:
        """Generate count values and return their encodings"""
        fuzz_type = as_fuzz_type(target)
        return [self.serialize(v, endianness, fuzz_type) for v in self.generate(fuzz_type, count, constraints)]

    def report(self, value: Any, fuzz_type: Optional[Any] = None,
               metadata: Optional[Dict[str, Any]] = None) -> str:
        """Markdown-style report of value (field listing, repr, hexdump)"""
        return format_value_report(value, fuzz_type=self._resolve(value, fuzz_type),
                                   metadata=metadata, endianness=self.config.endianness)
