"""
Havoc Mutator

Pure-Python stacked byte mutations in the style of libFuzzer's default
mutation set: bit flips, byte arithmetic, interesting bytes, inserts,
erases and chunk duplication. Every operation respects max_size.
"""

# Standard library imports
import logging
import random
from typing import Callable, List, Optional

# Local imports
from .base import BaseMutator

logger = logging.getLogger(__name__)

# Constants
INTERESTING_BYTES = [0x00, 0x01, 0x7F, 0x80, 0xFF, 0x20, 0x40, 0x10]
MAX_ARITH_DELTA = 35
MAX_INSERT_LEN = 8
MAX_STACKED_MUTATIONS = 4


class HavocMutator(BaseMutator):
    """Applies one to MAX_STACKED_MUTATIONS random byte-level edits."""

    name = "havoc"

    def mutate_bytes(self,
                     data: bytes,
                     rng: random.Random,
                     max_size: Optional[int] = None,
                     dictionaries: Optional[List[bytes]] = None) -> bytes:
        if max_size == 0:
            return b""
        buf = bytearray(self._truncate(bytes(data), max_size))
        for _ in range(rng.randint(1, MAX_STACKED_MUTATIONS)):
            ops = self._applicable_ops(buf, max_size)
            rng.choice(ops)(buf, rng, max_size)
        return self._truncate(bytes(buf), max_size)

    def _applicable_ops(self, buf: bytearray, max_size: Optional[int]) -> List[Callable]:
        ops: List[Callable] = []
        if buf:
            ops.extend([self._flip_bit, self._arith_byte, self._interesting_byte, self._erase_bytes])
        if max_size is None or len(buf) < max_size:
            ops.append(self._insert_bytes)
            if buf:
                ops.append(self._duplicate_chunk)
        return ops

    @staticmethod
    def _flip_bit(buf: bytearray, rng: random.Random, max_size: Optional[int]) -> None:
        pos = rng.randrange(len(buf))
        buf[pos] ^= 1 << rng.randrange(8)

    @staticmethod
    def _arith_byte(buf: bytearray, rng: random.Random, max_size: Optional[int]) -> None:
        pos = rng.randrange(len(buf))
        delta = rng.randint(1, MAX_ARITH_DELTA)
        if rng.random() < 0.5:
            delta = -delta
        buf[pos] = (buf[pos] + delta) & 0xFF

    @staticmethod
    def _interesting_byte(buf: bytearray, rng: random.Random, max_size: Optional[int]) -> None:
        buf[rng.randrange(len(buf))] = rng.choice(INTERESTING_BYTES)

    @staticmethod
    def _erase_bytes(buf: bytearray, rng: random.Random, max_size: Optional[int]) -> None:
        start = rng.randrange(len(buf))
        end = rng.randint(start + 1, len(buf))
        del buf[start:end]

    @staticmethod
    def _insert_bytes(buf: bytearray, rng: random.Random, max_size: Optional[int]) -> None:
        room = MAX_INSERT_LEN if max_size is None else min(MAX_INSERT_LEN, max_size - len(buf))
        count = rng.randint(1, room)
        pos = rng.randint(0, len(buf))
        buf[pos:pos] = bytes(rng.getrandbits(8) for _ in range(count))

    @staticmethod
    def _duplicate_chunk(buf: bytearray, rng: random.Random, max_size: Optional[int]) -> None:
        start = rng.randrange(len(buf))
        end = rng.randint(start + 1, len(buf))
        chunk = bytes(buf[start:end])
        if max_size is not None:
            chunk = chunk[:max_size - len(buf)]
        pos = rng.randint(0, len(buf))
        buf[pos:pos] = chunk
