"""
Base byte mutator interface for StructFuzz

Defines the common interface that byte-level mutators implement. Text and
byte-sequence fuzz types delegate their leaf mutations to these.
"""

# Standard library imports
import logging
import random
from abc import ABC, abstractmethod
from typing import List, Optional

logger = logging.getLogger(__name__)


class BaseMutator(ABC):
    """
    Abstract base class for all byte mutators.

    Mutators are stateless: every call receives the random source of the
    current call tree, so results are reproducible for a seeded source.
    """

    name = "base"

    @abstractmethod
    def mutate_bytes(self,
                     data: bytes,
                     rng: random.Random,
                     max_size: Optional[int] = None,
                     dictionaries: Optional[List[bytes]] = None) -> bytes:
        """
        Mutate raw byte data

        Args:
            data: The byte data to mutate
            rng: Random source of the current call tree
            max_size: Upper bound on the length of the result, if any
            dictionaries: Optional dictionary entries to use for mutation

        Returns:
            Mutated byte data, never longer than max_size
        """
        pass

    @staticmethod
    def _truncate(data: bytes, max_size: Optional[int]) -> bytes:
        if max_size is not None and len(data) > max_size:
            return data[:max_size]
        return data
