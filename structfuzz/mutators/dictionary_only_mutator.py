"""
Dictionary-Only Mutator

Provides mutation using only raw dictionary entries: an entry either replaces
the data outright or is spliced into it at a random offset.
"""

# Standard library imports
import logging
import random
from typing import Any, List, Optional

# Local imports
from .base import BaseMutator

logger = logging.getLogger(__name__)


class DictionaryOnlyMutator(BaseMutator):
    """
    Mutator that uses only dictionary values for mutation.
    """

    name = "dictionary_only"

    def mutate_bytes(self,
                     data: bytes,
                     rng: random.Random,
                     max_size: Optional[int] = None,
                     dictionaries: Optional[List[Any]] = None) -> bytes:
        """
        Mutate byte data using only dictionary entries.

        Args:
            data: Original byte data to mutate
            rng: Random source of the current call tree
            max_size: Maximum size for truncation
            dictionaries: List of dictionary entries (bytes or str)

        Returns:
            Mutated byte data built from a dictionary entry
        """
        if not dictionaries:
            logger.warning("No dictionaries provided to mutate_bytes; returning truncated input data.")
            return self._truncate(bytes(data), max_size)
        entry = self._to_bytes(rng.choice(dictionaries))
        if not data or rng.random() < 0.5:
            return self._truncate(entry, max_size)
        # Splice: overwrite a window of the original with the entry
        pos = rng.randint(0, len(data))
        result = bytes(data[:pos]) + entry + bytes(data[pos + len(entry):])
        return self._truncate(result, max_size)

    @staticmethod
    def _to_bytes(entry: Any) -> bytes:
        if isinstance(entry, (bytes, bytearray)):
            return bytes(entry)
        if isinstance(entry, str):
            return entry.encode("utf-8", errors="ignore")
        raise TypeError(f"Dictionary entry must be str or bytes, got {type(entry)}")
