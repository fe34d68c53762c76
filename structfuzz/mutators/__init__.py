"""
Init file for mutators package
"""

import logging

from .base import BaseMutator
from .dictionary_only_mutator import DictionaryOnlyMutator
from .havoc_mutator import HavocMutator

# Configure module-level logger
logger = logging.getLogger(__name__)

__all__ = ["BaseMutator", "DictionaryOnlyMutator", "HavocMutator"]
