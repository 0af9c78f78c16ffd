"""
Bloom filters for space-efficient block list storage.

A followed account's block list is compressed into a ProbabilisticSet that
answers "possibly blocks" or "definitely does not block".
"""

from .config import DEFAULT_BITS_PER_ELEMENT, DEFAULT_HASH_COUNT, MIN_SIZE_BITS
from .filter import ProbabilisticSet
from .hashing import bit_positions, murmur3_32

__all__ = [
    "ProbabilisticSet",
    "bit_positions",
    "murmur3_32",
    "DEFAULT_BITS_PER_ELEMENT",
    "DEFAULT_HASH_COUNT",
    "MIN_SIZE_BITS",
]
