"""
Bloom filter sizing parameters.

Chosen for roughly a 0.1% false-positive rate at the expected load.
"""

from __future__ import annotations

from typing import Final

DEFAULT_BITS_PER_ELEMENT: Final[int] = 15
"""Bits allocated per expected element."""

DEFAULT_HASH_COUNT: Final[int] = 10
"""Number of bit positions derived for each element."""

MIN_SIZE_BITS: Final[int] = 64
"""Lower bound on the bit vector size, so tiny sets are not saturated."""

PRIMARY_SEED: Final[int] = 0
"""Seed for the first of the two base hashes."""

SECONDARY_SEED: Final[int] = 0x9E3779B9
"""Seed for the second base hash (the 32-bit golden ratio)."""
