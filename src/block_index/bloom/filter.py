"""
Probabilistic set (bloom filter) for compressed block lists.

What It Answers
---------------
- **Definitely not a member**: at least one derived bit is unset
- **Possibly a member**: all derived bits are set (may be a false positive)

There are never false negatives. This one-sided error is what makes the
lookup protocol work: candidate generation can miss nothing, and the
verification step discards the false positives.

Why Not Store The Lists?
------------------------
A block list of N account ids costs roughly 32 * N bytes as JSON. At 15 bits
per element the filter costs under 2 bytes per element. Across thousands of
followed accounts that is the difference between fitting in the storage
quota and not.

Lifecycle
---------
A filter is built once per account per sync pass from the complete list.
There is no removal. An account whose blocks change gets a freshly built
filter on the next pass.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from pydantic import Field, model_validator

from block_index.types import CamelModel

from .config import DEFAULT_BITS_PER_ELEMENT, DEFAULT_HASH_COUNT, MIN_SIZE_BITS
from .hashing import bit_positions


class ProbabilisticSet(CamelModel):
    """
    Fixed-size bit vector with a deterministic hash scheme.

    Serializes to JSON with the bit vector as base64.
    """

    model_config = CamelModel.model_config | {
        "ser_json_bytes": "base64",
        "val_json_bytes": "base64",
    }

    bits: bytes
    """Bit vector. Bit `p` is bit `p % 8` (LSB-first) of byte `p // 8`."""

    size_bits: int = Field(ge=1)
    """Number of addressable bits. `len(bits) == ceil(size_bits / 8)`."""

    hash_count: int = Field(ge=1)
    """Number of bit positions derived for each element."""

    element_count: int = Field(default=0, ge=0)
    """Number of add operations applied. Only increases."""

    @model_validator(mode="after")
    def _check_bit_length(self) -> ProbabilisticSet:
        """Reject a bit vector that does not match the declared size."""
        expected = math.ceil(self.size_bits / 8)
        if len(self.bits) != expected:
            raise ValueError(
                f"bit vector is {len(self.bits)} bytes, "
                f"expected {expected} for {self.size_bits} bits"
            )
        return self

    @classmethod
    def create(
        cls,
        expected_elements: int,
        bits_per_element: int = DEFAULT_BITS_PER_ELEMENT,
        hash_count: int = DEFAULT_HASH_COUNT,
    ) -> ProbabilisticSet:
        """
        Create an empty set sized for an expected load.

        Args:
            expected_elements: Number of elements the set will hold.
            bits_per_element: Bits allocated per expected element.
            hash_count: Positions derived per element.

        Returns:
            An empty set of `max(64, expected * bits_per_element)` bits.
        """
        size_bits = max(MIN_SIZE_BITS, math.ceil(expected_elements * bits_per_element))
        return cls(
            bits=bytes(math.ceil(size_bits / 8)),
            size_bits=size_bits,
            hash_count=hash_count,
        )

    @classmethod
    def from_items(
        cls,
        items: Iterable[str],
        bits_per_element: int = DEFAULT_BITS_PER_ELEMENT,
        hash_count: int = DEFAULT_HASH_COUNT,
    ) -> ProbabilisticSet:
        """
        Build a set from a complete list of elements.

        Sets all bits in a single mutable buffer rather than copying the
        vector once per element.
        """
        item_list = list(items)
        empty = cls.create(len(item_list), bits_per_element, hash_count)

        buffer = bytearray(empty.bits)
        for item in item_list:
            for position in bit_positions(item, hash_count, empty.size_bits):
                buffer[position >> 3] |= 1 << (position & 7)

        return cls(
            bits=bytes(buffer),
            size_bits=empty.size_bits,
            hash_count=hash_count,
            element_count=len(item_list),
        )

    def add(self, item: str) -> None:
        """Add an element. Afterwards `might_contain(item)` is always True."""
        buffer = bytearray(self.bits)
        for position in bit_positions(item, self.hash_count, self.size_bits):
            buffer[position >> 3] |= 1 << (position & 7)

        self.bits = bytes(buffer)
        self.element_count += 1

    def might_contain(self, item: str) -> bool:
        """
        Test membership.

        Returns:
            False if the item was definitely never added.
            True if it possibly was.
        """
        bits = self.bits
        for position in bit_positions(item, self.hash_count, self.size_bits):
            if not bits[position >> 3] & (1 << (position & 7)):
                return False
        return True

    def __contains__(self, item: object) -> bool:
        return isinstance(item, str) and self.might_contain(item)

    def estimate_false_positive_rate(self) -> float:
        """
        Estimate the false-positive rate at the current load.

        Uses the standard approximation (1 - e^(-k*n/m))^k.
        Diagnostic only; correctness never depends on it.
        """
        if self.element_count == 0:
            return 0.0

        exponent = -self.hash_count * self.element_count / self.size_bits
        return (1.0 - math.exp(exponent)) ** self.hash_count

    @property
    def size_bytes(self) -> int:
        """Raw size of the bit vector in bytes."""
        return len(self.bits)
