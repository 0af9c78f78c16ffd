"""
Hash functions for bloom filter position derivation.

Two Base Hashes
---------------
A bloom filter needs k independent hash functions. Computing k real hashes
per lookup is wasteful. Instead we compute two 32-bit hashes and combine them
(Kirsch & Mitzenmacher, "Less hashing, same performance", 2006):

    position_i = (h1 + i * h2 + i^2) mod m

The quadratic term breaks up the short cycles plain linear combination
produces when h2 shares a factor with m.

MurmurHash3 Over Code Units
---------------------------
The base hash is MurmurHash3 (x86, 32-bit) with one deviation: each UTF-16
code unit of the item is mixed as its own block instead of packing four bytes
per block. Account identifiers are short ASCII strings, so this costs little.
Changing the scheme invalidates every persisted filter.
"""

from __future__ import annotations

import struct

from .config import PRIMARY_SEED, SECONDARY_SEED

_MASK32 = 0xFFFFFFFF

_C1 = 0xCC9E2D51
_C2 = 0x1B873593


def _rotl32(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (32 - shift))) & _MASK32


def _fmix32(h: int) -> int:
    """Final avalanche mix so every input bit affects every output bit."""
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & _MASK32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & _MASK32
    h ^= h >> 16
    return h


def utf16_code_units(item: str) -> tuple[int, ...]:
    """Split a string into UTF-16 code units (surrogate pairs count as two)."""
    data = item.encode("utf-16-le")
    return struct.unpack(f"<{len(data) // 2}H", data)


def murmur3_32(item: str, seed: int = 0) -> int:
    """
    Compute a 32-bit MurmurHash3 of a string.

    Args:
        item: String to hash.
        seed: 32-bit seed. Different seeds give independent hash functions.

    Returns:
        Unsigned 32-bit hash value.
    """
    h1 = seed & _MASK32
    units = utf16_code_units(item)

    for unit in units:
        k1 = (unit * _C1) & _MASK32
        k1 = _rotl32(k1, 15)
        k1 = (k1 * _C2) & _MASK32

        h1 ^= k1
        h1 = _rotl32(h1, 13)
        h1 = (h1 * 5 + 0xE6546B64) & _MASK32

    h1 ^= len(units)
    return _fmix32(h1)


def bit_positions(item: str, hash_count: int, size_bits: int) -> list[int]:
    """
    Derive the bit positions an item occupies in a filter.

    Deterministic for a given (item, hash_count, size_bits).

    Args:
        item: Element to locate.
        hash_count: Number of positions to derive.
        size_bits: Size of the filter's bit vector.

    Returns:
        `hash_count` positions in [0, size_bits). Duplicates are possible.
    """
    h1 = murmur3_32(item, PRIMARY_SEED)
    h2 = murmur3_32(item, SECONDARY_SEED)
    return [(h1 + i * h2 + i * i) % size_bits for i in range(hash_count)]
