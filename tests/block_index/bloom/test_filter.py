"""Tests for the ProbabilisticSet bloom filter."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from block_index.bloom import (
    DEFAULT_BITS_PER_ELEMENT,
    DEFAULT_HASH_COUNT,
    MIN_SIZE_BITS,
    ProbabilisticSet,
)

_ids = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789", min_size=1, max_size=24).map(
    lambda s: f"did:plc:{s}"
)


class TestCreate:
    """Tests for sizing an empty filter."""

    def test_sizes_from_expected_load(self) -> None:
        """Size is expected elements times bits per element."""
        pset = ProbabilisticSet.create(100)
        assert pset.size_bits == 100 * DEFAULT_BITS_PER_ELEMENT
        assert pset.hash_count == DEFAULT_HASH_COUNT
        assert pset.size_bytes == (100 * DEFAULT_BITS_PER_ELEMENT + 7) // 8

    def test_small_loads_get_minimum_size(self) -> None:
        """Tiny and empty filters still get 64 bits."""
        assert ProbabilisticSet.create(0).size_bits == MIN_SIZE_BITS
        assert ProbabilisticSet.create(1).size_bits == MIN_SIZE_BITS

    def test_starts_empty(self) -> None:
        """A new filter has no bits set and no elements."""
        pset = ProbabilisticSet.create(10)
        assert pset.element_count == 0
        assert not any(pset.bits)
        assert not pset.might_contain("did:plc:anyone")

    def test_rejects_zero_hash_count(self) -> None:
        """A filter needs at least one hash function."""
        with pytest.raises(ValidationError):
            ProbabilisticSet(bits=bytes(8), size_bits=64, hash_count=0)

    @pytest.mark.parametrize("byte_count", [0, 7, 9])
    def test_rejects_mismatched_bit_vector(self, byte_count: int) -> None:
        """The vector must hold exactly ceil(size_bits / 8) bytes."""
        with pytest.raises(ValidationError, match="expected 8 for 64 bits"):
            ProbabilisticSet(bits=bytes(byte_count), size_bits=64, hash_count=10)

    def test_partial_trailing_byte(self) -> None:
        """A size that is not a multiple of eight rounds up to whole bytes."""
        pset = ProbabilisticSet(bits=bytes(9), size_bits=65, hash_count=10)
        assert not pset.might_contain("did:plc:anyone")


class TestMembership:
    """Tests for add and might_contain."""

    def test_added_item_is_present(self) -> None:
        """An added element is always reported as possibly present."""
        pset = ProbabilisticSet.create(10)
        pset.add("did:plc:alice")
        assert pset.might_contain("did:plc:alice")
        assert "did:plc:alice" in pset

    def test_add_increments_element_count(self) -> None:
        """Each add counts, even a repeated element."""
        pset = ProbabilisticSet.create(10)
        pset.add("did:plc:alice")
        pset.add("did:plc:alice")
        assert pset.element_count == 2

    def test_non_string_is_not_contained(self) -> None:
        """The `in` operator rejects non-string values."""
        pset = ProbabilisticSet.from_items(["did:plc:alice"])
        assert 42 not in pset

    def test_from_items_matches_incremental_adds(self) -> None:
        """Bulk construction sets exactly the bits incremental adds set."""
        items = [f"did:plc:user{i}" for i in range(50)]
        bulk = ProbabilisticSet.from_items(items)

        incremental = ProbabilisticSet.create(len(items))
        for item in items:
            incremental.add(item)

        assert bulk.bits == incremental.bits
        assert bulk.element_count == incremental.element_count == 50

    @given(st.lists(_ids, min_size=1, max_size=200))
    def test_no_false_negatives(self, items: list[str]) -> None:
        """Every element used to build the filter is reported present."""
        pset = ProbabilisticSet.from_items(items)
        assert all(pset.might_contain(item) for item in items)

    def test_false_positive_rate_is_low_at_design_load(self) -> None:
        """At 15 bits and 10 hashes per element, false positives are rare."""
        pset = ProbabilisticSet.from_items(f"did:plc:member{i}" for i in range(1000))
        false_positives = sum(
            pset.might_contain(f"did:plc:outsider{i}") for i in range(10_000)
        )
        assert false_positives / 10_000 < 0.01


class TestFalsePositiveEstimate:
    """Tests for the diagnostic false-positive estimate."""

    def test_empty_filter_estimates_zero(self) -> None:
        """No elements means no false positives."""
        assert ProbabilisticSet.create(100).estimate_false_positive_rate() == 0.0

    def test_estimate_at_design_load(self) -> None:
        """At design load the estimate is well under one percent."""
        pset = ProbabilisticSet.from_items(f"did:plc:u{i}" for i in range(100))
        assert 0.0 < pset.estimate_false_positive_rate() < 0.001

    @given(st.integers(min_value=1, max_value=60))
    def test_estimate_grows_with_load(self, extra: int) -> None:
        """Overloading a filter never lowers the estimate."""
        pset = ProbabilisticSet.create(4)
        previous = pset.estimate_false_positive_rate()
        for i in range(extra):
            pset.add(f"did:plc:load{i}")
            current = pset.estimate_false_positive_rate()
            assert current >= previous
            previous = current
        assert previous <= 1.0


class TestSerialization:
    """Tests for the JSON form of a filter."""

    def test_json_uses_camel_case_and_base64(self) -> None:
        """Field names are camelCase and the bit vector is base64 text."""
        pset = ProbabilisticSet(bits=b"\x01\x80" + bytes(6), size_bits=64, hash_count=10)
        data = pset.to_json()
        assert '"sizeBits":64' in data
        assert '"hashCount":10' in data
        assert '"elementCount":0' in data
        assert '"bits":"AYAAAAAAAAA="' in data

    def test_json_preserves_membership(self) -> None:
        """A filter read back from JSON answers queries identically."""
        items = [f"did:plc:user{i}" for i in range(20)]
        pset = ProbabilisticSet.from_items(items)

        restored = ProbabilisticSet.model_validate_json(pset.to_json())

        assert restored == pset
        assert all(restored.might_contain(item) for item in items)
