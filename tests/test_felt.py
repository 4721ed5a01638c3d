"""
Tests for field elements, words and hashing.
"""
import hashlib

import pytest
from pydantic import ValidationError

from notelayer_sdk.felt import (
    FIELD_MODULUS, ZERO_WORD, Word, bytes_to_elements, felt, flatten, hash_elements, merge,
)
from conftest import TEST_SERIAL_HEX


class TestFelt:
    """Tests for canonical field element checks."""

    def test_accepts_canonical_values(self):
        assert felt(0) == 0
        assert felt(FIELD_MODULUS - 1) == FIELD_MODULUS - 1

    @pytest.mark.parametrize("value", [-1, FIELD_MODULUS, 2**64])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValueError, match="not a canonical field element"):
            felt(value)

    @pytest.mark.parametrize("value", [True, 1.0, "1"])
    def test_rejects_non_int(self, value):
        with pytest.raises(ValueError, match="must be an int"):
            felt(value)


class TestWord:
    """Tests for the Word model."""

    def test_hex_layout_is_little_endian(self):
        word = Word.from_hex(TEST_SERIAL_HEX)
        assert word.to_list() == [1, 2, 3, 4]
        assert word.to_hex() == TEST_SERIAL_HEX
        assert str(word) == TEST_SERIAL_HEX

    def test_from_hex_without_prefix(self):
        assert Word.from_hex(TEST_SERIAL_HEX[2:]) == Word.from_ints(1, 2, 3, 4)

    def test_from_hex_wrong_length(self):
        with pytest.raises(ValueError, match="exactly 64 hex characters"):
            Word.from_hex("0x1234")

    def test_from_hex_invalid_characters(self):
        with pytest.raises(ValueError, match="Invalid word hex"):
            Word.from_hex("0x" + "zz" * 32)

    def test_from_hex_non_canonical_element(self):
        with pytest.raises(ValueError):
            Word.from_hex("0x" + "ff" * 32)

    def test_from_ints_wrong_arity(self):
        with pytest.raises(ValueError, match="A word has 4 elements"):
            Word.from_ints(1, 2, 3)

    def test_word_is_frozen_and_hashable(self):
        word = Word.from_ints(1, 2, 3, 4)
        with pytest.raises(ValidationError):
            word.elements = (0, 0, 0, 0)
        assert {word: "x"}[Word.from_ints(1, 2, 3, 4)] == "x"

    def test_indexing_and_length(self):
        word = Word.from_ints(5, 6, 7, 8)
        assert word[0] == 5
        assert word[3] == 8
        assert len(word) == 4
        assert len(ZERO_WORD) == 4


class TestHashing:
    """Tests for the element hash."""

    def test_hash_matches_sha256_over_little_endian_elements(self):
        digest = hashlib.sha256((1).to_bytes(8, "little") + (2).to_bytes(8, "little")).digest()
        expected = [int.from_bytes(digest[i:i + 8], "little") % FIELD_MODULUS for i in range(0, 32, 8)]
        assert hash_elements([1, 2]).to_list() == expected

    def test_hash_rejects_non_canonical_input(self):
        with pytest.raises(ValueError):
            hash_elements([FIELD_MODULUS])

    def test_merge_is_order_sensitive(self):
        a = Word.from_ints(1, 0, 0, 0)
        b = Word.from_ints(2, 0, 0, 0)
        assert merge(a, b) != merge(b, a)
        assert merge(a, b) == hash_elements([1, 0, 0, 0, 2, 0, 0, 0])

    def test_bytes_to_elements_is_length_prefixed(self):
        assert bytes_to_elements(b"") == [0]
        assert bytes_to_elements(b"ab")[0] == 2
        assert hash_elements(bytes_to_elements(b"a")) != hash_elements(bytes_to_elements(b"a\x00"))

    def test_bytes_to_elements_packs_seven_bytes(self):
        elements = bytes_to_elements(bytes(range(15)))
        assert len(elements) == 1 + 3
        assert all(e < 2**56 for e in elements[1:])

    def test_flatten(self):
        assert flatten([Word.from_ints(1, 2, 3, 4), ZERO_WORD]) == [1, 2, 3, 4, 0, 0, 0, 0]
