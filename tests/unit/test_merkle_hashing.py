"""
Unit tests for digest primitives and Keccak-256 hashing.
"""

import pytest
from eth_utils import keccak

from merkle.hashing import DIGEST_SIZE, Digest, KeccakHasher, keccak256


class TestDigest:
    """Test the fixed-size digest type."""

    def test_digest_accepts_32_bytes(self):
        """Test digest construction from 32 bytes."""
        digest = Digest(b'\x01' * 32)

        assert len(digest) == DIGEST_SIZE
        assert digest == b'\x01' * 32

    @pytest.mark.parametrize("size", [0, 1, 31, 33, 64])
    def test_digest_rejects_other_lengths(self, size):
        """Test digest refuses anything but 32 bytes."""
        with pytest.raises(ValueError, match="32 bytes"):
            Digest(b'\x00' * size)

    def test_digest_from_list(self):
        """Test digest construction from a list of byte values."""
        digest = Digest(list(range(32)))
        assert digest.to_list() == list(range(32))

    def test_from_hex_with_and_without_prefix(self):
        """Test hex parsing accepts an optional 0x prefix."""
        hex_value = "ab" * 32

        assert Digest.from_hex(hex_value) == bytes.fromhex(hex_value)
        assert Digest.from_hex("0x" + hex_value) == bytes.fromhex(hex_value)
        assert Digest.from_hex("0X" + hex_value.upper()) == bytes.fromhex(hex_value)

    def test_from_hex_rejects_wrong_length(self):
        """Test hex parsing rejects short input."""
        with pytest.raises(ValueError):
            Digest.from_hex("0x" + "ab" * 31)

    def test_hex_prefixed(self):
        """Test external hex rendering."""
        digest = Digest(b'\xff' * 32)
        assert digest.hex_prefixed() == "0x" + "ff" * 32
        assert "0x" + "ff" * 32 in repr(digest)


class TestKeccak:
    """Test Keccak-256 hashing."""

    def test_empty_input_vector(self):
        """Test the well-known Keccak-256 of empty input."""
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_abc_vector(self):
        """Test Keccak-256 (not SHA3-256) of 'abc'."""
        assert keccak256(b"abc").hex() == (
            "4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"
        )

    def test_returns_digest(self):
        """Test return type is a Digest."""
        assert isinstance(keccak256(b"data"), Digest)


class TestKeccakHasher:
    """Test leaf and internal node hashing."""

    @pytest.fixture
    def hasher(self):
        return KeccakHasher()

    def test_hash_leaf_is_plain_keccak(self, hasher):
        """Test leaf hashing adds no domain prefix."""
        data = b'\x42' * 41
        assert hasher.hash_leaf(data) == keccak(data)

    def test_hash_internal_concatenates_left_then_right(self, hasher):
        """Test internal node is H(left || right)."""
        left = b'\x01' * 32
        right = b'\x02' * 32

        assert hasher.hash_internal(left, right) == keccak(left + right)

    def test_hash_internal_is_order_sensitive(self, hasher):
        """Test children are not sorted before hashing."""
        left = b'\x01' * 32
        right = b'\x02' * 32

        assert hasher.hash_internal(left, right) != hasher.hash_internal(right, left)

    def test_hash_internal_rejects_short_children(self, hasher):
        """Test child length validation."""
        with pytest.raises(ValueError):
            hasher.hash_internal(b'\x01' * 31, b'\x02' * 32)

        with pytest.raises(ValueError):
            hasher.hash_internal(b'\x01' * 32, b'')
