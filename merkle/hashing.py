"""
Solana Distributor - Digest Primitives

Fixed-size digest type and the Keccak-256 hashing used for leaves and
internal nodes. The hashing must match the on-chain verifier bit for bit:
no domain-separation prefixes, plain Keccak-256 (not NIST SHA3-256).
"""

import logging
from typing import Iterable, List, Union

from eth_utils import keccak

DIGEST_SIZE = 32
HASH_ALGORITHM = "keccak256"


class Digest(bytes):
    """
    Immutable 32-byte digest.

    A ``bytes`` subclass that refuses any other length, so leaves, nodes,
    roots and proof elements can never be silently truncated or padded.
    Compares equal to plain ``bytes`` with the same content.
    """

    def __new__(cls, value: Union[bytes, bytearray, Iterable[int]]):
        data = bytes(value)
        if len(data) != DIGEST_SIZE:
            raise ValueError(f"Digest must be {DIGEST_SIZE} bytes, got {len(data)}")
        return super().__new__(cls, data)

    @classmethod
    def from_hex(cls, value: str) -> "Digest":
        """Parse a hex digest, with or without a ``0x`` prefix."""
        text = value.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        if len(text) != DIGEST_SIZE * 2:
            raise ValueError(f"Hex digest must be {DIGEST_SIZE * 2} characters, got {len(text)}")
        return cls(bytes.fromhex(text))

    def hex_prefixed(self) -> str:
        """Hex rendering with a ``0x`` prefix, as reported externally."""
        return "0x" + self.hex()

    def to_list(self) -> List[int]:
        """Byte values as a list, the shape of a ``[u8; 32]`` program argument."""
        return list(self)

    def __repr__(self) -> str:
        return f"Digest({self.hex_prefixed()})"


def keccak256(data: bytes) -> Digest:
    """Keccak-256 of ``data``."""
    return Digest(keccak(bytes(data)))


class KeccakHasher:
    """
    Handles all hashing operations for the Merkle tree.

    Leaves are the Keccak-256 of the encoded recipient record; internal
    nodes are the Keccak-256 of the left child followed by the right child.
    """

    algorithm = HASH_ALGORITHM

    def __init__(self):
        """Initialize hasher."""
        self.logger = logging.getLogger(__name__)

    def hash_leaf(self, encoded: bytes) -> Digest:
        """
        Hash an encoded leaf record.

        Args:
            encoded: Encoded recipient record (see ``merkle.leaf``)

        Returns:
            32-byte leaf digest
        """
        return keccak256(encoded)

    def hash_internal(self, left_hash: bytes, right_hash: bytes) -> Digest:
        """
        Hash internal node from children.

        Format: Keccak256(left_hash || right_hash)

        Args:
            left_hash: Hash of left child (32 bytes)
            right_hash: Hash of right child (32 bytes)

        Returns:
            32-byte parent digest
        """
        if len(left_hash) != DIGEST_SIZE or len(right_hash) != DIGEST_SIZE:
            raise ValueError("Child hashes must be 32 bytes")

        return keccak256(bytes(left_hash) + bytes(right_hash))
