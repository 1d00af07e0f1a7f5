"""
Solana Distributor - Leaf Encoder

Serializes one recipient record into the fixed-width leaf buffer and hashes
it. The layout is a wire contract with the on-chain verifier:

    recipient_pubkey (32 bytes, as given)
    amount           (8 bytes, unsigned, little-endian)
    is_claimed       (1 byte, always 0x00 at tree-construction time)

Changing any of this invalidates every previously published root.
"""

import struct
from dataclasses import dataclass
from typing import Optional

from .exceptions import AmountOverflowError, InvalidAddressLengthError
from .hashing import Digest, KeccakHasher

ADDRESS_SIZE = 32
AMOUNT_SIZE = 8
CLAIMED_FLAG_SIZE = 1
LEAF_SIZE = ADDRESS_SIZE + AMOUNT_SIZE + CLAIMED_FLAG_SIZE

MAX_AMOUNT = 2 ** 64 - 1
UNCLAIMED = 0x00

LEAF_FORMAT = "recipient_pubkey(32) + amount(8) + is_claimed(1)"
LEAF_FORMAT_VERSION = "1.0.0"

_default_hasher = KeccakHasher()


def _check_address(address: bytes) -> bytes:
    if not isinstance(address, (bytes, bytearray)):
        raise InvalidAddressLengthError(
            f"Address must be {ADDRESS_SIZE} bytes, got {type(address).__name__}"
        )
    if len(address) != ADDRESS_SIZE:
        raise InvalidAddressLengthError(
            f"Address must be {ADDRESS_SIZE} bytes, got {len(address)}"
        )
    return bytes(address)


def _check_amount(amount: int) -> int:
    # bool is an int subclass but never a valid amount
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise AmountOverflowError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0 or amount > MAX_AMOUNT:
        raise AmountOverflowError(f"Amount {amount} does not fit in an unsigned 64-bit integer")
    return amount


@dataclass(frozen=True)
class Recipient:
    """
    One entitlement in a distribution.

    ``index`` is the recipient's position in the canonical ordering and the
    only way to find its proof again after the root is published.
    """
    address: bytes
    amount: int
    index: int

    def __post_init__(self):
        """Validate record against the fixed-width encoding."""
        object.__setattr__(self, 'address', _check_address(self.address))
        _check_amount(self.amount)

        if isinstance(self.index, bool) or not isinstance(self.index, int) or self.index < 0:
            raise ValueError(f"Recipient index must be a non-negative integer, got {self.index!r}")

    def encode(self) -> bytes:
        """Encode this recipient as a leaf buffer."""
        return encode_leaf(self.address, self.amount)

    def leaf(self, hasher: Optional[KeccakHasher] = None) -> Digest:
        """Leaf digest for this recipient."""
        return hash_leaf(self.address, self.amount, hasher)


def encode_leaf(address: bytes, amount: int) -> bytes:
    """
    Encode a recipient into the 41-byte leaf buffer.

    Args:
        address: 32-byte recipient public key
        amount: Amount in the smallest token unit (u64)

    Returns:
        address || amount (u64 LE) || 0x00

    Raises:
        InvalidAddressLengthError: address is not 32 bytes
        AmountOverflowError: amount is not a u64
    """
    address = _check_address(address)
    amount = _check_amount(amount)

    return address + struct.pack('<Q', amount) + bytes([UNCLAIMED])


def hash_leaf(address: bytes, amount: int, hasher: Optional[KeccakHasher] = None) -> Digest:
    """Keccak-256 leaf digest of a recipient."""
    hasher = hasher or _default_hasher
    return hasher.hash_leaf(encode_leaf(address, amount))
