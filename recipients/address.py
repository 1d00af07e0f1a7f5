"""
Solana Distributor - Public Key Handling

Recipient identifiers are 32-byte ed25519 public keys, written as base58
strings in recipients files. Hex strings, raw bytes and byte lists are also
accepted wherever an address is read.
"""

import re
from typing import Iterable, Union

from bitcoinlib.encoding import change_base

from merkle.exceptions import InvalidAddressLengthError
from merkle.leaf import ADDRESS_SIZE

from .exceptions import AddressFormatError

BASE58_PATTERN = re.compile(r'^[1-9A-HJ-NP-Za-km-z]+$')
HEX_PATTERN = re.compile(r'^(0x)?[0-9a-fA-F]{64}$')

AddressLike = Union[str, bytes, bytearray, Iterable[int]]


def decode_address(value: AddressLike) -> bytes:
    """
    Decode a recipient address into its 32 raw bytes.

    Args:
        value: Base58 public key, 64-char hex string (``0x`` optional),
            raw bytes, or a list of byte values

    Returns:
        32-byte address

    Raises:
        AddressFormatError: string is neither base58 nor hex
        InvalidAddressLengthError: decoded value is not 32 bytes, or a base58
            key is not the canonical encoding of its bytes
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise AddressFormatError("Address cannot be empty")

        if HEX_PATTERN.match(text):
            data = bytes.fromhex(text[2:] if text[:2].lower() == '0x' else text)
        elif BASE58_PATTERN.match(text):
            data = bytes(change_base(text, 58, 256, ADDRESS_SIZE))
            # Padding hides short keys and extra leading '1's
            if len(data) != ADDRESS_SIZE or change_base(data, 256, 58) != text:
                raise InvalidAddressLengthError(
                    f"Base58 key {text} is not a canonical {ADDRESS_SIZE}-byte public key")
        else:
            raise AddressFormatError(f"Address is neither base58 nor hex: {text}")
    elif isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    else:
        try:
            data = bytes(value)
        except (TypeError, ValueError) as e:
            raise AddressFormatError(f"Cannot interpret address {value!r}: {e}")

    if len(data) != ADDRESS_SIZE:
        raise InvalidAddressLengthError(f"Address must be {ADDRESS_SIZE} bytes, got {len(data)}")

    return data


def encode_address(address: bytes) -> str:
    """Base58 rendering of a 32-byte address."""
    if len(address) != ADDRESS_SIZE:
        raise InvalidAddressLengthError(f"Address must be {ADDRESS_SIZE} bytes, got {len(address)}")
    return change_base(bytes(address), 256, 58)


def is_valid_address(value: AddressLike) -> bool:
    """Check whether a value decodes to a 32-byte address."""
    try:
        decode_address(value)
        return True
    except (AddressFormatError, InvalidAddressLengthError):
        return False
