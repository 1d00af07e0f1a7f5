"""
Merkle Exceptions for the Solana Distributor

This module defines custom exceptions for leaf encoding and tree operations.
"""


class MerkleError(Exception):
    """Base exception for all Merkle tree errors."""
    pass


class EmptyRecipientSetError(MerkleError):
    """Raised when a tree is requested for zero recipients."""
    pass


class InvalidAddressLengthError(MerkleError, ValueError):
    """Raised when a recipient address is not exactly 32 bytes."""
    pass


class AmountOverflowError(MerkleError, OverflowError):
    """Raised when an amount does not fit in an unsigned 64-bit integer."""
    pass


class IndexOutOfRangeError(MerkleError, IndexError):
    """Raised when a proof is requested for an index outside the tree."""
    pass


class RecipientIndexError(MerkleError):
    """Raised when recipient indices are duplicated or leave gaps."""
    pass
