"""
Recipient Exceptions for the Solana Distributor

This module defines custom exceptions for recipients files and distributions.
"""


class RecipientsError(Exception):
    """Base exception for recipient list errors."""
    pass


class RecipientsFileError(RecipientsError):
    """Raised when a recipients file is missing, unreadable or invalid."""
    pass


class AddressFormatError(RecipientsError, ValueError):
    """Raised when a public key string cannot be decoded."""
    pass


class RecipientNotFoundError(RecipientsError, KeyError):
    """Raised when a public key is not part of the distribution."""

    def __str__(self):
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class RootMismatchError(RecipientsError):
    """Raised when a published root does not match the recipient list."""
    pass
