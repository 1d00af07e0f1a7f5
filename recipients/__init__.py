"""
Solana Distributor - Recipients Module

Recipients file schema, storage and the distribution service that binds a
recipient list to its Merkle tree.

Dependencies:
- pydantic: recipients file validation
- bitcoinlib: base58 public key encoding
"""

from .exceptions import (
    RecipientsError,
    RecipientsFileError,
    AddressFormatError,
    RecipientNotFoundError,
    RootMismatchError,
)
from .address import decode_address, encode_address, is_valid_address
from .schema import (
    LAMPORTS_PER_SOL,
    ZERO_ROOT,
    DistributionMetadata,
    RecipientEntry,
    RecipientsFile,
)
from .storage import (
    DEFAULT_RECIPIENTS_FILE,
    RecipientsStorage,
    WalletInfo,
    build_recipients_file,
    generate_recipients_file,
)
from .distribution import Distribution, RecipientProof

__all__ = [
    "RecipientsError",
    "RecipientsFileError",
    "AddressFormatError",
    "RecipientNotFoundError",
    "RootMismatchError",
    "decode_address",
    "encode_address",
    "is_valid_address",
    "LAMPORTS_PER_SOL",
    "ZERO_ROOT",
    "DistributionMetadata",
    "RecipientEntry",
    "RecipientsFile",
    "DEFAULT_RECIPIENTS_FILE",
    "RecipientsStorage",
    "WalletInfo",
    "build_recipients_file",
    "generate_recipients_file",
    "Distribution",
    "RecipientProof",
]
