"""
Solana Distributor - Merkle Module

Leaf encoding, tree construction and proof handling for Merkle airdrops:
- Keccak-256 digests as fixed 32-byte values
- Recipient leaf encoding shared with the on-chain verifier
- Tree construction retaining every level
- Proof extraction and standalone verification

Dependencies:
- eth-utils: Keccak-256
"""

from .exceptions import (
    MerkleError,
    EmptyRecipientSetError,
    InvalidAddressLengthError,
    AmountOverflowError,
    IndexOutOfRangeError,
    RecipientIndexError,
)
from .hashing import (
    DIGEST_SIZE,
    HASH_ALGORITHM,
    Digest,
    KeccakHasher,
    keccak256,
)
from .leaf import (
    LEAF_FORMAT,
    LEAF_FORMAT_VERSION,
    LEAF_SIZE,
    MAX_AMOUNT,
    Recipient,
    encode_leaf,
    hash_leaf,
)
from .tree import (
    MerkleProof,
    MerkleTree,
    build_distribution_tree,
    create_distribution_proofs,
    verify_merkle_tree_integrity,
)
from .verify import (
    verify_merkle_proof,
    verify_proof,
    verify_recipient,
)

__version__ = "0.1.0"
__all__ = [
    # Exceptions
    "MerkleError",
    "EmptyRecipientSetError",
    "InvalidAddressLengthError",
    "AmountOverflowError",
    "IndexOutOfRangeError",
    "RecipientIndexError",

    # Hashing
    "DIGEST_SIZE",
    "HASH_ALGORITHM",
    "Digest",
    "KeccakHasher",
    "keccak256",

    # Leaves
    "LEAF_FORMAT",
    "LEAF_FORMAT_VERSION",
    "LEAF_SIZE",
    "MAX_AMOUNT",
    "Recipient",
    "encode_leaf",
    "hash_leaf",

    # Tree
    "MerkleProof",
    "MerkleTree",
    "build_distribution_tree",
    "create_distribution_proofs",
    "verify_merkle_tree_integrity",

    # Verification
    "verify_merkle_proof",
    "verify_proof",
    "verify_recipient",
]
