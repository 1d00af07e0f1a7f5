"""
Solana Distributor - Proof Verification

Standalone verification that mirrors what the on-chain claim instruction
does: starting from a leaf, fold in each sibling, left or right depending on
the parity of the current index, and compare with the committed root.
"""

import logging
from typing import Optional, Sequence

from .exceptions import MerkleError
from .hashing import DIGEST_SIZE, KeccakHasher
from .leaf import hash_leaf
from .tree import MerkleProof

logger = logging.getLogger(__name__)


def verify_proof(
    leaf: bytes,
    leaf_index: int,
    proof: Sequence[bytes],
    root: bytes,
    leaf_count: Optional[int] = None,
    hasher: Optional[KeccakHasher] = None
) -> bool:
    """
    Verify a Merkle proof without needing the full tree.

    At each step the current node is hashed as ``H(current || sibling)``
    when its index is even and ``H(sibling || current)`` when odd, then the
    index is halved.

    When ``leaf_count`` is given, levels where the current node is the
    orphan of an odd-sized level are folded as ``H(current || current)``
    without consuming a proof element, matching how the tree was built.
    Without it every step must have a real sibling, which only holds for
    paths that never cross an orphan.

    Args:
        leaf: Leaf digest
        leaf_index: Position of the leaf
        proof: Sibling digests, leaf level first
        root: Expected root digest
        leaf_count: Number of leaves in the tree (optional)
        hasher: Custom hasher (optional)

    Returns:
        True if the proof reproduces the root exactly
    """
    hasher = hasher or KeccakHasher()

    if len(leaf) != DIGEST_SIZE or len(root) != DIGEST_SIZE:
        return False
    if any(len(sibling) != DIGEST_SIZE for sibling in proof):
        return False
    if leaf_index < 0:
        return False
    if leaf_count is not None and not 0 <= leaf_index < leaf_count:
        return False

    current = bytes(leaf)
    index = leaf_index
    remaining = list(proof)

    if leaf_count is None:
        for sibling in remaining:
            if index % 2 == 0:
                current = hasher.hash_internal(current, sibling)
            else:
                current = hasher.hash_internal(sibling, current)
            index //= 2
        return current == bytes(root)

    level_size = leaf_count
    while level_size > 1:
        if index % 2 == 0 and index + 1 >= level_size:
            current = hasher.hash_internal(current, current)
        else:
            if not remaining:
                return False
            sibling = remaining.pop(0)
            if index % 2 == 0:
                current = hasher.hash_internal(current, sibling)
            else:
                current = hasher.hash_internal(sibling, current)

        index //= 2
        level_size = (level_size + 1) // 2

    # Leftover siblings mean the proof belongs to a different tree shape
    if remaining:
        return False

    return current == bytes(root)


def verify_merkle_proof(proof: MerkleProof, hasher: Optional[KeccakHasher] = None) -> bool:
    """
    Verify a MerkleProof object.

    Args:
        proof: MerkleProof to verify
        hasher: Custom hasher (optional)

    Returns:
        True if proof is valid
    """
    return verify_proof(
        proof.leaf_hash,
        proof.leaf_index,
        proof.proof_hashes,
        proof.root_hash,
        leaf_count=proof.tree_size,
        hasher=hasher
    )


def verify_recipient(
    address: bytes,
    amount: int,
    leaf_index: int,
    proof: Sequence[bytes],
    root: bytes,
    leaf_count: Optional[int] = None,
    hasher: Optional[KeccakHasher] = None
) -> bool:
    """
    Verify that a recipient record is included under ``root``.

    The leaf is re-derived from the raw record, so any change to the address
    or amount fails verification. Records that cannot be encoded at all
    fail as well.

    Returns:
        True if the recipient is proven to be in the distribution
    """
    try:
        leaf = hash_leaf(address, amount, hasher)
    except MerkleError as e:
        logger.debug(f"Recipient record cannot be encoded: {e}")
        return False

    return verify_proof(leaf, leaf_index, proof, root, leaf_count=leaf_count, hasher=hasher)
