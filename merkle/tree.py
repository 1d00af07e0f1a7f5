"""
Solana Distributor - Merkle Tree Implementation

Builds the binary Keccak-256 hash tree over an ordered recipient list and
extracts inclusion proofs by leaf index. Every level is retained, so a proof
is a direct lookup per level rather than a recomputation.

Odd-sized levels pair their last element with itself: parent = H(last || last).
That orphan contributes no element to a proof.
"""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .exceptions import (
    EmptyRecipientSetError,
    IndexOutOfRangeError,
    RecipientIndexError,
)
from .hashing import DIGEST_SIZE, Digest, KeccakHasher
from .leaf import Recipient

# Below this level size a thread pool costs more than it saves
PARALLEL_LEVEL_THRESHOLD = 1024


@dataclass(frozen=True)
class MerkleProof:
    """
    Inclusion proof for a specific leaf.

    ``proof_hashes`` are the sibling digests from the leaf level upward. The
    orphan node of an odd-sized level has no sibling, so the length varies
    between leaves of the same tree.
    """
    leaf_hash: Digest
    proof_hashes: Tuple[Digest, ...]
    leaf_index: int
    tree_size: int
    root_hash: Digest

    def __post_init__(self):
        """Validate proof structure."""
        if len(self.root_hash) != DIGEST_SIZE:
            raise ValueError("Root hash must be 32 bytes")

        if len(self.leaf_hash) != DIGEST_SIZE:
            raise ValueError("Leaf hash must be 32 bytes")

        if not all(len(h) == DIGEST_SIZE for h in self.proof_hashes):
            raise ValueError("All proof hashes must be 32 bytes")

        if not 0 <= self.leaf_index < self.tree_size:
            raise ValueError(f"Leaf index {self.leaf_index} outside tree of size {self.tree_size}")

    def get_path_length(self) -> int:
        """Get length of proof path."""
        return len(self.proof_hashes)

    def is_valid_for_tree_size(self, tree_size: int) -> bool:
        """Check if proof length is possible for given tree size."""
        max_height = math.ceil(math.log2(max(1, tree_size)))
        return self.get_path_length() <= max_height

    def to_program_format(self) -> List[List[int]]:
        """Proof as the program's ``Vec<[u8; 32]>`` argument."""
        return [list(h) for h in self.proof_hashes]

    def to_hex(self) -> List[str]:
        """Proof as ``0x``-prefixed hex strings."""
        return ["0x" + bytes(h).hex() for h in self.proof_hashes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leaf": "0x" + bytes(self.leaf_hash).hex(),
            "leaf_index": self.leaf_index,
            "tree_size": self.tree_size,
            "root": "0x" + bytes(self.root_hash).hex(),
            "proof": self.to_hex(),
        }


class MerkleTree:
    """
    Immutable Merkle tree for a single distribution.

    Built once from an ordered recipient list; afterwards only read. Any
    change to recipients or amounts means a new tree and a new root.

    ``levels[0]`` holds the leaves, ``levels[-1]`` holds the root alone.
    """

    def __init__(self, leaves: Sequence[bytes], hasher: Optional[KeccakHasher] = None,
                 max_workers: Optional[int] = None):
        """
        Build tree from leaf digests in index order.

        Args:
            leaves: Leaf digests; position is the leaf index
            hasher: Custom hasher instance (optional)
            max_workers: Hash each large level on a thread pool of this size

        Raises:
            EmptyRecipientSetError: no leaves
        """
        self.hasher = hasher or KeccakHasher()
        self.logger = logging.getLogger(__name__)

        if not leaves:
            raise EmptyRecipientSetError("Cannot build tree from an empty recipient set")

        start_time = time.perf_counter()

        level = tuple(Digest(leaf) for leaf in leaves)
        levels = [level]

        # A single leaf never enters the loop; it is its own root
        while len(level) > 1:
            level = self._build_next_level(level, max_workers)
            levels.append(level)
            self.logger.debug(f"Built level {len(levels) - 1} with {len(level)} nodes")

        self._levels: Tuple[Tuple[Digest, ...], ...] = tuple(levels)
        self.construction_time: float = time.perf_counter() - start_time

        self.logger.debug(
            f"Tree built: leaves={self.get_leaf_count()}, height={self.get_height()}, "
            f"nodes={self.get_node_count()}"
        )

    @classmethod
    def from_recipients(cls, recipients: Sequence[Recipient],
                        hasher: Optional[KeccakHasher] = None,
                        max_workers: Optional[int] = None) -> "MerkleTree":
        """
        Build tree from a recipient list.

        Recipient indices must be exactly ``0 .. N-1``; each leaf is placed at
        its recipient's index.

        Raises:
            EmptyRecipientSetError: no recipients
            RecipientIndexError: duplicate or missing index
        """
        logger = logging.getLogger(__name__)

        if not recipients:
            raise EmptyRecipientSetError("Cannot build tree from an empty recipient set")

        hasher = hasher or KeccakHasher()
        ordered = _order_by_index(recipients)

        logger.info(f"Building Merkle tree from {len(ordered)} recipients")

        tree = cls([r.leaf(hasher) for r in ordered], hasher=hasher, max_workers=max_workers)

        logger.info(f"Tree construction completed in {tree.construction_time:.3f}s")
        return tree

    @classmethod
    def from_leaves(cls, leaves: Sequence[bytes], hasher: Optional[KeccakHasher] = None,
                    max_workers: Optional[int] = None) -> "MerkleTree":
        """Build tree from precomputed 32-byte leaf digests."""
        for i, leaf in enumerate(leaves):
            if len(leaf) != DIGEST_SIZE:
                raise ValueError(f"Leaf at index {i} is not 32 bytes")

        return cls(leaves, hasher=hasher, max_workers=max_workers)

    def _build_next_level(self, level: Tuple[Digest, ...],
                          max_workers: Optional[int]) -> Tuple[Digest, ...]:
        """Pair nodes left to right; an odd tail is paired with itself."""
        pairs = []
        for i in range(0, len(level), 2):
            left = level[i]
            right = level[i + 1] if i + 1 < len(level) else left
            pairs.append((left, right))

        if max_workers and max_workers > 1 and len(level) >= PARALLEL_LEVEL_THRESHOLD:
            # map() yields in submission order, so positions are preserved
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                return tuple(executor.map(lambda pair: self.hasher.hash_internal(*pair), pairs))

        return tuple(self.hasher.hash_internal(left, right) for left, right in pairs)

    @property
    def root(self) -> Digest:
        """Root digest of tree."""
        return self._levels[-1][0]

    @property
    def levels(self) -> Tuple[Tuple[Digest, ...], ...]:
        return self._levels

    def get_root_hex(self) -> str:
        """Root as a ``0x``-prefixed hex string."""
        return self.root.hex_prefixed()

    def get_root_bytes(self) -> bytes:
        """Root as raw bytes for the on-chain commit call."""
        return bytes(self.root)

    def get_leaf_count(self) -> int:
        """Get number of leaves in tree."""
        return len(self._levels[0])

    def get_height(self) -> int:
        """Number of levels, leaves and root included."""
        return len(self._levels)

    def get_node_count(self) -> int:
        """Get total number of nodes in tree."""
        return sum(len(level) for level in self._levels)

    def get_leaf(self, leaf_index: int) -> Digest:
        self._check_index(leaf_index)
        return self._levels[0][leaf_index]

    def get_level(self, level: int) -> Tuple[Digest, ...]:
        if not 0 <= level < len(self._levels):
            raise IndexOutOfRangeError(f"Level {level} outside tree of height {self.get_height()}")
        return self._levels[level]

    def _check_index(self, leaf_index: int):
        leaf_count = self.get_leaf_count()
        if isinstance(leaf_index, bool) or not isinstance(leaf_index, int):
            raise IndexOutOfRangeError(f"Leaf index must be an integer, got {leaf_index!r}")
        if not 0 <= leaf_index < leaf_count:
            raise IndexOutOfRangeError(
                f"Leaf index {leaf_index} out of range for tree with {leaf_count} leaves"
            )

    def get_proof(self, leaf_index: int) -> List[Digest]:
        """
        Sibling digests from the leaf level up to just below the root.

        Args:
            leaf_index: Index of the leaf, ``0 <= leaf_index < leaf_count``

        Returns:
            Ordered sibling digests; empty for a single-leaf tree

        Raises:
            IndexOutOfRangeError: index outside the tree
        """
        self._check_index(leaf_index)

        proof = []
        index = leaf_index

        for level in self._levels[:-1]:
            sibling_index = index + 1 if index % 2 == 0 else index - 1

            # The orphan of an odd level has no sibling entry
            if sibling_index < len(level):
                proof.append(level[sibling_index])

            index //= 2

        return proof

    def generate_proof(self, leaf_index: int) -> MerkleProof:
        """
        Generate a full proof record for a leaf.

        Args:
            leaf_index: Index of the leaf

        Returns:
            MerkleProof bound to this tree's root
        """
        proof_hashes = self.get_proof(leaf_index)

        return MerkleProof(
            leaf_hash=self._levels[0][leaf_index],
            proof_hashes=tuple(proof_hashes),
            leaf_index=leaf_index,
            tree_size=self.get_leaf_count(),
            root_hash=self.root,
        )

    def generate_batch_proofs(self, leaf_indices: Sequence[int]) -> Dict[int, MerkleProof]:
        """Generate proofs for multiple leaves."""
        return {index: self.generate_proof(index) for index in leaf_indices}

    def verify_proof(self, proof: MerkleProof) -> bool:
        """
        Verify a proof against this tree's root.

        Args:
            proof: MerkleProof to verify

        Returns:
            True if proof is valid for this tree
        """
        from .verify import verify_proof

        if proof.root_hash != self.root or proof.tree_size != self.get_leaf_count():
            return False

        return verify_proof(
            proof.leaf_hash,
            proof.leaf_index,
            proof.proof_hashes,
            self.root,
            leaf_count=self.get_leaf_count(),
            hasher=self.hasher,
        )

    def validate_tree_structure(self) -> Tuple[bool, List[str]]:
        """
        Recompute every parent and check level sizes.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        expected_height = math.ceil(math.log2(self.get_leaf_count())) + 1
        if self.get_height() != expected_height:
            errors.append(f"Tree height {self.get_height()} expected {expected_height}")

        if len(self._levels[-1]) != 1:
            errors.append(f"Top level has {len(self._levels[-1])} nodes")

        for depth in range(1, len(self._levels)):
            below = self._levels[depth - 1]
            level = self._levels[depth]

            if len(level) != (len(below) + 1) // 2:
                errors.append(f"Level {depth} has {len(level)} nodes, expected {(len(below) + 1) // 2}")
                continue

            for position, node in enumerate(level):
                left = below[2 * position]
                right = below[2 * position + 1] if 2 * position + 1 < len(below) else left
                if node != self.hasher.hash_internal(left, right):
                    errors.append(f"Internal node hash mismatch at level {depth}, position {position}")

        return len(errors) == 0, errors

    def get_tree_info(self) -> Dict[str, Any]:
        """Get comprehensive information about the tree."""
        return {
            "root_hash": self.get_root_hex(),
            "leaf_count": self.get_leaf_count(),
            "height": self.get_height(),
            "node_count": self.get_node_count(),
            "level_sizes": [len(level) for level in self._levels],
            "odd_levels": [i for i, level in enumerate(self._levels[:-1]) if len(level) % 2],
            "construction_time_ms": self.construction_time * 1000,
        }


def _order_by_index(recipients: Sequence[Recipient]) -> List[Recipient]:
    """Place recipients by index, rejecting duplicates and gaps."""
    by_index: Dict[int, Recipient] = {}

    for recipient in recipients:
        if recipient.index in by_index:
            raise RecipientIndexError(f"Duplicate recipient index {recipient.index}")
        by_index[recipient.index] = recipient

    missing = [i for i in range(len(recipients)) if i not in by_index]
    if missing:
        raise RecipientIndexError(
            f"Recipient indices must be 0..{len(recipients) - 1}; missing {missing[:10]}"
        )

    return [by_index[i] for i in range(len(recipients))]


# Convenience functions

def build_distribution_tree(recipients: Sequence[Recipient],
                            max_workers: Optional[int] = None) -> Tuple[MerkleTree, Digest]:
    """
    Convenience function to build a tree from recipients.

    Args:
        recipients: Recipients with indices 0..N-1

    Returns:
        Tuple of (tree, root_hash)
    """
    tree = MerkleTree.from_recipients(recipients, max_workers=max_workers)
    return tree, tree.root


def create_distribution_proofs(recipients: Sequence[Recipient]) -> Tuple[MerkleTree, Digest, Dict[int, MerkleProof]]:
    """
    Build the tree and generate proofs for every recipient.

    Returns:
        Tuple of (tree, root_hash, proofs_by_index)
    """
    tree = MerkleTree.from_recipients(recipients)
    proofs = tree.generate_batch_proofs(range(tree.get_leaf_count()))
    return tree, tree.root, proofs


def verify_merkle_tree_integrity(tree: MerkleTree) -> bool:
    """
    Verify that a Merkle tree has correct structure and hashes.

    Args:
        tree: Merkle tree to verify

    Returns:
        True if tree is valid
    """
    is_valid, errors = tree.validate_tree_structure()
    if errors:
        logger = logging.getLogger(__name__)
        for error in errors:
            logger.error(f"Tree validation error: {error}")

    return is_valid
