"""
Solana Distributor - Distribution Service

A Distribution is one recipients file bound to its Merkle tree. The tree is
built once when the distribution is created and every proof query is served
from that instance; nothing is rebuilt per request.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from merkle.tree import MerkleProof, MerkleTree
from merkle.verify import verify_recipient

from .exceptions import RecipientNotFoundError, RootMismatchError
from .schema import LAMPORTS_PER_SOL, RecipientEntry, RecipientsFile


class RecipientProof(BaseModel):
    """Claim arguments for one recipient."""

    model_config = ConfigDict(populate_by_name=True)

    recipient: str
    leaf_index: int = Field(..., alias="leafIndex")
    amount: str
    proof: List[List[int]] = Field(..., description="Sibling digests as [u8; 32] arrays")

    def proof_bytes(self) -> List[bytes]:
        return [bytes(p) for p in self.proof]

    def proof_hex(self) -> List[str]:
        return ["0x" + bytes(p).hex() for p in self.proof]


class Distribution:
    """
    One immutable recipient-list-to-root binding.

    Attributes:
        recipients_file: The parsed recipients file
        tree: Merkle tree over the file's recipients
    """

    def __init__(self, recipients_file: RecipientsFile, max_workers: Optional[int] = None):
        self.logger = logging.getLogger(__name__)
        self.recipients_file = recipients_file

        self.logger.info("Generating Merkle tree...")
        recipients = recipients_file.to_recipients()
        self.tree = MerkleTree.from_recipients(recipients, max_workers=max_workers)

        self._recipients_by_index = {r.index: r for r in recipients}

        self._entries_by_index: Dict[int, RecipientEntry] = {
            entry.index: entry for entry in recipients_file.recipients
        }
        self._index_by_key: Dict[str, int] = {}
        for entry in recipients_file.recipients:
            if entry.public_key in self._index_by_key:
                self.logger.warning(
                    f"Public key {entry.public_key} appears more than once; "
                    f"lookups resolve to index {self._index_by_key[entry.public_key]}"
                )
                continue
            self._index_by_key[entry.public_key] = entry.index

        self.logger.info(f"Merkle tree generated: leaves={self.leaf_count}, root={self.root_hex}")

    @classmethod
    def from_file(cls, recipients_file: RecipientsFile, max_workers: Optional[int] = None) -> "Distribution":
        return cls(recipients_file, max_workers=max_workers)

    @property
    def root_hex(self) -> str:
        return self.tree.get_root_hex()

    @property
    def root_bytes(self) -> bytes:
        return self.tree.get_root_bytes()

    @property
    def leaf_count(self) -> int:
        return self.tree.get_leaf_count()

    @property
    def total_amount(self) -> int:
        return self.recipients_file.total_amount_lamports

    def index_of(self, public_key: str) -> int:
        """Leaf index of a recipient public key."""
        index = self._index_by_key.get(public_key.strip())
        if index is None:
            raise RecipientNotFoundError(f"Recipient {public_key} not found in recipients list")
        return index

    def merkle_proof(self, leaf_index: int) -> MerkleProof:
        return self.tree.generate_proof(leaf_index)

    def proof_for_index(self, leaf_index: int) -> RecipientProof:
        """
        Claim arguments for the recipient at ``leaf_index``.

        Raises:
            IndexOutOfRangeError: index outside the distribution
        """
        proof = self.tree.generate_proof(leaf_index)
        entry = self._entries_by_index[leaf_index]

        self.logger.debug(
            f"Proof for {entry.description or entry.public_key}: index={leaf_index}, "
            f"amount={entry.amount_lamports / LAMPORTS_PER_SOL} SOL, length={proof.get_path_length()}"
        )

        return RecipientProof(
            recipient=entry.public_key,
            leaf_index=leaf_index,
            amount=entry.amount,
            proof=proof.to_program_format(),
        )

    def proof_for_recipient(self, public_key: str) -> RecipientProof:
        """
        Claim arguments for a recipient public key.

        Raises:
            RecipientNotFoundError: key not in the distribution
        """
        return self.proof_for_index(self.index_of(public_key))

    def all_proofs(self) -> Dict[str, RecipientProof]:
        """Claim arguments for every recipient, keyed by public key."""
        proofs = {}
        for public_key, index in self._index_by_key.items():
            proofs[public_key] = self.proof_for_index(index)

        self.logger.info(f"Generated {len(proofs)} proofs")
        return proofs

    def verify_recipient(self, public_key: str, root: Optional[bytes] = None) -> bool:
        """
        Check a recipient's proof from the raw record up to a root.

        Args:
            public_key: Recipient to check
            root: Root to check against; defaults to the computed root
        """
        index = self.index_of(public_key)
        recipient = self._recipients_by_index[index]
        proof = self.tree.get_proof(index)

        return verify_recipient(
            recipient.address,
            recipient.amount,
            index,
            proof,
            root if root is not None else self.root_bytes,
            leaf_count=self.leaf_count,
        )

    def check_published_root(self) -> None:
        """
        Compare the file's published root with the computed one.

        Raises:
            RootMismatchError: no root published, or it differs
        """
        published = self.recipients_file.merkle_root
        if not self.recipients_file.is_root_published():
            raise RootMismatchError("Recipients file has no published merkle root")
        if published != self.root_hex:
            raise RootMismatchError(
                f"Published root {published} does not match computed root {self.root_hex}"
            )

    def initialize_args(self) -> Dict[str, Any]:
        """Arguments for the on-chain ``initialize_airdrop`` instruction."""
        return {
            "merkleRoot": list(self.root_bytes),
            "amount": self.total_amount,
        }

    def summary(self) -> Dict[str, Any]:
        return {
            "airdrop_id": self.recipients_file.airdrop_id,
            "network": self.recipients_file.network,
            "program_id": self.recipients_file.program_id,
            "merkle_root": self.root_hex,
            "published_root": self.recipients_file.merkle_root,
            "leaf_count": self.leaf_count,
            "height": self.tree.get_height(),
            "total_amount": self.total_amount,
            "total_amount_sol": self.recipients_file.total_amount_sol,
        }
