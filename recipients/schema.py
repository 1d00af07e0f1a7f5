"""
Solana Distributor - Recipients File Schema

Pydantic models for the recipients file. The file doubles as the
distribution manifest: it carries the ordered recipient list, the total
amount, the published Merkle root and the leaf format the root was built
with. JSON field names follow the file format (camelCase).
"""

import re
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from merkle.hashing import HASH_ALGORITHM, Digest
from merkle.leaf import LEAF_FORMAT, LEAF_FORMAT_VERSION, MAX_AMOUNT, Recipient

from .address import decode_address
from .exceptions import AddressFormatError

ZERO_ROOT = "0x" + "00" * 32
LAMPORTS_PER_SOL = 1_000_000_000

Network = Literal["devnet", "testnet", "mainnet"]


def _parse_amount(v) -> str:
    """Normalize an amount to a decimal string that fits in a u64."""
    if isinstance(v, bool):
        raise ValueError('Amount must be a decimal integer')
    if isinstance(v, int):
        v = str(v)
    if not isinstance(v, str) or not re.match(r'^[0-9]+$', v.strip()):
        raise ValueError('Amount must be a decimal integer string')
    v = v.strip()
    if int(v) > MAX_AMOUNT:
        raise ValueError('Amount does not fit in an unsigned 64-bit integer')
    return str(int(v))


class RecipientEntry(BaseModel):
    """One recipient as stored in the recipients file."""

    model_config = ConfigDict(populate_by_name=True)

    public_key: str = Field(..., alias="publicKey", description="Recipient public key (base58)")
    amount: str = Field(..., description="Amount in lamports (decimal string)")
    index: int = Field(..., ge=0, description="Position in the canonical ordering")
    description: Optional[str] = Field(default=None)

    @field_validator('public_key')
    @classmethod
    def validate_public_key(cls, v):
        """Validate that the public key decodes to 32 bytes."""
        try:
            decode_address(v)
        except (AddressFormatError, ValueError) as e:
            raise ValueError(f'Invalid recipient public key: {e}')
        return v.strip()

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, v):
        """Validate amount is a u64 decimal."""
        return _parse_amount(v)

    @property
    def amount_lamports(self) -> int:
        return int(self.amount)

    def to_recipient(self) -> Recipient:
        """Convert to the record the tree is built from."""
        return Recipient(
            address=decode_address(self.public_key),
            amount=self.amount_lamports,
            index=self.index,
        )


class DistributionMetadata(BaseModel):
    """How the root was derived; versioned alongside the root."""

    model_config = ConfigDict(populate_by_name=True)

    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        alias="createdAt",
    )
    version: str = Field(default=LEAF_FORMAT_VERSION)
    algorithm: str = Field(default=HASH_ALGORITHM)
    leaf_format: str = Field(default=LEAF_FORMAT, alias="leafFormat")


class RecipientsFile(BaseModel):
    """Recipients file and distribution manifest."""

    model_config = ConfigDict(populate_by_name=True)

    airdrop_id: str = Field(..., alias="airdropId", min_length=1)
    description: str = Field(default="")
    merkle_root: str = Field(default=ZERO_ROOT, alias="merkleRoot")
    total_amount: str = Field(..., alias="totalAmount")
    network: Network = Field(default="devnet")
    program_id: Optional[str] = Field(default=None, alias="programId")
    recipients: List[RecipientEntry] = Field(default_factory=list)
    metadata: DistributionMetadata = Field(default_factory=DistributionMetadata)

    @field_validator('merkle_root')
    @classmethod
    def validate_merkle_root(cls, v):
        """Validate root is 0x-prefixed 32-byte hex."""
        if not re.match(r'^0x[a-fA-F0-9]{64}$', v):
            raise ValueError('Merkle root must be 0x followed by 64 hex characters')
        return v.lower()

    @field_validator('total_amount', mode='before')
    @classmethod
    def validate_total_amount(cls, v):
        """Validate total amount is a u64 decimal."""
        return _parse_amount(v)

    @field_validator('program_id')
    @classmethod
    def validate_program_id(cls, v):
        """Validate program id decodes to 32 bytes."""
        if v is None:
            return v
        try:
            decode_address(v)
        except (AddressFormatError, ValueError) as e:
            raise ValueError(f'Invalid program id: {e}')
        return v.strip()

    @model_validator(mode='after')
    def validate_total_matches_recipients(self):
        """Total amount must equal the sum of recipient amounts."""
        total = sum(entry.amount_lamports for entry in self.recipients)
        if total != int(self.total_amount):
            raise ValueError(
                f'totalAmount {self.total_amount} does not match sum of recipient amounts {total}'
            )
        return self

    @property
    def recipient_count(self) -> int:
        return len(self.recipients)

    @property
    def total_amount_lamports(self) -> int:
        return int(self.total_amount)

    @property
    def total_amount_sol(self) -> float:
        return self.total_amount_lamports / LAMPORTS_PER_SOL

    def to_recipients(self) -> List[Recipient]:
        """Recipients in file order, ready for tree construction."""
        return [entry.to_recipient() for entry in self.recipients]

    def find_recipient(self, public_key: str) -> Optional[RecipientEntry]:
        """First entry with the given public key."""
        target = public_key.strip()
        for entry in self.recipients:
            if entry.public_key == target:
                return entry
        return None

    def merkle_root_bytes(self) -> bytes:
        """Published root as raw bytes."""
        return bytes(Digest.from_hex(self.merkle_root))

    def is_root_published(self) -> bool:
        """Whether a root has been written (anything but the zero placeholder)."""
        return self.merkle_root != ZERO_ROOT

    def to_json_dict(self) -> dict:
        """Serializable form using the file's field names."""
        return self.model_dump(by_alias=True, mode='json')
