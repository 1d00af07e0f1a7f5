"""
Unit tests for recipients file schema validation.
"""

import pytest
from pydantic import ValidationError

from merkle.leaf import MAX_AMOUNT
from recipients.schema import (
    ZERO_ROOT,
    DistributionMetadata,
    RecipientEntry,
    RecipientsFile,
)


class TestRecipientEntry:
    """Test recipient entry validation."""

    def test_valid_entry_from_file_names(self, known_keys):
        """Test parsing with camelCase field names."""
        entry = RecipientEntry.model_validate({
            "publicKey": known_keys[0],
            "amount": "75000000",
            "index": 0,
            "description": "Wallet - Funded - 0.075 SOL",
        })

        assert entry.public_key == known_keys[0]
        assert entry.amount_lamports == 75_000_000
        assert entry.index == 0

    def test_population_by_field_name(self, known_keys):
        """Test parsing with Python field names."""
        entry = RecipientEntry(public_key=known_keys[1], amount=5, index=3)

        assert entry.amount == "5"
        assert entry.description is None

    @pytest.mark.parametrize("amount", ["-1", "1.5", "abc", "", str(MAX_AMOUNT + 1), True])
    def test_invalid_amount(self, amount, known_keys):
        """Test amounts outside the u64 decimal form."""
        with pytest.raises(ValidationError):
            RecipientEntry(public_key=known_keys[0], amount=amount, index=0)

    def test_amount_normalized(self, known_keys):
        """Test leading zeros and whitespace are dropped."""
        entry = RecipientEntry(public_key=known_keys[0], amount=" 0042 ", index=0)
        assert entry.amount == "42"

    def test_max_amount(self, known_keys):
        """Test the largest u64 is accepted."""
        entry = RecipientEntry(public_key=known_keys[0], amount=str(MAX_AMOUNT), index=0)
        assert entry.amount_lamports == MAX_AMOUNT

    def test_invalid_public_key(self):
        """Test undecodable keys are rejected."""
        with pytest.raises(ValidationError, match="public key"):
            RecipientEntry(public_key="not-a-key", amount="1", index=0)

    @pytest.mark.parametrize("public_key", ["2", "1" + "11111111111111111111111111111112"])
    def test_non_canonical_public_key(self, public_key):
        """Test short or zero-padded base58 keys are rejected."""
        with pytest.raises(ValidationError):
            RecipientEntry(public_key=public_key, amount="1", index=0)

    def test_negative_index(self, known_keys):
        """Test negative indices are rejected."""
        with pytest.raises(ValidationError):
            RecipientEntry(public_key=known_keys[0], amount="1", index=-1)

    def test_to_recipient(self):
        """Test conversion to the tree record."""
        entry = RecipientEntry(
            public_key="TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA", amount="1000", index=2
        )
        recipient = entry.to_recipient()

        assert recipient.address.hex().startswith("06ddf6e1")
        assert recipient.amount == 1000
        assert recipient.index == 2


class TestRecipientsFile:
    """Test recipients file validation."""

    def test_valid_file(self, recipients_data):
        """Test a well-formed file parses."""
        recipients_file = RecipientsFile.model_validate(recipients_data)

        assert recipients_file.recipient_count == 5
        assert recipients_file.total_amount_lamports == 5 * 75_000_000
        assert recipients_file.total_amount_sol == pytest.approx(0.375)
        assert recipients_file.network == "devnet"
        assert not recipients_file.is_root_published()

    def test_total_must_match(self, recipients_data):
        """Test totalAmount must equal the recipient sum."""
        recipients_data["totalAmount"] = "1"

        with pytest.raises(ValidationError, match="does not match"):
            RecipientsFile.model_validate(recipients_data)

    @pytest.mark.parametrize("root", ["0x1234", "ab" * 32, "0x" + "gg" * 32])
    def test_invalid_root(self, recipients_data, root):
        """Test malformed roots are rejected."""
        recipients_data["merkleRoot"] = root

        with pytest.raises(ValidationError):
            RecipientsFile.model_validate(recipients_data)

    def test_root_lowercased(self, recipients_data):
        """Test roots are stored in lowercase."""
        recipients_data["merkleRoot"] = "0x" + "AB" * 32
        recipients_file = RecipientsFile.model_validate(recipients_data)

        assert recipients_file.merkle_root == "0x" + "ab" * 32
        assert recipients_file.merkle_root_bytes() == b'\xab' * 32
        assert recipients_file.is_root_published()

    def test_invalid_network(self, recipients_data):
        """Test unknown clusters are rejected."""
        recipients_data["network"] = "localnet"

        with pytest.raises(ValidationError):
            RecipientsFile.model_validate(recipients_data)

    def test_invalid_program_id(self, recipients_data):
        """Test program id must be a public key."""
        recipients_data["programId"] = "not-a-program"

        with pytest.raises(ValidationError, match="program id"):
            RecipientsFile.model_validate(recipients_data)

    def test_optional_fields_default(self):
        """Test a minimal file."""
        recipients_file = RecipientsFile.model_validate({
            "airdropId": "minimal",
            "totalAmount": "0",
        })

        assert recipients_file.merkle_root == ZERO_ROOT
        assert recipients_file.recipients == []
        assert recipients_file.program_id is None
        assert recipients_file.metadata.algorithm == "keccak256"

    def test_find_recipient(self, recipients_data, known_keys):
        """Test lookup by public key."""
        recipients_file = RecipientsFile.model_validate(recipients_data)

        assert recipients_file.find_recipient(known_keys[2]).index == 2
        assert recipients_file.find_recipient("unknown") is None

    def test_to_recipients_keeps_file_order(self, recipients_data):
        """Test conversion preserves entries in file order."""
        recipients_file = RecipientsFile.model_validate(recipients_data)
        records = recipients_file.to_recipients()

        assert [r.index for r in records] == [0, 1, 2, 3, 4]
        assert all(r.amount == 75_000_000 for r in records)

    def test_json_dict_uses_file_names(self, recipients_data, known_keys):
        """Test serialization uses the camelCase names."""
        recipients_file = RecipientsFile.model_validate(recipients_data)
        data = recipients_file.to_json_dict()

        assert data["airdropId"] == recipients_data["airdropId"]
        assert data["merkleRoot"] == ZERO_ROOT
        assert data["totalAmount"] == "375000000"
        assert data["recipients"][0]["publicKey"] == known_keys[0]
        assert data["metadata"]["leafFormat"] == recipients_data["metadata"]["leafFormat"]

    def test_reparse_serialized(self, recipients_data):
        """Test a serialized file parses back to an equal model."""
        recipients_file = RecipientsFile.model_validate(recipients_data)
        assert RecipientsFile.model_validate(recipients_file.to_json_dict()) == recipients_file

    def test_varied_amounts(self, make_recipients_data, known_keys):
        """Test totals with unequal amounts."""
        data = make_recipients_data(known_keys[:2])
        data["recipients"][1]["amount"] = "10"
        data["totalAmount"] = str(75_000_000 + 10)

        assert RecipientsFile.model_validate(data).total_amount_lamports == 75_000_010


class TestDistributionMetadata:
    """Test metadata defaults."""

    def test_defaults(self):
        """Test metadata records the hashing scheme."""
        metadata = DistributionMetadata()

        assert metadata.algorithm == "keccak256"
        assert metadata.leaf_format == "recipient_pubkey(32) + amount(8) + is_claimed(1)"
        assert metadata.version == "1.0.0"
        assert metadata.created_at
