"""
Solana Distributor - Recipients File Storage

Loads and saves the recipients file with its index order intact, writes
files atomically with timestamped backups, and records the computed Merkle
root back into the file.
"""

import json
import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from merkle.hashing import HASH_ALGORITHM, Digest
from merkle.leaf import LEAF_FORMAT

from .exceptions import RecipientsFileError
from .schema import (
    LAMPORTS_PER_SOL,
    ZERO_ROOT,
    DistributionMetadata,
    RecipientEntry,
    RecipientsFile,
)

DEFAULT_RECIPIENTS_FILE = "anchor/recipients.json"
DEFAULT_AIRDROP_AMOUNT = 75_000_000  # 0.075 SOL
DEFAULT_DESCRIPTION = "Deployment setup airdrop for testing purposes"


@dataclass
class WalletInfo:
    """A wallet to include in a generated recipients file."""
    name: str
    address: str
    funded: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WalletInfo":
        address = data.get('address') or data.get('publicKey')
        if not address:
            raise RecipientsFileError(f"Wallet entry has no address: {data}")
        return cls(name=data.get('name', 'wallet'), address=address, funded=bool(data.get('funded', False)))


class RecipientsStorage:
    """JSON storage for a recipients file with atomic writes and backups."""

    def __init__(self, file_path: Union[str, Path] = DEFAULT_RECIPIENTS_FILE,
                 backup_count: int = 5):
        self.file_path = Path(file_path)
        self.backup_count = backup_count
        self.logger = logging.getLogger(__name__)

    def exists(self) -> bool:
        """Check if recipients file exists."""
        return self.file_path.exists()

    def load(self) -> RecipientsFile:
        """
        Load and validate the recipients file.

        Returns:
            Parsed recipients file, recipients in file order

        Raises:
            RecipientsFileError: file missing, not JSON, or fails validation
        """
        if not self.file_path.exists():
            raise RecipientsFileError(f"Recipients file not found: {self.file_path}")

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise RecipientsFileError(f"Failed to parse recipients file {self.file_path}: {e}")

        try:
            recipients_file = RecipientsFile.model_validate(data)
        except ValidationError as e:
            raise RecipientsFileError(f"Invalid recipients file {self.file_path}: {e}")

        self.logger.info(
            f"Loaded {recipients_file.recipient_count} recipients from {self.file_path} "
            f"(total {recipients_file.total_amount_sol} SOL)"
        )
        return recipients_file

    def save(self, recipients_file: RecipientsFile, create_backup: bool = True) -> Path:
        """
        Write the recipients file atomically.

        Args:
            recipients_file: Data to write
            create_backup: Copy the current file to ``backups/`` first

        Returns:
            Path written
        """
        if create_backup:
            self._create_backup()

        self._write_file(recipients_file.to_json_dict())
        self.logger.info(f"Saved {self.file_path}")
        return self.file_path

    def update_merkle_root(self, merkle_root: Union[str, bytes], create_backup: bool = True) -> RecipientsFile:
        """
        Record a computed root in the recipients file.

        Also refreshes the metadata describing how the root was derived.

        Args:
            merkle_root: ``0x`` hex string or 32 raw bytes

        Returns:
            Updated recipients file
        """
        if isinstance(merkle_root, (bytes, bytearray)):
            root_hex = Digest(merkle_root).hex_prefixed()
        else:
            root_hex = Digest.from_hex(merkle_root).hex_prefixed()

        recipients_file = self.load()
        metadata = recipients_file.metadata.model_copy(
            update={'algorithm': HASH_ALGORITHM, 'leaf_format': LEAF_FORMAT}
        )
        updated = recipients_file.model_copy(update={'merkle_root': root_hex, 'metadata': metadata})

        self.save(updated, create_backup=create_backup)
        self.logger.info(f"Updated {self.file_path} with merkle root {root_hex}")
        return updated

    def _write_file(self, data: Dict[str, Any]) -> None:
        """Write data to file atomically."""
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.file_path.with_suffix(self.file_path.suffix + '.tmp')

        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
                f.write('\n')
            os.replace(temp_file, self.file_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise RecipientsFileError(f"Failed to write {self.file_path}: {e}")

    def _backup_dir(self) -> Path:
        return self.file_path.parent / 'backups'

    def _create_backup(self) -> Optional[Path]:
        """Create timestamped backup of current file."""
        if not self.file_path.exists():
            return None

        timestamp = datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S_%f')
        backup_path = self._backup_dir() / f"{self.file_path.stem}_{timestamp}{self.file_path.suffix}"
        backup_path.parent.mkdir(parents=True, exist_ok=True)

        shutil.copy2(self.file_path, backup_path)
        self._cleanup_old_backups()
        return backup_path

    def _cleanup_old_backups(self) -> None:
        """Remove old backup files beyond backup_count."""
        for backup_file in self.list_backups()[self.backup_count:]:
            try:
                backup_file.unlink()
            except OSError as e:
                self.logger.warning(f"Failed to remove old backup {backup_file}: {e}")

    def list_backups(self) -> List[Path]:
        """List available backup files, newest first."""
        backup_dir = self._backup_dir()
        if not backup_dir.exists():
            return []

        pattern = f"{self.file_path.stem}_*{self.file_path.suffix}"
        # Timestamped names sort chronologically
        return sorted(backup_dir.glob(pattern), reverse=True)


def build_recipients_file(
    wallets: Sequence[WalletInfo],
    program_id: Optional[str],
    amount_lamports: int = DEFAULT_AIRDROP_AMOUNT,
    network: str = "devnet",
    description: str = DEFAULT_DESCRIPTION,
) -> RecipientsFile:
    """
    Build a fresh recipients file giving every wallet the same amount.

    Indices follow wallet order. The root is the zero placeholder until a
    tree is generated.
    """
    sol = amount_lamports / LAMPORTS_PER_SOL
    entries = [
        RecipientEntry(
            public_key=wallet.address,
            amount=str(amount_lamports),
            index=index,
            description=f"{wallet.name} - {'Funded' if wallet.funded else 'Unfunded'} - {sol} SOL",
        )
        for index, wallet in enumerate(wallets)
    ]

    return RecipientsFile(
        airdrop_id=f"solana-distributor-airdrop-{datetime.now(timezone.utc).year}",
        description=description,
        merkle_root=ZERO_ROOT,
        total_amount=str(len(entries) * amount_lamports),
        network=network,
        program_id=program_id,
        recipients=entries,
        metadata=DistributionMetadata(),
    )


def generate_recipients_file(
    storage: RecipientsStorage,
    wallets: Sequence[WalletInfo],
    program_id: Optional[str],
    amount_lamports: int = DEFAULT_AIRDROP_AMOUNT,
    network: str = "devnet",
) -> RecipientsFile:
    """
    Write a recipients file for the given wallets.

    If the existing file already lists the same set of public keys, only its
    recipient entries and description are refreshed; its airdrop id, root
    and metadata are kept.

    Returns:
        The recipients file as written
    """
    logger = logging.getLogger(__name__)
    fresh = build_recipients_file(wallets, program_id, amount_lamports, network)

    if storage.exists():
        try:
            existing = storage.load()
        except RecipientsFileError as e:
            logger.warning(f"Existing recipients file is unusable, regenerating: {e}")
            existing = None

        if existing is not None:
            existing_keys = sorted(entry.public_key for entry in existing.recipients)
            new_keys = sorted(entry.public_key for entry in fresh.recipients)

            if existing_keys == new_keys:
                logger.info("Recipients unchanged, updating descriptions only")
                refreshed = existing.model_copy(update={
                    'recipients': fresh.recipients,
                    'total_amount': fresh.total_amount,
                    'description': DEFAULT_DESCRIPTION,
                })
                # Re-validate so the total is checked against the new entries
                refreshed = RecipientsFile.model_validate(refreshed.to_json_dict())
                storage.save(refreshed)
                return refreshed

    storage.save(fresh)
    logger.info(f"Generated {storage.file_path} with {fresh.recipient_count} recipients")
    return fresh
