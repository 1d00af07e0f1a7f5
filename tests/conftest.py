"""
Pytest configuration and fixtures for Solana Distributor tests.
"""

import json
import logging
import os

import pytest

from merkle.leaf import Recipient

# Well-known program ids, used as realistic base58 recipient keys
KNOWN_KEYS = [
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
    "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr",
    "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s",
    "ErbDoJTnJyG6EBXHeFochTsHJhB3Jfjc3MF1L9aNip3y",
]

PROGRAM_ID = "ErbDoJTnJyG6EBXHeFochTsHJhB3Jfjc3MF1L9aNip3y"


def _address_for(seed: int) -> bytes:
    """Deterministic 32-byte address whose first byte is never zero."""
    return bytes([(seed % 255) + 1]) + bytes((seed * 7 + i) % 256 for i in range(31))


def _build_recipients(count: int, base_amount: int = 1000):
    """Recipients with distinct addresses and amounts, indices 0..count-1."""
    return [
        Recipient(address=_address_for(i), amount=base_amount * (i + 1), index=i)
        for i in range(count)
    ]


def _build_recipients_data(public_keys, amount: int = 75_000_000, merkle_root: str = "0x" + "00" * 32):
    """Recipients file content in the on-disk JSON shape."""
    recipients = [
        {
            "publicKey": key,
            "amount": str(amount),
            "index": i,
            "description": f"Wallet {i} - Funded - {amount / 1e9} SOL",
        }
        for i, key in enumerate(public_keys)
    ]
    return {
        "airdropId": "solana-distributor-airdrop-2025",
        "description": "Deployment setup airdrop for testing purposes",
        "merkleRoot": merkle_root,
        "totalAmount": str(amount * len(recipients)),
        "network": "devnet",
        "programId": PROGRAM_ID,
        "recipients": recipients,
        "metadata": {
            "createdAt": "2025-01-01T00:00:00+00:00",
            "version": "1.0.0",
            "algorithm": "keccak256",
            "leafFormat": "recipient_pubkey(32) + amount(8) + is_claimed(1)",
        },
    }


@pytest.fixture
def address_aa():
    return b'\xaa' * 32


@pytest.fixture
def address_bb():
    return b'\xbb' * 32


@pytest.fixture
def two_recipients(address_aa, address_bb):
    """The 0xAA/1000, 0xBB/2000 scenario."""
    return [
        Recipient(address=address_aa, amount=1000, index=0),
        Recipient(address=address_bb, amount=2000, index=1),
    ]


@pytest.fixture
def known_keys():
    return list(KNOWN_KEYS)


@pytest.fixture
def program_id():
    return PROGRAM_ID


@pytest.fixture
def make_address():
    """Factory for deterministic 32-byte addresses."""
    return _address_for


@pytest.fixture
def make_recipients():
    """Factory for recipient lists of a given size."""
    return _build_recipients


@pytest.fixture
def make_recipients_data():
    """Factory for recipients file content over given keys."""
    return _build_recipients_data


@pytest.fixture
def recipients_data(known_keys):
    return _build_recipients_data(known_keys)


@pytest.fixture
def recipients_path(tmp_path, recipients_data):
    """Recipients file on disk with five recipients and no root yet."""
    path = tmp_path / "anchor" / "recipients.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(recipients_data, indent=2))
    return path


@pytest.fixture
def isolated_config(monkeypatch, tmp_path):
    """Keep configuration lookups away from the developer's real files."""
    import cli.config

    monkeypatch.setattr(cli.config, 'CONFIG_SEARCH_PATHS', [tmp_path / '.distributor.yml'])
    for key in list(os.environ):
        if key.startswith(cli.config.ENV_PREFIX):
            monkeypatch.delenv(key)
    return tmp_path


@pytest.fixture(autouse=True)
def reset_package_loggers():
    """Undo CLI logging setup so caplog sees library records."""
    yield
    for name in ('distributor-cli', 'merkle', 'recipients'):
        logger = logging.getLogger(name)
        logger.handlers = []
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location and names."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "large" in item.name:
            item.add_marker(pytest.mark.slow)
