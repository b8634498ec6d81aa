"""
Key handling - private key parsing, address derivation and account creation.
"""

from dataclasses import dataclass, field

import structlog
from eth_account import Account
from eth_keys import keys

from morevp.errors import InvalidKey

logger = structlog.get_logger(__name__)

# Order of the secp256k1 group
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def parse_private_key(private_key: str) -> bytes:
    """
    Parse a hex private key into 32 raw bytes.

    Args:
        private_key: Hex string, with or without 0x prefix

    Returns:
        The 32 byte scalar

    Raises:
        InvalidKey: If the key is not hex, not 32 bytes or not in [1, n-1]
    """
    if not private_key:
        raise InvalidKey("Private key is required")

    value = private_key.strip()
    if value.startswith(("0x", "0X")):
        value = value[2:]

    try:
        key_bytes = bytes.fromhex(value)
    except ValueError:
        raise InvalidKey("Private key is not valid hex")

    if len(key_bytes) != 32:
        raise InvalidKey(f"Private key must be 32 bytes, got {len(key_bytes)}")

    scalar = int.from_bytes(key_bytes, "big")
    if not 0 < scalar < SECP256K1_N:
        raise InvalidKey("Private key is outside the secp256k1 scalar range")

    return key_bytes


def load_private_key(private_key: str) -> keys.PrivateKey:
    """Parse a hex private key into an eth_keys PrivateKey."""
    return keys.PrivateKey(parse_private_key(private_key))


def derive_address(private_key: str) -> str:
    """
    Recover the checksum address that owns a private key.

    Pure function; no network access.
    """
    return load_private_key(private_key).public_key.to_checksum_address()


@dataclass(frozen=True)
class GeneratedAccount:
    """A freshly generated keypair."""
    address: str
    private_key: str = field(repr=False)


def generate_account() -> GeneratedAccount:
    """
    Generate a new random account.

    The key is only returned, never persisted or logged.
    """
    account = Account.create()
    generated = GeneratedAccount(
        address=account.address,
        private_key="0x" + bytes(account.key).hex(),
    )
    logger.info("account_generated", address=generated.address)
    return generated
