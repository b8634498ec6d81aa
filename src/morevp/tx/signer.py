"""
Transaction Signer - handles transaction signing.

Signs the keccak hash of the canonical transaction encoding with the
owner's key. Signatures are RFC 6979 deterministic, so signing the same
transaction twice gives byte-identical payloads.
"""

from typing import Optional

import structlog
from eth_keys import keys

from morevp.core.transaction import SignedTransaction, Transaction
from morevp.tx.keys import load_private_key

logger = structlog.get_logger(__name__)

# Ethereum signatures carry v as 27/28 rather than the raw recovery id
V_OFFSET = 27


class TransactionSigner:
    """
    Handles transaction signing with the UTXO owner's key.

    The key is parsed and validated on load; the derived address is
    available for UTXO lookups and ownership checks.
    """

    def __init__(self, private_key: Optional[str] = None):
        """
        Initialize the transaction signer.

        Args:
            private_key: Hex private key. Can also be given later via load_key.
        """
        self._signing_key: Optional[keys.PrivateKey] = None
        self._address: Optional[str] = None

        if private_key is not None:
            self.load_key(private_key)

    def load_key(self, private_key: str) -> None:
        """
        Load a signing key.

        Raises:
            InvalidKey: If the key is not a valid secp256k1 scalar
        """
        self._signing_key = load_private_key(private_key)
        self._address = self._signing_key.public_key.to_checksum_address()
        logger.debug("signing_key_loaded", address=self._address)

    @property
    def address(self) -> Optional[str]:
        """Address owning the loaded key."""
        return self._address

    @property
    def is_loaded(self) -> bool:
        """Check if a signing key is loaded."""
        return self._signing_key is not None

    def sign_hash(self, message_hash: bytes) -> bytes:
        """Sign a 32 byte hash, returning r || s || v with v in {27, 28}."""
        if not self._signing_key:
            raise RuntimeError("No signing key loaded")

        signature = self._signing_key.sign_msg_hash(message_hash)
        return (
            signature.r.to_bytes(32, "big")
            + signature.s.to_bytes(32, "big")
            + bytes([signature.v + V_OFFSET])
        )

    def sign_transaction(self, transaction: Transaction) -> SignedTransaction:
        """
        Sign a transaction.

        Args:
            transaction: The built transaction

        Returns:
            Signed transaction ready for submission
        """
        tx_hash = transaction.hash()
        signed = SignedTransaction(transaction, self.sign_hash(tx_hash))

        logger.debug("transaction_signed", tx_hash=tx_hash.hex()[:16] + "...")

        return signed


def recover_signer(signed: SignedTransaction) -> str:
    """Recover the address that produced a transaction signature."""
    sig = signed.signature
    signature = keys.Signature(vrs=(
        sig[64] - V_OFFSET,
        int.from_bytes(sig[:32], "big"),
        int.from_bytes(sig[32:64], "big"),
    ))
    public_key = signature.recover_public_key_from_msg_hash(signed.transaction.hash())
    return public_key.to_checksum_address()
