"""
UTXO model and position codec.

A UTXO is addressed on the network by a single integer position packing
its block number, transaction index and output index. The same packing is
used by the watcher and the root chain contract.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from eth_utils import is_address, to_checksum_address

from morevp.config import ETH_CURRENCY
from morevp.errors import InputValidationError, UnreachableError


BLOCK_OFFSET = 1_000_000_000
TX_OFFSET = 10_000

MAX_TXINDEX = BLOCK_OFFSET // TX_OFFSET - 1   # 99_999
MAX_OINDEX = TX_OFFSET - 1                    # 9_999


def encode_utxo_pos(blknum: int, txindex: int, oindex: int) -> int:
    """
    Pack (blknum, txindex, oindex) into a UTXO position.

    Raises:
        InputValidationError: If any component is outside its field
    """
    if blknum < 0:
        raise InputValidationError(f"Block number must be non-negative, got {blknum}")
    if not 0 <= txindex <= MAX_TXINDEX:
        raise InputValidationError(f"Transaction index {txindex} out of range [0, {MAX_TXINDEX}]")
    if not 0 <= oindex <= MAX_OINDEX:
        raise InputValidationError(f"Output index {oindex} out of range [0, {MAX_OINDEX}]")

    return blknum * BLOCK_OFFSET + txindex * TX_OFFSET + oindex


def decode_utxo_pos(position: int) -> Tuple[int, int, int]:
    """Unpack a UTXO position into (blknum, txindex, oindex)."""
    if position < 0:
        raise InputValidationError(f"UTXO position must be non-negative, got {position}")

    blknum, remainder = divmod(position, BLOCK_OFFSET)
    txindex, oindex = divmod(remainder, TX_OFFSET)
    return blknum, txindex, oindex


def normalize_address(value: str, name: str = "address") -> str:
    """Validate an Ethereum address and return its checksum form."""
    if not value or not is_address(value):
        raise InputValidationError(f"Invalid {name}: {value!r}")
    return to_checksum_address(value)


def normalize_currency(value: str) -> str:
    """Accept a token address or the ETH alias and return a checksum address."""
    if value and value.upper() == "ETH":
        return ETH_CURRENCY
    return normalize_address(value, "currency")


@dataclass(frozen=True)
class UTXO:
    """
    An unspent output as reported by the watcher.

    Attributes:
        blknum: Child chain block number
        txindex: Transaction index within the block
        oindex: Output index within the transaction
        owner: Checksum address of the owner
        amount: Amount in the currency's base unit
        currency: Checksum token address (zero address for ETH)
    """

    blknum: int
    txindex: int
    oindex: int
    owner: str
    amount: int
    currency: str

    @property
    def position(self) -> int:
        """UTXO position on the network."""
        return encode_utxo_pos(self.blknum, self.txindex, self.oindex)

    @classmethod
    def from_watcher(cls, data: Dict[str, Any]) -> "UTXO":
        """
        Parse a UTXO entry from the watcher's JSON.

        The watcher sends blknum/txindex/oindex alongside utxo_pos; when only
        utxo_pos is present the indices are decoded from it.

        Raises:
            UnreachableError: If the entry is missing fields or malformed
        """
        try:
            if "blknum" in data:
                blknum = int(data["blknum"])
                txindex = int(data["txindex"])
                oindex = int(data["oindex"])
            else:
                blknum, txindex, oindex = decode_utxo_pos(int(data["utxo_pos"]))

            return cls(
                blknum=blknum,
                txindex=txindex,
                oindex=oindex,
                owner=to_checksum_address(data["owner"]),
                amount=int(data["amount"]),
                currency=to_checksum_address(data["currency"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UnreachableError(f"Malformed UTXO entry from watcher: {e!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "utxo_pos": self.position,
            "blknum": self.blknum,
            "txindex": self.txindex,
            "oindex": self.oindex,
            "owner": self.owner,
            "amount": self.amount,
            "currency": self.currency,
        }
