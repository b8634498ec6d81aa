"""
Exit protocol models.

Exit data comes from the watcher, is turned into an ExitRequest and is
consumed by a single startStandardExit call. Exit processing is a bounded
job with no client-side identity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from morevp.errors import ExitDataUnavailable, InputValidationError


class ExitState(str, Enum):
    """Lifecycle of a UTXO with respect to the exit game."""
    UNCLAIMED = "unclaimed"             # No exit started
    EXIT_REQUESTED = "exit_requested"   # Exit data fetched, call being sent
    EXITING = "exiting"                 # In the challenge period
    PROCESSED = "processed"             # Finalized by processExits
    SUPERSEDED = "superseded"           # Successfully challenged


class TxStatus(str, Enum):
    """Outcome of a root chain transaction."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


def _hex_to_bytes(value: str) -> bytes:
    value = value or ""
    if value.startswith(("0x", "0X")):
        value = value[2:]
    return bytes.fromhex(value)


@dataclass(frozen=True)
class ExitData:
    """
    Exit proof data returned by the watcher for one UTXO.

    Attributes:
        utxo_pos: Position of the exiting UTXO
        txbytes: Encoded transaction that created the UTXO
        proof: Merkle inclusion proof of that transaction in its block
        sigs: Signatures of the creating transaction
    """

    utxo_pos: int
    txbytes: bytes
    proof: bytes
    sigs: bytes = b""

    @classmethod
    def from_watcher(cls, data: Dict[str, Any]) -> "ExitData":
        try:
            return cls(
                utxo_pos=int(data["utxo_pos"]),
                txbytes=_hex_to_bytes(data["txbytes"]),
                proof=_hex_to_bytes(data["proof"]),
                sigs=_hex_to_bytes(data.get("sigs", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ExitDataUnavailable(f"Malformed exit data from watcher: {e}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "utxo_pos": self.utxo_pos,
            "txbytes": "0x" + self.txbytes.hex(),
            "proof": "0x" + self.proof.hex(),
            "sigs": "0x" + self.sigs.hex(),
        }


@dataclass(frozen=True)
class ExitRequest:
    """Arguments for one startStandardExit call."""

    utxo_pos: int
    output_tx: bytes
    proof: bytes
    contract_address: str

    @classmethod
    def from_exit_data(cls, data: ExitData, contract_address: str) -> "ExitRequest":
        return cls(
            utxo_pos=data.utxo_pos,
            output_tx=data.txbytes,
            proof=data.proof,
            contract_address=contract_address,
        )


@dataclass(frozen=True)
class ExitProcessingJob:
    """
    One bounded processExits invocation.

    Advances the contract's exit queue for `currency` by at most
    `batch_size` matured exits.
    """

    contract_address: str
    currency: str
    batch_size: int

    def validate(self) -> None:
        if self.batch_size <= 0:
            raise InputValidationError(
                f"Exit batch size must be positive, got {self.batch_size}"
            )


@dataclass(frozen=True)
class ContractTxResult:
    """Result of a root chain transaction."""

    tx_hash: str
    status: TxStatus
    block_number: int = 0
    gas_used: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_hash": self.tx_hash,
            "status": self.status.value,
            "block_number": self.block_number,
            "gas_used": self.gas_used,
            "error": self.error,
        }
