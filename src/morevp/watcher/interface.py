"""
Abstract interface for Watcher access.

Defines the contract for the watcher's read and write API that all
watcher adapters must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List

from morevp.core.exit import ExitData
from morevp.core.utxo import UTXO


@dataclass(frozen=True)
class Balance:
    """Total amount an address holds in one currency."""
    currency: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"currency": self.currency, "amount": self.amount}


@dataclass(frozen=True)
class SubmissionReceipt:
    """Where the watcher placed a submitted transaction."""
    blknum: int
    txindex: int
    txhash: str


class WatcherInterface(ABC):
    """
    Abstract interface for watcher access.

    Read operations are idempotent and side-effect free from the client's
    view; submit_transaction is the only write.
    """

    async def connect(self) -> None:
        """Prepare the underlying transport."""
        pass

    async def disconnect(self) -> None:
        """Release the underlying transport."""
        pass

    async def __aenter__(self) -> "WatcherInterface":
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.disconnect()

    @abstractmethod
    async def get_utxos(self, address: str) -> List[UTXO]:
        """
        Get all unspent outputs owned by an address.

        Args:
            address: Owner address

        Returns:
            UTXOs owned by the address, possibly empty

        Raises:
            UnreachableError: If the watcher cannot be contacted
        """
        pass

    @abstractmethod
    async def get_balance(self, address: str) -> List[Balance]:
        """Get per-currency balances of an address."""
        pass

    @abstractmethod
    async def get_status(self) -> Dict[str, Any]:
        """Get the watcher's view of the network status."""
        pass

    @abstractmethod
    async def get_exit_data(self, utxo_pos: int) -> ExitData:
        """
        Get exit proof data for a UTXO position.

        Raises:
            ExitDataUnavailable: If no proof exists for an unspent UTXO there
        """
        pass

    @abstractmethod
    async def submit_transaction(self, tx_hex: str) -> SubmissionReceipt:
        """
        Submit a signed transaction.

        Args:
            tx_hex: 0x-prefixed hex of the signed transaction encoding

        Raises:
            RejectedTransactionError: If the watcher refuses the transaction
        """
        pass
