"""
Abstract interface for the root chain contract.

Each call is a blocking transaction paid for by the caller's key. Success
or failure is reported by the chain layer and passed through unchanged.
"""

from abc import ABC, abstractmethod
from typing import Any

from morevp.core.exit import ContractTxResult, ExitProcessingJob, ExitRequest


class RootChainInterface(ABC):
    """Root chain contract operations used by the client."""

    async def connect(self) -> None:
        """Establish connection to the Ethereum client."""
        pass

    async def disconnect(self) -> None:
        """Close connection to the Ethereum client."""
        pass

    async def __aenter__(self) -> "RootChainInterface":
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.disconnect()

    @abstractmethod
    async def deposit(
        self,
        contract_address: str,
        deposit_tx: bytes,
        amount: int,
        currency: str,
        private_key: str,
    ) -> ContractTxResult:
        """
        Deposit ETH or an ERC20 token into the plasma contract.

        Args:
            contract_address: Root chain contract
            deposit_tx: Encoded zero-input deposit transaction
            amount: Amount being deposited
            currency: Token address, zero address for ETH
            private_key: Key of the depositor, pays gas

        Raises:
            ContractCallError: If the call reverts or fails
        """
        pass

    @abstractmethod
    async def start_standard_exit(
        self,
        request: ExitRequest,
        bond: int,
        private_key: str,
    ) -> ContractTxResult:
        """Start a standard exit, posting `bond` wei."""
        pass

    @abstractmethod
    async def process_exits(
        self,
        job: ExitProcessingJob,
        private_key: str,
    ) -> ContractTxResult:
        """Finalize at most `job.batch_size` matured exits for `job.currency`."""
        pass
