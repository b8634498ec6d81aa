"""
Exit Coordinator - drives the standard exit protocol.

Fetches exit proofs from the watcher, starts standard exits on the root
chain and advances the exit queue in bounded batches. Each call is a
single attempt; nothing is retried or looped here.
"""

import structlog

from morevp.core.exit import (
    ContractTxResult,
    ExitData,
    ExitProcessingJob,
    ExitRequest,
    ExitState,
    TxStatus,
)
from morevp.core.utxo import normalize_address, normalize_currency
from morevp.errors import InputValidationError
from morevp.rootchain.interface import RootChainInterface
from morevp.tx.keys import parse_private_key
from morevp.watcher.interface import WatcherInterface

logger = structlog.get_logger(__name__)


class ExitCoordinator:
    """
    Orchestrates exits for UTXO positions.

    Usage:
        ```python
        coordinator = ExitCoordinator(watcher, root_chain, exit_bond=bond)
        await coordinator.start_standard_exit(contract, position, private_key)
        await coordinator.process_exits(job, private_key)
        ```
    """

    def __init__(
        self,
        watcher: WatcherInterface,
        root_chain: RootChainInterface,
        exit_bond: int,
    ):
        """
        Initialize the coordinator.

        Args:
            watcher: Source of exit proof data
            root_chain: Root chain contract adapter
            exit_bond: Bond in wei posted with each standard exit
        """
        self.watcher = watcher
        self.root_chain = root_chain
        self.exit_bond = exit_bond

    async def get_exit_data(self, position: int) -> ExitData:
        """
        Read-only lookup of exit data for a UTXO position.

        Raises:
            ExitDataUnavailable: If the watcher has no proof for the position
        """
        if position <= 0:
            raise InputValidationError(f"UTXO position must be positive, got {position}")

        data = await self.watcher.get_exit_data(position)
        logger.debug("exit_data_fetched", utxo_pos=data.utxo_pos)
        return data

    async def start_standard_exit(
        self,
        contract_address: str,
        position: int,
        private_key: str,
    ) -> ContractTxResult:
        """
        Start a standard exit for the UTXO at `position`.

        Args:
            contract_address: Root chain contract
            position: UTXO position to exit
            private_key: Key of the UTXO owner, also pays gas and the bond

        Returns:
            Result of the startStandardExit transaction

        Raises:
            ExitDataUnavailable: If the watcher cannot prove the UTXO (e.g. spent)
            ContractCallError: If the contract call fails
        """
        contract_address = normalize_address(contract_address, "contract address")
        parse_private_key(private_key)

        data = await self.get_exit_data(position)
        request = ExitRequest.from_exit_data(data, contract_address)
        logger.info("exit_state", utxo_pos=position, state=ExitState.EXIT_REQUESTED.value)

        result = await self.root_chain.start_standard_exit(
            request,
            self.exit_bond,
            private_key,
        )

        if result.status == TxStatus.CONFIRMED:
            logger.info(
                "exit_state",
                utxo_pos=position,
                state=ExitState.EXITING.value,
                tx_hash=result.tx_hash,
            )
        return result

    async def process_exits(
        self,
        job: ExitProcessingJob,
        private_key: str,
    ) -> ContractTxResult:
        """
        Advance the exit queue of one token by at most `job.batch_size` exits.

        Calling this with no matured exits left is a no-op on the contract,
        not an error. Callers repeat it until the queue is drained.

        Raises:
            InputValidationError: If batch_size <= 0 (before any contract call)
        """
        job.validate()
        job = ExitProcessingJob(
            contract_address=normalize_address(job.contract_address, "contract address"),
            currency=normalize_currency(job.currency),
            batch_size=job.batch_size,
        )
        parse_private_key(private_key)

        result = await self.root_chain.process_exits(job, private_key)
        logger.info(
            "exits_processed",
            token=job.currency,
            batch_size=job.batch_size,
            tx_hash=result.tx_hash,
            status=result.status.value,
        )
        return result
