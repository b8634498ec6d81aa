"""
Main client orchestrator.

Wires the address deriver, resolver, builder, signer and submitter for
value movement, and the exit coordinator for exits.
"""

from typing import Any, Dict, List, Optional, Sequence

import structlog

from morevp.config import ClientConfig
from morevp.core.exit import ContractTxResult, ExitData, ExitProcessingJob
from morevp.core.exits import ExitCoordinator
from morevp.core.intent import Merge, Split, Transfer, TransactionIntent
from morevp.core.resolver import UTXOResolver
from morevp.core.utxo import UTXO, normalize_address, normalize_currency
from morevp.errors import InputValidationError
from morevp.rootchain.contract import RootChainContract
from morevp.rootchain.interface import RootChainInterface
from morevp.tx.builder import TransactionBuilder
from morevp.tx.keys import derive_address, parse_private_key
from morevp.tx.signer import TransactionSigner
from morevp.tx.submitter import SubmissionResult, Submitter
from morevp.watcher.http import WatcherClient
from morevp.watcher.interface import Balance, WatcherInterface

logger = structlog.get_logger(__name__)


class PlasmaClient:
    """
    MoreVP client.

    Each public method is one independent command: it derives its own
    address, resolves its own UTXOs and submits on its own. No state is
    shared between calls.

    Usage:
        ```python
        async with PlasmaClient(config) as client:
            result = await client.execute(Transfer(key, position, to_owner, 60))
        ```
    """

    def __init__(
        self,
        config: ClientConfig,
        watcher: Optional[WatcherInterface] = None,
        root_chain: Optional[RootChainInterface] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Configuration for this command
            watcher: Custom watcher (built from config.watcher_url when needed)
            root_chain: Custom root chain adapter (built from config when needed)
        """
        self.config = config
        self._watcher = watcher
        self._root_chain = root_chain
        self.builder = TransactionBuilder()

    @property
    def watcher(self) -> WatcherInterface:
        if self._watcher is None:
            self._watcher = WatcherClient(self.config)
        return self._watcher

    @property
    def root_chain(self) -> RootChainInterface:
        if self._root_chain is None:
            self._root_chain = RootChainContract(self.config)
        return self._root_chain

    @property
    def resolver(self) -> UTXOResolver:
        return UTXOResolver(self.watcher)

    @property
    def exits(self) -> ExitCoordinator:
        return ExitCoordinator(self.watcher, self.root_chain, self.config.exit_bond_wei)

    async def __aenter__(self) -> "PlasmaClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release transports that were opened."""
        if self._watcher is not None:
            await self._watcher.disconnect()
        if self._root_chain is not None:
            await self._root_chain.disconnect()

    def _contract_address(self) -> str:
        if not self.config.contract_address:
            raise InputValidationError("Root chain contract address is required")
        return normalize_address(self.config.contract_address, "contract address")

    # Watcher queries

    async def get_utxos(self, address: str) -> List[UTXO]:
        return await self.resolver.list_utxos(address)

    async def get_balance(self, address: str) -> List[Balance]:
        return await self.resolver.get_balance(address)

    async def get_status(self) -> Dict[str, Any]:
        return await self.watcher.get_status()

    async def get_exit_data(self, position: int) -> ExitData:
        return await self.exits.get_exit_data(position)

    # Value movement

    async def execute(self, intent: TransactionIntent) -> SubmissionResult:
        """
        Build, sign and submit a Transfer, Split or Merge.

        Static intent rules are checked before the watcher is contacted;
        amount and currency rules are checked after resolution and before
        signing.

        Raises:
            InputValidationError: On any rule violation
            NotFoundError: If an input UTXO is not owned by the key
            RejectedTransactionError: If the watcher refuses the transaction
            UnreachableError: If the watcher cannot be contacted
        """
        intent.validate()
        signer = TransactionSigner(intent.private_key)
        owner = signer.address

        logger.info(
            "transaction_requested",
            intent=type(intent).__name__,
            owner=owner,
            positions=list(intent.positions),
        )

        utxos = await self.resolver.resolve_many(owner, intent.positions)
        tx = self.builder.build(intent, utxos, owner)
        signed = signer.sign_transaction(tx)

        return await Submitter(self.watcher).submit(signed)

    async def send(
        self,
        private_key: str,
        from_position: int,
        to_owner: str,
        amount: int,
    ) -> SubmissionResult:
        """Transfer `amount` from one UTXO to `to_owner`."""
        return await self.execute(Transfer(private_key, from_position, to_owner, amount))

    async def split(
        self,
        private_key: str,
        from_position: int,
        to_owner: str,
        outputs: int,
    ) -> SubmissionResult:
        """Split one UTXO into `outputs` equal parts for `to_owner`."""
        return await self.execute(Split(private_key, from_position, to_owner, outputs))

    async def merge(self, private_key: str, from_positions: Sequence[int]) -> SubmissionResult:
        """Merge 2 to 4 UTXOs of the same currency into one."""
        return await self.execute(Merge(private_key, tuple(from_positions)))

    async def deposit(
        self,
        private_key: str,
        owner: str,
        amount: int,
        currency: str,
    ) -> ContractTxResult:
        """Deposit ETH or an ERC20 token into the root chain for `owner`."""
        parse_private_key(private_key)
        contract_address = self._contract_address()
        deposit_tx = self.builder.build_deposit(owner, amount, currency)
        output = deposit_tx.outputs[0]

        logger.info(
            "deposit_requested",
            owner=output.owner,
            amount=output.amount,
            currency=output.currency,
            depositor=derive_address(private_key),
        )

        return await self.root_chain.deposit(
            contract_address,
            deposit_tx.encode(),
            output.amount,
            output.currency,
            private_key,
        )

    # Exits

    async def start_exit(self, position: int, private_key: str) -> ContractTxResult:
        """Start a standard exit for a UTXO position."""
        logger.info("exit_requested", utxo_pos=position)
        return await self.exits.start_standard_exit(
            self._contract_address(),
            position,
            private_key,
        )

    async def process_exits(
        self,
        private_key: str,
        token: str,
        batch_size: Optional[int] = None,
    ) -> ContractTxResult:
        """Run one bounded processExits call for `token`."""
        job = ExitProcessingJob(
            contract_address=self._contract_address(),
            currency=normalize_currency(token),
            batch_size=self.config.process_batch_size if batch_size is None else batch_size,
        )
        return await self.exits.process_exits(job, private_key)
