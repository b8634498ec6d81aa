"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest
from eth_utils import to_checksum_address

from morevp.config import ETH_CURRENCY, ClientConfig
from morevp.core.exit import (
    ContractTxResult,
    ExitData,
    ExitProcessingJob,
    ExitRequest,
    TxStatus,
)
from morevp.core.utxo import UTXO
from morevp.errors import ExitDataUnavailable, RejectedTransactionError
from morevp.rootchain.interface import RootChainInterface
from morevp.tx.keys import derive_address
from morevp.watcher.interface import Balance, SubmissionReceipt, WatcherInterface


# ============================================================================
# Keys and Addresses
# ============================================================================

OWNER_KEY = "0x" + "11" * 32
OTHER_KEY = "0x" + "22" * 32

OWNER = derive_address(OWNER_KEY)
OTHER = derive_address(OTHER_KEY)

TOKEN = to_checksum_address("0x6b175474e89094c44da98b954eedeac495271d0f")
CONTRACT = to_checksum_address("0x5bb7f2492487556e380e0bf960510277cdafd680")


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> ClientConfig:
    """Create a test configuration."""
    return ClientConfig(
        watcher_url="http://watcher.test",
        eth_client_url="http://localhost:8545",
        contract_address=CONTRACT,
        exit_bond_wei=31415926535,
        process_batch_size=100,
        log_level="DEBUG",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def make_utxo(
    blknum: int,
    amount: int,
    owner: str = OWNER,
    currency: str = ETH_CURRENCY,
    txindex: int = 0,
    oindex: int = 0,
) -> UTXO:
    """Create a UTXO with the given attributes."""
    return UTXO(
        blknum=blknum,
        txindex=txindex,
        oindex=oindex,
        owner=owner,
        amount=amount,
        currency=currency,
    )


@pytest.fixture
def eth_utxo() -> UTXO:
    """A 100 wei ETH UTXO owned by OWNER at block 1000."""
    return make_utxo(1000, 100)


@pytest.fixture
def sample_utxos() -> List[UTXO]:
    """Several ETH UTXOs plus one token UTXO owned by OWNER."""
    return [
        make_utxo(1000, 40),
        make_utxo(2000, 60),
        make_utxo(3000, 25, txindex=3, oindex=1),
        make_utxo(4000, 10, currency=TOKEN),
    ]


# ============================================================================
# Mock Watcher
# ============================================================================

class MockWatcher(WatcherInterface):
    """In-memory watcher for testing."""

    def __init__(self):
        self.utxos: List[UTXO] = []
        self.exit_data: Dict[int, ExitData] = {}
        self.submitted: List[str] = []
        self.reject_code: Optional[str] = None
        self.delays: Dict[str, float] = {}
        self.calls: List[str] = []
        self.next_blknum = 5000

    async def get_utxos(self, address: str) -> List[UTXO]:
        self.calls.append("get_utxos")
        delay = self.delays.get(address)
        if delay:
            await asyncio.sleep(delay)
        return [u for u in self.utxos if u.owner == address]

    async def get_balance(self, address: str) -> List[Balance]:
        self.calls.append("get_balance")
        totals: Dict[str, int] = {}
        for utxo in await self.get_utxos(address):
            totals[utxo.currency] = totals.get(utxo.currency, 0) + utxo.amount
        return [Balance(currency=c, amount=a) for c, a in totals.items()]

    async def get_status(self) -> Dict[str, Any]:
        self.calls.append("get_status")
        return {"last_validated_child_block_number": 5000, "byzantine_events": []}

    async def get_exit_data(self, utxo_pos: int) -> ExitData:
        self.calls.append("get_exit_data")
        if utxo_pos not in self.exit_data:
            raise ExitDataUnavailable(f"No exit data for UTXO {utxo_pos}", code="utxo:not_found")
        return self.exit_data[utxo_pos]

    async def submit_transaction(self, tx_hex: str) -> SubmissionReceipt:
        self.calls.append("submit_transaction")
        if self.reject_code:
            raise RejectedTransactionError("rejected", code=self.reject_code)
        self.submitted.append(tx_hex)
        return SubmissionReceipt(
            blknum=self.next_blknum,
            txindex=7,
            txhash="0x" + "ab" * 32,
        )

    def add_utxo(self, utxo: UTXO) -> None:
        """Add a UTXO to the mock."""
        self.utxos.append(utxo)

    def spend(self, position: int) -> None:
        """Remove a UTXO (simulate spending)."""
        self.utxos = [u for u in self.utxos if u.position != position]
        self.exit_data.pop(position, None)


@pytest.fixture
def mock_watcher() -> MockWatcher:
    """Create a mock watcher."""
    return MockWatcher()


@pytest.fixture
def mock_watcher_with_utxos(mock_watcher, sample_utxos) -> MockWatcher:
    """Create a mock watcher holding the sample UTXOs and their exit data."""
    for utxo in sample_utxos:
        mock_watcher.add_utxo(utxo)
        mock_watcher.exit_data[utxo.position] = ExitData(
            utxo_pos=utxo.position,
            txbytes=b"\xf8" + utxo.position.to_bytes(8, "big"),
            proof=b"\x01" * 32,
        )
    return mock_watcher


# ============================================================================
# Mock Root Chain
# ============================================================================

class MockRootChain(RootChainInterface):
    """Records root chain calls instead of sending transactions."""

    def __init__(self):
        self.deposits: List[Dict[str, Any]] = []
        self.exits: List[Dict[str, Any]] = []
        self.processed: List[ExitProcessingJob] = []

    def _result(self) -> ContractTxResult:
        return ContractTxResult(
            tx_hash="0x" + "cd" * 32,
            status=TxStatus.CONFIRMED,
            block_number=42,
            gas_used=100_000,
        )

    async def deposit(self, contract_address, deposit_tx, amount, currency, private_key):
        self.deposits.append({
            "contract_address": contract_address,
            "deposit_tx": deposit_tx,
            "amount": amount,
            "currency": currency,
        })
        return self._result()

    async def start_standard_exit(self, request: ExitRequest, bond: int, private_key: str):
        self.exits.append({"request": request, "bond": bond})
        return self._result()

    async def process_exits(self, job: ExitProcessingJob, private_key: str):
        self.processed.append(job)
        return self._result()

    @property
    def call_count(self) -> int:
        return len(self.deposits) + len(self.exits) + len(self.processed)


@pytest.fixture
def mock_root_chain() -> MockRootChain:
    """Create a mock root chain."""
    return MockRootChain()
