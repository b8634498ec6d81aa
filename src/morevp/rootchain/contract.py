"""
Root chain contract adapter.

Builds, signs and sends calls to the Plasma MoreVP root chain contract
through web3's async client, then waits for the receipt.
"""

import asyncio
from typing import Any, Dict, Optional

import structlog
from eth_account import Account
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.providers import AsyncHTTPProvider

from morevp.config import ClientConfig
from morevp.core.exit import ContractTxResult, ExitProcessingJob, ExitRequest, TxStatus
from morevp.core.transaction import is_eth
from morevp.errors import ContractCallError, InputValidationError, UnreachableError
from morevp.rootchain.interface import RootChainInterface

logger = structlog.get_logger(__name__)

# ── ABI fragments ────────────────────────────────────────────────────

ROOT_CHAIN_ABI = [
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [{"name": "_depositTx", "type": "bytes"}],
        "outputs": [],
    },
    {
        "name": "depositFrom",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_depositTx", "type": "bytes"}],
        "outputs": [],
    },
    {
        "name": "startStandardExit",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "_utxoPos", "type": "uint192"},
            {"name": "_outputTx", "type": "bytes"},
            {"name": "_outputTxInclusionProof", "type": "bytes"},
        ],
        "outputs": [],
    },
    {
        "name": "processExits",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_token", "type": "address"},
            {"name": "_topUtxoPos", "type": "uint192"},
            {"name": "_exitsToProcess", "type": "uint256"},
        ],
        "outputs": [],
    },
]

ERC20_ABI = [
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

# processExits starts from the head of the queue
TOP_OF_QUEUE = 0


class RootChainContract(RootChainInterface):
    """
    web3 implementation of the root chain interface.

    Usage::

        async with RootChainContract(config) as chain:
            result = await chain.process_exits(job, private_key)
    """

    def __init__(self, config: ClientConfig, w3: Optional[AsyncWeb3] = None):
        """
        Initialize the adapter.

        Args:
            config: Client configuration carrying eth_client_url and gas settings
            w3: Pre-built AsyncWeb3 instance (skips provider creation)
        """
        self.config = config
        self._w3 = w3
        self._owns_w3 = w3 is None

    async def connect(self) -> None:
        if self._w3 is not None:
            return

        if not self.config.eth_client_url:
            raise InputValidationError("Ethereum client URL is required")

        w3 = AsyncWeb3(AsyncHTTPProvider(self.config.eth_client_url))
        try:
            connected = await w3.is_connected()
        except (OSError, asyncio.TimeoutError) as e:
            raise UnreachableError(f"Failed to connect to Ethereum client: {e}")
        if not connected:
            raise UnreachableError(
                f"Ethereum client at {self.config.eth_client_url} is not reachable"
            )

        self._w3 = w3
        logger.info("eth_client_connected", url=self.config.eth_client_url)

    async def disconnect(self) -> None:
        if self._w3 is None or not self._owns_w3:
            return
        if hasattr(self._w3.provider, "disconnect"):
            await self._w3.provider.disconnect()
        self._w3 = None

    def _contract(self, address: str, abi: list = ROOT_CHAIN_ABI):
        return self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address),
            abi=abi,
        )

    # ── Public API ───────────────────────────────────────────────

    async def deposit(
        self,
        contract_address: str,
        deposit_tx: bytes,
        amount: int,
        currency: str,
        private_key: str,
    ) -> ContractTxResult:
        """Deposit ETH (payable deposit) or an ERC20 token (depositFrom)."""
        await self.connect()
        contract = self._contract(contract_address)

        logger.info(
            "root_chain_deposit",
            contract=contract_address,
            amount=amount,
            currency=currency,
        )

        if is_eth(currency):
            return await self._send(
                contract.functions.deposit(deposit_tx),
                private_key,
                value=amount,
            )

        await self._ensure_allowance(currency, contract_address, amount, private_key)
        return await self._send(contract.functions.depositFrom(deposit_tx), private_key)

    async def start_standard_exit(
        self,
        request: ExitRequest,
        bond: int,
        private_key: str,
    ) -> ContractTxResult:
        """Start a standard exit."""
        await self.connect()
        contract = self._contract(request.contract_address)

        logger.info(
            "root_chain_start_standard_exit",
            contract=request.contract_address,
            utxo_pos=request.utxo_pos,
            bond=bond,
        )

        return await self._send(
            contract.functions.startStandardExit(
                request.utxo_pos,
                request.output_tx,
                request.proof,
            ),
            private_key,
            value=bond,
        )

    async def process_exits(
        self,
        job: ExitProcessingJob,
        private_key: str,
    ) -> ContractTxResult:
        """Process matured exits for one token."""
        await self.connect()
        contract = self._contract(job.contract_address)

        logger.info(
            "root_chain_process_exits",
            contract=job.contract_address,
            token=job.currency,
            batch_size=job.batch_size,
        )

        return await self._send(
            contract.functions.processExits(
                AsyncWeb3.to_checksum_address(job.currency),
                TOP_OF_QUEUE,
                job.batch_size,
            ),
            private_key,
        )

    # ── Internals ────────────────────────────────────────────────

    async def _base_tx_params(self, sender: str, value: int) -> Dict[str, Any]:
        """Build base transaction parameters."""
        return {
            "from": sender,
            "nonce": await self._w3.eth.get_transaction_count(sender),
            "gas": self.config.gas_limit,
            "gasPrice": await self._w3.eth.gas_price,
            "chainId": await self._w3.eth.chain_id,
            "value": value,
        }

    async def _ensure_allowance(
        self,
        token: str,
        spender: str,
        amount: int,
        private_key: str,
    ) -> None:
        """Approve the root chain to pull `amount` of an ERC20 token if needed."""
        owner = Account.from_key(private_key).address
        erc20 = self._contract(token, ERC20_ABI)

        try:
            allowance = await erc20.functions.allowance(
                owner,
                AsyncWeb3.to_checksum_address(spender),
            ).call()
        except (ContractLogicError, Web3Exception) as e:
            raise ContractCallError(f"Cannot read allowance of {token}: {e}")

        if allowance >= amount:
            logger.debug("root_chain_allowance_sufficient", allowance=allowance)
            return

        await self._send(
            erc20.functions.approve(AsyncWeb3.to_checksum_address(spender), amount),
            private_key,
        )
        logger.info("root_chain_token_approved", token=token, amount=amount)

    async def _send(self, fn, private_key: str, value: int = 0) -> ContractTxResult:
        """
        Sign a contract call, send it and wait for the receipt.

        A timeout while waiting is reported as PENDING; confirmation beyond
        that is left to the chain layer.

        Raises:
            ContractCallError: If the call reverts or the node rejects it
            UnreachableError: If the Ethereum client cannot be reached
        """
        account = Account.from_key(private_key)

        try:
            tx = await fn.build_transaction(
                await self._base_tx_params(account.address, value)
            )
            signed = account.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            logger.error("root_chain_call_reverted", error=str(e))
            raise ContractCallError(f"Contract call reverted: {e}")
        except Web3Exception as e:
            logger.error("root_chain_call_failed", error=str(e))
            raise ContractCallError(f"Contract call failed: {e}")
        except (OSError, asyncio.TimeoutError) as e:
            raise UnreachableError(f"Ethereum client request failed: {e}")

        tx_hash_hex = AsyncWeb3.to_hex(tx_hash)
        logger.info("root_chain_tx_sent", tx_hash=tx_hash_hex)

        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.config.receipt_timeout_seconds,
            )
        except TimeExhausted:
            logger.warning("root_chain_tx_timeout", tx_hash=tx_hash_hex)
            return ContractTxResult(tx_hash=tx_hash_hex, status=TxStatus.PENDING)
        except Web3Exception as e:
            logger.error("root_chain_receipt_failed", tx_hash=tx_hash_hex, error=str(e))
            raise ContractCallError(f"Cannot fetch receipt: {e}", tx_hash=tx_hash_hex)
        except (OSError, asyncio.TimeoutError) as e:
            logger.error("root_chain_receipt_unreachable", tx_hash=tx_hash_hex, error=str(e))
            raise UnreachableError(
                f"Ethereum client request failed while awaiting {tx_hash_hex}: {e}"
            )

        block_number = receipt.get("blockNumber", 0)
        gas_used = receipt.get("gasUsed", 0)

        if receipt.get("status", 0) != 1:
            logger.error("root_chain_tx_reverted", tx_hash=tx_hash_hex, gas_used=gas_used)
            raise ContractCallError("Transaction reverted on-chain", tx_hash=tx_hash_hex)

        logger.info(
            "root_chain_tx_confirmed",
            tx_hash=tx_hash_hex,
            block=block_number,
            gas_used=gas_used,
        )
        return ContractTxResult(
            tx_hash=tx_hash_hex,
            status=TxStatus.CONFIRMED,
            block_number=block_number,
            gas_used=gas_used,
        )
