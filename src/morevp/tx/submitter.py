"""
Transaction Submitter - sends signed transactions to the watcher.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

import structlog

from morevp.core.transaction import SignedTransaction
from morevp.core.utxo import encode_utxo_pos
from morevp.watcher.interface import WatcherInterface

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """
    Outcome of a successful submission.

    Attributes:
        blknum: Child chain block that includes the transaction
        txindex: Index of the transaction within the block
        txhash: Transaction hash reported by the watcher
        new_positions: Positions of the created UTXOs, in output order
    """

    blknum: int
    txindex: int
    txhash: str
    new_positions: List[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blknum": self.blknum,
            "txindex": self.txindex,
            "txhash": self.txhash,
            "utxo_positions": list(self.new_positions),
        }


class Submitter:
    """
    Submits signed transactions.

    A rejection is final for this call: the caller must re-resolve its
    UTXOs and rebuild before trying again.
    """

    def __init__(self, watcher: WatcherInterface):
        self.watcher = watcher

    async def submit(self, signed: SignedTransaction) -> SubmissionResult:
        """
        Submit a signed transaction.

        Raises:
            RejectedTransactionError: If the watcher reports it invalid
            UnreachableError: On transport failure
        """
        receipt = await self.watcher.submit_transaction(signed.to_hex())

        new_positions = [
            encode_utxo_pos(receipt.blknum, receipt.txindex, oindex)
            for oindex in range(len(signed.transaction.outputs))
        ]

        logger.info(
            "transaction_accepted",
            txhash=receipt.txhash,
            blknum=receipt.blknum,
            txindex=receipt.txindex,
            outputs=len(new_positions),
        )

        return SubmissionResult(
            blknum=receipt.blknum,
            txindex=receipt.txindex,
            txhash=receipt.txhash,
            new_positions=new_positions,
        )
