"""
Core client components.

This module contains the UTXO and transaction models, the transaction
intents, UTXO resolution, the exit coordinator and the client orchestrator.
"""

from morevp.core.utxo import UTXO, decode_utxo_pos, encode_utxo_pos
from morevp.core.transaction import (
    SignedTransaction,
    Transaction,
    TransactionInput,
    TransactionOutput,
)
from morevp.core.intent import Merge, Split, Transfer, TransactionIntent
from morevp.core.exit import ExitData, ExitProcessingJob, ExitRequest, ExitState
from morevp.core.resolver import UTXOResolver
from morevp.core.exits import ExitCoordinator
from morevp.core.client import PlasmaClient

__all__ = [
    "UTXO",
    "decode_utxo_pos",
    "encode_utxo_pos",
    "SignedTransaction",
    "Transaction",
    "TransactionInput",
    "TransactionOutput",
    "Merge",
    "Split",
    "Transfer",
    "TransactionIntent",
    "ExitData",
    "ExitProcessingJob",
    "ExitRequest",
    "ExitState",
    "UTXOResolver",
    "ExitCoordinator",
    "PlasmaClient",
]
