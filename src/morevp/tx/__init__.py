"""
Transaction module.

Handles key derivation, transaction construction, signing, and submission.
"""

from morevp.tx.builder import TransactionBuilder
from morevp.tx.keys import derive_address, generate_account
from morevp.tx.signer import TransactionSigner
from morevp.tx.submitter import SubmissionResult, Submitter

__all__ = [
    "TransactionBuilder",
    "derive_address",
    "generate_account",
    "TransactionSigner",
    "SubmissionResult",
    "Submitter",
]
