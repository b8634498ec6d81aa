"""
Watcher Integration Layer.

Provides access to the watcher's read API (UTXOs, balances, status,
exit data) and transaction submission.
"""

from morevp.watcher.interface import Balance, SubmissionReceipt, WatcherInterface
from morevp.watcher.http import WatcherClient

__all__ = [
    "Balance",
    "SubmissionReceipt",
    "WatcherInterface",
    "WatcherClient",
]
