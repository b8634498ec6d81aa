"""
MoreVP Client

A client for Plasma MoreVP networks. Moves value between owners as UTXO
transactions submitted to a watcher, and exits value back to the root
chain through the challenge-period contract.
"""

__version__ = "0.1.0"

from morevp.config import ClientConfig
from morevp.core.client import PlasmaClient
from morevp.core.intent import Merge, Split, Transfer

__all__ = [
    "ClientConfig",
    "PlasmaClient",
    "Merge",
    "Split",
    "Transfer",
]
