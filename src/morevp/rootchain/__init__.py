"""
Root chain integration.

Deposits, standard exits and exit processing against the Plasma MoreVP
root chain contract.
"""

from morevp.rootchain.interface import RootChainInterface
from morevp.rootchain.contract import RootChainContract

__all__ = [
    "RootChainInterface",
    "RootChainContract",
]
