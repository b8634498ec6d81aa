"""
UTXO Resolver - resolves owner/position pairs to live UTXO records.

Every lookup goes to the watcher; nothing is cached, so the client never
builds on stale ownership data.
"""

import asyncio
from typing import List, Sequence

import structlog

from morevp.core.utxo import UTXO, normalize_address
from morevp.errors import InputValidationError, NotFoundError
from morevp.watcher.interface import Balance, WatcherInterface

logger = structlog.get_logger(__name__)


class UTXOResolver:
    """Fetches UTXOs and balances for an owner from the watcher."""

    def __init__(self, watcher: WatcherInterface):
        self.watcher = watcher

    async def list_utxos(self, owner: str) -> List[UTXO]:
        """List all UTXOs currently owned by `owner`."""
        return await self.watcher.get_utxos(normalize_address(owner, "owner"))

    async def get_balance(self, owner: str) -> List[Balance]:
        """Per-currency balances of `owner`."""
        return await self.watcher.get_balance(normalize_address(owner, "owner"))

    async def resolve(self, owner: str, position: int) -> UTXO:
        """
        Resolve a single UTXO owned by `owner`.

        Args:
            owner: Expected owner address
            position: UTXO position

        Returns:
            The matching UTXO

        Raises:
            NotFoundError: If the watcher reports no such UTXO for the owner
            UnreachableError: If the watcher cannot be contacted
        """
        for utxo in await self.list_utxos(owner):
            if utxo.position == position:
                logger.debug("utxo_resolved", utxo_pos=position, amount=utxo.amount)
                return utxo

        logger.warning("utxo_not_found", owner=owner, utxo_pos=position)
        raise NotFoundError(f"UTXO {position} not found for owner {owner}")

    async def resolve_many(self, owner: str, positions: Sequence[int]) -> List[UTXO]:
        """
        Resolve several UTXOs concurrently.

        Results are returned in the order of `positions`, whatever order the
        watcher answers in. If any lookup fails the others are cancelled and
        the first error in `positions` order is raised.
        """
        if len(set(positions)) != len(positions):
            raise InputValidationError("UTXO positions must be distinct")

        tasks = [
            asyncio.ensure_future(self.resolve(owner, position))
            for position in positions
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except Exception:
            for task in tasks:
                task.cancel()
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            for outcome in outcomes:
                if isinstance(outcome, Exception):
                    raise outcome
            raise
