"""
Watcher HTTP adapter.

Talks to the watcher's JSON API. Every method is a POST to
`<watcher_url>/<method>` answered with `{"version", "success", "data"}`.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from morevp.config import ClientConfig
from morevp.core.exit import ExitData
from morevp.core.utxo import UTXO
from morevp.errors import (
    ExitDataUnavailable,
    InputValidationError,
    NotFoundError,
    RejectedTransactionError,
    UnreachableError,
)
from morevp.watcher.interface import Balance, SubmissionReceipt, WatcherInterface

logger = structlog.get_logger(__name__)


class WatcherAPIError(Exception):
    """Watcher answered with success=false."""

    def __init__(self, code: str, description: str):
        super().__init__(f"{code}: {description}")
        self.code = code
        self.description = description


class WatcherClient(WatcherInterface):
    """
    Watcher HTTP client.

    Implements the WatcherInterface using httpx.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the watcher client.

        Args:
            config: Client configuration carrying watcher_url
            transport: Optional httpx transport (used by tests)
        """
        if not config.watcher_url:
            raise InputValidationError("Watcher URL is required")

        self.config = config
        self.base_url = config.watcher_url.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=self.config.http_timeout_seconds,
            transport=self._transport,
        )
        logger.debug("watcher_client_created", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, payload: Dict[str, Any]) -> Any:
        """Call a watcher method and return the `data` of a successful response."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.post(f"/{method}", json=payload)
        except httpx.RequestError as e:
            logger.error("watcher_request_error", method=method, error=str(e))
            raise UnreachableError(f"Watcher request failed: {e}")

        if response.status_code != 200:
            logger.error(
                "watcher_request_failed",
                method=method,
                status=response.status_code,
                error=response.text,
            )
            raise UnreachableError(
                f"Watcher returned HTTP {response.status_code} for {method}"
            )

        try:
            body = response.json()
        except ValueError:
            raise UnreachableError(f"Watcher returned invalid JSON for {method}")

        data = body.get("data")
        if not body.get("success", False):
            data = data or {}
            raise WatcherAPIError(
                data.get("code", "unknown"),
                data.get("description") or "",
            )

        return data

    async def get_utxos(self, address: str) -> List[UTXO]:
        """Get UTXOs owned by an address."""
        try:
            data = await self._request("account.get_utxos", {"address": address})
        except WatcherAPIError as e:
            raise NotFoundError(f"Cannot list UTXOs of {address}: {e}", code=e.code)

        utxos = [UTXO.from_watcher(item) for item in data or []]
        logger.debug("utxos_fetched", address=address, count=len(utxos))
        return utxos

    async def get_balance(self, address: str) -> List[Balance]:
        """Get per-currency balances."""
        try:
            data = await self._request("account.get_balance", {"address": address})
        except WatcherAPIError as e:
            raise NotFoundError(f"Cannot get balance of {address}: {e}", code=e.code)

        try:
            return [
                Balance(currency=item["currency"], amount=int(item["amount"]))
                for item in data or []
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise UnreachableError(f"Malformed balance entry from watcher: {e!r}")

    async def get_status(self) -> Dict[str, Any]:
        """Get watcher status."""
        try:
            return await self._request("status.get", {})
        except WatcherAPIError as e:
            raise NotFoundError(f"Watcher status unavailable: {e}", code=e.code)

    async def get_exit_data(self, utxo_pos: int) -> ExitData:
        """Get exit proof data for a UTXO position."""
        try:
            data = await self._request("utxo.get_exit_data", {"utxo_pos": utxo_pos})
        except WatcherAPIError as e:
            raise ExitDataUnavailable(
                f"No exit data for UTXO {utxo_pos}: {e}", code=e.code
            )

        if not data:
            raise ExitDataUnavailable(f"No exit data for UTXO {utxo_pos}")

        return ExitData.from_watcher(data)

    async def submit_transaction(self, tx_hex: str) -> SubmissionReceipt:
        """Submit a signed transaction."""
        try:
            data = await self._request("transaction.submit", {"transaction": tx_hex})
        except WatcherAPIError as e:
            logger.error("tx_submit_rejected", code=e.code, description=e.description)
            raise RejectedTransactionError(
                f"Transaction rejected by watcher: {e}", code=e.code
            )

        try:
            receipt = SubmissionReceipt(
                blknum=int(data["blknum"]),
                txindex=int(data["txindex"]),
                txhash=data["txhash"],
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error("tx_submit_malformed_reply", error=repr(e))
            raise UnreachableError(f"Malformed submit reply from watcher: {e!r}")

        logger.info("tx_submitted", txhash=receipt.txhash, blknum=receipt.blknum)
        return receipt
