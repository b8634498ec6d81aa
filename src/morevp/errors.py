"""
Error taxonomy for the MoreVP client.

Every failure a command can surface derives from MoreVPError so the CLI
can map it to a non-zero exit status in one place.
"""

from typing import Optional


class MoreVPError(Exception):
    """Base class for all client errors."""
    pass


# =============================================================================
# Input validation (raised before any network or signing work)
# =============================================================================

class InputValidationError(MoreVPError):
    """Malformed or missing parameter, or a broken transaction invariant."""
    pass


class InvalidKey(InputValidationError):
    """Private key is not a valid secp256k1 scalar."""
    pass


class InsufficientFunds(InputValidationError):
    """Requested amount exceeds the value of the input UTXO."""
    pass


class InvalidOutputCount(InputValidationError):
    """Output count outside the range allowed for the transaction type."""
    pass


class InvalidInputCount(InputValidationError):
    """Input count outside the range allowed for the transaction type."""
    pass


class CurrencyMismatch(InputValidationError):
    """Inputs span more currencies than the transaction type allows."""
    pass


# =============================================================================
# Lookup and transport
# =============================================================================

class NotFoundError(MoreVPError):
    """Address, UTXO or exit data is absent from the watcher."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ExitDataUnavailable(NotFoundError):
    """Watcher cannot produce exit data for the requested position."""
    pass


class UnreachableError(MoreVPError):
    """Transport failure talking to the watcher or the Ethereum client."""
    pass


# =============================================================================
# Network and chain rejections
# =============================================================================

class RejectedTransactionError(MoreVPError):
    """Watcher refused a transaction the client considered valid."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ContractCallError(MoreVPError):
    """Root-chain contract call reverted or failed."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash
