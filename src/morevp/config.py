"""
Configuration management for the MoreVP client.

Supports configuration via environment variables and .env files. The CLI
builds one ClientConfig per invocation and passes it to the components
that need it; nothing here is process-global.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ETH_CURRENCY = "0x0000000000000000000000000000000000000000"

# Bond the root chain expects alongside startStandardExit (wei)
DEFAULT_EXIT_BOND_WEI = 31415926535

# Exits advanced per processExits call when the caller gives no batch size
DEFAULT_PROCESS_BATCH_SIZE = 100

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ClientConfig(BaseSettings):
    """
    Configuration settings for the MoreVP client.

    All settings can be configured via environment variables with the MOREVP_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOREVP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
    )

    # Watcher settings
    watcher_url: Optional[str] = Field(
        default=None,
        description="Base URL of the Watcher, e.g. https://watcher.path.net"
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single Watcher HTTP request"
    )

    # Root chain settings
    eth_client_url: Optional[str] = Field(
        default=None,
        description="Ethereum JSON-RPC endpoint (Infura or a local node)"
    )
    contract_address: Optional[str] = Field(
        default=None,
        description="Address of the Plasma MoreVP root chain contract"
    )
    exit_bond_wei: int = Field(
        default=DEFAULT_EXIT_BOND_WEI,
        ge=0,
        description="Bond sent with startStandardExit"
    )
    process_batch_size: int = Field(
        default=DEFAULT_PROCESS_BATCH_SIZE,
        ge=1,
        description="Maximum exits advanced by one processExits call"
    )
    gas_limit: int = Field(
        default=500_000,
        ge=21_000,
        description="Gas limit for root chain transactions"
    )
    receipt_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="How long to wait for a root chain receipt"
    )

    # Behaviour settings
    lenient_exit_data: bool = Field(
        default=True,
        description="Treat a failed `get exit` lookup as a warning with exit status 0"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level
