"""
Command-line interface for the MoreVP client.

Each subcommand maps to one client operation. Flags build a ClientConfig
for that single invocation; MOREVP_* environment variables fill anything
not given on the command line.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional

import structlog

from morevp import __version__
from morevp.config import LOG_LEVELS, ClientConfig
from morevp.core.client import PlasmaClient
from morevp.errors import MoreVPError
from morevp.tx.keys import generate_account

logger = structlog.get_logger(__name__)


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def _positions(value: str) -> List[int]:
    """Parse a comma separated list of UTXO positions."""
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid UTXO position list: {value!r}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="plasma-cli",
        description="Client for the Plasma MoreVP network",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: MOREVP_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Output logs in JSON format (default: MOREVP_LOG_JSON)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # get <resource>
    get_parser = subparsers.add_parser("get", help="Get a resource")
    get_parser.add_argument(
        "--watcher",
        help="URL of the Watcher, e.g. https://watcher.path.net",
    )
    get_sub = get_parser.add_subparsers(dest="resource", help="Resource to get")

    utxos_parser = get_sub.add_parser("utxos", help="Retrieve UTXO data from the Watcher")
    utxos_parser.add_argument("--address", required=True, help="Owner address to search UTXOs")

    balance_parser = get_sub.add_parser("balance", help="Retrieve the balance of an address")
    balance_parser.add_argument("--address", required=True, help="Owner address")

    get_sub.add_parser("status", help="Get status from the Watcher")

    exit_data_parser = get_sub.add_parser("exit", help="Get UTXO exit information")
    exit_data_parser.add_argument("--utxo", type=int, required=True, help="UTXO position")

    # deposit
    deposit_parser = subparsers.add_parser(
        "deposit", help="Deposit ETH or ERC20 into the Plasma MoreVP contract",
    )
    deposit_parser.add_argument("--privatekey", required=True, help="Key of the depositing account")
    deposit_parser.add_argument("--client", help="Ethereum client URL")
    deposit_parser.add_argument("--contract", help="Plasma MoreVP contract address")
    deposit_parser.add_argument("--owner", required=True, help="Owner of the new UTXO")
    deposit_parser.add_argument("--amount", type=int, required=True, help="Amount in base units (wei)")
    deposit_parser.add_argument("--currency", required=True, help="Token address or ETH")

    # send
    send_parser = subparsers.add_parser("send", help="Transfer value from one UTXO")
    send_parser.add_argument("--fromutxo", type=int, required=True, help="UTXO position to send from")
    send_parser.add_argument("--privatekey", required=True, help="Key of the UTXO owner")
    send_parser.add_argument("--toowner", required=True, help="New owner")
    send_parser.add_argument("--toamount", type=int, required=True, help="Amount to transfer")
    send_parser.add_argument("--watcher", help="URL of the Watcher")

    # split
    split_parser = subparsers.add_parser("split", help="Split one UTXO into several")
    split_parser.add_argument("--fromutxo", type=int, required=True, help="UTXO position to split")
    split_parser.add_argument("--privatekey", required=True, help="Key of the UTXO owner")
    split_parser.add_argument("--toowner", required=True, help="Owner of the new UTXOs")
    split_parser.add_argument("--outputs", type=int, required=True, help="Number of outputs (2 to 4)")
    split_parser.add_argument("--watcher", help="URL of the Watcher")

    # merge
    merge_parser = subparsers.add_parser("merge", help="Merge UTXOs of one owner into one")
    merge_parser.add_argument(
        "--fromutxo",
        type=_positions,
        action="extend",
        required=True,
        help="UTXO positions to merge, repeated or comma separated",
    )
    merge_parser.add_argument("--privatekey", required=True, help="Key of the UTXO owner")
    merge_parser.add_argument("--watcher", help="URL of the Watcher")

    # exit
    exit_parser = subparsers.add_parser("exit", help="Standard exit a UTXO to the root chain")
    exit_parser.add_argument("--utxo", type=int, required=True, help="UTXO position to exit")
    exit_parser.add_argument("--privatekey", required=True, help="Key of the UTXO owner")
    exit_parser.add_argument("--watcher", help="URL of the Watcher")
    exit_parser.add_argument("--contract", help="Plasma MoreVP contract address")
    exit_parser.add_argument("--client", help="Ethereum client URL")

    # process
    process_parser = subparsers.add_parser(
        "process", help="Process exits that have completed the challenge period",
    )
    process_parser.add_argument("--privatekey", required=True, help="Key paying the gas")
    process_parser.add_argument("--token", required=True, help="Token address or ETH")
    process_parser.add_argument("--contract", help="Plasma MoreVP contract address")
    process_parser.add_argument("--client", help="Ethereum client URL")
    process_parser.add_argument(
        "--batch-size",
        type=int,
        help="Maximum exits to process in this call (default: 100)",
    )

    # create account
    create_parser_ = subparsers.add_parser("create", help="Create a resource")
    create_sub = create_parser_.add_subparsers(dest="resource", help="Resource to create")
    create_sub.add_parser("account", help="Create a public/private keypair")

    return parser


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Build the per-invocation configuration from parsed flags."""
    overrides = {
        "watcher_url": getattr(args, "watcher", None),
        "eth_client_url": getattr(args, "client", None),
        "contract_address": getattr(args, "contract", None),
        "log_level": getattr(args, "log_level", None),
        "log_json": getattr(args, "log_json", None),
    }
    return ClientConfig(**{k: v for k, v in overrides.items() if v is not None})


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2))


async def run_command(
    args: argparse.Namespace,
    config: ClientConfig,
    client: Optional[PlasmaClient] = None,
) -> int:
    """
    Run one parsed command.

    Returns:
        Process exit status
    """
    if args.command == "create":
        account = generate_account()
        _print({"address": account.address, "private_key": account.private_key})
        return 0

    client = client or PlasmaClient(config)

    try:
        if args.command == "get":
            if args.resource == "utxos":
                utxos = await client.get_utxos(args.address)
                _print([u.to_dict() for u in utxos])
            elif args.resource == "balance":
                balances = await client.get_balance(args.address)
                _print([b.to_dict() for b in balances])
            elif args.resource == "status":
                _print(await client.get_status())
            elif args.resource == "exit":
                logger.info("getting_exit_data", utxo_pos=args.utxo)
                try:
                    data = await client.get_exit_data(args.utxo)
                except MoreVPError as e:
                    if not config.lenient_exit_data:
                        raise
                    logger.warning("exit_data_unavailable", utxo_pos=args.utxo, error=str(e))
                    return 0
                _print(data.to_dict())

        elif args.command == "deposit":
            result = await client.deposit(
                args.privatekey, args.owner, args.amount, args.currency,
            )
            _print(result.to_dict())

        elif args.command == "send":
            result = await client.send(
                args.privatekey, args.fromutxo, args.toowner, args.toamount,
            )
            _print(result.to_dict())

        elif args.command == "split":
            result = await client.split(
                args.privatekey, args.fromutxo, args.toowner, args.outputs,
            )
            _print(result.to_dict())

        elif args.command == "merge":
            result = await client.merge(args.privatekey, args.fromutxo)
            _print(result.to_dict())

        elif args.command == "exit":
            logger.info("attempting_exit", utxo_pos=args.utxo)
            result = await client.start_exit(args.utxo, args.privatekey)
            _print(result.to_dict())

        elif args.command == "process":
            logger.info("processing_exits", token=args.token)
            result = await client.process_exits(
                args.privatekey, args.token, args.batch_size,
            )
            _print(result.to_dict())

    except MoreVPError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        return 1
    finally:
        await client.close()

    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command in ("get", "create") and not args.resource:
        parser.error(f"{args.command} needs a resource")

    try:
        config = build_config(args)
    except ValueError as e:
        setup_logging()
        logger.error("invalid_configuration", error=str(e))
        sys.exit(1)

    setup_logging(config.log_level, config.log_json)

    sys.exit(asyncio.run(run_command(args, config)))


if __name__ == "__main__":
    main()
