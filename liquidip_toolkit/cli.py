"""
Command line entry point: ``liquidip <command> ...``

Commands:
    encode          JSON campaign description -> binary config
    inspect         decode and display a binary config
    validate        validate one or more binary configs
    epoch-at        which epoch a timestamp falls in
    patent-status   on-chain status of the patent behind a license token
"""

import argparse
import sys
from typing import List, Optional

from liquidip_toolkit.commands import (
    encode_config,
    epoch_at,
    inspect_config,
    patent_status,
    validate_config,
)
from liquidip_toolkit.commands.helpers import handle_command_error
from liquidip_toolkit.commands.validation import (
    validate_chain_id,
    validate_eth_address,
    validate_timestamp,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="liquidip",
        description="LiquidIP campaign config and liquidity engine tooling",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    encode = subparsers.add_parser("encode", help="Encode a JSON campaign config")
    encode.add_argument("input", help="JSON file with the campaign description")
    encode.add_argument("-o", "--output", help="Output file (prints hex when omitted)")
    encode.add_argument(
        "--hex", action="store_true", help="Write a 0x-prefixed hex string instead of raw bytes"
    )

    inspect = subparsers.add_parser("inspect", help="Decode and display a config")
    inspect.add_argument("config", help="Binary or hex config file")
    inspect.add_argument(
        "--positions", action="store_true", help="Also list every plaintext position"
    )
    inspect.add_argument("--json", dest="json_output", help="Save the decoded config as JSON")

    validate = subparsers.add_parser("validate", help="Validate config files")
    validate.add_argument("configs", nargs="+", help="Binary or hex config files")

    epoch = subparsers.add_parser("epoch-at", help="Resolve the epoch of a timestamp")
    epoch.add_argument("config", help="Binary or hex config file")
    epoch.add_argument(
        "--timestamp", type=int, help="Unix timestamp (defaults to now)"
    )
    epoch.add_argument(
        "--chain-id", type=int, help="Use the latest block time of this chain as now"
    )

    patent = subparsers.add_parser("patent-status", help="Read a patent's verification status")
    patent.add_argument("--chain-id", type=int, required=True, help="Chain of the registry")
    patent.add_argument("--patent-id", type=int, required=True, help="Patent NFT id")
    patent.add_argument("--registry", help="Registry address (defaults to the env setting)")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "encode":
            encode_config.run(args.input, args.output, as_hex=args.hex)
        elif args.command == "inspect":
            inspect_config.run(
                args.config, show_positions=args.positions, json_output=args.json_output
            )
        elif args.command == "validate":
            summary = validate_config.run(args.configs)
            if not summary.all_valid():
                sys.exit(1)
        elif args.command == "epoch-at":
            timestamp = args.timestamp
            if timestamp is not None:
                validate_timestamp(timestamp)
            if args.chain_id is not None:
                validate_chain_id(args.chain_id)
            epoch_at.run(args.config, timestamp, args.chain_id)
        elif args.command == "patent-status":
            validate_chain_id(args.chain_id)
            registry = (
                validate_eth_address(args.registry, "registry") if args.registry else None
            )
            patent_status.run(args.chain_id, args.patent_id, registry)
    except Exception as e:
        handle_command_error(e, parser.print_usage)


if __name__ == "__main__":
    main()
