#!/usr/bin/env python3
"""
cryptocond Command Line Interface

Usage:
    cryptocond generate [--password <pw>] [--pepper <account>] [--salt <salt>] [--rounds <n>]
    cryptocond verify --condition <hex> (--preimage <hex> | --password <pw> --pepper <account>)
    cryptocond fulfill --preimage <hex>
    cryptocond fee --length <bytes>
"""

import argparse
import json
import os
import sys
from typing import List, Optional

from .config import LOG_JSON, LOG_LEVEL, LOG_LEVELS
from .errors import ConditionError
from .logging_config import configure_logging


def print_json(data: dict):
    print(json.dumps(data, indent=2))


def _password(args) -> Optional[str]:
    if args.password is not None:
        return args.password
    return os.getenv("CRYPTOCOND_PASSWORD")


def cmd_generate(args) -> int:
    """Generate a condition from a random or password-derived secret."""
    from .builder import build_condition

    result = build_condition(
        password=_password(args),
        pepper=args.pepper or "",
        existing_salt=args.salt,
        rounds=args.rounds,
        permanent_salt=not args.random_salt,
    )

    # A random key or random salt is unrecoverable unless written down now
    show_secrets = args.show_secrets or result.random_secret or result.salt_metadata.is_random
    output = result.model_dump()
    if not show_secrets:
        output.pop("preimage_hex")
        output["salt_metadata"].pop("value")

    print_json(output)
    if result.salt_metadata.is_random:
        print("\nWrite down the salt: the password is useless without it.", file=sys.stderr)
    elif result.random_secret:
        print("\nWrite down the preimage: it is the only way to finish the escrow.", file=sys.stderr)
    return 0


def cmd_verify(args) -> int:
    """Check a secret against a published condition."""
    from .builder import build_condition, verify_preimage

    preimage = args.preimage
    if preimage is None:
        password = _password(args)
        if password is None:
            print("Either --preimage or --password is required", file=sys.stderr)
            return 2
        preimage = build_condition(
            password=password,
            pepper=args.pepper or "",
            existing_salt=args.salt,
            rounds=args.rounds,
        ).preimage_hex

    if verify_preimage(preimage, args.condition):
        print("✓ secret matches condition")
        return 0
    print("✗ secret does not match condition")
    return 1


def cmd_fulfill(args) -> int:
    """Encode a fulfillment for a known secret key."""
    from .builder import fulfillment_from_preimage_hex

    print_json(fulfillment_from_preimage_hex(args.preimage).model_dump())
    return 0


def cmd_fee(args) -> int:
    """Show the escrow finish cost for a preimage length."""
    from .builder import fulfillment_fee_drops, preimage_cost_drops

    print_json({
        "preimage_length": args.length,
        "preimage_cost_drops": preimage_cost_drops(args.length),
        "fee_drops": fulfillment_fee_drops(args.length),
    })
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cryptocond",
        description="PREIMAGE-SHA-256 crypto-conditions for escrows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cryptocond generate                                  Random secret key
  cryptocond generate -p 'my passphrase' -P rAccount   Password-derived secret
  cryptocond verify -c A0258020... -k 3F1A...
  cryptocond fulfill -k 3F1A...
  cryptocond fee -l 32
        """
    )
    parser.add_argument(
        "--log-level", default=LOG_LEVEL, type=str.upper, choices=LOG_LEVELS,
        help="Log level (default from CRYPTOCOND_LOG_LEVEL)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # generate
    gen_parser = subparsers.add_parser("generate", help="Generate a condition")
    gen_parser.add_argument("-p", "--password", help="Password (or CRYPTOCOND_PASSWORD); omit for a random key")
    gen_parser.add_argument("-P", "--pepper", help="Per-account pepper, usually the escrow owner address")
    gen_parser.add_argument("-s", "--salt", help="Existing bcrypt salt to re-derive with")
    gen_parser.add_argument("-r", "--rounds", type=int, help="bcrypt cost factor (min 10)")
    gen_parser.add_argument("--random-salt", action="store_true", help="Use a random salt instead of a permanent one")
    gen_parser.add_argument("--show-secrets", action="store_true", help="Include preimage and salt in the output")

    # verify
    verify_parser = subparsers.add_parser("verify", help="Check a secret against a condition")
    verify_parser.add_argument("-c", "--condition", required=True, help="Published condition hex")
    verify_parser.add_argument("-k", "--preimage", help="Secret key hex")
    verify_parser.add_argument("-p", "--password", help="Password (or CRYPTOCOND_PASSWORD)")
    verify_parser.add_argument("-P", "--pepper", help="Per-account pepper")
    verify_parser.add_argument("-s", "--salt", help="bcrypt salt, if a random salt was used")
    verify_parser.add_argument("-r", "--rounds", type=int, help="bcrypt cost factor")

    # fulfill
    fulfill_parser = subparsers.add_parser("fulfill", help="Encode a fulfillment for a secret key")
    fulfill_parser.add_argument("-k", "--preimage", required=True, help="Secret key hex")

    # fee
    fee_parser = subparsers.add_parser("fee", help="Escrow finish cost for a preimage length")
    fee_parser.add_argument("-l", "--length", type=int, default=32, help="Preimage length in bytes")

    return parser


COMMANDS = {
    "generate": cmd_generate,
    "verify": cmd_verify,
    "fulfill": cmd_fulfill,
    "fee": cmd_fee,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in COMMANDS:
        parser.print_help()
        return 2

    try:
        configure_logging(level=args.log_level, json_format=LOG_JSON)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        return COMMANDS[args.command](args)
    except ConditionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
