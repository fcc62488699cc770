#!/usr/bin/env python3
import argparse
import logging
import sys
from datetime import datetime, timezone

from solana.rpc.api import Client

from token_vesting_svm.addresses import parse_address
from token_vesting_svm.config import load_settings
from token_vesting_svm.errors import VestingError
from token_vesting_svm.explorer import explorer_link
from token_vesting_svm.ledger import RpcLedgerClient
from token_vesting_svm.signers import KeypairSigner
from token_vesting_svm.vesting import VestingClient


def parse_release_date(value):
    """ISO 8601 date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid release date: {value}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_time(seconds):
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def print_contract(vesting_account, info, cluster):
    print(f"Contract: {vesting_account}")
    print(f"  Explorer: {explorer_link('address', str(vesting_account), cluster)}")
    print(f"  Token: {info.mint_address}")
    print(f"  Destination: {info.destination_address}")
    print(f"  Created at: {format_time(info.creation_time)}")
    for index, schedule in enumerate(info.schedules, start=1):
        print(f"  #{index} release {format_time(schedule.release_time)} amount {schedule.amount}")


def build_parser():
    parser = argparse.ArgumentParser(description="Lock and unlock tokens with the token vesting program")
    parser.add_argument("--rpc-url", help="Solana RPC URL (default: SOLANA_RPC_URL)")
    parser.add_argument("--keypair", help="Signer keypair file (default: VESTING_KEYPAIR_PATH)")
    parser.add_argument("--dry-run", action="store_true", help="Build instructions without submitting")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    lock = sub.add_parser("lock", help="Lock tokens into a new vesting contract")
    lock.add_argument("--mint", required=True)
    lock.add_argument("--destination", required=True, help="Owner wallet receiving unlocked tokens")
    lock.add_argument("--amount", required=True, help="Whole tokens released at each date")
    lock.add_argument("--release", required=True, action="append", type=parse_release_date,
                      help="Release date, repeat for several schedules")

    unlock = sub.add_parser("unlock", help="Release due tokens of a contract")
    unlock.add_argument("--seed", required=True)
    unlock.add_argument("--mint", required=True)

    change = sub.add_parser("change-destination", help="Send future unlocks to a new account")
    change.add_argument("--seed", required=True)
    change.add_argument("--new-owner")
    change.add_argument("--new-account")

    info = sub.add_parser("info", help="Show a vesting contract")
    info.add_argument("vesting_account")

    sub.add_parser("list", help="List every vesting contract, oldest first")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    settings = load_settings()
    rpc_url = args.rpc_url or settings.rpc_url
    client = Client(rpc_url, commitment=settings.commitment)
    ledger = RpcLedgerClient(client, settings.commitment)

    signer = None
    try:
        if args.command in ("lock", "unlock", "change-destination"):
            signer = KeypairSigner.from_file(client, args.keypair or settings.keypair_path)
        vesting = VestingClient(ledger, signer)

        if args.command == "info":
            vesting_account = parse_address(args.vesting_account)
            print_contract(vesting_account, vesting.get_contract_info(vesting_account), settings.cluster)
            return 0

        if args.command == "list":
            for contract in vesting.recent_contracts():
                print_contract(contract.vesting_account, contract.info, settings.cluster)
            return 0

        wallet = signer.connect()
        if args.command == "lock":
            plan = vesting.lock_by_dates(
                parse_address(args.mint),
                wallet,
                parse_address(args.destination),
                args.release,
                args.amount,
            )
            print(f"Seed: {plan.seed}")
            print(f"Source token account: {plan.source_token_account}")
            print(f"Vesting account: {plan.vesting_account}")
            print(f"Vesting token account: {plan.vesting_token_account}")
        elif args.command == "unlock":
            plan = vesting.unlock(args.seed, parse_address(args.mint))
            print_contract(plan.vesting_account, plan.contract_info, settings.cluster)
            now = int(datetime.now(tz=timezone.utc).timestamp())
            print(f"Pending schedules: {len(plan.contract_info.pending_schedules(now))}")
        else:
            plan = vesting.change_destination(
                args.seed,
                wallet,
                new_destination_owner=parse_address(args.new_owner) if args.new_owner else None,
                new_destination_account=parse_address(args.new_account) if args.new_account else None,
            )
            print(f"New destination: {plan.new_destination_account}")

        print(f"Instructions: {len(plan.instructions)}")
        if args.dry_run:
            return 0

        signature = vesting.submit(plan, wallet)
        print(f"Transaction signature: {signature}")
        print(f"Explorer: {explorer_link('tx', str(signature), settings.cluster)}")
        return 0
    except (VestingError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if signer is not None:
            signer.disconnect()


if __name__ == "__main__":
    sys.exit(main())
