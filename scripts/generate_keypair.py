#!/usr/bin/env python3
"""
Write a keypair.json for the merchant wallet.

Takes the base58 private key exported from a wallet plus the wallet address,
checks that they belong together and writes the JSON byte array the SDK
loads with ``load_keypair``.

    uv run python scripts/generate_keypair.py <PRIVATE_KEY_BASE58> <PUBLIC_KEY> [-o keypair.json]

Run without arguments to create a brand-new devnet wallet instead.
"""

import argparse
import sys

import base58  # type: ignore
from solders.keypair import Keypair

from soycap_sdk import KeypairError, generate_keypair_json
from soycap_sdk.keypair import DEFAULT_KEYPAIR_PATH


def _new_wallet() -> tuple:
    keypair = Keypair()
    return base58.b58encode(bytes(keypair)).decode("ascii"), str(keypair.pubkey())


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a Soycap merchant keypair file")
    parser.add_argument("private_key", nargs="?", help="Base58-encoded 64-byte secret key")
    parser.add_argument("public_key", nargs="?", help="Expected wallet address")
    parser.add_argument("-o", "--output", default=DEFAULT_KEYPAIR_PATH, help="Output path")
    args = parser.parse_args(argv)

    if bool(args.private_key) != bool(args.public_key):
        parser.error("private_key and public_key must be given together")

    if args.private_key:
        private_key, public_key = args.private_key, args.public_key
    else:
        print("🔑 No key given, generating a new Solana wallet...")
        private_key, public_key = _new_wallet()

    try:
        keypair = generate_keypair_json(private_key, public_key, args.output)
    except KeypairError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print(f"✅ Keypair saved to {args.output}")
    print(f"📍 Address: {keypair.pubkey()}")

    if not args.private_key:
        print("\n🪙 Fund it on devnet: https://faucet.solana.com/")

    return 0


if __name__ == "__main__":
    sys.exit(main())
