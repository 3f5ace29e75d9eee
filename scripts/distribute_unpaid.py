#!/usr/bin/env python3
"""Pay out every unpaid conversion for the configured merchant (or one campaign).

    uv run python scripts/distribute_unpaid.py [--campaign CAMPAIGN_ID]

Reads SOYCAP_API_URL, SOYCAP_API_KEY, SOYCAP_MERCHANT_ID, SOLANA_RPC_URL and
KEYPAIR_PATH (or SOYCAP_PRIVATE_KEY) from the environment / .env.
"""

import argparse
import asyncio
import sys

from soycap_sdk import Settings, SoycapClient, SoycapError, validate_settings
from soycap_sdk.logging_utils import get_logger, setup_logging

logger = get_logger("soycap_sdk.scripts.distribute_unpaid")


async def distribute(settings: Settings, campaign_id: str = "") -> int:
    keypair = settings.load_keypair()
    scope, scope_id = ("campaign", campaign_id) if campaign_id else ("merchant", settings.soycap_merchant_id)
    if not scope_id:
        print("❌ Set SOYCAP_MERCHANT_ID or pass --campaign", file=sys.stderr)
        return 1

    async with SoycapClient.from_settings(settings) as client:
        token = await client.authenticate()
        outcomes = await client.merchant.distribute_unpaid_rewards(scope, scope_id, token, keypair)

    failed = [o for o in outcomes if not o.ok]
    for outcome in outcomes:
        if outcome.ok:
            print(f"✅ {outcome.conversion_id}: {outcome.signature}")
        else:
            print(f"❌ {outcome.conversion_id}: {outcome.error}")

    print(f"\nDistributed {len(outcomes) - len(failed)}/{len(outcomes)} rewards")
    return 1 if failed else 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Distribute rewards for unpaid conversions")
    parser.add_argument("--campaign", default="", help="Only this campaign's conversions")
    parser.add_argument("--env-file", default=".env")
    args = parser.parse_args(argv)

    settings = Settings.from_env(args.env_file)
    setup_logging(settings.log_level, settings.log_format)

    try:
        validate_settings(settings)
        return asyncio.run(distribute(settings, args.campaign))
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except SoycapError as e:
        logger.error(f"Distribution aborted: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
