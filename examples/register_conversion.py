"""
Register a conversion and pay its referral reward.

Assumes a .env with SOYCAP_API_URL, SOYCAP_API_KEY, SOLANA_RPC_URL and a
funded devnet wallet in ./keypair.json (see scripts/generate_keypair.py).
"""
import asyncio

from soycap_sdk import PartialConversionError, Settings, SoycapClient, SoycapError
from soycap_sdk.logging_utils import setup_logging


async def main():
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_format)
    keypair = settings.load_keypair()

    print(f"🚀 Merchant wallet: {keypair.pubkey()}")

    async with SoycapClient.from_settings(settings) as client:
        try:
            token = await client.authenticate()

            # 0.1 USDC reward for a $25 sale referred by REF1
            try:
                result = await client.register_conversion("REF1", 0.1, 25.0, token, keypair)
            except PartialConversionError as e:
                print(f"⚠️  On-chain OK ({e.signature}), metadata failed; retrying once")
                await client.merchant.retry_metadata_patch(e, token)
                return

            print(f"✅ Conversion {result.instruction.metadata.conversion_id} registered")
            print(f"   Signature: {result.signature}")

            reward = await client.distribute_reward(
                result.instruction.metadata.campaign_id,
                "REF1",
                result.instruction.metadata.conversion_id,
                token,
                keypair,
            )
            print(f"✅ Reward distributed: {reward.signature}")

        except SoycapError as e:
            print(f"❌ {type(e).__name__}: {e}")


if __name__ == "__main__":
    asyncio.run(main())
