"""Merchant functionality for Soycap SDK.

Composes the backend gateway and the transaction pipeline into the two
compound operations a merchant performs: registering a conversion and
distributing the referral reward for it.
"""

from typing import TYPE_CHECKING, List

from solders.keypair import Keypair

from .errors import PartialConversionError, SoycapError
from .logging_utils import CorrelationIdContext, get_logger
from .types import (
    ConversionMetadata,
    ConversionUpdate,
    DistributeRewardResult,
    RegisterConversionResult,
    RewardOutcome,
    UnpaidScope,
)

if TYPE_CHECKING:
    from .client import SoycapClient

logger = get_logger(__name__)


class MerchantClient:
    """Handles merchant-specific interactions with Soycap."""

    def __init__(self, client: "SoycapClient"):
        self.client = client

    async def register_conversion(
        self,
        referral_id: str,
        amount: float,
        business_value: float,
        token: str,
        keypair: Keypair,
    ) -> RegisterConversionResult:
        """Register a conversion on-chain and annotate it off-chain.

        Args:
            referral_id: Affiliate referral credited for the sale.
            amount: Pending reward amount (USDC).
            business_value: Gross revenue of the conversion.
            token: Bearer token from ``authenticate``.
            keypair: Merchant keypair that pays for and signs the transaction.

        Returns:
            The instruction, the transaction signature and the updated
            conversion record.

        Raises:
            PartialConversionError: The transaction confirmed but the metadata
                update failed. The conversion exists on-chain; retry the
                update with ``retry_metadata_patch``.
        """
        owner_address = str(keypair.pubkey())
        gateway = self.client.gateway

        with CorrelationIdContext("conv"):
            logger.info(f"Registering conversion for referral {referral_id} (amount={amount})")
            try:
                instruction = await gateway.fetch_conversion_instruction(
                    referral_id, amount, owner_address, token
                )
                signature = await self.client.pipeline.sign_and_submit(
                    instruction.instruction, keypair
                )
            except SoycapError as e:
                logger.error(f"Failed to register conversion: {e}")
                raise

            campaign_id = instruction.metadata.campaign_id
            conversion_id = instruction.metadata.conversion_id
            update = ConversionUpdate(
                campaign_id=campaign_id,
                referral_id=referral_id,
                owner_address=owner_address,
                rewards_pending_usdc=amount,
                business_value=business_value,
            )

            try:
                conversion = await gateway.patch_conversion_metadata(conversion_id, update, token)
            except SoycapError as e:
                logger.error(
                    f"Conversion {conversion_id} is on-chain ({signature}) "
                    f"but its metadata update failed: {e}"
                )
                raise PartialConversionError(signature, conversion_id, instruction, update) from e

            logger.info(f"Conversion {conversion_id} registered in campaign {campaign_id}: {signature}")
            return RegisterConversionResult(
                instruction=instruction, signature=signature, conversion=conversion
            )

    async def retry_metadata_patch(
        self, error: PartialConversionError, token: str
    ) -> ConversionMetadata:
        """Re-send the metadata update of a partially registered conversion."""
        logger.info(f"Retrying metadata update for conversion {error.conversion_id}")
        return await self.client.gateway.patch_conversion_metadata(
            error.conversion_id, error.update, token
        )

    async def distribute_reward(
        self,
        campaign_id: str,
        referral_id: str,
        conversion_id: str,
        token: str,
        keypair: Keypair,
    ) -> DistributeRewardResult:
        """Pay the referral reward for a registered conversion.

        The backend decides whether the conversion is eligible; its rejection
        propagates unchanged as ``BackendError``.
        """
        with CorrelationIdContext("dist"):
            logger.info(f"Distributing reward for conversion {conversion_id} (referral {referral_id})")
            try:
                instruction = await self.client.gateway.fetch_distribution_instruction(
                    campaign_id, referral_id, conversion_id, str(keypair.pubkey()), token
                )
                signature = await self.client.pipeline.sign_and_submit(
                    instruction.instruction, keypair
                )
            except SoycapError as e:
                logger.error(f"Failed to distribute reward for {conversion_id}: {e}")
                raise

            logger.info(f"Reward for conversion {conversion_id} distributed: {signature}")
            return DistributeRewardResult(instruction=instruction, signature=signature)

    async def distribute_unpaid_rewards(
        self, scope: UnpaidScope, scope_id: str, token: str, keypair: Keypair
    ) -> List[RewardOutcome]:
        """Distribute rewards for every unpaid conversion, one at a time.

        A failed distribution is recorded in its outcome and the loop moves on
        to the next conversion.
        """
        conversions = await self.client.gateway.list_unpaid_conversions(scope, scope_id, token)
        logger.info(f"Found {len(conversions)} unpaid conversions for {scope} {scope_id}")

        outcomes = []
        for conversion in conversions:
            if not (conversion.campaign_id and conversion.referral_id and conversion.conversion_id):
                outcomes.append(
                    RewardOutcome(
                        conversion_id=conversion.conversion_id,
                        error="Conversion record is missing campaign, referral or conversion ID",
                    )
                )
                continue
            try:
                result = await self.distribute_reward(
                    conversion.campaign_id,
                    conversion.referral_id,
                    conversion.conversion_id,
                    token,
                    keypair,
                )
            except SoycapError as e:
                outcomes.append(RewardOutcome(conversion_id=conversion.conversion_id, error=str(e)))
                continue
            outcomes.append(
                RewardOutcome(conversion_id=conversion.conversion_id, signature=result.signature)
            )

        return outcomes
