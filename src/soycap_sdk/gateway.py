"""Typed wrappers around the Soycap backend REST endpoints."""

from typing import TYPE_CHECKING, Any, Dict, List, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .errors import BackendError
from .logging_utils import get_logger
from .types import (
    Campaign,
    ConversionInstruction,
    ConversionMetadata,
    ConversionUpdate,
    DistributionInstruction,
    UnpaidScope,
)
from .utils import bearer_headers, format_amount, path_segment, send_request

if TYPE_CHECKING:
    from .client import SoycapClient

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: Type[ModelT], data: Any, path: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BackendError(200, "invalid_response", f"Unexpected response from {path}: {e}") from e


def _parse_list(model: Type[ModelT], data: Any, path: str) -> List[ModelT]:
    if not isinstance(data, list):
        raise BackendError(200, "invalid_response", f"Expected a list from {path}")
    return [_parse(model, item, path) for item in data]


class BackendGateway:
    """One coroutine per backend capability.

    Every method needs the bearer token returned by ``AuthClient.authenticate``.
    Non-2xx answers raise ``BackendError``; transport failures raise
    ``NetworkError``. Nothing is retried.
    """

    def __init__(self, client: "SoycapClient"):
        self.client = client

    async def _get(self, path: str, token: str) -> Any:
        return await send_request(self.client._http, "GET", path, headers=bearer_headers(token))

    async def fetch_conversion_instruction(
        self, referral_id: str, amount: float, owner_address: str, token: str
    ) -> ConversionInstruction:
        """Ask the backend for the instruction that creates a conversion on-chain.

        Args:
            referral_id: Affiliate referral credited for the sale.
            amount: Pending reward amount.
            owner_address: Merchant wallet public key (fee payer and signer).
            token: Bearer token.

        Returns:
            The instruction descriptor plus the campaign and conversion IDs
            the backend assigned.
        """
        path = (
            f"/conversions/onchain/create/{path_segment(referral_id)}"
            f"/{path_segment(owner_address)}/{path_segment(format_amount(amount))}"
        )
        data = await self._get(path, token)
        instruction = _parse(ConversionInstruction, data, path)
        logger.debug(
            f"Conversion instruction issued: campaign={instruction.metadata.campaign_id} "
            f"conversion={instruction.metadata.conversion_id}"
        )
        return instruction

    async def fetch_distribution_instruction(
        self,
        campaign_id: str,
        referral_id: str,
        conversion_id: str,
        owner_address: str,
        token: str,
    ) -> DistributionInstruction:
        """Ask the backend for the instruction that pays a referral reward."""
        path = "/distributions/onchain/create"
        body = {
            "campaignId": campaign_id,
            "referralId": referral_id,
            "conversionId": conversion_id,
            "owner": owner_address,
        }
        data = await send_request(
            self.client._http, "POST", path, headers=bearer_headers(token), json=body
        )
        return _parse(DistributionInstruction, data, path)

    async def patch_conversion_metadata(
        self,
        conversion_id: str,
        metadata: Union[ConversionUpdate, Dict[str, Any]],
        token: str,
    ) -> ConversionMetadata:
        """Update the off-chain record of a conversion.

        Repeated calls overwrite the stored values; sending the same payload
        twice leaves the record unchanged.
        """
        path = f"/conversions/offchain/{path_segment(conversion_id)}"
        body = metadata.to_payload() if isinstance(metadata, ConversionUpdate) else dict(metadata)
        data = await send_request(
            self.client._http, "PATCH", path, headers=bearer_headers(token), json=body
        )
        return _parse(ConversionMetadata, data, path)

    async def list_unpaid_conversions(
        self, scope: UnpaidScope, scope_id: str, token: str
    ) -> List[ConversionMetadata]:
        """List conversions whose reward has not been paid yet.

        Args:
            scope: ``merchant`` or ``campaign``.
            scope_id: Merchant ID or campaign ID, matching ``scope``.
            token: Bearer token.
        """
        if scope == "merchant":
            path = f"/merchants/offchain/{path_segment(scope_id)}/conversions/unpaid"
        elif scope == "campaign":
            path = f"/campaigns/offchain/{path_segment(scope_id)}/conversions/unpaid"
        else:
            raise ValueError(f"Unsupported scope: {scope!r} (expected 'merchant' or 'campaign')")

        data = await self._get(path, token)
        return _parse_list(ConversionMetadata, data, path)

    async def list_unpaid_merchant_conversions(
        self, merchant_id: str, token: str
    ) -> List[ConversionMetadata]:
        return await self.list_unpaid_conversions("merchant", merchant_id, token)

    async def list_unpaid_campaign_conversions(
        self, campaign_id: str, token: str
    ) -> List[ConversionMetadata]:
        return await self.list_unpaid_conversions("campaign", campaign_id, token)

    async def list_campaigns(self, merchant_id: str, token: str) -> List[Campaign]:
        """List the merchant's campaigns."""
        path = f"/campaigns/offchain/campaigns/{path_segment(merchant_id)}"
        data = await self._get(path, token)
        return _parse_list(Campaign, data, path)

    async def fetch_campaign(self, campaign_id: str, token: str) -> Campaign:
        """Fetch one campaign."""
        path = f"/campaigns/offchain/{path_segment(campaign_id)}"
        data = await self._get(path, token)
        return _parse(Campaign, data, path)
