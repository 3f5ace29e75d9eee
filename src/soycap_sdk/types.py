"""Pydantic models for Soycap SDK."""

import base64
from typing import Any, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

UnpaidScope = Literal["merchant", "campaign"]


class AccountKey(BaseModel):
    """Account reference inside an instruction descriptor."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    pubkey: str
    is_signer: bool = Field(alias="isSigner")
    is_writable: bool = Field(alias="isWritable")


class InstructionDescriptor(BaseModel):
    """Server-issued description of a single on-chain instruction.

    ``data`` arrives either as a list of byte values, as a serialized Node.js
    Buffer (``{"type": "Buffer", "data": [...]}``) or as a base64 string.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    program_id: str = Field(alias="programId")
    keys: List[AccountKey] = Field(default_factory=list)
    data: bytes = b""

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_data(cls, value: Any) -> Union[bytes, Any]:
        if isinstance(value, dict) and value.get("type") == "Buffer":
            value = value.get("data", [])
        if isinstance(value, list):
            return bytes(value)
        if isinstance(value, str):
            return base64.b64decode(value)
        return value


class ConversionStub(BaseModel):
    """Identifiers the backend assigns when it issues a conversion instruction."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    campaign_id: str = Field(alias="campaignId")
    conversion_id: str = Field(alias="conversionId")


class ConversionInstruction(BaseModel):
    """Response of ``GET /conversions/onchain/create/...``."""

    model_config = ConfigDict(extra="allow")

    instruction: InstructionDescriptor
    metadata: ConversionStub


class DistributionInstruction(BaseModel):
    """Response of ``POST /distributions/onchain/create``."""

    model_config = ConfigDict(extra="allow")

    instruction: InstructionDescriptor


class ConversionUpdate(BaseModel):
    """Body of the off-chain conversion metadata PATCH."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    campaign_id: str = Field(alias="campaignId")
    referral_id: str = Field(alias="referralId")
    owner_address: str = Field(alias="ownerAddress")
    rewards_pending_usdc: float = Field(alias="rewardsPendingUSDC")
    business_value: float = Field(alias="businessValue")

    def to_payload(self) -> dict:
        """Serialize with the backend's field names."""
        return self.model_dump(by_alias=True)


class ConversionMetadata(BaseModel):
    """Off-chain conversion record as stored by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    conversion_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("conversionId", "id", "conversion_id")
    )
    campaign_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("campaignId", "campaign_id")
    )
    referral_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("referralId", "referral_id")
    )
    owner_address: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ownerAddress", "owner_address")
    )
    rewards_pending_usdc: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("rewardsPendingUSDC", "rewards_pending_usdc")
    )
    business_value: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("businessValue", "business_value")
    )


class Campaign(BaseModel):
    """Campaign record returned by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    campaign_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("campaignId", "id", "campaign_id")
    )
    merchant_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("merchantId", "merchant_id")
    )
    name: Optional[str] = None


class RegisterConversionResult(BaseModel):
    """Outcome of a successful conversion registration."""

    instruction: ConversionInstruction
    signature: str
    conversion: ConversionMetadata


class DistributeRewardResult(BaseModel):
    """Outcome of a successful reward distribution."""

    instruction: DistributionInstruction
    signature: str


class RewardOutcome(BaseModel):
    """Per-conversion result of a batch of sequential distributions."""

    conversion_id: Optional[str]
    signature: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.signature is not None
