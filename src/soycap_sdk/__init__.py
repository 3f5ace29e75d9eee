"""Soycap SDK: register affiliate conversions on Solana and distribute rewards."""

from .client import SoycapClient
from .config import Settings, validate_settings
from .errors import (
    AuthError,
    BackendError,
    ConfirmationError,
    InstructionError,
    KeypairError,
    NetworkError,
    PartialConversionError,
    PipelineError,
    PipelineStage,
    SimulationError,
    SoycapError,
    SubmissionError,
)
from .keypair import generate_keypair_json, keypair_from_base58, load_keypair
from .types import (
    AccountKey,
    Campaign,
    ConversionInstruction,
    ConversionMetadata,
    ConversionUpdate,
    DistributeRewardResult,
    DistributionInstruction,
    InstructionDescriptor,
    RegisterConversionResult,
    RewardOutcome,
)

__all__ = [
    "SoycapClient",
    "Settings",
    "validate_settings",
    "load_keypair",
    "keypair_from_base58",
    "generate_keypair_json",
    "SoycapError",
    "AuthError",
    "BackendError",
    "NetworkError",
    "KeypairError",
    "PipelineError",
    "PipelineStage",
    "InstructionError",
    "SimulationError",
    "SubmissionError",
    "ConfirmationError",
    "PartialConversionError",
    "AccountKey",
    "InstructionDescriptor",
    "ConversionInstruction",
    "DistributionInstruction",
    "ConversionUpdate",
    "ConversionMetadata",
    "Campaign",
    "RegisterConversionResult",
    "DistributeRewardResult",
    "RewardOutcome",
]
