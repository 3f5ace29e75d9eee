"""Typed errors raised by the Soycap SDK.

Callers branch on the error class rather than on message text. Every error
keeps the original exception chained via ``raise ... from``.
"""

from enum import Enum
from typing import Any, Optional


class SoycapError(Exception):
    """Base class for every SDK error."""


class _HTTPStatusError(SoycapError):
    """Non-2xx answer from the Soycap backend."""

    def __init__(
        self,
        status_code: int,
        error_code: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.status_code = status_code
        self.error_code = error_code or "unknown_error"
        self.message = message or ""
        super().__init__(f"Error: {self.error_code} - {self.message}")


class AuthError(_HTTPStatusError):
    """Merchant authentication was rejected."""


class BackendError(_HTTPStatusError):
    """Backend request failed with a non-2xx status or an unreadable body."""


class NetworkError(SoycapError):
    """Transport-level failure (DNS, refused connection, timeout)."""


class KeypairError(SoycapError):
    """Keypair file missing or malformed, or public key mismatch."""


class PipelineStage(str, Enum):
    """Progress of a single sign-and-submit invocation."""

    BUILDING = "building"
    SIMULATED = "simulated"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class PipelineError(SoycapError):
    """Failure inside the transaction pipeline.

    Attributes:
        stage: Last stage the transaction reached before failing.
    """

    def __init__(self, message: str, stage: PipelineStage):
        self.stage = stage
        super().__init__(message)


class InstructionError(PipelineError):
    """Instruction descriptor could not be turned into a transaction."""

    def __init__(self, message: str):
        super().__init__(message, PipelineStage.BUILDING)


class SimulationError(PipelineError):
    """Preflight simulation reported an execution error."""

    def __init__(self, details: Any, logs: Optional[list] = None):
        self.details = details
        self.logs = logs or []
        super().__init__(f"Preflight simulation failed: {details}", PipelineStage.BUILDING)


class SubmissionError(PipelineError):
    """Node rejected the transaction or confirmation timed out."""


class ConfirmationError(PipelineError):
    """Node accepted the transaction but returned no signature."""


class PartialConversionError(SoycapError):
    """Conversion landed on-chain but the metadata update failed.

    The on-chain transaction is not rolled back. Retry only the metadata
    update with ``MerchantClient.retry_metadata_patch``.
    """

    def __init__(self, signature: str, conversion_id: str, instruction: Any, update: Any):
        self.signature = signature
        self.conversion_id = conversion_id
        self.instruction = instruction
        self.update = update
        super().__init__(
            f"Conversion {conversion_id} registered on-chain ({signature}) "
            "but metadata update failed"
        )
