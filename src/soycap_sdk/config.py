"""Configuration for Soycap SDK scripts and applications.

Loads settings from environment variables (and an optional ``.env`` file)
with sensible defaults. The SDK itself never reads configuration implicitly:
build a ``Settings`` and hand it to ``SoycapClient.from_settings``.
"""

from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings
from solders.keypair import Keypair

from .keypair import DEFAULT_KEYPAIR_PATH, keypair_from_base58, load_keypair


class Settings(BaseSettings):
    """Merchant-side settings."""

    # Soycap backend
    soycap_api_url: str = Field(default="https://api.soycap.io", description="Soycap REST API base URL")
    soycap_api_key: str = Field(default="", description="Merchant API key")
    soycap_merchant_id: str = Field(default="", description="Merchant identifier for unpaid queries")

    # Solana
    solana_rpc_url: str = Field(default="https://api.devnet.solana.com", description="Solana RPC endpoint")
    solana_commitment: Literal["processed", "confirmed", "finalized"] = Field(default="confirmed")

    # Signing wallet
    keypair_path: str = Field(default=DEFAULT_KEYPAIR_PATH, description="JSON byte-array keypair file")
    soycap_private_key: str = Field(default="", description="Base58 secret key, used instead of the file when set")

    http_timeout: float = Field(default=30.0, description="Timeout in seconds for backend and RPC calls")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="text")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env") -> "Settings":
        """Load ``env_file`` into the process environment, then read settings."""
        if env_file:
            load_dotenv(env_file)
        return cls()

    def load_keypair(self) -> Keypair:
        """Return the signing keypair.

        ``SOYCAP_PRIVATE_KEY`` wins over ``KEYPAIR_PATH`` when both are set.
        """
        if self.soycap_private_key:
            return keypair_from_base58(self.soycap_private_key)
        return load_keypair(self.keypair_path)


def validate_settings(settings: Settings, require_keypair: bool = True) -> None:
    """Validate that the settings needed to talk to Soycap are present.

    Args:
        settings: Settings to check.
        require_keypair: Whether a signing wallet must be configured.

    Raises:
        ValueError: If required configuration is missing.
    """
    errors = []

    if not settings.soycap_api_url:
        errors.append("SOYCAP_API_URL must be set")
    if not settings.soycap_api_key:
        errors.append("SOYCAP_API_KEY must be set")
    if not settings.solana_rpc_url:
        errors.append("SOLANA_RPC_URL must be set")
    if require_keypair and not settings.soycap_private_key and not settings.keypair_path:
        errors.append("Either SOYCAP_PRIVATE_KEY or KEYPAIR_PATH must be set")

    if errors:
        error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)
