"""Core Soycap Client."""

from typing import Optional

import httpx
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed
from solders.keypair import Keypair

from .auth import AuthClient
from .config import Settings
from .gateway import BackendGateway
from .merchant import MerchantClient
from .pipeline import TransactionPipeline
from .types import DistributeRewardResult, RegisterConversionResult


class SoycapClient:
    """Main entry point for Soycap SDK.

    Owns the backend HTTP client and the Solana RPC connection. Construct one
    per application and pass it where it is needed.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        rpc_url: str = "https://api.devnet.solana.com",
        commitment: Commitment = Confirmed,
        timeout: float = 30.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        rpc: Optional[AsyncClient] = None,
    ):
        """Initialize Soycap Client.

        Args:
            api_url: Base URL of the Soycap REST API.
            api_key: Merchant API key, sent only to ``/merchants/authenticate``.
            rpc_url: Solana JSON-RPC endpoint.
            commitment: Commitment level to wait for after submission.
            timeout: Timeout in seconds for backend and RPC calls.
            http_transport: Optional httpx transport (tests, proxies).
            rpc: Optional pre-built RPC client; ``rpc_url`` is ignored when given.
        """
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.rpc_url = rpc_url
        self.commitment = commitment

        self._http = httpx.AsyncClient(
            base_url=self.api_url,
            timeout=timeout,
            transport=http_transport,
            headers={"Content-Type": "application/json"},
        )
        self._rpc = rpc or AsyncClient(rpc_url, commitment=commitment, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "SoycapClient":
        """Build a client from ``Settings``."""
        return cls(
            api_url=settings.soycap_api_url,
            api_key=settings.soycap_api_key,
            rpc_url=settings.solana_rpc_url,
            commitment=settings.solana_commitment,
            timeout=settings.http_timeout,
            **kwargs,
        )

    async def close(self):
        """Close the HTTP client and the RPC connection."""
        await self._http.aclose()
        await self._rpc.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return f"SoycapClient(api_url={self.api_url!r}, rpc_url={self.rpc_url!r})"

    @property
    def auth(self) -> AuthClient:
        """Merchant authentication."""
        return AuthClient(self)

    @property
    def gateway(self) -> BackendGateway:
        """Typed access to the backend REST endpoints."""
        return BackendGateway(self)

    @property
    def pipeline(self) -> TransactionPipeline:
        """Simulate, sign, submit and confirm backend-issued instructions."""
        return TransactionPipeline(self._rpc, commitment=self.commitment)

    @property
    def merchant(self) -> MerchantClient:
        """Conversion registration and reward distribution."""
        return MerchantClient(self)

    async def authenticate(self, api_key: Optional[str] = None) -> str:
        """Obtain a bearer token for the merchant."""
        return await self.auth.authenticate(api_key)

    async def register_conversion(
        self,
        referral_id: str,
        amount: float,
        business_value: float,
        token: str,
        keypair: Keypair,
    ) -> RegisterConversionResult:
        """Register a conversion on-chain and record its business value."""
        return await self.merchant.register_conversion(
            referral_id, amount, business_value, token, keypair
        )

    async def distribute_reward(
        self,
        campaign_id: str,
        referral_id: str,
        conversion_id: str,
        token: str,
        keypair: Keypair,
    ) -> DistributeRewardResult:
        """Pay the referral reward for a conversion."""
        return await self.merchant.distribute_reward(
            campaign_id, referral_id, conversion_id, token, keypair
        )
