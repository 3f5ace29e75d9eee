"""Merchant authentication against the Soycap backend."""

from typing import TYPE_CHECKING, Optional

from .errors import AuthError
from .logging_utils import get_logger
from .utils import send_request

if TYPE_CHECKING:
    from .client import SoycapClient

logger = get_logger(__name__)


class AuthClient:
    """Exchanges the merchant API key for a bearer token."""

    def __init__(self, client: "SoycapClient"):
        self.client = client

    async def authenticate(self, api_key: Optional[str] = None) -> str:
        """Authenticate the merchant.

        Every call is a fresh round trip; tokens are neither cached nor
        refreshed here.

        Args:
            api_key: API key to use instead of the client's own.

        Returns:
            The bearer token.

        Raises:
            AuthError: If the backend rejects the key or returns no token.
            NetworkError: On transport failure.
        """
        key = api_key or self.client.api_key
        if not key:
            raise ValueError("api_key is required to authenticate")

        data = await send_request(
            self.client._http,
            "GET",
            "/merchants/authenticate",
            headers={"X-API-Key": key},
            error_cls=AuthError,
        )

        token = data.get("token") if isinstance(data, dict) else None
        if not token or not isinstance(token, str):
            raise AuthError(200, "invalid_response", "Authentication response contained no token")

        logger.info("Merchant authenticated")
        return token
