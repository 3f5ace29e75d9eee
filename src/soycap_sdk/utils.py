"""Utility functions for Soycap SDK."""

from typing import Any, Dict, Optional, Type
from urllib.parse import quote

import httpx

from .errors import BackendError, NetworkError, _HTTPStatusError
from .logging_utils import get_logger

logger = get_logger(__name__)


def bearer_headers(token: str) -> Dict[str, str]:
    """Authorization header for backend calls."""
    if not token:
        raise ValueError("A bearer token is required; call authenticate() first")
    return {"Authorization": f"Bearer {token}"}


def path_segment(value: Any) -> str:
    """URL-quote a single path segment."""
    return quote(str(value), safe="")


def format_amount(amount: float) -> str:
    """Render an amount the way the backend expects it in a URL.

    Whole numbers drop the trailing ``.0`` (``1.0`` -> ``1``).
    """
    if isinstance(amount, float) and amount.is_integer():
        return str(int(amount))
    return str(amount)


def error_from_response(
    response: httpx.Response, error_cls: Type[_HTTPStatusError] = BackendError
) -> _HTTPStatusError:
    """Build a typed error from a non-2xx backend response.

    The backend answers errors with ``{"error": ..., "message": ...}``. Bodies
    that are not JSON keep their raw text as the message.
    """
    error_code: Optional[str] = None
    message: Optional[str] = None
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error_code = body.get("error")
        message = body.get("message")
    if error_code is None and message is None:
        error_code = f"http_{response.status_code}"
        message = response.text or response.reason_phrase

    return error_cls(response.status_code, str(error_code) if error_code is not None else None, message)


async def send_request(
    http: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    json: Optional[Any] = None,
    error_cls: Type[_HTTPStatusError] = BackendError,
) -> Any:
    """Send one backend request and return the decoded JSON body.

    Raises:
        NetworkError: On transport failure (DNS, refused connection, timeout).
        BackendError: On a non-2xx status or a body that is not JSON
            (``error_cls`` replaces ``BackendError`` when given).
    """
    try:
        response = await http.request(method, path, headers=headers, json=json)
    except httpx.TransportError as e:
        logger.warning(f"{method} {path} failed: {e!r}")
        raise NetworkError(f"{method} {path} failed: {e}") from e

    if not response.is_success:
        error = error_from_response(response, error_cls)
        logger.warning(f"{method} {path} returned {response.status_code}: {error}")
        raise error

    try:
        return response.json()
    except ValueError as e:
        raise error_cls(response.status_code, "invalid_response", "Response body is not JSON") from e
