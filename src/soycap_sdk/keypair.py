"""Loading and generating the merchant signing keypair.

The keypair file is the Solana CLI format: a JSON array holding the 64 bytes
of the secret key (32-byte seed followed by the 32-byte public key).
"""

import json
from pathlib import Path
from typing import Union

import base58
from solders.keypair import Keypair

from .errors import KeypairError
from .logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_KEYPAIR_PATH = "./keypair.json"
SECRET_KEY_LENGTH = 64


def _keypair_from_secret(secret: bytes) -> Keypair:
    if len(secret) != SECRET_KEY_LENGTH:
        raise KeypairError(
            f"Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(secret)}"
        )
    try:
        return Keypair.from_bytes(secret)
    except ValueError as e:
        raise KeypairError(f"Invalid secret key: {e}") from e


def load_keypair(keypair_path: Union[str, Path] = DEFAULT_KEYPAIR_PATH) -> Keypair:
    """Load a keypair from a JSON byte-array file.

    Args:
        keypair_path: Path to the keypair file.

    Returns:
        The loaded keypair.

    Raises:
        KeypairError: If the file is missing, not JSON, or not a valid secret key.
    """
    path = Path(keypair_path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise KeypairError(f"Keypair file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise KeypairError(f"Could not read keypair file {path}: {e}") from e

    if not isinstance(raw, list) or not all(isinstance(b, int) and 0 <= b <= 255 for b in raw):
        raise KeypairError(f"Keypair file {path} must contain a JSON array of bytes")

    keypair = _keypair_from_secret(bytes(raw))
    logger.debug(f"Loaded keypair {keypair.pubkey()} from {path}")
    return keypair


def keypair_from_base58(private_key_base58: str) -> Keypair:
    """Decode a base58 secret key (the format wallets export) into a keypair."""
    try:
        secret = base58.b58decode(private_key_base58.strip())
    except ValueError as e:
        raise KeypairError(f"Private key is not valid base58: {e}") from e
    return _keypair_from_secret(secret)


def generate_keypair_json(
    private_key_base58: str,
    expected_public_key: str,
    output_path: Union[str, Path] = DEFAULT_KEYPAIR_PATH,
) -> Keypair:
    """Write a keypair file from a base58 secret key.

    The derived public key must equal ``expected_public_key``; otherwise
    nothing is written.

    Args:
        private_key_base58: Base58-encoded 64-byte secret key.
        expected_public_key: Public key the secret is supposed to belong to.
        output_path: Where to write the JSON byte array.

    Returns:
        The decoded keypair.

    Raises:
        KeypairError: If the secret cannot be decoded or the public key does not match.
    """
    keypair = keypair_from_base58(private_key_base58)

    if str(keypair.pubkey()) != expected_public_key.strip():
        raise KeypairError("Public key does not match the provided private key.")

    path = Path(output_path)
    try:
        path.write_text(json.dumps(list(bytes(keypair)), indent=2), encoding="utf-8")
    except OSError as e:
        raise KeypairError(f"Could not write keypair file {path}: {e}") from e

    logger.info(f"Keypair for {keypair.pubkey()} saved to {path}")
    return keypair
