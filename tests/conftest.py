import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from soycap_sdk import SoycapClient

API_URL = "http://test.soycap"
API_KEY = "test-api-key"
TOKEN = "tok-123"
PROGRAM_ID = "11111111111111111111111111111111"
REWARD_VAULT = str(Pubkey.new_unique())


def instruction_for(owner: str) -> dict:
    """Instruction descriptor shaped like the backend's JSON."""
    return {
        "programId": PROGRAM_ID,
        "keys": [
            {"pubkey": owner, "isSigner": True, "isWritable": True},
            {"pubkey": REWARD_VAULT, "isSigner": False, "isWritable": True},
        ],
        "data": {"type": "Buffer", "data": [2, 0, 0, 0, 64, 66, 15, 0]},
    }


class FakeBackend:
    """In-memory stand-in for the Soycap REST API."""

    def __init__(self):
        self.requests = []
        self.conversions = {}
        self.fail_with = None  # (status, body) returned for every bearer call
        self.fail_paths = {}  # (method, path) -> (status, body)

    def _json(self, status, body):
        return httpx.Response(status, json=body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        parts = path.strip("/").split("/")

        if (request.method, path) in self.fail_paths:
            return self._json(*self.fail_paths[(request.method, path)])

        if path == "/merchants/authenticate":
            if request.headers.get("X-API-Key") != API_KEY:
                return self._json(401, {"error": "unauthorized", "message": "Invalid API key"})
            return self._json(200, {"token": TOKEN})

        if request.headers.get("Authorization") != f"Bearer {TOKEN}":
            return self._json(401, {"error": "unauthorized", "message": "Missing bearer token"})
        if self.fail_with:
            return self._json(*self.fail_with)

        if parts[:3] == ["conversions", "onchain", "create"]:
            _, _, _, referral_id, owner, amount = parts
            return self._json(
                200,
                {
                    "instruction": instruction_for(owner),
                    "metadata": {"campaignId": "camp-1", "conversionId": f"conv-{referral_id}"},
                },
            )

        if path == "/distributions/onchain/create":
            body = json.loads(request.content)
            if body["conversionId"] not in self.conversions:
                return self._json(404, {"error": "not_found", "message": "Conversion not found"})
            return self._json(200, {"instruction": instruction_for(body["owner"])})

        if parts[:2] == ["conversions", "offchain"] and request.method == "PATCH":
            conversion_id = parts[2]
            stored = self.conversions.setdefault(conversion_id, {"conversionId": conversion_id})
            stored.update(json.loads(request.content))
            return self._json(200, dict(stored))

        if parts[-2:] == ["conversions", "unpaid"]:
            if parts[0] == "merchants":
                return self._json(200, list(self.conversions.values()))
            return self._json(
                200, [c for c in self.conversions.values() if c.get("campaignId") == parts[2]]
            )

        if parts[:3] == ["campaigns", "offchain", "campaigns"]:
            return self._json(200, [{"id": "camp-1", "name": "Spring sale", "merchantId": parts[3]}])

        if parts[:2] == ["campaigns", "offchain"] and len(parts) == 3:
            return self._json(200, {"id": parts[2], "name": "Spring sale", "budget": 100})

        return self._json(404, {"error": "not_found", "message": f"No route for {path}"})


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def mock_rpc():
    """Solana RPC client whose every call succeeds."""
    rpc = MagicMock()
    rpc.get_latest_blockhash = AsyncMock(
        return_value=MagicMock(
            value=MagicMock(blockhash=Hash.new_unique(), last_valid_block_height=1234)
        )
    )
    rpc.simulate_transaction = AsyncMock(return_value=MagicMock(value=MagicMock(err=None, logs=[])))
    rpc.send_raw_transaction = AsyncMock(return_value=MagicMock(value=Signature.new_unique()))
    rpc.confirm_transaction = AsyncMock(return_value=MagicMock(value=[MagicMock(err=None)]))
    rpc.close = AsyncMock()
    return rpc


@pytest.fixture
async def client(backend, mock_rpc):
    client = SoycapClient(
        api_url=API_URL,
        api_key=API_KEY,
        http_transport=httpx.MockTransport(backend),
        rpc=mock_rpc,
    )
    yield client
    await client.close()
