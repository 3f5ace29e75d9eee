"""Unit tests for SoycapClient and the merchant operations."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from solana.rpc.core import RPCException

from conftest import TOKEN
from soycap_sdk import SoycapClient
from soycap_sdk.config import Settings
from soycap_sdk.errors import BackendError, PartialConversionError, SimulationError, SubmissionError


def _patch_requests(backend):
    return [r for r in backend.requests if r.method == "PATCH"]


@pytest.mark.asyncio
async def test_register_conversion_success(client, backend, keypair, mock_rpc):
    """Test a conversion going on-chain and then getting its metadata."""
    token = await client.authenticate()
    assert token

    result = await client.register_conversion("REF1", 0.1, 25.0, token, keypair)

    assert result.signature == str(mock_rpc.send_raw_transaction.return_value.value)
    assert result.instruction.metadata.conversion_id == "conv-REF1"
    assert result.conversion.business_value == 25.0
    assert result.conversion.owner_address == str(keypair.pubkey())

    patches = _patch_requests(backend)
    assert len(patches) == 1
    assert patches[0].url.path == "/conversions/offchain/conv-REF1"
    assert json.loads(patches[0].content) == {
        "campaignId": "camp-1",
        "referralId": "REF1",
        "ownerAddress": str(keypair.pubkey()),
        "rewardsPendingUSDC": 0.1,
        "businessValue": 25.0,
    }


@pytest.mark.asyncio
async def test_register_conversion_simulation_failure_skips_patch(client, backend, keypair, mock_rpc):
    """Test that nothing is submitted or annotated when simulation fails."""
    mock_rpc.simulate_transaction.return_value = MagicMock(value=MagicMock(err="AlreadyProcessed", logs=[]))

    with pytest.raises(SimulationError):
        await client.register_conversion("REF1", 0.1, 25.0, TOKEN, keypair)

    mock_rpc.send_raw_transaction.assert_not_called()
    assert _patch_requests(backend) == []


@pytest.mark.asyncio
async def test_register_conversion_partial_failure(client, backend, keypair, mock_rpc):
    """Test that a failed PATCH after an on-chain success is reported, not hidden."""
    backend.fail_paths[("PATCH", "/conversions/offchain/conv-REF1")] = (
        500,
        {"error": "internal", "message": "database unavailable"},
    )

    with pytest.raises(PartialConversionError) as exc_info:
        await client.register_conversion("REF1", 0.1, 25.0, TOKEN, keypair)

    error = exc_info.value
    assert error.conversion_id == "conv-REF1"
    assert error.signature == str(mock_rpc.send_raw_transaction.return_value.value)
    assert isinstance(error.__cause__, BackendError)
    mock_rpc.send_raw_transaction.assert_awaited_once()

    # Only the PATCH is retried; no second transaction is sent
    del backend.fail_paths[("PATCH", "/conversions/offchain/conv-REF1")]
    conversion = await client.merchant.retry_metadata_patch(error, TOKEN)

    assert conversion.business_value == 25.0
    mock_rpc.send_raw_transaction.assert_awaited_once()


@pytest.mark.asyncio
async def test_distribute_reward_unregistered_conversion(client, keypair, mock_rpc):
    """Test that the backend's rejection propagates unchanged."""
    with pytest.raises(BackendError) as exc_info:
        await client.distribute_reward("camp-1", "REF1", "conv-unknown", TOKEN, keypair)

    assert exc_info.value.status_code == 404
    assert exc_info.value.error_code == "not_found"
    assert "Conversion not found" in str(exc_info.value)
    mock_rpc.get_latest_blockhash.assert_not_called()


@pytest.mark.asyncio
async def test_distribute_reward_after_registration(client, backend, keypair, mock_rpc):
    registered = await client.register_conversion("REF1", 0.1, 25.0, TOKEN, keypair)

    result = await client.distribute_reward(
        "camp-1", "REF1", registered.instruction.metadata.conversion_id, TOKEN, keypair
    )

    assert result.signature
    assert result.instruction.instruction.keys[0].pubkey == str(keypair.pubkey())
    assert mock_rpc.send_raw_transaction.await_count == 2
    # No metadata update follows a distribution
    assert len(_patch_requests(backend)) == 1


@pytest.mark.asyncio
async def test_distribute_unpaid_rewards_is_sequential_and_continues(client, backend, keypair, mock_rpc):
    for conversion_id in ("conv-a", "conv-b", "conv-c"):
        backend.conversions[conversion_id] = {
            "conversionId": conversion_id,
            "campaignId": "camp-1",
            "referralId": "REF1",
        }
    backend.conversions["conv-d"] = {"conversionId": "conv-d"}
    ok = mock_rpc.send_raw_transaction.return_value
    mock_rpc.send_raw_transaction.side_effect = [ok, RPCException("Blockhash not found"), ok]

    outcomes = await client.merchant.distribute_unpaid_rewards("merchant", "merch-1", TOKEN, keypair)

    assert [o.conversion_id for o in outcomes] == ["conv-a", "conv-b", "conv-c", "conv-d"]
    assert [o.ok for o in outcomes] == [True, False, True, False]
    assert "Blockhash not found" in outcomes[1].error
    assert "missing" in outcomes[3].error
    assert mock_rpc.send_raw_transaction.await_count == 3


@pytest.mark.asyncio
async def test_submission_error_propagates(client, keypair, mock_rpc):
    mock_rpc.send_raw_transaction.side_effect = RPCException("rejected")

    with pytest.raises(SubmissionError):
        await client.register_conversion("REF1", 0.1, 25.0, TOKEN, keypair)


@pytest.mark.asyncio
async def test_close_releases_transports(mock_rpc):
    async with SoycapClient(api_url="http://test.soycap/", api_key="k", rpc=mock_rpc) as client:
        assert client.api_url == "http://test.soycap"

    mock_rpc.close.assert_awaited_once()
    assert client._http.is_closed


@pytest.mark.asyncio
async def test_from_settings():
    settings = Settings(
        _env_file=None,
        soycap_api_url="https://api.example.test",
        soycap_api_key="key-1",
        solana_rpc_url="https://rpc.example.test",
        solana_commitment="finalized",
        http_timeout=5.0,
    )

    with patch("soycap_sdk.client.AsyncClient") as rpc_cls:
        rpc_cls.return_value = MagicMock(close=AsyncMock())
        client = SoycapClient.from_settings(settings)

    rpc_cls.assert_called_once_with("https://rpc.example.test", commitment="finalized", timeout=5.0)
    assert client.api_key == "key-1"
    assert client.pipeline.commitment == "finalized"
    assert client.api_url == "https://api.example.test"

    await client.close()
