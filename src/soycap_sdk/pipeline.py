"""Transaction pipeline: descriptor -> simulated, signed, confirmed transaction.

One invocation moves through BUILDING -> SIMULATED -> SIGNED -> SUBMITTED ->
CONFIRMED and never goes back. Any step can fail; nothing is retried. To
retry, fetch a fresh instruction descriptor from the backend, since the
blockhash and the simulated state may have moved on.
"""

from typing import Optional

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed, Processed
from solana.rpc.core import RPCException, TransactionExpiredBlockheightExceededError, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from .errors import (
    ConfirmationError,
    InstructionError,
    NetworkError,
    PipelineError,
    PipelineStage,
    SimulationError,
    SubmissionError,
)
from .logging_utils import get_logger
from .types import InstructionDescriptor

logger = get_logger(__name__)

_RPC_ERRORS = (SolanaRpcException, RPCException, httpx.HTTPError)


def _pubkey(value: str, what: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise InstructionError(f"Invalid {what} address {value!r}: {e}") from e


def build_instruction(descriptor: InstructionDescriptor) -> Instruction:
    """Map a backend instruction descriptor onto a native instruction."""
    accounts = [
        AccountMeta(
            pubkey=_pubkey(key.pubkey, "account"),
            is_signer=key.is_signer,
            is_writable=key.is_writable,
        )
        for key in descriptor.keys
    ]
    return Instruction(_pubkey(descriptor.program_id, "program"), bytes(descriptor.data), accounts)


def build_transaction(descriptor: InstructionDescriptor, fee_payer: Pubkey, blockhash: Hash) -> Transaction:
    """Unsigned single-instruction transaction paid by ``fee_payer``."""
    message = Message.new_with_blockhash([build_instruction(descriptor)], fee_payer, blockhash)
    return Transaction.new_unsigned(message)


class TransactionPipeline:
    """Simulates, signs, submits and confirms one instruction at a time."""

    def __init__(self, rpc: AsyncClient, commitment: Commitment = Confirmed):
        self.rpc = rpc
        self.commitment = commitment

    async def sign_and_submit(self, instruction: InstructionDescriptor, keypair: Keypair) -> str:
        """Run the full pipeline for one instruction descriptor.

        Args:
            instruction: Descriptor issued by the backend.
            keypair: Merchant keypair; fee payer and only signer.

        Returns:
            The base58 transaction signature.

        Raises:
            NetworkError: Blockhash could not be fetched.
            InstructionError: Descriptor holds an invalid address.
            SimulationError: Preflight simulation failed; nothing was submitted.
            SubmissionError: Node rejected the transaction or it was not confirmed in time.
            ConfirmationError: Node returned no signature.
        """
        try:
            blockhash_resp = await self.rpc.get_latest_blockhash()
        except _RPC_ERRORS as e:
            raise NetworkError(f"Could not fetch latest blockhash: {e}") from e
        blockhash = blockhash_resp.value.blockhash
        last_valid_block_height = blockhash_resp.value.last_valid_block_height

        transaction = build_transaction(instruction, keypair.pubkey(), blockhash)

        await self._simulate(transaction)
        stage = PipelineStage.SIMULATED
        logger.debug(f"Simulation passed for program {instruction.program_id}")

        self._sign(transaction, keypair, blockhash)
        stage = PipelineStage.SIGNED

        signature = await self._submit(transaction, stage)
        stage = PipelineStage.SUBMITTED
        logger.info(f"Transaction submitted: {signature}")

        await self._confirm(signature, last_valid_block_height, stage)
        logger.info(f"Transaction {signature} reached {self.commitment} commitment")

        return str(signature)

    async def _simulate(self, transaction: Transaction) -> None:
        try:
            resp = await self.rpc.simulate_transaction(transaction, sig_verify=False)
        except _RPC_ERRORS as e:
            logger.error(f"Transaction simulation failed: {e}")
            raise SimulationError(str(e)) from e

        if resp.value.err is not None:
            logger.error(f"Transaction simulation failed: {resp.value.err}")
            raise SimulationError(resp.value.err, list(resp.value.logs or []))

    def _sign(self, transaction: Transaction, keypair: Keypair, blockhash: Hash) -> None:
        try:
            transaction.sign([keypair], blockhash)
        except Exception as e:
            # solders raises its own SignerError for missing/extra signers
            raise PipelineError(f"Could not sign transaction: {e}", PipelineStage.SIMULATED) from e

    async def _submit(self, transaction: Transaction, stage: PipelineStage) -> Signature:
        opts = TxOpts(skip_confirmation=True, preflight_commitment=Processed)
        try:
            resp = await self.rpc.send_raw_transaction(bytes(transaction), opts=opts)
        except _RPC_ERRORS as e:
            logger.error(f"Transaction rejected: {e}")
            raise SubmissionError(f"Transaction rejected: {e}", stage) from e

        signature: Optional[Signature] = resp.value
        if not signature or signature == Signature.default():
            raise ConfirmationError("Transaction failed: No signature returned.", stage)
        return signature

    async def _confirm(
        self, signature: Signature, last_valid_block_height: int, stage: PipelineStage
    ) -> None:
        try:
            resp = await self.rpc.confirm_transaction(
                signature,
                self.commitment,
                last_valid_block_height=last_valid_block_height,
            )
        except (UnconfirmedTxError, TransactionExpiredBlockheightExceededError) as e:
            logger.error(f"Transaction {signature} not confirmed: {e}")
            raise SubmissionError(f"Transaction {signature} not confirmed: {e}", stage) from e
        except _RPC_ERRORS as e:
            logger.error(f"Confirmation of {signature} failed: {e}")
            raise SubmissionError(f"Confirmation of {signature} failed: {e}", stage) from e

        statuses = resp.value or []
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            logger.error(f"Transaction {signature} failed on-chain: {status.err}")
            raise SubmissionError(f"Transaction {signature} failed on-chain: {status.err}", stage)
