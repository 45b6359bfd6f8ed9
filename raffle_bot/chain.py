"""
Thin layer over the Solana async RPC client.

Reads are simulated instructions whose program return data carries the
answer. Writes are simulated first, then signed, sent and polled until the
cluster reports a terminal status.
"""

import asyncio
import base64

from solana.rpc.async_api import AsyncClient
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from . import config
from .console import Style, log
from .errors import RaffleBotError, ReadError, SubmissionError

CONFIRMED = (TransactionConfirmationStatus.Confirmed, TransactionConfirmationStatus.Finalized)


def return_data_bytes(result, program_id: Pubkey | None = None) -> bytes | None:
    """Pull raw bytes out of a simulation result's return data (None if absent)."""
    ret = getattr(result, "return_data", None)
    if ret is None:
        return None
    if program_id is not None and ret.program_id != program_id:
        return None
    data = ret.data
    # RPC hands it back as (base64, encoding)
    if isinstance(data, (tuple, list)):
        data = base64.b64decode(data[0])
    return bytes(data)


class SolanaGateway:
    def __init__(
        self,
        client: AsyncClient,
        dry_run: bool = config.DRY_RUN,
        poll_interval: float = config.CONFIRM_POLL_INTERVAL,
        max_polls: int = config.CONFIRM_MAX_POLLS,
        sleep=asyncio.sleep,
    ):
        self.client = client
        self.dry_run = dry_run
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._sleep = sleep

    async def _blockhash(self) -> Hash:
        resp = await self.client.get_latest_blockhash()
        return resp.value.blockhash

    async def _simulate(self, ix: Instruction, payer: Pubkey) -> bytes:
        blockhash = await self._blockhash()
        msg = Message.new_with_blockhash([ix], payer, blockhash)
        tx = Transaction.new_unsigned(msg)

        resp = await self.client.simulate_transaction(tx, sig_verify=False)
        result = resp.value
        if result.err is not None:
            tail = " | ".join((result.logs or [])[-3:])
            raise RuntimeError(f"Simulation failed: {result.err} {tail}".strip())

        # An all-zero payload is trimmed to nothing and reported as null
        data = return_data_bytes(result, ix.program_id)
        return data if data is not None else b""

    async def view(self, ix: Instruction, payer: Pubkey, what: str) -> bytes:
        """Run a read-only instruction and return the program's return data."""
        try:
            return await self._simulate(ix, payer)
        except RaffleBotError:
            raise
        except Exception as e:
            raise ReadError(f"{what}: {e}") from e

    async def submit(self, ix: Instruction, signer: Keypair, action: str) -> bytes:
        """
        Simulate, sign, send and confirm. Returns whatever the program returned
        during simulation (empty bytes if nothing).
        """
        try:
            returned = await self._simulate(ix, signer.pubkey())
            if self.dry_run:
                log("DRY RUN", f"{action} simulated OK, not submitted", Style.DIM)
                return returned

            blockhash = await self._blockhash()
            msg = Message([ix], signer.pubkey())
            tx = Transaction([signer], msg, blockhash)
            resp = await self.client.send_transaction(tx, opts=TxOpts(skip_preflight=True))
            sig = resp.value
            log("DEBUG", f"{action} submitted: {sig}", Style.DIM)

            await self.wait_for_confirmation(sig, action)
            return returned
        except SubmissionError:
            raise
        except Exception as e:
            raise SubmissionError(action, e) from e

    async def wait_for_confirmation(self, sig: Signature, action: str) -> None:
        for _ in range(self.max_polls):
            await self._sleep(self.poll_interval)
            resp = await self.client.get_signature_statuses([sig])
            status = resp.value[0]

            if status is None:
                log("DEBUG", f"Waiting for {action} confirmation...", Style.DIM)
                continue
            if status.err is not None:
                raise SubmissionError(action, f"transaction {sig} failed: {status.err}")
            if status.confirmation_status in CONFIRMED:
                return

        raise SubmissionError(action, f"transaction {sig} not confirmed after {self.max_polls} polls")

    async def airdrop(self, pubkey: Pubkey, lamports: int) -> None:
        try:
            resp = await self.client.request_airdrop(pubkey, lamports)
        except Exception as e:
            raise SubmissionError("airdrop", e) from e
        await self.wait_for_confirmation(resp.value, "airdrop")
