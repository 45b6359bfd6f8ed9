"""
Clients for the on-chain raffle and VRF programs.

Instructions are Anchor-shaped: an 8 byte sha256("global:<name>") prefix and
little-endian borsh arguments. Return values come back as dicts in the
programs' own field names; turning them into typed records is the
RoundObserver's job.
"""

import hashlib
import struct

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from .chain import SolanaGateway
from .errors import ReadError

# Variant order of the program's State enum
STATE_VARIANTS = ("OPEN", "DRAWING", "COMPLETED")


def discriminator(name: str) -> bytes:
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


def u32(value: int) -> bytes:
    return struct.pack("<I", value)


def u64(value: int) -> bytes:
    return struct.pack("<Q", value)


class BorshReader:
    """
    Sequential decoder for borsh return data.

    The runtime strips trailing zero bytes from return data, so reads past
    the end are zero-filled instead of failing.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def _take(self, size: int) -> bytes:
        chunk = self.data[self.offset:self.offset + size]
        self.offset += size
        return chunk.ljust(size, b"\x00")

    def u8(self) -> int:
        return self._take(1)[0]

    def boolean(self) -> bool:
        return self.u8() != 0

    def u32(self) -> int:
        return struct.unpack("<I", self._take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self._take(8))[0]

    def i128(self) -> int:
        return int.from_bytes(self._take(16), "little", signed=True)

    def pubkey(self) -> str:
        return str(Pubkey.from_bytes(self._take(32)))

    def option(self, read):
        if self.u8() == 0:
            return None
        return read()


def decode_state(index: int):
    # Mirrors the enum-as-sequence shape contract SDKs hand back
    if index < len(STATE_VARIANTS):
        return [STATE_VARIANTS[index]]
    return [f"UNKNOWN({index})"]


class RaffleProgram:
    def __init__(self, gateway: SolanaGateway, program_id: Pubkey, vrf_program_id: Pubkey, viewer: Pubkey | None = None):
        self.gateway = gateway
        self.program_id = program_id
        self.vrf_program_id = vrf_program_id
        # Fee payer for simulated reads; must be an existing account
        self.viewer = viewer

    # --- ACCOUNTS ---
    def _pda(self, *seeds: bytes) -> Pubkey:
        return Pubkey.find_program_address(list(seeds), self.program_id)[0]

    def config_address(self) -> Pubkey:
        return self._pda(b"config")

    def round_address(self, round_number: int) -> Pubkey:
        return self._pda(b"round", u32(round_number))

    def winner_address(self, round_number: int) -> Pubkey:
        return self._pda(b"winner", u32(round_number))

    def tickets_address(self, round_number: int, player: Pubkey) -> Pubkey:
        return self._pda(b"tickets", u32(round_number), bytes(player))

    def vault_address(self) -> Pubkey:
        return self._pda(b"vault")

    def _ix(self, name: str, args: bytes, accounts: list) -> Instruction:
        return Instruction(self.program_id, discriminator(name) + args, accounts)

    async def _view(self, name: str, args: bytes, accounts: list) -> BorshReader:
        if self.viewer is None:
            raise ReadError(f"{name}: no viewer account configured")
        data = await self.gateway.view(self._ix(name, args, accounts), self.viewer, name)
        return BorshReader(data)

    # --- READS ---
    async def current_round_number(self) -> int:
        r = await self._view("get_current_round_number", b"", [AccountMeta(self.config_address(), False, False)])
        return r.u32()

    async def round_info(self, round_number: int) -> dict:
        r = await self._view(
            "get_round_info", u32(round_number), [AccountMeta(self.round_address(round_number), False, False)]
        )
        return {
            "round": r.u32(),
            "state": decode_state(r.u8()),
            "vrf_request_id": r.option(r.u64),
        }

    async def round_stats(self, round_number: int) -> dict:
        r = await self._view(
            "get_round_stats", u32(round_number), [AccountMeta(self.round_address(round_number), False, False)]
        )
        return {
            "total_tickets": r.u32(),
            "total_participants": r.u32(),
            "prize_pool": r.i128(),
        }

    async def is_ready_to_draw(self, round_number: int) -> bool:
        r = await self._view(
            "is_ready_to_draw",
            b"",
            [
                AccountMeta(self.config_address(), False, False),
                AccountMeta(self.round_address(round_number), False, False),
            ],
        )
        return r.boolean()

    async def winner(self, round_number: int) -> dict | None:
        r = await self._view(
            "get_winner", u32(round_number), [AccountMeta(self.winner_address(round_number), False, False)]
        )

        def record():
            return {"winner": r.pubkey(), "round": r.u32(), "amount": r.i128(), "claimed": r.boolean()}

        return r.option(record)

    async def config(self) -> dict:
        r = await self._view("get_config", b"", [AccountMeta(self.config_address(), False, False)])
        return {
            "vrf_program": r.pubkey(),
            "ticket_price": r.i128(),
            "target_tickets": r.u32(),
            "max_tickets_per_participant": r.u32(),
        }

    # --- WRITES ---
    async def enter(self, player: Keypair, num_tickets: int, round_number: int) -> int:
        """Buy tickets; returns the player's ticket total for the round."""
        if num_tickets <= 0:
            raise ValueError(f"num_tickets must be positive, got {num_tickets}")
        pub = player.pubkey()
        ix = self._ix(
            "enter",
            u32(num_tickets),
            [
                AccountMeta(pub, True, True),
                AccountMeta(self.config_address(), False, False),
                AccountMeta(self.round_address(round_number), False, True),
                AccountMeta(self.tickets_address(round_number, pub), False, True),
                AccountMeta(self.vault_address(), False, True),
                AccountMeta(SYSTEM_PROGRAM_ID, False, False),
            ],
        )
        returned = await self.gateway.submit(ix, player, f"enter({num_tickets})")
        return BorshReader(returned).u32()

    async def request_draw(self, caller: Keypair, round_number: int) -> int:
        """Move the round to DRAWING; returns the VRF request handle."""
        pub = caller.pubkey()
        ix = self._ix(
            "request_draw",
            b"",
            [
                AccountMeta(pub, True, True),
                AccountMeta(self.config_address(), False, False),
                AccountMeta(self.round_address(round_number), False, True),
                AccountMeta(self.vrf_program_id, False, False),
                AccountMeta(vrf_request_address(self.vrf_program_id, self.program_id), False, True),
                AccountMeta(SYSTEM_PROGRAM_ID, False, False),
            ],
        )
        returned = await self.gateway.submit(ix, caller, "request_draw")
        return BorshReader(returned).u64()

    def fulfillment_accounts(self, round_number: int) -> list:
        """Accounts the VRF program forwards to the raffle's fulfill_random callback."""
        return [
            AccountMeta(self.program_id, False, False),
            AccountMeta(self.config_address(), False, False),
            AccountMeta(self.round_address(round_number), False, True),
            AccountMeta(self.winner_address(round_number), False, True),
            AccountMeta(self._pda(b"round", u32(round_number + 1)), False, True),
        ]

    async def claim_prize(self, round_number: int, claimer: Keypair) -> int:
        """Claim a won round; returns the paid amount in lamports."""
        pub = claimer.pubkey()
        ix = self._ix(
            "claim_prize",
            u32(round_number),
            [
                AccountMeta(pub, True, True),
                AccountMeta(self.config_address(), False, False),
                AccountMeta(self.winner_address(round_number), False, True),
                AccountMeta(self.vault_address(), False, True),
                AccountMeta(SYSTEM_PROGRAM_ID, False, False),
            ],
        )
        returned = await self.gateway.submit(ix, claimer, f"claim_prize({round_number})")
        return BorshReader(returned).i128()


def vrf_request_address(vrf_program_id: Pubkey, requester: Pubkey) -> Pubkey:
    return Pubkey.find_program_address([b"request", bytes(requester)], vrf_program_id)[0]


class VrfProgram:
    def __init__(self, gateway: SolanaGateway, program_id: Pubkey, viewer: Pubkey | None = None):
        self.gateway = gateway
        self.program_id = program_id
        self.viewer = viewer

    def state_address(self) -> Pubkey:
        return Pubkey.find_program_address([b"vrf"], self.program_id)[0]

    async def get_random(self) -> int:
        if self.viewer is None:
            raise ReadError("get_random: no viewer account configured")
        ix = Instruction(
            self.program_id, discriminator("get_random"), [AccountMeta(self.state_address(), False, False)]
        )
        data = await self.gateway.view(ix, self.viewer, "get_random")
        return BorshReader(data).u64()

    async def fulfill(self, requester: Pubkey, random_value: int, oracle: Keypair, callback_accounts=()) -> None:
        """Answer a pending randomness request as the oracle would."""
        ix = Instruction(
            self.program_id,
            discriminator("fulfill") + bytes(requester) + u64(random_value),
            [
                AccountMeta(oracle.pubkey(), True, True),
                AccountMeta(self.state_address(), False, False),
                AccountMeta(vrf_request_address(self.program_id, requester), False, True),
                *callback_accounts,
            ],
        )
        await self.gateway.submit(ix, oracle, "fulfill")
