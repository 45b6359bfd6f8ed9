"""
Shared fixtures and in-memory stand-ins for the raffle and VRF programs.
"""

import asyncio
import json
import random

import base58
import pytest
from solders.keypair import Keypair

from raffle_bot import console
from raffle_bot.errors import ReadError, SubmissionError
from raffle_bot.wallets import IdentityPool

READ_METHODS = {"current_round_number", "round_info", "round_stats", "is_ready_to_draw", "winner", "config"}


def run(coro):
    return asyncio.run(coro)


async def no_sleep(_seconds):
    return None


class FakeRaffle:
    """Raffle program double: per-wallet cap is applied by clamping, like the program would enforce."""

    program_id = "RafF1eProgram1111111111111111111111111111111"

    def __init__(self, target=250, cap=10, price=1_000_000):
        self.round_number = 1
        self.state = ["OPEN"]
        self.vrf_request_id = None
        self.target = target
        self.cap = cap
        self.price = price
        self.tickets = {}
        self.ready = None
        self.winners = {}
        self.calls = []
        self.fail = {}
        self.claim_amount = 5_000_000_000

    def _check(self, name, *args):
        self.calls.append((name, args))
        remaining = self.fail.get(name)
        if remaining:
            self.fail[name] = remaining - 1
            if name in READ_METHODS:
                raise ReadError(f"{name}: rpc unavailable")
            raise SubmissionError(name, "simulation failed")

    def names(self):
        return [name for name, _ in self.calls]

    @property
    def total_tickets(self):
        return sum(self.tickets.values())

    # --- reads ---
    async def current_round_number(self):
        self._check("current_round_number")
        return self.round_number

    async def round_info(self, round_number):
        self._check("round_info", round_number)
        return {"round": round_number, "state": self.state, "vrf_request_id": self.vrf_request_id}

    async def round_stats(self, round_number):
        self._check("round_stats", round_number)
        return {
            "total_tickets": self.total_tickets,
            "total_participants": len(self.tickets),
            "prize_pool": self.total_tickets * self.price,
        }

    async def is_ready_to_draw(self, round_number):
        self._check("is_ready_to_draw", round_number)
        if self.ready is not None:
            return self.ready
        return self.total_tickets >= self.target

    async def winner(self, round_number):
        self._check("winner", round_number)
        return self.winners.get(round_number)

    async def config(self):
        self._check("config")
        return {
            "vrf_program": "Vrf",
            "ticket_price": self.price,
            "target_tickets": self.target,
            "max_tickets_per_participant": self.cap,
        }

    # --- writes ---
    async def enter(self, wallet, num_tickets, round_number):
        self._check("enter", str(wallet.pubkey()), num_tickets, round_number)
        address = str(wallet.pubkey())
        held = self.tickets.get(address, 0)
        accepted = min(num_tickets, self.cap - held)
        if accepted <= 0:
            raise SubmissionError(f"enter({num_tickets})", "max tickets per participant reached")
        self.tickets[address] = held + accepted
        return self.tickets[address]

    async def request_draw(self, wallet, round_number):
        self._check("request_draw", str(wallet.pubkey()), round_number)
        self.state = ["DRAWING"]
        self.vrf_request_id = 7
        return 7

    def fulfillment_accounts(self, round_number):
        return [f"callback-{round_number}"]

    async def claim_prize(self, round_number, wallet):
        self._check("claim_prize", round_number, str(wallet.pubkey()))
        self.winners[round_number]["claimed"] = True
        return self.claim_amount


class FakeVrf:
    def __init__(self, raffle: FakeRaffle, value=123456789):
        self.raffle = raffle
        self.value = value
        self.fulfilled = []

    async def get_random(self):
        self.raffle._check("get_random")
        return self.value

    async def fulfill(self, requester, random_value, oracle, callback_accounts=()):
        self.raffle._check("fulfill", requester, random_value, str(oracle.pubkey()))
        self.fulfilled.append((requester, random_value, str(oracle.pubkey()), list(callback_accounts)))
        self.raffle.state = ["COMPLETED"]


class SequenceRng(random.Random):
    """randint answers come from a fixed list; everything else is a seeded Random."""

    def __init__(self, values):
        super().__init__(0)
        self.values = list(values)

    def randint(self, a, b):
        value = self.values.pop(0)
        assert a <= value <= b
        return value


def write_wallet_file(path, keypairs):
    data = [
        {"publicKey": str(kp.pubkey()), "secretKey": base58.b58encode(bytes(kp)).decode()}
        for kp in keypairs
    ]
    path.write_text(json.dumps(data))


@pytest.fixture(autouse=True)
def quiet_log_feed(monkeypatch):
    monkeypatch.setattr(console, "LOG_FILE_PATH", None)


@pytest.fixture
def keypairs():
    return [Keypair() for _ in range(25)]


@pytest.fixture
def pool(tmp_path, keypairs):
    path = tmp_path / "wallets.json"
    write_wallet_file(path, keypairs)
    p = IdentityPool(str(path), size=25, rng=random.Random(7))
    run(p.initialize())
    return p


@pytest.fixture
def raffle():
    return FakeRaffle()


@pytest.fixture
def vrf(raffle):
    return FakeVrf(raffle)
