"""
Round records and the read-only RoundObserver.

Whatever shape the program client hands back, consumers past this module
only ever see typed records with a scalar RoundState.
"""

from dataclasses import dataclass
from enum import Enum

from .errors import RaffleBotError, ReadError


class RoundState(str, Enum):
    OPEN = "OPEN"
    DRAWING = "DRAWING"
    COMPLETED = "COMPLETED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw) -> "RoundState":
        """Accept a tag, a variant index or a one-element sequence holding either."""
        if isinstance(raw, (list, tuple)):
            raw = raw[0] if len(raw) == 1 else None
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            variants = (cls.OPEN, cls.DRAWING, cls.COMPLETED)
            return variants[raw] if 0 <= raw < len(variants) else cls.UNKNOWN
        if isinstance(raw, str):
            try:
                return cls(raw.upper())
            except ValueError:
                return cls.UNKNOWN
        return cls.UNKNOWN


@dataclass(frozen=True)
class RoundDescriptor:
    round_number: int
    state: RoundState
    randomness_request: int | None = None
    raw_state: str = ""


@dataclass(frozen=True)
class RoundStatistics:
    total_tickets: int
    total_participants: int
    prize_pool: int  # lamports


@dataclass(frozen=True)
class WinnerRecord:
    round: int
    winner: str
    amount: int  # lamports
    claimed: bool


@dataclass(frozen=True)
class RaffleSettings:
    target_tickets: int
    max_tickets_per_wallet: int
    ticket_price: int | None = None


def _raw_tag(raw) -> str:
    if isinstance(raw, (list, tuple)) and len(raw) == 1:
        raw = raw[0]
    return str(getattr(raw, "value", raw))


class RoundObserver:
    """Read side of the raffle. Every failure surfaces as ReadError."""

    def __init__(self, raffle):
        self.raffle = raffle

    async def _read(self, what: str, call):
        try:
            return await call
        except RaffleBotError:
            raise
        except Exception as e:
            raise ReadError(f"{what}: {e}") from e

    async def current_round_number(self) -> int:
        return int(await self._read("current round", self.raffle.current_round_number()))

    async def round_info(self, round_number: int) -> RoundDescriptor:
        info = await self._read(f"round {round_number} info", self.raffle.round_info(round_number))
        raw = info["state"]
        return RoundDescriptor(
            round_number=int(info.get("round", round_number)),
            state=RoundState.parse(raw),
            randomness_request=info.get("vrf_request_id"),
            raw_state=_raw_tag(raw),
        )

    async def round_stats(self, round_number: int) -> RoundStatistics:
        stats = await self._read(f"round {round_number} stats", self.raffle.round_stats(round_number))
        return RoundStatistics(
            total_tickets=int(stats["total_tickets"]),
            total_participants=int(stats["total_participants"]),
            prize_pool=int(stats["prize_pool"]),
        )

    async def is_ready_to_draw(self, round_number: int) -> bool:
        return bool(await self._read("ready to draw", self.raffle.is_ready_to_draw(round_number)))

    async def winner(self, round_number: int) -> WinnerRecord | None:
        record = await self._read(f"round {round_number} winner", self.raffle.winner(round_number))
        if record is None:
            return None
        return WinnerRecord(
            round=int(record["round"]),
            winner=str(record["winner"]),
            amount=int(record["amount"]),
            claimed=bool(record["claimed"]),
        )

    async def settings(self) -> RaffleSettings:
        cfg = await self._read("raffle config", self.raffle.config())
        return RaffleSettings(
            target_tickets=int(cfg["target_tickets"]),
            max_tickets_per_wallet=int(cfg["max_tickets_per_participant"]),
            ticket_price=cfg.get("ticket_price"),
        )
