import asyncio
import random

from . import config
from .console import Style, log, short
from .errors import RaffleBotError
from .rounds import RoundStatistics
from .state import OrchestrationContext, random_in_range


class ParticipationScheduler:
    """Buys tickets in small, randomly sized, randomly spaced batches."""

    def __init__(
        self,
        pool,
        raffle,
        target_tickets: int,
        max_tickets_per_wallet: int = config.DEFAULT_MAX_TICKETS_PER_WALLET,
        max_wallets: int = config.MAX_WALLETS_PER_BATCH,
        min_interval_ms: int = config.TICKET_BUY_MIN_DELAY,
        max_interval_ms: int = config.TICKET_BUY_MAX_DELAY,
        pause: float = config.PURCHASE_PAUSE,
        rng: random.Random | None = None,
        sleep=asyncio.sleep,
    ):
        self.pool = pool
        self.raffle = raffle
        self.target_tickets = target_tickets
        self.max_tickets_per_wallet = max_tickets_per_wallet
        self.max_wallets = max_wallets
        self.min_interval_ms = min_interval_ms
        self.max_interval_ms = max_interval_ms
        self.pause = pause
        self.rng = rng or random.Random()
        self._sleep = sleep

    async def run(self, ctx: OrchestrationContext, now: int, stats: RoundStatistics, round_number: int) -> int:
        """Returns the number of tickets bought this call."""
        min_interval = random_in_range(self.rng, self.min_interval_ms, self.max_interval_ms)
        if ctx.last_purchase_at != 0 and now - ctx.last_purchase_at < min_interval:
            return 0

        remaining = self.target_tickets - stats.total_tickets
        if remaining <= 0:
            # Readiness flips on a later tick
            return 0

        log("OPEN", f"📊 Current: {stats.total_tickets}/{self.target_tickets} tickets, {remaining} remaining", Style.BLUE)

        wallet_count = random_in_range(self.rng, 1, min(self.max_wallets, len(self.pool)))
        wallets = self.pool.select_random(wallet_count)
        log("BUY", f"🎫 Buying tickets with {len(wallets)} wallets...", Style.GREEN)

        bought = 0
        for i, wallet in enumerate(wallets):
            if i > 0:
                await self._sleep(self.pause)
            # Every wallet draws from the pre-batch remainder; the program caps overshoot
            tickets = random_in_range(self.rng, 1, min(self.max_tickets_per_wallet, remaining))
            try:
                await self.raffle.enter(wallet, tickets, round_number)
            except RaffleBotError as e:
                ctx.stats.errors += 1
                log("ERROR", f"  ✗ Round {round_number}: {short(wallet.pubkey())} enter({tickets}) failed: {e}", Style.RED)
                continue
            bought += tickets
            ctx.stats.tickets_purchased += tickets
            log("BUY", f"  ✓ {short(wallet.pubkey())} bought {tickets} ticket(s)", Style.GREEN)

        ctx.last_purchase_at = now
        return bought
