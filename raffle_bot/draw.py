"""
Draw trigger.

Once the round reports ready, wait a human-looking while, then request the
draw from a random pool wallet and immediately answer the randomness request
as the oracle. The wait threshold is re-rolled on every tick, so the actual
wait is itself fuzzy.
"""

import random

from solders.keypair import Keypair

from . import config
from .console import Style, log, short
from .errors import RaffleBotError
from .state import OrchestrationContext, random_in_range


class DrawCoordinator:
    def __init__(
        self,
        pool,
        raffle,
        vrf,
        oracle: Keypair | None = None,
        min_delay_ms: int = config.DRAW_DELAY_MIN,
        max_delay_ms: int = config.DRAW_DELAY_MAX,
        rng: random.Random | None = None,
    ):
        self.pool = pool
        self.raffle = raffle
        self.vrf = vrf
        # None means the drawer also signs the fulfillment
        self.oracle = oracle
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self.rng = rng or random.Random()

    def _delay(self) -> int:
        return random_in_range(self.rng, self.min_delay_ms, self.max_delay_ms)

    async def run(self, ctx: OrchestrationContext, now: int, round_number: int) -> bool:
        """Returns True when a draw was triggered and fulfilled on this tick."""
        timer = ctx.draw_timer

        if not timer.is_set:
            delay = self._delay()
            timer.start(now, delay)
            log("DRAW", f"⏳ Raffle full! Waiting {delay // 1000}s before drawing...", Style.YELLOW)
            return False

        if now - timer.started_at < self._delay():
            return False

        log("DRAW", f"🎲 Triggering draw for round {round_number}...", Style.MAGENTA)
        drawer = self.pool.select_one()
        action = "request_draw"
        try:
            request_id = await self.raffle.request_draw(drawer, round_number)
            log("DRAW", f"  ✓ Draw requested by {short(drawer.pubkey())}", Style.MAGENTA)
            log("DRAW", f"  📋 VRF Request ID: {request_id}", Style.DIM)

            action = "fulfill"
            log("VRF", "🔮 Fulfilling VRF...", Style.CYAN)
            random_value = await self.vrf.get_random()
            await self.vrf.fulfill(
                self.raffle.program_id,
                random_value,
                self.oracle or drawer,
                self.raffle.fulfillment_accounts(round_number),
            )
            log("VRF", f"  ✓ VRF fulfilled with random value: {random_value}", Style.CYAN)
        except RaffleBotError as e:
            ctx.stats.errors += 1
            log("ERROR", f"  ✗ Round {round_number}: {action} by {short(drawer.pubkey())} failed: {e}", Style.RED)
            return False
        finally:
            timer.clear()

        ctx.stats.draws_triggered += 1
        return True
