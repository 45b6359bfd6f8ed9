"""
Main heartbeat: one read pass per tick, one class of action per tick.
"""

import asyncio

from . import config
from .console import Style, log
from .rounds import RoundState
from .state import OrchestrationContext, now_ms


class ControlLoop:
    def __init__(
        self,
        observer,
        scheduler,
        coordinator,
        claimer,
        ctx: OrchestrationContext | None = None,
        interval: float = config.LOOP_INTERVAL,
        clock=now_ms,
    ):
        self.observer = observer
        self.scheduler = scheduler
        self.coordinator = coordinator
        self.claimer = claimer
        self.ctx = ctx or OrchestrationContext()
        self.interval = interval
        self.clock = clock
        self._stop = asyncio.Event()

    @property
    def stats(self):
        return self.ctx.stats

    def stop(self):
        self._stop.set()

    async def tick(self):
        try:
            await self._dispatch()
        except Exception as e:
            self.ctx.stats.errors += 1
            log("ERROR", f"❌ Loop error: {e}", Style.RED)

    async def _dispatch(self):
        round_number = await self.observer.current_round_number()
        info = await self.observer.round_info(round_number)
        stats = await self.observer.round_stats(round_number)

        log("ROUND", "━" * 40, Style.DIM)
        log("ROUND", f"📍 Round {round_number} | State: {info.raw_state or info.state.value}", Style.BLUE)

        state = info.state
        if state is RoundState.OPEN:
            ready = await self.observer.is_ready_to_draw(round_number)
            if ready:
                await self.coordinator.run(self.ctx, self.clock(), round_number)
            else:
                await self.scheduler.run(self.ctx, self.clock(), stats, round_number)
        elif state is RoundState.DRAWING:
            log("ROUND", "⌛ Draw in progress, waiting for completion...", Style.DIM)
        elif state is RoundState.COMPLETED:
            await self.claimer.run(self.ctx, round_number)
            log("ROUND", "✓ Waiting for next round to start...", Style.DIM)
        else:
            log("WARN", f"❓ Unknown state: {info.raw_state}", Style.YELLOW)

        log("STATS", f"📊 Stats: {self.ctx.stats.summary()}", Style.CYAN)

    async def run_forever(self):
        """Ticks until stop() is called. A tick in flight always finishes."""
        while not self._stop.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
