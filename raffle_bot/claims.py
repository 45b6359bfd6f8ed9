from . import config
from .console import Style, log, short
from .errors import RaffleBotError
from .state import OrchestrationContext


def sol(lamports: int) -> float:
    return lamports / config.LAMPORTS_PER_SOL


class PrizeClaimer:
    """
    Looks at each completed round once. A failed claim is not retried on
    later ticks; the round is marked processed either way.
    """

    def __init__(self, pool, observer, raffle):
        self.pool = pool
        self.observer = observer
        self.raffle = raffle

    async def run(self, ctx: OrchestrationContext, round_number: int) -> bool:
        """Returns True if the winner check ran on this call."""
        if ctx.already_processed(round_number):
            return False

        log("CLAIM", f"🏆 Round {round_number} completed! Checking winner...", Style.YELLOW)
        try:
            record = await self.observer.winner(round_number)
            if record is None:
                log("CLAIM", f"  No winner record for round {round_number}", Style.DIM)
                return True

            log("CLAIM", f"  Winner: {record.winner}", Style.DIM)
            log("CLAIM", f"  Prize: {sol(record.amount):.4f} SOL", Style.DIM)
            log("CLAIM", f"  Claimed: {'✓' if record.claimed else '✗'}", Style.DIM)

            if not self.pool.contains(record.winner):
                log("CLAIM", "  → Organic user won this round", Style.DIM)
                return True

            ctx.stats.prizes_won += 1
            log("WINNER", "  🎊 WE WON! This is one of our wallets!", Style.GREEN)
            if record.claimed:
                return True

            wallet = self.pool.resolve(record.winner)
            log("CLAIM", "  💰 Claiming prize...", Style.GREEN)
            try:
                amount = await self.raffle.claim_prize(round_number, wallet)
            except RaffleBotError as e:
                ctx.stats.errors += 1
                log("ERROR", f"  ✗ Round {round_number}: claim_prize by {short(record.winner)} failed: {e}", Style.RED)
                return True
            ctx.stats.prizes_claimed += 1
            log("SUCCESS", f"  ✓ Prize claimed! Amount: {sol(amount):.4f} SOL", Style.GREEN)
            return True
        except RaffleBotError as e:
            ctx.stats.errors += 1
            log("ERROR", f"  ✗ Round {round_number}: winner check failed: {e}", Style.RED)
            return True
        finally:
            ctx.mark_processed(round_number)
