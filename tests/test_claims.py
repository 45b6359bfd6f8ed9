"""
Tests for prize claiming on completed rounds.
"""

from solders.keypair import Keypair

from conftest import run
from raffle_bot.claims import PrizeClaimer
from raffle_bot.rounds import RoundObserver
from raffle_bot.state import OrchestrationContext


def make(pool, raffle):
    return PrizeClaimer(pool, RoundObserver(raffle), raffle)


def record(round_number, winner, claimed=False, amount=2_500_000_000):
    return {"round": round_number, "winner": str(winner), "amount": amount, "claimed": claimed}


class TestWinnerCheck:

    def test_organic_winner(self, pool, raffle):
        raffle.winners[4] = record(4, Keypair().pubkey())
        ctx = OrchestrationContext()
        assert run(make(pool, raffle).run(ctx, 4)) is True
        assert ctx.stats.prizes_won == 0
        assert ctx.processed_round == 4
        assert "claim_prize" not in raffle.names()

    def test_pool_winner_claims_once(self, pool, raffle):
        wallet = pool.wallets[2]
        raffle.winners[5] = record(5, wallet.pubkey())
        ctx = OrchestrationContext()
        run(make(pool, raffle).run(ctx, 5))

        assert raffle.names().count("claim_prize") == 1
        assert raffle.calls[-1][1] == (5, str(wallet.pubkey()))
        assert ctx.stats.prizes_won == 1
        assert ctx.stats.prizes_claimed == 1
        assert ctx.processed_round == 5

    def test_already_claimed_counts_win_only(self, pool, raffle):
        raffle.winners[6] = record(6, pool.wallets[0].pubkey(), claimed=True)
        ctx = OrchestrationContext()
        run(make(pool, raffle).run(ctx, 6))
        assert ctx.stats.prizes_won == 1
        assert ctx.stats.prizes_claimed == 0
        assert "claim_prize" not in raffle.names()

    def test_missing_record_marks_processed(self, pool, raffle):
        ctx = OrchestrationContext()
        run(make(pool, raffle).run(ctx, 8))
        assert ctx.processed_round == 8
        assert ctx.stats.errors == 0


class TestExactlyOnce:

    def test_second_call_same_round_is_noop(self, pool, raffle):
        raffle.winners[5] = record(5, pool.wallets[1].pubkey())
        claimer = make(pool, raffle)
        ctx = OrchestrationContext()
        assert run(claimer.run(ctx, 5)) is True
        assert run(claimer.run(ctx, 5)) is False
        assert raffle.names().count("winner") == 1
        assert ctx.stats.prizes_won == 1

    def test_older_round_is_never_rechecked(self, pool, raffle):
        ctx = OrchestrationContext()
        claimer = make(pool, raffle)
        run(claimer.run(ctx, 7))
        assert run(claimer.run(ctx, 6)) is False
        assert ctx.processed_round == 7

    def test_failed_claim_is_not_retried(self, pool, raffle):
        raffle.winners[5] = record(5, pool.wallets[1].pubkey())
        raffle.fail["claim_prize"] = 1
        claimer = make(pool, raffle)
        ctx = OrchestrationContext()
        run(claimer.run(ctx, 5))
        run(claimer.run(ctx, 5))

        assert raffle.names().count("claim_prize") == 1
        assert ctx.stats.errors == 1
        assert ctx.stats.prizes_won == 1
        assert ctx.stats.prizes_claimed == 0
        assert ctx.processed_round == 5

    def test_failed_winner_read_marks_processed(self, pool, raffle):
        raffle.fail["winner"] = 1
        ctx = OrchestrationContext()
        claimer = make(pool, raffle)
        run(claimer.run(ctx, 3))
        run(claimer.run(ctx, 3))
        assert ctx.stats.errors == 1
        assert ctx.processed_round == 3
        assert raffle.names().count("winner") == 1
