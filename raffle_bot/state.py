import random
import time
from dataclasses import dataclass, field


def now_ms() -> int:
    return int(time.time() * 1000)


def random_in_range(rng: random.Random, low: int, high: int) -> int:
    """Inclusive on both ends."""
    return rng.randint(low, high)


@dataclass
class RunStatistics:
    tickets_purchased: int = 0
    draws_triggered: int = 0
    prizes_won: int = 0
    prizes_claimed: int = 0
    errors: int = 0

    def summary(self) -> str:
        return (
            f"{self.tickets_purchased} tickets | {self.draws_triggered} draws | "
            f"{self.prizes_won} wins | {self.prizes_claimed} claimed | {self.errors} errors"
        )


@dataclass
class DrawTimer:
    # Both fields are set together or both are None
    started_at: int | None = None
    target_delay_ms: int | None = None

    @property
    def is_set(self) -> bool:
        return self.started_at is not None

    def start(self, now: int, delay_ms: int):
        self.started_at = now
        self.target_delay_ms = delay_ms

    def clear(self):
        self.started_at = None
        self.target_delay_ms = None


@dataclass
class OrchestrationContext:
    """Everything the control loop mutates between ticks."""

    stats: RunStatistics = field(default_factory=RunStatistics)
    last_purchase_at: int = 0
    draw_timer: DrawTimer = field(default_factory=DrawTimer)
    processed_round: int = 0

    def already_processed(self, round_number: int) -> bool:
        # Rounds only move forward, so anything at or below the marker is done
        return round_number <= self.processed_round

    def mark_processed(self, round_number: int):
        self.processed_round = max(self.processed_round, round_number)
