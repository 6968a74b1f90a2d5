import math
from dataclasses import dataclass
from typing import Optional

from btcguess.errors import InvalidGuessError
from .resolution import CHOICES

IDLE = 'idle'
PENDING = 'pending'


@dataclass(frozen=True)
class Guess:
    choice: str
    price: Optional[float]
    started_at: float


class GuessTimer:
    """Idle -> Pending -> Idle.

    Holds at most one guess. The countdown value is derived from the start
    time on every read; nothing here owns a real timer.
    """

    def __init__(self, duration: int = 60):
        self.duration = duration
        self.guess: Optional[Guess] = None

    @property
    def state(self) -> str:
        return PENDING if self.guess else IDLE

    def submit(self, choice: str, price: Optional[float], now: float) -> bool:
        """Record a guess. Returns False (and changes nothing) if one is pending."""
        if choice not in CHOICES:
            raise InvalidGuessError(f"Invalid guess: {choice!r}")
        if self.guess is not None:
            return False
        self.guess = Guess(choice=choice, price=price, started_at=now)
        return True

    def remaining(self, now: float) -> int:
        if self.guess is None:
            return self.duration
        elapsed = max(0.0, now - self.guess.started_at)
        return max(0, self.duration - math.floor(elapsed))

    def expired(self, now: float) -> bool:
        return self.guess is not None and self.remaining(now) == 0

    def clear(self) -> Optional[Guess]:
        guess, self.guess = self.guess, None
        return guess
