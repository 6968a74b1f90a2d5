from dataclasses import dataclass
from typing import Optional

UP = 'up'
DOWN = 'down'
CHOICES = (UP, DOWN)

CORRECT_UP = "Your guess was correct! Bitcoin went up."
CORRECT_DOWN = "Your guess was correct! Bitcoin went down."
INCORRECT = "Your guess was incorrect."


@dataclass(frozen=True)
class Outcome:
    correct: bool
    delta: int
    message: str


def resolve_guess(choice: str, initial_price: Optional[float], current_price: float) -> Outcome:
    """Score a guess against the price move.

    Only a strict move in the guessed direction counts; an unchanged price
    or a guess placed before any price was known is incorrect.
    """
    if initial_price is not None:
        if choice == UP and current_price > initial_price:
            return Outcome(True, 1, CORRECT_UP)
        if choice == DOWN and current_price < initial_price:
            return Outcome(True, 1, CORRECT_DOWN)
    return Outcome(False, -1, INCORRECT)
