"""One game session per connected client.

A session owns the player identity and score, the latest price sample and
the guess timer. Every state change goes through a single queue of events
(start, price poll, guess, tick, countdown expiry, teardown), so the
1-second tick and the resolution it triggers can never interleave.
Timers only post events; they never touch state directly.
"""

import logging
import queue
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from btcguess.errors import GameError, InvalidGuessError, describe
from .identity import IdentityStore
from .notify import Notifier, notify_best_effort
from .resolution import resolve_guess
from .scheduling import Scheduler, TimerHandle
from .timer import Guess, GuessTimer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class PricePoll:
    pass


@dataclass(frozen=True)
class GuessSubmitted:
    choice: str


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class CountdownExpired:
    guess: Guess


@dataclass(frozen=True)
class Teardown:
    pass


@dataclass
class GameView:
    player_id: Optional[str]
    score: int
    price: Optional[float]
    guess: Optional[str]
    status: str
    remaining: int
    loading: bool
    error: Optional[str]
    last_result: Optional[str]

    def to_dict(self):
        return asdict(self)


class GameSession:
    def __init__(
        self,
        players,
        prices,
        identity: IdentityStore,
        scheduler: Scheduler,
        notifier: Optional[Notifier] = None,
        on_change: Optional[Callable[[GameView], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        poll_interval: float = 30,
        guess_duration: int = 60,
        tick_interval: float = 1,
    ):
        self.players = players
        self.prices = prices
        self.identity = identity
        self.scheduler = scheduler
        self.notifier = notifier
        self.on_change = on_change
        self.clock = clock
        self.poll_interval = poll_interval
        self.tick_interval = tick_interval
        self.timer = GuessTimer(guess_duration)

        self.player_id: Optional[str] = None
        self.score = 0
        self.price: Optional[float] = None
        self.loading = True
        self.error: Optional[str] = None
        self.last_result: Optional[str] = None
        self.closed = False

        self._price_error = False
        self._poll_handle: Optional[TimerHandle] = None
        self._tick_handle: Optional[TimerHandle] = None
        self._events: "queue.Queue" = queue.Queue()
        self._drain_lock = threading.Lock()

    # ---- public API: each call only enqueues an event ----

    def start(self) -> None:
        self.post(Start())

    def submit_guess(self, choice: str) -> None:
        self.post(GuessSubmitted(choice))

    def refresh_price(self) -> None:
        self.post(PricePoll())

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.post(Teardown())

    def post(self, event) -> None:
        """Queue an event and drain the queue unless another caller already is."""
        self._events.put(event)
        while not self._events.empty() and self._drain_lock.acquire(blocking=False):
            try:
                self._drain()
            finally:
                self._drain_lock.release()

    def view(self) -> GameView:
        guess = self.timer.guess
        return GameView(
            player_id=self.player_id,
            score=self.score,
            price=self.price,
            guess=guess.choice if guess else None,
            status=self.timer.state,
            remaining=self.timer.remaining(self.clock()),
            loading=self.loading,
            error=self.error,
            last_result=self.last_result,
        )

    # ---- event loop ----

    def _drain(self) -> None:
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return
            self._dispatch(event)

    def _dispatch(self, event) -> None:
        if isinstance(event, Teardown):
            self._on_teardown()
            return
        if self.closed:
            return

        if isinstance(event, Start):
            self._on_start()
        elif isinstance(event, PricePoll):
            self._poll_price()
        elif isinstance(event, GuessSubmitted):
            self._on_guess(event.choice)
        elif isinstance(event, Tick):
            self._on_tick()
        elif isinstance(event, CountdownExpired):
            self._on_expired(event.guess)
        else:
            raise TypeError(f"Unknown session event: {event!r}")

        if not self.closed and self.on_change is not None:
            self.on_change(self.view())

    def _on_start(self) -> None:
        self._load_player()
        self._poll_price()
        self._poll_handle = self.scheduler.call_every(self.poll_interval, self.refresh_price)
        logger.info(f"[timer-set] price poll every {self.poll_interval}s player={self.player_id}")

    def _load_player(self) -> None:
        player_id = self.identity.get()
        created = not player_id
        try:
            if created:
                player_id = self.players.create_player(0)
                score = 0
            else:
                score = self.players.read_score(player_id)
        except GameError as exc:
            if not self.closed:
                logger.error(f"[player-load] failed player={player_id}: {exc}")
                self._fail(exc)
                self.loading = False
            return
        if self.closed:
            return
        if created:
            self.identity.set(player_id)
            logger.info(f"[player-create] player={player_id}")
        self.player_id = player_id
        self.score = score
        self.loading = False

    def _poll_price(self) -> None:
        try:
            price = self.prices.fetch_usd()
        except GameError as exc:
            if not self.closed:
                logger.warning(f"[price-poll] failed: {exc}")
                self._fail(exc, from_price=True)
            return
        if self.closed:
            return
        self.price = price
        if self._price_error:
            self.error = None
            self._price_error = False

    def _on_guess(self, choice: str) -> None:
        if self.player_id is None:
            logger.info(f"[guess-refused] no player choice={choice}")
            return
        try:
            accepted = self.timer.submit(choice, self.price, self.clock())
        except InvalidGuessError as exc:
            logger.warning(f"[guess-refused] player={self.player_id}: {exc}")
            return
        if not accepted:
            logger.info(f"[guess-skip] player={self.player_id} guess already pending")
            return
        logger.info(f"[guess] player={self.player_id} choice={choice} price={self.price}")
        self._cancel_tick()
        self._tick_handle = self.scheduler.call_every(self.tick_interval, lambda: self.post(Tick()))

    def _on_tick(self) -> None:
        guess = self.timer.guess
        if guess is None:
            self._cancel_tick()
            return
        if self.timer.expired(self.clock()):
            self._cancel_tick()
            self.post(CountdownExpired(guess))

    def _on_expired(self, guess: Guess) -> None:
        if self.timer.guess is not guess:
            return
        try:
            current = self.prices.fetch_usd()
        except GameError as exc:
            if not self.closed:
                logger.warning(f"[resolve-failed] player={self.player_id}: {exc}")
                self._fail(exc, from_price=True)
                self.timer.clear()
            return
        if self.closed:
            return

        outcome = resolve_guess(guess.choice, guess.price, current)
        self.score += outcome.delta
        self.last_result = outcome.message
        logger.info(
            f"[resolve] player={self.player_id} choice={guess.choice} p0={guess.price} p1={current} "
            f"correct={outcome.correct} score={self.score}"
        )
        try:
            self.players.update_score(self.player_id, self.score, datetime.now(timezone.utc))
        except GameError as exc:
            logger.error(f"[score-update] failed player={self.player_id}: {exc}")
            self._fail(exc)
        if self.closed:
            return

        self.timer.clear()
        self.post(PricePoll())
        notify_best_effort(self.notifier, outcome.message)

    def _on_teardown(self) -> None:
        self.closed = True
        self._cancel_tick()
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None
        self.timer.clear()
        logger.info(f"[session-end] player={self.player_id}")

    def _cancel_tick(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    def _fail(self, exc: GameError, from_price: bool = False) -> None:
        # A price error never hides a backend error
        if from_price and self.error and not self._price_error:
            return
        self.error = describe(exc)
        self._price_error = from_price
