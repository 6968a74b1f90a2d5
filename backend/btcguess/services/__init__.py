"""Collaborators shared by every game session, built once per app."""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from flask import current_app

from btcguess.clients import PlayerBackend, PriceClient, build_player_backend, build_price_client
from btcguess.errors import ConfigurationError, describe
from .game.identity import IdentityStore
from .game.notify import Notifier
from .game.scheduling import BackgroundScheduler, Scheduler
from .game.session import GameSession, GameView

EXTENSION_KEY = 'btcguess'


@dataclass
class GameServices:
    players: Optional[PlayerBackend] = None
    prices: Optional[PriceClient] = None
    scheduler: Optional[Scheduler] = None
    # Set when configuration is incomplete; the game is unusable until restart
    error: Optional[str] = None
    clock: Callable[[], float] = field(default=time.monotonic)
    poll_interval: float = 30
    guess_duration: int = 60
    tick_interval: float = 1

    def new_session(
        self,
        identity: IdentityStore,
        notifier: Optional[Notifier] = None,
        on_change: Optional[Callable[[GameView], None]] = None,
    ) -> GameSession:
        if self.error:
            raise ConfigurationError(self.error)
        return GameSession(
            self.players,
            self.prices,
            identity,
            self.scheduler,
            notifier=notifier,
            on_change=on_change,
            clock=self.clock,
            poll_interval=self.poll_interval,
            guess_duration=self.guess_duration,
            tick_interval=self.tick_interval,
        )


def init_services(app, db, socketio) -> GameServices:
    services = GameServices(
        scheduler=BackgroundScheduler(app, socketio),
        poll_interval=float(app.config.get('PRICE_POLL_INTERVAL_SEC', 30)),
        guess_duration=int(app.config.get('GUESS_DURATION_SEC', 60)),
        tick_interval=float(app.config.get('TICK_INTERVAL_SEC', 1)),
    )
    try:
        services.players = build_player_backend(app.config, db)
        services.prices = build_price_client(app.config)
    except ConfigurationError as exc:
        services.error = describe(exc)
        app.logger.error(f"[config] game disabled: {services.error}")
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> GameServices:
    return current_app.extensions[EXTENSION_KEY]
