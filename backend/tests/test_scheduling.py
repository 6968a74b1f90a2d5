import time

from flask import current_app

from btcguess import socketio
from btcguess.services.game.scheduling import BackgroundScheduler


def _wait_for(predicate, timeout=3.0):
    deadline = time.time() + timeout
    while not predicate() and time.time() < deadline:
        time.sleep(0.01)
    return predicate()


def test_repeating_timer_survives_failing_callback(flask_app):
    scheduler = BackgroundScheduler(flask_app, socketio)
    seen = []

    def _poll():
        seen.append(current_app.name)
        raise RuntimeError('price API down')

    handle = scheduler.call_every(0.05, _poll)
    assert _wait_for(lambda: len(seen) >= 3)
    handle.cancel()
    assert set(seen) == {flask_app.name}

    # A worker already past its cancel check may still finish once
    time.sleep(0.15)
    fired = len(seen)
    time.sleep(0.3)
    assert len(seen) == fired


def test_cancelled_timer_never_fires(flask_app):
    scheduler = BackgroundScheduler(flask_app, socketio)
    fired = []
    handle = scheduler.call_later(0.05, lambda: fired.append(True))
    handle.cancel()
    time.sleep(0.2)
    assert fired == []


def test_one_shot_timer_fires_in_app_context(flask_app):
    scheduler = BackgroundScheduler(flask_app, socketio)
    seen = []
    scheduler.call_later(0.02, lambda: seen.append(current_app.config['GUESS_DURATION_SEC']))
    assert _wait_for(lambda: seen == [60])
