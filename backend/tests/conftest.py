import os
import sys
import pytest

# Ensure the backend root (containing the `btcguess` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from btcguess import create_app, db, socketio
from btcguess.clients.players import PlayerBackend
from btcguess.errors import BackendError, PriceFetchError, UnknownPlayerError
from btcguess.services import get_services
from btcguess.services.game.identity import IdentityStore, MemoryIdentityStore
from btcguess.services.game.notify import Notifier
from btcguess.services.game.scheduling import Scheduler, TimerHandle
from btcguess.services.game.session import GameSession


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PLAYER_BACKEND = 'sql'
    BTC_PRICE_API = 'http://prices.test/api/v3/simple/price?ids=bitcoin&vs_currencies=usd'
    PRICE_POLL_INTERVAL_SEC = 30
    GUESS_DURATION_SEC = 60
    TICK_INTERVAL_SEC = 1
    HTTP_TIMEOUT_SEC = 1
    ALLOWED_ORIGINS = []


class ManualScheduler(Scheduler):
    """Virtual time: timers fire only when the test advances the clock."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._timers = []

    def clock(self):
        return self.now

    def call_later(self, delay, callback):
        handle = TimerHandle()
        self._seq += 1
        self._timers.append((self.now + delay, self._seq, handle, callback))
        return handle

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if t[0] <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t[0], t[1]))
            self._timers.remove(timer)
            self.now = timer[0]
            if not timer[2].cancelled:
                timer[3]()
        self.now = target


class FakePriceClient:
    def __init__(self, price=65000.0):
        self.price = price
        self.fail = False
        self.calls = 0
        self.on_fetch = None

    def fetch_usd(self):
        self.calls += 1
        if self.on_fetch is not None:
            self.on_fetch()
        if self.fail:
            raise PriceFetchError('Price API request failed: connection refused')
        return self.price


class FakePlayerBackend(PlayerBackend):
    def __init__(self):
        self.rows = {}
        self.created = 0
        self.updates = []
        self.unreachable = False
        self.fail_update = False
        self.on_update = None

    def create_player(self, score=0):
        if self.unreachable:
            raise BackendError('Player backend unreachable')
        self.created += 1
        player_id = f'player-{self.created}'
        self.rows[player_id] = score
        return player_id

    def read_score(self, player_id):
        if self.unreachable:
            raise BackendError('Player backend unreachable')
        if player_id not in self.rows:
            raise UnknownPlayerError(player_id)
        return self.rows[player_id]

    def update_score(self, player_id, score, updated_at):
        if self.on_update is not None:
            self.on_update()
        if self.unreachable or self.fail_update:
            raise BackendError('Could not update score')
        self.rows[player_id] = score
        self.updates.append((player_id, score, updated_at))


class RecordingNotifier(Notifier):
    def __init__(self, permission='granted', answer='granted'):
        self.permission = permission
        self.answer = answer
        self.requests = 0
        self.shown = []

    def request_permission(self, callback):
        self.requests += 1
        self.permission = self.answer
        callback(self.answer)

    def show(self, title, body):
        self.shown.append((title, body))


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def prices():
    return FakePriceClient()


@pytest.fixture()
def backend():
    return FakePlayerBackend()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def views():
    return []


@pytest.fixture()
def make_session(backend, prices, scheduler, notifier, views):
    def _make(identity=None, **kwargs):
        store = identity if isinstance(identity, IdentityStore) else MemoryIdentityStore(identity)
        kwargs.setdefault('notifier', notifier)
        return GameSession(
            backend, prices, store, scheduler,
            on_change=views.append, clock=scheduler.clock, **kwargs
        )
    return _make


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import btcguess.models  # noqa: F401
        db.create_all()
        services = get_services()
        services.prices = FakePriceClient()
        services.scheduler = ManualScheduler()
        services.clock = services.scheduler.clock
        yield application
        from btcguess import socketio_events
        for session in list(socketio_events._sessions.values()):
            session.close()
        socketio_events._sessions.clear()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def services(flask_app):
    return get_services()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    clients = []

    def _connect(auth=None):
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws',
            auth=auth,
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except RuntimeError:
            pass
