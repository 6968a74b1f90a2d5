from typing import Dict

from flask import current_app, request
from flask_socketio import emit

from btcguess import socketio
from btcguess.services import get_services
from btcguess.services.game.identity import PLAYER_ID_KEY, ClientIdentityStore
from btcguess.services.game.notify import NullNotifier, SocketIONotifier
from btcguess.services.game.session import GameSession

NAMESPACE = '/ws'

_sessions: Dict[str, GameSession] = {}


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    """Start a game session for this tab.

    The client sends what it keeps in localStorage as ``auth``:
    ``{"playerId": ..., "notificationPermission": "granted"|"denied"|"default"}``.
    A missing notificationPermission means the browser cannot notify.
    """
    auth = auth if isinstance(auth, dict) else {}
    sid = _get_sid()
    services = get_services()
    emit('connected', {'message': 'Connected to /ws'})
    if services.error:
        emit('state', {'loading': False, 'error': services.error})
        return

    def _persist_identity(player_id: str) -> None:
        socketio.emit('identity', {PLAYER_ID_KEY: player_id}, to=sid, namespace=NAMESPACE)

    def _push_state(view) -> None:
        socketio.emit('state', view.to_dict(), to=sid, namespace=NAMESPACE)

    permission = auth.get('notificationPermission')
    if permission:
        notifier = SocketIONotifier(socketio, sid, permission, namespace=NAMESPACE)
    else:
        notifier = NullNotifier()

    session = services.new_session(
        ClientIdentityStore(auth.get(PLAYER_ID_KEY), _persist_identity),
        notifier=notifier,
        on_change=_push_state,
    )
    _sessions[sid] = session
    current_app.logger.info(f"[session-start] sid={sid}")
    try:
        session.start()
    except Exception:
        _sessions.pop(sid, None)
        session.close()
        raise


def handle_disconnect(reason=None):
    session = _sessions.pop(_get_sid(), None)
    if session is not None:
        session.close()


def handle_guess(data):
    session = _sessions.get(_get_sid())
    if session is None:
        emit('error', {'message': 'No active game session'})
        return
    if not isinstance(data, dict):
        emit('error', {'message': 'guess expects {"choice": "up"|"down"}'})
        return
    session.submit_guess(data.get('choice'))


def handle_notification_permission(data):
    session = _sessions.get(_get_sid())
    if session is None:
        return
    if isinstance(session.notifier, SocketIONotifier) and isinstance(data, dict):
        session.notifier.resolve_permission(data.get('permission'))


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('guess', handle_guess, namespace=NAMESPACE)
    socketio.on_event('notification_permission', handle_notification_permission, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
