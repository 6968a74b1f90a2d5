"""Best-effort outcome notifications.

Mirrors the browser Notification API: a permission that is ``granted``,
``denied`` or ``default`` (undetermined), an asynchronous permission
request, and ``show``. Delivery is never a correctness requirement.
"""

import logging
from typing import Callable, List, Optional

GRANTED = 'granted'
DENIED = 'denied'
DEFAULT = 'default'
PERMISSIONS = (GRANTED, DENIED, DEFAULT)

RESULT_TITLE = 'Guess Result'

logger = logging.getLogger(__name__)


class Notifier:
    permission = DENIED

    def request_permission(self, callback: Callable[[str], None]) -> None:
        callback(self.permission)

    def show(self, title: str, body: str) -> None:
        raise NotImplementedError


class NullNotifier(Notifier):
    """Used when the client has no notification support."""

    def show(self, title: str, body: str) -> None:
        pass


class SocketIONotifier(Notifier):
    """Delegates to the connected browser over Socket.IO.

    Permission requests are answered later by the client with a
    ``notification_permission`` event, which lands in resolve_permission.
    """

    def __init__(self, socketio, sid: str, permission: str = DEFAULT, namespace: str = '/ws'):
        self.socketio = socketio
        self.sid = sid
        self.namespace = namespace
        self.permission = permission if permission in PERMISSIONS else DEFAULT
        self._waiting: List[Callable[[str], None]] = []

    def request_permission(self, callback: Callable[[str], None]) -> None:
        self._waiting.append(callback)
        self.socketio.emit('request_notification_permission', {}, to=self.sid, namespace=self.namespace)

    def resolve_permission(self, permission: str) -> None:
        if permission not in PERMISSIONS:
            return
        self.permission = permission
        waiting, self._waiting = self._waiting, []
        for callback in waiting:
            try:
                callback(permission)
            except Exception as exc:
                logger.debug(f"[notify] permission callback failed: {exc}")

    def show(self, title: str, body: str) -> None:
        self.socketio.emit('notify', {'title': title, 'body': body}, to=self.sid, namespace=self.namespace)


def notify_best_effort(notifier: Optional[Notifier], body: str, title: str = RESULT_TITLE) -> None:
    """Show a notification if permitted, asking first when undetermined.

    Failures are logged at debug level and otherwise ignored.
    """
    if notifier is None:
        return

    def _show_if_granted(permission: str) -> None:
        if permission == GRANTED:
            notifier.show(title, body)

    try:
        if notifier.permission == GRANTED:
            notifier.show(title, body)
        elif notifier.permission != DENIED:
            notifier.request_permission(_show_if_granted)
    except Exception as exc:
        logger.debug(f"[notify] dropped notification: {exc}")
