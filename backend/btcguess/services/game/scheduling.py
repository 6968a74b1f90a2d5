from typing import Callable


class TimerHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Runs callbacks after a delay. Subclasses provide call_later."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback every interval seconds until the handle is cancelled."""
        handle = TimerHandle()

        def _fire():
            if handle.cancelled:
                return
            # Re-arm first so a failing callback does not end the loop
            self.call_later(interval, _fire)
            callback()

        self.call_later(interval, _fire)
        return handle


class BackgroundScheduler(Scheduler):
    """Timers as Socket.IO background tasks, each callback inside an app context."""

    def __init__(self, app, socketio):
        self.app = app
        self.socketio = socketio

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()

        def _worker():
            self.socketio.sleep(delay)
            if handle.cancelled:
                return
            with self.app.app_context():
                try:
                    callback()
                except Exception:
                    self.app.logger.exception("[timer-error] callback failed")

        self.socketio.start_background_task(_worker)
        return handle
