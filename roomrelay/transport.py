from typing import Any, Optional


class SocketIOTransport:
    """Delivery side of the relay, backed by a Flask-SocketIO server.

    Every call is fire-and-forget. Failures are logged and swallowed so a broken
    socket never interrupts a join or leave sequence.
    """

    def __init__(self, socketio, namespace: str = '/', logger=None):
        self.socketio = socketio
        self.namespace = namespace
        self.logger = logger

    def _warn(self, action: str, exc: Exception) -> None:
        if self.logger is None:
            return
        try:
            self.logger.warning(f"[transport] {action} failed: {exc}")
        except Exception:
            pass

    def send(self, conn_id: str, event: str, data: Any) -> None:
        try:
            self.socketio.emit(event, data, to=conn_id, namespace=self.namespace)
        except Exception as exc:
            self._warn(f"send {event} to {conn_id}", exc)

    def broadcast(self, group: str, event: str, data: Any, skip: Optional[str] = None) -> None:
        try:
            self.socketio.emit(event, data, to=group, skip_sid=skip, namespace=self.namespace)
        except Exception as exc:
            self._warn(f"broadcast {event} to {group}", exc)

    def broadcast_all(self, event: str, data: Any) -> None:
        try:
            self.socketio.emit(event, data, namespace=self.namespace)
        except Exception as exc:
            self._warn(f"broadcast {event}", exc)

    def enter_group(self, conn_id: str, group: str) -> None:
        try:
            self.socketio.server.enter_room(conn_id, group, namespace=self.namespace)
        except Exception as exc:
            self._warn(f"enter {group} for {conn_id}", exc)

    def leave_group(self, conn_id: str, group: str) -> None:
        try:
            self.socketio.server.leave_room(conn_id, group, namespace=self.namespace)
        except Exception as exc:
            self._warn(f"leave {group} for {conn_id}", exc)
