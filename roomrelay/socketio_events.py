from flask import current_app, request
from typing import Any, Tuple

from roomrelay import socketio
from roomrelay.lifecycle import ConnectionLifecycle
from roomrelay.rooms import CHANNELS


def _lifecycle() -> ConnectionLifecycle:
    return current_app.extensions['room_relay']


def _get_sid() -> str:
    # Flask-SocketIO sets request.sid for the duration of an event
    return request.sid  # type: ignore


def _room_request(data: Any) -> Tuple[Any, Any]:
    """Pull (name, kind) out of a create_room payload.

    Accepts {'name', 'kind'} ('type' is an alias of 'kind') or a bare name.
    """
    if isinstance(data, dict):
        return data.get('name'), data.get('kind', data.get('type'))
    return data, None


def handle_connect():
    sid = _get_sid()
    current_app.logger.info(f"[connect] sid={sid}")
    _lifecycle().connect(sid)


def handle_disconnect(reason=None):
    sid = _get_sid()
    result = _lifecycle().disconnect(sid)
    if result is None:
        current_app.logger.info(f"[disconnect] sid={sid} lobby reason={reason}")
        return
    current_app.logger.info(
        f"[disconnect] sid={sid} room={result.room} removed={result.removed} room_deleted={result.room_deleted}"
    )


def handle_create_room(data=None):
    name, kind = _room_request(data)
    result = _lifecycle().create_room(_get_sid(), name, kind)
    if result is None:
        current_app.logger.debug(f"[create_room] sid={_get_sid()} rejected name={name!r}")
        return
    _log_join('create_room', result)


def handle_join_room(data=None):
    result = _lifecycle().join_room(_get_sid(), data)
    if result is None:
        current_app.logger.debug(f"[join_room] sid={_get_sid()} rejected name={data!r}")
        return
    _log_join('join_room', result)


def _log_join(tag: str, result) -> None:
    sid = _get_sid()
    if result.left is not None:
        current_app.logger.info(
            f"[leave] sid={sid} room={result.left.room} room_deleted={result.left.room_deleted}"
        )
    if result.created:
        current_app.logger.info(f"[{tag}] room created: {result.room}")
    current_app.logger.info(f"[{tag}] sid={sid} joined room={result.room} occupants={result.occupants}")


def _make_update_handler(channel: str):
    def handler(data=None):
        _lifecycle().handle_update(_get_sid(), channel, data)
    handler.__name__ = f"handle_{channel}"
    return handler


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the relay namespace.

    The nine update channels share one handler body, parameterized by the
    channel name.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create_room', handle_create_room, namespace=namespace)
    socketio.on_event('join_room', handle_join_room, namespace=namespace)
    for channel in CHANNELS:
        socketio.on_event(channel, _make_update_handler(channel), namespace=namespace)
