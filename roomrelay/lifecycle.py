import threading
from collections import OrderedDict
from typing import Any, Dict, NamedTuple, Optional

from .relay import BroadcastRelay, group_for
from .rooms import Admission, RoomRegistry, is_valid_room_name

# Recently disconnected ids kept to turn late-arriving joins into no-ops
DISCONNECT_MEMORY = 4096


class LeaveResult(NamedTuple):
    room: str
    removed: bool
    room_deleted: bool


class JoinResult(NamedTuple):
    room: str
    created: bool
    occupants: int
    left: Optional[LeaveResult] = None


class ConnectionLifecycle:
    """Tracks which room each connection is in and drives room transitions.

    A connection is either in the lobby (no entry in the index) or in exactly
    one room. Switching rooms always runs the full leave sequence before the
    join sequence. Transitions of one connection are serialized by a
    per-connection lock; different connections only meet in the registry.
    """

    def __init__(self, registry: RoomRegistry, relay: BroadcastRelay):
        self.registry = registry
        self.relay = relay
        self.transport = relay.transport
        self._current: Dict[str, str] = {}
        self._conn_locks: Dict[str, threading.RLock] = {}
        self._disconnected: 'OrderedDict[str, bool]' = OrderedDict()
        self._lock = threading.Lock()

    def _conn_lock(self, conn_id: str):
        with self._lock:
            lock = self._conn_locks.get(conn_id)
            if lock is None:
                lock = self._conn_locks[conn_id] = threading.RLock()
            return lock

    def _is_disconnected(self, conn_id: str) -> bool:
        with self._lock:
            return conn_id in self._disconnected

    def current_room(self, conn_id: str) -> Optional[str]:
        with self._lock:
            return self._current.get(conn_id)

    def connect(self, conn_id: str) -> None:
        self.relay.send_rooms(conn_id)

    def create_room(self, conn_id: str, name: Any, kind: Any = None) -> Optional[JoinResult]:
        if not is_valid_room_name(name):
            return None
        return self._join(conn_id, name, create=True, kind=kind)

    def join_room(self, conn_id: str, name: Any) -> Optional[JoinResult]:
        if not self.registry.room_exists(name):
            return None
        return self._join(conn_id, name)

    def _admit(self, conn_id: str, name: str, create: bool, kind: Any) -> Optional[Admission]:
        if create:
            return self.registry.open_room(name, conn_id, kind)
        return self.registry.add_occupant(name, conn_id)

    def _join(self, conn_id: str, name: str, create: bool = False, kind: Any = None) -> Optional[JoinResult]:
        with self._conn_lock(conn_id):
            if self._is_disconnected(conn_id):
                return None
            left = None
            previous = self.current_room(conn_id)
            if previous is not None and previous != name:
                left = self.leave(conn_id)

            admission = self._admit(conn_id, name, create, kind)
            if admission is None:
                return None

            self.transport.enter_group(conn_id, group_for(name))
            with self._lock:
                self._current[conn_id] = name

            self.relay.send_initial_state(conn_id, admission.occupants)
            self.relay.announce_new_occupant(name, conn_id, admission.state)
            self.relay.publish_rooms()
            return JoinResult(name, admission.created, len(admission.occupants), left)

    def leave(self, conn_id: str) -> Optional[LeaveResult]:
        with self._conn_lock(conn_id):
            with self._lock:
                name = self._current.pop(conn_id, None)
            if name is None:
                return None

            removal = self.registry.remove_occupant(name, conn_id)
            self.transport.leave_group(conn_id, group_for(name))
            if removal.removed:
                if not removal.room_deleted:
                    self.relay.announce_removed_occupant(name, conn_id)
                self.relay.publish_rooms()
            return LeaveResult(name, removal.removed, removal.room_deleted)

    def disconnect(self, conn_id: str) -> Optional[LeaveResult]:
        """Leave for good. Joins still in flight for `conn_id` finish first and
        are cleaned up here; joins that arrive later are ignored."""
        with self._lock:
            self._disconnected[conn_id] = True
            while len(self._disconnected) > DISCONNECT_MEMORY:
                self._disconnected.popitem(last=False)
        try:
            return self.leave(conn_id)
        finally:
            with self._lock:
                self._conn_locks.pop(conn_id, None)

    def handle_update(self, conn_id: str, channel: str, payload: Any) -> bool:
        return self.relay.relay_update(self.current_room(conn_id), conn_id, channel, payload)
