import copy
import threading
from collections.abc import Mapping
from typing import Any, Dict, List, NamedTuple, Optional

from .validation import is_valid_room_name

DEFAULT_KIND = 'custom'


def seed_state(room_name: str) -> Dict[str, Any]:
    return {'x': 0, 'y': 0, 'room': room_name}


def as_state(payload: Any) -> Dict[str, Any]:
    # Occupant state is always a fresh mapping owned by the registry
    if isinstance(payload, Mapping):
        return dict(payload)
    return {}


class Admission(NamedTuple):
    state: Dict[str, Any]
    occupants: Dict[str, Dict[str, Any]]
    created: bool = False


class Removal(NamedTuple):
    removed: bool
    room_deleted: bool


class Room:
    def __init__(self, name: str, kind: str = DEFAULT_KIND):
        self.name = name
        self.kind = kind
        self.occupants: Dict[str, Dict[str, Any]] = {}
        self.auxiliary: Dict[str, Any] = {}
        self.lock = threading.Lock()
        # Set under `lock` once the last occupant leaves; a closed room is dead
        # even if it is still briefly present in the registry table.
        self.closed = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'players': copy.deepcopy(self.occupants),
            'blocks': copy.deepcopy(self.auxiliary),
            'type': self.kind,
        }

    def __repr__(self) -> str:
        return f'<Room {self.name!r} kind={self.kind!r} occupants={len(self.occupants)}>'


class RoomRegistry:
    """In-memory room table shared by every connection of one app.

    Occupant changes lock only the affected room. Table changes (create, delete
    on empty) take the table lock, always after the room lock when both are
    needed, so snapshots never see a room half way through deletion.
    """

    def __init__(self, default_kind: str = DEFAULT_KIND):
        self.default_kind = default_kind or DEFAULT_KIND
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def _live(self, name: Any) -> Optional[Room]:
        if not is_valid_room_name(name):
            return None
        with self._lock:
            room = self._rooms.get(name)
        if room is None or room.closed:
            return None
        return room

    def create_room(self, name: Any, kind: Any = None) -> bool:
        """Create an empty room unless a live one already has this name.

        Returns True only when a new room was allocated.
        """
        if not is_valid_room_name(name):
            return False
        if not isinstance(kind, str) or not kind:
            kind = self.default_kind
        with self._lock:
            existing = self._rooms.get(name)
            if existing is not None and not existing.closed:
                return False
            self._rooms[name] = Room(name, kind)
            return True

    def open_room(self, name: Any, conn_id: str, kind: Any = None) -> Optional[Admission]:
        """Join `name`, creating it with `conn_id` as first occupant if needed.

        A new room enters the table already holding its occupant, so it is
        never listed empty. `created` on the result tells the two cases apart.
        """
        if not is_valid_room_name(name):
            return None
        if not isinstance(kind, str) or not kind:
            kind = self.default_kind
        while True:
            with self._lock:
                existing = self._rooms.get(name)
                if existing is None or existing.closed:
                    room = Room(name, kind)
                    state = seed_state(name)
                    room.occupants[conn_id] = state
                    self._rooms[name] = room
                    return Admission(dict(state), copy.deepcopy(room.occupants), True)
            admission = self.add_occupant(name, conn_id)
            if admission is not None:
                return admission
            # closed after the table lookup; the next pass replaces it

    def room_exists(self, name: Any) -> bool:
        return self._live(name) is not None

    def add_occupant(self, name: Any, conn_id: str) -> Optional[Admission]:
        room = self._live(name)
        if room is None:
            return None
        with room.lock:
            if room.closed:
                return None
            state = seed_state(name)
            room.occupants[conn_id] = state
            return Admission(dict(state), copy.deepcopy(room.occupants))

    def remove_occupant(self, name: Any, conn_id: str) -> Removal:
        room = self._live(name)
        if room is None:
            return Removal(False, False)
        with room.lock:
            if room.closed or conn_id not in room.occupants:
                return Removal(False, False)
            del room.occupants[conn_id]
            if room.occupants:
                return Removal(True, False)
            room.closed = True
            with self._lock:
                if self._rooms.get(name) is room:
                    del self._rooms[name]
        return Removal(True, True)

    def update_occupant(self, name: Any, conn_id: str, payload: Any) -> bool:
        room = self._live(name)
        if room is None:
            return False
        with room.lock:
            if room.closed or conn_id not in room.occupants:
                return False
            room.occupants[conn_id] = as_state(payload)
            return True

    def occupants(self, name: Any) -> Optional[Dict[str, Dict[str, Any]]]:
        room = self._live(name)
        if room is None:
            return None
        with room.lock:
            if room.closed:
                return None
            return copy.deepcopy(room.occupants)

    def kind_of(self, name: Any) -> Optional[str]:
        room = self._live(name)
        return room.kind if room is not None else None

    def room_names(self) -> List[str]:
        with self._lock:
            rooms = list(self._rooms.values())
        names = []
        for room in rooms:
            with room.lock:
                if not room.closed and room.occupants:
                    names.append(room.name)
        return names

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Deep copy of every listed room, keyed by name.

        Rooms without occupants are never listed, whether they are closing or
        were created and not yet joined.
        """
        with self._lock:
            rooms = list(self._rooms.values())
        table: Dict[str, Dict[str, Any]] = {}
        for room in rooms:
            with room.lock:
                if not room.closed and room.occupants:
                    table[room.name] = room.to_dict()
        return table

    def __len__(self) -> int:
        return len(self.room_names())
