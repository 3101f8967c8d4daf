from typing import Any, Dict, Optional

from .rooms import CHANNELS, RoomRegistry, as_state


def group_for(room_name: str) -> str:
    return f"room:{room_name}"


class BroadcastRelay:
    """Fans room events out through the transport.

    Room-scoped messages always skip the connection that caused them; the room
    list goes to every connection so clients still in the lobby stay current.
    """

    def __init__(self, registry: RoomRegistry, transport):
        self.registry = registry
        self.transport = transport

    def to_others(self, room_name: str, sender: str, event: str, data: Any) -> None:
        self.transport.broadcast(group_for(room_name), event, data, skip=sender)

    def send_rooms(self, conn_id: str) -> None:
        self.transport.send(conn_id, 'rooms_list', self.registry.snapshot())

    def publish_rooms(self) -> None:
        self.transport.broadcast_all('rooms_list', self.registry.snapshot())

    def send_initial_state(self, conn_id: str, occupants: Dict[str, Any]) -> None:
        self.transport.send(conn_id, 'initialState', occupants)

    def announce_new_occupant(self, room_name: str, conn_id: str, state: Dict[str, Any]) -> None:
        self.to_others(room_name, conn_id, 'newPlayer', {'id': conn_id, **state})

    def announce_removed_occupant(self, room_name: str, conn_id: str) -> None:
        self.to_others(room_name, conn_id, 'removePlayer', conn_id)

    def relay_update(self, room_name: Optional[str], conn_id: str, channel: str, payload: Any) -> bool:
        """Store `payload` as the sender's state and forward it to its room.

        Returns False (and sends nothing) when the channel is unknown, the sender
        is not in a room, the room is gone, or the sender is no longer one of
        its occupants.
        """
        route = CHANNELS.get(channel)
        if route is None or not room_name:
            return False
        if not self.registry.update_occupant(room_name, conn_id, payload):
            return False
        if route.sends_snapshot:
            value = self.registry.snapshot()
        else:
            value = as_state(payload)
        self.to_others(room_name, conn_id, route.outbound, {'id': conn_id, route.field: value})
        return True
