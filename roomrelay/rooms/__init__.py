"""Room domain: registry, name rules and the relay channel table.

Nothing in this package touches the transport or logs; callers get plain
return values and decide what to emit and what to record.
"""

from .registry import Admission, Removal, Room, RoomRegistry, as_state, seed_state
from .channels import CHANNELS, Channel
from .validation import RESERVED_NAMES, is_valid_room_name

__all__ = [
    'Admission',
    'Removal',
    'Room',
    'RoomRegistry',
    'as_state',
    'seed_state',
    'CHANNELS',
    'Channel',
    'RESERVED_NAMES',
    'is_valid_room_name',
]
