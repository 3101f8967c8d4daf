from typing import Any

# Keys that must never be used for rooms (clients written against object-keyed
# maps treat these specially).
RESERVED_NAMES = frozenset({'__proto__', 'constructor'})


def is_valid_room_name(name: Any) -> bool:
    return isinstance(name, str) and len(name) > 0 and name not in RESERVED_NAMES
