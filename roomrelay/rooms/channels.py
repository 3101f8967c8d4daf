from typing import Dict, NamedTuple


class Channel(NamedTuple):
    """How one inbound update channel is relayed to the rest of a room."""
    inbound: str
    outbound: str
    field: str
    # When set, the relayed value is the registry snapshot instead of the payload
    sends_snapshot: bool = False


CHANNELS: Dict[str, Channel] = {
    c.inbound: c for c in (
        Channel('updateCursor', 'update', 'cursorData'),
        Channel('updateBlocks', 'updateBl', 'blockData'),
        Channel('updateChat', 'updateCh', 'chatData'),
        Channel('updateDamage', 'updateD', 'damageData'),
        Channel('removeBullet', 'updateRb', 'bulletData'),
        Channel('updateBullet', 'updateB', 'bulletData'),
        Channel('updateData', 'updateP', 'playerData'),
        Channel('updateWait', 'updateW', 'waitData'),
        Channel('getRooms', 'gotRooms', 'roomData', sends_snapshot=True),
    )
}
