import logging

from poker.errors import Forbidden, NotFound
from .codes import normalize_code

log = logging.getLogger(__name__)


def require_room(rooms, code: str):
    code = normalize_code(code)
    room = rooms.get(code)
    if room is None:
        raise NotFound(f'Room {code} not found')
    return room


def require_host(rooms, code: str, requester_id: str, action: str = 'update'):
    """Load the room and check the requester is its host."""
    room = require_room(rooms, code)
    if room.host_id != requester_id:
        log.info(f"[forbidden] code={room.room_code} action={action} requester={requester_id}")
        raise Forbidden(f'Only the host can {action} this room')
    return room
