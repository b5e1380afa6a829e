"""Room lifecycle and membership.

The service holds no room state of its own: every call re-reads the stores it
was constructed with. Multi-record sequences here (create then auto-join,
delete cascade) are plain sequential writes and are not atomic as a whole.
"""

import logging
import time
from typing import Optional, Tuple

from poker.errors import BadRequest, CodeExhausted
from poker.models import Participant, Room
from .codes import CodeGenerator, normalize_code
from .guards import require_host, require_room
from .projection import project

log = logging.getLogger(__name__)

ROOM_TTL_HOURS = 24
MAX_CODE_ATTEMPTS = 5
MAX_TOPIC_LENGTH = 500
MAX_DISPLAY_NAME_LENGTH = 64
DEFAULT_HOST_NAME = 'Host'


def _clean_text(value, field, limit, required=False):
    if value is None:
        value = ''
    if not isinstance(value, str):
        raise BadRequest(f'{field} must be a string')
    value = value.strip()
    if required and not value:
        raise BadRequest(f'{field} is required')
    if len(value) > limit:
        raise BadRequest(f'{field} is limited to {limit} characters')
    return value


def _clean_display_name(display_name):
    return _clean_text(display_name, 'Display name', MAX_DISPLAY_NAME_LENGTH, required=True)


class SessionService:

    def __init__(self, rooms, participants, codes: Optional[CodeGenerator] = None,
                 ttl_hours: int = ROOM_TTL_HOURS, max_code_attempts: int = MAX_CODE_ATTEMPTS,
                 clock=time.time):
        self.rooms = rooms
        self.participants = participants
        self.codes = codes or CodeGenerator()
        self.ttl_hours = ttl_hours
        self.max_code_attempts = max_code_attempts
        self.clock = clock

    def _now(self) -> int:
        return int(self.clock())

    def _free_code(self) -> str:
        # Check-then-write: two hosts drawing the same free code at the same
        # moment can still collide. Known gap, not closed transactionally.
        for attempt in range(1, self.max_code_attempts + 1):
            candidate = self.codes.generate()
            if self.rooms.get(candidate) is None:
                return candidate
            log.warning(f"[code-collision] candidate={candidate} attempt={attempt}/{self.max_code_attempts}")
        raise CodeExhausted(f'No free room code after {self.max_code_attempts} attempts')

    def create_room(self, host_id: str) -> Room:
        code = self._free_code()
        # An expired room may still have participant rows under this code
        stale = self.participants.query_by_partition(code)
        if stale:
            self.participants.delete_all([p.key for p in stale])
            log.info(f"[room-create] code={code} cleared {len(stale)} stale participant(s)")
        now = self._now()
        room = Room(
            room_code=code,
            host_id=host_id,
            topic='',
            revealed=False,
            created_at=now,
            expires_at=now + self.ttl_hours * 60 * 60,
        )
        saved = self.rooms.put(room)
        log.info(f"[room-create] code={code} host={host_id} expires_at={saved.expires_at}")
        return saved

    def create_room_and_join(self, host_id: str, display_name: Optional[str] = None) -> Tuple[Room, Participant]:
        """Create a room and auto-join its host.

        If the join write fails the room stays behind without participants
        until it expires; there is no rollback.
        """
        if display_name is None or (isinstance(display_name, str) and not display_name.strip()):
            display_name = DEFAULT_HOST_NAME
        display_name = _clean_display_name(display_name)
        room = self.create_room(host_id)
        participant, _ = self.join(room.room_code, host_id, display_name)
        return room, participant

    def get_room(self, code: str) -> Room:
        return require_room(self.rooms, code)

    def require_host(self, code: str, requester_id: str, action: str = 'update') -> Room:
        return require_host(self.rooms, code, requester_id, action=action)

    def update_room(self, code: str, topic: Optional[str] = None, revealed: Optional[bool] = None) -> Room:
        """Partial update; callers check host identity first."""
        room = self.get_room(code)
        if topic is not None:
            room.topic = topic
        if revealed is not None:
            room.revealed = bool(revealed)
        return self.rooms.put(room)

    def set_topic(self, code: str, requester_id: str, topic: Optional[str]) -> Room:
        room = self.require_host(code, requester_id, action='set the topic of')
        topic = _clean_text(topic, 'Topic', MAX_TOPIC_LENGTH)
        saved = self.update_room(room.room_code, topic=topic)
        log.info(f"[topic] code={saved.room_code} topic={topic!r}")
        return saved

    def delete_room(self, code: str, requester_id: str) -> None:
        room = self.require_host(code, requester_id, action='delete')
        members = self.participants.query_by_partition(room.room_code)
        self.participants.delete_all([p.key for p in members])
        self.rooms.delete(room.room_code)
        log.info(f"[room-delete] code={room.room_code} participants={len(members)}")

    def join(self, code: str, member_id: str, display_name: str) -> Tuple[Participant, bool]:
        """Join a room; returns (participant, created).

        Joining again returns the existing record untouched.
        """
        display_name = _clean_display_name(display_name)
        room = self.get_room(code)
        existing = self.participants.get((room.room_code, member_id))
        if existing is not None:
            return existing, False
        participant = Participant(
            room_code=room.room_code,
            member_id=member_id,
            display_name=display_name,
            vote=None,
            joined_at=self._now(),
            voted_at=None,
        )
        saved = self.participants.put(participant)
        log.info(f"[join] code={room.room_code} member={member_id} name={display_name!r}")
        return saved, True

    def leave(self, code: str, member_id: str) -> bool:
        """Remove the member; leaving twice is fine. Returns whether a record went away."""
        removed = self.participants.delete((normalize_code(code), member_id))
        if removed:
            log.info(f"[leave] code={normalize_code(code)} member={member_id}")
        return removed

    def get_state(self, code: str, viewer_id: str) -> dict:
        room = self.get_room(code)
        members = self.participants.query_by_partition(room.room_code)
        return project(room, members, viewer_id)
