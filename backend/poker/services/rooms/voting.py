import logging
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, List, Union

from poker.errors import InvalidVote, NotFound, ParticipantNotFound, RoomAlreadyRevealed
from .codes import normalize_code
from .guards import require_host

log = logging.getLogger(__name__)

UNSURE = 'unsure'
NUMERIC_VOTES = (1, 2, 3, 5, 8, 13, 21)
VOTE_LADDER = NUMERIC_VOTES + (UNSURE,)

VoteValue = Union[int, str]


class RoomPhase(Enum):
    OPEN = 'open'
    REVEALED = 'revealed'
    CLOSED = 'closed'


# (phase, action) -> next phase. Delete/expiry leave the machine by removing the record.
TRANSITIONS = {
    (RoomPhase.OPEN, 'vote'): RoomPhase.OPEN,
    (RoomPhase.OPEN, 'reveal'): RoomPhase.REVEALED,
    (RoomPhase.OPEN, 'reset'): RoomPhase.OPEN,
    (RoomPhase.REVEALED, 'reveal'): RoomPhase.REVEALED,
    (RoomPhase.REVEALED, 'reset'): RoomPhase.OPEN,
}


def phase_of(room) -> RoomPhase:
    if room is None:
        return RoomPhase.CLOSED
    return RoomPhase.REVEALED if room.revealed else RoomPhase.OPEN


def transition(room, action: str) -> RoomPhase:
    phase = phase_of(room)
    nxt = TRANSITIONS.get((phase, action))
    if nxt is not None:
        return nxt
    if phase is RoomPhase.CLOSED:
        raise NotFound('Room not found')
    if phase is RoomPhase.REVEALED and action == 'vote':
        raise RoomAlreadyRevealed('Cannot vote after reveal')
    raise ValueError(f'No transition for {action!r} from {phase.value}')


def validate_vote(value) -> VoteValue:
    """Accept only ladder values: the listed ints or the string 'unsure'."""
    if isinstance(value, bool):
        raise InvalidVote(value, VOTE_LADDER)
    if isinstance(value, int) and value in NUMERIC_VOTES:
        return value
    if isinstance(value, str) and value == UNSURE:
        return UNSURE
    raise InvalidVote(value, VOTE_LADDER)


@dataclass(frozen=True)
class VoteStats:
    average: float
    mode: int

    def to_dict(self):
        return {'average': self.average, 'mode': self.mode}


ZERO_STATS = VoteStats(average=0.0, mode=0)


def _submission_order(participant):
    voted_at = participant.voted_at
    return (voted_at is None, voted_at or 0.0, participant.joined_at or 0, participant.member_id or '')


def compute_stats(participants: Iterable) -> VoteStats:
    """Average and mode over numeric votes.

    'unsure' and missing votes are skipped. The average is rounded half-up to
    one decimal. On a mode tie the value submitted first wins.
    """
    numeric: List[int] = [
        p.vote for p in sorted(participants, key=_submission_order)
        if isinstance(p.vote, int) and not isinstance(p.vote, bool)
    ]
    if not numeric:
        return ZERO_STATS

    mean = Decimal(sum(numeric)) / Decimal(len(numeric))
    average = float(mean.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))

    # dicts keep insertion order, so max() settles ties on first-seen
    counts = {}
    for v in numeric:
        counts[v] = counts.get(v, 0) + 1
    mode = max(counts, key=counts.get)
    return VoteStats(average=average, mode=mode)


class VotingEngine:
    """Vote submission and the reveal/reset cycle for one room at a time."""

    def __init__(self, rooms, participants, clock=time.time):
        self.rooms = rooms
        self.participants = participants
        self.clock = clock

    def submit_vote(self, code: str, member_id: str, value):
        vote = validate_vote(value)
        code = normalize_code(code)
        room = self.rooms.get(code)
        transition(room, 'vote')
        participant = self.participants.get((code, member_id))
        if participant is None:
            raise ParticipantNotFound(f'{member_id} has not joined room {code}')
        participant.vote = vote
        participant.voted_at = float(self.clock())
        saved = self.participants.put(participant)
        log.info(f"[vote] code={code} member={member_id} vote={vote}")
        return saved

    def reveal(self, code: str, requester_id: str):
        room = require_host(self.rooms, code, requester_id, action='reveal')
        transition(room, 'reveal')
        room.revealed = True
        saved = self.rooms.put(room)
        log.info(f"[reveal] code={saved.room_code}")
        return saved

    def reset(self, code: str, requester_id: str):
        """Start a new round: re-hide, clear topic, clear every vote.

        The room write goes first so pollers never see a revealed room with
        half-cleared votes; the votes are then cleared in one batch write.
        """
        room = require_host(self.rooms, code, requester_id, action='reset')
        transition(room, 'reset')
        room.revealed = False
        room.topic = ''
        saved = self.rooms.put(room)

        voted = [p for p in self.participants.query_by_partition(saved.room_code) if p.vote is not None]
        for p in voted:
            p.vote = None
            p.voted_at = None
        self.participants.put_all(voted)
        log.info(f"[reset] code={saved.room_code} cleared={len(voted)}")
        return saved
