from types import SimpleNamespace

import pytest

from conftest import FixedCodes
from poker.errors import Forbidden, InvalidVote, NotFound, ParticipantNotFound, RoomAlreadyRevealed
from poker.models import Participant
from poker.services.rooms import SessionService, VotingEngine, compute_stats, project
from poker.services.rooms.voting import (
    UNSURE, VOTE_LADDER, RoomPhase, phase_of, transition, validate_vote,
)


def _p(member_id, vote, voted_at=None, joined_at=0):
    return Participant(room_code='K7H2M9', member_id=member_id, display_name=member_id,
                       vote=vote, voted_at=voted_at, joined_at=joined_at)


def _submitted(*votes):
    return [_p(f'm{i}', v, voted_at=float(i)) for i, v in enumerate(votes)]


@pytest.fixture()
def room(stores, clock):
    service = SessionService(*stores, FixedCodes('K7H2M9'), clock=clock)
    service.create_room_and_join('host')
    service.join('K7H2M9', 'ada', 'Ada')
    return service


@pytest.fixture()
def engine(stores, clock):
    return VotingEngine(*stores, clock=clock)


@pytest.mark.parametrize('value', VOTE_LADDER)
def test_validate_vote_accepts_ladder(value):
    assert validate_vote(value) == value


@pytest.mark.parametrize('value', [0, 4, 34, -1, 5.0, '5', '?', 'Unsure', True, False, None, [5], {}])
def test_validate_vote_rejects_everything_else(value):
    with pytest.raises(InvalidVote) as info:
        validate_vote(value)
    assert info.value.to_dict()['valid_values'] == list(VOTE_LADDER)


def test_stats_average_and_mode():
    stats = compute_stats(_submitted(3, 5, 5, 8))
    assert stats.average == 5.3
    assert stats.mode == 5


def test_stats_zero_value_without_numeric_votes():
    assert compute_stats([]).to_dict() == {'average': 0, 'mode': 0}
    assert compute_stats(_submitted(UNSURE, UNSURE, None)).to_dict() == {'average': 0, 'mode': 0}


def test_stats_skip_unsure_and_missing():
    stats = compute_stats(_submitted(UNSURE, 2, None, 3))
    assert stats.average == 2.5
    assert stats.mode == 2


def test_stats_mode_tie_goes_to_first_submitted():
    assert compute_stats(_submitted(3, 5, 3, 5)).mode == 3
    assert compute_stats(_submitted(5, 3, 3, 5)).mode == 5


def test_stats_use_submission_order_not_list_order():
    later_three = _p('a', 3, voted_at=20.0)
    earlier_eight = _p('b', 8, voted_at=10.0)
    assert compute_stats([later_three, earlier_eight]).mode == 8


def test_stats_round_half_up():
    assert compute_stats(_submitted(1, 2, 2, 2)).average == 1.8  # 1.75
    assert compute_stats(_submitted(1, 2)).average == 1.5
    assert compute_stats(_submitted(13, 21, 21)).average == 18.3


def test_state_machine_transitions():
    assert phase_of(None) is RoomPhase.CLOSED
    open_room = SimpleNamespace(revealed=False)
    assert transition(open_room, 'vote') is RoomPhase.OPEN
    assert transition(open_room, 'reveal') is RoomPhase.REVEALED
    open_room.revealed = True
    assert transition(open_room, 'reset') is RoomPhase.OPEN
    with pytest.raises(RoomAlreadyRevealed):
        transition(open_room, 'vote')
    with pytest.raises(NotFound):
        transition(None, 'reveal')


@pytest.mark.parametrize('value', VOTE_LADDER)
def test_voter_sees_own_vote_before_reveal(room, engine, value):
    engine.submit_vote('K7H2M9', 'ada', value)
    as_ada = room.get_state('K7H2M9', 'ada')
    assert as_ada['revealed'] is False
    assert as_ada['my_vote'] == value
    assert all(p['vote'] is None for p in as_ada['participants'])
    as_host = room.get_state('K7H2M9', 'host')
    assert as_host['my_vote'] is None
    ada = next(p for p in as_host['participants'] if p['member_id'] == 'ada')
    assert ada['vote'] is None
    assert ada['has_voted'] is True


def test_reveal_shows_last_submitted_votes(room, engine):
    engine.submit_vote('K7H2M9', 'host', 3)
    engine.submit_vote('K7H2M9', 'ada', 13)
    engine.submit_vote('K7H2M9', 'ada', 8)
    engine.reveal('K7H2M9', 'host')
    state = room.get_state('K7H2M9', 'ada')
    assert state['revealed'] is True
    assert {p['member_id']: p['vote'] for p in state['participants']} == {'host': 3, 'ada': 8}
    assert state['stats'] == {'average': 5.5, 'mode': 3}


def test_reveal_does_not_touch_votes(room, engine, stores):
    engine.submit_vote('K7H2M9', 'ada', UNSURE)
    engine.reveal('K7H2M9', 'host')
    engine.reveal('K7H2M9', 'host')
    _, participants = stores
    assert participants.get(('K7H2M9', 'ada')).vote == UNSURE


def test_vote_rejected_after_reveal(room, engine, stores):
    engine.submit_vote('K7H2M9', 'ada', 5)
    engine.reveal('K7H2M9', 'host')
    with pytest.raises(RoomAlreadyRevealed):
        engine.submit_vote('K7H2M9', 'ada', 8)
    _, participants = stores
    assert participants.get(('K7H2M9', 'ada')).vote == 5


def test_vote_requires_membership_and_room(room, engine):
    with pytest.raises(ParticipantNotFound):
        engine.submit_vote('K7H2M9', 'stranger', 5)
    with pytest.raises(NotFound):
        engine.submit_vote('NOPE22', 'ada', 5)
    with pytest.raises(InvalidVote):
        engine.submit_vote('NOPE22', 'ada', 4)


def test_reset_clears_round(room, engine):
    room.set_topic('K7H2M9', 'host', 'Search page')
    engine.submit_vote('K7H2M9', 'host', 21)
    engine.submit_vote('K7H2M9', 'ada', UNSURE)
    engine.reveal('K7H2M9', 'host')
    engine.reset('K7H2M9', 'host')
    for viewer in ('host', 'ada'):
        state = room.get_state('K7H2M9', viewer)
        assert state['revealed'] is False
        assert state['topic'] == ''
        assert state['my_vote'] is None
        assert 'stats' not in state
        assert all(p['vote'] is None and p['has_voted'] is False for p in state['participants'])
    engine.submit_vote('K7H2M9', 'ada', 2)


def test_host_only_actions_are_forbidden_for_members(room, engine):
    engine.submit_vote('K7H2M9', 'ada', 5)
    before = room.get_room('K7H2M9').to_dict()
    with pytest.raises(Forbidden):
        engine.reveal('K7H2M9', 'ada')
    with pytest.raises(Forbidden):
        engine.reset('K7H2M9', 'ada')
    assert room.get_room('K7H2M9').to_dict() == before
    assert room.get_state('K7H2M9', 'ada')['my_vote'] == 5


def test_end_to_end_round(stores, clock):
    service = SessionService(*stores, FixedCodes('K7H2M9'), clock=clock)
    engine = VotingEngine(*stores, clock=clock)

    created, host = service.create_room_and_join('host')
    assert created.room_code == 'K7H2M9'
    assert host.member_id == 'host'
    clock.advance(1)
    service.join('K7H2M9', 'ada', 'Ada')
    engine.submit_vote('K7H2M9', 'host', 5)
    engine.submit_vote('K7H2M9', 'ada', 8)
    engine.reveal('K7H2M9', 'host')

    state = service.get_state('K7H2M9', 'ada')
    assert [(p['display_name'], p['vote']) for p in state['participants']] == [('Host', 5), ('Ada', 8)]
    assert state['stats'] == {'average': 6.5, 'mode': 5}

    engine.reset('K7H2M9', 'host')
    state = service.get_state('K7H2M9', 'host')
    assert state['revealed'] is False
    assert state['topic'] == ''
    assert all(p['vote'] is None for p in state['participants'])
    assert project(service.get_room('K7H2M9'), [], 'host')['participants'] == []
