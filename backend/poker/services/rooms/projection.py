from .voting import compute_stats


def _view_order(participant):
    return (participant.joined_at or 0, participant.member_id)


def project(room, participants, viewer_id: str) -> dict:
    """Build the viewer-specific room state.

    Pure function of its inputs. Other members' votes stay null until the room
    is revealed; the viewer always sees their own vote. Stats are attached
    only once revealed.
    """
    members = sorted(participants, key=_view_order)
    me = next((p for p in members if p.member_id == viewer_id), None)
    revealed = bool(room.revealed)

    state = {
        'room_code': room.room_code,
        'topic': room.topic or '',
        'revealed': revealed,
        'expires_at': room.expires_at,
        'is_host': room.host_id == viewer_id,
        'is_participant': me is not None,
        'member_id': viewer_id,
        'my_vote': me.vote if me is not None else None,
        'participants': [
            {
                'member_id': p.member_id,
                'display_name': p.display_name,
                'has_voted': p.vote is not None,
                'vote': p.vote if revealed else None,
            }
            for p in members
        ],
    }
    if revealed:
        state['stats'] = compute_stats(members).to_dict()
    return state
