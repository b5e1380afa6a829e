from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from poker import db
from poker.errors import BadRequest
from poker.stores import RoomStore, ParticipantStore
from poker.services.rooms import CodeGenerator, SessionService, VotingEngine


rooms = Blueprint('rooms', __name__)


def _stores():
    # Fresh handles per request; records are never cached between requests
    return RoomStore(db.session), ParticipantStore(db.session)


def _session_service() -> SessionService:
    cfg = current_app.config
    room_store, participant_store = _stores()
    return SessionService(
        room_store,
        participant_store,
        CodeGenerator(length=int(cfg.get('ROOM_CODE_LENGTH', 6))),
        ttl_hours=int(cfg.get('ROOM_TTL_HOURS', 24)),
        max_code_attempts=int(cfg.get('ROOM_CODE_MAX_ATTEMPTS', 5)),
    )


def _voting_engine() -> VotingEngine:
    room_store, participant_store = _stores()
    return VotingEngine(room_store, participant_store)


def _payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest('JSON body must be an object')
    return data


@rooms.route('', methods=['POST'])
@login_required
def create_room():
    data = _payload()
    room, _ = _session_service().create_room_and_join(current_user.id, data.get('display_name'))
    current_app.logger.info(f"[api-create] code={room.room_code} host={current_user.id}")
    return jsonify({'room_code': room.room_code}), 201


@rooms.route('/<string:code>', methods=['GET'])
@login_required
def get_room_state(code):
    # Polled by every client; always rebuilt from the stores
    return jsonify(_session_service().get_state(code, current_user.id))


@rooms.route('/<string:code>', methods=['DELETE'])
@login_required
def delete_room(code):
    _session_service().delete_room(code, current_user.id)
    return '', 204


@rooms.route('/<string:code>/join', methods=['POST'])
@login_required
def join_room(code):
    data = _payload()
    participant, created = _session_service().join(code, current_user.id, data.get('display_name'))
    if not created:
        return jsonify({'message': 'Already joined', 'participant': participant.to_dict()}), 200
    return jsonify(participant.to_dict()), 201


@rooms.route('/<string:code>/leave', methods=['DELETE'])
@login_required
def leave_room(code):
    _session_service().leave(code, current_user.id)
    return '', 204


@rooms.route('/<string:code>/topic', methods=['POST'])
@login_required
def set_topic(code):
    data = _payload()
    room = _session_service().set_topic(code, current_user.id, data.get('topic'))
    return jsonify({'topic': room.topic})


@rooms.route('/<string:code>/vote', methods=['POST'])
@login_required
def submit_vote(code):
    data = _payload()
    participant = _voting_engine().submit_vote(code, current_user.id, data.get('vote'))
    return jsonify({'vote': participant.vote})


@rooms.route('/<string:code>/reveal', methods=['POST'])
@login_required
def reveal_votes(code):
    _voting_engine().reveal(code, current_user.id)
    return jsonify(_session_service().get_state(code, current_user.id))


@rooms.route('/<string:code>/reset', methods=['POST'])
@login_required
def reset_room(code):
    _voting_engine().reset(code, current_user.id)
    return jsonify(_session_service().get_state(code, current_user.id))
