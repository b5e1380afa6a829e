from flask import Blueprint, jsonify, current_app
from flask_login import login_required, current_user
from poker import db
from poker.errors import Forbidden
from poker.stores import RoomStore, ParticipantStore
from poker.services.rooms.guards import require_room


admin = Blueprint('admin', __name__)


def _require_admin():
    if current_user.id not in (current_app.config.get('ADMIN_MEMBER_IDS') or []):
        current_app.logger.info(f"[admin-forbidden] member={current_user.id}")
        raise Forbidden('Admin access required')


def _admin_view(room, participants):
    view = room.to_dict()
    view['participant_count'] = len(participants)
    return view


@admin.route('/rooms', methods=['GET'])
@login_required
def list_rooms():
    _require_admin()
    room_store, participant_store = RoomStore(db.session), ParticipantStore(db.session)
    return jsonify([
        _admin_view(room, participant_store.query_by_partition(room.room_code))
        for room in room_store.scan()
    ])


@admin.route('/rooms/<string:code>', methods=['GET'])
@login_required
def room_details(code):
    _require_admin()
    room = require_room(RoomStore(db.session), code)
    participants = ParticipantStore(db.session).query_by_partition(room.room_code)
    details = _admin_view(room, participants)
    details['participants'] = [
        {
            'member_id': p.member_id,
            'display_name': p.display_name,
            'has_voted': p.has_voted,
            'vote': p.vote,
            'joined_at': p.joined_at,
        }
        for p in participants
    ]
    return jsonify(details)
