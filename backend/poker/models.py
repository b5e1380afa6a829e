from poker import db


class Room(db.Model):
    __tablename__ = 'room'
    room_code = db.Column(db.String(16), primary_key=True)
    host_id = db.Column(db.String(128), nullable=False, index=True)
    topic = db.Column(db.Text, nullable=False, default='')
    revealed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.Integer, nullable=False)
    # Time-to-live attribute; the store treats the room as gone after this
    expires_at = db.Column(db.Integer, nullable=False, index=True)

    @property
    def key(self):
        return self.room_code

    def is_expired(self, now):
        return self.expires_at is not None and self.expires_at <= now

    def to_dict(self):
        return {
            'room_code': self.room_code,
            'host_id': self.host_id,
            'topic': self.topic or '',
            'revealed': bool(self.revealed),
            'created_at': self.created_at,
            'expires_at': self.expires_at,
        }

    def __repr__(self):
        return f'<Room {self.room_code} host={self.host_id} revealed={self.revealed}>'


class Participant(db.Model):
    __tablename__ = 'participant'
    room_code = db.Column(db.String(16), primary_key=True)
    member_id = db.Column(db.String(128), primary_key=True)
    display_name = db.Column(db.String(64), nullable=False)
    vote = db.Column(db.JSON(none_as_null=True), nullable=True)  # int from the ladder, 'unsure', or NULL
    joined_at = db.Column(db.Integer, nullable=False)
    voted_at = db.Column(db.Float, nullable=True)  # submission order for the mode tie-break

    @property
    def key(self):
        return (self.room_code, self.member_id)

    @property
    def has_voted(self):
        return self.vote is not None

    def to_dict(self):
        return {
            'room_code': self.room_code,
            'member_id': self.member_id,
            'display_name': self.display_name,
            'vote': self.vote,
            'joined_at': self.joined_at,
        }

    def __repr__(self):
        return f'<Participant {self.room_code}/{self.member_id} vote={self.vote!r}>'
