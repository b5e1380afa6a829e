"""Error kinds raised by the room services.

Each kind carries a stable ``code`` and HTTP ``status`` so clients can tell
"room gone" from "not allowed" from "bad input" without reading messages.
"""


class RoomError(Exception):
    code = 'room_error'
    status = 400

    def __init__(self, message=None):
        super().__init__(message or self.code)

    def to_dict(self):
        return {'error': self.code, 'message': str(self)}


class BadRequest(RoomError):
    code = 'bad_request'
    status = 400


class NotFound(RoomError):
    code = 'room_not_found'
    status = 404


class ParticipantNotFound(NotFound):
    code = 'participant_not_found'
    status = 404


class Forbidden(RoomError):
    code = 'forbidden'
    status = 403


class InvalidVote(RoomError):
    code = 'invalid_vote'
    status = 400

    def __init__(self, value, valid_values):
        super().__init__(f'Invalid vote value: {value!r}')
        self.value = value
        self.valid_values = list(valid_values)

    def to_dict(self):
        payload = super().to_dict()
        payload['valid_values'] = self.valid_values
        return payload


class RoomAlreadyRevealed(RoomError):
    code = 'room_already_revealed'
    status = 409


class CodeExhausted(RoomError):
    code = 'code_exhausted'
    status = 503


class StoreUnavailable(RoomError):
    code = 'store_unavailable'
    status = 503
