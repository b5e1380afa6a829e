"""Request identity: a bearer JWT whose ``sub`` claim names the member."""

import jwt
from flask import current_app, jsonify
from flask_login import UserMixin


class Member(UserMixin):
    def __init__(self, member_id, email=None):
        self.id = member_id
        self.email = email

    def __repr__(self):
        return f'<Member {self.id}>'


def decode_member_token(token, secret, verify=True):
    """Return the token payload, or None when it does not decode.

    With ``verify`` off the signature is not checked; local development only.
    """
    try:
        if verify:
            return jwt.decode(token, secret, algorithms=['HS256'], options={'require': ['sub']})
        return jwt.decode(token, options={'verify_signature': False})
    except jwt.InvalidTokenError as exc:
        current_app.logger.info(f"[auth] rejected token: {exc}")
        return None


def register_identity_loader(login_manager):

    @login_manager.request_loader
    def load_member_from_request(request):
        header = request.headers.get('Authorization', '')
        if header.startswith('Bearer '):
            cfg = current_app.config
            payload = decode_member_token(
                header[len('Bearer '):].strip(),
                cfg.get('JWT_SECRET_KEY'),
                verify=cfg.get('JWT_VERIFY_SIGNATURE', True),
            )
            sub = str((payload or {}).get('sub') or '').strip()
            if sub:
                return Member(sub, email=(payload or {}).get('email'))
            return None
        fallback = current_app.config.get('LOCAL_MEMBER_ID')
        if fallback:
            return Member(fallback)
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'unauthorized', 'message': 'A valid bearer token is required'}), 401
