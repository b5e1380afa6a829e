from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
import time
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=flask_app.config.get('CORS_ORIGINS') or [])

    # Identity resolver (bearer token -> member id)
    from poker.identity import register_identity_loader
    register_identity_loader(login_manager)

    from poker.main import main
    flask_app.register_blueprint(main, url_prefix='/api')

    from poker.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from poker.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    from poker.errors import RoomError

    @flask_app.errorhandler(RoomError)
    def handle_room_error(exc):
        flask_app.logger.info(f"[error] code={exc.code} status={exc.status} message={exc}")
        return jsonify(exc.to_dict()), exc.status

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the room and participant tables."""
        import poker.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('purge-expired')
    def purge_expired_command():
        """Deletes rooms past their expiry, and their participants."""
        from poker.stores import RoomStore, ParticipantStore
        with flask_app.app_context():
            purged = RoomStore(db.session).purge_expired(ParticipantStore(db.session), now=int(time.time()))
            print(f'Purged {purged} expired room(s).')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(purge_expired_command)

    return flask_app
