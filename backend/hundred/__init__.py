from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or []
    persistence_enabled = bool(flask_app.config.get('SQLALCHEMY_DATABASE_URI'))
    if persistence_enabled:
        db.init_app(flask_app)
        migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Room services are owned by the app and shared by every handler
    from hundred.services.rooms import RoomRegistry, RoomServices
    from hundred.services.rooms.persistence import RoomStore
    registry = RoomRegistry(
        lifetime_sec=flask_app.config.get('ROOM_LIFETIME_SEC', 3 * 60 * 60),
        enforce_declared_capacity=flask_app.config.get('ENFORCE_DECLARED_CAPACITY', False),
    )
    services = RoomServices(registry, RoomStore(flask_app))
    flask_app.extensions['rooms'] = services
    if persistence_enabled:
        restored = services.hydrate()
        flask_app.logger.info(f"[startup] restored_rooms={restored}")
    else:
        flask_app.logger.info("[startup] no DATABASE_URL configured, running without persistence")

    from hundred.main import main
    flask_app.register_blueprint(main)

    from hundred.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Register Socket.IO event handlers against the initialized socketio instance
    from hundred.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the room snapshot table."""
        if not persistence_enabled:
            print('No DATABASE_URL configured; nothing to reset.')
            return
        import hundred.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Room snapshot table has been reset!')

    @click.command('sweep-rooms')
    def sweep_rooms_command():
        """Removes rooms older than ROOM_LIFETIME_SEC."""
        from hundred.services.rooms.scheduler import sweep_expired_rooms
        removed = sweep_expired_rooms(flask_app)
        print(f"Removed {len(removed)} expired room(s): {', '.join(removed) or '-'}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(sweep_rooms_command)

    return flask_app
