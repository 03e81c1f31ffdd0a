from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import json
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

ENGINE_KEY = 'rumble_engine'


def get_engine():
    """Return this app's GameEngine, creating and hydrating it on first use.

    Needs an application context; the engine reads its store on creation.
    """
    engine = current_app.extensions.get(ENGINE_KEY)
    if engine is None:
        from rumble.services.game import GameEngine, SocketIOChannel, SQLStateStore
        cfg = current_app.config
        engine = GameEngine(
            store=SQLStateStore(cfg.get('RUMBLE_STORAGE_KEY', 'royal-rumble-state')),
            channel=SocketIOChannel(socketio, cfg.get('RUMBLE_CHANNEL', 'rumble_sync')),
            max_history=int(cfg.get('RUMBLE_MAX_HISTORY', 20)),
            max_logs=int(cfg.get('RUMBLE_MAX_LOGS', 50)),
            logger=current_app.logger,
        )
        engine.hydrate()
        current_app.extensions[ENGINE_KEY] = engine
    return engine


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from rumble.main import main
    flask_app.register_blueprint(main)

    from rumble.api.game import game
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from rumble.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('rumble-reset')
    def rumble_reset_command():
        """Drops and recreates the game tables."""
        import rumble.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
        flask_app.extensions.pop(ENGINE_KEY, None)
        print('Game storage has been reset!')

    @click.command('load-entrants')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def load_entrants_command(path):
        """Adds entrants from a JSON list of {name, affiliation, odds, confirmed}."""
        with open(path, encoding='utf-8') as fh:
            batch = json.load(fh)
        if not isinstance(batch, list):
            raise click.BadParameter('expected a JSON list of entrants', param_hint='PATH')
        from rumble.services.game import RumbleError
        try:
            with flask_app.app_context():
                added = get_engine().add_entrants(batch)
        except RumbleError as exc:
            raise click.ClickException(str(exc))
        print(f'Added {len(added)} entrants to the pool.')

    flask_app.cli.add_command(rumble_reset_command)
    flask_app.cli.add_command(load_entrants_command)

    return flask_app
