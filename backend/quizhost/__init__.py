from flask import Flask, current_app, has_request_context
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


class Domain:
    """Per-app containers for the match: store, question bank, engine, sync layer, phone timer."""

    def __init__(self, store, bank, machine, sync, phone_timer):
        self.store = store
        self.bank = bank
        self.machine = machine
        self.sync = sync
        self.phone_timer = phone_timer


def get_domain(app=None):
    return (app or current_app).extensions['quizhost']


def _build_domain(flask_app):
    from quizhost.auth import require_host
    from quizhost.services.game.lifeline_timer import PhoneTimer
    from quizhost.services.game.machine import GameStateMachine, match_settings
    from quizhost.services.game.scheduler import background_deferrer
    from quizhost.services.question_bank import QuestionBank
    from quizhost.services.sync import SynchronizationLayer
    from quizhost.services.defaults import seed_store
    from quizhost.store import InMemoryStore

    def authorize_write(paths):
        # CLI commands and background timers write without a request
        if has_request_context():
            require_host(store)

    if flask_app.config.get('STORE_BACKEND') == 'memory':
        store = InMemoryStore(authorizer=authorize_write)
        seed_store(store, flask_app.config, hosts=[flask_app.config.get('SEED_HOST_USERNAME', 'host')])
    else:
        from quizhost.store.sql import SqlStore
        store = SqlStore(flask_app, authorizer=authorize_write)

    bank = QuestionBank(store, max_questions=int(flask_app.config.get('QUESTIONS_PER_SET', 20)))
    machine = GameStateMachine(
        store,
        bank,
        match_settings(flask_app.config),
        defer=background_deferrer(flask_app),
    )
    phone_timer = PhoneTimer(
        duration_sec=flask_app.config.get('PHONE_A_FRIEND_DURATION_SEC', 180),
        on_resolve=machine.resume_from_lifeline,
    )
    sync = SynchronizationLayer(store)
    return Domain(store, bank, machine, sync, phone_timer)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from quizhost.main import main
    flask_app.register_blueprint(main)

    from quizhost.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from quizhost.api.setup import setup
    flask_app.register_blueprint(setup, url_prefix='/api')

    from quizhost.api import register_error_handlers
    register_error_handlers(flask_app)

    from quizhost.socketio_events import register_socketio_handlers, broadcast_partition
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from quizhost.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    domain = _build_domain(flask_app)
    flask_app.extensions['quizhost'] = domain
    domain.sync.add_listener(broadcast_partition)
    domain.sync.attach()

    @click.command('factory-reset')
    def factory_reset_command():
        """Drops and recreates the tables, then seeds the default store and a host account."""
        from quizhost.services.defaults import seed_store
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            username = flask_app.config.get('SEED_HOST_USERNAME', 'host')
            user = User(username=username)
            user.set_password(flask_app.config.get('SEED_HOST_PASSWORD', 'password'))
            db.session.add(user)
            db.session.commit()

            seed_store(domain.store, flask_app.config, hosts=[username])
            domain.bank.clear()
            domain.phone_timer.reset()
            domain.sync.reconnect()
            print(f'Store has been reset; host account "{username}" seeded!')

    flask_app.cli.add_command(factory_reset_command)

    return flask_app
