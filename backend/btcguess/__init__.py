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
    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    # Register models on the metadata used by create_all and migrations
    from btcguess import models  # noqa: F401
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Player backend and price client; a configuration error is kept on the
    # services object and reported by every game surface
    from btcguess.services import init_services
    init_services(flask_app, db, socketio)

    from btcguess.main import main
    flask_app.register_blueprint(main)

    from btcguess.api.game import game_api
    flask_app.register_blueprint(game_api, url_prefix='/api')

    from btcguess.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the players table."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            click.echo('Database has been reset!')

    @click.command('fetch-price')
    def fetch_price_command():
        """Prints the current BTC price from the configured price API."""
        from btcguess.errors import GameError
        from btcguess.services import get_services
        with flask_app.app_context():
            services = get_services()
            if services.prices is None:
                raise click.ClickException(services.error or 'Price API is not configured')
            try:
                price = services.prices.fetch_usd()
            except GameError as exc:
                raise click.ClickException(str(exc))
            click.echo(f'BTC/USD {price:.2f}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(fetch_price_command)

    return flask_app
