from functools import wraps

from flask import Blueprint, current_app, jsonify

from btcguess.errors import BackendError, PriceFetchError, UnknownPlayerError, describe
from btcguess.services import get_services

game_api = Blueprint('game_api', __name__)


def requires_configuration(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        services = get_services()
        if services.error:
            return jsonify({'error': services.error}), 503
        return view(services, *args, **kwargs)
    return wrapper


@game_api.route('/price', methods=['GET'])
@requires_configuration
def get_price(services):
    """Current BTC/USD price, straight from the price API."""
    try:
        price = services.prices.fetch_usd()
    except PriceFetchError as exc:
        current_app.logger.warning(f"[price] {exc}")
        return jsonify({'error': describe(exc)}), 502
    return jsonify({'usd': price})


@game_api.route('/players', methods=['POST'])
@requires_configuration
def create_player(services):
    """Creates an anonymous player with score 0."""
    try:
        player_id = services.players.create_player(0)
    except BackendError as exc:
        current_app.logger.error(f"[player-create] {exc}")
        return jsonify({'error': describe(exc)}), 502
    return jsonify({'id': player_id, 'score': 0}), 201


@game_api.route('/players/<string:player_id>', methods=['GET'])
@requires_configuration
def get_player(services, player_id):
    try:
        score = services.players.read_score(player_id)
    except UnknownPlayerError as exc:
        return jsonify({'error': describe(exc)}), 404
    except BackendError as exc:
        return jsonify({'error': describe(exc)}), 502
    return jsonify({'id': player_id, 'score': score})
