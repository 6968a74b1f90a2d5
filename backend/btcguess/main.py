from flask import Blueprint, jsonify

from btcguess.services import get_services

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Bitcoin guess server!'})


@main.route('/health')
def health():
    services = get_services()
    if services.error:
        return jsonify({'status': 'misconfigured', 'error': services.error}), 503
    return jsonify({'status': 'ok'})
