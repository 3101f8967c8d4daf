from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


def _registry():
    return current_app.extensions['room_relay'].registry


@main.route('/')
def index():
    return jsonify({'message': 'Room relay server is running.'})


@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'rooms': len(_registry())})


@main.route('/api/rooms')
def list_rooms():
    """Read-only view of the room table, same shape as `rooms_list`."""
    return jsonify(_registry().snapshot())
