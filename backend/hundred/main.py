from flask import Blueprint, jsonify
from hundred.services.rooms import get_room_services

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to The 100 Game relay server!'})

@main.route('/health')
def health():
    services = get_room_services()
    return jsonify({
        'status': 'ok',
        'rooms': len(services.registry),
        'persistence': services.store.enabled,
    })
