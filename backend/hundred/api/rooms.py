from flask import Blueprint, jsonify
from hundred.services.rooms import RoomError, get_room_services


rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:room_code>', methods=['GET'])
def get_room(room_code):
    """
    Returns the current snapshot of a room, including its game state.
    """
    services = get_room_services()
    code = room_code.strip().upper()
    with services.registry.locked(code):
        room = services.registry.get_room(code)
        if room is None:
            return jsonify({'error': RoomError.NOT_FOUND.message}), 404
        payload = room.to_dict()
    return jsonify(payload)
