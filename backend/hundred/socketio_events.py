from flask import current_app, request
from flask_socketio import emit, join_room, leave_room
from hundred import socketio
from hundred.services.rooms import RoomError, get_room_services
from typing import Any, Dict, Optional


NAMESPACE = '/'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


def _room_code(data: Dict[str, Any]) -> str:
    return str(data.get('roomCode') or '').strip().upper()


def _player_index(data: Dict[str, Any]) -> Optional[int]:
    try:
        index = int(data.get('playerIndex'))
    except (TypeError, ValueError):
        return None
    return index if index >= 0 else None


def _emit_error(error: RoomError) -> None:
    """Errors go to the requesting socket only."""
    emit('error', {'message': error.message})


def _broadcast(event: str, payload: Dict[str, Any], code: str) -> None:
    socketio.emit(event, payload, to=code, namespace=NAMESPACE)


def _broadcast_room_update(room) -> None:
    _broadcast('room-update', room.update_payload(), room.code)


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected'})


def handle_create_room(data):
    data = _payload(data)
    services = get_room_services()
    sid = _get_sid()
    room = services.registry.create_room(
        sid,
        data.get('playerName') or '',
        num_players=data.get('numPlayers'),
        hand_size=data.get('handSize'),
        min_cards_per_turn=data.get('minCardsPerTurn'),
        max_card=data.get('maxCard'),
        backtrack_amount=data.get('backtrackAmount'),
    )
    with services.registry.locked(room.code):
        join_room(room.code)
        emit('room-created', {'roomCode': room.code, 'playerIndex': 0})
        _broadcast_room_update(room)
        services.store.save(room)
    current_app.logger.info(
        f"[room-created] code={room.code} host={room.host.name!r} handSize={room.hand_size} "
        f"minCardsPerTurn={room.min_cards_per_turn} maxCard={room.max_card} backtrack={room.backtrack_amount}"
    )


def handle_join_room(data):
    data = _payload(data)
    services = get_room_services()
    code = _room_code(data)
    with services.registry.locked(code):
        result = services.membership.add_player(code, _get_sid(), data.get('playerName') or '')
        if not result.ok:
            _emit_error(result.error)
            return
        join_room(code)
        emit('room-joined', {'roomCode': code, 'playerIndex': result.player_index})
        _broadcast_room_update(result.room)
        services.store.save(result.room)
    current_app.logger.info(f"[room-joined] code={code} player={result.player.name!r} index={result.player_index}")


def handle_rejoin_room(data):
    data = _payload(data)
    services = get_room_services()
    code = _room_code(data)
    player_index = _player_index(data)
    if player_index is None:
        _emit_error(RoomError.INVALID_SEAT)
        return
    with services.registry.locked(code):
        result = services.membership.rejoin_player(code, _get_sid(), data.get('playerName') or '', player_index)
        if not result.ok:
            _emit_error(result.error)
            return
        room = result.room
        join_room(code)
        emit('rejoined', {
            'gameState': room.game_state,
            'players': [p.to_dict() for p in room.players],
            'screen': 'game' if room.started else 'lobby',
        })
        _broadcast_room_update(room)
        services.store.save(room)
    current_app.logger.info(f"[room-rejoined] code={code} player={result.player.name!r} index={player_index}")


def handle_start_game(data):
    data = _payload(data)
    services = get_room_services()
    code = _room_code(data)
    with services.registry.locked(code):
        result = services.sync.start_game(code, _get_sid(), data.get('gameState'))
        if not result.ok:
            _emit_error(result.error)
            return
        room = result.room
        _broadcast('game-started', {'gameState': room.game_state}, code)
        services.store.save(room)
    current_app.logger.info(f"[game-started] code={code} numPlayers={room.num_players}")


def handle_game_action(data):
    """Stamp the next version on the submitted state and echo it to the whole room.

    The return value is the Socket.IO acknowledgement for the sender.
    """
    data = _payload(data)
    services = get_room_services()
    code = _room_code(data)
    with services.registry.locked(code):
        result = services.sync.apply_action(code, data.get('gameState'))
        if not result.ok:
            current_app.logger.info(f"[game-action-rejected] code={code!r} error={result.error.name}")
            return {'error': result.error.message}
        _broadcast('game-update', {'gameState': result.room.game_state}, code)
        services.store.save(result.room)
    current_app.logger.info(f"[game-action] code={code} version={result.version}")
    return {'success': True, 'version': result.version}


def handle_send_hint(data):
    data = _payload(data)
    code = _room_code(data)
    if not code:
        return
    emit('hint-received', {'hint': data.get('hint')}, to=code, include_self=False)


def handle_leave_room(data):
    data = _payload(data)
    services = get_room_services()
    code = _room_code(data)
    sid = _get_sid()
    with services.registry.locked(code):
        room = services.membership.remove_player(code, sid)
        if code:
            leave_room(code)
        if room is None:
            return
        _broadcast_room_update(room)
        services.store.save(room)
        closed = services.registry.get_room(code) is None
    current_app.logger.info(f"[room-left] code={code} sid={sid} remaining={len(room.players)}")
    if closed:
        current_app.logger.info(f"[room-closed] code={code} reason=empty-lobby")


def handle_disconnect(reason=None):
    services = get_room_services()
    sid = _get_sid()
    for candidate in services.registry.list_rooms():
        code = candidate.code
        with services.registry.locked(code):
            room = services.membership.disconnect_from(code, sid)
            if room is None:
                continue
            _broadcast_room_update(room)
            if room.started:
                _broadcast('player-disconnected', {'message': 'A player disconnected'}, code)
            services.store.save(room)
            closed = services.registry.get_room(code) is None
        current_app.logger.info(f"[player-disconnected] code={code} sid={sid} started={room.started}")
        if closed:
            current_app.logger.info(f"[room-closed] code={code} reason=empty-lobby")


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the default namespace."""
    namespace = NAMESPACE
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create-room', handle_create_room, namespace=namespace)
    socketio.on_event('join-room', handle_join_room, namespace=namespace)
    socketio.on_event('rejoin-room', handle_rejoin_room, namespace=namespace)
    socketio.on_event('start-game', handle_start_game, namespace=namespace)
    socketio.on_event('game-action', handle_game_action, namespace=namespace)
    socketio.on_event('send-hint', handle_send_hint, namespace=namespace)
    socketio.on_event('leave-room', handle_leave_room, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
