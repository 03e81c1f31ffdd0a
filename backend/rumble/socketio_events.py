from flask_socketio import join_room, leave_room, emit
from rumble import socketio, get_engine
from flask import current_app


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_sync(data=None):
    """Join the sync room and receive the current state right away."""
    engine = get_engine()
    room = engine.channel.room
    join_room(room)
    emit('joined', {'room': room})
    emit('state_update', engine.state.to_dict())


def handle_leave_sync(data=None):
    room = get_engine().channel.room
    leave_room(room)
    emit('left', {'room': room})


def handle_state_update(data):
    """A window changed the game locally and broadcast its full state.

    The message goes to every other window in the room, and the server's
    engine adopts it as a remote update, so it is not stored or sent again.
    """
    if not isinstance(data, dict) or not data:
        emit('error', {'message': 'state_update requires a game state object'})
        return
    engine = get_engine()
    try:
        engine.channel.deliver(data)
    except (KeyError, TypeError, ValueError) as exc:
        current_app.logger.warning(f"[sync-recv] rejected state_update: {exc!r}")
        emit('error', {'message': 'state_update payload is not a valid game state'})
        return
    emit('state_update', data, to=engine.channel.room, include_self=False)


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_sync', handle_join_sync, namespace=namespace)
        socketio.on_event('leave_sync', handle_leave_sync, namespace=namespace)
        socketio.on_event('state_update', handle_state_update, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
