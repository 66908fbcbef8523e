from flask import current_app, request
from flask_socketio import join_room, leave_room, emit

from quizhost import socketio, get_domain
from quizhost.constants import ALLOWED_HOSTS, GAME_STATE, PARTITIONS
from quizhost.services.game.scheduler import TIMER_ROOM
from quizhost.services.game.state import public_game_state

# displays never receive the host list
PUBLIC_PARTITIONS = tuple(p for p in PARTITIONS if p != ALLOWED_HOSTS)


def partition_room(partition: str) -> str:
    return f"partition:{partition}"


def public_value(partition, value):
    if partition == GAME_STATE:
        return public_game_state(value)
    return value


def broadcast_partition(partition, snapshot) -> None:
    """Sync-layer listener: push a changed partition to the displays watching it."""
    if partition not in PUBLIC_PARTITIONS:
        return
    socketio.emit(
        'partition_update',
        {'partition': partition, 'value': public_value(partition, snapshot.get(partition))},
        to=partition_room(partition),
        namespace='/ws',
    )


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    current_app.logger.debug(f"[disconnect] sid={request.sid} reason={reason}")


def _requested_partitions(data):
    requested = (data or {}).get('partitions') or list(PUBLIC_PARTITIONS)
    if isinstance(requested, str):
        requested = [requested]
    return [p for p in requested if p in PUBLIC_PARTITIONS]


def handle_join_display(data):
    partitions = _requested_partitions(data)
    if not partitions:
        emit('error', {'message': f"partitions must be among {', '.join(PUBLIC_PARTITIONS)}"})
        return
    sync = get_domain().sync
    snapshot = sync.snapshot()
    for partition in partitions:
        join_room(partition_room(partition))
        emit('partition_update', {'partition': partition, 'value': public_value(partition, snapshot.get(partition))})
    if (data or {}).get('timer'):
        join_room(TIMER_ROOM)
        emit('lifeline_timer', get_domain().phone_timer.view())
    emit('joined', {'rooms': [partition_room(p) for p in partitions], 'isLoading': sync.is_loading})


def handle_leave_display(data):
    partitions = _requested_partitions(data)
    for partition in partitions:
        leave_room(partition_room(partition))
    leave_room(TIMER_ROOM)
    emit('left', {'rooms': [partition_room(p) for p in partitions]})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_display': handle_join_display,
        'leave_display': handle_leave_display,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace='/ws')
        if testing:
            socketio.on_event(event, handler, namespace='/')
