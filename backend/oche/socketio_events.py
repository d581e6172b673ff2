from flask_socketio import join_room, leave_room, emit
from flask import request
from oche import socketio
from typing import Dict, Optional, Set


# sid -> match code the socket is watching
_sid_to_match: Dict[str, str] = {}
# match code -> sids currently in the room
_spectators: Dict[str, Set[str]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room(match_code: str) -> str:
    return f"match:{match_code}"


def _broadcast_spectators(match_code: str) -> None:
    socketio.emit(
        'spectators',
        {'match_code': match_code, 'count': len(_spectators.get(match_code, ()))},
        to=_room(match_code),
        namespace='/ws',
    )


def _forget_sid(sid: str) -> Optional[str]:
    match_code = _sid_to_match.pop(sid, None)
    if match_code:
        watchers = _spectators.get(match_code)
        if watchers is not None:
            watchers.discard(sid)
            if not watchers:
                _spectators.pop(match_code, None)
    return match_code


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    match_code = _forget_sid(_get_sid())
    if match_code:
        _broadcast_spectators(match_code)


def handle_join_match(data):
    match_code = (data or {}).get('match_code')
    if not match_code:
        emit('error', {'message': 'match_code is required'})
        return
    match_code = match_code.upper()
    sid = _get_sid()
    # A socket watches one match at a time
    previous = _forget_sid(sid)
    if previous and previous != match_code:
        leave_room(_room(previous))
        _broadcast_spectators(previous)

    join_room(_room(match_code))
    _sid_to_match[sid] = match_code
    _spectators.setdefault(match_code, set()).add(sid)
    emit('joined', {'room': _room(match_code)})
    _broadcast_spectators(match_code)


def handle_leave_match(data):
    match_code = (data or {}).get('match_code')
    if not match_code:
        emit('error', {'message': 'match_code is required'})
        return
    match_code = match_code.upper()
    leave_room(_room(match_code))
    if _sid_to_match.get(_get_sid()) == match_code:
        _forget_sid(_get_sid())
    emit('left', {'room': _room(match_code)})
    _broadcast_spectators(match_code)


def handle_ping(data):
    emit('pong', data or {})


def spectator_count(match_code: str) -> int:
    return len(_spectators.get(match_code.upper(), ()))


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('disconnect', handle_disconnect, namespace='/ws')
    socketio.on_event('join_match', handle_join_match, namespace='/ws')
    socketio.on_event('leave_match', handle_leave_match, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('disconnect', handle_disconnect, namespace='/')
        socketio.on_event('join_match', handle_join_match, namespace='/')
        socketio.on_event('leave_match', handle_leave_match, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
