from flask_socketio import join_room, leave_room, emit
from anglemaster import socketio
from flask import current_app, request
from anglemaster.services.angles.registry import drop_run, get_run
from anglemaster.services.angles.scheduler import publish
from typing import Dict, Any
import time


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # On disconnect, if this socket owned a run and no other owner
    # remains, abandon that run
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    run_code = ctx.get('run_code')
    if ctx.get('is_owner') and run_code:
        _owner_count[run_code] = max(0, _owner_count.get(run_code, 0) - 1)
        app = current_app._get_current_object()
        # In tests, end immediately for determinism; in prod, allow grace period
        if app.config.get('TESTING'):
            if _owner_count.get(run_code, 0) == 0:
                _end_session(app, run_code)
            return
        _schedule_end_if_no_owner(app, run_code, float(app.config.get('OWNER_DISCONNECT_GRACE_SEC', 2)))


def handle_join_run(data):
    run_code = (data or {}).get('run_code')
    is_owner = bool((data or {}).get('is_owner'))
    if not run_code:
        emit('error', {'message': 'run_code is required'})
        return
    run_code = run_code.upper()
    room = f"run:{run_code}"
    join_room(room)
    _sid_to_ctx[_get_sid()] = {'run_code': run_code, 'is_owner': is_owner}
    if is_owner:
        _owner_count[run_code] = _owner_count.get(run_code, 0) + 1
        _cancel_scheduled_end(run_code)
    emit('joined', {'room': room, 'exists': get_run(run_code) is not None})


def handle_leave_run(data):
    run_code = (data or {}).get('run_code')
    if not run_code:
        emit('error', {'message': 'run_code is required'})
        return
    run_code = run_code.upper()
    room = f"run:{run_code}"
    ctx = _sid_to_ctx.get(_get_sid())
    # An owner quitting explicitly abandons the run right away
    if ctx and ctx.get('is_owner') and ctx.get('run_code') == run_code:
        _sid_to_ctx.pop(_get_sid(), None)
        _owner_count[run_code] = max(0, _owner_count.get(run_code, 0) - 1)
        _end_session(current_app._get_current_object(), run_code)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})

# ---- Run owner lifecycle helpers ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_owner_count: Dict[str, int] = {}
_end_deadline: Dict[str, float] = {}

def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]

def _end_session(app, run_code: str) -> None:
    """Abandon the run if still live, notify clients and forget it."""
    try:
        handle = get_run(run_code)
        if handle:
            with app.app_context():
                with handle.lock:
                    result = handle.controller.abandon()
                if result is not None:
                    publish(app, handle, [])
            drop_run(run_code)
        socketio.emit('session_ended', {'run_code': run_code}, to=f"run:{run_code}", namespace='/ws')
    finally:
        _owner_count.pop(run_code, None)
        _end_deadline.pop(run_code, None)

def _schedule_end_if_no_owner(app, run_code: str, delay_sec: float = 2.0) -> None:
    if _owner_count.get(run_code, 0) > 0:
        return
    _end_deadline[run_code] = time.time() + delay_sec

    def _runner(code: str, deadline: float):
        sleep_for = max(0.0, deadline - time.time())
        if sleep_for:
            time.sleep(sleep_for)
        if _owner_count.get(code, 0) == 0 and _end_deadline.get(code) == deadline:
            _end_session(app, code)

    socketio.start_background_task(_runner, run_code, _end_deadline[run_code])

def _cancel_scheduled_end(run_code: str) -> None:
    _end_deadline.pop(run_code, None)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_run', handle_join_run, namespace=namespace)
        socketio.on_event('leave_run', handle_leave_run, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
