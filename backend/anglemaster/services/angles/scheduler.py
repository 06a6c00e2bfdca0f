import time
from typing import Iterable, Set, Tuple

from anglemaster import socketio
from .progress import record_level_result
from .registry import RunHandle, get_run
from .trial import TimerAction


_scheduled_phase_keys: Set[Tuple[str, int, str]] = set()


def publish(app, handle: RunHandle, actions: Iterable[TimerAction]) -> None:
    """Broadcast a run's new state, persist it if it just ended, then arm returned timers."""
    actions = list(actions)
    with handle.lock:
        finished = handle.controller.finished
        # Only the first caller to see the finished run records it
        record = finished and not handle.recorded
        if record:
            handle.recorded = True
        if finished:
            handle.deadline = None
        elif actions:
            handle.deadline = time.time() + actions[-1].delay_ms / 1000.0
    if record:
        _finalize(app, handle)
    socketio.emit('state_update', {'run_code': handle.code}, to=handle.room, namespace='/ws')
    if finished:
        return
    for action in actions:
        schedule_phase_timer(app, handle, action)


def _finalize(app, handle: RunHandle) -> None:
    controller = handle.controller
    result = controller.result
    tag = 'run-abandon' if result.abandoned else 'run-complete'
    app.logger.info(
        f"[{tag}] run={handle.code} level={controller.config.level_number} "
        f"correct={result.correct_count}/{result.total_trials} passed={result.level_completed} reward={result.reward_earned}"
    )
    if handle.player_id is not None:
        record_level_result(handle.player_id, controller.config.level_number, result, run_code=handle.code)
    socketio.emit('level_complete', {'run_code': handle.code, 'result': result.to_dict()}, to=handle.room, namespace='/ws')


def schedule_phase_timer(app, handle: RunHandle, action: TimerAction) -> None:
    """Arm the timer for one timed phase of one trial.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Ensures a single timer per (run, trial, phase)
    - On expiry feeds the (trial, phase) token back to the run; stale tokens are dropped
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    key = (handle.code, action.trial, action.phase)
    if key in _scheduled_phase_keys:
        app.logger.info(f"[timer-skip] run={handle.code} trial={action.trial} phase={action.phase} already scheduled")
        return
    _scheduled_phase_keys.add(key)
    app.logger.info(
        f"[timer-set] run={handle.code} trial={action.trial} phase={action.phase} duration={action.delay_ms}ms deadline={handle.deadline}"
    )

    def _worker(code: str, token: Tuple[int, str], delay: float):
        hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0) or 0)
        if hb > 0:
            slept = 0.0
            while slept < delay:
                step = min(hb, delay - slept)
                time.sleep(step)
                slept += step
                app.logger.info(f"[timer-heartbeat] run={code} trial={token[0]} phase={token[1]} remaining={max(0.0, delay - slept):.1f}s")
        elif delay > 0:
            time.sleep(delay)

        _scheduled_phase_keys.discard((code, token[0], token[1]))
        run = get_run(code)
        if not run:
            app.logger.info(f"[timer-abort] run={code} no longer exists")
            return
        with app.app_context():
            with run.lock:
                pending = run.controller.pending_timer
                app.logger.info(
                    f"[timer-fire] run={code} expected={token} actual={pending.token if pending else None}"
                )
                if pending is None or pending.token != token:
                    app.logger.info(f"[timer-abort] run={code} phase already left")
                    return
                actions = run.controller.on_timer(token)
            publish(app, run, actions)

    if app.config.get('TESTING'):
        _worker(handle.code, action.token, action.delay_ms / 1000.0)
    else:
        socketio.start_background_task(_worker, handle.code, action.token, action.delay_ms / 1000.0)
