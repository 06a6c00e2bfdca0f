"""In-process store of live level runs, keyed by a short run code."""

import random
import string
import threading
import time
from typing import Dict, Optional

from .level import LevelController


class RunHandle:
    def __init__(self, code: str, controller: LevelController, player_id: Optional[int] = None):
        self.code = code
        self.controller = controller
        self.player_id = player_id
        # Serializes timer expiries and player input for this run.
        self.lock = threading.RLock()
        self.deadline: Optional[float] = None
        self.recorded = False
        self.created_at = time.time()

    @property
    def room(self) -> str:
        return f"run:{self.code}"

    def to_dict(self) -> Dict[str, object]:
        data = self.controller.render()
        data['run_code'] = self.code
        data['player_id'] = self.player_id
        data['deadline'] = self.deadline
        return data


_runs: Dict[str, RunHandle] = {}
_registry_lock = threading.Lock()


def generate_run_code(length: int = 6) -> str:
    """Generate a short run code not currently in use."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in _runs:
            return code


def create_run(controller: LevelController, player_id: Optional[int] = None) -> RunHandle:
    with _registry_lock:
        handle = RunHandle(generate_run_code(), controller, player_id)
        _runs[handle.code] = handle
    return handle


def prune_finished(max_age_sec: float) -> int:
    """Forget finished runs older than ``max_age_sec``; returns how many were dropped."""
    cutoff = time.time() - max_age_sec
    with _registry_lock:
        stale = [code for code, h in _runs.items() if h.controller.finished and h.created_at < cutoff]
        for code in stale:
            _runs.pop(code, None)
    return len(stale)


def get_run(code: Optional[str]) -> Optional[RunHandle]:
    if not code:
        return None
    return _runs.get(code.upper())


def drop_run(code: str) -> Optional[RunHandle]:
    with _registry_lock:
        return _runs.pop(code.upper(), None)


def clear_runs() -> None:
    with _registry_lock:
        _runs.clear()


def active_run_count() -> int:
    return sum(1 for h in list(_runs.values()) if not h.controller.finished)
