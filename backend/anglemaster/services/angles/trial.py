"""Phase machine for a single trial.

The engine never touches a clock. Entering a timed phase returns a
``TimerAction`` describing the timer the host should arm; when it fires the
host hands the action's ``(trial, phase)`` token back via ``on_timer``.
A token that no longer matches the current phase is ignored, so whichever
of a timer expiry and a guess is processed first wins.
"""

from typing import Dict, List, NamedTuple, Optional, Tuple

from .geometry import GridGeometry
from .scenario import Scenario


READY = 'ready'
MEMORIZE = 'memorize'
PREDICT = 'predict'
REVEAL = 'reveal'
DONE = 'done'
ABANDONED = 'abandoned'


class TimerAction(NamedTuple):
    trial: int
    phase: str
    delay_ms: int

    @property
    def token(self) -> Tuple[int, str]:
        return self.trial, self.phase


class TrialTimings(NamedTuple):
    memorize_ms: int
    predict_ms: int
    reveal_ms: int


class Scoring(NamedTuple):
    base_points: int = 100
    streak_bonus: int = 25

    def award(self, correct: bool, streak: int) -> Tuple[int, int]:
        """Return (points, streak after this trial)."""
        if correct:
            return self.base_points + streak * self.streak_bonus, streak + 1
        return 0, 0


class TrialOutcome(NamedTuple):
    guessed_zone: int
    correct: bool
    points: int
    streak_after: int
    auto_selected: bool


class TrialEngine:
    def __init__(
        self,
        index: int,
        scenario: Scenario,
        timings: TrialTimings,
        scoring: Scoring = Scoring(),
        streak: int = 0,
        geometry: Optional[GridGeometry] = None,
    ):
        self.index = index
        self.scenario = scenario
        self.timings = timings
        self.scoring = scoring
        self.streak_before = streak
        self.geometry = geometry or GridGeometry()
        self.phase = READY
        self.outcome: Optional[TrialOutcome] = None
        self.pending: Optional[TimerAction] = None

    @property
    def guessed_zone(self) -> Optional[int]:
        return self.outcome.guessed_zone if self.outcome else None

    @property
    def correct(self) -> bool:
        return bool(self.outcome and self.outcome.correct)

    @property
    def score(self) -> int:
        return self.outcome.points if self.outcome else 0

    @property
    def finished(self) -> bool:
        return self.phase in (DONE, ABANDONED)

    def start(self) -> Optional[TimerAction]:
        if self.phase != READY:
            return None
        return self._enter(MEMORIZE, self.timings.memorize_ms)

    def on_timer(self, token: Tuple[int, str]) -> Optional[TimerAction]:
        if self.pending is None or tuple(token) != self.pending.token:
            return None
        if self.phase == MEMORIZE:
            return self._enter(PREDICT, self.timings.predict_ms)
        if self.phase == PREDICT:
            return self._resolve(self.geometry.default_zone(), auto_selected=True)
        if self.phase == REVEAL:
            self.phase = DONE
            self.pending = None
        return None

    def submit_guess(self, zone) -> Optional[TimerAction]:
        """Accept a guess during predict; anything else is ignored and returns None."""
        if self.phase != PREDICT or not self.geometry.is_valid_zone(zone):
            return None
        return self._resolve(zone, auto_selected=False)

    def cancel(self) -> None:
        if not self.finished:
            self.phase = ABANDONED
        self.pending = None

    def _enter(self, phase: str, delay_ms: int) -> TimerAction:
        self.phase = phase
        self.pending = TimerAction(self.index, phase, delay_ms)
        return self.pending

    def _resolve(self, zone: int, auto_selected: bool) -> TimerAction:
        correct = zone == self.scenario.exit_zone
        points, streak_after = self.scoring.award(correct, self.streak_before)
        self.outcome = TrialOutcome(zone, correct, points, streak_after, auto_selected)
        return self._enter(REVEAL, self.timings.reveal_ms)

    def exit_zone_statuses(self) -> List[Dict[str, object]]:
        statuses = []
        for zone in range(self.geometry.zone_count):
            if zone == self.scenario.exit_zone:
                status = 'correct'
            elif zone == self.guessed_zone:
                status = 'incorrect'
            else:
                status = 'unselected'
            statuses.append({'zone': zone, 'status': status})
        return statuses

    def render(self) -> Dict[str, object]:
        """Plain data for the presentation layer; hidden parts are omitted per phase."""
        data: Dict[str, object] = {
            'trial': self.index + 1,
            'phase': self.phase,
            'entry': {'edge': self.scenario.entry_edge, 'index': self.scenario.entry_index},
        }
        if self.phase in (MEMORIZE, REVEAL):
            data['placements'] = self.scenario.placements()
        if self.phase == REVEAL:
            data['active_reflectors'] = [r.to_dict() for r in self.scenario.reflectors]
            data['waypoints'] = self.geometry.waypoints(self.scenario)
            data['exit_zones'] = self.exit_zone_statuses()
            data['outcome'] = self.outcome._asdict()
        return data
