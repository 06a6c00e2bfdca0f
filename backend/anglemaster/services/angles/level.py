"""Level runs: a fixed number of trials sharing a streak and a dedup set."""

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from .dedup import ScenarioDeduplicator, scenario_signature
from .generator import ScenarioGenerator
from .geometry import GridGeometry
from .trial import ABANDONED, DONE, READY, Scoring, TimerAction, TrialEngine, TrialTimings


logger = logging.getLogger(__name__)

COMPLETE = 'complete'


class LevelConfigError(ValueError):
    """Raised before a run starts when its configuration cannot be played."""


@dataclass
class LevelConfig:
    reflector_count: int
    decoy_count: int
    memorize_duration_ms: int
    predict_duration_ms: int
    total_trials: int
    pass_threshold_percent: float
    reward_points: int
    reveal_duration_ms: int = 1200
    base_points: int = 100
    streak_bonus: int = 25
    perfect_bonus: int = 10
    level_number: Optional[int] = None

    def validate(self, grid_size: int) -> None:
        cells = grid_size * grid_size
        if not isinstance(self.total_trials, int) or self.total_trials <= 0:
            raise LevelConfigError(f"total_trials must be a positive integer, got {self.total_trials!r}")
        if not 0 <= self.reflector_count <= cells:
            raise LevelConfigError(f"reflector_count must be within 0..{cells}, got {self.reflector_count}")
        if not 0 <= self.decoy_count <= cells:
            raise LevelConfigError(f"decoy_count must be within 0..{cells}, got {self.decoy_count}")
        for name in ('memorize_duration_ms', 'predict_duration_ms', 'reveal_duration_ms'):
            if getattr(self, name) < 0:
                raise LevelConfigError(f"{name} must not be negative")
        if not 0 <= self.pass_threshold_percent <= 100:
            raise LevelConfigError(f"pass_threshold_percent must be within 0..100, got {self.pass_threshold_percent}")
        if self.reward_points < 0 or self.perfect_bonus < 0:
            raise LevelConfigError("rewards must not be negative")

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class LevelResult:
    total_score: int
    accuracy: float
    is_perfect: bool
    level_completed: bool
    duration_seconds: int
    reward_earned: int
    correct_count: int
    trials_played: int
    total_trials: int
    trial_scores: List[int] = field(default_factory=list)
    abandoned: bool = False

    @property
    def accuracy_percent(self) -> int:
        return int(round(self.accuracy * 100))

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data['accuracy_percent'] = self.accuracy_percent
        return data


class LevelController:
    """Drives ``total_trials`` TrialEngines and emits one LevelResult."""

    def __init__(
        self,
        config: LevelConfig,
        deduplicator: Optional[ScenarioDeduplicator] = None,
        geometry: Optional[GridGeometry] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.geometry = geometry or (deduplicator.generator.geometry if deduplicator else GridGeometry())
        config.validate(self.geometry.size)
        self.config = config
        self.deduplicator = deduplicator or ScenarioDeduplicator(ScenarioGenerator(self.geometry))
        self.clock = clock
        self.timings = TrialTimings(config.memorize_duration_ms, config.predict_duration_ms, config.reveal_duration_ms)
        self.scoring = Scoring(config.base_points, config.streak_bonus)

        self.trial_scores: List[int] = []
        self.correct_count = 0
        self.streak = 0
        self.used_signatures: Set[str] = set()
        self.trial: Optional[TrialEngine] = None
        self.result: Optional[LevelResult] = None
        self.started_at: Optional[float] = None
        self._state = READY

    @property
    def phase(self) -> str:
        if self.trial is not None and self._state not in (COMPLETE, ABANDONED):
            return self.trial.phase
        return self._state

    @property
    def finished(self) -> bool:
        return self.result is not None

    @property
    def pending_timer(self) -> Optional[TimerAction]:
        if self.finished or self.trial is None:
            return None
        return self.trial.pending

    def start(self) -> List[TimerAction]:
        if self._state != READY:
            return []
        self._state = 'running'
        self.started_at = self.clock()
        return self._begin_trial(0)

    def submit_guess(self, zone) -> Tuple[bool, List[TimerAction]]:
        if self.finished or self.trial is None:
            return False, []
        action = self.trial.submit_guess(zone)
        if action is None:
            return False, []
        self._record(self.trial)
        return True, [action]

    def on_timer(self, token: Tuple[int, str]) -> List[TimerAction]:
        trial = self.trial
        if self.finished or trial is None or tuple(token)[0] != trial.index:
            return []
        was_predicting = trial.outcome is None
        action = trial.on_timer(token)
        if was_predicting and trial.outcome is not None:
            self._record(trial)
        if action is not None:
            return [action]
        if trial.phase == DONE:
            if trial.index + 1 < self.config.total_trials:
                return self._begin_trial(trial.index + 1)
            self._finish(abandoned=False)
        return []

    def abandon(self) -> Optional[LevelResult]:
        """Stop the run; returns the failed result, or None if it had already ended."""
        if self.finished:
            return None
        if self.trial is not None:
            self.trial.cancel()
        return self._finish(abandoned=True)

    def _begin_trial(self, index: int) -> List[TimerAction]:
        scenario = self.deduplicator.next(
            self.config.reflector_count, self.config.decoy_count, self.used_signatures
        )
        self.used_signatures.add(scenario_signature(scenario))
        self.trial = TrialEngine(index, scenario, self.timings, self.scoring, self.streak, self.geometry)
        action = self.trial.start()
        return [action] if action is not None else []

    def _record(self, trial: TrialEngine) -> None:
        outcome = trial.outcome
        self.trial_scores.append(outcome.points)
        self.streak = outcome.streak_after
        if outcome.correct:
            self.correct_count += 1

    def _finish(self, abandoned: bool) -> LevelResult:
        total = self.config.total_trials
        played = len(self.trial_scores)
        correct = self.correct_count
        all_played = played == total
        accuracy = correct / float(total if all_played else played) if played else 0.0
        # Integer comparison keeps the pass boundary exact (10/15 < 67% <= 11/15).
        passed = (not abandoned) and all_played and correct * 100 >= self.config.pass_threshold_percent * total
        perfect = (not abandoned) and all_played and correct == total
        reward = 0
        if passed:
            reward = int(round(self.config.reward_points * accuracy))
            if perfect:
                reward += self.config.perfect_bonus
        duration = 0
        if self.started_at is not None:
            duration = int(round(self.clock() - self.started_at))

        self.result = LevelResult(
            total_score=sum(self.trial_scores),
            accuracy=accuracy,
            is_perfect=perfect,
            level_completed=passed,
            duration_seconds=duration,
            reward_earned=reward,
            correct_count=correct,
            trials_played=played,
            total_trials=total,
            trial_scores=list(self.trial_scores),
            abandoned=abandoned,
        )
        self._state = ABANDONED if abandoned else COMPLETE
        logger.debug("[level-finish] abandoned=%s correct=%s/%s passed=%s", abandoned, correct, total, passed)
        return self.result

    def render(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            'phase': self.phase,
            'level_number': self.config.level_number,
            'grid_size': self.geometry.size,
            'zone_count': self.geometry.zone_count,
            'trial': (self.trial.index + 1) if self.trial else 0,
            'total_trials': self.config.total_trials,
            'streak': self.streak,
            'trial_scores': list(self.trial_scores),
            'total_score': sum(self.trial_scores),
            'correct_count': self.correct_count,
            'current': None,
            'result': self.result.to_dict() if self.result else None,
        }
        if self.trial is not None and not self.finished:
            data['current'] = self.trial.render()
        return data
