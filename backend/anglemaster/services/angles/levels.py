from typing import Dict, Mapping, Optional

from .level import LevelConfig


# level -> (reflectors, decoys, reward)
LEVEL_TABLE: Dict[int, tuple] = {
    1: (2, 0, 20),
    2: (2, 1, 25),
    3: (3, 0, 30),
    4: (3, 1, 35),
    5: (3, 2, 40),
    6: (4, 1, 45),
    7: (4, 2, 50),
    8: (4, 3, 55),
    9: (5, 2, 60),
    10: (5, 3, 65),
    11: (6, 2, 70),
    12: (6, 3, 75),
    13: (6, 4, 80),
    14: (7, 3, 90),
    15: (7, 4, 100),
}
MAX_LEVEL = max(LEVEL_TABLE)

MEMORIZE_STEP_MS = 100

OVERRIDABLE_FIELDS = (
    'reflector_count',
    'decoy_count',
    'memorize_duration_ms',
    'predict_duration_ms',
    'reveal_duration_ms',
    'total_trials',
    'pass_threshold_percent',
    'reward_points',
)


def memorize_duration_for(level_number: int, settings: Mapping) -> int:
    base = int(settings.get('MEMORIZE_DURATION_MS', 3000))
    floor = int(settings.get('MIN_MEMORIZE_DURATION_MS', 1500))
    return max(floor, base - MEMORIZE_STEP_MS * (level_number - 1))


def default_level(level_number: int, settings: Mapping) -> LevelConfig:
    """Built-in config for a level; numbers past the table reuse the last level."""
    number = level_number if level_number in LEVEL_TABLE else MAX_LEVEL
    if level_number < 1:
        number = 1
    reflectors, decoys, reward = LEVEL_TABLE[number]
    return LevelConfig(
        reflector_count=reflectors,
        decoy_count=decoys,
        memorize_duration_ms=memorize_duration_for(number, settings),
        predict_duration_ms=int(settings.get('PREDICT_DURATION_MS', 10000)),
        total_trials=int(settings.get('TRIALS_PER_LEVEL', 15)),
        pass_threshold_percent=float(settings.get('PASS_THRESHOLD_PERCENT', 67)),
        reward_points=reward,
        reveal_duration_ms=int(settings.get('REVEAL_DURATION_MS', 1200)),
        base_points=int(settings.get('BASE_POINTS', 100)),
        streak_bonus=int(settings.get('STREAK_BONUS', 25)),
        perfect_bonus=int(settings.get('PERFECT_REWARD_BONUS', 10)),
        level_number=number,
    )


def resolve_level(
    level_number: int,
    settings: Mapping,
    stored: Optional[Mapping] = None,
    overrides: Optional[Mapping] = None,
) -> LevelConfig:
    """Layer a stored level row and request overrides over the built-in level.

    Without a stored row, numbers past the table play as the last built-in
    level. A stored row keeps its own number even when it lies past the table.
    """
    config = default_level(level_number, settings)
    if stored:
        config.level_number = level_number
    for source in (stored or {}, overrides or {}):
        for name in OVERRIDABLE_FIELDS:
            value = source.get(name)
            if value is None:
                continue
            if name == 'pass_threshold_percent':
                value = float(value)
            else:
                value = int(value)
            setattr(config, name, value)
    return config
