import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///anglemaster.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Board
    GRID_SIZE = int(os.environ.get('GRID_SIZE', '6'))
    # Phase timers (milliseconds). Memorize time shrinks per level down to the minimum.
    MEMORIZE_DURATION_MS = int(os.environ.get('MEMORIZE_DURATION_MS', '3000'))
    MIN_MEMORIZE_DURATION_MS = int(os.environ.get('MIN_MEMORIZE_DURATION_MS', '1500'))
    PREDICT_DURATION_MS = int(os.environ.get('PREDICT_DURATION_MS', '10000'))
    REVEAL_DURATION_MS = int(os.environ.get('REVEAL_DURATION_MS', '1200'))
    # Level rules
    TRIALS_PER_LEVEL = int(os.environ.get('TRIALS_PER_LEVEL', '15'))
    PASS_THRESHOLD_PERCENT = float(os.environ.get('PASS_THRESHOLD_PERCENT', '67'))
    BASE_POINTS = int(os.environ.get('BASE_POINTS', '100'))
    STREAK_BONUS = int(os.environ.get('STREAK_BONUS', '25'))
    PERFECT_REWARD_BONUS = int(os.environ.get('PERFECT_REWARD_BONUS', '10'))
    # Generator tuning
    REFLECTOR_PLACEMENT_PROBABILITY = float(os.environ.get('REFLECTOR_PLACEMENT_PROBABILITY', '0.35'))
    GENERATION_MAX_ATTEMPTS = int(os.environ.get('GENERATION_MAX_ATTEMPTS', '100'))
    GENERATION_STEP_BUDGET = int(os.environ.get('GENERATION_STEP_BUDGET', '30'))
    DEDUP_MAX_ATTEMPTS = int(os.environ.get('DEDUP_MAX_ATTEMPTS', '20'))
    # Grace period before an orphaned run is abandoned (seconds)
    OWNER_DISCONNECT_GRACE_SEC = float(os.environ.get('OWNER_DISCONNECT_GRACE_SEC', '2'))
    # Finished runs stay readable this long (seconds)
    RUN_RETENTION_SEC = int(os.environ.get('RUN_RETENTION_SEC', '600'))
    # Optional: debounce controller actions (ms). 0 disables.
    CONTROLLER_DEBOUNCE_MS = int(os.environ.get('CONTROLLER_DEBOUNCE_MS', '0'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
