from anglemaster import db
from anglemaster.models import GAME_SLUG, DailyGameTime, GameLevel, GameSession, PlayerGameProgress
from .level import LevelResult
from .levels import MAX_LEVEL
from datetime import date, datetime
import json
import math


def record_level_result(player_id: int, level_number: int, result: LevelResult, run_code: str = None) -> GameSession:
    """Persist a finished run: session row, progress upsert, daily time upsert.

    Rolls back and re-raises if any write fails.
    """
    try:
        session = GameSession(
            player_id=player_id,
            game_slug=GAME_SLUG,
            level_number=level_number,
            score=result.total_score,
            reward_earned=result.reward_earned,
            duration_seconds=result.duration_seconds,
            rounds_completed=result.trials_played,
            accuracy_percentage=result.accuracy_percent,
            is_perfect=result.is_perfect,
            level_completed=result.level_completed,
            session_data=json.dumps({
                'run_code': run_code,
                'trial_scores': result.trial_scores,
                'abandoned': result.abandoned,
            }),
        )
        db.session.add(session)
        _update_progress(player_id, level_number, result)
        _update_daily_time(player_id, result.duration_seconds)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return session


def _top_level() -> int:
    """Highest playable level: the built-in table or an active stored row past it."""
    stored = (
        db.session.query(db.func.max(GameLevel.level_number))
        .filter(GameLevel.game_slug == GAME_SLUG, GameLevel.is_active.is_(True))
        .scalar()
    )
    return max(MAX_LEVEL, stored or 0)


def _update_progress(player_id: int, level_number: int, result: LevelResult) -> PlayerGameProgress:
    progress = PlayerGameProgress.query.filter_by(player_id=player_id, game_slug=GAME_SLUG).first()
    if not progress:
        progress = PlayerGameProgress(
            player_id=player_id,
            game_slug=GAME_SLUG,
            current_level=1,
            highest_level_completed=0,
            total_reward_earned=0,
            total_sessions=0,
        )
    if result.level_completed:
        progress.highest_level_completed = max(progress.highest_level_completed or 0, level_number)
        progress.current_level = min(level_number + 1, _top_level())
    else:
        progress.current_level = level_number
    best = progress.best_scores_map
    key = str(level_number)
    best[key] = max(best.get(key, 0), result.total_score)
    progress.best_scores = json.dumps(best)
    progress.total_reward_earned = (progress.total_reward_earned or 0) + result.reward_earned
    progress.total_sessions = (progress.total_sessions or 0) + 1
    progress.last_played_at = datetime.utcnow()
    db.session.add(progress)
    return progress


def _update_daily_time(player_id: int, duration_seconds: int) -> DailyGameTime:
    today = date.today()
    daily = DailyGameTime.query.filter_by(player_id=player_id, date=today).first()
    if not daily:
        daily = DailyGameTime(player_id=player_id, date=today, minutes_played=0, sessions_count=0)
    try:
        played = json.loads(daily.games_played) if daily.games_played else {}
    except ValueError:
        played = {}
    played[GAME_SLUG] = played.get(GAME_SLUG, 0) + 1
    daily.games_played = json.dumps(played)
    daily.minutes_played = (daily.minutes_played or 0) + int(math.ceil(duration_seconds / 60.0))
    daily.sessions_count = (daily.sessions_count or 0) + 1
    db.session.add(daily)
    return daily
