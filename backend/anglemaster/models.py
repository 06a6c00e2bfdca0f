from anglemaster import db
from datetime import datetime, date
import json

GAME_SLUG = 'angle-master'


class GameLevel(db.Model):
    __tablename__ = 'game_level'
    id = db.Column(db.Integer, primary_key=True)
    game_slug = db.Column(db.String(64), nullable=False, default=GAME_SLUG, index=True)
    level_number = db.Column(db.Integer, nullable=False)
    reflector_count = db.Column(db.Integer, nullable=False)
    decoy_count = db.Column(db.Integer, nullable=False, default=0)
    memorize_duration_ms = db.Column(db.Integer, nullable=True)
    predict_duration_ms = db.Column(db.Integer, nullable=True)
    total_trials = db.Column(db.Integer, nullable=True)
    pass_threshold_percent = db.Column(db.Float, nullable=True)
    reward_points = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    __table_args__ = (db.UniqueConstraint('game_slug', 'level_number', name='uq_game_level_number'),)

    def to_dict(self):
        return {
            'id': self.id,
            'level_number': self.level_number,
            'reflector_count': self.reflector_count,
            'decoy_count': self.decoy_count,
            'memorize_duration_ms': self.memorize_duration_ms,
            'predict_duration_ms': self.predict_duration_ms,
            'total_trials': self.total_trials,
            'pass_threshold_percent': self.pass_threshold_percent,
            'reward_points': self.reward_points,
            'is_active': self.is_active,
        }


class GameSession(db.Model):
    """One finished (or abandoned) level run."""
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, nullable=False, index=True)
    game_slug = db.Column(db.String(64), nullable=False, default=GAME_SLUG)
    level_number = db.Column(db.Integer, nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    reward_earned = db.Column(db.Integer, nullable=False, default=0)
    duration_seconds = db.Column(db.Integer, nullable=False, default=0)
    rounds_completed = db.Column(db.Integer, nullable=False, default=0)
    accuracy_percentage = db.Column(db.Integer, nullable=False, default=0)
    is_perfect = db.Column(db.Boolean, nullable=False, default=False)
    level_completed = db.Column(db.Boolean, nullable=False, default=False)
    session_data = db.Column(db.Text, nullable=True)  # JSON-encoded trial scores etc.
    played_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'level_number': self.level_number,
            'score': self.score,
            'reward_earned': self.reward_earned,
            'duration_seconds': self.duration_seconds,
            'rounds_completed': self.rounds_completed,
            'accuracy_percentage': self.accuracy_percentage,
            'is_perfect': self.is_perfect,
            'level_completed': self.level_completed,
            'session_data': json.loads(self.session_data) if self.session_data else None,
            'played_at': self.played_at.isoformat() if self.played_at else None,
        }


class PlayerGameProgress(db.Model):
    __tablename__ = 'player_game_progress'
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, nullable=False, index=True)
    game_slug = db.Column(db.String(64), nullable=False, default=GAME_SLUG)
    current_level = db.Column(db.Integer, nullable=False, default=1)
    highest_level_completed = db.Column(db.Integer, nullable=False, default=0)
    total_reward_earned = db.Column(db.Integer, nullable=False, default=0)
    total_sessions = db.Column(db.Integer, nullable=False, default=0)
    best_scores = db.Column(db.Text, nullable=True)  # JSON-encoded {"<level>": score}
    last_played_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (db.UniqueConstraint('player_id', 'game_slug', name='uq_progress_player_game'),)

    @property
    def best_scores_map(self):
        try:
            return json.loads(self.best_scores) if self.best_scores else {}
        except ValueError:
            return {}

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'game_slug': self.game_slug,
            'current_level': self.current_level,
            'highest_level_completed': self.highest_level_completed,
            'total_reward_earned': self.total_reward_earned,
            'total_sessions': self.total_sessions,
            'best_scores': self.best_scores_map,
            'last_played_at': self.last_played_at.isoformat() if self.last_played_at else None,
        }


class DailyGameTime(db.Model):
    __tablename__ = 'daily_game_time'
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, default=date.today)
    minutes_played = db.Column(db.Integer, nullable=False, default=0)
    sessions_count = db.Column(db.Integer, nullable=False, default=0)
    games_played = db.Column(db.Text, nullable=True)  # JSON-encoded {"<slug>": count}

    __table_args__ = (db.UniqueConstraint('player_id', 'date', name='uq_daily_player_date'),)

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'date': self.date.isoformat() if self.date else None,
            'minutes_played': self.minutes_played,
            'sessions_count': self.sessions_count,
            'games_played': json.loads(self.games_played) if self.games_played else {},
        }
