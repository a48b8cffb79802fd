from datetime import datetime, timezone

from wordscramble import db


# Stored in place of NULL so the all-time row takes part in the unique constraint
ALL_TIME_PERIOD_KEY = 'all'


def _utcnow():
    return datetime.now(timezone.utc)


class Puzzle(db.Model):
    __tablename__ = 'puzzle'
    id = db.Column(db.Integer, primary_key=True)
    letters = db.Column(db.String(16), nullable=False)
    date = db.Column(db.Date, unique=True, nullable=False, index=True)
    possible_word_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    words = db.relationship('PuzzleWord', backref='puzzle', lazy='dynamic', cascade='all, delete-orphan')


class PuzzleWord(db.Model):
    __tablename__ = 'puzzle_word'
    __table_args__ = (
        db.UniqueConstraint('puzzle_id', 'text', name='uq_puzzle_word_text'),
    )
    id = db.Column(db.Integer, primary_key=True)
    puzzle_id = db.Column(db.Integer, db.ForeignKey('puzzle.id'), nullable=False, index=True)
    text = db.Column(db.String(32), nullable=False)  # always lower-case
    score = db.Column(db.Integer, nullable=False)


class Submission(db.Model):
    __tablename__ = 'submission'
    __table_args__ = (
        db.UniqueConstraint('puzzle_id', 'actor_id', 'text', name='uq_submission_actor_text'),
    )
    id = db.Column(db.Integer, primary_key=True)
    puzzle_id = db.Column(db.Integer, db.ForeignKey('puzzle.id'), nullable=False)
    actor_id = db.Column(db.String(128), nullable=False, index=True)
    text = db.Column(db.String(32), nullable=False)
    score = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)


class LeaderboardEntry(db.Model):
    __tablename__ = 'leaderboard_entry'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'actor_id', 'period_type', 'period_key', name='uq_leaderboard_period'),
        db.Index('ix_leaderboard_ranking', 'game_id', 'period_type', 'period_key', 'score'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.String(64), nullable=False)
    actor_id = db.Column(db.String(128), nullable=False)
    period_type = db.Column(db.String(16), nullable=False)  # daily, monthly, all_time
    period_key = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD, YYYY-MM-01 or 'all'
    score = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow)


class Streak(db.Model):
    __tablename__ = 'streak'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'actor_id', name='uq_streak_actor'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.String(64), nullable=False)
    actor_id = db.Column(db.String(128), nullable=False)
    current_streak = db.Column(db.Integer, nullable=False, default=0)
    longest_streak = db.Column(db.Integer, nullable=False, default=0)
    last_played_date = db.Column(db.Date, nullable=True)
