"""Plain records handed out by the repository.

Services never touch ORM rows directly; they get these frozen dataclasses
back and build their dict payloads from them.
"""

import datetime as dt
from dataclasses import dataclass, asdict
from typing import Optional


DAILY = 'daily'
MONTHLY = 'monthly'
ALL_TIME = 'all_time'
PERIOD_TYPES = (DAILY, MONTHLY, ALL_TIME)


@dataclass(frozen=True)
class Puzzle:
    id: int
    letters: str
    date: dt.date
    possible_word_count: int

    def to_dict(self):
        return {
            'id': self.id,
            'letters': self.letters,
            'date': self.date.isoformat(),
            'possible_word_count': self.possible_word_count,
        }


@dataclass(frozen=True)
class Word:
    puzzle_id: int
    text: str
    score: int


@dataclass(frozen=True)
class Submission:
    puzzle_id: int
    actor_id: str
    text: str
    score: int
    created_at: Optional[dt.datetime] = None


@dataclass(frozen=True)
class LeaderboardEntry:
    game_id: str
    actor_id: str
    period_type: str
    period_key: Optional[str]
    score: int

    def to_dict(self):
        return {'actor_id': self.actor_id, 'score': self.score}


@dataclass(frozen=True)
class Streak:
    game_id: str
    actor_id: str
    current_streak: int = 0
    longest_streak: int = 0
    last_played_date: Optional[dt.date] = None

    def to_dict(self):
        data = asdict(self)
        data['last_played_date'] = self.last_played_date.isoformat() if self.last_played_date else None
        return data
