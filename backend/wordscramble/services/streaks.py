import datetime as dt
import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional

from wordscramble import types
from wordscramble.cache import CacheClient
from wordscramble.repository import ScrambleRepository


def streak_cache_key(game_id: str, actor_id: str) -> str:
    return f"streak.{game_id}.{actor_id}"


def top_streaks_cache_key(game_id: str, limit: int) -> str:
    return f"streaks.top.{game_id}.{limit}"


class StreakTracker:
    def __init__(
        self,
        repository: ScrambleRepository,
        cache: CacheClient,
        cache_ttl: int = 300,
        common_limits: Iterable[int] = (10, 100),
        today: Callable[[], dt.date] = dt.date.today,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.common_limits = tuple(common_limits)
        self.today = today
        self.logger = logger or logging.getLogger(__name__)

    def update_streak(self, game_id: str, actor_id: str, date: Optional[dt.date] = None) -> types.Streak:
        """Count a play on ``date``.

        Same day or earlier than the last play: unchanged. Day after the last
        play: +1. Any gap: back to 1.
        """
        date = date or self.today()
        streak = self.repository.find_streak(game_id, actor_id)

        if streak is None or streak.last_played_date is None:
            updated = types.Streak(game_id, actor_id, current_streak=1, longest_streak=1, last_played_date=date)
        elif date <= streak.last_played_date:
            return streak
        elif streak.last_played_date + dt.timedelta(days=1) == date:
            current = streak.current_streak + 1
            updated = replace(
                streak,
                current_streak=current,
                longest_streak=max(streak.longest_streak, current),
                last_played_date=date,
            )
        else:
            updated = replace(streak, current_streak=1, last_played_date=date)

        saved = self.repository.save_streak(updated)
        self.cache.delete(streak_cache_key(game_id, actor_id))
        for limit in self.common_limits:
            self.cache.delete(top_streaks_cache_key(game_id, limit))
        self.logger.info(f"[streak] game={game_id} actor={actor_id} current={saved.current_streak} longest={saved.longest_streak}")
        return saved

    def get_streak(self, game_id: str, actor_id: str) -> Dict:
        cache_key = streak_cache_key(game_id, actor_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        streak = self.repository.find_streak(game_id, actor_id) or types.Streak(game_id, actor_id)
        payload = streak.to_dict()
        payload['will_break_tomorrow'] = bool(
            streak.last_played_date and streak.last_played_date < self.today()
        )
        self.cache.set(cache_key, payload, self.cache_ttl)
        return payload

    def has_played_today(self, game_id: str, actor_id: str) -> bool:
        streak = self.repository.find_streak(game_id, actor_id)
        return bool(streak and streak.last_played_date == self.today())

    def get_top_streaks(self, game_id: str, limit: int = 10) -> List[Dict]:
        """Actors with the highest current streak, longest streak breaking ties.

        Boards for limits outside ``common_limits`` are not evicted on update
        and can trail by up to the streak TTL.
        """
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        cache_key = top_streaks_cache_key(game_id, limit)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        board = [
            {
                'actor_id': s.actor_id,
                'current_streak': s.current_streak,
                'longest_streak': s.longest_streak,
            }
            for s in self.repository.top_streaks(game_id, limit)
        ]
        self.cache.set(cache_key, board, self.cache_ttl)
        return board
