import datetime as dt
import logging
import re
from typing import Callable, Dict, List, Optional, Union

from wordscramble import types
from wordscramble.cache import CacheClient
from wordscramble.repository import ScrambleRepository
from .invalidation import (
    CacheInvalidationManager,
    leaderboard_cache_key,
    month_key,
    rank_cache_key,
)


PeriodKey = Union[dt.date, str, None]

_YEAR_MONTH = re.compile(r'^\d{4}-\d{2}$')


def normalize_period_key(period_type: str, period_key: PeriodKey) -> Optional[str]:
    """Stored form of a period key.

    daily: ``YYYY-MM-DD``; monthly: first of the month ``YYYY-MM-01`` (accepts
    a date, ``YYYY-MM`` or any ``YYYY-MM-DD`` in the month); all-time: None.
    """
    if period_type == types.ALL_TIME:
        return None
    if period_type not in types.PERIOD_TYPES:
        raise ValueError(f"Unknown period type: {period_type!r}")
    if period_key is None:
        raise ValueError(f"A {period_type} leaderboard needs a period key")

    if isinstance(period_key, dt.datetime):
        day = period_key.date()
    elif isinstance(period_key, dt.date):
        day = period_key
    elif period_type == types.MONTHLY and _YEAR_MONTH.match(period_key):
        day = dt.date.fromisoformat(f"{period_key}-01")
    else:
        day = dt.date.fromisoformat(period_key)

    if period_type == types.MONTHLY:
        return month_key(day)
    return day.isoformat()


class LeaderboardAggregator:
    """Per-actor best scores for daily, monthly and all-time periods."""

    def __init__(
        self,
        repository: ScrambleRepository,
        cache: CacheClient,
        invalidator: CacheInvalidationManager,
        cache_ttl: int = 300,
        today: Callable[[], dt.date] = dt.date.today,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.cache = cache
        self.invalidator = invalidator
        self.cache_ttl = cache_ttl
        self.today = today
        self.logger = logger or logging.getLogger(__name__)

    def record_score(self, game_id: str, actor_id: str, period_score: int, date: Optional[dt.date] = None) -> None:
        """Raise the actor's daily, monthly and all-time entries to ``period_score``.

        Each entry becomes max(stored, period_score) in a single conditional
        write; a lower score leaves it untouched.
        """
        date = date or self.today()
        if isinstance(date, dt.datetime):
            date = date.date()
        periods = (
            (types.DAILY, date.isoformat()),
            (types.MONTHLY, month_key(date)),
            (types.ALL_TIME, None),
        )
        for period_type, period_key in periods:
            self.repository.upsert_max_score(game_id, actor_id, period_type, period_key, period_score)

        self.logger.info(f"[leaderboard-record] game={game_id} actor={actor_id} score={period_score} date={date}")
        self.invalidator.invalidate_score_update(game_id, actor_id, date)

    def get_leaderboard(self, game_id: str, period_type: str, period_key: PeriodKey = None, limit: int = 10) -> List[Dict]:
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        key = normalize_period_key(period_type, period_key)
        cache_key = leaderboard_cache_key(game_id, period_type, key, limit)

        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        self.logger.info(f"[leaderboard-cache-miss] game={game_id} period={period_type} key={key} limit={limit}")
        board = [entry.to_dict() for entry in self.repository.top_entries(game_id, period_type, key, limit)]
        self.cache.set(cache_key, board, self.cache_ttl)
        return board

    def get_daily_leaderboard(self, game_id: str, limit: int = 10, date: Optional[dt.date] = None) -> List[Dict]:
        return self.get_leaderboard(game_id, types.DAILY, date or self.today(), limit)

    def get_monthly_leaderboard(self, game_id: str, limit: int = 10, year_month: PeriodKey = None) -> List[Dict]:
        return self.get_leaderboard(game_id, types.MONTHLY, year_month or self.today(), limit)

    def get_all_time_leaderboard(self, game_id: str, limit: int = 10) -> List[Dict]:
        return self.get_leaderboard(game_id, types.ALL_TIME, None, limit)

    def get_user_rank(self, game_id: str, actor_id: str, period_type: str, period_key: PeriodKey = None) -> Optional[Dict]:
        """{'rank', 'score'} for the actor, or None without an entry.

        Rank is 1 + the number of entries with a strictly higher score, so
        tied actors share a rank.
        """
        key = normalize_period_key(period_type, period_key)
        cache_key = rank_cache_key(game_id, actor_id, period_type, key)

        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        self.logger.info(f"[rank-cache-miss] game={game_id} actor={actor_id} period={period_type} key={key}")
        entry = self.repository.find_entry(game_id, actor_id, period_type, key)
        if entry is None:
            return None

        rank = self.repository.count_higher_scores(game_id, period_type, key, entry.score) + 1
        result = {'rank': rank, 'score': entry.score}
        self.cache.set(cache_key, result, self.cache_ttl)
        return result

    def get_user_rank_fresh(self, game_id: str, actor_id: str, period_type: str, period_key: PeriodKey = None) -> Optional[Dict]:
        """Same as get_user_rank, bypassing whatever is cached for the key."""
        key = normalize_period_key(period_type, period_key)
        self.cache.delete(rank_cache_key(game_id, actor_id, period_type, key))
        return self.get_user_rank(game_id, actor_id, period_type, key)
