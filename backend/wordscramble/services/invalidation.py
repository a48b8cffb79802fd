"""Eviction of leaderboard and rank cache entries after a score update.

The cache offers delete-by-exact-key only, so the keys a score update can
affect are rebuilt from what is known: the game, the actor, the recorded date
and the current clock. Covered:

- daily boards for today, yesterday (midnight races) and the recorded date
- monthly boards for the current and the recorded month
- the all-time board
- each of the above for every limit in ``common_limits``
- the actor's own rank entries for the same periods

Anything else (a board read with an uncommon limit, other actors' rank
entries whose rank moved) is left to expire on its own TTL. Those reads can
be stale for at most the leaderboard TTL.
"""

import datetime as dt
import logging
from typing import Callable, Iterable, List, Optional, Tuple

from wordscramble import types
from wordscramble.cache import CacheClient


LEADERBOARD_CACHE_PREFIX = 'leaderboard'


def month_key(date: dt.date) -> str:
    return date.replace(day=1).isoformat()


def leaderboard_cache_key(game_id: str, period_type: str, period_key: Optional[str], limit: int) -> str:
    key = f"{LEADERBOARD_CACHE_PREFIX}.{game_id}.{period_type}"
    if period_key:
        key += f".{period_key}"
    return f"{key}.{limit}"


def rank_cache_key(game_id: str, actor_id: str, period_type: str, period_key: Optional[str]) -> str:
    return f"{LEADERBOARD_CACHE_PREFIX}.{game_id}.{period_type}.{period_key or 'all'}.user.{actor_id}"


class CacheInvalidationManager:
    def __init__(
        self,
        cache: CacheClient,
        common_limits: Iterable[int] = (10, 100),
        today: Callable[[], dt.date] = dt.date.today,
        logger: Optional[logging.Logger] = None,
    ):
        self.cache = cache
        self.common_limits = tuple(common_limits)
        self.today = today
        self.logger = logger or logging.getLogger(__name__)

    def affected_periods(self, recorded_date: Optional[dt.date] = None) -> List[Tuple[str, Optional[str]]]:
        today = self.today()
        days = [today, today - dt.timedelta(days=1)]
        if recorded_date:
            days.append(recorded_date)

        periods: List[Tuple[str, Optional[str]]] = []
        for day in days:
            period = (types.DAILY, day.isoformat())
            if period not in periods:
                periods.append(period)
        for day in (today, recorded_date):
            if day is None:
                continue
            period = (types.MONTHLY, month_key(day))
            if period not in periods:
                periods.append(period)
        periods.append((types.ALL_TIME, None))
        return periods

    def keys_for_score_update(self, game_id: str, actor_id: str, recorded_date: Optional[dt.date] = None) -> List[str]:
        keys = []
        for period_type, period_key in self.affected_periods(recorded_date):
            for limit in self.common_limits:
                keys.append(leaderboard_cache_key(game_id, period_type, period_key, limit))
            keys.append(rank_cache_key(game_id, actor_id, period_type, period_key))
        return keys

    def invalidate_score_update(self, game_id: str, actor_id: str, recorded_date: Optional[dt.date] = None) -> List[str]:
        keys = self.keys_for_score_update(game_id, actor_id, recorded_date)
        for key in keys:
            self.cache.delete(key)
        self.logger.info(f"[leaderboard-cache-clear] game={game_id} actor={actor_id} keys={len(keys)}")
        return keys
