import datetime as dt
import logging
from typing import Callable, Dict, Optional

from wordscramble.cache import CacheClient
from wordscramble.repository import ScrambleRepository
from .leaderboard import LeaderboardAggregator
from .puzzles import PuzzleGenerator
from .streaks import StreakTracker


REASON_NO_PUZZLE = 'no_puzzle'
REASON_ALREADY_FOUND = 'already_found'
REASON_INVALID_WORD = 'invalid_word'

REJECTION_MESSAGES = {
    REASON_NO_PUZZLE: 'No puzzle found for this date.',
    REASON_ALREADY_FOUND: 'You have already found this word.',
    REASON_INVALID_WORD: 'Not a valid word for this puzzle.',
}


def submissions_cache_key(actor_id: str, puzzle_id: int) -> str:
    return f"word_scramble.submissions.{actor_id}.puzzle.{puzzle_id}"


def _rejected(reason: str, word: Optional[str] = None) -> Dict:
    result = {'accepted': False, 'reason': reason, 'message': REJECTION_MESSAGES[reason]}
    if word is not None:
        result['word'] = word
    return result


class WordScrambleGame:
    """Word submission flow for the daily puzzle.

    Only words stored for the puzzle can be accepted, each at most once per
    actor. The actor's puzzle total is summed from stored submissions and fed
    to the leaderboard, so the leaderboard never depends on a caller-side
    running total.
    """

    def __init__(
        self,
        game_id: str,
        repository: ScrambleRepository,
        puzzles: PuzzleGenerator,
        leaderboard: LeaderboardAggregator,
        streaks: StreakTracker,
        cache: CacheClient,
        submissions_ttl: int = 300,
        today: Callable[[], dt.date] = dt.date.today,
        logger: Optional[logging.Logger] = None,
    ):
        self.game_id = game_id
        self.repository = repository
        self.puzzles = puzzles
        self.leaderboard = leaderboard
        self.streaks = streaks
        self.cache = cache
        self.submissions_ttl = submissions_ttl
        self.today = today
        self.logger = logger or logging.getLogger(__name__)

    def get_todays_puzzle(self) -> Dict:
        return self.puzzles.ensure_puzzle_for_date(self.today()).to_dict()

    def submit_word(self, actor_id: str, word: str, date: Optional[dt.date] = None) -> Dict:
        date = date or self.today()
        puzzle = self.puzzles.get_puzzle_for_date(date)
        if puzzle is None:
            return _rejected(REASON_NO_PUZZLE)

        word = word.strip().lower()

        if self.repository.has_submission(puzzle.id, actor_id, word):
            return _rejected(REASON_ALREADY_FOUND, word)

        stored = self.repository.find_word(puzzle.id, word)
        if stored is None:
            return _rejected(REASON_INVALID_WORD, word)

        if not self.repository.insert_submission_if_absent(puzzle.id, actor_id, word, stored.score):
            # Lost a race with an identical submission
            self.logger.info(f"[submit-duplicate] puzzle={puzzle.id} actor={actor_id} word={word}")
            return _rejected(REASON_ALREADY_FOUND, word)

        puzzle_score, found_count = self.repository.actor_puzzle_totals(puzzle.id, actor_id)
        self.leaderboard.record_score(self.game_id, actor_id, puzzle_score, puzzle.date)
        streak = self.streaks.update_streak(self.game_id, actor_id, puzzle.date)
        self.cache.delete(submissions_cache_key(actor_id, puzzle.id))

        self.logger.info(
            f"[submit] puzzle={puzzle.id} actor={actor_id} word={word} score={stored.score} total={puzzle_score}"
        )
        return {
            'accepted': True,
            'message': 'Word submitted successfully.',
            'word': word,
            'score': stored.score,
            'cumulative_totals': {
                'puzzle_score': puzzle_score,
                'found_words_count': found_count,
                'possible_word_count': puzzle.possible_word_count,
                'current_streak': streak.current_streak,
                'longest_streak': streak.longest_streak,
            },
        }

    def get_actor_submissions(self, actor_id: str, date: Optional[dt.date] = None) -> Optional[Dict]:
        """The actor's found words for a puzzle, or None when there is no puzzle."""
        date = date or self.today()
        puzzle = self.puzzles.get_puzzle_for_date(date)
        if puzzle is None:
            return None

        cache_key = submissions_cache_key(actor_id, puzzle.id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        submissions = self.repository.list_submissions(puzzle.id, actor_id)
        payload = {
            'puzzle_id': puzzle.id,
            'submissions': [
                {
                    'word': s.text,
                    'score': s.score,
                    'submitted_at': s.created_at.isoformat() if s.created_at else None,
                }
                for s in submissions
            ],
            'total_score': sum(s.score for s in submissions),
            'found_words_count': len(submissions),
            'possible_word_count': puzzle.possible_word_count,
        }
        self.cache.set(cache_key, payload, self.submissions_ttl)
        return payload
