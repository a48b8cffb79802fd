import datetime as dt
import logging
from typing import Callable, List, Optional, Set, Tuple

from wordscramble import types
from wordscramble.cache import CacheClient
from wordscramble.repository import ScrambleRepository
from .dictionary import AnagramDictionary
from .letters import LetterSetGenerator


PUZZLE_CACHE_PREFIX = 'word_scramble.puzzle'


def puzzle_cache_key(date: dt.date) -> str:
    return f"{PUZZLE_CACHE_PREFIX}.date.{date.isoformat()}"


class PuzzleGenerator:
    """Creates at most one puzzle per date and resolves puzzles by date.

    Only the puzzle id is cached per date; content is always re-read from the
    store by id.
    """

    def __init__(
        self,
        repository: ScrambleRepository,
        dictionary: AnagramDictionary,
        letter_generator: LetterSetGenerator,
        cache: CacheClient,
        letters_count: int = 7,
        min_possible_words: int = 10,
        max_attempts: int = 10,
        fixed_letters: Optional[str] = None,
        cache_ttl: int = 86400,
        today: Callable[[], dt.date] = dt.date.today,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.dictionary = dictionary
        self.letter_generator = letter_generator
        self.cache = cache
        self.letters_count = letters_count
        self.min_possible_words = min_possible_words
        self.max_attempts = max_attempts
        self.fixed_letters = fixed_letters
        self.cache_ttl = cache_ttl
        self.today = today
        self.logger = logger or logging.getLogger(__name__)

    def get_puzzle_for_date(self, date: Optional[dt.date] = None) -> Optional[types.Puzzle]:
        """Read-only lookup. Returns None when no puzzle exists for the date."""
        date = date or self.today()
        puzzle = self._from_cache(date)
        if puzzle:
            return puzzle

        puzzle = self.repository.find_puzzle_by_date(date)
        if puzzle:
            self.cache.set(puzzle_cache_key(date), puzzle.id, self.cache_ttl)
            self.logger.info(f"[puzzle-cache-fill] date={date} puzzle={puzzle.id}")
        return puzzle

    def ensure_puzzle_for_date(self, date: Optional[dt.date] = None) -> types.Puzzle:
        """Return the puzzle for ``date``, creating it on first access.

        An existing puzzle is never regenerated. When a concurrent caller wins
        the insert, its puzzle is re-read and returned.
        """
        date = date or self.today()
        existing = self.get_puzzle_for_date(date)
        if existing:
            return existing

        letters, possible_words = self._pick_letters()
        words = {word: self.dictionary.calculate_word_score(word) for word in possible_words}
        puzzle = self.repository.create_puzzle_with_words(date, letters.upper(), words)
        if puzzle is None:
            self.logger.info(f"[puzzle-race] date={date} created concurrently, re-reading")
            puzzle = self.repository.find_puzzle_by_date(date)
            if puzzle is None:
                raise RuntimeError(f"Puzzle for {date} conflicted on insert but could not be re-read")
        else:
            self.logger.info(
                f"[puzzle-created] date={date} puzzle={puzzle.id} letters={puzzle.letters} words={puzzle.possible_word_count}"
            )

        self.cache.set(puzzle_cache_key(date), puzzle.id, self.cache_ttl)
        return puzzle

    def generate_future_puzzles(self, days: int = 7, start: Optional[dt.date] = None) -> List[types.Puzzle]:
        start = start or self.today()
        return [self.ensure_puzzle_for_date(start + dt.timedelta(days=offset)) for offset in range(days)]

    def clear_puzzle_cache(self, date: dt.date) -> None:
        self.cache.delete(puzzle_cache_key(date))
        self.logger.info(f"[puzzle-cache-clear] date={date}")

    def _from_cache(self, date: dt.date) -> Optional[types.Puzzle]:
        puzzle_id = self.cache.get(puzzle_cache_key(date))
        if puzzle_id is None:
            return None
        puzzle = self.repository.get_puzzle(puzzle_id)
        if puzzle and puzzle.date == date:
            self.logger.debug(f"[puzzle-cache-hit] date={date} puzzle={puzzle_id}")
            return puzzle
        # Stale id (puzzle removed or replaced out-of-band)
        self.cache.delete(puzzle_cache_key(date))
        return None

    def _pick_letters(self) -> Tuple[str, Set[str]]:
        if self.fixed_letters:
            letters = self.fixed_letters.lower()
            return letters, self.dictionary.get_possible_words(letters)

        best_letters, best_words = None, set()
        for attempt in range(1, max(1, self.max_attempts) + 1):
            letters = self.letter_generator.generate(self.letters_count)
            words = self.dictionary.get_possible_words(letters)
            if best_letters is None or len(words) > len(best_words):
                best_letters, best_words = letters, words
            if len(words) >= self.min_possible_words:
                self.logger.debug(f"[letters-accepted] letters={letters} words={len(words)} attempt={attempt}")
                return letters, words

        self.logger.warning(
            f"[letters-weak] no letter set reached {self.min_possible_words} words in "
            f"{self.max_attempts} attempts; using {best_letters} with {len(best_words)}"
        )
        return best_letters, best_words
