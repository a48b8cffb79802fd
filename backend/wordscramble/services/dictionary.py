import hashlib
import logging
from collections import Counter
from pathlib import Path
from typing import FrozenSet, Optional, Set

from wordscramble.cache import CacheClient
from .scoring import score_word


DEFAULT_WORDLIST_PATH = Path(__file__).resolve().parent.parent / 'data' / 'english_words.txt'

DICTIONARY_CACHE_KEY = 'dictionary_words'
WORD_VALIDATION_CACHE_PREFIX = 'dictionary.word_validation'
POSSIBLE_WORDS_CACHE_PREFIX = 'dictionary.possible_words'

MIN_WORD_LENGTH = 3


def load_wordlist(path) -> FrozenSet[str]:
    """Read a word list: one word per line, blank lines and # comments skipped."""
    with open(path, 'r', encoding='utf-8') as fh:
        return frozenset(
            line.strip().lower()
            for line in fh
            if line.strip() and not line.startswith('#')
        )


def can_form_word(letters: str, word: str) -> bool:
    """True if ``word`` uses no letter more often than ``letters`` holds it."""
    word = word.strip().lower()
    if len(word) < MIN_WORD_LENGTH:
        return False
    available = Counter(letters.lower())
    needed = Counter(word)
    return all(available[letter] >= count for letter, count in needed.items())


class AnagramDictionary:
    """Word validation and anagram enumeration over a cached corpus.

    The corpus itself, per-word validity and the solution set of each letter
    multiset are all cached; the corpus is read from disk only on a miss.
    """

    def __init__(
        self,
        cache: CacheClient,
        wordlist_path=None,
        corpus_ttl: int = 604800,
        validation_ttl: int = 86400,
        possible_words_ttl: int = 86400,
        logger: Optional[logging.Logger] = None,
    ):
        self.cache = cache
        self.wordlist_path = Path(wordlist_path) if wordlist_path else DEFAULT_WORDLIST_PATH
        self.corpus_ttl = corpus_ttl
        self.validation_ttl = validation_ttl
        self.possible_words_ttl = possible_words_ttl
        self.logger = logger or logging.getLogger(__name__)

    def is_valid_word(self, word: str) -> bool:
        word = word.strip().lower()
        if len(word) < MIN_WORD_LENGTH:
            return False

        cache_key = self.word_validation_cache_key(word)
        cached = self.cache.get(cache_key)
        if cached is not None:
            self.logger.debug(f"[word-validation-cache-hit] word={word}")
            return cached

        is_valid = word in self.get_corpus()
        self.cache.set(cache_key, is_valid, self.validation_ttl)
        return is_valid

    def can_form_word(self, letters: str, word: str) -> bool:
        return can_form_word(letters, word)

    def get_possible_words(self, letters: str) -> Set[str]:
        letters = letters.lower()
        cache_key = self.possible_words_cache_key(letters)
        cached = self.cache.get(cache_key)
        if cached is not None:
            self.logger.debug(f"[possible-words-cache-hit] letters={letters}")
            return set(cached)

        possible = {word for word in self.get_corpus() if can_form_word(letters, word)}
        self.cache.set(cache_key, sorted(possible), self.possible_words_ttl)
        self.logger.info(f"[possible-words] letters={letters} found={len(possible)}")
        return possible

    def calculate_word_score(self, word: str) -> int:
        return score_word(word)

    def get_corpus(self) -> FrozenSet[str]:
        corpus = self.cache.get(DICTIONARY_CACHE_KEY)
        if corpus is not None:
            return corpus
        corpus = load_wordlist(self.wordlist_path)
        self.cache.set(DICTIONARY_CACHE_KEY, corpus, self.corpus_ttl)
        self.logger.info(f"[dictionary-load] path={self.wordlist_path} words={len(corpus)}")
        return corpus

    @staticmethod
    def word_validation_cache_key(word: str) -> str:
        digest = hashlib.md5(word.encode('utf-8')).hexdigest()
        return f"{WORD_VALIDATION_CACHE_PREFIX}.{digest}"

    @staticmethod
    def possible_words_cache_key(letters: str) -> str:
        # Sorted so every permutation of the same letters shares one entry
        return f"{POSSIBLE_WORDS_CACHE_PREFIX}.{''.join(sorted(letters.lower()))}"
