"""Word Scramble domain services: puzzles, dictionary, scoring, leaderboards.

Each service gets its store and cache collaborators at construction time;
``wordscramble.create_app`` wires them together. Nothing here knows about
HTTP or sessions.
"""

from .dictionary import AnagramDictionary, can_form_word
from .game import WordScrambleGame
from .invalidation import CacheInvalidationManager
from .leaderboard import LeaderboardAggregator
from .letters import LetterSetGenerator
from .puzzles import PuzzleGenerator
from .scoring import score_word
from .streaks import StreakTracker

__all__ = [
    'AnagramDictionary',
    'CacheInvalidationManager',
    'LeaderboardAggregator',
    'LetterSetGenerator',
    'PuzzleGenerator',
    'StreakTracker',
    'WordScrambleGame',
    'can_form_word',
    'score_word',
]
