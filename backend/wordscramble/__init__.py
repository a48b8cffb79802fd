import datetime as dt
import random
from dataclasses import dataclass

import click
from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy

from wordscramble.config import Config

db = SQLAlchemy()


@dataclass
class Services:
    repository: object
    cache: object
    dictionary: object
    puzzles: object
    leaderboard: object
    invalidation: object
    streaks: object
    game: object


def build_services(config, cache, today=dt.date.today, rng=None, logger=None) -> Services:
    """Wire the domain services around one repository and one cache client."""
    from wordscramble.cache import FailSafeCache
    from wordscramble.repository import ScrambleRepository
    from wordscramble.services import (
        AnagramDictionary,
        CacheInvalidationManager,
        LeaderboardAggregator,
        LetterSetGenerator,
        PuzzleGenerator,
        StreakTracker,
        WordScrambleGame,
    )

    cache = FailSafeCache(cache, logger=logger)
    repository = ScrambleRepository()
    dictionary = AnagramDictionary(
        cache,
        wordlist_path=config.get('DICTIONARY_PATH'),
        corpus_ttl=config['DICTIONARY_CACHE_TTL'],
        validation_ttl=config['WORD_VALIDATION_CACHE_TTL'],
        possible_words_ttl=config['POSSIBLE_WORDS_CACHE_TTL'],
        logger=logger,
    )
    puzzles = PuzzleGenerator(
        repository,
        dictionary,
        LetterSetGenerator(rng),
        cache,
        letters_count=config['PUZZLE_LETTERS_COUNT'],
        min_possible_words=config['MIN_POSSIBLE_WORDS'],
        max_attempts=config['MAX_GENERATION_ATTEMPTS'],
        fixed_letters=config.get('PUZZLE_FIXED_LETTERS'),
        cache_ttl=config['PUZZLE_CACHE_TTL'],
        today=today,
        logger=logger,
    )
    invalidation = CacheInvalidationManager(
        cache,
        common_limits=config['LEADERBOARD_COMMON_LIMITS'],
        today=today,
        logger=logger,
    )
    leaderboard = LeaderboardAggregator(
        repository,
        cache,
        invalidation,
        cache_ttl=config['LEADERBOARD_CACHE_TTL'],
        today=today,
        logger=logger,
    )
    streaks = StreakTracker(
        repository,
        cache,
        cache_ttl=config['STREAK_CACHE_TTL'],
        common_limits=config['STREAK_COMMON_LIMITS'],
        today=today,
        logger=logger,
    )
    game = WordScrambleGame(
        config['GAME_ID'],
        repository,
        puzzles,
        leaderboard,
        streaks,
        cache,
        submissions_ttl=config['SUBMISSIONS_CACHE_TTL'],
        today=today,
        logger=logger,
    )
    return Services(
        repository=repository,
        cache=cache,
        dictionary=dictionary,
        puzzles=puzzles,
        leaderboard=leaderboard,
        invalidation=invalidation,
        streaks=streaks,
        game=game,
    )


def get_services() -> Services:
    return current_app.extensions['wordscramble']


def create_app(config_class=Config, cache=None, today=dt.date.today, rng: random.Random = None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)

    # Ensure models are registered on the metadata before any create_all
    from wordscramble import models  # noqa: F401
    from wordscramble.cache import MemoryCache

    flask_app.extensions['wordscramble'] = build_services(
        flask_app.config,
        cache if cache is not None else MemoryCache(),
        today=today,
        rng=rng,
        logger=flask_app.logger,
    )

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database tables."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            click.echo('Database has been reset!')

    @click.command('generate-puzzles')
    @click.option('--days', default=1, show_default=True, help='Number of days to generate puzzles for.')
    @click.option('--start', default=None, help='First date (YYYY-MM-DD). Defaults to today.')
    def generate_puzzles_command(days, start):
        """Generate daily Word Scramble puzzles."""
        start_date = dt.date.fromisoformat(start) if start else None
        with flask_app.app_context():
            click.echo(f"Generating Word Scramble puzzles for {days} day(s)...")
            for puzzle in get_services().puzzles.generate_future_puzzles(days, start=start_date):
                click.echo(
                    f"Puzzle for {puzzle.date.isoformat()}: {puzzle.letters} "
                    f"with {puzzle.possible_word_count} possible words"
                )
            click.echo('Done!')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(generate_puzzles_command)

    return flask_app
