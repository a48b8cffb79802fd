import datetime as dt
import os
import random
import sys

import pytest

# Ensure the backend root (containing the `wordscramble` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from wordscramble import create_app, db
from wordscramble.cache import MemoryCache
from wordscramble.config import Config

TEST_TODAY = dt.date(2025, 7, 22)
TEST_WORDLIST = os.path.join(CURRENT_DIR, 'wordlist.txt')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    GAME_ID = 'word-scramble'
    DICTIONARY_PATH = TEST_WORDLIST
    PUZZLE_FIXED_LETTERS = None
    LEADERBOARD_COMMON_LIMITS = (10, 100)


class FakeClock:
    """Callable date source that tests can move forward."""

    def __init__(self, day):
        self.day = day

    def __call__(self):
        return self.day

    def advance(self, days=1):
        self.day = self.day + dt.timedelta(days=days)


class FakeTimer:
    """Monotonic time source for MemoryCache expiry."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class BrokenCache:
    def get(self, key):
        raise ConnectionError('cache down')

    def set(self, key, value, ttl):
        raise ConnectionError('cache down')

    def delete(self, key):
        raise ConnectionError('cache down')


@pytest.fixture()
def clock():
    return FakeClock(TEST_TODAY)


@pytest.fixture()
def timer():
    return FakeTimer()


@pytest.fixture()
def memory_cache(timer):
    return MemoryCache(clock=timer)


@pytest.fixture()
def flask_app(memory_cache, clock):
    application = create_app(TestConfig, cache=memory_cache, today=clock, rng=random.Random(1234))
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def services(flask_app):
    return flask_app.extensions['wordscramble']


@pytest.fixture()
def artesni_puzzle(services):
    services.puzzles.fixed_letters = 'artesni'
    return services.puzzles.ensure_puzzle_for_date(TEST_TODAY)
