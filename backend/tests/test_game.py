import datetime as dt
import random

from wordscramble import create_app, db
from wordscramble.models import Submission
from wordscramble.services.game import submissions_cache_key

from conftest import TEST_TODAY, BrokenCache, FakeClock, TestConfig

GAME = 'word-scramble'
DAY = TEST_TODAY.isoformat()


def test_accepts_a_puzzle_word_once(services, artesni_puzzle):
    assert artesni_puzzle.letters == 'ARTESNI'

    result = services.game.submit_word('user:a', 'RATS')
    assert result['accepted'] is True
    assert result['word'] == 'rats'
    assert result['score'] == 2
    assert result['cumulative_totals']['puzzle_score'] == 2
    assert result['cumulative_totals']['found_words_count'] == 1

    again = services.game.submit_word('user:a', 'RATS')
    assert again['accepted'] is False
    assert again['reason'] == 'already_found'
    assert again['message'] == 'You have already found this word.'


def test_rejects_words_not_in_the_puzzle(services, artesni_puzzle):
    result = services.game.submit_word('user:a', 'ZZZZZ')
    assert result['accepted'] is False
    assert result['reason'] == 'invalid_word'
    assert result['message'] == 'Not a valid word for this puzzle.'

    # a corpus word that cannot be formed from the letters is rejected too
    assert services.game.submit_word('user:a', 'interest')['reason'] == 'invalid_word'
    assert Submission.query.count() == 0


def test_no_puzzle_for_date(services):
    result = services.game.submit_word('user:a', 'rats', dt.date(2030, 1, 1))
    assert result == {'accepted': False, 'reason': 'no_puzzle', 'message': 'No puzzle found for this date.'}


def test_words_are_normalized(services, artesni_puzzle):
    assert services.game.submit_word('user:a', '  Stain ')['accepted'] is True
    assert services.game.submit_word('user:a', 'STAIN')['reason'] == 'already_found'


def test_different_actors_find_the_same_word(services, artesni_puzzle):
    assert services.game.submit_word('user:a', 'rats')['accepted'] is True
    assert services.game.submit_word('guest:xyz', 'rats')['accepted'] is True


def test_totals_accumulate_and_feed_the_leaderboard(services, artesni_puzzle):
    services.game.submit_word('user:a', 'rats')
    services.game.submit_word('user:a', 'stain')
    result = services.game.submit_word('user:a', 'retains')

    totals = result['cumulative_totals']
    assert totals['puzzle_score'] == 2 + 4 + 10
    assert totals['found_words_count'] == 3
    assert totals['possible_word_count'] == artesni_puzzle.possible_word_count

    services.game.submit_word('user:b', 'strain')

    board = services.leaderboard.get_leaderboard(GAME, 'daily', DAY, 10)
    assert board == [{'actor_id': 'user:a', 'score': 16}, {'actor_id': 'user:b', 'score': 7}]
    assert services.leaderboard.get_user_rank(GAME, 'user:b', 'daily', DAY) == {'rank': 2, 'score': 7}
    assert services.leaderboard.get_all_time_leaderboard(GAME)[0] == {'actor_id': 'user:a', 'score': 16}


def test_lost_race_reads_as_already_found(services, artesni_puzzle, monkeypatch):
    services.game.submit_word('user:a', 'rats')
    # The duplicate slips past the pre-check and hits the unique constraint
    monkeypatch.setattr(services.repository, 'has_submission', lambda *args: False)

    result = services.game.submit_word('user:a', 'rats')

    assert result['reason'] == 'already_found'
    assert Submission.query.filter_by(actor_id='user:a').count() == 1
    assert services.leaderboard.get_user_rank(GAME, 'user:a', 'daily', DAY)['score'] == 2


def test_actor_submissions(services, artesni_puzzle, memory_cache):
    assert services.game.get_actor_submissions('user:a')['found_words_count'] == 0

    services.game.submit_word('user:a', 'rats')
    services.game.submit_word('user:a', 'train')

    found = services.game.get_actor_submissions('user:a')
    assert [s['word'] for s in found['submissions']] == ['rats', 'train']
    assert found['total_score'] == 6
    assert found['possible_word_count'] == artesni_puzzle.possible_word_count
    assert memory_cache.get(submissions_cache_key('user:a', artesni_puzzle.id)) == found


def test_actor_submissions_without_puzzle(services):
    assert services.game.get_actor_submissions('user:a', dt.date(2030, 1, 1)) is None


def test_get_todays_puzzle(services, clock):
    services.puzzles.fixed_letters = 'artesni'
    payload = services.game.get_todays_puzzle()
    assert payload['letters'] == 'ARTESNI'
    assert payload['date'] == DAY
    assert payload['possible_word_count'] > 10


def test_streak_grows_on_consecutive_days(services, clock):
    services.puzzles.fixed_letters = 'artesni'
    services.puzzles.generate_future_puzzles(4)

    assert services.game.submit_word('user:a', 'rats')['cumulative_totals']['current_streak'] == 1
    clock.advance()
    assert services.game.submit_word('user:a', 'rats')['cumulative_totals']['current_streak'] == 2
    clock.advance(2)
    totals = services.game.submit_word('user:a', 'rats')['cumulative_totals']
    assert totals['current_streak'] == 1
    assert totals['longest_streak'] == 2


def test_submissions_work_when_the_cache_is_down():
    clock = FakeClock(TEST_TODAY)
    app = create_app(TestConfig, cache=BrokenCache(), today=clock, rng=random.Random(1))
    with app.app_context():
        db.create_all()
        services = app.extensions['wordscramble']
        services.puzzles.fixed_letters = 'artesni'
        services.puzzles.ensure_puzzle_for_date()

        assert services.game.submit_word('user:a', 'rats')['accepted'] is True
        assert services.game.submit_word('user:a', 'rats')['reason'] == 'already_found'
        assert services.leaderboard.get_user_rank(GAME, 'user:a', 'daily', DAY) == {'rank': 1, 'score': 2}
        db.session.remove()
        db.drop_all()
