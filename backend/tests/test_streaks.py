import datetime as dt

import pytest

from wordscramble.services.streaks import streak_cache_key

from conftest import TEST_TODAY

GAME = 'word-scramble'


def test_first_play_starts_streak(services):
    streak = services.streaks.update_streak(GAME, 'user:a', TEST_TODAY)
    assert (streak.current_streak, streak.longest_streak) == (1, 1)
    assert streak.last_played_date == TEST_TODAY


def test_same_day_and_earlier_plays_do_not_count(services):
    services.streaks.update_streak(GAME, 'user:a', TEST_TODAY)
    services.streaks.update_streak(GAME, 'user:a', TEST_TODAY + dt.timedelta(days=1))

    assert services.streaks.update_streak(GAME, 'user:a', TEST_TODAY + dt.timedelta(days=1)).current_streak == 2
    assert services.streaks.update_streak(GAME, 'user:a', TEST_TODAY).current_streak == 2


def test_gap_resets_but_keeps_longest(services):
    for offset in range(3):
        services.streaks.update_streak(GAME, 'user:a', TEST_TODAY + dt.timedelta(days=offset))
    streak = services.streaks.update_streak(GAME, 'user:a', TEST_TODAY + dt.timedelta(days=5))

    assert streak.current_streak == 1
    assert streak.longest_streak == 3


def test_get_streak_payload(services, clock):
    assert services.streaks.get_streak(GAME, 'user:new') == {
        'game_id': GAME,
        'actor_id': 'user:new',
        'current_streak': 0,
        'longest_streak': 0,
        'last_played_date': None,
        'will_break_tomorrow': False,
    }

    services.streaks.update_streak(GAME, 'user:a', TEST_TODAY)
    assert services.streaks.get_streak(GAME, 'user:a')['will_break_tomorrow'] is False

    clock.advance()
    # cached payload was computed on the play day
    services.cache.delete(streak_cache_key(GAME, 'user:a'))
    payload = services.streaks.get_streak(GAME, 'user:a')
    assert payload['current_streak'] == 1
    assert payload['last_played_date'] == '2025-07-22'
    assert payload['will_break_tomorrow'] is True


def test_has_played_today(services, clock):
    assert services.streaks.has_played_today(GAME, 'user:a') is False

    services.streaks.update_streak(GAME, 'user:a')
    assert services.streaks.has_played_today(GAME, 'user:a') is True

    clock.advance()
    assert services.streaks.has_played_today(GAME, 'user:a') is False


def test_top_streaks_order_and_limit(services):
    for offset in range(3):
        services.streaks.update_streak(GAME, 'user:a', TEST_TODAY + dt.timedelta(days=offset))
    for offset in range(2):
        services.streaks.update_streak(GAME, 'user:b', TEST_TODAY + dt.timedelta(days=offset))
    # Same current streak as user:c but a longer best run
    for offset in (0, 1, 2, 4):
        services.streaks.update_streak(GAME, 'user:c', TEST_TODAY + dt.timedelta(days=offset))
    services.streaks.update_streak(GAME, 'user:d', TEST_TODAY)
    services.streaks.update_streak('other-game', 'user:z', TEST_TODAY)

    top = services.streaks.get_top_streaks(GAME, limit=3)

    assert top == [
        {'actor_id': 'user:a', 'current_streak': 3, 'longest_streak': 3},
        {'actor_id': 'user:b', 'current_streak': 2, 'longest_streak': 2},
        {'actor_id': 'user:c', 'current_streak': 1, 'longest_streak': 3},
    ]
    assert [row['actor_id'] for row in services.streaks.get_top_streaks(GAME)] == [
        'user:a', 'user:b', 'user:c', 'user:d'
    ]


def test_top_streaks_refresh_after_update(services):
    services.streaks.update_streak(GAME, 'user:a', TEST_TODAY)
    assert services.streaks.get_top_streaks(GAME)[0]['current_streak'] == 1

    services.streaks.update_streak(GAME, 'user:a', TEST_TODAY + dt.timedelta(days=1))

    assert services.streaks.get_top_streaks(GAME)[0]['current_streak'] == 2


def test_top_streaks_rejects_bad_limit(services):
    with pytest.raises(ValueError):
        services.streaks.get_top_streaks(GAME, limit=0)
