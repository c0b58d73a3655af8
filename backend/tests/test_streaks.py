from datetime import date, timedelta

from crdo.services.streaks import StreakState, advance_streak

TODAY = date(2026, 10, 16)


def test_first_run_starts_streak():
    assert advance_streak(None, TODAY) == StreakState(1, 1, TODAY, 0)


def test_same_day_keeps_state():
    prior = StreakState(4, 9, TODAY, 2)
    assert advance_streak(prior, TODAY) == prior


def test_next_day_extends_streak():
    prior = StreakState(5, 5, TODAY - timedelta(days=1))
    result = advance_streak(prior, TODAY)
    assert result.current_streak == 6
    assert result.longest_streak == 6
    assert result.last_run_date == TODAY


def test_next_day_keeps_higher_longest():
    prior = StreakState(2, 10, TODAY - timedelta(days=1))
    result = advance_streak(prior, TODAY)
    assert (result.current_streak, result.longest_streak) == (3, 10)


def test_gap_resets_current_only():
    prior = StreakState(5, 9, TODAY - timedelta(days=3))
    result = advance_streak(prior, TODAY)
    assert (result.current_streak, result.longest_streak) == (1, 9)
    assert result.last_run_date == TODAY


def test_run_dated_before_last_run_resets():
    prior = StreakState(5, 9, TODAY)
    result = advance_streak(prior, TODAY - timedelta(days=1))
    assert (result.current_streak, result.longest_streak) == (1, 9)
    assert result.last_run_date == TODAY - timedelta(days=1)


def test_freeze_count_is_carried():
    prior = StreakState(1, 1, TODAY - timedelta(days=1), freeze_count=3)
    assert advance_streak(prior, TODAY).freeze_count == 3
    assert advance_streak(prior, TODAY + timedelta(days=5)).freeze_count == 3


def test_longest_never_below_current():
    state = None
    day = TODAY
    for offset in (0, 1, 2, 2, 5, 6, 7, 8, 20):
        state = advance_streak(state, day + timedelta(days=offset))
        assert state.longest_streak >= state.current_streak >= 1
