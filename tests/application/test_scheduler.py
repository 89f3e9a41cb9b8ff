import random
from datetime import date, timedelta

import pytest

from cadence.application.scheduler import (
    bulk_update_cards,
    calculate_next_review,
    calculate_quality,
    get_card_stats,
    get_daily_review_count,
    get_review_distribution,
    get_review_queue,
    initialize_card,
    update_progress,
)
from factories import NOW, make_card


# --- Quality ---


@pytest.mark.parametrize(
    "time_spent, expected",
    [(30, 5), (60, 5), (61, 4), (90, 4), (91, 3), (600, 3)],
)
def test_quality_correct_depends_on_time(time_spent, expected):
    assert calculate_quality(True, time_spent, expected_time=60) == expected


@pytest.mark.parametrize("hints, expected", [(0, 2), (1, 1), (2, 0), (7, 0)])
def test_quality_incorrect_depends_on_hints(hints, expected):
    # Time is irrelevant for incorrect answers
    assert calculate_quality(False, 5, expected_time=60, hints_used=hints) == expected
    assert calculate_quality(False, 500, expected_time=60, hints_used=hints) == expected


def test_quality_ignores_hints_when_correct():
    assert calculate_quality(True, 30, expected_time=60, hints_used=3) == 5


@pytest.mark.parametrize(
    "correct, time_spent, expected_time, hints_used, expected",
    [
        (True, -1.0, 60, 0, 5),
        (True, 100, 0, 0, 3),
        (True, 80, -5, 0, 4),
        (False, 10, 60, -1, 0),
    ],
)
def test_quality_clamps_out_of_range_input(
    correct, time_spent, expected_time, hints_used, expected
):
    # A non-positive expected time falls back to the 60s default
    assert calculate_quality(correct, time_spent, expected_time, hints_used) == expected


# --- SM-2 transitions ---


def test_initialize_card_defaults():
    card = initialize_card("p1", now=NOW)
    assert card.ease_factor == 2.5
    assert card.interval == 1
    assert card.repetitions == 0
    assert card.next_review == NOW + timedelta(days=1)
    assert card.last_reviewed is None
    assert card.quality is None


def test_perfect_answers_grow_interval():
    card = initialize_card("p1", now=NOW)

    card = calculate_next_review(card, 5, now=NOW)
    assert (card.repetitions, card.interval) == (1, 1)
    assert card.ease_factor == pytest.approx(2.6)

    card = calculate_next_review(card, 5, now=NOW)
    assert (card.repetitions, card.interval) == (2, 6)
    assert card.ease_factor == pytest.approx(2.7)

    card = calculate_next_review(card, 5, now=NOW)
    # round(6 * 2.8)
    assert (card.repetitions, card.interval) == (3, 17)
    assert card.ease_factor == pytest.approx(2.8)
    assert card.next_review == NOW + timedelta(days=17)
    assert card.last_reviewed == NOW
    assert card.quality == 5


@pytest.mark.parametrize(
    "quality, delta",
    [(5, 0.1), (4, 0.0), (3, -0.14), (2, -0.32), (1, -0.54), (0, -0.8)],
)
def test_ease_factor_delta(quality, delta):
    card = make_card("p1", ease_factor=2.5, repetitions=3, interval=10)
    updated = calculate_next_review(card, quality, now=NOW)
    assert updated.ease_factor == pytest.approx(2.5 + delta)


def test_failure_resets_schedule():
    card = make_card("p1", ease_factor=2.5, interval=30, repetitions=4, consecutive_correct=4)
    updated = calculate_next_review(card, 2, now=NOW)

    assert updated.repetitions == 0
    assert updated.interval == 1
    assert updated.next_review == NOW + timedelta(days=1)
    assert updated.consecutive_correct == 0
    assert updated.consecutive_incorrect == 1


def test_ease_factor_never_drops_below_minimum():
    card = make_card("p1", ease_factor=1.4)
    for _ in range(5):
        card = calculate_next_review(card, 0, now=NOW)
        assert card.ease_factor == pytest.approx(1.3)


def test_random_quality_sequences_keep_invariants():
    rng = random.Random(1234)
    for _ in range(50):
        card = initialize_card("p1", now=NOW)
        for _ in range(20):
            quality = rng.randint(0, 5)
            previous = card
            card = calculate_next_review(previous, quality, now=NOW)

            assert card.ease_factor >= 1.3
            assert card.interval >= 1
            assert card.consecutive_correct == 0 or card.consecutive_incorrect == 0
            if quality >= 3 and previous.repetitions >= 2:
                assert card.interval >= previous.interval


def test_streaks_are_mutually_exclusive():
    card = make_card("p1", consecutive_correct=3)
    card = calculate_next_review(card, 1, now=NOW)
    assert (card.consecutive_correct, card.consecutive_incorrect) == (0, 1)

    card = calculate_next_review(card, 0, now=NOW)
    assert (card.consecutive_correct, card.consecutive_incorrect) == (0, 2)

    card = calculate_next_review(card, 4, now=NOW)
    assert (card.consecutive_correct, card.consecutive_incorrect) == (1, 0)


def test_transition_does_not_mutate_input():
    card = make_card("p1")
    calculate_next_review(card, 5, now=NOW)
    assert card.repetitions == 0
    assert card.last_reviewed is None


@pytest.mark.parametrize("quality", [-1, 6])
def test_transition_rejects_out_of_range_quality(quality):
    with pytest.raises(ValueError):
        calculate_next_review(make_card("p1"), quality, now=NOW)


# --- Recording answers ---


def test_update_progress_correct_answer():
    card = initialize_card("p1", now=NOW)
    result = update_progress(card, True, 45, expected_time=60, now=NOW)

    assert result.was_correct is True
    assert result.card.quality == 5
    assert result.interval_changed == 0
    assert result.ease_factor_changed == pytest.approx(0.1)


def test_update_progress_incorrect_answer():
    card = make_card("p1", interval=6, repetitions=2, consecutive_correct=2)
    result = update_progress(card, False, 45, hints_used=0, now=NOW)

    assert result.was_correct is False
    assert result.card.quality == 2
    assert result.card.repetitions == 0
    assert result.interval_changed == -5
    assert result.card.consecutive_incorrect == 1


def test_bulk_update_only_touches_listed_cards():
    a = make_card("a")
    b = make_card("b")
    updated = bulk_update_cards([a, b], {"a": 5}, now=NOW)

    assert [card.problem_id for card in updated] == ["a", "b"]
    assert updated[0].repetitions == 1
    assert updated[0].quality == 5
    assert updated[1] is b


# --- Due set ---


def test_review_queue_returns_due_cards_oldest_first():
    cards = [
        make_card("tomorrow", due_in_days=1),
        make_card("now", due_in_days=0),
        make_card("two-days-ago", due_in_days=-2),
        make_card("yesterday", due_in_days=-1),
    ]
    queue = get_review_queue(cards, as_of=NOW)

    assert [card.problem_id for card in queue] == ["two-days-ago", "yesterday", "now"]
    assert get_daily_review_count(queue) == 3


def test_review_queue_empty():
    assert get_review_queue([], as_of=NOW) == []
    assert get_review_queue([make_card("p1", due_in_days=3)], as_of=NOW) == []


# --- Card stats ---


def test_card_stats_overdue():
    stats = get_card_stats(make_card("p1", due_in_days=-2), now=NOW)
    assert stats.is_overdue is True
    assert stats.days_overdue == 2
    assert stats.next_review_in == 0


def test_card_stats_due_later():
    stats = get_card_stats(make_card("p1", due_in_days=3), now=NOW)
    assert stats.is_overdue is False
    assert stats.days_overdue == 0
    assert stats.next_review_in == 3


def test_card_stats_due_now_is_not_overdue():
    stats = get_card_stats(make_card("p1", due_in_days=0), now=NOW)
    assert stats.is_overdue is False
    assert stats.next_review_in == 0


@pytest.mark.parametrize(
    "repetitions, interval, level",
    [(0, 1, "learning"), (3, 10, "young"), (4, 30, "mature"), (6, 100, "mastered")],
)
def test_card_stats_mastery_level(repetitions, interval, level):
    card = make_card("p1", repetitions=repetitions, interval=interval)
    assert get_card_stats(card, now=NOW).mastery_level == level


@pytest.mark.parametrize(
    "correct, incorrect, trend",
    [(3, 0, "improving"), (0, 2, "declining"), (1, 0, "stable"), (0, 0, "stable")],
)
def test_card_stats_trend(correct, incorrect, trend):
    card = make_card("p1", consecutive_correct=correct, consecutive_incorrect=incorrect)
    assert get_card_stats(card, now=NOW).performance_trend == trend


# --- Review distribution ---


def test_review_distribution_counts_per_day():
    cards = [
        make_card("overdue", due_in_days=-3),
        make_card("tonight", due_in_days=0.25),
        make_card("tomorrow", due_in_days=1),
        make_card("far", due_in_days=10),
    ]
    distribution = get_review_distribution(cards, days_ahead=7, now=NOW)

    assert len(distribution) == 7
    assert min(distribution) == date(2026, 3, 2)
    assert max(distribution) == date(2026, 3, 8)
    assert distribution[date(2026, 3, 2)] == 2
    assert distribution[date(2026, 3, 3)] == 1
    assert sum(distribution.values()) == 3


def test_review_distribution_zero_days():
    assert get_review_distribution([make_card("p1")], days_ahead=0, now=NOW) == {}


def test_review_distribution_rejects_negative_days():
    with pytest.raises(ValueError):
        get_review_distribution([], days_ahead=-1, now=NOW)
