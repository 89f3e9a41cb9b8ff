"""SM-2 (SuperMemo 2) review scheduling.

Converts answer outcomes into 0-5 quality ratings and quality ratings into
new card states. Every function here is pure: cards are frozen and each
transition returns a new value.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

from cadence.domain.constants import (
    DEFAULT_EXPECTED_TIME_SECONDS,
    DEFAULT_PLANNING_DAYS,
    FIRST_INTERVAL,
    INITIAL_EASE_FACTOR,
    MATURE_INTERVAL_LIMIT,
    MAX_QUALITY,
    MIN_QUALITY,
    MINIMUM_EASE_FACTOR,
    NORMAL_TIME_RATIO,
    QUALITY_THRESHOLD,
    SECOND_INTERVAL,
    SECONDS_PER_DAY,
    SLOW_TIME_RATIO,
    TREND_THRESHOLD,
    YOUNG_INTERVAL_LIMIT,
)
from cadence.domain.models import CardStats, ReviewCard, ReviewResult

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def initialize_card(problem_id: str, now: datetime | None = None) -> ReviewCard:
    """
    Create a new review card with default SM-2 parameters.

    The card is first due one interval from ``now``.
    """
    now = now or utcnow()
    return ReviewCard(
        problem_id=problem_id,
        ease_factor=INITIAL_EASE_FACTOR,
        interval=FIRST_INTERVAL,
        repetitions=0,
        next_review=now + timedelta(days=FIRST_INTERVAL),
    )


def calculate_quality(
    correct: bool,
    time_spent: float,
    expected_time: float = DEFAULT_EXPECTED_TIME_SECONDS,
    hints_used: int = 0,
) -> int:
    """
    Convert answer performance to an SM-2 quality rating.

    Args:
        correct: Whether the answer was correct.
        time_spent: Seconds spent on the problem.
        expected_time: Seconds a fluent learner needs.
        hints_used: Number of hints revealed.

    Returns:
        Quality 0-5:
            0 - Incorrect, two or more hints (blackout)
            1 - Incorrect, one hint (heavy assistance)
            2 - Incorrect, no hints (partial recall)
            3 - Correct, slower than 150% of expected time
            4 - Correct, within 100-150% of expected time
            5 - Correct, at or under expected time

    Out-of-range input is clamped rather than rejected: a non-positive
    expected time falls back to the default, negative time counts as
    fast, and a negative hint count rates like heavy hint use.
    """
    if expected_time <= 0:
        expected_time = DEFAULT_EXPECTED_TIME_SECONDS

    if not correct:
        if hints_used == 0:
            return 2
        if hints_used == 1:
            return 1
        return 0

    time_ratio = time_spent / expected_time
    if time_ratio > SLOW_TIME_RATIO:
        return 3
    if time_ratio > NORMAL_TIME_RATIO:
        return 4
    return 5


def calculate_next_review(
    card: ReviewCard, quality: int, now: datetime | None = None
) -> ReviewCard:
    """
    Apply one SM-2 transition.

    EF' = max(MIN_EF, EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)))

    A quality below the pass threshold resets repetitions and the interval;
    otherwise the interval follows 1, 6, then round(I * EF').
    """
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValueError(f"quality must be within [{MIN_QUALITY}, {MAX_QUALITY}], got {quality}")

    now = now or utcnow()
    new_ease = max(
        MINIMUM_EASE_FACTOR,
        card.ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)),
    )

    passed = quality >= QUALITY_THRESHOLD
    if not passed:
        new_interval = FIRST_INTERVAL
        new_repetitions = 0
    else:
        new_repetitions = card.repetitions + 1
        if new_repetitions == 1:
            new_interval = FIRST_INTERVAL
        elif new_repetitions == 2:
            new_interval = SECOND_INTERVAL
        else:
            new_interval = max(FIRST_INTERVAL, round(card.interval * new_ease))

    return replace(
        card,
        ease_factor=new_ease,
        interval=new_interval,
        repetitions=new_repetitions,
        next_review=now + timedelta(days=new_interval),
        last_reviewed=now,
        quality=quality,
        consecutive_correct=card.consecutive_correct + 1 if passed else 0,
        consecutive_incorrect=0 if passed else card.consecutive_incorrect + 1,
    )


def update_progress(
    card: ReviewCard,
    correct: bool,
    time_spent: float,
    expected_time: float = DEFAULT_EXPECTED_TIME_SECONDS,
    hints_used: int = 0,
    now: datetime | None = None,
) -> ReviewResult:
    """
    Record an answer: estimate quality, then apply the SM-2 transition.
    """
    quality = calculate_quality(correct, time_spent, expected_time, hints_used)
    updated = calculate_next_review(card, quality, now=now)

    return ReviewResult(
        card=updated,
        was_correct=correct,
        interval_changed=updated.interval - card.interval,
        ease_factor_changed=updated.ease_factor - card.ease_factor,
    )


def bulk_update_cards(
    cards: Iterable[ReviewCard],
    updates: Mapping[str, int],
    now: datetime | None = None,
) -> list[ReviewCard]:
    """Apply a problem_id -> quality mapping; other cards pass through unchanged."""
    now = now or utcnow()
    return [
        calculate_next_review(card, updates[card.problem_id], now=now)
        if card.problem_id in updates
        else card
        for card in cards
    ]


def get_review_queue(
    cards: Iterable[ReviewCard], as_of: datetime | None = None
) -> list[ReviewCard]:
    """
    Return cards due at or before ``as_of``, most overdue first.
    """
    as_of = as_of or utcnow()
    due = [card for card in cards if card.next_review <= as_of]
    return sorted(due, key=lambda card: card.next_review)


def get_daily_review_count(queue: list[ReviewCard]) -> int:
    return len(queue)


def days_overdue(card: ReviewCard, now: datetime) -> float:
    """Fractional days since the card became due (0.0 if not yet due)."""
    return max(0.0, (now - card.next_review).total_seconds() / SECONDS_PER_DAY)


def get_card_stats(card: ReviewCard, now: datetime | None = None) -> CardStats:
    """
    Summarize a card's due state, mastery level and recent trend.
    """
    now = now or utcnow()
    # Whole days until due, rounded up; negative when overdue
    days_diff = math.ceil((card.next_review - now).total_seconds() / SECONDS_PER_DAY)

    if card.repetitions == 0:
        mastery = "learning"
    elif card.interval < YOUNG_INTERVAL_LIMIT:
        mastery = "young"
    elif card.interval < MATURE_INTERVAL_LIMIT:
        mastery = "mature"
    else:
        mastery = "mastered"

    streak = card.consecutive_correct - card.consecutive_incorrect
    if streak >= TREND_THRESHOLD:
        trend = "improving"
    elif streak <= -TREND_THRESHOLD:
        trend = "declining"
    else:
        trend = "stable"

    return CardStats(
        is_overdue=days_diff < 0,
        days_overdue=abs(min(0, days_diff)),
        mastery_level=mastery,
        next_review_in=max(0, days_diff),
        performance_trend=trend,
    )


def get_review_distribution(
    cards: Iterable[ReviewCard],
    days_ahead: int = DEFAULT_PLANNING_DAYS,
    now: datetime | None = None,
) -> dict[date, int]:
    """
    Count scheduled reviews per calendar day (UTC) for the next N days.

    Cards already overdue are counted on the first day; cards scheduled past
    the window are ignored.
    """
    if days_ahead < 0:
        raise ValueError(f"days_ahead must be >= 0, got {days_ahead}")

    now = now or utcnow()
    start = now.astimezone(timezone.utc).date()
    distribution = {start + timedelta(days=i): 0 for i in range(days_ahead)}
    if not distribution:
        return distribution

    for card in cards:
        day = max(card.next_review.astimezone(timezone.utc).date(), start)
        if day in distribution:
            distribution[day] += 1

    return distribution
