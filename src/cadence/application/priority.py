"""
Priority scoring and daily load balancing.

Priority combines how overdue a card is with how weak the learner's
recall of it looks. Load balancing turns backlog size into a review
target for today.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from cadence.application.config import DEFAULT_CONFIG, SchedulerConfig
from cadence.application.scheduler import days_overdue, get_card_stats, utcnow
from cadence.domain.models import PrioritizedReview, Problem, ReviewCard, UserProgress

logger = logging.getLogger(__name__)


def enrich_reviews(
    cards: Iterable[ReviewCard], catalog: Iterable[Problem]
) -> list[PrioritizedReview]:
    """
    Join cards with catalog metadata. Cards without a catalog entry are dropped.
    """
    problems = {problem.id: problem for problem in catalog}
    enriched = []

    for card in cards:
        problem = problems.get(card.problem_id)
        if problem is None:
            continue
        enriched.append(
            PrioritizedReview(
                problem_id=card.problem_id,
                card=card,
                unit=problem.unit,
                topic=problem.topic,
                calculator_required=problem.calculator_required,
                estimated_time_seconds=problem.estimated_time_seconds,
            )
        )

    return enriched


def weakness_score(card: ReviewCard, config: SchedulerConfig = DEFAULT_CONFIG) -> float:
    """
    Weakness in [0, 2]: missing correct streak plus consecutive misses.

    A card with ``strong_streak`` consecutive correct answers scores 0.
    """
    streak = config.strong_streak
    missing_streak = 1 - min(card.consecutive_correct, streak) / streak
    misses = min(card.consecutive_incorrect, streak) / streak
    return missing_streak + misses


def is_weak(card: ReviewCard, config: SchedulerConfig = DEFAULT_CONFIG) -> bool:
    accuracy = card.consecutive_correct / config.strong_streak
    return accuracy < config.weak_accuracy_threshold


def prioritize_reviews(
    queue: Iterable[PrioritizedReview],
    config: SchedulerConfig = DEFAULT_CONFIG,
    now: datetime | None = None,
) -> list[PrioritizedReview]:
    """
    Score due reviews and sort them highest priority first.

    Priority = base + overdue severity + weakness (+ learning bonus), so
    every item is strictly positive. Exact ties fall back to weakness, then
    to the earlier due date.

    Returns new PrioritizedReview objects; the input is not modified.
    """
    now = now or utcnow()
    weights = config.weights
    scored = []

    for review in queue:
        card = review.card
        reasons: list[str] = []
        priority = weights.base

        overdue = days_overdue(card, now)
        if overdue > 0:
            # Saturating but strictly increasing in days overdue
            priority += weights.overdue * overdue / (overdue + weights.overdue_saturation_days)
            whole_days = get_card_stats(card, now).days_overdue
            if whole_days > 0:
                reasons.append(f"{whole_days} day{'s' if whole_days != 1 else ''} overdue")
            else:
                reasons.append("due today")
        else:
            reasons.append("due today")

        weakness = weakness_score(card, config)
        priority += weights.weakness * weakness / 2
        if card.consecutive_incorrect > 0:
            misses = card.consecutive_incorrect
            reasons.append(f"struggling: {misses} consecutive miss{'es' if misses != 1 else ''}")
        elif weakness > 0.5:
            reasons.append("weak recall")

        if card.repetitions == 0:
            priority += weights.learning_bonus
            reasons.append("never reviewed" if card.last_reviewed is None else "relearning")

        scored.append(replace(review, priority=priority, weakness=weakness, reasons=reasons))

    scored.sort(key=priority_order)
    return scored


def priority_order(review: PrioritizedReview) -> tuple:
    """Sort key: highest priority, then weakest, then earliest due."""
    return (-review.priority, -review.weakness, review.card.next_review)


def estimate_capacity(progress: UserProgress, config: SchedulerConfig = DEFAULT_CONFIG) -> int:
    """
    Average problems per completed session over the recent window.

    Returns 0 when there is no usable history.
    """
    recent = [s for s in progress.sessions if s.completed][-config.capacity_window :]
    if not recent:
        return 0
    return sum(len(s.problem_ids) for s in recent) // len(recent)


def calculate_optimal_review_count(
    progress: UserProgress,
    backlog_size: int,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> int:
    """
    Recommend how many reviews to do today.

    - Backlog below the daily minimum: the learner is ahead, use the minimum.
    - Backlog above ``target * behind_multiplier``: the learner is behind,
      raise the count by ``catch_up_multiplier`` (or to demonstrated
      session capacity, if higher).
    - Otherwise: the configured target.

    The result is non-decreasing in backlog size and clamped to
    [min_daily_reviews, max_daily_reviews].
    """
    if backlog_size < 0:
        raise ValueError(f"backlog_size must be >= 0, got {backlog_size}")

    target = config.target_daily_reviews

    if backlog_size < config.min_daily_reviews:
        optimal = config.min_daily_reviews
    elif backlog_size > target * config.behind_multiplier:
        catch_up = math.ceil(target * config.catch_up_multiplier)
        optimal = max(catch_up, estimate_capacity(progress, config))
        logger.debug(f"Backlog of {backlog_size} is behind schedule, raising count to {optimal}")
    else:
        optimal = target

    return max(config.min_daily_reviews, min(config.max_daily_reviews, optimal))
