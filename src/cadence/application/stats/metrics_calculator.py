"""
Metrics calculator for summarizing prioritized review lists.

This is a pure computation module with no I/O.
"""

import math
from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from cadence.application.config import DEFAULT_CONFIG, SchedulerConfig
from cadence.application.priority import is_weak
from cadence.application.scheduler import get_card_stats, utcnow
from cadence.domain.models import PrioritizedReview, ReviewStats


def get_review_stats(
    reviews: Iterable[PrioritizedReview],
    config: SchedulerConfig = DEFAULT_CONFIG,
    now: datetime | None = None,
) -> ReviewStats:
    """
    Summarize a review list for dashboards.

    Overdue means at least one whole day past due. Weak means the correct
    streak is below ``weak_accuracy_threshold`` of a strong streak.
    Estimated time is the summed seconds rounded up to whole minutes.
    """
    now = now or utcnow()
    reviews = list(reviews)

    by_unit = Counter(review.unit for review in reviews)
    by_topic = Counter(review.topic for review in reviews)
    calculator_needed = sum(1 for review in reviews if review.calculator_required)
    total_seconds = sum(review.estimated_time_seconds for review in reviews)

    return ReviewStats(
        total=len(reviews),
        overdue=sum(1 for review in reviews if get_card_stats(review.card, now).is_overdue),
        weak=sum(1 for review in reviews if is_weak(review.card, config)),
        by_unit=dict(by_unit),
        by_topic=dict(by_topic),
        estimated_time_minutes=math.ceil(total_seconds / 60),
        calculator_needed=calculator_needed,
        no_calculator=len(reviews) - calculator_needed,
    )
