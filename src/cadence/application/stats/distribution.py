"""
Distribution planner: projects review load over the coming days.

Read-only: buckets problems by their scheduled review date and never
touches card state.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

from cadence.application.config import DEFAULT_CONFIG, SchedulerConfig
from cadence.application.scheduler import utcnow
from cadence.domain.constants import DEFAULT_PLANNING_DAYS
from cadence.domain.models import (
    DailySchedule,
    DistributionReport,
    Problem,
    ReviewCard,
)

logger = logging.getLogger(__name__)


def attach_schedule(catalog: Iterable[Problem], cards: Iterable[ReviewCard]) -> list[Problem]:
    """
    Copy each card's next review instant onto its catalog problem.

    Problems without a card keep whatever ``next_review_date`` they had.
    """
    next_reviews = {card.problem_id: card.next_review for card in cards}
    return [
        replace(problem, next_review_date=next_reviews[problem.id])
        if problem.id in next_reviews
        else problem
        for problem in catalog
    ]


def distribute_reviews(
    catalog: Sequence[Problem],
    days: int = DEFAULT_PLANNING_DAYS,
    config: SchedulerConfig = DEFAULT_CONFIG,
    now: datetime | None = None,
) -> DistributionReport:
    """
    Project scheduled reviews over the next ``days`` calendar days (UTC).

    Problems scheduled before today are counted on the first day as overdue;
    problems without a review date or beyond the window are left out.

    Args:
        catalog: Problems carrying ``next_review_date``.
        days: Number of days to project, starting today.
        config: Scheduler constants (weak threshold).
        now: Reference instant (default: current UTC time).

    Returns:
        DistributionReport with one DailySchedule per day. Peak and
        lightest day are the earliest days with the highest / lowest count.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}")

    now = now or utcnow()
    start = now.astimezone(timezone.utc).date()
    window = [start + timedelta(days=i) for i in range(days)]
    schedules = {day: DailySchedule(date=day) for day in window}
    seconds: dict[date, int] = {day: 0 for day in window}

    for problem in catalog:
        if problem.next_review_date is None:
            continue
        scheduled = problem.next_review_date.astimezone(timezone.utc).date()
        day = max(scheduled, start)
        schedule = schedules.get(day)
        if schedule is None:
            continue

        schedule.problem_ids.append(problem.id)
        units, topics = schedule.unit_distribution, schedule.topic_distribution
        units[problem.unit] = units.get(problem.unit, 0) + 1
        topics[problem.topic] = topics.get(problem.topic, 0) + 1
        seconds[day] += problem.estimated_time_seconds

        rate = problem.success_rate
        if rate is not None and rate < config.weak_accuracy_threshold:
            schedule.difficulty.weak += 1
        elif scheduled < start:
            schedule.difficulty.overdue += 1
        else:
            schedule.difficulty.normal += 1

    daily = list(schedules.values())
    for schedule in daily:
        schedule.estimated_time_minutes = math.ceil(seconds[schedule.date] / 60)

    total = sum(schedule.total_count for schedule in daily)
    peak = max(daily, key=lambda s: s.total_count, default=None)
    lightest = min(daily, key=lambda s: s.total_count, default=None)

    logger.debug(f"Projected {total} reviews over {days} day(s) from {start}")

    return DistributionReport(
        start_date=start,
        end_date=start + timedelta(days=max(days - 1, 0)),
        daily_schedules=daily,
        total_reviews=total,
        average_per_day=total / days if days else 0.0,
        peak_day=peak.date if peak else None,
        lightest_day=lightest.date if lightest else None,
    )
