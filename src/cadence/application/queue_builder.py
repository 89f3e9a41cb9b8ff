"""
Queue builder for daily review sessions.

Builds today's ordered review queue by:
1. Selecting due cards that exist in the problem catalog
2. Sizing the session from the backlog (load balancer)
3. Scoring and sorting by priority
4. Greedily interleaving to avoid long same-topic / same-unit runs
5. Nudging the calculator / non-calculator mix toward the configured ratio
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from cadence.application.config import DEFAULT_CONFIG, SchedulerConfig
from cadence.application.priority import (
    calculate_optimal_review_count,
    enrich_reviews,
    prioritize_reviews,
    priority_order,
)
from cadence.application.scheduler import get_review_queue, utcnow
from cadence.domain.models import PrioritizedReview, Problem, UserProgress

logger = logging.getLogger(__name__)


@dataclass
class QueueBuildResult:
    """Result of a queue building operation."""

    queue: list[PrioritizedReview]  # Ordered reviews to present today
    due_count: int  # Due cards known to the catalog
    target_size: int  # Effective size after load balancing
    skipped: list[str] = field(default_factory=list)  # Due but not selected
    calculator_swaps: int = 0  # Substitutions made to approach the ratio

    @property
    def problem_ids(self) -> list[str]:
        return [review.problem_id for review in self.queue]


def build_daily_queue(
    catalog: Sequence[Problem],
    progress: UserProgress,
    target_size: int | None = None,
    config: SchedulerConfig = DEFAULT_CONFIG,
    now: datetime | None = None,
) -> list[str]:
    """
    Build today's review queue.

    Args:
        catalog: Problem catalog with static metadata.
        progress: The user's cards and session history.
        target_size: Requested queue size (default: configured daily target).
        config: Scheduler constants.
        now: Reference instant for due-ness (default: current UTC time).

    Returns:
        Ordered problem IDs, each at most once, no longer than
        min(target_size, number of due catalog problems).
    """
    return plan_daily_queue(catalog, progress, target_size, config, now).problem_ids


def plan_daily_queue(
    catalog: Sequence[Problem],
    progress: UserProgress,
    target_size: int | None = None,
    config: SchedulerConfig = DEFAULT_CONFIG,
    now: datetime | None = None,
) -> QueueBuildResult:
    """
    Same as build_daily_queue, but returns the scored reviews and diagnostics.
    """
    if target_size is None:
        target_size = config.target_daily_reviews
    if target_size < 0:
        raise ValueError(f"target_size must be >= 0, got {target_size}")

    now = now or utcnow()

    due_cards = get_review_queue(progress.cards, as_of=now)
    enriched = enrich_reviews(due_cards, catalog)
    if not enriched:
        return QueueBuildResult(queue=[], due_count=0, target_size=0)

    balanced = calculate_optimal_review_count(progress, len(enriched), config)
    size = min(target_size, balanced, len(enriched))
    logger.debug(
        f"Due: {len(enriched)}, requested: {target_size}, balanced: {balanced}, size: {size}"
    )

    prioritized = prioritize_reviews(enriched, config, now=now)
    selected = apply_interleaving(prioritized, size, config)

    selected_ids = {review.problem_id for review in selected}
    leftover = [review for review in prioritized if review.problem_id not in selected_ids]
    selected, swaps = adjust_calculator_mix(selected, leftover, config)

    queue = order_selection(selected, config)

    chosen = {review.problem_id for review in queue}
    return QueueBuildResult(
        queue=queue,
        due_count=len(enriched),
        target_size=size,
        skipped=[review.problem_id for review in prioritized if review.problem_id not in chosen],
        calculator_swaps=swaps,
    )


def apply_interleaving(
    reviews: Sequence[PrioritizedReview],
    target_count: int,
    config: SchedulerConfig = DEFAULT_CONFIG,
    calculator_ratio: float | None = None,
) -> list[PrioritizedReview]:
    """
    Greedily pick up to ``target_count`` reviews in priority order while
    keeping same-topic and same-unit runs within the configured limits.

    When the best remaining review would extend a run past its limit, the
    highest-priority review that does not is taken instead. If none
    qualifies, the run limit is exceeded rather than dropping reviews.

    With ``calculator_ratio`` set, a compliant review whose calculator flag
    moves the running mix toward the ratio is preferred over the best
    compliant review, as long as its priority is within
    ``calculator_swap_tolerance`` of it.
    """
    result: list[PrioritizedReview] = []
    remaining = list(reviews)

    last_topic: str | None = None
    last_unit: str | None = None
    topic_run = 0
    unit_run = 0
    calculator_taken = 0

    while len(result) < target_count and remaining:
        topic_full = topic_run >= config.max_consecutive_same_topic
        unit_full = unit_run >= config.max_consecutive_same_unit
        compliant = [
            i
            for i, candidate in enumerate(remaining)
            if not (topic_full and candidate.topic == last_topic)
            and not (unit_full and candidate.unit == last_unit)
        ]

        if not compliant:
            logger.debug(f"No review breaks the run of topic '{last_topic}'; allowing a repeat")
            index = 0
        else:
            index = compliant[0]
            if calculator_ratio is not None:
                quota = _calculator_quota(calculator_ratio, len(result) + 1)
                want_calculator = calculator_taken < quota
                floor = remaining[index].priority * config.calculator_swap_tolerance
                for i in compliant:
                    if remaining[i].priority < floor:
                        break
                    if remaining[i].calculator_required == want_calculator:
                        index = i
                        break

        selected = remaining.pop(index)
        result.append(selected)
        if selected.calculator_required:
            calculator_taken += 1

        if selected.topic == last_topic:
            topic_run += 1
        else:
            topic_run = 1
            last_topic = selected.topic

        if selected.unit == last_unit:
            unit_run += 1
        else:
            unit_run = 1
            last_unit = selected.unit

    return result


def adjust_calculator_mix(
    selected: Sequence[PrioritizedReview],
    leftover: Sequence[PrioritizedReview],
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> tuple[list[PrioritizedReview], int]:
    """
    Swap selected reviews for unselected ones to approach the calculator ratio.

    Low-priority reviews of the over-represented kind are replaced by
    high-priority leftover reviews of the under-represented kind, but only
    while the replacement's priority is within the swap tolerance and the
    swap does not add run-limit violations to the interleaved selection.
    The selection size never changes.

    Returns:
        The adjusted selection (priority order) and the number of swaps.
    """
    chosen = sorted(selected, key=priority_order)
    pool = sorted(leftover, key=priority_order)
    target_calculator = _calculator_quota(config.calculator_ratio, len(chosen))
    allowed_violations = _interleaved_violations(chosen, config)
    swaps = 0

    while True:
        calculator_count = sum(1 for r in chosen if r.calculator_required)
        if calculator_count == target_calculator:
            break
        need_calculator = calculator_count < target_calculator

        swap = _find_swap(chosen, pool, need_calculator, allowed_violations, config)
        if swap is None:
            break
        outgoing, incoming = swap

        chosen.remove(outgoing)
        pool.remove(incoming)
        pool.append(outgoing)
        chosen.append(incoming)
        chosen.sort(key=priority_order)
        pool.sort(key=priority_order)
        swaps += 1

    if swaps:
        logger.debug(
            f"Swapped {swaps} review(s) to approach calculator ratio {config.calculator_ratio}"
        )

    return chosen, swaps


def _find_swap(
    chosen: list[PrioritizedReview],
    pool: list[PrioritizedReview],
    need_calculator: bool,
    allowed_violations: int,
    config: SchedulerConfig,
) -> tuple[PrioritizedReview, PrioritizedReview] | None:
    """
    First (outgoing, incoming) pair, cheapest outgoing first, that keeps the
    priority tolerance and the run-limit violation count. None if no pair does.
    """
    outgoing_candidates = [r for r in reversed(chosen) if r.calculator_required != need_calculator]
    incoming_candidates = [r for r in pool if r.calculator_required == need_calculator]

    for outgoing in outgoing_candidates:
        floor = outgoing.priority * config.calculator_swap_tolerance
        rest = [r for r in chosen if r is not outgoing]
        for incoming in incoming_candidates:
            if incoming.priority < floor:
                break
            if _interleaved_violations(rest + [incoming], config) <= allowed_violations:
                return outgoing, incoming

    return None


def _interleaved_violations(
    reviews: Sequence[PrioritizedReview], config: SchedulerConfig
) -> int:
    ordered = apply_interleaving(sorted(reviews, key=priority_order), len(reviews), config)
    return count_run_violations(ordered, config)


def order_selection(
    selected: Sequence[PrioritizedReview], config: SchedulerConfig = DEFAULT_CONFIG
) -> list[PrioritizedReview]:
    """
    Order a fixed selection: interleaved, with calculator reviews spread out.

    Falls back to plain interleaving when spreading calculator reviews would
    create more run-limit violations.
    """
    by_priority = sorted(selected, key=priority_order)
    plain = apply_interleaving(by_priority, len(by_priority), config)
    mixed = apply_interleaving(
        by_priority, len(by_priority), config, calculator_ratio=config.calculator_ratio
    )
    if count_run_violations(mixed, config) > count_run_violations(plain, config):
        return plain
    return mixed


def balance_calculator_mix(
    reviews: Sequence[PrioritizedReview], ratio: float = DEFAULT_CONFIG.calculator_ratio
) -> list[PrioritizedReview]:
    """
    Spread calculator-required reviews through the list at ``ratio``.

    Returns a permutation of the input: every review is kept and relative
    order within each group is preserved. Once one group runs out the
    other fills the remaining slots.
    """
    if not 0 <= ratio <= 1:
        raise ValueError(f"ratio must be within [0, 1], got {ratio}")

    calculator = [r for r in reviews if r.calculator_required]
    plain = [r for r in reviews if not r.calculator_required]
    result: list[PrioritizedReview] = []
    ci = pi = 0

    for position in range(1, len(reviews) + 1):
        want_calculator = ci < _calculator_quota(ratio, position)
        if ci < len(calculator) and (want_calculator or pi >= len(plain)):
            result.append(calculator[ci])
            ci += 1
        else:
            result.append(plain[pi])
            pi += 1

    return result


def count_run_violations(
    queue: Sequence[PrioritizedReview], config: SchedulerConfig = DEFAULT_CONFIG
) -> int:
    """Number of positions that extend a topic or unit run past its limit."""
    violations = 0
    topic_run = unit_run = 0

    for i, review in enumerate(queue):
        previous = queue[i - 1] if i else None
        topic_run = topic_run + 1 if previous and previous.topic == review.topic else 1
        unit_run = unit_run + 1 if previous and previous.unit == review.unit else 1
        if (
            topic_run > config.max_consecutive_same_topic
            or unit_run > config.max_consecutive_same_unit
        ):
            violations += 1

    return violations


def _calculator_quota(ratio: float, count: int) -> int:
    """Calculator reviews expected among the first ``count`` items (half-up rounding)."""
    return math.floor(ratio * count + 0.5)
