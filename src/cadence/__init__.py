"""cadence: SM-2 spaced-repetition scheduling for adaptive practice."""

from cadence.application.config import PriorityWeights, SchedulerConfig
from cadence.application.priority import (
    calculate_optimal_review_count,
    enrich_reviews,
    prioritize_reviews,
)
from cadence.application.queue_builder import (
    QueueBuildResult,
    balance_calculator_mix,
    build_daily_queue,
    plan_daily_queue,
)
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
from cadence.application.stats import attach_schedule, distribute_reviews, get_review_stats
from cadence.consts import VERSION
from cadence.domain.models import (
    DistributionReport,
    PrioritizedReview,
    Problem,
    ReviewCard,
    ReviewResult,
    ReviewStats,
    SessionRecord,
    UserProgress,
)

__version__ = VERSION

__all__ = [
    "DistributionReport",
    "PrioritizedReview",
    "PriorityWeights",
    "Problem",
    "QueueBuildResult",
    "ReviewCard",
    "ReviewResult",
    "ReviewStats",
    "SchedulerConfig",
    "SessionRecord",
    "UserProgress",
    "attach_schedule",
    "balance_calculator_mix",
    "build_daily_queue",
    "bulk_update_cards",
    "calculate_next_review",
    "calculate_optimal_review_count",
    "calculate_quality",
    "distribute_reviews",
    "enrich_reviews",
    "get_card_stats",
    "get_daily_review_count",
    "get_review_distribution",
    "get_review_queue",
    "get_review_stats",
    "initialize_card",
    "plan_daily_queue",
    "prioritize_reviews",
    "update_progress",
]
