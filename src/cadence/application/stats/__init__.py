# Application Stats Package
from .distribution import attach_schedule, distribute_reviews
from .metrics_calculator import get_review_stats

__all__ = ["attach_schedule", "distribute_reviews", "get_review_stats"]
