# Domain Package
from .errors import CadenceError, CatalogError, StaleCardError
from .models import (
    CardStats,
    DailySchedule,
    DifficultySplit,
    DistributionReport,
    PrioritizedReview,
    Problem,
    ReviewCard,
    ReviewResult,
    ReviewStats,
    SessionRecord,
    UserProgress,
)
from .ports import CardRepository

__all__ = [
    "CadenceError",
    "CardRepository",
    "CardStats",
    "CatalogError",
    "DailySchedule",
    "DifficultySplit",
    "DistributionReport",
    "PrioritizedReview",
    "Problem",
    "ReviewCard",
    "ReviewResult",
    "ReviewStats",
    "SessionRecord",
    "StaleCardError",
    "UserProgress",
]
