"""
Domain models for the review scheduler.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

MasteryLevel = Literal["learning", "young", "mature", "mastered"]
PerformanceTrend = Literal["improving", "stable", "declining"]


@dataclass(frozen=True)
class ReviewCard:
    """
    SM-2 memory state for one (user, problem) pair.

    Attributes:
        problem_id: Opaque problem identifier.
        ease_factor: Interval growth multiplier (never below the minimum).
        interval: Current interval in days (>= 1).
        repetitions: Successful reviews since the last failure.
        next_review: Absolute instant the card becomes due.
        last_reviewed: Instant of the most recent review, if any.
        quality: Last 0-5 quality rating, if any.
    """

    problem_id: str
    ease_factor: float
    interval: int
    repetitions: int
    next_review: datetime
    last_reviewed: datetime | None = None
    quality: int | None = None
    consecutive_correct: int = 0
    consecutive_incorrect: int = 0


@dataclass(frozen=True)
class Problem:
    """Static catalog metadata for a practice problem."""

    id: str
    unit: str
    topic: str
    calculator_required: bool = False
    estimated_time_seconds: int = 60
    next_review_date: datetime | None = None  # planning only
    success_rate: float | None = None  # 0.0-1.0


@dataclass(frozen=True)
class SessionRecord:
    """A completed (or abandoned) practice session."""

    date: date
    problem_ids: list[str] = field(default_factory=list)
    time_seconds: int = 0
    completed: bool = True


@dataclass
class UserProgress:
    """Per-user snapshot handed to the scheduler by the host."""

    cards: list[ReviewCard] = field(default_factory=list)
    sessions: list[SessionRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ReviewResult:
    """Outcome of recording one answer against a card."""

    card: ReviewCard
    was_correct: bool
    interval_changed: int  # delta in days
    ease_factor_changed: float


@dataclass(frozen=True)
class CardStats:
    """Derived, read-only view of a card relative to an instant."""

    is_overdue: bool
    days_overdue: int
    mastery_level: MasteryLevel
    next_review_in: int  # days
    performance_trend: PerformanceTrend


@dataclass
class PrioritizedReview:
    """
    A due card joined with its problem metadata and a priority score.

    Ephemeral: recomputed on every planning call, never persisted.
    """

    problem_id: str
    card: ReviewCard
    unit: str
    topic: str
    calculator_required: bool
    estimated_time_seconds: int
    priority: float = 0.0
    weakness: float = 0.0
    reasons: list[str] = field(default_factory=list)


@dataclass
class DifficultySplit:
    overdue: int = 0
    weak: int = 0
    normal: int = 0


@dataclass
class DailySchedule:
    """Projected reviews for a single calendar day."""

    date: date
    problem_ids: list[str] = field(default_factory=list)
    unit_distribution: dict[str, int] = field(default_factory=dict)
    topic_distribution: dict[str, int] = field(default_factory=dict)
    estimated_time_minutes: int = 0
    difficulty: DifficultySplit = field(default_factory=DifficultySplit)

    @property
    def total_count(self) -> int:
        return len(self.problem_ids)


@dataclass
class DistributionReport:
    """Read-only projection of review load over the next N days."""

    start_date: date
    end_date: date
    daily_schedules: list[DailySchedule]
    total_reviews: int
    average_per_day: float
    peak_day: date | None
    lightest_day: date | None


@dataclass
class ReviewStats:
    """Summary of a prioritized review list for reporting."""

    total: int = 0
    overdue: int = 0
    weak: int = 0
    by_unit: dict[str, int] = field(default_factory=dict)
    by_topic: dict[str, int] = field(default_factory=dict)
    estimated_time_minutes: int = 0
    calculator_needed: int = 0
    no_calculator: int = 0
