"""
Review Service: Application layer orchestrator.

Coordinates loading cards from the repository, running the pure scheduler
functions, and saving transitions back with a concurrency check.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone

from cadence.application.config import DEFAULT_CONFIG, SchedulerConfig
from cadence.application.priority import enrich_reviews, prioritize_reviews
from cadence.application.queue_builder import QueueBuildResult, plan_daily_queue
from cadence.application.scheduler import (
    get_review_queue,
    initialize_card,
    update_progress,
    utcnow,
)
from cadence.application.stats import attach_schedule, distribute_reviews, get_review_stats
from cadence.domain.constants import DEFAULT_EXPECTED_TIME_SECONDS, DEFAULT_PLANNING_DAYS
from cadence.domain.models import (
    DistributionReport,
    PrioritizedReview,
    Problem,
    ReviewResult,
    ReviewStats,
    SessionRecord,
)
from cadence.domain.ports import CardRepository

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Application service for one learner's review schedule.

    Depends on the CardRepository abstraction, not a concrete adapter.
    """

    def __init__(
        self,
        repo: CardRepository,
        catalog: Sequence[Problem],
        config: SchedulerConfig | None = None,
    ):
        """
        Args:
            repo: The repository (port) holding the learner's cards.
            catalog: Problem catalog with static metadata.
            config: Scheduler constants; defaults if not provided.
        """
        self._repo = repo
        self._catalog = list(catalog)
        self._problems = {problem.id: problem for problem in self._catalog}
        self._config = config or DEFAULT_CONFIG

    def daily_queue(
        self, target_size: int | None = None, now: datetime | None = None
    ) -> QueueBuildResult:
        """Build today's queue from the latest stored cards."""
        progress = self._repo.load_progress()
        return plan_daily_queue(self._catalog, progress, target_size, self._config, now)

    def due_reviews(self, now: datetime | None = None) -> list[PrioritizedReview]:
        """All due catalog reviews, scored and sorted by priority."""
        now = now or utcnow()
        due = get_review_queue(self._repo.load_progress().cards, as_of=now)
        return prioritize_reviews(enrich_reviews(due, self._catalog), self._config, now=now)

    def record_answer(
        self,
        problem_id: str,
        correct: bool,
        time_spent: float,
        hints_used: int = 0,
        now: datetime | None = None,
    ) -> ReviewResult:
        """
        Apply an answer to the latest stored card and save it.

        Unknown cards are initialized first. Raises StaleCardError if the
        card changed between load and save; callers should retry. The
        answer is also added to the session for the UTC day of ``now``.
        """
        now = now or utcnow()
        card = self._repo.get_card(problem_id)
        expected_last_reviewed = card.last_reviewed if card else None
        if card is None:
            card = initialize_card(problem_id, now=now)

        problem = self._problems.get(problem_id)
        expected_time = DEFAULT_EXPECTED_TIME_SECONDS
        if problem and problem.estimated_time_seconds > 0:
            expected_time = problem.estimated_time_seconds

        result = update_progress(card, correct, time_spent, expected_time, hints_used, now=now)

        self._repo.save_card(result.card, expected_last_reviewed)
        self._record_session(problem_id, time_spent, now)
        logger.info(
            f"Recorded {'correct' if correct else 'incorrect'} answer for {problem_id}: "
            f"quality {result.card.quality}, next review in {result.card.interval} day(s)"
        )
        return result

    def today_session(self, now: datetime | None = None) -> SessionRecord | None:
        """The session recorded for the UTC day of ``now``, if any."""
        today = (now or utcnow()).astimezone(timezone.utc).date()
        sessions = self._repo.load_progress().sessions
        return next((s for s in sessions if s.date == today), None)

    def _record_session(self, problem_id: str, time_spent: float, now: datetime) -> None:
        session = self.today_session(now)
        if session is None:
            session = SessionRecord(date=now.astimezone(timezone.utc).date())

        problem_ids = list(session.problem_ids)
        if problem_id not in problem_ids:
            problem_ids.append(problem_id)
        session = replace(
            session,
            problem_ids=problem_ids,
            time_seconds=session.time_seconds + max(0, round(time_spent)),
        )
        self._repo.save_session(session)
        logger.debug(f"Session {session.date}: {len(problem_ids)} problem(s)")

    def plan(
        self, days: int = DEFAULT_PLANNING_DAYS, now: datetime | None = None
    ) -> DistributionReport:
        """Project the learner's review load over the next ``days`` days."""
        cards = self._repo.load_progress().cards
        catalog = attach_schedule(self._catalog, cards)
        return distribute_reviews(catalog, days, self._config, now=now)

    def stats(self, now: datetime | None = None) -> ReviewStats:
        """Summary of everything currently due."""
        now = now or utcnow()
        return get_review_stats(self.due_reviews(now), self._config, now=now)
