"""
JSON Card Repository: Infrastructure adapter for a local JSON file.

Implements CardRepository with optimistic concurrency on ``last_reviewed``.
Every read-modify-write holds an exclusive lock file next to the data file,
so writers in other processes cannot interleave between load and replace.
Serialization goes through pydantic so every ReviewCard field round-trips
exactly (float ease factor, ISO-8601 timestamps with offset).
"""

import logging
import os
import tempfile
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from filelock import FileLock
from pydantic import TypeAdapter

from cadence.domain.errors import StaleCardError
from cadence.domain.models import ReviewCard, SessionRecord, UserProgress
from cadence.domain.ports import CardRepository

logger = logging.getLogger(__name__)

_progress_adapter = TypeAdapter(UserProgress)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _normalize(card: ReviewCard) -> ReviewCard:
    """Treat naive timestamps written by other tools as UTC."""
    return replace(
        card,
        next_review=_as_utc(card.next_review),
        last_reviewed=_as_utc(card.last_reviewed),
    )


class JsonCardRepository(CardRepository):
    """
    Stores a single user's progress as ``{"cards": [...], "sessions": [...]}``.

    A missing file reads as empty progress.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = FileLock(self.path.with_name(self.path.name + ".lock"))

    def load_progress(self) -> UserProgress:
        if not self.path.exists():
            logger.debug(f"No progress file at {self.path}; starting empty")
            return UserProgress()

        progress = _progress_adapter.validate_json(self.path.read_bytes())
        progress.cards = [_normalize(card) for card in progress.cards]
        return progress

    def get_card(self, problem_id: str) -> ReviewCard | None:
        for card in self.load_progress().cards:
            if card.problem_id == problem_id:
                return card
        return None

    def save_card(self, card: ReviewCard, expected_last_reviewed: datetime | None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            progress = self.load_progress()
            current = next((c for c in progress.cards if c.problem_id == card.problem_id), None)

            stored_last_reviewed = current.last_reviewed if current else None
            if stored_last_reviewed != expected_last_reviewed:
                raise StaleCardError(card.problem_id)

            if current is None:
                progress.cards.append(card)
            else:
                progress.cards = [
                    card if c.problem_id == card.problem_id else c for c in progress.cards
                ]

            self.save_progress(progress)

    def save_session(self, session: SessionRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            progress = self.load_progress()
            others = [s for s in progress.sessions if s.date != session.date]
            progress.sessions = sorted(others + [session], key=lambda s: s.date)
            self.save_progress(progress)

    def save_progress(self, progress: UserProgress) -> None:
        """Write the whole snapshot atomically (temp file + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = _progress_adapter.dump_json(progress, indent=2)

        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".cards-", suffix=".json")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
