"""
Ports (interfaces) for card storage.

The scheduling core never persists anything; hosts provide an
implementation of this contract and own transactions.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import ReviewCard, SessionRecord, UserProgress


class CardRepository(ABC):
    """
    Port for loading and saving review cards.

    Implementations:
        - JsonCardRepository: Stores progress in a local JSON file.
    """

    @abstractmethod
    def load_progress(self) -> UserProgress:
        """Return the full card and session snapshot."""
        pass

    @abstractmethod
    def get_card(self, problem_id: str) -> ReviewCard | None:
        """Return the latest stored card for a problem, or None."""
        pass

    @abstractmethod
    def save_card(self, card: ReviewCard, expected_last_reviewed: datetime | None) -> None:
        """
        Persist a card produced by a transition.

        Args:
            card: The new card value.
            expected_last_reviewed: ``last_reviewed`` of the card the
                transition was computed from. Implementations must raise
                StaleCardError when the stored card no longer matches.
        """
        pass

    @abstractmethod
    def save_session(self, session: SessionRecord) -> None:
        """Insert or replace the session recorded for ``session.date``."""
        pass
