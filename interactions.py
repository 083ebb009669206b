"""
Meaningful-interaction tracking and per-session participant flags
"""

from typing import Dict, Iterable

import structlog

from config import REQUIRED_INTERACTIONS
from schemas import Participant, ParticipantFlags

logger = structlog.get_logger(__name__)


class InteractionTracker:
    """
    Records which participants have had a meaningful interaction.
    The set only grows until reset().
    """

    def __init__(self, required_count: int = REQUIRED_INTERACTIONS):
        self.required_count = required_count
        self._interacted: set[Participant] = set()

    def mark_interacted(self, participant: Participant) -> bool:
        """Returns True the first time a participant is marked."""
        if participant in self._interacted:
            return False
        self._interacted.add(participant)
        logger.info(
            "participant_interacted",
            participant=participant.value,
            count=len(self._interacted),
        )
        return True

    def has_interacted(self, participant: Participant) -> bool:
        return participant in self._interacted

    def all_interacted(self, required_count: int | None = None) -> bool:
        required = self.required_count if required_count is None else required_count
        return len(self._interacted) >= required

    def interacted(self) -> frozenset[Participant]:
        return frozenset(self._interacted)

    def reset(self) -> None:
        self._interacted.clear()


class ParticipantStates:
    """One ParticipantFlags record per participant, reset together."""

    def __init__(self, participants: Iterable[Participant] = tuple(Participant)):
        self._participants = tuple(participants)
        self._flags: Dict[Participant, ParticipantFlags] = {}
        self.reset()

    def get(self, participant: Participant) -> ParticipantFlags:
        return self._flags[participant]

    def reset(self) -> None:
        self._flags = {p: ParticipantFlags(participant=p) for p in self._participants}
