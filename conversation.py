"""
Conversation store
Private per-participant logs plus one shared log, numbered by a single global counter
"""

from typing import Dict, List

import structlog

from schemas import Message, Participant, SpeakerRole

logger = structlog.get_logger(__name__)


class ConversationStore:
    """
    Append-only dialogue history for one session.

    Every message lands in its participant's private log. Messages marked
    shared also land in the shared log, which every persona sees. Sequence
    numbers come from one counter, so merging logs by sequence is chronological.
    """

    def __init__(self, participants: tuple = tuple(Participant)):
        self._participants = participants
        self._private: Dict[Participant, List[Message]] = {p: [] for p in participants}
        self._shared: List[Message] = []
        self._sequence = 0

    def append(
        self,
        participant: Participant,
        speaker_role: SpeakerRole,
        text: str,
        shared: bool = True,
    ) -> Message:
        """Number a new message and write it to the private (and shared) log."""
        self._sequence += 1
        message = Message(
            speaker_role=speaker_role,
            participant=participant,
            text=text,
            sequence=self._sequence,
            shared=shared,
        )
        self._private[participant].append(message)
        if shared:
            self._shared.append(message)
        logger.debug(
            "message_appended",
            participant=participant.value,
            role=speaker_role.value,
            sequence=message.sequence,
            shared=shared,
        )
        return message

    def history(self, participant: Participant) -> List[Message]:
        return list(self._private[participant])

    def shared_history(self) -> List[Message]:
        return list(self._shared)

    def last_sequence(self) -> int:
        return self._sequence

    def reset(self) -> None:
        self._private = {p: [] for p in self._participants}
        self._shared = []
        self._sequence = 0
