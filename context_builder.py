"""
Context window assembly
Turns the private and shared logs into the ordered prompt for one model call
"""

from typing import Dict, List, Optional, Sequence, Union

import structlog

from config import MAX_HISTORY_MESSAGES
from conversation import ConversationStore
from personas import PersonaDescriptor
from schemas import ChatTurn, Message, ModelContext, Participant, SpeakerRole

logger = structlog.get_logger(__name__)

ASSISTANT_ROLE = "assistant"
USER_ROLE = "user"


def map_role(message: Message) -> str:
    """Only a participant's own lines are assistant turns; everything else is user."""
    if message.speaker_role == SpeakerRole.PARTICIPANT:
        return ASSISTANT_ROLE
    return USER_ROLE


def _tail(messages: Sequence[Message], limit: int) -> List[Message]:
    if limit <= 0:
        return []
    return list(messages[-limit:])


class ContextBuilder:
    """
    Builds the bounded context window for a participant's next turn.

    Order: system prompt, last N private messages, last N shared messages not
    already present (by text) in the private slice, then the new message.
    """

    def __init__(
        self,
        store: ConversationStore,
        personas: Dict[Participant, PersonaDescriptor],
        max_history_messages: int = MAX_HISTORY_MESSAGES,
    ):
        self.store = store
        self.personas = personas
        self.max_history_messages = max_history_messages

    def build(
        self,
        participant: Participant,
        new_message: Optional[Union[Message, ChatTurn]] = None,
    ) -> ModelContext:
        pending_sequence = new_message.sequence if isinstance(new_message, Message) else None

        private = _tail(
            [m for m in self.store.history(participant) if m.sequence != pending_sequence],
            self.max_history_messages,
        )
        shared = _tail(
            [m for m in self.store.shared_history() if m.sequence != pending_sequence],
            self.max_history_messages,
        )

        # the pending message counts as already seen
        private_texts = {m.text for m in private}
        if isinstance(new_message, Message):
            private_texts.add(new_message.text)
        shared_remaining = [m for m in shared if m.text not in private_texts]

        turns = [ChatTurn(role=map_role(m), content=m.text) for m in private]
        turns.extend(ChatTurn(role=map_role(m), content=m.text) for m in shared_remaining)

        if isinstance(new_message, Message):
            turns.append(ChatTurn(role=map_role(new_message), content=new_message.text))
        elif new_message is not None:
            turns.append(new_message)

        context = ModelContext(
            system_prompt=self.personas[participant].system_prompt(),
            turns=turns,
        )
        logger.debug(
            "context_built",
            participant=participant.value,
            private=len(private),
            shared=len(shared_remaining),
            deduplicated=len(shared) - len(shared_remaining),
            prompt_chars=len(context.system_prompt),
        )
        return context
