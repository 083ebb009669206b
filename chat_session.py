"""
Chat session orchestration
One exchange per participant at a time: append, build context, call the model off-loop, append reply
"""

import asyncio
from enum import Enum
from typing import Dict, Optional

import structlog

from agents import ModelClient, TransientModelFailure
from config import ModelSettings
from context_builder import ContextBuilder
from conversation import ConversationStore
from schemas import ChatTurn, Message, ModelContext, Participant, SpeakerRole

logger = structlog.get_logger(__name__)


class TurnState(str, Enum):
    IDLE = "IDLE"
    AWAITING_RESPONSE = "AWAITING_RESPONSE"


class SessionEpoch:
    """Counter bumped on every session reset; completions from older epochs are dropped."""

    def __init__(self):
        self._value = 0

    def current(self) -> int:
        return self._value

    def bump(self) -> int:
        self._value += 1
        return self._value


class ChatSession:
    """
    Runs chat exchanges for all participants.

    All store writes happen on the event loop. The blocking model call runs in a
    worker thread and only returns text. While a participant is awaiting a
    response, further requests for that participant are rejected, not queued.
    """

    def __init__(
        self,
        store: ConversationStore,
        context_builder: ContextBuilder,
        model: ModelClient,
        epoch: SessionEpoch,
        chat_settings: Optional[ModelSettings] = None,
        flashback_settings: Optional[ModelSettings] = None,
    ):
        self.store = store
        self.context_builder = context_builder
        self.model = model
        self.epoch = epoch
        self.chat_settings = chat_settings
        self.flashback_settings = flashback_settings
        self._pending: Dict[Participant, object] = {}

    def state(self, participant: Participant) -> TurnState:
        if participant in self._pending:
            return TurnState.AWAITING_RESPONSE
        return TurnState.IDLE

    def is_awaiting(self, participant: Participant) -> bool:
        return participant in self._pending

    async def send(self, participant: Participant, utterance: str) -> Optional[Message]:
        """
        Send the player's utterance and return the participant's reply.

        Returns None when the utterance is blank, the participant is already
        awaiting a reply, or the session was reset mid-call. Raises
        TransientModelFailure if the model call fails; the user message stays.
        """
        text = (utterance or "").strip()
        if not text:
            logger.debug("utterance_rejected", participant=participant.value, reason="empty")
            return None
        if self.is_awaiting(participant):
            logger.info("utterance_rejected", participant=participant.value, reason="awaiting_response")
            return None

        user_message = self.store.append(participant, SpeakerRole.USER, text)
        context = self.context_builder.build(participant, user_message)
        return await self._dispatch(participant, context, self.chat_settings)

    async def instruct(
        self, participant: Participant, instruction: str, role: str = "system"
    ) -> Optional[Message]:
        """Ask for a reply to a one-off instruction that is not itself recorded."""
        if self.is_awaiting(participant):
            logger.info("instruction_rejected", participant=participant.value, reason="awaiting_response")
            return None
        context = self.context_builder.build(participant, ChatTurn(role=role, content=instruction))
        return await self._dispatch(participant, context, self.chat_settings)

    async def narrate_flashback(self, participant: Participant) -> Optional[Message]:
        """Generate the participant's flashback narration into its private log only."""
        if self.is_awaiting(participant):
            return None
        persona = self.context_builder.personas[participant]
        context = ModelContext(
            system_prompt=persona.base_prompt,
            turns=[ChatTurn(role="user", content=persona.flashback_prompt)],
        )
        return await self._dispatch(participant, context, self.flashback_settings, shared=False)

    def reset(self) -> None:
        """Forget in-flight requests. Their completions are dropped by the epoch check."""
        self._pending.clear()

    async def _dispatch(
        self,
        participant: Participant,
        context: ModelContext,
        settings: Optional[ModelSettings],
        shared: bool = True,
    ) -> Optional[Message]:
        token = object()
        self._pending[participant] = token
        dispatch_epoch = self.epoch.current()

        try:
            reply = await asyncio.to_thread(
                self.model.complete, context.system_prompt, list(context.turns), settings
            )
        except TransientModelFailure:
            if self.epoch.current() != dispatch_epoch:
                return None
            logger.warning("chat_exchange_failed", participant=participant.value)
            raise
        finally:
            if self._pending.get(participant) is token:
                del self._pending[participant]

        if self.epoch.current() != dispatch_epoch:
            logger.debug("stale_completion_discarded", participant=participant.value)
            return None

        return self.store.append(participant, SpeakerRole.PARTICIPANT, reply, shared=shared)
