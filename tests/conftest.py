"""
Pytest configuration and shared fixtures for the AI Ethics Trial tests.

- Async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Model calls go to ScriptedModelClient, never to a real provider
- Time is driven by ManualClock.advance()
"""

import threading
from typing import List, Optional

import pytest

from agents import ModelClient, TransientModelFailure
from chat_session import ChatSession, SessionEpoch
from clock import ManualClock
from config import GameConfig, ModelSettings
from context_builder import ContextBuilder
from conversation import ConversationStore
from game_engine import CourtroomGame
from interactions import ParticipantStates
from personas import build_personas
from schemas import ChatTurn


class ScriptedModelClient(ModelClient):
    """Returns queued replies in order and records every request."""

    def __init__(self, replies: Optional[List[object]] = None, default: str = "Understood."):
        super().__init__()
        self.replies = list(replies or [])
        self.default = default
        self.calls: List[dict] = []

    def queue(self, *replies: object) -> None:
        self.replies.extend(replies)

    def complete(
        self,
        system_prompt: str,
        messages: List[ChatTurn],
        settings: Optional[ModelSettings] = None,
    ) -> str:
        self.calls.append({"system": system_prompt, "messages": list(messages), "settings": settings})
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def last_call(self) -> dict:
        return self.calls[-1]


class GatedModelClient(ScriptedModelClient):
    """Blocks inside complete() until released, so tests can act mid-call."""

    def __init__(self, replies: Optional[List[object]] = None):
        super().__init__(replies)
        self.entered = threading.Event()
        self.release = threading.Event()

    def complete(self, system_prompt, messages, settings=None) -> str:
        self.entered.set()
        if not self.release.wait(timeout=5):
            raise TransientModelFailure("gate never released")
        return super().complete(system_prompt, messages, settings)


@pytest.fixture
def clock() -> ManualClock:
    """Provide a manually advanced clock."""
    return ManualClock()


@pytest.fixture
def model() -> ScriptedModelClient:
    """Provide a scripted model client."""
    return ScriptedModelClient()


@pytest.fixture
def store() -> ConversationStore:
    """Provide an empty conversation store."""
    return ConversationStore()


@pytest.fixture
def states() -> ParticipantStates:
    """Provide fresh participant flags."""
    return ParticipantStates()


@pytest.fixture
def context_builder(store: ConversationStore, states: ParticipantStates) -> ContextBuilder:
    """Provide a context builder with the default six-message window."""
    return ContextBuilder(store, build_personas(states), max_history_messages=6)


@pytest.fixture
def epoch() -> SessionEpoch:
    return SessionEpoch()


@pytest.fixture
def session(
    store: ConversationStore,
    context_builder: ContextBuilder,
    model: ScriptedModelClient,
    epoch: SessionEpoch,
) -> ChatSession:
    """Provide a chat session over the scripted model."""
    return ChatSession(store, context_builder, model, epoch)


@pytest.fixture
def config() -> GameConfig:
    """Short durations keep timer-driven game tests fast."""
    return GameConfig(round_seconds=10, verdict_seconds=5)


@pytest.fixture
def game(config: GameConfig, model: ScriptedModelClient, clock: ManualClock) -> CourtroomGame:
    """Provide a game wired to the scripted model and manual clock."""
    return CourtroomGame(config=config, model=model, clock=clock)
