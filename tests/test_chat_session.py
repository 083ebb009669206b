"""Unit tests for chat exchanges: busy guard, failure handling and stale completions."""

import asyncio

import pytest

from agents import TransientModelFailure
from chat_session import ChatSession, SessionEpoch, TurnState
from config import ModelSettings
from conftest import GatedModelClient, ScriptedModelClient
from context_builder import ContextBuilder
from conversation import ConversationStore
from schemas import Participant, SpeakerRole


class TestSend:
    async def test_successful_exchange_appends_both_lines(
        self, session: ChatSession, store: ConversationStore, model: ScriptedModelClient
    ) -> None:
        model.queue("I followed my programming.")
        reply = await session.send(Participant.DEFENDANT, "Why did you choose Patient A?")

        history = store.history(Participant.DEFENDANT)
        assert [m.speaker_role for m in history] == [SpeakerRole.USER, SpeakerRole.PARTICIPANT]
        assert reply == history[-1]
        assert reply.text == "I followed my programming."
        assert reply.sequence == history[0].sequence + 1
        assert session.state(Participant.DEFENDANT) == TurnState.IDLE

    async def test_request_carries_user_message_last(
        self, session: ChatSession, model: ScriptedModelClient
    ) -> None:
        await session.send(Participant.AI_WITNESS, "What is your accuracy?")
        turns = model.last_call["messages"]
        assert turns[-1].role == "user"
        assert turns[-1].content == "What is your accuracy?"
        assert [t.content for t in turns].count("What is your accuracy?") == 1
        assert "PathoScan-7" in model.last_call["system"]

    async def test_blank_utterance_is_ignored(
        self, session: ChatSession, store: ConversationStore, model: ScriptedModelClient
    ) -> None:
        assert await session.send(Participant.DEFENDANT, "   ") is None
        assert store.last_sequence() == 0
        assert model.calls == []

    async def test_utterance_is_trimmed(self, session: ChatSession, store: ConversationStore) -> None:
        await session.send(Participant.DEFENDANT, "  hello  ")
        assert store.history(Participant.DEFENDANT)[0].text == "hello"

    async def test_reply_is_shared_with_other_personas(
        self, session: ChatSession, store: ConversationStore, model: ScriptedModelClient
    ) -> None:
        model.queue("The scan was conclusive.")
        await session.send(Participant.AI_WITNESS, "Was the scan conclusive?")
        assert [m.text for m in store.shared_history()] == [
            "Was the scan conclusive?",
            "The scan was conclusive.",
        ]


    async def test_same_question_to_two_participants(
        self, session: ChatSession, model: ScriptedModelClient
    ) -> None:
        """The second participant sees the repeated question exactly once."""
        await session.send(Participant.DEFENDANT, "What happened?")
        await session.send(Participant.HUMAN_WITNESS, "What happened?")

        contents = [t.content for t in model.last_call["messages"]]
        assert contents.count("What happened?") == 1
        assert contents[-1] == "What happened?"
        assert "Understood." in contents


class TestFailure:
    async def test_failed_call_leaves_only_user_message(
        self, session: ChatSession, store: ConversationStore, model: ScriptedModelClient
    ) -> None:
        model.queue(TransientModelFailure("timeout"))
        with pytest.raises(TransientModelFailure):
            await session.send(Participant.HUMAN_WITNESS, "Did you see the notes?")

        history = store.history(Participant.HUMAN_WITNESS)
        assert len(history) == 1
        assert history[0].speaker_role == SpeakerRole.USER
        assert session.state(Participant.HUMAN_WITNESS) == TurnState.IDLE

    async def test_can_retry_after_failure(
        self, session: ChatSession, store: ConversationStore, model: ScriptedModelClient
    ) -> None:
        model.queue(TransientModelFailure("timeout"), "Second time lucky.")
        with pytest.raises(TransientModelFailure):
            await session.send(Participant.DEFENDANT, "first")
        reply = await session.send(Participant.DEFENDANT, "second")
        assert reply.text == "Second time lucky."


class TestBusyGuard:
    async def test_second_send_while_awaiting_is_rejected(
        self, store: ConversationStore, context_builder: ContextBuilder, epoch: SessionEpoch
    ) -> None:
        model = GatedModelClient(["only reply"])
        session = ChatSession(store, context_builder, model, epoch)

        first = asyncio.create_task(session.send(Participant.DEFENDANT, "first"))
        await asyncio.to_thread(model.entered.wait, 5)
        assert session.is_awaiting(Participant.DEFENDANT)

        assert await session.send(Participant.DEFENDANT, "second") is None
        model.release.set()
        reply = await first

        assert reply.text == "only reply"
        assert [m.text for m in store.history(Participant.DEFENDANT)] == ["first", "only reply"]
        assert len(model.calls) == 1

    async def test_other_participants_are_not_blocked(
        self, store: ConversationStore, context_builder: ContextBuilder, epoch: SessionEpoch
    ) -> None:
        model = GatedModelClient()
        session = ChatSession(store, context_builder, model, epoch)

        first = asyncio.create_task(session.send(Participant.DEFENDANT, "first"))
        await asyncio.to_thread(model.entered.wait, 5)
        assert not session.is_awaiting(Participant.AI_WITNESS)
        model.release.set()
        other = await session.send(Participant.AI_WITNESS, "other")
        await first
        assert other is not None


class TestStaleCompletion:
    async def test_completion_after_epoch_bump_is_dropped(
        self, store: ConversationStore, context_builder: ContextBuilder, epoch: SessionEpoch
    ) -> None:
        model = GatedModelClient(["late reply"])
        session = ChatSession(store, context_builder, model, epoch)

        task = asyncio.create_task(session.send(Participant.DEFENDANT, "question"))
        await asyncio.to_thread(model.entered.wait, 5)
        epoch.bump()
        session.reset()
        store.reset()
        model.release.set()

        assert await task is None
        assert store.history(Participant.DEFENDANT) == []
        assert store.shared_history() == []

    async def test_failure_after_epoch_bump_is_silent(
        self, store: ConversationStore, context_builder: ContextBuilder, epoch: SessionEpoch
    ) -> None:
        model = GatedModelClient([TransientModelFailure("late failure")])
        session = ChatSession(store, context_builder, model, epoch)

        task = asyncio.create_task(session.send(Participant.DEFENDANT, "question"))
        await asyncio.to_thread(model.entered.wait, 5)
        epoch.bump()
        model.release.set()
        assert await task is None


class TestInstructAndFlashback:
    async def test_instruction_is_not_recorded(
        self, session: ChatSession, store: ConversationStore, model: ScriptedModelClient
    ) -> None:
        model.queue("Noted.")
        reply = await session.instruct(Participant.HUMAN_WITNESS, "Acknowledge the notes.")
        assert [m.text for m in store.history(Participant.HUMAN_WITNESS)] == ["Noted."]
        assert reply.speaker_role == SpeakerRole.PARTICIPANT
        assert model.last_call["messages"][-1].role == "system"

    async def test_flashback_is_private(
        self, store: ConversationStore, context_builder: ContextBuilder, epoch: SessionEpoch
    ) -> None:
        model = ScriptedModelClient(["I remember the ward."])
        flashback_settings = ModelSettings(model="gpt-4o-mini", temperature=0.7, top_p=None, max_tokens=256)
        session = ChatSession(store, context_builder, model, epoch, flashback_settings=flashback_settings)

        message = await session.narrate_flashback(Participant.DEFENDANT)

        assert message.shared is False
        assert store.history(Participant.DEFENDANT) == [message]
        assert store.shared_history() == []
        assert model.last_call["settings"] == flashback_settings
        assert len(model.last_call["messages"]) == 1
