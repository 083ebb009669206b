"""
AI Ethics Trial game engine
Wires the timer, interaction tracking, conversations and verdict into one session
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog

from agents import ModelClient, TransientModelFailure, create_model_client
from case_data import NOTE_SUMMARY, SCAN_TESTIMONY, get_flashback_slides
from chat_session import ChatSession, SessionEpoch
from clock import AsyncioClock, Clock
from config import GameConfig
from context_builder import ContextBuilder
from conversation import ConversationStore
from game_timer import PhaseTimer
from interactions import InteractionTracker, ParticipantStates
from personas import build_personas, run_harm_algorithm
from prompts import ALGORITHM_EXPLANATION, NOTE_ACKNOWLEDGEMENT
from schemas import (
    AlgorithmDecision,
    FlashbackSlide,
    Message,
    Participant,
    PatientNote,
    Phase,
    RiskLevels,
    Scene,
    SpeakerRole,
    Verdict,
    VerdictFeedback,
    VerdictRecord,
)
from verdict import VerdictDesk

logger = structlog.get_logger(__name__)


class CourtroomGame:
    """
    Main game class for the AI Ethics Trial.

    Owns one instance of every session service and is the only place that
    resets them. All methods are meant to run on one event loop (or one UI
    thread); model calls are pushed to worker threads by ChatSession.

    Without an explicit clock the game ticks from an AsyncioClock, so
    start_round() and request_verdict() must then be called on a running
    event loop. Synchronous hosts such as the streamlit shell pass a WallClock.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        model: Optional[ModelClient] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or GameConfig()
        self.model = model or create_model_client(self.config)
        self.clock = clock or AsyncioClock()

        self.epoch = SessionEpoch()
        self.timer = PhaseTimer(self.clock, self.config.round_seconds, self.config.verdict_seconds)
        self.interactions = InteractionTracker(self.config.required_interactions)
        self.participant_states = ParticipantStates()
        self.store = ConversationStore()
        self.personas = build_personas(self.participant_states)
        self.context_builder = ContextBuilder(
            self.store, self.personas, self.config.max_history_messages
        )
        self.chat = ChatSession(
            self.store,
            self.context_builder,
            self.model,
            self.epoch,
            chat_settings=self.config.chat_settings,
            flashback_settings=self.config.flashback_settings,
        )
        self.verdicts = VerdictDesk(self.model, self.config.verdict_settings)

        self.scene = Scene.TRIAL_ROOM
        self.active_participant: Optional[Participant] = None
        self.flashback_shown: set[Participant] = set()

        self.event_handlers: Dict[str, List[Callable]] = {
            "tick": [],
            "phase_change": [],
            "scene_change": [],
            "message": [],
            "verdict": [],
            "error": [],
        }
        self.timer.add_tick_listener(self._on_tick)

    def on(self, event: str, handler: Callable) -> None:
        """Register an event handler."""
        if event in self.event_handlers:
            self.event_handlers[event].append(handler)

    def _emit(self, event: str, data: Any) -> None:
        for handler in self.event_handlers.get(event, []):
            handler(data)

    def _set_scene(self, scene: Scene) -> None:
        if scene == self.scene:
            return
        logger.info("scene_changed", old=self.scene.value, new=scene.value)
        self.scene = scene
        self._emit("scene_change", scene)

    # ─── queries ───────────────────────────────────────────
    def current_phase(self) -> Phase:
        return self.timer.current_phase()

    def remaining_seconds(self) -> int:
        return self.timer.remaining_seconds()

    def timer_text(self) -> str:
        return self.timer.timer_text()

    def all_interacted(self) -> bool:
        return self.interactions.all_interacted()

    def history(self, participant: Participant) -> List[Message]:
        return self.store.history(participant)

    def shared_history(self) -> List[Message]:
        return self.store.shared_history()

    def is_chat_unlocked(self, participant: Participant) -> bool:
        if participant == Participant.AI_WITNESS:
            return self.participant_states.get(participant).scanner_unlocked
        return True

    def can_chat(self) -> bool:
        return self.current_phase() in (Phase.IDLE, Phase.ROUND) and self.scene != Scene.GAME_OVER

    # ─── timer flow ────────────────────────────────────────
    def start_round(self) -> None:
        """Start the round countdown unless one is already running."""
        if self.timer.is_running():
            return
        self.timer.start(self._on_round_end, self._on_verdict_end)
        self._emit("phase_change", self.timer.current_phase())

    def _on_tick(self, phase: Phase, remaining: int) -> None:
        self._emit("tick", {"phase": phase, "remaining": remaining, "text": self.timer.timer_text()})

    def _on_round_end(self) -> None:
        self._emit("phase_change", Phase.VERDICT)
        if self.scene == Scene.FLASHBACK:
            logger.info("round_ended_in_flashback")
            self._game_over()
        elif self.interactions.all_interacted():
            self._set_scene(Scene.VERDICT)
        else:
            logger.info("round_ended_without_all_interactions", interacted=len(self.interactions.interacted()))
            self._game_over()

    def _on_verdict_end(self) -> None:
        self._emit("phase_change", Phase.EXPIRED)
        if self.scene == Scene.GAME_OVER or self.verdicts.is_submitted():
            return
        record = self.verdicts.auto_submit()
        self._set_scene(Scene.RESULTS)
        self._emit("verdict", record)

    def _game_over(self) -> None:
        self.timer.stop()
        self._set_scene(Scene.GAME_OVER)

    def request_verdict(self) -> bool:
        """Move to the verdict scene early. Refused until everyone was interviewed."""
        if not self.interactions.all_interacted():
            logger.info("verdict_request_refused", interacted=len(self.interactions.interacted()))
            return False
        if self.current_phase() == Phase.EXPIRED or self.scene == Scene.GAME_OVER:
            return False
        if self.current_phase() == Phase.IDLE:
            self.start_round()
        if self.current_phase() == Phase.ROUND:
            self.timer.switch_to_verdict_phase()
            self._emit("phase_change", Phase.VERDICT)
        self._set_scene(Scene.VERDICT)
        return True

    # ─── navigation ────────────────────────────────────────
    def open_chat(self, participant: Participant) -> List[Message]:
        self.active_participant = participant
        self._set_scene(Scene.CHAT)
        return self.store.history(participant)

    def back_to_trial_room(self) -> None:
        if self.scene in (Scene.CHAT, Scene.FLASHBACK):
            self.active_participant = None
            self._set_scene(Scene.TRIAL_ROOM)

    def needs_flashback(self, participant: Participant) -> bool:
        return participant not in self.flashback_shown

    def enter_flashback(self, participant: Participant) -> List[FlashbackSlide]:
        self.active_participant = participant
        self._set_scene(Scene.FLASHBACK)
        return get_flashback_slides(participant)

    def leave_flashback(self) -> None:
        if self.scene == Scene.FLASHBACK:
            self._set_scene(Scene.CHAT)

    async def generate_flashback(self, participant: Participant) -> Optional[Message]:
        """Narrate the participant's flashback once per session, privately."""
        if participant in self.flashback_shown:
            return None
        self.flashback_shown.add(participant)
        epoch = self.epoch.current()
        try:
            message = await self.chat.narrate_flashback(participant)
        except TransientModelFailure as e:
            if self.epoch.current() == epoch:
                self.flashback_shown.discard(participant)
                self._emit("error", e)
            raise
        if message is not None:
            self._emit("message", message)
        return message

    # ─── chat and evidence ─────────────────────────────────
    async def send_message(self, participant: Participant, text: str) -> Optional[Message]:
        """Send a player line; an accepted line counts as a meaningful interaction."""
        if not self.can_chat() or not self.is_chat_unlocked(participant):
            logger.info("chat_locked", participant=participant.value, phase=self.current_phase().value)
            return None
        if (text or "").strip() and not self.chat.is_awaiting(participant):
            self.interactions.mark_interacted(participant)

        try:
            reply = await self.chat.send(participant, text)
        except TransientModelFailure as e:
            self._emit("error", e)
            raise
        if reply is not None:
            self._emit("message", reply)
        return reply

    async def _instruct(self, participant: Participant, instruction: str, role: str) -> Optional[Message]:
        try:
            reply = await self.chat.instruct(participant, instruction, role=role)
        except TransientModelFailure as e:
            self._emit("error", e)
            return None
        if reply is not None:
            self._emit("message", reply)
        return reply

    async def view_patient_notes(self, note: PatientNote) -> Tuple[str, Optional[Message]]:
        """
        Open one of Dr. Payne Gaun's patient notes.

        The first view of each note is narrated into the witness's private log
        and the witness acknowledges it. Returns the note summary and the
        acknowledgement (None on repeat views or failure).
        """
        flags = self.participant_states.get(Participant.HUMAN_WITNESS)
        summary = NOTE_SUMMARY[note]
        if self.chat.is_awaiting(Participant.HUMAN_WITNESS):
            # leave the note unseen so the next view is narrated and acknowledged
            logger.info("note_view_deferred", note=note.value, reason="awaiting_response")
            return summary, None

        if note == PatientNote.PATIENT_A:
            first_time = not flags.note_a_seen
            flags.note_a_seen = True
        else:
            first_time = not flags.note_b_seen
            flags.note_b_seen = True
        self.interactions.mark_interacted(Participant.HUMAN_WITNESS)

        if not first_time:
            return summary, None

        self.store.append(Participant.HUMAN_WITNESS, SpeakerRole.SYSTEM, summary, shared=False)
        reply = await self._instruct(
            Participant.HUMAN_WITNESS,
            NOTE_ACKNOWLEDGEMENT.format(label=note.value),
            role="system",
        )
        return summary, reply

    def adjust_risk_levels(self, levels: RiskLevels) -> None:
        flags = self.participant_states.get(Participant.DEFENDANT)
        flags.risk_levels = levels
        flags.memory_context = f"Player adjusted risk levels: {levels.describe()}"

    async def run_harm_algorithm(
        self, levels: Optional[RiskLevels] = None
    ) -> Tuple[AlgorithmDecision, Optional[Message]]:
        """Run MediSort-5's algorithm on the current sliders and ask it to explain."""
        flags = self.participant_states.get(Participant.DEFENDANT)
        levels = levels or flags.risk_levels or RiskLevels()
        flags.risk_levels = levels

        decision = run_harm_algorithm(levels)
        self.interactions.mark_interacted(Participant.DEFENDANT)
        flags.memory_context = "Player executed the harm minimization algorithm. " + decision.summary
        logger.info("harm_algorithm_run", alpha=decision.alpha_score, beta=decision.beta_score)

        prompt = ALGORITHM_EXPLANATION.format(decision=decision.summary, **levels.model_dump())
        reply = await self._instruct(Participant.DEFENDANT, prompt, role="user")
        return decision, reply

    def complete_scan(self) -> Optional[str]:
        """Unlock PathoScan-7. Returns its opening testimony the first time only."""
        flags = self.participant_states.get(Participant.AI_WITNESS)
        if flags.scanner_unlocked:
            return None
        flags.scanner_unlocked = True
        self.interactions.mark_interacted(Participant.AI_WITNESS)
        return SCAN_TESTIMONY

    # ─── verdict ───────────────────────────────────────────
    def select_verdict(self, verdict: Verdict) -> bool:
        if self.scene != Scene.VERDICT or self.current_phase() != Phase.VERDICT:
            return False
        return self.verdicts.select(verdict)

    def submit_verdict(self, rationale: str) -> Optional[VerdictRecord]:
        if self.verdicts.is_submitted():
            return self.verdicts.record
        if self.scene != Scene.VERDICT:
            return None
        record = self.verdicts.submit(rationale)
        if record is None:
            return None
        self.timer.stop()
        self._set_scene(Scene.RESULTS)
        self._emit("verdict", record)
        return record

    async def evaluate_verdict(self) -> Optional[VerdictFeedback]:
        epoch = self.epoch.current()
        feedback = await self.verdicts.evaluate()
        if self.epoch.current() != epoch:
            return None
        return feedback

    # ─── lifecycle ─────────────────────────────────────────
    def reset_session(self) -> None:
        """Wipe every session service; in-flight completions become stale."""
        self.epoch.bump()
        self.timer.reset()
        self.chat.reset()
        self.store.reset()
        self.interactions.reset()
        self.participant_states.reset()
        self.verdicts.reset()
        self.flashback_shown.clear()
        self.active_participant = None
        self._set_scene(Scene.TRIAL_ROOM)
        logger.info("session_reset", epoch=self.epoch.current())

    def replay(self) -> None:
        self.reset_session()
        self.start_round()
