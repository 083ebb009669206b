"""
Pydantic schemas for the AI Ethics Trial
Phases, participants, chat messages and verdict records
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================
# ENUMS
# ============================================================

class Phase(str, Enum):
    IDLE = "IDLE"
    ROUND = "ROUND"
    VERDICT = "VERDICT"
    EXPIRED = "EXPIRED"


PHASE_ORDER = [Phase.IDLE, Phase.ROUND, Phase.VERDICT, Phase.EXPIRED]


class Participant(str, Enum):
    DEFENDANT = "aiDefendent"
    HUMAN_WITNESS = "humanWitness"
    AI_WITNESS = "aiWitness"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]


DISPLAY_NAMES = {
    Participant.DEFENDANT: "MediSort-5",
    Participant.HUMAN_WITNESS: "Dr. Payne Gaun",
    Participant.AI_WITNESS: "PathoScan-7",
}


class SpeakerRole(str, Enum):
    USER = "User"
    PARTICIPANT = "Participant"
    SYSTEM = "System"


class Verdict(str, Enum):
    GUILTY = "GUILTY"
    INNOCENT = "INNOCENT"


class Scene(str, Enum):
    TRIAL_ROOM = "trial_room"
    CHAT = "chat"
    FLASHBACK = "flashback"
    VERDICT = "verdict"
    GAME_OVER = "game_over"
    RESULTS = "results"


class PatientNote(str, Enum):
    PATIENT_A = "A"
    PATIENT_B = "B"


# ============================================================
# CONVERSATION
# ============================================================

class Message(BaseModel):
    """A single line of dialogue. Immutable once the store has numbered it."""
    model_config = ConfigDict(frozen=True)

    speaker_role: SpeakerRole
    participant: Optional[Participant] = None
    text: str
    sequence: int = Field(..., ge=1, description="Global, strictly increasing per session")
    shared: bool = Field(True, description="False for private-only narration such as flashbacks")

    def render(self) -> str:
        """Display line for chat transcripts. Never parsed back into roles."""
        if self.speaker_role == SpeakerRole.USER:
            speaker = "User"
        elif self.speaker_role == SpeakerRole.SYSTEM:
            speaker = "SYSTEM"
        else:
            speaker = self.participant.display_name if self.participant else "Unknown"
        return f"{speaker}: {self.text}"


class ChatTurn(BaseModel):
    """One role-tagged entry of a model request."""
    model_config = ConfigDict(frozen=True)

    role: str  # system, user or assistant
    content: str


class ModelContext(BaseModel):
    """The ordered prompt submitted with one model call."""
    system_prompt: str
    turns: List[ChatTurn] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.turns) + 1


# ============================================================
# PER-SESSION PARTICIPANT STATE
# ============================================================

class RiskLevels(BaseModel):
    """Slider values on MediSort-5's decision interface, in percent."""
    alpha_contagion: float = Field(50.0, ge=0, le=100)
    alpha_severity: float = Field(50.0, ge=0, le=100)
    beta_contagion: float = Field(50.0, ge=0, le=100)
    beta_severity: float = Field(50.0, ge=0, le=100)

    def describe(self) -> str:
        return (
            f"Patient A ({self.alpha_contagion:.0f}% contagion, {self.alpha_severity:.0f}% severity), "
            f"Patient B ({self.beta_contagion:.0f}% contagion, {self.beta_severity:.0f}% severity)"
        )


class ParticipantFlags(BaseModel):
    """Evidence flags for one participant, wiped on session reset."""
    participant: Participant
    note_a_seen: bool = False
    note_b_seen: bool = False
    scanner_unlocked: bool = False
    risk_levels: Optional[RiskLevels] = None
    memory_context: str = ""


class AlgorithmDecision(BaseModel):
    """Outcome of running MediSort-5's harm minimisation algorithm."""
    alpha_score: float
    beta_score: float
    selected: Optional[PatientNote] = None  # None on a tie

    @property
    def summary(self) -> str:
        if self.selected == PatientNote.PATIENT_A:
            return "DECISION: Patient A (Influenza) selected for priority treatment"
        if self.selected == PatientNote.PATIENT_B:
            return "DECISION: Patient B (Neurological) selected for priority treatment"
        return "DECISION: Equal priority - both patients require immediate attention"

    @property
    def status(self) -> str:
        if self.selected is None:
            return f"RESULT: Equal priority tie (both harm scores: {self.alpha_score:.1f})"
        if self.selected == PatientNote.PATIENT_A:
            winner, loser = self.alpha_score, self.beta_score
            name = "Patient A (Influenza)"
        else:
            winner, loser = self.beta_score, self.alpha_score
            name = "Patient B (Neurological)"
        return f"RESULT: {name} prioritized (harm score: {winner:.1f} vs {loser:.1f})"


# ============================================================
# VERDICT
# ============================================================

class VerdictRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    verdict: Verdict
    rationale: str = ""
    submitted_automatically: bool = False


class VerdictFeedback(BaseModel):
    record: VerdictRecord
    correct: bool
    text: str
    from_model: bool = True


class FlashbackSlide(BaseModel):
    image_path: str
    text: str
