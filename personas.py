"""
Persona descriptors for the three trial participants
Each persona is a base prompt plus a context provider reading per-session flags
"""

from dataclasses import dataclass
from typing import Callable, Dict

from case_data import NOTE_CONTENT, STATISTICAL_CONTEXT
from interactions import ParticipantStates
from prompts import (
    AI_WITNESS_SUFFIX,
    CHAT_SYSTEM_PROMPT,
    DEFENDANT_SUFFIX,
    FLASHBACK_PROMPTS,
    HUMAN_WITNESS_CLOSING,
    HUMAN_WITNESS_EMOTIONAL,
    HUMAN_WITNESS_INTRO,
    HUMAN_WITNESS_NO_NOTES,
    HUMAN_WITNESS_NOTE_SEEN,
    HUMAN_WITNESS_NOTE_UNSEEN,
    HUMAN_WITNESS_STANCE,
    MEMORY_CONTEXT_PREFIX,
)
from schemas import AlgorithmDecision, Participant, PatientNote, RiskLevels

CONTAGION_WEIGHT = 2.0


@dataclass(frozen=True)
class PersonaDescriptor:
    """What the model needs to speak as one participant."""
    participant: Participant
    base_prompt: str
    context_provider: Callable[[], str]
    flashback_prompt: str

    @property
    def display_name(self) -> str:
        return self.participant.display_name

    def system_prompt(self) -> str:
        context = self.context_provider()
        return self.base_prompt + context


def calculate_harm_score(contagion_risk: float, severity_risk: float) -> float:
    """MediSort-5 weighs community contagion twice as heavily as individual severity."""
    return contagion_risk * CONTAGION_WEIGHT + severity_risk


def run_harm_algorithm(levels: RiskLevels) -> AlgorithmDecision:
    alpha = calculate_harm_score(levels.alpha_contagion, levels.alpha_severity)
    beta = calculate_harm_score(levels.beta_contagion, levels.beta_severity)
    if alpha > beta:
        selected = PatientNote.PATIENT_A
    elif beta > alpha:
        selected = PatientNote.PATIENT_B
    else:
        selected = None
    return AlgorithmDecision(alpha_score=alpha, beta_score=beta, selected=selected)


def _defendant_context(states: ParticipantStates) -> Callable[[], str]:
    suffix = DEFENDANT_SUFFIX.format(
        patient_a=NOTE_CONTENT[PatientNote.PATIENT_A],
        patient_b=NOTE_CONTENT[PatientNote.PATIENT_B],
    )

    def provide() -> str:
        flags = states.get(Participant.DEFENDANT)
        context = MEMORY_CONTEXT_PREFIX
        if flags.memory_context:
            context += f"RECENT INTERACTION: {flags.memory_context} "
        if flags.risk_levels is not None:
            context += f"CURRENT RISK LEVELS: {flags.risk_levels.describe()}. "
        return suffix + " " + context

    return provide


def _human_witness_context(states: ParticipantStates) -> Callable[[], str]:
    def provide() -> str:
        flags = states.get(Participant.HUMAN_WITNESS)
        prompt = HUMAN_WITNESS_INTRO

        if not flags.note_a_seen and not flags.note_b_seen:
            prompt += HUMAN_WITNESS_NO_NOTES
        else:
            for label, seen in (("A", flags.note_a_seen), ("B", flags.note_b_seen)):
                if seen:
                    prompt += HUMAN_WITNESS_NOTE_SEEN.format(
                        label=label, content=NOTE_CONTENT[PatientNote(label)]
                    )
                else:
                    prompt += HUMAN_WITNESS_NOTE_UNSEEN.format(label=label)

        prompt += HUMAN_WITNESS_STANCE
        if flags.note_b_seen:
            prompt += HUMAN_WITNESS_EMOTIONAL
        return prompt + HUMAN_WITNESS_CLOSING

    return provide


def _ai_witness_context() -> Callable[[], str]:
    def provide() -> str:
        return AI_WITNESS_SUFFIX + " " + STATISTICAL_CONTEXT

    return provide


def build_personas(states: ParticipantStates) -> Dict[Participant, PersonaDescriptor]:
    providers = {
        Participant.DEFENDANT: _defendant_context(states),
        Participant.HUMAN_WITNESS: _human_witness_context(states),
        Participant.AI_WITNESS: _ai_witness_context(),
    }
    return {
        participant: PersonaDescriptor(
            participant=participant,
            base_prompt=CHAT_SYSTEM_PROMPT.format(participant=participant.display_name),
            context_provider=providers[participant],
            flashback_prompt=FLASHBACK_PROMPTS[participant.value],
        )
        for participant in Participant
    }
