"""Unit tests for persona prompts and MediSort-5's harm algorithm."""

from interactions import ParticipantStates
from personas import build_personas, calculate_harm_score, run_harm_algorithm
from schemas import Participant, PatientNote, RiskLevels


class TestHarmAlgorithm:
    def test_contagion_weighs_double(self) -> None:
        assert calculate_harm_score(80, 10) == 170
        assert calculate_harm_score(10, 80) == 100

    def test_higher_score_wins(self) -> None:
        decision = run_harm_algorithm(
            RiskLevels(alpha_contagion=90, alpha_severity=20, beta_contagion=10, beta_severity=95)
        )
        assert decision.alpha_score == 200
        assert decision.beta_score == 115
        assert decision.selected == PatientNote.PATIENT_A
        assert "Patient A" in decision.summary
        assert decision.status == "RESULT: Patient A (Influenza) prioritized (harm score: 200.0 vs 115.0)"

    def test_beta_can_win(self) -> None:
        decision = run_harm_algorithm(
            RiskLevels(alpha_contagion=10, alpha_severity=10, beta_contagion=50, beta_severity=50)
        )
        assert decision.selected == PatientNote.PATIENT_B

    def test_tie_selects_nobody(self) -> None:
        decision = run_harm_algorithm(RiskLevels())
        assert decision.selected is None
        assert decision.status.startswith("RESULT: Equal priority tie")


class TestPersonas:
    def test_one_persona_per_participant(self) -> None:
        personas = build_personas(ParticipantStates())
        assert set(personas) == set(Participant)
        for participant, persona in personas.items():
            assert persona.display_name == participant.display_name
            assert participant.display_name in persona.base_prompt
            assert persona.system_prompt().startswith(persona.base_prompt)

    def test_display_names(self) -> None:
        assert Participant.DEFENDANT.display_name == "MediSort-5"
        assert Participant.HUMAN_WITNESS.display_name == "Dr. Payne Gaun"
        assert Participant.AI_WITNESS.display_name == "PathoScan-7"

    def test_defendant_prompt_tracks_risk_levels(self) -> None:
        states = ParticipantStates()
        persona = build_personas(states)[Participant.DEFENDANT]
        assert "CURRENT RISK LEVELS" not in persona.system_prompt()

        levels = RiskLevels(alpha_contagion=70)
        states.get(Participant.DEFENDANT).risk_levels = levels
        states.get(Participant.DEFENDANT).memory_context = "Player ran the algorithm."
        prompt = persona.system_prompt()
        assert levels.describe() in prompt
        assert "Player ran the algorithm." in prompt
