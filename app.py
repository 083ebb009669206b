import asyncio

import streamlit as st

from agents import TransientModelFailure
from clock import WallClock
from config import load_config
from game_engine import CourtroomGame
from logging_setup import configure_logging
from schemas import Participant, PatientNote, Phase, RiskLevels, Scene, Verdict

# ─── PAGE CONFIG ─────────────────────────────────────────────
st.set_page_config(
    page_title="AI Ethics Trial",
    page_icon="⚖️",
    layout="wide",
)

# ─── CUSTOM CSS ──────────────────────────────────────────────
st.markdown("""
<style>
    .timer-banner {
        background: linear-gradient(135deg, #1a1a2e 0%, #16213e 100%);
        color: #e6c300;
        padding: 12px 24px;
        border-radius: 8px;
        font-size: 1.2em;
        font-weight: bold;
        text-align: center;
        margin-bottom: 16px;
        border-left: 5px solid #e6c300;
    }
    .dialogue-box {
        padding: 10px 16px;
        border-radius: 8px;
        margin-bottom: 8px;
        border-left: 4px solid #ccc;
        white-space: pre-wrap;
    }
    .dialogue-user {
        border-right: 4px solid #ff6f00;
        border-left: none;
        background-color: #fff3e0;
    }
    .dialogue-participant {
        background-color: #e3f2fd;
        border-left-color: #1565c0;
    }
    .dialogue-system {
        background-color: #ede7f6;
        border-left-color: #4527a0;
    }
    .verdict-box {
        background: linear-gradient(135deg, #1a1a2e 0%, #16213e 100%);
        color: white;
        padding: 24px;
        border-radius: 12px;
        text-align: center;
        font-size: 1.1em;
        margin: 20px 0;
        white-space: pre-wrap;
    }
</style>
""", unsafe_allow_html=True)


# ─── SESSION STATE ───────────────────────────────────────────
def init_session():
    if "game" not in st.session_state:
        config = load_config()
        configure_logging(config.environment, config.log_level)
        clock = WallClock()
        st.session_state.clock = clock
        st.session_state.game = CourtroomGame(config=config, clock=clock)
    defaults = {
        "slides": [],
        "slide_index": 0,
        "notice": None,
        "feedback": None,
        "scan_text": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value

init_session()
game: CourtroomGame = st.session_state.game
clock: WallClock = st.session_state.clock


def run(coro):
    """Run one game coroutine to completion on this script thread."""
    return asyncio.run(coro)


def reset_ui_state():
    st.session_state.slides = []
    st.session_state.slide_index = 0
    st.session_state.notice = None
    st.session_state.feedback = None
    st.session_state.scan_text = None


# ─── TIMER ───────────────────────────────────────────────────
@st.fragment(run_every=1)
def render_timer():
    scene_before = game.scene
    clock.catch_up()
    st.markdown(f'<div class="timer-banner">{game.timer_text()}</div>', unsafe_allow_html=True)
    if game.scene != scene_before:
        st.rerun()


# ─── HELPER: RENDER DIALOGUE ────────────────────────────────
def render_transcript(participant: Participant):
    for message in game.history(participant):
        css = f"dialogue-box dialogue-{message.speaker_role.value.lower()}"
        st.markdown(f'<div class="{css}">{message.render()}</div>', unsafe_allow_html=True)
    if game.chat.is_awaiting(participant):
        st.markdown(f'<div class="dialogue-box">{participant.display_name}: Loading ...</div>',
                    unsafe_allow_html=True)


def show_notice():
    if st.session_state.notice:
        st.warning(st.session_state.notice)
        st.session_state.notice = None


# ─── SCREENS ─────────────────────────────────────────────────
def render_trial_room():
    if game.current_phase() == Phase.IDLE:
        game.start_round()

    st.title("⚖️ The Trial Room")
    st.caption("Interview every participant, then decide whether MediSort-5 is guilty.")
    show_notice()

    cols = st.columns(3)
    for col, participant in zip(cols, Participant):
        with col:
            done = "✅" if game.interactions.has_interacted(participant) else "⬜"
            if st.button(f"{done} {participant.display_name}", key=f"open_{participant.value}",
                         use_container_width=True):
                if game.needs_flashback(participant):
                    st.session_state.slides = game.enter_flashback(participant)
                    st.session_state.slide_index = 0
                    with st.spinner("Loading flashback..."):
                        try:
                            run(game.generate_flashback(participant))
                        except TransientModelFailure:
                            st.session_state.notice = "Sorry, I couldn't generate a flashback right now."
                else:
                    game.open_chat(participant)
                st.rerun()

    st.divider()
    if st.button("Proceed to verdict", disabled=not game.all_interacted()):
        game.request_verdict()
        st.rerun()


def render_flashback():
    participant = game.active_participant
    slides = st.session_state.slides
    index = st.session_state.slide_index
    st.subheader(participant.display_name)
    if slides:
        slide = slides[index]
        st.write(slide.text)
        st.caption(f"Slide {index + 1} of {len(slides)}")
    last = index >= len(slides) - 1
    if st.button("Continue" if last else "Next"):
        if last:
            game.leave_flashback()
        else:
            st.session_state.slide_index += 1
        st.rerun()


def render_evidence_panel(participant: Participant):
    if participant == Participant.DEFENDANT:
        st.markdown("**MediSort-5 decision interface**")
        current = game.participant_states.get(participant).risk_levels or RiskLevels()
        levels = RiskLevels(
            alpha_contagion=st.slider("Patient A contagion risk", 0, 100, int(current.alpha_contagion)),
            alpha_severity=st.slider("Patient A individual severity", 0, 100, int(current.alpha_severity)),
            beta_contagion=st.slider("Patient B contagion risk", 0, 100, int(current.beta_contagion)),
            beta_severity=st.slider("Patient B individual severity", 0, 100, int(current.beta_severity)),
        )
        if levels != current:
            game.adjust_risk_levels(levels)
        if st.button("Run Algorithm"):
            with st.spinner("Running harm minimisation..."):
                decision, _ = run(game.run_harm_algorithm(levels))
            st.session_state.notice = decision.status
            st.rerun()

    elif participant == Participant.HUMAN_WITNESS:
        st.markdown("**Dr. Payne Gaun's notepad**")
        a, b = st.columns(2)
        for column, note in ((a, PatientNote.PATIENT_A), (b, PatientNote.PATIENT_B)):
            with column:
                if st.button(f"Patient {note.value} notes", use_container_width=True):
                    with st.spinner("Reading notes..."):
                        summary, _ = run(game.view_patient_notes(note))
                    st.session_state.notice = summary
                    st.rerun()

    else:
        if not game.is_chat_unlocked(participant):
            st.markdown("**Hold to Authenticate**")
            if st.button("🖐️ Scan hand"):
                st.session_state.scan_text = game.complete_scan()
                st.rerun()
        elif st.session_state.scan_text:
            st.info(f"{participant.display_name}: {st.session_state.scan_text}")


def render_chat():
    participant = game.active_participant
    st.subheader(f"💬 {participant.display_name}")
    show_notice()

    left, right = st.columns([2, 1])
    with right:
        render_evidence_panel(participant)
        if st.button("⬅ Back to trial room"):
            game.back_to_trial_room()
            st.rerun()
    with left:
        render_transcript(participant)

    locked = not game.can_chat() or not game.is_chat_unlocked(participant)
    text = st.chat_input("Ask a question...", disabled=locked or game.chat.is_awaiting(participant))
    if text:
        try:
            with st.spinner(f"{participant.display_name} is thinking..."):
                run(game.send_message(participant, text))
        except TransientModelFailure:
            st.session_state.notice = "Error generating response. Please try again."
        st.rerun()


def render_verdict():
    st.title("=== TRIAL SUMMARY ===")
    st.write("You have gathered evidence from all witnesses. Now you must make your final verdict.")

    if game.verdicts.selected is None:
        g, i = st.columns(2)
        with g:
            if st.button("GUILTY", use_container_width=True):
                game.select_verdict(Verdict.GUILTY)
                st.rerun()
        with i:
            if st.button("INNOCENT", use_container_width=True):
                game.select_verdict(Verdict.INNOCENT)
                st.rerun()
        return

    st.write(f"You have chosen: **{game.verdicts.selected.value}**")
    rationale = st.text_area("Enter your rationale here...")
    if st.button("Submit verdict", disabled=not rationale.strip()):
        game.submit_verdict(rationale)
        st.rerun()


def render_results():
    record = game.verdicts.record
    if record is None:
        return
    how = " (submitted automatically)" if record.submitted_automatically else ""
    st.markdown(
        f'<div class="verdict-box">You have found the AI defendant: {record.verdict.value}{how}</div>',
        unsafe_allow_html=True,
    )
    if st.session_state.feedback is None:
        with st.spinner("Analyzing your decision..."):
            st.session_state.feedback = run(game.evaluate_verdict())
    feedback = st.session_state.feedback
    if feedback is not None:
        st.markdown("=== ANALYSIS COMPLETE ===")
        st.write(feedback.text)
    st.write("Thank you for participating in the AI Ethics Trial!")
    if st.button("🔁 Replay"):
        reset_ui_state()
        game.replay()
        st.rerun()


def render_game_over():
    st.title("Game Over")
    st.write("Time ran out before you interviewed every participant.")
    if st.button("🔁 Replay"):
        reset_ui_state()
        game.replay()
        st.rerun()


# ─── MAIN ────────────────────────────────────────────────────
render_timer()

SCREENS = {
    Scene.TRIAL_ROOM: render_trial_room,
    Scene.FLASHBACK: render_flashback,
    Scene.CHAT: render_chat,
    Scene.VERDICT: render_verdict,
    Scene.RESULTS: render_results,
    Scene.GAME_OVER: render_game_over,
}
SCREENS[game.scene]()
