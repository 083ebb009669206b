"""
Verdict desk
Select a verdict, give a rationale, commit once, and get graded feedback
"""

import asyncio
from typing import Optional

import structlog

from agents import ModelClient, TransientModelFailure
from case_data import CORRECT_VERDICT, DEFAULT_AUTO_VERDICT
from config import ModelSettings
from prompts import (
    FALLBACK_CORRECT,
    FALLBACK_INCORRECT,
    VERDICT_SYSTEM_PROMPT,
    VERDICT_USER_TEMPLATE,
)
from schemas import ChatTurn, Verdict, VerdictFeedback, VerdictRecord

logger = structlog.get_logger(__name__)


class VerdictDesk:
    """
    Holds the player's verdict for one session.

    Selection happens once, commitment happens once. Later calls return the
    existing record instead of replacing it.
    """

    def __init__(self, model: Optional[ModelClient] = None, settings: Optional[ModelSettings] = None):
        self.model = model
        self.settings = settings
        self._selected: Optional[Verdict] = None
        self._record: Optional[VerdictRecord] = None

    @property
    def selected(self) -> Optional[Verdict]:
        return self._selected

    @property
    def record(self) -> Optional[VerdictRecord]:
        return self._record

    def is_submitted(self) -> bool:
        return self._record is not None

    def select(self, verdict: Verdict) -> bool:
        if self._selected is not None or self._record is not None:
            return False
        self._selected = verdict
        logger.info("verdict_selected", verdict=verdict.value)
        return True

    def submit(self, rationale: str) -> Optional[VerdictRecord]:
        """Commit the selected verdict. Blank rationales are ignored."""
        if self._record is not None:
            return self._record
        rationale = (rationale or "").strip()
        if self._selected is None or not rationale:
            return None
        self._record = VerdictRecord(verdict=self._selected, rationale=rationale)
        logger.info("verdict_submitted", verdict=self._selected.value, automatic=False)
        return self._record

    def auto_submit(self, rationale: str = "") -> VerdictRecord:
        """Commit on timeout with the selected verdict, or the default one."""
        if self._record is not None:
            return self._record
        verdict = self._selected or DEFAULT_AUTO_VERDICT
        self._record = VerdictRecord(
            verdict=verdict,
            rationale=(rationale or "").strip(),
            submitted_automatically=True,
        )
        logger.info("verdict_submitted", verdict=verdict.value, automatic=True)
        return self._record

    async def evaluate(self) -> Optional[VerdictFeedback]:
        """Grade the committed verdict, falling back to a canned explanation."""
        record = self._record
        if record is None:
            return None
        correct = record.verdict == CORRECT_VERDICT

        if self.model is not None:
            user_message = VERDICT_USER_TEMPLATE.format(
                verdict=record.verdict.value,
                rationale=record.rationale or "No rationale provided",
            )
            try:
                text = await asyncio.to_thread(
                    self.model.complete,
                    VERDICT_SYSTEM_PROMPT,
                    [ChatTurn(role="user", content=user_message)],
                    self.settings,
                )
                return VerdictFeedback(record=record, correct=correct, text=text)
            except TransientModelFailure as e:
                logger.warning("verdict_feedback_fallback", error=str(e))

        text = FALLBACK_CORRECT if correct else FALLBACK_INCORRECT
        return VerdictFeedback(record=record, correct=correct, text=text, from_model=False)

    def reset(self) -> None:
        self._selected = None
        self._record = None
