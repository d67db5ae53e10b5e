"""Q&A Agent — answers operator questions about the incident.

This is a side channel. It never decides the escalation tier. Whatever the
provider returns reaches the SignalStore only through
IncidentSession.apply_qa_response, i.e. through the RelevanceGate and the
clamped severity adjustment.

Any failure on the provider path (no client configured, timeout, API error,
unparseable or incomplete answer) is recovered here with a canned answer
built from the current signals. Nothing is raised past ask().
"""

import asyncio
import logging
import pathlib
import re

from core.session import OPERATOR_SOURCE, IncidentSession
from llm.base import LLMClient
from schemas.qa import QARequest, QAResponse
from schemas.signals import SignalStore
from utils.parse import LLMParseError, parse_llm_json

logger = logging.getLogger(__name__)

_PROMPT_FILE = pathlib.Path(__file__).parent / "prompts" / "qa_agent.txt"

DEFAULT_TIMEOUT_SECONDS = 15
RECENT_UPDATES = 5
SUMMARY_LIMIT = 5
HISTORY_PAIRS = 3


class QAAgent:
    """Asks the configured LLM a question with the session as context.

    Attributes:
        llm: Provider client, or None to always answer locally.
        timeout_seconds: Maximum time to wait for the provider before
            falling back.
    """

    name = "qa_agent"

    def __init__(self, llm: LLMClient | None = None, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.llm = llm
        self.timeout_seconds = timeout_seconds
        self._system_prompt = _PROMPT_FILE.read_text()

    async def ask(self, question: str, session: IncidentSession) -> QAResponse | None:
        """Post the question, get an answer, and apply it to the session.

        The question goes through the normal chat pipeline first, so facts
        the operator states in a question are extracted like any message.

        Args:
            question: Operator's free-text question.
            session: The session to read context from and apply the answer to.

        Returns:
            The applied QAResponse, or None if the question was blank.
        """
        question = (question or "").strip()
        if not question:
            return None

        session.add_chat_message(OPERATOR_SOURCE, question)
        request = build_request(question, session)

        response = await self._answer(request, session.signals)
        session.apply_qa_response(response)
        return response

    # ── Private ───────────────────────────────────────────────────────────────

    async def _answer(self, request: QARequest, signals: SignalStore) -> QAResponse:
        if self.llm is None:
            logger.debug("qa_agent: no provider configured — answering locally.")
            return fallback_answer(request.question, signals)

        try:
            raw = await asyncio.wait_for(
                self.llm.complete(system=self._system_prompt, user=request.model_dump_json()),
                timeout=self.timeout_seconds,
            )
            return parse_llm_json(raw, QAResponse)
        except LLMParseError as exc:
            logger.error("qa_agent: failed to parse LLM response: %s\nRaw: %s", exc, exc.raw)
        except asyncio.TimeoutError:
            logger.error("qa_agent: provider timed out after %.1fs.", self.timeout_seconds)
        except Exception as exc:
            logger.error("qa_agent: provider call failed: %s", exc)

        return fallback_answer(request.question, signals)


def build_request(question: str, session: IncidentSession) -> QARequest:
    """Collect the context the provider is allowed to see."""
    rec = session.recommendation()
    return QARequest(
        question=question,
        signals=session.signals.model_dump(mode="json", exclude={"last_action"}),
        context_summary=session.summary[:SUMMARY_LIMIT],
        recent_updates=[
            {"source": m.source, "text": m.text}
            for m in session.transcript[-RECENT_UPDATES:]
        ],
        current_recommendation={
            "action": rec.state.value,
            "priority": rec.priority.value,
            "reason": rec.rationale,
        },
        history=session.qa_history(HISTORY_PAIRS),
    )


def fallback_answer(question: str, signals: SignalStore) -> QAResponse:
    """Short, context-derived answer used when the provider is unavailable."""
    q = question.lower()

    if re.search(r"eta|tow", q):
        if signals.tow_eta_min is not None:
            answer = f"Tow ETA ~{signals.tow_eta_min} minutes."
        else:
            answer = "No tow ETA available yet."
    elif re.search(r"rider|distress|anxious", q):
        answer = f"Rider appears {signals.rider_state}." if signals.rider_state else "No rider distress reported."
    elif re.search(r"police|officer", q):
        answer = "Police on scene." if signals.police_present else "No police on scene."
    elif re.search(r"remote assist.*fail|failed", q):
        if signals.remote_assist_failed:
            answer = "Remote assist has failed."
        else:
            answer = "No remote assist failure reported."
    else:
        answer = "No additional context beyond signals and summary."

    return QAResponse(answer=answer, fallback=True)
