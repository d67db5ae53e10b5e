"""Incident session — the state owner and chat pipeline.

IncidentSession owns everything that changes during one incident: the
SignalStore, the append-only chat transcript, the Live Summary and the event
log. Every component that mutates state goes through it, and every mutation
is followed by an explicit call to evaluate().

It is not a database. Nothing persists. When the session object is dropped,
the incident is gone.

Pipeline order inside add_chat_message():
    1. Append the message to the transcript
    2. Recompute the Live Summary from the whole transcript (ChatAggregator)
    3. Extract candidates from the message and summary (SignalExtractor)
    4. Promote allow-listed changes into the store (RelevanceGate)
    5. If anything was promoted: one system notification per promotion,
       then one re-evaluation. Otherwise the recommendation is untouched.

Everything runs synchronously to completion, so two mutations never
interleave.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from aggregation.aggregator import ChatAggregator
from engine.evaluator import clamp_severity, evaluate, marker_position, severity_position
from schemas.chat import ChatMessage, MessageKind
from schemas.events import EventType, SessionEvent
from schemas.qa import QAResponse, QATurn
from schemas.recommendation import Recommendation
from schemas.signals import ActionType, LastAction, SignalCandidate, SignalStore
from signals.relevance_gate import RelevanceGate
from signals.signal_extractor import SignalExtractor

logger = logging.getLogger(__name__)

SYSTEM_SOURCE = "System"
ASSISTANT_SOURCE = "DECIDE"
OPERATOR_SOURCE = "Operator"

# Context the demo dashboard opens with.
DEMO_SEED: list[tuple[str, str]] = [
    ("Mission Control", "Initial check: no injuries reported"),
]


@dataclass
class PipelineResult:
    """What happened when one chat message went through the pipeline.

    A dataclass rather than a Pydantic model because it is an internal
    return value, never validated from external input.

    Attributes:
        message: The message that was appended.
        summary: The Live Summary after recomputation.
        applied: Candidates the RelevanceGate committed. Empty if the
            message changed nothing.
        recommendation: The fresh evaluation if anything was applied,
            otherwise None (no re-evaluation happened).
    """

    message: ChatMessage
    summary: list[str]
    applied: list[SignalCandidate]
    recommendation: Recommendation | None = None


class IncidentSession:
    """State and pipeline for a single incident.

    Attributes:
        signals: The authoritative SignalStore. Read freely; write only
            through the session, the RelevanceGate or the ActionController.

    seed_messages are (source, text) pairs run through the chat pipeline
    right after the initial evaluation, e.g. DEMO_SEED.
    """

    def __init__(
        self,
        signals: SignalStore | None = None,
        aggregator: ChatAggregator | None = None,
        extractor: SignalExtractor | None = None,
        gate: RelevanceGate | None = None,
        seed_messages: list[tuple[str, str]] | None = None,
    ) -> None:
        self.signals = signals if signals is not None else SignalStore()
        self._aggregator = aggregator or ChatAggregator()
        self._extractor = extractor or SignalExtractor()
        self._gate = gate or RelevanceGate()

        self._transcript: list[ChatMessage] = []
        self._summary: list[str] = []
        self._events: list[SessionEvent] = []
        self._previous: Recommendation | None = None
        self._last_evaluated_at: datetime | None = None

        self.evaluate()

        for source, text in seed_messages or []:
            self.add_chat_message(source, text)

    # ── Read-only views ───────────────────────────────────────────────────────

    @property
    def transcript(self) -> list[ChatMessage]:
        """All chat messages in arrival order. A copy."""
        return list(self._transcript)

    @property
    def summary(self) -> list[str]:
        """The current Live Summary. A copy."""
        return list(self._summary)

    @property
    def events(self) -> list[SessionEvent]:
        """The event log in order. A copy."""
        return list(self._events)

    def events_of(self, event_type: EventType) -> list[SessionEvent]:
        return [e for e in self._events if e.event_type == event_type]

    def recommendation(self) -> Recommendation:
        """Evaluate the current store without recording anything.

        Always fresh: recommendations are never cached across mutations.
        """
        return evaluate(self.signals)

    def marker_position(self) -> float:
        return marker_position(self.recommendation(), self.signals)

    def seconds_since_evaluation(self, now: datetime | None = None) -> int:
        """Whole seconds since the last recorded evaluation. Display only."""
        now = now or datetime.now(timezone.utc)
        return max(0, int((now - self._last_evaluated_at).total_seconds()))

    # ── Evaluation ────────────────────────────────────────────────────────────

    def evaluate(self) -> Recommendation:
        """Re-evaluate after a mutation and record the outcome.

        Emits EVALUATED, plus RECOMMENDATION_CHANGED when state or priority
        differs from the previous evaluation.

        Returns:
            The fresh Recommendation.
        """
        rec = evaluate(self.signals)
        self._last_evaluated_at = datetime.now(timezone.utc)
        self._emit(EventType.EVALUATED, f"{rec.state.label} / {rec.priority.value}: {rec.rationale}")

        prev = self._previous
        if prev is not None and (prev.state, prev.priority) != (rec.state, rec.priority):
            self._emit(
                EventType.RECOMMENDATION_CHANGED,
                f"{prev.state.label} → {rec.state.label}",
            )
            logger.info("Recommendation changed: %s → %s.", prev.state.label, rec.state.label)

        self._previous = rec
        return rec

    # ── Chat pipeline ─────────────────────────────────────────────────────────

    def add_chat_message(
        self,
        source: str,
        text: str | None,
        kind: MessageKind = MessageKind.HUMAN,
    ) -> PipelineResult:
        """Append an inbound message and run the aggregate → extract → gate pipeline.

        Args:
            source: Who sent it ("Mission Control", "Field Ops", "Operator").
            text: Message text. None or empty is accepted and simply yields
                no candidates.
            kind: Message kind. Inbound traffic is normally HUMAN.

        Returns:
            A PipelineResult describing what the message changed.
        """
        message = self.append_message(source, text or "", kind)

        self._summary = self._aggregator.aggregate(self._transcript)
        candidates = self._extractor.extract(message, self._summary)
        applied = self.promote(candidates, notification="New signal detected: {label}")

        recommendation = self.evaluate() if applied else None
        return PipelineResult(
            message=message,
            summary=self.summary,
            applied=applied,
            recommendation=recommendation,
        )

    def append_message(self, source: str, text: str, kind: MessageKind) -> ChatMessage:
        """Append to the transcript without running the pipeline.

        Used for system notifications and assistant answers, which report
        on state rather than introduce new facts.
        """
        message = ChatMessage(source=source, text=text, kind=kind)
        self._transcript.append(message)
        self._emit(EventType.MESSAGE_APPENDED, f"[{kind.value}] {source}: {text}")
        return message

    def promote(self, candidates: list[SignalCandidate], notification: str) -> list[SignalCandidate]:
        """Run candidates through the RelevanceGate and notify per change.

        Args:
            candidates: Proposed updates.
            notification: Template for the system message, formatted with
                the applied candidate's key, value and label.

        Returns:
            The applied candidates.
        """
        applied = self._gate.promote(candidates, self.signals)
        for candidate in applied:
            text = notification.format(key=candidate.key, value=candidate.value, label=candidate.label)
            self.append_message(SYSTEM_SOURCE, text, MessageKind.SYSTEM)
            self._emit(EventType.SIGNAL_PROMOTED, f"{candidate.key}={candidate.value!r}")
        return applied

    # ── Operator actions and Q&A ──────────────────────────────────────────────

    def record_action(self, action: ActionType) -> None:
        """Tag the store with the last operator action. Not read by the evaluator."""
        self.signals.last_action = LastAction(type=action, timestamp=datetime.now(timezone.utc))
        self._emit(EventType.ACTION_APPLIED, action.value)

    def apply_qa_response(self, response: QAResponse) -> list[SignalCandidate]:
        """Apply an answer from the Q&A channel.

        The answer is posted as an agent message. new_signals go through the
        same RelevanceGate as chat extraction. severity_delta is added to the
        current marker position and clamped to [0, 100]. The session is
        re-evaluated only if a signal or the severity score changed.

        The response is applied at face value even if the state moved on
        while it was in flight.

        Returns:
            The promoted candidates.
        """
        self.append_message(ASSISTANT_SOURCE, response.answer, MessageKind.AGENT)
        self._emit(
            EventType.QA_FALLBACK if response.fallback else EventType.QA_ANSWERED,
            response.answer,
        )

        candidates = [
            SignalCandidate(key=key, value=value, label=f"{key.replace('_', ' ')} → {value}")
            for key, value in response.new_signals.items()
        ]
        applied = self.promote(candidates, notification="Signal promoted: {label}")

        severity_changed = False
        if response.severity_delta is not None:
            if self.signals.severity_score is not None:
                current = self.signals.severity_score
            else:
                current = severity_position(self.recommendation().state)
            self.signals.severity_score = clamp_severity(current + response.severity_delta)
            severity_changed = self.signals.severity_score != current

        if applied or severity_changed:
            self.evaluate()
        return applied

    def qa_history(self, max_pairs: int = 3) -> list[QATurn]:
        """Most recent assistant answers paired with the question before each.

        Returns:
            Up to max_pairs turns, oldest first.
        """
        pairs: list[QATurn] = []
        for i in range(len(self._transcript) - 1, -1, -1):
            answer = self._transcript[i]
            if answer.source != ASSISTANT_SOURCE or answer.kind != MessageKind.AGENT:
                continue
            question = next(
                (m for m in reversed(self._transcript[:i]) if m.source == OPERATOR_SOURCE),
                None,
            )
            if question is not None:
                pairs.insert(0, QATurn(q=question.text, a=answer.text))
            if len(pairs) >= max_pairs:
                break
        return pairs

    # ── Private ───────────────────────────────────────────────────────────────

    def _emit(self, event_type: EventType, message: str) -> None:
        self._events.append(SessionEvent(event_type=event_type, message=message))
