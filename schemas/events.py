"""Session event schema.

Events are appended by IncidentSession as it processes chat messages,
operator actions and Q&A answers, so the display layer and the tests can see
what happened without reaching into session internals. The decision logic
never reads them.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Things the session reports.

    Values:
        MESSAGE_APPENDED: A message was added to the transcript.
        SIGNAL_PROMOTED: A candidate passed the RelevanceGate and was
            written to the SignalStore.
        EVALUATED: The Rule Evaluator was run after a mutation.
        RECOMMENDATION_CHANGED: The evaluation produced a different state or
            priority than the previous one.
        ACTION_APPLIED: An operator action mutated the store.
        QA_ANSWERED: The Q&A provider returned a usable answer.
        QA_FALLBACK: The Q&A provider failed and a canned answer was used.
    """

    MESSAGE_APPENDED = "message_appended"
    SIGNAL_PROMOTED = "signal_promoted"
    EVALUATED = "evaluated"
    RECOMMENDATION_CHANGED = "recommendation_changed"
    ACTION_APPLIED = "action_applied"
    QA_ANSWERED = "qa_answered"
    QA_FALLBACK = "qa_fallback"


class SessionEvent(BaseModel):
    """A single entry in the session's append-only event log.

    Attributes:
        event_type: What happened. See EventType.
        message: Human-readable detail, e.g. "Monitor → Remote Assist".
        timestamp: Wall-clock UTC time the event was recorded.
    """

    event_type: EventType
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
