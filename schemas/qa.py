"""Q&A schemas.

The contract between the session and the optional language-model side
channel. QARequest is what the assistant sends; QAResponse is what it must
get back. Anything in a QAResponse only reaches the SignalStore through the
RelevanceGate, so a response can add context but never rewrite the rules.
"""

from typing import Any

from pydantic import BaseModel, Field


class QATurn(BaseModel):
    """One earlier question/answer pair, oldest first."""

    q: str
    a: str


class QARequest(BaseModel):
    """Everything the provider is allowed to see for one question.

    Attributes:
        question: The operator's free-text question.
        signals: Snapshot of the SignalStore (field names, JSON values).
        context_summary: Current Live Summary bullets, at most 5.
        recent_updates: Tail of the transcript as {source, text} pairs.
        current_recommendation: {action, priority, reason} of the current
            evaluation.
        history: Up to 3 most recent Q/A turns.
    """

    question: str
    signals: dict[str, Any]
    context_summary: list[str] = Field(default_factory=list)
    recent_updates: list[dict[str, str]] = Field(default_factory=list)
    current_recommendation: dict[str, str] = Field(default_factory=dict)
    history: list[QATurn] = Field(default_factory=list)


class QAResponse(BaseModel):
    """A provider answer, or a locally generated fallback.

    Attributes:
        answer: Short answer shown in the chat feed as an agent message.
        new_signals: Proposed signal updates. Treated exactly like extractor
            candidates: only allow-listed keys are applied.
        severity_delta: Optional adjustment added to the severity marker
            and clamped to [0, 100].
        confidence: Provider's self-reported confidence, display only.
        fallback: True when the answer was generated locally because the
            provider call failed or no provider is configured.
    """

    answer: str = Field(min_length=1)
    new_signals: dict[str, Any] = Field(default_factory=dict)
    severity_delta: float | None = None
    confidence: str | None = None
    fallback: bool = False
