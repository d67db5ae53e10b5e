"""Recommendation schema.

A Recommendation is derived, never stored: the Rule Evaluator builds a fresh
one from the SignalStore every time it is asked. Callers must not hold on to
a Recommendation across a mutation of the store.
"""

from pydantic import BaseModel, Field

from schemas.signals import InterventionState, Priority


class ConfidenceCue(BaseModel):
    """One of the three glanceable checks shown under a recommendation.

    Attributes:
        label: Short heading, e.g. "Vehicle Health".
        question: The question the cue answers, e.g. "Is the vehicle
            healthy and drivable?".
        answer: Short answer drawn from a fixed per-state vocabulary
            ("Yes", "No", "Unclear", "Likely temporary?", ...).
    """

    label: str
    question: str
    answer: str


class Recommendation(BaseModel):
    """The rules-derived escalation tier for the current signals.

    Attributes:
        state: Recommended tier. Never InterventionState.NONE.
        priority: Low, Medium or High.
        rationale: One-line reason naming the rule that fired.
        cues: Exactly three confidence cues specific to state.
    """

    state: InterventionState
    priority: Priority
    rationale: str
    cues: list[ConfidenceCue] = Field(min_length=3, max_length=3)
