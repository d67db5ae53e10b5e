"""Schema validation tests.

These tests verify that the Pydantic models accept valid data, reject invalid
data, and enforce field constraints. No API key or external services required.
"""

import pytest
from pydantic import ValidationError

from schemas.chat import ChatMessage, MessageKind
from schemas.events import EventType, SessionEvent
from schemas.qa import QAResponse
from schemas.recommendation import ConfidenceCue, Recommendation
from schemas.signals import (
    LADDER,
    Condition,
    InterventionState,
    Priority,
    SignalCandidate,
    SignalStore,
)


# ── Helpers ──────────────────────────────────────────────────────────────────

def make_cues(n=3) -> list[ConfidenceCue]:
    return [ConfidenceCue(label=f"Cue {i}", question="?", answer="Yes") for i in range(n)]


# ── SignalStore ───────────────────────────────────────────────────────────────

class TestSignalStore:
    def test_defaults(self):
        s = SignalStore()
        assert s.condition == Condition.BLOCKED
        assert s.time_blocked_min == 1
        assert s.rider_onboard is True
        assert s.police_present is False
        assert s.drivable is True
        assert s.current_intervention == InterventionState.NONE
        assert s.attempt_count == 0
        assert s.tow_eta_min is None
        assert s.severity_score is None

    def test_accepts_camel_case_aliases(self):
        s = SignalStore(timeBlockedMin=6, policePresent=True)
        assert s.time_blocked_min == 6
        assert s.police_present is True

    def test_assignment_is_validated(self):
        s = SignalStore()
        with pytest.raises(ValidationError):
            s.time_blocked_min = -1

    def test_assignment_coerces_enum_strings(self):
        s = SignalStore()
        s.current_intervention = "remote"
        assert s.current_intervention == InterventionState.REMOTE_ASSIST

    def test_severity_score_out_of_range_raises(self):
        with pytest.raises(ValidationError):
            SignalStore(severity_score=101)

    def test_non_numeric_tow_eta_raises(self):
        s = SignalStore()
        with pytest.raises(ValidationError):
            s.tow_eta_min = "soon"

    def test_resolve_key_field_name(self):
        assert SignalStore.resolve_key("police_present") == "police_present"

    def test_resolve_key_alias(self):
        assert SignalStore.resolve_key("towEtaMin") == "tow_eta_min"

    def test_resolve_key_unknown(self):
        assert SignalStore.resolve_key("injuries") is None


class TestInterventionState:
    def test_ladder_order(self):
        assert [s.value for s in LADDER] == ["monitor", "remote", "field", "service"]

    def test_none_not_on_ladder(self):
        assert InterventionState.NONE not in LADDER

    def test_labels(self):
        assert InterventionState.REMOTE_ASSIST.label == "Remote Assist"
        assert InterventionState.NONE.label == "None"


# ── Recommendation ────────────────────────────────────────────────────────────

class TestRecommendation:
    def test_valid_recommendation(self):
        rec = Recommendation(
            state=InterventionState.MONITOR,
            priority=Priority.LOW,
            rationale="Transient or minor",
            cues=make_cues(),
        )
        assert rec.priority == Priority.LOW

    def test_requires_exactly_three_cues(self):
        with pytest.raises(ValidationError):
            Recommendation(state="monitor", priority="Low", rationale="x", cues=make_cues(2))
        with pytest.raises(ValidationError):
            Recommendation(state="monitor", priority="Low", rationale="x", cues=make_cues(4))


# ── Chat, events, candidates ──────────────────────────────────────────────────

class TestChatMessage:
    def test_defaults_to_human_with_timestamp(self):
        m = ChatMessage(source="Field Ops", text="hello")
        assert m.kind == MessageKind.HUMAN
        assert m.timestamp is not None

    def test_missing_source_raises(self):
        with pytest.raises(ValidationError):
            ChatMessage(text="hello")


class TestSessionEvent:
    def test_event_type_serializes_as_string(self):
        e = SessionEvent(event_type=EventType.EVALUATED, message="Monitor / Low")
        assert e.model_dump(mode="json")["event_type"] == "evaluated"


class TestSignalCandidate:
    def test_value_may_be_any_type(self):
        assert SignalCandidate(key="tow_eta_min", value=25, label="Tow ETA 25m").value == 25
        assert SignalCandidate(key="injuries", value="none", label="x").value == "none"


# ── QAResponse ────────────────────────────────────────────────────────────────

class TestQAResponse:
    def test_minimal_answer(self):
        r = QAResponse(answer="Tow ETA ~20 minutes.")
        assert r.new_signals == {}
        assert r.severity_delta is None
        assert r.fallback is False

    def test_empty_answer_raises(self):
        with pytest.raises(ValidationError):
            QAResponse(answer="")

    def test_missing_answer_raises(self):
        with pytest.raises(ValidationError):
            QAResponse(new_signals={"police_present": True})
