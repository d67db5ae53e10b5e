"""Component tests for the session layer.

Covers IncidentSession (chat pipeline, promotion, Q&A application) and
ActionController (confirm, escalate, override, scenarios, time, attempts),
including the end-to-end closed-loop walkthrough. No API keys required —
everything is in memory.
"""

import pytest

from core.controller import ActionController
from core.scenarios import SCENARIOS
from core.session import DEMO_SEED, IncidentSession
from schemas.chat import MessageKind
from schemas.events import EventType
from schemas.qa import QAResponse
from schemas.signals import ActionType, Condition, InterventionState, Priority


# ── Shared fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def session():
    return IncidentSession()


@pytest.fixture
def controller(session):
    return ActionController(session)


def evaluations(session) -> int:
    return len(session.events_of(EventType.EVALUATED))


# ── IncidentSession: chat pipeline ────────────────────────────────────────────

class TestChatPipeline:
    def test_police_arrived_promotes_and_reevaluates(self, session):
        before = evaluations(session)
        result = session.add_chat_message("Dispatch", "Police arrived on scene")

        assert "Police on scene" in result.summary
        assert session.signals.police_present is True
        assert [c.key for c in result.applied] == ["police_present"]
        assert result.recommendation is not None
        assert evaluations(session) == before + 1

        system = [m for m in session.transcript if m.kind == MessageKind.SYSTEM]
        assert [m.text for m in system] == ["New signal detected: Police present"]

    def test_message_is_appended_first(self, session):
        result = session.add_chat_message("Field Ops", "hello")
        assert session.transcript[0] == result.message
        assert result.message.kind == MessageKind.HUMAN

    def test_unrecognised_message_does_not_reevaluate(self, session):
        before = evaluations(session)
        result = session.add_chat_message("Field Ops", "still waiting")
        assert result.applied == []
        assert result.recommendation is None
        assert evaluations(session) == before

    def test_repeat_fact_is_a_no_op(self, session):
        session.add_chat_message("Dispatch", "Police arrived")
        before = evaluations(session)
        result = session.add_chat_message("Dispatch", "Police arrived, confirming")
        assert result.applied == []
        assert evaluations(session) == before
        assert len([m for m in session.transcript if m.kind == MessageKind.SYSTEM]) == 1

    def test_summary_only_facts_are_not_promoted(self, session):
        result = session.add_chat_message("Field Ops", "Rider anxious, no injuries")
        assert result.applied == []
        assert session.signals.rider_state is None
        assert result.summary == ["Rider reported anxious but safe", "No injuries reported"]

    def test_one_notification_per_applied_change(self, session):
        result = session.add_chat_message(
            "Field Ops", "Tow ETA 25, lane partially blocked, remote assist attempt failed",
        )
        assert len(result.applied) == 3
        system = [m.text for m in session.transcript if m.kind == MessageKind.SYSTEM]
        assert system == [
            "New signal detected: Tow ETA 25m",
            "New signal detected: Remote assist failed",
            "New signal detected: Lane partially blocked",
        ]
        assert session.signals.tow_eta_min == 25

    def test_empty_text_is_not_an_error(self, session):
        result = session.add_chat_message("Field Ops", None)
        assert result.applied == []
        assert result.message.text == ""

    def test_police_on_stuck_vehicle_changes_recommendation(self, session, controller):
        controller.load_scenario("stuck_rider")
        assert session.recommendation().state == InterventionState.REMOTE_ASSIST

        result = session.add_chat_message("Dispatch", "Police arrived")
        assert result.recommendation.state == InterventionState.FIELD_RECOVERY
        changed = session.events_of(EventType.RECOMMENDATION_CHANGED)
        assert changed[-1].message == "Remote Assist → Field Recovery"

    def test_transcript_is_append_only_copy(self, session):
        session.add_chat_message("a", "one")
        copy = session.transcript
        copy.clear()
        assert len(session.transcript) == 1

    def test_seed_messages_run_through_pipeline(self):
        session = IncidentSession(seed_messages=DEMO_SEED)
        first = session.transcript[0]
        assert (first.source, first.text) == ("Mission Control", "Initial check: no injuries reported")
        assert session.summary == ["No injuries reported"]
        assert session.signals.model_dump() == IncidentSession().signals.model_dump()


# ── IncidentSession: Q&A application ──────────────────────────────────────────

class TestApplyQAResponse:
    def test_answer_is_posted_as_agent_message(self, session):
        session.apply_qa_response(QAResponse(answer="Tow ETA unknown."))
        last = session.transcript[-1]
        assert last.kind == MessageKind.AGENT
        assert last.source == "DECIDE"

    def test_allow_listed_signals_are_promoted(self, session):
        applied = session.apply_qa_response(QAResponse(
            answer="Police are there.",
            new_signals={"policePresent": True, "attempt_count": 9, "made_up": 1},
        ))
        assert [c.key for c in applied] == ["police_present"]
        assert session.signals.police_present is True
        assert session.signals.attempt_count == 0
        assert any(m.text.startswith("Signal promoted: ") for m in session.transcript)

    def test_severity_delta_adds_to_anchor(self, session):
        session.apply_qa_response(QAResponse(answer="ok", severity_delta=15))
        assert session.signals.severity_score == 25  # Monitor anchor 10 + 15
        assert session.marker_position() == 25

    def test_severity_delta_is_clamped(self, session):
        session.apply_qa_response(QAResponse(answer="ok", severity_delta=500))
        assert session.signals.severity_score == 100
        session.apply_qa_response(QAResponse(answer="ok", severity_delta=-500))
        assert session.signals.severity_score == 0

    def test_severity_delta_accumulates_on_score(self, session):
        session.apply_qa_response(QAResponse(answer="ok", severity_delta=10))
        session.apply_qa_response(QAResponse(answer="ok", severity_delta=5))
        assert session.signals.severity_score == 25

    def test_answer_alone_does_not_reevaluate(self, session):
        before = evaluations(session)
        session.apply_qa_response(QAResponse(answer="Nothing new."))
        assert evaluations(session) == before

    def test_qa_history_pairs_questions_and_answers(self, session):
        session.add_chat_message("Operator", "Tow ETA?")
        session.apply_qa_response(QAResponse(answer="No tow ETA yet."))
        session.add_chat_message("Operator", "Police?")
        session.apply_qa_response(QAResponse(answer="No police on scene."))
        history = session.qa_history()
        assert [(t.q, t.a) for t in history] == [
            ("Tow ETA?", "No tow ETA yet."),
            ("Police?", "No police on scene."),
        ]


# ── ActionController ──────────────────────────────────────────────────────────

class TestActionController:
    def test_confirm_commits_recommended_state(self, session, controller):
        controller.load_scenario("stuck_police")
        controller.confirm()
        assert session.signals.current_intervention == InterventionState.FIELD_RECOVERY
        assert session.signals.attempt_count == 0

    def test_confirm_remote_increments_attempts(self, session, controller):
        controller.load_scenario("blocked6")
        controller.confirm()
        assert session.signals.current_intervention == InterventionState.REMOTE_ASSIST
        assert session.signals.attempt_count == 1

    def test_escalate_steps_up_from_recommendation(self, session, controller):
        controller.load_scenario("blocked1")  # Monitor
        controller.escalate()
        assert session.signals.current_intervention == InterventionState.REMOTE_ASSIST
        assert session.signals.attempt_count == 1

    def test_escalate_from_remote_goes_to_field(self, session, controller):
        controller.load_scenario("blocked6")
        controller.escalate()
        assert session.signals.current_intervention == InterventionState.FIELD_RECOVERY
        assert session.signals.attempt_count == 0

    def test_escalate_clamps_at_service(self, session, controller):
        controller.load_scenario("degraded_not_drivable")
        controller.escalate()
        assert session.signals.current_intervention == InterventionState.SERVICE

    @pytest.mark.parametrize("target", ["monitor", "field", "service", InterventionState.SERVICE])
    def test_override_sets_target(self, session, controller, target):
        assert controller.override(target) is not None
        assert session.signals.current_intervention == InterventionState(target)
        assert session.signals.attempt_count == 0

    def test_override_remote_increments_attempts(self, session, controller):
        controller.override("remote")
        assert session.signals.attempt_count == 1

    @pytest.mark.parametrize("target", [None, "", "none", "tow", "Remote Assist"])
    def test_override_invalid_target_is_a_no_op(self, session, controller, target):
        before_signals = session.signals.model_dump()
        before_events = len(session.events)
        assert controller.override(target) is None
        assert session.signals.model_dump() == before_signals
        assert len(session.events) == before_events

    def test_scenario_resets_history(self, session, controller):
        controller.load_scenario("blocked6")
        controller.confirm()
        controller.load_scenario("stuck_rider")
        assert session.signals.current_intervention == InterventionState.NONE
        assert session.signals.attempt_count == 0
        assert session.signals.condition == Condition.STUCK

    def test_scenario_keeps_promoted_signals(self, session, controller):
        session.add_chat_message("Tow Desk", "tow eta 30")
        controller.load_scenario("blocked1")
        assert session.signals.tow_eta_min == 30

    def test_unknown_scenario_is_a_no_op(self, session, controller):
        before = session.signals.model_dump()
        assert controller.load_scenario("nope") is None
        assert session.signals.model_dump() == before

    @pytest.mark.parametrize("alias,name", [
        ("stuckRider", "stuck_rider"),
        ("stuckPolice", "stuck_police"),
        ("degradedND", "degraded_not_drivable"),
    ])
    def test_dashboard_scenario_aliases(self, session, controller, alias, name):
        assert controller.load_scenario(alias) is not None
        assert session.signals.condition == SCENARIOS[name].condition
        assert session.signals.time_blocked_min == SCENARIOS[name].time_blocked_min

    def test_all_presets_load(self, session, controller):
        for name, preset in SCENARIOS.items():
            controller.load_scenario(name)
            assert session.signals.condition == preset.condition
            assert session.signals.time_blocked_min == preset.time_blocked_min

    def test_advance_time_adds_five(self, session, controller):
        controller.load_scenario("blocked1")
        controller.advance_time()
        assert session.signals.time_blocked_min == 6

    def test_reset_attempts_keeps_intervention(self, session, controller):
        controller.load_scenario("blocked6")
        controller.confirm()
        controller.reset_attempts()
        assert session.signals.attempt_count == 0
        assert session.signals.current_intervention == InterventionState.REMOTE_ASSIST

    def test_every_action_records_last_action_and_reevaluates(self, session, controller):
        before = evaluations(session)
        controller.advance_time()
        assert session.signals.last_action.type == ActionType.ADVANCE_TIME
        controller.reset_attempts()
        assert session.signals.last_action.type == ActionType.RESET_ATTEMPTS
        assert evaluations(session) == before + 2


# ── End-to-end scenarios ──────────────────────────────────────────────────────

class TestScenarios:
    def test_blocked_one_minute_is_monitor(self, controller):
        rec = controller.load_scenario("blocked1")
        assert (rec.state, rec.priority, rec.rationale) == (
            InterventionState.MONITOR, Priority.LOW, "Transient or minor",
        )

    def test_blocked_six_minutes_is_remote_assist(self, controller):
        rec = controller.load_scenario("blocked6")
        assert (rec.state, rec.priority, rec.rationale) == (
            InterventionState.REMOTE_ASSIST, Priority.MEDIUM, "Blocked ≥5 min",
        )

    def test_confirm_then_advance_time_escalates(self, session, controller):
        controller.load_scenario("blocked6")
        controller.confirm()
        assert session.signals.attempt_count == 1

        rec = controller.advance_time()
        assert session.signals.time_blocked_min == 11
        assert (rec.state, rec.priority, rec.rationale) == (
            InterventionState.FIELD_RECOVERY, Priority.HIGH, "Remote assist failed to resolve",
        )

    def test_ratchet_holds_as_time_passes(self, controller):
        controller.load_scenario("blocked6")
        controller.confirm()
        for _ in range(5):
            assert controller.advance_time().state == InterventionState.FIELD_RECOVERY

    def test_stuck_police_is_field_recovery(self, controller):
        rec = controller.load_scenario("stuck_police")
        assert (rec.state, rec.priority) == (InterventionState.FIELD_RECOVERY, Priority.HIGH)

    def test_degraded_not_drivable_is_service(self, controller):
        rec = controller.load_scenario("degraded_not_drivable")
        assert (rec.state, rec.priority) == (InterventionState.SERVICE, Priority.HIGH)
