"""Rule evaluator.

Maps a SignalStore to a Recommendation. All rules are deterministic: the same
signals always produce the same recommendation, cues and marker position. No
LLM is involved, ever.

Evaluation happens in two passes:

1. Base rules, first match wins, in a fixed order regardless of how many
   conditions are true at once.
2. The closed-loop rule. If a committed Remote Assist has not resolved the
   situation, the result is forced to Field Recovery. It can only raise the
   tier, never lower it, and it never overrides Service.

The evaluator is total. Any combination the base rules do not name falls
through to Monitor / Low.
"""

from schemas.recommendation import ConfidenceCue, Recommendation
from schemas.signals import Condition, InterventionState, Priority, SignalStore

UNRESOLVED_AFTER_MIN = 5

# (label, question) per state, in display order.
CUE_QUESTIONS: dict[InterventionState, list[tuple[str, str]]] = {
    InterventionState.MONITOR: [
        ("Situation Check", "Is this a normal, transient pause?"),
        ("Vehicle Health", "Is the vehicle healthy and drivable?"),
        ("Time Impact", "Has the blockage lasted only briefly?"),
    ],
    InterventionState.REMOTE_ASSIST: [
        ("Intervention Feasibility", "Can a human-guided action resolve this?"),
        ("Escalation Avoidance", "Can physical dispatch be avoided?"),
        ("Safety Risk", "Is remote intervention safe and appropriate?"),
    ],
    InterventionState.FIELD_RECOVERY: [
        ("Public Impact", "Is it blocking traffic/creating risk?"),
        ("Authority Involvement", "Are police/external responders present?"),
        ("Remote Failure", "Has remote assist been insufficient/inappropriate?"),
    ],
    InterventionState.SERVICE: [
        ("Repair Need", "Does it require inspection or repair?"),
        ("Redeploy Risk", "Is it unsafe to continue without service?"),
        ("Fleet Status", "Should it be removed from active use?"),
    ],
}

# Severity marker anchors on a 0-100 scale.
SEVERITY_ANCHORS: dict[InterventionState, float] = {
    InterventionState.MONITOR: 10,
    InterventionState.REMOTE_ASSIST: 40,
    InterventionState.FIELD_RECOVERY: 75,
    InterventionState.SERVICE: 95,
}

YES = "Yes"
NO = "No"


def evaluate(signals: SignalStore) -> Recommendation:
    """Return the recommendation for the given signals.

    Args:
        signals: Current SignalStore. Read only.

    Returns:
        A freshly built Recommendation with state, priority, one-line
        rationale and three confidence cues.
    """
    state, priority, rationale = _base_rule(signals)

    if state != InterventionState.SERVICE and _remote_assist_failed_to_resolve(signals):
        state, priority, rationale = (
            InterventionState.FIELD_RECOVERY,
            Priority.HIGH,
            "Remote assist failed to resolve",
        )

    return Recommendation(
        state=state,
        priority=priority,
        rationale=rationale,
        cues=build_confidence_cues(state, signals),
    )


def build_confidence_cues(state: InterventionState, signals: SignalStore) -> list[ConfidenceCue]:
    """Answer the three cue questions for state from the current signals.

    Raises:
        ValueError: If state is InterventionState.NONE, which has no cues.
    """
    s = signals
    blocked = s.condition == Condition.BLOCKED
    brief = s.time_blocked_min < UNRESOLVED_AFTER_MIN

    if state == InterventionState.MONITOR:
        answers = [
            YES if blocked and brief else "Likely temporary?",
            YES if s.drivable else NO,
            YES if brief else NO,
        ]
    elif state == InterventionState.REMOTE_ASSIST:
        answers = [
            YES if s.drivable or blocked else "Unclear",
            YES if not s.police_present else "Unlikely",
            "Coordinated" if s.police_present else YES,
        ]
    elif state == InterventionState.FIELD_RECOVERY:
        if s.condition != Condition.DEGRADED and not brief:
            public_impact = YES
        else:
            public_impact = "Managed" if s.police_present else "Limited"
        answers = [
            public_impact,
            YES if s.police_present else NO,
            YES if _remote_assist_committed(s) else "Not attempted/insufficient",
        ]
    elif state == InterventionState.SERVICE:
        answers = [
            YES if not s.drivable else "Investigate",
            YES if not s.drivable else "Unknown",
            "Remove until cleared" if not s.drivable else "Keep under watch",
        ]
    else:
        raise ValueError(f"No confidence cues for state '{state.value}'.")

    return [
        ConfidenceCue(label=label, question=question, answer=answer)
        for (label, question), answer in zip(CUE_QUESTIONS[state], answers)
    ]


def severity_position(state: InterventionState) -> float:
    """Anchor position of state on the green→red severity band."""
    return SEVERITY_ANCHORS.get(state, SEVERITY_ANCHORS[InterventionState.MONITOR])


def marker_position(recommendation: Recommendation, signals: SignalStore) -> float:
    """Where to draw the severity marker, 0-100.

    An explicit severity_score wins over the state anchor. Visualization
    only: nothing in the decision logic reads this.
    """
    if signals.severity_score is not None:
        return clamp_severity(signals.severity_score)
    return severity_position(recommendation.state)


def clamp_severity(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


# ── Private ───────────────────────────────────────────────────────────────────

def _base_rule(s: SignalStore) -> tuple[InterventionState, Priority, str]:
    # Rule 1: a degraded vehicle that cannot drive needs service, whatever
    # else is going on around it.
    if s.condition == Condition.DEGRADED and not s.drivable:
        return InterventionState.SERVICE, Priority.HIGH, "Not drivable while degraded"

    # Rule 2: police on scene of a stuck vehicle means a physical response.
    if s.condition == Condition.STUCK and s.police_present:
        return InterventionState.FIELD_RECOVERY, Priority.HIGH, "Stuck with police on scene"

    # Rule 3: a stuck vehicle with a rider gets remote help urgently.
    if s.condition == Condition.STUCK and s.rider_onboard:
        return InterventionState.REMOTE_ASSIST, Priority.HIGH, "Stuck with rider onboard"

    # Rule 4: a blockage that has outlasted a normal pause.
    if s.condition == Condition.BLOCKED and s.time_blocked_min >= UNRESOLVED_AFTER_MIN:
        return InterventionState.REMOTE_ASSIST, Priority.MEDIUM, "Blocked ≥5 min"

    # Rule 5: everything else.
    return InterventionState.MONITOR, Priority.LOW, "Transient or minor"


def _remote_assist_committed(s: SignalStore) -> bool:
    return s.current_intervention == InterventionState.REMOTE_ASSIST and s.attempt_count >= 1


def _remote_assist_failed_to_resolve(s: SignalStore) -> bool:
    still_unresolved = (
        s.condition in (Condition.BLOCKED, Condition.STUCK)
        and s.time_blocked_min >= UNRESOLVED_AFTER_MIN
    )
    return _remote_assist_committed(s) and still_unresolved
