"""Signal schema.

The SignalStore is the single mutable record of what is currently known about
the incident: the structured operational facts an operator sets (condition,
timer, rider/police/drivable), the intervention history the Action Controller
commits, and the optional signals promoted out of the incident chat.

The Rule Evaluator reads a SignalStore and nothing else. Everything that
changes a recommendation does so by writing one of these fields.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Condition(str, Enum):
    """Operational condition of the vehicle as reported by the operator."""

    BLOCKED = "Blocked"
    STUCK = "Stuck"
    DEGRADED = "Degraded"


class InterventionState(str, Enum):
    """Escalation tiers, plus NONE for "nothing committed yet".

    Extends str so values serialize to plain strings ("remote", "field")
    rather than "InterventionState.REMOTE_ASSIST".

    NONE only ever appears as SignalStore.current_intervention. A
    Recommendation always carries one of the four real tiers.
    """

    NONE = "none"
    MONITOR = "monitor"
    REMOTE_ASSIST = "remote"
    FIELD_RECOVERY = "field"
    SERVICE = "service"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    InterventionState.NONE: "None",
    InterventionState.MONITOR: "Monitor",
    InterventionState.REMOTE_ASSIST: "Remote Assist",
    InterventionState.FIELD_RECOVERY: "Field Recovery",
    InterventionState.SERVICE: "Service",
}

# Escalation order used by the Escalate action.
LADDER = [
    InterventionState.MONITOR,
    InterventionState.REMOTE_ASSIST,
    InterventionState.FIELD_RECOVERY,
    InterventionState.SERVICE,
]


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ActionType(str, Enum):
    """Operator actions recorded in SignalStore.last_action."""

    CONFIRM = "confirm"
    ESCALATE = "escalate"
    OVERRIDE = "override"
    SCENARIO = "scenario"
    ADVANCE_TIME = "time+5"
    RESET_ATTEMPTS = "resetAttempts"


class LastAction(BaseModel):
    """Tag of the most recent operator action. Never read by the evaluator."""

    type: ActionType
    timestamp: datetime


class SignalStore(BaseModel):
    """The current operational facts for one incident session.

    Assignment is validated, so a promoted value of the wrong type (for
    example a tow ETA of "soon") raises ValidationError instead of silently
    corrupting the store. The RelevanceGate relies on this.

    Field names are snake_case; camelCase aliases (towEtaMin, policePresent)
    are accepted on input so payloads keyed the way the dashboard and the
    LLM prompt name them resolve to the same fields.

    Attributes:
        condition: Blocked, Stuck or Degraded.
        time_blocked_min: Minutes the vehicle has been unable to proceed.
            Advanced by the operator in 5 minute steps.
        rider_onboard: A rider is in the vehicle.
        police_present: Police or other responders are on scene. Also set
            by chat promotion.
        drivable: The vehicle is mechanically able to drive.
        current_intervention: The last confirmed/applied tier. Distinct from
            the recommended tier. Written only by the ActionController.
        attempt_count: Committed Remote Assist attempts. Written only by the
            ActionController; reset by scenario load or explicit reset.
        tow_eta_min: Promoted tow ETA in minutes, if any.
        rider_state: Free-form rider state extracted from chat ("anxious").
            Shown for context, never auto-promoted.
        remote_assist_failed: Chat reported a failed remote assist attempt.
        lane_partially_blocked: Chat reported a partially blocked lane.
        severity_score: Optional 0-100 override for the severity marker.
        last_action: Type and time of the last operator action.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    condition: Condition = Condition.BLOCKED
    time_blocked_min: int = Field(default=1, ge=0)
    rider_onboard: bool = True
    police_present: bool = False
    drivable: bool = True
    current_intervention: InterventionState = InterventionState.NONE
    attempt_count: int = Field(default=0, ge=0)

    tow_eta_min: int | None = Field(default=None, ge=0)
    rider_state: str | None = None
    remote_assist_failed: bool = False
    lane_partially_blocked: bool = False

    severity_score: float | None = Field(default=None, ge=0.0, le=100.0)
    last_action: LastAction | None = None

    @classmethod
    def resolve_key(cls, key: str) -> str | None:
        """Map a field name or its camelCase alias to the field name.

        Returns None for keys the schema does not know about.
        """
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return None


class SignalCandidate(BaseModel):
    """A proposed signal update produced by extraction or the Q&A channel.

    Attributes:
        key: Signal name. Usually a SignalStore field, but extraction may
            propose keys the store does not have (e.g. "injuries"); the
            RelevanceGate drops those.
        value: Proposed value.
        label: Short human-readable description used in the system
            notification when the candidate is promoted.
    """

    key: str
    value: Any
    label: str
