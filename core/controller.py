"""Action controller — the operator-facing operations.

These are the only code paths allowed to write current_intervention and
attempt_count. Every operation records a last-action tag and ends with an
explicit re-evaluation, and returns the resulting Recommendation.
"""

import logging

from core.scenarios import get_scenario
from core.session import IncidentSession
from schemas.recommendation import Recommendation
from schemas.signals import LADDER, ActionType, InterventionState

logger = logging.getLogger(__name__)

TIME_STEP_MIN = 5


class ActionController:
    """Applies operator actions to one IncidentSession.

    Attributes:
        session: The session whose SignalStore the actions mutate.
    """

    def __init__(self, session: IncidentSession) -> None:
        self.session = session

    def confirm(self) -> Recommendation:
        """Commit the currently recommended state as the intervention."""
        rec = self.session.recommendation()
        self._commit(rec.state)
        return self._finish(ActionType.CONFIRM)

    def escalate(self) -> Recommendation:
        """Commit one step above the recommended state, clamped at Service.

        The step is taken from the recommendation, not from whatever was
        committed before.
        """
        rec = self.session.recommendation()
        idx = LADDER.index(rec.state)
        escalated = LADDER[min(idx + 1, len(LADDER) - 1)]
        self._commit(escalated)
        return self._finish(ActionType.ESCALATE)

    def override(self, target: InterventionState | str | None) -> Recommendation | None:
        """Commit an operator-chosen state, bypassing the recommendation.

        Args:
            target: One of the four tiers, as an InterventionState or its
                string value ("monitor", "remote", "field", "service").

        Returns:
            The fresh Recommendation, or None if target was missing or not
            a valid tier. An invalid target changes nothing.
        """
        state = _parse_tier(target)
        if state is None:
            logger.debug("Override ignored — invalid target %r.", target)
            return None
        self._commit(state)
        return self._finish(ActionType.OVERRIDE)

    def load_scenario(self, name: str) -> Recommendation | None:
        """Replace the structured signals with a preset and start a fresh history.

        Returns:
            The fresh Recommendation, or None for an unknown preset name.
        """
        preset = get_scenario(name)
        if preset is None:
            logger.debug("Scenario '%s' not found — ignoring.", name)
            return None

        signals = self.session.signals
        preset.apply_to(signals)
        signals.current_intervention = InterventionState.NONE
        signals.attempt_count = 0
        logger.info("Loaded scenario '%s'.", name)
        return self._finish(ActionType.SCENARIO)

    def advance_time(self) -> Recommendation:
        """Add five minutes to the blocked timer."""
        signals = self.session.signals
        signals.time_blocked_min = max(0, signals.time_blocked_min + TIME_STEP_MIN)
        return self._finish(ActionType.ADVANCE_TIME)

    def reset_attempts(self) -> Recommendation:
        """Zero the attempt counter, keeping the committed intervention."""
        self.session.signals.attempt_count = 0
        return self._finish(ActionType.RESET_ATTEMPTS)

    # ── Private ───────────────────────────────────────────────────────────────

    def _commit(self, state: InterventionState) -> None:
        signals = self.session.signals
        signals.current_intervention = state
        if state == InterventionState.REMOTE_ASSIST:
            signals.attempt_count += 1
        logger.info(
            "Intervention committed: %s (attempts: %d).",
            state.label,
            signals.attempt_count,
        )

    def _finish(self, action: ActionType) -> Recommendation:
        self.session.record_action(action)
        return self.session.evaluate()


def _parse_tier(target: InterventionState | str | None) -> InterventionState | None:
    if not target:
        return None
    try:
        state = InterventionState(target)
    except ValueError:
        return None
    return state if state in LADDER else None
