"""Scenario presets.

Each preset is a complete bundle of the structured signals an operator would
otherwise set by hand. Loading one replaces exactly these five fields; the
promoted chat signals are left alone and the ActionController resets the
intervention history separately.
"""

from pydantic import BaseModel, Field

from schemas.signals import Condition, SignalStore


class ScenarioPreset(BaseModel):
    """The fields a scenario may set, and nothing else."""

    condition: Condition
    time_blocked_min: int = Field(ge=0)
    rider_onboard: bool
    police_present: bool
    drivable: bool

    def apply_to(self, store: SignalStore) -> None:
        store.condition = self.condition
        store.time_blocked_min = self.time_blocked_min
        store.rider_onboard = self.rider_onboard
        store.police_present = self.police_present
        store.drivable = self.drivable


SCENARIOS: dict[str, ScenarioPreset] = {
    "blocked1": ScenarioPreset(
        condition=Condition.BLOCKED,
        time_blocked_min=1,
        rider_onboard=True,
        police_present=False,
        drivable=True,
    ),
    "blocked6": ScenarioPreset(
        condition=Condition.BLOCKED,
        time_blocked_min=6,
        rider_onboard=True,
        police_present=False,
        drivable=True,
    ),
    "stuck_rider": ScenarioPreset(
        condition=Condition.STUCK,
        time_blocked_min=4,
        rider_onboard=True,
        police_present=False,
        drivable=True,
    ),
    "stuck_police": ScenarioPreset(
        condition=Condition.STUCK,
        time_blocked_min=3,
        rider_onboard=False,
        police_present=True,
        drivable=False,
    ),
    "degraded_not_drivable": ScenarioPreset(
        condition=Condition.DEGRADED,
        time_blocked_min=0,
        rider_onboard=False,
        police_present=False,
        drivable=False,
    ),
}


# Names the browser dashboard uses for the same presets.
SCENARIO_ALIASES: dict[str, str] = {
    "stuckRider": "stuck_rider",
    "stuckPolice": "stuck_police",
    "degradedND": "degraded_not_drivable",
}


def get_scenario(name: str) -> ScenarioPreset | None:
    """Look up a preset by name or dashboard alias. None if there is no such preset."""
    return SCENARIOS.get(SCENARIO_ALIASES.get(name, name))
