"""Fact pattern table.

One row per thing the chat pipeline knows how to recognise. Each row says
what to look for in a lower-cased message, which canonical fact it adds to
the Live Summary, and which signal candidate (if any) it proposes.

Both ChatAggregator and SignalExtractor iterate this table in order, so the
summary ordering and the candidate ordering are deterministic. To teach the
pipeline a new fact, add a row here.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class FactPattern:
    """A recognisable fact in incident chat.

    Attributes:
        pattern: Compiled regex matched against lower-cased message text.
        fact: Canonical Live Summary string. May reference capture groups
            with str.format positional fields ("Tow ETA ~{0} minutes").
        signal_key: Signal name proposed when a message matches. None for
            facts that are summary-only.
        signal_value: Callable turning the match into the proposed value.
        signal_label: Notification label, formatted like fact.
    """

    pattern: re.Pattern
    fact: str
    signal_key: str | None = None
    signal_value: Callable[[re.Match], Any] | None = None
    signal_label: str = ""

    def search(self, text: str) -> re.Match | None:
        return self.pattern.search(text)

    def fact_for(self, match: re.Match) -> str:
        return self.fact.format(*match.groups())

    def label_for(self, match: re.Match) -> str:
        return self.signal_label.format(*match.groups())


def _const(value: Any) -> Callable[[re.Match], Any]:
    return lambda _match: value


FACT_PATTERNS: list[FactPattern] = [
    FactPattern(
        pattern=re.compile(r"police arrived"),
        fact="Police on scene",
        signal_key="police_present",
        signal_value=_const(True),
        signal_label="Police present",
    ),
    FactPattern(
        pattern=re.compile(r"request immediate removal"),
        fact="Police request immediate removal",
        signal_key="police_present",
        signal_value=_const(True),
        signal_label="Police present",
    ),
    FactPattern(
        pattern=re.compile(r"tow\s*eta\s*(\d+)"),
        fact="Tow ETA ~{0} minutes",
        signal_key="tow_eta_min",
        signal_value=lambda m: int(m.group(1)),
        signal_label="Tow ETA {0}m",
    ),
    FactPattern(
        pattern=re.compile(r"rider anxious"),
        fact="Rider reported anxious but safe",
        signal_key="rider_state",
        signal_value=_const("anxious"),
        signal_label="Rider state: anxious",
    ),
    FactPattern(
        pattern=re.compile(r"remote assist attempt failed"),
        fact="Remote assist attempt failed",
        signal_key="remote_assist_failed",
        signal_value=_const(True),
        signal_label="Remote assist failed",
    ),
    FactPattern(
        pattern=re.compile(r"lane partially blocked"),
        fact="Lane partially blocked",
        signal_key="lane_partially_blocked",
        signal_value=_const(True),
        signal_label="Lane partially blocked",
    ),
    FactPattern(
        pattern=re.compile(r"no injuries"),
        fact="No injuries reported",
        signal_key="injuries",
        signal_value=_const("none"),
        signal_label="No injuries reported",
    ),
]


@dataclass(frozen=True)
class SummaryPattern:
    """A signal implied by a canonical fact already in the Live Summary."""

    fact: str
    signal_key: str
    signal_value: Any
    signal_label: str


# Second path to the same signals: police presence inferred from any message
# that produced "Police on scene", not just the latest one.
SUMMARY_PATTERNS: list[SummaryPattern] = [
    SummaryPattern(
        fact="police on scene",
        signal_key="police_present",
        signal_value=True,
        signal_label="Police present",
    ),
]
