"""Rich renderables for an incident session.

The display layer only reads. It takes a session (or pieces of one) and
builds Rich objects for the terminal; it never writes to the SignalStore and
never calls the evaluator except through the session's read-only views.

Usage:
    console.print(render_session(session))
"""

from rich.columns import Columns
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.session import IncidentSession
from schemas.chat import ChatMessage, MessageKind
from schemas.recommendation import Recommendation
from schemas.signals import InterventionState, SignalStore

FEED_LIMIT = 50
BAND_WIDTH = 40

_STATE_STYLES = {
    InterventionState.MONITOR:        ("🟢", "green"),
    InterventionState.REMOTE_ASSIST:  ("🟡", "yellow"),
    InterventionState.FIELD_RECOVERY: ("🔴", "red"),
    InterventionState.SERVICE:        ("⚙️", "magenta"),
}

_PRIORITY_STYLES = {"Low": "dim", "Medium": "yellow", "High": "bold red"}

_KIND_STYLES = {
    MessageKind.HUMAN:  "white",
    MessageKind.SYSTEM: "cyan",
    MessageKind.AGENT:  "magenta",
}


def render_session(session: IncidentSession) -> Group:
    """Full dashboard: decision card and context side by side, then chat."""
    rec = session.recommendation()
    top = Columns(
        [
            render_decision(rec, session.marker_position()),
            render_context(session.signals),
        ],
        equal=True,
    )
    bottom = Columns(
        [
            render_summary(session.summary),
            render_feed(session.transcript, limit=12),
        ],
        equal=True,
    )
    footer = Text.from_markup(
        f"[dim]Last evaluated: {session.seconds_since_evaluation()}s ago[/dim]"
    )
    return Group(top, bottom, footer)


def render_decision(rec: Recommendation, marker: float) -> Panel:
    """Decision card: state, priority, rationale, severity band and cues."""
    emoji, color = _STATE_STYLES[rec.state]
    priority_style = _PRIORITY_STYLES.get(rec.priority.value, "white")

    header = Text.from_markup(
        f"{emoji} [bold {color}]{rec.state.label}[/bold {color}]   "
        f"[{priority_style}]{rec.priority.value}[/{priority_style}]"
    )
    why = Text(rec.rationale, style="italic")

    cues = Table.grid(padding=(0, 1))
    cues.add_column(style="bold")
    cues.add_column()
    for cue in rec.cues:
        cues.add_row(f"{cue.label}:", cue.answer)

    return Panel(
        Group(header, why, Text(""), render_severity_band(marker), Text(""), cues),
        title="[bold]Recommendation[/bold]",
        border_style=color,
        width=52,
    )


def render_severity_band(marker: float, width: int = BAND_WIDTH) -> Text:
    """Green→red band with a marker at position marker (0-100)."""
    pos = round(max(0.0, min(100.0, marker)) / 100 * (width - 1))
    band = Text()
    for i in range(width):
        third = i * 3 // width
        style = ("green", "yellow", "red")[third]
        band.append("▲" if i == pos else "━", style=f"bold {style}" if i == pos else style)
    return band


def render_context(signals: SignalStore) -> Panel:
    """Read-only context list, one line per signal that is set."""
    rows = [
        ("Condition", signals.condition.value.upper()),
        ("Time blocked", f"{signals.time_blocked_min}m"),
        ("Rider onboard", _yes_no(signals.rider_onboard)),
        ("Police present", _yes_no(signals.police_present)),
        ("Drivable", _yes_no(signals.drivable)),
        ("Current intervention", signals.current_intervention.label),
        ("Attempts", str(signals.attempt_count)),
    ]
    if signals.tow_eta_min is not None:
        rows.append(("Tow ETA", f"{signals.tow_eta_min}m"))
    if signals.rider_state:
        rows.append(("Rider state", signals.rider_state))
    if signals.remote_assist_failed:
        rows.append(("Remote assist", "Failed"))
    if signals.lane_partially_blocked:
        rows.append(("Lane", "Partially blocked"))

    table = Table.grid(padding=(0, 1))
    table.add_column(style="bold")
    table.add_column()
    for key, value in rows:
        table.add_row(f"{key}:", value)

    return Panel(table, title="[bold]Context[/bold]", border_style="bright_black", width=52)


def render_summary(summary: list[str]) -> Panel:
    lines = [Text(f"• {fact}") for fact in summary] or [Text("No facts yet.", style="dim")]
    return Panel(Group(*lines), title="[bold]Live Summary[/bold]", border_style="bright_black", width=52)


def render_feed(transcript: list[ChatMessage], limit: int = FEED_LIMIT) -> Panel:
    """Chat feed, most recent limit messages."""
    lines: list[Text] = []
    for m in transcript[-limit:]:
        line = Text()
        line.append(m.timestamp.strftime("%H:%M:%S "), style="dim")
        line.append(f"{m.source}: ", style="bold")
        line.append(m.text, style=_KIND_STYLES.get(m.kind, "white"))
        lines.append(line)
    if not lines:
        lines.append(Text("No messages.", style="dim"))
    return Panel(Group(*lines), title="[bold]Chat[/bold]", border_style="bright_black", width=52)


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"
