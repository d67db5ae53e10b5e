"""DECIDE — CLI demo runner.

Walks a scripted incident (fixtures/demo_chat.json) through the session:
loads a scenario, injects chat messages, applies operator actions and asks
the Q&A assistant, printing the dashboard after each step.

Usage:
    uv run python cli.py [fixture.json]

Set DECIDE_PROVIDER (and the matching API key) to route questions to a live
model; otherwise the assistant answers from canned local replies.
"""

import asyncio
import json
import pathlib
import sys

from rich.console import Console

from assistant.qa_agent import QAAgent
from core.controller import ActionController
from core.session import IncidentSession
from display.render import render_session
from llm import build_client_from_env
from schemas.recommendation import Recommendation

console = Console()

_FIXTURE = pathlib.Path(__file__).parent / "fixtures" / "demo_chat.json"


def _print_outcome(rec: Recommendation | None) -> None:
    if rec is None:
        console.print("  [dim]no change to the recommendation[/dim]")
        return
    console.print(
        f"  → [bold]{rec.state.label}[/bold] / {rec.priority.value}  [dim]{rec.rationale}[/dim]"
    )


async def _run_step(step: dict, session: IncidentSession, controller: ActionController, qa: QAAgent) -> None:
    kind = step.get("type")

    if kind == "chat":
        console.print(f"[bold cyan]chat[/bold cyan]  {step['source']}: {step['text']}")
        result = session.add_chat_message(step["source"], step["text"])
        for candidate in result.applied:
            console.print(f"  [cyan]new signal:[/cyan] {candidate.label}")
        _print_outcome(result.recommendation)

    elif kind == "action":
        name = step["name"]
        console.print(f"[bold yellow]action[/bold yellow]  {name}")
        if name == "override":
            _print_outcome(controller.override(step.get("target")))
        else:
            _print_outcome(getattr(controller, name)())

    elif kind == "ask":
        console.print(f"[bold magenta]ask[/bold magenta]  {step['question']}")
        response = await qa.ask(step["question"], session)
        if response is not None:
            tag = " [dim](local)[/dim]" if response.fallback else ""
            console.print(f"  DECIDE: {response.answer}{tag}")

    else:
        console.print(f"[red]Unknown step type {kind!r} — skipping.[/red]")


async def _run(fixture: pathlib.Path) -> None:
    with open(fixture) as f:
        script = json.load(f)

    session = IncidentSession()
    controller = ActionController(session)
    qa = QAAgent(llm=build_client_from_env())

    console.rule("[bold]DECIDE[/bold]")
    console.print(f"  scenario  [cyan]{script['scenario']}[/cyan]")
    console.print(f"  steps     [cyan]{len(script['steps'])}[/cyan]")
    console.print(f"  provider  [cyan]{type(qa.llm).__name__ if qa.llm else 'local answers'}[/cyan]\n")

    _print_outcome(controller.load_scenario(script["scenario"]))

    for step in script["steps"]:
        await _run_step(step, session, controller, qa)

    console.print()
    console.print(render_session(session))


def main() -> None:
    fixture = pathlib.Path(sys.argv[1]) if len(sys.argv) > 1 else _FIXTURE
    asyncio.run(_run(fixture))


if __name__ == "__main__":
    main()
