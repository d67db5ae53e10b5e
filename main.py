"""DECIDE — HTTP API for a single incident session.

Exposes the session to a dashboard frontend. This file handles three
concerns:

1. Intake — inbound chat messages run the aggregate → extract → gate
   pipeline; operator questions go to the Q&A assistant.

2. Actions — confirm, escalate, override, scenario load, time advance and
   attempt reset, each followed by re-evaluation.

3. Read API — the frontend polls GET /api/session for the current
   recommendation, signals, summary and transcript tail.

There is one in-process session. No persistence, no users: restarting the
server (or POST /api/session/reset) starts a fresh incident.

Run locally:
    uv run uvicorn main:app --reload
"""

import logging
import logging.handlers
import os
import pathlib

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

load_dotenv()

from assistant.qa_agent import DEFAULT_TIMEOUT_SECONDS, QAAgent
from core.controller import ActionController
from core.scenarios import SCENARIOS
from core.session import DEMO_SEED, IncidentSession
from llm import build_client_from_env
from schemas.chat import ChatMessage
from schemas.events import SessionEvent
from schemas.recommendation import Recommendation
from schemas.signals import SignalCandidate, SignalStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_FILE = pathlib.Path(__file__).parent / "decide.log"
LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_file_handler = logging.handlers.RotatingFileHandler(
    LOG_FILE, maxBytes=1_000_000, backupCount=3, encoding="utf-8",
)
_file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

_root_logger = logging.getLogger()
_root_logger.setLevel(logging.INFO)
_root_logger.addHandler(_file_handler)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App + CORS
# ---------------------------------------------------------------------------

app = FastAPI(title="DECIDE")

# ALLOWED_ORIGINS env var overrides the default for other frontend hosts.
_origins = os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Session setup
# ---------------------------------------------------------------------------

qa_agent = QAAgent(
    llm=build_client_from_env(),
    timeout_seconds=float(os.environ.get("DECIDE_QA_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)),
)


def _new_session() -> IncidentSession:
    """Fresh session, seeded with the demo context when DECIDE_DEMO_SEED is set."""
    seeded = os.environ.get("DECIDE_DEMO_SEED", "").strip().lower() in ("1", "true", "yes")
    return IncidentSession(seed_messages=DEMO_SEED if seeded else None)


session = _new_session()
controller = ActionController(session)


def reset_session() -> None:
    """Replace the session with a fresh one. Used by /api/session/reset."""
    global session, controller
    session = _new_session()
    controller = ActionController(session)
    logger.info("Session reset.")


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------

class ChatIn(BaseModel):
    source: str = Field(min_length=1)
    text: str | None = None


class AskIn(BaseModel):
    question: str = Field(min_length=1)


class OverrideIn(BaseModel):
    target: str | None = None


class SessionView(BaseModel):
    """Everything the dashboard renders, in one poll."""

    recommendation: Recommendation
    marker_position: float
    signals: SignalStore
    summary: list[str]
    transcript: list[ChatMessage]
    events: list[SessionEvent]
    seconds_since_evaluation: int


class ActionOut(BaseModel):
    """Result of an action. applied is False for an ignored no-op."""

    applied: bool
    recommendation: Recommendation


class ChatOut(BaseModel):
    applied: list[SignalCandidate]
    summary: list[str]
    recommendation: Recommendation
    reevaluated: bool


class AskOut(BaseModel):
    answer: str
    fallback: bool
    confidence: str | None = None
    recommendation: Recommendation


async def _parse(request: Request, model: type[BaseModel]) -> BaseModel:
    """Validate a JSON body, turning any failure into a 400."""
    try:
        body = await request.json()
        return model.model_validate(body)
    except Exception as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _action(rec: Recommendation | None) -> ActionOut:
    if rec is None:
        return ActionOut(applied=False, recommendation=session.recommendation())
    return ActionOut(applied=True, recommendation=rec)


# ---------------------------------------------------------------------------
# Health + read API
# ---------------------------------------------------------------------------

@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/session", response_model=SessionView)
async def get_session():
    """Return the current dashboard view. The transcript is capped at 50."""
    rec = session.recommendation()
    return SessionView(
        recommendation=rec,
        marker_position=session.marker_position(),
        signals=session.signals,
        summary=session.summary,
        transcript=session.transcript[-50:],
        events=session.events[-50:],
        seconds_since_evaluation=session.seconds_since_evaluation(),
    )


@app.get("/api/scenarios")
def list_scenarios():
    return {name: preset.model_dump(mode="json") for name, preset in SCENARIOS.items()}


@app.post("/api/session/reset", response_model=ActionOut)
async def post_reset():
    reset_session()
    return ActionOut(applied=True, recommendation=session.recommendation())


# ---------------------------------------------------------------------------
# Chat + Q&A
# ---------------------------------------------------------------------------

@app.post("/api/chat", response_model=ChatOut)
async def post_chat(request: Request):
    """Inject an inbound chat message and run the pipeline."""
    body = await _parse(request, ChatIn)
    result = session.add_chat_message(body.source, body.text)
    return ChatOut(
        applied=result.applied,
        summary=result.summary,
        recommendation=result.recommendation or session.recommendation(),
        reevaluated=result.recommendation is not None,
    )


@app.post("/api/ask", response_model=AskOut)
async def post_ask(request: Request):
    """Ask the Q&A assistant. Provider failures fall back to local answers."""
    body = await _parse(request, AskIn)
    response = await qa_agent.ask(body.question, session)
    if response is None:
        raise HTTPException(status_code=400, detail="Question is blank.")
    return AskOut(
        answer=response.answer,
        fallback=response.fallback,
        confidence=response.confidence,
        recommendation=session.recommendation(),
    )


# ---------------------------------------------------------------------------
# Operator actions
# ---------------------------------------------------------------------------
#
# Handlers that touch the session are async def so they run on the event
# loop, one at a time. None of them awaits in the middle of a mutation.

@app.post("/api/actions/confirm", response_model=ActionOut)
async def post_confirm():
    return _action(controller.confirm())


@app.post("/api/actions/escalate", response_model=ActionOut)
async def post_escalate():
    return _action(controller.escalate())


@app.post("/api/actions/override", response_model=ActionOut)
async def post_override(request: Request):
    body = await _parse(request, OverrideIn)
    return _action(controller.override(body.target))


@app.post("/api/actions/advance-time", response_model=ActionOut)
async def post_advance_time():
    return _action(controller.advance_time())


@app.post("/api/actions/reset-attempts", response_model=ActionOut)
async def post_reset_attempts():
    return _action(controller.reset_attempts())


@app.post("/api/scenarios/{name}", response_model=ActionOut)
async def post_scenario(name: str):
    return _action(controller.load_scenario(name))
