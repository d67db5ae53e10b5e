"""Chat transcript schema.

The transcript is append-only: messages are added in arrival order and never
edited, removed or reordered. The Live Summary is recomputed from it in full.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class MessageKind(str, Enum):
    """Who authored a chat message.

    Values:
        HUMAN: Operators, mission control, field staff.
        SYSTEM: Notifications the session emits when a signal is promoted.
        AGENT: Answers from the Q&A assistant.
    """

    HUMAN = "human"
    SYSTEM = "system"
    AGENT = "agent"


class ChatMessage(BaseModel):
    source: str
    text: str = ""
    kind: MessageKind = MessageKind.HUMAN
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
