"""LLM provider clients."""

import logging
import os

from dotenv import load_dotenv

from llm.base import LLMClient
from llm.claude import ClaudeClient
from llm.openrouter import OpenRouterClient

logger = logging.getLogger(__name__)

__all__ = ["LLMClient", "ClaudeClient", "OpenRouterClient", "build_client_from_env"]

_PROVIDERS = {
    "anthropic": ClaudeClient,
    "openrouter": OpenRouterClient,
}


def build_client_from_env() -> LLMClient | None:
    """Build the client named by DECIDE_PROVIDER, or None.

    None means the Q&A assistant answers from canned local replies only.
    That is also what happens when the provider's API key is missing, so a
    misconfigured provider degrades instead of preventing startup.

    Environment:
        DECIDE_PROVIDER: "anthropic" or "openrouter". Unset disables the
            provider.
        DECIDE_MODEL: Optional model ID override.
    """
    load_dotenv()
    provider = os.environ.get("DECIDE_PROVIDER", "").strip().lower()
    if not provider:
        return None

    client_cls = _PROVIDERS.get(provider)
    if client_cls is None:
        logger.warning("Unknown DECIDE_PROVIDER '%s' — using canned answers.", provider)
        return None

    model = os.environ.get("DECIDE_MODEL")
    try:
        return client_cls(model) if model else client_cls()
    except KeyError as exc:
        logger.warning("%s not set — using canned answers.", exc)
        return None
