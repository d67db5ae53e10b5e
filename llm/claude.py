"""Claude LLM client.

Talks to Anthropic through its OpenAI-compatible endpoint, so it shares the
openai SDK with OpenRouterClient.

Required environment variable:
    ANTHROPIC_API_KEY: Your Anthropic API key. Add to .env and never commit.
"""

import os

import openai
from dotenv import load_dotenv

from llm.base import LLMClient, chat_messages

load_dotenv()

DEFAULT_MODEL = "claude-3-5-haiku-latest"


class ClaudeClient(LLMClient):
    """LLMClient implementation backed by the Anthropic API."""

    def __init__(self, model: str = DEFAULT_MODEL, max_tokens: int = 160):
        """Initialize the client for a specific Claude model.

        Args:
            model: Anthropic model ID string.
            max_tokens: Completion token cap per answer.

        Raises:
            KeyError: If ANTHROPIC_API_KEY is not set in the environment.
        """
        self.model = model
        self.max_tokens = max_tokens
        self.client = openai.AsyncOpenAI(
            base_url=os.environ.get("ANTHROPIC_BASE_URL", "https://api.anthropic.com/v1/"),
            api_key=os.environ["ANTHROPIC_API_KEY"],
        )

    async def complete(self, system: str, user: str) -> str:
        """Send a prompt to the configured model via Anthropic."""
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=chat_messages(system, user),
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""
