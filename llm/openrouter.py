"""OpenRouter client.

One key, many vendors: OpenRouter fronts models from several providers behind
an OpenAI-compatible endpoint, so the model is just a string (DECIDE_MODEL).

Required environment variable:
    OPENROUTER_API_KEY: Add to .env and never commit.
"""

import os

import openai
from dotenv import load_dotenv

from llm.base import LLMClient, chat_messages

load_dotenv()

DEFAULT_MODEL = "openai/gpt-4o-mini"


class OpenRouterClient(LLMClient):
    """LLMClient backed by OpenRouter.

    Answers are capped at 25 words by the prompt, so each request gets a
    small max_tokens and a low temperature.

    Attributes:
        model: OpenRouter model ID, e.g. "openai/gpt-4o-mini".
        max_tokens: Completion cap per answer.
        client: Async openai client pointed at OpenRouter.
    """

    def __init__(self, model: str = DEFAULT_MODEL, max_tokens: int = 160):
        """Build the SDK client.

        Raises:
            KeyError: OPENROUTER_API_KEY is not set. Raised here, not on the
                first question.
        """
        self.model = model
        self.max_tokens = max_tokens
        self.client = openai.AsyncOpenAI(
            base_url="https://openrouter.ai/api/v1",
            api_key=os.environ["OPENROUTER_API_KEY"],
            default_headers={"X-Title": "DECIDE"},
        )

    async def complete(self, system: str, user: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=chat_messages(system, user),
            temperature=0.2,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""
