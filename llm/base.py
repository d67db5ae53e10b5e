"""Provider-neutral LLM interface.

The Q&A assistant only ever sees an LLMClient. Whether answers come from
Claude, from a model behind OpenRouter, or from nowhere at all (no client,
canned local answers) is decided once, at wiring time.
"""

from abc import ABC, abstractmethod


class LLMClient(ABC):
    """One async call: system prompt + user turn in, reply text out.

    Concrete clients are built by llm.build_client_from_env(). A new
    provider only needs a subclass with complete().
    """

    @abstractmethod
    async def complete(self, system: str, user: str) -> str:
        """Return the model's reply to a single-turn conversation.

        Args:
            system: Role instructions and the JSON answer contract.
            user: The serialized QARequest.

        Returns:
            Reply text. Empty string if the provider returned no content.
        """
        ...


def chat_messages(system: str, user: str) -> list[dict]:
    """OpenAI-style message list shared by the SDK-backed clients."""
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]
