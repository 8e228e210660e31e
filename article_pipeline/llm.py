# article_pipeline/llm.py
from typing import Optional, Protocol

from openai import OpenAI
from openai import APIError, APIConnectionError, APITimeoutError, RateLimitError

from .config import Settings, load_settings


class CompletionError(RuntimeError):
    """Unrecoverable completion-service failure (API error, timeout, rate limit)."""


class CompletionClient(Protocol):
    def complete(self, system: str, user: str, temperature: float = 0.3) -> str:
        ...


class OpenAICompletionClient:
    """
    Chat-completion client returning plain Markdown text.

    Pass ``client`` to reuse an existing ``OpenAI`` instance (or a test double);
    otherwise one is created lazily from settings on first use.
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        settings: Optional[Settings] = None,
        model: Optional[str] = None,
    ):
        self._client = client
        self.settings = settings or load_settings()
        self.model = model or self.settings.model_name

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.settings.require_api_key(),
                timeout=self.settings.request_timeout,
            )
        return self._client

    def complete(self, system: str, user: str, temperature: float = 0.3) -> str:
        """
        Call the chat model and return Markdown text.

        Args:
            system: System prompt text
            user: User prompt text
            temperature: Sampling temperature (0.0-2.0). Lower = more deterministic.
        """
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user",   "content": user},
                ],
            )
        except (APITimeoutError, APIConnectionError, RateLimitError, APIError) as e:
            raise CompletionError(f"OpenAI API error: {e}") from e

        content = resp.choices[0].message.content if resp.choices and resp.choices[0].message else ""
        return (content or "").strip()
