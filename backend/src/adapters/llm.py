import os
from typing import Any, Optional

import requests
from openai import OpenAI, OpenAIError

from adapters.base import BaseLLM
from adapters.utils import create_session_with_pooling
from errors import ConfigurationError, GenerationError

DEFAULT_TEMPERATURE = 0.2


class OpenAILLM(BaseLLM):
    """OpenAI chat completion provider."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ):
        api_key = kwargs.pop("api_key", None) or os.environ.get("OPENAI_API_KEY")
        base_url = kwargs.pop("base_url", None) or None
        timeout = kwargs.pop("timeout", None)
        super().__init__(model, **kwargs)

        client_kwargs: dict[str, Any] = {"api_key": api_key, "base_url": base_url}
        if timeout:
            client_kwargs["timeout"] = timeout

        try:
            self.client = OpenAI(**client_kwargs)
        except OpenAIError as e:
            raise ConfigurationError(f"Cannot create OpenAI client: {e}") from e
        self.temperature = temperature
        self.max_tokens = max_tokens

    def _get_completion_params(
        self, messages: list[dict[str, str]], **kwargs: Any
    ) -> dict[str, Any]:
        """Build parameters for chat completion."""
        return {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

    def generate(self, prompt: str, **kwargs: Any) -> str:
        return self.chat([{"role": "user", "content": prompt}], **kwargs)

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        params = self._get_completion_params(messages, **kwargs)
        try:
            response = self.client.chat.completions.create(**params)
        except OpenAIError as e:
            raise GenerationError(f"OpenAI chat completion failed: {e}") from e
        return response.choices[0].message.content or ""


class OllamaLLM(BaseLLM):
    """Ollama local LLM provider with connection pooling."""

    def __init__(
        self,
        model: str = "llama3",
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = None,
        base_url: str = "http://localhost:11434",
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.session = create_session_with_pooling()

    def _build_payload(self, **kwargs: Any) -> dict[str, Any]:
        """Build request payload for Ollama API."""
        options: dict[str, Any] = {
            "temperature": kwargs.get("temperature", self.temperature),
        }
        max_tokens = kwargs.get("max_tokens", self.max_tokens)
        if max_tokens:
            options["num_predict"] = max_tokens
        return {"model": self.model, "stream": False, "options": options}

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self.session.post(
                f"{self.base_url}{path}",
                json=payload,
                timeout=120,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise GenerationError(f"Ollama request to {path} failed: {e}") from e
        return response.json()

    def generate(self, prompt: str, **kwargs: Any) -> str:
        payload = self._build_payload(**kwargs)
        payload["prompt"] = prompt
        return self._post("/api/generate", payload)["response"]

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        payload = self._build_payload(**kwargs)
        payload["messages"] = messages
        return self._post("/api/chat", payload)["message"]["content"]
