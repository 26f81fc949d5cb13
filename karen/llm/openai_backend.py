"""Adapter for the OpenAI Chat Completions API."""

from __future__ import annotations

from typing import Any, Optional

import openai

from ..errors import BackendError


class OpenAIBackend:
    """Submits one JSON-mode chat completion per review."""

    name = "openai"
    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        *,
        api_key: str,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        client: Optional[Any] = None,
    ) -> None:
        self.model = model or self.DEFAULT_MODEL
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client or openai.OpenAI(api_key=api_key, max_retries=0)

    def submit(self, system: str, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as exc:
            raise BackendError(f"OpenAI request failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            raise BackendError("No response from OpenAI")
        return content


__all__ = ["OpenAIBackend"]
