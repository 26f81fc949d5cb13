"""Adapter for the Anthropic Messages API."""

from __future__ import annotations

from typing import Any, Optional

import anthropic

from ..errors import BackendError


class AnthropicBackend:
    """Submits one Messages API request per review."""

    name = "anthropic"
    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        *,
        api_key: str,
        model: str | None = None,
        max_tokens: int = 4096,
        client: Optional[Any] = None,
    ) -> None:
        self.model = model or self.DEFAULT_MODEL
        self.max_tokens = max_tokens
        self._client = client or anthropic.Anthropic(api_key=api_key, max_retries=0)

    def submit(self, system: str, prompt: str) -> str:
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as exc:
            raise BackendError(f"Anthropic request failed: {exc}") from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise BackendError("Unexpected response type from Claude: no text content")
        return text


__all__ = ["AnthropicBackend"]
