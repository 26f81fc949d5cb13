"""Provider selection and the backend protocol shared by model adapters."""

from __future__ import annotations

from typing import Optional, Protocol, Tuple

from ..errors import PreconditionError
from .anthropic_backend import AnthropicBackend
from .openai_backend import OpenAIBackend

ANTHROPIC = "anthropic"
OPENAI = "openai"
AUTO = "auto"

PROVIDERS: Tuple[str, ...] = (ANTHROPIC, OPENAI)

_PROVIDER_LABELS = {ANTHROPIC: "Anthropic", OPENAI: "OpenAI"}


class Backend(Protocol):
    """A model provider that turns a system directive and a prompt into text."""

    name: str
    model: str

    def submit(self, system: str, prompt: str) -> str:
        ...


def select_provider(
    hint: str | None,
    anthropic_api_key: Optional[str],
    openai_api_key: Optional[str],
) -> Tuple[str, str]:
    """Resolve the provider name and API key before any network call.

    ``auto`` picks the provider whose key is present and refuses to guess when
    both or neither are set. An explicit provider requires its own key.
    """
    choice = (hint or AUTO).strip().lower() or AUTO
    keys = {ANTHROPIC: anthropic_api_key or "", OPENAI: openai_api_key or ""}

    if choice == AUTO:
        present = [provider for provider in PROVIDERS if keys[provider]]
        if not present:
            raise PreconditionError("Either anthropic_api_key or openai_api_key must be provided")
        if len(present) > 1:
            raise PreconditionError(
                "Both anthropic_api_key and openai_api_key are set; "
                "set ai_provider to 'anthropic' or 'openai' to choose one"
            )
        choice = present[0]

    if choice not in PROVIDERS:
        raise PreconditionError(
            f"Unknown ai_provider '{hint}'. Expected one of: auto, {', '.join(PROVIDERS)}"
        )
    if not keys[choice]:
        raise PreconditionError(
            f"{_PROVIDER_LABELS[choice]} API key required when ai_provider is {choice}"
        )
    return choice, keys[choice]


def create_backend(provider: str, api_key: str, *, model: str | None = None) -> Backend:
    """Instantiate the backend adapter for ``provider``."""
    if provider == ANTHROPIC:
        return AnthropicBackend(api_key=api_key, model=model)
    if provider == OPENAI:
        return OpenAIBackend(api_key=api_key, model=model)
    raise PreconditionError(f"Unknown ai_provider '{provider}'")


__all__ = ["ANTHROPIC", "AUTO", "Backend", "OPENAI", "PROVIDERS", "create_backend", "select_provider"]
