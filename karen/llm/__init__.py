"""Model backends behind a single submit(system, prompt) capability."""

from .runner import ANTHROPIC, AUTO, OPENAI, PROVIDERS, Backend, create_backend, select_provider

__all__ = ["ANTHROPIC", "AUTO", "Backend", "OPENAI", "PROVIDERS", "create_backend", "select_provider"]
