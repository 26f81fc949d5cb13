"""Process-wide run state captured once from the CI environment."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .logging import get_logger

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}

logger = get_logger("context")


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        logger.warning("Ignoring non-integer input value %r", value)
        return None


def get_input(environ: Mapping[str, str], name: str) -> str:
    """Read an action input the way the Actions runner exposes it (INPUT_<NAME>)."""
    key = f"INPUT_{name.replace(' ', '_').upper()}"
    return environ.get(key, "").strip()


@dataclass
class ActionInputs:
    """Invocation inputs: credentials, provider hint and publication switches."""

    anthropic_api_key: str = ""
    openai_api_key: str = ""
    ai_provider: str = "auto"
    model: str = ""
    github_token: str = ""
    mode: str = "full"
    post_comment: bool = False
    generate_badge: bool = False
    auto_update_readme: bool = False
    min_score: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ActionInputs":
        env = os.environ if environ is None else environ
        return cls(
            anthropic_api_key=get_input(env, "anthropic_api_key"),
            openai_api_key=get_input(env, "openai_api_key"),
            ai_provider=get_input(env, "ai_provider") or "auto",
            model=get_input(env, "model"),
            github_token=get_input(env, "github_token") or env.get("GITHUB_TOKEN", ""),
            mode=get_input(env, "mode") or "full",
            post_comment=_parse_bool(get_input(env, "post_comment")),
            generate_badge=_parse_bool(get_input(env, "generate_badge")),
            auto_update_readme=_parse_bool(get_input(env, "auto_update_readme")),
            min_score=_parse_int(get_input(env, "min_score")),
        )


@dataclass
class RunContext:
    """Workspace and repository identity for one pipeline run."""

    workspace: Path
    repository: str = ""
    event_name: str = ""
    event: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        workspace: str | Path | None = None,
    ) -> "RunContext":
        env = os.environ if environ is None else environ
        root = workspace or env.get("GITHUB_WORKSPACE") or os.getcwd()
        return cls(
            workspace=Path(root).expanduser().resolve(),
            repository=env.get("GITHUB_REPOSITORY", ""),
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            event=_load_event(env.get("GITHUB_EVENT_PATH")),
        )

    @property
    def repo_name(self) -> str:
        if "/" in self.repository:
            return self.repository.split("/", 1)[1] or "unknown"
        return self.repository or self.workspace.name or "unknown"

    @property
    def description(self) -> Optional[str]:
        repository = self.event.get("repository")
        if isinstance(repository, dict) and isinstance(repository.get("description"), str):
            return repository["description"]
        return None

    @property
    def pull_request_number(self) -> Optional[int]:
        pull_request = self.event.get("pull_request")
        if not isinstance(pull_request, dict):
            return None
        number = pull_request.get("number")
        return number if isinstance(number, int) else None


def _load_event(event_path: Optional[str]) -> Dict[str, Any]:
    if not event_path:
        return {}
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read event payload %s: %s", event_path, exc)
        return {}
    return payload if isinstance(payload, dict) else {}


__all__ = ["ActionInputs", "RunContext", "get_input"]
