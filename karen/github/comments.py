"""Pull-request comment transport through the GitHub CLI."""

from __future__ import annotations

import json
import os
import subprocess
from typing import Callable, Dict, Sequence

from ..errors import PublishError
from ..logging import get_logger

logger = get_logger("github.comments")

CommandRunner = Callable[..., str]


class CommentPoster:
    """Creates issue comments with `gh api`."""

    def __init__(self, token: str | None = None, runner: CommandRunner | None = None) -> None:
        self.token = token
        self._runner = runner or self._default_runner

    def post(self, repository: str, issue_number: int, body: str) -> None:
        """Create one comment on ``repository``'s issue or pull request."""
        if not repository or "/" not in repository:
            raise PublishError(f"Cannot post a comment without an owner/name repository: {repository!r}")

        args = [
            "gh",
            "api",
            f"repos/{repository}/issues/{issue_number}/comments",
            "--method",
            "POST",
            "--input",
            "-",
        ]
        env = os.environ.copy()
        if self.token:
            env["GH_TOKEN"] = self.token

        try:
            self._runner(args, input=json.dumps({"body": body}), env=env)
        except FileNotFoundError as exc:
            raise PublishError("GitHub CLI 'gh' is not installed") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit code {exc.returncode}"
            raise PublishError(f"Posting the PR comment failed: {detail}") from exc
        logger.debug("Posted comment to %s#%d", repository, issue_number)

    @staticmethod
    def _default_runner(args: Sequence[str], *, input: str, env: Dict[str, str]) -> str:
        completed = subprocess.run(
            list(args),
            input=input,
            env=env,
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


__all__ = ["CommentPoster"]
