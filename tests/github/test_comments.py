"""Tests for the gh-backed PR comment poster."""

from __future__ import annotations

import json
import subprocess

import pytest

from karen.errors import PublishError
from karen.github.comments import CommentPoster


class FakeRunner:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls = []

    def __call__(self, args, *, input, env):
        self.calls.append((list(args), input, env))
        if self.error is not None:
            raise self.error
        return ""


def test_post_uses_gh_api_with_json_body() -> None:
    runner = FakeRunner()

    CommentPoster(token="ghs_123", runner=runner).post("acme/demo", 42, "Hello **PR**")

    ((args, stdin, env),) = runner.calls
    assert args == [
        "gh",
        "api",
        "repos/acme/demo/issues/42/comments",
        "--method",
        "POST",
        "--input",
        "-",
    ]
    assert json.loads(stdin) == {"body": "Hello **PR**"}
    assert env["GH_TOKEN"] == "ghs_123"


def test_post_rejects_malformed_repository() -> None:
    runner = FakeRunner()

    with pytest.raises(PublishError):
        CommentPoster(runner=runner).post("demo", 1, "body")
    assert runner.calls == []


def test_post_reports_missing_gh() -> None:
    poster = CommentPoster(runner=FakeRunner(error=FileNotFoundError("gh")))

    with pytest.raises(PublishError) as excinfo:
        poster.post("acme/demo", 1, "body")
    assert "not installed" in str(excinfo.value)


def test_post_reports_gh_failure() -> None:
    error = subprocess.CalledProcessError(1, ["gh"], stderr="HTTP 403: Resource not accessible\n")
    poster = CommentPoster(runner=FakeRunner(error=error))

    with pytest.raises(PublishError) as excinfo:
        poster.post("acme/demo", 1, "body")
    assert "HTTP 403" in str(excinfo.value)
