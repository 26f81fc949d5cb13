"""End-to-end pipeline tests with a fake model backend."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from karen.context import ActionInputs, RunContext
from karen.errors import ConfigError, ParseError, PreconditionError
from karen.orchestrator import Orchestrator, RunStage
from karen.publisher import ReportPublisher
from tests._fixtures.backends import FakeBackend, fenced, review_payload

MOMENT = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)


class RecordingPoster:
    def __init__(self) -> None:
        self.calls = []

    def post(self, repository: str, issue_number: int, body: str) -> None:
        self.calls.append((repository, issue_number, body))


class Harness:
    """Wires an orchestrator to a fake backend and a recording comment poster."""

    def __init__(self, response: str) -> None:
        self.backend = FakeBackend(response)
        self.poster = RecordingPoster()
        self.factory_calls = []
        self.orchestrator = Orchestrator(
            backend_factory=self._backend_factory,
            publisher_factory=self._publisher_factory,
            clock=lambda: MOMENT,
        )

    def _backend_factory(self, provider: str, api_key: str, *, model=None):
        self.factory_calls.append((provider, api_key, model))
        return self.backend

    def _publisher_factory(self, context: RunContext, inputs: ActionInputs) -> ReportPublisher:
        return ReportPublisher(context.workspace, comment_poster=self.poster, clock=lambda: MOMENT)


@pytest.fixture
def workspace(repo_builder) -> Path:
    repo_builder.write(
        {
            "README.md": "# Demo\n\nHello\n",
            "src/app.py": "def main():\n    return 1\n",
        }
    )
    return repo_builder.path()


def _context(workspace: Path, **event) -> RunContext:
    return RunContext(workspace=workspace, repository="acme/demo", event=event)


def test_full_run_publishes_all_artifacts(workspace: Path) -> None:
    harness = Harness(fenced(review_payload(62)))
    inputs = ActionInputs(
        anthropic_api_key="sk-ant",
        model="claude-test",
        generate_badge=True,
        auto_update_readme=True,
    )

    outcome = harness.orchestrator.run(_context(workspace), inputs)

    assert harness.orchestrator.stage is RunStage.PARSED
    assert harness.factory_calls == [("anthropic", "sk-ant", "claude-test")]
    ((system, prompt),) = harness.backend.calls
    assert "Karen" in system
    assert "Review the repository `demo`." in prompt
    assert "src/app.py" in prompt

    assert outcome.review.score.total == 62
    assert outcome.review.score.grade == "D"
    assert outcome.provider == "anthropic"
    assert outcome.previous_score is None
    assert outcome.publish is not None and outcome.publish.failures == []

    karen_dir = workspace / ".karen"
    score = json.loads((karen_dir / "score.json").read_text(encoding="utf-8"))
    assert score["grade"] == "D"
    assert score["timestamp"] == "2026-10-18T09:30:00.000Z"
    assert "It runs. Barely." in (karen_dir / "review.md").read_text(encoding="utf-8")
    assert len(list((karen_dir / "history").iterdir())) == 1
    assert (karen_dir / "badges" / "score-badge.svg").is_file()
    readme = (workspace / "README.md").read_text(encoding="utf-8")
    assert readme.count("<!-- karen-badge-start -->") == 1
    assert harness.poster.calls == []


def test_second_run_reports_delta_on_pull_request(workspace: Path) -> None:
    (workspace / ".karen").mkdir()
    (workspace / ".karen" / "score.json").write_text('{"total": 60}', encoding="utf-8")
    harness = Harness(fenced(review_payload(62)))
    inputs = ActionInputs(openai_api_key="sk-oai", github_token="ghs_1", post_comment=True)

    outcome = harness.orchestrator.run(_context(workspace, pull_request={"number": 5}), inputs)

    assert outcome.previous_score == 60
    assert outcome.publish.comment_posted is True
    ((repository, number, body),) = harness.poster.calls
    assert (repository, number) == ("acme/demo", 5)
    assert "(+2 since last review)" in body


def test_comment_skipped_without_token(workspace: Path, caplog) -> None:
    harness = Harness(fenced(review_payload(62)))
    inputs = ActionInputs(anthropic_api_key="sk-ant", post_comment=True)

    outcome = harness.orchestrator.run(_context(workspace, pull_request={"number": 5}), inputs)

    assert outcome.publish.comment_posted is False
    assert harness.poster.calls == []
    assert "no github_token" in caplog.text


def test_parse_failure_writes_nothing(workspace: Path) -> None:
    harness = Harness("Sorry, I can't review this.")

    with pytest.raises(ParseError):
        harness.orchestrator.run(_context(workspace), ActionInputs(anthropic_api_key="sk-ant"))

    assert harness.orchestrator.stage is RunStage.PARSE_FAILED
    assert not (workspace / ".karen").exists()
    assert (workspace / "README.md").read_text(encoding="utf-8") == "# Demo\n\nHello\n"


@pytest.mark.parametrize(
    "inputs",
    [
        ActionInputs(),
        ActionInputs(anthropic_api_key="sk-ant", openai_api_key="sk-oai"),
        ActionInputs(ai_provider="openai", anthropic_api_key="sk-ant"),
        ActionInputs(anthropic_api_key="sk-ant", mode="yolo"),
    ],
)
def test_precondition_errors_happen_before_any_work(workspace: Path, inputs: ActionInputs) -> None:
    harness = Harness(fenced(review_payload()))

    with pytest.raises(PreconditionError):
        harness.orchestrator.run(_context(workspace), inputs)

    assert harness.factory_calls == []
    assert harness.backend.calls == []
    assert not (workspace / ".karen").exists()


def test_invalid_config_aborts_before_backend(workspace: Path) -> None:
    (workspace / ".karen").mkdir()
    (workspace / ".karen" / "config.yml").write_text("weights: [unclosed\n", encoding="utf-8")
    harness = Harness(fenced(review_payload()))

    with pytest.raises(ConfigError):
        harness.orchestrator.run(_context(workspace), ActionInputs(anthropic_api_key="sk-ant"))

    assert harness.backend.calls == []
    assert not (workspace / ".karen" / "score.json").exists()


def test_dry_run_reviews_without_writing(workspace: Path) -> None:
    harness = Harness(fenced(review_payload(91)))
    inputs = ActionInputs(anthropic_api_key="sk-ant", mode="dry-run", generate_badge=True)

    outcome = harness.orchestrator.run(_context(workspace), inputs)

    assert outcome.dry_run is True
    assert outcome.publish is None
    assert outcome.review.score.grade == "A"
    assert not (workspace / ".karen").exists()


def test_min_score_only_warns(workspace: Path, caplog) -> None:
    harness = Harness(fenced(review_payload(62)))
    inputs = ActionInputs(anthropic_api_key="sk-ant", min_score=70)

    outcome = harness.orchestrator.run(_context(workspace), inputs)

    assert outcome.review.score.total == 62
    assert "below minimum threshold 70" in caplog.text
    assert (workspace / ".karen" / "score.json").is_file()


def test_non_finite_total_is_a_parse_failure(workspace: Path) -> None:
    harness = Harness('{"score": {"total": NaN}, "summary": "?"}')

    with pytest.raises(ParseError):
        harness.orchestrator.run(_context(workspace), ActionInputs(anthropic_api_key="sk-ant"))

    assert harness.orchestrator.stage is RunStage.PARSE_FAILED
    assert not (workspace / ".karen").exists()
