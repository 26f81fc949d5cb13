"""Publication of review artifacts under the .karen directory."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from .config import KAREN_DIRNAME
from .errors import KarenError, PublishError
from .github.comments import CommentPoster
from .logging import get_logger
from .models import ReviewResult
from .postproc.badges import BadgeRenderer
from .postproc.markers import insert_badge_into_readme
from .postproc.report import ReportFormatter

SCORE_FILENAME = "score.json"
REVIEW_FILENAME = "review.md"
HISTORY_DIRNAME = "history"
BADGES_DIRNAME = "badges"
BADGE_FILENAME = "score-badge.svg"
README_FILENAME = "README.md"


@dataclass
class PublishOptions:
    generate_badge: bool = False
    auto_update_readme: bool = False
    post_comment: bool = False


@dataclass
class PublishTarget:
    """Where the review is reported: repository slug and triggering pull request."""

    repo_name: str
    repository: str = ""
    pull_request: Optional[int] = None


@dataclass
class PublishOutcome:
    """Paths written by a publish run and the steps that failed."""

    score_path: Optional[Path] = None
    review_path: Optional[Path] = None
    history_path: Optional[Path] = None
    badge_path: Optional[Path] = None
    readme_updated: bool = False
    comment_posted: bool = False
    failures: List[str] = field(default_factory=list)


def history_stamp(moment: datetime) -> str:
    """Return a filesystem-safe, sortable, minute-granular timestamp."""
    iso = moment.astimezone(UTC).isoformat(timespec="minutes")
    return iso.replace("+00:00", "").replace(":", "-").replace(".", "-")


class ReportPublisher:
    """Writes the score snapshot, report, history entry, badge, README block and PR comment.

    Steps run in a fixed order. A failing step is logged and recorded, the
    remaining steps still run and nothing already written is rolled back.
    """

    def __init__(
        self,
        workspace: Path,
        *,
        formatter: ReportFormatter | None = None,
        badge_renderer: BadgeRenderer | None = None,
        comment_poster: CommentPoster | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.workspace = workspace
        self.karen_dir = workspace / KAREN_DIRNAME
        self.formatter = formatter or ReportFormatter()
        self.badge_renderer = badge_renderer or BadgeRenderer()
        self.comment_poster = comment_poster or CommentPoster()
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("publisher")

    @property
    def score_path(self) -> Path:
        return self.karen_dir / SCORE_FILENAME

    @property
    def badge_path(self) -> Path:
        return self.karen_dir / BADGES_DIRNAME / BADGE_FILENAME

    def previous_score(self) -> Optional[int]:
        """Return the total from the last run's score.json, if readable."""
        try:
            data = json.loads(self.score_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            self.logger.warning("Ignoring unreadable previous score: %s", exc)
            return None
        total = data.get("total") if isinstance(data, dict) else None
        if isinstance(total, bool) or not isinstance(total, (int, float)):
            return None
        return int(total)

    def publish(
        self,
        review: ReviewResult,
        target: PublishTarget,
        options: PublishOptions,
        *,
        previous_score: Optional[int] = None,
        weights: Mapping[str, int] | None = None,
    ) -> PublishOutcome:
        outcome = PublishOutcome()
        markdown = self.formatter.review_markdown(review, target.repo_name, weights)

        outcome.score_path = self._step(outcome, "score snapshot", lambda: self._write_score(review))
        if outcome.score_path:
            self.logger.info("Saved score to %s", self._display(outcome.score_path))

        outcome.review_path = self._step(outcome, "review report", lambda: self._write_review(markdown))
        if outcome.review_path:
            self.logger.info("Saved review to %s", self._display(outcome.review_path))

        outcome.history_path = self._step(outcome, "history entry", lambda: self._append_history(markdown))
        if outcome.history_path:
            self.logger.info("Saved to history: %s", self._display(outcome.history_path))

        if options.generate_badge:
            outcome.badge_path = self._step(outcome, "badge", lambda: self._write_badge(review))
            if outcome.badge_path:
                self.logger.info("Generated badge: %s", self._display(outcome.badge_path))
            if outcome.badge_path and options.auto_update_readme:
                updated = self._step(outcome, "README badge", self._update_readme)
                outcome.readme_updated = bool(updated)
                if updated is not None:
                    self.logger.info(
                        "Updated badge in %s" if updated else "Badge in %s already up to date",
                        README_FILENAME,
                    )

        if options.post_comment:
            if target.pull_request is None:
                self.logger.debug("Not a pull request event; skipping PR comment")
            else:
                body = self.formatter.pr_comment(review, target.repo_name, previous_score)
                posted = self._step(
                    outcome,
                    "PR comment",
                    lambda: self._post_comment(target.repository, target.pull_request, body),
                )
                outcome.comment_posted = bool(posted)
                if posted:
                    self.logger.info("Posted PR comment")

        return outcome

    def _step(self, outcome: PublishOutcome, name: str, action: Callable[[], object]):
        try:
            return action()
        except (OSError, KarenError) as exc:
            self.logger.warning("Could not publish %s: %s", name, exc)
            outcome.failures.append(f"{name}: {exc}")
            return None

    def _write_score(self, review: ReviewResult) -> Path:
        self.karen_dir.mkdir(parents=True, exist_ok=True)
        self.score_path.write_text(json.dumps(review.score.to_dict(), indent=2) + "\n", encoding="utf-8")
        return self.score_path

    def _write_review(self, markdown: str) -> Path:
        path = self.karen_dir / REVIEW_FILENAME
        self.karen_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(markdown, encoding="utf-8")
        return path

    def _append_history(self, markdown: str) -> Path:
        history_dir = self.karen_dir / HISTORY_DIRNAME
        history_dir.mkdir(parents=True, exist_ok=True)
        stamp = history_stamp(self._clock())
        suffix = 0
        while True:
            name = f"{stamp}.md" if suffix == 0 else f"{stamp}-{suffix}.md"
            path = history_dir / name
            try:
                # create-only: existing entries are never rewritten
                with path.open("x", encoding="utf-8") as handle:
                    handle.write(markdown)
            except FileExistsError:
                suffix += 1
                continue
            return path

    def _write_badge(self, review: ReviewResult) -> Path:
        self.badge_path.parent.mkdir(parents=True, exist_ok=True)
        svg = self.badge_renderer.render(review.score.total, review.score.grade)
        self.badge_path.write_text(svg, encoding="utf-8")
        return self.badge_path

    def _update_readme(self) -> bool:
        readme_path = self.workspace / README_FILENAME
        relative = os.path.relpath(self.badge_path, readme_path.parent)
        return insert_badge_into_readme(readme_path, Path(relative).as_posix())

    def _post_comment(self, repository: str, pull_request: int, body: str) -> bool:
        if not repository:
            raise PublishError("GITHUB_REPOSITORY is not set")
        self.comment_poster.post(repository, pull_request, body)
        return True

    def _display(self, path: Path) -> str:
        try:
            return path.relative_to(self.workspace).as_posix()
        except ValueError:
            return str(path)


__all__ = [
    "PublishOptions",
    "PublishOutcome",
    "PublishTarget",
    "ReportPublisher",
    "history_stamp",
]
