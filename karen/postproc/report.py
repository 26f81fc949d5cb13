"""Markdown rendering for the review report and the PR comment."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..grading import verdict_for
from ..models import ReviewResult

_TEMPLATES_DIR = Path(__file__).with_name("templates")


def format_delta(current: int, previous: Optional[int]) -> str:
    """Return the signed score change, or an empty string without a previous score."""
    if previous is None:
        return ""
    change = current - previous
    if change == 0:
        return "±0"
    return f"{change:+d}"


def _title_case(value: str) -> str:
    return value.replace("_", " ").replace("-", " ").title()


class ReportFormatter:
    """Renders review records through the bundled Jinja templates."""

    def __init__(self, templates_dir: Path | None = None, *, max_comment_issues: int = 5) -> None:
        self.templates_dir = templates_dir or _TEMPLATES_DIR
        self.max_comment_issues = max_comment_issues
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            autoescape=False,
        )
        self._env.filters["title_case"] = _title_case

    def review_markdown(
        self,
        review: ReviewResult,
        repo_name: str,
        weights: Mapping[str, int] | None = None,
    ) -> str:
        """Render the full markdown report written to .karen/review.md."""
        template = self._env.get_template("review.md.j2")
        rendered = template.render(
            review=review,
            repo_name=repo_name,
            weights=dict(weights or {}),
            verdict=verdict_for(review.score.total),
        )
        return rendered.rstrip() + "\n"

    def pr_comment(
        self,
        review: ReviewResult,
        repo_name: str,
        previous_score: Optional[int] = None,
    ) -> str:
        """Render the pull-request comment, including the delta when a previous score exists."""
        template = self._env.get_template("comment.md.j2")
        rendered = template.render(
            review=review,
            repo_name=repo_name,
            delta=format_delta(review.score.total, previous_score),
            verdict=verdict_for(review.score.total),
            max_issues=self.max_comment_issues,
        )
        return rendered.rstrip() + "\n"


__all__ = ["ReportFormatter", "format_delta"]
