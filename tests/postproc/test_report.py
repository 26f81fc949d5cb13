"""Tests for the review report and PR comment rendering."""

from __future__ import annotations

import pytest

from karen.postproc.report import ReportFormatter, format_delta
from tests._fixtures.reviews import sample_review


@pytest.mark.parametrize(
    ("current", "previous", "expected"),
    [(62, None, ""), (62, 62, "±0"), (67, 62, "+5"), (59, 62, "-3")],
)
def test_format_delta(current: int, previous: int | None, expected: str) -> None:
    assert format_delta(current, previous) == expected


def test_review_markdown_sections_in_order() -> None:
    markdown = ReportFormatter().review_markdown(
        sample_review(), "demo", {"architecture": 20, "testing": 20}
    )

    headings = [
        "# Karen's Review: demo",
        "## Summary",
        "## Score Breakdown",
        "## What Actually Works",
        "## Issues",
        "## Bottom Line",
        "## Prescription",
    ]
    positions = [markdown.index(heading) for heading in headings]
    assert positions == sorted(positions)
    assert "**Score: 62/100** · **Grade: D**" in markdown
    assert "| Architecture | 14/20 |" in markdown
    assert "| Testing | 8/20 |" in markdown
    assert "### 1. Issue 1 (high)" in markdown
    assert "detail 2" in markdown
    assert "1. Write tests" in markdown
    assert "It runs. Barely." in markdown
    assert markdown.endswith("\n")


def test_review_markdown_handles_empty_sections() -> None:
    review = sample_review(issues=0)
    review.what_actually_works = []
    review.prescription = []
    review.score.breakdown = {}

    markdown = ReportFormatter().review_markdown(review, "demo")

    assert "No category breakdown was provided." in markdown
    assert "- Nothing worth mentioning." in markdown
    assert "No issues found." in markdown
    assert "No prescription given." in markdown


def test_pr_comment_includes_delta_when_previous_score_known() -> None:
    comment = ReportFormatter().pr_comment(sample_review(67), "demo", previous_score=62)

    assert comment.startswith("## 🔥 Karen's Review: demo")
    assert "**Score: 67/100** (+5 since last review)" in comment
    assert "**Bottom line:** Ship the tests before the hype." in comment


def test_pr_comment_omits_delta_on_first_review() -> None:
    comment = ReportFormatter().pr_comment(sample_review(62), "demo")

    assert "since last review" not in comment


def test_pr_comment_limits_issue_list() -> None:
    comment = ReportFormatter(max_comment_issues=2).pr_comment(sample_review(issues=5), "demo")

    assert "**Issue 1**" in comment
    assert "**Issue 2**" in comment
    assert "**Issue 3**" not in comment
    assert "and 3 more" in comment
