"""Backend-agnostic extraction and normalization of model reviews."""

from __future__ import annotations

import json
import math
import re
from datetime import UTC, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from .errors import ParseError
from .grading import clamp_total, grade_for
from .llm.runner import Backend
from .logging import get_logger
from .models import ReviewIssue, ReviewResult, ReviewScore
from .prompting.builder import PromptBuilder

_FENCE_RE = re.compile(r"```[ \t]*[\w+-]*[ \t]*\r?\n?(.*?)\r?\n?[ \t]*```", re.DOTALL)

_SEVERITIES = {"critical", "high", "medium", "low"}

logger = get_logger("reviewer")


def utc_timestamp(moment: datetime | None = None) -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    moment = moment or datetime.now(UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def extract_json(text: str) -> str:
    """Return the body of the first fenced block, or the whole text when none exists."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_review(
    text: str,
    *,
    weights: Mapping[str, int] | None = None,
    timestamp: str | None = None,
) -> ReviewResult:
    """Parse raw model output into a ReviewResult; the grade is always derived locally."""
    payload = extract_json(text)
    if not payload:
        raise ParseError("Model response was empty")
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Model response is not valid JSON ({exc.msg} at line {exc.lineno} column {exc.colno})"
        ) from exc
    if not isinstance(data, dict):
        raise ParseError("Model response must be a JSON object")

    score_data = data.get("score")
    if not isinstance(score_data, dict):
        raise ParseError("Model response is missing the 'score' object")
    raw_total = _as_number(score_data.get("total"))
    if raw_total is None:
        raise ParseError("Model response is missing a numeric 'score.total'")

    total = clamp_total(int(round(raw_total)))
    if total != raw_total:
        logger.warning("Model total %s normalized to %d", score_data.get("total"), total)

    score = ReviewScore(
        total=total,
        breakdown=_normalize_breakdown(score_data.get("breakdown"), weights or {}),
        grade=grade_for(total),
        timestamp=timestamp or utc_timestamp(),
    )
    return ReviewResult(
        score=score,
        summary=_as_text(data.get("summary")),
        what_actually_works=_as_text_list(_first(data, "whatActuallyWorks", "what_actually_works")),
        issues=_normalize_issues(data.get("issues")),
        bottom_line=_as_text(_first(data, "bottomLine", "bottom_line")),
        prescription=_as_text_list(data.get("prescription")),
    )


class KarenReviewer:
    """Submits a prompt to a backend and normalizes the answer."""

    def __init__(
        self,
        backend: Backend,
        *,
        system_prompt: str = PromptBuilder.SYSTEM_PROMPT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.backend = backend
        self.system_prompt = system_prompt
        self._clock = clock or (lambda: datetime.now(UTC))

    def invoke(self, prompt: str) -> str:
        """Send the prompt in a single request and return the raw text."""
        logger.debug("Submitting %d prompt characters to %s", len(prompt), self.backend.name)
        return self.backend.submit(self.system_prompt, prompt)

    def parse(self, raw: str, weights: Mapping[str, int] | None = None) -> ReviewResult:
        return parse_review(raw, weights=weights, timestamp=utc_timestamp(self._clock()))

    def review(self, prompt: str, weights: Mapping[str, int] | None = None) -> ReviewResult:
        return self.parse(self.invoke(prompt), weights)


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        try:
            number = float(value.strip() if isinstance(value, str) else value)
        except (ValueError, OverflowError):
            return None
        # NaN and infinities cannot become a point total
        return number if math.isfinite(number) else None
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value)


def _as_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [_as_text(item) for item in value if _as_text(item)]
    return [_as_text(value)]


def _normalize_breakdown(value: Any, weights: Mapping[str, int]) -> Dict[str, int]:
    if not isinstance(value, dict):
        if value is not None:
            logger.warning("Ignoring non-object score breakdown from model")
        return {}

    breakdown: Dict[str, int] = {}
    for category, points in value.items():
        number = _as_number(points)
        if number is None:
            logger.warning("Ignoring non-numeric breakdown entry %r", category)
            continue
        breakdown[str(category)] = max(int(round(number)), 0)

    for category, points in breakdown.items():
        limit = weights.get(category)
        if limit is not None and points > limit:
            logger.warning(
                "Breakdown category %r scored %d above its weight of %d", category, points, limit
            )
    if sum(breakdown.values()) > 100:
        logger.warning("Breakdown sums to %d, above the 100 point scale", sum(breakdown.values()))
    return breakdown


def _normalize_issues(value: Any) -> List[ReviewIssue]:
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    issues: List[ReviewIssue] = []
    for item in items:
        if isinstance(item, dict):
            title = _as_text(_first(item, "title", "issue", "problem", "name"))
            detail = _as_text(_first(item, "detail", "description", "explanation", "evidence"))
            severity = _as_text(item.get("severity")).lower()
            if not title and not detail:
                continue
            issues.append(
                ReviewIssue(
                    title=title or detail,
                    severity=severity if severity in _SEVERITIES else "medium",
                    detail=detail if title else "",
                )
            )
        elif _as_text(item):
            issues.append(ReviewIssue(title=_as_text(item)))
    return issues


__all__ = ["KarenReviewer", "extract_json", "parse_review", "utc_timestamp"]
