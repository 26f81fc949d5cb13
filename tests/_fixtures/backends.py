"""Backend doubles and canned model answers for tests."""

from __future__ import annotations

import json
from typing import List, Tuple


class FakeBackend:
    """Backend double that records submissions and replays a canned answer."""

    name = "fake"
    model = "fake-model"

    def __init__(self, response: str) -> None:
        self.response = response
        self.calls: List[Tuple[str, str]] = []

    def submit(self, system: str, prompt: str) -> str:
        self.calls.append((system, prompt))
        return self.response


def review_payload(total: int = 62, **overrides: object) -> dict:
    payload = {
        "score": {
            "total": total,
            "breakdown": {
                "architecture": 14,
                "code_quality": 12,
                "testing": 8,
                "documentation": 10,
                "security": 10,
                "maintainability": 8,
            },
            "grade": "A+",
        },
        "summary": "It runs. Barely.",
        "whatActuallyWorks": ["The CLI parses arguments"],
        "issues": [
            {"title": "No tests", "severity": "high", "detail": "tests/ is empty"},
            "README oversells",
        ],
        "bottomLine": "Ship the tests before the hype.",
        "prescription": ["Write tests", "Trim the README"],
    }
    payload.update(overrides)
    return payload


def fenced(payload: dict, tag: str = "json") -> str:
    return f"Here you go:\n```{tag}\n{json.dumps(payload, indent=2)}\n```\n"


__all__ = ["FakeBackend", "fenced", "review_payload"]
