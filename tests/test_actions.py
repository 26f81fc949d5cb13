"""Tests for step outputs."""

from __future__ import annotations

import logging
from pathlib import Path

from karen.actions import set_output


def test_set_output_appends_to_github_output(tmp_path: Path) -> None:
    output = tmp_path / "output.txt"
    output.write_text("existing=1\n", encoding="utf-8")
    env = {"GITHUB_OUTPUT": str(output)}

    set_output("karen_score", 62, env)
    set_output("karen_grade", "D", env)

    assert output.read_text(encoding="utf-8") == "existing=1\nkaren_score=62\nkaren_grade=D\n"


def test_set_output_uses_delimiter_for_multiline_values(tmp_path: Path) -> None:
    output = tmp_path / "output.txt"

    set_output("summary", "line one\nline two", {"GITHUB_OUTPUT": str(output)})

    lines = output.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("summary<<ghadelimiter_")
    assert lines[1:3] == ["line one", "line two"]
    assert lines[3] == lines[0].split("<<", 1)[1]


def test_set_output_logs_outside_actions(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="karen"):
        set_output("karen_score", 62, {})

    assert "Output karen_score=62" in caplog.text
