"""Tests for the README badge block merge."""

from __future__ import annotations

from pathlib import Path

import pytest

from karen.errors import MarkerError
from karen.postproc.markers import (
    BADGE_MARKER_END,
    BADGE_MARKER_START,
    build_badge_block,
    has_badge_markers,
    insert_badge_into_readme,
    merge_badge_block,
)

BADGE = ".karen/badges/score-badge.svg"
BLOCK = build_badge_block(BADGE)


def test_build_badge_block_wraps_image_in_markers() -> None:
    assert BLOCK == (
        f"{BADGE_MARKER_START}\n![Karen Score](.karen/badges/score-badge.svg)\n{BADGE_MARKER_END}"
    )


def test_merge_inserts_after_leading_heading() -> None:
    merged = merge_badge_block("# Project\n\nSome text.\n", BLOCK)

    assert merged == f"# Project\n\n{BLOCK}\n\nSome text.\n"


def test_merge_inserts_before_first_paragraph_without_heading() -> None:
    merged = merge_badge_block("\nJust prose.\n", BLOCK)

    assert merged == f"\n{BLOCK}\n\nJust prose.\n"


def test_merge_into_empty_document() -> None:
    assert merge_badge_block("", BLOCK) == BLOCK + "\n"


@pytest.mark.parametrize(
    "markdown",
    ["#!/bin/sh\necho hi\n", "    # indented comment\ntext\n", "#hashtag line\n"],
)
def test_merge_does_not_treat_non_headings_as_title(markdown: str) -> None:
    merged = merge_badge_block(markdown, BLOCK)

    assert merged == f"{BLOCK}\n\n{markdown}"


def test_merge_replaces_existing_block_only() -> None:
    original = (
        "# Project\n\n"
        f"{BADGE_MARKER_START}\n![Karen Score](old.svg)\n{BADGE_MARKER_END}\n\n"
        "Body stays.\n"
    )

    merged = merge_badge_block(original, BLOCK)

    assert merged == f"# Project\n\n{BLOCK}\n\nBody stays.\n"


def test_merge_is_idempotent() -> None:
    once = merge_badge_block("# Project\n\nBody\n", BLOCK)
    twice = merge_badge_block(once, BLOCK)

    assert once == twice
    assert twice.count(BADGE_MARKER_START) == 1


@pytest.mark.parametrize(
    "markdown",
    [
        f"# Project\n{BADGE_MARKER_START}\nbody\n",
        f"# Project\n{BADGE_MARKER_END}\nbody\n",
        f"# Project\n{BADGE_MARKER_END}\n{BADGE_MARKER_START}\n",
    ],
)
def test_merge_rejects_inconsistent_markers(markdown: str) -> None:
    with pytest.raises(MarkerError):
        merge_badge_block(markdown, BLOCK)


def test_insert_badge_into_readme_updates_once(tmp_path: Path) -> None:
    readme = tmp_path / "README.md"
    readme.write_text("# Project\n\nBody\n", encoding="utf-8")

    assert insert_badge_into_readme(readme, BADGE) is True
    first = readme.read_text(encoding="utf-8")
    assert insert_badge_into_readme(readme, BADGE) is False
    assert readme.read_text(encoding="utf-8") == first
    assert has_badge_markers(readme) is True


def test_insert_badge_preserves_crlf_outside_block(tmp_path: Path) -> None:
    readme = tmp_path / "README.md"
    original = (
        f"# Project\r\n\r\n{BADGE_MARKER_START}\r\nold\r\n{BADGE_MARKER_END}\r\n\r\nBody\r\n"
    ).encode("utf-8")
    readme.write_bytes(original)

    insert_badge_into_readme(readme, BADGE)

    content = readme.read_bytes().decode("utf-8")
    assert content.startswith("# Project\r\n\r\n")
    assert content.endswith(f"{BADGE_MARKER_END}\r\n\r\nBody\r\n")
    assert "old" not in content


def test_insert_badge_leaves_lone_marker_file_untouched(tmp_path: Path) -> None:
    readme = tmp_path / "README.md"
    original = f"# Project\n{BADGE_MARKER_START}\n"
    readme.write_text(original, encoding="utf-8")

    with pytest.raises(MarkerError):
        insert_badge_into_readme(readme, BADGE)
    assert readme.read_text(encoding="utf-8") == original


def test_insert_badge_requires_readme(tmp_path: Path) -> None:
    with pytest.raises(MarkerError):
        insert_badge_into_readme(tmp_path / "README.md", BADGE)
    assert has_badge_markers(tmp_path / "README.md") is False
