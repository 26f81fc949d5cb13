"""Idempotent merge of the karen badge block into README files."""

from __future__ import annotations

import re
from pathlib import Path

from ..errors import MarkerError

BADGE_MARKER_START = "<!-- karen-badge-start -->"
BADGE_MARKER_END = "<!-- karen-badge-end -->"
BADGE_ALT_TEXT = "Karen Score"

# ATX heading at column 0; excludes shebangs and indented code comments
_HEADING_RE = re.compile(r"#{1,6}(\s|$)")


def badge_markdown(badge_path: str) -> str:
    """Return the markdown image reference for the badge at ``badge_path``."""
    return f"![{BADGE_ALT_TEXT}]({badge_path})"


def build_badge_block(badge_path: str) -> str:
    return f"{BADGE_MARKER_START}\n{badge_markdown(badge_path)}\n{BADGE_MARKER_END}"


def merge_badge_block(markdown: str, block: str) -> str:
    """Return ``markdown`` with ``block`` placed between the badge markers.

    The first marker pair is replaced in place when both markers exist. A lone
    marker raises MarkerError. Without markers the block goes after a leading
    heading, otherwise before the first non-blank line.
    """
    start = markdown.find(BADGE_MARKER_START)
    has_end = BADGE_MARKER_END in markdown

    if start != -1 and has_end:
        end = markdown.find(BADGE_MARKER_END, start + len(BADGE_MARKER_START))
        if end == -1:
            raise MarkerError("README badge end marker appears before the start marker")
        end += len(BADGE_MARKER_END)
        return markdown[:start] + block + markdown[end:]
    if start != -1 or has_end:
        raise MarkerError("README has only one karen badge marker; refusing to modify it")

    return _insert_block(markdown, block)


def _insert_block(markdown: str, block: str) -> str:
    lines = markdown.split("\n")
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        if _HEADING_RE.match(line):
            # keep the document title first
            rest = lines[index + 1 :]
            gap = [""] if rest and rest[0].strip() else []
            updated = lines[: index + 1] + [""] + block.split("\n") + gap + rest
        else:
            updated = lines[:index] + block.split("\n") + [""] + lines[index:]
        return "\n".join(updated)
    if not markdown:
        return block + "\n"
    return block + "\n" + markdown


def has_badge_markers(readme_path: Path) -> bool:
    """Return True when the README carries both badge markers."""
    if not readme_path.is_file():
        return False
    content = readme_path.read_text(encoding="utf-8")
    return BADGE_MARKER_START in content and BADGE_MARKER_END in content


def insert_badge_into_readme(readme_path: Path, badge_path: str) -> bool:
    """Merge the badge block into the README on disk.

    Returns True when the file content changed. Raises MarkerError when the
    README is missing or its markers are inconsistent; the file is left as is.
    """
    if not readme_path.is_file():
        raise MarkerError(f"README not found at {readme_path}")

    # newline="" keeps CRLF files byte-for-byte outside the block
    with readme_path.open("r", encoding="utf-8", newline="") as handle:
        original = handle.read()
    updated = merge_badge_block(original, build_badge_block(badge_path))
    if updated == original:
        return False
    with readme_path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(updated)
    return True


__all__ = [
    "BADGE_MARKER_END",
    "BADGE_MARKER_START",
    "badge_markdown",
    "build_badge_block",
    "has_badge_markers",
    "insert_badge_into_readme",
    "merge_badge_block",
]
