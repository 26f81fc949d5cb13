"""Builds the review prompt from repository evidence."""

from __future__ import annotations

import json
from typing import List

from ..config import KarenConfig
from ..models import FileSample, RepoEvidence, RepoInfo
from .constants import SYSTEM_PROMPT


class PromptBuilder:
    """Serializes evidence and configuration into a deterministic review prompt."""

    SYSTEM_PROMPT = SYSTEM_PROMPT

    def build(self, evidence: RepoEvidence, config: KarenConfig, repo: RepoInfo) -> str:
        """Return the user prompt for ``repo``; identical inputs give identical text."""
        parts: List[str] = [
            f"Review the repository `{repo.name}`.",
            "",
            self._render_description(repo),
            "",
            self._render_rubric(config),
            "",
            self._render_stats(evidence),
            "",
            self._render_readme(evidence),
            "",
            self._render_manifest(evidence),
            "",
            self._render_tree(evidence),
            "",
            self._render_files(evidence.files),
            "",
            "Return only the JSON object described in your instructions.",
        ]
        return "\n".join(parts).rstrip() + "\n"

    @staticmethod
    def _render_description(repo: RepoInfo) -> str:
        description = (repo.description or "").strip()
        if not description:
            return "Description: (none provided)"
        return f"Description: {description}"

    @staticmethod
    def _render_rubric(config: KarenConfig) -> str:
        lines = ["## Scoring rubric (category: max points)"]
        for category, weight in config.weights.items():
            lines.append(f"- {category}: {weight}")
        lines.append(f"Total available: {sum(config.weights.values())}")
        return "\n".join(lines)

    @staticmethod
    def _render_stats(evidence: RepoEvidence) -> str:
        stats = evidence.stats
        lines = [
            "## Repository statistics",
            f"- Files: {stats.total_files}",
            f"- Total size: {stats.total_bytes} bytes",
            f"- Files sampled below: {stats.sampled_files}",
            f"- Binary files skipped: {stats.binary}",
            f"- Unreadable files skipped: {stats.unreadable}",
            f"- Paths excluded by ignore rules: {stats.ignored}",
        ]
        if stats.truncated:
            lines.append("- The repository walk stopped early; statistics are partial.")
        if stats.languages:
            lines.append("")
            lines.append("| Language | Files | Bytes | Sampled lines |")
            lines.append("| --- | ---: | ---: | ---: |")
            ordered = sorted(stats.languages.items(), key=lambda item: (-item[1].bytes, item[0]))
            for language, entry in ordered:
                lines.append(f"| {language} | {entry.files} | {entry.bytes} | {entry.lines} |")
        return "\n".join(lines)

    @staticmethod
    def _render_readme(evidence: RepoEvidence) -> str:
        if evidence.readme_text is None:
            return "## README\nThis repository has NO README. Do not assume one exists."
        header = f"## README ({evidence.readme_path})"
        if evidence.readme_truncated:
            header += " - truncated"
        return f"{header}\n{_fenced(evidence.readme_text, 'markdown')}"

    @staticmethod
    def _render_manifest(evidence: RepoEvidence) -> str:
        manifest = evidence.manifest
        if manifest is None:
            return "## Project manifest\nNo project manifest was found at the repository root."
        header = f"## Project manifest ({manifest.path})"
        if manifest.truncated:
            header += " - truncated"
        if manifest.data is not None:
            body = json.dumps(manifest.data, indent=2, sort_keys=True, default=str)
            return f"{header}\n{_fenced(body, 'json')}"
        return f"{header}\n{_fenced(manifest.excerpt, '')}"

    @staticmethod
    def _render_tree(evidence: RepoEvidence) -> str:
        if not evidence.tree:
            return "## File tree\n(no files found)"
        lines = ["## File tree"]
        lines.extend(f"- {path}" for path in evidence.tree)
        omitted = evidence.stats.total_files - len(evidence.tree)
        if omitted > 0:
            lines.append(f"- ... {omitted} more files not listed")
        return "\n".join(lines)

    @staticmethod
    def _render_files(files: List[FileSample]) -> str:
        if not files:
            return "## File samples\nNo readable source files were sampled."
        lines = ["## File samples"]
        for sample in files:
            lines.append("")
            note = " (truncated)" if sample.truncated else ""
            lines.append(f"### {sample.path} [{sample.language or 'unknown'}, {sample.size_bytes} bytes]{note}")
            lines.append(_fenced(sample.excerpt, _fence_tag(sample.language)))
        return "\n".join(lines)


def _fence_tag(language: str | None) -> str:
    return (language or "").lower().replace(" ", "").replace("#", "sharp").replace("+", "p")


def _fenced(text: str, tag: str) -> str:
    fence = "```"
    while fence in text:
        fence += "`"
    body = text if text.endswith("\n") or not text else text + "\n"
    return f"{fence}{tag}\n{body}{fence}"


__all__ = ["PromptBuilder"]
