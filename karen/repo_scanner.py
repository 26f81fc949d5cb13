"""Bounded evidence collection from an arbitrary repository."""

from __future__ import annotations

import json
import os
import re
import stat
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Pattern, Sequence, Tuple

from .config import KAREN_DIRNAME, KarenConfig
from .errors import EvidenceError
from .logging import get_logger
from .models import FileSample, LanguageStats, ProjectManifest, RepoEvidence, RepoStats

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
    ".idea",
    ".vscode",
    ".next",
    "target",
    KAREN_DIRNAME,
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

# never sampled: these are counted as binary without opening them
_BINARY_SUFFIXES = {
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".svg",
    ".pdf", ".zip", ".gz", ".tgz", ".bz2", ".xz", ".7z", ".rar", ".jar",
    ".war", ".class", ".o", ".a", ".so", ".dylib", ".dll", ".exe", ".bin",
    ".pyc", ".woff", ".woff2", ".ttf", ".otf", ".eot", ".mp3", ".mp4",
    ".mov", ".wav", ".sqlite", ".db",
}

_LANGUAGE_BY_SUFFIX = {
    ".py": "Python",
    ".pyi": "Python",
    ".js": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".java": "Java",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
    ".cs": "C#",
    ".c": "C",
    ".h": "C",
    ".cpp": "C++",
    ".hpp": "C++",
    ".cc": "C++",
    ".hh": "C++",
    ".swift": "Swift",
    ".m": "Objective-C",
    ".scala": "Scala",
    ".r": "R",
    ".jl": "Julia",
    ".dart": "Dart",
    ".lua": "Lua",
    ".sh": "Shell",
    ".bash": "Shell",
    ".ps1": "PowerShell",
    ".sql": "SQL",
    ".html": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".md": "Markdown",
    ".rst": "reStructuredText",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".json": "JSON",
    ".toml": "TOML",
    ".xml": "XML",
}

_LANGUAGE_BY_NAME = {
    "Dockerfile": "Dockerfile",
    "Makefile": "Makefile",
    "Gemfile": "Ruby",
    "Rakefile": "Ruby",
}

_README_CANDIDATES = ("README.md", "README.rst", "README.txt", "README")

_MANIFEST_CANDIDATES: Tuple[Tuple[str, str], ...] = (
    ("package.json", "json"),
    ("pyproject.toml", "toml"),
    ("Cargo.toml", "toml"),
    ("go.mod", "text"),
    ("setup.cfg", "text"),
    ("requirements.txt", "text"),
    ("pom.xml", "text"),
    ("build.gradle", "text"),
    ("Gemfile", "text"),
    ("composer.json", "json"),
)

UNKNOWN_LANGUAGE = "Other"

logger = get_logger("repo_scanner")


@dataclass
class IgnoreRule:
    """A gitignore-style glob from .gitignore or the config ``ignore`` list.

    ``*`` and ``?`` stay within one path segment and ``**`` spans segments. A
    pattern without a slash matches at any depth. A rule matching a directory
    also covers everything below it.
    """

    pattern: str
    directory_only: bool = False
    anchored: bool = False
    negate: bool = False
    regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        body = _glob_to_regex(self.pattern)
        if not self.anchored and "/" not in self.pattern:
            body = f"(?:.*/)?{body}"
        self.regex = re.compile(body)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        parts = rel_path.split("/")
        for depth in range(1, len(parts)):
            if self.regex.fullmatch("/".join(parts[:depth])):
                return True
        if self.directory_only and not is_dir:
            return False
        return self.regex.fullmatch(rel_path) is not None


def _glob_to_regex(pattern: str) -> str:
    out: List[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if pattern.startswith("**/", index):
            out.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            out.append(".*")
            index += 2
        elif char == "*":
            out.append("[^/]*")
            index += 1
        elif char == "?":
            out.append("[^/]")
            index += 1
        elif char == "[" and pattern.find("]", index + 2) != -1:
            end = pattern.find("]", index + 2)
            members = pattern[index + 1 : end].replace("\\", "\\\\")
            if members.startswith("!"):
                members = "^" + members[1:]
            out.append(f"[{members}]")
            index = end + 1
        else:
            out.append(re.escape(char))
            index += 1
    return "".join(out)


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    directory_only = pattern.endswith("/")
    anchored = pattern.startswith("/")
    pattern = pattern.strip("/")
    if not pattern:
        return None
    return IgnoreRule(pattern, directory_only=directory_only, anchored=anchored, negate=negate)


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []

    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _load_ignore_rules(root: Path, patterns: Sequence[str]) -> List[IgnoreRule]:
    rules = _parse_gitignore(root / ".gitignore")
    for pattern in patterns:
        rule = _build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _iter_files(root: Path, rules: Sequence[IgnoreRule], stats: RepoStats) -> Iterator[Tuple[Path, str]]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        filtered_dirs = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                stats.ignored += 1
                continue
            filtered_dirs.append(name)
        dirnames[:] = filtered_dirs

        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES:
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                stats.ignored += 1
                continue
            yield current_dir / filename, rel_path


def _detect_language(path: Path) -> str | None:
    if path.name in _LANGUAGE_BY_NAME:
        return _LANGUAGE_BY_NAME[path.name]
    return _LANGUAGE_BY_SUFFIX.get(path.suffix.lower())


def _read_text_head(path: Path, limit: int) -> Optional[Tuple[str, bool]]:
    """Read at most ``limit`` bytes of text; return None for binary content.

    Raises OSError when the file cannot be opened or read.
    """
    with path.open("rb") as handle:
        chunk = handle.read(limit + 1)
    if b"\x00" in chunk:
        return None
    truncated = len(chunk) > limit
    head = chunk[:limit]
    try:
        text = head.decode("utf-8")
    except UnicodeDecodeError as exc:
        # a multi-byte character split by the cut is fine, anything else is not text
        if not truncated or exc.start < len(head) - 3:
            return None
        text = head[: exc.start].decode("utf-8")
    return text, truncated


def _count_lines(text: str) -> int:
    if not text:
        return 0
    return text.count("\n") + (0 if text.endswith("\n") else 1)


class _ByteBudget:
    def __init__(self, total: int) -> None:
        self.remaining = max(total, 0)

    def take(self, wanted: int) -> int:
        return min(wanted, self.remaining)

    def consume(self, text: str) -> None:
        self.remaining = max(self.remaining - len(text.encode("utf-8")), 0)


class RepoScanner:
    """Walks the repository to produce bounded review evidence."""

    def collect(self, root: str | Path, config: KarenConfig) -> RepoEvidence:
        """Return evidence for the repository at ``root`` within the configured budgets.

        Ignore rules are applied before any file content is read. Sampling stops once
        the byte budget or the file budget is spent; the walk then only gathers stats.
        """
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise EvidenceError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise EvidenceError(f"Repository path is not a directory: {root}")

        rules = _load_ignore_rules(root_path, config.ignore)
        evidence = RepoEvidence(root=str(root_path))
        stats = evidence.stats
        budget = _ByteBudget(config.max_total_bytes)

        self._collect_readme(root_path, evidence, config, budget)
        self._collect_manifest(root_path, evidence, config, budget)
        already_included = {evidence.readme_path}
        if evidence.manifest is not None:
            already_included.add(evidence.manifest.path)

        for path, rel_path in _iter_files(root_path, rules, stats):
            if stats.total_files >= config.max_scan_files:
                stats.truncated = True
                logger.debug("Stopped walking after %d files", stats.total_files)
                break
            try:
                file_stat = path.stat()
            except OSError:
                stats.unreadable += 1
                continue
            if not stat.S_ISREG(file_stat.st_mode):
                # pipes, sockets and devices can block or never end on read
                logger.debug("Skipping non-regular file %s", rel_path)
                stats.unreadable += 1
                continue
            size = file_stat.st_size

            stats.total_files += 1
            stats.total_bytes += size
            if len(evidence.tree) < config.max_tree_entries:
                evidence.tree.append(rel_path)

            language = _detect_language(path)
            lang_stats = stats.languages.setdefault(language or UNKNOWN_LANGUAGE, LanguageStats())
            lang_stats.files += 1
            lang_stats.bytes += size

            if rel_path in already_included:
                continue
            if path.suffix.lower() in _BINARY_SUFFIXES:
                stats.binary += 1
                continue
            if stats.sampled_files >= config.max_files or budget.remaining <= 0:
                continue

            limit = budget.take(config.max_file_bytes)
            try:
                result = _read_text_head(path, limit)
            except OSError as exc:
                logger.debug("Skipping unreadable file %s: %s", rel_path, exc)
                stats.unreadable += 1
                continue
            if result is None:
                stats.binary += 1
                continue

            excerpt, truncated = result
            budget.consume(excerpt)
            lang_stats.lines += _count_lines(excerpt)
            stats.sampled_files += 1
            evidence.files.append(
                FileSample(
                    path=rel_path,
                    language=language,
                    excerpt=excerpt,
                    size_bytes=size,
                    truncated=truncated,
                )
            )

        logger.debug(
            "Collected %d samples from %d files (%d evidence bytes)",
            stats.sampled_files,
            stats.total_files,
            evidence.evidence_bytes(),
        )
        return evidence

    def _collect_readme(
        self, root: Path, evidence: RepoEvidence, config: KarenConfig, budget: _ByteBudget
    ) -> None:
        for name in _README_CANDIDATES:
            path = root / name
            if not path.is_file():
                continue
            try:
                result = _read_text_head(path, budget.take(config.max_readme_bytes))
            except OSError:
                evidence.stats.unreadable += 1
                return
            if result is None:
                return
            text, truncated = result
            budget.consume(text)
            evidence.readme_text = text
            evidence.readme_path = name
            evidence.readme_truncated = truncated
            return

    def _collect_manifest(
        self, root: Path, evidence: RepoEvidence, config: KarenConfig, budget: _ByteBudget
    ) -> None:
        for name, kind in _MANIFEST_CANDIDATES:
            path = root / name
            if not path.is_file():
                continue
            try:
                result = _read_text_head(path, budget.take(config.max_manifest_bytes))
            except OSError:
                evidence.stats.unreadable += 1
                return
            if result is None:
                return
            text, truncated = result
            budget.consume(text)
            data = None if truncated else _parse_manifest(text, kind)
            evidence.manifest = ProjectManifest(
                path=name,
                kind=kind,
                excerpt=text,
                data=data,
                truncated=truncated,
            )
            return


def _parse_manifest(text: str, kind: str) -> Optional[Dict[str, Any]]:
    try:
        if kind == "json":
            loaded = json.loads(text)
        elif kind == "toml":
            loaded = tomllib.loads(text)
        else:
            return None
    except (json.JSONDecodeError, tomllib.TOMLDecodeError):
        return None
    return loaded if isinstance(loaded, dict) else None


__all__ = ["IgnoreRule", "RepoScanner"]
