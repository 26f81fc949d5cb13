"""Core data models shared across karen components."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FileSample:
    """Excerpt of a single repository file included in the evidence."""

    path: str
    language: Optional[str]
    excerpt: str
    size_bytes: int
    truncated: bool = False


@dataclass
class LanguageStats:
    files: int = 0
    lines: int = 0
    bytes: int = 0


@dataclass
class RepoStats:
    """Aggregate counts gathered while walking the repository."""

    languages: Dict[str, LanguageStats] = field(default_factory=dict)
    total_files: int = 0
    total_bytes: int = 0
    sampled_files: int = 0
    unreadable: int = 0
    binary: int = 0
    ignored: int = 0
    truncated: bool = False


@dataclass
class ProjectManifest:
    """The project descriptor (package.json, pyproject.toml, ...) found at the root."""

    path: str
    kind: str
    excerpt: str
    data: Optional[Dict[str, Any]] = None
    truncated: bool = False


@dataclass
class RepoEvidence:
    """Bounded summary of repository contents sent to the model backend."""

    root: str
    files: List[FileSample] = field(default_factory=list)
    stats: RepoStats = field(default_factory=RepoStats)
    readme_text: Optional[str] = None
    readme_path: Optional[str] = None
    readme_truncated: bool = False
    manifest: Optional[ProjectManifest] = None
    tree: List[str] = field(default_factory=list)

    def evidence_bytes(self) -> int:
        """Return the encoded size of every excerpt carried by the evidence."""
        total = sum(len(sample.excerpt.encode("utf-8")) for sample in self.files)
        if self.readme_text is not None:
            total += len(self.readme_text.encode("utf-8"))
        if self.manifest is not None:
            total += len(self.manifest.excerpt.encode("utf-8"))
        return total


@dataclass
class RepoInfo:
    """Repository identity shown to the model."""

    name: str
    description: Optional[str] = None


@dataclass
class ReviewIssue:
    title: str
    severity: str = "medium"
    detail: str = ""


@dataclass
class ReviewScore:
    total: int
    breakdown: Dict[str, int]
    grade: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "breakdown": dict(self.breakdown),
            "grade": self.grade,
            "timestamp": self.timestamp,
        }


@dataclass
class ReviewResult:
    """Normalized review record produced from a model response."""

    score: ReviewScore
    summary: str
    what_actually_works: List[str] = field(default_factory=list)
    issues: List[ReviewIssue] = field(default_factory=list)
    bottom_line: str = ""
    prescription: List[str] = field(default_factory=list)
