"""Exception hierarchy for the review pipeline."""

from __future__ import annotations


class KarenError(RuntimeError):
    """Base class for every failure raised by karen."""


class PreconditionError(KarenError):
    """Raised when the run cannot start (missing or ambiguous credentials, bad inputs)."""


class ConfigError(PreconditionError):
    """Raised when .karen/config.yml cannot be parsed."""


class EvidenceError(KarenError):
    """Raised when the repository root cannot be inspected."""


class BackendError(KarenError):
    """Raised when the model provider call fails."""


class ParseError(KarenError):
    """Raised when the model output is not a usable review object."""


class PublishError(KarenError):
    """Raised when a single artifact cannot be published."""


class MarkerError(PublishError):
    """Raised when the README badge markers cannot be merged safely."""


__all__ = [
    "BackendError",
    "ConfigError",
    "EvidenceError",
    "KarenError",
    "MarkerError",
    "ParseError",
    "PreconditionError",
    "PublishError",
]
