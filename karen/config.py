"""Configuration loading for karen (.karen/config.yml)."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError
from .logging import get_logger

KAREN_DIRNAME = ".karen"
CONFIG_FILENAME = "config.yml"

DEFAULT_WEIGHTS: Dict[str, int] = {
    "architecture": 20,
    "code_quality": 20,
    "testing": 20,
    "documentation": 15,
    "security": 15,
    "maintainability": 10,
}

DEFAULT_IGNORE: List[str] = [
    "*.min.js",
    "*.map",
    "*.lock",
    "package-lock.json",
    "dist/",
    "build/",
    "coverage/",
    "vendor/",
]

logger = get_logger("config")


@dataclass
class KarenConfig:
    """Scoring weights, ignore rules and evidence budgets for a review run."""

    weights: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    ignore: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    max_file_bytes: int = 4_000
    max_total_bytes: int = 60_000
    max_readme_bytes: int = 8_000
    max_manifest_bytes: int = 4_000
    max_files: int = 40
    max_scan_files: int = 20_000
    max_tree_entries: int = 200
    min_score: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def config_path(workspace: Path) -> Path:
    return workspace / KAREN_DIRNAME / CONFIG_FILENAME


def load_config(workspace: Path) -> KarenConfig:
    """Load .karen/config.yml from the workspace, shallow-merged over the defaults."""
    path = config_path(workspace)
    if not path.exists():
        return KarenConfig()

    logger.info("Loading %s", path.relative_to(workspace).as_posix())
    data = _read_config(path)
    return merge_config(data)


def merge_config(overrides: Mapping[str, Any]) -> KarenConfig:
    """Apply user overrides to the defaults; a given key replaces its default wholesale."""
    merged = KarenConfig().as_dict()
    for key, value in overrides.items():
        if key not in merged:
            logger.debug("Ignoring unknown config key %r", key)
            continue
        merged[key] = value

    defaults = KarenConfig()
    weights = _as_weights(merged["weights"])
    if weights is None:
        logger.warning("Config key 'weights' must map categories to points; using defaults")
        weights = dict(defaults.weights)

    return KarenConfig(
        weights=weights,
        ignore=_as_str_list(merged["ignore"]),
        max_file_bytes=_as_positive_int(merged["max_file_bytes"], defaults.max_file_bytes),
        max_total_bytes=_as_positive_int(merged["max_total_bytes"], defaults.max_total_bytes),
        max_readme_bytes=_as_positive_int(merged["max_readme_bytes"], defaults.max_readme_bytes),
        max_manifest_bytes=_as_positive_int(
            merged["max_manifest_bytes"], defaults.max_manifest_bytes
        ),
        max_files=_as_positive_int(merged["max_files"], defaults.max_files),
        max_scan_files=_as_positive_int(merged["max_scan_files"], defaults.max_scan_files),
        max_tree_entries=_as_positive_int(merged["max_tree_entries"], defaults.max_tree_entries),
        min_score=_as_int(merged["min_score"]) or 0,
    )


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_weights(value: Any) -> Optional[Dict[str, int]]:
    if not isinstance(value, dict):
        return None
    weights: Dict[str, int] = {}
    for key, points in value.items():
        parsed = _as_int(points)
        if parsed is None or parsed < 0:
            return None
        weights[str(key)] = parsed
    return weights or None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_positive_int(value: Any, default: int) -> int:
    parsed = _as_int(value)
    if parsed is None or parsed <= 0:
        return default
    return parsed


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_IGNORE",
    "DEFAULT_WEIGHTS",
    "KAREN_DIRNAME",
    "KarenConfig",
    "config_path",
    "load_config",
    "merge_config",
]
