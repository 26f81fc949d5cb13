"""Step outputs for downstream CI steps."""

from __future__ import annotations

import os
import uuid
from typing import Mapping

from .logging import get_logger

logger = get_logger("actions")


def set_output(name: str, value: object, environ: Mapping[str, str] | None = None) -> None:
    """Append ``name=value`` to $GITHUB_OUTPUT, or log it when running outside Actions."""
    env = os.environ if environ is None else environ
    text = str(value)
    output_path = env.get("GITHUB_OUTPUT")
    if not output_path:
        logger.info("Output %s=%s", name, text)
        return

    with open(output_path, "a", encoding="utf-8") as handle:
        if "\n" in text:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            handle.write(f"{name}<<{delimiter}\n{text}\n{delimiter}\n")
        else:
            handle.write(f"{name}={text}\n")


__all__ = ["set_output"]
