"""Storage and naming utilities."""

from __future__ import annotations

import logging
import os
from typing import Optional

logger = logging.getLogger("livescribe")

DEFAULT_TRANSCRIPT_NAME = "transcription"
TRANSCRIPT_EXTENSION = ".txt"


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def sanitize_filename(name: str) -> str:
    value = (name or "").strip()
    if value.lower().endswith(TRANSCRIPT_EXTENSION):
        value = value[: -len(TRANSCRIPT_EXTENSION)].strip()
    for sep in ("/", "\\", os.sep):
        value = value.replace(sep, "-")
    value = value.replace(" ", "-").strip(".")
    if not value:
        return DEFAULT_TRANSCRIPT_NAME
    return value


def transcript_path(directory: str, name: str) -> str:
    root = directory or os.getcwd()
    return os.path.join(root, f"{sanitize_filename(name)}{TRANSCRIPT_EXTENSION}")


def save_transcript(text: str, directory: str, name: str) -> Optional[str]:
    if not text or not text.strip():
        logger.warning("No transcript content to save")
        return None
    path = transcript_path(directory, name)
    ensure_dir(os.path.dirname(path))
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(text)
    logger.info("Transcript saved to %s", path)
    return path
