"""Sentence classifier used to rank transcript sentences."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List

from .errors import ClassifierUnavailable

logger = logging.getLogger("livescribe")

DEFAULT_TASK = "sentiment-analysis"
DEFAULT_MODEL = "distilbert-base-uncased-finetuned-sst-2-english"

Classifier = Callable[[str], Awaitable[Any]]


class TransformersClassifier:
    """Async wrapper around a transformers text-classification pipeline."""

    def __init__(self, pipe) -> None:
        self._pipe = pipe

    async def __call__(self, sentence: str) -> List[dict]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._pipe, sentence)


def _build_pipeline(task: str, model_name: str):
    try:
        from transformers import pipeline
    except Exception as exc:  # pragma: no cover - optional dependency
        raise ClassifierUnavailable("transformers is required for sentence scoring.") from exc
    return pipeline(task, model=model_name)


async def load_classifier(
    task: str = DEFAULT_TASK, model_name: str = DEFAULT_MODEL
) -> TransformersClassifier:
    loop = asyncio.get_running_loop()
    logger.info("Loading text analysis model %s", model_name)
    try:
        pipe = await loop.run_in_executor(None, _build_pipeline, task, model_name)
    except ClassifierUnavailable:
        raise
    except Exception as exc:
        raise ClassifierUnavailable(f"Failed to load text analysis model: {exc}") from exc
    logger.info("Text analysis model loaded")
    return TransformersClassifier(pipe)
