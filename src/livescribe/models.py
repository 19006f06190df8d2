"""Data models for livescribe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Tuple

import numpy as np

from .errors import MalformedResultError


class CaptureState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CAPTURING = "capturing"
    TERMINATED = "terminated"
    ERROR = "error"


class EngineState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class AudioFrame:
    samples: np.ndarray
    sequence: int

    def __post_init__(self) -> None:
        samples = np.array(self.samples, copy=True)
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)


@dataclass(frozen=True)
class WordResult:
    word: str
    conf: float = 0.0
    start: float = 0.0
    end: float = 0.0


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class RecognitionResult:
    """One finalized utterance as emitted by the engine."""

    words: Tuple[WordResult, ...] = field(default_factory=tuple)
    text: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "RecognitionResult":
        """Build a result from a raw engine payload.

        Raises :class:`MalformedResultError` when the payload is not a
        mapping or carries no word list. Word entries without a usable
        ``word`` string are dropped, missing numbers default to 0.
        """
        if not isinstance(payload, Mapping):
            raise MalformedResultError(f"result payload is {type(payload).__name__}")

        raw_words = payload.get("result")
        if not isinstance(raw_words, (list, tuple)):
            raise MalformedResultError("result payload has no word list")

        words = []
        for item in raw_words:
            if not isinstance(item, Mapping):
                continue
            word = item.get("word")
            if not isinstance(word, str) or not word.strip():
                continue
            conf = min(max(_as_float(item.get("conf")), 0.0), 1.0)
            words.append(
                WordResult(
                    word=word.strip(),
                    conf=conf,
                    start=_as_float(item.get("start")),
                    end=_as_float(item.get("end")),
                )
            )

        text = payload.get("text")
        if not isinstance(text, str):
            text = " ".join(w.word for w in words)
        return cls(words=tuple(words), text=text.strip())

    def joined_words(self) -> str:
        return " ".join(w.word for w in self.words if w.word)


def partial_from_payload(payload: Any) -> str:
    if not isinstance(payload, Mapping):
        return ""
    partial = payload.get("partial")
    return partial if isinstance(partial, str) else ""


@dataclass(frozen=True)
class ScoredSentence:
    sentence: str
    score: float
    label: str
    index: int
