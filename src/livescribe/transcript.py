"""Transcript accumulated from recognizer events."""

from __future__ import annotations

from typing import Callable, List, Optional

from .models import RecognitionResult


def _result_text(result) -> str:
    words = getattr(result, "words", None)
    if not words:
        return ""
    parts = []
    for word in words:
        text = getattr(word, "word", None)
        if isinstance(text, str) and text:
            parts.append(text)
    return " ".join(parts)


class TranscriptStore:
    """Ordered finalized results plus the current partial guess.

    Finals are only ever appended, in arrival order, and the partial is only
    ever overwritten.
    """

    def __init__(self) -> None:
        self._results: List[RecognitionResult] = []
        self._partial = ""
        self._unsubscribe: List[Callable[[], None]] = []

    @property
    def results(self) -> List[RecognitionResult]:
        return list(self._results)

    @property
    def partial(self) -> str:
        return self._partial

    def __len__(self) -> int:
        return len(self._results)

    @property
    def has_results(self) -> bool:
        return bool(self._results)

    def append_final(self, result: RecognitionResult) -> None:
        self._results.append(result)
        self._partial = ""

    def set_partial(self, text: Optional[str]) -> None:
        self._partial = text or ""

    def full_text(self) -> str:
        texts = (_result_text(result) for result in self._results)
        return " ".join(text for text in texts if text)

    def clear(self) -> None:
        self._results = []
        self._partial = ""

    def listen(self, adapter) -> None:
        """Subscribe to an adapter's final and partial events.

        Any earlier subscription is detached first, so each store receives
        every event exactly once.
        """
        self.detach()
        self._unsubscribe = [
            adapter.on_final(self.append_final),
            adapter.on_partial(self.set_partial),
        ]

    def detach(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
