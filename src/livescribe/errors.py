"""Error types."""

from __future__ import annotations


class LivescribeError(Exception):
    """Base class for livescribe failures."""


class DeviceError(LivescribeError):
    """Microphone permission denied, missing, or the stream could not be built."""


class EngineLoadError(LivescribeError):
    def __init__(self, model: str, reason: str) -> None:
        self.model = model
        self.reason = reason
        super().__init__(f"Failed to load speech model '{model}': {reason}")


class MalformedResultError(LivescribeError):
    """Engine payload missing expected fields."""


class ClassifierUnavailable(LivescribeError):
    """Sentence classifier could not be loaded or called."""
