"""Mute gate between the microphone and the recognizer."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .models import AudioFrame

logger = logging.getLogger("livescribe")


class FrameSink(Protocol):
    def accept(self, frame: AudioFrame) -> None:
        ...


class DiscardSink:
    """Consumes frames without effect."""

    def __init__(self) -> None:
        self.frames_discarded = 0

    def accept(self, frame: AudioFrame) -> None:
        self.frames_discarded += 1


class StreamRouter:
    """Sends every frame to exactly one destination.

    The destination is the discard sink while muted or while no recognizer
    session is bound, otherwise the bound session. All methods run on the
    control thread, so a destination change always falls between two
    deliveries.
    """

    def __init__(self, discard: Optional[DiscardSink] = None) -> None:
        self.discard = discard if discard is not None else DiscardSink()
        self._session: Optional[FrameSink] = None
        self._muted = True
        self._destination: FrameSink = self.discard
        self.delivered_to_discard = 0
        self.delivered_to_recognizer = 0

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def session(self) -> Optional[FrameSink]:
        return self._session

    def route(self, frame: AudioFrame) -> None:
        destination = self._destination
        if destination is self.discard:
            self.delivered_to_discard += 1
        else:
            self.delivered_to_recognizer += 1
        destination.accept(frame)

    def _rebind(self) -> None:
        if self._muted or self._session is None:
            target = self.discard
        else:
            target = self._session
        if target is not self._destination:
            logger.debug(
                "Routing frames from %s to %s",
                type(self._destination).__name__,
                type(target).__name__,
            )
            self._destination = target

    def set_recognizer_session(self, session: Optional[FrameSink]) -> None:
        if session is self._session:
            return
        # unbind the stale session before the new one can receive anything
        self._session = None
        self._rebind()
        self._session = session
        self._rebind()

    def set_muted(self, muted: bool) -> None:
        self._muted = bool(muted)
        self._rebind()

    def toggle_mute(self) -> bool:
        self.set_muted(not self._muted)
        return self._muted

    def unbind_all(self) -> None:
        self._session = None
        self._muted = True
        self._rebind()
