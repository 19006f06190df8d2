"""Live transcription session wiring."""

from __future__ import annotations

import logging
from typing import Optional

from .capture import AudioSource, CaptureBackend
from .errors import DeviceError, EngineLoadError
from .models import CaptureState, EngineState
from .recognizer import EngineFactory, RecognizerAdapter
from .remote import RemoteSummarizer
from .router import StreamRouter
from .storage import save_transcript
from .summarizer import Summarizer
from .transcript import TranscriptStore

logger = logging.getLogger("livescribe")


class LiveSession:
    """Microphone, recognizer, transcript and summarizer for one run.

    ``start`` and ``switch_model`` never raise on device or model failures;
    they leave ``capture_state`` / ``engine_state`` in their error states
    with ``error_message`` set, which is what the controls key off.
    """

    def __init__(
        self,
        backend: CaptureBackend,
        engine_factory: EngineFactory,
        summarizer: Optional[Summarizer] = None,
        remote: Optional[RemoteSummarizer] = None,
        sample_rate: int = 16000,
    ) -> None:
        self.router = StreamRouter()
        self.source = AudioSource(backend, self.router.route)
        self.adapter = RecognizerAdapter(engine_factory, sample_rate=sample_rate)
        self.transcript = TranscriptStore()
        self.transcript.listen(self.adapter)
        self.summarizer = summarizer or Summarizer()
        self.remote = remote
        self.error_message: Optional[str] = None
        self._closed = False

    async def __aenter__(self) -> "LiveSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    @property
    def capture_state(self) -> CaptureState:
        return self.source.state

    @property
    def engine_state(self) -> EngineState:
        return self.adapter.state

    @property
    def muted(self) -> bool:
        return self.router.muted

    @property
    def can_toggle(self) -> bool:
        return self.source.is_capturing and self.adapter.is_ready and not self._closed

    @property
    def can_save(self) -> bool:
        return self.transcript.has_results

    can_summarize = can_save

    async def start(self, model: str) -> bool:
        if not await self.switch_model(model):
            return False
        if self.source.state is CaptureState.CAPTURING:
            return True
        try:
            await self.source.acquire()
        except DeviceError as exc:
            self.error_message = str(exc)
            return False
        return self.source.is_capturing

    async def switch_model(self, model: str) -> bool:
        self.router.set_muted(True)
        self.router.set_recognizer_session(None)
        try:
            session = await self.adapter.load(model)
        except EngineLoadError as exc:
            self.error_message = str(exc)
            return False
        if session is None or self._closed:
            return False
        self.router.set_recognizer_session(session)
        self.error_message = None
        return True

    def toggle_mute(self) -> bool:
        if not self.can_toggle:
            logger.debug("Mute toggle ignored while controls are disabled")
            return self.router.muted
        muted = self.router.toggle_mute()
        logger.info("Microphone %s", "muted" if muted else "live")
        return muted

    async def summarize(self) -> str:
        return await self.summarizer.generate_summary(self.transcript.full_text())

    async def summarize_remote(self) -> str:
        if self.remote is None:
            raise RuntimeError("No remote summarizer configured.")
        return await self.remote.summarize(self.transcript.full_text())

    def save(self, directory: str, name: str) -> Optional[str]:
        return save_transcript(self.transcript.full_text(), directory, name)

    async def finish(self) -> None:
        """Mute and let the engine finalize what it has buffered."""
        self.router.set_muted(True)
        await self.adapter.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.router.unbind_all()
        self.source.terminate()
        self.adapter.terminate()
        self.transcript.detach()
