"""Speech recognizer lifecycle and event normalisation."""

from __future__ import annotations

import asyncio
import inspect
import logging
from functools import partial
from typing import Any, Callable, List, Optional, Protocol

from .errors import EngineLoadError, MalformedResultError
from .models import (
    AudioFrame,
    EngineState,
    RecognitionResult,
    partial_from_payload,
)

logger = logging.getLogger("livescribe")

RESULT_EVENT = "result"
PARTIAL_EVENT = "partialresult"


class Recognizer(Protocol):
    def set_words(self, enabled: bool) -> None:
        ...

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        ...

    def accept_waveform(self, frame: AudioFrame) -> None:
        ...


class Engine(Protocol):
    def create_recognizer(self, sample_rate: int) -> Recognizer:
        ...

    def terminate(self) -> None:
        ...


class EngineFactory(Protocol):
    async def create_engine(self, model: str) -> Engine:
        ...


FinalHandler = Callable[[RecognitionResult], None]
PartialHandler = Callable[[str], None]


class RecognizerSession:
    """Router destination bound to one loaded engine.

    Once the engine it was created for is replaced or terminated the
    session stops forwarding frames.
    """

    def __init__(self, adapter: "RecognizerAdapter", generation: int, model: str) -> None:
        self._adapter = adapter
        self.generation = generation
        self.model = model
        self.frames_received = 0

    @property
    def active(self) -> bool:
        return self._adapter.is_current(self)

    def accept(self, frame: AudioFrame) -> None:
        if not self.active:
            logger.debug("Dropping frame %s for stale session %s", frame.sequence, self.model)
            return
        self.frames_received += 1
        self._adapter.feed(frame)


class RecognizerAdapter:
    def __init__(self, factory: EngineFactory, sample_rate: int = 16000) -> None:
        self._factory = factory
        self.sample_rate = sample_rate
        self.state = EngineState.UNLOADED
        self.model: Optional[str] = None
        self.error_message: Optional[str] = None
        self._engine: Optional[Engine] = None
        self._recognizer: Optional[Recognizer] = None
        self._session: Optional[RecognizerSession] = None
        self._generation = 0
        self._final_handlers: List[FinalHandler] = []
        self._partial_handlers: List[PartialHandler] = []

    @property
    def session(self) -> Optional[RecognizerSession]:
        return self._session

    @property
    def is_ready(self) -> bool:
        return self.state is EngineState.READY

    def is_current(self, session: RecognizerSession) -> bool:
        return session is self._session and self.state is EngineState.READY

    def on_final(self, handler: FinalHandler) -> Callable[[], None]:
        self._final_handlers.append(handler)
        return partial(_remove, self._final_handlers, handler)

    def on_partial(self, handler: PartialHandler) -> Callable[[], None]:
        self._partial_handlers.append(handler)
        return partial(_remove, self._partial_handlers, handler)

    async def load(self, model: str) -> Optional[RecognizerSession]:
        """Load ``model``, terminating any engine that is already loaded.

        Returns the new session, or None when a later ``load`` or
        ``terminate`` superseded this one while the engine was being built.
        Raises :class:`EngineLoadError` if the engine cannot be created.
        """
        self._discard_engine()
        self._generation += 1
        generation = self._generation
        self.state = EngineState.LOADING
        self.model = model
        self.error_message = None
        logger.info("Loading speech model %s", model)

        engine = None
        try:
            engine = await self._factory.create_engine(model)
            if generation != self._generation:
                logger.info("Load of %s superseded, releasing engine", model)
                _terminate_quietly(engine)
                return None
            recognizer = engine.create_recognizer(self.sample_rate)
            recognizer.set_words(True)
            recognizer.on(RESULT_EVENT, partial(self._handle_result, generation))
            recognizer.on(PARTIAL_EVENT, partial(self._handle_partial, generation))
        except asyncio.CancelledError:
            if engine is not None:
                _terminate_quietly(engine)
            if generation == self._generation:
                self.state = EngineState.UNLOADED
            logger.info("Load of %s cancelled", model)
            raise
        except Exception as exc:
            if engine is not None:
                _terminate_quietly(engine)
            if generation == self._generation:
                self.state = EngineState.FAILED
                self.error_message = str(exc) or type(exc).__name__
            logger.error("Failed to load speech model %s: %s", model, exc)
            raise EngineLoadError(model, str(exc) or type(exc).__name__) from exc

        self._engine = engine
        self._recognizer = recognizer
        self._session = RecognizerSession(self, generation, model)
        self.state = EngineState.READY
        logger.info("Speech model %s ready", model)
        return self._session

    def feed(self, frame: AudioFrame) -> None:
        if self.state is not EngineState.READY or self._recognizer is None:
            return
        self._recognizer.accept_waveform(frame)

    async def flush(self) -> None:
        """Ask the engine to finalize any buffered audio, if it supports it."""
        if self.state is not EngineState.READY or self._recognizer is None:
            return
        flush = getattr(self._recognizer, "flush", None)
        if flush is None:
            return
        result = flush()
        if inspect.isawaitable(result):
            await result

    def terminate(self) -> None:
        self._generation += 1
        had_engine = self._engine is not None
        self._discard_engine()
        if had_engine or self.state is not EngineState.UNLOADED:
            self.state = EngineState.TERMINATED

    def _discard_engine(self) -> None:
        engine = self._engine
        self._engine = None
        self._recognizer = None
        self._session = None
        if engine is not None:
            logger.info("Terminating speech engine for %s", self.model)
            _terminate_quietly(engine)

    def _handle_result(self, generation: int, payload: Any) -> None:
        if generation != self._generation:
            logger.debug("Ignoring result from replaced engine")
            return
        try:
            result = RecognitionResult.from_payload(payload)
        except MalformedResultError as exc:
            logger.warning("Malformed recognition result, keeping it empty: %s", exc)
            result = RecognitionResult()
        for handler in list(self._final_handlers):
            handler(result)

    def _handle_partial(self, generation: int, payload: Any) -> None:
        if generation != self._generation:
            return
        text = partial_from_payload(payload)
        for handler in list(self._partial_handlers):
            handler(text)


def _remove(handlers: list, handler: Callable) -> None:
    try:
        handlers.remove(handler)
    except ValueError:
        pass


def _terminate_quietly(engine: Engine) -> None:
    try:
        engine.terminate()
    except Exception as exc:
        logger.warning("Error terminating speech engine: %s", exc)
