"""Streaming recognition with Faster-Whisper."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from .models import AudioFrame

logger = logging.getLogger("livescribe")

WHISPER_RATE = 16000


@dataclass
class StreamingOptions:
    language: Optional[str] = "en"
    partial_interval_s: float = 1.0
    silence_s: float = 0.8
    silence_threshold: float = 0.01
    max_utterance_s: float = 15.0


def to_mono_float(samples: np.ndarray, sample_rate: int) -> np.ndarray:
    """Convert a block of PCM samples to float32 mono at 16 kHz."""
    data = np.asarray(samples)
    if data.ndim > 1:
        data = data.mean(axis=1)
    if data.dtype == np.int16:
        data = data.astype(np.float32) / 32768.0
    else:
        data = data.astype(np.float32)
    if sample_rate != WHISPER_RATE and data.size:
        target = int(round(data.size * WHISPER_RATE / sample_rate))
        positions = np.linspace(0, data.size - 1, num=max(target, 1))
        data = np.interp(positions, np.arange(data.size), data).astype(np.float32)
    return data


class WhisperEngineFactory:
    def __init__(
        self,
        device: Optional[str] = None,
        compute_type: Optional[str] = None,
        options: Optional[StreamingOptions] = None,
    ) -> None:
        self.device = device
        self.compute_type = compute_type
        self.options = options or StreamingOptions()

    def _load_model(self, model_name: str):
        try:
            from faster_whisper import WhisperModel
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "faster-whisper is required for transcription."
            ) from exc

        kwargs = {}
        if self.device:
            kwargs["device"] = self.device
        if self.compute_type:
            kwargs["compute_type"] = self.compute_type
        return WhisperModel(model_name, **kwargs)

    async def create_engine(self, model: str) -> "WhisperEngine":
        loop = asyncio.get_running_loop()
        whisper_model = await loop.run_in_executor(None, self._load_model, model)
        return WhisperEngine(whisper_model, loop, self.options)


class WhisperEngine:
    def __init__(self, model, loop: asyncio.AbstractEventLoop, options: StreamingOptions) -> None:
        self._model = model
        self._loop = loop
        self.options = options
        self._recognizers: List[WhisperRecognizer] = []
        self.terminated = False

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def create_recognizer(self, sample_rate: int) -> "WhisperRecognizer":
        if self.terminated:
            raise RuntimeError("Engine has been terminated.")
        recognizer = WhisperRecognizer(self, sample_rate)
        self._recognizers.append(recognizer)
        return recognizer

    def decode(
        self, audio: np.ndarray, word_timestamps: bool
    ) -> Tuple[str, List[Dict[str, Any]]]:
        model = self._model
        if model is None:
            return "", []
        segments, _info = model.transcribe(
            audio,
            language=self.options.language,
            word_timestamps=word_timestamps,
            beam_size=1,
            condition_on_previous_text=False,
        )
        texts: List[str] = []
        words: List[Dict[str, Any]] = []
        for seg in segments:
            texts.append(seg.text.strip())
            for word in seg.words or []:
                words.append(
                    {
                        "word": word.word.strip(),
                        "conf": float(word.probability),
                        "start": float(word.start),
                        "end": float(word.end),
                    }
                )
        return " ".join(t for t in texts if t), words

    def terminate(self) -> None:
        if self.terminated:
            return
        self.terminated = True
        for recognizer in self._recognizers:
            recognizer.close()
        self._recognizers = []
        self._model = None


class WhisperRecognizer:
    """Buffers audio and emits partial/final events like a streaming recognizer.

    A partial decode runs every ``partial_interval_s`` of new audio. The
    buffered utterance is finalized after ``silence_s`` of trailing silence
    or once it reaches ``max_utterance_s``. Only one decode is in flight at a
    time so events are emitted in audio order.
    """

    def __init__(self, engine: WhisperEngine, sample_rate: int) -> None:
        self._engine = engine
        self.sample_rate = sample_rate
        self._handlers: Dict[str, List[Callable[[Any], None]]] = {
            "result": [],
            "partialresult": [],
        }
        self._words = False
        self._pending: List[np.ndarray] = []
        self._pending_samples = 0
        self._silent_samples = 0
        self._since_partial = 0
        self._offset_s = 0.0
        self._decoding = False
        self._finalize_requested = False
        self._closed = False

    def set_words(self, enabled: bool) -> None:
        self._words = bool(enabled)

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        if event not in self._handlers:
            raise ValueError(f"Unknown recognizer event '{event}'")
        self._handlers[event].append(handler)

    def accept_waveform(self, frame: AudioFrame) -> None:
        if self._closed:
            return
        audio = to_mono_float(frame.samples, self.sample_rate)
        if not audio.size:
            return
        self._pending.append(audio)
        self._pending_samples += audio.size
        self._since_partial += audio.size
        rms = float(np.sqrt(np.mean(audio**2)))
        if rms < self._engine.options.silence_threshold:
            self._silent_samples += audio.size
        else:
            self._silent_samples = 0
        self._schedule()

    async def flush(self) -> None:
        self._finalize_requested = True
        self._schedule()
        while not self._closed and (self._decoding or self._finalize_requested):
            await asyncio.sleep(0.05)

    def close(self) -> None:
        self._closed = True
        self._reset_buffer()
        self._finalize_requested = False

    def _reset_buffer(self) -> None:
        self._offset_s += self._pending_samples / WHISPER_RATE
        self._pending = []
        self._pending_samples = 0
        self._silent_samples = 0
        self._since_partial = 0

    def _schedule(self) -> None:
        if self._decoding or self._closed:
            return
        options = self._engine.options
        voiced = self._pending_samples - self._silent_samples
        if not self._pending_samples:
            self._finalize_requested = False
            return

        if (
            self._finalize_requested
            or self._pending_samples >= options.max_utterance_s * WHISPER_RATE
            or self._silent_samples >= options.silence_s * WHISPER_RATE
        ):
            self._finalize_requested = False
            if voiced <= 0:
                self._reset_buffer()
                return
            final = True
        elif self._since_partial >= options.partial_interval_s * WHISPER_RATE and voiced > 0:
            final = False
        else:
            return

        audio = np.concatenate(self._pending)
        offset = self._offset_s
        if final:
            self._reset_buffer()
        self._since_partial = 0
        self._decoding = True
        future = self._engine.loop.run_in_executor(
            None, self._engine.decode, audio, final and self._words
        )
        future.add_done_callback(partial(self._on_decoded, final, offset))

    def _on_decoded(self, final: bool, offset: float, future: "asyncio.Future") -> None:
        self._decoding = False
        if self._closed:
            return
        text, words = "", []
        if future.cancelled():
            logger.debug("Decode cancelled")
        elif future.exception() is not None:
            logger.warning("Decode failed: %s", future.exception())
        else:
            text, words = future.result()

        if final:
            for word in words:
                word["start"] += offset
                word["end"] += offset
            self._emit("result", {"result": words, "text": text})
        else:
            self._emit("partialresult", {"partial": text})
        self._schedule()

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        for handler in list(self._handlers[event]):
            handler(payload)
