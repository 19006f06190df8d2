"""Microphone capture."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, List, Dict, Any, Callable, Protocol

import numpy as np

from .errors import DeviceError
from .models import AudioFrame, CaptureState

logger = logging.getLogger("livescribe")


def list_input_devices() -> List[Dict[str, Any]]:
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for device detection.") from exc

    devices = sd.query_devices()
    return [d for d in devices if d.get("max_input_channels", 0) > 0]


def select_preferred_device(
    candidates: List[Dict[str, Any]],
    prefer_name: Optional[str] = None,
) -> Dict[str, Any]:
    if not candidates:
        raise RuntimeError("No input devices found.")
    if prefer_name:
        preferred = [
            d for d in candidates if prefer_name.lower() in d.get("name", "").lower()
        ]
        if preferred:
            return preferred[0]
        logger.warning("No input device matches %r, using %s", prefer_name, candidates[0].get("name"))
    return candidates[0]


def find_input_device(prefer_name: Optional[str] = None) -> dict:
    candidates = list_input_devices()
    return select_preferred_device(candidates, prefer_name=prefer_name)


class CaptureBackend(Protocol):
    def open(self, callback: Callable[[np.ndarray], None]) -> None:
        """Start delivering sample blocks to ``callback`` (any thread)."""
        ...

    def close(self) -> None:
        ...


class SoundDeviceCapture:
    """Capture backend on top of a sounddevice ``InputStream``."""

    def __init__(
        self,
        sample_rate_hz: int = 16000,
        channels: int = 1,
        block_size: int = 1024,
        device_name: Optional[str] = None,
    ) -> None:
        self.sample_rate_hz = sample_rate_hz
        self.channels = channels
        self.block_size = block_size
        self.device_name = device_name
        self._stream = None

    def open(self, callback: Callable[[np.ndarray], None]) -> None:
        try:
            import sounddevice as sd
        except Exception as exc:  # pragma: no cover - environment-dependent
            raise DeviceError("sounddevice is required for recording.") from exc

        device_index = None
        if self.device_name:
            try:
                device_index = find_input_device(self.device_name).get("index")
            except RuntimeError as exc:
                raise DeviceError(str(exc)) from exc

        def _callback(indata, _frames, _time, status):
            if status:
                logger.debug("Input stream status: %s", status)
            callback(indata.copy())

        stream = None
        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate_hz,
                channels=self.channels,
                dtype="int16",
                blocksize=self.block_size,
                device=device_index,
                callback=_callback,
            )
            stream.start()
        except Exception as exc:
            if stream is not None:
                stream.close()
            raise DeviceError(
                "Error accessing microphone. Please check device permissions."
            ) from exc
        self._stream = stream

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()


class AudioSource:
    """Owns the capture device and turns sample blocks into ordered frames.

    Blocks arrive on the device thread and are handed to the event loop,
    so ``on_frame`` always runs on the control thread.
    """

    def __init__(
        self,
        backend: CaptureBackend,
        on_frame: Callable[[AudioFrame], None],
    ) -> None:
        self._backend = backend
        self._on_frame = on_frame
        self._sequence = 0
        self._accepting = False
        self._acquisition = 0
        self.state = CaptureState.UNINITIALIZED
        self.error_message: Optional[str] = None

    @property
    def is_capturing(self) -> bool:
        return self.state is CaptureState.CAPTURING

    async def acquire(self) -> None:
        if self.state is CaptureState.CAPTURING:
            return
        loop = asyncio.get_running_loop()

        def _deliver(samples: np.ndarray) -> None:
            try:
                loop.call_soon_threadsafe(self._emit, samples)
            except RuntimeError:
                # loop already closed during shutdown
                pass

        self._acquisition += 1
        token = self._acquisition
        self._sequence = 0
        self.error_message = None
        self._accepting = True
        opening = loop.run_in_executor(None, self._backend.open, _deliver)
        try:
            await asyncio.shield(opening)
        except asyncio.CancelledError:
            # open keeps running in the worker thread; close once it returns
            self._accepting = False
            opening.add_done_callback(self._release_when_opened)
            raise
        except Exception as exc:
            self._accepting = False
            self._release()
            if token != self._acquisition:
                logger.debug("Ignoring device error after terminate: %s", exc)
                return
            self.state = CaptureState.ERROR
            self.error_message = str(exc) or "Error starting microphone"
            logger.error("Microphone acquisition failed: %s", self.error_message)
            if isinstance(exc, DeviceError):
                raise
            raise DeviceError(self.error_message) from exc

        if token != self._acquisition:
            logger.info("Capture terminated while the device was opening, releasing it")
            self._accepting = False
            self._release()
            return

        self.state = CaptureState.CAPTURING
        logger.info("Microphone capture started")

    def _emit(self, samples: np.ndarray) -> None:
        if not self._accepting:
            return
        frame = AudioFrame(samples=samples, sequence=self._sequence)
        self._sequence += 1
        self._on_frame(frame)

    def _release_when_opened(self, opening: "asyncio.Future") -> None:
        if not opening.cancelled():
            opening.exception()
        self._release()

    def _release(self) -> None:
        try:
            self._backend.close()
        except Exception as exc:
            logger.warning("Error closing capture device: %s", exc)

    def terminate(self) -> None:
        self._acquisition += 1
        if self.state is CaptureState.TERMINATED and not self._accepting:
            return
        self._accepting = False
        self._release()
        if self.state is CaptureState.CAPTURING:
            logger.info("Microphone capture stopped")
        self.state = CaptureState.TERMINATED
