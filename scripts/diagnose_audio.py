import argparse
import asyncio
import os
import sys

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from livescribe.capture import AudioSource, SoundDeviceCapture
from livescribe.errors import DeviceError
from livescribe.router import StreamRouter


class LevelSink:
    def __init__(self) -> None:
        self.rms = 0.0
        self.peak = 0.0
        self.frames = 0

    def accept(self, frame) -> None:
        data = frame.samples.astype("float32") / 32768.0
        self.rms = float(np.sqrt(np.mean(data**2)))
        self.peak = float(np.max(np.abs(data)))
        self.frames += 1


async def _run(args) -> int:
    router = StreamRouter()
    meter = LevelSink()
    router.set_recognizer_session(meter)
    backend = SoundDeviceCapture(
        sample_rate_hz=args.rate,
        channels=args.channels,
        device_name=args.device,
    )
    source = AudioSource(backend, router.route)
    try:
        await source.acquire()
    except DeviceError as exc:
        print(f"Error: {exc}")
        return 1

    print("Streaming... alternating muted/live every second.")
    try:
        steps = int(args.seconds / 0.5)
        for step in range(steps):
            if step % 2 == 0:
                router.toggle_mute()
            await asyncio.sleep(0.5)
            state = "muted" if router.muted else "live"
            print(
                f"[{state:5}] RMS {meter.rms:.3f} | Peak {meter.peak:.3f} | "
                f"live {router.delivered_to_recognizer} / discarded {router.delivered_to_discard}"
            )
    finally:
        router.unbind_all()
        source.terminate()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--device", help="Device name substring.")
    parser.add_argument("--seconds", type=float, default=6.0, help="Test duration.")
    parser.add_argument("--rate", type=int, default=16000, help="Sample rate.")
    parser.add_argument("--channels", type=int, default=1, help="Channels.")
    args = parser.parse_args()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
