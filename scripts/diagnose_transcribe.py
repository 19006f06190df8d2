import argparse
import asyncio
import os
import sys
import time
import wave

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from livescribe.models import AudioFrame
from livescribe.recognizer import RecognizerAdapter
from livescribe.summarizer import Summarizer
from livescribe.transcript import TranscriptStore
from livescribe.whisper_engine import StreamingOptions, WhisperEngineFactory


def _print_partial(text: str) -> None:
    if text:
        print(f"  ... {text}")


async def _run(args) -> int:
    with wave.open(args.audio_path, "rb") as handle:
        if handle.getsampwidth() != 2:
            print("Only 16-bit PCM WAV files are supported.")
            return 1
        channels = handle.getnchannels()
        rate = handle.getframerate()
        raw = handle.readframes(handle.getnframes())

    samples = np.frombuffer(raw, dtype=np.int16).reshape(-1, channels)
    factory = WhisperEngineFactory(
        device=args.device,
        compute_type=args.compute_type,
        options=StreamingOptions(language=args.language),
    )
    adapter = RecognizerAdapter(factory, sample_rate=rate)
    store = TranscriptStore()
    store.listen(adapter)
    adapter.on_partial(_print_partial)
    adapter.on_final(lambda result: print(f"FINAL {result.joined_words()}"))

    started = time.time()
    session = await adapter.load(args.model)
    print(f"Model loaded in {time.time() - started:.2f}s")

    for seq, start in enumerate(range(0, samples.shape[0], args.block)):
        session.accept(AudioFrame(samples=samples[start : start + args.block], sequence=seq))
        # let decodes complete between blocks, roughly real time
        await asyncio.sleep(args.block / rate if args.realtime else 0)
    await adapter.flush()
    adapter.terminate()

    print(f"Results: {len(store)}")
    print(f"Elapsed: {time.time() - started:.2f}s")
    text = store.full_text()
    print(f"Transcript: {text}")
    print(f"Summary: {await Summarizer().generate_summary(text)}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("audio_path", help="Path to a 16-bit WAV file.")
    parser.add_argument("--model", default="small.en", help="Whisper model name.")
    parser.add_argument("--language", help="Language code (e.g., en).")
    parser.add_argument("--device", help="Device preference (cpu/cuda).")
    parser.add_argument("--compute-type", help="Compute type (int8/float16).")
    parser.add_argument("--block", type=int, default=1024, help="Frames per block.")
    parser.add_argument(
        "--realtime", action="store_true", help="Feed blocks at playback speed."
    )
    args = parser.parse_args()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
