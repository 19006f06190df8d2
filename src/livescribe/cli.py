"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
from functools import partial
import logging
import os
import sys

from .capture import SoundDeviceCapture, list_input_devices
from .classifier import load_classifier
from .config import Config, load_config_or_default, save_config
from .logging_utils import setup_logging
from .models import RecognitionResult
from .remote import RemoteSummarizer
from .session import LiveSession
from .summarizer import Summarizer
from .whisper_engine import StreamingOptions, WhisperEngineFactory

LIVE_HELP = """Commands:
  <Enter>     toggle microphone (starts muted)
  s           extractive summary
  r           remote summary
  w [NAME]    save transcript as NAME.txt
  m MODEL     switch speech model
  p           show current partial text
  q           quit"""


def _positive_int(value: str) -> int:
    count = int(value)
    if count < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {count}")
    return count


def build_summarizer(config: Config, use_classifier: bool = True) -> Summarizer:
    loader = None
    if use_classifier and config.summary.use_classifier:
        loader = partial(
            load_classifier,
            config.summary.classifier_task,
            config.summary.classifier_model,
        )
    return Summarizer(loader, sentence_count=config.summary.sentence_count)


def build_remote(config: Config) -> RemoteSummarizer | None:
    if not config.remote.enabled:
        return None
    return RemoteSummarizer(
        endpoint=config.remote.endpoint,
        api_key=config.remote.api_key,
        model=config.remote.model,
        max_tokens=config.remote.max_tokens,
        prompt=config.remote.prompt,
        timeout=config.remote.timeout_s,
    )


def build_session(config: Config) -> LiveSession:
    backend = SoundDeviceCapture(
        sample_rate_hz=config.audio.sample_rate_hz,
        channels=config.audio.channels,
        block_size=config.audio.block_size,
        device_name=config.audio.device_name,
    )
    factory = WhisperEngineFactory(
        device=config.recognizer.device,
        compute_type=config.recognizer.compute_type,
        options=StreamingOptions(
            language=config.recognizer.language,
            partial_interval_s=config.recognizer.partial_interval_s,
            silence_s=config.recognizer.silence_s,
            silence_threshold=config.recognizer.silence_threshold,
            max_utterance_s=config.recognizer.max_utterance_s,
        ),
    )
    return LiveSession(
        backend,
        factory,
        summarizer=build_summarizer(config),
        remote=build_remote(config),
        sample_rate=config.audio.sample_rate_hz,
    )


def _print_final(result: RecognitionResult) -> None:
    text = result.joined_words()
    if text:
        print(text, flush=True)


async def run_live(config: Config, model: str, unmuted: bool = False) -> int:
    output_dir = config.output_dir or os.getcwd()
    async with build_session(config) as session:
        session.adapter.on_final(_print_final)
        print(f"Loading speech model {model}...")
        if not await session.start(model):
            print(f"Error: {session.error_message}")
            return 1
        if unmuted:
            session.toggle_mute()
        print(LIVE_HELP)
        print("[muted]" if session.muted else "[listening]")

        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            command = line.strip()
            if not command:
                muted = session.toggle_mute()
                print("[muted]" if muted else "[listening]")
            elif command == "q":
                break
            elif command == "s":
                if not session.can_summarize:
                    print("Nothing transcribed yet.")
                    continue
                print(await session.summarize())
            elif command == "r":
                if session.remote is None:
                    print("Remote summaries are disabled in the config.")
                    continue
                print(await session.summarize_remote())
            elif command == "w" or command.startswith("w "):
                path = session.save(output_dir, command[1:].strip())
                print(f"Wrote {path}" if path else "No transcript content to save.")
            elif command.startswith("m "):
                new_model = command[2:].strip()
                print(f"Loading speech model {new_model}...")
                if await session.switch_model(new_model):
                    print("[muted]")
                else:
                    print(f"Error: {session.error_message}")
            elif command == "p":
                print(session.transcript.partial or "(no partial)")
            else:
                print(LIVE_HELP)

        await session.finish()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(prog="livescribe")
    parser.add_argument("--verbose", action="store_true", help="Log to console.")
    sub = parser.add_subparsers(dest="command")

    devices_cmd = sub.add_parser("devices")
    devices_cmd.add_argument("--match", help="Filter device names by substring.")

    live_cmd = sub.add_parser("live")
    live_cmd.add_argument("--config", default="livescribe_config.yml", help="Config.")
    live_cmd.add_argument("--model", help="Speech model name or path.")
    live_cmd.add_argument("--device", help="Preferred device name substring.")
    live_cmd.add_argument(
        "--unmuted", action="store_true", help="Start with the microphone live."
    )

    summarize_cmd = sub.add_parser("summarize")
    summarize_cmd.add_argument("path", help="Path to a transcript text file.")
    summarize_cmd.add_argument("--config", default="livescribe_config.yml", help="Config.")
    summarize_cmd.add_argument(
        "--no-classifier",
        action="store_true",
        help="Use the first/middle/last heuristic only.",
    )
    summarize_cmd.add_argument("--count", type=_positive_int, help="Sentences to keep.")

    config_cmd = sub.add_parser("config")
    config_cmd.add_argument("--path", default="livescribe_config.yml", help="Output path.")

    args = parser.parse_args()
    if args.command == "devices":
        devices = list_input_devices()
        if args.match:
            devices = [
                d for d in devices if args.match.lower() in d.get("name", "").lower()
            ]
        for device in devices:
            name = device.get("name", "Unknown")
            index = device.get("index", "?")
            channels = device.get("max_input_channels", 0)
            print(f"[{index}] {name} (inputs: {channels})")
        return 0

    if args.command == "config":
        if os.path.exists(args.path):
            print(f"{args.path} already exists.")
            return 1
        save_config(args.path, Config())
        print(f"Wrote {args.path}")
        return 0

    if args.command in ("live", "summarize"):
        cfg = load_config_or_default(args.config)
        setup_logging(
            cfg.log_dir,
            level=logging.DEBUG if args.verbose else logging.INFO,
            console=bool(args.verbose),
        )
        if getattr(args, "count", None) is not None:
            cfg.summary.sentence_count = args.count
        if cfg.summary.sentence_count < 1:
            print(
                f"summary.sentence_count must be at least 1, got {cfg.summary.sentence_count}",
                file=sys.stderr,
            )
            return 2

        if args.command == "summarize":
            with open(args.path, "r", encoding="utf-8") as handle:
                text = handle.read()
            summarizer = build_summarizer(cfg, use_classifier=not args.no_classifier)
            print(asyncio.run(summarizer.generate_summary(text)))
            return 0

        if args.device:
            cfg.audio.device_name = args.device
        model = args.model or cfg.recognizer.model
        try:
            return asyncio.run(run_live(cfg, model, unmuted=bool(args.unmuted)))
        except KeyboardInterrupt:
            return 130

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
