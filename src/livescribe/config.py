"""Configuration handling."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional
import yaml

API_KEY_ENV = "LIVESCRIBE_API_KEY"


@dataclass
class AudioConfig:
    device_name: Optional[str] = None
    sample_rate_hz: int = 16000
    channels: int = 1
    block_size: int = 1024


@dataclass
class RecognizerConfig:
    model: str = "small.en"
    device: str = "auto"
    compute_type: str = "int8"
    language: Optional[str] = "en"
    partial_interval_s: float = 1.0
    silence_s: float = 0.8
    silence_threshold: float = 0.01
    max_utterance_s: float = 15.0


@dataclass
class SummaryConfig:
    sentence_count: int = 3
    use_classifier: bool = True
    classifier_task: str = "sentiment-analysis"
    classifier_model: str = "distilbert-base-uncased-finetuned-sst-2-english"


@dataclass
class RemoteSummaryConfig:
    enabled: bool = False
    endpoint: str = "https://api.openai.com/v1/chat/completions"
    api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    max_tokens: int = 300
    prompt: str = "Summarize the following transcript in a few sentences."
    timeout_s: float = 60.0


@dataclass
class Config:
    output_dir: str = ""
    log_dir: str = "logs"
    audio: AudioConfig = field(default_factory=AudioConfig)
    recognizer: RecognizerConfig = field(default_factory=RecognizerConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)
    remote: RemoteSummaryConfig = field(default_factory=RemoteSummaryConfig)


def load_config(path: str) -> Config:
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    audio = AudioConfig(**data.get("audio", {}))
    recognizer = RecognizerConfig(**data.get("recognizer", {}))
    summary = SummaryConfig(**data.get("summary", {}))
    remote = RemoteSummaryConfig(**data.get("remote", {}))
    if not remote.api_key:
        remote.api_key = os.environ.get(API_KEY_ENV)

    return Config(
        output_dir=data.get("output_dir", ""),
        log_dir=data.get("log_dir", "logs"),
        audio=audio,
        recognizer=recognizer,
        summary=summary,
        remote=remote,
    )


def load_config_or_default(path: Optional[str]) -> Config:
    if path and os.path.exists(path):
        return load_config(path)
    config = Config()
    config.remote.api_key = os.environ.get(API_KEY_ENV)
    return config


def save_config(path: str, config: Config) -> None:
    data = {
        "output_dir": config.output_dir,
        "log_dir": config.log_dir,
        "audio": {
            "device_name": config.audio.device_name,
            "sample_rate_hz": config.audio.sample_rate_hz,
            "channels": config.audio.channels,
            "block_size": config.audio.block_size,
        },
        "recognizer": {
            "model": config.recognizer.model,
            "device": config.recognizer.device,
            "compute_type": config.recognizer.compute_type,
            "language": config.recognizer.language,
            "partial_interval_s": config.recognizer.partial_interval_s,
            "silence_s": config.recognizer.silence_s,
            "silence_threshold": config.recognizer.silence_threshold,
            "max_utterance_s": config.recognizer.max_utterance_s,
        },
        "summary": {
            "sentence_count": config.summary.sentence_count,
            "use_classifier": config.summary.use_classifier,
            "classifier_task": config.summary.classifier_task,
            "classifier_model": config.summary.classifier_model,
        },
        "remote": {
            "enabled": config.remote.enabled,
            "endpoint": config.remote.endpoint,
            "api_key": config.remote.api_key,
            "model": config.remote.model,
            "max_tokens": config.remote.max_tokens,
            "prompt": config.remote.prompt,
            "timeout_s": config.remote.timeout_s,
        },
    }
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
