import asyncio
import sys

import pytest

from livescribe.cli import build_remote, build_session, build_summarizer, main
from livescribe.config import Config, save_config
from livescribe.models import CaptureState, EngineState


def test_build_remote_only_when_enabled():
    cfg = Config()
    assert build_remote(cfg) is None

    cfg.remote.enabled = True
    cfg.remote.model = "tiny"
    remote = build_remote(cfg)
    assert remote.model == "tiny"
    assert remote.endpoint == cfg.remote.endpoint


def test_build_summarizer_without_classifier_uses_positions():
    cfg = Config()
    cfg.summary.sentence_count = 2
    summarizer = build_summarizer(cfg, use_classifier=False)
    text = "First point here. Second point here. Third point here. Last point here."

    summary = asyncio.run(summarizer.generate_summary(text))

    assert summary == "First point here. Third point here."


def test_build_session_is_idle_until_started():
    cfg = Config()
    cfg.audio.sample_rate_hz = 48000
    session = build_session(cfg)

    assert session.capture_state is CaptureState.UNINITIALIZED
    assert session.engine_state is EngineState.UNLOADED
    assert session.adapter.sample_rate == 48000
    assert session.muted
    session.close()


def _write_transcript(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text(
        "First point here. Second point here. Third point here. Last point here.",
        encoding="utf-8",
    )
    return path


def test_summarize_rejects_zero_count(tmp_path, monkeypatch):
    path = _write_transcript(tmp_path)
    monkeypatch.setattr(
        sys, "argv", ["livescribe", "summarize", str(path), "--count", "0"]
    )

    with pytest.raises(SystemExit) as info:
        main()

    assert info.value.code == 2


def test_summarize_rejects_negative_count_from_config(tmp_path, monkeypatch, capsys):
    cfg = Config()
    cfg.log_dir = str(tmp_path / "logs")
    cfg.summary.sentence_count = -1
    config_path = tmp_path / "livescribe_config.yml"
    save_config(str(config_path), cfg)
    path = _write_transcript(tmp_path)
    monkeypatch.setattr(
        sys,
        "argv",
        ["livescribe", "summarize", str(path), "--config", str(config_path), "--no-classifier"],
    )

    assert main() == 2
    assert "at least 1" in capsys.readouterr().err


def test_summarize_count_overrides_config(tmp_path, monkeypatch, capsys):
    cfg = Config()
    cfg.log_dir = str(tmp_path / "logs")
    config_path = tmp_path / "livescribe_config.yml"
    save_config(str(config_path), cfg)
    path = _write_transcript(tmp_path)
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "livescribe",
            "summarize",
            str(path),
            "--config",
            str(config_path),
            "--no-classifier",
            "--count",
            "2",
        ],
    )

    assert main() == 0
    assert capsys.readouterr().out.strip() == "First point here. Third point here."
