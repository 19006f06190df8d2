import os
import tempfile

from livescribe.config import Config, load_config, load_config_or_default, save_config


def test_save_and_load_config_roundtrip():
    cfg = Config(output_dir="C:/Transcripts")
    cfg.recognizer.model = "base.en"
    cfg.summary.sentence_count = 4

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "livescribe_config.yml")
        save_config(path, cfg)
        loaded = load_config(path)

    assert loaded.output_dir == "C:/Transcripts"
    assert loaded.recognizer.model == "base.en"
    assert loaded.summary.sentence_count == 4
    assert loaded.audio.sample_rate_hz == 16000


def test_partial_config_uses_defaults(tmp_path):
    path = tmp_path / "partial.yml"
    path.write_text("audio:\n  device_name: USB Mic\n", encoding="utf-8")

    loaded = load_config(str(path))

    assert loaded.audio.device_name == "USB Mic"
    assert loaded.audio.block_size == 1024
    assert loaded.summary.classifier_task == "sentiment-analysis"
    assert loaded.remote.enabled is False


def test_api_key_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("LIVESCRIBE_API_KEY", "secret")
    path = tmp_path / "cfg.yml"
    path.write_text("remote:\n  enabled: true\n", encoding="utf-8")

    assert load_config(str(path)).remote.api_key == "secret"
    assert load_config_or_default(str(tmp_path / "missing.yml")).remote.api_key == "secret"
