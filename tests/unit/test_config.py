"""Tests for ModelConfig parsing and load_model_config."""

import json

import pytest

from conftest import make_voice_config
from piperstream.config import ModelConfig, load_model_config
from piperstream.errors import ConfigurationError, ModelLoadError


class TestFromDict:
    def test_parses_fields(self):
        cfg = ModelConfig.from_dict(make_voice_config())
        assert cfg.sample_rate == 22050
        assert cfg.espeak_voice == "en-us"
        assert cfg.num_speakers == 2
        assert cfg.speaker_id_map == {"alice": 0, "bob": 1}
        assert cfg.phoneme_id_map["h"] == [20]
        assert cfg.streaming is True
        assert cfg.key == "en_US-test-medium"

    def test_streaming_defaults_false(self):
        data = make_voice_config()
        del data["streaming"]
        assert ModelConfig.from_dict(data).streaming is False

    def test_missing_audio_section(self):
        data = make_voice_config()
        del data["audio"]
        with pytest.raises(ConfigurationError):
            ModelConfig.from_dict(data)

    def test_missing_inference_uses_defaults(self):
        data = make_voice_config()
        del data["inference"]
        cfg = ModelConfig.from_dict(data)
        assert cfg.inference.length_scale == 1.0

    def test_meta_ids(self):
        assert ModelConfig.from_dict(make_voice_config()).meta_ids() == (0, 1, 2)

    def test_speaker_map_is_reversed(self):
        cfg = ModelConfig.from_dict(make_voice_config(num_speakers=3))
        assert cfg.speaker_map() == {0: "alice", 1: "bob", 2: "carol"}


class TestLanguageAndProperties:
    def test_language_prefers_language_code(self):
        assert ModelConfig.from_dict(make_voice_config()).language() == "en_US"

    def test_language_falls_back_to_espeak_voice(self):
        data = make_voice_config()
        del data["language"]
        assert ModelConfig.from_dict(data).language() == "en-us"

    def test_unknown_quality(self):
        data = make_voice_config()
        del data["audio"]["quality"]
        assert ModelConfig.from_dict(data).properties() == {"quality": "unknown"}


class TestLoadModelConfig:
    def test_loads_file(self, tmp_path):
        path = tmp_path / "voice.onnx.json"
        path.write_text(json.dumps(make_voice_config()), encoding="utf-8")
        config, synth = load_model_config(path)
        assert config.sample_rate == 22050
        assert synth.speaker is None
        assert synth.scales() == pytest.approx([0.667, 1.0, 0.8])

    def test_missing_file(self, tmp_path):
        with pytest.raises(ModelLoadError):
            load_model_config(tmp_path / "nope.onnx.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "voice.onnx.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ModelLoadError):
            load_model_config(path)
