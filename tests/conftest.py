"""Shared test fixtures for piperstream tests."""

from __future__ import annotations

import json
from typing import Mapping, Optional

import numpy as np
import pytest

from piperstream.errors import InferenceError
from piperstream.interfaces import InferenceGatewayBase, PhonemizerBase

UPSAMPLE = 256


# ---------------------------------------------------------------------------
# Voice config
# ---------------------------------------------------------------------------

def make_voice_config(num_speakers: int = 2, streaming: bool = True) -> dict:
    speakers = {"alice": 0, "bob": 1, "carol": 2}
    return {
        "key": "en_US-test-medium",
        "language": {"code": "en_US", "family": "en", "region": "US"},
        "audio": {"sample_rate": 22050, "quality": "medium"},
        "espeak": {"voice": "en-us"},
        "inference": {"noise_scale": 0.667, "length_scale": 1.0, "noise_w": 0.8},
        "num_speakers": num_speakers,
        "num_symbols": 256,
        "speaker_id_map": dict(list(speakers.items())[:num_speakers]) if num_speakers > 1 else {},
        "streaming": streaming,
        "phoneme_id_map": {
            "_": [0], "^": [1], "$": [2], " ": [3],
            "!": [4], ",": [8], ".": [10], "?": [13],
            "h": [20], "ə": [21], "l": [22], "o": [23], "ʊ": [24],
            "ˈ": [120], "ˌ": [121],
        },
    }


# ---------------------------------------------------------------------------
# Fake inference gateways
# ---------------------------------------------------------------------------

class FakeEncoderGateway(InferenceGatewayBase):
    """Encoder producing ``num_frames`` latent frames with ``z[0, c, i] = i / 1000``."""

    def __init__(self, num_frames: int = 80, with_g: bool = True, channels: int = 4):
        self.num_frames = num_frames
        self.with_g = with_g
        self.channels = channels
        self.calls: list[dict] = []

    def run(self, inputs: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        self.calls.append(dict(inputs))
        frames = np.arange(self.num_frames, dtype=np.float32) / 1000.0
        z = np.tile(frames, (1, self.channels, 1)).astype(np.float32)
        outputs = {
            "z": z,
            "y_mask": np.ones((1, 1, self.num_frames), dtype=np.float32),
            "p_duration": np.ones((1, 1, 12), dtype=np.float32),
        }
        if self.with_g:
            outputs["g"] = np.full((1, 8, 1), 0.5, dtype=np.float32)
        return outputs


class FakeDecoderGateway(InferenceGatewayBase):
    """Decoder emitting each frame's ``z[0, 0]`` value for 256 samples.

    Any window of frames decodes to exactly the matching slice of the full
    decode, so chunked and one-shot output can be compared sample by sample.
    """

    def __init__(self, fail_on_call: Optional[int] = None):
        self.fail_on_call = fail_on_call
        self.calls: list[dict] = []

    def run(self, inputs: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        self.calls.append(dict(inputs))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise InferenceError("decoder exploded")
        frames = inputs["z"][0, 0]
        audio = np.repeat(frames, UPSAMPLE).reshape(1, 1, -1).astype(np.float32)
        return {"audio": audio}


class FakeVitsGateway(InferenceGatewayBase):
    """Monolithic voice: ``UPSAMPLE`` samples of 0.1 per input id."""

    def __init__(self):
        self.calls: list[dict] = []
        self.on_run = None

    def run(self, inputs: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        self.calls.append(dict(inputs))
        if self.on_run is not None:
            self.on_run(inputs)
        n = inputs["input"].shape[1] * UPSAMPLE
        return {"output": np.full((1, 1, n), 0.1, dtype=np.float32)}


class FakePhonemizer(PhonemizerBase):
    """Treats each non-empty line as one sentence of phonemes."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple] = []

    def phonemize(self, text, voice, separator=None, strip_lang_switch=True, strip_stress=False):
        self.calls.append((text, voice, strip_lang_switch, strip_stress))
        if self.fail:
            raise RuntimeError("espeak is not installed")
        return [line.strip() for line in text.splitlines() if line.strip()]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def voice_config_dict():
    return make_voice_config()


@pytest.fixture
def model_config(voice_config_dict):
    from piperstream.config import ModelConfig
    return ModelConfig.from_dict(voice_config_dict)


@pytest.fixture
def fake_phonemizer():
    return FakePhonemizer()


@pytest.fixture
def make_streaming_model(model_config, fake_phonemizer):
    """Factory for a VitsStreamingModel wired to fake gateways."""
    from piperstream.models import VitsStreamingModel

    def _make(num_frames: int = 80, with_g: bool = True, decoder=None):
        encoder = FakeEncoderGateway(num_frames=num_frames, with_g=with_g)
        decoder = decoder or FakeDecoderGateway()
        model = VitsStreamingModel(
            model_config,
            model_config.default_synthesis_config(),
            encoder=encoder,
            decoder=decoder,
            phonemizer=fake_phonemizer,
        )
        return model, encoder, decoder

    return _make


@pytest.fixture
def vits_model(model_config, fake_phonemizer):
    from piperstream.models import VitsModel
    session = FakeVitsGateway()
    model = VitsModel(
        model_config,
        model_config.default_synthesis_config(),
        session=session,
        phonemizer=fake_phonemizer,
    )
    return model, session


@pytest.fixture
def voice_dir(tmp_path):
    """A directory holding a streaming voice config and a monolithic one."""
    streaming = tmp_path / "streaming"
    streaming.mkdir()
    (streaming / "voice.onnx.json").write_text(
        json.dumps(make_voice_config(streaming=True)), encoding="utf-8"
    )
    (tmp_path / "en_US-test-medium.onnx.json").write_text(
        json.dumps(make_voice_config(streaming=False)), encoding="utf-8"
    )
    return tmp_path
