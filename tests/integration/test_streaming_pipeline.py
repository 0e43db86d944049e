"""End-to-end: voice config on disk to streamed PCM, with fake ONNX graphs."""

import json
import struct

import numpy as np
import pytest

from conftest import FakeDecoderGateway, FakeEncoderGateway, FakePhonemizer, make_voice_config
from piperstream import PiperTTS, StreamConfig, create_streaming_pipeline, from_config_path
from piperstream.errors import InferenceError


class RampEncoderGateway(FakeEncoderGateway):
    """Encoder whose frame count follows the number of phoneme ids."""

    def __init__(self, frames_per_id: int = 40):
        super().__init__()
        self.frames_per_id = frames_per_id

    def run(self, inputs):
        self.num_frames = int(inputs["input_lengths"][0]) * self.frames_per_id
        return super().run(inputs)


@pytest.fixture
def streaming_voice(tmp_path):
    path = tmp_path / "voice.onnx.json"
    path.write_text(json.dumps(make_voice_config(streaming=True)), encoding="utf-8")
    return path


@pytest.fixture
def gateways():
    made = {}

    def factory(path):
        gateway = RampEncoderGateway() if path.name == "encoder.onnx" else FakeDecoderGateway()
        made[path.name] = gateway
        return gateway

    return factory, made


def _pcm(chunks):
    data = b"".join(c.pcm_bytes for c in chunks)
    return np.array(struct.unpack(f"<{len(data) // 2}h", data), dtype=np.int16)


class TestEndToEnd:
    def test_streamed_equals_one_shot(self, streaming_voice, gateways):
        factory, made = gateways
        model = from_config_path(streaming_voice, phonemizer=FakePhonemizer(), gateway_factory=factory)

        streamed = list(
            create_streaming_pipeline(model, StreamConfig(chunk_size=44, chunk_padding=4)).iter_audio(
                "həlo həlo həlo"
            )
        )
        # A chunk large enough that the whole utterance decodes in one call
        one_shot = list(
            create_streaming_pipeline(model, StreamConfig(chunk_size=1000, chunk_padding=4)).iter_audio(
                "həlo həlo həlo"
            )
        )
        assert len(streamed) > 1
        assert len(one_shot) == 1
        a, b = _pcm(streamed), _pcm(one_shot)
        assert a.shape == b.shape
        # crossfade blending may round a seam sample by one LSB
        assert np.abs(a.astype(np.int32) - b.astype(np.int32)).max() <= 1

    def test_sentences_in_order(self, streaming_voice, gateways):
        factory, made = gateways
        model = from_config_path(streaming_voice, phonemizer=FakePhonemizer(), gateway_factory=factory)
        chunks = list(create_streaming_pipeline(model).iter_audio("həlo\nhə\nlo lo lo"))
        sentence_indices = [c.sentence_index for c in chunks]
        assert sentence_indices == sorted(sentence_indices)
        assert set(sentence_indices) == {0, 1, 2}
        assert sum(c.is_final for c in chunks) == 1

    def test_speaker_reaches_encoder(self, streaming_voice, gateways):
        factory, made = gateways
        model = from_config_path(streaming_voice, phonemizer=FakePhonemizer(), gateway_factory=factory)
        model.set_speaker(1)
        list(create_streaming_pipeline(model).iter_audio("hə"))
        assert made["encoder.onnx"].calls[-1]["sid"].tolist() == [1]

    def test_decoder_failure_ends_stream(self, streaming_voice):
        def factory(path):
            if path.name == "encoder.onnx":
                return RampEncoderGateway()
            return FakeDecoderGateway(fail_on_call=2)

        model = from_config_path(streaming_voice, phonemizer=FakePhonemizer(), gateway_factory=factory)
        pipeline = create_streaming_pipeline(model, StreamConfig(chunk_size=44, chunk_padding=4))
        received = []
        with pytest.raises(InferenceError):
            for chunk in pipeline.iter_audio("həlo həlo həlo"):
                received.append(chunk)
        assert len(received) == 1
        assert not received[0].is_final

    @pytest.mark.asyncio
    async def test_facade_async_stream(self, streaming_voice, gateways, monkeypatch):
        factory, _ = gateways
        monkeypatch.setattr(
            "piperstream.piper_tts.from_config_path",
            lambda path, phonemizer=None: from_config_path(
                path, phonemizer=phonemizer, gateway_factory=factory
            ),
        )
        tts = PiperTTS(streaming_voice, phonemizer=FakePhonemizer()).load()
        chunks = [c async for c in tts.synthesize("həlo həlo")]
        assert chunks[-1].is_final
        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
