"""VITS voices: monolithic and encoder/decoder (streaming) variants."""

from __future__ import annotations

import logging
import time
from abc import abstractmethod
from dataclasses import replace
from typing import Mapping, Optional

import numpy as np

from .config import ModelConfig
from .encoder_outputs import EncoderOutputs, extract_audio
from .errors import ConfigurationError, InvalidSpeakerError, PhonemizationError
from .interfaces import InferenceGatewayBase, PhonemizerBase, PiperModel
from .phoneme_encoder import phonemes_to_ids
from .rwlock import ReadWriteLock
from .speech_streamer import SpeechStreamer
from .types import Audio, AudioInfo, SynthesisConfig

logger = logging.getLogger(__name__)


class _VitsModelCommons(PiperModel):
    """Config, speaker and phoneme handling shared by both voice variants."""

    def __init__(
        self,
        config: ModelConfig,
        synth_config: SynthesisConfig,
        phonemizer: Optional[PhonemizerBase] = None,
    ):
        self._config = config
        self._synth_config = synth_config
        self._synth_lock = ReadWriteLock()
        self._speaker_map = config.speaker_map()
        self._phonemizer = phonemizer
        self._meta_ids = config.meta_ids()

    @property
    def config(self) -> ModelConfig:
        return self._config

    # -- phonemes -----------------------------------------------------------

    def phonemize_text(self, text: str) -> list[str]:
        if self._phonemizer is None:
            from .espeak_phonemizer import EspeakPhonemizer
            self._phonemizer = EspeakPhonemizer()
        try:
            return self._phonemizer.phonemize(
                text, self._config.espeak_voice, strip_lang_switch=True, strip_stress=False
            )
        except PhonemizationError:
            raise
        except Exception as e:
            raise PhonemizationError(
                f"Failed to phonemize given text using espeak-ng. Error: {e}"
            ) from e

    def _phonemes_to_input_ids(self, phonemes: str) -> list[int]:
        pad_id, bos_id, eos_id = self._meta_ids
        return phonemes_to_ids(phonemes, self._config.phoneme_id_map, pad_id, bos_id, eos_id)

    def _encoder_inputs(self, input_ids: list[int]) -> dict[str, np.ndarray]:
        """Assemble the phoneme/scale/speaker tensors.

        The read lock covers tensor assembly only, never the inference call.
        """
        with self._synth_lock.read_locked():
            inputs = {
                "input": np.array([input_ids], dtype=np.int64),
                "input_lengths": np.array([len(input_ids)], dtype=np.int64),
                "scales": np.array(self._synth_config.scales(), dtype=np.float32),
            }
            if self._config.num_speakers > 1:
                sid = self._synth_config.speaker if self._synth_config.speaker is not None else 0
                inputs["sid"] = np.array([sid], dtype=np.int64)
        return inputs

    # -- speakers & config --------------------------------------------------

    def set_speaker(self, sid: int) -> None:
        if sid not in self._speaker_map:
            raise InvalidSpeakerError(f"Invalid speaker id `{sid}`")
        with self._synth_lock.write_locked():
            self._synth_config.speaker = sid
        logger.info(f"speaker set to {sid} ({self._speaker_map[sid]})")

    def speaker_name_to_id(self, name: str) -> Optional[int]:
        return self._config.speaker_id_map.get(name)

    def get_speakers(self) -> dict[int, str]:
        return dict(self._speaker_map)

    def get_language(self) -> Optional[str]:
        return self._config.language()

    def properties(self) -> dict[str, str]:
        return self._config.properties()

    def audio_output_info(self) -> AudioInfo:
        return self._config.audio_output_info()

    def get_default_synthesis_config(self) -> SynthesisConfig:
        return replace(self._config.default_synthesis_config(), speaker=0)

    def get_fallback_synthesis_config(self) -> SynthesisConfig:
        with self._synth_lock.read_locked():
            return replace(self._synth_config)

    def set_fallback_synthesis_config(self, synthesis_config: SynthesisConfig) -> None:
        if not isinstance(synthesis_config, SynthesisConfig):
            raise ConfigurationError("Invalid configuration for Vits Model")
        if synthesis_config.length_scale <= 0:
            raise ConfigurationError(
                f"length_scale must be positive, got {synthesis_config.length_scale}"
            )
        if synthesis_config.noise_scale < 0 or synthesis_config.noise_w < 0:
            raise ConfigurationError("noise_scale and noise_w must be non-negative")
        sid = synthesis_config.speaker
        if sid is not None and sid not in self._speaker_map:
            raise InvalidSpeakerError(f"No speaker was found with the given id `{sid}`")

        with self._synth_lock.write_locked():
            self._synth_config.noise_scale = synthesis_config.noise_scale
            self._synth_config.length_scale = synthesis_config.length_scale
            self._synth_config.noise_w = synthesis_config.noise_w
            if sid is not None:
                self._synth_config.speaker = sid

    # -- synthesis ----------------------------------------------------------

    @abstractmethod
    def _infer(self, input_ids: list[int]) -> Audio:
        """Run inference for one ID sequence and return its complete audio."""

    def speak_one_sentence(self, phonemes: str) -> Audio:
        return self._infer(self._phonemes_to_input_ids(phonemes))

    def speak_batch(self, phoneme_batches: list[str]) -> list[Audio]:
        batches = [self._phonemes_to_input_ids(p) for p in phoneme_batches]
        return [self._infer(ids) for ids in batches]


class VitsModel(_VitsModelCommons):
    """A voice exported as a single ONNX graph: phoneme IDs in, audio out."""

    def __init__(
        self,
        config: ModelConfig,
        synth_config: SynthesisConfig,
        session: InferenceGatewayBase,
        phonemizer: Optional[PhonemizerBase] = None,
    ):
        super().__init__(config, synth_config, phonemizer)
        self._session = session

    def _infer(self, input_ids: list[int]) -> Audio:
        inputs = self._encoder_inputs(input_ids)
        t0 = time.monotonic()
        outputs = self._session.run(inputs)
        inference_ms = (time.monotonic() - t0) * 1000
        samples = extract_audio(outputs).reshape(-1)
        logger.info(
            f"synthesized {len(input_ids)} ids -> {samples.numel()} samples "
            f"in {inference_ms:.0f}ms"
        )
        return Audio(samples, self._config.sample_rate, inference_ms)


class VitsStreamingModel(_VitsModelCommons):
    """A voice split into encoder and decoder graphs, decodable chunk by chunk.

    The decoder gateway is shared by every stream created from this model.
    """

    def __init__(
        self,
        config: ModelConfig,
        synth_config: SynthesisConfig,
        encoder: InferenceGatewayBase,
        decoder: InferenceGatewayBase,
        phonemizer: Optional[PhonemizerBase] = None,
    ):
        super().__init__(config, synth_config, phonemizer)
        self._encoder = encoder
        self._decoder = decoder

    def infer_encoder(self, input_ids: list[int]) -> EncoderOutputs:
        inputs = self._encoder_inputs(input_ids)
        t0 = time.monotonic()
        values: Mapping[str, np.ndarray] = self._encoder.run(inputs)
        outputs = EncoderOutputs.from_values(values)
        logger.info(
            f"encoder: {len(input_ids)} ids -> {outputs.num_frames} frames "
            f"in {(time.monotonic() - t0) * 1000:.0f}ms"
        )
        return outputs

    def _infer(self, input_ids: list[int]) -> Audio:
        t0 = time.monotonic()
        samples = self.infer_encoder(input_ids).decode(self._decoder)
        inference_ms = (time.monotonic() - t0) * 1000
        return Audio(samples, self._config.sample_rate, inference_ms)

    def supports_streaming_output(self) -> bool:
        return True

    def stream_synthesis(
        self, phonemes: str, chunk_size: int, chunk_padding: int
    ) -> SpeechStreamer:
        encoder_outputs = self.infer_encoder(self._phonemes_to_input_ids(phonemes))
        return SpeechStreamer(self._decoder, encoder_outputs, chunk_size, chunk_padding)
