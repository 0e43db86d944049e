"""Chunked decoder stream: drives the planner and decodes window by window."""

from __future__ import annotations

import logging
import time
from typing import Optional

import torch

from .audio_post_processor import CROSSFADE_SAMPLES, Crossfader
from .encoder_outputs import EncoderOutputs, extract_audio
from .errors import InferenceError
from .interfaces import InferenceGatewayBase
from .mel_chunker import AdaptiveMelChunker, is_one_shot
from .types import ChunkPlan

logger = logging.getLogger(__name__)


class SpeechStreamer:
    """Forward-only iterator of 1-D float32 sample blocks for one utterance.

    The decoder gateway may be shared with other streams; everything mutable
    lives on the streamer, so dropping it early affects nobody else.
    """

    def __init__(
        self,
        decoder: InferenceGatewayBase,
        encoder_outputs: EncoderOutputs,
        chunk_size: int,
        chunk_padding: int,
        crossfade_samples: int = CROSSFADE_SAMPLES,
    ):
        self._decoder = decoder
        self._encoder_outputs = encoder_outputs
        num_frames = encoder_outputs.num_frames
        self._mel_chunker = AdaptiveMelChunker(num_frames, chunk_size, chunk_padding)
        self._crossfader = Crossfader(crossfade_samples)
        self.one_shot = is_one_shot(num_frames, chunk_size, chunk_padding)
        logger.info(
            f"stream: {num_frames} frames, chunk_size={chunk_size} "
            f"padding={chunk_padding} one_shot={self.one_shot}"
        )

    @property
    def exhausted(self) -> bool:
        """True once the terminal block has been produced (or the stream failed)."""
        return self._mel_chunker.exhausted

    def __iter__(self) -> "SpeechStreamer":
        return self

    def __next__(self) -> torch.Tensor:
        plan = next(self._mel_chunker)
        if self.one_shot:
            self._mel_chunker.consume()
            return self._encoder_outputs.decode(self._decoder)
        try:
            return self._synthesize_chunk(plan)
        except InferenceError:
            self._mel_chunker.consume()
            raise

    def _synthesize_chunk(self, plan: ChunkPlan) -> torch.Tensor:
        t0 = time.monotonic()
        outputs = self._decoder.run(self._encoder_outputs.decoder_inputs(plan.mel_range))
        audio = extract_audio(outputs)
        logger.debug(
            f"decoded frames [{plan.mel_start}, {plan.mel_end}) "
            f"in {(time.monotonic() - t0) * 1000:.0f}ms"
        )
        return self._process_chunk_audio(audio, plan)

    def _process_chunk_audio(self, audio: torch.Tensor, plan: ChunkPlan) -> torch.Tensor:
        if audio.dim() == 0:
            raise InferenceError("Invalid model audio output: scalar tensor")
        samples = audio.reshape(-1) if audio.dim() < 3 else audio[0, 0]
        if plan.trim_start + plan.trim_end > samples.size(0):
            raise InferenceError(
                f"Invalid model audio output: {samples.size(0)} samples cannot be "
                f"trimmed by ({plan.trim_start}, {plan.trim_end})"
            )
        block = samples[plan.sample_range]
        tail: Optional[torch.Tensor] = None
        if plan.trim_end:
            tail = samples[samples.size(0) - plan.trim_end:]
        return self._crossfader.process(block, tail)
