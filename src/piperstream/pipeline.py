"""Streaming pipeline: text to sentences to PCM audio chunks."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Iterator, Optional

import torch

from .audio_post_processor import AudioPostProcessor
from .interfaces import PiperModel, StreamingPipelineBase
from .types import Audio, AudioChunk, StreamConfig

logger = logging.getLogger(__name__)

_DONE = object()


class StreamingPipeline(StreamingPipelineBase):
    """Phonemizes text and streams each sentence through the model.

    Streaming voices yield one chunk per decoder window; other voices yield
    one chunk per sentence.
    """

    def __init__(
        self,
        model: PiperModel,
        config: Optional[StreamConfig] = None,
        audio_post_processor: Optional[AudioPostProcessor] = None,
    ):
        self._model = model
        self._config = config or StreamConfig()
        self._post_proc = audio_post_processor or AudioPostProcessor()
        self._sample_rate = model.audio_output_info().sample_rate

    def _iter_blocks(
        self, sentences: list[str]
    ) -> Iterator[tuple[int, torch.Tensor, bool]]:
        """Yield ``(sentence_index, samples, ends_sentence)`` in playback order."""
        streaming = self._model.supports_streaming_output()
        for sentence_index, phonemes in enumerate(sentences):
            if not streaming:
                yield sentence_index, self._model.speak_one_sentence(phonemes).samples, True
                continue
            stream = self._model.stream_synthesis(
                phonemes, self._config.chunk_size, self._config.chunk_padding
            )
            for block in stream:
                yield sentence_index, block, stream.exhausted

    def iter_audio(self, text: str) -> Iterator[AudioChunk]:
        sentences = self._model.phonemize_text(text)
        logger.info(f"phonemized into {len(sentences)} sentence(s)")

        last_sentence = len(sentences) - 1
        for chunk_index, (sentence_index, block, ends_sentence) in enumerate(
            self._iter_blocks(sentences)
        ):
            pcm_bytes = self._post_proc.process(block)
            n_samples = len(pcm_bytes) // 2  # int16 = 2 bytes per sample
            yield AudioChunk(
                pcm_bytes=pcm_bytes,
                sample_rate=self._sample_rate,
                is_final=ends_sentence and sentence_index == last_sentence,
                chunk_index=chunk_index,
                duration_ms=(n_samples / self._sample_rate) * 1000,
                sentence_index=sentence_index,
            )

    async def synthesize(self, text: str) -> AsyncIterator[AudioChunk]:
        loop = asyncio.get_running_loop()
        chunks = self.iter_audio(text)
        while True:
            # Inference blocks, so each step runs in the default executor
            chunk = await loop.run_in_executor(None, next, chunks, _DONE)
            if chunk is _DONE:
                break
            yield chunk

    def synthesize_batch(self, text: str) -> list[Audio]:
        """Synthesize every sentence of ``text`` completely, one Audio each."""
        return self._model.speak_batch(self._model.phonemize_text(text))
