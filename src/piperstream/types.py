"""Data types for the synthesis and streaming pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import torch

# One latent frame decodes to this many audio samples.
UPSAMPLE_RATIO = 256


@dataclass
class SynthesisConfig:
    """Generation parameters shared by every call on one model instance."""
    speaker: Optional[int] = None
    noise_scale: float = 0.667
    length_scale: float = 1.0
    noise_w: float = 0.8

    def scales(self) -> list[float]:
        return [self.noise_scale, self.length_scale, self.noise_w]


@dataclass
class StreamConfig:
    """Configuration for chunked streaming."""
    chunk_size: int = 45
    chunk_padding: int = 3


@dataclass(frozen=True)
class ChunkPlan:
    """One planner step: a latent window plus the trim applied to its audio.

    ``mel_end`` is ``None`` for the terminal window (runs to the last frame).
    ``trim_start``/``trim_end`` are in samples; ``trim_end == 0`` keeps the tail.
    """
    mel_start: int
    mel_end: Optional[int]
    trim_start: int
    trim_end: int

    @property
    def is_final(self) -> bool:
        return self.mel_end is None

    @property
    def mel_range(self) -> slice:
        return slice(self.mel_start, self.mel_end)

    @property
    def sample_range(self) -> slice:
        return slice(self.trim_start, -self.trim_end if self.trim_end else None)


@dataclass
class AudioInfo:
    """Output format description: mono PCM at the voice's sample rate."""
    sample_rate: int
    num_channels: int = 1
    sample_width: int = 2


@dataclass
class Audio:
    """A complete utterance of float32 samples."""
    samples: torch.Tensor  # shape (num_samples,)
    sample_rate: int
    inference_ms: Optional[float] = None

    def __len__(self) -> int:
        return self.samples.numel()

    @property
    def duration_ms(self) -> float:
        return len(self) / self.sample_rate * 1000

    @property
    def real_time_factor(self) -> Optional[float]:
        """Inference time divided by audio duration, when both are known."""
        if self.inference_ms is None or len(self) == 0:
            return None
        return self.inference_ms / self.duration_ms


@dataclass
class AudioChunk:
    """A chunk of audio from the streaming pipeline."""
    pcm_bytes: bytes
    sample_rate: int
    is_final: bool
    chunk_index: int
    duration_ms: float
    sentence_index: int = 0
