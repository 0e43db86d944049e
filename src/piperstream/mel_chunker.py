"""Adaptive chunk planner over the latent frame axis."""

from __future__ import annotations

import logging
from typing import Optional

from .types import UPSAMPLE_RATIO, ChunkPlan

logger = logging.getLogger(__name__)

# A tail this short is folded into the current window instead of getting its own.
MIN_CHUNK_SIZE = 44
MAX_CHUNK_SIZE = 1024


def is_one_shot(num_frames: int, chunk_size: int, chunk_padding: int) -> bool:
    """Short utterances are decoded in a single call."""
    return num_frames <= chunk_size * 2 + chunk_padding * 2


class AdaptiveMelChunker:
    """Yields overlapping frame windows that grow by ``chunk_size`` each step.

    Every window after the first starts ``2 * chunk_padding`` frames before the
    previous window's end and drops its first ``chunk_padding`` frames of audio;
    every window but the last drops its final ``chunk_padding`` frames. The kept
    audio therefore tiles ``[0, num_frames)`` exactly.
    """

    def __init__(self, num_frames: int, chunk_size: int, chunk_padding: int):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_padding < 0:
            raise ValueError(f"chunk_padding must be >= 0, got {chunk_padding}")
        self.num_frames = num_frames
        self.chunk_size = chunk_size
        self.chunk_padding = chunk_padding
        self._last_end_index: Optional[int] = 0
        self._step = 1

    @property
    def exhausted(self) -> bool:
        return self._last_end_index is None

    def consume(self) -> None:
        """Mark the planner exhausted."""
        self._last_end_index = None

    def __iter__(self) -> "AdaptiveMelChunker":
        return self

    def __next__(self) -> ChunkPlan:
        last_index = self._last_end_index
        if last_index is None:
            raise StopIteration

        window = min(self.chunk_size * self._step, MAX_CHUNK_SIZE)
        padding = self.chunk_padding
        if last_index == 0:
            start_index, start_padding = 0, 0
        else:
            start_index, start_padding = last_index - padding * 2, padding

        chunk_end = last_index + window + padding
        if self.num_frames - chunk_end <= MIN_CHUNK_SIZE:
            end_index, end_padding = None, 0
        else:
            end_index, end_padding = chunk_end, padding

        self._step += 1
        self._last_end_index = end_index
        plan = ChunkPlan(
            mel_start=start_index,
            mel_end=end_index,
            trim_start=start_padding * UPSAMPLE_RATIO,
            trim_end=end_padding * UPSAMPLE_RATIO,
        )
        logger.debug(
            f"chunk plan: frames [{plan.mel_start}, {plan.mel_end}) "
            f"trim=({plan.trim_start}, {plan.trim_end}) window={window}"
        )
        return plan
