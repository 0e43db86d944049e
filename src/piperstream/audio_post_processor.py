"""Seam crossfading between streamed blocks and float to PCM int16 conversion."""

from __future__ import annotations

from typing import Optional

import torch

# Samples blended at each seam between independently decoded chunks
CROSSFADE_SAMPLES = 42


class Crossfader:
    """Blends the head of each block with the audio the previous block trimmed.

    A non-final chunk decodes ``chunk_padding`` frames past the point where its
    kept audio ends; that overhang covers the same frames as the start of the
    next block. Mixing the two with complementary linear ramps removes the
    click at the seam without changing the total sample count.
    """

    def __init__(self, window: int = CROSSFADE_SAMPLES):
        self._window = window
        self._prev_tail: Optional[torch.Tensor] = None

    def process(
        self, block: torch.Tensor, next_tail: Optional[torch.Tensor] = None
    ) -> torch.Tensor:
        """Crossfade ``block`` in place and remember ``next_tail`` for the next call."""
        if self._prev_tail is not None:
            xf_len = min(self._window, self._prev_tail.size(0), block.size(0))
            if xf_len > 0:
                fade_out = torch.linspace(1.0, 0.0, xf_len, dtype=block.dtype)
                fade_in = 1.0 - fade_out
                block[:xf_len] = self._prev_tail[:xf_len] * fade_out + block[:xf_len] * fade_in

        if next_tail is not None and next_tail.numel() > 0:
            self._prev_tail = next_tail[: self._window].clone()
        else:
            self._prev_tail = None
        return block

    def reset(self) -> None:
        self._prev_tail = None


class AudioPostProcessor:
    """Converts float audio tensors to PCM int16 little-endian bytes."""

    def process(self, audio: torch.Tensor) -> bytes:
        # Ensure 1D float on CPU
        wav = audio.detach().cpu().reshape(-1).float()
        wav = wav.clamp(-1.0, 1.0)
        pcm = (wav * 32767).to(torch.int16)
        return pcm.numpy().tobytes()
