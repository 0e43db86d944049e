"""Latent tensors produced by one encoder pass, and decoding them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import numpy as np
import torch

from .errors import InferenceError
from .interfaces import InferenceGatewayBase


def extract_float_tensor(
    values: Mapping[str, np.ndarray], name: str, ndim: Optional[int] = None
) -> torch.Tensor:
    """Pull a float32 output out of an inference result as a tensor."""
    if name not in values:
        raise InferenceError(f"Model output `{name}` is missing")
    array = np.asarray(values[name])
    if array.dtype != np.float32:
        raise InferenceError(
            f"Model output `{name}` has dtype {array.dtype}, expected float32"
        )
    if ndim is not None and array.ndim != ndim:
        raise InferenceError(
            f"Model output `{name}` has shape {array.shape}, expected {ndim} dims"
        )
    return torch.from_numpy(np.ascontiguousarray(array))


def extract_audio(values: Mapping[str, np.ndarray]) -> torch.Tensor:
    """Return the first output as a float32 tensor, shape kept as produced."""
    if not values:
        raise InferenceError("Model returned no outputs")
    return extract_float_tensor(values, next(iter(values)))


@dataclass
class EncoderOutputs:
    """Owns ``z`` (1, channels, frames), ``y_mask`` (1, 1, frames) and ``g``.

    ``g`` is an empty tensor for voices without a speaker embedding.
    """
    z: torch.Tensor
    y_mask: torch.Tensor
    g: torch.Tensor
    p_duration: Optional[torch.Tensor] = None

    @classmethod
    def from_values(cls, values: Mapping[str, np.ndarray]) -> "EncoderOutputs":
        z = extract_float_tensor(values, "z", ndim=3)
        y_mask = extract_float_tensor(values, "y_mask", ndim=3)
        if y_mask.size(-1) != z.size(-1):
            raise InferenceError(
                f"y_mask has {y_mask.size(-1)} frames but z has {z.size(-1)}"
            )
        p_duration = (
            extract_float_tensor(values, "p_duration") if "p_duration" in values else None
        )
        g = extract_float_tensor(values, "g") if "g" in values else torch.empty(0)
        return cls(z=z, y_mask=y_mask, g=g, p_duration=p_duration)

    @property
    def num_frames(self) -> int:
        return self.z.size(2)

    def decoder_inputs(self, mel_range: slice = slice(None)) -> dict[str, np.ndarray]:
        """Slice ``z``/``y_mask`` along the frame axis; ``g`` only when present."""
        inputs = {
            "z": self.z[:, :, mel_range].contiguous().numpy(),
            "y_mask": self.y_mask[:, :, mel_range].contiguous().numpy(),
        }
        if self.g.numel() > 0:
            inputs["g"] = self.g.numpy()
        return inputs

    def decode(self, decoder: InferenceGatewayBase) -> torch.Tensor:
        """Decode every frame in one call. Returns a 1-D sample tensor."""
        outputs = decoder.run(self.decoder_inputs())
        return extract_audio(outputs).reshape(-1)
