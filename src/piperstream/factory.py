"""Factory functions: voice config path to model, model to pipeline."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from .config import load_model_config
from .inference import OnnxInferenceGateway
from .interfaces import InferenceGatewayBase, PhonemizerBase, PiperModel
from .models import VitsModel, VitsStreamingModel
from .pipeline import StreamingPipeline
from .types import StreamConfig

logger = logging.getLogger(__name__)

GatewayFactory = Callable[[Path], InferenceGatewayBase]


def from_config_path(
    config_path: str | Path,
    phonemizer: Optional[PhonemizerBase] = None,
    gateway_factory: GatewayFactory = OnnxInferenceGateway,
) -> PiperModel:
    """Load the voice described by ``config_path``.

    Streaming voices keep ``encoder.onnx`` and ``decoder.onnx`` next to the
    config; other voices keep ``<name>.onnx`` for ``<name>.onnx.json``.
    """
    config_path = Path(config_path)
    config, synth_config = load_model_config(config_path)
    if config.streaming:
        logger.info(f"Loading streaming voice from {config_path.parent}")
        return VitsStreamingModel(
            config,
            synth_config,
            encoder=gateway_factory(config_path.with_name("encoder.onnx")),
            decoder=gateway_factory(config_path.with_name("decoder.onnx")),
            phonemizer=phonemizer,
        )

    onnx_path = config_path.with_suffix("")
    logger.info(f"Loading voice {onnx_path.name}")
    return VitsModel(
        config,
        synth_config,
        session=gateway_factory(onnx_path),
        phonemizer=phonemizer,
    )


def create_streaming_pipeline(
    model: PiperModel,
    config: Optional[StreamConfig] = None,
) -> StreamingPipeline:
    """Create a StreamingPipeline for a loaded voice.

    Args:
        model: A ``VitsModel`` or ``VitsStreamingModel`` (or any ``PiperModel``).
        config: Optional streaming configuration. Uses defaults if not provided.

    Returns:
        A ``StreamingPipeline`` ready for ``synthesize()`` calls.
    """
    return StreamingPipeline(model, config=config or StreamConfig())
