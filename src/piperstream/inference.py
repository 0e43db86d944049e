"""ONNX Runtime implementation of the inference gateway."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

import numpy as np

from .errors import InferenceError, ModelLoadError
from .interfaces import InferenceGatewayBase

logger = logging.getLogger(__name__)

_DEFAULT_PROVIDERS = ["CPUExecutionProvider"]


def create_inference_session(
    model_path: str | Path,
    providers: Optional[Sequence[str]] = None,
):
    """Create an ``onnxruntime.InferenceSession`` for ``model_path``."""
    import onnxruntime as ort

    path = Path(model_path)
    if not path.exists():
        raise ModelLoadError(f"ONNX model not found: {path}")

    sess_options = ort.SessionOptions()
    sess_options.graph_optimization_level = (
        ort.GraphOptimizationLevel.ORT_ENABLE_ALL
    )
    try:
        return ort.InferenceSession(
            str(path),
            sess_options=sess_options,
            providers=list(providers or _DEFAULT_PROVIDERS),
        )
    except Exception as e:
        raise ModelLoadError(
            f"Failed to initialize onnxruntime inference session for `{path}`: {e}"
        ) from e


class OnnxInferenceGateway(InferenceGatewayBase):
    """Named-array inference over one ONNX model.

    ``InferenceSession.run`` is safe to call from several threads, so one
    gateway can be shared by every live stream of a voice.
    """

    def __init__(self, model_path: str | Path, providers: Optional[Sequence[str]] = None):
        self._path = Path(model_path)
        self._session = create_inference_session(self._path, providers)
        self.input_names = [i.name for i in self._session.get_inputs()]
        self.output_names = [o.name for o in self._session.get_outputs()]
        logger.info(
            f"Loaded {self._path.name}: inputs={self.input_names} "
            f"outputs={self.output_names}"
        )

    def run(self, inputs: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        feed = {name: value for name, value in inputs.items() if name in self.input_names}
        try:
            values = self._session.run(self.output_names, feed)
        except Exception as e:
            raise InferenceError(f"Failed to run model inference. Error: {e}") from e
        return dict(zip(self.output_names, values))
