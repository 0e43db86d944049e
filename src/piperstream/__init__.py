"""Piperstream: streaming synthesis for Piper VITS voices.

Core exports::

    from piperstream import PiperTTS, AudioChunk, StreamConfig

Lower-level building blocks::

    from piperstream import from_config_path, VitsStreamingModel, SpeechStreamer
"""

try:
    from importlib.metadata import version as _version
    __version__ = _version("piperstream-tts")
except Exception:
    __version__ = "0.0.0+dev"

from .piper_tts import PiperTTS
from .types import (
    Audio,
    AudioChunk,
    AudioInfo,
    ChunkPlan,
    StreamConfig,
    SynthesisConfig,
)
from .errors import (
    ConfigurationError,
    InferenceError,
    InvalidSpeakerError,
    ModelLoadError,
    OperationError,
    PhonemizationError,
    PiperError,
)
from .interfaces import (
    InferenceGatewayBase,
    PhonemizerBase,
    PiperModel,
    StreamingPipelineBase,
)
from .factory import create_streaming_pipeline, from_config_path
from .models import VitsModel, VitsStreamingModel
from .speech_streamer import SpeechStreamer

# OnnxInferenceGateway and EspeakPhonemizer import onnxruntime / phonemizer
# lazily; import them from piperstream.inference / piperstream.espeak_phonemizer.

__all__ = [
    # Primary API
    "PiperTTS",
    "from_config_path",
    "create_streaming_pipeline",
    # Models
    "VitsModel",
    "VitsStreamingModel",
    "SpeechStreamer",
    # Data types
    "Audio",
    "AudioChunk",
    "AudioInfo",
    "ChunkPlan",
    "StreamConfig",
    "SynthesisConfig",
    # Errors
    "PiperError",
    "PhonemizationError",
    "InvalidSpeakerError",
    "InferenceError",
    "ConfigurationError",
    "ModelLoadError",
    "OperationError",
    # Interfaces (for extensibility)
    "InferenceGatewayBase",
    "PhonemizerBase",
    "PiperModel",
    "StreamingPipelineBase",
]
