"""Abstract base classes defining contracts for each component."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, AsyncIterator, Iterator, Mapping, Optional

import numpy as np

from .errors import OperationError
from .types import Audio, AudioChunk, AudioInfo, SynthesisConfig

if TYPE_CHECKING:
    from .speech_streamer import SpeechStreamer


class PhonemizerBase(ABC):
    """Converts text into per-sentence phoneme strings."""

    @abstractmethod
    def phonemize(
        self,
        text: str,
        voice: str,
        separator: Optional[str] = None,
        strip_lang_switch: bool = True,
        strip_stress: bool = False,
    ) -> list[str]:
        """Return one phoneme string per detected sentence."""
        ...


class InferenceGatewayBase(ABC):
    """Runs one model artifact: named arrays in, named arrays out."""

    @abstractmethod
    def run(self, inputs: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        """Run inference synchronously. Outputs keep the model's output order."""
        ...


class PiperModel(ABC):
    """Capabilities shared by the monolithic and encoder/decoder voices."""

    @abstractmethod
    def phonemize_text(self, text: str) -> list[str]:
        ...

    @abstractmethod
    def speak_one_sentence(self, phonemes: str) -> Audio:
        ...

    @abstractmethod
    def speak_batch(self, phoneme_batches: list[str]) -> list[Audio]:
        ...

    @abstractmethod
    def set_speaker(self, sid: int) -> None:
        """Select the speaker used by later calls. Raises on unknown IDs."""
        ...

    @abstractmethod
    def speaker_name_to_id(self, name: str) -> Optional[int]:
        ...

    @abstractmethod
    def get_language(self) -> Optional[str]:
        ...

    @abstractmethod
    def get_speakers(self) -> dict[int, str]:
        ...

    @abstractmethod
    def properties(self) -> dict[str, str]:
        ...

    @abstractmethod
    def audio_output_info(self) -> AudioInfo:
        ...

    @abstractmethod
    def get_default_synthesis_config(self) -> SynthesisConfig:
        ...

    @abstractmethod
    def get_fallback_synthesis_config(self) -> SynthesisConfig:
        ...

    @abstractmethod
    def set_fallback_synthesis_config(self, synthesis_config: SynthesisConfig) -> None:
        ...

    def supports_streaming_output(self) -> bool:
        return False

    def stream_synthesis(
        self, phonemes: str, chunk_size: int, chunk_padding: int
    ) -> "SpeechStreamer":
        raise OperationError("Streaming synthesis is not supported by this model")


class StreamingPipelineBase(ABC):
    """Orchestrates phonemization and synthesis into audio chunks."""

    @abstractmethod
    def iter_audio(self, text: str) -> Iterator[AudioChunk]:
        """Yield audio chunks for ``text`` on the calling thread."""
        ...

    @abstractmethod
    async def synthesize(self, text: str) -> AsyncIterator[AudioChunk]:
        """Stream audio chunks without blocking the event loop."""
        ...
