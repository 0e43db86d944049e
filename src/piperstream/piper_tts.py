"""PiperTTS: the primary public API for piperstream.

Usage::

    from piperstream import PiperTTS

    tts = PiperTTS("voices/en_US-lessac-medium.onnx.json")
    tts.load()

    async for chunk in tts.synthesize("Hello world"):
        play(chunk.pcm_bytes)  # mono int16 at chunk.sample_rate
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import AsyncIterator, Iterator, Optional, Union

from .errors import InvalidSpeakerError
from .factory import from_config_path
from .interfaces import PhonemizerBase, PiperModel
from .pipeline import StreamingPipeline
from .types import Audio, AudioChunk, StreamConfig

logger = logging.getLogger(__name__)


class PiperTTS:
    """High-level facade over voice loading, speaker selection and streaming."""

    def __init__(
        self,
        config_path: str | Path,
        stream_config: Optional[StreamConfig] = None,
        speaker: Optional[Union[int, str]] = None,
        phonemizer: Optional[PhonemizerBase] = None,
    ):
        self._config_path = Path(config_path)
        self._stream_config = stream_config or StreamConfig()
        self._speaker_request = speaker
        self._phonemizer = phonemizer

        # Populated by load()
        self._model: Optional[PiperModel] = None
        self._pipeline: Optional[StreamingPipeline] = None

    # -- properties ---------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        """Whether the voice has been loaded."""
        return self._model is not None

    @property
    def model(self) -> PiperModel:
        if self._model is None:
            raise RuntimeError("Voice not loaded. Call .load() first.")
        return self._model

    # -- load ---------------------------------------------------------------

    def load(self) -> "PiperTTS":
        """Load the voice. Returns *self* for chaining."""
        self._model = from_config_path(self._config_path, phonemizer=self._phonemizer)
        self._pipeline = StreamingPipeline(self._model, self._stream_config)
        if self._speaker_request is not None:
            self.set_speaker(self._speaker_request)
        return self

    def _ensure_loaded(self) -> None:
        if not self.is_loaded:
            warnings.warn(
                "Voice not loaded. Call .load() explicitly for faster first "
                "synthesis. Auto-loading now...",
                UserWarning,
                stacklevel=3,
            )
            logger.warning(f"Auto-loading voice {self._config_path}")
            self.load()

    # -- speakers -----------------------------------------------------------

    def set_speaker(self, speaker: Union[int, str]) -> None:
        """Select a speaker by ID or by name."""
        model = self.model
        if isinstance(speaker, str):
            sid = model.speaker_name_to_id(speaker)
            if sid is None:
                raise InvalidSpeakerError(f"Unknown speaker name `{speaker}`")
        else:
            sid = speaker
        model.set_speaker(sid)

    # -- synthesize ---------------------------------------------------------

    async def synthesize(self, text: str) -> AsyncIterator[AudioChunk]:
        """Stream audio chunks for *text*.

        Auto-loads with a warning if :meth:`load` has not been called.
        """
        self._ensure_loaded()
        async for chunk in self._pipeline.synthesize(text):
            yield chunk

    def stream(self, text: str) -> Iterator[AudioChunk]:
        """Synchronous counterpart of :meth:`synthesize`."""
        self._ensure_loaded()
        return self._pipeline.iter_audio(text)

    def speak(self, text: str) -> list[Audio]:
        """Synthesize *text* completely, one Audio per sentence."""
        self._ensure_loaded()
        return self._pipeline.synthesize_batch(text)
