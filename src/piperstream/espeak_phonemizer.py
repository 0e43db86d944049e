"""Phonemizer adapter over the espeak-ng backend of ``phonemizer``."""

from __future__ import annotations

import logging
import re
import threading
import unicodedata
from typing import Optional

from .errors import PhonemizationError
from .interfaces import PhonemizerBase

logger = logging.getLogger(__name__)

_LANG_SWITCH_PATTERN = re.compile(r"\([^)]*\)")
_STRESS_PATTERN = re.compile(r"[ˈˌ]")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_CLAUSE_MARKERS = frozenset(".,?!")


def strip_lang_switch_flags(phonemes: str) -> str:
    return _LANG_SWITCH_PATTERN.sub("", phonemes)


def strip_stress_marks(phonemes: str) -> str:
    return _STRESS_PATTERN.sub("", phonemes)


def split_sentences(text: str) -> list[str]:
    """Split on line breaks, then after sentence-ending punctuation."""
    sentences = []
    for line in text.splitlines():
        sentences.extend(s for s in _SENTENCE_SPLIT.split(line.strip()) if s)
    return sentences


class EspeakPhonemizer(PhonemizerBase):
    """Produces one phoneme string per sentence, each ending in a clause marker.

    Output is NFD-decomposed so combining diacritics become separate phonemes,
    matching how Piper voices are trained.
    """

    def __init__(self):
        self._backends: dict[str, object] = {}
        self._lock = threading.Lock()

    def _backend(self, voice: str):
        with self._lock:
            backend = self._backends.get(voice)
            if backend is None:
                from phonemizer.backend import EspeakBackend

                backend = EspeakBackend(
                    language=voice,
                    preserve_punctuation=True,
                    with_stress=True,
                    language_switch="keep-flags",
                )
                self._backends[voice] = backend
                logger.info(f"Loaded espeak backend for voice `{voice}`")
            return backend

    def phonemize(
        self,
        text: str,
        voice: str,
        separator: Optional[str] = None,
        strip_lang_switch: bool = True,
        strip_stress: bool = False,
    ) -> list[str]:
        sentences = split_sentences(text)
        if not sentences:
            return []

        try:
            from phonemizer.separator import Separator

            backend = self._backend(voice)
            phonemized = backend.phonemize(
                sentences,
                separator=Separator(phone=separator or "", word=" ", syllable=""),
                strip=True,
            )
        except Exception as e:
            raise PhonemizationError(
                f"Failed to phonemize given text using espeak-ng. Error: {e}"
            ) from e

        result = []
        for phonemes in phonemized:
            phonemes = unicodedata.normalize("NFD", phonemes.strip())
            if not phonemes:
                continue
            if phonemes[-1] not in _CLAUSE_MARKERS:
                phonemes += "."
            if strip_lang_switch:
                phonemes = strip_lang_switch_flags(phonemes)
            if strip_stress:
                phonemes = strip_stress_marks(phonemes)
            result.append(phonemes)
        return result
