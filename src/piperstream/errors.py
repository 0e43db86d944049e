"""Exception hierarchy for piperstream."""

from __future__ import annotations


class PiperError(Exception):
    """Base class for every error raised by piperstream."""


class PhonemizationError(PiperError):
    """The phonemizer failed to convert text to phonemes."""


class InvalidSpeakerError(PiperError):
    """An unknown speaker ID or name was requested."""


class InferenceError(PiperError):
    """An inference call failed or returned an unusable tensor."""


class ConfigurationError(PiperError):
    """A voice or synthesis configuration is malformed."""


class ModelLoadError(PiperError):
    """A config file or model artifact could not be loaded."""


class OperationError(PiperError):
    """The requested operation is not supported by this model."""
