"""Voice configuration: the ``<voice>.onnx.json`` record shipped with each model."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError, ModelLoadError
from .types import AudioInfo, SynthesisConfig

logger = logging.getLogger(__name__)

PAD = "_"
BOS = "^"
EOS = "$"


@dataclass
class InferenceDefaults:
    noise_scale: float = 0.667
    length_scale: float = 1.0
    noise_w: float = 0.8


@dataclass
class ModelConfig:
    """Parsed voice configuration."""
    sample_rate: int
    espeak_voice: str
    phoneme_id_map: dict[str, list[int]]
    num_speakers: int = 1
    speaker_id_map: dict[str, int] = field(default_factory=dict)
    inference: InferenceDefaults = field(default_factory=InferenceDefaults)
    key: Optional[str] = None
    language_code: Optional[str] = None
    quality: Optional[str] = None
    streaming: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ModelConfig":
        try:
            audio = data["audio"]
            inference = data.get("inference") or {}
            language = data.get("language") or {}
            return cls(
                sample_rate=int(audio["sample_rate"]),
                quality=audio.get("quality"),
                espeak_voice=data["espeak"]["voice"],
                phoneme_id_map={
                    str(k): [int(i) for i in v]
                    for k, v in data["phoneme_id_map"].items()
                },
                num_speakers=int(data.get("num_speakers", 1)),
                speaker_id_map={
                    str(k): int(v) for k, v in (data.get("speaker_id_map") or {}).items()
                },
                inference=InferenceDefaults(
                    noise_scale=float(inference.get("noise_scale", 0.667)),
                    length_scale=float(inference.get("length_scale", 1.0)),
                    noise_w=float(inference.get("noise_w", 0.8)),
                ),
                key=data.get("key"),
                language_code=language.get("code"),
                streaming=bool(data.get("streaming") or False),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Malformed voice config: {e!r}") from e

    def meta_ids(self) -> tuple[int, int, int]:
        """Return ``(pad_id, bos_id, eos_id)`` from the phoneme vocabulary."""
        ids = []
        for symbol in (PAD, BOS, EOS):
            values = self.phoneme_id_map.get(symbol)
            if not values:
                raise ConfigurationError(
                    f"Phoneme id map has no entry for `{symbol}`"
                )
            ids.append(values[0])
        return ids[0], ids[1], ids[2]

    def speaker_map(self) -> dict[int, str]:
        """Speaker ID → speaker name."""
        return {sid: name for name, sid in self.speaker_id_map.items()}

    def language(self) -> str:
        return self.language_code or self.espeak_voice

    def properties(self) -> dict[str, str]:
        return {"quality": self.quality or "unknown"}

    def audio_output_info(self) -> AudioInfo:
        return AudioInfo(sample_rate=self.sample_rate)

    def default_synthesis_config(self) -> SynthesisConfig:
        return SynthesisConfig(
            speaker=None,
            noise_scale=self.inference.noise_scale,
            length_scale=self.inference.length_scale,
            noise_w=self.inference.noise_w,
        )


def load_model_config(config_path: str | Path) -> tuple[ModelConfig, SynthesisConfig]:
    """Read a voice config file and derive the initial synthesis config."""
    path = Path(config_path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ModelLoadError(f"Failed to load model config `{path}`: {e}") from e
    except json.JSONDecodeError as e:
        raise ModelLoadError(f"Failed to parse model config `{path}`: {e}") from e

    config = ModelConfig.from_dict(data)
    logger.info(
        f"Loaded voice config {path.name}: voice={config.espeak_voice} "
        f"sr={config.sample_rate} speakers={config.num_speakers} "
        f"streaming={config.streaming}"
    )
    return config, config.default_synthesis_config()
