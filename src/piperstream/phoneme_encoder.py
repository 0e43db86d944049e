"""Phoneme string to model input IDs."""

from __future__ import annotations

from typing import Mapping, Sequence


def phonemes_to_ids(
    phonemes: str,
    phoneme_id_map: Mapping[str, Sequence[int]],
    pad_id: int,
    bos_id: int,
    eos_id: int,
) -> list[int]:
    """Encode ``phonemes`` as ``[bos, pad, id1, pad, id2, pad, ..., eos]``.

    Characters missing from ``phoneme_id_map`` are skipped, so separators and
    markers without an acoustic ID never reach the model.
    """
    ids = [bos_id, pad_id]
    for phoneme in phonemes:
        mapped = phoneme_id_map.get(phoneme)
        if mapped:
            ids.append(mapped[0])
            ids.append(pad_id)
    ids.append(eos_id)
    return ids
