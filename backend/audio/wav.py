"""WAV header probing (stdlib `wave`)."""

from __future__ import annotations

import wave
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class WavInfo:
    sample_rate_hz: int
    channels: int
    bits: int


def probe_wav(path: str | Path) -> WavInfo:
    """
    Read format parameters from a WAV file header.

    Raises:
        wave.Error if the file is not a PCM WAV file.
    """
    with wave.open(str(path), "rb") as wf:
        return WavInfo(
            sample_rate_hz=wf.getframerate(),
            channels=wf.getnchannels(),
            bits=wf.getsampwidth() * 8,
        )
