"""
Audio segmentation for streaming recognition.

Purpose:
- Split a whole audio buffer into ordered chunks, one per round trip.
- Mark the final chunk so the terminal (negative) sequence reaches the
  server.

Segment size per format:
- mp3: configured byte size (mp3_seg_size)
- wav: channels * (bits / 8) * rate * seg_duration_ms / 1000
- pcm: rate * 2 * channels * seg_duration_ms / 500

The pcm rule is not the wav rule with bits=16: for 16-bit audio it
yields twice as many bytes per segment.

Design:
- iter_audio_chunks() is a generator: lazy, single-pass, one chunk in
  flight at a time. Re-segment to replay.
- No IO, no timing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from config import RecognitionConfig
from protocol.errors import InvalidSegmentSize, UnsupportedFormat


@dataclass(frozen=True)
class AudioChunk:
    """
    One contiguous slice of the source audio.

    data:
        Raw audio bytes. Only the last chunk may be shorter than the
        segment size (and it is empty only for empty input).
    is_last:
        True on exactly one chunk: the final one.
    """
    data: bytes
    is_last: bool


def segment_size(config: RecognitionConfig) -> int:
    """
    Compute the per-chunk byte size for the configured format.

    Raises:
        UnsupportedFormat for formats other than wav/mp3/pcm.
        InvalidSegmentSize if the computed size is not positive.
    """
    if config.format == "mp3":
        size = config.mp3_seg_size
    elif config.format == "wav":
        size_per_sec = config.channel * (config.bits // 8) * config.rate
        size = size_per_sec * config.seg_duration_ms // 1000
    elif config.format == "pcm":
        size = config.rate * 2 * config.channel * config.seg_duration_ms // 500
    else:
        raise UnsupportedFormat(config.format)

    if size <= 0:
        raise InvalidSegmentSize(f"segment size must be > 0 (format={config.format}, computed={size})")
    return size


def iter_audio_chunks(audio: bytes, size: int) -> Iterator[AudioChunk]:
    """
    Yield contiguous chunks of `size` bytes from offset 0.

    Every chunk but the last is exactly `size` bytes; the last holds the
    remainder and is marked is_last. Empty input yields a single empty
    terminal chunk.
    """
    if size <= 0:
        raise InvalidSegmentSize("size must be > 0")

    offset = 0
    total = len(audio)
    while offset + size < total:
        yield AudioChunk(data=audio[offset:offset + size], is_last=False)
        offset += size

    yield AudioChunk(data=audio[offset:total], is_last=True)


def segment(audio: bytes, config: RecognitionConfig) -> Iterator[AudioChunk]:
    """
    Segment audio per the config's format rules.

    The size is validated eagerly, so UnsupportedFormat is raised here
    rather than on first iteration (i.e. before any network activity).
    """
    return iter_audio_chunks(audio, segment_size(config))
