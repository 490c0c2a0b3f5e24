# backend/protocol/frames.py
"""
Outbound frame builders.

Recognition frames (sequence present):

    4 bytes  header
    4 bytes  sequence      (i32, big-endian; negative on the last chunk)
    4 bytes  payload size  (u32, big-endian)
    N bytes  gzip payload

Synthesis frames (no sequence):

    4 bytes  header        (always 0x11 0x10 0x11 0x00)
    4 bytes  payload size  (u32, big-endian)
    N bytes  gzip JSON payload

Usage example:

    counter = SequenceCounter()
    frames = [build_full_client_request(config, sequence=counter.current)]
    for chunk in iter_audio_chunks(audio, segment_size):
        seq = counter.advance(is_last=chunk.is_last)
        frames.append(build_audio_only_request(chunk.data, sequence=seq, is_last=chunk.is_last))
"""

from __future__ import annotations

from typing import Any

from config import RecognitionConfig, SynthesisConfig
from constants import (
    ASR_INITIAL_SEQUENCE,
    SYNTHESIS_REQUEST_HEADER,
    TTS_OPERATION_QUERY,
    TTS_OPERATION_SUBMIT,
    TTS_TEXT_TYPE,
)
from protocol.enums import (
    Compression,
    MessageFlags,
    RecognitionMessageType,
    Serialization,
)
from protocol.header import encode_header, pack_i32, pack_u32
from protocol.payload import compress, serialize


# -------------------------
# Sequence state
# -------------------------

class SequenceCounter:
    """
    Running recognition sequence number.

    Starts at 1 (the configuration frame), increments once per audio
    chunk, and is negated on the terminal chunk. Owned by exactly one
    session.
    """

    def __init__(self, start: int = ASR_INITIAL_SEQUENCE) -> None:
        self._value = start
        self._finished = False

    @property
    def current(self) -> int:
        return self._value

    def advance(self, *, is_last: bool) -> int:
        """
        Step to the next chunk's sequence value and return it.

        Raises:
            RuntimeError if called after the terminal chunk.
        """
        if self._finished:
            raise RuntimeError("sequence already terminated")

        self._value = abs(self._value) + 1
        if is_last:
            self._value = -self._value
            self._finished = True
        return self._value


# -------------------------
# Request schemas
# -------------------------

def recognition_request_payload(config: RecognitionConfig) -> dict[str, Any]:
    """Map a RecognitionConfig onto the full-client-request JSON schema."""
    return {
        "user": {
            "uid": config.uid,
        },
        "audio": {
            "format": config.format,
            "sample_rate": config.rate,
            "bits": config.bits,
            "channel": config.channel,
            "codec": config.codec,
        },
        "request": {
            "model_name": config.model_name,
            "enable_punc": config.enable_punc,
        },
    }


def synthesis_request_payload(
    config: SynthesisConfig,
    *,
    text: str,
    voice_type: str,
    operation: str,
    request_id: str,
) -> dict[str, Any]:
    """
    Build the synthesis JSON request.

    operation selects the mode: "query" (single frame back) or
    "submit" (streamed frames back).
    """
    if operation not in (TTS_OPERATION_QUERY, TTS_OPERATION_SUBMIT):
        raise ValueError(f"unknown synthesis operation: {operation!r}")

    return {
        "app": {
            "appid": config.appid,
            "token": config.token,
            "cluster": config.cluster,
        },
        "user": {
            "uid": request_id,
        },
        "audio": {
            "voice_type": voice_type,
            "encoding": config.encoding,
            "speed_ratio": config.speed_ratio,
            "volume_ratio": config.volume_ratio,
            "pitch_ratio": config.pitch_ratio,
        },
        "request": {
            "reqid": request_id,
            "text": text,
            "text_type": TTS_TEXT_TYPE,
            "operation": operation,
        },
    }


# -------------------------
# Recognition frames
# -------------------------

def _sequenced_frame(header: bytes, sequence: int, compressed: bytes) -> bytes:
    return header + pack_i32(sequence) + pack_u32(len(compressed)) + compressed


def build_full_client_request(
    config: RecognitionConfig,
    *,
    sequence: int = ASR_INITIAL_SEQUENCE,
) -> bytes:
    """
    Build the initial configuration frame.

    Tagged full-client-request / positive sequence / JSON / gzip.
    """
    compressed = compress(serialize(recognition_request_payload(config)))
    header = encode_header(
        message_type=RecognitionMessageType.FULL_CLIENT_REQUEST,
        flags=MessageFlags.POS_SEQUENCE,
        serialization=Serialization.JSON,
        compression=Compression.GZIP,
    )
    return _sequenced_frame(header, sequence, compressed)


def build_audio_only_request(
    audio: bytes,
    *,
    sequence: int,
    is_last: bool,
) -> bytes:
    """
    Build one audio-chunk frame.

    sequence is the signed value to put on the wire (already negated
    for the terminal chunk; see SequenceCounter). The terminal chunk may
    carry zero bytes of audio.

    Raises:
        ValueError if the sequence sign disagrees with is_last.
    """
    if is_last != (sequence < 0):
        raise ValueError(
            f"sequence {sequence} inconsistent with is_last={is_last}"
        )

    compressed = compress(audio, allow_empty=is_last)
    header = encode_header(
        message_type=RecognitionMessageType.AUDIO_ONLY_REQUEST,
        flags=MessageFlags.NEG_WITH_SEQUENCE if is_last else MessageFlags.POS_SEQUENCE,
        serialization=Serialization.JSON,
        compression=Compression.GZIP,
    )
    return _sequenced_frame(header, sequence, compressed)


# -------------------------
# Synthesis frames
# -------------------------

def build_synthesis_request(request: dict[str, Any]) -> bytes:
    """
    Build the single synthesis request frame (no sequence field).

    Raises:
        EmptyInput if the serialized request is empty.
    """
    compressed = compress(serialize(request))
    return SYNTHESIS_REQUEST_HEADER + pack_u32(len(compressed)) + compressed
