# backend/protocol/synthesis.py
"""
Strict decoder for synthesis (TTS) server frames.

Frame layout after the header (header may carry extension words):

    AUDIO_ONLY_SERVER_RESPONSE (0x0B):
        flags == 0 -> no payload
        otherwise  -> sequence(i32) size(i32) audio...
                      sequence < 0 marks the last frame
    FRONTEND_SERVER_RESPONSE (0x0C):
        size(i32) message...      (gzip if tagged)
    ERROR_MESSAGE (0x0F):
        code(i32) size(u32) message...   (gzip if tagged)

Unlike the recognition decoder, every malformed frame raises, and an
error frame always raises ServerError so the stream terminates.
"""

from __future__ import annotations

from dataclasses import dataclass

from constants import (
    DEFAULT_HEADER_WORDS,
    ERROR_CODE_BYTES,
    HEADER_BYTES,
    PAYLOAD_SIZE_BYTES,
    SEQUENCE_BYTES,
)
from observability.logger import log_event
from protocol.enums import Compression, MessageFlags, SynthesisMessageType
from protocol.errors import (
    CorruptArchive,
    FrameTooShort,
    InvalidFrameSize,
    ServerError,
    UnknownMessageType,
)
from protocol.header import decode_header, read_i32
from protocol.payload import decompress


@dataclass(frozen=True)
class SynthesisResponse:
    """
    One decoded synthesis frame.

    audio:
        Audio bytes carried by this frame (empty for frontend frames).
    is_last:
        True when the embedded sequence number is negative.
    frontend:
        Decoded frontend message text, if this was a frontend frame.
    """
    audio: bytes = b""
    is_last: bool = False
    sequence: int = 0
    frontend: str | None = None


def _parse_audio(flags: int, payload: bytes) -> SynthesisResponse:
    if flags == MessageFlags.NO_SEQUENCE:
        return SynthesisResponse()

    if len(payload) < SEQUENCE_BYTES + PAYLOAD_SIZE_BYTES:
        raise FrameTooShort(
            f"audio response too short, expected 8 bytes but got {len(payload)}"
        )

    sequence = read_i32(payload, 0)
    audio = payload[SEQUENCE_BYTES + PAYLOAD_SIZE_BYTES:]
    return SynthesisResponse(
        audio=bytes(audio),
        is_last=sequence < 0,
        sequence=sequence,
    )


def _parse_error(compression: int, payload: bytes) -> ServerError:
    if len(payload) < ERROR_CODE_BYTES + PAYLOAD_SIZE_BYTES:
        raise FrameTooShort(
            f"error message too short, expected 8 bytes but got {len(payload)}"
        )

    code = read_i32(payload, 0)
    message = payload[ERROR_CODE_BYTES + PAYLOAD_SIZE_BYTES:]

    if compression == Compression.GZIP:
        try:
            message = decompress(message)
        except CorruptArchive as e:
            log_event({
                "event_type": "TTS_ERROR_MESSAGE_UNDECODED",
                "code": code,
                "reason": str(e),
            })

    return ServerError(code, message.decode("utf-8", errors="replace"))


def _parse_frontend(compression: int, payload: bytes) -> SynthesisResponse:
    if len(payload) < PAYLOAD_SIZE_BYTES:
        raise FrameTooShort(
            f"frontend message too short, expected 4 bytes but got {len(payload)}"
        )

    message = payload[PAYLOAD_SIZE_BYTES:]
    if compression == Compression.GZIP:
        message = decompress(message)

    text = message.decode("utf-8", errors="replace")
    log_event({
        "event_type": "TTS_FRONTEND_MESSAGE",
        "message": text,
    })
    return SynthesisResponse(frontend=text)


def parse_synthesis_response(frame: bytes) -> SynthesisResponse:
    """
    Decode one synthesis server frame.

    Raises:
        FrameTooShort, InvalidFrameSize, CorruptArchive,
        UnknownMessageType, ServerError
    """
    header = decode_header(frame)

    if len(frame) < header.header_bytes:
        raise InvalidFrameSize(
            f"invalid header size, expected {header.header_bytes} bytes but got {len(frame)}"
        )

    if header.header_words != DEFAULT_HEADER_WORDS:
        log_event({
            "event_type": "TTS_HEADER_EXTENSIONS",
            "extensions_hex": frame[HEADER_BYTES:header.header_bytes].hex(" "),
        })

    payload = frame[header.header_bytes:]

    if header.message_type == SynthesisMessageType.AUDIO_ONLY_SERVER_RESPONSE:
        return _parse_audio(header.flags, payload)

    if header.message_type == SynthesisMessageType.ERROR_MESSAGE:
        raise _parse_error(header.compression, payload)

    if header.message_type == SynthesisMessageType.FRONTEND_SERVER_RESPONSE:
        return _parse_frontend(header.compression, payload)

    raise UnknownMessageType(header.message_type)
