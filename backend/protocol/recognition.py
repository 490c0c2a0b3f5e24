# backend/protocol/recognition.py
"""
Best-effort decoder for recognition (ASR) server frames.

Frame layout after the header:

    [sequence: i32]              if flags bit0 set
    FULL_SERVER_RESPONSE:  size(u32) payload
    SERVER_ACK:            sequence(i32) [size(u32) payload]
    SERVER_ERROR_RESPONSE: code(i32)     [size(u32) payload]

Policy:
- parse_recognition_response() NEVER raises.
- Short / truncated frames degrade to whatever was decoded so far
  (a zero-value RecognitionResponse for frames under 4 bytes).
- A payload that fails to gunzip is kept as raw bytes; a payload that
  fails to parse as JSON is dropped.
- Server error codes are surfaced on `code`; they are not fatal here.

Every degradation is logged as ASR_PARSE_DEGRADED so a bad frame is
visible without aborting the stream.
"""

from __future__ import annotations

from dataclasses import dataclass

from constants import ERROR_CODE_BYTES, PAYLOAD_SIZE_BYTES, SEQUENCE_BYTES
from observability.logger import log_event
from protocol.enums import Compression, RecognitionMessageType
from protocol.errors import CorruptArchive, FrameTooShort, InvalidPayload
from protocol.header import decode_header, read_i32, read_u32
from protocol.payload import EMPTY_PAYLOAD, Payload, decompress, deserialize


@dataclass(frozen=True)
class RecognitionResponse:
    """
    One decoded recognition frame. Immutable after construction.
    """
    is_last_package: bool = False
    payload_sequence: int = 0
    code: int = 0
    payload_size: int = 0
    payload: Payload = EMPTY_PAYLOAD

    @property
    def is_error(self) -> bool:
        return self.code != 0


def _degraded(reason: str, frame_len: int) -> None:
    log_event({
        "event_type": "ASR_PARSE_DEGRADED",
        "reason": reason,
        "frame_len": frame_len,
    })


def _decode_body(raw: bytes, *, serialization: int, compression: int) -> Payload:
    data = raw
    if compression == Compression.GZIP:
        try:
            data = decompress(raw)
        except CorruptArchive as e:
            _degraded(f"decompress: {e}", len(raw))
            data = raw

    try:
        return deserialize(data, serialization)
    except InvalidPayload as e:
        _degraded(f"deserialize: {e}", len(data))
        return EMPTY_PAYLOAD


def parse_recognition_response(frame: bytes) -> RecognitionResponse:
    """
    Decode one recognition server frame without raising.
    """
    try:
        header = decode_header(frame)
    except FrameTooShort as e:
        _degraded(str(e), len(frame))
        return RecognitionResponse()

    body = frame[header.header_bytes:]
    is_last = header.is_last_package
    sequence = 0
    code = 0
    payload_size = 0
    raw_payload: bytes | None = None

    try:
        if header.has_sequence:
            sequence = read_i32(body)
            body = body[SEQUENCE_BYTES:]

        if header.message_type == RecognitionMessageType.FULL_SERVER_RESPONSE:
            payload_size = read_u32(body)
            raw_payload = body[PAYLOAD_SIZE_BYTES:]

        elif header.message_type == RecognitionMessageType.SERVER_ACK:
            sequence = read_i32(body)
            body = body[SEQUENCE_BYTES:]
            if len(body) >= PAYLOAD_SIZE_BYTES:
                payload_size = read_u32(body)
                raw_payload = body[PAYLOAD_SIZE_BYTES:]

        elif header.message_type == RecognitionMessageType.SERVER_ERROR_RESPONSE:
            code = read_i32(body)
            body = body[ERROR_CODE_BYTES:]
            if len(body) >= PAYLOAD_SIZE_BYTES:
                payload_size = read_u32(body)
                raw_payload = body[PAYLOAD_SIZE_BYTES:]

    except FrameTooShort as e:
        _degraded(str(e), len(frame))
        raw_payload = None
        payload_size = 0

    if raw_payload is None:
        return RecognitionResponse(
            is_last_package=is_last,
            payload_sequence=sequence,
            code=code,
        )

    return RecognitionResponse(
        is_last_package=is_last,
        payload_sequence=sequence,
        code=code,
        payload_size=payload_size,
        payload=_decode_body(
            raw_payload,
            serialization=header.serialization,
            compression=header.compression,
        ),
    )
