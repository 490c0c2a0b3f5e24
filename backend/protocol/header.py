# backend/protocol/header.py
"""
Fixed 4-byte frame header codec.

Layout (all fields are 4-bit nibbles except reserved):

    byte0: protocol_version | header_words
    byte1: message_type     | message_type_flags
    byte2: serialization    | compression
    byte3: reserved (u8)

Usage example:

    raw = encode_header(
        message_type=RecognitionMessageType.AUDIO_ONLY_REQUEST,
        flags=MessageFlags.POS_SEQUENCE,
        serialization=Serialization.JSON,
        compression=Compression.GZIP,
    )
    header = decode_header(raw)
    body = raw[header.header_bytes:]

Pure functions; no side effects.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from constants import (
    BYTE_MAX,
    DEFAULT_HEADER_WORDS,
    FLAG_HAS_SEQUENCE,
    FLAG_LAST_PACKAGE,
    HEADER_BYTES,
    HEADER_WORD_BYTES,
    NIBBLE_MAX,
    PROTOCOL_VERSION,
)
from protocol.errors import FrameTooShort


# -------------------------
# Header container
# -------------------------

@dataclass(frozen=True)
class FrameHeader:
    """
    Decoded header fields.

    message_type is kept as a raw int: its meaning depends on the protocol
    variant, so the parsers map it to their own enum.
    """
    message_type: int
    flags: int
    serialization: int
    compression: int
    reserved: int = 0
    version: int = PROTOCOL_VERSION
    header_words: int = DEFAULT_HEADER_WORDS

    @property
    def header_bytes(self) -> int:
        """Total header length in bytes, extensions included."""
        return self.header_words * HEADER_WORD_BYTES

    @property
    def has_sequence(self) -> bool:
        return bool(self.flags & FLAG_HAS_SEQUENCE)

    @property
    def is_last_package(self) -> bool:
        return bool(self.flags & FLAG_LAST_PACKAGE)


# -------------------------
# Integer field helpers (big-endian)
# -------------------------

def pack_u32(value: int) -> bytes:
    return struct.pack(">I", value)


def pack_i32(value: int) -> bytes:
    return struct.pack(">i", value)


def read_u32(buf: bytes, offset: int = 0) -> int:
    if len(buf) < offset + 4:
        raise FrameTooShort(f"need 4 bytes at offset {offset}, have {len(buf) - offset}")
    return struct.unpack_from(">I", buf, offset)[0]


def read_i32(buf: bytes, offset: int = 0) -> int:
    if len(buf) < offset + 4:
        raise FrameTooShort(f"need 4 bytes at offset {offset}, have {len(buf) - offset}")
    return struct.unpack_from(">i", buf, offset)[0]


# -------------------------
# Codec
# -------------------------

def _check_nibble(name: str, value: int) -> None:
    if not 0 <= value <= NIBBLE_MAX:
        raise ValueError(f"{name} must fit in 4 bits, got {value}")


def encode_header(
    *,
    message_type: int,
    flags: int,
    serialization: int,
    compression: int,
    reserved: int = 0,
) -> bytes:
    """
    Pack header fields into exactly 4 bytes.

    Raises:
        ValueError if a field does not fit its bit width.
    """
    _check_nibble("message_type", message_type)
    _check_nibble("flags", flags)
    _check_nibble("serialization", serialization)
    _check_nibble("compression", compression)
    if not 0 <= reserved <= BYTE_MAX:
        raise ValueError(f"reserved must fit in 8 bits, got {reserved}")

    return bytes((
        (PROTOCOL_VERSION << 4) | DEFAULT_HEADER_WORDS,
        (message_type << 4) | flags,
        (serialization << 4) | compression,
        reserved,
    ))


def decode_header(buf: bytes) -> FrameHeader:
    """
    Unpack the first 4 bytes of a frame.

    Raises:
        FrameTooShort if fewer than 4 bytes are supplied.
    """
    if len(buf) < HEADER_BYTES:
        raise FrameTooShort(
            f"response too short, minimum {HEADER_BYTES} bytes required, got {len(buf)}"
        )

    return FrameHeader(
        version=buf[0] >> 4,
        header_words=buf[0] & 0x0F,
        message_type=buf[1] >> 4,
        flags=buf[1] & 0x0F,
        serialization=buf[2] >> 4,
        compression=buf[2] & 0x0F,
        reserved=buf[3],
    )
