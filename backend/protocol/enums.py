"""
Wire enumerations for the binary speech protocol.

Rules:
- Values are the exact 4-bit codes that appear in the frame header.
- Recognition and synthesis share flag/serialization/compression codes
  but NOT message type codes (0x0B means different things per variant).
"""

from __future__ import annotations

from enum import IntEnum


class RecognitionMessageType(IntEnum):
    """Message types used by the recognition (ASR) variant."""

    FULL_CLIENT_REQUEST = 0x01
    AUDIO_ONLY_REQUEST = 0x02
    FULL_SERVER_RESPONSE = 0x09
    SERVER_ACK = 0x0B
    SERVER_ERROR_RESPONSE = 0x0F


class SynthesisMessageType(IntEnum):
    """Message types used by the synthesis (TTS) variant."""

    FULL_CLIENT_REQUEST = 0x01
    AUDIO_ONLY_SERVER_RESPONSE = 0x0B
    FRONTEND_SERVER_RESPONSE = 0x0C
    ERROR_MESSAGE = 0x0F


class MessageFlags(IntEnum):
    """messageTypeFlags nibble."""

    NO_SEQUENCE = 0x00
    POS_SEQUENCE = 0x01
    NEG_SEQUENCE = 0x02
    NEG_WITH_SEQUENCE = 0x03


class Serialization(IntEnum):
    NONE = 0x00
    JSON = 0x01
    CUSTOM = 0x0F


class Compression(IntEnum):
    NONE = 0x00
    GZIP = 0x01
    CUSTOM = 0x0F
