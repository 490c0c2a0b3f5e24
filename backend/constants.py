"""
WIRE CONSTANTS
--------------
Single source of truth for protocol values and tuning defaults.

Rules:
- If changing a value changes what goes on the wire, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Frame Header
# =============================================================================

PROTOCOL_VERSION: Final[int] = 0x01
DEFAULT_HEADER_WORDS: Final[int] = 0x01  # header size in 4-byte words
HEADER_WORD_BYTES: Final[int] = 4
HEADER_BYTES: Final[int] = DEFAULT_HEADER_WORDS * HEADER_WORD_BYTES

NIBBLE_MAX: Final[int] = 0x0F
BYTE_MAX: Final[int] = 0xFF

# Sequence / size / code fields that follow the header
SEQUENCE_BYTES: Final[int] = 4
PAYLOAD_SIZE_BYTES: Final[int] = 4
ERROR_CODE_BYTES: Final[int] = 4

# Bit masks on messageTypeFlags
FLAG_HAS_SEQUENCE: Final[int] = 0x01
FLAG_LAST_PACKAGE: Final[int] = 0x02

# Synthesis requests always use this fixed header:
# v1 | 1 word, full-client-request | no flags, JSON | gzip, reserved 0
SYNTHESIS_REQUEST_HEADER: Final[bytes] = bytes((0x11, 0x10, 0x11, 0x00))

# =============================================================================
# Recognition Session
# =============================================================================

ASR_INITIAL_SEQUENCE: Final[int] = 1

ASR_DEFAULT_WS_URL: Final[str] = "wss://openspeech.bytedance.com/api/v3/sauc/bigmodel"
ASR_DEFAULT_RESOURCE_ID: Final[str] = "volc.bigasr.sauc.duration"
ASR_DEFAULT_MODEL_NAME: Final[str] = "bigmodel"

ASR_DEFAULT_SEG_DURATION_MS: Final[int] = 100
ASR_DEFAULT_MP3_SEG_SIZE: Final[int] = 1000
ASR_DEFAULT_SAMPLE_RATE_HZ: Final[int] = 16_000
ASR_DEFAULT_BITS: Final[int] = 16
ASR_DEFAULT_CHANNELS: Final[int] = 1
ASR_DEFAULT_CODEC: Final[str] = "raw"
ASR_DEFAULT_FORMAT: Final[str] = "wav"

SUPPORTED_AUDIO_FORMATS: Final[Tuple[str, ...]] = ("wav", "mp3", "pcm")

# =============================================================================
# Synthesis Session
# =============================================================================

TTS_DEFAULT_WS_URL: Final[str] = "wss://openspeech.bytedance.com/api/v1/tts/ws_binary"
TTS_DEFAULT_ENCODING: Final[str] = "mp3"
TTS_DEFAULT_SPEED_RATIO: Final[float] = 1.0
TTS_DEFAULT_VOLUME_RATIO: Final[float] = 1.0
TTS_DEFAULT_PITCH_RATIO: Final[str] = ""
TTS_TEXT_TYPE: Final[str] = "plain"

TTS_OPERATION_QUERY: Final[str] = "query"
TTS_OPERATION_SUBMIT: Final[str] = "submit"

# =============================================================================
# Transport
# =============================================================================

WS_MAX_MESSAGE_BYTES: Final[int] = 2**24

# =============================================================================
# Chat Completion
# =============================================================================

CHAT_DEFAULT_BASE_URL: Final[str] = "https://ark.cn-beijing.volces.com/api/v3"
CHAT_USER_MESSAGE_TEMPLATE: Final[str] = ">>>输入>>>\n{message}\n>>>输出>>>\n"
CHAT_TIMEOUT_S: Final[float] = 3600.0
