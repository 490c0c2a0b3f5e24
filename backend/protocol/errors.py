"""
Exception taxonomy for the speech protocol client.

Propagation policy:
- Transport failures and build-path failures are always fatal.
- The recognition parser absorbs FrameTooShort / CorruptArchive and
  degrades to a best-effort Response instead of raising.
- The synthesis parser raises every failure listed here; a ServerError
  always terminates the synthesis stream.
"""

from __future__ import annotations

from typing import Literal


TransportStage = Literal["connect", "send", "receive"]


# -------------------------
# Base
# -------------------------

class SpeechProtocolError(Exception):
    """Base class for every error raised by this package."""


# -------------------------
# Framing
# -------------------------

class FrameTooShort(SpeechProtocolError):
    """
    Raised when a buffer is shorter than a field it must contain
    (header, sequence, size prefix or error code).
    """


class InvalidFrameSize(SpeechProtocolError):
    """
    Raised when the header-declared header size exceeds the actual
    buffer length.
    """


class UnknownMessageType(SpeechProtocolError):
    """Raised by the synthesis parser for a message type it does not handle."""

    def __init__(self, message_type: int) -> None:
        super().__init__(f"unknown message type: 0x{message_type:x}")
        self.message_type = message_type


# -------------------------
# Payload
# -------------------------

class EmptyInput(SpeechProtocolError):
    """Raised when asked to compress a zero-length buffer."""


class CorruptArchive(SpeechProtocolError):
    """Raised when a payload tagged as gzip is not a valid gzip stream."""


class InvalidPayload(SpeechProtocolError):
    """Raised when a payload tagged as JSON does not parse."""


# -------------------------
# Audio
# -------------------------

class UnsupportedFormat(SpeechProtocolError):
    """
    Raised before any network activity when the audio format has no
    segment-size rule.
    """

    def __init__(self, audio_format: str) -> None:
        super().__init__(f"unsupported format: {audio_format}")
        self.audio_format = audio_format


class InvalidSegmentSize(SpeechProtocolError):
    """Raised when the configured audio parameters give a segment size <= 0."""


# -------------------------
# Server / transport
# -------------------------

class ServerError(SpeechProtocolError):
    """
    Error reported by the remote service inside an error frame.
    """

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"server error {code}: {message}")
        self.code = code
        self.message = message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ServerError):
            return NotImplemented
        return (self.code, self.message) == (other.code, other.message)

    def __hash__(self) -> int:
        return hash((self.code, self.message))


class TransportError(SpeechProtocolError):
    """
    Connect / send / receive failure on the underlying connection.

    Always fatal: the session is aborted.
    """

    def __init__(self, stage: TransportStage, detail: str) -> None:
        super().__init__(f"{stage} failed: {detail}")
        self.stage = stage


class SynthesisStreamError(SpeechProtocolError):
    """
    Streaming synthesis ended on an error before the last frame arrived.

    `audio` holds everything accumulated up to the failure; the original
    error is available as `error` (and as __cause__).
    """

    def __init__(self, error: SpeechProtocolError, audio: bytes) -> None:
        super().__init__(f"stream synthesis completed with error: {error}")
        self.error = error
        self.audio = audio


# -------------------------
# Helpers
# -------------------------

def describe_stage(exc: BaseException) -> str:
    """
    Name the pipeline stage an exception came from.

    Used for user-visible error messages and log records.
    """
    if isinstance(exc, SynthesisStreamError):
        return describe_stage(exc.error)
    if isinstance(exc, TransportError):
        return exc.stage
    if isinstance(exc, ServerError):
        return "server"
    if isinstance(exc, CorruptArchive):
        return "decompress"
    if isinstance(exc, (EmptyInput, UnsupportedFormat, InvalidSegmentSize)):
        return "build"
    return "parse"
