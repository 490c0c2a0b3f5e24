"""
Payload (de)compression and (de)serialization.

Decode order is fixed: decompress first (when the compression tag says
gzip), then interpret the bytes according to the serialization tag:

    Serialization.NONE -> opaque bytes (audio)
    Serialization.JSON -> parsed JSON value
    anything else      -> raw text
"""

from __future__ import annotations

import gzip
import json
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import Any

from protocol.enums import Serialization
from protocol.errors import CorruptArchive, EmptyInput, InvalidPayload


class PayloadKind(str, Enum):
    NONE = "none"
    AUDIO = "audio"
    JSON = "json"
    TEXT = "text"


@dataclass(frozen=True)
class Payload:
    """
    Decoded payload variant.

    value is bytes for AUDIO, a JSON value for JSON, str for TEXT and
    None for NONE.
    """
    kind: PayloadKind = PayloadKind.NONE
    value: Any = None


EMPTY_PAYLOAD = Payload()


# -------------------------
# Compression
# -------------------------

def compress(data: bytes, *, allow_empty: bool = False) -> bytes:
    """
    Gzip-compress a buffer.

    allow_empty is only for the terminal audio chunk, which may be
    zero-length and must still reach the server.

    Raises:
        EmptyInput if data is zero-length and allow_empty is False.
    """
    if not data and not allow_empty:
        raise EmptyInput("empty input")
    return gzip.compress(data)


def decompress(data: bytes) -> bytes:
    """
    Gunzip a buffer.

    Raises:
        CorruptArchive if data is empty or not a valid gzip stream.
    """
    if not data:
        raise CorruptArchive("empty input")
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise CorruptArchive(f"gzip read failed: {e}") from e


# -------------------------
# Serialization
# -------------------------

def serialize(value: Any) -> bytes:
    """JSON-encode a value as compact UTF-8."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def deserialize(data: bytes, serialization: int) -> Payload:
    """
    Interpret already-decompressed bytes per the serialization tag.

    Raises:
        InvalidPayload if the tag is JSON and the bytes do not parse.
    """
    if serialization == Serialization.NONE:
        return Payload(kind=PayloadKind.AUDIO, value=bytes(data))

    if serialization == Serialization.JSON:
        try:
            return Payload(kind=PayloadKind.JSON, value=json.loads(data))
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidPayload(f"json decode failed: {e}") from e

    return Payload(kind=PayloadKind.TEXT, value=data.decode("utf-8", errors="replace"))
