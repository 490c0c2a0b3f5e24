"""
Client configuration.

Responsibilities:
- Read environment variables
- Provide typed, immutable request configs for each session type

Non-responsibilities:
- No protocol constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    ASR_DEFAULT_BITS,
    ASR_DEFAULT_CHANNELS,
    ASR_DEFAULT_CODEC,
    ASR_DEFAULT_FORMAT,
    ASR_DEFAULT_MODEL_NAME,
    ASR_DEFAULT_MP3_SEG_SIZE,
    ASR_DEFAULT_RESOURCE_ID,
    ASR_DEFAULT_SAMPLE_RATE_HZ,
    ASR_DEFAULT_SEG_DURATION_MS,
    ASR_DEFAULT_WS_URL,
    CHAT_DEFAULT_BASE_URL,
    TTS_DEFAULT_ENCODING,
    TTS_DEFAULT_PITCH_RATIO,
    TTS_DEFAULT_SPEED_RATIO,
    TTS_DEFAULT_VOLUME_RATIO,
    TTS_DEFAULT_WS_URL,
)


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass(frozen=True)
class RecognitionConfig:
    """
    Immutable recognition (ASR) session configuration.

    Supplied once per session and never mutated.
    """

    # ------------------------------------------------------------------
    # Endpoint / auth
    # ------------------------------------------------------------------

    ws_url: str = ASR_DEFAULT_WS_URL
    access_key: str = ""
    app_key: str = ""
    resource_id: str = ASR_DEFAULT_RESOURCE_ID
    uid: str = "test"

    # ------------------------------------------------------------------
    # Audio format
    # ------------------------------------------------------------------

    format: str = ASR_DEFAULT_FORMAT
    rate: int = ASR_DEFAULT_SAMPLE_RATE_HZ
    bits: int = ASR_DEFAULT_BITS
    channel: int = ASR_DEFAULT_CHANNELS
    codec: str = ASR_DEFAULT_CODEC

    # ------------------------------------------------------------------
    # Segmentation / pacing
    # ------------------------------------------------------------------

    seg_duration_ms: int = ASR_DEFAULT_SEG_DURATION_MS
    mp3_seg_size: int = ASR_DEFAULT_MP3_SEG_SIZE
    streaming: bool = True

    # ------------------------------------------------------------------
    # Request options
    # ------------------------------------------------------------------

    model_name: str = ASR_DEFAULT_MODEL_NAME
    enable_punc: bool = True

    @staticmethod
    def load_from_env() -> RecognitionConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable does not parse.
        """
        return RecognitionConfig(
            ws_url=os.environ.get("VOLC_ASR_WS_URL", ASR_DEFAULT_WS_URL),
            access_key=os.environ.get("VOLC_ACCESS_KEY", ""),
            app_key=os.environ.get("VOLC_APP_KEY", ""),
            resource_id=os.environ.get("VOLC_ASR_RESOURCE_ID", ASR_DEFAULT_RESOURCE_ID),
            uid=os.environ.get("VOLC_ASR_UID", "test"),

            format=os.environ.get("VOLC_ASR_FORMAT", ASR_DEFAULT_FORMAT),
            rate=_env_int("VOLC_ASR_RATE", ASR_DEFAULT_SAMPLE_RATE_HZ),
            bits=_env_int("VOLC_ASR_BITS", ASR_DEFAULT_BITS),
            channel=_env_int("VOLC_ASR_CHANNEL", ASR_DEFAULT_CHANNELS),
            codec=os.environ.get("VOLC_ASR_CODEC", ASR_DEFAULT_CODEC),

            seg_duration_ms=_env_int("VOLC_ASR_SEG_DURATION_MS", ASR_DEFAULT_SEG_DURATION_MS),
            mp3_seg_size=_env_int("VOLC_ASR_MP3_SEG_SIZE", ASR_DEFAULT_MP3_SEG_SIZE),
            streaming=os.environ.get("VOLC_ASR_STREAMING", "1") == "1",
        )


@dataclass(frozen=True)
class SynthesisConfig:
    """
    Immutable synthesis (TTS) session configuration.
    """

    appid: str = ""
    token: str = ""
    cluster: str = ""
    ws_url: str = TTS_DEFAULT_WS_URL

    encoding: str = TTS_DEFAULT_ENCODING
    speed_ratio: float = TTS_DEFAULT_SPEED_RATIO
    volume_ratio: float = TTS_DEFAULT_VOLUME_RATIO
    pitch_ratio: str = TTS_DEFAULT_PITCH_RATIO

    @staticmethod
    def load_from_env() -> SynthesisConfig:
        return SynthesisConfig(
            appid=os.environ.get("APPID", ""),
            token=os.environ.get("APITOKEN", ""),
            cluster=os.environ.get("CLUSTER", ""),
            ws_url=os.environ.get("VOLC_TTS_WS_URL", TTS_DEFAULT_WS_URL),
            encoding=os.environ.get("VOLC_TTS_ENCODING", TTS_DEFAULT_ENCODING),
            speed_ratio=_env_float("VOLC_TTS_SPEED_RATIO", TTS_DEFAULT_SPEED_RATIO),
            volume_ratio=_env_float("VOLC_TTS_VOLUME_RATIO", TTS_DEFAULT_VOLUME_RATIO),
            pitch_ratio=os.environ.get("VOLC_TTS_PITCH_RATIO", TTS_DEFAULT_PITCH_RATIO),
        )


@dataclass(frozen=True)
class ChatConfig:
    """
    OpenAI-compatible chat completion endpoint (Ark).
    """

    api_key: str | None
    model: str
    base_url: str = CHAT_DEFAULT_BASE_URL

    @staticmethod
    def load_from_env() -> ChatConfig:
        return ChatConfig(
            api_key=os.environ.get("ARK_API_KEY"),
            model=os.environ.get("ARK_ENDPOINT_ID", ""),
            base_url=os.environ.get("ARK_BASE_URL", CHAT_DEFAULT_BASE_URL),
        )
