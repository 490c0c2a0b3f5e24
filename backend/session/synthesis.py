"""
Synthesis (TTS) sessions over the binary protocol.

Two modes, chosen by the `operation` field of the single request frame:

- query  (synthesize):        Init -> Send -> Receive -> Done
    Exactly one frame out, one frame in. Any parse failure or server
    error propagates unchanged.

- submit (stream_synthesize): Init -> Send -> (Receive)* -> Done
    Frames are received until one reports is_last. Audio from every
    frame is accumulated in order. A receive or parse failure ends the
    stream early and raises SynthesisStreamError carrying the audio
    accumulated so far.

Each call opens its own connection; nothing is shared between calls.
"""

from __future__ import annotations

import uuid

from config import SynthesisConfig
from constants import TTS_OPERATION_QUERY, TTS_OPERATION_SUBMIT
from observability.logger import log_event
from observability.metrics import timed
from protocol.errors import (
    SpeechProtocolError,
    SynthesisStreamError,
    describe_stage,
)
from protocol.frames import build_synthesis_request, synthesis_request_payload
from protocol.synthesis import parse_synthesis_response
from transport.connection import Connection, Connector, connect


class SynthesisClient:
    """
    Synthesis client for the binary TTS endpoint.
    """

    def __init__(
        self,
        config: SynthesisConfig,
        *,
        connector: Connector = connect,
    ) -> None:
        self._config = config
        self._connector = connector

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def synthesize(self, text: str, voice_type: str) -> bytes:
        """
        Single-shot synthesis.

        Raises:
            TransportError, ServerError, FrameTooShort, InvalidFrameSize,
            CorruptArchive, UnknownMessageType
        """
        request_id, frame = self._prepare(text, voice_type, TTS_OPERATION_QUERY)
        conn = await self._open(request_id)

        try:
            with timed("tts_round_trip", request_id=request_id):
                await conn.send(frame)
                response = parse_synthesis_response(await conn.receive())
        except SpeechProtocolError as e:
            self._log_error(request_id, e)
            raise
        finally:
            await conn.close()

        log_event({
            "event_type": "TTS_SESSION_END",
            "request_id": request_id,
            "total_audio_bytes": len(response.audio),
        })
        return response.audio

    async def stream_synthesize(self, text: str, voice_type: str) -> bytes:
        """
        Streaming synthesis; returns all audio once the last frame arrives.

        Raises:
            TransportError if connecting or sending the request fails.
            SynthesisStreamError if the stream ends on an error; its
            `audio` holds everything received before the failure.
        """
        request_id, frame = self._prepare(text, voice_type, TTS_OPERATION_SUBMIT)
        conn = await self._open(request_id)

        try:
            try:
                await conn.send(frame)
            except SpeechProtocolError as e:
                self._log_error(request_id, e)
                raise

            audio = await self._receive_stream(conn, request_id)
        finally:
            await conn.close()

        log_event({
            "event_type": "TTS_SESSION_END",
            "request_id": request_id,
            "total_audio_bytes": len(audio),
        })
        return audio

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _prepare(self, text: str, voice_type: str, operation: str) -> tuple[str, bytes]:
        request_id = str(uuid.uuid4())
        request = synthesis_request_payload(
            self._config,
            text=text,
            voice_type=voice_type,
            operation=operation,
            request_id=request_id,
        )
        log_event({
            "event_type": "TTS_SESSION_START",
            "request_id": request_id,
            "operation": operation,
            "voice_type": voice_type,
            "text_chars": len(text),
        })
        return request_id, build_synthesis_request(request)

    async def _open(self, request_id: str) -> Connection:
        headers = {"Authorization": f"Bearer;{self._config.token}"}
        try:
            return await self._connector(self._config.ws_url, headers)
        except SpeechProtocolError as e:
            self._log_error(request_id, e)
            raise

    async def _receive_stream(self, conn: Connection, request_id: str) -> bytes:
        chunks: list[bytes] = []

        while True:
            try:
                with timed("tts_round_trip", request_id=request_id):
                    response = parse_synthesis_response(await conn.receive())
            except SpeechProtocolError as e:
                audio = b"".join(chunks)
                self._log_error(request_id, e, audio_bytes=len(audio))
                raise SynthesisStreamError(e, audio) from e

            chunks.append(response.audio)
            log_event({
                "event_type": "TTS_FRAME",
                "request_id": request_id,
                "seq": response.sequence,
                "is_last": response.is_last,
                "audio_bytes": len(response.audio),
            })

            if response.is_last:
                return b"".join(chunks)

    @staticmethod
    def _log_error(request_id: str, exc: SpeechProtocolError, **extra: object) -> None:
        log_event({
            "event_type": "TTS_SESSION_ERROR",
            "request_id": request_id,
            "stage": describe_stage(exc),
            "exception": type(exc).__name__,
            "message": str(exc),
            **extra,
        })
