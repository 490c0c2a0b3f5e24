"""
Streaming recognition (ASR) session.

Protocol flow for one call to recognize():

    Init -> SendConfig -> (SendChunk -> AwaitResponse)* -> Done

- SendConfig sends the full-client-request (sequence 1) and consumes
  exactly one response (the initial ack) before any audio is sent.
- Each audio chunk is sent, then exactly one response is received
  before the next send. Never pipelined.
- With streaming (pacing) enabled, the loop sleeps so that each round
  trip takes at least seg_duration_ms, emulating real-time capture.
- The response to the terminal chunk is the session result.

Isolation:
- All per-session state (request id, sequence counter, connection) is
  local to one recognize() call. Concurrent calls share nothing.
- Pacing uses asyncio.sleep, so it only suspends this session.

Errors:
- UnsupportedFormat is raised before connecting.
- TransportError aborts the session.
- Malformed server frames never abort (see protocol.recognition).
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Awaitable, Callable

from config import RecognitionConfig
from observability.logger import log_event
from observability.metrics import timed
from protocol.errors import SpeechProtocolError, describe_stage
from protocol.frames import (
    SequenceCounter,
    build_audio_only_request,
    build_full_client_request,
)
from protocol.recognition import RecognitionResponse, parse_recognition_response
from audio.segmenter import iter_audio_chunks, segment_size
from transport.connection import Connection, Connector, connect


def _summary(response: RecognitionResponse) -> dict[str, object]:
    return {
        "seq": response.payload_sequence,
        "is_last": response.is_last_package,
        "code": response.code,
        "payload_size": response.payload_size,
        "payload_kind": response.payload.kind.value,
    }


class RecognitionClient:
    """
    Recognition client. One recognize() call == one stream == one
    connection.
    """

    def __init__(
        self,
        config: RecognitionConfig,
        *,
        connector: Connector = connect,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._connector = connector
        self._sleep = sleep
        self._clock = clock

    def _headers(self, request_id: str) -> dict[str, str]:
        return {
            "X-Api-Resource-Id": self._config.resource_id,
            "X-Api-Access-Key": self._config.access_key,
            "X-Api-App-Key": self._config.app_key,
            "X-Api-Request-Id": request_id,
        }

    async def recognize(self, audio: bytes) -> RecognitionResponse:
        """
        Stream `audio` to the service and return the final response.

        Raises:
            UnsupportedFormat before any network activity.
            TransportError on connect/send/receive failure.
        """
        size = segment_size(self._config)
        request_id = str(uuid.uuid4())
        counter = SequenceCounter()
        config_frame = build_full_client_request(self._config, sequence=counter.current)

        log_event({
            "event_type": "ASR_SESSION_START",
            "request_id": request_id,
            "format": self._config.format,
            "audio_bytes": len(audio),
            "segment_size": size,
            "streaming": self._config.streaming,
        })

        try:
            conn = await self._connector(self._config.ws_url, self._headers(request_id))
        except SpeechProtocolError as e:
            self._log_error(request_id, e)
            raise

        try:
            result = await self._run(conn, request_id, config_frame, counter, audio, size)
        except SpeechProtocolError as e:
            self._log_error(request_id, e)
            raise
        finally:
            await conn.close()

        log_event({
            "event_type": "ASR_SESSION_END",
            "request_id": request_id,
            **_summary(result),
        })
        return result

    async def _run(
        self,
        conn: Connection,
        request_id: str,
        config_frame: bytes,
        counter: SequenceCounter,
        audio: bytes,
        size: int,
    ) -> RecognitionResponse:
        # ---- SendConfig ----
        with timed("asr_round_trip", request_id=request_id, details={"seq": counter.current}):
            await conn.send(config_frame)
            result = parse_recognition_response(await conn.receive())

        log_event({
            "event_type": "ASR_INITIAL_RESPONSE",
            "request_id": request_id,
            **_summary(result),
        })

        # ---- (SendChunk -> AwaitResponse)* ----
        segment_s = self._config.seg_duration_ms / 1000
        for chunk in iter_audio_chunks(audio, size):
            seq = counter.advance(is_last=chunk.is_last)
            start = self._clock()

            frame = build_audio_only_request(chunk.data, sequence=seq, is_last=chunk.is_last)
            with timed("asr_round_trip", request_id=request_id, details={"seq": seq}):
                await conn.send(frame)
                result = parse_recognition_response(await conn.receive())

            log_event({
                "event_type": "ASR_CHUNK_RESPONSE",
                "request_id": request_id,
                "sent_seq": seq,
                "chunk_bytes": len(chunk.data),
                **_summary(result),
            })

            if self._config.streaming:
                remaining = segment_s - (self._clock() - start)
                if remaining > 0:
                    await self._sleep(remaining)

        return result

    @staticmethod
    def _log_error(request_id: str, exc: SpeechProtocolError) -> None:
        log_event({
            "event_type": "ASR_SESSION_ERROR",
            "request_id": request_id,
            "stage": describe_stage(exc),
            "exception": type(exc).__name__,
            "message": str(exc),
        })
