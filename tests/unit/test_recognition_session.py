# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import time
from typing import Any, Dict, List, Mapping, Tuple, Union

import pytest

from config import RecognitionConfig
from protocol.enums import Compression, RecognitionMessageType, Serialization
from protocol.errors import TransportError, UnsupportedFormat
from protocol.header import decode_header, encode_header, pack_i32, pack_u32, read_i32
from protocol.payload import compress, serialize
from session import recognition as recognition_session
from session.recognition import RecognitionClient


# ---------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------

class FakeConnection:
    def __init__(self, responses: List[Union[bytes, Exception]]) -> None:
        self._responses = list(responses)
        self.sent: List[bytes] = []
        self.calls: List[str] = []
        self.closed = False

    async def send(self, data: bytes) -> None:
        self.calls.append("send")
        self.sent.append(data)

    async def receive(self) -> bytes:
        self.calls.append("receive")
        if not self._responses:
            raise TransportError("receive", "connection closed")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


def make_connector(conn: FakeConnection):
    opened: List[Tuple[str, Dict[str, str]]] = []

    async def connector(url: str, headers: Mapping[str, str]) -> FakeConnection:
        opened.append((url, dict(headers)))
        return conn

    return connector, opened


class FakeSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_response(sequence: int, body: Dict[str, Any]) -> bytes:
    payload = compress(serialize(body))
    header = encode_header(
        message_type=RecognitionMessageType.FULL_SERVER_RESPONSE,
        flags=0x3 if sequence < 0 else 0x1,
        serialization=Serialization.JSON,
        compression=Compression.GZIP,
    )
    return header + pack_i32(sequence) + pack_u32(len(payload)) + payload


def make_config(**overrides: Any) -> RecognitionConfig:
    fields: Dict[str, Any] = {
        "ws_url": "wss://asr.example/stream",
        "access_key": "ak",
        "app_key": "app",
        "format": "mp3",
        "mp3_seg_size": 4,
        "seg_duration_ms": 100,
        "streaming": False,
    }
    fields.update(overrides)
    return RecognitionConfig(**fields)


@pytest.fixture
def events(monkeypatch) -> List[Dict[str, Any]]:
    seen: List[Dict[str, Any]] = []
    monkeypatch.setattr(recognition_session, "log_event", seen.append)
    return seen


# ---------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_sends_config_then_alternates_chunks_and_responses(events):
    conn = FakeConnection([
        make_response(1, {}),
        make_response(2, {"result": {"text": "he"}}),
        make_response(3, {"result": {"text": "hell"}}),
        make_response(-4, {"result": {"text": "hello"}}),
    ])
    connector, _ = make_connector(conn)
    client = RecognitionClient(make_config(), connector=connector)

    result = await client.recognize(bytes(range(10)))

    assert conn.calls == ["send", "receive"] * 4
    assert [decode_header(f).message_type for f in conn.sent] == [0x1, 0x2, 0x2, 0x2]
    assert [read_i32(f, 4) for f in conn.sent] == [1, 2, 3, -4]
    assert conn.sent[-1][1] == 0x23
    assert conn.closed is True

    assert result.is_last_package is True
    assert result.payload_sequence == -4
    assert result.payload.value == {"result": {"text": "hello"}}

    assert [e["event_type"] for e in events] == [
        "ASR_SESSION_START",
        "ASR_INITIAL_RESPONSE",
        "ASR_CHUNK_RESPONSE",
        "ASR_CHUNK_RESPONSE",
        "ASR_CHUNK_RESPONSE",
        "ASR_SESSION_END",
    ]


@pytest.mark.asyncio
async def test_connects_with_auth_headers():
    conn = FakeConnection([make_response(1, {}), make_response(-2, {})])
    connector, opened = make_connector(conn)
    client = RecognitionClient(make_config(resource_id="res-1"), connector=connector)

    await client.recognize(b"abc")

    url, headers = opened[0]
    assert url == "wss://asr.example/stream"
    assert headers["X-Api-Resource-Id"] == "res-1"
    assert headers["X-Api-Access-Key"] == "ak"
    assert headers["X-Api-App-Key"] == "app"
    assert headers["X-Api-Request-Id"]


@pytest.mark.asyncio
async def test_each_session_uses_its_own_request_id():
    request_ids = []
    for _ in range(2):
        conn = FakeConnection([make_response(1, {}), make_response(-2, {})])
        connector, opened = make_connector(conn)
        await RecognitionClient(make_config(), connector=connector).recognize(b"abc")
        request_ids.append(opened[0][1]["X-Api-Request-Id"])

    assert request_ids[0] != request_ids[1]


@pytest.mark.asyncio
async def test_empty_audio_sends_one_empty_terminal_chunk():
    conn = FakeConnection([make_response(1, {}), make_response(-2, {})])
    connector, _ = make_connector(conn)

    await RecognitionClient(make_config(), connector=connector).recognize(b"")

    assert len(conn.sent) == 2
    assert read_i32(conn.sent[1], 4) == -2


@pytest.mark.asyncio
async def test_malformed_response_does_not_abort():
    conn = FakeConnection([
        make_response(1, {}),
        b"\x11\x91",
        make_response(-3, {"result": {"text": "ok"}}),
    ])
    connector, _ = make_connector(conn)

    result = await RecognitionClient(make_config(), connector=connector).recognize(bytes(8))

    assert result.payload.value == {"result": {"text": "ok"}}


@pytest.mark.asyncio
async def test_server_error_code_is_returned_not_raised():
    error_frame = encode_header(
        message_type=RecognitionMessageType.SERVER_ERROR_RESPONSE,
        flags=0x0,
        serialization=Serialization.JSON,
        compression=Compression.GZIP,
    ) + pack_i32(45000081)
    conn = FakeConnection([make_response(1, {}), error_frame])
    connector, _ = make_connector(conn)

    result = await RecognitionClient(make_config(), connector=connector).recognize(b"abc")

    assert result.code == 45000081
    assert result.is_error is True


# ---------------------------------------------------------------------
# Pacing
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_streaming_sleeps_remainder_of_each_segment():
    conn = FakeConnection([make_response(1, {})] + [make_response(s, {}) for s in (2, 3, -4)])
    connector, _ = make_connector(conn)
    sleep = FakeSleep()
    client = RecognitionClient(
        make_config(streaming=True, seg_duration_ms=100),
        connector=connector,
        sleep=sleep,
        clock=lambda: 0.0,
    )

    await client.recognize(bytes(10))

    assert sleep.delays == [pytest.approx(0.1)] * 3


@pytest.mark.asyncio
async def test_streaming_skips_sleep_when_round_trip_is_slow():
    ticks = iter([0.0, 0.5, 1.0, 1.5])
    conn = FakeConnection([make_response(1, {}), make_response(2, {}), make_response(-3, {})])
    connector, _ = make_connector(conn)
    sleep = FakeSleep()
    client = RecognitionClient(
        make_config(streaming=True, seg_duration_ms=100),
        connector=connector,
        sleep=sleep,
        clock=lambda: next(ticks),
    )

    await client.recognize(bytes(8))

    assert sleep.delays == []


@pytest.mark.asyncio
async def test_no_pacing_when_streaming_disabled():
    conn = FakeConnection([make_response(1, {}), make_response(2, {}), make_response(-3, {})])
    connector, _ = make_connector(conn)
    sleep = FakeSleep()
    client = RecognitionClient(make_config(streaming=False), connector=connector, sleep=sleep)

    await client.recognize(bytes(8))

    assert sleep.delays == []


# ---------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_concurrent_sessions_are_isolated_and_pace_independently():
    conns = [
        FakeConnection([make_response(s, {"result": {"text": f"s{i}"}}) for s in (1, 2, 3, -4)])
        for i in range(3)
    ]
    clients = []
    opened_per_client = []
    for conn in conns:
        connector, opened = make_connector(conn)
        clients.append(
            RecognitionClient(make_config(streaming=True, seg_duration_ms=100), connector=connector)
        )
        opened_per_client.append(opened)

    start = time.monotonic()
    results = await asyncio.gather(*(c.recognize(bytes(10)) for c in clients))
    elapsed = time.monotonic() - start

    # Three paced chunks per session: ~0.3 s together, ~0.9 s if serialized
    assert elapsed < 0.6

    for i, (conn, result) in enumerate(zip(conns, results)):
        assert [read_i32(f, 4) for f in conn.sent] == [1, 2, 3, -4]
        assert conn.calls == ["send", "receive"] * 4
        assert conn.closed is True
        assert result.payload.value == {"result": {"text": f"s{i}"}}

    request_ids = {opened[0][1]["X-Api-Request-Id"] for opened in opened_per_client}
    assert len(request_ids) == 3


# ---------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unsupported_format_fails_before_connecting():
    conn = FakeConnection([])
    connector, opened = make_connector(conn)
    client = RecognitionClient(make_config(format="ogg"), connector=connector)

    with pytest.raises(UnsupportedFormat):
        await client.recognize(b"abc")

    assert opened == []


@pytest.mark.asyncio
async def test_receive_failure_aborts_and_closes(events):
    conn = FakeConnection([make_response(1, {})])
    connector, _ = make_connector(conn)

    with pytest.raises(TransportError) as exc_info:
        await RecognitionClient(make_config(), connector=connector).recognize(bytes(8))

    assert exc_info.value.stage == "receive"
    assert conn.closed is True
    assert len(conn.sent) == 2

    error = events[-1]
    assert error["event_type"] == "ASR_SESSION_ERROR"
    assert error["stage"] == "receive"


@pytest.mark.asyncio
async def test_connect_failure_propagates(events):
    async def connector(url: str, headers: Mapping[str, str]):
        raise TransportError("connect", "refused")

    with pytest.raises(TransportError) as exc_info:
        await RecognitionClient(make_config(), connector=connector).recognize(b"abc")

    assert exc_info.value.stage == "connect"
    assert events[-1]["stage"] == "connect"
