# pylint: disable=missing-module-docstring,missing-function-docstring

import struct
import wave
from pathlib import Path

import pytest

import cli
from protocol.errors import ServerError, SynthesisStreamError


def write_wav(path: Path, *, rate: int, channels: int, width: int) -> None:
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(width)
        wf.setframerate(rate)
        wf.writeframes(b"\x00" * (width * channels * 10))


def parse(argv: list[str]):
    return cli._build_parser().parse_args(argv)  # pylint: disable=protected-access


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("VOLC_ASR_FORMAT", "VOLC_ASR_RATE", "VOLC_ASR_BITS", "VOLC_ASR_CHANNEL"):
        monkeypatch.delenv(name, raising=False)


def test_wav_parameters_come_from_file_header(tmp_path: Path):
    audio = tmp_path / "in.wav"
    write_wav(audio, rate=8000, channels=2, width=2)

    config = cli._recognition_config(parse(["asr", str(audio)]))  # pylint: disable=protected-access

    assert config.format == "wav"
    assert (config.rate, config.bits, config.channel) == (8000, 16, 2)


def test_flags_override_file_header(tmp_path: Path):
    audio = tmp_path / "in.wav"
    write_wav(audio, rate=8000, channels=2, width=2)

    args = parse(["asr", str(audio), "--rate", "16000", "--seg-duration-ms", "200", "--no-streaming"])
    config = cli._recognition_config(args)  # pylint: disable=protected-access

    assert config.rate == 16000
    assert config.channel == 2
    assert config.seg_duration_ms == 200
    assert config.streaming is False


def test_mp3_does_not_probe_file(tmp_path: Path):
    args = parse(["asr", str(tmp_path / "missing.mp3"), "--format", "mp3"])

    config = cli._recognition_config(args)  # pylint: disable=protected-access

    assert config.format == "mp3"


class FailingSynthesisClient:
    def __init__(self, config) -> None:
        self.config = config

    async def stream_synthesize(self, text: str, voice_type: str) -> bytes:
        error = ServerError(45000001, "invalid request")
        raise SynthesisStreamError(error, b"partial") from error


def test_tts_stream_failure_keeps_partial_audio(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
):
    monkeypatch.setattr(cli, "SynthesisClient", FailingSynthesisClient)
    out = tmp_path / "out.mp3"

    code = cli.main(["tts", "hello", "--voice", "BV700", "--out", str(out), "--stream"])

    assert code == 1
    assert out.read_bytes() == b"partial"
    assert "[tts] server error" in capsys.readouterr().err


def write_float_wav(path: Path, *, rate: int = 44_100) -> None:
    # WAVE_FORMAT_IEEE_FLOAT (tag 3), mono, 32-bit
    samples = b"\x00" * 40
    fmt = struct.pack("<HHIIHH", 3, 1, rate, rate * 4, 4, 32)
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt + b"data" + struct.pack("<I", len(samples)) + samples
    path.write_bytes(b"RIFF" + struct.pack("<I", len(body)) + body)


def test_unreadable_wav_header_keeps_configured_parameters(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
):
    events: list[dict] = []
    monkeypatch.setattr(cli, "log_event", events.append)
    audio = tmp_path / "float.wav"
    write_float_wav(audio)

    config = cli._recognition_config(parse(["asr", str(audio), "--format", "wav"]))  # pylint: disable=protected-access

    assert (config.rate, config.bits, config.channel) == (16_000, 16, 1)
    assert events[0]["event_type"] == "WAV_PROBE_FAILED"


def test_truncated_wav_header_keeps_configured_parameters(tmp_path: Path):
    audio = tmp_path / "short.wav"
    audio.write_bytes(b"RIFF")

    config = cli._recognition_config(parse(["asr", str(audio)]))  # pylint: disable=protected-access

    assert config.rate == 16_000


def test_asr_invalid_segment_size_exits_with_stage(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
):
    monkeypatch.setenv("VOLC_ASR_SEG_DURATION_MS", "0")
    audio = tmp_path / "float.wav"
    write_float_wav(audio)

    code = cli.main(["asr", str(audio), "--format", "wav"])

    assert code == 1
    assert "[asr] build error" in capsys.readouterr().err
