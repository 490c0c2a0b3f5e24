"""
Command-line entry point.

    speech-client asr hello.wav --format wav
    speech-client tts "你好" --voice BV001_streaming --out hello.mp3 --stream

Credentials and endpoints come from the environment (see config.py);
flags only override the audio / request parameters.
"""
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
import wave
from pathlib import Path
from typing import Any, Sequence

from audio.wav import probe_wav
from config import RecognitionConfig, SynthesisConfig
from constants import SUPPORTED_AUDIO_FORMATS
from observability.logger import log_event
from protocol.errors import SpeechProtocolError, SynthesisStreamError, describe_stage
from protocol.payload import PayloadKind
from protocol.recognition import RecognitionResponse
from session.recognition import RecognitionClient
from session.synthesis import SynthesisClient


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="speech-client")
    sub = ap.add_subparsers(dest="command", required=True)

    asr = sub.add_parser("asr", help="Stream an audio file for recognition")
    asr.add_argument("audio", help="Path to wav / mp3 / pcm audio")
    asr.add_argument("--format", choices=SUPPORTED_AUDIO_FORMATS, default=None)
    asr.add_argument("--rate", type=int, default=None, help="Sample rate (Hz)")
    asr.add_argument("--bits", type=int, default=None, help="Bits per sample")
    asr.add_argument("--channel", type=int, default=None, help="Channel count")
    asr.add_argument("--seg-duration-ms", type=int, default=None)
    asr.add_argument("--no-streaming", action="store_true", help="Send chunks without real-time pacing")

    tts = sub.add_parser("tts", help="Synthesize text to an audio file")
    tts.add_argument("text")
    tts.add_argument("--voice", required=True, help="Voice type")
    tts.add_argument("--out", required=True, help="Output audio path")
    tts.add_argument("--stream", action="store_true", help="Use streaming (submit) mode")

    return ap


def _recognition_config(args: argparse.Namespace) -> RecognitionConfig:
    config = RecognitionConfig.load_from_env()
    overrides: dict[str, Any] = {}

    audio_format = args.format or config.format
    overrides["format"] = audio_format

    # Fill unspecified wav parameters from the file header
    if audio_format == "wav" and None in (args.rate, args.bits, args.channel):
        try:
            info = probe_wav(args.audio)
        except (wave.Error, EOFError) as e:
            # Unreadable header (e.g. IEEE float): stream with configured values
            log_event({
                "event_type": "WAV_PROBE_FAILED",
                "path": str(args.audio),
                "reason": str(e),
                "rate": config.rate,
                "bits": config.bits,
                "channel": config.channel,
            })
        else:
            overrides.update(rate=info.sample_rate_hz, bits=info.bits, channel=info.channels)

    if args.rate is not None:
        overrides["rate"] = args.rate
    if args.bits is not None:
        overrides["bits"] = args.bits
    if args.channel is not None:
        overrides["channel"] = args.channel
    if args.seg_duration_ms is not None:
        overrides["seg_duration_ms"] = args.seg_duration_ms
    if args.no_streaming:
        overrides["streaming"] = False

    return dataclasses.replace(config, **overrides)


def _response_to_json(response: RecognitionResponse) -> dict[str, Any]:
    payload: Any = response.payload.value
    if response.payload.kind == PayloadKind.AUDIO:
        payload = {"bytes": len(payload)}
    return {
        "is_last_package": response.is_last_package,
        "payload_sequence": response.payload_sequence,
        "code": response.code,
        "payload_size": response.payload_size,
        "payload": payload,
    }


async def _run_asr(args: argparse.Namespace) -> int:
    config = _recognition_config(args)
    audio = Path(args.audio).read_bytes()

    result = await RecognitionClient(config).recognize(audio)
    print(json.dumps(_response_to_json(result), ensure_ascii=False, indent=2))
    return 0


async def _run_tts(args: argparse.Namespace) -> int:
    client = SynthesisClient(SynthesisConfig.load_from_env())
    out = Path(args.out)

    if not args.stream:
        out.write_bytes(await client.synthesize(args.text, args.voice))
        return 0

    try:
        audio = await client.stream_synthesize(args.text, args.voice)
    except SynthesisStreamError as e:
        # Keep whatever arrived before the failure
        if e.audio:
            out.write_bytes(e.audio)
        raise

    out.write_bytes(audio)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    runner = _run_asr if args.command == "asr" else _run_tts

    try:
        return asyncio.run(runner(args))
    except SpeechProtocolError as e:
        print(f"[{args.command}] {describe_stage(e)} error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
