#!/usr/bin/env python3
"""
Offline dictation: record from the microphone, transcribe with Whisper.

- pyaudio callback -> SampleBuffer (capture session)
- transcription worker -> faster-whisper, one request at a time
- Gradio UI or terminal -> recording control and transcript display
"""

import argparse
import functools
import sys
from collections.abc import Sequence

import pyaudio

from .app.worker import LoadModel, TranscriptionWorker
from .core.asr import RecognitionEngine
from .core.config import AppConfig, load_config
from .core.errors import CaptureError
from .interfaces.microphone import CaptureSession, list_input_devices
from .utils import duration_seconds, setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="gwhisper",
        description="Offline speech-to-text dictation with Whisper.",
    )
    parser.add_argument(
        "-d", "--device", default=None, help="Input device name (default: system default)"
    )
    parser.add_argument(
        "-m", "--model", default=None, help="Path to a faster-whisper model directory"
    )
    parser.add_argument(
        "-l", "--lang", default=None, help="Language code, or `auto` for detection"
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument(
        "--list-devices", action="store_true", help="List input devices and exit"
    )
    parser.add_argument(
        "--no-ui",
        action="store_true",
        help="Record in the terminal until Enter, then print the transcript",
    )
    return parser


def print_devices() -> None:
    pa = pyaudio.PyAudio()
    try:
        for device in list_input_devices(pa):
            print(f"[{device.index}] {device.name}")
    finally:
        pa.terminate()


def run_headless(app_config: AppConfig) -> int:
    """Record once from the terminal and print the transcript."""
    if not app_config.model_path:
        print("--no-ui requires a model (--model or GWHISPER_MODEL).", file=sys.stderr)
        return 2

    worker = TranscriptionWorker(
        loader=functools.partial(
            RecognitionEngine.load,
            device=app_config.compute_device,
            compute_type=app_config.compute_type,
        ),
        language=app_config.language,
    )
    with worker:
        # Model loads while we record
        worker.submit(LoadModel(app_config.model_path))

        session = CaptureSession(device=app_config.input_device)
        try:
            session.start()
        except CaptureError as exc:
            print(f"Recording failed: {exc}", file=sys.stderr)
            return 1

        print("Recording... press Enter (or Ctrl-C) to stop.")
        try:
            input()
        except (KeyboardInterrupt, EOFError):
            pass
        samples = session.stop()
        print(f"Recording complete, {duration_seconds(samples):.1f}s.", file=sys.stderr)

        request_id = worker.transcribe(samples)
        while True:
            result = worker.results.get()
            if not result.ok:
                print(f"Error: {result.error}", file=sys.stderr)
                return 1
            if result.request_id == request_id:
                print((result.text or "").strip())
                return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    try:
        app_config = load_config(
            input_device=args.device,
            model_path=args.model,
            language=args.lang,
            log_level=args.log_level,
        )
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    setup_logging(app_config.log_level)

    if args.list_devices:
        print_devices()
        return 0

    if args.no_ui:
        return run_headless(app_config)

    from .app.gradio_ui import launch

    launch(app_config)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
