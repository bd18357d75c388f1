"""Shared fakes for the audio subsystem and the recognition engine."""

import threading
import time

import numpy as np
import pyaudio
import pytest

DEVICES = [
    {"index": 0, "name": "Built-in Microphone", "maxInputChannels": 2, "defaultSampleRate": 48000.0},
    {"index": 1, "name": "HDMI Output", "maxInputChannels": 0, "defaultSampleRate": 48000.0},
    {"index": 2, "name": "USB Headset", "maxInputChannels": 1, "defaultSampleRate": 44100.0},
]


class FakeStream:
    def __init__(self, callback, fail_start: bool = False):
        self.callback = callback
        self.fail_start = fail_start
        self.fail_stop = False
        self.active = False
        self.closed = False

    def start_stream(self) -> None:
        if self.fail_start:
            raise OSError("Device unavailable")
        self.active = True

    def stop_stream(self) -> None:
        if self.fail_stop:
            raise OSError("Unanticipated host error")
        self.active = False

    def close(self) -> None:
        self.active = False
        self.closed = True

    def feed(self, samples: np.ndarray, status_flags: int = 0):
        """Deliver a block the way PortAudio would."""
        assert self.active, "callback fired on an inactive stream"
        data = np.asarray(samples, dtype=np.float32).tobytes()
        return self.callback(data, len(samples), {}, status_flags)


class FakePyAudio:
    def __init__(
        self,
        devices=None,
        default_index: int | None = 0,
        unsupported: bool = False,
        fail_open: bool = False,
        fail_start: bool = False,
    ):
        self.devices = DEVICES if devices is None else devices
        self.default_index = default_index
        self.unsupported = unsupported
        self.fail_open = fail_open
        self.fail_start = fail_start
        self.streams: list[FakeStream] = []
        self.open_kwargs: dict | None = None
        self.terminated = False

    def get_device_count(self) -> int:
        return len(self.devices)

    def get_device_info_by_index(self, index: int) -> dict:
        return self.devices[index]

    def get_default_input_device_info(self) -> dict:
        if self.default_index is None:
            raise OSError("No Default Input Device Available")
        return self.devices[self.default_index]

    def is_format_supported(self, rate, **kwargs) -> bool:
        if self.unsupported:
            raise ValueError("Invalid sample rate")
        return True

    def open(self, **kwargs) -> FakeStream:
        if self.fail_open:
            raise OSError("Invalid number of channels")
        self.open_kwargs = kwargs
        stream = FakeStream(kwargs["stream_callback"], fail_start=self.fail_start)
        self.streams.append(stream)
        return stream

    def terminate(self) -> None:
        self.terminated = True


class AudioFactory:
    """Callable handed to CaptureSession; remembers every PyAudio it made."""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.created: list[FakePyAudio] = []

    def __call__(self) -> FakePyAudio:
        pa = FakePyAudio(**self.kwargs)
        self.created.append(pa)
        return pa

    @property
    def last(self) -> FakePyAudio:
        return self.created[-1]


class FakeEngine:
    """Stands in for RecognitionEngine inside the worker."""

    def __init__(self, model_path: str = "/models/base", language: str = "auto"):
        self.model_path = model_path
        self.language = language
        self.calls: list[tuple[int, str | None]] = []
        self.gate = threading.Event()
        self.gate.set()
        self.fail_with: Exception | None = None

    def set_language(self, language: str) -> None:
        self.language = language

    def transcribe(self, samples, options=None) -> str:
        self.gate.wait(timeout=5)
        language = options.language if options and options.language else self.language
        self.calls.append((len(samples), language))
        if self.fail_with is not None:
            raise self.fail_with
        if options is not None and options.progress_callback is not None:
            options.progress_callback(50.0)
            options.progress_callback(100.0)
        return f" {language}:{len(samples)} "


@pytest.fixture
def audio_factory():
    return AudioFactory()


@pytest.fixture
def feed_silence():
    def _feed(stream: FakeStream, total: int, block: int = 1600) -> None:
        sent = 0
        while sent < total:
            n = min(block, total - sent)
            assert stream.feed(np.zeros(n, dtype=np.float32)) == (None, pyaudio.paContinue)
            sent += n

    return _feed


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()
