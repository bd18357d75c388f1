"""
Microphone capture session using PyAudio.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
import pyaudio

from ..core import config
from ..core.buffer import SampleBuffer
from ..core.errors import (
    DeviceNotFound,
    SessionStateError,
    StreamBuildError,
    StreamPlayError,
)
from ..utils import duration_seconds, samples_from_bytes

logger = logging.getLogger(__name__)

_STATUS_NAMES = {
    pyaudio.paInputUnderflow: "input underflow",
    pyaudio.paInputOverflow: "input overflow",
}


@dataclass(frozen=True)
class InputDevice:
    """An input-capable device as reported by PortAudio."""

    index: int
    name: str
    max_input_channels: int
    default_sample_rate: float

    @classmethod
    def from_info(cls, info: dict[str, Any]) -> "InputDevice":
        return cls(
            index=int(info["index"]),
            name=str(info["name"]),
            max_input_channels=int(info.get("maxInputChannels", 0)),
            default_sample_rate=float(info.get("defaultSampleRate", 0.0)),
        )


@dataclass(frozen=True)
class StreamConfig:
    """
    Stream parameters asked of the device.

    Channel count, rate and format are fixed for Whisper; the buffer size is
    left to the device default.
    """

    channels: int = config.CHANNELS
    sample_rate: int = config.SAMPLE_RATE
    sample_format: int = pyaudio.paFloat32
    frames_per_buffer: int = pyaudio.paFramesPerBufferUnspecified


def list_input_devices(pa: pyaudio.PyAudio) -> list[InputDevice]:
    """Enumerate devices that can record."""
    devices = []
    for i in range(pa.get_device_count()):
        info = pa.get_device_info_by_index(i)
        if int(info.get("maxInputChannels", 0)) > 0:
            devices.append(InputDevice.from_info(info))
    return devices


def resolve_input_device(pa: pyaudio.PyAudio, name: str) -> InputDevice:
    """
    Find the input device by exact name.

    "default" selects the host's default input device.

    Raises:
        DeviceNotFound: If nothing matches
    """
    if name == config.DEFAULT_INPUT_DEVICE:
        try:
            info = pa.get_default_input_device_info()
        except OSError as exc:
            raise DeviceNotFound(name) from exc
        return InputDevice.from_info(info)

    for device in list_input_devices(pa):
        if device.name == name:
            return device
    raise DeviceNotFound(name)


class CaptureSession:
    """
    Two-state recorder: Stopped <-> Started.

    start() opens a callback-driven input stream that appends into a fresh
    SampleBuffer; stop() closes it and hands the samples back.
    """

    def __init__(
        self,
        device: str = config.DEFAULT_INPUT_DEVICE,
        stream_config: StreamConfig | None = None,
        audio_factory: Callable[[], pyaudio.PyAudio] = pyaudio.PyAudio,
    ):
        self.device = device
        self.stream_config = stream_config or StreamConfig()
        self._audio_factory = audio_factory

        self._buffer = SampleBuffer()
        self._pa: pyaudio.PyAudio | None = None
        self._stream: pyaudio.Stream | None = None
        self.active_device: InputDevice | None = None
        self._reset_counters()

    def _reset_counters(self) -> None:
        self.stream_errors = 0
        self.callback_errors = 0
        self._status_seen = 0
        self._callback_error: Exception | None = None

    def is_stopped(self) -> bool:
        return self._stream is None

    @property
    def samples_captured(self) -> int:
        """Samples accumulated so far in the current recording."""
        return len(self._buffer)

    def _make_callback(self, buffer: SampleBuffer):
        def _callback(
            in_data: bytes | None,
            frame_count: int,
            time_info: dict[str, float],
            status_flags: int,
        ) -> tuple[None, int]:
            # Runs on the PortAudio thread: count problems, log them after stop()
            try:
                if status_flags:
                    self.stream_errors += 1
                    self._status_seen |= status_flags
                if in_data is not None:
                    buffer.extend(samples_from_bytes(in_data))
            except Exception as exc:
                self.callback_errors += 1
                self._callback_error = exc
            return (None, pyaudio.paContinue)

        return _callback

    def _report_stream_problems(self) -> None:
        if self.stream_errors:
            names = [
                name for flag, name in _STATUS_NAMES.items() if self._status_seen & flag
            ]
            logger.warning(
                "Audio stream reported %d error(s) on %r: %s",
                self.stream_errors,
                self.device,
                ", ".join(names) or f"status 0x{self._status_seen:x}",
            )
        if self.callback_errors:
            logger.error(
                "Capture callback failed %d time(s) on %r, last error: %r",
                self.callback_errors,
                self.device,
                self._callback_error,
            )

    def start(self) -> None:
        """
        Start capturing from the configured device.

        Raises:
            SessionStateError: If already started
            DeviceNotFound: If the device cannot be resolved
            StreamBuildError: If the device rejects the stream configuration
            StreamPlayError: If the stream cannot be started
        """
        if self._stream is not None:
            raise SessionStateError("start() called on a running capture session")

        pa = self._audio_factory()
        try:
            device = resolve_input_device(pa, self.device)
            logger.info("Input device: %s", device.name)
            self._reset_counters()
            stream = self._open_stream(pa, device)
        except Exception:
            pa.terminate()
            raise

        self._pa = pa
        self._stream = stream
        self.active_device = device
        logger.info("Recording started")

    def _open_stream(self, pa: pyaudio.PyAudio, device: InputDevice) -> pyaudio.Stream:
        cfg = self.stream_config
        try:
            pa.is_format_supported(
                cfg.sample_rate,
                input_device=device.index,
                input_channels=cfg.channels,
                input_format=cfg.sample_format,
            )
        except ValueError as exc:
            raise StreamBuildError(
                f"Device {device.name!r} does not support {cfg}: {exc}"
            ) from exc

        buffer = SampleBuffer()
        try:
            stream = pa.open(
                format=cfg.sample_format,
                channels=cfg.channels,
                rate=cfg.sample_rate,
                input=True,
                input_device_index=device.index,
                frames_per_buffer=cfg.frames_per_buffer,
                stream_callback=self._make_callback(buffer),
                start=False,
            )
        except (OSError, ValueError) as exc:
            raise StreamBuildError(
                f"Failed to build input stream on {device.name!r}: {exc}"
            ) from exc

        try:
            stream.start_stream()
        except OSError as exc:
            stream.close()
            raise StreamPlayError(
                f"Failed to start input stream on {device.name!r}: {exc}"
            ) from exc

        self._buffer = buffer
        return stream

    def stop(self) -> np.ndarray:
        """
        Stop capturing and return the recorded samples.

        No callback runs after this returns.

        Raises:
            SessionStateError: If not started
        """
        if self._stream is None:
            raise SessionStateError("stop() called on a stopped capture session")

        stream, pa = self._stream, self._pa
        self._stream = None
        self._pa = None
        try:
            self._close_stream(stream)
        finally:
            pa.terminate()
        self._report_stream_problems()

        # Samples already captured survive a failed teardown
        samples = self._buffer.drain()
        logger.info(
            "Recording complete: %.2fs, %d samples",
            duration_seconds(samples, self.stream_config.sample_rate),
            len(samples),
        )
        return samples

    def _close_stream(self, stream: pyaudio.Stream) -> None:
        try:
            stream.stop_stream()
        except OSError:
            logger.exception("Failed to stop input stream on %r", self.device)
        finally:
            try:
                stream.close()
            except OSError:
                logger.exception("Failed to close input stream on %r", self.device)

    def __enter__(self) -> "CaptureSession":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        if not self.is_stopped():
            self.stop()
