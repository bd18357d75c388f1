"""
Error types for capture and recognition.
"""


class GWhisperError(Exception):
    """Base class for recoverable gwhisper errors."""


class SessionStateError(AssertionError):
    """Illegal capture state transition. A caller bug, not a runtime condition."""


# -------------------------
# CAPTURE
# -------------------------
class CaptureError(GWhisperError):
    """Capture could not be started."""


class DeviceNotFound(CaptureError):
    def __init__(self, device: str):
        super().__init__(f"No input device matching {device!r}")
        self.device = device


class StreamBuildError(CaptureError):
    """The device refused the requested stream configuration."""


class StreamPlayError(CaptureError):
    """The stream was built but could not be started."""


# -------------------------
# RECOGNITION
# -------------------------
class RecognitionError(GWhisperError):
    """Recognition request failed."""


class ModelLoadError(RecognitionError):
    def __init__(self, path: str, cause: BaseException):
        super().__init__(f"Failed to load model {path!r}: {cause}")
        self.path = path
        self.cause = cause


class TranscriptionError(RecognitionError):
    """Inference could not start or a segment could not be retrieved."""


class EngineNotReady(RecognitionError):
    def __init__(self, last_load_error: ModelLoadError | None = None):
        message = "No model loaded"
        if last_load_error is not None:
            message += f" (last load failed: {last_load_error})"
        super().__init__(message)
        self.last_load_error = last_load_error
