"""
Dictation controller: one capture session paired with one transcription worker.
"""

import functools
import logging
import queue
import threading
from datetime import datetime

from ..core.asr import RecognitionEngine
from ..core.config import AppConfig
from ..core.errors import CaptureError
from ..interfaces.microphone import CaptureSession
from .worker import LoadModel, TranscriptionWorker, Transcribe, WorkerResult

logger = logging.getLogger(__name__)


class DictationApp:
    """Record -> transcribe loop driven by a UI or the CLI."""

    def __init__(
        self,
        config: AppConfig,
        capture: CaptureSession | None = None,
        worker: TranscriptionWorker | None = None,
    ):
        self.config = config
        self._capture = capture or CaptureSession(device=config.input_device)
        self._worker = worker or TranscriptionWorker(
            loader=functools.partial(
                RecognitionEngine.load,
                device=config.compute_device,
                compute_type=config.compute_type,
            ),
            language=config.language,
        )
        self._worker.start()

        # Results storage
        self._transcripts: list[tuple[str, str]] = []  # (timestamp, text)
        self._status = "⚪ Stopped"
        self._busy = 0
        self._lock = threading.Lock()

        if config.model_path:
            self.load_model(config.model_path)

    @property
    def is_recording(self) -> bool:
        return not self._capture.is_stopped()

    def toggle_record(self) -> str:
        """Start recording, or stop and queue the recording for transcription."""
        if self._capture.is_stopped():
            try:
                self._capture.start()
            except CaptureError as exc:
                logger.error("Could not start recording: %s", exc)
                self._set_status(f"❌ {exc}")
                return self.get_status()
            self._set_status("🔴 Recording...")
            return self.get_status()

        samples = self._capture.stop()
        self._set_status("⏳ Transcribing...")
        self._submit(Transcribe(samples))
        return self.get_status()

    def load_model(self, path: str) -> str:
        """Queue a model (re)load."""
        path = (path or "").strip()
        if not path:
            self._set_status("❌ No model path given")
            return self.get_status()
        self._set_status(f"⏳ Loading model {path}...")
        self._submit(LoadModel(path))
        return self.get_status()

    def _submit(self, request: LoadModel | Transcribe) -> None:
        # Counted before submitting so a fast result cannot be polled first
        with self._lock:
            self._busy += 1
        try:
            self._worker.submit(request)
        except RuntimeError as exc:
            with self._lock:
                self._busy -= 1
            logger.error("Request rejected: %s", exc)
            self._set_status(f"❌ {exc}")

    @property
    def is_busy(self) -> bool:
        """True while a load or transcription is queued or running."""
        with self._lock:
            return self._busy > 0

    def set_language(self, language: str) -> str:
        try:
            self._worker.set_language(language)
        except ValueError as exc:
            self._set_status(f"❌ {exc}")
            return self.get_status()
        return f"Language: {self._worker.language}"

    def poll(self) -> list[WorkerResult]:
        """Collect finished worker results and fold them into the app state."""
        collected = []
        while True:
            try:
                result = self._worker.results.get_nowait()
            except queue.Empty:
                break
            collected.append(result)
            self._apply(result)
        return collected

    def _apply(self, result: WorkerResult) -> None:
        with self._lock:
            self._busy = max(0, self._busy - 1)
            idle = self._busy == 0

        if not result.ok:
            self._set_status(f"❌ {result.error}")
            return

        if isinstance(result.request, LoadModel):
            if idle and not self.is_recording:
                self._set_status("⚪ Stopped")
            return

        text = (result.text or "").strip()
        if text:
            timestamp = datetime.now().strftime("%H:%M:%S")
            with self._lock:
                self._transcripts.append((timestamp, text))
        if idle and not self.is_recording:
            self._set_status("⚪ Stopped")

    def _set_status(self, status: str) -> None:
        with self._lock:
            self._status = status

    def get_transcripts(self) -> str:
        """Get all transcripts as formatted text."""
        with self._lock:
            if not self._transcripts:
                return ""
            return "\n".join(f"[{ts}] {text}" for ts, text in self._transcripts)

    def get_last_transcript(self) -> str:
        with self._lock:
            return self._transcripts[-1][1] if self._transcripts else ""

    def clear_transcripts(self) -> None:
        with self._lock:
            self._transcripts.clear()

    def get_status(self) -> str:
        with self._lock:
            return self._status

    def get_model_label(self) -> str:
        path = self._worker.model_path
        if path is not None:
            return f"Model: {path}"
        if self._worker.last_load_error is not None:
            return "Model: failed to load"
        return "Model: none"

    def shutdown(self) -> None:
        """Stop any running recording and the worker."""
        if self.is_recording:
            self._capture.stop()
        self._worker.stop()
