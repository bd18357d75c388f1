"""
Transcription worker - runs recognition requests on a background thread.

Callers submit LoadModel / Transcribe / SetLanguage requests and get
results back through the `results` queue or the on_result callback.
"""

import itertools
import logging
import queue
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable

import numpy as np

from ..core import config
from ..core.asr import RecognitionEngine, RecognitionOptions
from ..core.errors import (
    EngineNotReady,
    ModelLoadError,
    RecognitionError,
    TranscriptionError,
)
from ..core.languages import validate_language

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadModel:
    """Replace the held engine with one loaded from `path`."""

    path: str


@dataclass(frozen=True, eq=False)
class Transcribe:
    """Transcribe a finished recording."""

    samples: np.ndarray
    options: RecognitionOptions = field(default_factory=RecognitionOptions)


@dataclass(frozen=True)
class SetLanguage:
    """Change the language for requests submitted after this one."""

    language: str


Request = LoadModel | Transcribe | SetLanguage


@dataclass(frozen=True)
class WorkerResult:
    """Outcome of a LoadModel or Transcribe request."""

    request_id: int
    request: Request
    text: str | None = None
    error: RecognitionError | None = None
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


EngineLoader = Callable[[str], RecognitionEngine]
ResultCallback = Callable[[WorkerResult], None]
ProgressCallback = Callable[[int, float], None]

_STOP = object()


class TranscriptionWorker:
    """
    Single-consumer recognition worker.

    Requests are processed one at a time in submission order on a dedicated
    thread. The language of a Transcribe request is fixed when it is
    submitted, so later SetLanguage requests never affect it.
    """

    def __init__(
        self,
        engine: RecognitionEngine | None = None,
        loader: EngineLoader | None = None,
        language: str | None = None,
        on_result: ResultCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        if language is None:
            language = engine.language if engine is not None else config.AUTO_LANGUAGE
        language = validate_language(language)
        if engine is not None:
            engine.set_language(language)

        self.on_result = on_result
        self.on_progress = on_progress
        self.results: queue.Queue[WorkerResult] = queue.Queue()

        self._loader = loader or RecognitionEngine.load
        self._requests: queue.Queue = queue.Queue()
        self._ids = itertools.count(1)

        # Submission side
        self._submit_lock = threading.Lock()
        self._language = language
        self._closed = False

        # Worker side; the engine slot is read by other threads under the lock
        self._engine_lock = threading.Lock()
        self._engine = engine
        self._engine_language = language
        self._last_load_error: ModelLoadError | None = None

        self._thread: threading.Thread | None = None

    # -------------------------
    # Lifecycle
    # -------------------------
    def start(self) -> None:
        """Start the worker thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="transcription-worker", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Finish all accepted requests, then stop the thread."""
        with self._submit_lock:
            if self._closed:
                return
            self._closed = True
            self._requests.put(_STOP)

        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Transcription worker still busy after %.1fs", timeout)

    def __enter__(self) -> "TranscriptionWorker":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()

    # -------------------------
    # Submission
    # -------------------------
    def submit(self, request: Request) -> int:
        """
        Queue a request and return its id.

        Raises:
            ValueError: If a SetLanguage code is not supported
            RuntimeError: If the worker has been stopped
        """
        with self._submit_lock:
            if self._closed:
                raise RuntimeError("Transcription worker is stopped")

            if isinstance(request, SetLanguage):
                language = validate_language(request.language)
                request = SetLanguage(language)
                self._language = language
            elif isinstance(request, Transcribe) and request.options.language is None:
                options = replace(request.options, language=self._language)
                request = replace(request, options=options)

            request_id = next(self._ids)
            self._requests.put((request_id, request))

        logger.debug("Queued request %d: %s", request_id, type(request).__name__)
        return request_id

    def load_model(self, path: str) -> int:
        return self.submit(LoadModel(str(path)))

    def transcribe(self, samples: np.ndarray) -> int:
        return self.submit(Transcribe(samples))

    def set_language(self, language: str) -> int:
        return self.submit(SetLanguage(language))

    @property
    def language(self) -> str:
        """Language that the next Transcribe submission will use."""
        with self._submit_lock:
            return self._language

    # -------------------------
    # Synchronized reads
    # -------------------------
    def is_model_loaded(self) -> bool:
        with self._engine_lock:
            return self._engine is not None

    @property
    def model_path(self) -> str | None:
        with self._engine_lock:
            return self._engine.model_path if self._engine is not None else None

    @property
    def last_load_error(self) -> ModelLoadError | None:
        with self._engine_lock:
            return self._last_load_error

    def pending(self) -> int:
        """Approximate number of requests waiting to be processed."""
        return self._requests.qsize()

    # -------------------------
    # Worker thread
    # -------------------------
    def _run(self) -> None:
        while True:
            item = self._requests.get()
            if item is _STOP:
                break

            request_id, request = item
            started = time.monotonic()
            try:
                self._handle(request_id, request, started)
            except Exception as exc:
                logger.exception("Unhandled error in request %d", request_id)
                if not isinstance(request, SetLanguage):
                    self._emit(
                        WorkerResult(
                            request_id=request_id,
                            request=request,
                            error=RecognitionError(f"Internal worker error: {exc}"),
                            elapsed_s=time.monotonic() - started,
                        )
                    )

        logger.debug("Transcription worker stopped")

    def _handle(self, request_id: int, request: Request, started: float) -> None:
        if isinstance(request, LoadModel):
            self._load_model(request_id, request, started)
        elif isinstance(request, Transcribe):
            self._transcribe(request_id, request, started)
        elif isinstance(request, SetLanguage):
            self._set_language(request)
        else:
            raise TypeError(f"Unknown request type: {type(request).__name__}")

    def _load_model(self, request_id: int, request: LoadModel, started: float) -> None:
        try:
            engine = self._loader(request.path)
        except ModelLoadError as exc:
            logger.error("Model load failed: %s", exc)
            with self._engine_lock:
                self._last_load_error = exc
            self._emit(
                WorkerResult(
                    request_id=request_id,
                    request=request,
                    error=exc,
                    elapsed_s=time.monotonic() - started,
                )
            )
            return

        engine.set_language(self._engine_language)
        with self._engine_lock:
            self._engine = engine
            self._last_load_error = None

        elapsed = time.monotonic() - started
        logger.info("Model ready: %s (%.1fs)", request.path, elapsed)
        self._emit(WorkerResult(request_id=request_id, request=request, elapsed_s=elapsed))

    def _transcribe(self, request_id: int, request: Transcribe, started: float) -> None:
        with self._engine_lock:
            engine = self._engine
            last_load_error = self._last_load_error

        if engine is None:
            self._emit(
                WorkerResult(
                    request_id=request_id,
                    request=request,
                    error=EngineNotReady(last_load_error),
                )
            )
            return

        options = request.options
        if self.on_progress is not None:
            options = replace(
                options,
                progress_callback=self._progress_callback(
                    request_id, options.progress_callback
                ),
            )

        try:
            text = engine.transcribe(request.samples, options)
        except TranscriptionError as exc:
            logger.error("Transcription %d failed: %s", request_id, exc)
            self._emit(
                WorkerResult(
                    request_id=request_id,
                    request=request,
                    error=exc,
                    elapsed_s=time.monotonic() - started,
                )
            )
            return

        elapsed = time.monotonic() - started
        logger.info(
            "Transcription %d done in %.2fs (%d samples)",
            request_id,
            elapsed,
            len(request.samples),
        )
        self._emit(
            WorkerResult(
                request_id=request_id,
                request=request,
                text=text,
                elapsed_s=elapsed,
            )
        )

    def _set_language(self, request: SetLanguage) -> None:
        # Kept even without an engine; applied to the next one loaded.
        self._engine_language = request.language
        with self._engine_lock:
            engine = self._engine
        if engine is not None:
            engine.set_language(request.language)

    def _progress_callback(
        self, request_id: int, inner: Callable[[float], None] | None
    ) -> Callable[[float], None]:
        def _callback(value: float) -> None:
            if inner is not None:
                inner(value)
            if self.on_progress is not None:
                self.on_progress(request_id, value)

        return _callback

    def _emit(self, result: WorkerResult) -> None:
        self.results.put(result)
        if self.on_result is None:
            return
        try:
            self.on_result(result)
        except Exception:
            logger.exception("Error in result callback")
