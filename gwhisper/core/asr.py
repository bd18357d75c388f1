"""
ASR module using faster-whisper (CTranslate2 Whisper models).
This module is independent of any transport or UI.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import faster_whisper
import numpy as np
import torch

from . import config
from .errors import ModelLoadError, TranscriptionError
from .languages import all_languages, validate_language

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class RecognitionOptions:
    """
    Per-request recognition options.

    language: code, "auto" for detection, or None for the engine's current language.
    progress_callback: receives percentages in [0, 100]; must return quickly.
    """

    language: str | None = None
    progress_callback: ProgressCallback | None = None


def resolve_compute_device(preference: str = "auto") -> str:
    """Pick "cuda" or "cpu" for the given preference."""
    pref = preference.strip().lower()
    if pref == "cpu":
        return "cpu"
    if torch.cuda.is_available():
        return "cuda"
    if pref == "cuda":
        logger.warning("CUDA requested but not available, using CPU")
    return "cpu"


class RecognitionEngine:
    """
    A loaded Whisper model plus its current language.

    Build it with RecognitionEngine.load(); the backend model object never
    leaves this class.
    """

    def __init__(
        self,
        model: faster_whisper.WhisperModel,
        model_path: str,
        language: str = config.AUTO_LANGUAGE,
    ):
        self._model = model
        self._model_path = model_path
        self._language = validate_language(language)

    @classmethod
    def load(
        cls,
        model_path: str,
        device: str = "auto",
        compute_type: str = config.DEFAULT_COMPUTE_TYPE,
    ) -> "RecognitionEngine":
        """
        Load a Whisper model from a local path.

        Args:
            model_path: Directory of a CTranslate2-converted Whisper model
            device: "auto", "cpu" or "cuda"
            compute_type: CTranslate2 compute type ("default" lets the backend choose)

        Raises:
            ModelLoadError: If the model is missing, malformed or incompatible
        """
        path = str(model_path)
        if not Path(path).exists():
            missing = FileNotFoundError(f"No such file or directory: {path}")
            raise ModelLoadError(path, missing)

        resolved_device = resolve_compute_device(device)
        logger.info(
            "Loading ASR model: %s (device=%s, compute_type=%s)",
            path,
            resolved_device,
            compute_type,
        )
        try:
            model = faster_whisper.WhisperModel(
                path,
                device=resolved_device,
                compute_type=compute_type,
                local_files_only=True,
            )
        except Exception as exc:
            raise ModelLoadError(path, exc) from exc

        logger.info("ASR model loaded on %s.", resolved_device.upper())
        return cls(model, path)

    @property
    def model_path(self) -> str:
        return self._model_path

    @property
    def language(self) -> str:
        return self._language

    def set_language(self, language: str) -> None:
        """Set the language for subsequent transcribe() calls ("auto" to detect)."""
        self._language = validate_language(language)

    @staticmethod
    def supported_languages() -> tuple[str, ...]:
        return all_languages()

    def transcribe(
        self, samples: np.ndarray, options: RecognitionOptions | None = None
    ) -> str:
        """
        Transcribe mono 16 kHz float32 samples to text.

        Decoding is greedy (best of one, temperature 0) and every call is
        independent of previous ones. Segment texts are concatenated as the
        model emits them; no trimming is applied.

        Args:
            samples: Audio as float32 numpy array, normalized to [-1, 1]
            options: Language override and progress callback

        Returns:
            Transcribed text string

        Raises:
            TranscriptionError: If inference cannot start or a segment cannot be read
        """
        options = options or RecognitionOptions()
        language = (
            self._language
            if options.language is None
            else validate_language(options.language)
        )
        audio = np.asarray(samples, dtype=np.float32)
        progress = _ProgressReporter(options.progress_callback)

        if audio.size == 0:
            progress.report(100.0)
            return ""

        try:
            segments, info = self._model.transcribe(
                audio,
                language=None if language == config.AUTO_LANGUAGE else language,
                beam_size=1,
                best_of=1,
                temperature=0.0,
                condition_on_previous_text=False,
                initial_prompt=None,
                vad_filter=False,
            )
        except Exception as exc:
            raise TranscriptionError(f"Failed to start inference: {exc}") from exc

        duration = float(getattr(info, "duration", 0.0) or 0.0)
        parts: list[str] = []
        try:
            for segment in segments:
                parts.append(segment.text)
                if duration > 0:
                    progress.report(100.0 * float(segment.end) / duration)
        except Exception as exc:
            raise TranscriptionError(
                f"Failed to retrieve segment {len(parts)}: {exc}"
            ) from exc

        progress.report(100.0)
        logger.debug("Transcribed %d segment(s), language=%s", len(parts), language)
        return "".join(parts)


class _ProgressReporter:
    """Clamps progress to [0, 100] and never lets it go backwards."""

    def __init__(self, callback: ProgressCallback | None):
        self._callback = callback
        self._last = 0.0

    def report(self, value: float) -> None:
        if self._callback is None:
            return
        value = min(100.0, max(self._last, value))
        self._last = value
        self._callback(value)
