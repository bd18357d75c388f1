"""
Utility functions for audio processing and logging setup.
"""

import logging
import sys

import numpy as np

from .core import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def samples_from_bytes(audio_bytes: bytes) -> np.ndarray:
    """View raw float32 PCM bytes as a sample array (no copy)."""
    return np.frombuffer(audio_bytes, dtype=np.float32)


def duration_seconds(samples: np.ndarray, sample_rate: int = config.SAMPLE_RATE) -> float:
    """Length of a mono sample array in seconds."""
    return len(samples) / float(sample_rate)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure root logging to stdout and return the package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT, stream=sys.stdout)
    logger = logging.getLogger("gwhisper")
    logger.setLevel(log_level)
    return logger
