"""
Thread-shared sample buffer filled by the capture callback.
"""

import threading

import numpy as np


class SampleBuffer:
    """
    Append-only float32 sample store.

    The capture callback calls extend() from the audio thread; the owning
    session calls drain() once the stream is stopped. The critical section
    is a list append, so the callback never waits behind slow work.
    """

    def __init__(self):
        self._chunks: list[np.ndarray] = []
        self._length = 0
        self._lock = threading.Lock()

    def extend(self, samples: np.ndarray) -> None:
        """Append a block of samples."""
        with self._lock:
            self._chunks.append(samples)
            self._length += len(samples)

    def __len__(self) -> int:
        with self._lock:
            return self._length

    def drain(self) -> np.ndarray:
        """Take all samples out as one contiguous float32 array."""
        with self._lock:
            chunks = self._chunks
            self._chunks = []
            self._length = 0

        if not chunks:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(chunks).astype(np.float32, copy=False)
