import threading

import numpy as np

from gwhisper.core.buffer import SampleBuffer


def test_drain_returns_samples_in_order() -> None:
    buffer = SampleBuffer()
    buffer.extend(np.array([0.1, 0.2], dtype=np.float32))
    buffer.extend(np.array([0.3], dtype=np.float32))

    assert len(buffer) == 3
    samples = buffer.drain()
    assert samples.dtype == np.float32
    np.testing.assert_allclose(samples, [0.1, 0.2, 0.3])


def test_drain_empties_buffer() -> None:
    buffer = SampleBuffer()
    buffer.extend(np.ones(10, dtype=np.float32))
    buffer.drain()

    assert len(buffer) == 0
    assert buffer.drain().size == 0


def test_empty_drain_is_float32_array() -> None:
    samples = SampleBuffer().drain()
    assert samples is not None
    assert samples.dtype == np.float32
    assert samples.shape == (0,)


def test_concurrent_writers_lose_nothing() -> None:
    buffer = SampleBuffer()
    block = np.zeros(160, dtype=np.float32)

    def writer() -> None:
        for _ in range(200):
            buffer.extend(block)

    threads = [threading.Thread(target=writer) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(buffer) == 4 * 200 * 160
    assert len(buffer.drain()) == 4 * 200 * 160
