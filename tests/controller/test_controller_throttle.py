import unittest

from gdriveupload.controller.throttle import (
    CHUNK_GRANULARITY,
    DEFAULT_CHUNK_SIZE,
    Throttle,
    chunk_size_for,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.slept: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.slept.append(seconds)
        self.now += seconds


class TestChunkSize(unittest.TestCase):
    def test_unlimited_uses_default(self) -> None:
        self.assertEqual(chunk_size_for(None), DEFAULT_CHUNK_SIZE)

    def test_small_rate_uses_minimum_chunk(self) -> None:
        self.assertEqual(chunk_size_for(1024), CHUNK_GRANULARITY)

    def test_chunk_is_multiple_of_granularity(self) -> None:
        size = chunk_size_for(3 * CHUNK_GRANULARITY + 7)
        self.assertEqual(size, 3 * CHUNK_GRANULARITY)
        self.assertLessEqual(chunk_size_for(1024**3), DEFAULT_CHUNK_SIZE)


class TestThrottle(unittest.TestCase):
    def test_sleeps_until_rate_is_respected(self) -> None:
        clock = FakeClock()
        throttle = Throttle(1000, clock=clock, sleep=clock.sleep)

        self.assertEqual(throttle.consumed(2000), 2.0)
        clock.now += 5.0
        self.assertEqual(throttle.consumed(3000), 0.0)
        self.assertEqual(clock.slept, [2.0])

    def test_rejects_non_positive_rate(self) -> None:
        with self.assertRaises(ValueError):
            Throttle(0)


if __name__ == "__main__":
    unittest.main()
