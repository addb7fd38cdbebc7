"""Fixed-size window averaging of environment samples."""

from __future__ import annotations

import logging
from typing import Optional

from models.samples import AveragedSample, EnvironmentSample
from services.channel import Channel

logger = logging.getLogger(__name__)


def truncating_divide(total: int, divisor: int) -> int:
    """Integer division rounding toward zero, unlike ``//`` which floors."""
    quotient = abs(total) // divisor
    return quotient if total >= 0 else -quotient


class WindowAccumulator:
    """Pure accumulation state that can be unit tested without threads."""

    def __init__(self, window_size: int) -> None:
        if window_size < 1:
            raise ValueError("Window size must be at least 1.")
        self.window_size = window_size
        self.count = 0
        self._temperature = 0
        self._pressure = 0
        self._humidity = 0

    def add(self, sample: EnvironmentSample) -> Optional[AveragedSample]:
        """Accumulate one sample, returning the average when the window fills."""
        self._temperature += sample.temperature
        self._pressure += sample.pressure
        self._humidity += sample.humidity
        self.count += 1

        if self.count < self.window_size:
            return None

        average = AveragedSample(
            temperature=truncating_divide(self._temperature, self.window_size),
            pressure=truncating_divide(self._pressure, self.window_size),
            humidity=truncating_divide(self._humidity, self.window_size),
        )
        self.reset()
        return average

    def reset(self) -> None:
        self.count = 0
        self._temperature = 0
        self._pressure = 0
        self._humidity = 0


class WindowAverager:
    """Pipeline stage turning every N samples into one averaged sample."""

    def __init__(
        self,
        window_size: int,
        source: Channel[EnvironmentSample],
        output: Channel[AveragedSample],
    ) -> None:
        self.accumulator = WindowAccumulator(window_size)
        self.source = source
        self.output = output
        self.windows_emitted = 0
        self.partial_discarded = 0

    def run(self) -> None:
        try:
            for sample in self.source:
                average = self.accumulator.add(sample)
                if average is None:
                    continue
                self.output.put(average)
                self.windows_emitted += 1
        finally:
            if self.accumulator.count:
                self.partial_discarded = self.accumulator.count
                logger.info(
                    "Discarding partial window",
                    extra={
                        "discarded": self.accumulator.count,
                        "window_size": self.accumulator.window_size,
                    },
                )
                self.accumulator.reset()
            self.output.close()
            logger.debug("Window averager finished")
