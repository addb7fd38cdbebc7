from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Union

from models.samples import EnvironmentSample
from sensors.base import EnvironmentSensor, SensorError
from services.channel import Channel

logger = logging.getLogger(__name__)


class ShutdownFlag:
    """Stop request that a signal handler can set without taking any lock.

    ``wait`` sleeps in short slices and re-checks a plain attribute, so a
    request made from a handler on the waiting thread is seen within one
    slice. Mirrors the ``set`` / ``is_set`` / ``wait`` subset of
    ``threading.Event``.
    """

    def __init__(self, poll_interval: float = 0.1) -> None:
        self.poll_interval = poll_interval
        self._requested = False

    def set(self) -> None:
        self._requested = True

    def is_set(self) -> bool:
        return self._requested

    def wait(self, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        while not self._requested:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            time.sleep(min(remaining, self.poll_interval))
        return True


class Sampler:
    """Reads the sensor once per interval and publishes each sample.

    The loop ends when ``stop_event`` is set or a read fails. Either way the
    output channel is closed, which is how downstream stages learn about
    shutdown. A ``SensorError`` is re-raised after the close.
    """

    def __init__(
        self,
        sensor: EnvironmentSensor,
        interval: float,
        output: Channel[EnvironmentSample],
        stop_event: Union[ShutdownFlag, threading.Event],
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("Sampling interval must be positive.")
        self.sensor = sensor
        self.interval = interval
        self.output = output
        self.stop_event = stop_event
        self._monotonic = monotonic
        self.samples_read = 0

    def run(self) -> None:
        logger.info("Sampler started", extra={"interval_s": self.interval})
        try:
            next_tick = self._monotonic() + self.interval
            while not self.stop_event.wait(max(0.0, next_tick - self._monotonic())):
                self.sample_once()
                next_tick = self._advance(next_tick)
            logger.info("Stop requested; sampler exiting", extra={"sample_count": self.samples_read})
        except SensorError as exc:
            logger.error("Sensor read failed; stopping", extra={"reason": str(exc)})
            raise
        finally:
            self.output.close()

    def sample_once(self) -> EnvironmentSample:
        sample = self.sensor.read()
        self.samples_read += 1
        logger.info(
            "Sampled",
            extra={
                "temperature_c": sample.temperature_c,
                "pressure_hpa": sample.pressure_hpa,
                "humidity": sample.humidity_fraction,
            },
        )
        self.output.put(sample)
        return sample

    def _advance(self, next_tick: float) -> float:
        # Skip ticks missed while blocked on a read or on backpressure.
        now = self._monotonic()
        next_tick += self.interval
        while next_tick <= now:
            next_tick += self.interval
        return next_tick
