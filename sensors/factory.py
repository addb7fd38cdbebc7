from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sensors.base import EnvironmentSensor, SensorError
from sensors.simulated import SimulatedSensor
from settings import Settings


@contextmanager
def open_sensor(settings: Settings) -> Iterator[EnvironmentSensor]:
    """Yield the configured sensor, releasing its bus on every exit path."""
    if settings.sensor_backend == "bme280":
        try:
            from sensors.bme280 import open_bme280
        except ImportError as exc:
            raise SensorError(
                f"BME280 backend needs the hardware extra (smbus2, RPi.bme280): {exc}"
            ) from exc

        with open_bme280(settings.i2c_bus, settings.i2c_address) as sensor:
            yield sensor
        return

    yield SimulatedSensor()
