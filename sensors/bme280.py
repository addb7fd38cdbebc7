"""BME280 backend over I2C (requires the ``hardware`` extra)."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import bme280
import smbus2

from models.samples import EnvironmentSample
from sensors.base import SensorError

logger = logging.getLogger(__name__)


class Bme280Sensor:
    """Reads compensated values from a BME280 on an already-open bus."""

    def __init__(self, bus: smbus2.SMBus, address: int, calibration: Any) -> None:
        self._bus = bus
        self._address = address
        self._calibration = calibration

    def read(self) -> EnvironmentSample:
        try:
            data = bme280.sample(self._bus, self._address, self._calibration)
        except OSError as exc:
            raise SensorError(f"BME280 read failed at 0x{self._address:02x}: {exc}") from exc
        return EnvironmentSample.from_si(
            temperature_c=data.temperature,
            pressure_hpa=data.pressure,
            humidity=data.humidity / 100.0,
        )


@contextmanager
def open_bme280(bus_number: int, address: int) -> Iterator[Bme280Sensor]:
    """Acquire the I2C bus, initialise the device and always release the bus."""
    try:
        bus = smbus2.SMBus(bus_number)
    except OSError as exc:
        raise SensorError(f"Could not open I2C bus {bus_number}: {exc}") from exc

    try:
        try:
            calibration = bme280.load_calibration_params(bus, address)
        except OSError as exc:
            raise SensorError(
                f"Could not initialise BME280 at 0x{address:02x} on bus {bus_number}: {exc}"
            ) from exc
        logger.info("BME280 ready on bus %d at 0x%02x", bus_number, address)
        yield Bme280Sensor(bus, address, calibration)
    finally:
        bus.close()
