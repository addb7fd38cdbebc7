from __future__ import annotations

import dataclasses
import importlib
import sys
from types import ModuleType, SimpleNamespace
from typing import List, Optional

import pytest

from sensors.base import SensorError
from settings import get_settings


class FakeBus:
    def __init__(self, bus_number: int) -> None:
        self.bus_number = bus_number
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeHardware:
    """Stands in for the ``smbus2`` and ``bme280`` modules of the hardware extra."""

    def __init__(self) -> None:
        self.buses: List[FakeBus] = []
        self.open_error: Optional[OSError] = None
        self.calibration_error: Optional[OSError] = None
        self.sample_error: Optional[OSError] = None
        self.reading = SimpleNamespace(temperature=21.5, pressure=1001.25, humidity=41.0)

    def open_bus(self, bus_number: int) -> FakeBus:
        if self.open_error is not None:
            raise self.open_error
        bus = FakeBus(bus_number)
        self.buses.append(bus)
        return bus

    def load_calibration_params(self, bus: FakeBus, address: int) -> dict:
        if self.calibration_error is not None:
            raise self.calibration_error
        return {"address": address}

    def sample(self, bus: FakeBus, address: int, calibration: dict) -> SimpleNamespace:
        assert calibration == {"address": address}
        if self.sample_error is not None:
            raise self.sample_error
        return self.reading


@pytest.fixture()
def hardware(monkeypatch) -> FakeHardware:
    fake = FakeHardware()

    smbus2 = ModuleType("smbus2")
    smbus2.SMBus = fake.open_bus  # type: ignore[attr-defined]
    bme280 = ModuleType("bme280")
    bme280.load_calibration_params = fake.load_calibration_params  # type: ignore[attr-defined]
    bme280.sample = fake.sample  # type: ignore[attr-defined]

    monkeypatch.setitem(sys.modules, "smbus2", smbus2)
    monkeypatch.setitem(sys.modules, "bme280", bme280)
    monkeypatch.delitem(sys.modules, "sensors.bme280", raising=False)
    return fake


@pytest.fixture()
def backend(hardware) -> ModuleType:
    return importlib.import_module("sensors.bme280")


def test_reading_is_converted_to_fixed_point(hardware: FakeHardware, backend) -> None:
    with backend.open_bme280(1, 0x76) as sensor:
        sample = sensor.read()

    assert sample.temperature == 21_500
    assert sample.pressure == 100_125_000
    assert sample.humidity == 41_000
    assert sample.humidity_fraction == pytest.approx(0.41)
    assert hardware.buses[0].bus_number == 1
    assert hardware.buses[0].closed is True


def test_bus_open_failure_is_a_sensor_error(hardware: FakeHardware, backend) -> None:
    hardware.open_error = FileNotFoundError(2, "No such file or directory", "/dev/i2c-1")

    with pytest.raises(SensorError, match="Could not open I2C bus 1"):
        with backend.open_bme280(1, 0x76):
            pass

    assert hardware.buses == []


def test_calibration_failure_closes_bus(hardware: FakeHardware, backend) -> None:
    hardware.calibration_error = OSError(121, "Remote I/O error")

    with pytest.raises(SensorError, match="0x77 on bus 1"):
        with backend.open_bme280(1, 0x77):
            pass

    assert hardware.buses[0].closed is True


def test_read_failure_is_a_sensor_error(hardware: FakeHardware, backend) -> None:
    hardware.sample_error = OSError(5, "Input/output error")

    with backend.open_bme280(1, 0x76) as sensor:
        with pytest.raises(SensorError, match="read failed at 0x76"):
            sensor.read()

    assert hardware.buses[0].closed is True


def test_bus_is_closed_when_body_raises(hardware: FakeHardware, backend) -> None:
    with pytest.raises(RuntimeError):
        with backend.open_bme280(1, 0x76):
            raise RuntimeError("pipeline crashed")

    assert hardware.buses[0].closed is True


def test_factory_opens_bme280_from_settings(
    hardware: FakeHardware, backend, monkeypatch, tmp_path
) -> None:
    from sensors.factory import open_sensor

    monkeypatch.setenv("ENVMON_STORE_PATH", str(tmp_path / "records.jsonl"))
    get_settings.cache_clear()
    settings = dataclasses.replace(
        get_settings(), sensor_backend="bme280", i2c_bus=3, i2c_address=0x77
    )
    get_settings.cache_clear()

    with open_sensor(settings) as sensor:
        assert isinstance(sensor, backend.Bme280Sensor)
        assert sensor.read().temperature_c == pytest.approx(21.5)

    assert hardware.buses[0].bus_number == 3
    assert hardware.buses[0].closed is True
