"""Sensor capability shared by every backend."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from models.samples import EnvironmentSample


class SensorError(RuntimeError):
    """A sensor could not be acquired or failed to produce a reading."""


@runtime_checkable
class EnvironmentSensor(Protocol):
    """Produces one complete temperature/pressure/humidity triple per call."""

    def read(self) -> EnvironmentSample:
        """Return a reading or raise ``SensorError``."""
