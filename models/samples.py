"""Domain models passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

# Fixed-point scales of the integer sample fields.
MILLIDEGREES_PER_CELSIUS = 1_000
MILLIPASCALS_PER_HECTOPASCAL = 100_000
MILLIPERCENT_PER_UNIT_HUMIDITY = 100_000


@dataclass(frozen=True, slots=True)
class EnvironmentSample:
    """One instantaneous sensor reading in integer fixed-point units."""

    temperature: int  # milli-degrees Celsius
    pressure: int  # milli-pascals
    humidity: int  # milli-percent relative humidity

    @classmethod
    def from_si(
        cls, temperature_c: float, pressure_hpa: float, humidity: float
    ) -> "EnvironmentSample":
        """Build a sample from Celsius, hectopascals and a 0-1 humidity fraction."""
        return cls(
            temperature=round(temperature_c * MILLIDEGREES_PER_CELSIUS),
            pressure=round(pressure_hpa * MILLIPASCALS_PER_HECTOPASCAL),
            humidity=round(humidity * MILLIPERCENT_PER_UNIT_HUMIDITY),
        )

    @property
    def temperature_c(self) -> float:
        return self.temperature / MILLIDEGREES_PER_CELSIUS

    @property
    def pressure_hpa(self) -> float:
        return self.pressure / MILLIPASCALS_PER_HECTOPASCAL

    @property
    def humidity_fraction(self) -> float:
        return self.humidity / MILLIPERCENT_PER_UNIT_HUMIDITY


@dataclass(frozen=True, slots=True)
class AveragedSample:
    """Truncating mean of one full window of samples."""

    temperature: int
    pressure: int
    humidity: int
    timestamp: Optional[datetime] = None

    @property
    def temperature_c(self) -> float:
        return self.temperature / MILLIDEGREES_PER_CELSIUS

    @property
    def pressure_hpa(self) -> float:
        return self.pressure / MILLIPASCALS_PER_HECTOPASCAL

    @property
    def humidity_fraction(self) -> float:
        return self.humidity / MILLIPERCENT_PER_UNIT_HUMIDITY
