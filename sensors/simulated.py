from __future__ import annotations

import random
from typing import Optional

from models.samples import EnvironmentSample


class SimulatedSensor:
    """Random-walk sensor used when no hardware is attached."""

    def __init__(
        self,
        temperature_c: float = 21.0,
        pressure_hpa: float = 1013.25,
        humidity: float = 0.45,
        seed: Optional[int] = None,
    ) -> None:
        self._rng = random.Random(seed)
        self._temperature_c = temperature_c
        self._pressure_hpa = pressure_hpa
        self._humidity = humidity

    def read(self) -> EnvironmentSample:
        self._temperature_c += self._rng.uniform(-0.1, 0.1)
        self._pressure_hpa += self._rng.uniform(-0.2, 0.2)
        self._humidity = min(1.0, max(0.0, self._humidity + self._rng.uniform(-0.005, 0.005)))
        return EnvironmentSample.from_si(
            temperature_c=self._temperature_c,
            pressure_hpa=self._pressure_hpa,
            humidity=self._humidity,
        )
