from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_WINDOW_SIZE_ENV = "ENVMON_WINDOW_SIZE"
_READ_INTERVAL_ENV = "ENVMON_READ_INTERVAL"
_SENSOR_BACKEND_ENV = "ENVMON_SENSOR_BACKEND"
_I2C_BUS_ENV = "ENVMON_I2C_BUS"
_I2C_ADDRESS_ENV = "ENVMON_I2C_ADDRESS"
_SINK_BACKEND_ENV = "ENVMON_SINK_BACKEND"
_STORE_PATH_ENV = "ENVMON_STORE_PATH"
_MEASUREMENT_ENV = "ENVMON_MEASUREMENT"
_INFLUX_URL_ENV = "INFLUXDB_URL"
_INFLUX_TOKEN_ENV = "INFLUXDB_TOKEN"
_INFLUX_ORG_ENV = "INFLUXDB_ORG"
_INFLUX_BUCKET_ENV = "INFLUXDB_BUCKET"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_WINDOW_SIZE = 8
DEFAULT_READ_INTERVAL = 15

SENSOR_BACKENDS = ("simulated", "bme280")
SINK_BACKENDS = ("local", "influxdb")


class ConfigurationError(ValueError):
    """Raised when startup configuration is invalid."""


@dataclass(frozen=True)
class Settings:
    window_size: int
    read_interval: int
    sensor_backend: str
    i2c_bus: int
    i2c_address: int
    sink_backend: str
    store_path: Optional[str]
    measurement: str
    influx_url: str
    influx_token: str
    influx_org: str
    influx_bucket: str
    log_level: str


def validate_positive_int(name: str, value: object) -> int:
    """Return ``value`` as an int, rejecting bools, non-integers and values below 1."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}.")
    if isinstance(value, str):
        candidate = value.strip()
        try:
            value = int(candidate, 10)
        except ValueError as exc:
            raise ConfigurationError(
                f"{name} must be a positive integer, got {candidate!r}."
            ) from exc
    if not isinstance(value, int):
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}.")
    if value < 1:
        raise ConfigurationError(f"{name} must be a positive integer, got {value}.")
    return value


def validate_backend(name: str, value: str, choices: tuple[str, ...]) -> str:
    candidate = value.strip().lower()
    if candidate not in choices:
        raise ConfigurationError(
            f"{name} must be one of {', '.join(choices)}; got {value!r}."
        )
    return candidate


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return validate_positive_int(name, value)


def _read_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        # base 0 accepts both "118" and "0x76"
        return int(candidate, 0)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {candidate!r}.") from exc


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        window_size=_read_positive_int_env(_WINDOW_SIZE_ENV, DEFAULT_WINDOW_SIZE),
        read_interval=_read_positive_int_env(_READ_INTERVAL_ENV, DEFAULT_READ_INTERVAL),
        sensor_backend=validate_backend(
            _SENSOR_BACKEND_ENV,
            _read_str_env(_SENSOR_BACKEND_ENV, "simulated"),
            SENSOR_BACKENDS,
        ),
        i2c_bus=_read_int_env(_I2C_BUS_ENV, 1),
        i2c_address=_read_int_env(_I2C_ADDRESS_ENV, 0x76),
        sink_backend=validate_backend(
            _SINK_BACKEND_ENV,
            _read_str_env(_SINK_BACKEND_ENV, "local"),
            SINK_BACKENDS,
        ),
        store_path=_read_optional_env(_STORE_PATH_ENV, "./tmp/envmon_records.jsonl"),
        measurement=_read_str_env(_MEASUREMENT_ENV, "env"),
        influx_url=_read_str_env(_INFLUX_URL_ENV, "http://localhost:8086"),
        influx_token=_read_str_env(_INFLUX_TOKEN_ENV, ""),
        influx_org=_read_str_env(_INFLUX_ORG_ENV, ""),
        influx_bucket=_read_str_env(_INFLUX_BUCKET_ENV, "environment"),
        log_level=_read_log_level("INFO"),
    )
