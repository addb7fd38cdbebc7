from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Protocol, runtime_checkable

from app.schemas import EnvironmentRecord
from datastore.errors import SinkError
from datastore.influx import InfluxDBSink
from datastore.timeseries import TimeSeriesStore
from settings import Settings

logger = logging.getLogger(__name__)

__all__ = ["RecordSink", "SinkError", "open_sink"]


@runtime_checkable
class RecordSink(Protocol):

    def write(self, record: EnvironmentRecord) -> None:
        """Durably accept one record or raise."""

    def close(self) -> None:
        ...


@contextmanager
def open_sink(settings: Settings) -> Iterator[RecordSink]:
    """Yield the configured sink and close it on every exit path."""
    sink: RecordSink
    if settings.sink_backend == "influxdb":
        sink = InfluxDBSink(
            url=settings.influx_url,
            token=settings.influx_token,
            org=settings.influx_org,
            bucket=settings.influx_bucket,
        )
        logger.info(
            "Writing to InfluxDB %s bucket %s", settings.influx_url, settings.influx_bucket
        )
    else:
        path = Path(settings.store_path) if settings.store_path else None
        sink = TimeSeriesStore(name=settings.measurement, persistence_path=path)
        logger.info("Writing to local store %s", path or "<memory>")

    try:
        yield sink
    finally:
        sink.close()
