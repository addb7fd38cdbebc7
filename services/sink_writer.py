from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Callable

from app.schemas import EnvironmentRecord
from datastore.sinks import RecordSink
from models.samples import AveragedSample
from services.channel import Channel

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_record(sample: AveragedSample, measurement: str) -> EnvironmentRecord:
    """Convert fixed-point sample units to the sink's output units."""
    if sample.timestamp is None:
        raise ValueError("Averaged sample has no write timestamp.")
    return EnvironmentRecord(
        measurement=measurement,
        temperature_c=sample.temperature_c,
        pressure_hpa=sample.pressure_hpa,
        humidity=sample.humidity_fraction,
        timestamp=sample.timestamp,
    )


class SinkWriter:
    """Writes averaged samples to a sink one at a time, in arrival order.

    A failed write is logged and the record dropped; the writer moves on to
    the next record and never retries.
    """

    def __init__(
        self,
        sink: RecordSink,
        source: Channel[AveragedSample],
        measurement: str = "env",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.sink = sink
        self.source = source
        self.measurement = measurement
        self.clock = clock
        self.records_written = 0
        self.write_failures = 0

    def run(self) -> None:
        for sample in self.source:
            self.write_one(sample)
        logger.debug("Sink writer finished")

    def write_one(self, sample: AveragedSample) -> bool:
        stamped = dataclasses.replace(sample, timestamp=self.clock())
        try:
            record = to_record(stamped, self.measurement)
            self.sink.write(record)
        except Exception as exc:  # noqa: BLE001 - one bad write must not stop the pipeline
            self.write_failures += 1
            logger.warning(
                "Dropping record after failed write",
                extra={"reason": str(exc) or type(exc).__name__, "sink": type(self.sink).__name__},
            )
            return False

        self.records_written += 1
        logger.info(
            "Wrote averaged record",
            extra={
                "temperature_c": record.temperature_c,
                "pressure_hpa": record.pressure_hpa,
                "humidity": record.humidity,
            },
        )
        return True
