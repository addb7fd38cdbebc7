from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from app.schemas import EnvironmentRecord
from datastore.errors import SinkError
from models.samples import AveragedSample
from services.channel import Channel
from services.sink_writer import SinkWriter, to_record

_START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class RecordingSink:
    def __init__(self, fail_calls: tuple[int, ...] = ()) -> None:
        self.records: List[EnvironmentRecord] = []
        self.attempts = 0
        self.fail_calls = fail_calls

    def write(self, record: EnvironmentRecord) -> None:
        self.attempts += 1
        if self.attempts in self.fail_calls:
            raise SinkError("connection refused")
        self.records.append(record)

    def close(self) -> None:
        pass


def _ticking_clock():
    ticks = iter(range(1000))
    return lambda: _START + timedelta(seconds=next(ticks))


def _feed(samples: List[AveragedSample]) -> Channel[AveragedSample]:
    channel: Channel[AveragedSample] = Channel(capacity=len(samples) + 1)
    for sample in samples:
        channel.put(sample)
    channel.close()
    return channel


def _average(temperature: int) -> AveragedSample:
    return AveragedSample(temperature=temperature, pressure=100_100_000, humidity=41_000)


def test_writer_converts_units_and_stamps_write_time() -> None:
    sink = RecordingSink()
    writer = SinkWriter(sink, _feed([_average(21_000)]), measurement="env", clock=_ticking_clock())

    writer.run()

    assert len(sink.records) == 1
    record = sink.records[0]
    assert record.measurement == "env"
    assert record.temperature_c == 21.0
    assert record.pressure_hpa == 1001.0
    assert record.humidity == pytest.approx(0.41)
    assert record.timestamp == _START


def test_writer_preserves_arrival_order() -> None:
    sink = RecordingSink()
    samples = [_average(value) for value in (3_000, 1_000, 2_000, 5_000)]
    writer = SinkWriter(sink, _feed(samples), clock=_ticking_clock())

    writer.run()

    assert [record.temperature_c for record in sink.records] == [3.0, 1.0, 2.0, 5.0]
    timestamps = [record.timestamp for record in sink.records]
    assert timestamps == sorted(timestamps)


def test_failed_write_is_logged_and_next_record_still_written(caplog) -> None:
    sink = RecordingSink(fail_calls=(1,))
    writer = SinkWriter(sink, _feed([_average(1_000), _average(2_000)]), clock=_ticking_clock())

    with caplog.at_level(logging.WARNING):
        writer.run()

    assert sink.attempts == 2
    assert [record.temperature_c for record in sink.records] == [2.0]
    assert writer.records_written == 1
    assert writer.write_failures == 1

    warnings = [record for record in caplog.records if record.name == "services.sink_writer"]
    assert any("Dropping record" in record.getMessage() for record in warnings)
    assert any(getattr(record, "reason", "") == "connection refused" for record in warnings)


def test_unexpected_sink_exception_does_not_stop_writer() -> None:
    class ExplodingSink(RecordingSink):
        def write(self, record: EnvironmentRecord) -> None:
            self.attempts += 1
            if self.attempts == 2:
                raise RuntimeError("boom")
            self.records.append(record)

    sink = ExplodingSink()
    writer = SinkWriter(sink, _feed([_average(v) for v in (1_000, 2_000, 3_000)]))

    writer.run()

    assert sink.attempts == 3
    assert [record.temperature_c for record in sink.records] == [1.0, 3.0]


def test_to_record_requires_timestamp() -> None:
    with pytest.raises(ValueError):
        to_record(_average(1_000), "env")
