"""Wiring and lifecycle of the sample -> average -> sink pipeline."""

from __future__ import annotations

import logging
import signal
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from datastore.sinks import RecordSink
from models.samples import AveragedSample, EnvironmentSample
from sensors.base import EnvironmentSensor
from services.averager import WindowAverager
from services.channel import Channel
from services.sampler import Sampler, ShutdownFlag
from services.sink_writer import SinkWriter
from settings import validate_positive_int

logger = logging.getLogger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass(frozen=True)
class PipelineReport:
    samples_read: int
    windows_emitted: int
    partial_discarded: int
    records_written: int
    write_failures: int


class Pipeline:
    """Owns the two capacity-1 channels and the three stages between them."""

    def __init__(
        self,
        sensor: EnvironmentSensor,
        sink: RecordSink,
        window_size: int,
        interval: float,
        measurement: str = "env",
    ) -> None:
        self.window_size = validate_positive_int("window size", window_size)
        if interval <= 0:
            raise ValueError("Sampling interval must be positive.")
        self.interval = interval
        self.stop_event = ShutdownFlag()
        self.received_signal: Optional[int] = None

        samples: Channel[EnvironmentSample] = Channel(capacity=1, name="samples")
        averages: Channel[AveragedSample] = Channel(capacity=1, name="averages")
        self.sampler = Sampler(sensor, interval, samples, self.stop_event)
        self.averager = WindowAverager(self.window_size, samples, averages)
        self.writer = SinkWriter(sink, averages, measurement=measurement)

    def stop(self) -> None:
        """Ask the sampler to stop; the rest of the pipeline drains via channel closure.

        Takes no lock, so it is safe to call from a signal handler.
        """
        self.stop_event.set()

    def run(self, handle_signals: bool = True) -> PipelineReport:
        """Run until stopped, then wait for every stage to return.

        Blocks the calling thread, which runs the sampler. A sensor failure
        propagates once the downstream stages have finished.
        """
        logger.info(
            "Pipeline starting",
            extra={"window_size": self.window_size, "interval_s": self.interval},
        )
        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="envmon")
        futures: list[Future[None]] = [
            executor.submit(self.averager.run),
            executor.submit(self.writer.run),
        ]
        try:
            with self._signal_handlers(handle_signals):
                self.sampler.run()
            if self.received_signal is not None:
                logger.info("Received %s; shut down", signal.Signals(self.received_signal).name)
        finally:
            executor.shutdown(wait=True)
            report = self.report()
            logger.info(
                "Pipeline stopped",
                extra={
                    "sample_count": report.samples_read,
                    "written": report.records_written,
                    "failed": report.write_failures,
                    "discarded": report.partial_discarded,
                },
            )

        for future in futures:
            # Surface unexpected stage errors instead of losing them in the pool.
            future.result()
        return report

    def report(self) -> PipelineReport:
        return PipelineReport(
            samples_read=self.sampler.samples_read,
            windows_emitted=self.averager.windows_emitted,
            partial_discarded=self.averager.partial_discarded,
            records_written=self.writer.records_written,
            write_failures=self.writer.write_failures,
        )

    @contextmanager
    def _signal_handlers(self, enabled: bool) -> Iterator[None]:
        if not enabled or threading.current_thread() is not threading.main_thread():
            yield
            return

        def _handle(signum: int, _frame: Optional[object]) -> None:
            # Runs between bytecodes of the main thread, possibly while it holds
            # a logging or queue lock. Only plain attribute writes here.
            self.received_signal = signum
            self.stop()

        previous = {sig: signal.signal(sig, _handle) for sig in _SHUTDOWN_SIGNALS}
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
