"""Process-wide logging for the pipeline and the read API.

Lines look like::

    2024-05-01T12:00:00Z INFO [MainThread] services.sampler: Sampled | temperature_c=21.5 humidity=0.41

Pipeline context passed through ``extra=`` is appended as ``key=value``
pairs in a fixed order, so the output stays greppable across stages.
"""

from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Iterable, Optional

from settings import get_settings

CONTEXT_KEYS = (
    "window_size",
    "interval_s",
    "sample_count",
    "temperature_c",
    "pressure_hpa",
    "humidity",
    "sink",
    "written",
    "failed",
    "discarded",
    "reason",
)

LINE_FORMAT = "%(asctime)sZ %(levelname)s [%(threadName)s] %(name)s: %(message)s"
TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

_configured = False


def format_context_value(value: object) -> str:
    if isinstance(value, float):
        return f"{value:.6g}"
    text = str(value)
    if not text or " " in text or "=" in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


class PipelineFormatter(logging.Formatter):
    """UTC timestamps plus the known ``extra=`` keys present on a record."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        context_keys: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.context_keys = tuple(CONTEXT_KEYS if context_keys is None else context_keys)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [
            f"{key}={format_context_value(value)}"
            for key, value in self._context(record)
        ]
        return f"{line} | {' '.join(pairs)}" if pairs else line

    def _context(self, record: logging.LogRecord):
        for key in self.context_keys:
            value = record.__dict__.get(key)
            if value is not None:
                yield key, value


def configure_logging(level: str | int | None = None) -> None:
    """Install the stderr handler once; later calls are no-ops."""
    global _configured
    if _configured:
        return

    if level is None:
        level = get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "pipeline": {
                    "()": PipelineFormatter,
                    "fmt": LINE_FORMAT,
                    "datefmt": TIME_FORMAT,
                }
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "pipeline",
                }
            },
            "root": {"handlers": ["stderr"], "level": level},
        }
    )
    _configured = True
