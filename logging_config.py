from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Iterable, Sequence

from settings import get_settings

_SENSOR_KEY = "sensor_index"
_CONTEXT_KEYS = (
    "address",
    "endpoint",
    "state",
    "error",
    "invalid_value",
    "fresh_count",
)

_configured = False


class ContextualFormatter(logging.Formatter):
    """Tags records with the sensor they concern and appends known ``extra`` fields.

    ``logger.warning("...", extra={"sensor_index": 2, "address": "host:5002"})``
    renders as ``... | [sensor 2] ... | address=host:5002``.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        context_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._context_keys: Sequence[str] = tuple(context_keys or _CONTEXT_KEYS)

    def formatMessage(self, record: logging.LogRecord) -> str:
        sensor_index = getattr(record, _SENSOR_KEY, None)
        if sensor_index is None:
            return super().formatMessage(record)
        plain = record.message
        record.message = f"[sensor {sensor_index}] {plain}"
        try:
            return super().formatMessage(record)
        finally:
            record.message = plain

    def format(self, record: logging.LogRecord) -> str:
        rendered = super().format(record)
        context_parts: list[str] = []
        for key in self._context_keys:
            value = getattr(record, key, None)
            if value is not None:
                context_parts.append(f"{key}={value}")
        if not context_parts:
            return rendered
        context = " ".join(context_parts)
        # Keep tracebacks last so the context stays on the headline.
        headline, newline, trace = rendered.partition("\n")
        return f"{headline} | {context}{newline}{trace}"


def configure_logging(level: str | int | None = None) -> None:
    """Route all records through one stderr handler, leaving stdout to the readout."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(threadName)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "context_keys": list(_CONTEXT_KEYS),
                }
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {
                "asyncio": {"level": "WARNING"},
            },
            "root": {"handlers": ["stderr"], "level": log_level},
        }
    )

    _configured = True
