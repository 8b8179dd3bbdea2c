from __future__ import annotations

import logging
import sys

from logging_config import ContextualFormatter


def _record(msg: str, exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.supervisor",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_sensor_records_are_tagged_and_carry_context() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s | %(message)s")

    rendered = formatter.format(
        _record(
            "Giving up on connecting: exhausted resolved endpoints list",
            sensor_index=2,
            address="127.0.0.1:5002",
        )
    )

    assert rendered == (
        "WARNING | [sensor 2] Giving up on connecting: exhausted resolved endpoints list"
        " | address=127.0.0.1:5002"
    )


def test_plain_records_are_left_alone() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    assert formatter.format(_record("Readout engine stopped")) == "Readout engine stopped"


def test_context_stays_on_first_line_when_traceback_follows() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", context_keys=["error"])
    try:
        raise ConnectionResetError("reset")
    except ConnectionResetError as exc:
        record = _record("Failure in reading from TCP socket connection", sys.exc_info(), error=exc)

    headline, _, trace = formatter.format(record).partition("\n")

    assert headline == "Failure in reading from TCP socket connection | error=reset"
    assert "Traceback" in trace
    assert record.getMessage() == "Failure in reading from TCP socket connection"
