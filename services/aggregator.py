"""Aggregation logic for sensor readings."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from models.records import ReadingRecord

logger = logging.getLogger(__name__)

_TEMPERATURE_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def parse_temperature(raw_text: str) -> float:
    """Parse a base-10 Celsius reading such as ``-12.5`` or ``23.417000``."""
    candidate = raw_text.strip()
    if not _TEMPERATURE_PATTERN.fullmatch(candidate):
        raise ValueError(f"Not a temperature reading: {raw_text!r}")
    return float(candidate)


@dataclass
class AggregationSummary:
    """Mean over the fresh readings of one aggregation pass."""

    fresh_count: int = 0
    mean_value: Optional[float] = None
    skipped: List[int] = field(default_factory=list)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def __init__(self, stale_reading_seconds: float) -> None:
        self.stale_reading_seconds = stale_reading_seconds

    def is_fresh(self, record: ReadingRecord, now: float) -> bool:
        if not record.raw_text:
            return False
        return (now - record.last_updated) < self.stale_reading_seconds

    def aggregate(self, records: Sequence[ReadingRecord], now: float) -> AggregationSummary:
        summary = AggregationSummary()
        total = 0.0

        for index, record in enumerate(records):
            if not self.is_fresh(record, now):
                continue
            try:
                value = parse_temperature(record.raw_text)
            except ValueError:
                summary.skipped.append(index)
                logger.warning(
                    "Skipping unparseable reading",
                    extra={"sensor_index": index, "invalid_value": repr(record.raw_text[:64])},
                )
                continue
            total += value
            summary.fresh_count += 1

        if summary.fresh_count:
            summary.mean_value = total / summary.fresh_count

        return summary
