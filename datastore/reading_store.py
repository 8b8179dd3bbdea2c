from __future__ import annotations

from typing import List, Tuple

from models.records import ReadingRecord

# Added on top of the staleness threshold so that initial records are stale.
BORN_STALE_MARGIN_SECONDS = 60.0


class ReadingStore:
    """Fixed-size table of the latest reading per sensor, indexed by sensor index.

    Each slot is written only by its own sensor's read loop. Records are
    immutable and replaced whole, so readers can take a snapshot without
    locking.
    """

    def __init__(self, size: int, stale_reading_seconds: float, now: float) -> None:
        if size < 1:
            raise ValueError("Reading store needs at least one sensor slot.")
        born_at = now - (stale_reading_seconds + BORN_STALE_MARGIN_SECONDS)
        self._records: List[ReadingRecord] = [
            ReadingRecord(raw_text="", last_updated=born_at) for _ in range(size)
        ]

    def __len__(self) -> int:
        return len(self._records)

    def update(self, index: int, raw_text: str, received_at: float) -> ReadingRecord:
        record = ReadingRecord(raw_text=raw_text, last_updated=received_at)
        self._records[index] = record
        return record

    def get(self, index: int) -> ReadingRecord:
        return self._records[index]

    def snapshot(self) -> Tuple[ReadingRecord, ...]:
        """Return the current records in sensor index order."""
        return tuple(self._records)
