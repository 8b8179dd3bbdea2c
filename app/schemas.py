"""Pydantic schemas for the HTTP status layer."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import ConnectionState


class ReadoutResponse(BaseModel):
    """The line currently shown on the readout and how it was computed."""

    line: Optional[str] = Field(default=None, description="Last line emitted to the display.")
    mean_value: Optional[float] = None
    fresh_count: int = Field(0, ge=0)
    skipped: List[int] = Field(
        default_factory=list, description="Sensor indexes whose payload could not be parsed."
    )


class SensorStatus(BaseModel):
    """Connection and reading state of one sensor."""

    index: int = Field(..., ge=0)
    host: str
    port: str
    state: ConnectionState
    raw_text: str = ""
    age_seconds: float = Field(..., description="Seconds since the last reading was received.")
    fresh: bool
