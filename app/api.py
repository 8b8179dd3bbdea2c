"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import ReadoutResponse, SensorStatus
from models.records import ConnectionState, ReadingRecord, SensorDescriptor
from services.engine import ReadoutEngine, build_default_engine

router = APIRouter()


def get_engine() -> ReadoutEngine:
    return build_default_engine()


@router.get(
    "/readout",
    response_model=ReadoutResponse,
    summary="Current average temperature readout.",
)
async def get_readout(engine: ReadoutEngine = Depends(get_engine)) -> ReadoutResponse:
    display = engine.display
    summary = display.last_summary
    return ReadoutResponse(
        line=display.last_line,
        mean_value=summary.mean_value,
        fresh_count=summary.fresh_count,
        skipped=list(summary.skipped),
    )


@router.get(
    "/sensors",
    response_model=List[SensorStatus],
    summary="Connection state and latest reading of every sensor.",
)
async def list_sensors(engine: ReadoutEngine = Depends(get_engine)) -> List[SensorStatus]:
    now = engine.now()
    records = engine.store.snapshot()
    states = engine.connection_states()
    return [
        _sensor_status(engine, descriptor, records[descriptor.index], states[descriptor.index], now)
        for descriptor in engine.registry
    ]


@router.get(
    "/sensors/{index}",
    response_model=SensorStatus,
    summary="Connection state and latest reading of one sensor.",
)
async def get_sensor(index: int, engine: ReadoutEngine = Depends(get_engine)) -> SensorStatus:
    if not 0 <= index < len(engine.registry):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sensor {index} is not configured.",
        )
    descriptor = engine.registry[index]
    state = engine.connection_states()[index]
    return _sensor_status(engine, descriptor, engine.store.get(index), state, engine.now())


def _sensor_status(
    engine: ReadoutEngine,
    descriptor: SensorDescriptor,
    record: ReadingRecord,
    state: ConnectionState,
    now: float,
) -> SensorStatus:
    return SensorStatus(
        index=descriptor.index,
        host=descriptor.host,
        port=descriptor.port,
        state=state,
        raw_text=record.raw_text,
        age_seconds=round(now - record.last_updated, 3),
        fresh=engine.aggregator.is_fresh(record, now),
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /readout for the current temperature."}
