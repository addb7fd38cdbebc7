"""HTTP route definitions for reading stored averages."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import EnvironmentRecord, HealthResponse
from datastore.timeseries import TimeSeriesStore, build_default_store

router = APIRouter()


def get_store() -> TimeSeriesStore:
    return build_default_store()


@router.get(
    "/records",
    response_model=list[EnvironmentRecord],
    summary="List stored averaged records, newest first.",
)
async def list_records(
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of records to return."),
    store: TimeSeriesStore = Depends(get_store),
) -> list[EnvironmentRecord]:
    return store.scan(limit=limit)


@router.get(
    "/records/latest",
    response_model=EnvironmentRecord,
    summary="Fetch the most recently written record.",
)
async def latest_record(
    store: TimeSeriesStore = Depends(get_store),
) -> EnvironmentRecord:
    record = store.latest()
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No records stored in {store.name!r} yet.",
        )
    return record


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> HealthResponse:
    return HealthResponse(status="ok")


@router.get(
    "/",
    response_model=HealthResponse,
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> HealthResponse:
    return HealthResponse(status="ok", detail="See /records for stored averages.")
