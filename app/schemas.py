"""Pydantic schemas for stored records and the read API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class EnvironmentRecord(BaseModel):
    """One averaged window as written to a sink."""

    measurement: str = Field(default="env", description="Destination measurement name.")
    temperature_c: float = Field(..., description="Mean temperature in degrees Celsius.")
    pressure_hpa: float = Field(..., description="Mean pressure in hectopascals.")
    humidity: float = Field(
        ..., ge=0.0, le=1.0, description="Mean relative humidity as a 0-1 fraction."
    )
    timestamp: datetime = Field(..., description="Wall-clock time the record was written.")


class HealthResponse(BaseModel):
    status: str = "ok"
    detail: str | None = None
