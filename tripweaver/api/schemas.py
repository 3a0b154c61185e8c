"""API response models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = ""
    oracle_configured: bool = False


class ErrorResponse(BaseModel):
    status: str = Field(description="invalid_request / no_feasible_itinerary / error")
    detail: str = ""
    trace_id: Optional[str] = None
