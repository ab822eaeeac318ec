"""HTTP response payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ConversionResponse(BaseModel):
    """Successful conversion payload."""

    model_config = ConfigDict(extra="forbid")

    success: bool = True
    images: list[str]


class ErrorResponse(BaseModel):
    """Failure payload."""

    model_config = ConfigDict(extra="forbid")

    success: bool = False
    error: str
    message: str
    page: int | None = None


class HealthResponse(BaseModel):
    """Liveness payload."""

    model_config = ConfigDict(extra="forbid")

    status: str = "ok"
