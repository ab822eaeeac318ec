"""Conversion request models."""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pdfraster.typing.enums import OutputFormat

SCALE_MIN = 0.1
SCALE_MAX = 10.0


class RangeToken(BaseModel):
    """Inclusive 1-based page range taken from a page-selection expression."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    start: int = Field(ge=1)
    end: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> Self:
        if self.start > self.end:
            message = f"range start {self.start} is greater than end {self.end}"
            raise ValueError(message)
        return self


class ConversionOptions(BaseModel):
    """Validated options for one conversion request."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    format: OutputFormat = OutputFormat.PNG
    scale: float = Field(default=1.0, ge=SCALE_MIN, le=SCALE_MAX, allow_inf_nan=False)
    password: str | None = None
    pages: str | None = Field(default=None, description="Raw page-selection expression, 1-based.")
