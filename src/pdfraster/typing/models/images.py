"""Rendered and encoded page models."""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RawPixelBuffer(BaseModel):
    """Raw 8-bit interleaved pixels for one rendered page."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    width: int = Field(ge=1)
    height: int = Field(ge=1)
    channels: int = Field(ge=1, le=4)
    samples: bytes = Field(repr=False)

    @model_validator(mode="after")
    def _check_size(self) -> Self:
        expected = self.width * self.height * self.channels
        if len(self.samples) != expected:
            message = f"expected {expected} sample bytes, got {len(self.samples)}"
            raise ValueError(message)
        return self


class EncodedImage(BaseModel):
    """Encoded image bytes ready for upload."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    data: bytes = Field(repr=False)
    extension: str
    content_type: str


class PageImage(BaseModel):
    """Encoded image tagged with its place in the page selection."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    position: int = Field(ge=0, description="Index within the page selection.")
    page_index: int = Field(ge=0, description="0-based page number in the document.")
    image: EncodedImage
