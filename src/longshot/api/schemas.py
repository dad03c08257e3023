"""Pydantic request/response schemas for the LongShot API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from longshot.pipeline.slicer import SliceStrategy


class SliceInfo(BaseModel):
    """A single output slice with its source rows and a PNG preview."""

    index: int = Field(description="Zero-based position in top-to-bottom order")
    start_y: int = Field(description="First source row of the region (inclusive)")
    end_y: int = Field(description="Last source row of the region (exclusive)")
    width: int = Field(description="Width after trimming, in pixels")
    height: int = Field(description="Height after trimming, in pixels")
    data_url: str = Field(description="PNG encoded as a data: URL")


class SliceResponse(BaseModel):
    """Response for the slicing endpoint."""

    source_width: int
    source_height: int
    slices: list[SliceInfo]


class DefaultsResponse(BaseModel):
    """Default slicing options applied when a form field is omitted."""

    sensitivity: int = Field(ge=0, le=100)
    sharpen: bool
    margin: float
    strategy: SliceStrategy
    max_height: int
    overlap: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    concurrent_requests: int
    queue_depth: int


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    kind: str = Field(description="Machine-readable error kind, e.g. 'invalid_image' or 'busy'")
