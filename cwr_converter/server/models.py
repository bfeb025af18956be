"""Pydantic response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for response serialization
and automatic OpenAPI documentation.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Response models never expose temp directory paths
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ConversionResponse(BaseModel):
    """A finished conversion and where to download its output.

    RULES:
    - id is the conversion UUID for later download/delete
    - record_count equals the TRL count in the file
    """

    id: str = Field(description="Unique conversion identifier (UUID).")
    filename: str = Field(description="Original uploaded CSV filename.")
    output_filename: str = Field(description="Name of the generated .cwr file.")
    created_at: float = Field(description="Conversion timestamp (Unix epoch seconds).")
    work_count: int = Field(description="Number of works (NWR records) in the file.")
    record_count: int = Field(description="Total number of records, header and trailer included.")
    download_url: str = Field(description="Relative URL of the .cwr download.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "id": "550e8400e29b41d4a716446655440000",
                "filename": "catalogue.csv",
                "output_filename": "catalogue.cwr",
                "created_at": 1739959200.0,
                "work_count": 2,
                "record_count": 10,
                "download_url": "/conversions/550e8400e29b41d4a716446655440000/download",
            }
        ]
    }}


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
