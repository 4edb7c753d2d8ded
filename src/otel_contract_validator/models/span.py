"""
Span model for representing individual spans observed in a telemetry backend.
"""

from typing import Dict, Any, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator


class Span(BaseModel):
    """Represents a single span returned by a telemetry provider."""
    span_id: str = Field("", description="Unique identifier for the span")
    trace_id: str = Field("", description="Identifier for the trace this span belongs to")
    name: str = Field("", description="Name of the span")
    service: Optional[str] = Field(None, description="Name of the service that emitted the span")
    duration_ms: float = Field(0.0, description="Duration of the span in milliseconds")
    start_time: datetime = Field(
        default=datetime.min.replace(tzinfo=timezone.utc),
        description="Start time of the span"
    )
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Span attributes")

    class Config:
        """Pydantic configuration."""
        frozen = True

    @field_validator("start_time")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are taken as UTC so windows can be compared
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
