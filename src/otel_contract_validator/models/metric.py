"""
Metric model for data points returned by telemetry providers.
"""

from typing import Dict
from datetime import datetime
from pydantic import BaseModel, Field


class MetricPoint(BaseModel):
    """A single metric measurement."""
    name: str = Field(..., description="Metric name")
    labels: Dict[str, str] = Field(default_factory=dict, description="Metric dimensions")
    value: float = Field(..., description="Measured value")
    timestamp: datetime = Field(..., description="Time of the measurement")

    class Config:
        """Pydantic configuration."""
        frozen = True
