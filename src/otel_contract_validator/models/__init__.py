"""
Core data models for observed telemetry and observability contracts.
"""

from .span import Span
from .metric import MetricPoint
from .contract import (
    ExpectedTag,
    ExpectedSpan,
    TimeWindow,
    Contract,
    ContractsFile,
    DEFAULT_WINDOW_MINUTES,
)
from .result import ValidationResult

__all__ = [
    "Span",
    "MetricPoint",
    # Contracts
    "ExpectedTag",
    "ExpectedSpan",
    "TimeWindow",
    "Contract",
    "ContractsFile",
    "DEFAULT_WINDOW_MINUTES",
    # Results
    "ValidationResult",
]
