"""
Interfaces for telemetry providers.
"""

from abc import ABC, abstractmethod
from typing import List, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from ..models import Span, MetricPoint


class ObservabilityProvider(ABC):
    """Abstract interface for telemetry sources that provide span and metric data."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the provider, reported on every validation result."""
        pass

    @abstractmethod
    def fetch_spans(self, query: str, from_time: datetime, to_time: datetime) -> List["Span"]:
        """
        Fetch the spans selected by a filter query within a time window.

        Args:
            query: Filter query in the shared ``key:value`` syntax
            from_time: Inclusive start of the window
            to_time: Inclusive end of the window

        Returns:
            Spans in the order the provider returns them

        Raises:
            FetchError: If the backend cannot be reached or rejects the request
        """
        pass

    @abstractmethod
    def fetch_metrics(self, query: str, from_time: datetime, to_time: datetime) -> List["MetricPoint"]:
        """
        Fetch metric points for a query within a time window.

        Providers without metric support return an empty list.
        """
        pass

    def close(self) -> None:
        """Release connections held by the provider. Providers without any keep the default."""
        pass
