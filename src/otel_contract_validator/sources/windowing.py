"""
Provider decorator that pins every fetch to a fixed time window.
"""

from typing import List
from datetime import datetime

from .interfaces import ObservabilityProvider
from ..models import Span, MetricPoint


class WindowingProvider(ObservabilityProvider):
    """
    Wraps another provider and replaces the caller's window with a fixed one.

    Used to apply one global window to every contract validated against a
    provider in a run.
    """

    def __init__(self, inner: ObservabilityProvider, from_time: datetime, to_time: datetime):
        self.inner = inner
        self.from_time = from_time
        self.to_time = to_time

    @property
    def name(self) -> str:
        return self.inner.name

    def fetch_spans(self, query: str, from_time: datetime, to_time: datetime) -> List[Span]:
        return self.inner.fetch_spans(query, self.from_time, self.to_time)

    def fetch_metrics(self, query: str, from_time: datetime, to_time: datetime) -> List[MetricPoint]:
        return self.inner.fetch_metrics(query, self.from_time, self.to_time)

    def close(self) -> None:
        self.inner.close()
