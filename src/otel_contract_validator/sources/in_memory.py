"""
Provider serving a fixed, in-memory collection of spans.
"""

from typing import Iterable, List
from datetime import datetime
import logging

from .interfaces import ObservabilityProvider
from ..models import Span, MetricPoint
from ..query import build_predicate


class InMemoryProvider(ObservabilityProvider):
    """
    Provider over a materialized span collection.

    Every fetch applies the shared query predicate and the requested window to
    the collection, which is never modified after construction.
    """

    def __init__(self, spans: Iterable[Span], name: str = "in-memory"):
        self._spans = tuple(spans)
        self._name = name
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def name(self) -> str:
        return self._name

    @property
    def spans(self) -> List[Span]:
        return list(self._spans)

    def fetch_spans(self, query: str, from_time: datetime, to_time: datetime) -> List[Span]:
        predicate = build_predicate(query, from_time, to_time)
        matched = [span for span in self._spans if predicate(span)]
        self.logger.debug(f"Query '{query}' matched {len(matched)} of {len(self._spans)} spans")
        return matched

    def fetch_metrics(self, query: str, from_time: datetime, to_time: datetime) -> List[MetricPoint]:
        return []
