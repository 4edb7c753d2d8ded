"""
Datadog provider for retrieving APM spans through the events search API.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

import httpx

from .interfaces import ObservabilityProvider
from .utils import from_epoch_millis, EPOCH_MIN
from ..errors import FetchError
from ..models import Span, MetricPoint

DEFAULT_API_URL = "https://api.datadoghq.com"
PAGE_LIMIT = 100


class DatadogProvider(ObservabilityProvider):
    """
    Provider for Datadog APM.

    The ``key:value`` filter syntax is Datadog's own search syntax, so the
    query is passed through unchanged.
    """

    def __init__(
        self,
        name: str,
        api_url: str,
        api_key: str,
        app_key: str,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the Datadog provider.

        Args:
            name: Provider name reported on validation results
            api_url: Base URL of the Datadog API
            api_key: Datadog API key
            app_key: Datadog application key
            timeout_seconds: HTTP timeout for each request
            client: Optional preconfigured HTTP client
        """
        self._name = name
        self.api_url = api_url.rstrip("/")
        self.logger = logging.getLogger(self.__class__.__name__)
        self.client = client or httpx.Client(timeout=timeout_seconds)
        self.client.headers["DD-API-KEY"] = api_key
        self.client.headers["DD-APPLICATION-KEY"] = app_key

    @property
    def name(self) -> str:
        return self._name

    def close(self) -> None:
        self.client.close()

    def fetch_spans(self, query: str, from_time: datetime, to_time: datetime) -> List[Span]:
        body = {
            "filter": {
                "query": query,
                "from": from_time.isoformat(),
                "to": to_time.isoformat(),
            },
            "page": {"limit": PAGE_LIMIT},
        }

        try:
            response = self.client.post(f"{self.api_url}/api/v2/apm/events/search", json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            self.logger.error(f"Datadog search failed: {e}")
            raise FetchError(self._name, str(e)) from e
        except ValueError as e:
            raise FetchError(self._name, f"Invalid JSON response from Datadog: {e}") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []

        spans = [self._parse_item(item) for item in data if isinstance(item, dict)]
        self.logger.info(f"Datadog search returned {len(spans)} spans")
        return spans

    def fetch_metrics(self, query: str, from_time: datetime, to_time: datetime) -> List[MetricPoint]:
        # TODO: query /api/v1/query for timeseries once contracts carry metric expectations
        return []

    def _parse_item(self, item: Dict[str, Any]) -> Span:
        attributes = item.get("attributes")
        if not isinstance(attributes, dict):
            attributes = {}

        duration = attributes.get("duration")
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            duration = 0.0

        span_attributes = attributes.get("attributes")
        if not isinstance(span_attributes, dict):
            span_attributes = {}

        name = attributes.get("name")
        service = attributes.get("service")
        trace_id = attributes.get("trace_id")
        span_id = item.get("id")

        return Span(
            span_id=span_id if isinstance(span_id, str) else "",
            trace_id=trace_id if isinstance(trace_id, str) else "",
            name=name if isinstance(name, str) else "",
            service=service if isinstance(service, str) else None,
            duration_ms=float(duration),
            start_time=from_epoch_millis(attributes.get("timestamp")) or EPOCH_MIN,
            attributes=dict(span_attributes),
        )
