"""
Honeycomb provider for retrieving span data through the query API.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import logging
from urllib.parse import quote

import httpx

from .interfaces import ObservabilityProvider
from .utils import parse_timestamp, first_string, first_number, EPOCH_MIN
from ..errors import FetchError
from ..models import Span, MetricPoint
from ..query import build_filters

DEFAULT_API_URL = "https://api.eu1.honeycomb.io"
QUERY_LIMIT = 100


class HoneycombProvider(ObservabilityProvider):
    """
    Provider for a Honeycomb dataset.

    Query pairs are translated into Honeycomb filters combined with AND.
    """

    def __init__(
        self,
        name: str,
        api_url: str,
        api_key: str,
        dataset: str,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the Honeycomb provider.

        Args:
            name: Provider name reported on validation results
            api_url: Base URL of the Honeycomb API
            api_key: Honeycomb API key
            dataset: Dataset to query
            timeout_seconds: HTTP timeout for each request
            client: Optional preconfigured HTTP client
        """
        self._name = name
        self.api_url = api_url.rstrip("/")
        self.dataset = dataset
        self.logger = logging.getLogger(self.__class__.__name__)
        self.client = client or httpx.Client(timeout=timeout_seconds)
        self.client.headers["X-Honeycomb-Team"] = api_key

    @property
    def name(self) -> str:
        return self._name

    def close(self) -> None:
        self.client.close()

    def build_request_body(self, query: str, from_time: datetime, to_time: datetime) -> Dict[str, Any]:
        """Build the query definition sent to Honeycomb."""
        filters = [
            {"column": f.column, "op": f.op, "value": f.value}
            for f in build_filters(query)
        ]
        return {
            "start_time": from_time.isoformat(),
            "end_time": to_time.isoformat(),
            "filters": filters,
            "filter_combination": "AND",
            "limit": QUERY_LIMIT,
            "order": ["-time"],
        }

    def fetch_spans(self, query: str, from_time: datetime, to_time: datetime) -> List[Span]:
        url = f"{self.api_url}/1/queries/{quote(self.dataset, safe='')}/run"
        body = self.build_request_body(query, from_time, to_time)
        self.logger.debug(f"Running Honeycomb query on dataset '{self.dataset}': {body}")

        try:
            response = self.client.post(url, json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            self.logger.error(f"Honeycomb query failed: {e}")
            raise FetchError(self._name, str(e)) from e
        except ValueError as e:
            raise FetchError(self._name, f"Invalid JSON response from Honeycomb: {e}") from e

        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            return []

        spans = [self._parse_row(item) for item in results if isinstance(item, dict)]
        self.logger.info(f"Honeycomb query returned {len(spans)} spans")
        return spans

    def fetch_metrics(self, query: str, from_time: datetime, to_time: datetime) -> List[MetricPoint]:
        return []

    def _parse_row(self, item: Dict[str, Any]) -> Span:
        data = item.get("data")
        if not isinstance(data, dict):
            data = item

        duration = first_number(data, "duration_ms", "duration")
        start_time = parse_timestamp(first_string(data, "time", "timestamp"))

        return Span(
            span_id=first_string(data, "trace.span_id", "span_id", "id") or "",
            trace_id=first_string(data, "trace.trace_id", "trace_id") or "",
            name=first_string(data, "name", "span.name") or "",
            service=first_string(data, "service.name", "service_name"),
            duration_ms=duration if duration is not None else 0.0,
            start_time=start_time or EPOCH_MIN,
            attributes=dict(data),
        )
