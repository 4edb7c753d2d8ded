"""
Application Insights provider for retrieving span data with KQL.
"""

from typing import Dict, List, Optional, Any
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
import json

from .interfaces import ObservabilityProvider
from .utils import parse_timestamp, EPOCH_MIN
from ..errors import ConfigurationError, FetchError
from ..models import Span, MetricPoint
from ..query import QueryFilter, build_filters

try:
    from azure.core.exceptions import AzureError
    from azure.monitor.query import LogsQueryClient, LogsQueryStatus
    from azure.identity import DefaultAzureCredential
    AZURE_AVAILABLE = True
except ImportError:
    AZURE_AVAILABLE = False

logger = logging.getLogger(__name__)

QUERY_LIMIT = 100


@dataclass
class ApplicationInsightsConfig:
    """Configuration for Application Insights connection."""
    resource_id: str
    credential: Optional[Any] = None
    timeout_seconds: int = 30


def _kql_string(value: str) -> str:
    # JSON string escaping is valid KQL string literal syntax
    return json.dumps(value)


def _kql_datetime(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _kql_column(column: str) -> str:
    if column == "service.name":
        return "cloud_RoleName"
    if column == "name":
        return "name"
    key = column[len("attributes."):] if column.startswith("attributes.") else column
    return f"tostring(customDimensions[{_kql_string(key)}])"


def build_kql(query: str, from_time: datetime, to_time: datetime, limit: int = QUERY_LIMIT) -> str:
    """
    Translate a filter query and window into a KQL query over spans.

    Args:
        query: Filter query in the shared ``key:value`` syntax
        from_time: Inclusive start of the window
        to_time: Inclusive end of the window
        limit: Maximum number of rows

    Returns:
        KQL query text
    """
    clauses = [
        "union dependencies, requests",
        f"| where timestamp between (datetime({_kql_datetime(from_time)}) .. datetime({_kql_datetime(to_time)}))",
    ]
    for f in build_filters(query):
        clauses.append(_kql_where(f))
    clauses.append(
        "| project span_id = id, trace_id = operation_Id, span_name = name, "
        "service = cloud_RoleName, start_time = tostring(timestamp), duration, "
        "attributes = customDimensions"
    )
    clauses.append("| order by start_time desc")
    clauses.append(f"| take {limit}")
    return "\n".join(clauses)


def _kql_where(f: QueryFilter) -> str:
    op = "contains" if f.op == "contains" else "=="
    return f"| where {_kql_column(f.column)} {op} {_kql_string(f.value)}"


class ApplicationInsightsProvider(ObservabilityProvider):
    """
    Provider for retrieving span data from Azure Application Insights.
    """

    def __init__(self, name: str, config: ApplicationInsightsConfig, client: Optional[Any] = None):
        """
        Initialize the Application Insights provider.

        Args:
            name: Provider name reported on validation results
            config: Configuration object for the connection
            client: Optional preconfigured LogsQueryClient

        Raises:
            ConfigurationError: If the Azure SDK is not installed
        """
        # Query status and error types come from the SDK even with an injected client
        if not AZURE_AVAILABLE:
            raise ConfigurationError(
                "Azure SDK not available. Install with: pip install azure-monitor-query azure-identity"
            )

        self._name = name
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)

        if client is None:
            credential = config.credential or DefaultAzureCredential()
            client = LogsQueryClient(credential)
        self.client = client

    @property
    def name(self) -> str:
        return self._name

    def fetch_spans(self, query: str, from_time: datetime, to_time: datetime) -> List[Span]:
        kql_query = build_kql(query, from_time, to_time)
        results = self._execute_query(kql_query, timespan=(from_time, to_time))

        spans = []
        for span_data in results:
            duration = span_data.get('duration')
            if isinstance(duration, bool) or not isinstance(duration, (int, float)):
                duration = 0.0
            service = span_data.get('service')
            spans.append(Span(
                span_id=str(span_data.get('span_id') or ''),
                trace_id=str(span_data.get('trace_id') or ''),
                name=str(span_data.get('span_name') or ''),
                service=service if service else None,
                duration_ms=float(duration),
                start_time=parse_timestamp(span_data.get('start_time')) or EPOCH_MIN,
                attributes=self._parse_custom_dimensions(span_data.get('attributes', {})),
            ))
        return spans

    def fetch_metrics(self, query: str, from_time: datetime, to_time: datetime) -> List[MetricPoint]:
        return []

    def _parse_custom_dimensions(self, custom_dims: Any) -> Dict[str, Any]:
        """
        Parse customDimensions field which can be a string, dict, or None.

        Args:
            custom_dims: The customDimensions value from Application Insights

        Returns:
            Dictionary of parsed custom dimensions
        """
        if not custom_dims:
            return {}

        if isinstance(custom_dims, dict):
            return custom_dims

        if isinstance(custom_dims, str):
            try:
                parsed = json.loads(custom_dims)
                if isinstance(parsed, dict):
                    return parsed
                self.logger.warning(f"customDimensions parsed to non-dict type: {type(parsed)}")
                return {}
            except (json.JSONDecodeError, TypeError) as e:
                self.logger.warning(f"Failed to parse customDimensions as JSON: {e}")
                return {"raw_value": str(custom_dims)}

        self.logger.warning(f"Unknown customDimensions type: {type(custom_dims)}")
        return {"raw_value": str(custom_dims)}

    def _execute_query(self, kql_query: str, timespan: Any = timedelta(minutes=15)) -> List[Dict[str, Any]]:
        """
        Execute a KQL query against Application Insights.

        Args:
            kql_query: The KQL query to execute
            timespan: Time range passed to the query API

        Returns:
            List of result dictionaries

        Raises:
            FetchError: If the query fails or does not complete successfully
        """
        self.logger.debug(f"Executing KQL query: {kql_query}")
        try:
            response = self.client.query_resource(
                resource_id=self.config.resource_id,
                query=kql_query,
                timespan=timespan,
                server_timeout=self.config.timeout_seconds,
            )
        except AzureError as e:
            self.logger.error(f"Error executing query: {e}")
            raise FetchError(self._name, str(e)) from e

        if response.status != LogsQueryStatus.SUCCESS:
            self.logger.error(f"Query failed with status: {response.status}")
            raise FetchError(self._name, f"Query did not complete successfully: {response.status}")

        results = []
        if response.tables:
            table = response.tables[0]
            for row in table.rows:
                row_dict = {}
                for i, value in enumerate(row):
                    column_name = table.columns[i]
                    row_dict[column_name] = value
                results.append(row_dict)

        self.logger.info(f"Query returned {len(results)} results")
        return results
