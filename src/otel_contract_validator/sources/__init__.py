# Sources module
from .interfaces import ObservabilityProvider
from .in_memory import InMemoryProvider
from .windowing import WindowingProvider
from .file import (
    FileProvider,
    read_ndjson_spans,
    write_ndjson_spans,
    span_from_record,
    span_to_record,
)
from .honeycomb import HoneycombProvider
from .datadog import DatadogProvider
from .application_insights import ApplicationInsightsProvider, ApplicationInsightsConfig
from .utils import parse_timestamp

__all__ = [
    "ObservabilityProvider",
    "InMemoryProvider",
    "WindowingProvider",
    "FileProvider",
    "HoneycombProvider",
    "DatadogProvider",
    "ApplicationInsightsProvider",
    "ApplicationInsightsConfig",
    "read_ndjson_spans",
    "write_ndjson_spans",
    "span_from_record",
    "span_to_record",
    "parse_timestamp",
]
