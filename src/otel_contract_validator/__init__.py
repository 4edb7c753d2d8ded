"""
OpenTelemetry Contract Validator - checks observed tracing telemetry against observability contracts.

This package provides tools and utilities for:
- Declaring the spans, latencies and attribute tags a service is expected to emit
- Selecting spans with a small ``key:value`` filter query shared by every backend
- Fetching spans from live backends (Honeycomb, Datadog, Application Insights) or recorded files
- Validating contracts and reporting actionable diagnostics
- Recording in-process OpenTelemetry spans for contract assertions in tests
"""

__version__ = "0.1.0"

from .models import (
    Span,
    MetricPoint,
    ExpectedTag,
    ExpectedSpan,
    TimeWindow,
    Contract,
    ContractsFile,
    ValidationResult,
)
from .errors import (
    ContractValidatorError,
    ConfigurationError,
    FetchError,
    ContractAssertionError,
)
from .query import parse_query, build_predicate, build_filters, normalize_value
from .validator import Validator
from .sources.interfaces import ObservabilityProvider
from .sources.in_memory import InMemoryProvider
from .sources.windowing import WindowingProvider
from .sources.file import FileProvider, read_ndjson_spans, write_ndjson_spans
from .sources.honeycomb import HoneycombProvider
from .sources.datadog import DatadogProvider
from .sources.application_insights import ApplicationInsightsProvider, ApplicationInsightsConfig
from .config import load_contracts, load_telemetry_config, create_providers, lint_contracts
from .assertions import validate_single, assert_contract_passes
from .recorder import SpanRecorder

__all__ = [
    "Span",
    "MetricPoint",
    "Validator",
    "ObservabilityProvider",
    "InMemoryProvider",
    "WindowingProvider",
    "FileProvider",
    "HoneycombProvider",
    "DatadogProvider",
    "ApplicationInsightsProvider",
    "ApplicationInsightsConfig",
    "SpanRecorder",
    # Contracts
    "ExpectedTag",
    "ExpectedSpan",
    "TimeWindow",
    "Contract",
    "ContractsFile",
    "ValidationResult",
    # Errors
    "ContractValidatorError",
    "ConfigurationError",
    "FetchError",
    "ContractAssertionError",
    # Query language
    "parse_query",
    "build_predicate",
    "build_filters",
    "normalize_value",
    # Loading and helpers
    "load_contracts",
    "load_telemetry_config",
    "create_providers",
    "lint_contracts",
    "read_ndjson_spans",
    "write_ndjson_spans",
    "validate_single",
    "assert_contract_passes",
]
