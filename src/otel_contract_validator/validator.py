"""
Core contract validation: fetches spans through a provider and checks them
against each contract's expectations.
"""

from typing import Callable, Dict, List, Optional
from datetime import datetime, timedelta, timezone
import logging

from .sources.interfaces import ObservabilityProvider
from .models import Contract, ContractsFile, ExpectedSpan, ExpectedTag, Span, ValidationResult
from .query import normalize_value

logger = logging.getLogger(__name__)

PASSED_MESSAGE = "All expected spans/tags satisfied."


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_number(value: float) -> str:
    return normalize_value(value) or ""


class Validator:
    """
    Validates observability contracts against spans from a single provider.
    """

    def __init__(self, provider: ObservabilityProvider, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the Validator.

        Args:
            provider: Provider implementing the ObservabilityProvider interface
            clock: Returns the current time; defaults to the UTC wall clock
        """
        self.provider = provider
        self.clock = clock or _utc_now
        self.logger = logging.getLogger(self.__class__.__name__)

    def validate(self, contracts_file: ContractsFile) -> List[ValidationResult]:
        """
        Validate every contract in file order.

        A contract whose spans cannot be fetched produces a failing result and
        does not stop the remaining contracts from being validated.

        Args:
            contracts_file: Contracts to validate

        Returns:
            One result per contract, in file order
        """
        results = []
        for contract in contracts_file.contracts:
            now = self.clock()
            from_time = now - timedelta(minutes=contract.window_minutes)

            try:
                spans = self.provider.fetch_spans(contract.query, from_time, now)
            except Exception as e:
                self.logger.error(f"Failed to fetch spans for contract '{contract.name}' from '{self.provider.name}': {e}")
                results.append(ValidationResult(
                    provider_name=self.provider.name,
                    contract_name=contract.name,
                    passed=False,
                    message=f"Failed to fetch spans: {e}",
                ))
                continue

            self.logger.debug(f"Fetched {len(spans)} spans for contract '{contract.name}'")
            result = self.validate_contract(contract, spans)
            self.logger.info(f"Contract '{contract.name}' on '{self.provider.name}': {result.message}")
            results.append(result)

        return results

    def validate_contract(self, contract: Contract, spans: List[Span]) -> ValidationResult:
        """
        Check already fetched spans against a single contract.

        Args:
            contract: The contract to check
            spans: Spans returned for the contract's query

        Returns:
            Validation result with one detail per unmet expectation
        """
        details: List[str] = []
        for expected_span in contract.expected_spans:
            details.extend(check_expected_span(expected_span, spans))

        passed = not details
        message = PASSED_MESSAGE if passed else f"{len(details)} validation issue(s) found."

        return ValidationResult(
            provider_name=self.provider.name,
            contract_name=contract.name,
            passed=passed,
            message=message,
            details=details,
        )


def matching_spans(expected_span: ExpectedSpan, spans: List[Span]) -> List[Span]:
    """Spans with exactly the expected name and, when one is given, the expected service."""
    return [
        span for span in spans
        if span.name == expected_span.name
        and (expected_span.service is None or span.service == expected_span.service)
    ]


def check_expected_span(expected_span: ExpectedSpan, spans: List[Span]) -> List[str]:
    """
    Evaluate one expected span against the fetched spans.

    Returns:
        Diagnostic messages, empty when every expectation holds
    """
    details = []
    matching = matching_spans(expected_span, spans)

    if expected_span.min_count is not None and len(matching) < expected_span.min_count:
        details.append(
            f"Span '{expected_span.name}' (service '{expected_span.service or '*'}') "
            f"count {len(matching)} < MinCount {expected_span.min_count}"
        )

    if expected_span.max_latency_ms is not None and matching:
        max_latency = max(span.duration_ms for span in matching)
        if max_latency > expected_span.max_latency_ms:
            details.append(
                f"Span '{expected_span.name}' exceeded MaxLatencyMs "
                f"({max_latency:.0f}ms > {_format_number(expected_span.max_latency_ms)}ms)"
            )

    for tag in expected_span.tags:
        details.extend(check_tag(expected_span.name, tag, matching))

    return details


def check_tag(span_name: str, tag: ExpectedTag, matching: List[Span]) -> List[str]:
    """
    Evaluate one tag expectation against the spans matching an expected span.

    Value mismatches are reported once per tag, however many spans differ.
    """
    spans_with_tag = [span for span in matching if tag.key in span.attributes]

    if not spans_with_tag:
        if tag.required:
            return [f"Span '{span_name}' missing required tag '{tag.key}'."]
        return []

    details = []
    values = [normalize_value(span.attributes[tag.key]) for span in spans_with_tag]

    if tag.expected is not None:
        if any(value != tag.expected for value in values):
            details.append(
                f"Tag '{tag.key}' on span '{span_name}' did not match expected value '{tag.expected}'."
            )

    if tag.expected_any_of:
        allowed: Dict[str, None] = dict.fromkeys(tag.expected_any_of)
        if any(not isinstance(value, str) or value not in allowed for value in values):
            details.append(
                f"Tag '{tag.key}' on span '{span_name}' did not match any of [{', '.join(allowed)}]."
            )

    return details
