"""
Record spans from an instrumented code path and validate them against the
sample contracts, without any telemetry backend.

Run from the repository root:

    python examples/record_and_validate.py
"""

import logging
import time

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

from otel_contract_validator import (
    InMemoryProvider,
    SpanRecorder,
    Validator,
    load_contracts,
    write_ndjson_spans,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


def simulate_payment(tracer, method: str) -> None:
    """Emit the spans a payment request produces."""
    with tracer.start_as_current_span("POST /payments") as span:
        span.set_attribute("payment.status", "success")
        span.set_attribute("payment.method", method)
        span.set_attribute("customer.id", "cust-42")
        time.sleep(0.01)


def main():
    provider = TracerProvider(resource=Resource.create({"service.name": "payment-api"}))
    tracer = provider.get_tracer("examples.payments")

    with SpanRecorder.install(provider) as recorder:
        simulate_payment(tracer, "card")
        simulate_payment(tracer, "wallet")

    spans = recorder.spans
    write_ndjson_spans("recorded-spans.ndjson", spans)

    contracts_file = load_contracts("contracts/observability-contracts.yaml")
    results = Validator(InMemoryProvider(spans, name="recorded")).validate(contracts_file)

    for result in results:
        status = "PASS" if result.passed else "FAIL"
        print(f"{status} [{result.contract_name}] {result.message}")
        for detail in result.details:
            print(f"   - {detail}")


if __name__ == "__main__":
    main()
