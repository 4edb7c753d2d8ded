"""
Capture of in-process OpenTelemetry spans for offline contract validation.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
import logging
import threading

from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor, TracerProvider

from .models import Span

logger = logging.getLogger(__name__)


def _attribute_value(value: Any) -> Any:
    # The SDK stores sequence attributes as tuples
    if isinstance(value, tuple):
        return list(value)
    return value


def span_from_readable(readable: ReadableSpan) -> Span:
    """
    Convert a finished OpenTelemetry SDK span into a Span.

    The span and trace ids, and the service name when known, are also copied
    into the attributes under ``trace.span_id``, ``trace.trace_id`` and
    ``service.name`` so they can be used in queries.
    """
    context = readable.context
    span_id = format(context.span_id, "016x") if context else ""
    trace_id = format(context.trace_id, "032x") if context else ""

    attributes: Dict[str, Any] = {
        key: _attribute_value(value) for key, value in (readable.attributes or {}).items()
    }

    service = attributes.get("service.name")
    if not isinstance(service, str) and readable.resource is not None:
        service = readable.resource.attributes.get("service.name")
    if not isinstance(service, str):
        service = None

    start_ns = readable.start_time or 0
    end_ns = readable.end_time or start_ns

    attributes["trace.span_id"] = span_id
    attributes["trace.trace_id"] = trace_id
    if service is not None:
        attributes["service.name"] = service

    return Span(
        span_id=span_id,
        trace_id=trace_id,
        name=readable.name,
        service=service,
        duration_ms=(end_ns - start_ns) / 1_000_000,
        start_time=datetime.fromtimestamp(start_ns / 1_000_000_000, tz=timezone.utc),
        attributes=attributes,
    )


class SpanRecorder(SpanProcessor):
    """
    Span processor collecting every finished span as a Span.

    Register it on a TracerProvider, exercise the code under test, then
    validate ``recorder.spans`` with an InMemoryProvider or
    :func:`~otel_contract_validator.assertions.assert_contract_passes`.
    """

    def __init__(self):
        self._spans: List[Span] = []
        self._lock = threading.Lock()
        self._recording = True

    @property
    def spans(self) -> List[Span]:
        with self._lock:
            return list(self._spans)

    def clear(self) -> None:
        with self._lock:
            self._spans.clear()

    def on_start(self, span: Any, parent_context: Optional[Context] = None) -> None:
        pass

    def on_end(self, span: ReadableSpan) -> None:
        if not self._recording:
            return
        recorded = span_from_readable(span)
        with self._lock:
            self._spans.append(recorded)
        logger.debug(f"Recorded span '{recorded.name}' ({recorded.span_id})")

    def shutdown(self) -> None:
        self._recording = False

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True

    @classmethod
    @contextmanager
    def install(cls, tracer_provider: TracerProvider) -> Iterator["SpanRecorder"]:
        """
        Record spans finished on ``tracer_provider`` for the duration of the block.

        The SDK cannot detach a processor, so the recorder stops recording on exit.
        """
        recorder = cls()
        tracer_provider.add_span_processor(recorder)
        try:
            yield recorder
        finally:
            recorder.shutdown()
