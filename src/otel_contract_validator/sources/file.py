"""
Offline span records stored as newline-delimited JSON.

Each line holds one object::

    {"id": "...", "traceId": "...", "name": "POST /payments",
     "service": "payment-api", "durationMs": 12.5,
     "startTime": "2024-05-01T10:00:00Z", "attributes": {"http.status_code": 200}}

Lines that cannot be parsed are skipped so one bad record never fails a read.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Union
from datetime import datetime
from pathlib import Path
import json
import logging

from pydantic import ValidationError

from .interfaces import ObservabilityProvider
from .in_memory import InMemoryProvider
from .utils import parse_timestamp, EPOCH_MIN
from ..errors import FetchError
from ..models import Span, MetricPoint

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _optional_string(record: Dict[str, Any], key: str) -> Optional[str]:
    value = record.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ValueError(f"'{key}' must be a string, got {type(value).__name__}")


def span_from_record(record: Any) -> Span:
    """
    Build a Span from one decoded offline record.

    Raises:
        ValueError: If the record is not an object or a string field has another type
    """
    if not isinstance(record, dict):
        raise ValueError(f"record must be a JSON object, got {type(record).__name__}")

    duration = record.get("durationMs")
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        duration = 0.0

    start_time = record.get("startTime")
    parsed_start = parse_timestamp(start_time) if isinstance(start_time, str) else None

    attributes = record.get("attributes")
    if not isinstance(attributes, dict):
        attributes = {}

    return Span(
        span_id=_optional_string(record, "id") or "",
        trace_id=_optional_string(record, "traceId") or "",
        name=_optional_string(record, "name") or "",
        service=_optional_string(record, "service"),
        duration_ms=float(duration),
        start_time=parsed_start or EPOCH_MIN,
        attributes=attributes,
    )


def span_to_record(span: Span) -> Dict[str, Any]:
    """Convert a Span to its offline record representation."""
    return {
        "id": span.span_id,
        "traceId": span.trace_id,
        "name": span.name,
        "service": span.service,
        "durationMs": span.duration_ms,
        "startTime": span.start_time.isoformat(),
        "attributes": span.attributes,
    }


def iter_ndjson_spans(lines: Iterable[Union[str, bytes]]) -> Iterator[Span]:
    """
    Parse NDJSON lines into spans, skipping blank and malformed lines.

    Byte lines are decoded one at a time, so invalid UTF-8 only costs the
    line it appears on.
    """
    for line_number, line in enumerate(lines, start=1):
        try:
            if isinstance(line, bytes):
                line = line.decode("utf-8-sig")
            if not line.strip():
                continue
            span = span_from_record(json.loads(line))
        except (json.JSONDecodeError, ValueError, TypeError, ValidationError) as e:
            logger.debug(f"Skipping malformed span record on line {line_number}: {e}")
            continue
        yield span


def read_ndjson_spans(path: PathLike) -> List[Span]:
    """
    Read every well-formed span record from an NDJSON file.

    Args:
        path: Path to the file

    Returns:
        Spans in file order
    """
    with open(path, "rb") as fh:
        spans = list(iter_ndjson_spans(fh))
    logger.info(f"Read {len(spans)} spans from {path}")
    return spans


def write_ndjson_spans(path: PathLike, spans: Iterable[Span]) -> int:
    """
    Write spans to an NDJSON file, replacing any existing content.

    Returns:
        Number of spans written
    """
    count = 0
    with open(path, "w", encoding="utf-8") as fh:
        for span in spans:
            fh.write(json.dumps(span_to_record(span), default=str))
            fh.write("\n")
            count += 1
    logger.info(f"Wrote {count} spans to {path}")
    return count


class FileProvider(ObservabilityProvider):
    """
    Provider over spans recorded in an NDJSON file.

    The file is read once, on the first fetch, and then filtered exactly like
    an in-memory collection.
    """

    def __init__(self, path: PathLike, name: str = "file"):
        self.path = Path(path)
        self._name = name
        self._loaded: Optional[InMemoryProvider] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def name(self) -> str:
        return self._name

    def _load(self) -> InMemoryProvider:
        if self._loaded is None:
            try:
                spans = read_ndjson_spans(self.path)
            except OSError as e:
                self.logger.error(f"Failed to read span file '{self.path}': {e}")
                raise FetchError(self._name, f"Cannot read span file '{self.path}': {e}") from e
            self._loaded = InMemoryProvider(spans, name=self._name)
        return self._loaded

    def fetch_spans(self, query: str, from_time: datetime, to_time: datetime) -> List[Span]:
        return self._load().fetch_spans(query, from_time, to_time)

    def fetch_metrics(self, query: str, from_time: datetime, to_time: datetime) -> List[MetricPoint]:
        return []
