"""
Filter query language shared by every telemetry provider.

A query is a whitespace separated list of ``key:value`` pairs, for example::

    service:payment-api name:"POST /payments" http.status_code:200

Double quoted segments are kept together as a single token and a token
without a colon is appended to the value of the preceding key, so
``name:POST /payments`` and ``name:"POST /payments"`` parse identically.

Providers holding a materialized span collection filter it with
:func:`build_predicate`. Live backends translate the same pairs into their own
filter representation through :func:`build_filters`.
"""

import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, List, NamedTuple, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Span

QueryPair = Tuple[str, str]

_TOKEN_RE = re.compile(r'(?:[^\s"]+|"[^"]*"?)+')

SERVICE_KEYS = frozenset({"service", "service.name"})
NAME_KEYS = frozenset({"operation_name", "name"})
NAME_COLUMN_KEYS = frozenset({"operation_name", "operation.name", "name"})


class QueryFilter(NamedTuple):
    """A single backend filter produced from a query pair."""
    column: str
    op: str
    value: str


def normalize_value(value: Any) -> Optional[str]:
    """
    Convert an attribute value to the canonical string used for comparisons.

    Args:
        value: Attribute value as stored on a span (scalar, list or dict)

    Returns:
        None for None, otherwise the canonical textual form of the value
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    # bool is checked before int, it is a subclass
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _tokenize(query: str) -> List[str]:
    return _TOKEN_RE.findall(query)


def _key_separator(token: str) -> int:
    """Index of the key separator in a token, or -1 when the token is a bare value."""
    idx = token.find(":")
    quote = token.find('"')
    if idx == -1 or (quote != -1 and quote < idx):
        return -1
    return idx


def parse_query(query: Optional[str]) -> List[QueryPair]:
    """
    Parse a filter query into an ordered list of (key, value) pairs.

    Args:
        query: The filter query, may be None or empty

    Returns:
        List of (key, value) tuples in the order they appear in the query
    """
    pairs: List[QueryPair] = []
    if not query or not query.strip():
        return pairs

    current_key: Optional[str] = None
    current_value: List[str] = []

    for token in _tokenize(query):
        idx = _key_separator(token)
        if idx != -1:
            if current_key is not None:
                pairs.append((current_key, " ".join(current_value).replace('"', "")))
            current_key = token[:idx]
            current_value = []
            rest = token[idx + 1:]
            if rest:
                current_value.append(rest)
        elif current_key is not None:
            current_value.append(token)

    if current_key is not None:
        pairs.append((current_key, " ".join(current_value).replace('"', "")))

    return pairs


def matches_pair(span: "Span", key: str, value: str) -> bool:
    """Check a single query pair against a span."""
    k = key.lower()
    if k in SERVICE_KEYS:
        return span.service is not None and span.service.casefold() == value.casefold()
    if k in NAME_KEYS:
        return span.name is not None and value.casefold() in span.name.casefold()

    attributes = span.attributes
    if key in attributes:
        actual = attributes[key]
    elif f"attributes.{key}" in attributes:
        actual = attributes[f"attributes.{key}"]
    else:
        return False

    normalized = normalize_value(actual)
    return normalized is not None and normalized.casefold() == value.casefold()


def span_matches(span: "Span", pairs: List[QueryPair], from_time: datetime, to_time: datetime) -> bool:
    """True when the span starts inside [from_time, to_time] and matches every pair."""
    if not from_time <= span.start_time <= to_time:
        return False
    return all(matches_pair(span, key, value) for key, value in pairs)


def build_predicate(query: Optional[str], from_time: datetime, to_time: datetime) -> Callable[["Span"], bool]:
    """
    Build a predicate selecting the spans a query and window describe.

    Args:
        query: The filter query
        from_time: Inclusive start of the window
        to_time: Inclusive end of the window

    Returns:
        Callable returning True for spans that match
    """
    pairs = parse_query(query)
    return lambda span: span_matches(span, pairs, from_time, to_time)


def map_filter_column(key: str) -> str:
    """Map a query key to the column name used by backend filters."""
    k = key.strip()
    lowered = k.lower()
    if lowered in SERVICE_KEYS:
        return "service.name"
    if lowered in NAME_COLUMN_KEYS:
        return "name"
    return k if "." in k else f"attributes.{k}"


def build_filters(query: Optional[str]) -> List[QueryFilter]:
    """
    Translate a query into backend filters.

    The span name is matched with a ``contains`` operator, every other column
    with equality.
    """
    filters = []
    for key, value in parse_query(query):
        column = map_filter_column(key)
        op = "contains" if column == "name" else "="
        filters.append(QueryFilter(column=column, op=op, value=value))
    return filters
