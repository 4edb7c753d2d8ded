"""
Unit tests for the filter query language and span predicate.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from otel_contract_validator.query import (
    QueryFilter,
    build_filters,
    build_predicate,
    map_filter_column,
    matches_pair,
    normalize_value,
    parse_query,
)


class TestParseQuery:
    """Test cases for tokenizing filter queries into pairs."""

    def test_quoted_value_with_spaces(self):
        """Test that a quoted value is kept as one token and unquoted."""
        pairs = parse_query('service:payment-api name:"POST /payments"')

        assert pairs == [("service", "payment-api"), ("name", "POST /payments")]

    def test_unquoted_words_join_previous_key(self):
        """Test that tokens without a colon extend the current value."""
        pairs = parse_query("name:POST /payments service:api")

        assert pairs == [("name", "POST /payments"), ("service", "api")]

    def test_empty_input(self):
        """Test that empty and blank queries produce no pairs."""
        assert parse_query("") == []
        assert parse_query("   ") == []
        assert parse_query(None) == []

    def test_key_with_empty_value(self):
        """Test that a trailing colon yields an empty value."""
        assert parse_query("service:") == [("service", "")]

    def test_value_after_bare_key(self):
        """Test that a quoted token after a bare key becomes its value."""
        assert parse_query('name: "GET /a b"') == [("name", "GET /a b")]

    def test_splits_on_first_colon_only(self):
        """Test that later colons stay in the value."""
        assert parse_query("url:http://host:8080") == [("url", "http://host:8080")]

    def test_colon_inside_quotes_is_not_a_key(self):
        """Test that a quoted token containing a colon continues the value."""
        assert parse_query('name:GET "/a:b"') == [("name", "GET /a:b")]

    def test_tokens_before_first_key_are_ignored(self):
        """Test that leading bare words are dropped."""
        assert parse_query("hello service:api") == [("service", "api")]

    def test_order_and_duplicates_preserved(self):
        """Test that pairs keep query order, including repeated keys."""
        pairs = parse_query("a:1 b:2 a:3")

        assert pairs == [("a", "1"), ("b", "2"), ("a", "3")]


class TestNormalizeValue:
    """Test cases for the canonical comparison form of attribute values."""

    @pytest.mark.parametrize("value, expected", [
        (None, None),
        ("success", "success"),
        (200, "200"),
        (True, "True"),
        (False, "False"),
        (2.0, "2"),
        (2.5, "2.5"),
        (Decimal("1.10"), "1.10"),
    ])
    def test_scalars(self, value, expected):
        """Test normalization of scalar values."""
        assert normalize_value(value) == expected

    def test_datetime_uses_isoformat(self):
        """Test that datetimes normalize to ISO-8601."""
        value = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

        assert normalize_value(value) == "2024-05-01T10:00:00+00:00"

    def test_other_values_use_str(self):
        """Test that containers fall back to their default text."""
        assert normalize_value(["a", "b"]) == str(["a", "b"])
        assert normalize_value({"k": 1}) == str({"k": 1})


class TestSpanPredicate:
    """Test cases for matching spans against parsed queries."""

    def test_service_and_name_match(self, make_span, now):
        """Test the example query against matching and non-matching spans."""
        predicate = build_predicate('service:payment-api name:"POST /payments"',
                                    now - timedelta(minutes=15), now)

        assert predicate(make_span(name="POST /payments", service="payment-api"))
        assert not predicate(make_span(name="POST /payments", service="other-api"))

    def test_service_is_case_insensitive_equality(self, make_span):
        """Test that service matching ignores case but not substrings."""
        span = make_span(service="Payment-API")

        assert matches_pair(span, "service", "payment-api")
        assert matches_pair(span, "SERVICE.NAME", "PAYMENT-API")
        assert not matches_pair(span, "service", "payment")

    def test_missing_service_never_matches(self, make_span):
        """Test that a span without service fails service filters."""
        assert not matches_pair(make_span(service=None), "service", "payment-api")

    def test_name_is_case_insensitive_substring(self, make_span):
        """Test that name and operation_name use contains semantics."""
        span = make_span(name="POST /payments/refund")

        assert matches_pair(span, "name", "payments")
        assert matches_pair(span, "operation_name", "post /PAYMENTS")
        assert not matches_pair(span, "name", "GET")

    def test_attribute_lookup(self, make_span):
        """Test attribute equality with normalization and case folding."""
        span = make_span(attributes={"http.status_code": 200, "attributes.region": "EU", "ok": True})

        assert matches_pair(span, "http.status_code", "200")
        assert matches_pair(span, "region", "eu")
        assert matches_pair(span, "ok", "TRUE")
        assert not matches_pair(span, "http.status_code", "500")

    def test_absent_or_null_attribute_fails(self, make_span):
        """Test that missing and null attributes never match."""
        span = make_span(attributes={"customer.id": None})

        assert not matches_pair(span, "customer.id", "")
        assert not matches_pair(span, "tenant", "acme")

    def test_window_bounds_are_inclusive(self, make_span, now):
        """Test that spans exactly on the window edges are selected."""
        start = now - timedelta(minutes=15)
        predicate = build_predicate("", start, now)

        assert predicate(make_span(start_time=start))
        assert predicate(make_span(start_time=now))
        assert not predicate(make_span(start_time=now + timedelta(microseconds=1)))
        assert not predicate(make_span(start_time=start - timedelta(microseconds=1)))

    def test_empty_query_matches_everything_in_window(self, make_span, now):
        """Test that an empty query only applies the window."""
        predicate = build_predicate("", now - timedelta(minutes=15), now)

        assert predicate(make_span(service=None, name="anything"))


class TestBuildFilters:
    """Test cases for translating queries into backend filters."""

    def test_key_remapping(self):
        """Test the shared column mapping and operators."""
        filters = build_filters('service:api operation.name:"GET /x" http.method:GET tenant:acme')

        assert filters == [
            QueryFilter("service.name", "=", "api"),
            QueryFilter("name", "contains", "GET /x"),
            QueryFilter("http.method", "=", "GET"),
            QueryFilter("attributes.tenant", "=", "acme"),
        ]

    @pytest.mark.parametrize("key, column", [
        ("service", "service.name"),
        ("Service.Name", "service.name"),
        ("operation_name", "name"),
        ("NAME", "name"),
        ("db.system", "db.system"),
        ("region", "attributes.region"),
    ])
    def test_map_filter_column(self, key, column):
        """Test individual key mappings."""
        assert map_filter_column(key) == column
