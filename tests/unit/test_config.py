"""
Unit tests for loading contracts and telemetry provider configuration.
"""

import pytest

from otel_contract_validator.config import (
    ProviderConfig,
    TelemetryConfig,
    create_provider,
    create_providers,
    lint_contracts,
    load_contracts,
    load_contracts_from_string,
    load_telemetry_config,
)
from otel_contract_validator.errors import ConfigurationError
from otel_contract_validator.models import Contract, ContractsFile, ExpectedSpan, ExpectedTag
from otel_contract_validator.sources import DatadogProvider, FileProvider, HoneycombProvider, InMemoryProvider

CONTRACTS_YAML = """
version: 1
contracts:
  - name: Payment Flow Success
    description: Payments complete with status and method tags
    query: 'service:payment-api name:"POST /payments"'
    window:
      minutes: 10
    expectedSpans:
      - name: POST /payments
        service: payment-api
        minCount: 1
        maxLatencyMs: 500
        tags:
          - key: payment.status
            expected: success
          - key: payment.method
            expectedAnyOf: [card, wallet]
          - key: customer.tier
            required: false
"""

ENV = {"HONEYCOMB_API_KEY": "hc-key", "DD_API_KEY": "dd-key", "DD_APP_KEY": "dd-app"}


class TestLoadContracts:
    """Test cases for reading contracts files."""

    def test_load_from_file(self, tmp_path):
        """Test loading a complete contracts file."""
        path = tmp_path / "contracts.yaml"
        path.write_text(CONTRACTS_YAML, encoding="utf-8")

        contracts_file = load_contracts(path)

        contract = contracts_file.contracts[0]
        expected = contract.expected_spans[0]
        assert contracts_file.version == "1"
        assert contract.name == "Payment Flow Success"
        assert contract.query == 'service:payment-api name:"POST /payments"'
        assert contract.window_minutes == 10
        assert expected.max_latency_ms == 500
        assert [t.key for t in expected.tags] == ["payment.status", "payment.method", "customer.tier"]
        assert expected.tags[1].expected_any_of == ["card", "wallet"]
        assert expected.tags[2].required is False

    def test_empty_document(self, tmp_path):
        """Test that an empty file yields no contracts."""
        path = tmp_path / "contracts.yaml"
        path.write_text("", encoding="utf-8")

        assert load_contracts(path).contracts == []

    def test_missing_file(self, tmp_path):
        """Test that a missing file is a configuration error."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_contracts(tmp_path / "missing.yaml")

    @pytest.mark.parametrize("text", [
        "contracts: [unclosed",
        "- just\n- a list\n",
        "contracts:\n  - query: service:x\n",
    ])
    def test_invalid_documents(self, text):
        """Test that malformed YAML and schema violations are configuration errors."""
        with pytest.raises(ConfigurationError):
            load_contracts_from_string(text)

    def test_bundled_contracts_are_clean(self):
        """Test that the sample contracts shipped with the project lint cleanly."""
        from pathlib import Path

        path = Path(__file__).resolve().parents[2] / "contracts" / "observability-contracts.yaml"

        assert lint_contracts(load_contracts(path)) == []


class TestLintContracts:
    """Test cases for contract linting."""

    def test_clean_file(self):
        """Test that a well-formed file has no lint errors."""
        assert lint_contracts(load_contracts_from_string(CONTRACTS_YAML)) == []

    def test_no_contracts(self):
        """Test that an empty file is reported."""
        assert lint_contracts(ContractsFile()) == ["No contracts defined."]

    def test_all_problems_reported(self):
        """Test the message for each kind of authoring mistake."""
        contracts_file = ContractsFile(contracts=[
            Contract(name="A", query="service:a", expected_spans=[
                ExpectedSpan(name=" ", max_latency_ms=-1, tags=[ExpectedTag(key="")]),
            ]),
            Contract(name="A", query=" "),
            Contract(name="", query="service:b"),
        ])

        assert lint_contracts(contracts_file) == [
            "Contract 'A' has expected span with empty name.",
            "Contract 'A' span ' ' has negative MaxLatencyMs.",
            "Contract 'A' span ' ' has tag with empty key.",
            "Duplicate contract name 'A'.",
            "Contract 'A' has empty query.",
            "Contract has empty name.",
        ]


class TestTelemetryConfig:
    """Test cases for provider configuration."""

    def test_load_config(self, tmp_path):
        """Test loading providers with defaults."""
        path = tmp_path / "telemetry.yaml"
        path.write_text(
            "version: 1\n"
            "providers:\n"
            "  - name: honeycomb-prod\n"
            "    type: honeycomb\n"
            "    settings: {dataset: payments}\n"
            "  - name: dd\n"
            "    type: datadog\n"
            "    enabled: false\n",
            encoding="utf-8",
        )

        config = load_telemetry_config(path)

        assert config.version == "1"
        assert [p.name for p in config.providers] == ["honeycomb-prod", "dd"]
        assert config.providers[0].enabled is True
        assert config.providers[1].enabled is False
        assert config.providers[1].settings == {}

    def test_invalid_config(self, tmp_path):
        """Test that schema violations are configuration errors."""
        path = tmp_path / "telemetry.yaml"
        path.write_text("providers:\n  - type: honeycomb\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_telemetry_config(path)


class TestCreateProviders:
    """Test cases for building providers from configuration."""

    def test_builds_enabled_providers_in_order(self, tmp_path):
        """Test provider construction, order and skipping of disabled entries."""
        config = TelemetryConfig(providers=[
            ProviderConfig(name="dd", type="Datadog"),
            ProviderConfig(name="hc", type="honeycomb", settings={"dataset": "payments"}),
            ProviderConfig(name="off", type="honeycomb", enabled=False),
            ProviderConfig(name="recorded", type="file", settings={"path": str(tmp_path / "spans.ndjson")}),
        ])

        providers = create_providers(config, env=ENV)

        assert [p.name for p in providers] == ["dd", "hc", "recorded"]
        assert isinstance(providers[0], DatadogProvider)
        assert isinstance(providers[1], HoneycombProvider)
        assert isinstance(providers[2], FileProvider)
        assert providers[1].dataset == "payments"
        assert providers[1].api_url == "https://api.eu1.honeycomb.io"
        for provider in providers[:2]:
            provider.close()

    def test_settings_override_defaults(self):
        """Test custom API URL and env var names."""
        provider = create_provider(
            ProviderConfig(name="hc", type="honeycomb", settings={
                "dataset": "payments", "api_url": "https://api.honeycomb.io", "api_key_env": "MY_KEY",
            }),
            env={"MY_KEY": "secret"},
        )

        assert provider.api_url == "https://api.honeycomb.io"
        assert provider.client.headers["X-Honeycomb-Team"] == "secret"
        provider.close()

    def test_missing_secret(self):
        """Test that a missing environment variable is a configuration error."""
        config = TelemetryConfig(providers=[ProviderConfig(name="dd", type="datadog")])

        with pytest.raises(ConfigurationError, match="Missing env var 'DD_API_KEY'."):
            create_providers(config, env={})

    def test_honeycomb_requires_dataset(self):
        """Test that Honeycomb without a dataset is a configuration error."""
        config = TelemetryConfig(providers=[ProviderConfig(name="hc", type="honeycomb")])

        with pytest.raises(ConfigurationError, match="dataset"):
            create_providers(config, env=ENV)

    def test_unknown_type_is_skipped(self):
        """Test that unsupported provider types are skipped."""
        config = TelemetryConfig(providers=[ProviderConfig(name="x", type="newrelic")])

        assert create_providers(config, env=ENV) == []

    def test_resolver_takes_precedence(self):
        """Test that a resolver can supply custom provider types."""
        custom = InMemoryProvider([], name="custom")
        config = TelemetryConfig(providers=[
            ProviderConfig(name="custom", type="in-memory"),
            ProviderConfig(name="recorded", type="file", settings={"path": "spans.ndjson"}),
        ])

        providers = create_providers(config, resolver=lambda p: custom if p.type == "in-memory" else None, env=ENV)

        assert providers[0] is custom
        assert isinstance(providers[1], FileProvider)

    def test_built_providers_closed_on_failure(self):
        """Test that providers built before a configuration error are closed."""
        closed = []

        class TrackingProvider(InMemoryProvider):
            def close(self):
                closed.append(self.name)

        config = TelemetryConfig(providers=[
            ProviderConfig(name="first", type="in-memory"),
            ProviderConfig(name="dd", type="datadog"),
        ])

        def resolver(provider_config):
            if provider_config.type == "in-memory":
                return TrackingProvider([], name=provider_config.name)
            return None

        with pytest.raises(ConfigurationError):
            create_providers(config, resolver=resolver, env={})

        assert closed == ["first"]
