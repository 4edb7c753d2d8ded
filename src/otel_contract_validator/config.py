"""
Loading of contracts files and telemetry provider configuration.

Both files are YAML. Contracts use camelCase keys::

    version: "1"
    contracts:
      - name: Payment Flow Success
        query: service:payment-api
        window: {minutes: 15}
        expectedSpans:
          - name: POST /payments
            service: payment-api
            minCount: 1
            tags:
              - {key: payment.status, expected: success}

The telemetry configuration lists the providers to validate against::

    version: "1"
    providers:
      - name: honeycomb-prod
        type: honeycomb
        settings:
          dataset: payments
          api_key_env: HONEYCOMB_API_KEY

Secrets are never stored in the file; settings name the environment
variables holding them.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from pathlib import Path
import logging
import os

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .models import ContractsFile
from .sources.interfaces import ObservabilityProvider
from .sources.file import FileProvider
from .sources.honeycomb import HoneycombProvider, DEFAULT_API_URL as HONEYCOMB_API_URL
from .sources.datadog import DatadogProvider, DEFAULT_API_URL as DATADOG_API_URL
from .sources.application_insights import ApplicationInsightsProvider, ApplicationInsightsConfig

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
ProviderResolver = Callable[["ProviderConfig"], Optional[ObservabilityProvider]]


class ProviderConfig(BaseModel):
    """Configuration of a single telemetry provider."""
    name: str = Field(..., description="Provider name reported on validation results")
    type: str = Field(..., description="Provider type, e.g. 'honeycomb' or 'datadog'")
    enabled: bool = Field(True, description="Disabled providers are skipped")
    settings: Dict[str, Any] = Field(default_factory=dict, description="Provider specific settings")


class TelemetryConfig(BaseModel):
    """Telemetry configuration file."""
    version: str = Field("1", description="Configuration format version")
    providers: List[ProviderConfig] = Field(default_factory=list, description="Configured providers")

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value: Any) -> Any:
        return "1" if value is None else str(value)


def _read_yaml(path: PathLike, what: str) -> Any:
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"{what} file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {what.lower()} file {path}: {e}") from e


def _parse_contracts(data: Any, source: str) -> ContractsFile:
    if data is None:
        return ContractsFile()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Contracts in {source} must be a mapping, got {type(data).__name__}")
    try:
        return ContractsFile.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid contracts in {source}: {e}") from e


def load_contracts(path: PathLike) -> ContractsFile:
    """
    Load a contracts file.

    Args:
        path: Path to the YAML contracts file

    Returns:
        Parsed contracts file; an empty document yields no contracts

    Raises:
        ConfigurationError: If the file is missing or does not match the schema
    """
    contracts_file = _parse_contracts(_read_yaml(path, "Contracts"), str(path))
    logger.info(f"Loaded {len(contracts_file.contracts)} contracts from {path}")
    return contracts_file


def load_contracts_from_string(text: str) -> ContractsFile:
    """Parse contracts from YAML text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid contracts YAML: {e}") from e
    return _parse_contracts(data, "<string>")


def lint_contracts(contracts_file: ContractsFile) -> List[str]:
    """
    Check a contracts file for authoring mistakes.

    Returns:
        One message per problem found, empty when the file is clean
    """
    errors = []
    if not contracts_file.contracts:
        errors.append("No contracts defined.")

    seen = set()
    for contract in contracts_file.contracts:
        if not contract.name.strip():
            errors.append("Contract has empty name.")
        elif contract.name in seen:
            errors.append(f"Duplicate contract name '{contract.name}'.")
        seen.add(contract.name)

        if not contract.query.strip():
            errors.append(f"Contract '{contract.name}' has empty query.")

        for span in contract.expected_spans:
            if not span.name.strip():
                errors.append(f"Contract '{contract.name}' has expected span with empty name.")
            if span.max_latency_ms is not None and span.max_latency_ms < 0:
                errors.append(f"Contract '{contract.name}' span '{span.name}' has negative MaxLatencyMs.")
            for tag in span.tags:
                if not tag.key.strip():
                    errors.append(f"Contract '{contract.name}' span '{span.name}' has tag with empty key.")

    return errors


def load_telemetry_config(path: PathLike) -> TelemetryConfig:
    """
    Load the telemetry provider configuration.

    Raises:
        ConfigurationError: If the file is missing or does not match the schema
    """
    data = _read_yaml(path, "Telemetry config")
    if data is None:
        return TelemetryConfig()
    try:
        return TelemetryConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid telemetry config in {path}: {e}") from e


def _setting(provider: ProviderConfig, key: str, default: Optional[str] = None) -> Optional[str]:
    value = provider.settings.get(key)
    if value is None or str(value).strip() == "":
        return default
    return str(value)


def _required_setting(provider: ProviderConfig, key: str) -> str:
    value = _setting(provider, key)
    if value is None:
        raise ConfigurationError(f"Provider '{provider.name}' ({provider.type}) requires '{key}' setting.")
    return value


def _secret(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if not value:
        raise ConfigurationError(f"Missing env var '{name}'.")
    return value


def _timeout(provider: ProviderConfig) -> float:
    value = _setting(provider, "timeout_seconds", "30")
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"Provider '{provider.name}' has invalid timeout_seconds '{value}'.") from e


def create_provider(provider: ProviderConfig, env: Optional[Mapping[str, str]] = None) -> Optional[ObservabilityProvider]:
    """
    Build the provider described by one configuration entry.

    Returns:
        The provider, or None if the type is not supported
    """
    env = os.environ if env is None else env
    provider_type = provider.type.strip().lower()

    if provider_type == "datadog":
        return DatadogProvider(
            name=provider.name,
            api_url=_setting(provider, "api_url", DATADOG_API_URL),
            api_key=_secret(env, _setting(provider, "api_key_env", "DD_API_KEY")),
            app_key=_secret(env, _setting(provider, "app_key_env", "DD_APP_KEY")),
            timeout_seconds=_timeout(provider),
        )
    if provider_type == "honeycomb":
        dataset = _required_setting(provider, "dataset")
        return HoneycombProvider(
            name=provider.name,
            api_url=_setting(provider, "api_url", HONEYCOMB_API_URL),
            api_key=_secret(env, _setting(provider, "api_key_env", "HONEYCOMB_API_KEY")),
            dataset=dataset,
            timeout_seconds=_timeout(provider),
        )
    if provider_type in ("application_insights", "applicationinsights"):
        config = ApplicationInsightsConfig(
            resource_id=_required_setting(provider, "resource_id"),
            timeout_seconds=int(_timeout(provider)),
        )
        return ApplicationInsightsProvider(provider.name, config)
    if provider_type == "file":
        return FileProvider(_required_setting(provider, "path"), name=provider.name)

    return None


def create_providers(
    config: TelemetryConfig,
    resolver: Optional[ProviderResolver] = None,
    env: Optional[Mapping[str, str]] = None,
) -> List[ObservabilityProvider]:
    """
    Build every enabled provider in a telemetry configuration.

    Args:
        config: The telemetry configuration
        resolver: Optional hook consulted before the built-in provider types
        env: Environment to read secrets from, defaults to os.environ

    Returns:
        Providers in configuration order; unsupported types are skipped

    Raises:
        ConfigurationError: If a provider is missing settings or secrets
    """
    providers = []
    try:
        for provider_config in config.providers:
            if not provider_config.enabled:
                logger.debug(f"Skipping disabled provider '{provider_config.name}'")
                continue

            provider = resolver(provider_config) if resolver else None
            if provider is None:
                provider = create_provider(provider_config, env)

            if provider is None:
                logger.warning(
                    f"Provider type '{provider_config.type}' is not supported (name: {provider_config.name})."
                )
                continue

            providers.append(provider)
    except Exception:
        # Providers built before the failure hold open HTTP clients
        for built in providers:
            built.close()
        raise

    return providers
