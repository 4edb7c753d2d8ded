"""
Command line interface.

Exit codes: 0 when every contract passed (or lint is clean), 2 when a
contract failed or lint found problems, 1 for configuration and usage errors.
"""

from typing import List, Optional, Tuple
from datetime import datetime, timedelta, timezone
import logging

import click

from .config import (
    create_providers,
    lint_contracts,
    load_contracts,
    load_telemetry_config,
)
from .errors import ConfigurationError
from .models import ContractsFile, DEFAULT_WINDOW_MINUTES, ValidationResult
from .sources.file import FileProvider, write_ndjson_spans
from .sources.utils import parse_timestamp, EPOCH_MIN
from .sources.windowing import WindowingProvider
from .validator import Validator

DEFAULT_CONTRACTS = "contracts/observability-contracts.yaml"
DEFAULT_CONFIG = "contracts/telemetry-config.yaml"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FAILED = 2

END_OF_TIME = datetime.max.replace(tzinfo=timezone.utc)


def _parse_iso(value: Optional[str], option: str) -> Optional[datetime]:
    if value is None:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise click.ClickException(f"Invalid {option} timestamp '{value}', expected ISO-8601.")
    return parsed


def _global_window(
    contracts_file: ContractsFile,
    from_time: Optional[datetime],
    to_time: Optional[datetime],
) -> Tuple[datetime, datetime]:
    to_time = to_time or datetime.now(timezone.utc)
    if from_time is None:
        minutes = contracts_file.contracts[0].window_minutes if contracts_file.contracts else DEFAULT_WINDOW_MINUTES
        from_time = to_time - timedelta(minutes=minutes)
    return from_time, to_time


def _report(results: List[ValidationResult]) -> int:
    exit_code = EXIT_OK
    for result in results:
        icon = "✅" if result.passed else "❌"
        click.echo(f"{icon} [{result.contract_name}] {result.message}")
        for detail in result.details:
            click.echo(f"   - {detail}")
        if not result.passed:
            exit_code = EXIT_FAILED
    return exit_code


@click.group(help="Validate distributed-tracing telemetry against observability contracts.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Main command group."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("validate")
@click.option("--contracts", "contracts_path", default=DEFAULT_CONTRACTS, show_default=True,
              type=click.Path(), help="Contracts YAML file")
@click.option("--config", "config_path", default=DEFAULT_CONFIG, show_default=True,
              type=click.Path(), help="Telemetry provider configuration")
@click.option("--from", "from_str", default=None, help="Window start (ISO-8601), applied to every contract")
@click.option("--to", "to_str", default=None, help="Window end (ISO-8601), applied to every contract")
@click.option("--spans", "spans_path", default=None, type=click.Path(),
              help="Validate offline against recorded NDJSON spans instead of live providers")
@click.pass_context
def validate(
    ctx: click.Context,
    contracts_path: str,
    config_path: str,
    from_str: Optional[str],
    to_str: Optional[str],
    spans_path: Optional[str],
) -> None:
    """Validate contracts against each configured provider or a recorded span file."""
    from_time = _parse_iso(from_str, "--from")
    to_time = _parse_iso(to_str, "--to")

    click.echo(f"Using contracts: {contracts_path}")
    try:
        contracts_file = load_contracts(contracts_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    if spans_path:
        # Recorded spans keep their original timestamps, so the whole file is in range by default
        provider = WindowingProvider(
            FileProvider(spans_path, name="offline"),
            from_time or EPOCH_MIN,
            to_time or END_OF_TIME,
        )
        ctx.exit(_report(Validator(provider).validate(contracts_file)))

    click.echo(f"Using config   : {config_path}")
    try:
        providers = create_providers(load_telemetry_config(config_path))
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    if not providers:
        click.echo("No enabled providers configured. Exiting.")
        ctx.exit(EXIT_ERROR)

    exit_code = EXIT_OK
    try:
        for provider in providers:
            click.echo()
            click.echo(f"=== Provider: {provider.name} ===")
            target = provider
            if from_time is not None or to_time is not None:
                target = WindowingProvider(provider, *_global_window(contracts_file, from_time, to_time))
            if _report(Validator(target).validate(contracts_file)) != EXIT_OK:
                exit_code = EXIT_FAILED
    finally:
        for provider in providers:
            provider.close()

    ctx.exit(exit_code)


@main.group("contracts")
def contracts() -> None:
    """Contracts file maintenance commands."""
    pass


@contracts.command("lint")
@click.option("--contracts", "contracts_path", default=DEFAULT_CONTRACTS, show_default=True,
              type=click.Path(), help="Contracts YAML file")
@click.pass_context
def lint(ctx: click.Context, contracts_path: str) -> None:
    """Check a contracts file for authoring mistakes."""
    try:
        errors = lint_contracts(load_contracts(contracts_path))
    except ConfigurationError as e:
        click.echo(f"Contracts lint FAILED: {e}")
        ctx.exit(EXIT_FAILED)

    if not errors:
        click.echo(f"Contracts lint OK: {contracts_path}")
        ctx.exit(EXIT_OK)

    click.echo("Contracts lint FAILED:")
    for error in errors:
        click.echo(f" - {error}")
    ctx.exit(EXIT_FAILED)


@main.command("record")
@click.option("--config", "config_path", default=DEFAULT_CONFIG, show_default=True,
              type=click.Path(), help="Telemetry provider configuration")
@click.option("--provider-name", required=True, help="Name of the configured provider to record from")
@click.option("--query", default="", help="Filter query selecting the spans to record")
@click.option("--from", "from_str", required=True, help="Window start (ISO-8601)")
@click.option("--to", "to_str", required=True, help="Window end (ISO-8601)")
@click.option("--out", "out_path", required=True, type=click.Path(), help="NDJSON file to write")
def record(config_path: str, provider_name: str, query: str, from_str: str, to_str: str, out_path: str) -> None:
    """Record spans from a live provider into an NDJSON file for offline validation."""
    from_time = _parse_iso(from_str, "--from")
    to_time = _parse_iso(to_str, "--to")

    try:
        providers = create_providers(load_telemetry_config(config_path))
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    try:
        provider = next((p for p in providers if p.name.lower() == provider_name.lower()), None)
        if provider is None:
            raise click.ClickException(f"Provider '{provider_name}' not found or not enabled in {config_path}.")

        try:
            spans = provider.fetch_spans(query, from_time, to_time)
        except Exception as e:
            # Reported like a failed fetch during validation
            raise click.ClickException(f"Failed to fetch spans: {e}") from e
    finally:
        for p in providers:
            p.close()

    count = write_ndjson_spans(out_path, spans)
    click.echo(f"Wrote {count} spans to {out_path}")


if __name__ == "__main__":
    main()
